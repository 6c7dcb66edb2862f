"""
Relinearization (key switching) for BFV.

A 3-component ciphertext (d0, d1, d2) decrypts as d0 + d1*s + d2*s^2. The
evaluation key holds encryptions of B^i * s^2, so writing d2 = sum D_i * B^i
with small digits D_i lets us replace d2*s^2 by sum D_i * (b_i + a_i*s),
adding only the small noise sum D_i * e_i.
"""

from __future__ import annotations

from typing import List, Optional

import numpy as np

from .ciphertext import Ciphertext, FreshCiphertext
from .errors import UsageError
from .keys import EvaluationKey, num_digits
from .polynomial import BufferPool, RingElement


def digit_decompose(element: RingElement, base: int) -> List[RingElement]:
    """
    Signed base-B digits of each centered coefficient.

    Digit i is a ring element whose coefficients lie in (-B, B), and
    sum_i digit_i * B^i equals the centered representative of ``element``.
    """
    digits_needed = num_digits(element.q, base)
    centered = element.centered()
    signs = np.array([-1 if c < 0 else 1 for c in centered], dtype=object)
    remaining = np.array([abs(int(c)) for c in centered], dtype=object)

    digits = []
    for _ in range(digits_needed):
        digits.append(RingElement(signs * (remaining % base), element.q, element.n))
        remaining = remaining // base
    return digits


def relinearize(
    ciphertext: Ciphertext,
    eval_key: EvaluationKey,
    pool: Optional[BufferPool] = None,
) -> FreshCiphertext:
    """Reduce a 3-component ciphertext to 2 components with the evaluation key."""
    if len(ciphertext) != 3:
        raise UsageError(f"only 3-component ciphertexts can be relinearized, got {len(ciphertext)}")
    params = ciphertext.params
    if params.q != eval_key.params.q or params.n != eval_key.params.n:
        raise UsageError("ciphertext parameters do not match the evaluation key")

    ring = params.ring(pool)
    c0, c1, c2 = ciphertext.components
    digits = digit_decompose(c2, eval_key.decomposition_base)
    if len(digits) != eval_key.num_digits:
        raise UsageError(
            f"evaluation key has {eval_key.num_digits} digits, decomposition needs {len(digits)}"
        )

    delta_c0 = ring.zero()
    delta_c1 = ring.zero()
    for digit, (a_i, b_i) in zip(digits, eval_key.pairs):
        # b_i + a_i*s = e_i + B^i * s^2
        delta_c0 = ring.add(delta_c0, ring.mul(digit, b_i))
        delta_c1 = ring.add(delta_c1, ring.mul(digit, a_i))

    return FreshCiphertext(ring.add(c0, delta_c0), ring.add(c1, delta_c1), params)
