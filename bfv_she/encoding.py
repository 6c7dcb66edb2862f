"""
Integer encoding for BFV plaintexts.

``encode``/``decode`` place one integer per coefficient. ``BatchEncoder``
packs n/2 integers into SIMD slots: slot j is the value of the plaintext
polynomial at psi^(3^j), where psi is a primitive 2n-th root of unity mod t,
so ring addition and multiplication act slot-wise.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Union

import numpy as np

from .ciphertext import Plaintext
from .errors import UsageError
from .number_theory import find_primitive_2n_root, mod_inverse
from .polynomial import RingElement

logger = logging.getLogger(__name__)


def _reduce(value, t):
    if not isinstance(value, (int, np.integer)):
        raise UsageError(f"plaintext values must be integers, got {value!r}")
    return int(value) % t


def encode(values: Union[int, Iterable[int]], t: int, n: int) -> Plaintext:
    """Reduce values mod t into the first n coefficients; zero-pad or truncate."""
    if isinstance(values, (int, np.integer)):
        values = [values]
    values = list(values)
    poly = [0] * n
    count = min(len(values), n)
    for i in range(count):
        poly[i] = _reduce(values[i], t)
    return Plaintext(RingElement(poly, t, n))


def decode(plaintext: Plaintext, centered: bool = False) -> List[int]:
    """Read coefficients back; ``centered`` maps them into (-t/2, t/2]."""
    if centered:
        return [int(c) for c in plaintext.centered()]
    return plaintext.to_list()


class BatchEncoder:
    """
    CRT slot encoder for prime t with t = 1 mod 2n.

    The transforms are dense n x n matrices over Python ints, built on first
    use with O(n^2) modular exponentiations; each encode or decode is then an
    O(n^2) matrix product. That is fine for test-sized rings but takes seconds
    from n = 1024 and grows quadratically past that.
    """

    def __init__(self, t: int, n: int):
        self.t = int(t)
        self.n = int(n)
        self.slot_count = self.n // 2
        self.primitive_root: Optional[int] = None
        if self.n >= 2:
            self.primitive_root = find_primitive_2n_root(self.t, self.n)
        if self.primitive_root is None:
            logger.debug("Batching unavailable for t=%d, n=%d; using coefficient encoding", self.t, self.n)
        self._encode_matrix = None
        self._decode_matrix = None

    @classmethod
    def for_parameters(cls, params) -> "BatchEncoder":
        return cls(params.t, params.n)

    def slot_exponents(self) -> List[int]:
        """Exponents of psi for the slot row followed by its mirrored row."""
        two_n = 2 * self.n
        row = [pow(3, j, two_n) for j in range(self.slot_count)]
        return row + [two_n - e for e in row]

    def _build_matrices(self):
        t, n = self.t, self.n
        points = [pow(self.primitive_root, e, t) for e in self.slot_exponents()]
        # Decoding evaluates the polynomial at the slot-row points
        decode_matrix = np.empty((self.slot_count, n), dtype=object)
        for j in range(self.slot_count):
            x = points[j]
            decode_matrix[j] = [pow(x, i, t) for i in range(n)]
        # Encoding interpolates: m_i = n^-1 * sum_k v_k * x_k^-i
        n_inv = mod_inverse(n, t)
        encode_matrix = np.empty((n, n), dtype=object)
        inverses = [mod_inverse(x, t) for x in points]
        for i in range(n):
            encode_matrix[i] = [(n_inv * pow(x_inv, i, t)) % t for x_inv in inverses]
        self._encode_matrix = encode_matrix
        self._decode_matrix = decode_matrix

    def encode(self, values: Iterable[int]) -> Plaintext:
        return batch_encode(self, values)

    def decode(self, plaintext: Plaintext) -> List[int]:
        return batch_decode(self, plaintext)

    def __repr__(self):
        return f"BatchEncoder(t={self.t}, n={self.n}, slots={self.slot_count}, batching={can_batch(self)})"


def can_batch(encoder: BatchEncoder) -> bool:
    return encoder.slot_count > 0 and encoder.primitive_root is not None


def _pad_slots(encoder: BatchEncoder, values) -> List[int]:
    if isinstance(values, (int, np.integer)):
        values = [values]
    values = list(values)
    slots = [0] * encoder.slot_count
    for i in range(min(len(values), encoder.slot_count)):
        slots[i] = _reduce(values[i], encoder.t)
    return slots


def batch_encode(encoder: BatchEncoder, values: Iterable[int]) -> Plaintext:
    """Pack up to n/2 integers into one plaintext; extra values are dropped."""
    slots = _pad_slots(encoder, values)
    if not can_batch(encoder):
        return encode(slots, encoder.t, encoder.n)
    if encoder._encode_matrix is None:
        encoder._build_matrices()
    full = np.array(slots + slots, dtype=object)
    coeffs = encoder._encode_matrix.dot(full) % encoder.t
    return Plaintext(RingElement(coeffs, encoder.t, encoder.n))


def batch_decode(encoder: BatchEncoder, plaintext: Plaintext) -> List[int]:
    """Unpack the n/2 slot values of a plaintext."""
    if plaintext.t != encoder.t or plaintext.n != encoder.n:
        raise UsageError(
            f"plaintext (n={plaintext.n}, t={plaintext.t}) does not match encoder (n={encoder.n}, t={encoder.t})"
        )
    if not can_batch(encoder):
        return plaintext.to_list()[: encoder.slot_count]
    if encoder._decode_matrix is None:
        encoder._build_matrices()
    slots = encoder._decode_matrix.dot(np.array(plaintext.poly.coeffs, dtype=object)) % encoder.t
    return [int(v) for v in slots]
