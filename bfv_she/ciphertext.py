"""
Plaintext and ciphertext containers.

Ciphertexts are tagged by shape: ``FreshCiphertext`` (c0, c1) is what
encryption, addition and relinearization produce; ``ExpandedCiphertext``
(c0, c1, c2) is the raw output of a ciphertext-ciphertext multiplication and
must be relinearized before it can be decrypted or multiplied again.
"""

from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np

from .errors import UsageError
from .params import BFVParameters
from .polynomial import RingElement


class Plaintext:
    """A ring element mod t with coefficients in [0, t)."""

    __slots__ = ("poly",)

    def __init__(self, poly: RingElement):
        self.poly = poly

    @property
    def t(self) -> int:
        return self.poly.q

    @property
    def n(self) -> int:
        return self.poly.n

    def to_list(self) -> list:
        return self.poly.to_list()

    def centered(self) -> np.ndarray:
        """Coefficients lifted into (-t/2, t/2]."""
        return self.poly.centered()

    def __eq__(self, other):
        if not isinstance(other, Plaintext):
            return NotImplemented
        return self.poly == other.poly

    def __repr__(self):
        return f"Plaintext(n={self.n}, t={self.t}, coeffs={self.to_list()[:8]})"


class Ciphertext:
    """Generic BFV ciphertext with one to three components mod q."""

    def __init__(self, components: Sequence[RingElement], params: BFVParameters):
        components = tuple(components)
        if not 1 <= len(components) <= 3:
            raise UsageError(f"ciphertext must have 1 to 3 components, got {len(components)}")
        for c in components:
            if c.q != params.q or c.n != params.n:
                raise UsageError("ciphertext component does not match parameters")
        self._components = components
        self.params = params

    @staticmethod
    def from_components(components: Sequence[RingElement], params: BFVParameters) -> "Ciphertext":
        """Build the tagged ciphertext type matching the component count."""
        components = tuple(components)
        if len(components) == 2:
            return FreshCiphertext(components[0], components[1], params)
        if len(components) == 3:
            return ExpandedCiphertext(components[0], components[1], components[2], params)
        return Ciphertext(components, params)

    @property
    def components(self) -> Tuple[RingElement, ...]:
        return self._components

    def __len__(self):
        return len(self._components)

    @property
    def q(self) -> int:
        return self.params.q

    @property
    def n(self) -> int:
        return self.params.n

    @property
    def t(self) -> int:
        return self.params.t

    def __eq__(self, other):
        if not isinstance(other, Ciphertext):
            return NotImplemented
        return self.params.shape == other.params.shape and self._components == other._components

    def __repr__(self):
        return f"{type(self).__name__}(size={len(self)}, n={self.n}, q~2^{self.q.bit_length()}, t={self.t})"


class FreshCiphertext(Ciphertext):
    def __init__(self, c0: RingElement, c1: RingElement, params: BFVParameters):
        super().__init__((c0, c1), params)


class ExpandedCiphertext(Ciphertext):
    def __init__(self, c0: RingElement, c1: RingElement, c2: RingElement, params: BFVParameters):
        super().__init__((c0, c1, c2), params)


def check_compatible(*values) -> None:
    """All ciphertexts and keys must share the same (q, n, t)."""
    shapes = {v.params.shape for v in values}
    if len(shapes) > 1:
        raise UsageError(f"parameter mismatch between operands: {sorted(shapes)}")


def check_plaintext(plaintext: Plaintext, params: BFVParameters) -> None:
    if plaintext.t != params.t or plaintext.n != params.n:
        raise UsageError(
            f"plaintext (n={plaintext.n}, t={plaintext.t}) does not match parameters (n={params.n}, t={params.t})"
        )
