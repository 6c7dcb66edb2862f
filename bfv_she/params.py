"""
BFV parameter sets.

Parameters are validated once on construction and frozen afterwards; every
key, plaintext and ciphertext carries the set it was created under.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Optional

from .errors import ConfigurationError
from .polynomial import BufferPool, PolynomialRing

logger = logging.getLogger(__name__)


class SecurityLevel(enum.IntEnum):
    SECURITY_128 = 128
    SECURITY_192 = 192
    SECURITY_256 = 256


# (ring dimension, log2 of the ciphertext modulus, sigma)
# Based on the HomomorphicEncryption.org security standard tables.
_LATTICE_PARAMS = {
    SecurityLevel.SECURITY_128: (4096, 109, 3.2),
    SecurityLevel.SECURITY_192: (8192, 218, 3.2),
    SecurityLevel.SECURITY_256: (16384, 438, 3.2),
}

DEFAULT_PLAINTEXT_MODULUS = 1024


def lattice_params_for_security_level(level: SecurityLevel):
    try:
        return _LATTICE_PARAMS[SecurityLevel(level)]
    except (KeyError, ValueError):
        raise ConfigurationError(f"Unsupported security level: {level}") from None


def find_modulus(t: int, q_bits: int) -> int:
    """Largest multiple of ``t`` not exceeding ``2**q_bits``."""
    if t < 2:
        raise ConfigurationError("plaintext modulus t must be at least 2")
    q = ((1 << q_bits) // t) * t
    if q <= t:
        raise ConfigurationError(f"q_bits={q_bits} leaves no room above t={t}")
    return q


def is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


def validate_parameters(n: int, q: int, t: int, sigma: float) -> None:
    """Raise ConfigurationError unless (n, q, t, sigma) form a usable BFV set."""
    if not is_power_of_two(n):
        raise ConfigurationError(f"ring dimension n={n} must be a power of two")
    if t < 2:
        raise ConfigurationError(f"plaintext modulus t={t} must be at least 2")
    if not t < q:
        raise ConfigurationError(f"plaintext modulus t={t} must be smaller than q={q}")
    if q % t != 0:
        raise ConfigurationError(f"ciphertext modulus q={q} must be divisible by t={t}")
    if not sigma > 0:
        raise ConfigurationError(f"noise parameter sigma={sigma} must be positive")


@dataclass(frozen=True)
class BFVParameters:
    n: int
    q: int
    t: int
    sigma: float = 3.2
    security_level: Optional[SecurityLevel] = None

    def __post_init__(self):
        object.__setattr__(self, "n", int(self.n))
        object.__setattr__(self, "q", int(self.q))
        object.__setattr__(self, "t", int(self.t))
        object.__setattr__(self, "sigma", float(self.sigma))
        validate_parameters(self.n, self.q, self.t, self.sigma)

    @classmethod
    def from_security_level(
        cls,
        level: SecurityLevel = SecurityLevel.SECURITY_128,
        plaintext_modulus: int = DEFAULT_PLAINTEXT_MODULUS,
    ) -> "BFVParameters":
        n, q_bits, sigma = lattice_params_for_security_level(level)
        q = find_modulus(plaintext_modulus, q_bits)
        logger.info(
            "BFV parameters for %d-bit security: n=%d, t=%d, q~2^%d",
            int(level), n, plaintext_modulus, q.bit_length(),
        )
        return cls(n=n, q=q, t=plaintext_modulus, sigma=sigma, security_level=SecurityLevel(level))

    @property
    def delta(self) -> int:
        """Scaling factor lifting Z_t into Z_q."""
        return self.q // self.t

    @property
    def shape(self):
        """The (q, n, t) triple that must agree between combined values."""
        return (self.q, self.n, self.t)

    def ring(self, pool: Optional[BufferPool] = None) -> PolynomialRing:
        return PolynomialRing(self.n, self.q, pool=pool)
