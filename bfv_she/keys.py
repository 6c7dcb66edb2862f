"""
Key material for the BFV scheme.

The public key and the evaluation key are safe to hand to a compute party.
The secret key stays with the decrypting client and is never serialized.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .errors import UsageError
from .params import BFVParameters
from .polynomial import DiscreteGaussian, RingElement, resolve_rng

logger = logging.getLogger(__name__)

DEFAULT_DECOMPOSITION_BASE = 4


@dataclass(frozen=True)
class PublicKey:
    a: RingElement
    b: RingElement
    params: BFVParameters


@dataclass(frozen=True)
class SecretKey:
    s: RingElement
    params: BFVParameters

    def __repr__(self):
        return f"SecretKey(n={self.params.n}, q~2^{self.params.q.bit_length()}, s=<hidden>)"


@dataclass(frozen=True)
class EvaluationKey:
    """Key-switching pairs (a_i, b_i) with b_i = -a_i*s + e_i + B^i * s^2."""

    pairs: Tuple[Tuple[RingElement, RingElement], ...]
    decomposition_base: int
    params: BFVParameters

    @property
    def num_digits(self) -> int:
        return len(self.pairs)


@dataclass(frozen=True)
class KeyPair:
    public_key: PublicKey
    secret_key: SecretKey


def num_digits(q: int, base: int) -> int:
    """ceil(log_base(q)) in exact integer arithmetic."""
    if base < 2:
        raise UsageError(f"decomposition base must be at least 2, got {base}")
    digits, power = 0, 1
    while power < q:
        power *= base
        digits += 1
    return digits


def keygen(params: BFVParameters, rng: Optional[np.random.Generator] = None) -> KeyPair:
    """Generate a (public, secret) key pair: b = -a*s + e (mod q)."""
    if not isinstance(params, BFVParameters):
        raise UsageError("keygen requires validated BFVParameters")
    rng = resolve_rng(rng)
    ring = params.ring()
    gaussian = DiscreteGaussian(params.sigma, params.n)

    s = gaussian.sample_poly(ring, rng)
    a = ring.random_uniform(rng)
    e = gaussian.sample_poly(ring, rng)

    b = ring.add(ring.neg(ring.mul(a, s)), e)

    logger.info("Generated BFV key pair (n=%d, q~2^%d, t=%d)", params.n, params.q.bit_length(), params.t)
    return KeyPair(PublicKey(a, b, params), SecretKey(s, params))


def generate_evaluation_key(
    secret_key: SecretKey,
    decomposition_base: int = DEFAULT_DECOMPOSITION_BASE,
    rng: Optional[np.random.Generator] = None,
) -> EvaluationKey:
    """
    Generate the relinearization key.

    One pair per base-B digit of q. A smaller base means more digits, a larger
    key and less noise added by relinearization.
    """
    params = secret_key.params
    digits = num_digits(params.q, decomposition_base)
    rng = resolve_rng(rng)
    ring = params.ring()
    gaussian = DiscreteGaussian(params.sigma, params.n)

    s = secret_key.s
    s_squared = ring.mul(s, s)

    pairs = []
    base_power = 1
    for _ in range(digits):
        a = ring.random_uniform(rng)
        e = gaussian.sample_poly(ring, rng)
        target = ring.mul_scalar(s_squared, base_power)
        b = ring.add(ring.add(ring.neg(ring.mul(a, s)), e), target)
        pairs.append((a, b))
        base_power *= decomposition_base

    logger.debug("Generated evaluation key: base=%d, digits=%d", decomposition_base, digits)
    return EvaluationKey(tuple(pairs), decomposition_base, params)
