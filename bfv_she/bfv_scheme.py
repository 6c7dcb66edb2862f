"""
BFV (Brakerski-Fan-Vercauteren) Encryption Scheme

Encryption, decryption and homomorphic arithmetic as pure functions over
immutable keys and ciphertexts, plus ``BFVScheme``, a stateful convenience
wrapper that holds one key set.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

import numpy as np

from .ciphertext import (
    Ciphertext,
    ExpandedCiphertext,
    FreshCiphertext,
    Plaintext,
    check_compatible,
    check_plaintext,
)
from .encoding import BatchEncoder, batch_encode, decode, encode
from .errors import UsageError
from .keys import (
    DEFAULT_DECOMPOSITION_BASE,
    EvaluationKey,
    PublicKey,
    SecretKey,
    generate_evaluation_key,
    keygen,
)
from .params import BFVParameters
from .polynomial import BufferPool, DiscreteGaussian, RingElement, negacyclic_convolve, resolve_rng
from .relinearization import relinearize

logger = logging.getLogger(__name__)


def _round_div(num: np.ndarray, den: int) -> np.ndarray:
    """Nearest-integer num/den in exact integer arithmetic (halves round up)."""
    return (2 * num + den) // (2 * den)


def _lift_plaintext(plaintext: Plaintext, params: BFVParameters) -> RingElement:
    """Delta * m, lifting the plaintext from Z_t to Z_q."""
    return RingElement(plaintext.poly.coeffs * params.delta, params.q, params.n)


def encrypt(
    public_key: PublicKey,
    plaintext: Plaintext,
    rng: Optional[np.random.Generator] = None,
    pool: Optional[BufferPool] = None,
) -> FreshCiphertext:
    params = public_key.params
    check_plaintext(plaintext, params)
    rng = resolve_rng(rng)
    ring = params.ring(pool)
    gaussian = DiscreteGaussian(params.sigma, params.n)

    u = gaussian.sample_poly(ring, rng)
    e1 = gaussian.sample_poly(ring, rng)
    e2 = gaussian.sample_poly(ring, rng)

    # c0 = b*u + e1 + delta*m
    c0 = ring.add(ring.add(ring.mul(public_key.b, u), e1), _lift_plaintext(plaintext, params))
    # c1 = a*u + e2
    c1 = ring.add(ring.mul(public_key.a, u), e2)
    return FreshCiphertext(c0, c1, params)


def encrypt_values(
    public_key: PublicKey,
    values: Iterable[int],
    rng: Optional[np.random.Generator] = None,
) -> FreshCiphertext:
    params = public_key.params
    return encrypt(public_key, encode(values, params.t, params.n), rng=rng)


def decrypt(
    secret_key: SecretKey,
    ciphertext: Ciphertext,
    pool: Optional[BufferPool] = None,
) -> Plaintext:
    """
    m = round(t/q * (c0 + c1*s)) mod t.

    Correct only while the accumulated noise stays below q/2t; past that the
    result is silently wrong. Use ``noise.analyze_noise`` to check.
    """
    if len(ciphertext) == 3:
        raise UsageError("3-component ciphertext must be relinearized before decryption")
    if len(ciphertext) != 2:
        raise UsageError(f"decryption needs a 2-component ciphertext, got {len(ciphertext)}")
    check_compatible(secret_key, ciphertext)
    params = secret_key.params
    ring = params.ring(pool)

    c0, c1 = ciphertext.components
    noisy = ring.add(c0, ring.mul(c1, secret_key.s))

    scaled = _round_div(noisy.centered() * params.t, params.q)
    return Plaintext(RingElement(scaled, params.t, params.n))


def add_encrypted(ct1: Ciphertext, ct2: Ciphertext) -> Ciphertext:
    """Component-wise sum; the shorter ciphertext is padded with zeros."""
    check_compatible(ct1, ct2)
    params = ct1.params
    ring = params.ring()
    zero = ring.zero()
    length = max(len(ct1), len(ct2))
    comps = []
    for i in range(length):
        p = ct1.components[i] if i < len(ct1) else zero
        r = ct2.components[i] if i < len(ct2) else zero
        comps.append(ring.add(p, r))
    return Ciphertext.from_components(comps, params)


def negate(ct: Ciphertext) -> Ciphertext:
    ring = ct.params.ring()
    return Ciphertext.from_components([ring.neg(c) for c in ct.components], ct.params)


def sub_encrypted(ct1: Ciphertext, ct2: Ciphertext) -> Ciphertext:
    return add_encrypted(ct1, negate(ct2))


def add_plain(ct: Ciphertext, plaintext: Plaintext) -> Ciphertext:
    """Add delta * plaintext into the first component only."""
    params = ct.params
    check_plaintext(plaintext, params)
    ring = params.ring()
    comps = list(ct.components)
    comps[0] = ring.add(comps[0], _lift_plaintext(plaintext, params))
    return Ciphertext.from_components(comps, params)


def multiply_encrypted(
    ct1: Ciphertext,
    ct2: Ciphertext,
    pool: Optional[BufferPool] = None,
) -> ExpandedCiphertext:
    """
    Tensor two fresh ciphertexts into a 3-component ciphertext.

    d0 = a0*b0, d1 = a0*b1 + a1*b0, d2 = a1*b1, computed over the integers on
    centered lifts and scaled by t/q. The result must be relinearized before
    it is decrypted or multiplied again.
    """
    for ct in (ct1, ct2):
        if len(ct) != 2:
            raise UsageError(
                f"multiplication needs 2-component ciphertexts, got {len(ct)}; relinearize first"
            )
    check_compatible(ct1, ct2)
    params = ct1.params
    n, q, t = params.n, params.q, params.t
    ring = params.ring(pool)

    a0, a1 = (c.centered() for c in ct1.components)
    b0, b1 = (c.centered() for c in ct2.components)

    def mul_scale(*pairs):
        acc = np.zeros(n, dtype=object)
        for x, y in pairs:
            acc = acc + negacyclic_convolve(x, y, n)
        return ring.element(_round_div(acc * t, q))

    d0 = mul_scale((a0, b0))
    d1 = mul_scale((a0, b1), (a1, b0))
    d2 = mul_scale((a1, b1))
    return ExpandedCiphertext(d0, d1, d2, params)


def multiply_encrypted_relin(
    ct1: Ciphertext,
    ct2: Ciphertext,
    eval_key: EvaluationKey,
    pool: Optional[BufferPool] = None,
) -> FreshCiphertext:
    return relinearize(multiply_encrypted(ct1, ct2, pool=pool), eval_key, pool=pool)


def multiply_plain(ct: Ciphertext, scalar: int) -> Ciphertext:
    """Scale every component by an integer constant."""
    ring = ct.params.ring()
    return Ciphertext.from_components([ring.mul_scalar(c, scalar) for c in ct.components], ct.params)


def multiply_plain_poly(
    ct: Ciphertext,
    plaintext: Plaintext,
    pool: Optional[BufferPool] = None,
) -> Ciphertext:
    """Multiply every component by a plaintext polynomial (slot-wise under batching)."""
    params = ct.params
    check_plaintext(plaintext, params)
    ring = params.ring(pool)
    m = plaintext.centered()
    return Ciphertext.from_components([ring.mul_raw(c.coeffs, m) for c in ct.components], params)


# SIMD conveniences over a batch encoder

def simd_add(ct1: Ciphertext, ct2: Ciphertext, encoder: BatchEncoder) -> Ciphertext:
    return add_encrypted(ct1, ct2)


def simd_multiply(
    ct1: Ciphertext, ct2: Ciphertext, eval_key: EvaluationKey, encoder: BatchEncoder
) -> FreshCiphertext:
    return multiply_encrypted_relin(ct1, ct2, eval_key)


def simd_add_constant(ct: Ciphertext, constants: Iterable[int], encoder: BatchEncoder) -> Ciphertext:
    """Add a different constant to each slot."""
    return add_plain(ct, batch_encode(encoder, constants))


def simd_multiply_constant(ct: Ciphertext, constants: Iterable[int], encoder: BatchEncoder) -> Ciphertext:
    """Multiply each slot by a different constant."""
    return multiply_plain_poly(ct, batch_encode(encoder, constants))


class BFVScheme:
    """
    Stateful wrapper holding one key set and one random generator.

    Not meant to be shared across threads; use ``parallel.batch_encrypt`` or
    the module-level functions with per-thread generators instead.
    """

    def __init__(
        self,
        params: Optional[BFVParameters] = None,
        rng: Optional[np.random.Generator] = None,
        decomposition_base: int = DEFAULT_DECOMPOSITION_BASE,
        workers: Optional[int] = None,
    ):
        self.params = params or BFVParameters.from_security_level()
        self.rng = resolve_rng(rng)
        self.decomposition_base = decomposition_base
        self.workers = workers
        self.N = self.params.n
        self.t = self.params.t
        self.q = self.params.q
        self.delta = self.params.delta
        self.n_slots = self.N // 2

        self.secret_key = None
        self.public_key = None
        self.relin_key = None
        self._batch_encoder = None

        logger.info(
            "BFV Parameters: N=%d, t=%d, q~2^%d, decomposition base %d",
            self.N, self.t, self.q.bit_length(), decomposition_base,
        )

    @classmethod
    def from_config(cls, config, rng: Optional[np.random.Generator] = None) -> "BFVScheme":
        return cls(
            config.parameters(),
            rng=rng,
            decomposition_base=config.decomposition_base,
            workers=config.workers,
        )

    def key_generation(self):
        keys = keygen(self.params, rng=self.rng)
        self.secret_key = keys.secret_key
        self.public_key = keys.public_key
        return self.secret_key, self.public_key

    def generate_relin_key(self) -> EvaluationKey:
        if self.secret_key is None:
            raise UsageError("Keys not generated")
        self.relin_key = generate_evaluation_key(
            self.secret_key, decomposition_base=self.decomposition_base, rng=self.rng
        )
        return self.relin_key

    @property
    def batch_encoder(self) -> BatchEncoder:
        if self._batch_encoder is None:
            self._batch_encoder = BatchEncoder.for_parameters(self.params)
        return self._batch_encoder

    def encode(self, values) -> Plaintext:
        return encode(values, self.t, self.N)

    def decode(self, plaintext: Plaintext, centered: bool = False):
        return decode(plaintext, centered=centered)

    def encrypt(self, plaintext: Plaintext) -> FreshCiphertext:
        if self.public_key is None:
            raise UsageError("No Public Key")
        return encrypt(self.public_key, plaintext, rng=self.rng)

    def decrypt(self, ciphertext: Ciphertext) -> Plaintext:
        if self.secret_key is None:
            raise UsageError("No Secret Key")
        return decrypt(self.secret_key, ciphertext)

    def add(self, ct1: Ciphertext, ct2: Ciphertext) -> Ciphertext:
        return add_encrypted(ct1, ct2)

    def sub(self, ct1: Ciphertext, ct2: Ciphertext) -> Ciphertext:
        return sub_encrypted(ct1, ct2)

    def multiply(self, ct1: Ciphertext, ct2: Ciphertext) -> ExpandedCiphertext:
        return multiply_encrypted(ct1, ct2)

    def relinearize(self, ciphertext: Ciphertext) -> FreshCiphertext:
        if self.relin_key is None:
            self.generate_relin_key()
        return relinearize(ciphertext, self.relin_key)

    def multiply_relin(self, ct1: Ciphertext, ct2: Ciphertext) -> FreshCiphertext:
        return self.relinearize(self.multiply(ct1, ct2))

    def encrypt_many(self, plaintexts):
        from .parallel import batch_encrypt

        if self.public_key is None:
            raise UsageError("No Public Key")
        seed = int(self.rng.integers(0, 2**63 - 1))
        return batch_encrypt(self.public_key, plaintexts, seed=seed, max_workers=self.workers)

    def decrypt_many(self, ciphertexts):
        from .parallel import batch_decrypt

        if self.secret_key is None:
            raise UsageError("No Secret Key")
        return batch_decrypt(self.secret_key, ciphertexts, max_workers=self.workers)
