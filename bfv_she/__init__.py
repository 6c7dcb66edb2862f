"""
bfv_she: a BFV somewhat-homomorphic encryption scheme over Z_q[X]/(X^n + 1).
"""

__version__ = "0.1.0"

from .errors import BFVError, ConfigurationError, UsageError
from .params import BFVParameters, SecurityLevel, find_modulus
from .polynomial import BufferPool, PolynomialRing, RingElement
from .ciphertext import Ciphertext, ExpandedCiphertext, FreshCiphertext, Plaintext
from .keys import EvaluationKey, KeyPair, PublicKey, SecretKey, generate_evaluation_key, keygen
from .encoding import BatchEncoder, batch_decode, batch_encode, can_batch, decode, encode
from .relinearization import digit_decompose, relinearize
from .bfv_scheme import (
    BFVScheme,
    add_encrypted,
    add_plain,
    decrypt,
    encrypt,
    encrypt_values,
    multiply_encrypted,
    multiply_encrypted_relin,
    multiply_plain,
    multiply_plain_poly,
    negate,
    simd_add,
    simd_add_constant,
    simd_multiply,
    simd_multiply_constant,
    sub_encrypted,
)
from .noise import NoiseAnalysis, analyze_noise, estimate_multiplication_depth, noise_linf, noise_poly
from .parallel import batch_decrypt, batch_encrypt
from .config import SchemeConfig, configure_logging

__all__ = [
    "BFVError",
    "ConfigurationError",
    "UsageError",
    "BFVParameters",
    "SecurityLevel",
    "find_modulus",
    "BufferPool",
    "PolynomialRing",
    "RingElement",
    "Ciphertext",
    "ExpandedCiphertext",
    "FreshCiphertext",
    "Plaintext",
    "EvaluationKey",
    "KeyPair",
    "PublicKey",
    "SecretKey",
    "generate_evaluation_key",
    "keygen",
    "BatchEncoder",
    "batch_decode",
    "batch_encode",
    "can_batch",
    "decode",
    "encode",
    "digit_decompose",
    "relinearize",
    "BFVScheme",
    "add_encrypted",
    "add_plain",
    "decrypt",
    "encrypt",
    "encrypt_values",
    "multiply_encrypted",
    "multiply_encrypted_relin",
    "multiply_plain",
    "multiply_plain_poly",
    "negate",
    "simd_add",
    "simd_add_constant",
    "simd_multiply",
    "simd_multiply_constant",
    "sub_encrypted",
    "NoiseAnalysis",
    "analyze_noise",
    "estimate_multiplication_depth",
    "noise_linf",
    "noise_poly",
    "batch_decrypt",
    "batch_encrypt",
    "SchemeConfig",
    "configure_logging",
]
