"""
Noise diagnostics for BFV ciphertexts.

These functions need the secret key and the plaintext a ciphertext is
supposed to hold, an oracle no adversary has. They are meant for choosing
parameters and for tests, not for use at decryption time.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

from .ciphertext import Ciphertext, Plaintext, check_compatible, check_plaintext
from .errors import UsageError
from .keys import SecretKey
from .params import BFVParameters
from .polynomial import RingElement, norm_inf, norm_l2

logger = logging.getLogger(__name__)

# Below this many bits of budget another multiplication is not considered safe
MULTIPLY_SAFE_BITS = 10.0


@dataclass(frozen=True)
class NoiseAnalysis:
    linf_norm: int
    l2_norm: float
    noise_budget_bits: float
    estimated_security: float
    can_multiply: bool
    advisory: Optional[str]


def noise_poly(secret_key: SecretKey, ciphertext: Ciphertext, plaintext: Plaintext) -> RingElement:
    """e = (c0 + c1*s [+ c2*s^2]) - delta*m (mod q)."""
    check_compatible(secret_key, ciphertext)
    params = secret_key.params
    check_plaintext(plaintext, params)
    if len(ciphertext) < 2:
        raise UsageError("noise is defined for ciphertexts with at least 2 components")
    ring = params.ring()

    s = secret_key.s
    s_power = s
    phase = ciphertext.components[0]
    for component in ciphertext.components[1:]:
        phase = ring.add(phase, ring.mul(component, s_power))
        s_power = ring.mul(s_power, s)

    m_q = RingElement(plaintext.poly.coeffs * params.delta, params.q, params.n)
    return ring.sub(phase, m_q)


def noise_linf(secret_key: SecretKey, ciphertext: Ciphertext, plaintext: Plaintext) -> int:
    return norm_inf(noise_poly(secret_key, ciphertext, plaintext))


def max_noise(params: BFVParameters) -> int:
    """Largest noise that still decrypts correctly: floor(q / 2t)."""
    return params.q // (2 * params.t)


def analyze_noise(secret_key: SecretKey, ciphertext: Ciphertext, plaintext: Plaintext) -> NoiseAnalysis:
    noise = noise_poly(secret_key, ciphertext, plaintext)
    linf = norm_inf(noise)
    l2 = norm_l2(noise)

    bound = max_noise(secret_key.params)
    if linf > 0:
        budget = math.log2(bound) - math.log2(linf)
    else:
        budget = float(bound.bit_length())

    estimated_security = max(0.0, min(256.0, budget * 8))
    can_multiply = budget > MULTIPLY_SAFE_BITS

    if budget < 5.0:
        advisory = "Critical: decryption may fail; increase q or reduce depth"
    elif budget < 15.0:
        advisory = "Warning: Limited operations remaining"
    elif can_multiply:
        advisory = "Good: Multiple operations possible"
    else:
        advisory = None

    return NoiseAnalysis(linf, l2, budget, estimated_security, can_multiply, advisory)


def estimate_multiplication_depth(params: BFVParameters) -> int:
    """Rough multiplicative depth from modulus sizes alone; no key material involved."""
    q_bits = params.q.bit_length()
    t_bits = params.t.bit_length()
    return max(1, (q_bits - t_bits - 10) // 2)


def noise_growth_after_addition(noise1: NoiseAnalysis, noise2: NoiseAnalysis) -> float:
    """Upper estimate of the L-infinity noise of a sum."""
    return float(noise1.linf_norm + noise2.linf_norm)


def noise_growth_after_multiplication(
    noise1: NoiseAnalysis, noise2: NoiseAnalysis, params: BFVParameters
) -> float:
    # roughly noise1 * noise2 * t, plus margin for rounding and key switching
    return noise1.l2_norm * noise2.l2_norm * float(params.t) * 1.5


def format_noise_analysis(analysis: NoiseAnalysis) -> str:
    lines = [
        "BFV Noise Analysis",
        "-" * 25,
        f"Linf Noise: {analysis.linf_norm}",
        f"L2 Noise: {analysis.l2_norm:.2f}",
        f"Noise Budget: {analysis.noise_budget_bits:.1f} bits",
        f"Est. Security: {analysis.estimated_security:.1f} bits",
        f"Safe Multiply: {'yes' if analysis.can_multiply else 'no'}",
    ]
    if analysis.advisory is not None:
        lines.append(f"Suggestion: {analysis.advisory}")
    return "\n".join(lines)


def log_noise_analysis(analysis: NoiseAnalysis, level: int = logging.INFO) -> None:
    logger.log(level, "%s", format_noise_analysis(analysis))
