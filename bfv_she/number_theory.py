"""Number theory helpers for plaintext batching."""

from __future__ import annotations

import sympy
from sympy.ntheory import primitive_root


def find_generator(p):
    """Smallest generator of the multiplicative group Z_p^* (p prime)."""
    if not sympy.isprime(p):
        raise ValueError(f"{p} is not prime")
    return int(primitive_root(p))


def find_primitive_2n_root(t, n):
    """
    Primitive 2n-th root of unity modulo prime t, or None if 2n does not divide t-1.

    psi = g^((t-1)/2n) for a generator g has order exactly 2n, which is
    confirmed by psi^n == -1.
    """
    if n < 1 or not sympy.isprime(t) or (t - 1) % (2 * n) != 0:
        return None
    g = find_generator(t)
    psi = pow(g, (t - 1) // (2 * n), t)
    if pow(psi, n, t) != t - 1:
        raise ArithmeticError(f"root {psi} mod {t} does not have order {2 * n}")
    return psi


def mod_inverse(a, m):
    a %= m
    if a == 0:
        raise ValueError("Cannot compute inverse of 0")
    return int(sympy.mod_inverse(a, m))
