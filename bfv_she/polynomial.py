"""
Polynomial Ring Operations
Implements polynomial arithmetic in R_q = Z_q[X]/(X^N + 1) over Python integers.
"""

from __future__ import annotations

import threading
from typing import Iterable, Optional

import numpy as np

from .errors import UsageError


def _as_object_array(values):
    # object dtype keeps arbitrary precision; int64 overflows for q > 2^63
    return np.array([int(v) for v in values], dtype=object)


def resolve_rng(rng: Optional[np.random.Generator] = None) -> np.random.Generator:
    """Use the caller's generator, or a fresh OS-seeded one. Generators are never shared implicitly."""
    if rng is None:
        return np.random.default_rng()
    return rng


def negacyclic_convolve(a, b, n):
    """Product of two coefficient vectors reduced mod X^n + 1, without any modulus."""
    conv = np.convolve(a.astype(object), b.astype(object))
    result = np.array(conv[:n], dtype=object)
    # X^n = -1: coefficients past n wrap around negated
    result[: len(conv) - n] -= conv[n:]
    return result


class RingElement:
    """Immutable element of Z_q[X]/(X^n + 1), stored as coefficients in [0, q)."""

    __slots__ = ("coeffs", "q", "n")

    def __init__(self, coeffs: Iterable[int], q: int, n: Optional[int] = None):
        arr = _as_object_array(coeffs)
        if n is not None and len(arr) != n:
            raise UsageError(f"expected {n} coefficients, got {len(arr)}")
        arr = arr % q
        arr.flags.writeable = False
        object.__setattr__(self, "coeffs", arr)
        object.__setattr__(self, "q", int(q))
        object.__setattr__(self, "n", len(arr))

    def __setattr__(self, name, value):
        raise AttributeError("RingElement is immutable")

    def __len__(self):
        return self.n

    def __eq__(self, other):
        if not isinstance(other, RingElement):
            return NotImplemented
        return self.q == other.q and self.n == other.n and self.to_list() == other.to_list()

    def __hash__(self):
        return hash((self.q, tuple(self.to_list())))

    def __repr__(self):
        head = ", ".join(str(c) for c in self.coeffs[:4])
        more = ", ..." if self.n > 4 else ""
        return f"RingElement(n={self.n}, q={self.q}, coeffs=[{head}{more}])"

    def to_list(self) -> list:
        return [int(c) for c in self.coeffs]

    def centered(self) -> np.ndarray:
        """Coefficients lifted into (-q/2, q/2]."""
        return centered_mod(self.coeffs, self.q)


def centered_mod(values, q):
    result = np.array(values, dtype=object) % q
    half_q = q // 2
    mask = result > half_q
    result[mask] -= q
    return result


def norm_inf(element: RingElement) -> int:
    """L-infinity norm of the centered coefficients."""
    if element.n == 0:
        return 0
    return int(max(abs(int(c)) for c in element.centered()))


def norm_l2(element: RingElement) -> float:
    """L2 norm of the centered coefficients."""
    squared = sum(int(c) * int(c) for c in element.centered())
    return float(squared) ** 0.5


class BufferPool:
    """
    Thread-safe pool of accumulator buffers for ring multiplication.

    Buffers may hold products involving secret key material, so they are
    zeroed both when returned and when handed out again.
    """

    def __init__(self, size, max_buffers=8):
        self.size = size
        self.max_buffers = max_buffers
        self._free = []
        self._lock = threading.Lock()

    def acquire(self):
        with self._lock:
            buf = self._free.pop() if self._free else None
        if buf is None:
            return np.zeros(self.size, dtype=object)
        buf[:] = 0
        return buf

    def release(self, buf):
        buf[:] = 0
        with self._lock:
            if len(self._free) < self.max_buffers:
                self._free.append(buf)

    def __len__(self):
        with self._lock:
            return len(self._free)


class PolynomialRing:
    def __init__(self, N, q, pool=None):
        self.N = N
        self.q = q
        if N <= 0 or N & (N - 1) != 0:
            raise UsageError("N must be a power of 2")
        if pool is not None and pool.size != N:
            raise UsageError(f"buffer pool size {pool.size} does not match N={N}")
        self.pool = pool

    def _check(self, *elements):
        for e in elements:
            if e.q != self.q or e.n != self.N:
                raise UsageError(
                    f"ring element (n={e.n}, q={e.q}) does not belong to ring (n={self.N}, q={self.q})"
                )

    def element(self, coeffs):
        return RingElement(coeffs, self.q, self.N)

    def zero(self):
        return RingElement([0] * self.N, self.q, self.N)

    def add(self, a, b):
        self._check(a, b)
        return RingElement(a.coeffs + b.coeffs, self.q)

    def sub(self, a, b):
        self._check(a, b)
        return RingElement(a.coeffs - b.coeffs, self.q)

    def neg(self, a):
        self._check(a)
        return RingElement(-a.coeffs, self.q)

    def mul_scalar(self, a, scalar):
        self._check(a)
        return RingElement(a.coeffs * int(scalar), self.q)

    def mul(self, a, b):
        """Multiply two polynomials in R_q using arbitrary precision integers."""
        self._check(a, b)
        return self.mul_raw(a.coeffs, b.coeffs)

    def mul_raw(self, a, b):
        """Multiply raw integer coefficient vectors (e.g. centered lifts) into R_q."""
        conv = np.convolve(np.asarray(a, dtype=object), np.asarray(b, dtype=object))
        if self.pool is None:
            acc = np.zeros(self.N, dtype=object)
        else:
            acc = self.pool.acquire()
        try:
            # Negacyclic reduction (X^N = -1)
            acc[:] = conv[: self.N]
            acc[: len(conv) - self.N] -= conv[self.N:]
            return RingElement(acc, self.q)
        finally:
            if self.pool is not None:
                self.pool.release(acc)

    def mod_center(self, a):
        self._check(a)
        return a.centered()

    def random_uniform(self, rng):
        # 64 extra bits keep the bias of the final reduction negligible
        words = -(-(self.q.bit_length() + 64) // 32)
        raw = rng.integers(0, 1 << 32, size=(self.N, words), dtype=np.uint64)
        coeffs = []
        for row in raw:
            value = 0
            for w in row:
                value = (value << 32) | int(w)
            coeffs.append(value % self.q)
        return RingElement(coeffs, self.q, self.N)

    def random_ternary(self, rng):
        return RingElement(rng.integers(-1, 2, size=self.N), self.q, self.N)

    def random_bounded(self, bound, rng):
        return RingElement(rng.integers(-bound, bound + 1, size=self.N), self.q, self.N)


class DiscreteGaussian:
    def __init__(self, sigma, N):
        self.sigma = sigma
        self.N = N

    def sample(self, rng):
        samples = rng.normal(0, self.sigma, self.N)
        return np.round(samples).astype(np.int64)

    def sample_bounded(self, bound, rng):
        samples = self.sample(rng)
        return np.clip(samples, -bound, bound)

    def sample_poly(self, ring, rng):
        """Tail-cut (6 sigma) Gaussian polynomial lifted into ``ring``."""
        bound = max(1, int(6 * self.sigma))
        return ring.element(self.sample_bounded(bound, rng))
