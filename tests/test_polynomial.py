import numpy as np
import pytest

from bfv_she.errors import UsageError
from bfv_she.polynomial import (
    BufferPool,
    DiscreteGaussian,
    PolynomialRing,
    RingElement,
    negacyclic_convolve,
    norm_inf,
    norm_l2,
)


class TestRingElement:
    def test_coefficients_reduced_mod_q(self):
        e = RingElement([-1, 5, 12], q=7)
        assert e.to_list() == [6, 5, 5]
        assert e.n == 3

    def test_immutable(self):
        e = RingElement([1, 2], q=7)
        with pytest.raises(AttributeError):
            e.q = 11
        with pytest.raises(ValueError):
            e.coeffs[0] = 3

    def test_centered(self):
        e = RingElement([0, 3, 4, 6], q=7)
        assert [int(c) for c in e.centered()] == [0, 3, -3, -1]

    def test_wrong_length(self):
        with pytest.raises(UsageError):
            RingElement([1, 2, 3], q=7, n=4)

    def test_norms(self):
        e = RingElement([3, 0, 96, 0], q=100)
        assert norm_inf(e) == 4
        assert norm_l2(e) == pytest.approx(5.0)


class TestPolynomialRing:
    def test_rejects_non_power_of_two(self):
        with pytest.raises(UsageError):
            PolynomialRing(6, 97)

    def test_negacyclic_wraparound(self):
        ring = PolynomialRing(4, 97)
        x3 = ring.element([0, 0, 0, 1])
        x = ring.element([0, 1, 0, 0])
        # X^3 * X = X^4 = -1
        assert ring.mul(x3, x).to_list() == [96, 0, 0, 0]

    def test_mul_matches_schoolbook(self):
        ring = PolynomialRing(8, 2**61 + 1)
        rng = np.random.default_rng(1)
        a = ring.random_uniform(rng)
        b = ring.random_uniform(rng)
        expected = [0] * 8
        for i, ai in enumerate(a.to_list()):
            for j, bj in enumerate(b.to_list()):
                k = i + j
                if k < 8:
                    expected[k] += ai * bj
                else:
                    expected[k - 8] -= ai * bj
        assert ring.mul(a, b).to_list() == [c % ring.q for c in expected]

    def test_add_sub_neg(self):
        ring = PolynomialRing(4, 13)
        a = ring.element([1, 2, 3, 4])
        b = ring.element([12, 12, 0, 9])
        assert ring.add(a, b).to_list() == [0, 1, 3, 0]
        assert ring.sub(a, b).to_list() == [2, 3, 3, 8]
        assert ring.neg(a).to_list() == [12, 11, 10, 9]
        assert ring.mul_scalar(a, 5).to_list() == [5, 10, 2, 7]

    def test_mismatched_ring(self):
        ring = PolynomialRing(4, 13)
        with pytest.raises(UsageError):
            ring.add(ring.zero(), RingElement([0, 0, 0, 0], 17))

    def test_uniform_sampling_in_range(self):
        q = 3 * 2**100
        ring = PolynomialRing(16, q)
        sample = ring.random_uniform(np.random.default_rng(5))
        assert all(0 <= c < q for c in sample.to_list())
        # big moduli must actually use the high bits
        assert max(sample.to_list()) > 2**64

    def test_pool_gives_same_product(self):
        pool = BufferPool(8)
        plain = PolynomialRing(8, 1009)
        pooled = PolynomialRing(8, 1009, pool=pool)
        rng = np.random.default_rng(3)
        a = plain.random_uniform(rng)
        b = plain.random_uniform(rng)
        assert pooled.mul(a, b) == plain.mul(a, b)
        assert len(pool) == 1

    def test_pool_size_mismatch(self):
        with pytest.raises(UsageError):
            PolynomialRing(8, 1009, pool=BufferPool(16))


class TestBufferPool:
    def test_buffers_zeroed_on_reuse(self):
        pool = BufferPool(4)
        buf = pool.acquire()
        buf[:] = [7, 7, 7, 7]
        pool.release(buf)
        again = pool.acquire()
        assert list(again) == [0, 0, 0, 0]

    def test_bounded(self):
        pool = BufferPool(2, max_buffers=1)
        pool.release(pool.acquire())
        pool.release(np.zeros(2, dtype=object))
        assert len(pool) == 1


class TestSampling:
    def test_gaussian_bounded(self):
        gaussian = DiscreteGaussian(3.2, 1024)
        samples = gaussian.sample_bounded(6, np.random.default_rng(9))
        assert samples.max() <= 6
        assert samples.min() >= -6

    def test_negacyclic_convolve_no_modulus(self):
        a = np.array([1, 2], dtype=object)
        b = np.array([3, 4], dtype=object)
        # (1 + 2X)(3 + 4X) = 3 + 10X + 8X^2 = -5 + 10X mod X^2 + 1
        assert list(negacyclic_convolve(a, b, 2)) == [-5, 10]
