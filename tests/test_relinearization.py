import numpy as np
import pytest

from bfv_she import (
    FreshCiphertext,
    UsageError,
    decode,
    decrypt,
    digit_decompose,
    encrypt_values,
    generate_evaluation_key,
    keygen,
    multiply_encrypted,
    relinearize,
)
from bfv_she.params import BFVParameters
from bfv_she.polynomial import PolynomialRing


class TestDigitDecompose:
    @pytest.mark.parametrize("base", [2, 3, 4, 16, 2**20])
    def test_digits_recombine_to_centered_value(self, base):
        q = 17 * 2**60
        ring = PolynomialRing(8, q)
        element = ring.random_uniform(np.random.default_rng(base))
        digits = digit_decompose(element, base)

        for i, c in enumerate(element.centered()):
            coeff_digits = [int(d.centered()[i]) for d in digits]
            assert all(abs(d) < base for d in coeff_digits)
            assert sum(d * base**k for k, d in enumerate(coeff_digits)) == int(c)

    def test_digit_count(self):
        element = PolynomialRing(4, 97).element([96, 1, 50, 0])
        assert len(digit_decompose(element, 4)) == 4   # 4^3 = 64 < 97 <= 4^4

    def test_negative_coefficients_use_negative_digits(self):
        element = PolynomialRing(2, 101).element([100, 0])   # centered: -1
        digits = digit_decompose(element, 10)
        assert int(digits[0].centered()[0]) == -1
        assert all(int(d.centered()[0]) == 0 for d in digits[1:])


class TestRelinearize:
    @pytest.mark.parametrize("base", [2, 4, 16, 256, 2**16])
    def test_always_two_components_and_correct(self, keys, params, rng, base):
        ek = generate_evaluation_key(keys.secret_key, decomposition_base=base, rng=rng)
        ct1 = encrypt_values(keys.public_key, [3, 1], rng=rng)
        ct2 = encrypt_values(keys.public_key, [5], rng=rng)
        out = relinearize(multiply_encrypted(ct1, ct2), ek)
        assert isinstance(out, FreshCiphertext)
        assert len(out) == 2
        assert decode(decrypt(keys.secret_key, out))[:2] == [15, 5]

    def test_rejects_fresh_ciphertext(self, keys, eval_key, rng):
        ct = encrypt_values(keys.public_key, [1], rng=rng)
        with pytest.raises(UsageError):
            relinearize(ct, eval_key)

    def test_rejects_foreign_evaluation_key(self, keys, rng):
        other = keygen(BFVParameters(n=8, q=17 * 2**40, t=17), rng=rng)
        foreign_key = generate_evaluation_key(other.secret_key, rng=rng)
        ct = encrypt_values(keys.public_key, [1], rng=rng)
        with pytest.raises(UsageError):
            relinearize(multiply_encrypted(ct, ct), foreign_key)
