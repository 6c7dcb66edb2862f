import logging

import pytest

from bfv_she import (
    FreshCiphertext,
    RingElement,
    add_encrypted,
    add_plain,
    analyze_noise,
    encode,
    encrypt_values,
    estimate_multiplication_depth,
    multiply_encrypted,
    noise_linf,
    relinearize,
)
from bfv_she.noise import (
    format_noise_analysis,
    log_noise_analysis,
    max_noise,
    noise_growth_after_addition,
    noise_growth_after_multiplication,
)


class TestNoiseAnalysis:
    def test_fresh_ciphertext(self, keys, params, rng):
        values = [1, 2, 3, 4, 0, 0, 0, 0]
        ct = encrypt_values(keys.public_key, values, rng=rng)
        analysis = analyze_noise(keys.secret_key, ct, encode(values, params.t, params.n))
        assert analysis.linf_norm > 0
        assert analysis.linf_norm < max_noise(params)
        assert analysis.noise_budget_bits >= 20
        assert analysis.can_multiply
        assert analysis.advisory.startswith("Good")
        assert analysis.l2_norm >= analysis.linf_norm

    def test_noise_free_ciphertext(self, keys, params):
        # trivial encryption (delta*m, 0) has zero noise
        pt = encode([3, 1], params.t, params.n)
        c0 = RingElement(pt.poly.coeffs * params.delta, params.q, params.n)
        ct = FreshCiphertext(c0, params.ring().zero(), params)
        analysis = analyze_noise(keys.secret_key, ct, pt)
        assert analysis.linf_norm == 0
        assert analysis.noise_budget_bits == max_noise(params).bit_length()

    def test_wrong_plaintext_exhausts_budget(self, keys, params, rng):
        ct = encrypt_values(keys.public_key, [1], rng=rng)
        analysis = analyze_noise(keys.secret_key, ct, encode([2], params.t, params.n))
        assert analysis.noise_budget_bits < 1
        assert not analysis.can_multiply
        assert analysis.advisory.startswith("Critical")

    def test_budget_monotonicity(self, keys, eval_key, params, rng):
        v = [1, 2, 3, 4, 0, 0, 0, 0]
        ct = encrypt_values(keys.public_key, v, rng=rng)
        pt = encode(v, params.t, params.n)
        fresh = analyze_noise(keys.secret_key, ct, pt).noise_budget_bits

        doubled = add_encrypted(ct, ct)
        after_add = analyze_noise(keys.secret_key, doubled, encode([2 * x for x in v], params.t, params.n))
        assert after_add.noise_budget_bits <= fresh

        shifted = add_plain(ct, encode([1], params.t, params.n))
        after_plain = analyze_noise(keys.secret_key, shifted, encode([2, 2, 3, 4], params.t, params.n))
        assert after_plain.noise_budget_bits <= fresh

        two = encrypt_values(keys.public_key, [2], rng=rng)
        product = multiply_encrypted(ct, two)
        expected = encode([2 * x for x in v], params.t, params.n)
        after_mul = analyze_noise(keys.secret_key, product, expected).noise_budget_bits
        assert after_mul < fresh

        relinearized = relinearize(product, eval_key)
        after_relin = analyze_noise(keys.secret_key, relinearized, expected).noise_budget_bits
        assert after_relin < fresh

        product2 = relinearize(multiply_encrypted(relinearized, two), eval_key)
        expected2 = encode([4 * x for x in v], params.t, params.n)
        assert analyze_noise(keys.secret_key, product2, expected2).noise_budget_bits < after_relin

    def test_noise_linf_matches_analysis(self, keys, params, rng):
        ct = encrypt_values(keys.public_key, [7], rng=rng)
        pt = encode([7], params.t, params.n)
        assert noise_linf(keys.secret_key, ct, pt) == analyze_noise(keys.secret_key, ct, pt).linf_norm


class TestEstimates:
    def test_multiplication_depth(self, params):
        # bits(q) = 65, bits(t) = 5
        assert estimate_multiplication_depth(params) == 25

    def test_depth_floor(self):
        from bfv_she import BFVParameters

        assert estimate_multiplication_depth(BFVParameters(n=8, q=17 * 2**8, t=17)) == 1

    def test_growth_estimates(self, keys, params, rng):
        pt = encode([1], params.t, params.n)
        a = analyze_noise(keys.secret_key, encrypt_values(keys.public_key, [1], rng=rng), pt)
        b = analyze_noise(keys.secret_key, encrypt_values(keys.public_key, [1], rng=rng), pt)
        assert noise_growth_after_addition(a, b) == a.linf_norm + b.linf_norm
        assert noise_growth_after_multiplication(a, b, params) == pytest.approx(a.l2_norm * b.l2_norm * 17 * 1.5)


class TestReporting:
    def test_format(self, keys, params, rng):
        pt = encode([1], params.t, params.n)
        analysis = analyze_noise(keys.secret_key, encrypt_values(keys.public_key, [1], rng=rng), pt)
        text = format_noise_analysis(analysis)
        assert "Noise Budget" in text
        assert "Safe Multiply: yes" in text

    def test_log(self, keys, params, rng, caplog):
        pt = encode([1], params.t, params.n)
        analysis = analyze_noise(keys.secret_key, encrypt_values(keys.public_key, [1], rng=rng), pt)
        with caplog.at_level(logging.INFO, logger="bfv_she.noise"):
            log_noise_analysis(analysis)
        assert "BFV Noise Analysis" in caplog.text
