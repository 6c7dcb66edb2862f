import numpy as np
import pytest

from bfv_she import BFVParameters, generate_evaluation_key, keygen

# Small ring for fast tests: t = 17 is prime and 17 = 1 mod 16, so batching works.
N = 8
T = 17
Q = T * 2**60


@pytest.fixture
def params():
    return BFVParameters(n=N, q=Q, t=T)


@pytest.fixture
def rng():
    return np.random.default_rng(20240611)


@pytest.fixture
def keys(params, rng):
    return keygen(params, rng=rng)


@pytest.fixture
def eval_key(keys, rng):
    return generate_evaluation_key(keys.secret_key, decomposition_base=4, rng=rng)


@pytest.fixture
def wide_params():
    # room for products of small integers, still batch-friendly (257 = 1 mod 32)
    return BFVParameters(n=16, q=257 * 2**60, t=257)
