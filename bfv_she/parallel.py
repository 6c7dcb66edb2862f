"""
Parallel batch encryption and decryption.

Items are independent, so each task runs on its own thread with its own
generator spawned from a single SeedSequence; no generator is shared between
threads. A BufferPool, if given, is shared (it is lock-protected).
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

import numpy as np

from .bfv_scheme import decrypt, encrypt
from .ciphertext import Ciphertext, FreshCiphertext, Plaintext
from .keys import PublicKey, SecretKey
from .polynomial import BufferPool

logger = logging.getLogger(__name__)


def batch_encrypt(
    public_key: PublicKey,
    plaintexts: Sequence[Plaintext],
    seed=None,
    max_workers: Optional[int] = None,
    pool: Optional[BufferPool] = None,
) -> List[FreshCiphertext]:
    """Encrypt many plaintexts concurrently; results keep the input order."""
    plaintexts = list(plaintexts)
    children = np.random.SeedSequence(seed).spawn(len(plaintexts))

    def task(item):
        plaintext, child = item
        return encrypt(public_key, plaintext, rng=np.random.default_rng(child), pool=pool)

    logger.debug("Encrypting %d plaintexts with max_workers=%s", len(plaintexts), max_workers)
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(task, zip(plaintexts, children)))


def batch_decrypt(
    secret_key: SecretKey,
    ciphertexts: Sequence[Ciphertext],
    max_workers: Optional[int] = None,
    pool: Optional[BufferPool] = None,
) -> List[Plaintext]:
    """Decrypt many ciphertexts concurrently; results keep the input order."""
    ciphertexts = list(ciphertexts)
    logger.debug("Decrypting %d ciphertexts with max_workers=%s", len(ciphertexts), max_workers)
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(lambda ct: decrypt(secret_key, ct, pool=pool), ciphertexts))
