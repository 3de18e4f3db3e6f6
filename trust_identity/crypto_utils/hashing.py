"""
Generic hash used for every derived identity value.

BLAKE2b with a caller-chosen digest size, byte-compatible with libsodium's
crypto_generichash (unkeyed). cryptography's BLAKE2b only offers the 64-byte
digest, so the variable-size hash comes from hashlib.
"""

from __future__ import annotations

import hashlib

HASH_SIZE = 32
MIN_HASH_SIZE = 16
MAX_HASH_SIZE = 64


def generichash(*chunks: bytes, size: int = HASH_SIZE) -> bytes:
    """BLAKE2b digest of the concatenation of chunks."""
    if not MIN_HASH_SIZE <= size <= MAX_HASH_SIZE:
        raise ValueError(f"hash size must be between {MIN_HASH_SIZE} and {MAX_HASH_SIZE}, got {size}")
    h = hashlib.blake2b(digest_size=size)
    for chunk in chunks:
        h.update(chunk)
    return h.digest()
