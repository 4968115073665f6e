"""
vault/kdf.py -- Password-based key derivation.

PBKDF2-HMAC-SHA256 with a fixed iteration count turns a password and a
32-byte salt into a 32-byte AES-256 key. Pure function: no I/O, no shared
state, safe to call from any number of threads.
"""

from __future__ import annotations

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

PBKDF2_ITERATIONS = 100_000
KEY_SIZE = 32  # AES-256
SALT_SIZE = 32


def derive_key(password: bytes, salt: bytes) -> bytes:
    """Derive a 32-byte symmetric key from a password and salt.

    Deterministic: the same (password, salt) pair always yields the same key.
    A PBKDF2HMAC instance can only be used once, so one is built per call.
    """
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_SIZE,
        salt=salt,
        iterations=PBKDF2_ITERATIONS,
    )
    return kdf.derive(password)
