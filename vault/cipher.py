"""
vault/cipher.py -- Authenticated encryption of secrets under a password.

Blob format (base64 of the concatenation):

    salt (32 bytes) | nonce (12 bytes) | ciphertext + GCM tag (len(plaintext) + 16)

A fresh salt and nonce are drawn for every encrypt() call, so every call also
uses a fresh key and a nonce is never reused under a key.

decrypt() raises CryptoError with one fixed message whether the blob is not
valid base64, is too short, or fails authentication (wrong password or
tampered data). Callers must not be able to tell these apart.

Security Note:
    Never log plaintext, keys, or blobs.
"""

from __future__ import annotations

import base64
import binascii
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from core.errors import CryptoError
from vault.kdf import SALT_SIZE, derive_key

NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16  # 128-bit tag
HEADER_SIZE = SALT_SIZE + NONCE_SIZE


def encrypt(plaintext: bytes, password: str) -> str:
    """Encrypt plaintext under password and return the base64 blob."""
    salt = os.urandom(SALT_SIZE)
    nonce = os.urandom(NONCE_SIZE)
    key = derive_key(password.encode("utf-8"), salt)
    ciphertext = AESGCM(key).encrypt(nonce, plaintext, None)
    return base64.b64encode(salt + nonce + ciphertext).decode("ascii")


def decrypt(blob: str, password: str) -> bytes:
    """Decrypt a blob produced by encrypt(). Raises CryptoError on any failure."""
    try:
        data = base64.b64decode(blob, validate=True)
    except (binascii.Error, ValueError, TypeError):
        raise CryptoError() from None

    if len(data) < HEADER_SIZE:
        raise CryptoError()

    salt = data[:SALT_SIZE]
    nonce = data[SALT_SIZE:HEADER_SIZE]
    ciphertext = data[HEADER_SIZE:]

    key = derive_key(password.encode("utf-8"), salt)
    try:
        return AESGCM(key).decrypt(nonce, ciphertext, None)
    except InvalidTag:
        raise CryptoError() from None
