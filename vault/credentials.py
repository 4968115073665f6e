"""
vault/credentials.py -- Seed phrases, login password hashes, and secret blobs.

Security design decisions:
  Seed phrases: BIP39 English mnemonics via the `mnemonic` library. Generated
       phrases carry 256 bits of entropy from the OS CSPRNG (24 words). The
       64-byte binary seed uses the standard PBKDF2 stretch with an empty
       passphrase. Mnemonic.to_seed() does not validate its input, so
       seed_phrase_to_binary_seed() always re-validates first.

  Passwords: argon2-cffi PasswordHasher (Argon2id). Memory-hard hashing is
       the right choice for low-entropy login secrets. The PHC output string
       is self-describing (parameters + salt + hash), so parameters can be
       raised later without breaking existing hashes. A dummy hash computed
       once per vault lets login run the same verification work when the
       identity key does not exist [C1].

  Secrets: encrypt_secret / decrypt_secret delegate to vault.cipher. They
       exist so callers depend on one component for all secret material.

Failure classes are kept apart on purpose:
  verify_password() returns False for a wrong password but raises
  CryptoError when the stored hash string itself is corrupt.
  validate_seed_phrase() never raises.
"""

from __future__ import annotations

import logging

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError
from mnemonic import Mnemonic

from core.errors import CryptoError
from vault import cipher

logger = logging.getLogger("nodevault.vault")

SEED_STRENGTH_BITS = 256
BINARY_SEED_SIZE = 64


def _normalize_phrase(phrase: str) -> str:
    """Collapse runs of whitespace so pasted phrases validate."""
    return " ".join(phrase.split())


class CredentialVault:
    """All secret-material handling for an account.

    Usage:
        vault = CredentialVault()
        phrase = vault.generate_seed_phrase()
        blob = vault.encrypt_secret(phrase.encode(), "password123")
        seed = vault.seed_phrase_to_binary_seed(vault.decrypt_secret(blob, "password123").decode())

    Instances hold no per-account state and are safe to share across threads.
    """

    def __init__(self, password_hasher: PasswordHasher | None = None, language: str = "english") -> None:
        self._hasher = password_hasher or PasswordHasher()
        self._mnemonic = Mnemonic(language)
        # Timing equalization dummy hash [C1]. Computed once so the first
        # unknown-key login is not measurably faster than later ones.
        self._dummy_hash = self._hasher.hash("nodevault_timing_dummy")

    # ------------------------------------------------------------------
    # Login passwords
    # ------------------------------------------------------------------

    def hash_password(self, password: str) -> str:
        """Return an Argon2id PHC string for password, with a fresh random salt."""
        return self._hasher.hash(password)

    def verify_password(self, password: str, password_hash: str) -> bool:
        """Return True if password matches password_hash.

        Raises CryptoError if password_hash is not a well-formed Argon2 hash.
        """
        try:
            return self._hasher.verify(password_hash, password)
        except VerifyMismatchError:
            return False
        except (InvalidHashError, VerificationError, UnicodeError):
            raise CryptoError("Stored password hash is corrupt.") from None

    def burn_verification(self, password: str) -> None:
        """Run one verification against the dummy hash and discard the result.

        Called when the identity key is unknown so the response takes as long
        as a real wrong-password check.
        """
        try:
            self._hasher.verify(self._dummy_hash, password)
        except VerificationError:
            pass

    # ------------------------------------------------------------------
    # Seed phrases
    # ------------------------------------------------------------------

    def generate_seed_phrase(self) -> str:
        """Return a fresh 24-word BIP39 phrase (256 bits of entropy)."""
        return self._mnemonic.generate(strength=SEED_STRENGTH_BITS)

    def validate_seed_phrase(self, phrase: str) -> bool:
        """Return True if phrase uses the word list and its checksum matches.

        Never raises: any malformed input, including non-strings, is False.
        """
        if not isinstance(phrase, str):
            return False
        normalized = _normalize_phrase(phrase)
        if not normalized:
            return False
        try:
            return bool(self._mnemonic.check(normalized))
        except (ValueError, LookupError, TypeError):
            return False

    def seed_phrase_to_binary_seed(self, phrase: str) -> bytes:
        """Derive the 64-byte binary seed from a phrase (empty passphrase).

        Raises CryptoError if the phrase does not validate.
        """
        if not self.validate_seed_phrase(phrase):
            raise CryptoError("Seed phrase is not valid.")
        return Mnemonic.to_seed(_normalize_phrase(phrase), passphrase="")

    # ------------------------------------------------------------------
    # Secret blobs
    # ------------------------------------------------------------------

    def encrypt_secret(self, plaintext: bytes, password: str) -> str:
        return cipher.encrypt(plaintext, password)

    def decrypt_secret(self, blob: str, password: str) -> bytes:
        return cipher.decrypt(blob, password)
