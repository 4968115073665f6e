"""
node/lifecycle.py -- Account and node identity lifecycle.

Pattern: Service layer / Facade. NodeIdentityLifecycle is the only component
that combines the vault (secret material), the account store (persistence),
session tokens, and the provisioning service. Route handlers and the
WebSocket channel call it and nothing else.

Account states:
  New         -- signed up, no node credential on file.
  Registered  -- node credential on file (sealed under the account password).
  Recovery re-enters Registered and overwrites the credential.

Rules every operation follows:
  - Input is validated before any cryptographic work or side effect.
  - Nothing is persisted unless the whole operation succeeded.
  - Unknown identity key and wrong password are indistinguishable to the
    caller, in message and in timing [C1].
  - Every node-facing operation verifies the account password
    first, so a node credential is only ever sealed under that password.
  - Seeds, passwords, credentials, and tokens are never logged. Account ids are.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError

from auth.models import Account
from auth.store import AccountStore
from auth.tokens import SessionTokens
from core.config import Settings
from core.errors import (
    AuthenticationError,
    BadRequestError,
    ConflictError,
    CryptoError,
    InvalidInputError,
    NotFoundError,
)
from node.models import Balance, NodeInfo, Offer, OfferRequest
from node.provisioning import NodeProvisioningService, NodeSession
from vault.credentials import CredentialVault

logger = logging.getLogger("nodevault.lifecycle")

MIN_PASSWORD_LENGTH = 8
MAX_PUBLIC_KEY_LENGTH = 255


@dataclass(frozen=True)
class SignupResult:
    account: Account
    encrypted_seed: str
    token: str


class NodeIdentityLifecycle:
    """Signup, login, node registration and recovery, and node operations.

    Usage:
        lifecycle = NodeIdentityLifecycle(store, provisioner, settings)
        result = lifecycle.signup("pk1", "password123")
        blob = lifecycle.register_node(result.account.id, "password123")
        info = lifecycle.get_node_info(result.account.id, "password123")

    Holds no per-request state; one instance serves every request thread.
    """

    def __init__(
        self,
        store: AccountStore,
        provisioner: NodeProvisioningService,
        settings: Settings,
        vault: CredentialVault | None = None,
        tokens: SessionTokens | None = None,
    ) -> None:
        self.store = store
        self.provisioner = provisioner
        self.settings = settings
        self.vault = vault or CredentialVault()
        self.tokens = tokens or SessionTokens.from_settings(settings)

    # ------------------------------------------------------------------
    # Accounts and sessions
    # ------------------------------------------------------------------

    def signup(self, public_key: str, password: str) -> SignupResult:
        """Create an account with a fresh seed phrase sealed under password.

        Raises:
            InvalidInputError: empty or overlong key, password too short.
            ConflictError: the identity key is already taken, including when a
                concurrent signup for the same key wins the insert.
        """
        if not public_key or not public_key.strip():
            raise InvalidInputError("public_key must not be empty.")
        if len(public_key) > MAX_PUBLIC_KEY_LENGTH:
            raise InvalidInputError(f"public_key must be at most {MAX_PUBLIC_KEY_LENGTH} characters.")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise InvalidInputError(f"password must be at least {MIN_PASSWORD_LENGTH} characters.")
        if self.store.exists(public_key):
            raise ConflictError("An account with this public key already exists.")

        phrase = self.vault.generate_seed_phrase()
        encrypted_seed = self.vault.encrypt_secret(phrase.encode("utf-8"), password)
        password_hash = self.vault.hash_password(password)
        try:
            account = self.store.create(public_key, password_hash, encrypted_seed)
        except IntegrityError:
            raise ConflictError("An account with this public key already exists.") from None

        logger.info("Account %s created", account.id)
        return SignupResult(account=account, encrypted_seed=encrypted_seed, token=self.tokens.issue(account.id))

    def login(self, public_key: str, password: str) -> str:
        """Return a session token for valid credentials.

        Raises AuthenticationError with one message for every failure: unknown
        key, wrong password, or an unreadable stored hash.
        """
        account = self.store.get_by_key(public_key)
        if account is None:
            self.vault.burn_verification(password)
            raise AuthenticationError()
        self._check_password(account, password)
        logger.info("Account %s logged in", account.id)
        return self.tokens.issue(account.id)

    def authenticate(self, token: str) -> Account:
        """Verify a session token and load its account.

        Raises AuthenticationError for a bad or expired token, or when the
        account no longer exists.
        """
        account_id = self.tokens.verify(token)
        account = self.store.get_by_id(account_id)
        if account is None:
            raise AuthenticationError("Invalid or expired session.")
        return account

    # ------------------------------------------------------------------
    # Node registration and recovery
    # ------------------------------------------------------------------

    def register_node(self, account_id: str, password: str, encrypted_seed: str | None = None) -> str:
        """Register a node for the account's seed and store its credential.

        encrypted_seed defaults to the blob stored at signup. Returns the
        credential blob as persisted (sealed under password).

        Raises:
            AuthenticationError: password is not the account password.
            ConflictError: a credential is already on file, or a concurrent
                registration stored one first.
            CryptoError: the seed blob is malformed or not sealed under the
                account password.
            InvalidInputError: the decrypted seed is not a valid phrase.
            ProvisioningError: the gateway failed; nothing is stored.
        """
        account = self._load(account_id)
        self._check_password(account, password)
        if account.node_registered:
            raise ConflictError("A node is already registered for this account.")
        seed = self._recover_seed(account, password, encrypted_seed)

        credential = self.provisioner.register(seed)
        blob = self.vault.encrypt_secret(credential, password)
        if not self.store.set_node_credential(account.id, blob, only_if_absent=True):
            raise ConflictError("A node is already registered for this account.")

        logger.info("Node registered for account %s", account.id)
        return blob

    def recover_node(self, account_id: str, password: str, encrypted_seed: str | None = None) -> str:
        """Recover the node for the account's seed and overwrite its credential.

        Same seed handling and errors as register_node(), except that an
        existing credential is replaced rather than rejected.
        """
        account = self._load(account_id)
        self._check_password(account, password)
        seed = self._recover_seed(account, password, encrypted_seed)

        credential = self.provisioner.recover(seed)
        blob = self.vault.encrypt_secret(credential, password)
        if not self.store.set_node_credential(account.id, blob, only_if_absent=False):
            raise NotFoundError("Account not found.")

        logger.info("Node recovered for account %s", account.id)
        return blob

    # ------------------------------------------------------------------
    # Node operations
    # ------------------------------------------------------------------

    def open_node_session(self, account_id: str, password: str) -> NodeSession:
        """Unseal the account's node credential and authenticate to the gateway.

        Raises AuthenticationError when password is not the account password
        and BadRequestError when no node is registered. The WebSocket channel
        opens one session and reuses it for every command.
        """
        account = self._load(account_id)
        self._check_password(account, password)
        if account.node_credential is None:
            raise BadRequestError("No node is registered for this account.")
        credential = self.vault.decrypt_secret(account.node_credential, password)
        return self.provisioner.authenticate(credential)

    def get_node_info(self, account_id: str, password: str) -> NodeInfo:
        return self.open_node_session(account_id, password).get_info()

    def get_balance(self, account_id: str, password: str) -> Balance:
        return self.open_node_session(account_id, password).get_balance()

    def create_offer(self, account_id: str, password: str, request: OfferRequest | None = None) -> Offer:
        offer = self.open_node_session(account_id, password).create_offer(request or OfferRequest())
        logger.info("Offer %s created for account %s", offer.offer_id, account_id)
        return offer

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _load(self, account_id: str) -> Account:
        account = self.store.get_by_id(account_id)
        if account is None:
            raise NotFoundError("Account not found.")
        return account

    def _check_password(self, account: Account, password: str) -> None:
        """Raise AuthenticationError unless password matches the stored hash.

        Node credentials are only ever sealed under a password that passed
        this check, so the account password always unseals them.
        """
        try:
            valid = self.vault.verify_password(password, account.password_hash)
        except CryptoError:
            logger.error("Stored password hash for account %s is corrupt", account.id)
            raise AuthenticationError() from None
        if not valid:
            raise AuthenticationError()

    def _recover_seed(self, account: Account, password: str, encrypted_seed: str | None) -> bytes:
        """Decrypt a sealed seed phrase and derive the 64-byte binary seed."""
        blob = encrypted_seed or account.encrypted_seed
        if not blob:
            raise BadRequestError("No encrypted seed is available for this account.")
        plaintext = self.vault.decrypt_secret(blob, password)
        try:
            phrase = plaintext.decode("utf-8")
        except UnicodeDecodeError:
            raise CryptoError() from None
        if not self.vault.validate_seed_phrase(phrase):
            raise InvalidInputError("Decrypted seed is not a valid seed phrase.")
        return self.vault.seed_phrase_to_binary_seed(phrase)
