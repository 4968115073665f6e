"""
tests/conftest.py -- Shared test fixtures for NodeVault tests.

This module provides:
  - FakeProvisioner / FakeNodeSession: in-memory provisioning gateway
  - fast_vault(): CredentialVault with cheap Argon2 parameters
  - make_store() / make_lifecycle(): isolated stores and lifecycles
  - _patch_lifespan(): wires test components into app.state, bypassing real startup
  - api_client: TestClient over the real app with a fake gateway

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process.

DEBUG and ALLOWED_HOSTS must be set before any api/ or core/ import so
get_settings() auto-generates SECRET_KEY and TrustedHostMiddleware accepts
the TestClient host ("testserver").
"""

from __future__ import annotations

import hashlib
import os
import threading
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set before any core/api import so get_settings() can
# auto-generate SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver")

import pytest
from argon2 import PasswordHasher
from fastapi.testclient import TestClient

from api.limiter import limiter
from api.main import app
from auth.store import AccountStore
from core.config import Settings
from core.errors import ProvisioningError
from node.lifecycle import NodeIdentityLifecycle
from node.models import Balance, NodeInfo, Offer, OfferRequest
from vault.credentials import CredentialVault

TEST_SECRET_KEY = "test-secret-key-0123456789abcdef0123456789abcdef"

# 24-word BIP39 vector for all-zero entropy.
VALID_PHRASE = " ".join(["abandon"] * 23 + ["art"])
# Same words, wrong checksum word.
INVALID_PHRASE = " ".join(["abandon"] * 24)


# ---------------------------------------------------------------------------
# Fake provisioning gateway
# ---------------------------------------------------------------------------


class FakeNodeSession:
    def __init__(self, gateway: "FakeProvisioner", credential: bytes) -> None:
        self.gateway = gateway
        self.credential = credential

    def _check(self) -> None:
        if self.gateway.fail:
            raise ProvisioningError()

    def get_info(self) -> NodeInfo:
        self._check()
        return NodeInfo(node_id=hashlib.sha256(self.credential).hexdigest()[:66], alias="fake", network="regtest")

    def get_balance(self) -> Balance:
        self._check()
        return Balance(onchain_balance_msat=150_000, channel_balance_msat=2_500)

    def create_offer(self, request: OfferRequest) -> Offer:
        self._check()
        self.gateway.offers.append(request)
        return Offer(
            bolt12=f"lno1fake{len(self.gateway.offers)}",
            offer_id=f"{len(self.gateway.offers):064x}",
            description=request.description,
            amount_msat=request.amount_msat,
        )


class FakeProvisioner:
    """In-memory NodeProvisioningService.

    Credentials are derived from the seed so tests can assert which seed was
    provisioned. Set fail=True to make every call raise ProvisioningError.
    Pass a threading.Barrier to hold register() callers until all arrive.
    """

    def __init__(self, barrier: threading.Barrier | None = None) -> None:
        self.barrier = barrier
        self.fail = False
        self.registered: list[bytes] = []
        self.recovered: list[bytes] = []
        self.offers: list[OfferRequest] = []

    @staticmethod
    def credential_for(seed: bytes, kind: str = "register") -> bytes:
        return f"{kind}:".encode() + hashlib.sha256(seed).digest()

    def register(self, seed: bytes) -> bytes:
        if self.barrier is not None:
            self.barrier.wait()
        if self.fail:
            raise ProvisioningError()
        self.registered.append(seed)
        return self.credential_for(seed, "register")

    def recover(self, seed: bytes) -> bytes:
        if self.fail:
            raise ProvisioningError()
        self.recovered.append(seed)
        return self.credential_for(seed, "recover")

    def authenticate(self, credential: bytes) -> FakeNodeSession:
        if self.fail:
            raise ProvisioningError()
        return FakeNodeSession(self, credential)

    def close(self) -> None:
        pass


# ---------------------------------------------------------------------------
# Component helpers
# ---------------------------------------------------------------------------


def fast_vault() -> CredentialVault:
    """Argon2 at minimum cost so tests spend their time on behavior, not hashing."""
    return CredentialVault(PasswordHasher(time_cost=1, memory_cost=8, parallelism=1))


def make_settings(**overrides) -> Settings:
    values = {"debug": True, "secret_key": TEST_SECRET_KEY}
    values.update(overrides)
    return Settings(**values)


def make_store(db_suffix: str) -> AccountStore:
    """Create an isolated named shared-memory SQLite store.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state (e.g. 'api', 'lifecycle').
    """
    return AccountStore(db_url=f"sqlite:///file:test_accounts_{db_suffix}?mode=memory&cache=shared&uri=true")


def make_lifecycle(
    store: AccountStore, provisioner: FakeProvisioner | None = None
) -> NodeIdentityLifecycle:
    return NodeIdentityLifecycle(store, provisioner or FakeProvisioner(), make_settings(), vault=fast_vault())


def _patch_lifespan(store: AccountStore, provisioner: FakeProvisioner, lifecycle: NodeIdentityLifecycle):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-built test components into app.state so TestClient routes see
    an isolated store and the fake gateway rather than real services.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.store = store
        app.state.provisioner = provisioner
        app.state.lifecycle = lifecycle
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def vault() -> CredentialVault:
    return fast_vault()


@pytest.fixture
def lifecycle() -> Generator[NodeIdentityLifecycle, None, None]:
    """Fresh lifecycle over its own in-memory store, one per test."""
    store = make_store(f"lc_{uuid.uuid4().hex}")
    yield make_lifecycle(store)
    store.close()


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, NodeIdentityLifecycle, FakeProvisioner], None, None]:
    """Yield (client, lifecycle, provisioner) for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so tests
    hit real route handlers and middleware but an isolated store and the fake
    gateway. Rate limits are disabled so repeated logins never hit 429.
    """
    store = make_store(f"api_{request.module.__name__}")
    provisioner = FakeProvisioner()
    lc = make_lifecycle(store, provisioner)

    app.router.lifespan_context = _patch_lifespan(store, provisioner, lc)
    limiter.enabled = False

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, lc, provisioner

    limiter.enabled = True
    store.close()
