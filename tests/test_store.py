"""
tests/test_store.py -- Unit tests for auth.store.AccountStore.

Covers:
  - create / exists / get_by_key / get_by_id round trip
  - duplicate public key raises IntegrityError
  - set_node_credential: conditional write only while empty, unconditional overwrite
  - concurrent conditional writes from two threads: exactly one wins
"""

from __future__ import annotations

import threading
import uuid

import pytest
from conftest import make_store
from sqlalchemy.exc import IntegrityError

from auth.store import AccountStore


@pytest.fixture
def store():
    s = make_store(f"store_{uuid.uuid4().hex}")
    yield s
    s.close()


class TestAccountQueries:
    def test_create_and_fetch(self, store: AccountStore) -> None:
        account = store.create("pk1", "$argon2id$fake", "blob")
        assert account.id is not None
        uuid.UUID(account.id)  # raises if not a UUID
        fetched = store.get_by_key("pk1")
        assert fetched is not None
        assert fetched.id == account.id
        assert fetched.password_hash == "$argon2id$fake"
        assert fetched.encrypted_seed == "blob"
        assert fetched.node_credential is None
        assert fetched.node_registered is False
        assert store.get_by_id(account.id) == fetched

    def test_exists(self, store: AccountStore) -> None:
        assert store.exists("pk1") is False
        store.create("pk1", "hash", "blob")
        assert store.exists("pk1") is True

    def test_missing_account(self, store: AccountStore) -> None:
        assert store.get_by_key("nobody") is None
        assert store.get_by_id(str(uuid.uuid4())) is None

    def test_duplicate_key_rejected(self, store: AccountStore) -> None:
        store.create("pk1", "hash", "blob")
        with pytest.raises(IntegrityError):
            store.create("pk1", "hash2", "blob2")


class TestNodeCredential:
    def test_conditional_write_when_empty(self, store: AccountStore) -> None:
        account = store.create("pk1", "hash", "blob")
        assert store.set_node_credential(account.id, "cred-1", only_if_absent=True) is True
        assert store.get_by_id(account.id).node_credential == "cred-1"

    def test_conditional_write_refuses_overwrite(self, store: AccountStore) -> None:
        account = store.create("pk1", "hash", "blob")
        store.set_node_credential(account.id, "cred-1", only_if_absent=True)
        assert store.set_node_credential(account.id, "cred-2", only_if_absent=True) is False
        assert store.get_by_id(account.id).node_credential == "cred-1"

    def test_unconditional_write_overwrites(self, store: AccountStore) -> None:
        account = store.create("pk1", "hash", "blob")
        store.set_node_credential(account.id, "cred-1", only_if_absent=True)
        assert store.set_node_credential(account.id, "cred-2", only_if_absent=False) is True
        assert store.get_by_id(account.id).node_credential == "cred-2"

    def test_unknown_account(self, store: AccountStore) -> None:
        assert store.set_node_credential(str(uuid.uuid4()), "cred", only_if_absent=False) is False

    def test_write_bumps_updated_at(self, store: AccountStore) -> None:
        account = store.create("pk1", "hash", "blob")
        store.set_node_credential(account.id, "cred-1", only_if_absent=True)
        assert store.get_by_id(account.id).updated_at >= account.updated_at


def test_concurrent_conditional_writes_one_winner(tmp_path) -> None:
    """Two threads racing the conditional write: exactly one row update succeeds.

    Uses a file database so each thread gets a real connection and SQLite's
    own write lock decides the winner.
    """
    store = AccountStore(f"sqlite:///{tmp_path / 'race.db'}")
    account = store.create("pk-race", "hash", "blob")
    barrier = threading.Barrier(2, timeout=10)
    results: list[bool] = []

    def writer(value: str) -> None:
        barrier.wait()
        results.append(store.set_node_credential(account.id, value, only_if_absent=True))

    threads = [threading.Thread(target=writer, args=(f"cred-{i}",)) for i in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=15)

    assert sorted(results) == [False, True]
    assert store.get_by_id(account.id).node_credential in ("cred-0", "cred-1")
    store.close()
