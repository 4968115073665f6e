"""
auth/store.py -- SQLAlchemy Core persistence layer for accounts.

Pattern: Repository + Data Mapper.
AccountStore is the repository; _row_to_account is the mapper.
Lifecycle and route code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

Concurrency:
  set_node_credential(only_if_absent=True) is a single conditional UPDATE
  (WHERE node_credential IS NULL). Two concurrent registrations for the same
  account cannot both succeed: the database serializes the writes and the
  loser sees rowcount == 0. There is no read-then-write window to race.

DB path: nodevault.db in the working directory unless DATABASE_URL is set.

Layer rule: no imports from api/, node/, or vault/.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, MetaData, String, Table, Text, create_engine, event, select
from sqlalchemy.engine import Engine

from auth.models import Account

_DEFAULT_DB_URL = "sqlite:///nodevault.db"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_accounts = Table(
    "accounts",
    _metadata,
    Column("id", String(36), primary_key=True),  # UUID4
    Column("public_key", String(255), nullable=False, unique=True, index=True),
    Column("password_hash", Text, nullable=False),  # Argon2id PHC string
    Column("encrypted_seed", Text),  # base64 salt|nonce|ciphertext
    Column("node_credential", Text),  # NULL until registration
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool. In-memory databases ignore it.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AccountStore:
    """Repository for Account entities.

    Usage:
        store = AccountStore("sqlite:///nodevault.db")
        account = store.create("pk1", password_hash, encrypted_seed)
        store.set_node_credential(account.id, blob, only_if_absent=True)
        store.close()
    """

    def __init__(self, db_url: str = _DEFAULT_DB_URL) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def exists(self, public_key: str) -> bool:
        """Return True if an account with this identity key exists."""
        with self.engine.connect() as conn:
            row = conn.execute(select(_accounts.c.id).where(_accounts.c.public_key == public_key)).fetchone()
        return row is not None

    def get_by_key(self, public_key: str) -> Account | None:
        """Look up an account by exact identity key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_accounts.select().where(_accounts.c.public_key == public_key)).fetchone()
        return _row_to_account(row) if row is not None else None

    def get_by_id(self, account_id: str) -> Account | None:
        """Look up an account by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_accounts.select().where(_accounts.c.id == account_id)).fetchone()
        return _row_to_account(row) if row is not None else None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, public_key: str, password_hash: str, encrypted_seed: str) -> Account:
        """Insert a new account and return it with its assigned id.

        Raises sqlalchemy.exc.IntegrityError if the identity key already
        exists. The lifecycle catches it as the signal that a concurrent
        signup won the race.
        """
        now = _now_iso()
        account = Account(
            id=str(uuid.uuid4()),
            public_key=public_key,
            password_hash=password_hash,
            encrypted_seed=encrypted_seed,
            created_at=now,
            updated_at=now,
        )
        with self.engine.connect() as conn:
            conn.execute(
                _accounts.insert().values(
                    id=account.id,
                    public_key=account.public_key,
                    password_hash=account.password_hash,
                    encrypted_seed=account.encrypted_seed,
                    node_credential=None,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
        return account

    def set_node_credential(self, account_id: str, credential: str, only_if_absent: bool) -> bool:
        """Store the sealed node credential for an account.

        only_if_absent=True: conditional write used by registration. Succeeds
            only while node_credential is NULL.
        only_if_absent=False: unconditional overwrite used by recovery.

        Returns True if a row was updated, False if the account does not exist
        or (conditional mode) already has a credential.
        """
        condition = _accounts.c.id == account_id
        if only_if_absent:
            condition = condition & _accounts.c.node_credential.is_(None)
        with self.engine.connect() as conn:
            result = conn.execute(
                _accounts.update().where(condition).values(node_credential=credential, updated_at=_now_iso())
            )
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_account(row) -> Account:
    return Account(
        id=row.id,
        public_key=row.public_key,
        password_hash=row.password_hash,
        encrypted_seed=row.encrypted_seed,
        node_credential=row.node_credential,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
