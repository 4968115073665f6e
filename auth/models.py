"""
auth/models.py -- Domain dataclasses for account entities.

Pattern: Data class (pure data container, zero logic). Stores and the
lifecycle do the work.

Layer rule: no imports from api/, node/, or vault/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Account:
    """One wallet owner, keyed by their identity public key.

    encrypted_seed is the seed phrase sealed under the account password at
    signup. node_credential is None until a node is registered or recovered;
    once set it holds the provisioning credential sealed under the account
    password. Neither blob is readable without the password.
    """

    public_key: str
    password_hash: str
    id: str | None = None
    encrypted_seed: str | None = None
    node_credential: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def node_registered(self) -> bool:
        return self.node_credential is not None
