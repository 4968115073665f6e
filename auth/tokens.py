"""
auth/tokens.py -- Stateless session tokens.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       the account id (sub), issued-at (iat) and expiry (exp). There is no
       server-side revocation list: a token is valid until it expires.
       verify() raises AuthenticationError on any failure -- bad signature,
       expiry, missing claims -- with one generic message.

  SECRET_KEY: passed in from Settings by the application assembly. This
       module reads no configuration on its own.

Layer rule: no imports from api/, node/, or vault/. Import from core/ is
allowed -- core/ is the kernel and has no reverse dependencies.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from core.config import Settings
from core.errors import AuthenticationError

_ALGORITHM = "HS256"


class SessionTokens:
    """Issue and verify signed session tokens for accounts.

    Usage:
        tokens = SessionTokens.from_settings(settings)
        token = tokens.issue(account.id)
        account_id = tokens.verify(token)
    """

    def __init__(self, secret_key: str, expire_seconds: int = 24 * 60 * 60) -> None:
        self._secret_key = secret_key
        self.expire_seconds = expire_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> "SessionTokens":
        return cls(settings.secret_key, settings.token_expire_seconds)

    def issue(self, account_id: str) -> str:
        """Encode a signed JWT whose subject is account_id."""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": account_id,
            "iat": now,
            "exp": now + timedelta(seconds=self.expire_seconds),
        }
        return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)

    def verify(self, token: str) -> str:
        """Return the account id in token. Raises AuthenticationError if invalid or expired."""
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[_ALGORITHM])
        except JWTError:
            raise AuthenticationError("Invalid or expired session.") from None
        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            raise AuthenticationError("Invalid or expired session.")
        return subject
