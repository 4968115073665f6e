"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Session tokens arrive as an Authorization: Bearer <token> header. The token
is handed to NodeIdentityLifecycle.authenticate(), found on app.state, which
verifies it and loads the account.

try_get_current_account() is the soft variant (returns None on failure).
get_current_account() wraps it and raises HTTP 401 if unauthenticated.

Layer rule: no imports from api/ or node/.
  auth/dependencies.py may import from fastapi (for HTTPException/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from auth.models import Account
from core.errors import AuthenticationError


def bearer_token(request: Request) -> str | None:
    """Return the raw token from the Authorization header, or None."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None


def try_get_current_account(request: Request) -> Account | None:
    """Attempt to authenticate the request via its Bearer token.

    Returns the authenticated Account on success, None on any failure.
    Never raises -- callers that need a hard 401 should use get_current_account().
    """
    token = bearer_token(request)
    if not token:
        return None
    try:
        return request.app.state.lifecycle.authenticate(token)
    except AuthenticationError:
        return None


def get_current_account(request: Request) -> Account:
    """Require authentication. Raises HTTP 401 if the request is not authenticated.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(account: Account = Depends(get_current_account)): ...
    """
    account = try_get_current_account(request)
    if account is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
            headers={"WWW-Authenticate": "Bearer"},
        )
    return account
