"""
api/routes/v1/auth.py -- Account signup, login, and identity REST endpoints.

Routes:
  POST /api/v1/auth/signup  -- create account; returns sealed seed + token
  POST /api/v1/auth/login   -- password login; returns token
  GET  /api/v1/auth/me      -- current account info (requires auth)

Security:
  [H2] POST /signup and /login are rate-limited per IP (SIGNUP_RATE_LIMIT,
       LOGIN_RATE_LIMIT).
  [C1] NodeIdentityLifecycle.login() provides timing equalization -- use it,
       never inline store lookups + verify_password().
  [M5] Cache-Control: no-store on every response that carries a token or seed.

Handlers are plain `def`: Argon2 hashing is CPU-bound and FastAPI runs sync
handlers in its threadpool, keeping the event loop free.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter, login_limit, signup_limit
from api.models import LoginRequest, LoginResponse, MeResponse, SignupRequest, SignupResponse
from auth.dependencies import get_current_account
from auth.models import Account
from node.lifecycle import NodeIdentityLifecycle

# Auth policy:
# - POST /api/v1/auth/signup: public -- creates the account
# - POST /api/v1/auth/login:  public -- login endpoint must be unauthenticated
# - GET  /api/v1/auth/me:     requires auth (get_current_account)
router = APIRouter()


def _no_store(content: dict, status_code: int = 200) -> JSONResponse:
    resp = JSONResponse(status_code=status_code, content=content)
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    return resp


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@limiter.limit(signup_limit)  # [H2] must be ABOVE @router to preserve FastAPI introspection
@router.post("/auth/signup", response_model=SignupResponse, status_code=201)
def signup(request: Request, body: SignupRequest) -> JSONResponse:
    """Create an account and return its sealed seed phrase and a session token.

    Validation, duplicate detection, and all secret handling live in
    NodeIdentityLifecycle.signup(). Failures surface as VaultError and are
    rendered by the exception handler in api/main.py.
    """
    lifecycle: NodeIdentityLifecycle = request.app.state.lifecycle
    result = lifecycle.signup(body.public_key, body.password)
    return _no_store(
        SignupResponse(
            account_id=result.account.id,
            encrypted_seed=result.encrypted_seed,
            token=result.token,
            token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
            expires_in=lifecycle.tokens.expire_seconds,
        ).model_dump(),
        status_code=201,
    )


@limiter.limit(login_limit)  # [H2] brute-force mitigation
@router.post("/auth/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with identity key and password; return a session token.

    Returns the same generic error for an unknown key and a wrong password
    ("bad_credentials") to avoid leaking which keys exist.
    """
    lifecycle: NodeIdentityLifecycle = request.app.state.lifecycle
    token = lifecycle.login(body.public_key, body.password)
    return _no_store(
        LoginResponse(
            token=token,
            token_type="bearer",  # noqa: S106 # nosec B106
            expires_in=lifecycle.tokens.expire_seconds,
        ).model_dump()
    )


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/auth/me", response_model=MeResponse)
def me(current_account: Account = Depends(get_current_account)) -> MeResponse:
    """Return identity information for the currently authenticated account."""
    return MeResponse(
        account_id=current_account.id,
        public_key=current_account.public_key,
        node_registered=current_account.node_registered,
        created_at=current_account.created_at,
    )
