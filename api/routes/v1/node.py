"""
api/routes/v1/node.py -- Node registration, recovery, and node data endpoints.

Routes (all require a Bearer session token):
  POST /api/v1/node/register  -- first-time node registration
  POST /api/v1/node/recover   -- re-bind the node for an existing seed
  POST /api/v1/node/info      -- node identity and channel counts
  POST /api/v1/node/balance   -- on-chain + channel funds
  POST /api/v1/node/offer     -- create a reusable payment offer

Every body carries the account password: the node credential is stored
sealed under it and must be unsealed for each call. That is also why the
read-only operations are POST -- a password never belongs in a URL.

Handlers are plain `def`: provisioning calls block on the network and FastAPI
runs sync handlers in its threadpool.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from api.models import (
    BalanceResponse,
    NodeCredentialsResponse,
    NodeInfoResponse,
    NodePasswordRequest,
    NodeRegisterRequest,
    OfferCreateRequest,
    OfferResponse,
)
from auth.dependencies import get_current_account
from auth.models import Account
from node.lifecycle import NodeIdentityLifecycle

router = APIRouter()


def _lifecycle(request: Request) -> NodeIdentityLifecycle:
    return request.app.state.lifecycle


# ---------------------------------------------------------------------------
# Registration and recovery
# ---------------------------------------------------------------------------


@router.post("/node/register", response_model=NodeCredentialsResponse)
def register_node(
    request: Request,
    body: NodeRegisterRequest,
    current_account: Account = Depends(get_current_account),
) -> NodeCredentialsResponse:
    """Register a node for the account's seed. 409 if one is already registered."""
    blob = _lifecycle(request).register_node(current_account.id, body.password, body.encrypted_seed)
    return NodeCredentialsResponse(encrypted_device_creds=blob)


@router.post("/node/recover", response_model=NodeCredentialsResponse)
def recover_node(
    request: Request,
    body: NodeRegisterRequest,
    current_account: Account = Depends(get_current_account),
) -> NodeCredentialsResponse:
    """Recover the account's node and replace the stored credential."""
    blob = _lifecycle(request).recover_node(current_account.id, body.password, body.encrypted_seed)
    return NodeCredentialsResponse(encrypted_device_creds=blob)


# ---------------------------------------------------------------------------
# Node data
# ---------------------------------------------------------------------------


@router.post("/node/info", response_model=NodeInfoResponse)
def node_info(
    request: Request,
    body: NodePasswordRequest,
    current_account: Account = Depends(get_current_account),
) -> NodeInfoResponse:
    info = _lifecycle(request).get_node_info(current_account.id, body.password)
    return NodeInfoResponse.from_domain(info)


@router.post("/node/balance", response_model=BalanceResponse)
def node_balance(
    request: Request,
    body: NodePasswordRequest,
    current_account: Account = Depends(get_current_account),
) -> BalanceResponse:
    balance = _lifecycle(request).get_balance(current_account.id, body.password)
    return BalanceResponse.from_domain(balance)


@router.post("/node/offer", response_model=OfferResponse)
def create_offer(
    request: Request,
    body: OfferCreateRequest,
    current_account: Account = Depends(get_current_account),
) -> OfferResponse:
    """Create a Bolt12 offer. Omit amount_msat (or send 0) for an any-amount offer."""
    offer = _lifecycle(request).create_offer(current_account.id, body.password, body.to_offer_request())
    return OfferResponse.from_domain(offer)
