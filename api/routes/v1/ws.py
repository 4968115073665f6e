"""
api/routes/v1/ws.py -- WebSocket command channel for node operations.

  WS /api/v1/ws?token=<session token>

Protocol (JSON text frames):
  1. Client sends {"password": "..."}. The server unseals the node credential,
     opens a gateway session, and replies
     {"command": "auth", "success": true, "data": {...}, "error": null}.
     On failure it replies with success=false and closes the socket.
  2. Client sends {"command": "get_info" | "get_balance" | "create_offer",
     "payload": {...}}. Every command gets one reply with the same command
     name. Unknown commands and malformed frames get a failure reply and the
     channel stays open.

A missing or invalid token is rejected before the socket is accepted
(close code 1008). The gateway session is opened once per channel; blocking
lifecycle and gateway calls run in the threadpool.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from api.models import (
    BalanceResponse,
    ChannelAuthFrame,
    ChannelCommand,
    ChannelReply,
    NodeInfoResponse,
    OfferParams,
    OfferResponse,
)
from core.errors import AuthenticationError, VaultError
from node.lifecycle import NodeIdentityLifecycle
from node.provisioning import NodeSession

logger = logging.getLogger("nodevault.api")

router = APIRouter()


def _failure(command: str, message: str) -> ChannelReply:
    return ChannelReply(command=command, success=False, error=message)


# ---------------------------------------------------------------------------
# Command dispatch
# ---------------------------------------------------------------------------


async def _get_info(session: NodeSession, payload: dict) -> dict:
    info = await run_in_threadpool(session.get_info)
    return NodeInfoResponse.from_domain(info).model_dump()


async def _get_balance(session: NodeSession, payload: dict) -> dict:
    balance = await run_in_threadpool(session.get_balance)
    return BalanceResponse.from_domain(balance).model_dump()


async def _create_offer(session: NodeSession, payload: dict) -> dict:
    params = OfferParams.model_validate(payload)
    offer = await run_in_threadpool(session.create_offer, params.to_offer_request())
    return OfferResponse.from_domain(offer).model_dump()


_COMMANDS = {
    "get_info": _get_info,
    "get_balance": _get_balance,
    "create_offer": _create_offer,
}


async def dispatch(session: NodeSession, text: str) -> ChannelReply:
    """Run one command frame against session and build its reply. Never raises VaultError."""
    try:
        frame = ChannelCommand.model_validate_json(text)
    except ValidationError:
        return _failure("error", "Invalid message format.")

    handler = _COMMANDS.get(frame.command)
    if handler is None:
        return _failure(frame.command, f"Unknown command: {frame.command}")
    try:
        data = await handler(session, frame.payload or {})
    except ValidationError:
        return _failure(frame.command, f"Invalid {frame.command} payload.")
    except VaultError as e:
        return _failure(frame.command, e.message)
    return ChannelReply(command=frame.command, success=True, data=data)


# ---------------------------------------------------------------------------
# Endpoint
# ---------------------------------------------------------------------------


async def _open_channel(websocket: WebSocket, lifecycle: NodeIdentityLifecycle, account_id: str) -> NodeSession | None:
    """Read the auth frame and open the gateway session. Returns None after sending a failure reply."""
    text = await websocket.receive_text()
    try:
        frame = ChannelAuthFrame.model_validate_json(text)
    except ValidationError:
        await websocket.send_json(_failure("auth", "Invalid authentication message format.").model_dump())
        return None
    try:
        session = await run_in_threadpool(lifecycle.open_node_session, account_id, frame.password)
    except VaultError as e:
        await websocket.send_json(_failure("auth", e.message).model_dump())
        return None
    reply = ChannelReply(command="auth", success=True, data={"message": "Authenticated successfully."})
    await websocket.send_json(reply.model_dump())
    return session


@router.websocket("/ws")
async def node_channel(websocket: WebSocket, token: str = "") -> None:
    lifecycle: NodeIdentityLifecycle = websocket.app.state.lifecycle
    try:
        account = await run_in_threadpool(lifecycle.authenticate, token)
    except AuthenticationError:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    try:
        session = await _open_channel(websocket, lifecycle, account.id)
        if session is None:
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
            return
        logger.info("Channel opened for account %s", account.id)
        while True:
            text = await websocket.receive_text()
            reply = await dispatch(session, text)
            await websocket.send_json(reply.model_dump())
    except WebSocketDisconnect:
        logger.info("Channel closed for account %s", account.id)
