"""
tests/test_websocket.py -- Integration tests for the WS /api/v1/ws command channel.

Covers:
  - missing or invalid session token: socket rejected before accept
  - auth frame: success reply, wrong password and malformed frame close the channel
  - commands: get_info, get_balance, create_offer replies
  - unknown commands, malformed frames, and bad payloads get failure replies
    and the channel stays open
"""

from __future__ import annotations

import uuid

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

PASSWORD = "password123"


def _registered_token(client: TestClient) -> str:
    data = client.post(
        "/api/v1/auth/signup", json={"public_key": f"pk-ws-{uuid.uuid4().hex}", "password": PASSWORD}
    ).json()
    resp = client.post(
        "/api/v1/node/register", json={"password": PASSWORD}, headers={"Authorization": f"Bearer {data['token']}"}
    )
    assert resp.status_code == 200, resp.text
    return data["token"]


class TestChannelAuth:
    def test_missing_token_rejected(self, api_client) -> None:
        client, _, _ = api_client
        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect("/api/v1/ws") as ws:
                ws.receive_text()

    def test_invalid_token_rejected(self, api_client) -> None:
        client, _, _ = api_client
        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect("/api/v1/ws?token=garbage") as ws:
                ws.receive_text()

    def test_auth_success(self, api_client) -> None:
        client, _, _ = api_client
        token = _registered_token(client)
        with client.websocket_connect(f"/api/v1/ws?token={token}") as ws:
            ws.send_json({"password": PASSWORD})
            reply = ws.receive_json()
        assert reply["command"] == "auth"
        assert reply["success"] is True
        assert reply["error"] is None

    def test_wrong_password_closes_channel(self, api_client) -> None:
        client, _, _ = api_client
        token = _registered_token(client)
        with client.websocket_connect(f"/api/v1/ws?token={token}") as ws:
            ws.send_json({"password": "password124"})
            reply = ws.receive_json()
            assert reply["command"] == "auth"
            assert reply["success"] is False
            with pytest.raises(WebSocketDisconnect):
                ws.receive_json()

    def test_malformed_auth_frame(self, api_client) -> None:
        client, _, _ = api_client
        token = _registered_token(client)
        with client.websocket_connect(f"/api/v1/ws?token={token}") as ws:
            ws.send_text("not json")
            reply = ws.receive_json()
            assert reply["success"] is False
            assert "format" in reply["error"]

    def test_no_node_registered(self, api_client) -> None:
        client, _, _ = api_client
        data = client.post(
            "/api/v1/auth/signup", json={"public_key": f"pk-ws-{uuid.uuid4().hex}", "password": PASSWORD}
        ).json()
        with client.websocket_connect(f"/api/v1/ws?token={data['token']}") as ws:
            ws.send_json({"password": PASSWORD})
            reply = ws.receive_json()
        assert reply["success"] is False
        assert "No node" in reply["error"]


class TestChannelCommands:
    @pytest.fixture
    def channel(self, api_client):
        client, _, provisioner = api_client
        token = _registered_token(client)
        with client.websocket_connect(f"/api/v1/ws?token={token}") as ws:
            ws.send_json({"password": PASSWORD})
            assert ws.receive_json()["success"] is True
            yield ws, provisioner

    def test_get_info(self, channel) -> None:
        ws, _ = channel
        ws.send_json({"command": "get_info"})
        reply = ws.receive_json()
        assert reply["command"] == "get_info"
        assert reply["success"] is True
        assert reply["data"]["alias"] == "fake"

    def test_get_balance(self, channel) -> None:
        ws, _ = channel
        ws.send_json({"command": "get_balance", "payload": {}})
        reply = ws.receive_json()
        assert reply["success"] is True
        assert reply["data"]["total_balance_msat"] == 152_500

    def test_create_offer(self, channel) -> None:
        ws, provisioner = channel
        ws.send_json({"command": "create_offer", "payload": {"amount_msat": 1000, "description": "ws offer"}})
        reply = ws.receive_json()
        assert reply["success"] is True
        assert reply["data"]["amount_msat"] == 1000
        assert provisioner.offers[-1].description == "ws offer"

    def test_invalid_offer_payload_keeps_channel_open(self, channel) -> None:
        ws, _ = channel
        ws.send_json({"command": "create_offer", "payload": {"amount_msat": -1}})
        reply = ws.receive_json()
        assert reply["command"] == "create_offer"
        assert reply["success"] is False
        ws.send_json({"command": "get_info"})
        assert ws.receive_json()["success"] is True

    def test_unknown_command(self, channel) -> None:
        ws, _ = channel
        ws.send_json({"command": "list_offers"})
        reply = ws.receive_json()
        assert reply == {"command": "list_offers", "success": False, "data": None, "error": "Unknown command: list_offers"}

    def test_malformed_frame(self, channel) -> None:
        ws, _ = channel
        ws.send_text("{broken")
        reply = ws.receive_json()
        assert reply["command"] == "error"
        assert reply["success"] is False
        ws.send_json({"command": "get_balance"})
        assert ws.receive_json()["success"] is True

    def test_gateway_failure_reported(self, channel) -> None:
        ws, provisioner = channel
        provisioner.fail = True
        try:
            ws.send_json({"command": "create_offer", "payload": {}})
            reply = ws.receive_json()
        finally:
            provisioner.fail = False
        assert reply["command"] == "create_offer"
        assert reply["success"] is False
        assert reply["error"] == "The node provisioning service is unavailable."
