"""
node/provisioning.py -- Client for the remote node-provisioning gateway.

The gateway schedules wallet nodes and holds their signing sessions. NodeVault
talks to it over HTTPS with a developer client certificate (mutual TLS):

  POST /v1/nodes/register      {"seed": b64, "network": str} -> {"creds": b64}
  POST /v1/nodes/recover       {"seed": b64, "network": str} -> {"creds": b64}
  POST /v1/nodes/authenticate  {"creds": b64}                -> {"token": str}
  GET  /v1/node/info           (Bearer token)                -> node info
  GET  /v1/node/funds          (Bearer token)                -> outputs + channels
  POST /v1/node/offers         (Bearer token)                -> bolt12 offer

NodeProvisioningService and NodeSession are the protocols the lifecycle
depends on. HttpProvisioningClient is the production implementation; tests
substitute an in-memory fake.

Every failure -- transport error, non-2xx status, malformed body -- surfaces
as ProvisioningError. Nothing here retries. Seeds and credentials are never
logged.
"""

from __future__ import annotations

import base64
import binascii
import logging
import time
from typing import Any, Protocol

import requests

from core.config import Settings
from core.errors import ProvisioningError
from node.models import Balance, NodeInfo, Offer, OfferRequest

logger = logging.getLogger("nodevault.provisioning")


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


class NodeSession(Protocol):
    """An authenticated handle on one registered node."""

    def get_info(self) -> NodeInfo: ...

    def get_balance(self) -> Balance: ...

    def create_offer(self, request: OfferRequest) -> Offer: ...


class NodeProvisioningService(Protocol):
    """Registers, recovers, and opens sessions on remote nodes."""

    def register(self, seed: bytes) -> bytes: ...

    def recover(self, seed: bytes) -> bytes: ...

    def authenticate(self, credential: bytes) -> NodeSession: ...


# ---------------------------------------------------------------------------
# HTTP implementation
# ---------------------------------------------------------------------------


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


class HttpProvisioningClient:
    """NodeProvisioningService backed by the gateway's JSON API.

    Usage:
        client = HttpProvisioningClient(settings)
        creds = client.register(seed)
        session = client.authenticate(creds)
        info = session.get_info()
    """

    def __init__(self, settings: Settings, session: requests.Session | None = None) -> None:
        self.base_url = settings.provisioning_url.rstrip("/")
        self.network = settings.provisioning_network
        self.timeout = settings.provisioning_timeout
        self._session = session or requests.Session()
        # max_redirects=3 replaces the requests default of 30. The gateway is a
        # known service, so 3 hops is generous and caps redirect-chain SSRF.
        self._session.max_redirects = 3
        if settings.provisioning_cert_path and settings.provisioning_key_path:
            self._session.cert = (settings.provisioning_cert_path, settings.provisioning_key_path)
        elif settings.provisioning_cert_path or settings.provisioning_key_path:
            logger.warning("Only one of PROVISIONING_CERT_PATH / PROVISIONING_KEY_PATH is set; client TLS disabled")

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def request(self, method: str, path: str, payload: dict | None = None, token: str | None = None) -> dict[str, Any]:
        """Send one request to the gateway and return its decoded JSON object.

        Raises ProvisioningError on transport failure, non-2xx status, or a
        body that is not a JSON object.
        """
        headers = {"Authorization": f"Bearer {token}"} if token else None
        try:
            resp = self._session.request(
                method,
                f"{self.base_url}{path}",
                json=payload,
                headers=headers,
                timeout=self.timeout,
            )
            resp.raise_for_status()
            body = resp.json()
        except requests.RequestException as e:
            logger.warning("Provisioning call %s %s failed: %s", method, path, e)
            raise ProvisioningError(f"Provisioning call {path} failed.") from e
        except ValueError as e:
            logger.warning("Provisioning call %s %s returned invalid JSON", method, path)
            raise ProvisioningError(f"Provisioning call {path} returned an invalid response.") from e
        if not isinstance(body, dict):
            raise ProvisioningError(f"Provisioning call {path} returned an invalid response.")
        return body

    def _issue_credential(self, path: str, seed: bytes) -> bytes:
        body = self.request("POST", path, {"seed": _b64(seed), "network": self.network})
        try:
            return base64.b64decode(body["creds"], validate=True)
        except (KeyError, TypeError, binascii.Error, ValueError) as e:
            raise ProvisioningError(f"Provisioning call {path} returned no credential.") from e

    # ------------------------------------------------------------------
    # NodeProvisioningService
    # ------------------------------------------------------------------

    def register(self, seed: bytes) -> bytes:
        """Register a new node for seed and return its opaque credential."""
        creds = self._issue_credential("/v1/nodes/register", seed)
        logger.info("Node registered on %s", self.network)
        return creds

    def recover(self, seed: bytes) -> bytes:
        """Recover the node previously registered for seed and return a fresh credential."""
        creds = self._issue_credential("/v1/nodes/recover", seed)
        logger.info("Node recovered on %s", self.network)
        return creds

    def authenticate(self, credential: bytes) -> "HttpNodeSession":
        body = self.request("POST", "/v1/nodes/authenticate", {"creds": _b64(credential)})
        token = body.get("token")
        if not isinstance(token, str) or not token:
            raise ProvisioningError("Provisioning gateway did not return a node session.")
        return HttpNodeSession(self, token)

    def close(self) -> None:
        self._session.close()


class HttpNodeSession:
    """NodeSession bound to one gateway session token."""

    def __init__(self, client: HttpProvisioningClient, token: str) -> None:
        self._client = client
        self._token = token

    def get_info(self) -> NodeInfo:
        body = self._client.request("GET", "/v1/node/info", token=self._token)
        try:
            return NodeInfo(
                node_id=str(body["node_id"]),
                alias=str(body.get("alias") or ""),
                color=str(body.get("color") or ""),
                num_peers=int(body.get("num_peers") or 0),
                num_pending_channels=int(body.get("num_pending_channels") or 0),
                num_active_channels=int(body.get("num_active_channels") or 0),
                num_inactive_channels=int(body.get("num_inactive_channels") or 0),
                blockheight=int(body.get("blockheight") or 0),
                network=str(body.get("network") or ""),
                fees_collected_msat=int(body.get("fees_collected_msat") or 0),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ProvisioningError("Provisioning gateway returned malformed node info.") from e

    def get_balance(self) -> Balance:
        """Sum confirmed on-chain outputs and our side of every channel."""
        body = self._client.request("GET", "/v1/node/funds", token=self._token)
        try:
            onchain = sum(
                int(output.get("amount_msat") or 0)
                for output in body.get("outputs", [])
                if output.get("status") == "confirmed"
            )
            channels = sum(int(channel.get("our_amount_msat") or 0) for channel in body.get("channels", []))
        except (AttributeError, TypeError, ValueError) as e:
            raise ProvisioningError("Provisioning gateway returned malformed funds.") from e
        return Balance(onchain_balance_msat=onchain, channel_balance_msat=channels)

    def create_offer(self, request: OfferRequest) -> Offer:
        payload = {
            "amount": request.gateway_amount,
            "description": request.description,
            "label": f"offer_{int(time.time())}",
        }
        body = self._client.request("POST", "/v1/node/offers", payload, token=self._token)
        bolt12 = body.get("bolt12")
        offer_id = body.get("offer_id")
        if not isinstance(bolt12, str) or not bolt12 or not isinstance(offer_id, str) or not offer_id:
            raise ProvisioningError("Provisioning gateway returned a malformed offer.")
        return Offer(
            bolt12=bolt12,
            offer_id=offer_id,
            description=request.description,
            amount_msat=request.amount_msat,
            active=not bool(body.get("used", False)),
        )
