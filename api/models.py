"""
API request and response models for NodeVault REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
node/models.py, which own the internal domain representation. Route handlers
map between the two.

Separation of concerns: domain dataclasses = domain truth; api/ models = API contract.
"""

from dataclasses import asdict
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from node.models import DEFAULT_OFFER_DESCRIPTION, MAX_OFFER_DESCRIPTION, Balance, NodeInfo, Offer, OfferRequest

# ---------------------------------------------------------------------------
# Auth -- request models
# ---------------------------------------------------------------------------


class SignupRequest(BaseModel):
    """Request body for POST /api/v1/auth/signup.

    Length rules are enforced by NodeIdentityLifecycle.signup() so the HTTP
    API and the WebSocket channel share one validation path. The caps here
    only bound request size.
    """

    public_key: str = Field(max_length=1024)
    password: str = Field(max_length=1024)


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login."""

    public_key: str = Field(max_length=1024)
    password: str = Field(max_length=1024)


# ---------------------------------------------------------------------------
# Auth -- response models
# ---------------------------------------------------------------------------


class LoginResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str
    token_type: str = "bearer"
    expires_in: int


class SignupResponse(LoginResponse):
    """Response for POST /api/v1/auth/signup.

    encrypted_seed is the only copy the client will ever be sent. It is the
    seed phrase sealed under the password; the server cannot read it either.
    """

    account_id: str
    encrypted_seed: str


class MeResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    account_id: str
    public_key: str
    node_registered: bool
    created_at: Optional[str] = None


# ---------------------------------------------------------------------------
# Node -- request models
# ---------------------------------------------------------------------------


class NodePasswordRequest(BaseModel):
    """Body for node operations. The password unseals the stored credential."""

    password: str = Field(min_length=1, max_length=1024)


class NodeRegisterRequest(NodePasswordRequest):
    """Body for POST /node/register and /node/recover.

    encrypted_seed may be omitted to use the blob stored at signup.
    """

    encrypted_seed: Optional[str] = Field(default=None, max_length=4096)


class OfferParams(BaseModel):
    """Offer fields shared by POST /node/offer and the channel's create_offer command."""

    amount_msat: Optional[int] = Field(default=None, ge=0)
    description: str = Field(default=DEFAULT_OFFER_DESCRIPTION, max_length=MAX_OFFER_DESCRIPTION)

    def to_offer_request(self) -> OfferRequest:
        return OfferRequest(amount_msat=self.amount_msat, description=self.description)


class OfferCreateRequest(OfferParams, NodePasswordRequest):
    pass


# ---------------------------------------------------------------------------
# Node -- response models
# ---------------------------------------------------------------------------


class NodeCredentialsResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    encrypted_device_creds: str


class NodeInfoResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    node_id: str
    alias: str
    color: str
    num_peers: int
    num_pending_channels: int
    num_active_channels: int
    num_inactive_channels: int
    blockheight: int
    network: str
    fees_collected_msat: int

    @classmethod
    def from_domain(cls, info: NodeInfo) -> "NodeInfoResponse":
        return cls(**asdict(info))


class BalanceResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    onchain_balance_sat: int
    onchain_balance_msat: int
    channel_balance_sat: int
    channel_balance_msat: int
    total_balance_sat: int
    total_balance_msat: int

    @classmethod
    def from_domain(cls, balance: Balance) -> "BalanceResponse":
        """Factory Method: derived sat figures come from the domain object."""
        return cls(
            onchain_balance_sat=balance.onchain_balance_sat,
            onchain_balance_msat=balance.onchain_balance_msat,
            channel_balance_sat=balance.channel_balance_sat,
            channel_balance_msat=balance.channel_balance_msat,
            total_balance_sat=balance.total_balance_sat,
            total_balance_msat=balance.total_balance_msat,
        )


class OfferResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    bolt12: str
    offer_id: str
    description: str
    amount_msat: Optional[int] = None
    active: bool

    @classmethod
    def from_domain(cls, offer: Offer) -> "OfferResponse":
        return cls(**asdict(offer))


# ---------------------------------------------------------------------------
# WebSocket channel frames
# ---------------------------------------------------------------------------


class ChannelAuthFrame(BaseModel):
    """First frame on the channel. The password unseals the node credential."""

    password: str = Field(min_length=1, max_length=1024)


class ChannelCommand(BaseModel):
    command: str = Field(max_length=64)
    payload: Optional[dict] = None


class ChannelReply(BaseModel):
    command: str
    success: bool
    data: Optional[dict] = None
    error: Optional[str] = None


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
