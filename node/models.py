"""
node/models.py -- Data shapes exchanged with the provisioning service.

All amounts are integer millisatoshis. Satoshi figures are derived, never
stored, so the two can not drift apart.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_OFFER_DESCRIPTION = "Bolt12 offer"
MAX_OFFER_DESCRIPTION = 640


@dataclass(frozen=True)
class OfferRequest:
    """Parameters for a new reusable payment offer.

    amount_msat None or 0 means the payer chooses the amount.
    """

    amount_msat: int | None = None
    description: str = DEFAULT_OFFER_DESCRIPTION

    def __post_init__(self) -> None:
        if self.amount_msat is not None and self.amount_msat < 0:
            raise ValueError("amount_msat must be non-negative")
        if len(self.description) > MAX_OFFER_DESCRIPTION:
            raise ValueError(f"description must be at most {MAX_OFFER_DESCRIPTION} characters")

    @property
    def gateway_amount(self) -> str:
        """Amount in the gateway's string form: '<n>msat' or 'any'."""
        if self.amount_msat:
            return f"{self.amount_msat}msat"
        return "any"


@dataclass(frozen=True)
class NodeInfo:
    node_id: str
    alias: str = ""
    color: str = ""
    num_peers: int = 0
    num_pending_channels: int = 0
    num_active_channels: int = 0
    num_inactive_channels: int = 0
    blockheight: int = 0
    network: str = ""
    fees_collected_msat: int = 0


@dataclass(frozen=True)
class Balance:
    """Spendable funds. onchain_balance_msat counts confirmed outputs only."""

    onchain_balance_msat: int = 0
    channel_balance_msat: int = 0

    @property
    def total_balance_msat(self) -> int:
        return self.onchain_balance_msat + self.channel_balance_msat

    @property
    def onchain_balance_sat(self) -> int:
        return self.onchain_balance_msat // 1000

    @property
    def channel_balance_sat(self) -> int:
        return self.channel_balance_msat // 1000

    @property
    def total_balance_sat(self) -> int:
        return self.total_balance_msat // 1000


@dataclass(frozen=True)
class Offer:
    bolt12: str
    offer_id: str
    description: str
    amount_msat: int | None = None
    active: bool = True
