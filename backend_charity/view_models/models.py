"""
View models: UI-ready projections of ledger state.

Monetary fields hold integer MIST exactly as the ledger reports them; the
display_* properties convert at access time so nothing is ever stored in
scaled form. Every model is frozen and rebuilt wholesale on each sync.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

from backend_charity.ledger.decoder import format_sui


def same_address(a: str | None, b: str | None) -> bool:
    """Case-insensitive address equality; empty never matches."""
    if not a or not b:
        return False
    return a.strip().lower() == b.strip().lower()


class ProposalStatus(IntEnum):
    """Disbursement proposal status as encoded by the contract (u8)."""

    PENDING = 0
    APPROVED = 1
    REJECTED = 2


@dataclass(frozen=True)
class AuctionCard:
    """One auction (Auction object with its wrapped CharityNFT)."""

    auction_id: str
    name: str
    description: str
    image_url: str
    highest_bid_mist: int
    """0 means no bids yet."""
    reserve_price_mist: int
    end_time_ms: int
    active: bool
    seller: str
    highest_bidder: str
    charity_id: str

    @property
    def has_bids(self) -> bool:
        return self.highest_bid_mist > 0

    @property
    def price_mist(self) -> int:
        """Price to show: highest bid, or reserve price while there are no bids."""
        return self.highest_bid_mist if self.has_bids else self.reserve_price_mist

    @property
    def display_price(self) -> str:
        return format_sui(self.price_mist)

    @property
    def display_highest_bid(self) -> str:
        return format_sui(self.highest_bid_mist)

    @property
    def status(self) -> str:
        return "LIVE" if self.active else "ENDED"

    def seconds_remaining(self, now_ms: int) -> int:
        return max(0, (self.end_time_ms - now_ms) // 1000)

    def is_ended(self, now_ms: int) -> bool:
        return not self.active or self.seconds_remaining(now_ms) == 0

    def is_winner(self, address: str | None) -> bool:
        return same_address(self.highest_bidder, address)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.auction_id,
            "name": self.name,
            "description": self.description,
            "image": self.image_url,
            "highest_bid": self.display_highest_bid,
            "reserve_price": format_sui(self.reserve_price_mist),
            "display_price": self.display_price,
            "end_time": self.end_time_ms,
            "status": self.status,
            "seller": self.seller,
            "highest_bidder": self.highest_bidder,
            "charity_id": self.charity_id,
        }


@dataclass(frozen=True)
class CharityCard:
    """One registered charity and its vault."""

    charity_id: str
    name: str
    description: str
    website: str
    logo_url: str
    ai_verified: bool
    is_verified: bool
    vault_mist: int
    impact_level: int
    wallet: str

    @property
    def display_vault(self) -> str:
        return format_sui(self.vault_mist)

    @property
    def verification_stage(self) -> str:
        """awaiting_ai → awaiting_final → verified."""
        if self.is_verified:
            return "verified"
        if self.ai_verified:
            return "awaiting_final"
        return "awaiting_ai"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.charity_id,
            "name": self.name,
            "description": self.description,
            "website": self.website,
            "logo": self.logo_url,
            "ai_verified": self.ai_verified,
            "is_verified": self.is_verified,
            "verification_stage": self.verification_stage,
            "vault": self.display_vault,
            "impact_level": self.impact_level,
            "wallet": self.wallet,
        }


@dataclass(frozen=True)
class ProposalCard:
    """Disbursement proposal awaiting (or past) admin review."""

    proposal_id: str
    charity_id: str
    charity_name: str
    amount_mist: int
    description: str
    status: int
    """Raw contract value; see status_enum."""
    admin_feedback: str

    @property
    def status_enum(self) -> ProposalStatus | None:
        try:
            return ProposalStatus(self.status)
        except ValueError:
            return None

    @property
    def status_label(self) -> str:
        enum = self.status_enum
        return enum.name.lower() if enum is not None else "unknown"

    @property
    def display_amount(self) -> str:
        return format_sui(self.amount_mist)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.proposal_id,
            "charity_id": self.charity_id,
            "charity_name": self.charity_name,
            "amount": self.display_amount,
            "description": self.description,
            "status": self.status_label,
            "admin_feedback": self.admin_feedback,
        }


@dataclass(frozen=True)
class BidHistoryEntry:
    bidder: str
    amount_mist: int
    timestamp_ms: int | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "bidder": self.bidder,
            "amount": format_sui(self.amount_mist),
            "timestamp": self.timestamp_ms,
        }


@dataclass(frozen=True)
class NFTCard:
    nft_id: str
    name: str
    image_url: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.nft_id, "name": self.name, "image": self.image_url}


@dataclass(frozen=True)
class AuctionDetailView:
    """Item detail screen: the auction plus its recent bids (newest first)."""

    auction: AuctionCard
    history: tuple[BidHistoryEntry, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "auction": self.auction.to_dict(),
            "history": [h.to_dict() for h in self.history],
        }


@dataclass(frozen=True)
class AdminQueueView:
    """Admin dashboard: charities under review plus pending disbursements."""

    charities: tuple[CharityCard, ...] = field(default_factory=tuple)
    proposals: tuple[ProposalCard, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "charities": [c.to_dict() for c in self.charities],
            "proposals": [p.to_dict() for p in self.proposals],
        }


@dataclass(frozen=True)
class ProfileView:
    """Wallet profile: balance, auctions it leads, its listings and owned NFTs."""

    address: str
    balance_mist: int
    leading_bids: tuple[AuctionCard, ...] = field(default_factory=tuple)
    listings: tuple[AuctionCard, ...] = field(default_factory=tuple)
    nfts: tuple[NFTCard, ...] = field(default_factory=tuple)

    @property
    def display_balance(self) -> str:
        return format_sui(self.balance_mist, places=3)

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "balance": self.display_balance,
            "leading_bids": [a.to_dict() for a in self.leading_bids],
            "listings": [a.to_dict() for a in self.listings],
            "nfts": [n.to_dict() for n in self.nfts],
        }


@dataclass(frozen=True)
class CampaignView:
    """Public campaign page for one charity."""

    charity: CharityCard
    recipient_address: str
    auction_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "charity": self.charity.to_dict(),
            "recipient_address": self.recipient_address,
            "raised": self.charity.display_vault,
            "auction_count": self.auction_count,
        }
