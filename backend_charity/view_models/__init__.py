"""
View models: decoded, UI-ready projections of ledger state.

Built fresh from ledger objects and events on every sync; never patched
in place and never authoritative.
"""

from backend_charity.view_models.models import (
    AdminQueueView,
    AuctionCard,
    AuctionDetailView,
    BidHistoryEntry,
    CampaignView,
    CharityCard,
    NFTCard,
    ProfileView,
    ProposalCard,
    ProposalStatus,
)

__all__ = [
    "AdminQueueView",
    "AuctionCard",
    "AuctionDetailView",
    "BidHistoryEntry",
    "CampaignView",
    "CharityCard",
    "NFTCard",
    "ProfileView",
    "ProposalCard",
    "ProposalStatus",
]
