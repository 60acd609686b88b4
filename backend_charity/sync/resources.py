"""
Ledger-backed resources: fetchers, keys and default poll intervals.

Each fetcher performs one full read (events, then object batch) and returns
a freshly built view model. Nothing is cached here; the scheduler owning a
resource holds the only copy.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from backend_charity.config.settings import DeploymentConfig
from backend_charity.ledger.client import SuiLedgerReader
from backend_charity.ledger.models import LedgerEvent, LedgerObject
from backend_charity.logging import get_logger
from backend_charity.view_models.builder import (
    BID_HISTORY_LIMIT,
    build_auction,
    build_auctions,
    build_bid_history,
    build_campaign,
    build_charities,
    build_nfts,
    build_proposals,
    classify_profile,
    find_registration,
    unique_ids,
)
from backend_charity.view_models.models import (
    AdminQueueView,
    AuctionCard,
    AuctionDetailView,
    CampaignView,
    CharityCard,
    ProfileView,
)

logger = get_logger(__name__)

BALANCE_INTERVAL_SEC = 8.0
ADMIN_CHECK_INTERVAL_SEC = 10.0
AUCTION_DETAIL_INTERVAL_SEC = 15.0
# lists are fetched on mount and after transactions only
LIST_INTERVAL_SEC: float | None = None

EVT_AUCTION_CREATED = "AuctionCreated"
EVT_BID_PLACED = "BidPlaced"
EVT_CHARITY_REGISTERED = "CharityRegistered"
EVT_DISBURSEMENT_REQUESTED = "DisbursementRequestCreated"
NFT_STRUCT = "CharityNFT"


def live_auctions_key() -> str:
    return "auctions:live"


def all_auctions_key() -> str:
    return "auctions:all"


def auction_key(auction_id: str) -> str:
    return f"auction:{auction_id}"


def charities_key() -> str:
    return "charities"


def admin_queue_key() -> str:
    return "admin:queue"


def profile_key(address: str) -> str:
    return f"profile:{address.lower()}"


def balance_key(address: str) -> str:
    return f"balance:{address.lower()}"


def admin_check_key(address: str) -> str:
    return f"admin:{address.lower()}"


def campaign_key(charity_id: str) -> str:
    return f"campaign:{charity_id}"


def registration_key(address: str) -> str:
    return f"registration:{address.lower()}"


@dataclass(frozen=True)
class ResourceSpec:
    """Everything SyncHub.subscribe() needs for one resource."""

    key: str
    fetch: Callable[[], Awaitable[Any]]
    interval_sec: float | None


class LedgerViews:
    """Fetchers for every screen-level resource, bound to one deployment."""

    def __init__(self, reader: SuiLedgerReader, config: DeploymentConfig) -> None:
        self._reader = reader
        self._config = config

    @property
    def config(self) -> DeploymentConfig:
        return self._config

    # ------------------------------------------------------------------
    # Shared reads
    # ------------------------------------------------------------------

    async def _objects_from_events(self, event_name: str, id_key: str) -> list[LedgerObject]:
        events = await self._reader.query_events(self._config.event_type(event_name))
        ids = unique_ids(events, id_key)
        if not ids:
            return []
        return await self._reader.multi_get_objects(ids)

    async def _auction_events(self) -> list[LedgerEvent]:
        return await self._reader.query_events(self._config.event_type(EVT_AUCTION_CREATED))

    async def _auction_objects(self) -> list[LedgerObject]:
        return await self._objects_from_events(EVT_AUCTION_CREATED, "auction_id")

    async def _charity_cards(self, verified_only: bool | None = None) -> list[CharityCard]:
        objects = await self._objects_from_events(EVT_CHARITY_REGISTERED, "charity_id")
        return build_charities(objects, verified_only=verified_only)

    # ------------------------------------------------------------------
    # Fetchers
    # ------------------------------------------------------------------

    async def live_auctions(self) -> list[AuctionCard]:
        return build_auctions(await self._auction_objects(), live_only=True)

    async def all_auctions(self) -> list[AuctionCard]:
        return build_auctions(await self._auction_objects())

    async def auction_detail(self, auction_id: str) -> AuctionDetailView | None:
        """Auction plus its most recent bids, newest first; None when the object is gone."""
        obj = await self._reader.get_object(auction_id)
        if obj is None:
            return None
        card = build_auction(obj, require_item=False)
        if card is None:
            return None
        events = await self._reader.query_events(
            self._config.event_type(EVT_BID_PLACED),
            descending=True,
            limit=BID_HISTORY_LIMIT,
        )
        history = build_bid_history(events, auction_id)
        return AuctionDetailView(auction=card, history=tuple(history))

    async def charities(self, verified_only: bool | None = None) -> list[CharityCard]:
        return await self._charity_cards(verified_only)

    async def admin_queue(self) -> AdminQueueView:
        """
        All charities (admin review and verified tabs) plus pending
        disbursement proposals, correlated against the charity batch read in
        this same pass.
        """
        charities = await self._charity_cards()
        proposal_objects = await self._objects_from_events(EVT_DISBURSEMENT_REQUESTED, "proposal_id")
        proposals = build_proposals(proposal_objects, charities, pending_only=True)
        return AdminQueueView(charities=tuple(charities), proposals=tuple(proposals))

    async def balance(self, address: str) -> int:
        return await self._reader.get_balance(address)

    async def is_admin(self, address: str) -> bool:
        """True when address owns the admin capability object."""
        owned = await self._reader.get_owned_objects(address, object_id=self._config.admin_cap_id)
        return any(o.object_id == self._config.admin_cap_id for o in owned)

    async def profile(self, address: str) -> ProfileView:
        balance = await self._reader.get_balance(address)
        auctions = build_auctions(await self._auction_objects())
        leading, listings = classify_profile(auctions, address)
        nft_objects = await self._reader.get_owned_objects(
            address, struct_type=self._config.struct_type(NFT_STRUCT)
        )
        return ProfileView(
            address=address,
            balance_mist=balance,
            leading_bids=tuple(leading),
            listings=tuple(listings),
            nfts=tuple(build_nfts(nft_objects)),
        )

    async def campaign(self, charity_id: str) -> CampaignView | None:
        obj = await self._reader.get_object(charity_id)
        if obj is None:
            return None
        return build_campaign(obj, await self._auction_events())

    async def registration(self, address: str) -> CharityCard | None:
        """The charity registered by this wallet, if any."""
        return find_registration(await self._charity_cards(), address)

    # ------------------------------------------------------------------
    # Subscription specs
    # ------------------------------------------------------------------

    def resource(self, kind: str, arg: str | None = None) -> ResourceSpec:
        """
        Resolve a resource kind to its key, fetcher and default interval.

        Kinds taking an argument: auction, campaign (object id); profile,
        balance, admin, registration (address).

        Raises:
            ValueError: unknown kind or missing argument.
        """
        no_arg = {
            "auctions": (live_auctions_key(), self.live_auctions, LIST_INTERVAL_SEC),
            "all_auctions": (all_auctions_key(), self.all_auctions, LIST_INTERVAL_SEC),
            "charities": (charities_key(), self.charities, LIST_INTERVAL_SEC),
            "proposals": (admin_queue_key(), self.admin_queue, LIST_INTERVAL_SEC),
        }
        if kind in no_arg:
            key, fetch, interval = no_arg[kind]
            return ResourceSpec(key=key, fetch=fetch, interval_sec=interval)

        with_arg: dict[str, tuple[Callable[[str], str], Callable[[str], Awaitable[Any]], float | None]] = {
            "auction": (auction_key, self.auction_detail, AUCTION_DETAIL_INTERVAL_SEC),
            "campaign": (campaign_key, self.campaign, LIST_INTERVAL_SEC),
            "profile": (profile_key, self.profile, LIST_INTERVAL_SEC),
            "balance": (balance_key, self.balance, BALANCE_INTERVAL_SEC),
            "admin": (admin_check_key, self.is_admin, ADMIN_CHECK_INTERVAL_SEC),
            "registration": (registration_key, self.registration, LIST_INTERVAL_SEC),
        }
        if kind not in with_arg:
            raise ValueError(f"Unknown resource kind: {kind}")
        if not arg:
            raise ValueError(f"Resource kind {kind} requires an id or address")
        make_key, fetch_one, interval = with_arg[kind]

        async def fetch() -> Any:
            return await fetch_one(arg)

        return ResourceSpec(key=make_key(arg), fetch=fetch, interval_sec=interval)
