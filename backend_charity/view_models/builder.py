"""
View-model builder: raw ledger objects and events to UI shapes.

Responsibilities:
- Decode every field through the ledger decoder; nothing downstream sees
  byte wrappers or u64 strings.
- Skip individual malformed entries (e.g. an auction without its NFT)
  without failing the batch.
- Correlate proposals with the charity batch fetched in the same pass,
  falling back to a fixed display name when the charity is absent.
- Classify "mine" vs "others'" by case-insensitive address comparison.
"""

from __future__ import annotations

from typing import Any, Iterable, Sequence

from backend_charity.ledger.decoder import decode_text, parse_u64, resolve_content_url
from backend_charity.ledger.models import LedgerEvent, LedgerObject
from backend_charity.logging import get_logger
from backend_charity.view_models.models import (
    AuctionCard,
    BidHistoryEntry,
    CampaignView,
    CharityCard,
    NFTCard,
    ProposalCard,
    ProposalStatus,
    same_address,
)

logger = get_logger(__name__)

DEFAULT_ITEM_NAME = "Charity Item"
DEFAULT_ITEM_DESCRIPTION = (
    "This item is being auctioned to raise funds for verified charitable causes."
)
DEFAULT_NFT_NAME = "Charity NFT"
UNKNOWN_CHARITY_NAME = "Anonymous Org"
BID_HISTORY_LIMIT = 20


def _flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() == "true"


def _amount(value: Any) -> int:
    """u64 amount, or a Balance<SUI> rendered as {"value": ...} / {"fields": {"value": ...}}."""
    if isinstance(value, dict):
        inner = value.get("fields") if isinstance(value.get("fields"), dict) else value
        return parse_u64(inner.get("value"))
    return parse_u64(value)


def _nested_fields(value: Any) -> dict[str, Any] | None:
    if isinstance(value, dict) and isinstance(value.get("fields"), dict):
        return value["fields"]
    return None


def unique_ids(events: Iterable[LedgerEvent], key: str) -> list[str]:
    """Ordered, de-duplicated values of parsed_json[key] across events."""
    seen: set[str] = set()
    out: list[str] = []
    for ev in events:
        value = ev.parsed_json.get(key)
        if not value or value in seen:
            continue
        seen.add(value)
        out.append(value)
    return out


# ---------------------------------------------------------------------------
# Auctions
# ---------------------------------------------------------------------------


def build_auction(obj: LedgerObject, *, require_item: bool = True) -> AuctionCard | None:
    """
    Build one auction card; None when the object has no content, or no
    wrapped NFT while require_item is set.
    """
    fields = obj.fields
    if not fields:
        return None
    nft = _nested_fields(fields.get("nft"))
    if nft is None:
        if require_item:
            logger.debug("view_model_auction_skipped", auction_id=obj.object_id, reason="missing_nft")
            return None
        nft = {}
    return AuctionCard(
        auction_id=obj.object_id,
        name=decode_text(nft.get("name")) or DEFAULT_ITEM_NAME,
        description=decode_text(nft.get("description")) or DEFAULT_ITEM_DESCRIPTION,
        image_url=resolve_content_url(nft.get("url")),
        highest_bid_mist=parse_u64(fields.get("highest_bid")),
        reserve_price_mist=parse_u64(fields.get("min_reserve_price")),
        end_time_ms=parse_u64(fields.get("end_time")),
        active=_flag(fields.get("active")),
        seller=decode_text(fields.get("seller")),
        highest_bidder=decode_text(fields.get("highest_bidder")),
        charity_id=decode_text(fields.get("charity_id")),
    )


def build_auctions(objects: Iterable[LedgerObject], *, live_only: bool = False) -> list[AuctionCard]:
    """Auction cards for a batch, skipping malformed entries."""
    out: list[AuctionCard] = []
    for obj in objects:
        card = build_auction(obj)
        if card is None:
            continue
        if live_only and not card.active:
            continue
        out.append(card)
    return out


def filter_auctions(
    auctions: Iterable[AuctionCard],
    *,
    query: str = "",
    owner: str | None = None,
) -> list[AuctionCard]:
    """Name search plus optional "mine" filter (seller == owner)."""
    needle = query.strip().lower()
    return [
        a for a in auctions
        if needle in a.name.lower() and (owner is None or same_address(a.seller, owner))
    ]


def classify_profile(
    auctions: Iterable[AuctionCard],
    address: str,
) -> tuple[list[AuctionCard], list[AuctionCard]]:
    """
    Split auctions into (leading, listings) for one wallet.

    leading: LIVE auctions where address is the highest bidder.
    listings: auctions address is selling, any status.
    """
    leading: list[AuctionCard] = []
    listings: list[AuctionCard] = []
    for a in auctions:
        if same_address(a.seller, address):
            listings.append(a)
        if a.active and same_address(a.highest_bidder, address):
            leading.append(a)
    return leading, listings


# ---------------------------------------------------------------------------
# Bids
# ---------------------------------------------------------------------------


def build_bid_history(
    events: Iterable[LedgerEvent],
    auction_id: str,
    *,
    limit: int = BID_HISTORY_LIMIT,
) -> list[BidHistoryEntry]:
    """
    BidPlaced events for one auction, in reader order (newest first when the
    reader was asked for descending order), capped at limit entries.
    """
    out: list[BidHistoryEntry] = []
    for ev in events:
        data = ev.parsed_json
        if data.get("auction_id") != auction_id:
            continue
        out.append(
            BidHistoryEntry(
                bidder=decode_text(data.get("bidder")),
                amount_mist=parse_u64(data.get("amount")),
                timestamp_ms=ev.timestamp_ms,
            )
        )
        if len(out) >= limit:
            break
    return out


# ---------------------------------------------------------------------------
# Charities
# ---------------------------------------------------------------------------


def build_charity(obj: LedgerObject) -> CharityCard | None:
    f = obj.fields
    if not f:
        return None
    logo = f.get("logo") or f.get("image_url") or f.get("url")
    return CharityCard(
        charity_id=obj.object_id,
        name=decode_text(f.get("name")),
        description=decode_text(f.get("description")),
        website=decode_text(f.get("website")),
        logo_url=resolve_content_url(logo),
        ai_verified=_flag(f.get("ai_verified")),
        is_verified=_flag(f.get("is_verified")),
        vault_mist=_amount(f.get("vault")),
        impact_level=parse_u64(f.get("impact_level")),
        wallet=decode_text(f.get("wallet")),
    )


def build_charities(
    objects: Iterable[LedgerObject],
    *,
    verified_only: bool | None = None,
) -> list[CharityCard]:
    """
    Charity cards for a batch. verified_only=True keeps verified charities
    (auction creation), False keeps unverified ones, None keeps all.
    """
    out: list[CharityCard] = []
    for obj in objects:
        card = build_charity(obj)
        if card is None:
            continue
        if verified_only is not None and card.is_verified != verified_only:
            continue
        out.append(card)
    return out


def filter_charities(
    charities: Iterable[CharityCard],
    *,
    tab: str = "pending",
    query: str = "",
) -> list[CharityCard]:
    """Admin tabs: "pending" (not yet verified) or "verified", plus name search."""
    needle = query.strip().lower()
    want_verified = tab == "verified"
    return [
        c for c in charities
        if c.is_verified == want_verified and needle in c.name.lower()
    ]


def find_registration(charities: Iterable[CharityCard], address: str | None) -> CharityCard | None:
    """The charity registered with wallet == address, if any."""
    for c in charities:
        if same_address(c.wallet, address):
            return c
    return None


def count_campaign_auctions(events: Iterable[LedgerEvent], charity_id: str) -> int:
    return sum(
        1 for ev in events
        if charity_id in (ev.parsed_json.get("charity_id"), ev.parsed_json.get("campaign_id"))
    )


def build_campaign(obj: LedgerObject, auction_events: Iterable[LedgerEvent]) -> CampaignView | None:
    card = build_charity(obj)
    if card is None:
        return None
    f = obj.fields or {}
    recipient = f.get("creator") or f.get("admin") or f.get("owner") or card.wallet or "N/A"
    return CampaignView(
        charity=card,
        recipient_address=decode_text(recipient),
        auction_count=count_campaign_auctions(auction_events, obj.object_id),
    )


# ---------------------------------------------------------------------------
# Disbursement proposals
# ---------------------------------------------------------------------------


def build_proposals(
    objects: Iterable[LedgerObject],
    charities: Sequence[CharityCard],
    *,
    pending_only: bool = True,
) -> list[ProposalCard]:
    """
    Proposal cards correlated against charities from the same sync pass.

    A proposal whose charity is not in the batch is kept with
    UNKNOWN_CHARITY_NAME rather than dropped.
    """
    names = {c.charity_id: c.name for c in charities}
    out: list[ProposalCard] = []
    for obj in objects:
        f = obj.fields
        if not f:
            continue
        charity_id = decode_text(f.get("charity_id"))
        card = ProposalCard(
            proposal_id=obj.object_id,
            charity_id=charity_id,
            charity_name=names.get(charity_id) or UNKNOWN_CHARITY_NAME,
            amount_mist=parse_u64(f.get("amount")),
            description=decode_text(f.get("description")),
            status=parse_u64(f.get("status")),
            admin_feedback=decode_text(f.get("admin_feedback")),
        )
        if pending_only and card.status != ProposalStatus.PENDING:
            continue
        out.append(card)
    return out


# ---------------------------------------------------------------------------
# NFTs
# ---------------------------------------------------------------------------


def build_nfts(objects: Iterable[LedgerObject]) -> list[NFTCard]:
    out: list[NFTCard] = []
    for obj in objects:
        f = obj.fields or {}
        out.append(
            NFTCard(
                nft_id=obj.object_id,
                name=decode_text(f.get("name")) or DEFAULT_NFT_NAME,
                image_url=resolve_content_url(f.get("url")),
            )
        )
    return out
