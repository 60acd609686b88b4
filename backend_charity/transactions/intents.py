"""
Typed transaction intents for the charity contract.

Each intent validates caller input before anything is signed, renders a
MoveCall against the DeploymentConfig it is given, and names the sync
resources it changes so the submitter can refresh exactly those.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, ClassVar, Union

from backend_charity.config.settings import DeploymentConfig
from backend_charity.core.exceptions import InputValidationError
from backend_charity.ledger.decoder import format_sui, sui_to_mist
from backend_charity.sync.resources import (
    admin_queue_key,
    all_auctions_key,
    auction_key,
    campaign_key,
    charities_key,
    live_auctions_key,
)
from backend_charity.view_models.models import AuctionCard

Amount = Union[Decimal, str, int, float]

# register_charity fee tier: percentage shown to users -> u8 sent on chain
FEE_TIERS = {3: 0, 5: 1}


@dataclass(frozen=True)
class ObjectArg:
    """Reference to an on-chain object by id."""

    object_id: str


@dataclass(frozen=True)
class PureArg:
    """BCS pure value; type_tag is one of u8, u64, string, address."""

    value: Any
    type_tag: str


@dataclass(frozen=True)
class GasCoinSplit:
    """A coin of amount_mist split off the gas coin in the same transaction."""

    amount_mist: int


MoveArg = Union[ObjectArg, PureArg, GasCoinSplit]


@dataclass(frozen=True)
class MoveCall:
    target: str
    """<package>::<module>::<function>"""
    arguments: tuple[MoveArg, ...] = field(default_factory=tuple)

    @property
    def function(self) -> str:
        return self.target.rsplit("::", 1)[-1]

    @property
    def coin_split(self) -> GasCoinSplit | None:
        for arg in self.arguments:
            if isinstance(arg, GasCoinSplit):
                return arg
        return None


def _require(value: str, what: str) -> str:
    value = (value or "").strip()
    if not value:
        raise InputValidationError(f"{what} is required")
    return value


def _positive_mist(amount: Amount, what: str) -> int:
    mist = sui_to_mist(amount)
    if mist <= 0:
        raise InputValidationError(f"{what} must be greater than 0")
    return mist


def check_bid(auction: AuctionCard, amount: Amount) -> int:
    """
    Validate a bid against the current auction state and return it in MIST.

    Raises:
        InputValidationError: auction ended, or bid not above the current highest bid.
    """
    if not auction.active:
        raise InputValidationError("Auction has ended")
    mist = sui_to_mist(amount)
    if mist <= auction.highest_bid_mist:
        raise InputValidationError(
            f"Bid must be higher than {format_sui(auction.highest_bid_mist)} SUI"
        )
    return mist


def auction_duration_ms(days: int = 0, hours: int = 0, minutes: int = 0) -> int:
    """Auction duration from the create form's day/hour/minute fields."""
    if min(days, hours, minutes) < 0:
        raise InputValidationError("Duration fields must not be negative")
    return ((days * 86400) + (hours * 3600) + (minutes * 60)) * 1000


class TransactionIntent:
    """Base class: subclasses set function and implement arguments()."""

    function: ClassVar[str]

    def validate(self) -> None:
        """Raise InputValidationError for unusable input."""

    def arguments(self, config: DeploymentConfig) -> list[MoveArg]:
        raise NotImplementedError

    def resource_keys(self) -> tuple[str, ...]:
        return ()

    def to_move_call(self, config: DeploymentConfig) -> MoveCall:
        self.validate()
        return MoveCall(target=config.move_target(self.function), arguments=tuple(self.arguments(config)))


@dataclass(frozen=True)
class PlaceBid(TransactionIntent):
    function: ClassVar[str] = "place_bid"

    auction_id: str
    amount: Amount
    """Bid in SUI as entered by the user."""

    def validate(self) -> None:
        _require(self.auction_id, "Auction id")
        _positive_mist(self.amount, "Bid amount")

    def arguments(self, config: DeploymentConfig) -> list[MoveArg]:
        return [
            ObjectArg(config.global_config_id),
            ObjectArg(self.auction_id),
            GasCoinSplit(sui_to_mist(self.amount)),
            ObjectArg(config.clock_id),
        ]

    def resource_keys(self) -> tuple[str, ...]:
        return (auction_key(self.auction_id), live_auctions_key(), all_auctions_key())


@dataclass(frozen=True)
class CreateAuction(TransactionIntent):
    function: ClassVar[str] = "create_auction"

    charity_id: str
    name: str
    image_url: str
    min_price: Amount
    description: str = ""
    days: int = 0
    hours: int = 0
    minutes: int = 0

    def validate(self) -> None:
        _require(self.charity_id, "Charity")
        _require(self.name, "Item name")
        _require(self.image_url, "Item image")
        if sui_to_mist(self.min_price) <= 0:
            raise InputValidationError("Reserve price must be greater than 0")
        if auction_duration_ms(self.days, self.hours, self.minutes) <= 0:
            raise InputValidationError("Auction duration must be greater than 0")

    def arguments(self, config: DeploymentConfig) -> list[MoveArg]:
        return [
            ObjectArg(self.charity_id),
            PureArg(self.name, "string"),
            PureArg(self.image_url, "string"),
            PureArg(self.description or "", "string"),
            PureArg(sui_to_mist(self.min_price), "u64"),
            PureArg(auction_duration_ms(self.days, self.hours, self.minutes), "u64"),
            ObjectArg(config.clock_id),
        ]

    def resource_keys(self) -> tuple[str, ...]:
        return (live_auctions_key(), all_auctions_key(), campaign_key(self.charity_id))


@dataclass(frozen=True)
class RegisterCharity(TransactionIntent):
    function: ClassVar[str] = "register_charity"

    wallet: str
    name: str
    description: str
    website: str
    images: tuple[str, ...]
    legal_doc: str
    """Content address of the legal document; audited off-chain, not sent to the contract."""
    fee_rate: int = 3

    def validate(self) -> None:
        _require(self.wallet, "Wallet address")
        _require(self.name, "Organization name")
        if not [i for i in self.images if i and i.strip()]:
            raise InputValidationError("At least 1 activity image is required")
        _require(self.legal_doc, "Legal documentation")
        if self.fee_rate not in FEE_TIERS:
            raise InputValidationError(f"Fee rate must be one of {sorted(FEE_TIERS)}")

    def arguments(self, config: DeploymentConfig) -> list[MoveArg]:
        return [
            PureArg(self.wallet, "address"),
            PureArg(self.name, "string"),
            PureArg(self.description, "string"),
            PureArg(self.website, "string"),
            PureArg(",".join(i.strip() for i in self.images if i and i.strip()), "string"),
            PureArg(FEE_TIERS[self.fee_rate], "u8"),
        ]

    def resource_keys(self) -> tuple[str, ...]:
        return (charities_key(), admin_queue_key())


@dataclass(frozen=True)
class CreateDisbursementRequest(TransactionIntent):
    function: ClassVar[str] = "create_disbursement_request"

    charity_id: str
    amount: Amount
    reason: str

    def validate(self) -> None:
        _require(self.charity_id, "Charity")
        _require(self.reason, "Reason")
        _positive_mist(self.amount, "Amount")

    def arguments(self, config: DeploymentConfig) -> list[MoveArg]:
        return [
            ObjectArg(self.charity_id),
            PureArg(sui_to_mist(self.amount), "u64"),
            PureArg(self.reason, "string"),
        ]

    def resource_keys(self) -> tuple[str, ...]:
        return (admin_queue_key(),)


@dataclass(frozen=True)
class ApproveDisbursement(TransactionIntent):
    function: ClassVar[str] = "admin_approve_disbursement"

    charity_id: str
    proposal_id: str

    def validate(self) -> None:
        _require(self.charity_id, "Charity")
        _require(self.proposal_id, "Proposal")

    def arguments(self, config: DeploymentConfig) -> list[MoveArg]:
        return [
            ObjectArg(config.admin_cap_id),
            ObjectArg(self.charity_id),
            ObjectArg(self.proposal_id),
        ]

    def resource_keys(self) -> tuple[str, ...]:
        return (admin_queue_key(), charities_key(), campaign_key(self.charity_id))


@dataclass(frozen=True)
class RejectDisbursement(TransactionIntent):
    function: ClassVar[str] = "admin_reject_disbursement"

    proposal_id: str
    reason: str

    def validate(self) -> None:
        _require(self.proposal_id, "Proposal")
        _require(self.reason, "Reason for rejection")

    def arguments(self, config: DeploymentConfig) -> list[MoveArg]:
        return [
            ObjectArg(config.admin_cap_id),
            ObjectArg(self.proposal_id),
            PureArg(self.reason, "string"),
        ]

    def resource_keys(self) -> tuple[str, ...]:
        return (admin_queue_key(),)


@dataclass(frozen=True)
class SettleAuction(TransactionIntent):
    function: ClassVar[str] = "settle_auction"

    auction_id: str
    charity_id: str

    def validate(self) -> None:
        _require(self.auction_id, "Auction id")
        _require(self.charity_id, "Charity")

    def arguments(self, config: DeploymentConfig) -> list[MoveArg]:
        return [
            ObjectArg(config.global_config_id),
            ObjectArg(self.charity_id),
            ObjectArg(self.auction_id),
            ObjectArg(config.clock_id),
        ]

    def resource_keys(self) -> tuple[str, ...]:
        return (
            auction_key(self.auction_id),
            live_auctions_key(),
            all_auctions_key(),
            charities_key(),
            campaign_key(self.charity_id),
        )


@dataclass(frozen=True)
class VerifyCharityAi(TransactionIntent):
    """Admin marks a charity as having passed the AI document audit."""

    function: ClassVar[str] = "verify_charity_ai"

    charity_id: str

    def validate(self) -> None:
        _require(self.charity_id, "Charity")

    def arguments(self, config: DeploymentConfig) -> list[MoveArg]:
        return [ObjectArg(config.admin_cap_id), ObjectArg(self.charity_id)]

    def resource_keys(self) -> tuple[str, ...]:
        return (admin_queue_key(), charities_key())


@dataclass(frozen=True)
class ApproveCharityFinal(VerifyCharityAi):
    function: ClassVar[str] = "approve_charity_final"


@dataclass(frozen=True)
class DisburseFunds(TransactionIntent):
    function: ClassVar[str] = "disburse_funds"

    charity_id: str
    amount_mist: int
    """Raw vault amount; the disbursement page sends the whole vault."""
    beneficiary: str

    def validate(self) -> None:
        _require(self.charity_id, "Charity")
        _require(self.beneficiary, "Beneficiary address")
        if self.amount_mist <= 0:
            raise InputValidationError("Vault is empty")

    def arguments(self, config: DeploymentConfig) -> list[MoveArg]:
        return [
            ObjectArg(config.global_config_id),
            ObjectArg(self.charity_id),
            PureArg(int(self.amount_mist), "u64"),
            PureArg(self.beneficiary, "address"),
        ]

    def resource_keys(self) -> tuple[str, ...]:
        return (charities_key(), campaign_key(self.charity_id))
