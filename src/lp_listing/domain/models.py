"""Listing domain model: pure dataclasses, no web3 dependency."""
from dataclasses import dataclass, field
from decimal import Decimal

from src.lp_common.address import same_address
from src.lp_common.enums import ActionKind, GraduationTier, Phase, PricingModel
from src.lp_common.errors import ListingFetchError


@dataclass(frozen=True)
class TokenInfo:
    address: str
    name: str
    symbol: str
    decimals: int
    total_supply_raw: int = 0


@dataclass(frozen=True)
class ListingMetadata:
    project_website: str = ""
    social_media_link: str = ""
    token_image_url: str = ""
    telegram_url: str = ""
    project_description: str = ""


@dataclass(frozen=True)
class BuyerPosition:
    """The connected wallet's own stake in one listing."""
    total_paid_raw: int = 0
    refunded: bool = False
    locked_tokens_raw: int = 0

    @property
    def has_refundable_payment(self) -> bool:
        return self.total_paid_raw > 0 and not self.refunded

    @property
    def has_claimable_tokens(self) -> bool:
        return self.locked_tokens_raw > 0


@dataclass
class Listing:
    id: int
    model: PricingModel
    seller: str
    token: TokenInfo
    payment_token: TokenInfo
    # Raw amounts in the listed token's decimals
    initial_amount_raw: int
    sold_amount_raw: int
    active: bool
    end_time: int  # unix seconds
    # Fixed price (18-decimal precision)
    price_per_share_raw: int = 0
    # Bonding curve, as reported by the contract (payment-token decimals)
    price_initial_raw: int = 0
    current_price_raw: int = 0
    fdmc_raw: int = 0
    market_cap_raw: int = 0
    # Referral variant
    referral_active: bool = False
    referral_percent: int = 0
    referral_code: str | None = None
    metadata: ListingMetadata = field(default_factory=ListingMetadata)
    buyer: BuyerPosition | None = None
    # Contract-reported inventory still for sale; derived when not reported
    remaining_amount_raw: int | None = None

    def __post_init__(self) -> None:
        if self.initial_amount_raw < 0 or self.sold_amount_raw < 0:
            raise ValueError("Listing amounts are unsigned")
        if self.sold_amount_raw > self.initial_amount_raw:
            raise ValueError(
                f"Listing {self.id}: sold {self.sold_amount_raw} exceeds initial {self.initial_amount_raw}"
            )
        if not 0 <= self.referral_percent <= 100:
            raise ValueError(f"Listing {self.id}: referral percent {self.referral_percent} out of range")
        if self.remaining_amount_raw is None:
            self.remaining_amount_raw = self.initial_amount_raw - self.sold_amount_raw
        elif self.remaining_amount_raw < 0:
            raise ValueError(f"Listing {self.id}: negative remaining amount")

    def is_seller(self, address: str | None) -> bool:
        return same_address(self.seller, address)


@dataclass(frozen=True)
class Caller:
    """Whoever is asking which actions they may perform."""
    address: str | None = None
    is_operator: bool = False
    position: BuyerPosition | None = None

    @property
    def connected(self) -> bool:
        return bool(self.address)


@dataclass(frozen=True)
class ListingState:
    phase: Phase
    allowed_actions: frozenset[ActionKind]
    tier: GraduationTier
    percentage_sold: Decimal
    is_expired: bool
    refund_deadline: int
    operator_unlock_time: int
    seconds_remaining: int

    def allows(self, action: ActionKind) -> bool:
        return action in self.allowed_actions


@dataclass(frozen=True)
class ListingFetchResult:
    """One index of a scan: the listing, or why it could not be loaded."""
    listing_id: int
    listing: Listing | None = None
    error: ListingFetchError | None = None

    @property
    def ok(self) -> bool:
        return self.listing is not None


@dataclass(frozen=True)
class ScanResult:
    results: list[ListingFetchResult]
    caller: Caller
    fetched_at: int

    @property
    def listings(self) -> list[Listing]:
        return [r.listing for r in self.results if r.listing is not None]

    @property
    def failures(self) -> list[ListingFetchError]:
        return [r.error for r in self.results if r.error is not None]
