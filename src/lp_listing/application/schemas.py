"""Pydantic view models for the listings API.

Every amount is exposed twice: a display string computed by the pricing
engine and the raw integer as a decimal string (JSON numbers cannot carry
uint256 safely).
"""

from pydantic import BaseModel

from src.lp_common.datetime_utils import ts_to_iso
from src.lp_common.enums import PricingModel
from src.lp_common.units import to_display
from src.lp_listing.application.store import ClassifiedListing
from src.lp_listing.domain.models import BuyerPosition, Listing, TokenInfo
from src.lp_pricing.domain.pricing import (
    MarketEconomics,
    bonding_curve_economics,
    fixed_price_economics,
    percentage_display,
)


class TokenOut(BaseModel):
    address: str
    name: str
    symbol: str
    decimals: int

    @classmethod
    def from_domain(cls, token: TokenInfo) -> "TokenOut":
        return cls(address=token.address, name=token.name, symbol=token.symbol, decimals=token.decimals)


class BuyerPositionOut(BaseModel):
    total_paid: str
    total_paid_raw: str
    refunded: bool
    locked_tokens: str
    locked_tokens_raw: str

    @classmethod
    def from_domain(cls, position: BuyerPosition, listing: Listing) -> "BuyerPositionOut":
        return cls(
            total_paid=to_display(position.total_paid_raw, listing.payment_token.decimals),
            total_paid_raw=str(position.total_paid_raw),
            refunded=position.refunded,
            locked_tokens=to_display(position.locked_tokens_raw, listing.token.decimals),
            locked_tokens_raw=str(position.locked_tokens_raw),
        )


def economics_of(listing: Listing) -> MarketEconomics:
    if listing.model == PricingModel.BONDING_CURVE:
        return bonding_curve_economics(
            listing.current_price_raw,
            listing.fdmc_raw,
            listing.market_cap_raw,
            listing.payment_token.decimals,
        )
    return fixed_price_economics(
        listing.price_per_share_raw,
        listing.sold_amount_raw,
        listing.token.total_supply_raw,
        listing.token.decimals,
        listing.payment_token.decimals,
    )


class ListingView(BaseModel):
    id: int
    model: str
    seller: str
    token: TokenOut
    payment_token: TokenOut
    initial_amount: str
    initial_amount_raw: str
    sold_amount: str
    sold_amount_raw: str
    remaining_amount: str
    remaining_amount_raw: str
    price: str
    price_raw: str
    fdmc: str
    market_cap: str
    percentage_sold: str
    tier: str
    phase: str
    allowed_actions: list[str]
    active: bool
    end_time: int
    end_time_iso: str
    seconds_remaining: int
    refund_deadline: int
    referral_active: bool
    referral_percent: int
    referral_code: str | None
    metadata: dict[str, str]
    buyer: BuyerPositionOut | None = None

    @classmethod
    def from_entry(cls, entry: ClassifiedListing) -> "ListingView":
        listing, state = entry.listing, entry.state
        decimals = listing.token.decimals
        remaining = listing.remaining_amount_raw or 0
        economics = economics_of(listing)
        price_raw = (
            listing.current_price_raw
            if listing.model == PricingModel.BONDING_CURVE
            else listing.price_per_share_raw
        )
        return cls(
            id=listing.id,
            model=listing.model.value,
            seller=listing.seller,
            token=TokenOut.from_domain(listing.token),
            payment_token=TokenOut.from_domain(listing.payment_token),
            initial_amount=to_display(listing.initial_amount_raw, decimals),
            initial_amount_raw=str(listing.initial_amount_raw),
            sold_amount=to_display(listing.sold_amount_raw, decimals),
            sold_amount_raw=str(listing.sold_amount_raw),
            remaining_amount=to_display(remaining, decimals),
            remaining_amount_raw=str(remaining),
            price=economics.current_price,
            price_raw=str(price_raw),
            fdmc=economics.fdmc,
            market_cap=economics.market_cap,
            percentage_sold=percentage_display(state.percentage_sold),
            tier=state.tier.value,
            phase=state.phase.value,
            allowed_actions=sorted(a.value for a in state.allowed_actions),
            active=listing.active,
            end_time=listing.end_time,
            end_time_iso=ts_to_iso(listing.end_time),
            seconds_remaining=state.seconds_remaining,
            refund_deadline=state.refund_deadline,
            referral_active=listing.referral_active,
            referral_percent=listing.referral_percent,
            referral_code=listing.referral_code,
            metadata={
                "project_website": listing.metadata.project_website,
                "social_media_link": listing.metadata.social_media_link,
                "token_image_url": listing.metadata.token_image_url,
                "telegram_url": listing.metadata.telegram_url,
                "project_description": listing.metadata.project_description,
            },
            buyer=(
                BuyerPositionOut.from_domain(listing.buyer, listing) if listing.buyer else None
            ),
        )


class FetchFailureOut(BaseModel):
    listing_id: int
    message: str


class ListingListResponse(BaseModel):
    collection: str
    items: list[ListingView]
    total: int
    fetched_at: int | None
    failures: list[FetchFailureOut]


class RefreshResponse(BaseModel):
    refreshed: bool
    paused: bool
    holders: list[str]
    fetched_at: int | None
