"""PricingEngine: pure functions over raw integer amounts.

Fixed-price listings store pricePerShare at 18-decimal precision regardless
of the payment token, so a cost computed in price precision must be scaled
down to the payment token's own decimals:

    cost = amount_raw * price_raw / 10**token_decimals      (18-dec units)
    cost_raw = cost / 10**(18 - payment_decimals)

For a 6-decimal stablecoin this divides by an extra 10**12; for an
18-decimal payment token it is the identity.

Bonding-curve listings are not re-derived client-side: current price, FDMC
and market cap come from the contract and are only scaled for display.
"""

from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal

from src.lp_common.units import rescale, to_display, validate_decimals

PRICE_DECIMALS = 18
PERCENT_CAP = Decimal(100)
PERCENT_STEP = Decimal("0.01")


@dataclass(frozen=True)
class MarketEconomics:
    """Display-ready economics, all denominated in the payment token."""

    current_price: str
    fdmc: str
    market_cap: str


def to_payment_units(cost_in_price_precision: int, payment_decimals: int) -> int:
    """Rescale an 18-decimal cost into the payment token's raw units."""
    validate_decimals(payment_decimals)
    return rescale(cost_in_price_precision, PRICE_DECIMALS, payment_decimals)


def fixed_price_cost(
    amount_raw: int,
    price_per_share_raw: int,
    payment_decimals: int,
    token_decimals: int = 18,
) -> int:
    """Total cost of ``amount_raw`` tokens, in payment-token raw units.

    10e18 tokens at 2e18 with a 6-decimal payment token -> 20_000_000.
    """
    if amount_raw < 0 or price_per_share_raw < 0:
        raise ValueError("Amounts and prices are unsigned")
    validate_decimals(token_decimals)
    raw_cost = amount_raw * price_per_share_raw // 10**token_decimals
    return to_payment_units(raw_cost, payment_decimals)


def price_display(price_raw: int) -> str:
    return to_display(price_raw, PRICE_DECIMALS)


def referral_reserve(initial_amount_raw: int, referral_active: bool, referral_percent: int) -> int:
    if not referral_active:
        return 0
    return initial_amount_raw * referral_percent // 100


def percentage_sold(
    sold_amount_raw: int,
    initial_amount_raw: int,
    referral_active: bool = False,
    referral_percent: int = 0,
) -> Decimal:
    """Sale progress in [0, 100], excluding the referral reserve.

    A listing whose whole inventory is reserved for referrals has nothing to
    sell and reports 0. The result is clamped to 100 against rounding drift.
    """
    available = initial_amount_raw - referral_reserve(
        initial_amount_raw, referral_active, referral_percent
    )
    if available <= 0:
        return Decimal(0)
    pct = Decimal(sold_amount_raw) * 100 / Decimal(available)
    return max(Decimal(0), min(pct, PERCENT_CAP))


def percentage_display(pct: Decimal) -> str:
    return str(pct.quantize(PERCENT_STEP, rounding=ROUND_DOWN))


def fixed_price_economics(
    price_per_share_raw: int,
    sold_amount_raw: int,
    total_supply_raw: int,
    token_decimals: int,
    payment_decimals: int,
) -> MarketEconomics:
    """FDMC prices the token's whole supply; market cap prices what has sold."""
    fdmc_raw = fixed_price_cost(total_supply_raw, price_per_share_raw, payment_decimals, token_decimals)
    mcap_raw = fixed_price_cost(sold_amount_raw, price_per_share_raw, payment_decimals, token_decimals)
    return MarketEconomics(
        current_price=price_display(price_per_share_raw),
        fdmc=to_display(fdmc_raw, payment_decimals),
        market_cap=to_display(mcap_raw, payment_decimals),
    )


def bonding_curve_economics(
    current_price_raw: int,
    fdmc_raw: int,
    market_cap_raw: int,
    payment_decimals: int,
) -> MarketEconomics:
    return MarketEconomics(
        current_price=to_display(current_price_raw, payment_decimals),
        fdmc=to_display(fdmc_raw, payment_decimals),
        market_cap=to_display(market_cap_raw, payment_decimals),
    )
