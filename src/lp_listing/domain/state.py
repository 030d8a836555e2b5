"""ListingStateEngine: lifecycle phase and caller-specific actions.

Pure and deterministic: the same listing snapshot, caller and timestamp
always yield the same ListingState, so it is re-evaluated on every refresh
instead of being stored.

Phase priority:
    not active                                  -> CANCELLED
    expired, sold >= graduation threshold       -> CLAIMABLE
    expired, sold <  graduation threshold       -> REFUNDABLE while
                                                   now <= end + refund window,
                                                   else EXPIRED_NO_ACTION
    otherwise                                   -> ACTIVE

Seller and operator actions depend on expiry and sale progress, not on the
phase, so they are resolved separately.
"""

from dataclasses import dataclass
from decimal import Decimal

from config.settings import settings
from src.lp_common.enums import ActionKind, GraduationTier, Phase
from src.lp_listing.domain.models import Caller, Listing, ListingState
from src.lp_pricing.domain.pricing import percentage_sold


@dataclass(frozen=True)
class StateConfig:
    graduation_threshold_pct: Decimal = Decimal("85")
    master_threshold_pct: Decimal = Decimal("100")
    refund_window_seconds: int = 30 * 24 * 3600
    operator_withdraw_delay_seconds: int = 22 * 60

    def __post_init__(self) -> None:
        if not Decimal(0) <= self.graduation_threshold_pct <= self.master_threshold_pct <= Decimal(100):
            raise ValueError(
                "Thresholds must satisfy 0 <= graduation <= master <= 100, got "
                f"{self.graduation_threshold_pct} / {self.master_threshold_pct}"
            )
        if self.refund_window_seconds < 0 or self.operator_withdraw_delay_seconds < 0:
            raise ValueError("Delays must be non-negative")

    @classmethod
    def from_settings(cls) -> "StateConfig":
        return cls(
            graduation_threshold_pct=Decimal(settings.GRADUATION_THRESHOLD_PCT),
            master_threshold_pct=Decimal(settings.MASTER_THRESHOLD_PCT),
            refund_window_seconds=settings.REFUND_WINDOW_SECONDS,
            operator_withdraw_delay_seconds=settings.OPERATOR_WITHDRAW_DELAY_SECONDS,
        )


class ListingStateEngine:
    def __init__(self, config: StateConfig | None = None) -> None:
        self._config = config or StateConfig()

    @property
    def config(self) -> StateConfig:
        return self._config

    def percentage_sold(self, listing: Listing) -> Decimal:
        return percentage_sold(
            listing.sold_amount_raw,
            listing.initial_amount_raw,
            listing.referral_active,
            listing.referral_percent,
        )

    def tier(self, pct: Decimal) -> GraduationTier:
        if pct >= self._config.master_threshold_pct:
            return GraduationTier.MASTER
        if pct >= self._config.graduation_threshold_pct:
            return GraduationTier.GRADUATED
        return GraduationTier.NONE

    def phase(self, listing: Listing, now: int) -> Phase:
        return self._resolve_phase(listing, now, self.percentage_sold(listing))

    def _resolve_phase(self, listing: Listing, now: int, pct: Decimal) -> Phase:
        if not listing.active:
            return Phase.CANCELLED
        if now > listing.end_time:
            if pct >= self._config.graduation_threshold_pct:
                return Phase.CLAIMABLE
            if now <= listing.end_time + self._config.refund_window_seconds:
                return Phase.REFUNDABLE
            return Phase.EXPIRED_NO_ACTION
        return Phase.ACTIVE

    def classify(self, listing: Listing, now: int, caller: Caller | None = None) -> ListingState:
        caller = caller or Caller()
        pct = self.percentage_sold(listing)
        phase = self._resolve_phase(listing, now, pct)
        is_expired = now > listing.end_time
        graduated = pct >= self._config.graduation_threshold_pct
        refund_deadline = listing.end_time + self._config.refund_window_seconds
        operator_unlock = listing.end_time + self._config.operator_withdraw_delay_seconds

        actions: set[ActionKind] = set()
        position = caller.position or listing.buyer

        if phase == Phase.ACTIVE:
            if caller.connected and not listing.is_seller(caller.address):
                actions.add(ActionKind.BUY)
            if listing.referral_active and caller.connected:
                actions.add(ActionKind.GENERATE_REFERRAL)
        if phase == Phase.REFUNDABLE and position is not None and position.has_refundable_payment:
            actions.add(ActionKind.CLAIM_REFUND)
        if phase == Phase.CLAIMABLE and position is not None and position.has_claimable_tokens:
            actions.add(ActionKind.CLAIM_TOKENS)

        if listing.is_seller(caller.address):
            if phase == Phase.ACTIVE:
                actions.add(ActionKind.CANCEL)
            if is_expired and not graduated and listing.remaining_amount_raw > 0:
                actions.add(ActionKind.WITHDRAW_UNSOLD)
            if is_expired and graduated:
                actions.add(ActionKind.CLAIM_POOL_FUNDS)

        if caller.is_operator and is_expired and now > operator_unlock:
            actions.add(ActionKind.WITHDRAW_EXPIRED_FUNDS)
            actions.add(ActionKind.WITHDRAW_TOKENS)

        return ListingState(
            phase=phase,
            allowed_actions=frozenset(actions),
            tier=self.tier(pct),
            percentage_sold=pct,
            is_expired=is_expired,
            refund_deadline=refund_deadline,
            operator_unlock_time=operator_unlock,
            seconds_remaining=max(0, listing.end_time - now),
        )
