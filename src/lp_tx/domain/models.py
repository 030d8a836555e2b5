"""Transaction domain model: ephemeral, never persisted."""
import logging
from dataclasses import dataclass, field

from src.lp_common.enums import ActionKind, TxState

logger = logging.getLogger(__name__)

# Legal state transitions of one mutating call
_TRANSITIONS: dict[TxState, frozenset[TxState]] = {
    TxState.IDLE: frozenset({TxState.APPROVING, TxState.ESTIMATING_GAS, TxState.FAILED}),
    TxState.APPROVING: frozenset({TxState.ESTIMATING_GAS, TxState.FAILED}),
    TxState.ESTIMATING_GAS: frozenset({TxState.SUBMITTED, TxState.FAILED}),
    TxState.SUBMITTED: frozenset({TxState.CONFIRMED, TxState.FAILED}),
    TxState.CONFIRMED: frozenset(),
    TxState.FAILED: frozenset(),
}


@dataclass
class PendingTransaction:
    kind: ActionKind
    listing_id: int | None
    amount_raw: int = 0
    gas_estimate: int = 0
    gas_limit: int = 0
    state: TxState = TxState.IDLE
    tx_hash: str | None = None
    history: list[TxState] = field(default_factory=lambda: [TxState.IDLE])

    def transition(self, new_state: TxState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal transaction transition {self.state} -> {new_state}")
        logger.info(
            "tx %s listing=%s: %s -> %s", self.kind.value, self.listing_id, self.state.value, new_state.value
        )
        self.state = new_state
        self.history.append(new_state)

    @property
    def settled(self) -> bool:
        return self.state in (TxState.CONFIRMED, TxState.FAILED)


@dataclass(frozen=True)
class ApprovalRequirement:
    """The main call pulls ``amount_raw`` of ``token`` from the signer."""
    token: str
    spender: str
    amount_raw: int
    symbol: str = ""
    decimals: int = 18


@dataclass(frozen=True)
class ActionRequest:
    kind: ActionKind
    listing_id: int
    amount: str | None = None  # display units of the listed token
    referral_code: str | None = None
    expected_wallet: str | None = None


@dataclass(frozen=True)
class ActionResult:
    """Definite outcome of one dispatched action; never a "maybe"."""
    kind: ActionKind
    listing_id: int | None
    success: bool
    tx_hash: str | None = None
    error_code: int | None = None
    message: str = ""
    data: dict = field(default_factory=dict)
    http_status: int = 200

    @classmethod
    def ok(cls, kind: ActionKind, listing_id: int | None, tx_hash: str, message: str, **data) -> "ActionResult":
        return cls(kind=kind, listing_id=listing_id, success=True, tx_hash=tx_hash, message=message, data=data)

    @classmethod
    def failed(
        cls, kind: ActionKind, listing_id: int | None, code: int, message: str, http_status: int = 422
    ) -> "ActionResult":
        return cls(
            kind=kind,
            listing_id=listing_id,
            success=False,
            error_code=code,
            message=message,
            http_status=http_status,
        )


@dataclass(frozen=True)
class ListTokenCommand:
    """Final step of the listing-creation flow."""
    token_address: str
    amount: str  # display units of the listed token
    price_per_share: str  # fixed price: 18-decimal precision; bonding curve: initial price in payment units
    payment_token: str
    duration_seconds: int
    referral_active: bool = False
    referral_percent: int = 0
    project_website: str = ""
    social_media_link: str = ""
    token_image_url: str = ""
    telegram_url: str = ""
    project_description: str = ""
    expected_wallet: str | None = None

    def metadata_tuple(self) -> tuple[str, str, str, str, str]:
        return (
            self.project_website,
            self.social_media_link,
            self.token_image_url,
            self.telegram_url,
            self.project_description,
        )
