"""Map provider / contract exceptions into the AppError taxonomy.

The revert reason, when the node returns one, is always carried into the
resulting message. Two reasons the contracts emit for expired windows get a
plain-language message in front of the reason.
"""

from web3.exceptions import ContractLogicError, TimeExhausted

from src.lp_common.enums import TxState
from src.lp_common.errors import (
    AppError,
    ContractRevertedError,
    GasEstimationFailedError,
    TransactionFailedError,
    UserRejectedError,
)

_REJECTION_MARKERS = ("user rejected", "user denied", "action_rejected")
_INSUFFICIENT_MARKER = "insufficient"

FRIENDLY_REVERTS = {
    "Claim period expired": "Claim period has expired.",
    "Refund period expired": "Refund period has expired.",
}

_REVERT_PREFIXES = ("execution reverted: ", "execution reverted", "VM Exception while processing transaction: revert ")


def revert_reason(exc: BaseException) -> str:
    """Best-effort extraction of the contract's reason string."""
    message = getattr(exc, "message", None) or str(exc)
    for prefix in _REVERT_PREFIXES:
        if message.startswith(prefix):
            message = message[len(prefix):]
            break
    return message.strip() or "execution reverted"


def friendly(reason: str) -> str | None:
    for marker, text in FRIENDLY_REVERTS.items():
        if marker in reason:
            return text
    return None


def classify_error(exc: BaseException, action: str, stage: TxState) -> AppError:
    if isinstance(exc, AppError):
        return exc

    text = str(exc)
    lowered = text.lower()
    if any(marker in lowered for marker in _REJECTION_MARKERS):
        return UserRejectedError()

    if isinstance(exc, ContractLogicError):
        reason = revert_reason(exc)
        if stage == TxState.ESTIMATING_GAS:
            err: AppError = GasEstimationFailedError(action, reason)
        else:
            err = ContractRevertedError(action, reason)
        nicer = friendly(reason)
        if nicer is not None:
            err.message = f"{nicer} ({err.message})"
        return err

    if isinstance(exc, TimeExhausted):
        return TransactionFailedError(action, f"no receipt yet: {text}")

    if _INSUFFICIENT_MARKER in lowered:
        return TransactionFailedError(action, text)

    if stage == TxState.ESTIMATING_GAS:
        return GasEstimationFailedError(action, text or type(exc).__name__)
    return TransactionFailedError(action, text or type(exc).__name__)
