"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Input (amounts, addresses, listing parameters)
  2xxx: Balance / allowance
  3xxx: Listing
  4xxx: Transaction
  5xxx: Referral / storage
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Input ---

class InvalidAmountError(AppError):
    def __init__(self, value: object, detail: str) -> None:
        super().__init__(1001, f"Invalid amount {value!r}: {detail}", 422)


class InvalidAddressError(AppError):
    def __init__(self, value: object) -> None:
        super().__init__(1002, f"Invalid address: {value!r}", 422)


class InvalidListingParamsError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(1003, f"Invalid listing parameters: {detail}", 422)


class InvalidReferralCodeError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(1004, f"Invalid referral code: {detail}", 422)


# --- 2xxx: Balance / allowance ---

class InsufficientBalanceError(AppError):
    def __init__(self, required: str, available: str, symbol: str = "") -> None:
        unit = f" {symbol}" if symbol else ""
        super().__init__(
            2001,
            f"Insufficient balance: required {required}{unit}, available {available}{unit}",
            422,
        )


class InsufficientAllowanceError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(2002, f"Token approval failed: {detail}", 422)


# --- 3xxx: Listing ---

class ListingNotFoundError(AppError):
    def __init__(self, listing_id: int) -> None:
        super().__init__(3001, f"Listing not found: {listing_id}", 404)


class ListingFetchError(AppError):
    def __init__(self, listing_id: int, detail: str) -> None:
        self.listing_id = listing_id
        super().__init__(3002, f"Failed to load listing {listing_id}: {detail}", 502)


class ActionNotAllowedError(AppError):
    def __init__(self, action: str, listing_id: int, phase: str) -> None:
        super().__init__(
            3003, f"Action {action} not allowed on listing {listing_id} in phase {phase}", 422
        )


class NothingToWithdrawError(AppError):
    def __init__(self, what: str) -> None:
        super().__init__(3004, f"No {what} available to withdraw", 422)


# --- 4xxx: Transaction ---

class UserRejectedError(AppError):
    def __init__(self) -> None:
        super().__init__(4001, "Transaction rejected by user", 400)


class GasEstimationFailedError(AppError):
    def __init__(self, action: str, reason: str) -> None:
        self.reason = reason
        super().__init__(4002, f"Failed to estimate gas for {action}: {reason}", 422)


class ContractRevertedError(AppError):
    def __init__(self, action: str, reason: str) -> None:
        self.reason = reason
        super().__init__(4003, f"{action} reverted: {reason}", 422)


class StaleWalletAddressError(AppError):
    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(
            4004,
            f"Wallet address changed ({expected} -> {actual}). Please reload and try again.",
            409,
        )


class TransactionFailedError(AppError):
    def __init__(self, action: str, detail: str) -> None:
        super().__init__(4005, f"{action} failed: {detail}", 502)


class SignerUnavailableError(AppError):
    def __init__(self) -> None:
        super().__init__(4006, "No signer configured; connect a wallet first", 401)


class UnsupportedActionError(AppError):
    def __init__(self, action: str, context: str) -> None:
        super().__init__(4007, f"Action {action} is not supported {context}", 422)


# --- 5xxx: Referral / storage ---

class ReferralEventMissingError(AppError):
    def __init__(self, listing_id: int, tx_hash: str) -> None:
        super().__init__(
            5001,
            f"ReferralCodeGenerated event for listing {listing_id} not found in {tx_hash}",
            502,
        )


class StoragePersistError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(5002, f"Could not persist referral codes: {detail}", 507)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
