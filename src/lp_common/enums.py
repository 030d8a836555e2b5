"""Global enums: values are part of the API contract."""

from enum import Enum


class PricingModel(str, Enum):
    FIXED_PRICE = "FIXED_PRICE"
    BONDING_CURVE = "BONDING_CURVE"


class Phase(str, Enum):
    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"
    CLAIMABLE = "CLAIMABLE"
    REFUNDABLE = "REFUNDABLE"
    EXPIRED_NO_ACTION = "EXPIRED_NO_ACTION"


class GraduationTier(str, Enum):
    """Sale-progress badge shown next to a listing."""
    NONE = "NONE"
    GRADUATED = "GRADUATED"
    MASTER = "MASTER"


class ActionKind(str, Enum):
    # Buyer
    BUY = "BUY"
    CLAIM_REFUND = "CLAIM_REFUND"
    CLAIM_TOKENS = "CLAIM_TOKENS"
    GENERATE_REFERRAL = "GENERATE_REFERRAL"
    # Seller
    LIST = "LIST"
    CANCEL = "CANCEL"
    WITHDRAW_UNSOLD = "WITHDRAW_UNSOLD"
    CLAIM_POOL_FUNDS = "CLAIM_POOL_FUNDS"
    # Marketplace operator
    WITHDRAW_EXPIRED_FUNDS = "WITHDRAW_EXPIRED_FUNDS"
    WITHDRAW_TOKENS = "WITHDRAW_TOKENS"
    # Internal step of BUY / LIST
    APPROVE = "APPROVE"


class TxState(str, Enum):
    IDLE = "IDLE"
    APPROVING = "APPROVING"
    ESTIMATING_GAS = "ESTIMATING_GAS"
    SUBMITTED = "SUBMITTED"
    CONFIRMED = "CONFIRMED"
    FAILED = "FAILED"


class ListingCollection(str, Enum):
    ACTIVE = "active"
    TERMINAL = "terminal"


class SortKey(str, Enum):
    PRICE = "price"
    NAME = "name"
    PERCENTAGE_SOLD = "percentage_sold"
    END_TIME = "end_time"
