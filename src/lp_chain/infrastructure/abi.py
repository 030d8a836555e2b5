"""JSON ABIs for the marketplace variants and ERC20 tokens.

Only the functions and events this client touches are declared.
"""

from typing import Any


def _param(name: str, type_: str, components: list[dict[str, Any]] | None = None) -> dict[str, Any]:
    param: dict[str, Any] = {"name": name, "type": type_}
    if components is not None:
        param["components"] = components
    return param


def _fn(
    name: str,
    inputs: list[tuple[str, str]] | list[dict[str, Any]],
    outputs: list[tuple[str, str]] | None = None,
    mutability: str = "nonpayable",
) -> dict[str, Any]:
    def expand(params):
        return [p if isinstance(p, dict) else _param(*p) for p in params]

    return {
        "type": "function",
        "name": name,
        "inputs": expand(inputs),
        "outputs": expand(outputs or []),
        "stateMutability": mutability,
    }


def _view(name: str, inputs, outputs) -> dict[str, Any]:
    return _fn(name, inputs, outputs, "view")


_METADATA_FIELDS = [
    ("projectWebsite", "string"),
    ("socialMediaLink", "string"),
    ("tokenImageUrl", "string"),
    ("telegramUrl", "string"),
    ("projectDescription", "string"),
]

REFERRAL_CODE_GENERATED_EVENT = {
    "type": "event",
    "name": "ReferralCodeGenerated",
    "anonymous": False,
    "inputs": [
        {"name": "listingId", "type": "uint256", "indexed": True},
        {"name": "referralCode", "type": "bytes32", "indexed": False},
        {"name": "referralAddress", "type": "address", "indexed": False},
    ],
}

_SHARED_FUNCTIONS = [
    _fn("claimRefund", [("listingId", "uint256")]),
    _fn("claimTokens", [("listingId", "uint256")]),
    _view("listingCount", [], [("", "uint256")]),
    _view("owner", [], [("", "address")]),
    _view("lockedTokens", [("listingId", "uint256"), ("buyer", "address")], [("", "uint256")]),
]

MARKETPLACE_ABI: list[dict[str, Any]] = [
    *_SHARED_FUNCTIONS,
    _fn("cancelListing", [("listingId", "uint256")]),
    _fn("withdrawUnsoldTokens", [("listingId", "uint256")]),
    _fn("claimPoolFunds", [("listingId", "uint256")]),
    _fn(
        "withdrawPaymentTokens",
        [("paymentToken", "address"), ("amountRaw", "uint256"), ("to", "address")],
    ),
    _fn("withdrawTokens", [("token", "address"), ("amountRaw", "uint256"), ("to", "address")]),
    _fn("buyToken", [("listingId", "uint256"), ("amountRaw", "uint256"), ("referralCode", "bytes32")]),
    _fn("generateBuyerReferralCode", [("listingId", "uint256")], [("", "bytes32")]),
    _view(
        "getBuyerInfo",
        [("listingId", "uint256"), ("buyer", "address")],
        [("totalPaidRaw", "uint256"), ("refunded", "bool"), ("timestamp", "uint256")],
    ),
    _view(
        "getListingMetadata",
        [("listingId", "uint256")],
        _METADATA_FIELDS,
    ),
    REFERRAL_CODE_GENERATED_EVENT,
    _fn(
        "listToken",
        [
            ("tokenAddress", "address"),
            ("amountRaw", "uint256"),
            ("pricePerShareRaw", "uint256"),
            ("paymentToken", "address"),
            ("referralActive", "bool"),
            ("referralPercent", "uint256"),
            _param("metadata", "tuple", [_param(n, t) for n, t in _METADATA_FIELDS]),
            ("durationInSeconds", "uint256"),
        ],
    ),
    _view(
        "getListingBasicDetails",
        [("listingId", "uint256")],
        [
            ("seller", "address"),
            ("tokenAddress", "address"),
            ("amount", "uint256"),
            ("soldAmount", "uint256"),
            ("pricePerShare", "uint256"),
            ("paymentToken", "address"),
        ],
    ),
    _view(
        "getListingAdditionalDetails",
        [("listingId", "uint256")],
        [
            ("active", "bool"),
            ("referralActive", "bool"),
            ("referralPercent", "uint256"),
            ("referralCode", "bytes32"),
            ("endTime", "uint256"),
            ("initialAmount", "uint256"),
            ("referralReserve", "uint256"),
        ],
    ),
]

BONDING_CURVE_ABI: list[dict[str, Any]] = [
    _view(
        "getListingDetails",
        [("listingId", "uint256")],
        [
            ("seller", "address"),
            ("tokenAddress", "address"),
            ("tradableAmount", "uint256"),
            ("soldAmount", "uint256"),
            ("priceInitial", "uint256"),
            ("currentPrice", "uint256"),
            ("fdmc", "uint256"),
            ("marketCap", "uint256"),
            ("paymentToken", "address"),
            ("active", "bool"),
            ("endTime", "uint256"),
        ],
    ),
    _view(
        "calculateBuyCost",
        [("listingId", "uint256"), ("amountRaw", "uint256")],
        [("", "uint256")],
    ),
    _view(
        "listings",
        [("listingId", "uint256")],
        [
            ("seller", "address"),
            ("tokenAddress", "address"),
            ("initialAmountRaw", "uint256"),
            ("reservedAmountRaw", "uint256"),
            ("tradableAmountRaw", "uint256"),
            ("soldAmountRaw", "uint256"),
            ("priceInitialRaw", "uint256"),
            ("paymentToken", "address"),
            ("paymentDecimals", "uint8"),
            ("active", "bool"),
            ("endTime", "uint256"),
            _param("metadata", "tuple", [_param(n, t) for n, t in _METADATA_FIELDS]),
        ],
    ),
    _view(
        "getBuyerInfo",
        [("listingId", "uint256"), ("buyer", "address")],
        [("totalPaidRaw", "uint256"), ("refunded", "bool"), ("timestamp", "uint256")],
    ),
    _fn("buyToken", [("listingId", "uint256"), ("amountRaw", "uint256")]),
    _fn("withdrawExpiredFundsAndTokens", [("listingId", "uint256")]),
    _fn(
        "listToken",
        [
            ("tokenAddress", "address"),
            ("amountRaw", "uint256"),
            ("priceInitialRaw", "uint256"),
            ("paymentToken", "address"),
            ("durationInSeconds", "uint256"),
            _param("metadata", "tuple", [_param(n, t) for n, t in _METADATA_FIELDS]),
        ],
    ),
    *_SHARED_FUNCTIONS,
]

ERC20_ABI: list[dict[str, Any]] = [
    _view("name", [], [("", "string")]),
    _view("symbol", [], [("", "string")]),
    _view("decimals", [], [("", "uint8")]),
    _view("totalSupply", [], [("", "uint256")]),
    _view("balanceOf", [("owner", "address")], [("", "uint256")]),
    _view("allowance", [("owner", "address"), ("spender", "address")], [("", "uint256")]),
    _fn("approve", [("spender", "address"), ("amount", "uint256")], [("", "bool")]),
]
