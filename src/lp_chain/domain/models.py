"""Typed request/response structs for every contract call.

Contract views return positional tuples; they are validated once here, at
the edge, and nothing past the gateway touches a raw tuple again.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any, Sequence

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator

from src.lp_common.address import is_address
from src.lp_common.errors import InvalidAddressError


def _check_address(value: str) -> str:
    if not is_address(value):
        raise InvalidAddressError(value)
    return value


Uint = Annotated[int, Field(ge=0)]
Address = Annotated[str, AfterValidator(_check_address)]

ZERO_BYTES32 = "0x" + "00" * 32


def bytes32_hex(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        if len(value) != 32:
            raise ValueError(f"bytes32 must be 32 bytes, got {len(value)}")
        return "0x" + bytes(value).hex()
    text = str(value)
    if not text.startswith("0x") or len(text) != 66:
        raise ValueError(f"Not a bytes32 hex string: {text!r}")
    return text.lower()


class ContractStruct(BaseModel):
    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_tuple(cls, values: Sequence[Any]) -> "ContractStruct":
        """Build from a view's positional output, in ABI output order."""
        names = list(cls.model_fields)
        if len(values) != len(names):
            raise ValueError(f"{cls.__name__} expects {len(names)} values, got {len(values)}")
        return cls(**dict(zip(names, values)))


class BasicDetails(ContractStruct):
    seller: Address
    token_address: Address
    amount: Uint
    sold_amount: Uint
    price_per_share: Uint
    payment_token: Address


class AdditionalDetails(ContractStruct):
    active: bool
    referral_active: bool
    referral_percent: int = Field(ge=0, le=100)
    referral_code: str
    end_time: Uint
    initial_amount: Uint
    referral_reserve: Uint

    @field_validator("referral_code", mode="before")
    @classmethod
    def _code_to_hex(cls, v: Any) -> str:
        return bytes32_hex(v)


class ListingMetadata(ContractStruct):
    project_website: str = ""
    social_media_link: str = ""
    token_image_url: str = ""
    telegram_url: str = ""
    project_description: str = ""


class BondingDetails(ContractStruct):
    seller: Address
    token_address: Address
    tradable_amount: Uint
    sold_amount: Uint
    price_initial: Uint
    current_price: Uint
    fdmc: Uint
    market_cap: Uint
    payment_token: Address
    active: bool
    end_time: Uint


class TokenInfo(ContractStruct):
    address: Address
    name: str
    symbol: str
    decimals: int = Field(ge=0, le=77)
    total_supply: Uint = 0


class BuyerInfo(ContractStruct):
    total_paid: Uint
    refunded: bool
    locked_tokens: Uint = 0


class ContractKind(str, Enum):
    MARKETPLACE = "MARKETPLACE"
    BONDING_CURVE = "BONDING_CURVE"
    ERC20 = "ERC20"


@dataclass(frozen=True)
class ContractCall:
    """A mutating call, fully resolved before gas estimation."""

    kind: ContractKind
    address: str
    function: str
    args: tuple[Any, ...] = ()

    def describe(self) -> str:
        return f"{self.function}({', '.join(str(a) for a in self.args)})"


@dataclass
class TxReceipt:
    tx_hash: str
    status: int
    block_number: int
    gas_used: int
    raw: Any = field(default=None, repr=False)

    @property
    def succeeded(self) -> bool:
        return self.status == 1


@dataclass(frozen=True)
class ReferralCodeEvent:
    listing_id: int
    code: str
    referrer: str
