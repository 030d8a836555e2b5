"""Pydantic request/response schemas for the actions API."""

from pydantic import BaseModel, Field

from src.lp_common.enums import ActionKind
from src.lp_tx.domain.models import ActionRequest, ActionResult, ListTokenCommand


class ActionBody(BaseModel):
    kind: ActionKind
    amount: str | None = Field(None, description="Display units of the listed token (BUY)")
    referral_code: str | None = Field(None, description="0x-hex bytes32 or short text code (BUY)")
    expected_wallet: str | None = Field(
        None, description="Wallet the request was prepared for; rejected if the signer changed"
    )

    def to_domain(self, listing_id: int) -> ActionRequest:
        return ActionRequest(
            kind=self.kind,
            listing_id=listing_id,
            amount=self.amount,
            referral_code=self.referral_code,
            expected_wallet=self.expected_wallet,
        )


class ListTokenBody(BaseModel):
    token_address: str
    amount: str
    price_per_share: str
    payment_token: str
    duration_seconds: int = Field(..., ge=1)
    referral_active: bool = False
    referral_percent: int = Field(0, ge=0, le=100)
    project_website: str = ""
    social_media_link: str = ""
    token_image_url: str = ""
    telegram_url: str = ""
    project_description: str = ""
    expected_wallet: str | None = None

    def to_domain(self) -> ListTokenCommand:
        return ListTokenCommand(**self.model_dump())


class ActionResultOut(BaseModel):
    kind: str
    listing_id: int | None
    success: bool
    tx_hash: str | None
    error_code: int | None
    message: str
    data: dict

    @classmethod
    def from_domain(cls, result: ActionResult) -> "ActionResultOut":
        return cls(
            kind=result.kind.value,
            listing_id=result.listing_id,
            success=result.success,
            tx_hash=result.tx_hash,
            error_code=result.error_code,
            message=result.message,
            data=result.data,
        )
