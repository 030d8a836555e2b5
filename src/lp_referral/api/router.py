"""lp_referral REST endpoints.

POST /listings/{listing_id}/referral  cached code, or generate one on-chain
GET  /referrals                       the signer's cached codes with share links
GET  /referrals/resolve?link=...      listing id and code carried by a share link
"""

from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, Path, Query, Request
from pydantic import BaseModel

from src.container import Container, get_container
from src.lp_common.enums import ActionKind
from src.lp_common.errors import AppError, InvalidReferralCodeError
from src.lp_common.response import ApiResponse, success_response
from src.lp_referral.application.service import ReferralOutcome
from src.lp_referral.domain.codes import parse_referral_link
from src.lp_tx.domain.models import ActionRequest

router = APIRouter(tags=["referrals"])


class ReferralBody(BaseModel):
    expected_wallet: str | None = None


class ReferralOut(BaseModel):
    listing_id: int
    code: str
    link: str
    cached: bool
    tx_hash: str | None = None

    @classmethod
    def from_outcome(cls, outcome: ReferralOutcome) -> "ReferralOut":
        return cls(
            listing_id=outcome.listing_id,
            code=outcome.code,
            link=outcome.link,
            cached=outcome.cached,
            tx_hash=outcome.tx_hash,
        )


@router.post("/listings/{listing_id}/referral")
async def get_or_generate_referral(
    request: Request,
    background: BackgroundTasks,
    container: Annotated[Container, Depends(get_container)],
    body: ReferralBody | None = None,
    listing_id: int = Path(..., ge=0),
) -> ApiResponse:
    result = await container.actions.dispatch(
        ActionRequest(
            kind=ActionKind.GENERATE_REFERRAL,
            listing_id=listing_id,
            expected_wallet=body.expected_wallet if body else None,
        )
    )
    if not result.success:
        raise AppError(result.error_code or 9002, result.message, result.http_status)
    if result.tx_hash:
        background.add_task(container.scheduler.run_once)
    out = ReferralOut(listing_id=listing_id, tx_hash=result.tx_hash, **result.data)
    return success_response(out.model_dump(), request)


@router.get("/referrals")
async def list_referrals(
    request: Request,
    container: Annotated[Container, Depends(get_container)],
) -> ApiResponse:
    wallet = await container.gateway.signer_address()
    outcomes = await container.ledger.cached_codes(wallet) if wallet else []
    return success_response([ReferralOut.from_outcome(o).model_dump() for o in outcomes], request)


@router.get("/referrals/resolve")
async def resolve_referral_link(
    request: Request,
    link: str = Query(..., min_length=1, max_length=2048),
) -> ApiResponse:
    parsed = parse_referral_link(link)
    if parsed is None:
        raise InvalidReferralCodeError("link carries no listingId/referral pair")
    listing_id, code = parsed
    return success_response({"listing_id": listing_id, "referral_code": code}, request)
