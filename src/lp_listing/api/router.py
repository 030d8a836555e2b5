"""lp_listing REST endpoints.

GET  /listings                    active or terminal collection, searchable and sortable
GET  /listings/{listing_id}       one classified listing
POST /listings/refresh            run a guarded refresh now
POST /listings/refresh/pause      hold refreshes while a dialog needs a stable snapshot
POST /listings/refresh/resume     release a hold
"""

from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Path, Query, Request
from pydantic import BaseModel, Field

from src.container import Container, get_container
from src.lp_common.enums import ListingCollection, SortKey
from src.lp_common.response import ApiResponse, success_response
from src.lp_listing.application.schemas import RefreshResponse

router = APIRouter(prefix="/listings", tags=["listings"])


class HolderBody(BaseModel):
    holder: str = Field(..., min_length=1, max_length=128)


def _refresh_state(container: Container, refreshed: bool) -> RefreshResponse:
    scheduler = container.scheduler
    return RefreshResponse(
        refreshed=refreshed,
        paused=scheduler.paused,
        holders=sorted(scheduler.holders),
        fetched_at=container.listings.store.fetched_at,
    )


@router.get("")
async def list_listings(
    request: Request,
    container: Annotated[Container, Depends(get_container)],
    collection: ListingCollection = Query(ListingCollection.ACTIVE),
    search: str | None = Query(None, max_length=100),
    sort_by: SortKey | None = Query(None),
    order: Literal["asc", "desc"] = Query("asc"),
) -> ApiResponse:
    result = await container.listings.list_listings(
        collection, search, sort_by, descending=order == "desc"
    )
    return success_response(result.model_dump(), request)


@router.post("/refresh")
async def refresh_now(
    request: Request,
    container: Annotated[Container, Depends(get_container)],
) -> ApiResponse:
    refreshed = await container.scheduler.run_once()
    return success_response(_refresh_state(container, refreshed).model_dump(), request)


@router.post("/refresh/pause")
async def pause_refresh(
    body: HolderBody,
    request: Request,
    container: Annotated[Container, Depends(get_container)],
) -> ApiResponse:
    container.scheduler.pause(body.holder)
    return success_response(_refresh_state(container, False).model_dump(), request)


@router.post("/refresh/resume")
async def resume_refresh(
    body: HolderBody,
    request: Request,
    container: Annotated[Container, Depends(get_container)],
) -> ApiResponse:
    container.scheduler.resume(body.holder)
    return success_response(_refresh_state(container, False).model_dump(), request)


@router.get("/{listing_id}")
async def get_listing(
    request: Request,
    container: Annotated[Container, Depends(get_container)],
    listing_id: int = Path(..., ge=0),
) -> ApiResponse:
    result = await container.listings.get_listing(listing_id)
    return success_response(result.model_dump(), request)
