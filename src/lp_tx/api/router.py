"""lp_tx REST endpoints.

POST /listings                          list a token
POST /listings/{listing_id}/actions     dispatch one action on a listing

Both always answer with an ActionResult: code 0 on success, otherwise the
AppError code and message, with that error's HTTP status. A successful
action schedules a guarded listing refresh after the response.
"""

from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, Path, Request
from fastapi.responses import JSONResponse

from src.container import Container, get_container
from src.lp_common.response import ApiResponse, success_response
from src.lp_tx.application.schemas import ActionBody, ActionResultOut, ListTokenBody
from src.lp_tx.domain.models import ActionResult

router = APIRouter(prefix="/listings", tags=["actions"])


def _result_response(
    result: ActionResult,
    request: Request,
    container: Container,
    background: BackgroundTasks,
) -> ApiResponse | JSONResponse:
    out = ActionResultOut.from_domain(result).model_dump()
    if result.success:
        # Confirmed on chain; re-read listings once the response is sent
        background.add_task(container.scheduler.run_once)
        return success_response(out, request)
    resp = ApiResponse(code=result.error_code or 9002, message=result.message, data=out)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return JSONResponse(status_code=result.http_status, content=resp.model_dump())


@router.post("")
async def list_token(
    body: ListTokenBody,
    request: Request,
    background: BackgroundTasks,
    container: Annotated[Container, Depends(get_container)],
) -> ApiResponse:
    result = await container.actions.list_token(body.to_domain())
    return _result_response(result, request, container, background)


@router.post("/{listing_id}/actions")
async def dispatch_action(
    body: ActionBody,
    request: Request,
    background: BackgroundTasks,
    container: Annotated[Container, Depends(get_container)],
    listing_id: int = Path(..., ge=0),
) -> ApiResponse:
    result = await container.actions.dispatch(body.to_domain(listing_id))
    return _result_response(result, request, container, background)
