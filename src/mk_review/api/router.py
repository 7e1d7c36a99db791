"""mk_review REST API."""
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_common.actor import Actor
from src.mk_common.database import get_db_session
from src.mk_common.response import ApiResponse, success_response
from src.mk_gateway.auth.dependencies import get_current_actor
from src.mk_review.application.schemas import SubmitReviewRequest
from src.mk_review.application.service import ReviewApplicationService

router = APIRouter(tags=["reviews"])
_service = ReviewApplicationService()


def _respond(request: Request, data: object) -> ApiResponse:
    resp = success_response(data)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/orders/{order_id}/review")
async def submit_review(
    order_id: str,
    body: SubmitReviewRequest,
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.submit_review(db, order_id, body.rating, body.content, actor)
    return _respond(request, data)


@router.get("/orders/{order_id}/review")
async def get_review(
    order_id: str,
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    return _respond(request, await _service.get_review(db, order_id, actor))


@router.get("/sellers/{seller_id}/rating")
async def get_seller_rating(
    seller_id: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    """Public: average rating and review count for a seller."""
    return _respond(request, await _service.get_seller_rating(db, seller_id))
