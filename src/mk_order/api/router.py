"""mk_order REST API — order creation, buyer/seller transitions and reads.

Admin force operations and payment confirmation live under /admin (mk_admin);
disputes under mk_dispute; reviews under mk_review.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_common.actor import Actor
from src.mk_common.database import get_db_session
from src.mk_common.response import ApiResponse, success_response
from src.mk_gateway.auth.dependencies import get_current_actor
from src.mk_order.application.schemas import CancelOrderRequest, CreateOrderRequest
from src.mk_order.application.service import OrderApplicationService

router = APIRouter(prefix="/orders", tags=["orders"])

_service = OrderApplicationService()


def _respond(request: Request, data: object) -> ApiResponse:
    resp = success_response(data)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("", status_code=201)
async def create_order(
    body: CreateOrderRequest,
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    return _respond(request, await _service.create_order(db, actor, body))


@router.get("")
async def list_orders(
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    role: str = Query("buyer", pattern="^(buyer|seller)$", description="List as buyer or seller"),
    status: str | None = Query(None, description="Filter by order status"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    cursor: str | None = Query(None, description="Pagination cursor (order ID)"),
) -> ApiResponse:
    data = await _service.list_orders(db, actor, role == "seller", status, limit, cursor)
    return _respond(request, data)


@router.get("/{order_id}")
async def get_order(
    order_id: str,
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    return _respond(request, await _service.get_order(db, order_id, actor))


@router.get("/{order_id}/timeline")
async def get_timeline(
    order_id: str,
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    return _respond(request, await _service.get_timeline(db, order_id, actor))


@router.post("/{order_id}/deliver")
async def mark_delivered(
    order_id: str,
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    return _respond(request, await _service.mark_delivered(db, order_id, actor))


@router.post("/{order_id}/confirm")
async def confirm_order(
    order_id: str,
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    return _respond(request, await _service.confirm(db, order_id, actor))


@router.post("/{order_id}/cancel")
async def cancel_order(
    order_id: str,
    body: CancelOrderRequest,
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    return _respond(request, await _service.cancel(db, order_id, actor, body.reason))
