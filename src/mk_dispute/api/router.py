"""mk_dispute REST API."""
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_common.actor import Actor
from src.mk_common.database import get_db_session
from src.mk_common.response import ApiResponse, success_response
from src.mk_dispute.application.schemas import OpenDisputeRequest
from src.mk_dispute.application.service import DisputeApplicationService
from src.mk_gateway.auth.dependencies import get_current_actor, require_admin

router = APIRouter(tags=["disputes"])
_service = DisputeApplicationService()


def _respond(request: Request, data: object) -> ApiResponse:
    resp = success_response(data)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/orders/{order_id}/dispute", status_code=201)
async def open_dispute(
    order_id: str,
    body: OpenDisputeRequest,
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.open_dispute(db, order_id, body.reason, body.description, actor)
    return _respond(request, data)


@router.get("/orders/{order_id}/dispute")
async def get_dispute(
    order_id: str,
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    return _respond(request, await _service.get_dispute(db, order_id, actor))


@router.get("/admin/disputes")
async def list_open_disputes(
    _admin: Annotated[Actor, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    limit: int = Query(50, ge=1, le=200),
) -> ApiResponse:
    return _respond(request, await _service.list_open(db, limit))
