# src/mk_admin/api/router.py
"""Admin REST API — every route requires the ADMIN role."""
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_admin.application.service import AdminService
from src.mk_common.actor import Actor
from src.mk_common.database import get_db_session
from src.mk_common.response import ApiResponse, success_response
from src.mk_gateway.auth.dependencies import require_admin

router = APIRouter(prefix="/admin", tags=["admin"])
_service = AdminService()


class ConfirmPaymentRequest(BaseModel):
    delivery_hours: int | None = Field(None, ge=1, le=24 * 30)


class ForceCancelRequest(BaseModel):
    reason: str | None = Field(None, max_length=500)


def _respond(request: Request, data: object) -> ApiResponse:
    resp = success_response(data)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/orders/{order_id}/confirm-payment")
async def confirm_payment(
    order_id: str,
    body: ConfirmPaymentRequest,
    admin: Annotated[Actor, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.confirm_payment(db, order_id, admin, body.delivery_hours)
    return _respond(request, data)


@router.post("/orders/{order_id}/force-complete")
async def force_complete(
    order_id: str,
    admin: Annotated[Actor, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    return _respond(request, await _service.force_complete(db, order_id, admin))


@router.post("/orders/{order_id}/force-cancel-refund")
async def force_cancel_refund(
    order_id: str,
    body: ForceCancelRequest,
    admin: Annotated[Actor, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.force_cancel_refund(db, order_id, admin, body.reason)
    return _respond(request, data)


@router.get("/finance/summary")
async def financial_summary(
    _admin: Annotated[Actor, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    return _respond(request, await _service.get_financial_summary(db))


@router.get("/invariants")
async def verify_invariants(
    _admin: Annotated[Actor, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    return _respond(request, await _service.verify_ledger(db))


@router.get("/orders/{order_id}/ledger")
async def order_ledger(
    order_id: str,
    _admin: Annotated[Actor, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    """Wallet entries (holds, releases, refunds) written for one order."""
    return _respond(request, await _service.get_order_ledger(db, order_id))
