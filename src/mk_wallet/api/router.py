"""mk_wallet REST API — the caller's own wallet, plus an admin credit endpoint."""

from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_common.actor import Actor
from src.mk_common.database import get_db_session
from src.mk_common.response import ApiResponse, success_response
from src.mk_gateway.auth.dependencies import get_current_actor, require_admin
from src.mk_wallet.application.schemas import DepositRequest, WithdrawRequest
from src.mk_wallet.application.service import WalletApplicationService

router = APIRouter(prefix="/wallet", tags=["wallet"])

_service = WalletApplicationService()


def _respond(request: Request, data: object) -> ApiResponse:
    resp = success_response(data)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("", status_code=201)
async def open_wallet(
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    return _respond(request, await _service.open_wallet(db, actor.user_id))


@router.get("")
async def get_wallet(
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    return _respond(request, await _service.get_wallet(db, actor.user_id))


@router.post("/withdraw")
async def withdraw(
    body: WithdrawRequest,
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    return _respond(request, await _service.withdraw(db, actor.user_id, body.amount))


@router.get("/transactions")
async def list_transactions(
    actor: Annotated[Actor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    tx_type: str | None = Query(None, alias="type", description="Filter by WalletTransactionType"),
) -> ApiResponse:
    data = await _service.list_transactions(db, actor.user_id, cursor, limit, tx_type)
    return _respond(request, data)


@router.post("/{user_id}/deposit")
async def deposit(
    user_id: str,
    body: DepositRequest,
    _admin: Annotated[Actor, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    """Credit a user's balance after the payment gateway confirms a top-up."""
    amount: Decimal = body.amount
    return _respond(request, await _service.deposit(db, user_id, amount, body.reference_id))
