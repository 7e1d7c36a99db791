"""HTTP surface without a database: auth, envelope and error mapping.

Service calls are patched, so no request reaches PostgreSQL.
"""

from decimal import Decimal
from unittest.mock import AsyncMock, patch

from httpx import AsyncClient

from src.mk_admin.api import router as admin_api
from src.mk_common.enums import UserRole
from src.mk_common.errors import InvalidOrderStateError, StorageFailureError
from src.mk_gateway.auth.jwt_handler import create_access_token
from src.mk_order.api import router as order_api
from src.mk_review.api import router as review_api
from src.mk_review.application.schemas import SellerRatingResponse
from src.mk_wallet.application.schemas import OrderLedgerResponse


def _auth(user_id: str = "buyer-1", role: UserRole = UserRole.USER) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id, role)}"}


async def test_missing_token_is_401(client: AsyncClient) -> None:
    resp = await client.post("/api/v1/orders/1001/confirm")
    assert resp.status_code == 401


async def test_garbage_token_is_401(client: AsyncClient) -> None:
    resp = await client.get("/api/v1/orders", headers={"Authorization": "Bearer nope"})
    assert resp.status_code == 401


async def test_admin_route_requires_admin_role(client: AsyncClient) -> None:
    resp = await client.get("/api/v1/admin/finance/summary", headers=_auth())
    assert resp.status_code == 403
    body = resp.json()
    assert body["code"] == 1006
    assert body["error_kind"] == "UNAUTHORIZED"


async def test_app_error_maps_to_envelope(client: AsyncClient) -> None:
    with patch.object(
        order_api._service,
        "confirm",
        AsyncMock(side_effect=InvalidOrderStateError("Order is already completed")),
    ):
        resp = await client.post(
            "/api/v1/orders/1001/confirm", headers={**_auth(), "X-Request-ID": "trace-42"}
        )
    assert resp.status_code == 409
    body = resp.json()
    assert body["code"] == 4006
    assert body["message"] == "Order is already completed"
    assert body["error_kind"] == "INVALID_STATE"
    assert body["data"] is None
    assert body["request_id"] == "trace-42"
    assert resp.headers["X-Request-ID"] == "trace-42"


async def test_storage_failure_is_503(client: AsyncClient) -> None:
    with patch.object(
        admin_api._service,
        "get_financial_summary",
        AsyncMock(side_effect=StorageFailureError()),
    ):
        resp = await client.get(
            "/api/v1/admin/finance/summary", headers=_auth("admin-1", UserRole.ADMIN)
        )
    assert resp.status_code == 503
    assert resp.json()["error_kind"] == "STORAGE_FAILURE"


async def test_order_ledger_route(client: AsyncClient) -> None:
    ledger = OrderLedgerResponse(order_id="1001", entries=[])
    with patch.object(admin_api._service, "get_order_ledger", AsyncMock(return_value=ledger)) as m:
        resp = await client.get(
            "/api/v1/admin/orders/1001/ledger", headers=_auth("admin-1", UserRole.ADMIN)
        )
    assert resp.status_code == 200
    assert resp.json()["data"] == {"order_id": "1001", "entries": []}
    assert m.await_args.args[1] == "1001"


async def test_order_ledger_requires_admin(client: AsyncClient) -> None:
    resp = await client.get("/api/v1/admin/orders/1001/ledger", headers=_auth())
    assert resp.status_code == 403


async def test_cancel_requires_reason(client: AsyncClient) -> None:
    resp = await client.post("/api/v1/orders/1001/cancel", json={}, headers=_auth("seller-1"))
    assert resp.status_code == 422


async def test_create_order_rejects_negative_price(client: AsyncClient) -> None:
    resp = await client.post(
        "/api/v1/orders",
        json={"seller_id": "s", "listing_id": "l", "unit_price": "-1", "quantity": 1},
        headers=_auth(),
    )
    assert resp.status_code == 422


async def test_money_serialised_as_strings(client: AsyncClient) -> None:
    rating = SellerRatingResponse(
        seller_id="seller-1", average_rating=Decimal("4.50"), total_reviews=2
    )
    with patch.object(review_api._service, "get_seller_rating", AsyncMock(return_value=rating)):
        resp = await client.get("/api/v1/sellers/seller-1/rating")
    assert resp.status_code == 200
    body = resp.json()
    assert body["code"] == 0
    assert body["data"]["average_rating"] == "4.50"


async def test_health(client: AsyncClient) -> None:
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
