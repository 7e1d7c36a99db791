"""ORM table definitions vs. the column lists the raw-SQL repositories select.

The ORM classes are the reviewable DDL reference; a column renamed in one
place and not the other fails here instead of at runtime.
"""

import pytest

from src.mk_dispute.infrastructure import persistence as dispute_sql
from src.mk_dispute.infrastructure.db_models import DisputeORM
from src.mk_order.infrastructure import persistence as order_sql
from src.mk_order.infrastructure.db_models import OrderORM, OrderTimelineORM
from src.mk_review.infrastructure import persistence as review_sql
from src.mk_review.infrastructure.db_models import ReviewORM, SellerProfileORM
from src.mk_wallet.infrastructure import persistence as wallet_sql
from src.mk_wallet.infrastructure.db_models import WalletORM, WalletTransactionORM


def _columns(csv: str) -> set[str]:
    return {c.strip() for c in csv.split(",") if c.strip()}


@pytest.mark.parametrize(
    ("orm", "selected"),
    [
        (OrderORM, order_sql._SELECT_COLUMNS),
        (WalletORM, wallet_sql._WALLET_COLUMNS),
        (WalletTransactionORM, wallet_sql._TX_COLUMNS),
        (DisputeORM, dispute_sql._COLUMNS),
        (ReviewORM, review_sql._COLUMNS),
    ],
)
def test_selected_columns_exist(orm: type, selected: str) -> None:
    table_columns = {c.name for c in orm.__table__.columns}  # type: ignore[attr-defined]
    assert _columns(selected) <= table_columns


def test_timeline_columns() -> None:
    names = {c.name for c in OrderTimelineORM.__table__.columns}
    assert names == {"id", "order_id", "event", "description", "actor_id", "created_at"}


def test_money_columns_are_fixed_point() -> None:
    for name in ("unit_price", "subtotal", "service_fee", "platform_fee", "seller_earnings", "final_amount"):
        column = OrderORM.__table__.columns[name]
        assert column.type.scale == 2  # type: ignore[attr-defined]
    assert WalletORM.__table__.columns["balance"].type.scale == 2  # type: ignore[attr-defined]


def test_seller_rating_lives_on_users() -> None:
    assert SellerProfileORM.__tablename__ == "users"
    assert {"seller_rating", "total_reviews"} <= {c.name for c in SellerProfileORM.__table__.columns}
