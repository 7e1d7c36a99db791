"""Commit-unit helpers: commit, rollback and driver-error mapping."""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from src.mk_common.database import run_atomic, run_read
from src.mk_common.errors import InvalidOrderStateError, StorageFailureError


def _driver_error() -> OperationalError:
    return OperationalError("UPDATE orders", {}, Exception("connection reset"))


class TestRunAtomic:
    async def test_commits_on_success(self) -> None:
        db = AsyncMock()
        assert await run_atomic(db, AsyncMock(return_value=42)) == 42
        db.commit.assert_awaited_once()
        db.rollback.assert_not_awaited()

    async def test_driver_error_rolls_back(self) -> None:
        db = AsyncMock()
        with pytest.raises(StorageFailureError):
            await run_atomic(db, AsyncMock(side_effect=_driver_error()))
        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()

    async def test_app_error_passes_through(self) -> None:
        db = AsyncMock()
        with pytest.raises(InvalidOrderStateError):
            await run_atomic(db, AsyncMock(side_effect=InvalidOrderStateError("Order is already paid")))
        db.rollback.assert_awaited_once()


class TestRunRead:
    async def test_returns_without_commit(self) -> None:
        db = AsyncMock()
        assert await run_read(db, AsyncMock(return_value="row")) == "row"
        db.commit.assert_not_awaited()

    async def test_driver_error_is_storage_failure(self) -> None:
        db = AsyncMock()
        with pytest.raises(StorageFailureError):
            await run_read(db, AsyncMock(side_effect=_driver_error()))
        db.rollback.assert_awaited_once()

    async def test_app_error_untouched(self) -> None:
        db = AsyncMock()
        with pytest.raises(InvalidOrderStateError):
            await run_read(db, AsyncMock(side_effect=InvalidOrderStateError("nope")))
        db.rollback.assert_not_awaited()
