"""Integration-test fixtures.

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool and Redis pool (both created at import time)
remain valid across the entire test session.

Tokens are minted locally with the shared JWT_SECRET, the same way the
identity service issues them.
"""

import uuid
from dataclasses import dataclass

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.main import app
from src.mk_common.enums import UserRole
from src.mk_gateway.auth.jwt_handler import create_access_token


@dataclass(frozen=True)
class TestUser:
    __test__ = False

    user_id: str
    headers: dict[str, str]


def make_user(prefix: str, role: UserRole = UserRole.USER) -> TestUser:
    """Fresh identity per call so tests never share wallets or orders."""
    user_id = f"{prefix}-{uuid.uuid4().hex[:10]}"
    token = create_access_token(user_id, role, username=user_id)
    return TestUser(user_id=user_id, headers={"Authorization": f"Bearer {token}"})


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client — keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def admin() -> TestUser:
    return make_user("admin", UserRole.ADMIN)
