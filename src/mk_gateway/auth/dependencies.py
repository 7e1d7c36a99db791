"""FastAPI dependencies: get_current_actor, require_admin.

Usage in any protected router:
    from src.mk_gateway.auth.dependencies import get_current_actor

    @router.get("/protected")
    async def protected(actor: Actor = Depends(get_current_actor)):
        ...

The token is trusted as issued by the identity service; no user lookup.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from src.mk_common.actor import Actor
from src.mk_common.enums import UserRole
from src.mk_common.errors import AdminRequiredError, InvalidCredentialsError
from src.mk_gateway.auth.jwt_handler import decode_token

# tokenUrl points at the identity service login; only used by Swagger UI
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_actor(token: str = Depends(oauth2_scheme)) -> Actor:
    """Resolve the Bearer token to an Actor. HTTP 401 on any token problem."""
    try:
        payload = decode_token(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    user_id = payload.get("sub")
    if not user_id:
        raise _CREDENTIALS_EXCEPTION
    try:
        role = UserRole(payload.get("role", UserRole.USER.value))
    except ValueError:
        raise _CREDENTIALS_EXCEPTION from None
    return Actor(user_id=user_id, role=role, username=payload.get("username"))


async def require_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    """Verify the caller holds the ADMIN role (HTTP 403 AdminRequiredError otherwise)."""
    if not actor.is_admin:
        raise AdminRequiredError()
    return actor
