"""Actor — the caller of a lifecycle operation, as resolved by the identity boundary."""

from dataclasses import dataclass

from src.mk_common.enums import UserRole


@dataclass(frozen=True)
class Actor:
    user_id: str
    role: UserRole = UserRole.USER
    username: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def label(self) -> str:
        return self.username or self.user_id
