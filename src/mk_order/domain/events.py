"""Order domain events — one per committed transition, consumed by notification fan-out."""
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Protocol

from src.mk_common.datetime_utils import utc_now


@dataclass(frozen=True)
class OrderEvent:
    event_type: str            # ORDER_CREATED / STATUS_CHANGED / DISPUTE_OPENED / REVIEW_SUBMITTED
    order_id: str
    order_number: str
    buyer_id: str
    seller_id: str
    status: str
    previous_status: str | None = None
    actor_id: str | None = None
    payload: dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["occurred_at"] = self.occurred_at.isoformat()
        return data


class OrderEventPublisherProtocol(Protocol):
    async def publish(self, event: OrderEvent) -> None: ...
