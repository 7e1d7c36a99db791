"""Dispute domain model — pure dataclasses, no SQLAlchemy dependency."""
from dataclasses import dataclass
from datetime import datetime

from src.mk_common.enums import DisputeStatus


@dataclass
class Dispute:
    id: int
    order_id: str
    buyer_id: str
    seller_id: str
    initiator_id: str
    reason: str               # DisputeReason value
    description: str
    status: str = DisputeStatus.OPEN.value
    resolution: str | None = None
    resolved_by: str | None = None
    created_at: datetime | None = None
    resolved_at: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.status == DisputeStatus.OPEN
