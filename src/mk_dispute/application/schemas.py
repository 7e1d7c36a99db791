from datetime import datetime

from pydantic import BaseModel, Field

from src.mk_dispute.domain.models import Dispute
from src.mk_order.application.schemas import TransitionResponse


class OpenDisputeRequest(BaseModel):
    reason: str = Field(..., description="DisputeReason code, e.g. ITEM_NOT_RECEIVED")
    description: str = Field(..., description="10-2000 characters")


class DisputeResponse(BaseModel):
    id: int
    order_id: str
    buyer_id: str
    seller_id: str
    initiator_id: str
    reason: str
    description: str
    status: str
    resolution: str | None
    resolved_by: str | None
    created_at: datetime | None
    resolved_at: datetime | None

    @classmethod
    def from_domain(cls, d: Dispute) -> "DisputeResponse":
        return cls(
            id=d.id,
            order_id=d.order_id,
            buyer_id=d.buyer_id,
            seller_id=d.seller_id,
            initiator_id=d.initiator_id,
            reason=d.reason,
            description=d.description,
            status=d.status,
            resolution=d.resolution,
            resolved_by=d.resolved_by,
            created_at=d.created_at,
            resolved_at=d.resolved_at,
        )


class OpenDisputeResponse(BaseModel):
    dispute: DisputeResponse
    transition: TransitionResponse


class DisputeListResponse(BaseModel):
    disputes: list[DisputeResponse]
