"""DisputeApplicationService — dispute escalation on top of the lifecycle engine.

Opening a dispute is the OPEN_DISPUTE transition with a hook that inserts the
dispute row, so order status, dispute and timeline commit together. No funds
move. Admin force operations on a DISPUTED order use resolution_hook to close
the dispute in their own commit unit.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.mk_common.actor import Actor
from src.mk_common.database import run_read
from src.mk_common.enums import DisputeReason, DisputeResolution, OrderOperation, OrderStatus
from src.mk_common.errors import (
    DisputeNotFoundError,
    InvalidDisputeError,
    OrderActionForbiddenError,
    OrderNotFoundError,
)
from src.mk_dispute.application.schemas import (
    DisputeListResponse,
    DisputeResponse,
    OpenDisputeResponse,
)
from src.mk_dispute.domain.models import Dispute
from src.mk_dispute.domain.repository import DisputeRepositoryProtocol
from src.mk_dispute.infrastructure.persistence import DisputeRepository
from src.mk_order.application.engine import (
    OrderLifecycleEngine,
    TransitionHook,
    get_lifecycle_engine,
)
from src.mk_order.application.service import to_transition_response
from src.mk_order.domain.models import Order
from src.mk_order.domain.repository import OrderRepositoryProtocol
from src.mk_order.domain.state_machine import can_view
from src.mk_order.infrastructure.persistence import OrderRepository

logger = logging.getLogger(__name__)

MIN_DESCRIPTION_LENGTH = 10
MAX_DESCRIPTION_LENGTH = 2000


def validate_dispute(reason: str, description: str) -> tuple[DisputeReason, str]:
    try:
        code = DisputeReason(reason)
    except ValueError:
        allowed = ", ".join(r.value for r in DisputeReason)
        raise InvalidDisputeError(f"Unknown dispute reason {reason!r}; expected one of {allowed}") from None
    text = (description or "").strip()
    if not MIN_DESCRIPTION_LENGTH <= len(text) <= MAX_DESCRIPTION_LENGTH:
        raise InvalidDisputeError(
            f"Dispute description must be {MIN_DESCRIPTION_LENGTH}-{MAX_DESCRIPTION_LENGTH} "
            f"characters, got {len(text)}"
        )
    return code, text


class DisputeApplicationService:
    def __init__(
        self,
        engine: OrderLifecycleEngine | None = None,
        repo: DisputeRepositoryProtocol | None = None,
        order_repo: OrderRepositoryProtocol | None = None,
    ) -> None:
        self._engine = engine
        self._repo: DisputeRepositoryProtocol = repo or DisputeRepository()
        self._orders: OrderRepositoryProtocol = order_repo or OrderRepository()

    @property
    def engine(self) -> OrderLifecycleEngine:
        return self._engine or get_lifecycle_engine()

    async def open_dispute(
        self,
        db: AsyncSession,
        order_id: str,
        reason: str,
        description: str,
        initiator: Actor,
    ) -> OpenDisputeResponse:
        parsed: list[tuple[DisputeReason, str]] = []
        created: list[Dispute] = []

        def precheck(order: Order) -> None:
            parsed.append(validate_dispute(reason, description))

        async def insert_dispute(session: AsyncSession, before: Order, after: Order) -> None:
            code, text = parsed[0]
            created.append(
                await self._repo.insert(
                    before.id,
                    before.buyer_id,
                    before.seller_id,
                    initiator.user_id,
                    code.value,
                    text,
                    session,
                )
            )

        result = await self.engine.transition(
            db,
            order_id,
            OrderOperation.OPEN_DISPUTE,
            initiator,
            precheck=precheck,
            hook=insert_dispute,
            description=f"Dispute opened by {initiator.label}: {reason}",
        )
        dispute = created[0]
        logger.info(
            "Dispute opened: order=%s dispute=%s reason=%s initiator=%s",
            order_id,
            dispute.id,
            dispute.reason,
            initiator.user_id,
        )
        return OpenDisputeResponse(
            dispute=DisputeResponse.from_domain(dispute),
            transition=to_transition_response(result),
        )

    def resolution_hook(self, resolution: DisputeResolution, admin: Actor) -> TransitionHook:
        """Hook for force operations: closes the open dispute when the order was DISPUTED."""

        async def resolve(session: AsyncSession, before: Order, after: Order) -> None:
            if before.status != OrderStatus.DISPUTED:
                return
            resolved = await self._repo.resolve_open(
                before.id, resolution.value, admin.user_id, session
            )
            if resolved is None:
                logger.warning("Order %s was DISPUTED without an open dispute row", before.id)
                return
            logger.info(
                "Dispute resolved: order=%s dispute=%s resolution=%s admin=%s",
                before.id,
                resolved.id,
                resolution.value,
                admin.user_id,
            )

        return resolve

    async def get_dispute(
        self, db: AsyncSession, order_id: str, actor: Actor
    ) -> DisputeResponse:
        order = await run_read(db, lambda: self._orders.get_by_id(order_id, db))
        if order is None:
            raise OrderNotFoundError(order_id)
        if not can_view(actor, order):
            raise OrderActionForbiddenError(
                f"Only the buyer, the seller or an administrator can view the dispute "
                f"on order {order.order_number}"
            )
        dispute = await run_read(db, lambda: self._repo.get_by_order(order_id, db))
        if dispute is None:
            raise DisputeNotFoundError(order_id)
        return DisputeResponse.from_domain(dispute)

    async def list_open(self, db: AsyncSession, limit: int) -> DisputeListResponse:
        disputes = await run_read(db, lambda: self._repo.list_open(limit, db))
        return DisputeListResponse(disputes=[DisputeResponse.from_domain(d) for d in disputes])
