"""Order state machine — transition table and permission matrix.

Each operation names its legal source statuses, its target, the parties
allowed to trigger it, the escrow state it needs and the timeline event it
writes. Nothing else in the code base decides whether a transition is legal.

Payment can arrive after an early delivery: CONFIRM_PAYMENT on a DELIVERED
order funds escrow and leaves the status alone. Completion and disputes need
funded escrow, so a completed order always credited the seller.
"""
from dataclasses import dataclass

from src.mk_common.actor import Actor
from src.mk_common.enums import (
    NON_TERMINAL_ORDER_STATUSES,
    TERMINAL_ORDER_STATUSES,
    EscrowStatus,
    OrderOperation,
    OrderStatus,
    Party,
    TimelineEventType,
)
from src.mk_common.errors import InvalidOrderStateError, OrderActionForbiddenError
from src.mk_order.domain.models import Order

UNPAID_MESSAGE = "Order has not been paid yet"
ALREADY_PAID_MESSAGE = "Payment for this order is already confirmed"


@dataclass(frozen=True)
class Transition:
    operation: OrderOperation
    sources: frozenset[OrderStatus]
    target: OrderStatus
    parties: frozenset[Party]
    event: TimelineEventType
    verb: str
    requires_escrow: EscrowStatus | None = None
    keeps: frozenset[OrderStatus] = frozenset()

    def target_from(self, status: OrderStatus) -> OrderStatus:
        return status if status in self.keeps else self.target


TRANSITIONS: dict[OrderOperation, Transition] = {
    t.operation: t
    for t in (
        Transition(
            OrderOperation.CONFIRM_PAYMENT,
            frozenset({OrderStatus.PENDING, OrderStatus.DELIVERED}),
            OrderStatus.ACTIVE,
            frozenset({Party.ADMIN}),
            TimelineEventType.PAYMENT_CONFIRMED,
            "confirm payment for",
            requires_escrow=EscrowStatus.PENDING,
            keeps=frozenset({OrderStatus.DELIVERED}),
        ),
        Transition(
            OrderOperation.MARK_DELIVERED,
            frozenset({OrderStatus.PENDING, OrderStatus.ACTIVE}),
            OrderStatus.DELIVERED,
            frozenset({Party.SELLER, Party.ADMIN}),
            TimelineEventType.ORDER_DELIVERED,
            "mark as delivered",
        ),
        Transition(
            OrderOperation.CONFIRM,
            frozenset({OrderStatus.ACTIVE, OrderStatus.DELIVERED}),
            OrderStatus.COMPLETED,
            frozenset({Party.BUYER, Party.ADMIN}),
            TimelineEventType.ORDER_COMPLETED,
            "confirm",
            requires_escrow=EscrowStatus.HELD,
        ),
        Transition(
            OrderOperation.CANCEL,
            frozenset({OrderStatus.PENDING, OrderStatus.ACTIVE, OrderStatus.DELIVERED}),
            OrderStatus.CANCELLED,
            frozenset({Party.SELLER, Party.ADMIN}),
            TimelineEventType.ORDER_CANCELLED,
            "cancel",
        ),
        Transition(
            OrderOperation.OPEN_DISPUTE,
            frozenset({OrderStatus.ACTIVE, OrderStatus.DELIVERED}),
            OrderStatus.DISPUTED,
            frozenset({Party.BUYER, Party.ADMIN}),
            TimelineEventType.DISPUTE_OPENED,
            "open a dispute on",
            requires_escrow=EscrowStatus.HELD,
        ),
        Transition(
            OrderOperation.FORCE_COMPLETE,
            NON_TERMINAL_ORDER_STATUSES,
            OrderStatus.COMPLETED,
            frozenset({Party.ADMIN}),
            TimelineEventType.ORDER_COMPLETED,
            "force-complete",
            requires_escrow=EscrowStatus.HELD,
        ),
        Transition(
            OrderOperation.FORCE_CANCEL_REFUND,
            NON_TERMINAL_ORDER_STATUSES,
            OrderStatus.CANCELLED,
            frozenset({Party.ADMIN}),
            TimelineEventType.ORDER_CANCELLED,
            "force-cancel and refund",
        ),
    )
}


def resolve_parties(actor: Actor, order: Order) -> frozenset[Party]:
    parties: set[Party] = set()
    if actor.user_id == order.buyer_id:
        parties.add(Party.BUYER)
    if actor.user_id == order.seller_id:
        parties.add(Party.SELLER)
    if actor.is_admin:
        parties.add(Party.ADMIN)
    return frozenset(parties)


def can_view(actor: Actor, order: Order) -> bool:
    return bool(resolve_parties(actor, order))


def authorize(operation: OrderOperation, actor: Actor, order: Order) -> Transition:
    """Raise OrderActionForbiddenError unless the actor holds a permitted party."""
    transition = TRANSITIONS[operation]
    if not resolve_parties(actor, order) & transition.parties:
        allowed = " or ".join(p.value.lower() for p in sorted(transition.parties))
        raise OrderActionForbiddenError(
            f"Only the {allowed} can {transition.verb} order {order.order_number}"
        )
    return transition


def check_source_status(operation: OrderOperation, status: str) -> Transition:
    """Raise InvalidOrderStateError unless status is a legal source for operation."""
    transition = TRANSITIONS[operation]
    current = OrderStatus(status)
    if current not in transition.sources:
        raise InvalidOrderStateError(rejection_reason(operation, current))
    return transition


def check_escrow(operation: OrderOperation, escrow_status: str) -> None:
    """Raise InvalidOrderStateError unless escrow is in the state operation needs."""
    required = TRANSITIONS[operation].requires_escrow
    if required is None or EscrowStatus(escrow_status) == required:
        return
    if required == EscrowStatus.PENDING:
        raise InvalidOrderStateError(ALREADY_PAID_MESSAGE)
    raise InvalidOrderStateError(UNPAID_MESSAGE)


def check_order_state(operation: OrderOperation, order: Order) -> OrderStatus:
    """Status then escrow checks; returns the status the order moves to."""
    transition = check_source_status(operation, order.status)
    check_escrow(operation, order.escrow_status)
    return transition.target_from(OrderStatus(order.status))


def rejection_reason(operation: OrderOperation, status: OrderStatus) -> str:
    """Specific, user-facing reason for an illegal transition."""
    if status in TERMINAL_ORDER_STATUSES:
        return f"Order is already {status.value.lower()}"
    if operation == OrderOperation.CONFIRM_PAYMENT and status in (
        OrderStatus.ACTIVE,
        OrderStatus.DISPUTED,
    ):
        # both statuses are only reachable with escrow held
        return ALREADY_PAID_MESSAGE
    if status == OrderStatus.DISPUTED:
        if operation == OrderOperation.OPEN_DISPUTE:
            return "A dispute is already open for this order"
        return "Order is under dispute; only an administrator can settle it"
    if status == OrderStatus.PENDING and operation in (
        OrderOperation.CONFIRM,
        OrderOperation.OPEN_DISPUTE,
    ):
        return UNPAID_MESSAGE
    if status == OrderStatus.DELIVERED and operation == OrderOperation.MARK_DELIVERED:
        return "Order is already delivered"
    verb = TRANSITIONS[operation].verb
    return f"Cannot {verb} an order in status {status.value}"
