# muchshop/services/order_status.py
"""
Order status transitions.

    NEW -> PROCESSING | CANCELLED
    PROCESSING -> COMPLETED | CANCELLED
    COMPLETED, CANCELLED -> (terminal)

Used by the admin views to offer the next steps, and by OrderRepo
to make the status write conditional on the stored status.
"""
from typing import Dict, List, Tuple

from muchshop.domain.schemas import OrderStatus

ALLOWED_TRANSITIONS: Dict[OrderStatus, Tuple[OrderStatus, ...]] = {
    OrderStatus.NEW: (OrderStatus.PROCESSING, OrderStatus.CANCELLED),
    OrderStatus.PROCESSING: (OrderStatus.COMPLETED, OrderStatus.CANCELLED),
    OrderStatus.COMPLETED: (),
    OrderStatus.CANCELLED: (),
}

TERMINAL_STATUSES = frozenset(s for s, nxt in ALLOWED_TRANSITIONS.items() if not nxt)


def _coerce(status) -> OrderStatus | None:
    try:
        return OrderStatus(status)
    except ValueError:
        return None


def next_statuses(current) -> List[OrderStatus]:
    status = _coerce(current)
    if status is None:
        return []
    return list(ALLOWED_TRANSITIONS[status])


def is_valid_transition(current, new) -> bool:
    target = _coerce(new)
    return target is not None and target in next_statuses(current)


def allowed_predecessors(target) -> List[OrderStatus]:
    status = _coerce(target)
    if status is None:
        return []
    return [s for s, nxt in ALLOWED_TRANSITIONS.items() if status in nxt]


def is_terminal(status) -> bool:
    return _coerce(status) in TERMINAL_STATUSES
