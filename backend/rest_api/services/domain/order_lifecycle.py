"""
Order status state machines.

Both chains are strictly linear: each status has exactly one successor and
DELIVERED is terminal. `next_status` is the read-only query (None means
"nothing to do"); `advance` is the guarded transition used by writers and
raises instead of silently ignoring a terminal or unknown status.
"""

from shared.config.constants import (
    DELIVERY_TRANSITIONS,
    ORDER_TRANSITIONS,
    OrderStatus,
)
from shared.config.logging import get_logger
from shared.config.settings import settings

logger = get_logger(__name__)


class InvalidOrderTransitionError(Exception):
    """Transition not allowed from the current status."""

    def __init__(self, chain: str, from_status: str | None, to_status: str | None = None):
        self.chain = chain
        self.from_status = from_status
        self.to_status = to_status
        if to_status:
            message = f"{chain}: cannot move from {from_status} to {to_status}"
        else:
            message = f"{chain}: no transition out of {from_status}"
        super().__init__(message)


class UnknownOrderStatusError(ValueError):
    """A persisted status outside the known chain (strict mode only)."""

    def __init__(self, raw_status: str | None):
        self.raw_status = raw_status
        super().__init__(f"Unknown order status: {raw_status!r}")


def next_status(current: str | None) -> str | None:
    """Successor on the customer chain, or None for terminal/unknown statuses."""
    return ORDER_TRANSITIONS.get(current) if current else None


def next_delivery_status(current: str | None) -> str | None:
    """Successor on the rider chain, or None for terminal/unknown statuses."""
    return DELIVERY_TRANSITIONS.get(current) if current else None


def is_terminal(status: str) -> bool:
    return status in ORDER_TRANSITIONS and ORDER_TRANSITIONS[status] is None


def parse_status(raw: str | None, strict: bool | None = None) -> str:
    """
    Normalize a stored customer-chain status for display.

    Unknown values map to PENDING with a warning, unless strict mode
    (argument, or settings.strict_order_status) is on, in which case they raise.
    """
    if raw in ORDER_TRANSITIONS:
        return raw
    if settings.strict_order_status if strict is None else strict:
        raise UnknownOrderStatusError(raw)
    logger.warning("Unknown order status mapped to PENDING", raw_status=raw)
    return OrderStatus.PENDING


def advance(current: str) -> str:
    """
    Return the successor of `current` on the customer chain.

    Raises:
        InvalidOrderTransitionError: current is terminal or unknown.
    """
    target = next_status(current)
    if target is None:
        raise InvalidOrderTransitionError("order", current)
    return target


def advance_delivery(current: str | None, expected_target: str) -> str:
    """
    Check that `expected_target` is the rider-chain successor of `current`.

    Raises:
        InvalidOrderTransitionError: the step would skip, repeat or reverse.
    """
    target = next_delivery_status(current)
    if target != expected_target:
        raise InvalidOrderTransitionError("delivery", current, expected_target)
    return target
