import logging
from typing import Iterable, Mapping, Tuple

from check_mem.models.memory import METRICS
from check_mem.models.quantity import Direction, MeasuredQuantity, Status

logger = logging.getLogger(__name__)

DIRECTIONS = {
    "free": Direction.BELOW_IS_BAD,
    "shared": Direction.ABOVE_IS_BAD,
    "buffer": Direction.ABOVE_IS_BAD,
    "used": Direction.ABOVE_IS_BAD,
}


def format_reason(
    quantity: MeasuredQuantity, direction: Direction, threshold: float
) -> str:
    return f"{quantity.percentage:g}% {direction.comparator} {threshold:g}%"


def aggregate(
    checks: Iterable[Tuple[str, MeasuredQuantity, Direction]],
) -> Tuple[Status, str]:
    """
    Fold the checks into the worst status and the reason for it.

    A reason is only replaced by a strictly worse status, so among checks
    with the same status the first one wins.
    """
    worst = Status.OK
    reason = ""
    for name, quantity, direction in checks:
        status, threshold = quantity.evaluate(direction)
        logger.debug("%s: %s (%s%%)", name, status.name, quantity.percentage)
        if status > worst:
            worst = status
            reason = format_reason(quantity, direction, threshold)
    return worst, reason


def evaluate_memory(quantities: Mapping[str, MeasuredQuantity]) -> Tuple[Status, str]:
    """Evaluate free, shared, buffer and used memory in that order."""
    return aggregate(
        (metric, quantities[metric], DIRECTIONS[metric]) for metric in METRICS
    )
