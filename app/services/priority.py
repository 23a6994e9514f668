"""
Priority ladder

Urgencies form a total order P1 < P2 < P3 < P4, P1 being the most urgent.
Moving past either end raises BoundaryError; nothing saturates silently.
"""

from enum import Enum

from app.core.errors import BoundaryError, ValidationError
from app.models.task import Urgency

URGENCY_LADDER: tuple[Urgency, ...] = (Urgency.P1, Urgency.P2, Urgency.P3, Urgency.P4)


class PriorityDirection(str, Enum):
    """Direction accepted by the move-priority action"""

    UP = "up"
    DOWN = "down"


def _coerce(urgency: Urgency | str) -> Urgency:
    try:
        return Urgency(urgency)
    except ValueError:
        raise ValidationError(f"Invalid urgency: {urgency!r}")


def increase_priority(urgency: Urgency | str) -> Urgency:
    """Next more urgent level (P3 -> P2)"""
    index = URGENCY_LADDER.index(_coerce(urgency))
    if index == 0:
        raise BoundaryError("Cannot increase priority beyond P1.")
    return URGENCY_LADDER[index - 1]


def decrease_priority(urgency: Urgency | str) -> Urgency:
    """Next less urgent level (P2 -> P3)"""
    index = URGENCY_LADDER.index(_coerce(urgency))
    if index == len(URGENCY_LADDER) - 1:
        raise BoundaryError("Cannot decrease priority below P4.")
    return URGENCY_LADDER[index + 1]


def move_priority(urgency: Urgency | str, direction: PriorityDirection) -> Urgency:
    if direction == PriorityDirection.UP:
        return increase_priority(urgency)
    return decrease_priority(urgency)
