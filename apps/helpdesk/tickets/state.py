from __future__ import annotations

from enum import Enum
from typing import Mapping, Sequence

from .errors import InvalidTransitionError


class TicketStatus(str, Enum):
    """Supported states for a ticket's lifecycle."""

    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


class TicketStateMachine:
    """Validate ticket lifecycle transitions.

    The lifecycle is strictly linear: every status has at most one successor
    and CLOSED has none.
    """

    _DEFAULT_TRANSITIONS: Mapping[TicketStatus, Sequence[TicketStatus]] = {
        TicketStatus.OPEN: (TicketStatus.IN_PROGRESS,),
        TicketStatus.IN_PROGRESS: (TicketStatus.RESOLVED,),
        TicketStatus.RESOLVED: (TicketStatus.CLOSED,),
        TicketStatus.CLOSED: (),
    }

    def __init__(self, transitions: Mapping[TicketStatus, Sequence[TicketStatus]] | None = None) -> None:
        self._transitions = transitions or self._DEFAULT_TRANSITIONS

    @staticmethod
    def initial_state() -> TicketStatus:
        return TicketStatus.OPEN

    def allowed_transitions(self, current: TicketStatus) -> tuple[TicketStatus, ...]:
        return tuple(self._transitions.get(current, ()))

    def is_terminal(self, status: TicketStatus) -> bool:
        return not self.allowed_transitions(status)

    def can_transition(self, current: TicketStatus, target: TicketStatus) -> bool:
        return target in self.allowed_transitions(current)

    def validate_transition(self, current: TicketStatus, target: TicketStatus) -> None:
        """Raise :class:`InvalidTransitionError` unless ``target`` directly follows ``current``."""

        if not self.can_transition(current, target):
            raise InvalidTransitionError(current, target, self.allowed_transitions(current))
