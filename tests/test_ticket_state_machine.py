import pytest

from apps.helpdesk.tickets.errors import InvalidTransitionError
from apps.helpdesk.tickets.state import TicketStateMachine, TicketStatus

FORWARD = [
    (TicketStatus.OPEN, TicketStatus.IN_PROGRESS),
    (TicketStatus.IN_PROGRESS, TicketStatus.RESOLVED),
    (TicketStatus.RESOLVED, TicketStatus.CLOSED),
]


def test_ticket_state_machine_allows_expected_transitions():
    machine = TicketStateMachine()
    for current, target in FORWARD:
        assert machine.can_transition(current, target)
        machine.validate_transition(current, target)


@pytest.mark.parametrize(
    "current,target",
    [
        (current, target)
        for current in TicketStatus
        for target in TicketStatus
        if (current, target) not in FORWARD
    ],
)
def test_every_other_pair_is_rejected(current, target):
    with pytest.raises(InvalidTransitionError) as exc:
        TicketStateMachine().validate_transition(current, target)

    assert exc.value.current == current
    assert exc.value.requested == target


def test_skipping_reports_the_allowed_successor():
    with pytest.raises(InvalidTransitionError) as exc:
        TicketStateMachine().validate_transition(TicketStatus.OPEN, TicketStatus.RESOLVED)

    assert exc.value.allowed == (TicketStatus.IN_PROGRESS,)
    assert exc.value.details() == {
        "current": "OPEN",
        "requested": "RESOLVED",
        "allowed": ["IN_PROGRESS"],
    }
    assert "Allowed transitions from OPEN: IN_PROGRESS" in str(exc.value)


def test_closed_is_terminal():
    machine = TicketStateMachine()
    assert machine.is_terminal(TicketStatus.CLOSED)
    assert machine.allowed_transitions(TicketStatus.CLOSED) == ()

    with pytest.raises(InvalidTransitionError) as exc:
        machine.validate_transition(TicketStatus.CLOSED, TicketStatus.CLOSED)
    assert exc.value.allowed == ()
    assert "none" in str(exc.value)


def test_initial_state_is_open():
    assert TicketStateMachine.initial_state() == TicketStatus.OPEN
