"""Run status state machine."""

import pytest

from modules.validation.core.exceptions import InvalidTransitionError
from modules.validation.core.interfaces import ValidationStatus
from modules.validation.core.state import RunStateMachine, terminal_status_for


def test_happy_path_transitions():
    machine = RunStateMachine()

    machine.transition(ValidationStatus.PROCESSING)
    machine.transition(ValidationStatus.COMPLETED)

    assert machine.status == ValidationStatus.COMPLETED
    assert machine.history == [
        ValidationStatus.PENDING,
        ValidationStatus.PROCESSING,
        ValidationStatus.COMPLETED,
    ]
    assert machine.is_terminal


def test_pending_can_fail_directly():
    machine = RunStateMachine()
    machine.transition(ValidationStatus.FAILED)
    assert machine.is_terminal


def test_pending_cannot_complete_without_processing():
    machine = RunStateMachine()
    with pytest.raises(InvalidTransitionError):
        machine.transition(ValidationStatus.COMPLETED)


@pytest.mark.parametrize(
    "terminal",
    [ValidationStatus.COMPLETED, ValidationStatus.PARTIAL, ValidationStatus.FAILED],
)
def test_terminal_states_are_sticky(terminal):
    machine = RunStateMachine()
    machine.transition(ValidationStatus.PROCESSING)
    machine.transition(terminal)

    for target in ValidationStatus:
        assert not machine.can_transition(target)
    with pytest.raises(InvalidTransitionError):
        machine.transition(ValidationStatus.PROCESSING)


@pytest.mark.parametrize(
    "successes,failures,expected",
    [
        (3, 0, ValidationStatus.COMPLETED),
        (4, 1, ValidationStatus.PARTIAL),
        (0, 5, ValidationStatus.FAILED),
    ],
)
def test_terminal_status_for(successes, failures, expected):
    assert terminal_status_for(successes, failures) == expected
