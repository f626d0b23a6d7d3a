"""
Run status state machine.

    pending -> processing -> completed | partial | failed
    pending -> failed            (fatal error before processing starts)

Terminal states are sticky: once reached, no further transition is allowed.
"""

from typing import Dict, FrozenSet, List

from modules.validation.core.exceptions import InvalidTransitionError
from modules.validation.core.interfaces import ValidationStatus

ALLOWED_TRANSITIONS: Dict[ValidationStatus, FrozenSet[ValidationStatus]] = {
    ValidationStatus.PENDING: frozenset({ValidationStatus.PROCESSING, ValidationStatus.FAILED}),
    ValidationStatus.PROCESSING: frozenset(
        {ValidationStatus.COMPLETED, ValidationStatus.PARTIAL, ValidationStatus.FAILED}
    ),
    ValidationStatus.COMPLETED: frozenset(),
    ValidationStatus.PARTIAL: frozenset(),
    ValidationStatus.FAILED: frozenset(),
}

TERMINAL_STATUSES = frozenset(
    {ValidationStatus.COMPLETED, ValidationStatus.PARTIAL, ValidationStatus.FAILED}
)


class RunStateMachine:
    """Tracks and guards the status of one validation run."""

    def __init__(self, initial: ValidationStatus = ValidationStatus.PENDING):
        self.status = initial
        self.history: List[ValidationStatus] = [initial]

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def can_transition(self, target: ValidationStatus) -> bool:
        return target in ALLOWED_TRANSITIONS[self.status]

    def transition(self, target: ValidationStatus) -> ValidationStatus:
        """
        Move to a new status.

        Args:
            target: Status to move to

        Returns:
            The new status

        Raises:
            InvalidTransitionError: If the move is not allowed
        """
        if not self.can_transition(target):
            raise InvalidTransitionError(
                f"Cannot move validation run from {self.status.value} to {target.value}"
            )
        self.status = target
        self.history.append(target)
        return target


def terminal_status_for(successes: int, failures: int) -> ValidationStatus:
    """
    Terminal status for a finished requirement loop.

    Args:
        successes: Requirements with a stored, non-error result
        failures: Requirements that failed

    Returns:
        completed when nothing failed, failed when nothing succeeded,
        partial otherwise
    """
    if failures == 0:
        return ValidationStatus.COMPLETED
    if successes == 0:
        return ValidationStatus.FAILED
    return ValidationStatus.PARTIAL
