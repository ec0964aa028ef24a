"""Scenario run lifecycle transitions."""

from miraat.exceptions import ScenarioStateError
from miraat.models.enums import ScenarioStatus

ALLOWED_TRANSITIONS: dict[ScenarioStatus, frozenset[ScenarioStatus]] = {
    ScenarioStatus.PENDING: frozenset({ScenarioStatus.RUNNING, ScenarioStatus.CANCELLED}),
    ScenarioStatus.RUNNING: frozenset(
        {ScenarioStatus.COMPLETED, ScenarioStatus.FAILED, ScenarioStatus.CANCELLED}
    ),
    ScenarioStatus.COMPLETED: frozenset(),
    ScenarioStatus.FAILED: frozenset(),
    ScenarioStatus.CANCELLED: frozenset(),
}


def can_transition(current: ScenarioStatus, target: ScenarioStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def transition(current: ScenarioStatus, target: ScenarioStatus) -> ScenarioStatus:
    """
    Validate a status change.

    Args:
        current: Status the run is in
        target: Requested status

    Returns:
        The target status

    Raises:
        ScenarioStateError: If the transition is not allowed
    """
    if not can_transition(current, target):
        raise ScenarioStateError(
            f"Cannot move scenario from {current.value} to {target.value}"
        )
    return target
