"""Staged scenario orchestration."""

from .cancellation import CancellationRegistry, CancellationToken
from .pipeline import RunContext, ScenarioPipeline
from .stages import STAGES, STAGES_BY_ID, StageDefinition
from .state_machine import ALLOWED_TRANSITIONS, can_transition, transition

__all__ = [
    "ALLOWED_TRANSITIONS",
    "STAGES",
    "STAGES_BY_ID",
    "CancellationRegistry",
    "CancellationToken",
    "RunContext",
    "ScenarioPipeline",
    "StageDefinition",
    "can_transition",
    "transition",
]
