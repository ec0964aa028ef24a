"""
Exception taxonomy for the impact engine.

Recovery policy per type:
- DataIntegrityError: a single malformed record; skipped and logged.
- DatasetLoadError: the dataset as a whole is unusable; fatal at start-up.
- NotFoundError: unknown scenario, building, hospital or plan id.
- CancellationError: cancellation observed between pipeline stages.
- StageExecutionError: a pipeline stage raised; the run is FAILED.
- ScenarioStateError: an illegal run state transition was requested.
- StorageError: the scenario store could not complete an operation.

Nothing in the engine retries.
"""

from typing import Optional


class MiraatError(Exception):
    """Base exception for all impact-engine failures."""

    pass


class DataIntegrityError(MiraatError):
    """A single dataset record is malformed and must be skipped."""

    def __init__(self, message: str, record_id: Optional[object] = None):
        super().__init__(message)
        self.record_id = record_id


class DatasetLoadError(MiraatError):
    """The dataset could not be loaded at all."""

    pass


class NotFoundError(MiraatError):
    """A requested entity does not exist."""

    def __init__(self, kind: str, entity_id: object):
        super().__init__(f"{kind} not found: {entity_id}")
        self.kind = kind
        self.entity_id = entity_id


class CancellationError(MiraatError):
    """A scenario run observed its cancellation token between stages."""

    def __init__(self, scenario_id: str, stage: Optional[str] = None):
        super().__init__(f"Scenario {scenario_id} cancelled before {stage or 'start'}")
        self.scenario_id = scenario_id
        self.stage = stage


class StageExecutionError(MiraatError):
    """A pipeline stage raised while computing its result."""

    def __init__(self, scenario_id: str, stage: str, message: str):
        super().__init__(f"Stage {stage} failed for scenario {scenario_id}: {message}")
        self.scenario_id = scenario_id
        self.stage = stage
        self.message = message


class ScenarioStateError(MiraatError):
    """A state transition is not allowed from the run's current status."""

    pass


class StorageError(MiraatError):
    """Base exception for all storage operation failures."""

    pass
