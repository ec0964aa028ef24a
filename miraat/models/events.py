"""
Notification payloads pushed to the session notification sink.

Delivery is best-effort; events are addressed by session id and carry the
scenario id they relate to.
"""

from datetime import datetime
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, Field

from .enums import NotificationKind, StageId
from .scenario import MapData, MitigationComparisonResult, ScenarioResults


class ScenarioProgressEvent(BaseModel):
    kind: Literal[NotificationKind.SCENARIO_PROGRESS] = NotificationKind.SCENARIO_PROGRESS
    scenario_id: str
    stage: StageId
    step: str
    step_index: int
    total_steps: int
    progress: int
    partial_data: Optional[dict[str, Any]] = None
    emitted_at: datetime = Field(default_factory=datetime.utcnow)


class ScenarioCompleteEvent(BaseModel):
    kind: Literal[NotificationKind.SCENARIO_COMPLETE] = NotificationKind.SCENARIO_COMPLETE
    scenario_id: str
    report: str
    structured: ScenarioResults
    map_data: MapData
    emitted_at: datetime = Field(default_factory=datetime.utcnow)


class ScenarioErrorEvent(BaseModel):
    """Failure or cancellation of a run; ``cancelled`` tells them apart."""

    kind: Literal[NotificationKind.SCENARIO_ERROR] = NotificationKind.SCENARIO_ERROR
    scenario_id: str
    error: str
    step: Optional[str] = None
    cancelled: bool = False
    emitted_at: datetime = Field(default_factory=datetime.utcnow)


class MitigationComparisonEvent(BaseModel):
    kind: Literal[NotificationKind.MITIGATION_COMPARISON] = (
        NotificationKind.MITIGATION_COMPARISON
    )
    scenario_id: str
    comparison: MitigationComparisonResult
    emitted_at: datetime = Field(default_factory=datetime.utcnow)


NotificationEvent = Union[
    ScenarioProgressEvent,
    ScenarioCompleteEvent,
    ScenarioErrorEvent,
    MitigationComparisonEvent,
]
