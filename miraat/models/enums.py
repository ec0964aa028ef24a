"""
Enumeration types for the impact engine.

All enums inherit from str to ensure JSON serialization compatibility and
so that values round-trip unchanged through the scenario store.
"""

from enum import Enum


class DisasterType(str, Enum):
    """Kind of disaster a scenario models."""

    BLAST = "blast"
    EARTHQUAKE = "earthquake"


class DamageStatus(str, Enum):
    """
    Damage classification of a building or hospital.

    Records beyond the mild radius receive no status and are absent from
    classification output.
    """

    SEVERE = "SEVERE"
    MILD = "MILD"


class ScenarioStatus(str, Enum):
    """
    Lifecycle status of a scenario run.

    PENDING -> RUNNING -> {COMPLETED | FAILED | CANCELLED}. Terminal states
    are absorbing.
    """

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (ScenarioStatus.COMPLETED, ScenarioStatus.FAILED, ScenarioStatus.CANCELLED)


class StepStatus(str, Enum):
    """Status of a single pipeline step record."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class TimeOfDay(str, Enum):
    """Time of day used to derive building occupancy."""

    MORNING = "morning"
    AFTERNOON = "afternoon"
    NIGHT = "night"


class StageId(str, Enum):
    """Identifiers of the scenario pipeline stages, in execution order."""

    IMPACT_ASSESSMENT = "impact_assessment"
    HOSPITAL_ANALYSIS = "hospital_analysis"
    CRITICAL_INFRASTRUCTURE = "critical_infrastructure"
    CASUALTY_ESTIMATION = "casualty_estimation"
    ECONOMIC_ANALYSIS = "economic_analysis"
    RISK_IDENTIFICATION = "risk_identification"
    SECTOR_BREAKDOWN = "sector_breakdown"
    MITIGATION_PLANNING = "mitigation_planning"
    REPORT_GENERATION = "report_generation"


class MitigationStrategyType(str, Enum):
    """Catalogue of mitigation strategies."""

    STRUCTURAL_REINFORCEMENT = "structural_reinforcement"
    SEISMIC_RETROFIT = "seismic_retrofit"
    FOUNDATION_STRENGTHENING = "foundation_strengthening"
    EVACUATION_INFRASTRUCTURE = "evacuation_infrastructure"


class BuildingCondition(str, Enum):
    """Coarse structural condition used for cost and applicability rules."""

    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    CRITICAL = "critical"


class InfrastructureType(str, Enum):
    """Critical infrastructure types counted inside the impact zone."""

    SCHOOL = "school"
    UNIVERSITY = "university"
    EMBASSY = "embassy"
    POLICE = "police"
    MOSQUE = "mosque"
    CHURCH = "church"


class NotificationKind(str, Enum):
    """Event kinds pushed to the notification sink."""

    SCENARIO_PROGRESS = "scenario_progress"
    SCENARIO_COMPLETE = "scenario_complete"
    SCENARIO_ERROR = "scenario_error"
    MITIGATION_COMPARISON = "mitigation_comparison"
