"""
Pydantic v2 data models for the impact engine.

Model Organization:
    - enums: Enumeration types for consistent classification
    - buildings: Building and hospital inventory records
    - impact: Disaster definitions, radii and classification results
    - scenario: Scenario runs, per-stage summaries and mitigation plans
    - events: Notification payloads pushed to session sinks
"""

from .buildings import (
    NOT_AVAILABLE,
    BuildingRecord,
    GeoPoint,
    HospitalRecord,
    VulnerabilityFactors,
)
from .enums import (
    BuildingCondition,
    DamageStatus,
    DisasterType,
    InfrastructureType,
    MitigationStrategyType,
    NotificationKind,
    ScenarioStatus,
    StageId,
    StepStatus,
    TimeOfDay,
)
from .events import (
    MitigationComparisonEvent,
    NotificationEvent,
    ScenarioCompleteEvent,
    ScenarioErrorEvent,
    ScenarioProgressEvent,
)
from .impact import (
    BlastDefinition,
    BuildingDetail,
    BuildingImpactResult,
    ClassifiedBuilding,
    ClassifiedHospital,
    DisasterDefinition,
    DisasterRadii,
    EarthquakeDefinition,
    HospitalImpactResult,
    ImpactStatistics,
    ImpactSummary,
)
from .scenario import (
    AffectedBuildingSummary,
    AffectedHospitalSummary,
    CasualtyEstimate,
    CriticalInfrastructureSummary,
    EconomicImpactEstimate,
    HighRiskBuilding,
    HighRiskBuildingSummary,
    MapData,
    MitigationComparisonResult,
    MitigationPlan,
    ScenarioParameters,
    ScenarioResults,
    ScenarioRun,
    ScenarioStep,
    SectorAnalysisSummary,
    SectorData,
    SyntheticBuilding,
    SyntheticHospital,
)

__all__ = [
    "NOT_AVAILABLE",
    "AffectedBuildingSummary",
    "AffectedHospitalSummary",
    "BlastDefinition",
    "BuildingCondition",
    "BuildingDetail",
    "BuildingImpactResult",
    "BuildingRecord",
    "CasualtyEstimate",
    "ClassifiedBuilding",
    "ClassifiedHospital",
    "CriticalInfrastructureSummary",
    "DamageStatus",
    "DisasterDefinition",
    "DisasterRadii",
    "DisasterType",
    "EarthquakeDefinition",
    "EconomicImpactEstimate",
    "GeoPoint",
    "HighRiskBuilding",
    "HighRiskBuildingSummary",
    "HospitalImpactResult",
    "HospitalRecord",
    "ImpactStatistics",
    "ImpactSummary",
    "InfrastructureType",
    "MapData",
    "MitigationComparisonEvent",
    "MitigationComparisonResult",
    "MitigationPlan",
    "MitigationStrategyType",
    "NotificationEvent",
    "NotificationKind",
    "ScenarioCompleteEvent",
    "ScenarioErrorEvent",
    "ScenarioParameters",
    "ScenarioProgressEvent",
    "ScenarioResults",
    "ScenarioRun",
    "ScenarioStatus",
    "ScenarioStep",
    "SectorAnalysisSummary",
    "SectorData",
    "StageId",
    "StepStatus",
    "SyntheticBuilding",
    "SyntheticHospital",
    "TimeOfDay",
    "VulnerabilityFactors",
]
