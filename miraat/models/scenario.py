"""
Scenario run models.

A ScenarioRun is created PENDING, mutated stage by stage by the scenario
pipeline, and becomes read-only once it reaches a terminal status. Only
COMPLETED runs carry ``results``.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from .buildings import GeoPoint
from .enums import (
    BuildingCondition,
    DamageStatus,
    DisasterType,
    MitigationStrategyType,
    ScenarioStatus,
    StageId,
    StepStatus,
    TimeOfDay,
)
from .impact import BlastDefinition, BuildingsByUse, EarthquakeDefinition


class ScenarioParameters(BaseModel):
    """
    Disaster parameters a scenario is created with.

    Attributes:
        disaster_type: Blast or earthquake
        lat: Epicenter latitude
        lon: Epicenter longitude
        yield_kg: Blast yield; the configured default applies when omitted
        magnitude: Earthquake magnitude; the configured default applies when omitted
        time_of_day: Drives occupancy in casualty estimation
        include_vulnerability: Classify with vulnerability-adjusted radii
        custom_input: Free-text context echoed into the report
    """

    disaster_type: DisasterType
    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)
    yield_kg: Optional[float] = Field(default=None, gt=0.0)
    magnitude: Optional[float] = Field(default=None, ge=0.0, le=10.0)
    time_of_day: TimeOfDay = TimeOfDay.AFTERNOON
    include_vulnerability: bool = True
    custom_input: Optional[str] = None

    @property
    def epicenter(self) -> GeoPoint:
        return GeoPoint(lon=self.lon, lat=self.lat)

    def to_definition(self, default_yield_kg: float, default_magnitude: float):
        """Build the disaster definition, filling omitted magnitudes with defaults."""
        if self.disaster_type == DisasterType.BLAST:
            return BlastDefinition(
                epicenter=self.epicenter, yield_kg=self.yield_kg or default_yield_kg
            )
        return EarthquakeDefinition(
            epicenter=self.epicenter, magnitude=self.magnitude or default_magnitude
        )


class ScenarioStep(BaseModel):
    stage: StageId
    name: str
    status: StepStatus = StepStatus.PENDING
    result: Optional[Any] = None


class AffectedBuildingSummary(BaseModel):
    total: int = 0
    severe: int = 0
    mild: int = 0
    by_type: BuildingsByUse = Field(default_factory=BuildingsByUse)


class AffectedHospitalSummary(BaseModel):
    total: int = 0
    severe: int = 0
    mild: int = 0
    beds_at_risk: int = 0
    functional_beds: int = 0


class CriticalInfrastructureSummary(BaseModel):
    schools: int = 0
    universities: int = 0
    embassies: int = 0
    police: int = 0
    mosques: int = 0
    churches: int = 0
    total: int = 0
    building_ids: list[int] = Field(default_factory=list)


class CasualtyEstimate(BaseModel):
    fatalities: int = 0
    severe_injuries: int = 0
    mild_injuries: int = 0
    total_affected: int = 0
    population_at_risk: int = 0
    time_of_day_factor: float = 0.0


class EconomicImpactEstimate(BaseModel):
    building_damage: int = 0
    infrastructure_damage: int = 0
    business_disruption: int = 0
    medical_costs: int = 0
    total_cost: int = 0
    currency: str = "USD"


class HighRiskBuilding(BaseModel):
    id: int
    vulnerability_score: float
    condition: Optional[BuildingCondition] = None
    floors: Optional[int] = None
    sector: str = "Unknown"


class HighRiskBuildingSummary(BaseModel):
    """High-risk buildings; ``priority_list`` is ordered by descending score."""

    total: int = 0
    average_vulnerability: float = 0.0
    by_condition: dict[str, int] = Field(default_factory=dict)
    priority_list: list[HighRiskBuilding] = Field(default_factory=list)


class SectorData(BaseModel):
    name: str
    buildings_affected: int = 0
    severe_count: int = 0
    mild_count: int = 0
    estimated_population: int = 0


class SectorAnalysisSummary(BaseModel):
    sectors: list[SectorData] = Field(default_factory=list)
    most_affected: str = "Unknown"
    least_affected: str = "Unknown"


class MitigationPlan(BaseModel):
    """
    A costed mitigation strategy derived from a high-risk building snapshot.

    Immutable once generated.
    """

    id: str
    name: str
    strategy_type: MitigationStrategyType
    target_cost: int
    buildings_targeted: int
    target_building_ids: list[int] = Field(default_factory=list)
    projected_lives_saved: int
    projected_cost_reduction: int
    roi: float


class ScenarioResults(BaseModel):
    affected_buildings: AffectedBuildingSummary
    affected_hospitals: AffectedHospitalSummary
    critical_infrastructure: CriticalInfrastructureSummary
    casualties: CasualtyEstimate
    economic_impact: EconomicImpactEstimate
    high_risk_buildings: HighRiskBuildingSummary
    sector_analysis: SectorAnalysisSummary
    mitigation_plans: list[MitigationPlan] = Field(default_factory=list)


class MapData(BaseModel):
    """Identifier subsets for rendering a run on a map."""

    epicenter: GeoPoint
    radius_km: float = 0.0
    affected_building_ids: list[int] = Field(default_factory=list)
    severe_building_ids: list[int] = Field(default_factory=list)
    mild_building_ids: list[int] = Field(default_factory=list)
    hospital_ids: list[int] = Field(default_factory=list)
    critical_infrastructure_ids: list[int] = Field(default_factory=list)


class ScenarioRun(BaseModel):
    """
    Persisted state of one scenario pipeline execution.

    Attributes:
        scenario_id: Unique run identifier
        session_id: Session that owns the run and receives its notifications
        name: Human-readable scenario name
        status: Lifecycle status
        parameters: Disaster parameters
        steps: One record per pipeline stage, in execution order
        progress_percent: Checkpoint of the last completed stage
        results: Aggregate results, present only when COMPLETED
        mitigation_plans: Plans derived during the run
        report_text: Markdown report, present only when COMPLETED
        map_data: Map identifier subsets, present only when COMPLETED
        error: Failure or cancellation message
        failed_stage: Stage that raised, when FAILED
    """

    scenario_id: str
    session_id: str
    name: str
    status: ScenarioStatus = ScenarioStatus.PENDING
    parameters: ScenarioParameters
    steps: list[ScenarioStep] = Field(default_factory=list)
    progress_percent: int = Field(default=0, ge=0, le=100)
    results: Optional[ScenarioResults] = None
    mitigation_plans: list[MitigationPlan] = Field(default_factory=list)
    report_text: Optional[str] = None
    map_data: Optional[MapData] = None
    error: Optional[str] = None
    failed_stage: Optional[StageId] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    def step(self, stage: StageId) -> ScenarioStep:
        for step in self.steps:
            if step.stage == stage:
                return step
        raise KeyError(stage)


class OutcomeSnapshot(BaseModel):
    casualties: CasualtyEstimate
    economic_impact: EconomicImpactEstimate


class ImprovementSummary(BaseModel):
    lives_saved: int
    injuries_prevented: int
    cost_reduction: int
    percent_improvement: int


class MitigationComparisonResult(BaseModel):
    """Baseline versus mitigated outcome of a completed scenario."""

    scenario_id: str
    plan_id: str
    baseline: OutcomeSnapshot
    with_mitigation: OutcomeSnapshot
    improvement: ImprovementSummary


class SyntheticBuilding(BaseModel):
    """
    Representative building rebuilt from aggregate impact counts.

    Carries no identity beyond a positional id; ``building_type`` and
    ``condition`` are always unknown.
    """

    id: int
    status: DamageStatus
    apartments: int
    floors: int
    vulnerability_score: float
    building_type: Optional[str] = None
    condition: Optional[str] = None


class SyntheticHospital(BaseModel):
    id: int
    status: DamageStatus
    beds: int
