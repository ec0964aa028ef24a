"""
Scenario Pipeline: staged, cancellable scenario analysis.

Runs the impact engine over one scenario in a fixed stage order:

    impact assessment -> hospital analysis -> critical infrastructure ->
    casualty estimation -> economic analysis -> risk identification ->
    sector breakdown -> mitigation planning -> report generation

Every stage transition is persisted through ``ScenarioStore.update`` and
reported to the session's notification sink. Cancellation is polled before
each stage. A failing stage marks its step and the run FAILED and nothing
from the partial run is stored as results.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import structlog

from miraat.config import Settings, get_settings
from miraat.engine.calculators import CasualtyEstimator, EconomicEstimator, MitigationPlanner
from miraat.engine.geo_index import GeoIndex
from miraat.engine.impact import HospitalClassifier, ImpactClassifier, InfrastructureLocator
from miraat.engine.report_generator import ReportGenerator
from miraat.engine.risk import RiskAnalyzer
from miraat.engine.synthetic import expand_hospital_summary, expand_summary_to_synthetic_records
from miraat.engine.vulnerability import VulnerabilityScorer
from miraat.exceptions import CancellationError, StageExecutionError
from miraat.models.enums import DamageStatus, ScenarioStatus, StageId, StepStatus
from miraat.models.events import (
    ScenarioCompleteEvent,
    ScenarioErrorEvent,
    ScenarioProgressEvent,
)
from miraat.models.impact import BuildingImpactResult, HospitalImpactResult
from miraat.models.scenario import (
    AffectedBuildingSummary,
    AffectedHospitalSummary,
    CasualtyEstimate,
    CriticalInfrastructureSummary,
    EconomicImpactEstimate,
    HighRiskBuilding,
    HighRiskBuildingSummary,
    MapData,
    MitigationPlan,
    ScenarioParameters,
    ScenarioResults,
    ScenarioRun,
    ScenarioStep,
    SectorAnalysisSummary,
)
from miraat.notifications import NotificationSink, NullNotificationSink
from miraat.storage.base import ScenarioStore
from miraat.utils.rounding import round_half_up

from .cancellation import CancellationRegistry
from .stages import STAGES, StageDefinition
from .state_machine import transition

logger = structlog.get_logger()

StageHandler = Callable[["RunContext"], Any]


@dataclass
class RunContext:
    """
    Working state of one run, threaded through the stage handlers.

    Stage handlers read what earlier stages produced and store their own
    output here; the return value of a handler becomes its step payload.
    """

    scenario_id: str
    session_id: str
    name: str
    parameters: ScenarioParameters
    disaster: Any
    impact: Optional[BuildingImpactResult] = None
    hospital_impact: Optional[HospitalImpactResult] = None
    affected_buildings: AffectedBuildingSummary = field(default_factory=AffectedBuildingSummary)
    affected_hospitals: AffectedHospitalSummary = field(default_factory=AffectedHospitalSummary)
    critical_infrastructure: CriticalInfrastructureSummary = field(
        default_factory=CriticalInfrastructureSummary
    )
    casualties: CasualtyEstimate = field(default_factory=CasualtyEstimate)
    economic_impact: EconomicImpactEstimate = field(default_factory=EconomicImpactEstimate)
    high_risk: list[HighRiskBuilding] = field(default_factory=list)
    high_risk_summary: HighRiskBuildingSummary = field(default_factory=HighRiskBuildingSummary)
    sector_analysis: SectorAnalysisSummary = field(default_factory=SectorAnalysisSummary)
    mitigation_plans: list[MitigationPlan] = field(default_factory=list)
    report: str = ""
    map_data: Optional[MapData] = None

    def results(self) -> ScenarioResults:
        return ScenarioResults(
            affected_buildings=self.affected_buildings,
            affected_hospitals=self.affected_hospitals,
            critical_infrastructure=self.critical_infrastructure,
            casualties=self.casualties,
            economic_impact=self.economic_impact,
            high_risk_buildings=self.high_risk_summary,
            sector_analysis=self.sector_analysis,
            mitigation_plans=self.mitigation_plans,
        )


def _payload(value: Any) -> Any:
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [_payload(item) for item in value]
    return value


class ScenarioPipeline:
    """
    Orchestrates the impact engine for scenario runs.

    Attributes:
        index: Building and hospital inventory
        store: Scenario persistence
        sink: Notification destination
        cancellations: Per-run cancellation tokens
        handlers: Stage handler per stage id
    """

    def __init__(
        self,
        index: GeoIndex,
        store: ScenarioStore,
        sink: Optional[NotificationSink] = None,
        cancellations: Optional[CancellationRegistry] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.index = index
        self.store = store
        self.sink = sink or NullNotificationSink()
        self.cancellations = cancellations or CancellationRegistry()

        scorer = VulnerabilityScorer(reference_year=self.settings.reference_year)
        self.impact_classifier = ImpactClassifier(index, scorer)
        self.hospital_classifier = HospitalClassifier(index)
        self.infrastructure_locator = InfrastructureLocator(index)
        self.casualty_estimator = CasualtyEstimator()
        self.economic_estimator = EconomicEstimator()
        self.risk_analyzer = RiskAnalyzer(index, scorer, self.settings.high_risk_threshold)
        self.mitigation_planner = MitigationPlanner()
        self.report_generator = ReportGenerator(
            default_yield_kg=self.settings.default_yield_kg,
            default_magnitude=self.settings.default_magnitude,
        )

        self.handlers: dict[StageId, StageHandler] = {
            StageId.IMPACT_ASSESSMENT: self._impact_assessment,
            StageId.HOSPITAL_ANALYSIS: self._hospital_analysis,
            StageId.CRITICAL_INFRASTRUCTURE: self._critical_infrastructure,
            StageId.CASUALTY_ESTIMATION: self._casualty_estimation,
            StageId.ECONOMIC_ANALYSIS: self._economic_analysis,
            StageId.RISK_IDENTIFICATION: self._risk_identification,
            StageId.SECTOR_BREAKDOWN: self._sector_breakdown,
            StageId.MITIGATION_PLANNING: self._mitigation_planning,
            StageId.REPORT_GENERATION: self._report_generation,
        }

    # ------------------------------------------------------------------
    # Run loop
    # ------------------------------------------------------------------

    async def run(self, scenario_id: str) -> ScenarioRun:
        """
        Execute every stage of a PENDING scenario.

        Returns:
            The COMPLETED run

        Raises:
            NotFoundError: If the scenario does not exist
            ScenarioStateError: If the scenario is not PENDING
            CancellationError: If cancellation was observed between stages
            StageExecutionError: If a stage raised
        """
        # registered before the RUNNING transition so a cancel that sees
        # RUNNING always finds the token
        fresh = self.cancellations.token(scenario_id) is None
        self.cancellations.register(scenario_id)
        try:
            run = await self._update(scenario_id, self._start)
        except Exception:
            if fresh:
                self.cancellations.clear(scenario_id)
            raise
        ctx = RunContext(
            scenario_id=run.scenario_id,
            session_id=run.session_id,
            name=run.name,
            parameters=run.parameters,
            disaster=run.parameters.to_definition(
                self.settings.default_yield_kg, self.settings.default_magnitude
            ),
        )
        logger.info(
            "scenario_run_started",
            scenario_id=scenario_id,
            disaster_type=run.parameters.disaster_type.value,
        )

        for step_index, definition in enumerate(STAGES):
            if self.cancellations.is_cancelled(scenario_id):
                await self._cancel(ctx, definition)

            await self._update(scenario_id, self._step_started(definition.stage))
            self._publish(
                ctx.session_id,
                ScenarioProgressEvent(
                    scenario_id=scenario_id,
                    stage=definition.stage,
                    step=definition.name,
                    step_index=step_index,
                    total_steps=len(STAGES),
                    progress=definition.checkpoint,
                ),
            )

            try:
                payload = await asyncio.to_thread(self.handlers[definition.stage], ctx)
            except Exception as e:
                await self._fail(ctx, definition, e)

            await self._update(scenario_id, self._step_completed(definition, _payload(payload)))
            logger.debug(
                "scenario_stage_completed",
                scenario_id=scenario_id,
                stage=definition.stage.value,
                progress=definition.checkpoint,
            )

        run = await self._update(scenario_id, self._complete(ctx))
        self.cancellations.clear(scenario_id)
        self._publish(
            ctx.session_id,
            ScenarioCompleteEvent(
                scenario_id=scenario_id,
                report=ctx.report,
                structured=run.results,
                map_data=ctx.map_data,
            ),
        )
        logger.info(
            "scenario_run_completed",
            scenario_id=scenario_id,
            fatalities=ctx.casualties.fatalities,
            total_cost=ctx.economic_impact.total_cost,
            plans=len(ctx.mitigation_plans),
        )
        return run

    async def _update(self, scenario_id: str, mutator) -> ScenarioRun:
        return await asyncio.to_thread(self.store.update, scenario_id, mutator)

    def _publish(self, session_id: str, event) -> None:
        self.sink.publish(session_id, event)

    async def _cancel(self, ctx: RunContext, definition: StageDefinition) -> None:
        error = CancellationError(ctx.scenario_id, definition.stage.value)

        def mutate(run: ScenarioRun) -> None:
            run.status = transition(run.status, ScenarioStatus.CANCELLED)
            run.error = "Analysis cancelled by user"

        await self._update(ctx.scenario_id, mutate)
        self.cancellations.clear(ctx.scenario_id)
        self._publish(
            ctx.session_id,
            ScenarioErrorEvent(
                scenario_id=ctx.scenario_id,
                error="Analysis cancelled by user",
                step=definition.name,
                cancelled=True,
            ),
        )
        logger.info(
            "scenario_run_cancelled",
            scenario_id=ctx.scenario_id,
            before_stage=definition.stage.value,
        )
        raise error

    async def _fail(self, ctx: RunContext, definition: StageDefinition, cause: Exception) -> None:
        message = str(cause) or type(cause).__name__

        def mutate(run: ScenarioRun) -> None:
            run.step(definition.stage).status = StepStatus.FAILED
            run.status = transition(run.status, ScenarioStatus.FAILED)
            run.error = message
            run.failed_stage = definition.stage

        await self._update(ctx.scenario_id, mutate)
        self.cancellations.clear(ctx.scenario_id)
        self._publish(
            ctx.session_id,
            ScenarioErrorEvent(scenario_id=ctx.scenario_id, error=message, step=definition.name),
        )
        logger.error(
            "scenario_stage_failed",
            scenario_id=ctx.scenario_id,
            stage=definition.stage.value,
            error=message,
        )
        raise StageExecutionError(ctx.scenario_id, definition.stage.value, message) from cause

    # ------------------------------------------------------------------
    # Store mutators
    # ------------------------------------------------------------------

    @staticmethod
    def _start(run: ScenarioRun) -> None:
        run.status = transition(run.status, ScenarioStatus.RUNNING)
        run.steps = [ScenarioStep(stage=d.stage, name=d.name) for d in STAGES]
        run.progress_percent = 0
        run.error = None
        run.failed_stage = None

    @staticmethod
    def _step_started(stage: StageId):
        def mutate(run: ScenarioRun) -> None:
            run.step(stage).status = StepStatus.RUNNING

        return mutate

    @staticmethod
    def _step_completed(definition: StageDefinition, payload: Any):
        def mutate(run: ScenarioRun) -> None:
            step = run.step(definition.stage)
            step.status = StepStatus.COMPLETED
            step.result = payload
            run.progress_percent = definition.checkpoint

        return mutate

    @staticmethod
    def _complete(ctx: RunContext):
        def mutate(run: ScenarioRun) -> None:
            run.status = transition(run.status, ScenarioStatus.COMPLETED)
            run.results = ctx.results()
            run.mitigation_plans = list(ctx.mitigation_plans)
            run.report_text = ctx.report
            run.map_data = ctx.map_data

        return mutate

    # ------------------------------------------------------------------
    # Stage handlers
    # ------------------------------------------------------------------

    def _impact_assessment(self, ctx: RunContext):
        impact = self.impact_classifier.classify(
            ctx.disaster, adjust_for_vulnerability=ctx.parameters.include_vulnerability
        )
        ctx.impact = impact
        ctx.affected_buildings = AffectedBuildingSummary(
            total=impact.summary.total_buildings,
            severe=impact.summary.severe_count,
            mild=impact.summary.mild_count,
            by_type=impact.statistics.buildings_by_use,
        )
        ctx.map_data = MapData(
            epicenter=ctx.disaster.epicenter,
            radius_km=round_half_up(impact.parameters.mild_radius_m / 1000.0, 3),
            affected_building_ids=[b.id for b in impact.buildings],
            severe_building_ids=[b.id for b in impact.buildings if b.status == DamageStatus.SEVERE],
            mild_building_ids=[b.id for b in impact.buildings if b.status == DamageStatus.MILD],
        )
        return impact.model_dump(mode="json", exclude={"buildings"})

    def _hospital_analysis(self, ctx: RunContext):
        hospitals = self.hospital_classifier.classify(ctx.disaster)
        ctx.hospital_impact = hospitals
        ctx.affected_hospitals = AffectedHospitalSummary(
            total=hospitals.summary.total_hospitals,
            severe=hospitals.summary.severe_count,
            mild=hospitals.summary.mild_count,
            beds_at_risk=hospitals.summary.beds_affected.total,
            functional_beds=hospitals.operational.total_beds,
        )
        ctx.map_data.hospital_ids = [h.id for h in hospitals.hospitals]
        return hospitals

    def _critical_infrastructure(self, ctx: RunContext):
        ctx.critical_infrastructure = self.infrastructure_locator.locate(ctx.disaster)
        ctx.map_data.critical_infrastructure_ids = list(ctx.critical_infrastructure.building_ids)
        return ctx.critical_infrastructure

    def _casualty_estimation(self, ctx: RunContext):
        buildings = expand_summary_to_synthetic_records(ctx.affected_buildings)
        ctx.casualties = self.casualty_estimator.estimate(buildings, ctx.parameters.time_of_day)
        return ctx.casualties

    def _economic_analysis(self, ctx: RunContext):
        ctx.economic_impact = self.economic_estimator.estimate(
            expand_summary_to_synthetic_records(ctx.affected_buildings),
            hospitals=expand_hospital_summary(ctx.affected_hospitals),
            infrastructure=InfrastructureLocator.counts_by_type(ctx.critical_infrastructure),
            casualties=ctx.casualties,
        )
        return ctx.economic_impact

    def _risk_identification(self, ctx: RunContext):
        ctx.high_risk = self.risk_analyzer.high_risk_buildings(ctx.impact.buildings)
        ctx.high_risk_summary = self.risk_analyzer.summarize(ctx.high_risk)
        return ctx.high_risk_summary

    def _sector_breakdown(self, ctx: RunContext):
        ctx.sector_analysis = self.risk_analyzer.sector_analysis(ctx.impact.buildings)
        return ctx.sector_analysis

    def _mitigation_planning(self, ctx: RunContext):
        ctx.mitigation_plans = self.mitigation_planner.generate_plans(ctx.high_risk)
        return ctx.mitigation_plans

    def _report_generation(self, ctx: RunContext):
        ctx.report = self.report_generator.generate(ctx.name, ctx.parameters, ctx.results())
        return ctx.report
