"""
Scenario service: the query surface of the impact engine.

Wraps the classifiers for direct building and hospital queries, owns the
scenario lifecycle (create, run in the background, cancel, inspect) and
the mitigation comparison of completed runs. Routers talk only to this
class.
"""

import asyncio
from typing import Optional
from uuid import uuid4

import structlog

from miraat.config import Settings, get_settings
from miraat.engine.comparison import MitigationComparator
from miraat.engine.geo_index import GeoIndex
from miraat.engine.impact import HospitalClassifier, ImpactClassifier
from miraat.engine.pipeline import CancellationRegistry, ScenarioPipeline, transition
from miraat.engine.vulnerability import VulnerabilityScorer
from miraat.exceptions import (
    CancellationError,
    NotFoundError,
    ScenarioStateError,
    StageExecutionError,
)
from miraat.models.buildings import GeoPoint, HospitalRecord
from miraat.models.enums import ScenarioStatus
from miraat.models.events import MitigationComparisonEvent
from miraat.models.impact import (
    BlastDefinition,
    BuildingDetail,
    BuildingImpactResult,
    EarthquakeDefinition,
    HospitalDetail,
    HospitalImpactResult,
    NearestHospitalsResult,
)
from miraat.models.scenario import MitigationComparisonResult, ScenarioParameters, ScenarioRun
from miraat.notifications import NotificationSink, NullNotificationSink
from miraat.storage.base import ScenarioStore
from miraat.utils.logging import scenario_context
from miraat.utils.rounding import round_half_up

logger = structlog.get_logger()

CANCELLED_BEFORE_START = "Analysis cancelled before start"


class ScenarioService:
    """
    Facade over the impact engine and scenario pipeline.

    Attributes:
        index: Building and hospital inventory
        store: Scenario persistence
        sink: Notification destination shared with the pipeline
        pipeline: Stage orchestrator
    """

    def __init__(
        self,
        index: GeoIndex,
        store: ScenarioStore,
        sink: Optional[NotificationSink] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.index = index
        self.store = store
        self.sink = sink or NullNotificationSink()

        self.scorer = VulnerabilityScorer(reference_year=self.settings.reference_year)
        self.impact_classifier = ImpactClassifier(index, self.scorer)
        self.hospital_classifier = HospitalClassifier(index)
        self.comparator = MitigationComparator()
        self.cancellations = CancellationRegistry()
        self.pipeline = ScenarioPipeline(
            index=index,
            store=store,
            sink=self.sink,
            cancellations=self.cancellations,
            settings=self.settings,
        )
        self._tasks: dict[str, asyncio.Task] = {}

    # ------------------------------------------------------------------
    # Building queries
    # ------------------------------------------------------------------

    def classify_by_blast(
        self, lon: float, lat: float, yield_kg: float, include_vulnerability: bool = False
    ) -> BuildingImpactResult:
        disaster = BlastDefinition(epicenter=GeoPoint(lon=lon, lat=lat), yield_kg=yield_kg)
        return self.impact_classifier.classify(disaster, include_vulnerability)

    def classify_by_earthquake(
        self, lon: float, lat: float, magnitude: float, include_vulnerability: bool = False
    ) -> BuildingImpactResult:
        disaster = EarthquakeDefinition(epicenter=GeoPoint(lon=lon, lat=lat), magnitude=magnitude)
        return self.impact_classifier.classify(disaster, include_vulnerability)

    def building_details(
        self, building_id: int, scenario_id: Optional[str] = None
    ) -> BuildingDetail:
        """
        Building record with its vulnerability and, given a scenario, its damage class.

        Raises:
            NotFoundError: If the building or the referenced scenario is unknown
        """
        building = self.index.building(building_id)
        if building is None:
            raise NotFoundError("Building", building_id)

        score, factors = self.scorer.assess(building)
        damage_status = "unknown"
        if scenario_id is not None:
            run = self.get_scenario(scenario_id)
            if run.map_data is not None:
                if building_id in run.map_data.severe_building_ids:
                    damage_status = "SEVERE"
                elif building_id in run.map_data.mild_building_ids:
                    damage_status = "MILD"
                else:
                    damage_status = "not_affected"

        return BuildingDetail(
            building=building,
            vulnerability_score=round_half_up(score, 3),
            vulnerability_factors=factors,
            scenario_id=scenario_id,
            damage_status=damage_status,
        )

    # ------------------------------------------------------------------
    # Hospital queries
    # ------------------------------------------------------------------

    def hospitals_by_blast(self, lon: float, lat: float, yield_kg: float) -> HospitalImpactResult:
        disaster = BlastDefinition(epicenter=GeoPoint(lon=lon, lat=lat), yield_kg=yield_kg)
        return self.hospital_classifier.classify(disaster)

    def hospitals_by_earthquake(
        self, lon: float, lat: float, magnitude: float
    ) -> HospitalImpactResult:
        disaster = EarthquakeDefinition(epicenter=GeoPoint(lon=lon, lat=lat), magnitude=magnitude)
        return self.hospital_classifier.classify(disaster)

    def nearest_hospitals(self, lon: float, lat: float, limit: int = 5) -> NearestHospitalsResult:
        return self.hospital_classifier.nearest(lon, lat, limit)

    def hospital_detail(self, hospital_id: int) -> HospitalDetail:
        return self.hospital_classifier.detail(hospital_id)

    def list_hospitals(self, type_filter: Optional[str] = None) -> list[HospitalRecord]:
        """All hospitals, optionally only those whose type label contains ``public`` or ``private``."""
        hospitals = list(self.index.hospitals)
        if type_filter and type_filter.lower() in ("public", "private"):
            needle = type_filter.lower()
            hospitals = [h for h in hospitals if needle in (h.type or "").lower()]
        return hospitals

    # ------------------------------------------------------------------
    # Scenario lifecycle
    # ------------------------------------------------------------------

    def create_scenario(self, session_id: str, name: str, parameters: ScenarioParameters) -> str:
        """
        Persist a new PENDING scenario.

        Returns:
            The new scenario id
        """
        run = ScenarioRun(
            scenario_id=f"scenario_{uuid4().hex}",
            session_id=session_id,
            name=name,
            parameters=parameters,
        )
        self.store.upsert(run)
        logger.info(
            "scenario_created",
            scenario_id=run.scenario_id,
            session_id=session_id,
            disaster_type=parameters.disaster_type.value,
        )
        return run.scenario_id

    def get_scenario(self, scenario_id: str) -> ScenarioRun:
        run = self.store.get(scenario_id)
        if run is None:
            raise NotFoundError("Scenario", scenario_id)
        return run

    def list_scenarios(self, session_id: str) -> list[ScenarioRun]:
        return self.store.list_by_session(session_id)

    async def run_analysis(self, scenario_id: str) -> ScenarioRun:
        """
        Run the full pipeline and wait for it.

        Raises:
            NotFoundError: If the scenario does not exist
            ScenarioStateError: If the scenario is not PENDING
            CancellationError: If the run was cancelled
            StageExecutionError: If a stage failed
        """
        with scenario_context(scenario_id):
            return await self.pipeline.run(scenario_id)

    async def start_analysis(self, scenario_id: str) -> asyncio.Task:
        """
        Start the pipeline as a background task on the running loop.

        The scenario is validated before the task is created so that an
        unknown or already started scenario is reported to the caller.
        """
        run = await asyncio.to_thread(self.get_scenario, scenario_id)
        if run.status != ScenarioStatus.PENDING or scenario_id in self._tasks:
            raise ScenarioStateError(
                f"Scenario {scenario_id} is {run.status.value}, only pending scenarios can run"
            )

        self.cancellations.register(scenario_id)
        task = asyncio.create_task(self.run_analysis(scenario_id), name=f"scenario:{scenario_id}")
        self._tasks[scenario_id] = task
        task.add_done_callback(lambda t: self._on_task_done(scenario_id, t))
        logger.info("scenario_analysis_scheduled", scenario_id=scenario_id)
        return task

    def _on_task_done(self, scenario_id: str, task: asyncio.Task) -> None:
        self._tasks.pop(scenario_id, None)
        self.cancellations.clear(scenario_id)
        if task.cancelled():
            logger.warning("scenario_task_interrupted", scenario_id=scenario_id)
            return
        error = task.exception()
        if error is not None and not isinstance(error, (CancellationError, StageExecutionError)):
            logger.error(
                "scenario_task_failed",
                scenario_id=scenario_id,
                error=str(error),
                error_type=type(error).__name__,
            )

    def cancel(self, scenario_id: str) -> ScenarioRun:
        """
        Request cancellation of a scenario.

        A running scenario stops before its next stage. A scenario that has
        not started is cancelled immediately. Cancelling a finished scenario
        changes nothing.

        Raises:
            NotFoundError: If the scenario does not exist
        """
        run = self.get_scenario(scenario_id)
        if run.status.is_terminal:
            logger.info(
                "scenario_cancel_ignored", scenario_id=scenario_id, status=run.status.value
            )
            return run

        if run.status == ScenarioStatus.PENDING and scenario_id not in self._tasks:

            def mutate(current: ScenarioRun) -> None:
                current.status = transition(current.status, ScenarioStatus.CANCELLED)
                current.error = CANCELLED_BEFORE_START

            try:
                run = self.store.update(scenario_id, mutate)
                logger.info("scenario_cancelled_before_start", scenario_id=scenario_id)
                return run
            except ScenarioStateError:
                # Started between the read and the update; fall through to the token.
                pass

        self.cancellations.cancel(scenario_id)
        return self.get_scenario(scenario_id)

    async def compare_with_mitigation(
        self, scenario_id: str, plan_id: str
    ) -> MitigationComparisonResult:
        """
        Compare a completed scenario with its outcome under a mitigation plan.

        The comparison is also published to the scenario's session.

        Raises:
            NotFoundError: If the scenario is unknown or not completed, or
                the plan is not one of its plans
        """
        run = await asyncio.to_thread(self.get_scenario, scenario_id)
        comparison = self.comparator.compare(run, plan_id)
        self.sink.publish(
            run.session_id,
            MitigationComparisonEvent(scenario_id=scenario_id, comparison=comparison),
        )
        return comparison

    async def shutdown(self) -> None:
        """Ask running scenarios to stop and wait for them."""
        tasks = list(self._tasks.items())
        for scenario_id, _ in tasks:
            self.cancellations.cancel(scenario_id)
        if tasks:
            await asyncio.gather(*(task for _, task in tasks), return_exceptions=True)
            logger.info("scenario_tasks_drained", count=len(tasks))

    @property
    def running_scenarios(self) -> int:
        return len(self._tasks)
