"""
Integration tests for the scenario pipeline driven through ScenarioService.

Runs use the in-memory store and a recording notification sink, and cover
the three ways a run can end: completed, cancelled and failed.
"""

import asyncio

import pytest

from miraat.engine.pipeline import STAGES, ScenarioPipeline
from miraat.exceptions import (
    CancellationError,
    NotFoundError,
    ScenarioStateError,
    StageExecutionError,
)
from miraat.models.enums import (
    DisasterType,
    NotificationKind,
    ScenarioStatus,
    StageId,
    StepStatus,
)
from miraat.services import ScenarioService
from tests.conftest import FailingSink, make_parameters


def create(service, **parameter_overrides) -> str:
    return service.create_scenario(
        "session_test", "Port blast", make_parameters(**parameter_overrides)
    )


# =============================================================================
# Completed runs
# =============================================================================


def test_full_run_completes_with_results(service):
    scenario_id = create(service)

    run = asyncio.run(service.run_analysis(scenario_id))

    assert run.status == ScenarioStatus.COMPLETED
    assert run.progress_percent == 100
    assert all(step.status == StepStatus.COMPLETED for step in run.steps)

    results = run.results
    assert results.affected_buildings.total == 6
    assert results.affected_buildings.severe == 2
    assert results.affected_buildings.mild == 4
    assert results.affected_hospitals.total == 2
    assert results.affected_hospitals.beds_at_risk == 95
    assert results.affected_hospitals.functional_beds == 130
    assert results.critical_infrastructure.total == 2
    assert results.casualties.fatalities == 6
    assert results.casualties.severe_injuries == 17
    assert results.casualties.mild_injuries == 7
    assert results.economic_impact.total_cost == 115_650_000
    assert results.high_risk_buildings.total == 1
    assert results.sector_analysis.most_affected == "Medawar"
    assert len(results.mitigation_plans) == 4

    stored = service.get_scenario(scenario_id)
    assert stored.status == ScenarioStatus.COMPLETED
    assert stored.report_text.startswith("# Port blast - Impact Assessment Report")
    assert len(stored.mitigation_plans) == 4


def test_map_data_identifier_subsets(service):
    run = asyncio.run(service.run_analysis(create(service)))

    map_data = run.map_data
    assert map_data.radius_km == pytest.approx(0.4)
    assert map_data.affected_building_ids == [1, 2, 3, 4, 5, 6]
    assert map_data.severe_building_ids == [1, 2]
    assert map_data.mild_building_ids == [3, 4, 5, 6]
    assert map_data.hospital_ids == [901, 902]
    assert map_data.critical_infrastructure_ids == [4, 5]


def test_step_payloads_are_json_documents(service):
    run = asyncio.run(service.run_analysis(create(service)))

    impact = run.step(StageId.IMPACT_ASSESSMENT).result
    assert "buildings" not in impact
    assert impact["summary"]["severe_count"] == 2
    assert run.step(StageId.CASUALTY_ESTIMATION).result["fatalities"] == 6
    assert len(run.step(StageId.MITIGATION_PLANNING).result) == 4
    assert run.step(StageId.REPORT_GENERATION).result == run.report_text


def test_progress_notifications_follow_checkpoints(service, recording_sink):
    scenario_id = create(service)
    asyncio.run(service.run_analysis(scenario_id))

    events = [event for _, event in recording_sink.events]
    progress = [e for e in events if e.kind == NotificationKind.SCENARIO_PROGRESS]

    assert [e.progress for e in progress] == [s.checkpoint for s in STAGES]
    assert [e.step_index for e in progress] == list(range(len(STAGES)))
    assert all(e.total_steps == 9 for e in progress)
    assert events[-1].kind == NotificationKind.SCENARIO_COMPLETE
    assert events[-1].structured.casualties.fatalities == 6
    assert events[-1].map_data.severe_building_ids == [1, 2]
    assert all(session == "session_test" for session, _ in recording_sink.events)


def test_vulnerability_adjusted_run(service):
    run = asyncio.run(service.run_analysis(create(service, include_vulnerability=True)))

    assert run.status == ScenarioStatus.COMPLETED
    distribution = run.step(StageId.IMPACT_ASSESSMENT).result["statistics"][
        "vulnerability_distribution"
    ]
    assert distribution["medium_risk"] == 3


def test_earthquake_with_default_magnitude(service):
    scenario_id = create(service, disaster_type=DisasterType.EARTHQUAKE, yield_kg=None)
    run = asyncio.run(service.run_analysis(scenario_id))

    assert run.results.affected_buildings.severe == 7
    assert run.results.affected_hospitals.total == 3
    assert run.results.affected_hospitals.functional_beds == 0
    assert run.map_data.radius_km == pytest.approx(15.849, abs=1e-3)


def test_unreachable_sink_does_not_break_the_run(inventory, memory_store, app_settings):
    service = ScenarioService(inventory, memory_store, sink=FailingSink(), settings=app_settings)
    run = asyncio.run(service.run_analysis(create(service)))
    assert run.status == ScenarioStatus.COMPLETED


def test_completed_run_cannot_run_again(service):
    scenario_id = create(service)
    asyncio.run(service.run_analysis(scenario_id))

    with pytest.raises(ScenarioStateError):
        asyncio.run(service.run_analysis(scenario_id))


def test_unknown_scenario(service):
    with pytest.raises(NotFoundError):
        asyncio.run(service.run_analysis("scenario_missing"))


def test_pipeline_runs_directly_against_a_store(inventory, memory_store, pending_run, app_settings):
    memory_store.upsert(pending_run)
    pipeline = ScenarioPipeline(inventory, memory_store, settings=app_settings)

    run = asyncio.run(pipeline.run(pending_run.scenario_id))

    assert run.status == ScenarioStatus.COMPLETED
    assert run.name == "Port blast"


# =============================================================================
# Cancellation
# =============================================================================


def test_cancel_between_stages(service, recording_sink):
    scenario_id = create(service)
    hospital_stage = service.pipeline.handlers[StageId.HOSPITAL_ANALYSIS]

    def hospital_then_cancel(ctx):
        result = hospital_stage(ctx)
        service.cancel(scenario_id)
        return result

    service.pipeline.handlers[StageId.HOSPITAL_ANALYSIS] = hospital_then_cancel

    with pytest.raises(CancellationError) as exc_info:
        asyncio.run(service.run_analysis(scenario_id))
    assert exc_info.value.stage == StageId.CRITICAL_INFRASTRUCTURE.value

    run = service.get_scenario(scenario_id)
    assert run.status == ScenarioStatus.CANCELLED
    assert run.error == "Analysis cancelled by user"
    assert run.results is None
    assert run.report_text is None
    assert run.progress_percent == 20
    statuses = [step.status for step in run.steps]
    assert statuses[:2] == [StepStatus.COMPLETED, StepStatus.COMPLETED]
    assert all(status == StepStatus.PENDING for status in statuses[2:])

    last = recording_sink.events[-1][1]
    assert last.kind == NotificationKind.SCENARIO_ERROR
    assert last.cancelled is True
    assert last.step == "Critical Infrastructure"
    assert not service.cancellations.is_cancelled(scenario_id)


def test_cancel_before_start(service):
    scenario_id = create(service)

    run = service.cancel(scenario_id)

    assert run.status == ScenarioStatus.CANCELLED
    assert run.error == "Analysis cancelled before start"
    with pytest.raises(ScenarioStateError):
        asyncio.run(service.run_analysis(scenario_id))


def test_cancel_finished_run_changes_nothing(service):
    scenario_id = create(service)
    asyncio.run(service.run_analysis(scenario_id))

    run = service.cancel(scenario_id)

    assert run.status == ScenarioStatus.COMPLETED
    assert not service.cancellations.is_cancelled(scenario_id)


def test_cancel_unknown_scenario(service):
    with pytest.raises(NotFoundError):
        service.cancel("scenario_missing")


def test_cancellation_tokens_do_not_outlive_runs(service):
    finished = create(service)
    asyncio.run(service.run_analysis(finished))
    service.cancel(finished)

    never_started = create(service)
    service.cancel(never_started)
    with pytest.raises(ScenarioStateError):
        asyncio.run(service.run_analysis(never_started))

    with pytest.raises(NotFoundError):
        service.cancel("scenario_missing")

    assert len(service.cancellations) == 0


# =============================================================================
# Failure
# =============================================================================


def test_failing_stage_marks_run_failed(service, recording_sink):
    scenario_id = create(service)

    def broken(ctx):
        raise RuntimeError("casualty model unavailable")

    service.pipeline.handlers[StageId.CASUALTY_ESTIMATION] = broken

    with pytest.raises(StageExecutionError) as exc_info:
        asyncio.run(service.run_analysis(scenario_id))
    assert exc_info.value.stage == StageId.CASUALTY_ESTIMATION.value
    assert isinstance(exc_info.value.__cause__, RuntimeError)

    run = service.get_scenario(scenario_id)
    assert run.status == ScenarioStatus.FAILED
    assert run.failed_stage == StageId.CASUALTY_ESTIMATION
    assert run.error == "casualty model unavailable"
    assert run.results is None
    assert run.report_text is None
    assert run.progress_percent == 30

    steps = {step.stage: step.status for step in run.steps}
    assert steps[StageId.CRITICAL_INFRASTRUCTURE] == StepStatus.COMPLETED
    assert steps[StageId.CASUALTY_ESTIMATION] == StepStatus.FAILED
    assert steps[StageId.ECONOMIC_ANALYSIS] == StepStatus.PENDING

    last = recording_sink.events[-1][1]
    assert last.kind == NotificationKind.SCENARIO_ERROR
    assert last.cancelled is False
    assert last.error == "casualty model unavailable"


# =============================================================================
# Background runs
# =============================================================================


def test_background_run_completes(service):
    scenario_id = create(service)

    async def scenario():
        task = await service.start_analysis(scenario_id)
        assert service.running_scenarios == 1
        with pytest.raises(ScenarioStateError):
            await service.start_analysis(scenario_id)
        await task
        await asyncio.sleep(0)

    asyncio.run(scenario())

    assert service.get_scenario(scenario_id).status == ScenarioStatus.COMPLETED
    assert service.running_scenarios == 0
    assert len(service.cancellations) == 0


def test_shutdown_cancels_running_scenarios(service):
    scenario_id = create(service)

    async def scenario():
        await service.start_analysis(scenario_id)
        await service.shutdown()

    asyncio.run(scenario())

    assert service.get_scenario(scenario_id).status == ScenarioStatus.CANCELLED


def test_cancel_right_after_background_start(service):
    scenario_id = create(service)

    async def scenario():
        task = await service.start_analysis(scenario_id)
        service.cancel(scenario_id)
        await asyncio.gather(task, return_exceptions=True)
        await asyncio.sleep(0)

    asyncio.run(scenario())

    run = service.get_scenario(scenario_id)
    assert run.status == ScenarioStatus.CANCELLED
    assert run.progress_percent == 0
    assert len(service.cancellations) == 0


# =============================================================================
# Queries and comparison
# =============================================================================


def test_compare_with_mitigation(service, recording_sink):
    scenario_id = create(service)
    run = asyncio.run(service.run_analysis(scenario_id))
    plan_id = run.mitigation_plans[0].id

    comparison = asyncio.run(service.compare_with_mitigation(scenario_id, plan_id))

    assert comparison.improvement.lives_saved == 3
    assert comparison.improvement.percent_improvement == 33
    assert recording_sink.events[-1][1].kind == NotificationKind.MITIGATION_COMPARISON


def test_compare_requires_completed_run(service):
    scenario_id = create(service)
    with pytest.raises(NotFoundError):
        asyncio.run(service.compare_with_mitigation(scenario_id, "plan"))


def test_building_details_with_scenario(service):
    scenario_id = create(service)
    asyncio.run(service.run_analysis(scenario_id))

    assert service.building_details(1, scenario_id).damage_status == "SEVERE"
    assert service.building_details(3, scenario_id).damage_status == "MILD"
    assert service.building_details(7, scenario_id).damage_status == "not_affected"

    detail = service.building_details(3)
    assert detail.damage_status == "unknown"
    assert detail.vulnerability_score == pytest.approx(0.643)


def test_building_details_unknown_ids(service):
    with pytest.raises(NotFoundError):
        service.building_details(999)
    with pytest.raises(NotFoundError):
        service.building_details(1, "scenario_missing")


def test_list_hospitals_type_filter(service):
    assert [h.id for h in service.list_hospitals("public")] == [902]
    assert [h.id for h in service.list_hospitals("Private")] == [901, 903]
    assert len(service.list_hospitals()) == 3
    assert len(service.list_hospitals("military")) == 3


def test_list_scenarios_by_session(service):
    first = create(service)
    second = create(service)
    service.create_scenario("other_session", "Elsewhere", make_parameters())

    ids = [run.scenario_id for run in service.list_scenarios("session_test")]

    assert set(ids) == {first, second}
