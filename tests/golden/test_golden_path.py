"""
Golden path tests for the MIR'AAT impact engine.

Fixed reference figures for the damage radii and casualty model, and one
end-to-end scenario over the fixture dataset: ingestion, classification,
the nine analysis stages, report generation and mitigation comparison.
"""

import asyncio

import pytest

from miraat.adapters import load_index
from miraat.config import Settings, get_settings
from miraat.engine.calculators import CasualtyEstimator
from miraat.engine.impact import blast_radii, earthquake_radii
from miraat.models.enums import DamageStatus, NotificationKind, ScenarioStatus, TimeOfDay
from miraat.models.scenario import SyntheticBuilding
from miraat.notifications import BufferedNotificationSink
from miraat.services import ScenarioService
from miraat.storage import InMemoryScenarioStore
from tests.conftest import FIXTURES_DIR, make_parameters


@pytest.fixture(scope="module")
def dataset_index():
    settings = Settings(
        buildings_path=str(FIXTURES_DIR / "buildings.geojson"),
        hospitals_path=str(FIXTURES_DIR / "hospitals.json"),
    )
    return load_index(settings)


# ============================================================================
# Reference figures
# ============================================================================


def test_golden_blast_radii_for_large_yield():
    radii = blast_radii(2_750_000)
    assert radii.severe_m == pytest.approx(700.5, abs=0.1)
    assert radii.mild_m == pytest.approx(2802.0, abs=0.1)


def test_golden_earthquake_radii_for_magnitude_six():
    radii = earthquake_radii(6.0)
    assert radii.severe_m == pytest.approx(3162.3, abs=0.1)
    assert radii.mild_m == pytest.approx(15848.9, abs=0.1)


def test_golden_casualty_reference_building():
    building = SyntheticBuilding(
        id=0, status=DamageStatus.SEVERE, apartments=10, floors=5, vulnerability_score=0.7
    )
    estimate = CasualtyEstimator().estimate([building], TimeOfDay.AFTERNOON)
    assert estimate.fatalities == 5


# ============================================================================
# End-to-end scenario over the fixture dataset
# ============================================================================


def test_golden_port_blast_scenario(dataset_index):
    sink = BufferedNotificationSink(max_events=64)
    service = ScenarioService(
        index=dataset_index,
        store=InMemoryScenarioStore(),
        sink=sink,
        settings=get_settings(),
    )
    scenario_id = service.create_scenario("golden", "Port blast", make_parameters())

    run = asyncio.run(service.run_analysis(scenario_id))

    # Classification: 101-102 severe, 103/107/104/105 mild, 106 outside
    assert run.status == ScenarioStatus.COMPLETED
    assert run.map_data.severe_building_ids == [101, 102]
    assert sorted(run.map_data.mild_building_ids) == [103, 104, 105, 107]
    assert run.map_data.hospital_ids == [201, 202]
    assert run.map_data.critical_infrastructure_ids == [104, 105]

    results = run.results
    assert results.affected_hospitals.beds_at_risk == 100
    assert results.affected_hospitals.functional_beds == 130
    assert results.casualties.fatalities == 6
    assert results.casualties.severe_injuries == 17
    assert results.casualties.mild_injuries == 7
    assert results.economic_impact.total_cost == 115_650_000

    assert "Impact Assessment Report" in run.report_text
    assert "| **Total** | **$115.65M** |" in run.report_text

    events = sink.drain("golden")
    assert [e.kind for e in events][-1] == NotificationKind.SCENARIO_COMPLETE
    assert [e.progress for e in events[:-1]] == [10, 20, 30, 45, 60, 70, 80, 90, 100]

    plan = run.mitigation_plans[0]
    comparison = asyncio.run(service.compare_with_mitigation(scenario_id, plan.id))
    assert comparison.improvement.lives_saved >= 0
    assert comparison.with_mitigation.casualties.fatalities <= comparison.baseline.casualties.fatalities
