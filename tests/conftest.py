"""
Pytest configuration and shared fixtures for the MIR'AAT test suite.

Provides model factories, a small inventory around Beirut port, an
in-process scenario store and a recording notification sink, shared by the
unit, integration, golden and property-based suites.
"""

import math
import os
from pathlib import Path
from typing import Optional

import pytest

# Set testing environment BEFORE importing the app
FIXTURES_DIR = Path(__file__).parent / "fixtures"
os.environ["TESTING"] = "true"
os.environ["STORE_TYPE"] = "memory"
os.environ["BUILDINGS_PATH"] = str(FIXTURES_DIR / "buildings.geojson")
os.environ["HOSPITALS_PATH"] = str(FIXTURES_DIR / "hospitals.json")
os.environ["LOG_LEVEL"] = "warning"

from miraat.config import get_settings
from miraat.engine.geo_index import EARTH_RADIUS_M, GeoIndex
from miraat.models.buildings import BuildingRecord, GeoPoint, HospitalRecord
from miraat.models.enums import DisasterType, TimeOfDay
from miraat.models.scenario import HighRiskBuilding, ScenarioParameters, ScenarioRun
from miraat.notifications import NotificationSink
from miraat.services import ScenarioService
from miraat.storage import InMemoryScenarioStore

# Beirut port, the reference epicenter for all suites
EPICENTER = GeoPoint(lon=35.5186, lat=33.9010)


def offset_north(center: GeoPoint, meters: float) -> GeoPoint:
    """Point ``meters`` due north of ``center`` along the meridian."""
    dlat = math.degrees(meters / EARTH_RADIUS_M)
    return GeoPoint(lon=center.lon, lat=center.lat + dlat)


# ---------------------------------------------------------------------------
# Pydantic model factories, reusable across all test suites
# ---------------------------------------------------------------------------


def make_building(
    building_id: int = 1,
    distance_m: float = 0.0,
    center: GeoPoint = EPICENTER,
    apartment_count: Optional[int] = 10,
    floor_count: Optional[int] = 5,
    year_completed: Optional[int] = 1990,
    **overrides,
) -> BuildingRecord:
    """Factory function for creating test BuildingRecord objects."""
    defaults = dict(
        id=building_id,
        location=offset_north(center, distance_m),
        apartment_count=apartment_count,
        floor_count=floor_count,
        year_completed=year_completed,
        condition_category="Complete Residential",
        use_category="Residential",
        sector="Medawar",
    )
    defaults.update(overrides)
    return BuildingRecord(**defaults)


def make_hospital(
    hospital_id: int = 900,
    distance_m: float = 0.0,
    center: GeoPoint = EPICENTER,
    name: str = "Test Hospital",
    medicine_beds: Optional[int] = 20,
    icu_ccu_beds: Optional[int] = 5,
    **overrides,
) -> HospitalRecord:
    """Factory function for creating test HospitalRecord objects."""
    defaults = dict(
        id=hospital_id,
        name=name,
        type="Private Hospital",
        location=offset_north(center, distance_m),
        sector="Medawar",
        medicine_beds=medicine_beds,
        icu_ccu_beds=icu_ccu_beds,
    )
    defaults.update(overrides)
    return HospitalRecord(**defaults)


def make_high_risk_building(
    building_id: int = 1,
    vulnerability_score: float = 0.75,
    condition: Optional[str] = "poor",
    floors: Optional[int] = 5,
    **overrides,
) -> HighRiskBuilding:
    """Factory function for creating test HighRiskBuilding objects."""
    defaults = dict(
        id=building_id,
        vulnerability_score=vulnerability_score,
        condition=condition,
        floors=floors,
        sector="Medawar",
    )
    defaults.update(overrides)
    return HighRiskBuilding(**defaults)


def make_parameters(
    disaster_type: DisasterType = DisasterType.BLAST,
    yield_kg: Optional[float] = 8000.0,
    magnitude: Optional[float] = None,
    time_of_day: TimeOfDay = TimeOfDay.AFTERNOON,
    include_vulnerability: bool = False,
    **overrides,
) -> ScenarioParameters:
    """Factory function for creating test ScenarioParameters objects."""
    defaults = dict(
        disaster_type=disaster_type,
        lat=EPICENTER.lat,
        lon=EPICENTER.lon,
        yield_kg=yield_kg,
        magnitude=magnitude,
        time_of_day=time_of_day,
        include_vulnerability=include_vulnerability,
    )
    defaults.update(overrides)
    return ScenarioParameters(**defaults)


def make_inventory() -> GeoIndex:
    """
    Inventory north of the epicenter.

    With an 8000 kg blast (severe 100 m, mild 400 m): buildings 1-2 are
    SEVERE, 3-6 are MILD and 7 is outside; hospital 901 is SEVERE, 902 MILD
    and 903 operational.
    """
    buildings = [
        make_building(1, 40, apartment_count=10, floor_count=5, year_completed=1960,
                      condition_category="Old-Bldg-Inhabited", sector="Medawar"),
        make_building(2, 80, apartment_count=None, floor_count=12, year_completed=1995,
                      use_category="Commercial", sector="Medawar"),
        make_building(3, 150, apartment_count=6, floor_count=3, year_completed=1940,
                      condition_category="Evicted Building", sector="Rmeil"),
        make_building(4, 220, apartment_count=None, floor_count=2, year_completed=1980,
                      use_category="Institutional", condition_category="Non-Residential Building",
                      building_type="School", sector="Rmeil"),
        make_building(5, 300, apartment_count=None, floor_count=1, year_completed=1900,
                      use_category="Religious", condition_category="Not Available",
                      building_type="Mosque", sector="Saifi"),
        make_building(6, 360, apartment_count=8, floor_count=4, year_completed=2010,
                      use_category="Mixed-use", condition_category="Renovated", sector=None),
        make_building(7, 1500, apartment_count=16, floor_count=8, year_completed=2001,
                      sector="Achrafieh"),
    ]
    hospitals = [
        make_hospital(901, 60, name="Port Hospital", medicine_beds=20, icu_ccu_beds=5,
                      obgyn_beds=10),
        make_hospital(902, 250, name="Saifi Public Hospital", type="Public Hospital",
                      medicine_beds=50, icu_ccu_beds=10),
        make_hospital(903, 2000, name="Achrafieh Medical Center", medicine_beds=100,
                      icu_ccu_beds=None, surgery_beds=30),
    ]
    return GeoIndex(buildings, hospitals)


class RecordingSink(NotificationSink):
    """Notification sink that keeps every event in publish order."""

    def __init__(self):
        self.events: list[tuple[str, object]] = []

    def _deliver(self, session_id, event):
        self.events.append((session_id, event))

    def kinds(self) -> list[str]:
        return [event.kind.value for _, event in self.events]


class FailingSink(NotificationSink):
    def _deliver(self, session_id, event):
        raise ConnectionError("subscriber went away")


# ---------------------------------------------------------------------------
# Pytest fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def app_settings():
    return get_settings()


@pytest.fixture
def inventory() -> GeoIndex:
    return make_inventory()


@pytest.fixture
def memory_store() -> InMemoryScenarioStore:
    return InMemoryScenarioStore()


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def service(inventory, memory_store, recording_sink, app_settings) -> ScenarioService:
    return ScenarioService(
        index=inventory, store=memory_store, sink=recording_sink, settings=app_settings
    )


@pytest.fixture
def pending_run() -> ScenarioRun:
    return ScenarioRun(
        scenario_id="scenario_test_001",
        session_id="session_test",
        name="Port blast",
        parameters=make_parameters(),
    )
