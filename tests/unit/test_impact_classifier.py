"""
Unit tests for damage radii, building classification and impact statistics.
"""

import pytest

from miraat.engine.geo_index import GeoIndex
from miraat.engine.impact import ImpactClassifier, blast_radii, earthquake_radii, radii_for
from miraat.engine.impact.classifier import adjusted_severe_radius
from miraat.engine.impact.statistics import condition_category, use_category
from miraat.models.enums import DamageStatus, DisasterType
from miraat.models.impact import BlastDefinition, EarthquakeDefinition
from tests.conftest import EPICENTER, make_building


def blast(yield_kg: float = 8000.0) -> BlastDefinition:
    return BlastDefinition(epicenter=EPICENTER, yield_kg=yield_kg)


# =============================================================================
# Radii
# =============================================================================


def test_blast_radii_cube_root_scaling():
    radii = blast_radii(8000.0)
    assert radii.severe_m == pytest.approx(100.0)
    assert radii.mild_m == pytest.approx(400.0)


def test_zero_yield_has_zero_radii():
    radii = blast_radii(0.0)
    assert radii.severe_m == 0.0
    assert radii.mild_m == 0.0


def test_earthquake_radii_magnitude_scaling():
    radii = earthquake_radii(5.0)
    assert radii.severe_m == pytest.approx(1000.0)
    assert radii.mild_m == pytest.approx(10 ** 0.7 * 1000.0)


def test_radii_for_dispatches_on_definition():
    quake = EarthquakeDefinition(epicenter=EPICENTER, magnitude=5.0)
    assert radii_for(blast()).severe_m == pytest.approx(100.0)
    assert radii_for(quake).severe_m == pytest.approx(1000.0)


def test_radii_for_rejects_unknown_definition():
    with pytest.raises(TypeError):
        radii_for(EPICENTER)


def test_adjusted_severe_radius_scales_with_vulnerability():
    assert adjusted_severe_radius(100.0, 0.5) == pytest.approx(100.0)
    assert adjusted_severe_radius(100.0, 1.0) == pytest.approx(150.0)
    assert adjusted_severe_radius(100.0, 0.0) == pytest.approx(50.0)


# =============================================================================
# Classification
# =============================================================================


def test_classify_standard_mode(inventory):
    result = ImpactClassifier(inventory).classify(blast())

    statuses = {b.id: b.status for b in result.buildings}
    assert statuses == {
        1: DamageStatus.SEVERE,
        2: DamageStatus.SEVERE,
        3: DamageStatus.MILD,
        4: DamageStatus.MILD,
        5: DamageStatus.MILD,
        6: DamageStatus.MILD,
    }
    assert result.summary.total_buildings == 6
    assert result.summary.severe_count == 2
    assert result.summary.mild_count == 4
    assert result.summary.total_apartments == 24
    assert result.disaster_type == DisasterType.BLAST
    assert result.parameters.yield_kg == 8000.0
    assert result.parameters.severe_radius_m == pytest.approx(100.0)


def test_standard_mode_carries_no_vulnerability(inventory):
    result = ImpactClassifier(inventory).classify(blast())
    assert all(b.vulnerability_score is None for b in result.buildings)
    assert result.statistics.vulnerability_distribution is None


def test_counts_always_add_up(inventory):
    for yield_kg in (1.0, 500.0, 8000.0, 2_000_000.0):
        summary = ImpactClassifier(inventory).classify(blast(yield_kg)).summary
        assert summary.severe_count + summary.mild_count == summary.total_buildings


def test_classification_is_idempotent(inventory):
    classifier = ImpactClassifier(inventory)
    first = classifier.classify(blast(), adjust_for_vulnerability=True)
    second = classifier.classify(blast(), adjust_for_vulnerability=True)
    assert first.model_dump() == second.model_dump()


def test_vulnerability_adjustment_can_invert_distance_order():
    fragile = make_building(
        10,
        120.0,
        floor_count=40,
        year_completed=1850,
        condition_category="Evicted Building",
        use_category="Run down",
    )
    robust = make_building(
        11,
        90.0,
        floor_count=0,
        year_completed=2026,
        condition_category="Renovated",
        use_category="Parking",
    )
    classifier = ImpactClassifier(GeoIndex([fragile, robust]))

    standard = {b.id: b.status for b in classifier.classify(blast()).buildings}
    adjusted = {
        b.id: b.status for b in classifier.classify(blast(), adjust_for_vulnerability=True).buildings
    }

    assert standard == {10: DamageStatus.MILD, 11: DamageStatus.SEVERE}
    assert adjusted == {10: DamageStatus.SEVERE, 11: DamageStatus.MILD}


def test_vulnerability_mode_attaches_scores_and_distribution(inventory):
    result = ImpactClassifier(inventory).classify(blast(), adjust_for_vulnerability=True)

    assert all(b.vulnerability_score is not None for b in result.buildings)
    assert all(b.vulnerability_factors is not None for b in result.buildings)
    distribution = result.statistics.vulnerability_distribution
    assert distribution.high_risk == 0
    assert distribution.medium_risk == 3
    assert distribution.low_risk == 3
    assert distribution.avg_score == pytest.approx(0.42, abs=1e-3)
    assert distribution.max_score == pytest.approx(0.643, abs=1e-3)


def test_earthquake_uses_kilometre_radii(inventory):
    quake = EarthquakeDefinition(epicenter=EPICENTER, magnitude=6.0)
    result = ImpactClassifier(inventory).classify(quake)

    # severe radius ~3.16 km covers the whole inventory
    assert result.summary.total_buildings == 7
    assert result.summary.severe_count == 7
    assert result.parameters.magnitude == 6.0


def test_empty_index_yields_zeroed_result():
    result = ImpactClassifier(GeoIndex([])).classify(blast())
    assert result.summary.total_buildings == 0
    assert result.buildings == []
    assert result.statistics.structural_analysis.avg_floors == 0.0


# =============================================================================
# Statistics
# =============================================================================


def test_statistics_for_inventory(inventory):
    stats = ImpactClassifier(inventory).classify(blast()).statistics

    population = stats.population_impact
    assert population.residential_units == 24
    assert population.estimated_residents == 84
    assert population.estimated_residents_severe == 35
    assert population.estimated_residents_mild == 49
    assert population.residential_buildings == 3

    by_use = stats.buildings_by_use
    assert by_use.residential.total == 2
    assert by_use.residential.severe == 1
    assert by_use.commercial.severe == 1
    assert by_use.institutional.mild == 1
    assert by_use.religious.mild == 1
    assert by_use.mixed_use.mild == 1

    by_condition = stats.buildings_by_condition
    assert by_condition.complete.total == 1
    assert by_condition.evicted.total == 1
    assert by_condition.renovated.total == 1
    assert by_condition.other.total == 3

    structure = stats.structural_analysis
    assert structure.total_floors == 27
    assert structure.max_floors == 12
    assert structure.avg_floors == 4.5
    assert structure.buildings_above_10_floors == 1
    assert structure.oldest_building_year == 1900
    assert structure.newest_building_year == 2010
    assert structure.avg_building_age == pytest.approx(61.8)

    assert stats.affected_areas.sectors == ["Medawar", "Rmeil", "Saifi"]
    assert stats.affected_areas.sector_count == 3


def test_implausible_years_are_ignored():
    index = GeoIndex([make_building(1, 10.0, year_completed=1700), make_building(2, 20.0, year_completed=2100)])
    structure = ImpactClassifier(index).classify(blast()).statistics.structural_analysis
    assert structure.avg_building_age is None
    assert structure.oldest_building_year is None


@pytest.mark.parametrize(
    "label,expected",
    [
        ("Residential", "residential"),
        ("Mixed Residential", "residential"),
        ("Commercial", "commercial"),
        ("Silos", "industrial"),
        ("Institutional", "institutional"),
        ("Mixed-use", "mixed_use"),
        ("Religious", "religious"),
        ("Construction Site", "construction_site"),
        ("Parking", "other"),
        (None, "other"),
    ],
)
def test_use_category_buckets(label, expected):
    assert use_category(label) == expected


@pytest.mark.parametrize(
    "label,expected",
    [
        ("Complete Residential", "complete"),
        ("Parking Lot", "complete"),
        ("Construction on-Hold", "under_construction"),
        ("Old threat of Eviction", "evicted"),
        ("Demolished", "demolished"),
        ("Renovated", "renovated"),
        ("Empty Lot", "empty_lot"),
        ("Not Available", "other"),
    ],
)
def test_condition_category_buckets(label, expected):
    assert condition_category(label) == expected
