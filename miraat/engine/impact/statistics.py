"""
Single-pass aggregation of classified buildings into ImpactStatistics.

Use and condition labels are free text in the survey data; they are bucketed
by case-insensitive substring match into fixed enumerations with an
``other`` catch-all. Missing numeric attributes are excluded from numeric
aggregates but still counted in the category totals.
"""

from typing import Optional

from miraat.models.buildings import BuildingRecord
from miraat.models.enums import DamageStatus
from miraat.models.impact import (
    AffectedAreas,
    BuildingsByCondition,
    BuildingsByUse,
    ClassifiedBuilding,
    ImpactStatistics,
    PopulationImpact,
    StructuralAnalysis,
    VulnerabilityDistribution,
)
from miraat.utils.rounding import round_half_up

RESIDENTS_PER_APARTMENT = 3.5
TALL_BUILDING_FLOORS = 10
EARLIEST_PLAUSIBLE_YEAR = 1800
SECTOR_NOT_AVAILABLE = "Not Available"

HIGH_RISK_SCORE = 0.7
MEDIUM_RISK_SCORE = 0.4


def use_category(label: Optional[str]) -> str:
    """Bucket a use label; order matters ("Mixed Residential" is residential)."""
    if not label:
        return "other"
    use = label.lower()
    if "residential" in use:
        return "residential"
    if "commercial" in use:
        return "commercial"
    if "industrial" in use or "silos" in use:
        return "industrial"
    if "institutional" in use:
        return "institutional"
    if "mixed" in use:
        return "mixed_use"
    if "religious" in use:
        return "religious"
    if "construction" in use:
        return "construction_site"
    return "other"


def condition_category(label: Optional[str]) -> str:
    if not label:
        return "other"
    s = label.lower()
    if "complete" in s or "parking" in s:
        return "complete"
    if (
        "under construction" in s
        or "construction on-hold" in s
        or "cancelled construction" in s
    ):
        return "under_construction"
    if "evicted" in s or "threat of eviction" in s:
        return "evicted"
    if "demolished" in s:
        return "demolished"
    if "renovated" in s:
        return "renovated"
    if "empty lot" in s:
        return "empty_lot"
    return "other"


def residents(apartments: int) -> int:
    """Estimated residents of ``apartments`` units, halves rounded up."""
    return round_half_up(apartments * RESIDENTS_PER_APARTMENT)


class StatisticsAccumulator:
    """
    Accumulates statistics one classified building at a time.

    Attributes:
        reference_year: Upper bound for plausible completion years and the
            year ages are measured against
        include_vulnerability: Whether a vulnerability distribution is built
    """

    def __init__(self, reference_year: int = 2026, include_vulnerability: bool = False):
        self.reference_year = reference_year
        self.include_vulnerability = include_vulnerability

        self.by_use = BuildingsByUse()
        self.by_condition = BuildingsByCondition()

        self.count = 0
        self.total_apartments = 0
        self.severe_apartments = 0
        self.mild_apartments = 0
        self.residential_buildings = 0

        self.total_floors = 0
        self.max_floors = 0
        self.buildings_with_floors = 0
        self.buildings_above_10_floors = 0

        self.years: list[int] = []
        self.sectors: set[str] = set()

        self.vulnerability_sum = 0.0
        self.max_vulnerability = 0.0
        self.high_risk = 0
        self.medium_risk = 0
        self.low_risk = 0

    def add(self, building: BuildingRecord, classified: ClassifiedBuilding) -> None:
        self.count += 1
        is_severe = classified.status == DamageStatus.SEVERE

        use_key = use_category(building.use_category)
        bucket = getattr(self.by_use, use_key)
        bucket.total += 1
        if is_severe:
            bucket.severe += 1
        else:
            bucket.mild += 1

        bucket = getattr(self.by_condition, condition_category(building.condition_category))
        bucket.total += 1
        if is_severe:
            bucket.severe += 1
        else:
            bucket.mild += 1

        apartments = building.apartment_count or 0
        if apartments > 0:
            self.total_apartments += apartments
            if is_severe:
                self.severe_apartments += apartments
            else:
                self.mild_apartments += apartments

        if use_key in ("residential", "mixed_use") or apartments > 0:
            self.residential_buildings += 1

        floors = building.floor_count
        if floors is not None and floors > 0:
            self.total_floors += floors
            self.buildings_with_floors += 1
            self.max_floors = max(self.max_floors, floors)
            if floors > TALL_BUILDING_FLOORS:
                self.buildings_above_10_floors += 1

        year = building.year_completed
        if year is not None and EARLIEST_PLAUSIBLE_YEAR < year <= self.reference_year:
            self.years.append(year)

        if building.sector and building.sector != SECTOR_NOT_AVAILABLE:
            self.sectors.add(building.sector)

        if self.include_vulnerability and classified.vulnerability_score is not None:
            score = classified.vulnerability_score
            self.vulnerability_sum += score
            self.max_vulnerability = max(self.max_vulnerability, score)
            if score >= HIGH_RISK_SCORE:
                self.high_risk += 1
            elif score >= MEDIUM_RISK_SCORE:
                self.medium_risk += 1
            else:
                self.low_risk += 1

    def build(self) -> ImpactStatistics:
        avg_floors = (
            round_half_up(self.total_floors / self.buildings_with_floors, 1)
            if self.buildings_with_floors
            else 0.0
        )
        avg_age = (
            round_half_up(sum(self.reference_year - y for y in self.years) / len(self.years), 1)
            if self.years
            else None
        )

        statistics = ImpactStatistics(
            population_impact=PopulationImpact(
                estimated_residents=residents(self.total_apartments),
                estimated_residents_severe=residents(self.severe_apartments),
                estimated_residents_mild=residents(self.mild_apartments),
                residential_units=self.total_apartments,
                residential_buildings=self.residential_buildings,
            ),
            buildings_by_use=self.by_use,
            buildings_by_condition=self.by_condition,
            structural_analysis=StructuralAnalysis(
                avg_floors=avg_floors,
                max_floors=self.max_floors,
                total_floors=self.total_floors,
                buildings_above_10_floors=self.buildings_above_10_floors,
                avg_building_age=avg_age,
                oldest_building_year=min(self.years) if self.years else None,
                newest_building_year=max(self.years) if self.years else None,
            ),
            affected_areas=AffectedAreas(
                sectors=sorted(self.sectors), sector_count=len(self.sectors)
            ),
        )

        if self.include_vulnerability and self.count:
            statistics.vulnerability_distribution = VulnerabilityDistribution(
                high_risk=self.high_risk,
                medium_risk=self.medium_risk,
                low_risk=self.low_risk,
                avg_score=round_half_up(self.vulnerability_sum / self.count, 3),
                max_score=round_half_up(self.max_vulnerability, 3),
            )

        return statistics
