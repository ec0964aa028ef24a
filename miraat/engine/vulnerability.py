"""
Vulnerability Scorer: composite 0-1 damage susceptibility index.

Four independently clamped sub-scores are combined with fixed weights:

- age (0.30): (reference_year - year_completed) / 100, missing -> 0.5
- height (0.25): floors / 30, missing -> 0.5
- condition (0.30): lookup over the surveyed condition labels, unknown -> 0.5
- use type (0.15): lookup over the surveyed use labels, unknown -> 0.5

A building with every attribute missing scores exactly 0.5.
"""

from typing import Optional

from miraat.models.buildings import BuildingRecord, VulnerabilityFactors
from miraat.models.enums import BuildingCondition

DEFAULT_SUB_SCORE = 0.5

WEIGHTS = {
    "age": 0.30,
    "height": 0.25,
    "condition": 0.30,
    "use_type": 0.15,
}

CONDITION_SCORES: dict[str, float] = {
    "Evicted Building": 1.0,
    "Old threat of Eviction": 0.9,
    "Old-Bldg-Inhabited": 0.8,
    "Construction on-Hold": 0.6,
    "Cancelled Construction": 0.5,
    "Under Construction": 0.5,
    "Empty Lot": 0.3,
    "Demolished": 0.3,
    "Not Available": 0.5,
    "Non-Residential Building": 0.3,
    "Parking Lot": 0.2,
    "Complete Residential": 0.2,
    "Renovated": 0.1,
}

USE_TYPE_SCORES: dict[str, float] = {
    "Run down": 1.0,
    "Building is not available": 0.7,
    "Religious": 0.7,
    "Industrial": 0.6,
    "Silos": 0.6,
    "Recreational": 0.5,
    "Not Available": 0.5,
    "Construction Site": 0.5,
    "Residential": 0.4,
    "Commercial": 0.4,
    "Mixed-use": 0.4,
    "Institutional": 0.3,
    "Parking": 0.2,
}

AGE_SPAN_YEARS = 100.0
HEIGHT_SPAN_FLOORS = 30.0


def _clamp(value: float) -> float:
    return min(max(value, 0.0), 1.0)


class VulnerabilityScorer:
    """
    Pure, deterministic vulnerability scoring.

    Attributes:
        reference_year: Year building ages are measured against
    """

    def __init__(self, reference_year: int = 2026):
        self.reference_year = reference_year

    def age_score(self, year_completed: Optional[int]) -> float:
        if year_completed is None:
            return DEFAULT_SUB_SCORE
        return _clamp((self.reference_year - year_completed) / AGE_SPAN_YEARS)

    @staticmethod
    def height_score(floors: Optional[int]) -> float:
        if floors is None:
            return DEFAULT_SUB_SCORE
        return _clamp(floors / HEIGHT_SPAN_FLOORS)

    @staticmethod
    def condition_score(condition: Optional[str]) -> float:
        return CONDITION_SCORES.get(condition or "", DEFAULT_SUB_SCORE)

    @staticmethod
    def use_type_score(use: Optional[str]) -> float:
        return USE_TYPE_SCORES.get(use or "", DEFAULT_SUB_SCORE)

    def factors(self, building: BuildingRecord) -> VulnerabilityFactors:
        return VulnerabilityFactors(
            age=self.age_score(building.year_completed),
            height=self.height_score(building.floor_count),
            condition=self.condition_score(building.condition_category),
            use_type=self.use_type_score(building.use_category),
        )

    @staticmethod
    def combine(factors: VulnerabilityFactors) -> float:
        return (
            WEIGHTS["age"] * factors.age
            + WEIGHTS["height"] * factors.height
            + WEIGHTS["condition"] * factors.condition
            + WEIGHTS["use_type"] * factors.use_type
        )

    def score(self, building: BuildingRecord) -> float:
        return self.combine(self.factors(building))

    def assess(self, building: BuildingRecord) -> tuple[float, VulnerabilityFactors]:
        factors = self.factors(building)
        return self.combine(factors), factors


def condition_band(condition_score: float) -> BuildingCondition:
    """
    Map a condition sub-score onto the coarse band used for mitigation costing.

    >= 0.8 critical, >= 0.6 poor, >= 0.3 fair, otherwise good.
    """
    if condition_score >= 0.8:
        return BuildingCondition.CRITICAL
    if condition_score >= 0.6:
        return BuildingCondition.POOR
    if condition_score >= 0.3:
        return BuildingCondition.FAIR
    return BuildingCondition.GOOD
