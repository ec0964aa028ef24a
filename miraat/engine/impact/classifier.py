"""
Impact Classifier: severity classification of the building inventory.

Every building within the mild radius of the epicenter is classified SEVERE
or MILD; buildings beyond it are absent from the output. The severe boundary
is inclusive. In vulnerability-adjusted mode each building's severe radius
is scaled by ``1 + (score - 0.5)``, so a building scoring 1.0 doubles its
severe catchment and one scoring 0.0 halves it. A farther high-vulnerability
building may therefore be SEVERE while a closer robust one is MILD.

Version: impact_classifier_v1
"""

from typing import Optional

import structlog

from miraat.engine.geo_index import GeoIndex
from miraat.engine.impact.radii import radii_for
from miraat.engine.impact.statistics import StatisticsAccumulator
from miraat.engine.vulnerability import VulnerabilityScorer
from miraat.models.enums import DamageStatus
from miraat.models.impact import (
    BlastDefinition,
    BuildingImpactResult,
    ClassifiedBuilding,
    DisasterRadii,
    ImpactParameters,
    ImpactSummary,
)

logger = structlog.get_logger()

NEUTRAL_VULNERABILITY = 0.5


def adjusted_severe_radius(severe_m: float, vulnerability_score: float) -> float:
    return severe_m * (1.0 + (vulnerability_score - NEUTRAL_VULNERABILITY))


def impact_parameters(disaster, radii: DisasterRadii) -> ImpactParameters:
    if isinstance(disaster, BlastDefinition):
        return ImpactParameters(
            yield_kg=disaster.yield_kg,
            severe_radius_m=radii.severe_m,
            mild_radius_m=radii.mild_m,
        )
    return ImpactParameters(
        magnitude=disaster.magnitude,
        severe_radius_m=radii.severe_m,
        mild_radius_m=radii.mild_m,
    )


class ImpactClassifier:
    """
    Classifies buildings against a disaster definition and aggregates the
    result in a single pass.

    Attributes:
        index: Read-only building and hospital inventory
        scorer: Vulnerability scorer used in adjusted mode
    """

    def __init__(self, index: GeoIndex, scorer: Optional[VulnerabilityScorer] = None):
        self.index = index
        self.scorer = scorer or VulnerabilityScorer()

    def classify(self, disaster, adjust_for_vulnerability: bool = False) -> BuildingImpactResult:
        """
        Classify the inventory against ``disaster``.

        Args:
            disaster: BlastDefinition or EarthquakeDefinition
            adjust_for_vulnerability: Scale each building's severe radius by
                its vulnerability score

        Returns:
            BuildingImpactResult with summary, statistics and classified buildings
        """
        radii = radii_for(disaster)
        accumulator = StatisticsAccumulator(
            reference_year=self.scorer.reference_year,
            include_vulnerability=adjust_for_vulnerability,
        )

        classified: list[ClassifiedBuilding] = []
        summary = ImpactSummary()

        for building, distance_m in self.index.buildings_within(disaster.epicenter, radii.mild_m):
            score = None
            factors = None
            if adjust_for_vulnerability:
                score, factors = self.scorer.assess(building)
                severe_limit = adjusted_severe_radius(radii.severe_m, score)
            else:
                severe_limit = radii.severe_m

            status = DamageStatus.SEVERE if distance_m <= severe_limit else DamageStatus.MILD

            record = ClassifiedBuilding(
                id=building.id,
                apartments=building.apartment_count,
                floors=building.floor_count,
                status=status,
                distance_m=distance_m,
                vulnerability_score=score,
                vulnerability_factors=factors,
            )
            classified.append(record)
            accumulator.add(building, record)

            if status == DamageStatus.SEVERE:
                summary.severe_count += 1
            else:
                summary.mild_count += 1
            if building.apartment_count and building.apartment_count > 0:
                summary.total_apartments += building.apartment_count

        summary.total_buildings = len(classified)

        logger.info(
            "impact_classified",
            disaster_type=disaster.disaster_type.value,
            severe_radius_m=round(radii.severe_m, 1),
            mild_radius_m=round(radii.mild_m, 1),
            total_buildings=summary.total_buildings,
            severe_count=summary.severe_count,
            mild_count=summary.mild_count,
            vulnerability_adjusted=adjust_for_vulnerability,
        )

        return BuildingImpactResult(
            disaster_type=disaster.disaster_type,
            center=disaster.epicenter,
            parameters=impact_parameters(disaster, radii),
            summary=summary,
            statistics=accumulator.build(),
            buildings=classified,
        )
