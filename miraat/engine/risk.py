"""
Risk Analyzer: high-risk buildings and sector breakdown.

Both analyses run over the classified buildings kept from the impact stage,
joined back to their inventory records for condition, floors and sector.
Buildings classified without a vulnerability score are scored here so the
high-risk set does not depend on the classification mode.
"""

from typing import Iterable

import structlog

from miraat.engine.calculators.casualty import building_population
from miraat.engine.geo_index import GeoIndex
from miraat.engine.vulnerability import VulnerabilityScorer, condition_band
from miraat.models.enums import BuildingCondition, DamageStatus
from miraat.models.impact import ClassifiedBuilding
from miraat.models.scenario import (
    HighRiskBuilding,
    HighRiskBuildingSummary,
    SectorAnalysisSummary,
    SectorData,
)
from miraat.utils.rounding import round_half_up

logger = structlog.get_logger()

PRIORITY_LIST_SIZE = 20
UNKNOWN_SECTOR = "Unknown"
SECTOR_NOT_AVAILABLE = "Not Available"


def _sector_name(sector) -> str:
    if not sector or sector == SECTOR_NOT_AVAILABLE:
        return UNKNOWN_SECTOR
    return sector


class RiskAnalyzer:
    """
    Attributes:
        index: Inventory used to resolve classified ids to records
        scorer: Scores buildings classified without vulnerability adjustment
        threshold: Minimum vulnerability score of a high-risk building
    """

    def __init__(
        self,
        index: GeoIndex,
        scorer: VulnerabilityScorer,
        threshold: float = 0.6,
    ):
        self.index = index
        self.scorer = scorer
        self.threshold = threshold

    def high_risk_buildings(
        self, classified: Iterable[ClassifiedBuilding]
    ) -> list[HighRiskBuilding]:
        """All buildings scoring at or above the threshold, highest score first."""
        high_risk: list[HighRiskBuilding] = []
        for item in classified:
            record = self.index.building(item.id)
            if record is None:
                continue
            score = item.vulnerability_score
            if score is None:
                score = self.scorer.score(record)
            if score < self.threshold:
                continue
            high_risk.append(
                HighRiskBuilding(
                    id=record.id,
                    vulnerability_score=round_half_up(score, 3),
                    condition=condition_band(
                        self.scorer.condition_score(record.condition_category)
                    ),
                    floors=record.floor_count,
                    sector=_sector_name(record.sector),
                )
            )
        high_risk.sort(key=lambda b: (-b.vulnerability_score, b.id))
        return high_risk

    @staticmethod
    def summarize(high_risk: list[HighRiskBuilding]) -> HighRiskBuildingSummary:
        by_condition = {condition.value: 0 for condition in BuildingCondition}
        for building in high_risk:
            by_condition[(building.condition or BuildingCondition.FAIR).value] += 1

        average = (
            round_half_up(sum(b.vulnerability_score for b in high_risk) / len(high_risk), 3)
            if high_risk
            else 0.0
        )
        summary = HighRiskBuildingSummary(
            total=len(high_risk),
            average_vulnerability=average,
            by_condition=by_condition,
            priority_list=high_risk[:PRIORITY_LIST_SIZE],
        )
        logger.info("high_risk_identified", total=summary.total, average=average)
        return summary

    def sector_analysis(self, classified: Iterable[ClassifiedBuilding]) -> SectorAnalysisSummary:
        sectors: dict[str, SectorData] = {}
        population: dict[str, float] = {}

        for item in classified:
            record = self.index.building(item.id)
            name = _sector_name(record.sector if record else None)
            data = sectors.setdefault(name, SectorData(name=name))
            data.buildings_affected += 1
            if item.status == DamageStatus.SEVERE:
                data.severe_count += 1
            else:
                data.mild_count += 1
            population[name] = population.get(name, 0.0) + building_population(
                item.apartments, item.floors
            )

        for name, data in sectors.items():
            data.estimated_population = round_half_up(population[name])

        ranked = sorted(sectors.values(), key=lambda s: (-s.buildings_affected, s.name))
        summary = SectorAnalysisSummary(
            sectors=ranked,
            most_affected=ranked[0].name if ranked else UNKNOWN_SECTOR,
            least_affected=ranked[-1].name if ranked else UNKNOWN_SECTOR,
        )
        logger.info("sector_analysis_completed", sectors=len(ranked))
        return summary
