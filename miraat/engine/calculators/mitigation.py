"""
Mitigation Planner: cost-benefit ranking of retrofit strategies.

For each catalogue strategy the applicable high-risk buildings (filtered by
condition band) are costed per floor, and the projected lives saved and
damage avoided are converted into an ROI:

    roi = lives_saved * VALUE_OF_LIFE / cost

Strategies with no applicable building are omitted, plans above an optional
budget are dropped, and the rest are returned by descending ROI.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Union
from uuid import uuid4

import structlog

from miraat.models.enums import BuildingCondition, MitigationStrategyType
from miraat.models.scenario import HighRiskBuilding, MitigationPlan
from miraat.utils.rounding import round_half_up

logger = structlog.get_logger()

VALUE_OF_LIFE = 5_000_000

POPULATION_PER_FLOOR = 3.2 * 2
SEVERE_MORTALITY_RATE = 0.15
DEFAULT_FLOORS = 3
AVG_FLOOR_AREA = 200
COST_PER_SQM = 2500
DAMAGE_AVOIDED_SHARE = 0.5

CONDITION_COST_MULTIPLIERS = {
    BuildingCondition.CRITICAL: 1.5,
    BuildingCondition.POOR: 1.3,
    BuildingCondition.FAIR: 1.0,
    BuildingCondition.GOOD: 0.8,
}

ALL_CONDITIONS = frozenset(BuildingCondition)


@dataclass(frozen=True)
class MitigationOption:
    strategy_type: MitigationStrategyType
    name: str
    vulnerability_reduction: float
    cost_per_floor: int
    applicable_conditions: frozenset


MITIGATION_OPTIONS = (
    MitigationOption(
        MitigationStrategyType.STRUCTURAL_REINFORCEMENT,
        "Structural Reinforcement",
        0.5,
        75_000,
        frozenset({BuildingCondition.POOR, BuildingCondition.FAIR, BuildingCondition.CRITICAL}),
    ),
    MitigationOption(
        MitigationStrategyType.SEISMIC_RETROFIT,
        "Seismic Retrofit",
        0.6,
        100_000,
        ALL_CONDITIONS,
    ),
    MitigationOption(
        MitigationStrategyType.FOUNDATION_STRENGTHENING,
        "Foundation Strengthening",
        0.4,
        50_000,
        frozenset({BuildingCondition.POOR, BuildingCondition.CRITICAL}),
    ),
    MitigationOption(
        MitigationStrategyType.EVACUATION_INFRASTRUCTURE,
        "Evacuation Infrastructure",
        0.2,
        25_000,
        ALL_CONDITIONS,
    ),
)

OPTIONS_BY_TYPE = {option.strategy_type: option for option in MITIGATION_OPTIONS}


def _condition(building: HighRiskBuilding) -> BuildingCondition:
    return building.condition or BuildingCondition.FAIR


def _floors(building: HighRiskBuilding) -> int:
    return building.floors or DEFAULT_FLOORS


class MitigationPlanner:
    """Generates and ranks mitigation plans for a high-risk building snapshot."""

    def generate_plans(
        self,
        buildings: Iterable[HighRiskBuilding],
        budget: Optional[float] = None,
    ) -> list[MitigationPlan]:
        buildings = list(buildings)
        plans: list[MitigationPlan] = []

        for option in MITIGATION_OPTIONS:
            applicable = [b for b in buildings if _condition(b) in option.applicable_conditions]
            if not applicable:
                continue

            cost = self.total_cost(applicable, option)
            if budget is not None and cost > budget:
                logger.debug(
                    "mitigation_plan_over_budget",
                    strategy=option.strategy_type.value,
                    cost=round_half_up(cost),
                    budget=budget,
                )
                continue

            lives_saved = self.lives_saved(applicable, option.vulnerability_reduction)
            cost_reduction = self.cost_reduction(applicable, option.vulnerability_reduction)
            roi = lives_saved * VALUE_OF_LIFE / cost if cost > 0 else 0.0

            plans.append(
                MitigationPlan(
                    id=str(uuid4()),
                    name=option.name,
                    strategy_type=option.strategy_type,
                    target_cost=round_half_up(cost),
                    buildings_targeted=len(applicable),
                    target_building_ids=[b.id for b in applicable],
                    projected_lives_saved=round_half_up(lives_saved),
                    projected_cost_reduction=round_half_up(cost_reduction),
                    roi=round_half_up(roi, 2),
                )
            )

        plans.sort(key=lambda p: p.roi, reverse=True)
        logger.info("mitigation_plans_generated", plans=len(plans), buildings=len(buildings))
        return plans

    @staticmethod
    def total_cost(buildings: list[HighRiskBuilding], option: MitigationOption) -> float:
        return sum(
            _floors(b) * option.cost_per_floor * CONDITION_COST_MULTIPLIERS[_condition(b)]
            for b in buildings
        )

    @staticmethod
    def lives_saved(buildings: list[HighRiskBuilding], reduction: float) -> float:
        population = sum(_floors(b) * POPULATION_PER_FLOOR for b in buildings)
        return population * SEVERE_MORTALITY_RATE * reduction

    @staticmethod
    def cost_reduction(buildings: list[HighRiskBuilding], reduction: float) -> float:
        avg_floors = sum(_floors(b) for b in buildings) / len(buildings)
        total_value = avg_floors * AVG_FLOOR_AREA * COST_PER_SQM * len(buildings)
        return total_value * reduction * DAMAGE_AVOIDED_SHARE

    @staticmethod
    def reinforcement_cost(building: HighRiskBuilding) -> float:
        """Cost of structural reinforcement for a single building."""
        option = OPTIONS_BY_TYPE[MitigationStrategyType.STRUCTURAL_REINFORCEMENT]
        return _floors(building) * option.cost_per_floor * CONDITION_COST_MULTIPLIERS[_condition(building)]

    @staticmethod
    def adjusted_vulnerability(
        score: float, strategy: Union[MitigationStrategyType, str]
    ) -> float:
        """Vulnerability after applying ``strategy``; unknown strategies leave it unchanged."""
        try:
            option = OPTIONS_BY_TYPE[MitigationStrategyType(strategy)]
        except ValueError:
            return score
        return max(0.0, round_half_up(score * (1 - option.vulnerability_reduction), 2))
