"""
Economic Estimator: direct and indirect losses in USD.

Four components, each rounded to whole dollars:

- building damage: replacement value (floors * 200 m^2 * $2500/m^2, scaled by
  type and condition) times a damage ratio of 1.0 (SEVERE) or 0.3 (MILD)
- infrastructure damage: $50M per hospital times its damage ratio, plus unit
  costs of other critical infrastructure at an assumed 50% damage
- business disruption: 30% of damaged buildings host a business losing
  $50,000 per month for 6 months
- medical costs: per-casualty treatment and fatality costs, when casualty
  figures are supplied

FATALITY_COST is kept separate from the mitigation planner's VALUE_OF_LIFE;
the two happen to share a value but model different quantities.
"""

import math
from typing import Iterable, Mapping, Optional

import structlog

from miraat.models.enums import DamageStatus
from miraat.models.scenario import CasualtyEstimate, EconomicImpactEstimate
from miraat.utils.rounding import round_half_up

logger = structlog.get_logger()

COST_PER_SQM = 2500
AVG_FLOOR_AREA = 200
DEFAULT_FLOORS = 3

SEVERE_DAMAGE_RATIO = 1.0
MILD_DAMAGE_RATIO = 0.3

INFRASTRUCTURE_COSTS = {
    "school": 5_000_000,
    "university": 25_000_000,
    "embassy": 15_000_000,
    "police": 3_000_000,
    "mosque": 2_000_000,
    "church": 2_000_000,
    "hospital": 50_000_000,
}
UNKNOWN_INFRASTRUCTURE_COST = 1_000_000
INFRASTRUCTURE_DAMAGE_FRACTION = 0.5

BUSINESS_SHARE = 0.3
AVG_BUSINESS_REVENUE_PER_MONTH = 50_000
BUSINESS_DISRUPTION_MONTHS = 6

FATALITY_COST = 5_000_000
SEVERE_INJURY_COST = 500_000
MILD_INJURY_COST = 50_000

TYPE_MULTIPLIERS = {
    "hospital": 2.5,
    "university": 2.0,
    "embassy": 2.0,
    "school": 1.5,
    "police": 1.5,
    "religious": 1.2,
    "residential": 1.0,
    "commercial": 1.3,
}

CONDITION_MULTIPLIERS = {
    "good": 1.0,
    "fair": 0.8,
    "poor": 0.6,
    "critical": 0.4,
}

CURRENCY = "USD"


def damage_ratio(status: DamageStatus) -> float:
    return SEVERE_DAMAGE_RATIO if status == DamageStatus.SEVERE else MILD_DAMAGE_RATIO


def building_value(
    floors: Optional[int],
    building_type: Optional[str] = None,
    condition: Optional[str] = None,
    area_per_floor: Optional[float] = None,
) -> float:
    """Replacement value of one building; unknown labels use a 1.0 multiplier."""
    value = (floors or DEFAULT_FLOORS) * (area_per_floor or AVG_FLOOR_AREA) * COST_PER_SQM
    value *= TYPE_MULTIPLIERS.get((building_type or "").lower(), 1.0)
    value *= CONDITION_MULTIPLIERS.get((condition or "").lower(), 1.0)
    return value


class EconomicEstimator:
    """
    Pure economic loss projection.

    Buildings need ``status`` and ``floors`` and may carry ``building_type``
    and ``condition``; hospitals need ``status``.
    """

    def estimate(
        self,
        buildings: Iterable,
        hospitals: Iterable = (),
        infrastructure: Optional[Mapping[str, int]] = None,
        casualties: Optional[CasualtyEstimate] = None,
    ) -> EconomicImpactEstimate:
        buildings = list(buildings)

        building_damage = sum(
            building_value(
                b.floors,
                getattr(b, "building_type", None),
                getattr(b, "condition", None),
            )
            * damage_ratio(b.status)
            for b in buildings
        )

        infrastructure_damage = sum(
            INFRASTRUCTURE_COSTS["hospital"] * damage_ratio(h.status) for h in hospitals
        )
        for kind, count in (infrastructure or {}).items():
            unit_cost = INFRASTRUCTURE_COSTS.get(kind.lower(), UNKNOWN_INFRASTRUCTURE_COST)
            infrastructure_damage += unit_cost * count * INFRASTRUCTURE_DAMAGE_FRACTION

        business_count = math.floor(len(buildings) * BUSINESS_SHARE)
        business_disruption = (
            business_count * AVG_BUSINESS_REVENUE_PER_MONTH * BUSINESS_DISRUPTION_MONTHS
        )

        medical_costs = 0
        if casualties is not None:
            medical_costs = (
                casualties.fatalities * FATALITY_COST
                + casualties.severe_injuries * SEVERE_INJURY_COST
                + casualties.mild_injuries * MILD_INJURY_COST
            )

        total = building_damage + infrastructure_damage + business_disruption + medical_costs

        estimate = EconomicImpactEstimate(
            building_damage=round_half_up(building_damage),
            infrastructure_damage=round_half_up(infrastructure_damage),
            business_disruption=round_half_up(business_disruption),
            medical_costs=round_half_up(medical_costs),
            total_cost=round_half_up(total),
            currency=CURRENCY,
        )
        logger.info("economic_impact_estimated", total_cost=estimate.total_cost)
        return estimate
