"""
Casualty Estimator: fatalities and injuries from classified buildings.

Population per building is ``apartments * 3.2``, or ``floors * 2 * 3.2``
when the apartment count is unknown (floors default to 3). Occupancy scales
with time of day. SEVERE buildings contribute fatalities and severe
injuries scaled by a vulnerability damage multiplier; MILD buildings only
contribute mild injuries.

Input buildings need ``status``, ``apartments``, ``floors`` and
``vulnerability_score`` attributes (ClassifiedBuilding and
SyntheticBuilding both qualify).
"""

from typing import Iterable, Optional, Union

import structlog

from miraat.models.enums import DamageStatus, TimeOfDay
from miraat.models.scenario import CasualtyEstimate
from miraat.utils.rounding import round_half_up

logger = structlog.get_logger()

POPULATION_PER_APARTMENT = 3.2
APARTMENTS_PER_FLOOR = 2
DEFAULT_FLOORS = 3

SEVERE_MORTALITY_RATE = 0.15
SEVERE_INJURY_RATE = 0.40
MILD_INJURY_RATE = 0.10

TIME_OF_DAY_MULTIPLIERS = {
    TimeOfDay.NIGHT: 0.95,
    TimeOfDay.AFTERNOON: 0.85,
    TimeOfDay.MORNING: 0.70,
}


def occupancy_factor(time_of_day: Union[TimeOfDay, str, None]) -> float:
    """Occupancy multiplier; unknown or missing values fall back to afternoon."""
    try:
        return TIME_OF_DAY_MULTIPLIERS[TimeOfDay(time_of_day)]
    except ValueError:
        return TIME_OF_DAY_MULTIPLIERS[TimeOfDay.AFTERNOON]


def building_population(apartments: Optional[int], floors: Optional[int]) -> float:
    if apartments is not None and apartments > 0:
        return apartments * POPULATION_PER_APARTMENT
    return (floors or DEFAULT_FLOORS) * APARTMENTS_PER_FLOOR * POPULATION_PER_APARTMENT


def damage_multiplier(vulnerability_score: Optional[float]) -> float:
    """0.8 + 0.7 * score, ranging 0.8 to 1.5; 1.0 when no score exists."""
    if vulnerability_score is None:
        return 1.0
    return 0.8 + vulnerability_score * 0.7


class CasualtyEstimator:
    """Pure casualty projection over a list of damaged buildings."""

    def estimate(
        self,
        buildings: Iterable,
        time_of_day: Union[TimeOfDay, str, None] = TimeOfDay.AFTERNOON,
    ) -> CasualtyEstimate:
        factor = occupancy_factor(time_of_day)

        population_at_risk = 0.0
        fatalities = 0.0
        severe_injuries = 0.0
        mild_injuries = 0.0

        for building in buildings:
            occupied = building_population(building.apartments, building.floors) * factor
            population_at_risk += occupied

            if building.status == DamageStatus.SEVERE:
                multiplier = damage_multiplier(building.vulnerability_score)
                fatalities += occupied * SEVERE_MORTALITY_RATE * multiplier
                severe_injuries += occupied * SEVERE_INJURY_RATE * multiplier
            else:
                mild_injuries += occupied * MILD_INJURY_RATE

        estimate = CasualtyEstimate(
            fatalities=round_half_up(fatalities),
            severe_injuries=round_half_up(severe_injuries),
            mild_injuries=round_half_up(mild_injuries),
            population_at_risk=round_half_up(population_at_risk),
            time_of_day_factor=factor,
        )
        estimate.total_affected = (
            estimate.fatalities + estimate.severe_injuries + estimate.mild_injuries
        )

        logger.info(
            "casualties_estimated",
            fatalities=estimate.fatalities,
            total_affected=estimate.total_affected,
            time_of_day_factor=factor,
        )
        return estimate
