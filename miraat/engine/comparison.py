"""
Mitigation Comparator: baseline versus mitigated outcome of a scenario.

Applies the catalogue's average vulnerability reduction (47%) to a completed
run's casualty and economic figures. Fatalities, severe injuries, building
damage and medical costs fall by the full reduction; mild injuries and
infrastructure damage by half of it; business disruption by 30% of it.
"""

import structlog

from miraat.exceptions import NotFoundError
from miraat.models.enums import ScenarioStatus
from miraat.models.scenario import (
    CasualtyEstimate,
    EconomicImpactEstimate,
    ImprovementSummary,
    MitigationComparisonResult,
    OutcomeSnapshot,
    ScenarioRun,
)
from miraat.utils.rounding import round_half_up

logger = structlog.get_logger()

AVG_VULNERABILITY_REDUCTION = 0.47


class MitigationComparator:
    def __init__(self, reduction: float = AVG_VULNERABILITY_REDUCTION):
        self.reduction = reduction

    def compare(self, run: ScenarioRun, plan_id: str) -> MitigationComparisonResult:
        """
        Compare a completed run with its outcome under mitigation.

        Raises:
            NotFoundError: If the run has no results or the plan is unknown
        """
        if run.status != ScenarioStatus.COMPLETED or run.results is None:
            raise NotFoundError("Completed scenario", run.scenario_id)
        if not any(plan.id == plan_id for plan in run.mitigation_plans):
            raise NotFoundError("Mitigation plan", plan_id)

        r = self.reduction
        baseline_c = run.results.casualties
        baseline_e = run.results.economic_impact

        casualties = CasualtyEstimate(
            fatalities=round_half_up(baseline_c.fatalities * (1 - r)),
            severe_injuries=round_half_up(baseline_c.severe_injuries * (1 - r)),
            mild_injuries=round_half_up(baseline_c.mild_injuries * (1 - r * 0.5)),
            population_at_risk=baseline_c.population_at_risk,
            time_of_day_factor=baseline_c.time_of_day_factor,
        )
        casualties.total_affected = (
            casualties.fatalities + casualties.severe_injuries + casualties.mild_injuries
        )

        economic = EconomicImpactEstimate(
            building_damage=round_half_up(baseline_e.building_damage * (1 - r)),
            infrastructure_damage=round_half_up(baseline_e.infrastructure_damage * (1 - r * 0.5)),
            business_disruption=round_half_up(baseline_e.business_disruption * (1 - r * 0.3)),
            medical_costs=round_half_up(baseline_e.medical_costs * (1 - r)),
            currency=baseline_e.currency,
        )
        economic.total_cost = (
            economic.building_damage
            + economic.infrastructure_damage
            + economic.business_disruption
            + economic.medical_costs
        )

        cost_reduction = baseline_e.total_cost - economic.total_cost
        percent = (
            round_half_up(cost_reduction / baseline_e.total_cost * 100)
            if baseline_e.total_cost
            else 0
        )

        result = MitigationComparisonResult(
            scenario_id=run.scenario_id,
            plan_id=plan_id,
            baseline=OutcomeSnapshot(casualties=baseline_c, economic_impact=baseline_e),
            with_mitigation=OutcomeSnapshot(casualties=casualties, economic_impact=economic),
            improvement=ImprovementSummary(
                lives_saved=baseline_c.fatalities - casualties.fatalities,
                injuries_prevented=(
                    baseline_c.severe_injuries
                    + baseline_c.mild_injuries
                    - casualties.severe_injuries
                    - casualties.mild_injuries
                ),
                cost_reduction=cost_reduction,
                percent_improvement=percent,
            ),
        )

        logger.info(
            "mitigation_compared",
            scenario_id=run.scenario_id,
            plan_id=plan_id,
            lives_saved=result.improvement.lives_saved,
            percent_improvement=percent,
        )
        return result
