"""
Report Generator: Markdown impact assessment report.

Renders the structured results of a completed scenario into a report with
overview, executive summary, casualty and economic tables, healthcare
capacity, critical infrastructure, high-risk buildings, sector analysis and
the recommended mitigation plans.
"""

from miraat.models.enums import DisasterType
from miraat.models.scenario import ScenarioParameters, ScenarioResults


def _millions(value: float, digits: int = 2) -> str:
    return f"${value / 1_000_000:.{digits}f}M"


class ReportGenerator:
    """Builds report text from scenario parameters and results."""

    def __init__(self, default_yield_kg: float = 1000.0, default_magnitude: float = 6.0):
        self.default_yield_kg = default_yield_kg
        self.default_magnitude = default_magnitude

    def generate(
        self, name: str, parameters: ScenarioParameters, results: ScenarioResults
    ) -> str:
        sections = [
            f"# {name} - Impact Assessment Report",
            self._overview(parameters),
            self._executive_summary(parameters, results),
            self._casualties(results),
            self._economic(results),
            self._healthcare(results),
            self._infrastructure(results),
            self._high_risk(results),
            self._sectors(results),
            self._mitigation(results),
            "*Report generated by MIR'AAT Scenario Builder*",
        ]
        return "\n\n---\n\n".join(sections) + "\n"

    def _labels(self, parameters: ScenarioParameters) -> tuple[str, str]:
        if parameters.disaster_type == DisasterType.BLAST:
            yield_kg = parameters.yield_kg or self.default_yield_kg
            return "Blast", f"{yield_kg:g} kg TNT equivalent"
        magnitude = parameters.magnitude or self.default_magnitude
        return "Earthquake", f"Magnitude {magnitude:g}"

    def _overview(self, parameters: ScenarioParameters) -> str:
        disaster_label, parameter_label = self._labels(parameters)
        lines = [
            "## Scenario Overview",
            f"- **Disaster Type:** {disaster_label}",
            f"- **Parameters:** {parameter_label}",
            f"- **Location:** {parameters.lat:.4f}, {parameters.lon:.4f}",
            f"- **Time of Day:** {parameters.time_of_day.value}",
        ]
        if parameters.custom_input:
            lines += ["", "### Additional Context", parameters.custom_input]
        return "\n".join(lines)

    def _executive_summary(self, parameters: ScenarioParameters, results: ScenarioResults) -> str:
        disaster_label, _ = self._labels(parameters)
        buildings = results.affected_buildings
        return "\n".join(
            [
                "## Executive Summary",
                "",
                f"This analysis estimates the impact of a {disaster_label.lower()} event "
                "centered at the specified coordinates.",
                "",
                "### Key Findings",
                f"- **Total Buildings Affected:** {buildings.total}",
                f"  - Severe Damage: {buildings.severe}",
                f"  - Mild Damage: {buildings.mild}",
                f"- **Hospitals Impacted:** {results.affected_hospitals.total}",
                f"- **Estimated Casualties:** {results.casualties.total_affected}",
                f"- **Economic Impact:** {_millions(results.economic_impact.total_cost, 1)}",
            ]
        )

    @staticmethod
    def _casualties(results: ScenarioResults) -> str:
        c = results.casualties
        return "\n".join(
            [
                "## Casualty Estimates",
                "",
                "| Category | Count |",
                "|----------|-------|",
                f"| Fatalities | {c.fatalities} |",
                f"| Severe Injuries | {c.severe_injuries} |",
                f"| Mild Injuries | {c.mild_injuries} |",
                f"| **Total Affected** | **{c.total_affected}** |",
                "",
                f"*Population at risk: {c.population_at_risk}*",
                f"*Time of day factor: {c.time_of_day_factor}*",
            ]
        )

    @staticmethod
    def _economic(results: ScenarioResults) -> str:
        e = results.economic_impact
        return "\n".join(
            [
                "## Economic Impact",
                "",
                f"| Category | Cost ({e.currency}) |",
                "|----------|------------|",
                f"| Building Damage | {_millions(e.building_damage)} |",
                f"| Infrastructure | {_millions(e.infrastructure_damage)} |",
                f"| Business Disruption | {_millions(e.business_disruption)} |",
                f"| Medical Costs | {_millions(e.medical_costs)} |",
                f"| **Total** | **{_millions(e.total_cost)}** |",
            ]
        )

    @staticmethod
    def _healthcare(results: ScenarioResults) -> str:
        h = results.affected_hospitals
        return "\n".join(
            [
                "## Healthcare Capacity Impact",
                "",
                f"- Total hospitals affected: {h.total}",
                f"- Beds at risk: {h.beds_at_risk}",
                f"- Remaining functional beds: {h.functional_beds}",
            ]
        )

    @staticmethod
    def _infrastructure(results: ScenarioResults) -> str:
        i = results.critical_infrastructure
        return "\n".join(
            [
                "## Critical Infrastructure",
                "",
                "| Type | Count |",
                "|------|-------|",
                f"| Schools | {i.schools} |",
                f"| Universities | {i.universities} |",
                f"| Embassies | {i.embassies} |",
                f"| Police Stations | {i.police} |",
                f"| Religious Sites | {i.mosques + i.churches} |",
            ]
        )

    @staticmethod
    def _high_risk(results: ScenarioResults) -> str:
        r = results.high_risk_buildings
        average = f"{r.average_vulnerability:.2f}" if r.total else "N/A"
        lines = [
            "## High-Risk Buildings",
            "",
            f"- Total high-risk buildings: {r.total}",
            f"- Average vulnerability score: {average}",
            "",
            "### Distribution by Condition",
        ]
        lines += [f"- {condition}: {count}" for condition, count in r.by_condition.items()]
        return "\n".join(lines)

    @staticmethod
    def _sectors(results: ScenarioResults) -> str:
        s = results.sector_analysis
        lines = [
            "## Sector Analysis",
            "",
            f"Most affected sector: **{s.most_affected}**",
            f"Least affected sector: **{s.least_affected}**",
        ]
        if s.sectors:
            lines += [
                "",
                "| Sector | Buildings | Severe | Mild | Est. Population |",
                "|--------|-----------|--------|------|-----------------|",
            ]
            lines += [
                f"| {d.name} | {d.buildings_affected} | {d.severe_count} | "
                f"{d.mild_count} | {d.estimated_population} |"
                for d in s.sectors
            ]
        return "\n".join(lines)

    @staticmethod
    def _mitigation(results: ScenarioResults) -> str:
        lines = ["## Recommended Mitigation Plans", ""]
        if not results.mitigation_plans:
            lines.append("No mitigation plans generated.")
            return "\n".join(lines)

        for i, plan in enumerate(results.mitigation_plans, start=1):
            lines += [
                f"### {i}. {plan.name}",
                f"- **Type:** {plan.strategy_type.value}",
                f"- **Cost:** {_millions(plan.target_cost)}",
                f"- **Buildings Targeted:** {plan.buildings_targeted}",
                f"- **Projected Lives Saved:** {plan.projected_lives_saved}",
                f"- **Cost Reduction:** {_millions(plan.projected_cost_reduction)}",
                f"- **ROI:** {plan.roi}x",
                "",
            ]
        return "\n".join(lines).rstrip()
