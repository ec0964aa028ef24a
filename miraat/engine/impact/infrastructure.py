"""Critical infrastructure located inside a disaster's mild radius."""

from typing import Optional

import structlog

from miraat.engine.geo_index import GeoIndex
from miraat.engine.impact.radii import radii_for
from miraat.models.enums import InfrastructureType
from miraat.models.scenario import CriticalInfrastructureSummary

logger = structlog.get_logger()

SUMMARY_FIELDS = {
    InfrastructureType.SCHOOL: "schools",
    InfrastructureType.UNIVERSITY: "universities",
    InfrastructureType.EMBASSY: "embassies",
    InfrastructureType.POLICE: "police",
    InfrastructureType.MOSQUE: "mosques",
    InfrastructureType.CHURCH: "churches",
}


def infrastructure_type(label: Optional[str]) -> Optional[InfrastructureType]:
    if not label:
        return None
    try:
        return InfrastructureType(label.strip().lower())
    except ValueError:
        return None


class InfrastructureLocator:
    """Counts schools, universities, embassies, police stations and places of worship."""

    def __init__(self, index: GeoIndex):
        self.index = index

    def locate(self, disaster) -> CriticalInfrastructureSummary:
        radii = radii_for(disaster)
        summary = CriticalInfrastructureSummary()

        for building, _ in self.index.buildings_within(disaster.epicenter, radii.mild_m):
            kind = infrastructure_type(building.building_type)
            if kind is None:
                continue
            field = SUMMARY_FIELDS[kind]
            setattr(summary, field, getattr(summary, field) + 1)
            summary.building_ids.append(building.id)

        summary.total = len(summary.building_ids)
        logger.info("critical_infrastructure_located", total=summary.total)
        return summary

    @staticmethod
    def counts_by_type(summary: CriticalInfrastructureSummary) -> dict[str, int]:
        """Counts keyed by infrastructure type value, the shape cost models consume."""
        return {kind.value: getattr(summary, field) for kind, field in SUMMARY_FIELDS.items()}
