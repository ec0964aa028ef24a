"""
Summary-to-detail expansion for downstream estimators.

The casualty and economic stages only see the aggregate counts produced by
the impact and hospital stages. These adapters rebuild a representative
per-record list from those counts using fixed default attributes. The
expansion is lossy: real apartment counts, floors, vulnerability scores,
building types and conditions are all replaced by the defaults below.
"""

from miraat.models.enums import DamageStatus
from miraat.models.scenario import (
    AffectedBuildingSummary,
    AffectedHospitalSummary,
    SyntheticBuilding,
    SyntheticHospital,
)

SYNTHETIC_APARTMENTS = 6
SYNTHETIC_FLOORS = 5
SEVERE_VULNERABILITY = 0.7
MILD_VULNERABILITY = 0.4
DEFAULT_HOSPITAL_BEDS = 50


def expand_summary_to_synthetic_records(
    summary: AffectedBuildingSummary,
) -> list[SyntheticBuilding]:
    """SEVERE buildings first, then MILD, with positional ids."""
    buildings = [
        SyntheticBuilding(
            id=i,
            status=DamageStatus.SEVERE,
            apartments=SYNTHETIC_APARTMENTS,
            floors=SYNTHETIC_FLOORS,
            vulnerability_score=SEVERE_VULNERABILITY,
        )
        for i in range(summary.severe)
    ]
    buildings.extend(
        SyntheticBuilding(
            id=summary.severe + i,
            status=DamageStatus.MILD,
            apartments=SYNTHETIC_APARTMENTS,
            floors=SYNTHETIC_FLOORS,
            vulnerability_score=MILD_VULNERABILITY,
        )
        for i in range(summary.mild)
    )
    return buildings


def expand_hospital_summary(summary: AffectedHospitalSummary) -> list[SyntheticHospital]:
    """Every synthetic hospital carries the average beds at risk, or 50 when that is zero."""
    beds = (summary.beds_at_risk // summary.total if summary.total else 0) or DEFAULT_HOSPITAL_BEDS
    hospitals = [
        SyntheticHospital(id=i, status=DamageStatus.SEVERE, beds=beds)
        for i in range(summary.severe)
    ]
    hospitals.extend(
        SyntheticHospital(id=summary.severe + i, status=DamageStatus.MILD, beds=beds)
        for i in range(summary.mild)
    )
    return hospitals
