"""
Hospital impact classification and capacity lookups.

Hospitals inside the mild radius are affected (SEVERE at or inside the
severe radius, MILD otherwise) and their beds count as at risk. Every other
hospital stays operational; the nearest operational hospital is reported so
responders know where capacity remains. Vulnerability adjustment does not
apply to hospitals.
"""

from typing import Optional

import structlog

from miraat.engine.geo_index import GeoIndex
from miraat.engine.impact.classifier import impact_parameters
from miraat.engine.impact.radii import radii_for
from miraat.exceptions import NotFoundError
from miraat.models.buildings import GeoPoint, HospitalRecord
from miraat.models.enums import DamageStatus
from miraat.models.impact import (
    BedCounts,
    ClassifiedHospital,
    HospitalDetail,
    HospitalImpactResult,
    HospitalImpactSummary,
    NearestHospital,
    NearestHospitalsResult,
    OperationalHospitals,
)
from miraat.utils.rounding import round_half_up

logger = structlog.get_logger()


def _classified(
    hospital: HospitalRecord, distance_m: float, status: Optional[DamageStatus]
) -> ClassifiedHospital:
    return ClassifiedHospital(
        id=hospital.id,
        name=hospital.name,
        type=hospital.type,
        sector=hospital.sector,
        location=hospital.location,
        status=status,
        distance_km=round_half_up(distance_m / 1000.0, 3),
        total_beds=hospital.total_beds,
        beds=BedCounts(**hospital.beds_by_ward()),
    )


class HospitalClassifier:
    """Classifies hospitals against a disaster and answers capacity queries."""

    def __init__(self, index: GeoIndex):
        self.index = index

    def classify(self, disaster) -> HospitalImpactResult:
        radii = radii_for(disaster)
        summary = HospitalImpactSummary()
        affected: list[ClassifiedHospital] = []
        operational: list[tuple[HospitalRecord, float]] = []

        for hospital, distance_m in self.index.hospital_distances(disaster.epicenter):
            if distance_m > radii.mild_m:
                operational.append((hospital, distance_m))
                continue

            status = DamageStatus.SEVERE if distance_m <= radii.severe_m else DamageStatus.MILD
            affected.append(_classified(hospital, distance_m, status))

            beds = hospital.total_beds
            if status == DamageStatus.SEVERE:
                summary.severe_count += 1
                summary.beds_affected.severe += beds
            else:
                summary.mild_count += 1
                summary.beds_affected.mild += beds

            by_type = summary.beds_affected.by_type
            for ward, count in hospital.beds_by_ward().items():
                setattr(by_type, ward, getattr(by_type, ward) + count)

        summary.total_hospitals = len(affected)
        summary.beds_affected.total = summary.beds_affected.severe + summary.beds_affected.mild

        operational.sort(key=lambda pair: pair[1])
        nearest = _classified(*operational[0], None) if operational else None

        logger.info(
            "hospitals_classified",
            disaster_type=disaster.disaster_type.value,
            affected=summary.total_hospitals,
            severe_count=summary.severe_count,
            beds_at_risk=summary.beds_affected.total,
            operational=len(operational),
        )

        return HospitalImpactResult(
            disaster_type=disaster.disaster_type,
            center=disaster.epicenter,
            parameters=impact_parameters(disaster, radii),
            summary=summary,
            operational=OperationalHospitals(
                count=len(operational),
                total_beds=sum(h.total_beds for h, _ in operational),
                nearest=nearest,
            ),
            hospitals=affected,
        )

    def nearest(self, lon: float, lat: float, limit: int = 5) -> NearestHospitalsResult:
        reference = GeoPoint(lon=lon, lat=lat)
        return NearestHospitalsResult(
            reference=reference,
            hospitals=[
                NearestHospital(
                    id=h.id,
                    name=h.name,
                    type=h.type,
                    distance_km=round_half_up(d / 1000.0, 3),
                    total_beds=h.total_beds,
                    coordinates=h.location,
                )
                for h, d in self.index.nearest_hospitals(reference, limit=limit)
            ],
        )

    def detail(self, hospital_id: int) -> HospitalDetail:
        hospital = self.index.hospital(hospital_id)
        if hospital is None:
            raise NotFoundError("Hospital", hospital_id)
        return HospitalDetail(
            id=hospital.id,
            name=hospital.name,
            name_arabic=hospital.name_arabic,
            type=hospital.type,
            phone=hospital.phone,
            address=hospital.address,
            coordinates=hospital.location,
            sector=hospital.sector,
            cadastral=hospital.cadastral,
            beds=BedCounts(**hospital.beds_by_ward()),
            total_beds=hospital.total_beds,
            building=self.index.building(hospital.id),
        )
