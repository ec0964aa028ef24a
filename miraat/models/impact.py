"""
Impact classification models.

A disaster definition is a tagged union over blast and earthquake events.
Classifying the inventory against one produces per-record classifications
plus aggregate statistics, recomputed on every query and never persisted
outside the scenario that requested them.
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from .buildings import BuildingRecord, GeoPoint, VulnerabilityFactors
from .enums import DamageStatus, DisasterType


class BlastDefinition(BaseModel):
    """Explosive blast at an epicenter with a TNT-equivalent yield."""

    disaster_type: Literal[DisasterType.BLAST] = DisasterType.BLAST
    epicenter: GeoPoint
    yield_kg: float = Field(ge=0.0, description="TNT-equivalent yield in kilograms")


class EarthquakeDefinition(BaseModel):
    """Earthquake at an epicenter with a moment magnitude."""

    disaster_type: Literal[DisasterType.EARTHQUAKE] = DisasterType.EARTHQUAKE
    epicenter: GeoPoint
    magnitude: float = Field(ge=0.0, le=10.0, description="Moment magnitude")


DisasterDefinition = Annotated[
    Union[BlastDefinition, EarthquakeDefinition],
    Field(discriminator="disaster_type"),
]


class DisasterRadii(BaseModel):
    """Severe and mild damage radii in metres; severe never exceeds mild."""

    severe_m: float = Field(ge=0.0)
    mild_m: float = Field(ge=0.0)

    @property
    def severe_km(self) -> float:
        return self.severe_m / 1000.0

    @property
    def mild_km(self) -> float:
        return self.mild_m / 1000.0


class ClassifiedBuilding(BaseModel):
    """
    A building inside the mild radius together with its damage status.

    ``vulnerability_score`` and ``vulnerability_factors`` are only present
    when classification ran in vulnerability-adjusted mode.
    """

    id: int
    apartments: Optional[int] = None
    floors: Optional[int] = None
    status: DamageStatus
    distance_m: float = Field(ge=0.0)
    vulnerability_score: Optional[float] = None
    vulnerability_factors: Optional[VulnerabilityFactors] = None


class ImpactSummary(BaseModel):
    """Aggregate counts of an impact classification."""

    total_buildings: int = 0
    total_apartments: int = 0
    severe_count: int = 0
    mild_count: int = 0


class TypeCount(BaseModel):
    total: int = 0
    severe: int = 0
    mild: int = 0


class PopulationImpact(BaseModel):
    """Residents estimated at 3.5 persons per apartment."""

    estimated_residents: int = 0
    estimated_residents_severe: int = 0
    estimated_residents_mild: int = 0
    residential_units: int = 0
    residential_buildings: int = 0


class BuildingsByUse(BaseModel):
    residential: TypeCount = Field(default_factory=TypeCount)
    commercial: TypeCount = Field(default_factory=TypeCount)
    industrial: TypeCount = Field(default_factory=TypeCount)
    institutional: TypeCount = Field(default_factory=TypeCount)
    mixed_use: TypeCount = Field(default_factory=TypeCount)
    religious: TypeCount = Field(default_factory=TypeCount)
    construction_site: TypeCount = Field(default_factory=TypeCount)
    other: TypeCount = Field(default_factory=TypeCount)


class BuildingsByCondition(BaseModel):
    complete: TypeCount = Field(default_factory=TypeCount)
    under_construction: TypeCount = Field(default_factory=TypeCount)
    evicted: TypeCount = Field(default_factory=TypeCount)
    demolished: TypeCount = Field(default_factory=TypeCount)
    renovated: TypeCount = Field(default_factory=TypeCount)
    empty_lot: TypeCount = Field(default_factory=TypeCount)
    other: TypeCount = Field(default_factory=TypeCount)


class StructuralAnalysis(BaseModel):
    avg_floors: float = 0.0
    max_floors: int = 0
    total_floors: int = 0
    buildings_above_10_floors: int = 0
    avg_building_age: Optional[float] = None
    oldest_building_year: Optional[int] = None
    newest_building_year: Optional[int] = None


class AffectedAreas(BaseModel):
    sectors: list[str] = Field(default_factory=list)
    sector_count: int = 0


class VulnerabilityDistribution(BaseModel):
    """Buckets: high >= 0.7, medium in [0.4, 0.7), low < 0.4."""

    high_risk: int = 0
    medium_risk: int = 0
    low_risk: int = 0
    avg_score: float = 0.0
    max_score: float = 0.0


class ImpactStatistics(BaseModel):
    population_impact: PopulationImpact = Field(default_factory=PopulationImpact)
    buildings_by_use: BuildingsByUse = Field(default_factory=BuildingsByUse)
    buildings_by_condition: BuildingsByCondition = Field(default_factory=BuildingsByCondition)
    structural_analysis: StructuralAnalysis = Field(default_factory=StructuralAnalysis)
    affected_areas: AffectedAreas = Field(default_factory=AffectedAreas)
    vulnerability_distribution: Optional[VulnerabilityDistribution] = None


class ImpactParameters(BaseModel):
    yield_kg: Optional[float] = None
    magnitude: Optional[float] = None
    severe_radius_m: float
    mild_radius_m: float


class BuildingImpactResult(BaseModel):
    """
    Result of classifying the building inventory against one disaster.

    Attributes:
        disaster_type: Blast or earthquake
        center: Epicenter of the event
        parameters: Event magnitude and the derived radii
        summary: Aggregate counts
        statistics: Per-category breakdowns and structural statistics
        buildings: Classified buildings ordered by inventory position
    """

    disaster_type: DisasterType
    center: GeoPoint
    parameters: ImpactParameters
    summary: ImpactSummary
    statistics: ImpactStatistics
    buildings: list[ClassifiedBuilding] = Field(default_factory=list)


class BedCounts(BaseModel):
    medicine: int = 0
    obgyn: int = 0
    icu_ccu: int = 0
    surgery: int = 0
    pediatrics: int = 0


class BedsAffected(BaseModel):
    total: int = 0
    severe: int = 0
    mild: int = 0
    by_type: BedCounts = Field(default_factory=BedCounts)


class ClassifiedHospital(BaseModel):
    id: int
    name: str
    type: Optional[str] = None
    sector: Optional[str] = None
    location: GeoPoint
    status: Optional[DamageStatus] = None
    distance_km: float
    total_beds: int
    beds: BedCounts


class HospitalImpactSummary(BaseModel):
    total_hospitals: int = 0
    severe_count: int = 0
    mild_count: int = 0
    beds_affected: BedsAffected = Field(default_factory=BedsAffected)


class OperationalHospitals(BaseModel):
    count: int = 0
    total_beds: int = 0
    nearest: Optional[ClassifiedHospital] = None


class HospitalImpactResult(BaseModel):
    """Hospitals inside the mild radius plus remaining operational capacity."""

    disaster_type: DisasterType
    center: GeoPoint
    parameters: ImpactParameters
    summary: HospitalImpactSummary
    operational: OperationalHospitals
    hospitals: list[ClassifiedHospital] = Field(default_factory=list)


class NearestHospital(BaseModel):
    id: int
    name: str
    type: Optional[str] = None
    distance_km: float
    total_beds: int
    coordinates: GeoPoint


class NearestHospitalsResult(BaseModel):
    reference: GeoPoint
    hospitals: list[NearestHospital] = Field(default_factory=list)


class HospitalDetail(BaseModel):
    """A hospital with ward capacities and the survey record of its building."""

    id: int
    name: str
    name_arabic: Optional[str] = None
    type: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    coordinates: GeoPoint
    sector: Optional[str] = None
    cadastral: Optional[str] = None
    beds: BedCounts
    total_beds: int
    building: Optional[BuildingRecord] = None


class BuildingDetail(BaseModel):
    """
    One building with its vulnerability assessment.

    ``damage_status`` is the building's class in the referenced scenario:
    SEVERE or MILD when classified, ``not_affected`` when the scenario
    completed without reaching it, ``unknown`` without a completed scenario.
    """

    building: BuildingRecord
    vulnerability_score: float = Field(ge=0.0, le=1.0)
    vulnerability_factors: VulnerabilityFactors
    scenario_id: Optional[str] = None
    damage_status: Literal["SEVERE", "MILD", "not_affected", "unknown"] = "unknown"
