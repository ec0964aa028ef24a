"""
Building and hospital inventory models.

Records are loaded once at start-up and never mutated. Numeric attributes the
source dataset marks with the ``-999`` sentinel are normalized to ``None`` by
the dataset loader, so every consumer treats "missing" uniformly.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

NOT_AVAILABLE = -999


class GeoPoint(BaseModel):
    """WGS84 point in decimal degrees."""

    model_config = ConfigDict(frozen=True)

    lon: float = Field(ge=-180.0, le=180.0, description="Longitude")
    lat: float = Field(ge=-90.0, le=90.0, description="Latitude")


class BuildingRecord(BaseModel):
    """
    One building of the inventory.

    Attributes:
        id: Stable building identifier (shared with the hospital id space)
        location: Representative point of the footprint
        apartment_count: Residential units, None when unknown
        floor_count: Storeys above ground, None when unknown
        year_completed: Completion year, None when unknown
        condition_category: Free-text condition label, e.g. "Complete Residential"
        use_category: Free-text use label, e.g. "Residential"
        sector: Administrative sector name
        building_type: Critical-infrastructure label (school, embassy, ...)
        height_m: Building height in metres
        cadastral: Cadastral zone label
    """

    model_config = ConfigDict(frozen=True)

    id: int = Field(description="Stable building identifier")
    location: GeoPoint
    apartment_count: Optional[int] = Field(default=None, description="Residential units")
    floor_count: Optional[int] = Field(default=None, description="Storeys above ground")
    year_completed: Optional[int] = Field(default=None, description="Completion year")
    condition_category: str = Field(default="Not Available", description="Condition label")
    use_category: str = Field(default="Not Available", description="Use label")
    sector: Optional[str] = Field(default=None, description="Administrative sector")
    building_type: Optional[str] = Field(default=None, description="Infrastructure type label")
    height_m: Optional[float] = Field(default=None, description="Height in metres")
    cadastral: Optional[str] = Field(default=None, description="Cadastral zone")


class HospitalRecord(BaseModel):
    """
    A hospital with ward bed capacities.

    Bed counts may be missing in the source data; missing wards count as
    zero toward ``total_beds``.
    """

    model_config = ConfigDict(frozen=True)

    id: int = Field(description="Building id of the hospital")
    name: str
    type: Optional[str] = Field(default=None, description="Public/private label")
    location: GeoPoint
    sector: Optional[str] = None
    name_arabic: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    cadastral: Optional[str] = None
    medicine_beds: Optional[int] = None
    obgyn_beds: Optional[int] = None
    icu_ccu_beds: Optional[int] = None
    surgery_beds: Optional[int] = None
    pediatrics_beds: Optional[int] = None

    @computed_field
    @property
    def total_beds(self) -> int:
        return sum(
            v or 0
            for v in (
                self.medicine_beds,
                self.obgyn_beds,
                self.icu_ccu_beds,
                self.surgery_beds,
                self.pediatrics_beds,
            )
        )

    def beds_by_ward(self) -> dict[str, int]:
        return {
            "medicine": self.medicine_beds or 0,
            "obgyn": self.obgyn_beds or 0,
            "icu_ccu": self.icu_ccu_beds or 0,
            "surgery": self.surgery_beds or 0,
            "pediatrics": self.pediatrics_beds or 0,
        }


class VulnerabilityFactors(BaseModel):
    """Four independently clamped sub-scores in [0, 1]."""

    age: float = Field(ge=0.0, le=1.0)
    height: float = Field(ge=0.0, le=1.0)
    condition: float = Field(ge=0.0, le=1.0)
    use_type: float = Field(ge=0.0, le=1.0)
