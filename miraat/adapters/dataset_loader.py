"""
Dataset loader for the building and hospital inventory.

Buildings arrive as a GeoJSON FeatureCollection whose footprints are reduced
to a representative point (the shapely centroid). Hospitals arrive as a JSON
list with coordinates stored as strings. Individual malformed records are
skipped and counted in a load report; a file that cannot be read, or one
that yields no usable record, aborts start-up with DatasetLoadError.
"""

import json
import math
from pathlib import Path
from typing import Any, Optional

import structlog
from pydantic import BaseModel, Field, ValidationError
from shapely.geometry import shape

from miraat.config import Settings, get_settings
from miraat.engine.geo_index import GeoIndex
from miraat.exceptions import DataIntegrityError, DatasetLoadError
from miraat.models.buildings import NOT_AVAILABLE, BuildingRecord, GeoPoint, HospitalRecord

logger = structlog.get_logger()

MAX_REPORTED_ISSUES = 20

BUILDING_FIELDS = {
    "id": "BULBuildingID",
    "apartments": "NoofApartments",
    "floors": "NoofFloor",
    "year": "YearCompleted",
    "condition": "Status2022",
    "use": "Building_Use",
    "sector": "Sector_Name",
    "type": "Building_Type",
    "height": "Building_Hight_m",
    "cadastral": "Cadastral",
}

HOSPITAL_BED_FIELDS = {
    "medicine_beds": "medicineBeds",
    "obgyn_beds": "obgynBeds",
    "icu_ccu_beds": "icuCcuBeds",
    "surgery_beds": "surgeryBeds",
    "pediatrics_beds": "pediatricsBeds",
}


class DatasetLoadReport(BaseModel):
    """
    Outcome of loading one dataset file.

    Attributes:
        source: File the records were read from
        total_records: Records present in the file
        loaded_records: Records that became inventory entries
        skipped_records: Records rejected as malformed
        issues: First few rejection messages
    """

    source: str
    total_records: int = Field(default=0, ge=0)
    loaded_records: int = Field(default=0, ge=0)
    skipped_records: int = Field(default=0, ge=0)
    issues: list[str] = Field(default_factory=list)

    def reject(self, error: DataIntegrityError) -> None:
        self.skipped_records += 1
        if len(self.issues) < MAX_REPORTED_ISSUES:
            self.issues.append(str(error))
        logger.warning(
            "dataset_record_skipped",
            source=self.source,
            record_id=error.record_id,
            error=str(error),
        )


def _safe_number(value: Any) -> Optional[float]:
    """Numeric value of ``value``; None for missing, sentinel or non-numeric input."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number == NOT_AVAILABLE:
        return None
    return number


def _safe_int(value: Any) -> Optional[int]:
    number = _safe_number(value)
    return int(number) if number is not None else None


def _safe_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _read_json(path: Path) -> Any:
    try:
        with path.open(encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error("dataset_read_failed", path=str(path), error=str(e))
        raise DatasetLoadError(f"Cannot read dataset {path}: {e}") from e


def _record_id(raw: Any, source: str) -> int:
    record_id = _safe_int(raw)
    if record_id is None:
        raise DataIntegrityError(f"{source} record without a valid BULBuildingID", raw)
    return record_id


def parse_building(feature: dict) -> BuildingRecord:
    """
    Convert one GeoJSON feature into a BuildingRecord.

    Raises:
        DataIntegrityError: If the id or geometry is unusable
    """
    if not isinstance(feature, dict):
        raise DataIntegrityError("Building feature is not an object")
    props = feature.get("properties") or {}
    building_id = _record_id(props.get(BUILDING_FIELDS["id"]), "Building")

    geometry = feature.get("geometry")
    if not geometry:
        raise DataIntegrityError(f"Building {building_id} has no geometry", building_id)
    try:
        centroid = shape(geometry).centroid
    except Exception as e:
        raise DataIntegrityError(
            f"Building {building_id} has invalid geometry: {e}", building_id
        ) from e
    if centroid.is_empty:
        raise DataIntegrityError(f"Building {building_id} has empty geometry", building_id)

    try:
        return BuildingRecord(
            id=building_id,
            location=GeoPoint(lon=centroid.x, lat=centroid.y),
            apartment_count=_safe_int(props.get(BUILDING_FIELDS["apartments"])),
            floor_count=_safe_int(props.get(BUILDING_FIELDS["floors"])),
            year_completed=_safe_int(props.get(BUILDING_FIELDS["year"])),
            condition_category=_safe_str(props.get(BUILDING_FIELDS["condition"]))
            or "Not Available",
            use_category=_safe_str(props.get(BUILDING_FIELDS["use"])) or "Not Available",
            sector=_safe_str(props.get(BUILDING_FIELDS["sector"])),
            building_type=_safe_str(props.get(BUILDING_FIELDS["type"])),
            height_m=_safe_number(props.get(BUILDING_FIELDS["height"])),
            cadastral=_safe_str(props.get(BUILDING_FIELDS["cadastral"])),
        )
    except ValidationError as e:
        raise DataIntegrityError(f"Building {building_id} is invalid: {e}", building_id) from e


def parse_hospital(item: dict) -> HospitalRecord:
    """
    Convert one hospital entry into a HospitalRecord.

    Raises:
        DataIntegrityError: If the id, name or coordinates are unusable
    """
    if not isinstance(item, dict):
        raise DataIntegrityError("Hospital entry is not an object")
    hospital_id = _record_id(item.get("BULBuildingID"), "Hospital")

    name = _safe_str(item.get("Name"))
    if name is None:
        raise DataIntegrityError(f"Hospital {hospital_id} has no name", hospital_id)

    lon = _safe_number(item.get("longitude"))
    lat = _safe_number(item.get("latitude"))
    if lon is None or lat is None:
        raise DataIntegrityError(f"Hospital {hospital_id} has no coordinates", hospital_id)

    beds = {field: _safe_int(item.get(key)) for field, key in HOSPITAL_BED_FIELDS.items()}
    try:
        return HospitalRecord(
            id=hospital_id,
            name=name,
            type=_safe_str(item.get("Type")),
            location=GeoPoint(lon=lon, lat=lat),
            sector=_safe_str(item.get("sector")),
            name_arabic=_safe_str(item.get("Name(ar)")),
            phone=_safe_str(item.get("Phone")),
            address=_safe_str(item.get("formatted_address")),
            cadastral=_safe_str(item.get("cadastral")),
            **beds,
        )
    except ValidationError as e:
        raise DataIntegrityError(f"Hospital {hospital_id} is invalid: {e}", hospital_id) from e


def load_buildings(path: str) -> tuple[list[BuildingRecord], DatasetLoadReport]:
    """
    Load the building inventory from a GeoJSON FeatureCollection.

    Duplicate ids keep the first occurrence.

    Raises:
        DatasetLoadError: If the file is unreadable, not a FeatureCollection,
            or contains no usable building
    """
    source = Path(path)
    data = _read_json(source)
    features = data.get("features") if isinstance(data, dict) else None
    if not isinstance(features, list):
        raise DatasetLoadError(f"{source} is not a GeoJSON FeatureCollection")

    report = DatasetLoadReport(source=str(source), total_records=len(features))
    buildings: list[BuildingRecord] = []
    seen: set[int] = set()

    for feature in features:
        try:
            building = parse_building(feature)
            if building.id in seen:
                raise DataIntegrityError(f"Duplicate building id {building.id}", building.id)
        except DataIntegrityError as e:
            report.reject(e)
            continue
        seen.add(building.id)
        buildings.append(building)

    report.loaded_records = len(buildings)
    if not buildings:
        logger.error("buildings_dataset_empty", path=str(source))
        raise DatasetLoadError(f"No usable buildings in {source}")

    logger.info(
        "buildings_loaded",
        path=str(source),
        loaded=report.loaded_records,
        skipped=report.skipped_records,
    )
    return buildings, report


def load_hospitals(path: str) -> tuple[list[HospitalRecord], DatasetLoadReport]:
    """
    Load hospitals from a JSON list.

    Raises:
        DatasetLoadError: If the file is unreadable, not a list, or contains
            no usable hospital
    """
    source = Path(path)
    data = _read_json(source)
    if not isinstance(data, list):
        raise DatasetLoadError(f"{source} is not a JSON list of hospitals")

    report = DatasetLoadReport(source=str(source), total_records=len(data))
    hospitals: list[HospitalRecord] = []
    seen: set[int] = set()

    for item in data:
        try:
            hospital = parse_hospital(item)
            if hospital.id in seen:
                raise DataIntegrityError(f"Duplicate hospital id {hospital.id}", hospital.id)
        except DataIntegrityError as e:
            report.reject(e)
            continue
        seen.add(hospital.id)
        hospitals.append(hospital)

    report.loaded_records = len(hospitals)
    if not hospitals:
        logger.error("hospitals_dataset_empty", path=str(source))
        raise DatasetLoadError(f"No usable hospitals in {source}")

    logger.info(
        "hospitals_loaded",
        path=str(source),
        loaded=report.loaded_records,
        skipped=report.skipped_records,
    )
    return hospitals, report


def load_index(settings: Optional[Settings] = None) -> GeoIndex:
    """Load both datasets named by the settings into a GeoIndex."""
    settings = settings or get_settings()
    buildings, _ = load_buildings(settings.buildings_path)
    hospitals, _ = load_hospitals(settings.hospitals_path)
    return GeoIndex(buildings, hospitals)
