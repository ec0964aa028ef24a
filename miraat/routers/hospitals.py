"""
Hospitals router - Hospital capacity under disaster scenarios.

Wired to:
- ScenarioService hospital queries (HospitalClassifier underneath)
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from miraat.dependencies import get_service
from miraat.exceptions import NotFoundError
from miraat.services import ScenarioService
from miraat.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


@router.get("")
def list_hospitals(
    type: Optional[str] = Query(default=None, description="public or private"),
    service: ScenarioService = Depends(get_service),
):
    hospitals = service.list_hospitals(type)
    return {
        "success": True,
        "data": {
            "total": len(hospitals),
            "hospitals": [h.model_dump(mode="json") for h in hospitals],
        },
    }


@router.get("/nearest")
def nearest_hospitals(
    lon: float = Query(ge=-180.0, le=180.0),
    lat: float = Query(ge=-90.0, le=90.0),
    limit: int = Query(default=5, ge=1, le=20),
    service: ScenarioService = Depends(get_service),
):
    """Hospitals closest to a point, nearest first."""
    result = service.nearest_hospitals(lon, lat, limit)
    return {"success": True, "data": result.model_dump(mode="json")}


@router.get("/affected/blast")
def hospitals_affected_by_blast(
    lon: float = Query(ge=-180.0, le=180.0),
    lat: float = Query(ge=-90.0, le=90.0),
    yield_kg: float = Query(ge=1.0),
    service: ScenarioService = Depends(get_service),
):
    result = service.hospitals_by_blast(lon, lat, yield_kg)
    logger.info("hospital_blast_query", yield_kg=yield_kg, affected=result.summary.total_hospitals)
    return {"success": True, "data": result.model_dump(mode="json")}


@router.get("/affected/earthquake")
def hospitals_affected_by_earthquake(
    lon: float = Query(ge=-180.0, le=180.0),
    lat: float = Query(ge=-90.0, le=90.0),
    magnitude: float = Query(ge=1.0, le=10.0),
    service: ScenarioService = Depends(get_service),
):
    result = service.hospitals_by_earthquake(lon, lat, magnitude)
    logger.info(
        "hospital_earthquake_query", magnitude=magnitude, affected=result.summary.total_hospitals
    )
    return {"success": True, "data": result.model_dump(mode="json")}


@router.get("/{hospital_id}")
def hospital_detail(hospital_id: int, service: ScenarioService = Depends(get_service)):
    """Full hospital record with ward beds and the matching building."""
    try:
        detail = service.hospital_detail(hospital_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "data": detail.model_dump(mode="json")}
