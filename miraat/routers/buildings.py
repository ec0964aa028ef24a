"""
Buildings router - Impact classification of the building inventory.

Wired to:
- ScenarioService.classify_by_blast / classify_by_earthquake
- ScenarioService.building_details
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from miraat.dependencies import get_service
from miraat.exceptions import NotFoundError
from miraat.services import ScenarioService
from miraat.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


@router.get("/affected/blast")
def affected_by_blast(
    lon: float = Query(ge=-180.0, le=180.0),
    lat: float = Query(ge=-90.0, le=90.0),
    yield_kg: float = Query(ge=1.0, description="TNT-equivalent yield in kg"),
    include_vulnerability: bool = False,
    service: ScenarioService = Depends(get_service),
):
    """
    Classify buildings affected by a blast.

    With ``include_vulnerability`` each building's severe radius is scaled
    by its vulnerability score and the score is returned per building.
    """
    result = service.classify_by_blast(lon, lat, yield_kg, include_vulnerability)
    logger.info(
        "blast_query",
        yield_kg=yield_kg,
        include_vulnerability=include_vulnerability,
        affected=result.summary.total_buildings,
    )
    return {"success": True, "data": result.model_dump(mode="json")}


@router.get("/affected/earthquake")
def affected_by_earthquake(
    lon: float = Query(ge=-180.0, le=180.0),
    lat: float = Query(ge=-90.0, le=90.0),
    magnitude: float = Query(ge=1.0, le=10.0),
    include_vulnerability: bool = False,
    service: ScenarioService = Depends(get_service),
):
    """Classify buildings affected by an earthquake."""
    result = service.classify_by_earthquake(lon, lat, magnitude, include_vulnerability)
    logger.info(
        "earthquake_query",
        magnitude=magnitude,
        include_vulnerability=include_vulnerability,
        affected=result.summary.total_buildings,
    )
    return {"success": True, "data": result.model_dump(mode="json")}


@router.get("/{building_id}")
def building_details(
    building_id: int,
    scenario_id: Optional[str] = None,
    service: ScenarioService = Depends(get_service),
):
    """Building record, vulnerability and, for a scenario, its damage class."""
    try:
        detail = service.building_details(building_id, scenario_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "data": detail.model_dump(mode="json")}
