"""
Scenarios router - Scenario lifecycle and mitigation comparison.

Wired to:
- ScenarioService for create / run / cancel / inspect
- MitigationComparator through ScenarioService.compare_with_mitigation
- BufferedNotificationSink for polling session notifications
"""

import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from miraat.dependencies import get_notification_buffer, get_service
from miraat.exceptions import (
    CancellationError,
    NotFoundError,
    ScenarioStateError,
    StageExecutionError,
)
from miraat.models.scenario import ScenarioParameters
from miraat.notifications import BufferedNotificationSink
from miraat.services import ScenarioService
from miraat.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


class CreateScenarioRequest(BaseModel):
    """Scenario creation payload."""

    session_id: str = Field(min_length=1, max_length=128)
    name: str = Field(min_length=1, max_length=200)
    parameters: ScenarioParameters


class CompareRequest(BaseModel):
    plan_id: str = Field(min_length=1)


def _not_found(e: NotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


def _conflict(e: ScenarioStateError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_scenario(
    request: CreateScenarioRequest, service: ScenarioService = Depends(get_service)
):
    scenario_id = service.create_scenario(request.session_id, request.name, request.parameters)
    return {"success": True, "data": {"scenario_id": scenario_id, "status": "pending"}}


@router.get("")
def list_scenarios(
    session_id: str = Query(min_length=1), service: ScenarioService = Depends(get_service)
):
    runs = service.list_scenarios(session_id)
    return {
        "success": True,
        "data": {
            "total": len(runs),
            "scenarios": [
                {
                    "scenario_id": run.scenario_id,
                    "name": run.name,
                    "status": run.status.value,
                    "progress_percent": run.progress_percent,
                    "created_at": run.created_at.isoformat(),
                }
                for run in runs
            ],
        },
    }


@router.get("/sessions/{session_id}/notifications")
def drain_notifications(
    session_id: str, sink: BufferedNotificationSink = Depends(get_notification_buffer)
):
    """Buffered notifications of a session, oldest first; the buffer is emptied."""
    events = sink.drain(session_id)
    return {
        "success": True,
        "data": {
            "session_id": session_id,
            "events": [event.model_dump(mode="json") for event in events],
        },
    }


@router.get("/{scenario_id}")
def get_scenario(scenario_id: str, service: ScenarioService = Depends(get_service)):
    try:
        run = service.get_scenario(scenario_id)
    except NotFoundError as e:
        raise _not_found(e)
    return {"success": True, "data": run.model_dump(mode="json")}


@router.get("/{scenario_id}/report")
def get_report(scenario_id: str, service: ScenarioService = Depends(get_service)):
    try:
        run = service.get_scenario(scenario_id)
    except NotFoundError as e:
        raise _not_found(e)
    if run.report_text is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Scenario {scenario_id} has no report ({run.status.value})",
        )
    return {"success": True, "data": {"scenario_id": scenario_id, "report": run.report_text}}


@router.post("/{scenario_id}/run")
async def run_scenario(
    scenario_id: str,
    wait: bool = False,
    service: ScenarioService = Depends(get_service),
):
    """
    Run the scenario pipeline.

    By default the run is started in the background and 202 is returned;
    progress arrives as notifications. With ``wait=true`` the request
    returns the final run, whatever its outcome.
    """
    if not wait:
        try:
            await service.start_analysis(scenario_id)
        except NotFoundError as e:
            raise _not_found(e)
        except ScenarioStateError as e:
            raise _conflict(e)
        return JSONResponse(
            status_code=status.HTTP_202_ACCEPTED,
            content={"success": True, "data": {"scenario_id": scenario_id, "status": "running"}},
        )

    try:
        run = await service.run_analysis(scenario_id)
    except NotFoundError as e:
        raise _not_found(e)
    except ScenarioStateError as e:
        raise _conflict(e)
    except (CancellationError, StageExecutionError) as e:
        logger.info("scenario_run_ended_early", scenario_id=scenario_id, reason=str(e))
        run = await asyncio.to_thread(service.get_scenario, scenario_id)
    return {"success": True, "data": run.model_dump(mode="json")}


@router.post("/{scenario_id}/cancel")
def cancel_scenario(scenario_id: str, service: ScenarioService = Depends(get_service)):
    try:
        run = service.cancel(scenario_id)
    except NotFoundError as e:
        raise _not_found(e)
    return {
        "success": True,
        "data": {"scenario_id": scenario_id, "status": run.status.value},
    }


@router.post("/{scenario_id}/compare")
async def compare_with_mitigation(
    scenario_id: str,
    request: CompareRequest,
    service: ScenarioService = Depends(get_service),
):
    """Baseline versus mitigated outcome for one of the scenario's plans."""
    try:
        comparison = await service.compare_with_mitigation(scenario_id, request.plan_id)
    except NotFoundError as e:
        raise _not_found(e)
    return {"success": True, "data": comparison.model_dump(mode="json")}
