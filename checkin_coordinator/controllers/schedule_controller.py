# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Check-in schedule and report channel endpoints.
Thin HTTP layer — delegates ALL logic to ScheduleService.
"""

from fastapi import APIRouter, Depends, HTTPException

from checkin_coordinator.core.dependencies import get_schedule_service
from checkin_coordinator.core.errors import DuplicateSubmission, ValidationError
from checkin_coordinator.models.domain import ReportChannelConfig
from checkin_coordinator.schemas.checkin import (
    ReportChannelRequest,
    ReportChannelResponse,
    ScheduleCreatedResponse,
    ScheduleCreateRequest,
    ScheduleResponse,
)
from checkin_coordinator.services.normalize import normalize_time
from checkin_coordinator.services.schedule_service import ScheduleService

router = APIRouter(prefix="/api/v1/servers/{server_id}", tags=["Schedules"])


# ── Schedules ──

@router.post("/schedules", status_code=201, response_model=ScheduleCreatedResponse)
async def create_schedule(
    server_id: str,
    payload: ScheduleCreateRequest,
    service: ScheduleService = Depends(get_schedule_service),
):
    """Create a check-in schedule for a server."""
    try:
        schedule_id = await service.create_schedule(
            server_id=server_id,
            check_in_type=payload.check_in_type,
            channel_id=payload.channel_id,
            frequency=payload.frequency,
            check_in_time=normalize_time(payload.check_in_time),
            source=payload.source,
            team_member_id=payload.team_member_id,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.user_message)
    except DuplicateSubmission as e:
        raise HTTPException(status_code=409, detail=e.user_message)
    return {"schedule_id": schedule_id, "server_id": server_id}


@router.get("/schedules", response_model=list[ScheduleResponse])
async def list_schedules(
    server_id: str,
    service: ScheduleService = Depends(get_schedule_service),
):
    """List every check-in schedule for a server, in creation order."""
    return [s.model_dump(mode="json") for s in await service.list_schedules(server_id)]


# ── Report Channel ──

@router.put("/report-channel", response_model=ReportChannelResponse)
async def set_report_channel(
    server_id: str,
    payload: ReportChannelRequest,
    service: ScheduleService = Depends(get_schedule_service),
):
    """Set the report channel, replacing any existing one."""
    try:
        await service.create_or_update_report_channel(
            ReportChannelConfig(
                server_id=server_id,
                server_name=payload.server_name,
                channel_id=payload.channel_id,
                source=payload.source,
            ),
            overwrite=True,
        )
    except DuplicateSubmission as e:
        raise HTTPException(status_code=409, detail=e.user_message)
    return (await service.require_report_channel(server_id)).model_dump(mode="json")


@router.get("/report-channel", response_model=ReportChannelResponse)
async def get_report_channel(
    server_id: str,
    service: ScheduleService = Depends(get_schedule_service),
):
    """Get the report channel configured for a server."""
    config = await service.get_report_channel(server_id)
    if config is None:
        raise HTTPException(status_code=404, detail=f"No report channel configured for server '{server_id}'")
    return config.model_dump(mode="json")
