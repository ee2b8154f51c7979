# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Status update ingestion and report generation endpoints.
Thin HTTP layer — delegates to UpdateCollector / ReportGenerator.
"""

from fastapi import APIRouter, Depends, HTTPException

from checkin_coordinator.core.dependencies import get_report_generator, get_update_collector
from checkin_coordinator.core.errors import CollaboratorUnavailable, ExtractionError
from checkin_coordinator.models.domain import ReportWindow, utcnow
from checkin_coordinator.schemas.checkin import (
    ReportRequest,
    UpdateSubmitRequest,
    UpdateSubmitResponse,
)
from checkin_coordinator.services.report_generator import (
    STATUS_CONFIGURATION_MISSING,
    STATUS_DELIVERY_FAILED,
    ReportGenerator,
    ReportResult,
    default_window,
)
from checkin_coordinator.services.update_collector import UpdateCollector

router = APIRouter(prefix="/api/v1/servers/{server_id}", tags=["Updates & Reports"])


@router.post("/updates", response_model=UpdateSubmitResponse)
async def submit_update(
    server_id: str,
    payload: UpdateSubmitRequest,
    collector: UpdateCollector = Depends(get_update_collector),
):
    """Ingest a member's status update. Non-updates return guidance and store nothing."""
    try:
        result = await collector.ingest_status_update(
            server_id,
            payload.member_ref,
            payload.text,
            updates_format=payload.updates_format,
            schedule_id=payload.schedule_id,
        )
    except ExtractionError as e:
        raise HTTPException(status_code=422, detail=e.user_message)
    except CollaboratorUnavailable as e:
        raise HTTPException(status_code=503, detail=e.user_message)
    return {
        "accepted": result.accepted,
        "update_id": result.record.update_id if result.record else None,
        "fields": result.fields,
        "guidance": result.guidance,
    }


@router.post("/reports", response_model=ReportResult)
async def generate_report(
    server_id: str,
    payload: ReportRequest | None = None,
    generator: ReportGenerator = Depends(get_report_generator),
):
    """Generate a team progress report and post it to the report channel."""
    window = None
    if payload is not None and (payload.start or payload.end):
        default = default_window(utcnow())
        try:
            window = ReportWindow(start=payload.start or default.start, end=payload.end or default.end)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    result = await generator.generate(server_id, window=window)
    if result.status == STATUS_CONFIGURATION_MISSING:
        raise HTTPException(status_code=409, detail=result.text)
    if result.status == STATUS_DELIVERY_FAILED:
        raise HTTPException(status_code=503, detail="Report could not be delivered to the report channel")
    return result
