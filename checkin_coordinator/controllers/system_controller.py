# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: System endpoints — health, readiness, metrics.
Pure HTTP layer — no business logic.
"""

from datetime import datetime, timezone

from fastapi import APIRouter
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from checkin_coordinator.core.config import settings
from checkin_coordinator.core.dependencies import get_job_runner, get_record_store, get_task_host

router = APIRouter(tags=["System"])


@router.get("/health")
def health_check():
    """Liveness probe for Docker and orchestration."""
    return {
        "status": "ok",
        "service": settings.SERVICE_NAME,
        "version": settings.SERVICE_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "records_count": get_record_store().count(),
    }


@router.get("/health/ready")
def readiness_check():
    """Readiness probe — reports whether automatic reminders are running."""
    runner = get_job_runner()
    return {
        "status": "ready",
        "service": settings.SERVICE_NAME,
        "task_host_ready": get_task_host().is_ready(),
        "job_runner_state": runner.state.value,
        "poll_interval_seconds": int(runner.poll_interval.total_seconds()),
    }


@router.get("/metrics")
def prometheus_metrics():
    """Expose Prometheus metrics in OpenMetrics format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
