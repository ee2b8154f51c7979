# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Team Check-in Coordinator
=========================
Schedules recurring team check-ins, reminds channels when they are due,
collects member status updates and posts narrative progress reports.

Reminder registration follows a bounded retry against the task host:
    unregistered ─► registering ─► active
                               └─► failed  (reminders disabled, API keeps serving)

Port: 8010
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from checkin_coordinator.controllers import (
    action_controller,
    member_controller,
    report_controller,
    schedule_controller,
    system_controller,
)
from checkin_coordinator.core.config import settings
from checkin_coordinator.core.dependencies import get_job_runner, get_schedule_service, get_task_host
from checkin_coordinator.core.logging import get_logger
from checkin_coordinator.middleware import MetricsMiddleware, RequestIDMiddleware
from checkin_coordinator.schemas.checkin import ErrorResponse

logger = get_logger(__name__)


# ── Lifespan ──────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(application: FastAPI):
    await get_schedule_service().load()
    task_host = get_task_host()
    task_host.start()
    job_runner = get_job_runner()
    job_runner.start()
    logger.info(
        "%s v%s starting, polling every %ss",
        settings.SERVICE_NAME,
        settings.SERVICE_VERSION,
        settings.CHECKIN_POLL_INTERVAL_SECONDS,
    )
    yield
    await job_runner.stop()
    task_host.shutdown()
    logger.info("Shutting down, job runner state was %s", job_runner.state.value)


# ── FastAPI App ───────────────────────────────────────────────────────────
app = FastAPI(
    title="Team Check-in Coordinator",
    description="Check-in scheduling, reminders, update collection and team progress reports.",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
    responses={
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
)

app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Global exception handler ─────────────────────────────────────────────
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    req_id = getattr(request.state, "request_id", None)
    logger.exception("Unhandled exception", extra={"request_id": req_id})
    return JSONResponse(
        status_code=500,
        content={"error": "internal_server_error", "detail": str(exc), "request_id": req_id},
    )


app.include_router(system_controller.router)
app.include_router(schedule_controller.router)
app.include_router(member_controller.router)
app.include_router(report_controller.router)
app.include_router(action_controller.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=settings.SERVICE_PORT)
