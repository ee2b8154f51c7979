# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Prometheus metrics — single source of truth for all metric objects.
Imported by services and middleware. Never instantiated in controllers.
"""

from prometheus_client import Counter, Gauge, Histogram

# ── HTTP Metrics (used by middleware) ──
REQUEST_COUNT = Counter(
    "checkin_requests_total",
    "Total HTTP requests to the check-in coordinator",
    ["method", "endpoint", "status"],
)
REQUEST_LATENCY = Histogram(
    "checkin_request_duration_seconds",
    "Request latency in seconds",
    ["method", "endpoint"],
)
HTTP_ERRORS = Counter(
    "checkin_http_errors_total",
    "Total HTTP error responses",
    ["method", "endpoint", "status"],
)

# ── Business Metrics (updated by service layer only) ──
SCHEDULES_CREATED = Counter(
    "checkin_schedules_created_total",
    "Total check-in schedules created",
    ["frequency"],
)
MEMBERS_REGISTERED = Counter(
    "checkin_members_registered_total",
    "Total team member registrations",
)
UPDATES_INGESTED = Counter(
    "checkin_updates_ingested_total",
    "Update ingestion attempts by outcome",
    ["kind", "outcome"],
)
REPORTS_GENERATED = Counter(
    "checkin_reports_generated_total",
    "Report generation attempts by outcome",
    ["outcome"],
)
REMINDERS_DISPATCHED = Counter(
    "checkin_reminders_dispatched_total",
    "Check-in reminders dispatched by outcome",
    ["outcome"],
)
JOB_TICKS = Counter(
    "checkin_job_ticks_total",
    "Job runner ticks by outcome",
    ["outcome"],
)
JOB_TICK_DURATION = Histogram(
    "checkin_job_tick_duration_seconds",
    "Duration of a job runner tick",
)
TASK_REGISTRATION_STATE = Gauge(
    "checkin_task_registration_state",
    "Job runner registration state (0=unregistered,1=registering,2=active,3=failed)",
)
