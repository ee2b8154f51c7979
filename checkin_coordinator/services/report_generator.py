# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Report generation.
Aggregates status updates for a window, asks the text model for narrative
prose and posts the report to the server's report channel.
"""

from datetime import timedelta
from typing import Any, Callable, Optional

from pydantic import BaseModel

from checkin_coordinator.core.config import settings
from checkin_coordinator.core.errors import CollaboratorUnavailable, ConfigurationMissing
from checkin_coordinator.core.logging import get_logger
from checkin_coordinator.metrics.prometheus import REPORTS_GENERATED
from checkin_coordinator.models.domain import ReportWindow, UpdateKind, UpdateRecord, utcnow
from checkin_coordinator.repositories.update_repository import UpdateRepository
from checkin_coordinator.services.messaging_client import MessagingAdapter
from checkin_coordinator.services.model_client import TextModel
from checkin_coordinator.services.schedule_service import ScheduleService

logger = get_logger(__name__)

STATUS_POSTED = "posted"
STATUS_CONFIGURATION_MISSING = "configuration_missing"
STATUS_DELIVERY_FAILED = "delivery_failed"

NO_UPDATES_TEXT = "No updates to report for this period."

REPORT_PROMPT = """You are preparing a TEAM PROGRESS REPORT from the status updates below.

Write a short report that:
1) Summarizes overall progress across the team
2) Highlights each member's key accomplishments and next steps
3) Calls out every blocker explicitly, with who is affected
4) Ends with 1-3 recommended follow-ups for the team lead

Rules:
- Use only the information in the updates
- Do not invent names, numbers or dates
- Keep it concise and readable in a chat channel

UPDATES ({start} to {end}):
{updates}"""


class ReportResult(BaseModel):
    status: str
    server_id: str
    channel_id: Optional[str] = None
    text: str
    update_count: int = 0


def default_window(now) -> ReportWindow:
    return ReportWindow(
        start=now - timedelta(hours=settings.DEFAULT_REPORT_WINDOW_HOURS),
        end=now,
    )


def group_by_member(updates: list[UpdateRecord]) -> list[tuple[str, list[UpdateRecord]]]:
    groups: dict[str, list[UpdateRecord]] = {}
    for update in updates:
        groups.setdefault(update.member_ref, []).append(update)
    return list(groups.items())


def format_updates(groups: list[tuple[str, list[UpdateRecord]]]) -> str:
    lines: list[str] = []
    for member_ref, updates in groups:
        lines.append(f"Member: {member_ref}")
        for update in updates:
            lines.append(f"  Submitted: {update.timestamp.isoformat()}")
            if update.extracted_fields:
                for field, value in update.extracted_fields.items():
                    lines.append(f"  - {field}: {value or 'n/a'}")
            else:
                lines.append(f"  - update: {update.raw_text}")
    return "\n".join(lines)


def report_header(window: ReportWindow) -> str:
    return (
        "📊 **Team Progress Report**\n"
        f"_{window.start.strftime('%Y-%m-%d %H:%M')} to "
        f"{window.end.strftime('%Y-%m-%d %H:%M')} UTC_\n\n"
    )


class ReportGenerator:
    def __init__(
        self,
        schedule_service: ScheduleService,
        update_repo: UpdateRepository,
        model: TextModel,
        messaging: MessagingAdapter,
        clock: Callable[[], Any] = utcnow,
    ) -> None:
        self._schedules = schedule_service
        self._updates = update_repo
        self._model = model
        self._messaging = messaging
        self._clock = clock

    async def generate(
        self,
        server_id: str,
        window: Optional[ReportWindow] = None,
    ) -> ReportResult:
        window = window or default_window(self._clock())

        try:
            config = await self._schedules.require_report_channel(server_id)
        except ConfigurationMissing as exc:
            logger.info("Report requested without report channel: server=%s", server_id)
            REPORTS_GENERATED.labels(outcome=STATUS_CONFIGURATION_MISSING).inc()
            return ReportResult(
                status=STATUS_CONFIGURATION_MISSING,
                server_id=server_id,
                text=exc.user_message,
            )

        updates = await self._updates.get_all(
            server_id, kind=UpdateKind.STATUS_UPDATE, window=window
        )
        text = report_header(window) + await self._compose(updates, window)

        try:
            await self._messaging.send_message(config.channel_id, text)
        except CollaboratorUnavailable as exc:
            logger.warning(
                "Report delivery failed: server=%s, channel=%s (%s)",
                server_id, config.channel_id, exc,
            )
            REPORTS_GENERATED.labels(outcome=STATUS_DELIVERY_FAILED).inc()
            return ReportResult(
                status=STATUS_DELIVERY_FAILED,
                server_id=server_id,
                channel_id=config.channel_id,
                text=text,
                update_count=len(updates),
            )

        REPORTS_GENERATED.labels(outcome=STATUS_POSTED).inc()
        logger.info(
            "Report posted: server=%s, channel=%s, updates=%d",
            server_id, config.channel_id, len(updates),
        )
        return ReportResult(
            status=STATUS_POSTED,
            server_id=server_id,
            channel_id=config.channel_id,
            text=text,
            update_count=len(updates),
        )

    async def _compose(self, updates: list[UpdateRecord], window: ReportWindow) -> str:
        if not updates:
            return NO_UPDATES_TEXT

        groups = group_by_member(updates)
        structured = format_updates(groups)
        prompt = REPORT_PROMPT.format(
            start=window.start.isoformat(),
            end=window.end.isoformat(),
            updates=structured,
        )
        try:
            prose = await self._model.complete(prompt)
        except CollaboratorUnavailable as exc:
            logger.warning("Report synthesis unavailable, posting raw updates (%s)", exc)
            prose = ""
        if not prose.strip():
            return f"{len(groups)} member(s) reported:\n\n{structured}"
        return prose.strip()
