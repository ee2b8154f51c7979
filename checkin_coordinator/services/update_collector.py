# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Update collector.

Ingests free text from team members. A classification call decides whether
the text is a genuine submission or a question; questions get guidance and
nothing is stored. Submissions are turned into fields by the extractor and
stored as UpdateRecords.
"""

import uuid
from typing import Any, Callable, Optional

from pydantic import BaseModel, Field

from checkin_coordinator.core.config import settings
from checkin_coordinator.core.errors import ExtractionError, ValidationError
from checkin_coordinator.core.logging import get_logger
from checkin_coordinator.metrics.prometheus import UPDATES_INGESTED
from checkin_coordinator.models.domain import Channel, UpdateKind, UpdateRecord, utcnow
from checkin_coordinator.repositories.update_repository import UpdateRepository
from checkin_coordinator.services.field_extractor import Extractor
from checkin_coordinator.services.model_client import TextModel

logger = get_logger(__name__)

CHECK_IN_CONFIG_FIELDS: list[str] = [
    "channelForUpdates",
    "checkInType",
    "channelForCheckIns",
    "frequency",
    "time",
]

CHECK_IN_CONFIG_NOTES = (
    "- checkInType must be one of: STANDUP, SPRINT, MENTAL_HEALTH, PROJECT_STATUS, RETRO\n"
    "- frequency must be one of: DAILY, WEEKDAYS, WEEKLY, BI_WEEKLY, MONTHLY\n"
    '- For channels, extract only the name (e.g., from #General (922791729709613101) extract "General")\n'
    "- Convert AM/PM time to 24 hour HH:MM format"
)

DEFAULT_UPDATES_FORMAT: list[str] = ["progress", "next steps", "blockers"]

CONFIG_DISCRIMINATION_PROMPT = """Determine if the user is providing specific check-in configuration details.

Examples of configuration details:
- "Check-in Type: Daily Standup, Channel: general, Frequency: Daily, Time: 9:00 AM"
- "Record check-in details: Sprint check-in, weekly, 2 PM"
- Contains multiple configuration parameters

Return TRUE if the user is providing specific check-in configuration details.
Return FALSE if the user is asking general questions or needs guidance.

Analyze this text and respond with ONLY the word "true" or "false" (lowercase):
"{text}\""""

STATUS_DISCRIMINATION_PROMPT = """Determine if the team member is submitting a status update.

A status update reports work done, upcoming work, blockers or how the member is doing.
Questions, greetings and requests for help are NOT status updates.

Analyze this text and respond with ONLY the word "true" or "false" (lowercase):
"{text}\""""

CONFIG_GUIDANCE = (
    "📋 I can help you create a check-in schedule! However, I need specific "
    "configuration details to proceed.\n\n"
    'If you need guidance on how to set up check-ins, ask me "How do I set up check-ins?" first.\n\n'
    "If you're ready to configure, please provide:\n"
    "• Check-in type (Daily Standup, Sprint Check-in, etc.)\n"
    "• Channel for check-ins\n"
    "• Frequency (Daily, Weekly, etc.)\n"
    "• Time (e.g., 9:00 AM UTC)\n\n"
    'Then say "Record check-in details" to save your configuration.'
)

STATUS_GUIDANCE = (
    "📝 That doesn't look like a status update yet. Please share your update "
    "using your fields:\n{fields}"
)


class IngestResult(BaseModel):
    """Outcome of an ingest call. accepted=False carries guidance instead of a record."""
    accepted: bool
    record: Optional[UpdateRecord] = None
    guidance: Optional[str] = None
    fields: dict[str, str] = Field(default_factory=dict)


def resolve_channel_id(name: str, channels: list[Channel]) -> str:
    """
    Map a human channel reference to a platform channel id.
    Accepts "#name", "name", "name (id)" and bare ids. Returns "" when unknown.
    """
    ref = (name or "").strip()
    if not ref:
        return ""
    if ref.endswith(")") and "(" in ref:
        inner = ref[ref.rfind("(") + 1:-1].strip()
        if any(c.id == inner for c in channels):
            return inner
        ref = ref[:ref.rfind("(")].strip()
    ref = ref.lstrip("#").strip().lower()
    for channel in channels:
        if channel.is_text and channel.name.lower() == ref:
            return channel.id
    for channel in channels:
        if channel.id == ref:
            return channel.id
    return ""


def is_affirmative(answer: str) -> bool:
    words = (answer or "").strip().lower().split()
    return bool(words) and words[0].strip(".!\"'") == "true"


class UpdateCollector:
    """Classify, extract and store member submissions."""

    def __init__(
        self,
        model: TextModel,
        extractor: Extractor,
        update_repo: UpdateRepository,
        clock: Callable[[], Any] = utcnow,
    ) -> None:
        self._model = model
        self._extractor = extractor
        self._updates = update_repo
        self._clock = clock

    async def ingest(
        self,
        server_id: str,
        member_ref: str,
        raw_text: str,
        channels: Optional[list[Channel]] = None,
        schedule_id: Optional[str] = None,
        check: Optional[Callable[[dict[str, str]], None]] = None,
    ) -> IngestResult:
        """
        Ingest a check-in configuration submission.

        `check` runs on the extracted fields before anything is stored and
        may raise ValidationError to reject the submission.
        """
        result = await self._ingest(
            kind=UpdateKind.CHECK_IN_CONFIG,
            server_id=server_id,
            member_ref=member_ref,
            raw_text=raw_text,
            discrimination_prompt=CONFIG_DISCRIMINATION_PROMPT,
            schema=CHECK_IN_CONFIG_FIELDS,
            notes=CHECK_IN_CONFIG_NOTES,
            guidance=CONFIG_GUIDANCE,
            schedule_id=schedule_id,
            channels=channels or [],
            check=check,
        )
        return result

    async def ingest_status_update(
        self,
        server_id: str,
        member_ref: str,
        raw_text: str,
        updates_format: Optional[list[str]] = None,
        schedule_id: Optional[str] = None,
    ) -> IngestResult:
        """Ingest a member's status update using their updates format as schema."""
        schema = list(updates_format or DEFAULT_UPDATES_FORMAT)
        return await self._ingest(
            kind=UpdateKind.STATUS_UPDATE,
            server_id=server_id,
            member_ref=member_ref,
            raw_text=raw_text,
            discrimination_prompt=STATUS_DISCRIMINATION_PROMPT,
            schema=schema,
            notes="",
            guidance=STATUS_GUIDANCE.format(fields="\n".join(f"• {f}" for f in schema)),
            schedule_id=schedule_id,
        )

    async def _ingest(
        self,
        kind: UpdateKind,
        server_id: str,
        member_ref: str,
        raw_text: str,
        discrimination_prompt: str,
        schema: list[str],
        notes: str,
        guidance: str,
        schedule_id: Optional[str] = None,
        channels: Optional[list[Channel]] = None,
        check: Optional[Callable[[dict[str, str]], None]] = None,
    ) -> IngestResult:
        text = (raw_text or "").strip()[: settings.MAX_UPDATE_TEXT_LENGTH]
        if not text:
            UPDATES_INGESTED.labels(kind=kind.value, outcome="guidance").inc()
            return IngestResult(accepted=False, guidance=guidance)

        answer = await self._model.complete(discrimination_prompt.format(text=text))
        if not is_affirmative(answer):
            logger.info(
                "Not a %s submission: server=%s, member=%s", kind.value, server_id, member_ref
            )
            UPDATES_INGESTED.labels(kind=kind.value, outcome="guidance").inc()
            return IngestResult(accepted=False, guidance=guidance)

        try:
            fields = await self._extractor.extract(schema, text, notes)
        except ExtractionError:
            UPDATES_INGESTED.labels(kind=kind.value, outcome="extraction_error").inc()
            raise

        if channels is not None:
            fields["updateChannelId"] = resolve_channel_id(
                fields.get("channelForUpdates", ""), channels
            )
            fields["checkInChannelId"] = resolve_channel_id(
                fields.get("channelForCheckIns", ""), channels
            )
            logger.info(
                "Resolved channels: updates=%r -> %s, check-ins=%r -> %s",
                fields.get("channelForUpdates"), fields["updateChannelId"] or "not found",
                fields.get("channelForCheckIns"), fields["checkInChannelId"] or "not found",
            )

        if check is not None:
            try:
                check(fields)
            except ValidationError:
                UPDATES_INGESTED.labels(kind=kind.value, outcome="rejected").inc()
                raise

        record = UpdateRecord(
            update_id=str(uuid.uuid4()),
            kind=kind,
            member_ref=member_ref,
            schedule_id=schedule_id,
            raw_text=text,
            extracted_fields=fields,
            timestamp=self._clock(),
            server_id=server_id,
        )
        await self._updates.append(record)
        UPDATES_INGESTED.labels(kind=kind.value, outcome="stored").inc()
        logger.info(
            "Update stored: server=%s, member=%s, kind=%s, fields=%s",
            server_id, member_ref, kind.value, list(fields.keys()),
        )
        return IngestResult(accepted=True, record=record, fields=fields)
