# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Actions: recording and listing check-in schedules, plus setup guidance.
"""

from checkin_coordinator.actions.base import Action, ActionContext, Callback, contains_any
from checkin_coordinator.core.errors import (
    CollaboratorUnavailable,
    DuplicateSubmission,
    ExtractionError,
    ValidationError,
)
from checkin_coordinator.core.logging import get_logger
from checkin_coordinator.models.domain import (
    CHECK_IN_TYPE_LABELS,
    Channel,
    CheckInType,
    Frequency,
    ReportChannelConfig,
)
from checkin_coordinator.services.messaging_client import MessagingAdapter
from checkin_coordinator.services.normalize import (
    normalize_check_in_type,
    normalize_frequency,
    normalize_time,
)
from checkin_coordinator.services.schedule_service import ScheduleService
from checkin_coordinator.services.update_collector import UpdateCollector

logger = get_logger(__name__)

NO_SERVER_TEXT = "❌ Failed to identify the server. Please try again."
PLATFORM_DOWN_TEXT = (
    "❌ Unable to connect to the chat platform. "
    "Please try again later or contact support."
)


async def fetch_text_channels(
    messaging: MessagingAdapter, server_id: str
) -> list[Channel]:
    channels = await messaging.list_channels(server_id)
    return [c for c in channels if c.is_text]


def check_schedule_fields(fields: dict[str, str]) -> None:
    """Normalize the schedule fields in place, rejecting what create_schedule would."""
    if not fields.get("checkInChannelId"):
        raise ValidationError(
            "check-in channel not found",
            user_message=(
                "I couldn't find the channel for check-ins. "
                "Please name one of this server's text channels."
            ),
        )
    fields["checkInType"] = normalize_check_in_type(fields.get("checkInType") or CheckInType.STANDUP).value
    fields["frequency"] = normalize_frequency(fields.get("frequency") or Frequency.WEEKLY).value
    fields["time"] = normalize_time(fields.get("time") or "09:00")


class RecordCheckInAction(Action):
    name = "RECORD_CHECK_IN"
    description = (
        "Saves a check-in configuration when the user says 'Record check-in details' "
        "followed by the check-in type, channel, frequency and time."
    )
    similes = ("RECORD_CHECKIN", "SAVE_CHECK_IN", "CREATE_CHECK_IN")

    def __init__(
        self,
        collector: UpdateCollector,
        schedule_service: ScheduleService,
        messaging: MessagingAdapter,
    ) -> None:
        self._collector = collector
        self._schedules = schedule_service
        self._messaging = messaging

    async def validate(self, context: ActionContext) -> bool:
        if not context.server_id:
            return False
        text = context.lowered
        return "record" in text and contains_any(
            text, ("check-in type", "checkin type", "frequency", "channel")
        )

    async def handle(self, context: ActionContext, callback: Callback) -> bool:
        if self.already_handled(context):
            return True
        if not context.server_id:
            await callback(NO_SERVER_TEXT)
            return False

        try:
            channels = await fetch_text_channels(self._messaging, context.server_id)
        except CollaboratorUnavailable:
            await callback(PLATFORM_DOWN_TEXT)
            return False

        try:
            result = await self._collector.ingest(
                context.server_id, context.member_ref, context.text, channels=channels,
                check=check_schedule_fields,
            )
        except (ExtractionError, CollaboratorUnavailable, ValidationError) as exc:
            await callback(exc.user_message)
            return False

        if not result.accepted:
            await callback(result.guidance)
            return True

        fields = result.fields
        notices: list[str] = []

        existing = await self._schedules.get_report_channel(context.server_id)
        if existing is None and fields.get("updateChannelId"):
            try:
                await self._schedules.create_or_update_report_channel(
                    ReportChannelConfig(
                        server_id=context.server_id,
                        server_name=context.server_name,
                        channel_id=fields["updateChannelId"],
                        source=context.source,
                    )
                )
                notices.append(f"📨 Updates will be posted to <#{fields['updateChannelId']}>.")
            except DuplicateSubmission as exc:
                notices.append(exc.user_message)

        try:
            check_in_type = CheckInType(fields["checkInType"])
            frequency = Frequency(fields["frequency"])
            check_in_time = fields["time"]
            channel_id = fields["checkInChannelId"]
            await self._schedules.create_schedule(
                server_id=context.server_id,
                check_in_type=check_in_type,
                channel_id=channel_id,
                frequency=frequency,
                check_in_time=check_in_time,
                source=context.source,
            )
        except (ValidationError, DuplicateSubmission) as exc:
            await callback("\n".join(notices + [exc.user_message]))
            return False

        notices.insert(0, (
            "✅ Check-in schedule has been successfully created! "
            "Team members will be prompted according to your configured schedule.\n"
            f"Type: {CHECK_IN_TYPE_LABELS[check_in_type]}\n"
            f"Channel: <#{channel_id}>\n"
            f"Frequency: {frequency.value}\n"
            f"Time: {check_in_time} UTC"
        ))
        await callback("\n\n".join(notices))
        return True


class ListCheckInSchedulesAction(Action):
    name = "LIST_CHECK_IN_SCHEDULES"
    description = "Lists every check-in schedule configured for this server."
    similes = ("LIST_CHECKINS", "SHOW_CHECK_IN_SCHEDULES", "GET_CHECK_IN_SCHEDULES")

    def __init__(self, schedule_service: ScheduleService) -> None:
        self._schedules = schedule_service

    async def validate(self, context: ActionContext) -> bool:
        if not context.server_id:
            return False
        text = context.lowered
        return contains_any(text, ("list", "show", "view", "display")) and contains_any(
            text, ("check-in", "checkin", "check in", "schedule")
        )

    async def handle(self, context: ActionContext, callback: Callback) -> bool:
        if self.already_handled(context):
            return True
        if not context.server_id:
            await callback(NO_SERVER_TEXT)
            return False

        schedules = await self._schedules.list_schedules(context.server_id)
        if not schedules:
            await callback("📅 No check-in schedules have been set up for this server yet.")
            return True

        lines = ["📅 **Check-in Schedules**", ""]
        for i, s in enumerate(schedules, start=1):
            lines.append(
                f"{i}. {CHECK_IN_TYPE_LABELS[s.check_in_type]} | <#{s.channel_id}> | "
                f"{s.frequency.value} at {s.check_in_time} UTC"
            )
        await callback("\n".join(lines))
        return True


class CheckInInfoAction(Action):
    name = "CHECK_IN_INFO"
    description = (
        "Explains how to set up team check-ins and lists the details needed. "
        "Answers questions; does not change any configuration."
    )
    similes = ("CHECK_IN_HELP", "CHECKIN_GUIDE", "HOW_TO_CHECK_IN")

    INFO_KEYWORDS = (
        "how", "what", "can you", "help", "explain", "guide", "tutorial",
        "learn", "information", "about", "setup", "set up", "create", "?",
    )
    CHECK_IN_KEYWORDS = ("check-in", "checkin", "check in", "schedule", "standup", "team meeting")

    def __init__(self, schedule_service: ScheduleService, messaging: MessagingAdapter) -> None:
        self._schedules = schedule_service
        self._messaging = messaging

    async def validate(self, context: ActionContext) -> bool:
        if not context.server_id:
            return False
        text = context.lowered
        return contains_any(text, self.INFO_KEYWORDS) and contains_any(text, self.CHECK_IN_KEYWORDS)

    async def handle(self, context: ActionContext, callback: Callback) -> bool:
        if self.already_handled(context):
            return True
        if not context.server_id:
            await callback(NO_SERVER_TEXT)
            return False

        try:
            channels = await fetch_text_channels(self._messaging, context.server_id)
            channel_list = "\n".join(f"- #{c.name} ({c.id})" for c in channels) or "- (no text channels found)"
        except CollaboratorUnavailable:
            channel_list = "- (channel list unavailable right now, use your channel names)"

        has_report_channel = await self._schedules.get_report_channel(context.server_id) is not None
        types = "\n".join(f"   • {label}" for label in CHECK_IN_TYPE_LABELS.values())
        frequencies = "   • Weekdays\n   • Daily\n   • Weekly\n   • Bi-weekly\n   • Monthly"

        steps: list[str] = []
        if not has_report_channel:
            steps.append(
                "**Channel for Updates:** Which channel should collected updates be posted to?"
            )
        steps.extend([
            f"**Check-in Type:** Choose one of the following:\n{types}",
            "**Channel for Check-ins:** Which channel should team members be checked in from?",
            f"**Frequency:** How often should check-ins occur?\n{frequencies}",
            "**Time:** What time should check-ins happen? (e.g., 9:00 AM UTC). All times are UTC.",
        ])
        body = "\n\n".join(f"{i}️⃣ {step}" for i, step in enumerate(steps, start=1))
        await callback(
            "Let's set up check-ins for your team! 📅\n\n"
            f"**Available channels:**\n{channel_list}\n\n"
            f"{body}\n\n"
            'Please remember to type "Record check-in details" when you\'re finished '
            "to save your configuration."
        )
        return True
