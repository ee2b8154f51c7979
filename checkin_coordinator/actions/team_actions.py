# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Actions: team members, status updates and reports.
"""

from checkin_coordinator.actions.base import Action, ActionContext, Callback, contains_any
from checkin_coordinator.core.errors import (
    CollaboratorUnavailable,
    ExtractionError,
    ValidationError,
)
from checkin_coordinator.core.logging import get_logger
from checkin_coordinator.services.field_extractor import Extractor
from checkin_coordinator.services.member_registry import MemberRegistry
from checkin_coordinator.services.report_generator import (
    STATUS_CONFIGURATION_MISSING,
    STATUS_POSTED,
    ReportGenerator,
)
from checkin_coordinator.services.update_collector import UpdateCollector

logger = get_logger(__name__)

NO_SERVER_TEXT = "❌ Failed to identify the server. Please try again."

MEMBER_FIELDS = ["section", "telegramName", "discordName", "updatesFormat"]
MEMBER_NOTES = (
    "- section is the team or group the member belongs to\n"
    "- telegramName / discordName are handles without the @ prefix\n"
    "- updatesFormat is a comma-separated list of the fields the member reports"
)


def split_format(value: str) -> list[str]:
    return [part.strip() for part in (value or "").replace(";", ",").split(",") if part.strip()]


class AddTeamMemberAction(Action):
    name = "ADD_TEAM_MEMBER"
    description = "Registers a team member with a section, handle and update format."
    similes = ("REGISTER_TEAM_MEMBER", "ADD_MEMBER", "NEW_TEAM_MEMBER")

    def __init__(self, registry: MemberRegistry, extractor: Extractor) -> None:
        self._registry = registry
        self._extractor = extractor

    async def validate(self, context: ActionContext) -> bool:
        if not context.server_id:
            return False
        text = context.lowered
        return contains_any(text, ("add", "register")) and contains_any(
            text, ("member", "team")
        )

    async def handle(self, context: ActionContext, callback: Callback) -> bool:
        if self.already_handled(context):
            return True
        if not context.server_id:
            await callback(NO_SERVER_TEXT)
            return False

        try:
            fields = await self._extractor.extract(MEMBER_FIELDS, context.text, MEMBER_NOTES)
            member = await self._registry.add_member(
                server_id=context.server_id,
                section=fields.get("section", ""),
                telegram_name=fields.get("telegramName"),
                discord_name=fields.get("discordName"),
                updates_format=split_format(fields.get("updatesFormat", "")),
                server_name=context.server_name,
            )
        except (ExtractionError, ValidationError, CollaboratorUnavailable) as exc:
            await callback(exc.user_message)
            return False

        reply = f"✅ Added {member.platform_handle} to **{member.section}**."
        if member.updates_format:
            reply += f"\nUpdate fields: {', '.join(member.updates_format)}"
        await callback(reply)
        return True


class ListTeamMembersAction(Action):
    name = "LIST_TEAM_MEMBERS"
    description = "Lists all registered team members grouped by section."
    similes = ("SHOW_TEAM", "VIEW_MEMBERS", "GET_TEAM_LIST", "DISPLAY_TEAM")

    def __init__(self, registry: MemberRegistry) -> None:
        self._registry = registry

    async def validate(self, context: ActionContext) -> bool:
        if not context.server_id:
            return False
        text = context.lowered
        return contains_any(text, ("list", "show", "view", "display", "who")) and contains_any(
            text, ("member", "team")
        )

    async def handle(self, context: ActionContext, callback: Callback) -> bool:
        if self.already_handled(context):
            return True
        if not context.server_id:
            await callback(NO_SERVER_TEXT)
            return False

        sections = await self._registry.list_members(context.server_id)
        if not sections:
            await callback("📋 No team members have been registered yet for this server.")
            return True

        lines = ["📋 **Team Members**"]
        for section, members in sections:
            lines.append(f"\n**{section}**")
            for member in members:
                line = "•"
                if member.telegram_name:
                    line += f" Telegram: {member.telegram_name}"
                elif member.discord_name:
                    line += f" Discord: {member.discord_name}"
                if member.updates_format:
                    line += f" | Update Fields: {', '.join(member.updates_format)}"
                lines.append(line)
        await callback("\n".join(lines))
        return True


class RecordTeamUpdateAction(Action):
    name = "RECORD_TEAM_UPDATE"
    description = "Records a team member's status update using their update format."
    similes = ("TEAM_MEMBER_UPDATE", "SUBMIT_UPDATE", "STATUS_UPDATE")

    KEYWORDS = ("my update", "status update", "update:", "record update", "blocker", "progress:")

    def __init__(self, collector: UpdateCollector, registry: MemberRegistry) -> None:
        self._collector = collector
        self._registry = registry

    async def validate(self, context: ActionContext) -> bool:
        if not context.server_id:
            return False
        return contains_any(context.lowered, self.KEYWORDS)

    async def handle(self, context: ActionContext, callback: Callback) -> bool:
        if self.already_handled(context):
            return True
        if not context.server_id:
            await callback(NO_SERVER_TEXT)
            return False

        member = None
        if context.user_name:
            member = await self._registry.find_member(context.server_id, context.user_name)
        try:
            result = await self._collector.ingest_status_update(
                context.server_id,
                context.member_ref,
                context.text,
                updates_format=member.updates_format if member else None,
                schedule_id=context.state.get("schedule_id"),
            )
        except (ExtractionError, CollaboratorUnavailable) as exc:
            await callback(exc.user_message)
            return False

        if not result.accepted:
            await callback(result.guidance)
            return True
        await callback(f"✅ Thanks {context.member_ref}, your update has been recorded.")
        return True


class GenerateReportAction(Action):
    name = "GENERATE_REPORT"
    description = "Generates a team progress report from recent updates and posts it."
    similes = ("TEAM_REPORT", "CREATE_REPORT", "SHOW_TEAM_PROGRESS")

    def __init__(self, report_generator: ReportGenerator) -> None:
        self._reports = report_generator

    async def validate(self, context: ActionContext) -> bool:
        if not context.server_id:
            return False
        text = context.lowered
        return "report" in text or "team progress" in text

    async def handle(self, context: ActionContext, callback: Callback) -> bool:
        if self.already_handled(context):
            return True
        if not context.server_id:
            await callback(NO_SERVER_TEXT)
            return False

        result = await self._reports.generate(context.server_id)
        if result.status == STATUS_POSTED:
            await callback(
                f"✅ Report posted to <#{result.channel_id}> ({result.update_count} update(s))."
            )
            return True
        if result.status == STATUS_CONFIGURATION_MISSING:
            await callback(result.text)
            return True
        await callback(
            "❌ Sorry, I couldn't post the report to the report channel. Here it is:\n\n"
            + result.text
        )
        return False
