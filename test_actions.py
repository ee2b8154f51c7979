# type: ignore
"""
Tests for chat actions: routing, the duplicate-message guard and each
action's reply.
"""
import pytest

from checkin_coordinator.actions.base import ActionContext, ActionDispatcher, MessageStateCache
from checkin_coordinator.actions.check_in_actions import (
    CheckInInfoAction,
    ListCheckInSchedulesAction,
    RecordCheckInAction,
)
from checkin_coordinator.actions.team_actions import (
    AddTeamMemberAction,
    GenerateReportAction,
    ListTeamMembersAction,
    RecordTeamUpdateAction,
)
from checkin_coordinator.core.errors import ConfigurationMissing
from checkin_coordinator.models.domain import Frequency, ReportChannelConfig
from checkin_coordinator.services.field_extractor import FieldExtractor

RECORD_TEXT = (
    "Record check-in details: Check-in type: Daily Standup, channel for check-ins: #standups, "
    "channel for updates: #general, frequency: Daily, time: 9 AM"
)
RECORD_JSON = (
    '{"channelForUpdates": "general", "checkInType": "Daily Standup", '
    '"channelForCheckIns": "standups", "frequency": "Daily", "time": "9:00 AM"}'
)


@pytest.fixture
def dispatcher(collector, schedule_service, messaging, registry, model, report_generator):
    return ActionDispatcher([
        RecordCheckInAction(collector, schedule_service, messaging),
        ListCheckInSchedulesAction(schedule_service),
        AddTeamMemberAction(registry, FieldExtractor(model)),
        ListTeamMembersAction(registry),
        RecordTeamUpdateAction(collector, registry),
        GenerateReportAction(report_generator),
        CheckInInfoAction(schedule_service, messaging),
    ])


@pytest.fixture
def replies():
    return []


@pytest.fixture
def callback(replies):
    async def _callback(text):
        replies.append(text)
    return _callback


def message(text, message_id="m-1", server_id="S1", **kwargs):
    return ActionContext(message_id=message_id, text=text, server_id=server_id, source="discord", **kwargs)


# ============================================
# Routing
# ============================================
class TestDispatcher:
    @pytest.mark.asyncio
    async def test_no_server_matches_nothing(self, dispatcher, callback, replies):
        name, handled = await dispatcher.dispatch(message(RECORD_TEXT, server_id=None), callback)
        assert (name, handled) == (None, False)
        assert replies == []

    @pytest.mark.asyncio
    async def test_named_action_without_server_replies(self, dispatcher, callback, replies):
        name, handled = await dispatcher.dispatch(
            message("anything", server_id=None), callback, action_name="LIST_TEAM_MEMBERS"
        )
        assert name == "LIST_TEAM_MEMBERS"
        assert handled is False
        assert "Failed to identify the server" in replies[0]

    @pytest.mark.asyncio
    async def test_simile_resolves_action(self, dispatcher):
        assert dispatcher.get("show_team").name == "LIST_TEAM_MEMBERS"
        assert dispatcher.get("unknown") is None

    @pytest.mark.asyncio
    async def test_unmatched_text(self, dispatcher, callback):
        assert await dispatcher.dispatch(message("good morning everyone"), callback) == (None, False)

    def test_actions_are_described(self, dispatcher):
        described = [a.describe() for a in dispatcher.actions]
        assert described[0]["name"] == "RECORD_CHECK_IN"
        assert all(d["description"] for d in described)


class TestMessageStateCache:
    def test_same_message_shares_state(self):
        cache = MessageStateCache()
        cache.get("m-1")["seen"] = True
        assert cache.get("m-1") == {"seen": True}
        assert cache.get("m-2") == {}

    def test_oldest_evicted(self):
        cache = MessageStateCache(max_size=2)
        cache.get("a")["x"] = 1
        cache.get("b")
        cache.get("c")
        assert cache.get("a") == {}


# ============================================
# Check-in actions
# ============================================
class TestRecordCheckIn:
    @pytest.mark.asyncio
    async def test_creates_report_channel_and_schedule(
        self, dispatcher, callback, replies, model, schedule_service, update_repo
    ):
        model.queue("true", RECORD_JSON)
        name, handled = await dispatcher.dispatch(message(RECORD_TEXT), callback)
        assert (name, handled) == ("RECORD_CHECK_IN", True)

        (schedule,) = await schedule_service.list_schedules("S1")
        assert schedule.channel_id == "222"
        assert schedule.frequency == Frequency.DAILY
        assert schedule.check_in_time == "09:00"
        assert (await schedule_service.get_report_channel("S1")).channel_id == "111"
        assert "successfully created" in replies[0]
        assert "Time: 09:00 UTC" in replies[0]
        (record,) = await update_repo.get_all("S1")
        assert record.extracted_fields["frequency"] == "DAILY"
        assert record.extracted_fields["time"] == "09:00"

    @pytest.mark.asyncio
    async def test_redelivered_message_handled_once(
        self, dispatcher, callback, replies, model, schedule_service
    ):
        model.queue("true", RECORD_JSON)
        first = message(RECORD_TEXT)
        await dispatcher.dispatch(first, callback)
        name, handled = await dispatcher.dispatch(message(RECORD_TEXT, state=first.state), callback)
        assert (name, handled) == ("RECORD_CHECK_IN", True)
        assert len(replies) == 1
        assert len(await schedule_service.list_schedules("S1")) == 1

    @pytest.mark.asyncio
    async def test_existing_report_channel_not_overwritten(
        self, dispatcher, callback, model, schedule_service
    ):
        await schedule_service.create_or_update_report_channel(
            ReportChannelConfig(server_id="S1", channel_id="999")
        )
        model.queue("true", RECORD_JSON)
        await dispatcher.dispatch(message(RECORD_TEXT), callback)
        assert (await schedule_service.get_report_channel("S1")).channel_id == "999"

    @pytest.mark.asyncio
    async def test_question_gets_guidance(self, dispatcher, callback, replies, model, schedule_service):
        model.queue("false")
        await dispatcher.dispatch(
            message("record what? which channel do I pick"), callback, action_name="RECORD_CHECK_IN"
        )
        assert "I need specific configuration details" in replies[0]
        assert await schedule_service.list_schedules("S1") == []

    @pytest.mark.asyncio
    async def test_unknown_channel_reported(self, dispatcher, callback, replies, model, schedule_service, update_repo):
        model.queue("true", RECORD_JSON.replace('"standups"', '"nowhere"'))
        name, handled = await dispatcher.dispatch(message(RECORD_TEXT), callback)
        assert handled is False
        assert "couldn't find the channel" in replies[0]
        assert await schedule_service.list_schedules("S1") == []
        assert await update_repo.get_all("S1") == []

    @pytest.mark.asyncio
    async def test_platform_outage_apologizes(self, dispatcher, callback, replies, messaging):
        messaging.list_fails = True
        name, handled = await dispatcher.dispatch(message(RECORD_TEXT), callback)
        assert handled is False
        assert "Unable to connect" in replies[0]

    @pytest.mark.asyncio
    async def test_garbled_extraction_replies(self, dispatcher, callback, replies, model):
        model.queue("true", "I am not sure what you mean")
        name, handled = await dispatcher.dispatch(message(RECORD_TEXT), callback)
        assert handled is False
        assert "correct format" in replies[0]


class TestListAndInfo:
    @pytest.mark.asyncio
    async def test_list_schedules_empty(self, dispatcher, callback, replies):
        name, _ = await dispatcher.dispatch(message("show check-in schedules"), callback)
        assert name == "LIST_CHECK_IN_SCHEDULES"
        assert "No check-in schedules" in replies[0]

    @pytest.mark.asyncio
    async def test_list_schedules(self, dispatcher, callback, replies, schedule_service):
        await schedule_service.create_schedule("S1", "RETRO", "C9", "MONTHLY", "16:00")
        await dispatcher.dispatch(message("list check-ins"), callback)
        assert "1. Team Retrospective | <#C9> | MONTHLY at 16:00 UTC" in replies[0]

    @pytest.mark.asyncio
    async def test_info_lists_channels_and_asks_for_update_channel(self, dispatcher, callback, replies):
        name, handled = await dispatcher.dispatch(message("How do I set up check-ins?"), callback)
        assert (name, handled) == ("CHECK_IN_INFO", True)
        assert "#general (111)" in replies[0]
        assert "voice-room" not in replies[0]
        assert "Channel for Updates" in replies[0]

    @pytest.mark.asyncio
    async def test_info_skips_update_channel_when_configured(
        self, dispatcher, callback, replies, schedule_service
    ):
        await schedule_service.create_or_update_report_channel(
            ReportChannelConfig(server_id="S1", channel_id="111")
        )
        await dispatcher.dispatch(message("How do I set up check-ins?"), callback)
        assert "Channel for Updates" not in replies[0]


# ============================================
# Team actions
# ============================================
class TestTeamActions:
    @pytest.mark.asyncio
    async def test_add_member(self, dispatcher, callback, replies, model, registry):
        model.queue(
            '{"section": "Backend", "telegramName": "@alice", "discordName": "", '
            '"updatesFormat": "progress, blockers"}'
        )
        name, handled = await dispatcher.dispatch(
            message("Add team member: Backend, telegram @alice, fields progress, blockers"), callback
        )
        assert (name, handled) == ("ADD_TEAM_MEMBER", True)
        assert "@alice" in replies[0]
        (section, members), = await registry.list_members("S1")
        assert section == "Backend"
        assert members[0].updates_format == ["progress", "blockers"]

    @pytest.mark.asyncio
    async def test_add_member_without_handle(self, dispatcher, callback, replies, model):
        model.queue('{"section": "Backend", "telegramName": "", "discordName": "", "updatesFormat": ""}')
        name, handled = await dispatcher.dispatch(message("add member to Backend"), callback)
        assert handled is False
        assert "at least one handle" in replies[0]

    @pytest.mark.asyncio
    async def test_list_members_empty(self, dispatcher, callback, replies):
        await dispatcher.dispatch(message("list team members"), callback)
        assert replies == ["📋 No team members have been registered yet for this server."]

    @pytest.mark.asyncio
    async def test_list_members_grouped(self, dispatcher, callback, replies, registry):
        await registry.add_member("S1", "Design", discord_name="bob", updates_format=["mood"])
        await dispatcher.dispatch(message("show team members"), callback)
        assert "**Design**" in replies[0]
        assert "Discord: bob | Update Fields: mood" in replies[0]

    @pytest.mark.asyncio
    async def test_team_update_uses_member_format(self, dispatcher, callback, replies, model, registry, update_repo):
        await registry.add_member("S1", "Backend", telegram_name="@alice", updates_format=["progress", "mood"])
        model.queue("true", '{"progress": "shipped login", "mood": "great"}')
        name, handled = await dispatcher.dispatch(
            message("My update: shipped login, feeling great", user_name="alice"), callback
        )
        assert (name, handled) == ("RECORD_TEAM_UPDATE", True)
        (record,) = await update_repo.get_all("S1")
        assert record.extracted_fields == {"progress": "shipped login", "mood": "great"}
        assert record.member_ref == "alice"

    @pytest.mark.asyncio
    async def test_report_without_channel(self, dispatcher, callback, replies):
        name, handled = await dispatcher.dispatch(message("generate the team report"), callback)
        assert name == "GENERATE_REPORT"
        assert replies[0] == ConfigurationMissing.user_message

    @pytest.mark.asyncio
    async def test_report_posted(self, dispatcher, callback, replies, schedule_service, messaging):
        await schedule_service.create_or_update_report_channel(
            ReportChannelConfig(server_id="S1", channel_id="111")
        )
        name, handled = await dispatcher.dispatch(message("generate the team report"), callback)
        assert handled is True
        assert messaging.sent[0][0] == "111"
        assert "Report posted to <#111>" in replies[0]
