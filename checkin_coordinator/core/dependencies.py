# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
FastAPI dependency injection — wire the record store, services and actions.
"""

from checkin_coordinator.actions.base import ActionDispatcher, MessageStateCache
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
from checkin_coordinator.repositories.member_repository import MemberRepository
from checkin_coordinator.repositories.record_store import InMemoryRecordStore
from checkin_coordinator.repositories.schedule_repository import ScheduleRepository
from checkin_coordinator.repositories.update_repository import UpdateRepository
from checkin_coordinator.services.field_extractor import FieldExtractor
from checkin_coordinator.services.job_runner import JobRunner
from checkin_coordinator.services.member_registry import MemberRegistry
from checkin_coordinator.services.messaging_client import DiscordMessagingClient
from checkin_coordinator.services.model_client import OpenAITextModel
from checkin_coordinator.services.report_generator import ReportGenerator
from checkin_coordinator.services.schedule_service import ScheduleService
from checkin_coordinator.services.task_host import LocalTaskHost
from checkin_coordinator.services.update_collector import UpdateCollector

# ── Singleton store and repositories ──
_record_store = InMemoryRecordStore()
_schedule_repo = ScheduleRepository(_record_store)
_member_repo = MemberRepository(_record_store)
_update_repo = UpdateRepository(_record_store)

# ── Collaborator adapters ──
_messaging = DiscordMessagingClient()
_text_model = OpenAITextModel()
_extractor = FieldExtractor(_text_model)
_task_host = LocalTaskHost()

# ── Service instances (with injected dependencies) ──
_schedule_service = ScheduleService(schedule_repo=_schedule_repo)
_member_registry = MemberRegistry(member_repo=_member_repo)
_update_collector = UpdateCollector(
    model=_text_model,
    extractor=_extractor,
    update_repo=_update_repo,
)
_report_generator = ReportGenerator(
    schedule_service=_schedule_service,
    update_repo=_update_repo,
    model=_text_model,
    messaging=_messaging,
)
_job_runner = JobRunner(
    task_host=_task_host,
    schedule_service=_schedule_service,
    messaging=_messaging,
    registry=_member_registry,
)

# ── Actions, in matching priority order ──
_message_states = MessageStateCache()
_dispatcher = ActionDispatcher([
    RecordCheckInAction(_update_collector, _schedule_service, _messaging),
    ListCheckInSchedulesAction(_schedule_service),
    AddTeamMemberAction(_member_registry, _extractor),
    ListTeamMembersAction(_member_registry),
    RecordTeamUpdateAction(_update_collector, _member_registry),
    GenerateReportAction(_report_generator),
    CheckInInfoAction(_schedule_service, _messaging),
])


# ── FastAPI dependency functions ──
def get_record_store() -> InMemoryRecordStore:
    return _record_store


def get_update_repo() -> UpdateRepository:
    return _update_repo


def get_schedule_service() -> ScheduleService:
    return _schedule_service


def get_member_registry() -> MemberRegistry:
    return _member_registry


def get_update_collector() -> UpdateCollector:
    return _update_collector


def get_report_generator() -> ReportGenerator:
    return _report_generator


def get_messaging() -> DiscordMessagingClient:
    return _messaging


def get_task_host() -> LocalTaskHost:
    return _task_host


def get_job_runner() -> JobRunner:
    return _job_runner


def get_message_states() -> MessageStateCache:
    return _message_states


def get_dispatcher() -> ActionDispatcher:
    return _dispatcher
