# type: ignore
"""
Shared collaborator doubles for the coordinator test suite.
"""
import uuid
from datetime import datetime, timezone

import pytest

from checkin_coordinator.core.errors import CollaboratorUnavailable
from checkin_coordinator.models.domain import Channel, Task
from checkin_coordinator.repositories.member_repository import MemberRepository
from checkin_coordinator.repositories.record_store import InMemoryRecordStore
from checkin_coordinator.repositories.schedule_repository import ScheduleRepository
from checkin_coordinator.repositories.update_repository import UpdateRepository
from checkin_coordinator.services.field_extractor import FieldExtractor
from checkin_coordinator.services.member_registry import MemberRegistry
from checkin_coordinator.services.report_generator import ReportGenerator
from checkin_coordinator.services.schedule_service import ScheduleService
from checkin_coordinator.services.update_collector import UpdateCollector


# ── Collaborator fakes ────────────────────────────────────────────────────
class FakeMessaging:
    """Records sent messages; channels in `failing_channels` raise on send."""

    def __init__(self, channels=None):
        self.channels = channels if channels is not None else [
            Channel(id="111", name="general"),
            Channel(id="222", name="standups"),
            Channel(id="333", name="voice-room", is_text=False),
        ]
        self.sent: list[tuple[str, str]] = []
        self.failing_channels: set[str] = set()
        self.list_fails = False

    async def list_channels(self, server_id):
        if self.list_fails:
            raise CollaboratorUnavailable("platform down")
        return list(self.channels)

    async def send_message(self, channel_id, text):
        if channel_id in self.failing_channels:
            raise CollaboratorUnavailable(f"cannot post to {channel_id}")
        self.sent.append((channel_id, text))

    async def fetch_member(self, server_id, user_id):
        return None


class ScriptedModel:
    """Returns queued completions in order; queued exceptions are raised."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.prompts: list[str] = []

    def queue(self, *responses):
        self.responses.extend(responses)

    async def complete(self, prompt):
        self.prompts.append(prompt)
        if not self.responses:
            return ""
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeTaskHost:
    """Task host whose readiness flips after `ready_after` is_ready() checks."""

    def __init__(self, ready_after=0, create_failures=0):
        self.ready_after = ready_after
        self.ready_checks = 0
        self.create_failures = create_failures
        self.workers = {}
        self.tasks: list[Task] = []
        self.deleted: list[str] = []

    def is_ready(self):
        self.ready_checks += 1
        return self.ready_checks > self.ready_after

    def register_worker(self, name, execute):
        self.workers[name] = execute

    async def create_periodic_task(self, name, interval_millis, tags):
        if self.create_failures > 0:
            self.create_failures -= 1
            raise RuntimeError("task subsystem rejected the task")
        task = Task(id=str(uuid.uuid4()), name=name, tags=list(tags), interval_millis=interval_millis)
        self.tasks.append(task)
        return task

    async def list_tasks(self, tags):
        return [t for t in self.tasks if set(tags) <= set(t.tags)]

    async def delete_task(self, task_id):
        self.deleted.append(task_id)
        self.tasks = [t for t in self.tasks if t.id != task_id]


class FakeSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay):
        self.delays.append(delay)


class FixedClock:
    def __init__(self, now=None):
        self.now = now or datetime(2024, 1, 1, 9, 0, 30, tzinfo=timezone.utc)

    def __call__(self):
        return self.now


# ── Fixtures ──────────────────────────────────────────────────────────────
@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def messaging():
    return FakeMessaging()


@pytest.fixture
def model():
    return ScriptedModel()


@pytest.fixture
def schedule_service(store, clock):
    return ScheduleService(ScheduleRepository(store), clock=clock)


@pytest.fixture
def registry(store):
    return MemberRegistry(MemberRepository(store))


@pytest.fixture
def update_repo(store):
    return UpdateRepository(store)


@pytest.fixture
def collector(model, update_repo, clock):
    return UpdateCollector(model, FieldExtractor(model), update_repo, clock=clock)


@pytest.fixture
def report_generator(schedule_service, update_repo, model, messaging, clock):
    return ReportGenerator(schedule_service, update_repo, model, messaging, clock=clock)
