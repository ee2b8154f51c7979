# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false

"""
Tests for the Team Check-in Coordinator HTTP API.
Collaborators (chat platform, text model) are replaced with fakes through
FastAPI dependency overrides; the record store is the in-memory singleton.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from checkin_coordinator.actions.base import ActionDispatcher
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
from checkin_coordinator.core import dependencies
from checkin_coordinator.core.config import settings
from checkin_coordinator.repositories.update_repository import UpdateRepository
from checkin_coordinator.services.field_extractor import FieldExtractor
from checkin_coordinator.services.report_generator import NO_UPDATES_TEXT, ReportGenerator
from checkin_coordinator.services.update_collector import UpdateCollector
from conftest import FakeMessaging, ScriptedModel
from main import app

client = TestClient(app)


# ============================================
# Fixtures
# ============================================
@pytest.fixture(autouse=True)
def reset_state():
    """Reset in-memory state before each test."""
    dependencies.get_record_store().clear()
    dependencies.get_schedule_service().invalidate()
    dependencies.get_message_states().clear()
    app.dependency_overrides.clear()
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def fakes():
    """Wire collector, report generator and actions to fake collaborators."""
    messaging = FakeMessaging()
    model = ScriptedModel()
    extractor = FieldExtractor(model)
    schedule_service = dependencies.get_schedule_service()
    registry = dependencies.get_member_registry()
    update_repo = UpdateRepository(dependencies.get_record_store())
    collector = UpdateCollector(model, extractor, update_repo)
    reports = ReportGenerator(schedule_service, update_repo, model, messaging)
    dispatcher = ActionDispatcher([
        RecordCheckInAction(collector, schedule_service, messaging),
        ListCheckInSchedulesAction(schedule_service),
        AddTeamMemberAction(registry, extractor),
        ListTeamMembersAction(registry),
        RecordTeamUpdateAction(collector, registry),
        GenerateReportAction(reports),
        CheckInInfoAction(schedule_service, messaging),
    ])
    app.dependency_overrides[dependencies.get_update_collector] = lambda: collector
    app.dependency_overrides[dependencies.get_report_generator] = lambda: reports
    app.dependency_overrides[dependencies.get_dispatcher] = lambda: dispatcher
    return messaging, model


def _schedule_payload(**overrides):
    base = {
        "check_in_type": "STANDUP",
        "channel_id": "C1",
        "frequency": "DAILY",
        "check_in_time": "09:00",
    }
    base.update(overrides)
    return base


# ============================================
# Health & Metrics
# ============================================
class TestHealth:
    def test_health_returns_ok(self):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["service"] == settings.SERVICE_NAME
        assert data["version"] == settings.SERVICE_VERSION
        assert "timestamp" in data

    def test_readiness_reports_runner_state(self):
        data = client.get("/health/ready").json()
        assert data["status"] == "ready"
        assert data["job_runner_state"] in {"unregistered", "registering", "active", "failed"}
        assert data["poll_interval_seconds"] == settings.CHECKIN_POLL_INTERVAL_SECONDS


class TestRequestID:
    def test_request_id_propagated(self):
        response = client.get("/health", headers={"X-Request-ID": "test-req-12345"})
        assert response.headers["X-Request-ID"] == "test-req-12345"

    def test_request_id_generated(self):
        assert len(client.get("/health").headers.get("X-Request-ID", "")) > 0


class TestMetrics:
    def test_metrics_exposed(self):
        client.post("/api/v1/servers/S1/schedules", json=_schedule_payload())
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "checkin_schedules_created_total" in response.text
        assert "checkin_requests_total" in response.text


# ============================================
# Schedules & report channel
# ============================================
class TestSchedules:
    def test_create_and_list(self):
        response = client.post("/api/v1/servers/S1/schedules", json=_schedule_payload())
        assert response.status_code == 201
        schedule_id = response.json()["schedule_id"]

        listed = client.get("/api/v1/servers/S1/schedules").json()
        assert len(listed) == 1
        assert listed[0]["schedule_id"] == schedule_id
        assert listed[0]["frequency"] == "DAILY"
        assert listed[0]["check_in_time"] == "09:00"

    def test_twelve_hour_time_normalized(self):
        response = client.post(
            "/api/v1/servers/S1/schedules",
            json=_schedule_payload(check_in_time="2:30 PM", frequency="Bi-weekly"),
        )
        assert response.status_code == 201
        (schedule,) = client.get("/api/v1/servers/S1/schedules").json()
        assert schedule["check_in_time"] == "14:30"
        assert schedule["frequency"] == "BI_WEEKLY"

    def test_invalid_time_is_400(self):
        response = client.post("/api/v1/servers/S1/schedules", json=_schedule_payload(check_in_time="25:00"))
        assert response.status_code == 400
        assert client.get("/api/v1/servers/S1/schedules").json() == []

    def test_invalid_type_is_400(self):
        response = client.post("/api/v1/servers/S1/schedules", json=_schedule_payload(check_in_type="Party"))
        assert response.status_code == 400

    def test_unknown_server_lists_empty(self):
        assert client.get("/api/v1/servers/nobody/schedules").json() == []


class TestReportChannel:
    def test_missing_is_404(self):
        assert client.get("/api/v1/servers/S1/report-channel").status_code == 404

    def test_put_then_get(self):
        response = client.put("/api/v1/servers/S1/report-channel", json={"channel_id": "R1"})
        assert response.status_code == 200
        assert response.json()["channel_id"] == "R1"
        assert client.get("/api/v1/servers/S1/report-channel").json()["channel_id"] == "R1"

    def test_put_overwrites(self):
        client.put("/api/v1/servers/S1/report-channel", json={"channel_id": "R1"})
        client.put("/api/v1/servers/S1/report-channel", json={"channel_id": "R2"})
        assert client.get("/api/v1/servers/S1/report-channel").json()["channel_id"] == "R2"


# ============================================
# Members
# ============================================
class TestMembers:
    def test_duplicates_preserved(self):
        payload = {"section": "Backend", "telegram_name": "@alice", "updates_format": ["progress"]}
        assert client.post("/api/v1/servers/S1/members", json=payload).status_code == 201
        assert client.post("/api/v1/servers/S1/members", json=payload).status_code == 201
        sections = client.get("/api/v1/servers/S1/members").json()
        assert len(sections) == 1
        assert sections[0]["section"] == "Backend"
        assert len(sections[0]["members"]) == 2

    def test_missing_handle_is_400(self):
        response = client.post("/api/v1/servers/S1/members", json={"section": "Backend"})
        assert response.status_code == 400

    def test_empty_list(self):
        assert client.get("/api/v1/servers/S1/members").json() == []


# ============================================
# Updates & reports
# ============================================
class TestUpdatesAndReports:
    def test_non_update_gets_guidance(self, fakes):
        _, model = fakes
        model.queue("false")
        response = client.post(
            "/api/v1/servers/S1/updates", json={"member_ref": "alice", "text": "what do I write here?"}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["accepted"] is False
        assert data["update_id"] is None
        assert data["guidance"]

    def test_update_stored(self, fakes):
        _, model = fakes
        model.queue("true", '{"progress": "done", "next steps": "more", "blockers": "none"}')
        data = client.post(
            "/api/v1/servers/S1/updates", json={"member_ref": "alice", "text": "done, more, none"}
        ).json()
        assert data["accepted"] is True
        assert data["update_id"]
        assert data["fields"]["progress"] == "done"

    def test_garbled_extraction_is_422(self, fakes):
        _, model = fakes
        model.queue("true", "no json at all")
        response = client.post("/api/v1/servers/S1/updates", json={"member_ref": "alice", "text": "stuff"})
        assert response.status_code == 422

    def test_report_without_channel_is_409(self, fakes):
        messaging, _ = fakes
        response = client.post("/api/v1/servers/S1/reports")
        assert response.status_code == 409
        assert messaging.sent == []

    def test_report_with_no_updates_posted(self, fakes):
        messaging, _ = fakes
        client.put("/api/v1/servers/S1/report-channel", json={"channel_id": "R1"})
        response = client.post("/api/v1/servers/S1/reports", json={})
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "posted"
        assert data["update_count"] == 0
        assert NO_UPDATES_TEXT in messaging.sent[0][1]

    def test_naive_start_read_as_utc(self, fakes):
        messaging, _ = fakes
        client.put("/api/v1/servers/S1/report-channel", json={"channel_id": "R1"})
        response = client.post("/api/v1/servers/S1/reports", json={"start": "2024-01-01T00:00:00"})
        assert response.status_code == 200
        assert response.json()["status"] == "posted"

    def test_naive_window_counts_updates(self, fakes):
        _, model = fakes
        model.queue("true", '{"progress": "done", "next steps": "more", "blockers": "none"}')
        client.post("/api/v1/servers/S1/updates", json={"member_ref": "alice", "text": "done, more, none"})
        client.put("/api/v1/servers/S1/report-channel", json={"channel_id": "R1"})
        now = datetime.now(timezone.utc).replace(tzinfo=None)
        response = client.post("/api/v1/servers/S1/reports", json={
            "start": (now - timedelta(hours=1)).isoformat(),
            "end": (now + timedelta(hours=1)).isoformat(),
        })
        assert response.status_code == 200
        assert response.json()["update_count"] == 1

    def test_report_delivery_failure_is_503(self, fakes):
        messaging, _ = fakes
        messaging.failing_channels.add("R1")
        client.put("/api/v1/servers/S1/report-channel", json={"channel_id": "R1"})
        assert client.post("/api/v1/servers/S1/reports").status_code == 503


# ============================================
# Messages, actions & jobs
# ============================================
class TestMessages:
    def test_actions_listed(self):
        names = [a["name"] for a in client.get("/api/v1/actions").json()]
        assert names[0] == "RECORD_CHECK_IN"
        assert "CHECK_IN_INFO" in names
        assert "RECORD_TEAM_UPDATE" in names

    def test_info_message(self, fakes):
        data = client.post("/api/v1/messages", json={
            "message_id": "m-1",
            "text": "How do I set up check-ins?",
            "server_id": "S1",
        }).json()
        assert data["action"] == "CHECK_IN_INFO"
        assert data["handled"] is True
        assert "#standups (222)" in data["replies"][0]

    def test_redelivered_message_replies_once(self, fakes):
        _, model = fakes
        model.queue("true", (
            '{"channelForUpdates": "general", "checkInType": "STANDUP", '
            '"channelForCheckIns": "standups", "frequency": "WEEKLY", "time": "10:00"}'
        ))
        body = {
            "message_id": "m-42",
            "text": "Record check-in details: check-in type standup, channel #standups, weekly at 10:00",
            "server_id": "S1",
        }
        first = client.post("/api/v1/messages", json=body).json()
        second = client.post("/api/v1/messages", json=body).json()
        assert first["handled"] is True
        assert len(first["replies"]) == 1
        assert second["replies"] == []
        assert len(client.get("/api/v1/servers/S1/schedules").json()) == 1

    def test_named_action(self, fakes):
        data = client.post("/api/v1/messages", json={
            "message_id": "m-2",
            "text": "anything",
            "server_id": "S1",
            "action": "LIST_TEAM_MEMBERS",
        }).json()
        assert data["action"] == "LIST_TEAM_MEMBERS"
        assert "No team members" in data["replies"][0]

    def test_unmatched_message(self, fakes):
        data = client.post("/api/v1/messages", json={"message_id": "m-3", "text": "hello", "server_id": "S1"}).json()
        assert data == {"action": None, "handled": False, "replies": []}


class TestJobs:
    def test_tick_with_no_schedules(self):
        data = client.post("/api/v1/jobs/tick").json()
        assert data["status"] == "ran"
        assert data["evaluated"] == 0
