# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Schedule and report-channel data access.
Encapsulates all read/write operations on the schedule rooms.
NO business rules here — pure CRUD.
"""

from typing import Any

from checkin_coordinator.core.errors import DuplicateRecordError
from checkin_coordinator.models.domain import CheckInSchedule, ReportChannelConfig
from checkin_coordinator.repositories.record_store import (
    RecordStore,
    ensure_room_exists,
    room_key,
)

SCHEDULE_RECORD_TYPE = "team-member-checkin-schedule"
REPORT_CONFIG_RECORD_TYPE = "report-channel-config"
SERVER_INDEX_RECORD_TYPE = "check-in-server"

SERVER_INDEX_ROOM = "check-in-servers"
REPORT_CONFIG_ROOM = "report-channel-config"


def schedules_room(server_id: str) -> str:
    return room_key("check-in-schedules", server_id)


class ScheduleRepository:
    """Record-store backed storage for schedules and report channel configs."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    # ── Schedules ──

    async def save_schedule(self, schedule: CheckInSchedule) -> None:
        room = schedules_room(schedule.server_id)
        await ensure_room_exists(self._store, room)
        await self._store.create_record(room, {
            "id": f"checkin-schedule-{schedule.schedule_id}",
            "type": SCHEDULE_RECORD_TYPE,
            "server_id": schedule.server_id,
            "schedule": schedule.model_dump(mode="json"),
        })
        await self._index_server(schedule.server_id)

    async def get_schedules(self, server_id: str) -> list[CheckInSchedule]:
        records = await self._store.query_records(
            schedules_room(server_id), {"type": SCHEDULE_RECORD_TYPE, "server_id": server_id}
        )
        return [CheckInSchedule.model_validate(r["schedule"]) for r in records]

    async def get_server_ids(self) -> list[str]:
        records = await self._store.query_records(
            SERVER_INDEX_ROOM, {"type": SERVER_INDEX_RECORD_TYPE}
        )
        seen: list[str] = []
        for r in records:
            if r["server_id"] not in seen:
                seen.append(r["server_id"])
        return seen

    async def _index_server(self, server_id: str) -> None:
        await ensure_room_exists(self._store, SERVER_INDEX_ROOM)
        if server_id in await self.get_server_ids():
            return
        try:
            await self._store.create_record(SERVER_INDEX_ROOM, {
                "id": f"check-in-server-{server_id}",
                "type": SERVER_INDEX_RECORD_TYPE,
                "server_id": server_id,
            })
        except DuplicateRecordError:
            pass

    # ── Report channel configs ──

    async def ensure_report_config_room(self) -> bool:
        return await ensure_room_exists(self._store, REPORT_CONFIG_ROOM)

    async def save_report_config(self, record_id: str, config: ReportChannelConfig) -> None:
        await self._store.create_record(REPORT_CONFIG_ROOM, {
            "id": record_id,
            "type": REPORT_CONFIG_RECORD_TYPE,
            "config": config.model_dump(mode="json"),
        })

    async def get_report_configs(self) -> list[ReportChannelConfig]:
        records: list[dict[str, Any]] = await self._store.query_records(REPORT_CONFIG_ROOM)
        return [
            ReportChannelConfig.model_validate(r["config"])
            for r in records
            if r.get("type") == REPORT_CONFIG_RECORD_TYPE
        ]
