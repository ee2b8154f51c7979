# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Update record data access.
"""

from typing import Optional

from checkin_coordinator.models.domain import ReportWindow, UpdateKind, UpdateRecord
from checkin_coordinator.repositories.record_store import (
    RecordStore,
    ensure_room_exists,
    room_key,
)

UPDATE_RECORD_TYPE = "team-update"


def updates_room(server_id: str) -> str:
    return room_key("team-updates", server_id)


class UpdateRepository:
    def __init__(self, store: RecordStore) -> None:
        self._store = store

    async def append(self, update: UpdateRecord) -> None:
        room = updates_room(update.server_id)
        await ensure_room_exists(self._store, room)
        await self._store.create_record(room, {
            "id": f"team-update-{update.update_id}",
            "type": UPDATE_RECORD_TYPE,
            "server_id": update.server_id,
            "kind": update.kind.value,
            "update": update.model_dump(mode="json"),
        })

    async def get_all(
        self,
        server_id: str,
        kind: Optional[UpdateKind] = None,
        window: Optional[ReportWindow] = None,
    ) -> list[UpdateRecord]:
        query = {"type": UPDATE_RECORD_TYPE, "server_id": server_id}
        if kind is not None:
            query["kind"] = kind.value
        records = await self._store.query_records(updates_room(server_id), query)
        updates = [UpdateRecord.model_validate(r["update"]) for r in records]
        if window is not None:
            updates = [u for u in updates if window.contains(u.timestamp)]
        return updates
