# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Record store adapter.
Append/query of opaque timestamped records grouped by room.
NO business rules here — pure storage.
"""

import re
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

from checkin_coordinator.core.errors import DuplicateRecordError, RoomExistsError


def room_key(prefix: str, server_id: str | None = None) -> str:
    """
    Build a stable room name, sanitizing the server id to alphanumerics.
    Distinct ids may share a room, so records carry their own server_id.
    """
    if server_id is None:
        return prefix
    return f"{prefix}-{re.sub(r'[^a-zA-Z0-9]', '', server_id)}"


class RecordStore(Protocol):
    async def ensure_room(self, room: str) -> None: ...

    async def create_record(self, room: str, record: dict[str, Any]) -> None: ...

    async def query_records(
        self, room: str, filter: Optional[dict[str, Any]] = None
    ) -> list[dict[str, Any]]: ...


class InMemoryRecordStore:
    """In-memory record store. Records keep insertion order per room."""

    def __init__(self) -> None:
        self._rooms: dict[str, list[dict[str, Any]]] = {}
        self._ids: set[str] = set()

    # ── Write ──

    async def ensure_room(self, room: str) -> None:
        if room in self._rooms:
            raise RoomExistsError(f"Room '{room}' already exists")
        self._rooms[room] = []

    async def create_record(self, room: str, record: dict[str, Any]) -> None:
        if room not in self._rooms:
            raise KeyError(f"Room '{room}' does not exist")
        record_id = record.get("id")
        if record_id is None:
            raise ValueError("Record requires an 'id'")
        if record_id in self._ids:
            raise DuplicateRecordError(f"Record '{record_id}' already exists")
        stored = dict(record)
        stored.setdefault("created_at", datetime.now(timezone.utc).isoformat())
        self._ids.add(record_id)
        self._rooms[room].append(stored)

    # ── Read ──

    async def query_records(
        self, room: str, filter: Optional[dict[str, Any]] = None
    ) -> list[dict[str, Any]]:
        records = self._rooms.get(room, [])
        if not filter:
            return list(records)
        return [
            r for r in records
            if all(r.get(key) == value for key, value in filter.items())
        ]

    def has_room(self, room: str) -> bool:
        return room in self._rooms

    def count(self, room: str | None = None) -> int:
        if room is not None:
            return len(self._rooms.get(room, []))
        return len(self._ids)

    # ── Bulk / internal ──

    def clear(self) -> None:
        self._rooms.clear()
        self._ids.clear()

    @property
    def rooms(self) -> dict[str, list[dict[str, Any]]]:
        """Direct access for tests."""
        return self._rooms


async def ensure_room_exists(store: RecordStore, room: str) -> bool:
    """Create a room if missing. Returns True when the room was created."""
    try:
        await store.ensure_room(room)
        return True
    except RoomExistsError:
        return False
