# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Team member data access.
Append-only; members are never deleted.
"""

import uuid

from checkin_coordinator.models.domain import TeamMember
from checkin_coordinator.repositories.record_store import (
    RecordStore,
    ensure_room_exists,
    room_key,
)

MEMBER_RECORD_TYPE = "team-member"


def members_room(server_id: str) -> str:
    return room_key("team-members", server_id)


class MemberRepository:
    def __init__(self, store: RecordStore) -> None:
        self._store = store

    async def append(self, member: TeamMember) -> None:
        room = members_room(member.server_id)
        await ensure_room_exists(self._store, room)
        await self._store.create_record(room, {
            "id": f"team-member-{uuid.uuid4()}",
            "type": MEMBER_RECORD_TYPE,
            "server_id": member.server_id,
            "member": member.model_dump(mode="json"),
        })

    async def get_all(self, server_id: str) -> list[TeamMember]:
        records = await self._store.query_records(
            members_room(server_id), {"type": MEMBER_RECORD_TYPE, "server_id": server_id}
        )
        return [TeamMember.model_validate(r["member"]) for r in records]
