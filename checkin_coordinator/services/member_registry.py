# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Team member registry.
Members are appended and never merged; registering the same identity twice
yields two entries.
"""

from typing import Optional

import pydantic

from checkin_coordinator.core.errors import ValidationError
from checkin_coordinator.core.logging import get_logger
from checkin_coordinator.metrics.prometheus import MEMBERS_REGISTERED
from checkin_coordinator.models.domain import TeamMember
from checkin_coordinator.repositories.member_repository import MemberRepository

logger = get_logger(__name__)

DEFAULT_SECTION = "Unassigned"


class MemberRegistry:
    def __init__(self, member_repo: MemberRepository) -> None:
        self._members = member_repo

    async def add_member(
        self,
        server_id: str,
        section: str,
        telegram_name: str | None = None,
        discord_name: str | None = None,
        updates_format: list[str] | None = None,
        server_name: str | None = None,
    ) -> TeamMember:
        """Register a member. Raises ValidationError on bad input."""
        try:
            member = TeamMember(
                section=(section or "").strip() or DEFAULT_SECTION,
                telegram_name=(telegram_name or "").strip() or None,
                discord_name=(discord_name or "").strip() or None,
                updates_format=[f.strip() for f in (updates_format or []) if f and f.strip()],
                server_id=server_id,
                server_name=server_name,
            )
        except pydantic.ValidationError as exc:
            raise ValidationError(
                str(exc),
                user_message=(
                    "A team member needs a section and at least one handle "
                    "(Telegram or Discord)."
                ),
            ) from exc

        await self._members.append(member)
        MEMBERS_REGISTERED.inc()
        logger.info(
            "Team member added: server=%s, section=%s, handle=%s",
            server_id, member.section, member.platform_handle,
        )
        return member

    async def list_members(self, server_id: str) -> list[tuple[str, list[TeamMember]]]:
        """Members grouped by section, sections in first-seen order."""
        sections: dict[str, list[TeamMember]] = {}
        for member in await self._members.get_all(server_id):
            sections.setdefault(member.section or DEFAULT_SECTION, []).append(member)
        return list(sections.items())

    async def find_member(self, server_id: str, handle: str) -> Optional[TeamMember]:
        """Most recent registration whose handle matches, case-insensitively."""
        wanted = (handle or "").lstrip("@").lower()
        if not wanted:
            return None
        for member in reversed(await self._members.get_all(server_id)):
            handles = {
                (member.telegram_name or "").lstrip("@").lower(),
                (member.discord_name or "").lstrip("@").lower(),
            }
            if wanted in handles:
                return member
        return None
