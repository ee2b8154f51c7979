# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Messaging client — chat platform communication.
The core only sees the MessagingAdapter capability; DiscordMessagingClient
implements it over the Discord REST API with httpx.
"""

from typing import Any, Optional, Protocol

import httpx

from checkin_coordinator.core.config import settings
from checkin_coordinator.core.errors import CollaboratorUnavailable
from checkin_coordinator.core.logging import get_logger
from checkin_coordinator.models.domain import Channel

logger = get_logger(__name__)

TEXT_CHANNEL_TYPES = {0, 5}
MAX_MESSAGE_LENGTH = 2000


class MessagingAdapter(Protocol):
    async def list_channels(self, server_id: str) -> list[Channel]: ...

    async def send_message(self, channel_id: str, text: str) -> None: ...

    async def fetch_member(self, server_id: str, user_id: str) -> Optional[dict[str, Any]]: ...


def split_message(text: str, limit: int = MAX_MESSAGE_LENGTH) -> list[str]:
    """Split on line boundaries so each chunk fits the platform limit."""
    if len(text) <= limit:
        return [text]
    chunks: list[str] = []
    current = ""
    for line in text.splitlines(keepends=True):
        while len(line) > limit:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:limit])
            line = line[limit:]
        if len(current) + len(line) > limit:
            chunks.append(current)
            current = ""
        current += line
    if current:
        chunks.append(current)
    return chunks


class DiscordMessagingClient:
    """MessagingAdapter backed by the Discord REST API."""

    def __init__(
        self,
        token: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self._token = token if token is not None else settings.DISCORD_BOT_TOKEN
        self._base_url = (base_url or settings.DISCORD_API_URL).rstrip("/")
        self._timeout = timeout or settings.MESSAGING_TIMEOUT

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bot {self._token}"}

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                headers=self._headers(),
            ) as client:
                resp = await client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("Chat platform unreachable: %s %s (%s)", method, path, exc)
            raise CollaboratorUnavailable(f"{method} {path} failed: {exc}") from exc
        if resp.status_code >= 300:
            logger.warning(
                "Chat platform returned %d for %s %s", resp.status_code, method, path
            )
            raise CollaboratorUnavailable(
                f"{method} {path} returned {resp.status_code}"
            )
        return resp

    async def list_channels(self, server_id: str) -> list[Channel]:
        resp = await self._request("GET", f"/guilds/{server_id}/channels")
        channels = [
            Channel(
                id=str(c["id"]),
                name=c.get("name") or "",
                is_text=c.get("type") in TEXT_CHANNEL_TYPES,
            )
            for c in resp.json()
        ]
        logger.info(
            "Fetched %d channels (%d text) for server %s",
            len(channels), sum(1 for c in channels if c.is_text), server_id,
        )
        return channels

    async def send_message(self, channel_id: str, text: str) -> None:
        for chunk in split_message(text):
            await self._request(
                "POST", f"/channels/{channel_id}/messages", json={"content": chunk}
            )
        logger.info("Message sent: channel=%s, length=%d", channel_id, len(text))

    async def fetch_member(self, server_id: str, user_id: str) -> Optional[dict[str, Any]]:
        try:
            resp = await self._request("GET", f"/guilds/{server_id}/members/{user_id}")
        except CollaboratorUnavailable:
            logger.warning("Could not fetch member %s on server %s", user_id, server_id)
            return None
        data = resp.json()
        user = data.get("user") or {}
        return {
            "id": str(user.get("id", user_id)),
            "username": user.get("username"),
            "display_name": data.get("nick") or user.get("global_name") or user.get("username"),
        }
