# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Schedule store — business logic for check-in schedules and
report channel configuration.

Schedules are immutable: recording again creates a new schedule.
Report channel configs are cached per server; the cache is loaded once at
startup and invalidated on every write.
"""

import re
import uuid
from typing import Any, Callable, Optional

from checkin_coordinator.core.errors import (
    ConfigurationMissing,
    DuplicateRecordError,
    DuplicateSubmission,
    ValidationError,
)
from checkin_coordinator.core.logging import get_logger
from checkin_coordinator.metrics.prometheus import SCHEDULES_CREATED
from checkin_coordinator.models.domain import (
    TIME_PATTERN,
    CheckInSchedule,
    CheckInType,
    Frequency,
    ReportChannelConfig,
    utcnow,
)
from checkin_coordinator.repositories.schedule_repository import ScheduleRepository
from checkin_coordinator.services.normalize import normalize_check_in_type, normalize_frequency

logger = get_logger(__name__)

_TIME_RE = re.compile(TIME_PATTERN)


class ScheduleService:
    """Business logic for check-in schedule management."""

    def __init__(
        self,
        schedule_repo: ScheduleRepository,
        clock: Callable[[], Any] = utcnow,
    ) -> None:
        self._schedules = schedule_repo
        self._clock = clock
        self._report_channels: Optional[dict[str, ReportChannelConfig]] = None

    # ── Commands ──

    async def create_schedule(
        self,
        server_id: str,
        check_in_type: str | CheckInType,
        channel_id: str,
        frequency: str | Frequency,
        check_in_time: str,
        source: str = "unknown",
        team_member_id: str | None = None,
    ) -> str:
        """Validate and persist a schedule. Raises ValidationError on bad input."""
        if not (server_id or "").strip():
            raise ValidationError(
                "server_id is required",
                user_message="Failed to identify the server. Please try again.",
            )
        if not (channel_id or "").strip():
            raise ValidationError(
                "channel_id is required",
                user_message=(
                    "I couldn't find the channel for check-ins. "
                    "Please name one of this server's text channels."
                ),
            )
        if not _TIME_RE.match(check_in_time or ""):
            raise ValidationError(
                f"check_in_time must be HH:MM, got {check_in_time!r}",
                user_message=f"'{check_in_time}' is not a valid time. Use HH:MM in UTC, e.g. 09:00.",
            )

        schedule = CheckInSchedule(
            schedule_id=str(uuid.uuid4()),
            check_in_type=normalize_check_in_type(check_in_type),
            channel_id=channel_id.strip(),
            frequency=normalize_frequency(frequency),
            check_in_time=check_in_time,
            server_id=server_id,
            source=source,
            created_at=self._clock(),
            team_member_id=team_member_id,
        )
        await self._schedules.save_schedule(schedule)

        SCHEDULES_CREATED.labels(frequency=schedule.frequency.value).inc()
        logger.info(
            "Schedule created: server=%s, schedule=%s, type=%s, frequency=%s, time=%s",
            server_id,
            schedule.schedule_id,
            schedule.check_in_type.value,
            schedule.frequency.value,
            schedule.check_in_time,
        )
        return schedule.schedule_id

    async def create_or_update_report_channel(
        self,
        config: ReportChannelConfig,
        overwrite: bool = False,
    ) -> bool:
        """
        Store a report channel config. Returns True when a record was written.

        Without overwrite an existing config for the server is kept as-is.
        Raises DuplicateSubmission when the store reports a conflicting record.
        """
        if config.server_id:
            existing = await self._find_report_config(config.server_id)
            if existing is not None and not overwrite:
                logger.info(
                    "Report channel already configured: server=%s, channel=%s",
                    config.server_id,
                    existing.channel_id,
                )
                return False

        if overwrite or not config.server_id:
            record_id = f"report-channel-config-{config.server_id}-{uuid.uuid4()}"
        else:
            record_id = f"report-channel-config-{config.server_id}"

        await self._schedules.ensure_report_config_room()
        try:
            await self._schedules.save_report_config(record_id, config)
        except DuplicateRecordError as exc:
            logger.warning(
                "Duplicate report channel submission: server=%s (%s)",
                config.server_id,
                exc,
            )
            raise DuplicateSubmission(
                str(exc),
                user_message=(
                    "⚠️ A report channel has already been submitted for this server. "
                    "The existing configuration was kept."
                ),
            ) from exc
        finally:
            self.invalidate()

        logger.info(
            "Report channel stored: server=%s, channel=%s, overwrite=%s",
            config.server_id,
            config.channel_id,
            overwrite,
        )
        return True

    # ── Queries ──

    async def list_schedules(self, server_id: str) -> list[CheckInSchedule]:
        return await self._schedules.get_schedules(server_id)

    async def list_all_schedules(self) -> list[CheckInSchedule]:
        schedules: list[CheckInSchedule] = []
        for server_id in await self._schedules.get_server_ids():
            schedules.extend(await self._schedules.get_schedules(server_id))
        return schedules

    async def get_report_channel(self, server_id: str) -> Optional[ReportChannelConfig]:
        if self._report_channels is None:
            await self.load()
        return self._report_channels.get(server_id)

    async def require_report_channel(self, server_id: str) -> ReportChannelConfig:
        config = await self.get_report_channel(server_id)
        if config is None or not config.channel_id:
            raise ConfigurationMissing(f"No report channel configured for server '{server_id}'")
        return config

    # ── Cache lifecycle ──

    async def load(self) -> int:
        """Load report channel configs into the cache. Last write wins."""
        await self._schedules.ensure_report_config_room()
        cache: dict[str, ReportChannelConfig] = {}
        for config in await self._schedules.get_report_configs():
            if config.server_id:
                cache[config.server_id] = config
        self._report_channels = cache
        logger.info("Loaded %d report channel configs", len(cache))
        return len(cache)

    def invalidate(self) -> None:
        self._report_channels = None

    # ── Internal ──

    async def _find_report_config(self, server_id: str) -> Optional[ReportChannelConfig]:
        for config in reversed(await self._schedules.get_report_configs()):
            if config.server_id == server_id:
                return config
        return None
