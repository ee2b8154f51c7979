# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Job runner — the single periodic driver for check-in reminders.

Registration against the host task subsystem follows a bounded retry with
exponential backoff:
    UNREGISTERED ─► REGISTERING ─► ACTIVE
                               └─► FAILED   (retries exhausted)

A failed registration only disables automatic reminders; every other
operation keeps working. Ticks are serialized: a tick that starts while the
previous one is still running is skipped.
"""

import asyncio
import time
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from checkin_coordinator.core.config import settings
from checkin_coordinator.core.errors import CollaboratorUnavailable
from checkin_coordinator.core.logging import get_logger
from checkin_coordinator.metrics.prometheus import (
    JOB_TICK_DURATION,
    JOB_TICKS,
    REMINDERS_DISPATCHED,
    TASK_REGISTRATION_STATE,
)
from checkin_coordinator.models.domain import CHECK_IN_TYPE_LABELS, CheckInSchedule, utcnow
from checkin_coordinator.services.due_evaluator import due_instant
from checkin_coordinator.services.member_registry import MemberRegistry
from checkin_coordinator.services.messaging_client import MessagingAdapter
from checkin_coordinator.services.schedule_service import ScheduleService
from checkin_coordinator.services.task_host import TaskHost

logger = get_logger(__name__)


class RunnerState(str, Enum):
    UNREGISTERED = "unregistered"
    REGISTERING = "registering"
    ACTIVE = "active"
    FAILED = "failed"


_STATE_GAUGE = {
    RunnerState.UNREGISTERED: 0,
    RunnerState.REGISTERING: 1,
    RunnerState.ACTIVE: 2,
    RunnerState.FAILED: 3,
}


class JobRunner:
    """Registers the check-in worker and evaluates schedules on every tick."""

    def __init__(
        self,
        task_host: TaskHost,
        schedule_service: ScheduleService,
        messaging: MessagingAdapter,
        registry: Optional[MemberRegistry] = None,
        poll_interval: Optional[timedelta] = None,
        worker_name: Optional[str] = None,
        tags: Optional[list[str]] = None,
        max_attempts: Optional[int] = None,
        initial_delay: Optional[float] = None,
        max_delay: Optional[float] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._host = task_host
        self._schedules = schedule_service
        self._messaging = messaging
        self._registry = registry
        self._poll_interval = poll_interval or timedelta(
            seconds=settings.CHECKIN_POLL_INTERVAL_SECONDS
        )
        self._worker_name = worker_name or settings.TASK_WORKER_NAME
        self._tags = list(tags or settings.TASK_TAGS)
        self._max_attempts = max_attempts or settings.TASK_REGISTRATION_RETRIES
        self._initial_delay = (
            initial_delay if initial_delay is not None
            else settings.TASK_REGISTRATION_INITIAL_DELAY
        )
        self._max_delay = max_delay if max_delay is not None else settings.TASK_REGISTRATION_MAX_DELAY
        self._sleep = sleep
        self._clock = clock

        self._state = RunnerState.UNREGISTERED
        self._running = False
        self._last_dispatched: dict[str, datetime] = {}
        self._failed: dict[str, datetime] = {}
        self._registration: Optional[asyncio.Task] = None
        TASK_REGISTRATION_STATE.set(_STATE_GAUGE[self._state])

    # ── State ──

    @property
    def state(self) -> RunnerState:
        return self._state

    @property
    def poll_interval(self) -> timedelta:
        return self._poll_interval

    @property
    def last_dispatched(self) -> dict[str, datetime]:
        return self._last_dispatched

    def _set_state(self, state: RunnerState) -> None:
        if state != self._state:
            logger.info("Job runner state: %s -> %s", self._state.value, state.value)
        self._state = state
        TASK_REGISTRATION_STATE.set(_STATE_GAUGE[state])

    # ── Registration ──

    def start(self) -> asyncio.Task:
        """Run registration in the background. Never raises into the caller."""
        if self._registration is None or self._registration.done():
            self._registration = asyncio.create_task(self.register())
        return self._registration

    async def stop(self) -> None:
        if self._registration is not None and not self._registration.done():
            self._registration.cancel()
            try:
                await self._registration
            except asyncio.CancelledError:
                pass

    async def register(self) -> RunnerState:
        if self._state == RunnerState.ACTIVE:
            return self._state

        self._set_state(RunnerState.REGISTERING)
        delay = self._initial_delay
        for attempt in range(1, self._max_attempts + 1):
            if not self._host.is_ready():
                logger.info(
                    "Task subsystem not ready, retrying in %.1fs (attempt %d/%d)",
                    delay, attempt, self._max_attempts,
                )
            else:
                try:
                    await self._register_once()
                    self._set_state(RunnerState.ACTIVE)
                    logger.info("Check-in worker registered after %d attempt(s)", attempt)
                    return self._state
                except Exception as exc:
                    logger.warning(
                        "Failed to register check-in worker (attempt %d/%d): %s",
                        attempt, self._max_attempts, exc,
                    )
            if attempt < self._max_attempts:
                await self._sleep(delay)
                delay = min(delay * 2, self._max_delay)

        self._set_state(RunnerState.FAILED)
        logger.error(
            "Giving up on check-in worker registration after %d attempts; "
            "automatic reminders are disabled",
            self._max_attempts,
        )
        return self._state

    async def _register_once(self) -> None:
        stale = await self._host.list_tasks(self._tags)
        for task in stale:
            await self._host.delete_task(task.id)
        if stale:
            logger.info("Purged %d stale check-in task(s)", len(stale))

        self._host.register_worker(self._worker_name, self.execute)
        await self._host.create_periodic_task(
            self._worker_name,
            int(self._poll_interval.total_seconds() * 1000),
            self._tags,
        )

    # ── Worker ──

    async def execute(self, context: Optional[dict[str, Any]] = None) -> Optional[dict[str, int]]:
        """Task worker entry point. Returns tick stats, or None when skipped."""
        if self._running:
            JOB_TICKS.labels(outcome="skipped").inc()
            logger.info("Previous check-in tick still running, skipping")
            return None
        self._running = True
        start = time.time()
        try:
            stats = await self.run_tick()
            JOB_TICKS.labels(outcome="ran").inc()
            return stats
        except Exception:
            JOB_TICKS.labels(outcome="error").inc()
            logger.exception("Check-in tick failed")
            return None
        finally:
            JOB_TICK_DURATION.observe(time.time() - start)
            self._running = False

    async def run_tick(self, now: Optional[datetime] = None) -> dict[str, int]:
        now = now or self._clock()
        schedules = await self._schedules.list_all_schedules()
        stats = {"evaluated": 0, "due": 0, "dispatched": 0, "failed": 0}

        for schedule in schedules:
            stats["evaluated"] += 1
            instant = None
            # a failed instant stays eligible for one extra interval
            window = self._poll_interval
            if schedule.schedule_id in self._failed:
                window = self._poll_interval * 2
            try:
                instant = due_instant(
                    now,
                    schedule,
                    window,
                    self._last_dispatched.get(schedule.schedule_id),
                )
                if instant is None:
                    self._failed.pop(schedule.schedule_id, None)
                    continue
                stats["due"] += 1
                await self.dispatch_reminder(schedule, instant)
                self._last_dispatched[schedule.schedule_id] = instant
                self._failed.pop(schedule.schedule_id, None)
                stats["dispatched"] += 1
            except CollaboratorUnavailable as exc:
                self._mark_failed(schedule.schedule_id, instant)
                stats["failed"] += 1
                REMINDERS_DISPATCHED.labels(outcome="failed").inc()
                logger.warning(
                    "Reminder skipped this tick: schedule=%s, channel=%s (%s)",
                    schedule.schedule_id, schedule.channel_id, exc,
                )
            except Exception:
                self._mark_failed(schedule.schedule_id, instant)
                stats["failed"] += 1
                REMINDERS_DISPATCHED.labels(outcome="failed").inc()
                logger.exception("Reminder dispatch failed: schedule=%s", schedule.schedule_id)

        logger.info(
            "Check-in tick complete: evaluated=%d, due=%d, dispatched=%d, failed=%d",
            stats["evaluated"], stats["due"], stats["dispatched"], stats["failed"],
        )
        return stats

    def _mark_failed(self, schedule_id: str, instant: Optional[datetime]) -> None:
        if instant is None:
            return
        # retried once; a second failure drops the instant
        if self._failed.pop(schedule_id, None) != instant:
            self._failed[schedule_id] = instant

    async def dispatch_reminder(self, schedule: CheckInSchedule, instant: datetime) -> None:
        text = await self.build_reminder(schedule)
        await self._messaging.send_message(schedule.channel_id, text)
        REMINDERS_DISPATCHED.labels(outcome="sent").inc()
        logger.info(
            "Reminder sent: schedule=%s, channel=%s, instant=%s",
            schedule.schedule_id, schedule.channel_id, instant.isoformat(),
        )

    async def build_reminder(self, schedule: CheckInSchedule) -> str:
        label = CHECK_IN_TYPE_LABELS[schedule.check_in_type]
        text = (
            f"⏰ **{label} time!**\n"
            f"Please reply in this channel with your update ({schedule.check_in_time} UTC)."
        )
        if self._registry is None:
            return text
        try:
            sections = await self._registry.list_members(schedule.server_id)
        except Exception as exc:
            logger.warning("Could not load members for reminder: %s", exc)
            return text
        lines: list[str] = []
        for section, members in sections:
            fields: list[str] = []
            for member in members:
                for field in member.updates_format:
                    if field not in fields:
                        fields.append(field)
            if fields:
                lines.append(f"• **{section}**: {', '.join(fields)}")
        if lines:
            text += "\n\nExpected update fields:\n" + "\n".join(lines)
        return text
