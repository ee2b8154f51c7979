# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Due-schedule evaluation — pure computation, no side effects.

All instants are UTC. A schedule's nominal instants are derived from its
frequency, its HH:MM check-in time and, for weekly / bi-weekly / monthly
schedules, the weekday, week or day-of-month it was created on.
"""

import calendar
from datetime import datetime, timedelta, timezone
from typing import Optional

from checkin_coordinator.models.domain import CheckInSchedule, Frequency

BI_WEEKLY_PERIOD = timedelta(days=14)


def parse_check_in_time(value: str) -> tuple[int, int]:
    hour, minute = value.split(":", 1)
    return int(hour), int(minute)


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _at_time(day: datetime, hour: int, minute: int) -> datetime:
    return day.replace(hour=hour, minute=minute, second=0, microsecond=0)


def _monthly_instant(year: int, month: int, day: int, hour: int, minute: int) -> datetime:
    last_day = calendar.monthrange(year, month)[1]
    return datetime(year, month, min(day, last_day), hour, minute, tzinfo=timezone.utc)


def most_recent_instant(
    now: datetime,
    frequency: Frequency,
    check_in_time: str,
    created_at: datetime,
) -> Optional[datetime]:
    """
    Return the latest nominal instant <= now, or None when the schedule
    has no instant yet (bi-weekly schedules before their first period).
    """
    now = _as_utc(now)
    created_at = _as_utc(created_at)
    hour, minute = parse_check_in_time(check_in_time)
    today = _at_time(now, hour, minute)
    daily = today if today <= now else today - timedelta(days=1)

    if frequency == Frequency.DAILY:
        return daily

    if frequency == Frequency.WEEKDAYS:
        candidate = daily
        while candidate.weekday() >= 5:
            candidate -= timedelta(days=1)
        return candidate

    if frequency == Frequency.WEEKLY:
        offset = (today.weekday() - created_at.weekday()) % 7
        candidate = today - timedelta(days=offset)
        if candidate > now:
            candidate -= timedelta(days=7)
        return candidate

    if frequency == Frequency.BI_WEEKLY:
        anchor = _at_time(created_at, hour, minute)
        if anchor > now:
            return None
        periods = (now - anchor) // BI_WEEKLY_PERIOD
        return anchor + periods * BI_WEEKLY_PERIOD

    if frequency == Frequency.MONTHLY:
        candidate = _monthly_instant(now.year, now.month, created_at.day, hour, minute)
        if candidate > now:
            year, month = (now.year, now.month - 1) if now.month > 1 else (now.year - 1, 12)
            candidate = _monthly_instant(year, month, created_at.day, hour, minute)
        return candidate

    raise ValueError(f"Unsupported frequency: {frequency}")


def due_instant(
    now: datetime,
    schedule: CheckInSchedule,
    poll_interval: timedelta,
    last_dispatched: Optional[datetime] = None,
) -> Optional[datetime]:
    """
    Return the instant to dispatch for this tick, or None when not due.

    Due iff the most recent instant lies in (now - poll_interval, now] and
    has not already been dispatched. At most one instant is ever returned.
    """
    now = _as_utc(now)
    instant = most_recent_instant(
        now, schedule.frequency, schedule.check_in_time, schedule.created_at
    )
    if instant is None:
        return None
    if not (now - poll_interval < instant <= now):
        return None
    if last_dispatched is not None and _as_utc(last_dispatched) >= instant:
        return None
    return instant


def is_due(
    now: datetime,
    schedule: CheckInSchedule,
    poll_interval: timedelta,
    last_dispatched: Optional[datetime] = None,
) -> bool:
    return due_instant(now, schedule, poll_interval, last_dispatched) is not None
