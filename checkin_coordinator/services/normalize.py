# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Normalization of free-form check-in values into domain enums.
Raises ValidationError for anything that cannot be mapped.
"""

import re

from checkin_coordinator.core.errors import ValidationError
from checkin_coordinator.models.domain import CheckInType, Frequency

_TIME_24H = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")
_TIME_12H = re.compile(r"^\s*(\d{1,2})(?::(\d{2}))?\s*([ap])\.?m\.?\s*$", re.IGNORECASE)

FREQUENCY_ALIASES: dict[str, Frequency] = {
    "DAILY": Frequency.DAILY,
    "EVERYDAY": Frequency.DAILY,
    "WEEKDAYS": Frequency.WEEKDAYS,
    "WEEKDAY": Frequency.WEEKDAYS,
    "WEEKLY": Frequency.WEEKLY,
    "BI_WEEKLY": Frequency.BI_WEEKLY,
    "BIWEEKLY": Frequency.BI_WEEKLY,
    "MONTHLY": Frequency.MONTHLY,
}

CHECK_IN_TYPE_ALIASES: dict[str, CheckInType] = {
    "STANDUP": CheckInType.STANDUP,
    "DAILY_STANDUP": CheckInType.STANDUP,
    "SPRINT": CheckInType.SPRINT,
    "SPRINT_CHECK_IN": CheckInType.SPRINT,
    "SPRINT_CHECKIN": CheckInType.SPRINT,
    "MENTAL_HEALTH": CheckInType.MENTAL_HEALTH,
    "MENTAL_HEALTH_CHECK_IN": CheckInType.MENTAL_HEALTH,
    "MENTAL_HEALTH_CHECKIN": CheckInType.MENTAL_HEALTH,
    "PROJECT_STATUS": CheckInType.PROJECT_STATUS,
    "PROJECT_STATUS_UPDATE": CheckInType.PROJECT_STATUS,
    "RETRO": CheckInType.RETRO,
    "RETROSPECTIVE": CheckInType.RETRO,
    "TEAM_RETROSPECTIVE": CheckInType.RETRO,
}


def _key(value: str) -> str:
    return re.sub(r"[^A-Z0-9]+", "_", value.strip().upper()).strip("_")


def normalize_frequency(value: str | Frequency | None) -> Frequency:
    if isinstance(value, Frequency):
        return value
    key = _key(value or "")
    if key in FREQUENCY_ALIASES:
        return FREQUENCY_ALIASES[key]
    if key.replace("_", "") in FREQUENCY_ALIASES:
        return FREQUENCY_ALIASES[key.replace("_", "")]
    raise ValidationError(
        f"Invalid frequency: {value!r}",
        user_message=(
            f"'{value}' is not a supported frequency. "
            "Use one of: Daily, Weekdays, Weekly, Bi-weekly, Monthly."
        ),
    )


def normalize_check_in_type(value: str | CheckInType | None) -> CheckInType:
    if isinstance(value, CheckInType):
        return value
    key = _key(value or "")
    if key in CHECK_IN_TYPE_ALIASES:
        return CHECK_IN_TYPE_ALIASES[key]
    raise ValidationError(
        f"Invalid check-in type: {value!r}",
        user_message=(
            f"'{value}' is not a supported check-in type. Use one of: "
            "Daily Standup, Sprint Check-in, Mental Health Check-in, "
            "Project Status Update, Team Retrospective."
        ),
    )


def normalize_time(value: str | None) -> str:
    """Accept HH:MM or 12-hour forms like '9 AM' and return HH:MM (24h)."""
    text = (value or "").strip()
    text = re.sub(r"\s*UTC\s*$", "", text, flags=re.IGNORECASE)
    hour = minute = None

    match = _TIME_24H.match(text)
    if match:
        hour, minute = int(match.group(1)), int(match.group(2))
    else:
        match = _TIME_12H.match(text)
        if match:
            hour = int(match.group(1))
            minute = int(match.group(2) or 0)
            if not 1 <= hour <= 12:
                hour = None
            else:
                meridiem = match.group(3).lower()
                hour = hour % 12 + (12 if meridiem == "p" else 0)

    if hour is None or not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValidationError(
            f"Invalid check-in time: {value!r}",
            user_message=f"'{value}' is not a valid time. Use HH:MM in UTC, e.g. 09:00.",
        )
    return f"{hour:02d}:{minute:02d}"
