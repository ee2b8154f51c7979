# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Domain models — pure data structures, NO FastAPI dependency.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class CheckInType(str, Enum):
    STANDUP = "STANDUP"
    SPRINT = "SPRINT"
    MENTAL_HEALTH = "MENTAL_HEALTH"
    PROJECT_STATUS = "PROJECT_STATUS"
    RETRO = "RETRO"


CHECK_IN_TYPE_LABELS: dict[CheckInType, str] = {
    CheckInType.STANDUP: "Daily Standup",
    CheckInType.SPRINT: "Sprint Check-in",
    CheckInType.MENTAL_HEALTH: "Mental Health Check-in",
    CheckInType.PROJECT_STATUS: "Project Status Update",
    CheckInType.RETRO: "Team Retrospective",
}


class Frequency(str, Enum):
    DAILY = "DAILY"
    WEEKDAYS = "WEEKDAYS"
    WEEKLY = "WEEKLY"
    BI_WEEKLY = "BI_WEEKLY"
    MONTHLY = "MONTHLY"


class UpdateKind(str, Enum):
    CHECK_IN_CONFIG = "check-in-config"
    STATUS_UPDATE = "status-update"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TeamMember(BaseModel):
    """A registered team member, grouped by section."""
    section: str = Field(..., min_length=1, max_length=255)
    telegram_name: Optional[str] = None
    discord_name: Optional[str] = None
    updates_format: list[str] = Field(default_factory=list)
    server_id: str = Field(..., min_length=1)
    server_name: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def _require_handle(self) -> "TeamMember":
        if not (self.telegram_name or self.discord_name):
            raise ValueError("At least one platform handle is required")
        return self

    @property
    def platform_handle(self) -> str:
        return self.telegram_name or self.discord_name or ""


class CheckInSchedule(BaseModel):
    """A recurring check-in. Immutable once stored."""
    schedule_id: str
    check_in_type: CheckInType
    channel_id: str = Field(..., min_length=1)
    frequency: Frequency
    check_in_time: str = Field(..., pattern=TIME_PATTERN, description="HH:MM, UTC")
    server_id: str = Field(..., min_length=1)
    source: str = "unknown"
    created_at: datetime = Field(default_factory=utcnow)
    team_member_id: Optional[str] = None

    model_config = {"frozen": True}


class ReportChannelConfig(BaseModel):
    server_id: Optional[str] = None
    server_name: Optional[str] = None
    channel_id: str
    source: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)


class UpdateRecord(BaseModel):
    update_id: str
    kind: UpdateKind = UpdateKind.STATUS_UPDATE
    member_ref: str
    schedule_id: Optional[str] = None
    raw_text: str
    extracted_fields: dict[str, str] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=utcnow)
    server_id: str


class ReportWindow(BaseModel):
    start: datetime
    end: datetime

    @field_validator("start", "end")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        # naive bounds are read as UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @model_validator(mode="after")
    def _ordered(self) -> "ReportWindow":
        if self.start >= self.end:
            raise ValueError("Report window start must be before its end")
        return self

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


class Channel(BaseModel):
    id: str
    name: str
    is_text: bool = True


class Task(BaseModel):
    """Periodic task descriptor owned by the host task subsystem."""
    id: str
    name: str
    tags: list[str] = Field(default_factory=list)
    interval_millis: int
    last_run_at: Optional[datetime] = None
