# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Request / Response schemas — API contract definitions.
These are Pydantic models used ONLY at the controller (HTTP) boundary.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


# ── Schedule Schemas ──

class ScheduleCreateRequest(BaseModel):
    check_in_type: str = Field(default="STANDUP", description="Check-in type or its label")
    channel_id: str = Field(..., min_length=1, description="Channel reminders are posted to")
    frequency: str = Field(default="WEEKLY", description="DAILY, WEEKDAYS, WEEKLY, BI_WEEKLY or MONTHLY")
    check_in_time: str = Field(..., description="HH:MM in UTC")
    source: str = "api"
    team_member_id: Optional[str] = None


class ScheduleCreatedResponse(BaseModel):
    schedule_id: str
    server_id: str


class ScheduleResponse(BaseModel):
    schedule_id: str
    check_in_type: str
    channel_id: str
    frequency: str
    check_in_time: str
    server_id: str
    source: str
    created_at: datetime
    team_member_id: Optional[str] = None


# ── Report Channel Schemas ──

class ReportChannelRequest(BaseModel):
    channel_id: str = Field(..., min_length=1)
    server_name: Optional[str] = None
    source: str = "api"


class ReportChannelResponse(BaseModel):
    server_id: Optional[str] = None
    server_name: Optional[str] = None
    channel_id: str
    source: Optional[str] = None
    created_at: datetime


# ── Member Schemas ──

class MemberCreateRequest(BaseModel):
    section: str = Field(default="", max_length=255)
    telegram_name: Optional[str] = None
    discord_name: Optional[str] = None
    updates_format: list[str] = Field(default_factory=list)
    server_name: Optional[str] = None


class MemberResponse(BaseModel):
    section: str
    telegram_name: Optional[str] = None
    discord_name: Optional[str] = None
    updates_format: list[str]
    server_id: str
    server_name: Optional[str] = None
    created_at: datetime


class SectionResponse(BaseModel):
    section: str
    members: list[MemberResponse]


# ── Update / Report Schemas ──

class UpdateSubmitRequest(BaseModel):
    member_ref: str = Field(..., min_length=1)
    text: str = ""
    updates_format: Optional[list[str]] = None
    schedule_id: Optional[str] = None


class UpdateSubmitResponse(BaseModel):
    accepted: bool
    update_id: Optional[str] = None
    fields: dict[str, str] = Field(default_factory=dict)
    guidance: Optional[str] = None


class ReportRequest(BaseModel):
    start: Optional[datetime] = None
    end: Optional[datetime] = None


# ── Message / Action Schemas ──

class MessageRequest(BaseModel):
    message_id: str = Field(..., min_length=1)
    text: str = ""
    server_id: Optional[str] = None
    server_name: Optional[str] = None
    user_id: Optional[str] = None
    user_name: Optional[str] = None
    source: str = "discord"
    action: Optional[str] = Field(default=None, description="Dispatch to this action by name")


class MessageResponse(BaseModel):
    action: Optional[str] = None
    handled: bool
    replies: list[str] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    error: str
    detail: Optional[str] = None
    request_id: Optional[str] = None
