# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Team member registry endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException

from checkin_coordinator.core.dependencies import get_member_registry
from checkin_coordinator.core.errors import ValidationError
from checkin_coordinator.schemas.checkin import MemberCreateRequest, MemberResponse, SectionResponse
from checkin_coordinator.services.member_registry import MemberRegistry

router = APIRouter(prefix="/api/v1/servers/{server_id}", tags=["Members"])


@router.post("/members", status_code=201, response_model=MemberResponse)
async def add_member(
    server_id: str,
    payload: MemberCreateRequest,
    registry: MemberRegistry = Depends(get_member_registry),
):
    """Register a team member. Identical registrations are kept as separate entries."""
    try:
        member = await registry.add_member(
            server_id=server_id,
            section=payload.section,
            telegram_name=payload.telegram_name,
            discord_name=payload.discord_name,
            updates_format=payload.updates_format,
            server_name=payload.server_name,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.user_message)
    return member.model_dump(mode="json")


@router.get("/members", response_model=list[SectionResponse])
async def list_members(
    server_id: str,
    registry: MemberRegistry = Depends(get_member_registry),
):
    """List team members grouped by section."""
    return [
        {"section": section, "members": [m.model_dump(mode="json") for m in members]}
        for section, members in await registry.list_members(server_id)
    ]
