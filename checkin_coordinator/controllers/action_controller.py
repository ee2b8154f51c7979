# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: Inbound chat messages, action catalogue and on-demand job ticks.
"""

from fastapi import APIRouter, Depends

from checkin_coordinator.actions.base import ActionContext, ActionDispatcher, MessageStateCache
from checkin_coordinator.core.dependencies import get_dispatcher, get_job_runner, get_message_states
from checkin_coordinator.schemas.checkin import MessageRequest, MessageResponse
from checkin_coordinator.services.job_runner import JobRunner

router = APIRouter(prefix="/api/v1", tags=["Actions"])


@router.post("/messages", response_model=MessageResponse)
async def handle_message(
    payload: MessageRequest,
    dispatcher: ActionDispatcher = Depends(get_dispatcher),
    states: MessageStateCache = Depends(get_message_states),
):
    """Route a chat message to the named action, or the first action that accepts it."""
    replies: list[str] = []

    async def callback(text: str) -> None:
        replies.append(text)

    context = ActionContext(
        message_id=payload.message_id,
        text=payload.text,
        server_id=payload.server_id,
        server_name=payload.server_name,
        user_id=payload.user_id,
        user_name=payload.user_name,
        source=payload.source,
        state=states.get(payload.message_id),
    )
    name, handled = await dispatcher.dispatch(context, callback, action_name=payload.action)
    return {"action": name, "handled": handled, "replies": replies}


@router.get("/actions")
def list_actions(dispatcher: ActionDispatcher = Depends(get_dispatcher)):
    """List the addressable actions in matching order."""
    return [action.describe() for action in dispatcher.actions]


@router.post("/jobs/tick")
async def run_tick(runner: JobRunner = Depends(get_job_runner)):
    """Run one reminder tick now. Skipped if a tick is already running."""
    stats = await runner.execute({"trigger": "api"})
    if stats is None:
        return {"status": "skipped"}
    return {"status": "ran", **stats}
