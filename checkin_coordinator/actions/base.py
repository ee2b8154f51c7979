# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Action interface — one addressable command per inbound chat message.

validate(context) decides whether the action applies; handle(context,
callback) does the work and replies through the callback. Handlers never
raise: taxonomy errors become user-facing replies.
"""

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

from checkin_coordinator.core.logging import get_logger

logger = get_logger(__name__)

Callback = Callable[[str], Awaitable[None]]


@dataclass
class ActionContext:
    """An inbound chat message plus request-scoped state shared by redeliveries."""
    message_id: str
    text: str = ""
    server_id: Optional[str] = None
    server_name: Optional[str] = None
    user_id: Optional[str] = None
    user_name: Optional[str] = None
    source: str = "unknown"
    state: dict[str, Any] = field(default_factory=dict)

    @property
    def lowered(self) -> str:
        return self.text.lower()

    @property
    def member_ref(self) -> str:
        return self.user_name or self.user_id or "unknown"


def contains_any(text: str, keywords: list[str] | tuple[str, ...]) -> bool:
    return any(k in text for k in keywords)


class Action:
    name: str = ""
    description: str = ""
    similes: tuple[str, ...] = ()

    async def validate(self, context: ActionContext) -> bool:
        raise NotImplementedError

    async def handle(self, context: ActionContext, callback: Callback) -> bool:
        raise NotImplementedError

    def already_handled(self, context: ActionContext) -> bool:
        """Mark this message as handled; True if it was already marked."""
        key = f"{self.name}-{context.message_id}"
        if context.state.get(key):
            logger.info("Action %s already executed for message %s, skipping", self.name, context.message_id)
            return True
        context.state[key] = True
        return False

    def describe(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "similes": list(self.similes),
        }


class MessageStateCache:
    """Bounded map of message id -> request-scoped state, shared by redeliveries."""

    def __init__(self, max_size: int = 1000) -> None:
        self._max_size = max_size
        self._states: OrderedDict[str, dict[str, Any]] = OrderedDict()

    def get(self, message_id: str) -> dict[str, Any]:
        state = self._states.pop(message_id, None)
        if state is None:
            state = {}
        self._states[message_id] = state
        while len(self._states) > self._max_size:
            self._states.popitem(last=False)
        return state

    def clear(self) -> None:
        self._states.clear()


class ActionDispatcher:
    """Routes a message to a named action or the first action that validates."""

    def __init__(self, actions: list[Action]) -> None:
        self._actions: dict[str, Action] = {a.name: a for a in actions}

    @property
    def actions(self) -> list[Action]:
        return list(self._actions.values())

    def get(self, name: str) -> Optional[Action]:
        wanted = name.upper()
        for action in self._actions.values():
            if action.name == wanted or wanted in action.similes:
                return action
        return None

    async def select(self, context: ActionContext) -> Optional[Action]:
        for action in self._actions.values():
            if await action.validate(context):
                return action
        return None

    async def dispatch(
        self,
        context: ActionContext,
        callback: Callback,
        action_name: Optional[str] = None,
    ) -> tuple[Optional[str], bool]:
        """Return (action name, handled ok). (None, False) when nothing matched."""
        if action_name:
            action = self.get(action_name)
            if action is None:
                return None, False
        else:
            action = await self.select(context)
            if action is None:
                logger.info("No action matched message %s", context.message_id)
                return None, False
        logger.info("Dispatching message %s to %s", context.message_id, action.name)
        return action.name, await action.handle(context, callback)
