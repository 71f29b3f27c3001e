"""
Jsonia Runtime — Action Dispatcher

(action, event) → result

Dispatch order for one action:
  1. A bare string names a registered custom action; it is called with
     {"event": event}. Unknown names are logged and ignored.
  2. Structurally invalid actions are logged and ignored.
  3. action["type"] in the handler registry (built-ins + register_handler).
  4. action["type"] among the core handlers.
  5. Anything else is logged and ignored.

execute_actions runs a list in order, awaiting each action. A failing
action is logged and the rest of the list still runs.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from jsonia.runtime.action_schema import validate_action
from jsonia.runtime.handlers import BUILTIN_HANDLERS, CORE_HANDLERS, Handler

if TYPE_CHECKING:
    from jsonia.runtime.runtime import Runtime

logger = logging.getLogger(__name__)


class ActionDispatcher:
    """Routes actions to handlers for one runtime."""

    def __init__(self, runtime: Runtime) -> None:
        self.runtime = runtime
        self.handlers: dict[str, Handler] = dict(BUILTIN_HANDLERS)

    def register_handler(self, action_type: str, handler: Handler) -> None:
        """Install or replace the handler for an action type."""
        self.handlers[action_type] = handler

    def handles(self, action_type: str) -> bool:
        return action_type in self.handlers or action_type in CORE_HANDLERS

    async def execute_action(self, action: Any, event: Any = None) -> Any:
        if isinstance(action, str):
            custom = self.runtime.registry.get_action(action)
            if custom is None:
                logger.warning("dispatcher: unknown custom action %s", action)
                return None
            return await custom({"event": event})

        errors = validate_action(action)
        if errors:
            logger.warning("dispatcher: invalid action %r: %s", _describe(action), "; ".join(errors))
            return None

        action_type = action["type"]
        handler = self.handlers.get(action_type) or CORE_HANDLERS.get(action_type)
        if handler is None:
            logger.warning("dispatcher: unknown action type %s", action_type)
            return None
        return await handler(self.runtime, action, event)

    async def execute_actions(self, actions: Iterable[Any] | None, event: Any = None) -> None:
        if actions is None:
            return
        if not isinstance(actions, list):
            logger.warning("dispatcher: expected a list of actions, got %s", type(actions).__name__)
            return
        for action in actions:
            try:
                await self.execute_action(action, event)
            except Exception:
                logger.exception("dispatcher: action %r failed", _describe(action))


def _describe(action: Any) -> str:
    if isinstance(action, dict):
        return str(action.get("type", "<untyped>"))
    return repr(action)
