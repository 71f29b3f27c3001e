"""
Jsonia Runtime — Extension Registry

Named custom actions and callable methods owned by one runtime.

  - Custom actions are async callables handler(params) -> Any, invoked by a
    bare-string action or a {"type": "function", "name": ...} action.
  - Methods are {params, steps} definitions run by Runtime.call_method.

Component behaviors register under "component.name" and also under the bare
name when that name is still free. The first component to claim a bare name
keeps it.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from jsonia.runtime.models import MethodDefinition, parse_behavior

logger = logging.getLogger(__name__)

ActionHandler = Callable[[dict[str, Any]], Awaitable[Any]]
Executor = Callable[[Any, Any], Awaitable[Any]]


class ExtensionRegistry:
    """Custom actions and methods by name."""

    def __init__(self, execute: Executor) -> None:
        # execute(action_definition, event) runs a declarative action
        self._execute = execute
        self.actions: dict[str, ActionHandler] = {}
        self.methods: dict[str, MethodDefinition] = {}

    # -- actions ------------------------------------------------------------

    def register_action(self, name: str, handler: ActionHandler) -> None:
        """Install a custom action; replaces any earlier one of that name."""
        self.actions[name] = handler

    def get_action(self, name: str) -> ActionHandler | None:
        return self.actions.get(name)

    def has_action(self, name: str) -> bool:
        return name in self.actions

    def action_from_definition(self, definition: Any, label: str) -> ActionHandler:
        """Wrap a declarative action as a custom action handler."""

        async def _run(params: dict[str, Any] | None = None) -> Any:
            logger.debug("registry: running %s", label)
            event = (params or {}).get("event")
            return await self._execute(definition, event)

        return _run

    # -- methods ------------------------------------------------------------

    def register_method(self, name: str, definition: Any, overwrite: bool = True) -> bool:
        """Install a method definition. Returns False when skipped or malformed."""
        if not overwrite and name in self.methods:
            return False
        try:
            method = definition if isinstance(definition, MethodDefinition) else MethodDefinition.model_validate(definition)
        except ValidationError as e:
            logger.warning("registry: malformed method %s: %s", name, e)
            return False
        self.methods[name] = method
        return True

    def register_methods(self, definitions: Mapping[str, Any]) -> int:
        count = 0
        for name, definition in definitions.items():
            if self.register_method(name, definition):
                logger.info("registry: method %s registered", name)
                count += 1
        return count

    def get_method(self, name: str) -> MethodDefinition | None:
        return self.methods.get(name)

    # -- component behaviors ------------------------------------------------

    def register_component_methods(self, components: Iterable[Any]) -> int:
        count = 0
        for component_name, behavior in _behaviors(components):
            for method_name, definition in behavior.methods.items():
                self.register_method(f"{component_name}.{method_name}", definition)
                self.register_method(method_name, definition, overwrite=False)
                count += 1
        logger.info("registry: %d component methods registered", count)
        return count

    def register_component_actions(self, components: Iterable[Any]) -> int:
        count = 0
        for component_name, behavior in _behaviors(components):
            for action_name, definition in behavior.actions.items():
                qualified = f"{component_name}.{action_name}"
                handler = self.action_from_definition(definition, qualified)
                self.register_action(qualified, handler)
                if not self.has_action(action_name):
                    self.register_action(action_name, handler)
                count += 1
                logger.debug("registry: component action %s registered", qualified)
        if count:
            logger.info("registry: %d component actions registered", count)
        return count

    # -- extensions ---------------------------------------------------------

    def register_extensions(self, extensions: Any, skip_existing: bool = False) -> int:
        """Register extensions["actions"] as custom actions."""
        if not isinstance(extensions, Mapping):
            return 0
        actions = extensions.get("actions")
        if not isinstance(actions, Mapping):
            return 0
        count = 0
        for name, definition in actions.items():
            if skip_existing and self.has_action(name):
                logger.debug("registry: extension %s already registered", name)
                continue
            self.register_action(name, self.action_from_definition(definition, name))
            count += 1
        return count


def _behaviors(components: Iterable[Any]):
    for component in components or []:
        if not isinstance(component, Mapping):
            continue
        behavior = parse_behavior(component.get("behavior"))
        if behavior is None:
            continue
        yield component.get("name") or component.get("type") or "unknown", behavior
