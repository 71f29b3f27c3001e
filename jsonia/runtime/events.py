"""
Jsonia Runtime — Event Delegation

One listener per event type at the document root, however many descriptors
use that type and however often bind() is called. When an event fires, each
descriptor of that type looks for the nearest inclusive ancestor of the
event target matching its selector, and runs its actions with a
DelegatedEvent whose current_target is that element.

Elements added after binding are handled without new listeners.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from jsonia.runtime.dom import DomEvent, closest, describe_node
from jsonia.runtime.models import EventDescriptor
from jsonia.runtime.types import DROP_EVENT_TYPES, FREQUENT_EVENT_TYPES

if TYPE_CHECKING:
    from jsonia.runtime.runtime import Runtime

logger = logging.getLogger(__name__)


class DelegatedEvent:
    """
    View of a dispatched event as seen by one delegated descriptor.

    current_target is the element the descriptor's selector matched; every
    other attribute and method passes through to the original event.
    """

    def __init__(self, matched_element: Any, original_event: DomEvent) -> None:
        self.matched_element = matched_element
        self.original_event = original_event

    @property
    def current_target(self) -> Any:
        return self.matched_element

    @property
    def type(self) -> str:
        return self.original_event.type

    @property
    def target(self) -> Any:
        return self.original_event.target

    @property
    def detail(self) -> Any:
        return self.original_event.detail

    @property
    def data_transfer(self) -> Any:
        return self.original_event.data_transfer

    @property
    def related_target(self) -> Any:
        return self.original_event.related_target

    @property
    def default_prevented(self) -> bool:
        return self.original_event.default_prevented

    def prevent_default(self) -> None:
        self.original_event.prevent_default()

    def stop_propagation(self) -> None:
        self.original_event.stop_propagation()

    def stop_immediate_propagation(self) -> None:
        self.original_event.stop_immediate_propagation()

    def __repr__(self) -> str:
        return f"DelegatedEvent({self.type!r}, {describe_node(self.matched_element)})"


class EventBinder:
    """Delegated event bindings for one runtime."""

    def __init__(self, runtime: Runtime) -> None:
        self.runtime = runtime
        self.descriptors: list[EventDescriptor] = []
        # event type -> the document listener installed for it
        self._listeners: dict[str, Any] = {}

    @property
    def bound_types(self) -> list[str]:
        return list(self._listeners)

    def bind(self, descriptors: Iterable[Any]) -> None:
        """
        Replace the descriptor set. A document listener is added only for
        event types that have none yet.
        """
        parsed: list[EventDescriptor] = []
        for raw in descriptors or []:
            try:
                parsed.append(raw if isinstance(raw, EventDescriptor) else EventDescriptor.model_validate(raw))
            except ValidationError as e:
                logger.warning("events: skipping malformed descriptor %r: %s", raw, e)
        self.descriptors = parsed

        for descriptor in parsed:
            if descriptor.type in self._listeners:
                continue
            listener = functools.partial(self._on_event, descriptor.type)
            self._listeners[descriptor.type] = listener
            self.runtime.document.add_event_listener(descriptor.type, listener)

    def unbind(self) -> None:
        for event_type, listener in self._listeners.items():
            self.runtime.document.remove_event_listener(event_type, listener)
        self._listeners.clear()
        self.descriptors = []

    async def _on_event(self, event_type: str, event: DomEvent) -> None:
        if event_type in DROP_EVENT_TYPES:
            event.prevent_default()

        for descriptor in [d for d in self.descriptors if d.type == event_type]:
            try:
                matched = closest(event.target, descriptor.target)
                if matched is None:
                    continue
                if event_type not in FREQUENT_EVENT_TYPES:
                    logger.debug("events: %s on %s (%s)", event_type, descriptor.target, describe_node(matched))

                delegated = DelegatedEvent(matched, event)
                if descriptor.actions is not None:
                    await self.runtime.execute_actions(descriptor.actions, delegated)
                elif descriptor.action:
                    await self.runtime.execute_actions([{"type": "function", "name": descriptor.action}], delegated)
            except Exception:
                logger.exception("events: delegated %s handler for %s failed", event_type, descriptor.target)
