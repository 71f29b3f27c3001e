"""
Jsonia Runtime — Runtime

An explicit runtime instance owning everything a page needs:

    document      the HTML document actions read and mutate
    state         StateStore (plain + computed keys)
    dispatcher    ActionDispatcher (handler registry + core handlers)
    registry      ExtensionRegistry (custom actions, methods)
    events        EventBinder (delegated document listeners)
    renderer      TemplateRenderer (components, slots, palette)
    validators    FieldValidators
    apis          ApiRegistry
    host          Host (alerts, navigation, console output)

Typical use:

    rt = Runtime(Document(html))
    await rt.init(definition)
    await rt.document.fire("click", rt.document.query_selector("#save"))
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

import httpx

from jsonia.config import Settings
from jsonia.config import settings as default_settings
from jsonia.runtime.apis import ApiRegistry
from jsonia.runtime.components import ComponentResolver
from jsonia.runtime.dispatcher import ActionDispatcher
from jsonia.runtime.dom import Document, describe_node, set_text_content
from jsonia.runtime.events import EventBinder
from jsonia.runtime.expressions import (
    LOOSE_WHOLE_REF,
    Lookup,
    evaluate,
    interpolate,
    overlay,
    resolve_path,
    resolve_template,
)
from jsonia.runtime.handlers import Handler
from jsonia.runtime.models import RuntimeDefinition, parse_definition
from jsonia.runtime.registry import ActionHandler, ExtensionRegistry
from jsonia.runtime.renderer import TemplateRenderer
from jsonia.runtime.state import StateStore
from jsonia.runtime.types import UNDEFINED, FormValidationResult, ValidationResult
from jsonia.runtime.validation import FieldValidators

logger = logging.getLogger(__name__)


class Host:
    """
    The page's surroundings: what a browser window would do with alerts,
    navigation and console output. Records everything for inspection.
    """

    def __init__(self) -> None:
        self.alerts: list[str] = []
        self.location: str | None = None
        self.console: list[Any] = []

    def alert(self, message: str) -> None:
        logger.info("host: alert %r", message)
        self.alerts.append(message)

    def navigate(self, url: str) -> None:
        logger.info("host: navigate to %s", url)
        self.location = url

    def log(self, value: Any) -> None:
        self.console.append(value)


class Runtime:
    """Interprets a runtime definition against a document."""

    def __init__(
        self,
        document: Document | None = None,
        resolver: ComponentResolver | None = None,
        settings: Settings | None = None,
        host: Host | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings or default_settings
        self.document = document or Document()
        self.resolver = resolver or ComponentResolver(self.settings.project_dir, self.settings.shared_dirs)
        self.host = host or Host()

        self.state = StateStore(sink=self._display_state)
        self.registry = ExtensionRegistry(self.execute_action)
        self.dispatcher = ActionDispatcher(self)
        self.events = EventBinder(self)
        self.renderer = TemplateRenderer(self.document, self.resolver, self, self.settings.EDITOR_MODE)
        self.validators = FieldValidators()
        self.apis = ApiRegistry(
            http_client=http_client,
            timeout=self.settings.API_TIMEOUT,
            base_url=self.settings.API_BASE_URL,
        )
        self.definition: RuntimeDefinition | None = None

    # ---------------------------------------------------------------------------
    # Initialisation
    # ---------------------------------------------------------------------------

    async def init(self, definition: Any) -> RuntimeDefinition:
        """
        Load a runtime definition and run its initialization actions.
        Raises DefinitionError when the definition is not an object.
        """
        parsed = parse_definition(definition)
        self.definition = parsed

        self.state.replace(parsed.state)
        if parsed.computed:
            self.state.define_computed(parsed.computed)
        if parsed.apis:
            self.apis.define(parsed.apis)
        if parsed.validation:
            self.validators = FieldValidators.from_definition(parsed.validation)
        if parsed.events:
            self.bind_events(parsed.events)
        if parsed.methods:
            self.registry.register_methods(parsed.methods)

        logger.info("runtime: initialised")

        if parsed.initialization is None:
            logger.warning("runtime: definition has no initialization list")
            return parsed

        self.registry.register_extensions(parsed.state.get("extensions"))
        await self.execute_actions(parsed.initialization)
        # extensions loaded into state by the initialization actions
        self.registry.register_extensions(self.get_state("extensions"), skip_existing=True)
        logger.info("runtime: initialization actions complete")
        return parsed

    # ---------------------------------------------------------------------------
    # State and expressions
    # ---------------------------------------------------------------------------

    def get_state(self, key: str | None = None) -> Any:
        return self.state.get(key)

    def set_state(self, key: str | Mapping[str, Any], value: Any = None) -> None:
        self.state.set(key, value)

    def lookup(self, event: Any = None, params: Mapping[str, Any] | None = None) -> Lookup:
        """State lookup, with {{event...}} and call params visible when given."""
        bindings: dict[str, Any] = dict(params or {})
        if event is not None:
            bindings["event"] = event
        if not bindings:
            return self.state.lookup
        return overlay(self.state.lookup, bindings)

    def evaluate(self, expr: Any, event: Any = None) -> Any:
        return evaluate(expr, self.lookup(event))

    def resolve_template(self, template: Any, params: Mapping[str, Any] | None = None, event: Any = None) -> Any:
        return resolve_template(template, self.lookup(event, params))

    def resolve_value(self, value: Any, event: Any = None) -> Any:
        """
        {{path}} → the value at path; any other string → the first element
        matching it as a CSS selector; anything else unchanged.
        """
        if not isinstance(value, str):
            return value
        match = LOOSE_WHOLE_REF.match(value)
        if match:
            resolved = resolve_path(match.group(1), self.lookup(event))
            return None if resolved is UNDEFINED else resolved
        selector = interpolate(value, self.lookup(event)) if "{{" in value else value
        return self.document.query_selector(selector)

    # ---------------------------------------------------------------------------
    # Actions
    # ---------------------------------------------------------------------------

    async def execute_action(self, action: Any, event: Any = None) -> Any:
        return await self.dispatcher.execute_action(action, event)

    async def execute_actions(self, actions: Any, event: Any = None) -> None:
        await self.dispatcher.execute_actions(actions, event)

    def register_action(self, name: str, handler: ActionHandler) -> None:
        self.registry.register_action(name, handler)

    def register_action_handler(self, action_type: str, handler: Handler) -> None:
        self.dispatcher.register_handler(action_type, handler)

    async def call_method(self, name: str, params: Mapping[str, Any] | None = None) -> None:
        """
        Run a registered method. Declared params present in params are bound
        in state while the steps run, and restored afterwards.
        """
        method = self.registry.get_method(name)
        if method is None:
            logger.error("runtime: method not found: %s", name)
            return None

        given = params or {}
        staged = {p: given[p] for p in method.params if p in given}
        logger.info("runtime: calling method %s", name)
        with self.state.scoped(staged):
            await self.execute_actions(method.steps)
        return None

    # ---------------------------------------------------------------------------
    # Validation
    # ---------------------------------------------------------------------------

    def validate(self, field: str | None, value: Any) -> ValidationResult:
        if not field:
            return ValidationResult(valid=True)
        return self.validators.validate(field, value)

    def validate_all(self, data: Mapping[str, Any]) -> FormValidationResult:
        return self.validators.validate_all(data)

    # ---------------------------------------------------------------------------
    # Rendering and events
    # ---------------------------------------------------------------------------

    def render_component(self, component_def: dict[str, Any], children: list[Any] | None = None) -> Any:
        return self.renderer.render(component_def, children)

    def insert_into_slot(self, container: Any, children: Any, slot_name: str = "children") -> bool:
        return self.renderer.insert_into_slot(container, children, slot_name)

    def find_slot(self, element: Any, slot_name: str = "children") -> Any:
        return self.renderer.find_slot(element, slot_name)

    def build_tree_html(self, element: Any, level: int = 0, options: dict[str, Any] | None = None) -> str:
        return self.renderer.build_tree_html(element, level, options)

    def bind_events(self, descriptors: Any) -> None:
        self.events.bind(descriptors)

    def add_event_listener(self, selector: str, event_type: str, actions: list[Any]) -> int:
        """Bind actions directly to the elements matching selector now. Returns the count."""
        elements = self.document.query_selector_all(selector)

        async def listener(event: Any) -> None:
            await self.execute_actions(actions, event)

        for element in elements:
            self.document.add_event_listener(event_type, listener, element)
        return len(elements)

    # ---------------------------------------------------------------------------
    # Diagnostics
    # ---------------------------------------------------------------------------

    def debug(self) -> dict[str, Any]:
        info = {
            "state": self.state.snapshot(),
            "computed": self.state.computed,
            "apis": self.apis.names,
            "events": [d.model_dump(exclude_none=True) for d in self.events.descriptors],
            "validators": list(self.validators.rules),
            "methods": list(self.registry.methods),
            "actions": list(self.registry.actions),
        }
        logger.info("runtime: debug %s", _to_json(info))
        return info

    def _display_state(self, state: dict[str, Any]) -> None:
        element = self.document.get_element_by_id(self.settings.STATE_DISPLAY_ID)
        if element is not None:
            set_text_content(element, _to_json(state))


def _to_json(value: Any) -> str:
    # elements and other non-JSON values are shown as <tag#id.class> labels
    return json.dumps(value, indent=2, ensure_ascii=False, default=describe_node)
