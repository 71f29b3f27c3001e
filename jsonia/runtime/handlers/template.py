"""Template rendering, component palette and component registration handlers."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from jsonia.runtime.handlers.base import resolve_text, store_result

if TYPE_CHECKING:
    from jsonia.runtime.runtime import Runtime

logger = logging.getLogger(__name__)


async def _handle_render_from_json(rt: Runtime, action: dict, event: Any) -> Any:
    template = rt.resolve_value(action.get("template"), event)
    if not isinstance(template, dict):
        logger.warning("template.renderFromJSON: template is not an object (%r)", action.get("template"))
        return None
    children = rt.resolve_value(action["children"], event) if action.get("children") else None
    element = rt.render_component(template, children if isinstance(children, list) else None)
    return store_result(rt, action, element)


async def _handle_render_list(rt: Runtime, action: dict, event: Any) -> Any:
    components = rt.resolve_value(action.get("components"), event)
    icon_map = rt.resolve_value(action.get("iconMap"), event) if action.get("iconMap") else None
    category = rt.renderer.create_component_category(
        resolve_text(rt, action.get("categoryName") or "", event),
        components,
        icon_map if isinstance(icon_map, dict) else None,
        bool(action.get("isShared")),
    )
    return store_result(rt, action, category)


async def _handle_component_method(rt: Runtime, action: dict, event: Any) -> Any:
    name = resolve_text(rt, action.get("method"), event)
    params = {key: rt.resolve_value(value, event) for key, value in (action.get("params") or {}).items()}
    result = await rt.call_method(name, params)
    return store_result(rt, action, result)


async def _handle_register_component_methods(rt: Runtime, action: dict, event: Any) -> int:
    components = rt.resolve_value(action.get("components"), event)
    if not isinstance(components, list):
        logger.warning("registerComponentMethods: components is not a list (%r)", action.get("components"))
        return 0
    return store_result(rt, action, rt.registry.register_component_methods(components))


async def _handle_register_component_actions(rt: Runtime, action: dict, event: Any) -> int:
    components = rt.resolve_value(action.get("components"), event)
    if not isinstance(components, list):
        logger.warning("registerComponentActions: components is not a list (%r)", action.get("components"))
        return 0
    return store_result(rt, action, rt.registry.register_component_actions(components))


TEMPLATE_HANDLERS = {
    "template.renderFromJSON": _handle_render_from_json,
    "component.renderList": _handle_render_list,
    "component.method": _handle_component_method,
    "registerComponentMethods": _handle_register_component_methods,
    "registerComponentActions": _handle_register_component_actions,
}
