"""
Core action handlers.

These are the variants the dispatcher handles after the handler registry:
state writes, simple DOM updates by selector, host interaction (alert,
navigate, console), the named-API call, form validation and control flow.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from jsonia.runtime.dom import (
    DomEvent,
    add_class,
    closest,
    element_property,
    form_data,
    is_element,
    remove_class,
    set_attribute,
    set_text_content,
    toggle_class,
)
from jsonia.runtime.expressions import truthy
from jsonia.runtime.handlers.base import missing, resolve_text, store_result

if TYPE_CHECKING:
    from jsonia.runtime.runtime import Runtime

logger = logging.getLogger(__name__)
console_logger = logging.getLogger("jsonia.console")


async def _handle_alert(rt: Runtime, action: dict, event: Any) -> None:
    rt.host.alert(resolve_text(rt, action.get("message"), event))


async def _handle_set_state(rt: Runtime, action: dict, event: Any) -> None:
    rt.set_state(action["key"], rt.evaluate(action.get("value"), event))


async def _handle_update_dom(rt: Runtime, action: dict, event: Any) -> None:
    target = rt.document.query_selector(resolve_text(rt, action.get("target"), event))
    if target is None:
        missing(action, "target")
        return
    content = resolve_text(rt, action.get("content"), event)
    if action.get("attribute"):
        set_attribute(target, action["attribute"], content)
    else:
        set_text_content(target, content)


def _class_handler(apply):
    async def _handle(rt: Runtime, action: dict, event: Any) -> None:
        for element in rt.document.query_selector_all(resolve_text(rt, action.get("target"), event)):
            apply(element, action["className"])

    return _handle


_handle_add_class = _class_handler(add_class)
_handle_remove_class = _class_handler(remove_class)
_handle_toggle_class = _class_handler(toggle_class)


async def _handle_navigate(rt: Runtime, action: dict, event: Any) -> None:
    rt.host.navigate(resolve_text(rt, action.get("url"), event))


async def _handle_api(rt: Runtime, action: dict, event: Any) -> Any:
    name = action["name"]
    if name not in rt.apis:
        logger.warning("api: unknown API %s", name)
        return None
    params = rt.resolve_template(action.get("params") or {}, event=event)
    result = await rt.apis.call(name, params, rt.lookup(event))

    if result.success and action.get("onSuccess"):
        await rt.execute_actions(action["onSuccess"], event)
    if not result.success and action.get("onError"):
        await rt.execute_actions(action["onError"], event)
    if action.get("storeIn"):
        rt.set_state(action["storeIn"], result.data)
    return result


async def _handle_validate(rt: Runtime, action: dict, event: Any) -> Any:
    target = getattr(event, "target", None)
    if not is_element(target):
        return None
    field = target.get("name") or action.get("field")
    result = rt.validate(field, element_property(target, "value"))

    if action.get("errorTarget"):
        error_element = rt.document.query_selector(action["errorTarget"])
        if error_element is not None:
            set_text_content(error_element, ", ".join(result.errors))
            if result.valid:
                add_class(error_element, "hidden")
            else:
                remove_class(error_element, "hidden")
    return store_result(rt, action, result.to_dict())


async def _handle_submit(rt: Runtime, action: dict, event: Any) -> Any:
    if event is None:
        return None
    event.prevent_default()
    form = closest(getattr(event, "target", None), "form")
    if form is None:
        return None
    result = rt.validate_all(form_data(form))
    branch = action.get("onValid") if result.valid else action.get("onInvalid")
    if branch:
        await rt.execute_actions(branch, event)
    return store_result(rt, action, result.to_dict())


async def _handle_console(rt: Runtime, action: dict, event: Any) -> None:
    if "value" in action:
        value = rt.resolve_value(action["value"], event)
    else:
        value = resolve_text(rt, action.get("message"), event)
    rt.host.log(value)
    console_logger.info("%s", value)


async def _handle_if(rt: Runtime, action: dict, event: Any) -> None:
    if truthy(rt.evaluate(action["condition"], event)):
        await rt.execute_actions(action["then"], event)
    elif action.get("else"):
        await rt.execute_actions(action["else"], event)


async def _handle_function(rt: Runtime, action: dict, event: Any) -> Any:
    name = action["name"]
    handler = rt.registry.get_action(name)
    if handler is None:
        logger.warning("function: no registered action %s", name)
        return None
    return await handler({**(action.get("params") or {}), "event": event})


async def _handle_emit(rt: Runtime, action: dict, event: Any) -> None:
    detail = rt.evaluate(action.get("data"), event)
    await rt.document.dispatch_event(DomEvent(type=action["name"], detail=detail))


async def _handle_sequence(rt: Runtime, action: dict, event: Any) -> None:
    for step in action.get("steps") or []:
        await rt.execute_action(step, event)


async def _handle_register_extensions(rt: Runtime, action: dict, event: Any) -> int:
    return rt.registry.register_extensions(rt.get_state("extensions"), skip_existing=True)


CORE_HANDLERS = {
    "alert": _handle_alert,
    "setState": _handle_set_state,
    "updateDOM": _handle_update_dom,
    "addClass": _handle_add_class,
    "removeClass": _handle_remove_class,
    "toggleClass": _handle_toggle_class,
    "navigate": _handle_navigate,
    "api": _handle_api,
    "validate": _handle_validate,
    "submit": _handle_submit,
    "console": _handle_console,
    "if": _handle_if,
    "function": _handle_function,
    "emit": _handle_emit,
    "sequence": _handle_sequence,
    "registerExtensions": _handle_register_extensions,
}
