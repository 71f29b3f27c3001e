"""DOM action handlers: selection, creation and mutation of document elements."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from jsonia.runtime.dom import (
    DomEvent,
    add_class,
    append_child,
    contains,
    is_element,
    remove_attribute,
    remove_class,
    remove_node,
    select_one,
    set_attribute,
    set_inner_html,
    set_text_content,
    toggle_class,
)
from jsonia.runtime.handlers.base import (
    missing,
    resolve_element,
    resolve_elements,
    resolve_text,
    store_result,
)
from jsonia.runtime.types import DEFAULT_SLOT

if TYPE_CHECKING:
    from jsonia.runtime.runtime import Runtime

logger = logging.getLogger(__name__)


async def _handle_select(rt: Runtime, action: dict, event: Any) -> Any:
    selector = resolve_text(rt, action.get("selector"), event)
    return store_result(rt, action, rt.document.query_selector(selector))


async def _handle_select_all(rt: Runtime, action: dict, event: Any) -> Any:
    selector = resolve_text(rt, action.get("selector"), event)
    return store_result(rt, action, rt.document.query_selector_all(selector))


async def _handle_create_element(rt: Runtime, action: dict, event: Any) -> Any:
    element = rt.document.create_element(action.get("tag") or "div", action.get("attributes"))
    if action.get("text"):
        set_text_content(element, resolve_text(rt, action["text"], event))
    return store_result(rt, action, element)


async def _handle_set_inner_html(rt: Runtime, action: dict, event: Any) -> None:
    target = resolve_element(rt, action.get("target"), event)
    if target is None:
        missing(action, "target")
        return
    set_inner_html(target, resolve_text(rt, action.get("value"), event))


async def _handle_set_text_content(rt: Runtime, action: dict, event: Any) -> None:
    target = resolve_element(rt, action.get("target"), event)
    if target is None:
        missing(action, "target")
        return
    set_text_content(target, resolve_text(rt, action.get("value"), event))


async def _handle_set_attribute(rt: Runtime, action: dict, event: Any) -> None:
    target = resolve_element(rt, action.get("target"), event)
    if target is None:
        missing(action, "target")
        return
    name = action["name"]
    value = resolve_text(rt, action.get("value", ""), event)
    # an empty style clears inline styling entirely
    if name == "style" and not value.strip():
        remove_attribute(target, "style")
        return
    set_attribute(target, name, value)


def _class_handler(apply):
    async def _handle(rt: Runtime, action: dict, event: Any) -> None:
        targets = resolve_elements(rt, action.get("target"), event)
        if not targets:
            missing(action, "target")
            return
        for element in targets:
            apply(element, action["className"])

    return _handle


_handle_add_class = _class_handler(add_class)
_handle_remove_class = _class_handler(remove_class)
_handle_toggle_class = _class_handler(toggle_class)


async def _handle_append_child(rt: Runtime, action: dict, event: Any) -> None:
    parent = resolve_element(rt, action.get("parent"), event)
    child = rt.resolve_value(action.get("child"), event)
    if parent is None or child is None:
        missing(action, "parent" if parent is None else "child")
        return
    if is_element(child) and contains(child, parent):
        logger.warning("dom.appendChild: cannot append an element into itself")
        return
    append_child(parent, child)


async def _handle_insert_into_slot(rt: Runtime, action: dict, event: Any) -> bool:
    container = resolve_element(rt, action.get("container"), event)
    children = rt.resolve_value(action.get("children"), event)
    if container is None or not children:
        return False
    inserted = rt.insert_into_slot(container, children, action.get("slotName") or DEFAULT_SLOT)
    return store_result(rt, action, inserted)


async def _handle_remove_child(rt: Runtime, action: dict, event: Any) -> None:
    parent = resolve_element(rt, action.get("parent"), event)
    child = rt.resolve_value(action.get("child"), event)
    if parent is None or child is None:
        missing(action, "parent" if parent is None else "child")
        return
    if getattr(child, "parent", None) is not parent:
        logger.warning("dom.removeChild: node is not a child of the given parent")
        return
    remove_node(child)


async def _handle_remove(rt: Runtime, action: dict, event: Any) -> None:
    target = resolve_element(rt, action.get("target"), event)
    if target is None:
        missing(action, "target")
        return
    remove_node(target)


async def _handle_remove_inner_drop_zone(rt: Runtime, action: dict, event: Any) -> None:
    parent = resolve_element(rt, action.get("parent"), event)
    if parent is None:
        return
    placeholder = select_one(parent, ".inner-drop-zone")
    if placeholder is not None:
        remove_node(placeholder)
        logger.debug("dom.removeInnerDropZone: removed placeholder")


async def _handle_stop_propagation(rt: Runtime, action: dict, event: Any) -> None:
    if event is not None:
        event.stop_propagation()


async def _handle_prevent_default(rt: Runtime, action: dict, event: Any) -> None:
    if event is not None:
        event.prevent_default()


async def _handle_add_event_listener(rt: Runtime, action: dict, event: Any) -> None:
    target = resolve_element(rt, action.get("target"), event)
    if target is None:
        missing(action, "target")
        return
    actions = action["actions"]

    async def listener(e: DomEvent) -> None:
        await rt.execute_actions(actions, e)

    rt.document.add_event_listener(action["event"], listener, target)


async def _handle_create_from_html(rt: Runtime, action: dict, event: Any) -> Any:
    nodes = rt.document.parse_fragment(resolve_text(rt, action.get("html"), event))
    # first node, as a template element's firstChild would be
    return store_result(rt, action, nodes[0] if nodes else None)


async def _handle_build_tree(rt: Runtime, action: dict, event: Any) -> str:
    root = resolve_element(rt, action.get("root"), event)
    html = rt.build_tree_html(root, action.get("level") or 0, action.get("options") or {})
    return store_result(rt, action, html)


DOM_HANDLERS = {
    "dom.select": _handle_select,
    "dom.selectAll": _handle_select_all,
    "dom.createElement": _handle_create_element,
    "dom.setInnerHTML": _handle_set_inner_html,
    "dom.setTextContent": _handle_set_text_content,
    "dom.setAttribute": _handle_set_attribute,
    "dom.addClass": _handle_add_class,
    "dom.removeClass": _handle_remove_class,
    "dom.toggleClass": _handle_toggle_class,
    "dom.appendChild": _handle_append_child,
    "dom.insertIntoSlot": _handle_insert_into_slot,
    "dom.removeChild": _handle_remove_child,
    "dom.remove": _handle_remove,
    "dom.removeInnerDropZone": _handle_remove_inner_drop_zone,
    "dom.stopPropagation": _handle_stop_propagation,
    "dom.preventDefault": _handle_prevent_default,
    "dom.addEventListener": _handle_add_event_listener,
    "dom.createFromHTML": _handle_create_from_html,
    "dom.buildTree": _handle_build_tree,
}
