"""
Array, object and string action handlers.

The array handlers bind the current element to a named state key (and the
position to an optional index key) while the nested actions run. The
binding is scoped: afterwards the key goes back to its previous value, or
is removed if it did not exist.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from jsonia.runtime.expressions import to_js_string, truthy
from jsonia.runtime.handlers.base import resolve_text, store_result
from jsonia.runtime.types import UNDEFINED

if TYPE_CHECKING:
    from jsonia.runtime.runtime import Runtime


def _bindings(action: dict, item: Any, index: int) -> dict[str, Any]:
    bindings = {action["item"]: item}
    if action.get("index"):
        bindings[action["index"]] = index
    return bindings


# ---------------------------------------------------------------------------
# Arrays
# ---------------------------------------------------------------------------


async def _handle_for_each(rt: Runtime, action: dict, event: Any) -> None:
    items = rt.resolve_value(action.get("array"), event)
    if not isinstance(items, list):
        return
    # iterate over a copy; the body may replace the list in state
    for index, item in enumerate(list(items)):
        with rt.state.scoped(_bindings(action, item, index)):
            await rt.execute_actions(action["do"], event)


async def _handle_map(rt: Runtime, action: dict, event: Any) -> Any:
    items = rt.resolve_value(action.get("array"), event)
    if not isinstance(items, list):
        return None
    result: list[Any] = []
    for index, item in enumerate(list(items)):
        with rt.state.scoped(_bindings(action, item, index)):
            if "value" in action:
                mapped = rt.evaluate(action["value"], event)
            else:
                await rt.execute_actions(action.get("do") or [], event)
                mapped = rt.get_state(action["output"]) if action.get("output") else None
            result.append(mapped)
    return store_result(rt, action, result, "storeIn")


async def _handle_filter(rt: Runtime, action: dict, event: Any) -> Any:
    items = rt.resolve_value(action.get("array"), event)
    if not isinstance(items, list):
        return None
    result: list[Any] = []
    for index, item in enumerate(list(items)):
        with rt.state.scoped(_bindings(action, item, index)):
            if truthy(rt.evaluate(action["condition"], event)):
                result.append(item)
    return store_result(rt, action, result, "storeIn", "output")


async def _handle_length(rt: Runtime, action: dict, event: Any) -> int:
    items = rt.resolve_value(action.get("array"), event)
    length = len(items) if isinstance(items, list) else 0
    return store_result(rt, action, length, "output", "storeIn")


# ---------------------------------------------------------------------------
# Objects
# ---------------------------------------------------------------------------


async def _handle_object_set(rt: Runtime, action: dict, event: Any) -> Any:
    source = rt.resolve_value(action.get("object"), event)
    # a fresh mapping, so state observers see a new value
    target = copy.copy(source) if isinstance(source, dict) else {}
    target[action["key"]] = rt.resolve_value(action.get("value"), event)
    return store_result(rt, action, target, "storeIn", "output")


async def _handle_object_get(rt: Runtime, action: dict, event: Any) -> Any:
    source = rt.resolve_value(action.get("object"), event)
    value = source.get(action["key"]) if isinstance(source, Mapping) else None
    return store_result(rt, action, value, "storeIn", "output")


# ---------------------------------------------------------------------------
# Strings
# ---------------------------------------------------------------------------


async def _handle_string_template(rt: Runtime, action: dict, event: Any) -> str:
    return store_result(rt, action, resolve_text(rt, action.get("template"), event), "storeIn", "output")


async def _handle_string_concat(rt: Runtime, action: dict, event: Any) -> str:
    parts = action.get("parts")
    if not isinstance(parts, list):
        return ""
    text = to_js_string(action.get("separator") or "").join(
        resolve_text(rt, part, event) if isinstance(part, str) else _part_text(part) for part in parts
    )
    return store_result(rt, action, text, "storeIn", "output")


def _part_text(part: Any) -> str:
    if part is None or part is UNDEFINED:
        return ""
    return to_js_string(part)


DATA_HANDLERS = {
    "array.forEach": _handle_for_each,
    "array.map": _handle_map,
    "array.filter": _handle_filter,
    "array.length": _handle_length,
    "object.set": _handle_object_set,
    "object.get": _handle_object_get,
    "string.template": _handle_string_template,
    "string.concat": _handle_string_concat,
}
