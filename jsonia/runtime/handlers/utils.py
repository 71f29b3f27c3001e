"""Utility action handlers: JSON parsing, timing, and element lookups."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import TYPE_CHECKING, Any

from jsonia.runtime.dom import closest, select_one
from jsonia.runtime.handlers.base import resolve_element, resolve_text, store_result

if TYPE_CHECKING:
    from jsonia.runtime.runtime import Runtime

logger = logging.getLogger(__name__)

DEFAULT_DELAY_MS = 100


async def _handle_parse_json(rt: Runtime, action: dict, event: Any) -> Any:
    text = resolve_text(rt, action.get("json"), event)
    if not text or text in ("undefined", "null"):
        logger.warning("util.parseJSON: empty input %r", action.get("json"))
        return store_result(rt, action, None)
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        logger.error("util.parseJSON: invalid JSON: %s", e)
        parsed = None
    return store_result(rt, action, parsed)


async def _handle_timestamp(rt: Runtime, action: dict, event: Any) -> int:
    return store_result(rt, action, int(time.time() * 1000))


async def _handle_delay(rt: Runtime, action: dict, event: Any) -> None:
    ms = action.get("ms") or DEFAULT_DELAY_MS
    await asyncio.sleep(float(ms) / 1000)


async def _handle_get_attribute(rt: Runtime, action: dict, event: Any) -> Any:
    target = resolve_element(rt, action.get("target"), event)
    if target is None:
        logger.warning("util.getAttribute: target not found (%r)", action.get("target"))
        return None
    # legacy form: {"attribute": "closest", "selector": ...}
    if action.get("attribute") == "closest":
        return store_result(rt, action, closest(target, action.get("selector", "")))
    name = action.get("name") or action.get("attribute")
    value = target.get(name) if name else None
    if isinstance(value, list):
        value = " ".join(value)
    return store_result(rt, action, value)


async def _handle_closest(rt: Runtime, action: dict, event: Any) -> Any:
    target = resolve_element(rt, action.get("target"), event)
    if target is None:
        logger.warning("util.closest: target not found (%r)", action.get("target"))
        return None
    return store_result(rt, action, closest(target, resolve_text(rt, action["selector"], event)))


async def _handle_query_selector(rt: Runtime, action: dict, event: Any) -> Any:
    parent = resolve_element(rt, action.get("parent"), event)
    if parent is None:
        logger.warning("util.querySelector: parent not found (%r)", action.get("parent"))
        return None
    return store_result(rt, action, select_one(parent, resolve_text(rt, action["selector"], event)))


UTIL_HANDLERS = {
    "util.parseJSON": _handle_parse_json,
    "util.timestamp": _handle_timestamp,
    "util.delay": _handle_delay,
    "util.getAttribute": _handle_get_attribute,
    "util.closest": _handle_closest,
    "util.querySelector": _handle_query_selector,
}
