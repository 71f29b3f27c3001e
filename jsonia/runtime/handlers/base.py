"""
Shared helpers for action handlers.

Every handler has the signature

    async def _handle_x(rt: Runtime, action: dict, event) -> Any

and reads its inputs through the runtime (state, templates, the document).
Handlers never raise for a missing target; they log and return None.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from bs4 import Tag

from jsonia.runtime.dom import is_element
from jsonia.runtime.expressions import LOOSE_WHOLE_REF

if TYPE_CHECKING:
    from jsonia.runtime.runtime import Runtime

logger = logging.getLogger(__name__)

Handler = Callable[["Runtime", dict[str, Any], Any], Awaitable[Any]]


def store_result(rt: Runtime, action: dict[str, Any], value: Any, *fields: str) -> Any:
    """Write value into the state key named by the first present field (default: output)."""
    for name in fields or ("output",):
        key = action.get(name)
        if key:
            rt.set_state(key, value)
            break
    return value


def resolve_text(rt: Runtime, value: Any, event: Any = None) -> str:
    """Interpolate a template into text; missing values become ''."""
    if value is None:
        return ""
    resolved = rt.resolve_template(value, event=event)
    return resolved if isinstance(resolved, str) else str(resolved)


def resolve_element(rt: Runtime, ref: Any, event: Any = None) -> Tag | None:
    """A single element from a {{ref}}, a selector, or an element."""
    value = rt.resolve_value(ref, event)
    if is_element(value):
        return value
    if isinstance(value, list):
        return next((v for v in value if is_element(v)), None)
    return None


def resolve_elements(rt: Runtime, ref: Any, event: Any = None) -> list[Tag]:
    """
    Every element a target refers to: a {{ref}} holding an element or a list
    of elements, or a selector string matched against the whole document.
    """
    if is_element(ref):
        return [ref]
    if isinstance(ref, str) and not LOOSE_WHOLE_REF.match(ref):
        selector = rt.resolve_template(ref, event=event)
        return rt.document.query_selector_all(selector)
    value = rt.resolve_value(ref, event)
    if is_element(value):
        return [value]
    if isinstance(value, list):
        return [v for v in value if is_element(v)]
    return []


def missing(action: dict[str, Any], field: str) -> None:
    logger.warning("%s: %s not found (%r)", action.get("type"), field, action.get(field))
