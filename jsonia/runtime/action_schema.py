"""
Jsonia Runtime — Action Validation

Validates action objects before they reach a handler.
Validation is structural (well-formed?) not semantic (will it apply?).
Handlers deal with missing targets, unknown APIs and so on.

An action is either a bare string (the name of a registered custom action)
or an object with a string `type` plus type-specific fields.
"""

from __future__ import annotations

from typing import Any

# Fields that must be present for each known action type
REQUIRED_FIELDS: dict[str, tuple[str, ...]] = {
    # core
    "alert": ("message",),
    "setState": ("key",),
    "updateDOM": ("target",),
    "addClass": ("target", "className"),
    "removeClass": ("target", "className"),
    "toggleClass": ("target", "className"),
    "navigate": ("url",),
    "api": ("name",),
    "if": ("condition", "then"),
    "function": ("name",),
    "emit": ("name",),
    "sequence": ("steps",),
    # dom
    "dom.select": ("selector",),
    "dom.selectAll": ("selector",),
    "dom.setInnerHTML": ("target",),
    "dom.setTextContent": ("target",),
    "dom.setAttribute": ("target", "name"),
    "dom.addClass": ("target", "className"),
    "dom.removeClass": ("target", "className"),
    "dom.toggleClass": ("target", "className"),
    "dom.appendChild": ("parent", "child"),
    "dom.insertIntoSlot": ("container", "children"),
    "dom.removeChild": ("parent", "child"),
    "dom.remove": ("target",),
    "dom.removeInnerDropZone": ("parent",),
    "dom.addEventListener": ("target", "event", "actions"),
    "dom.createFromHTML": ("html",),
    "dom.buildTree": ("root",),
    # data
    "array.forEach": ("array", "item", "do"),
    "array.map": ("array", "item"),
    "array.filter": ("array", "item", "condition"),
    "array.length": ("array",),
    "object.set": ("key",),
    "object.get": ("object", "key"),
    "string.template": ("template",),
    "string.concat": ("parts",),
    # utilities
    "util.parseJSON": ("json",),
    "util.getAttribute": ("target",),
    "util.closest": ("target", "selector"),
    "util.querySelector": ("parent", "selector"),
    # templates / components
    "template.renderFromJSON": ("template",),
    "component.renderList": ("components",),
    "component.method": ("method",),
    "registerComponentMethods": ("components",),
    "registerComponentActions": ("components",),
    # drag and drop
    "drag.setData": ("data",),
}

# Fields holding nested action lists
ACTION_LIST_FIELDS: tuple[str, ...] = (
    "then",
    "else",
    "do",
    "steps",
    "actions",
    "onSuccess",
    "onError",
    "onValid",
    "onInvalid",
)

# Fields that must hold a string when present
_STRING_FIELDS: tuple[str, ...] = ("key", "output", "storeIn", "item", "index", "className", "name")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_action(action: Any) -> list[str]:
    """
    Validate an action's structure.
    Returns a list of error strings. Empty list = valid.

    Unknown action types are not errors here; the dispatcher decides
    what to do with them.
    """
    errors: list[str] = []

    if isinstance(action, str):
        if not action:
            errors.append("Custom action name must be a non-empty string")
        return errors

    if not isinstance(action, dict):
        errors.append(f"Action must be an object or a string, got {type(action).__name__}")
        return errors

    action_type = action.get("type")
    if not isinstance(action_type, str) or not action_type:
        errors.append("Action requires a string 'type'")
        return errors

    for name in REQUIRED_FIELDS.get(action_type, ()):
        if name not in action:
            errors.append(f"{action_type} requires '{name}'")

    for name in ACTION_LIST_FIELDS:
        if name in action and action[name] is not None and not isinstance(action[name], list):
            errors.append(f"{action_type}: '{name}' must be a list of actions")

    for name in _STRING_FIELDS:
        if name in action and action[name] is not None and not isinstance(action[name], str):
            errors.append(f"{action_type}: '{name}' must be a string")

    if action_type == "string.concat" and "parts" in action and not isinstance(action["parts"], list):
        errors.append("string.concat: 'parts' must be a list")

    return errors
