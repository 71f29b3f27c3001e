"""
Jsonia Runtime — Shared Types

Constants and data classes used across the evaluator, state store, renderer,
dispatcher and event layer. These are the contracts that bind the runtime
together.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# ---------------------------------------------------------------------------
# Undefined
# ---------------------------------------------------------------------------


class _Undefined:
    """Marker for a missing value, distinct from an explicit null (None)."""

    _instance: _Undefined | None = None

    def __new__(cls) -> _Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "undefined"

    def __copy__(self) -> _Undefined:
        return self

    def __deepcopy__(self, memo: dict) -> _Undefined:
        return self


UNDEFINED = _Undefined()


def is_nullish(value: Any) -> bool:
    """True for None and UNDEFINED."""
    return value is None or value is UNDEFINED


# ---------------------------------------------------------------------------
# Expression operators (dispatch precedence order)
# ---------------------------------------------------------------------------

EXPRESSION_OPERATORS: tuple[str, ...] = (
    "sum",
    "add",
    "subtract",
    "multiply",
    "divide",
    "gt",
    "lt",
    "gte",
    "lte",
    "eq",
    "neq",
    "and",
    "or",
    "not",
    "notNull",
    "map",
)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

SLOT_ATTRIBUTE = "data-slot"
DEFAULT_SLOT = "children"

# Component types that are expected to accept nested children
CONTAINER_TAGS: frozenset[str] = frozenset(
    {
        "container",
        "section",
        "div",
        "article",
        "main",
        "aside",
        "nav",
        "header",
        "footer",
        "form",
    }
)


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

# Fired continuously during a drag; not logged per event
FREQUENT_EVENT_TYPES: frozenset[str] = frozenset({"dragover", "dragstart", "dragend"})

# Always default-prevented by the delegated listener so drop targets work
DROP_EVENT_TYPES: frozenset[str] = frozenset({"dragover", "drop"})

DRAG_DATA_FORMAT = "application/json"


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class Warning:
    """A non-fatal issue encountered while rendering or binding."""

    code: str
    message: str
    details: dict[str, Any] | None = None


@dataclass
class ValidationResult:
    """Outcome of validating one form field."""

    valid: bool
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"valid": self.valid, "errors": list(self.errors)}


@dataclass
class FormValidationResult:
    """Outcome of validating every field of a submitted form."""

    valid: bool
    results: dict[str, ValidationResult] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "results": {name: r.to_dict() for name, r in self.results.items()},
        }


@dataclass
class ApiResult:
    """
    Result of calling a named API.
    The API layer never throws; it always returns one of these.
    """

    success: bool
    data: Any = None
    error: str | None = None
    status_code: int | None = None
