"""
Jsonia Runtime — Expression Evaluator

Pure function: (expression, lookup) → value
No side effects. Never raises for JSON input.

An expression is either
  - a string: a literal, a whole-string "{{path}}" reference (raw value),
    a negated reference "!{{path}}", or text with embedded "{{path}}"
    references (interpolated to a string);
  - an object keyed by one operator name (see EXPRESSION_OPERATORS) whose
    operands are expressions;
  - any other JSON value, returned unchanged.

Numbers follow JavaScript coercion rules (Number(undefined) is NaN,
Number(null) is 0, Number("") is 0) so that values read from form inputs
compare and add the way page authors expect.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Mapping
from functools import reduce
from typing import Any

from jsonia.runtime.dom import element_property, is_element
from jsonia.runtime.types import EXPRESSION_OPERATORS, UNDEFINED, is_nullish

Lookup = Callable[[str], Any]

NEGATED_REF = re.compile(r"^!\{\{([\w.]+)\}\}$")
WHOLE_REF = re.compile(r"^\{\{([\w.]+)\}\}$")
EMBEDDED_REF = re.compile(r"\{\{([\w.]+)\}\}")
LOOSE_WHOLE_REF = re.compile(r"^\{\{(.+)\}\}$")

_SNAKE_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")
_NUMERIC_LITERAL = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def evaluate(expr: Any, lookup: Lookup | Mapping[str, Any]) -> Any:
    """
    Evaluate an expression against a state lookup.
    Missing values come back as None.
    """
    value = _eval(expr, as_lookup(lookup))
    return None if value is UNDEFINED else value


def as_lookup(source: Lookup | Mapping[str, Any]) -> Lookup:
    """Adapt a mapping into a lookup returning UNDEFINED for missing keys."""
    if isinstance(source, Mapping):
        return lambda key: source.get(key, UNDEFINED)
    return source


def overlay(lookup: Lookup, bindings: Mapping[str, Any]) -> Lookup:
    """A lookup that sees bindings first, then the underlying lookup."""

    def _lookup(key: str) -> Any:
        if key in bindings:
            return bindings[key]
        return lookup(key)

    return _lookup


def resolve_path(path: str, lookup: Lookup | Mapping[str, Any]) -> Any:
    """
    Resolve a dotted path such as "user.address.city".
    Returns UNDEFINED as soon as a segment cannot be followed.
    """
    head, *rest = path.strip().split(".")
    value = as_lookup(lookup)(head)
    for segment in rest:
        if is_nullish(value):
            return UNDEFINED
        value = _member(value, segment)
    return value


def interpolate(template: str, lookup: Lookup | Mapping[str, Any]) -> str:
    """Replace every {{path}} in template with its string value."""
    fn = as_lookup(lookup)

    def _sub(match: re.Match) -> str:
        value = resolve_path(match.group(1), fn)
        return "" if is_nullish(value) else to_js_string(value)

    return EMBEDDED_REF.sub(_sub, template)


def resolve_template(template: Any, lookup: Lookup | Mapping[str, Any]) -> Any:
    """
    Interpolate strings, recursing into mappings and lists.
    Other values are returned unchanged.
    """
    fn = as_lookup(lookup)
    if isinstance(template, str):
        return interpolate(template, fn)
    if isinstance(template, Mapping):
        return {key: resolve_template(value, fn) for key, value in template.items()}
    if isinstance(template, list):
        return [resolve_template(item, fn) for item in template]
    return template


def expression_references(expr: Any) -> set[str]:
    """Top-level state keys an expression reads."""
    refs: set[str] = set()
    stack = [expr]
    while stack:
        current = stack.pop()
        if isinstance(current, str):
            for path in EMBEDDED_REF.findall(current):
                refs.add(path.split(".", 1)[0])
        elif isinstance(current, Mapping):
            stack.extend(current.values())
        elif isinstance(current, list):
            stack.extend(current)
    return refs


# ---------------------------------------------------------------------------
# JavaScript value semantics
# ---------------------------------------------------------------------------


def to_number(value: Any) -> int | float:
    """JavaScript Number() coercion."""
    if value is UNDEFINED:
        return math.nan
    if value is None or value is False:
        return 0
    if value is True:
        return 1
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text == "":
            return 0
        if _NUMERIC_LITERAL.match(text):
            number = float(text)
            return int(number) if number.is_integer() and "." not in text and "e" not in text.lower() else number
        if text in ("Infinity", "+Infinity"):
            return math.inf
        if text == "-Infinity":
            return -math.inf
        lowered = text.lower()
        for prefix, base in (("0x", 16), ("0o", 8), ("0b", 2)):
            if lowered.startswith(prefix):
                try:
                    return int(text[2:], base)
                except ValueError:
                    return math.nan
        return math.nan
    if isinstance(value, list):
        if not value:
            return 0
        if len(value) == 1:
            return to_number(to_js_string(value[0]))
        return math.nan
    return math.nan


def to_js_string(value: Any) -> str:
    """JavaScript String() coercion."""
    if value is UNDEFINED:
        return "undefined"
    if value is None:
        return "null"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        return ",".join("" if is_nullish(v) else to_js_string(v) for v in value)
    if isinstance(value, Mapping):
        return "[object Object]"
    return str(value)


def truthy(value: Any) -> bool:
    """JavaScript truthiness: empty containers are truthy, NaN is falsy."""
    if is_nullish(value):
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0 and not (isinstance(value, float) and math.isnan(value))
    if isinstance(value, str):
        return value != ""
    return True


def loose_equals(a: Any, b: Any) -> bool:
    """JavaScript == comparison."""
    if is_nullish(a) or is_nullish(b):
        return is_nullish(a) and is_nullish(b)
    if isinstance(a, bool) or isinstance(b, bool):
        return loose_equals(to_number(a) if isinstance(a, bool) else a, to_number(b) if isinstance(b, bool) else b)
    a_num = isinstance(a, (int, float))
    b_num = isinstance(b, (int, float))
    if a_num and b_num:
        return a == b
    if a_num and isinstance(b, str):
        return a == to_number(b)
    if b_num and isinstance(a, str):
        return to_number(a) == b
    if isinstance(a, str) and isinstance(b, str):
        return a == b
    if is_element(a) or is_element(b):
        return a is b
    if (a_num or isinstance(a, str)) and isinstance(b, (list, Mapping)):
        return loose_equals(a, to_js_string(b))
    if (b_num or isinstance(b, str)) and isinstance(a, (list, Mapping)):
        return loose_equals(to_js_string(a), b)
    return a == b


def _js_number(value: int | float) -> int | float:
    """Collapse integral floats to int so 10.0 renders as 10."""
    if isinstance(value, float) and value.is_integer() and abs(value) < 2**53:
        return int(value)
    return value


# ---------------------------------------------------------------------------
# Internal evaluation
# ---------------------------------------------------------------------------


def _eval(expr: Any, lookup: Lookup) -> Any:
    if isinstance(expr, str):
        return _eval_string(expr, lookup)

    if not isinstance(expr, Mapping):
        return expr

    for op in EXPRESSION_OPERATORS:
        if op in expr:
            return _OPERATORS[op](expr[op], lookup)

    return expr


def _eval_string(expr: str, lookup: Lookup) -> Any:
    negated = NEGATED_REF.match(expr)
    if negated:
        return not truthy(resolve_path(negated.group(1), lookup))

    whole = WHOLE_REF.match(expr)
    if whole:
        return resolve_path(whole.group(1), lookup)

    return interpolate(expr, lookup)


def _member(value: Any, segment: str) -> Any:
    if isinstance(value, Mapping):
        return value.get(segment, UNDEFINED)
    if isinstance(value, (list, tuple, str)):
        if segment == "length":
            return len(value)
        if segment.isdigit():
            index = int(segment)
            return value[index] if index < len(value) else UNDEFINED
        return UNDEFINED
    if is_element(value):
        return element_property(value, segment)
    snake = _SNAKE_BOUNDARY.sub("_", segment).lower()
    for name in (snake, segment):
        if not name.startswith("_") and hasattr(value, name):
            return getattr(value, name)
    return UNDEFINED


def _operands(raw: Any, lookup: Lookup) -> list[Any]:
    items = raw if isinstance(raw, list) else [raw]
    return [_eval(item, lookup) for item in items]


def _pair(raw: Any, lookup: Lookup) -> tuple[Any, Any]:
    values = _operands(raw, lookup)
    values += [UNDEFINED] * (2 - len(values))
    return values[0], values[1]


def _op_sum(raw: Any, lookup: Lookup) -> Any:
    return _js_number(reduce(lambda a, b: a + to_number(b), _operands(raw, lookup), 0))


def _op_add(raw: Any, lookup: Lookup) -> Any:
    values = [to_number(v) for v in _operands(raw, lookup)]
    if not values:
        return 0
    return _js_number(reduce(lambda a, b: a + b, values))


def _op_subtract(raw: Any, lookup: Lookup) -> Any:
    a, b = _pair(raw, lookup)
    return _js_number(to_number(a) - to_number(b))


def _op_multiply(raw: Any, lookup: Lookup) -> Any:
    values = [to_number(v) for v in _operands(raw, lookup)]
    if not values:
        return 1
    return _js_number(reduce(lambda a, b: a * b, values))


def _op_divide(raw: Any, lookup: Lookup) -> Any:
    a, b = _pair(raw, lookup)
    x, y = to_number(a), to_number(b)
    if math.isnan(x) or math.isnan(y):
        return math.nan
    if y == 0:
        if x == 0:
            return math.nan
        return math.copysign(math.inf, x) * math.copysign(1, y)
    return _js_number(x / y)


def _compare(test: Callable[[Any, Any], bool]) -> Callable[[Any, Lookup], bool]:
    def _op(raw: Any, lookup: Lookup) -> bool:
        a, b = _pair(raw, lookup)
        return test(to_number(a), to_number(b))

    return _op


def _op_eq(raw: Any, lookup: Lookup) -> bool:
    return loose_equals(*_pair(raw, lookup))


def _op_neq(raw: Any, lookup: Lookup) -> bool:
    return not loose_equals(*_pair(raw, lookup))


def _op_and(raw: Any, lookup: Lookup) -> bool:
    return all(truthy(v) for v in _operands(raw, lookup))


def _op_or(raw: Any, lookup: Lookup) -> bool:
    return any(truthy(v) for v in _operands(raw, lookup))


def _op_not(raw: Any, lookup: Lookup) -> bool:
    return not truthy(_eval(raw, lookup))


def _op_not_null(raw: Any, lookup: Lookup) -> bool:
    return not is_nullish(_eval(raw, lookup))


def _op_map(raw: Any, lookup: Lookup) -> list[Any]:
    if not isinstance(raw, list) or not raw:
        return []
    items = _eval(raw[0], lookup)
    if not isinstance(items, list):
        return []
    template = raw[1] if len(raw) > 1 else None
    return [
        _eval(template, overlay(lookup, {"item": item, "index": index}))
        for index, item in enumerate(items)
    ]


_OPERATORS: dict[str, Callable[[Any, Lookup], Any]] = {
    "sum": _op_sum,
    "add": _op_add,
    "subtract": _op_subtract,
    "multiply": _op_multiply,
    "divide": _op_divide,
    "gt": _compare(lambda a, b: a > b),
    "lt": _compare(lambda a, b: a < b),
    "gte": _compare(lambda a, b: a >= b),
    "lte": _compare(lambda a, b: a <= b),
    "eq": _op_eq,
    "neq": _op_neq,
    "and": _op_and,
    "or": _op_or,
    "not": _op_not,
    "notNull": _op_not_null,
    "map": _op_map,
}
