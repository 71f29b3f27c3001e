"""
Jsonia Expressions -- Operator Tests

One class per operator family. Operands are themselves expressions, numbers
follow JavaScript coercion, and integral results come back as int.
"""

import math

from jsonia.runtime.expressions import evaluate

STATE = {
    "count": 5,
    "price": "12.5",
    "qty": "2",
    "name": "Ada",
    "empty": "",
    "zero": 0,
    "nothing": None,
    "items": [1, 2, 3],
    "users": [{"name": "Ada"}, {"name": "Grace"}],
}


# ============================================================================
# Arithmetic
# ============================================================================


class TestArithmetic:
    def test_multiply_reference_by_literal(self):
        assert evaluate({"multiply": ["{{count}}", 2]}, STATE) == 10

    def test_integral_result_is_int(self):
        result = evaluate({"multiply": ["{{price}}", "{{qty}}"]}, STATE)
        assert result == 25
        assert isinstance(result, int)

    def test_sum_starts_at_zero(self):
        assert evaluate({"sum": []}, STATE) == 0
        assert evaluate({"sum": ["{{count}}", "{{qty}}", 3]}, STATE) == 10

    def test_add_coerces_strings(self):
        assert evaluate({"add": ["{{price}}", 1]}, STATE) == 13.5

    def test_empty_add_and_multiply(self):
        assert evaluate({"add": []}, STATE) == 0
        assert evaluate({"multiply": []}, STATE) == 1

    def test_subtract(self):
        assert evaluate({"subtract": ["{{count}}", 7]}, STATE) == -2

    def test_divide(self):
        assert evaluate({"divide": ["{{count}}", 2]}, STATE) == 2.5
        assert evaluate({"divide": [10, 2]}, STATE) == 5

    def test_divide_by_zero_never_raises(self):
        assert evaluate({"divide": [1, 0]}, STATE) == math.inf
        assert evaluate({"divide": [-1, 0]}, STATE) == -math.inf
        assert math.isnan(evaluate({"divide": [0, 0]}, STATE))

    def test_missing_operand_is_nan(self):
        assert math.isnan(evaluate({"add": ["{{missing}}", 1]}, STATE))

    def test_null_counts_as_zero(self):
        assert evaluate({"add": ["{{nothing}}", 1]}, STATE) == 1

    def test_nested_operators(self):
        expr = {"add": [{"multiply": ["{{count}}", 2]}, {"subtract": [10, 4]}]}
        assert evaluate(expr, STATE) == 16


# ============================================================================
# Comparison
# ============================================================================


class TestComparison:
    def test_gt_lt(self):
        assert evaluate({"gt": ["{{count}}", 4]}, STATE) is True
        assert evaluate({"lt": ["{{count}}", 4]}, STATE) is False

    def test_gte_lte(self):
        assert evaluate({"gte": ["{{count}}", 5]}, STATE) is True
        assert evaluate({"lte": ["{{qty}}", 2]}, STATE) is True

    def test_nan_comparisons_are_false(self):
        assert evaluate({"gt": ["{{name}}", 0]}, STATE) is False
        assert evaluate({"lt": ["{{name}}", 0]}, STATE) is False

    def test_eq_is_loose(self):
        assert evaluate({"eq": ["{{qty}}", 2]}, STATE) is True
        assert evaluate({"eq": ["{{nothing}}", "{{missing}}"]}, STATE) is True
        assert evaluate({"eq": ["{{zero}}", "{{empty}}"]}, STATE) is True

    def test_eq_null_is_not_zero(self):
        assert evaluate({"eq": ["{{nothing}}", 0]}, STATE) is False

    def test_eq_compares_containers_by_value(self):
        assert evaluate({"eq": ["{{items}}", [1, 2, 3]]}, STATE) is True

    def test_neq(self):
        assert evaluate({"neq": ["{{name}}", "Grace"]}, STATE) is True
        assert evaluate({"neq": ["{{count}}", "5"]}, STATE) is False


# ============================================================================
# Logic
# ============================================================================


class TestLogic:
    def test_and_or(self):
        assert evaluate({"and": ["{{count}}", "{{name}}"]}, STATE) is True
        assert evaluate({"and": ["{{count}}", "{{empty}}"]}, STATE) is False
        assert evaluate({"or": ["{{zero}}", "{{name}}"]}, STATE) is True
        assert evaluate({"or": ["{{zero}}", "{{nothing}}"]}, STATE) is False

    def test_empty_list_is_truthy(self):
        assert evaluate({"and": [[]]}, STATE) is True

    def test_not(self):
        assert evaluate({"not": "{{zero}}"}, STATE) is True
        assert evaluate({"not": {"gt": ["{{count}}", 1]}}, STATE) is False

    def test_not_null(self):
        assert evaluate({"notNull": "{{zero}}"}, STATE) is True
        assert evaluate({"notNull": "{{nothing}}"}, STATE) is False
        assert evaluate({"notNull": "{{missing}}"}, STATE) is False


# ============================================================================
# map and operator precedence
# ============================================================================


class TestMap:
    def test_map_binds_item_and_index(self):
        expr = {"map": ["{{items}}", {"multiply": ["{{item}}", "{{index}}"]}]}
        assert evaluate(expr, STATE) == [0, 2, 6]

    def test_map_reads_item_paths(self):
        assert evaluate({"map": ["{{users}}", "{{item.name}}"]}, STATE) == ["Ada", "Grace"]

    def test_map_does_not_touch_state(self):
        state = dict(STATE, item="outer")
        evaluate({"map": ["{{items}}", "{{item}}"]}, state)
        assert state["item"] == "outer"

    def test_map_over_non_list(self):
        assert evaluate({"map": ["{{name}}", "{{item}}"]}, STATE) == []
        assert evaluate({"map": "{{items}}"}, STATE) == []


class TestPrecedence:
    def test_first_operator_in_precedence_order_wins(self):
        # sum precedes eq regardless of key order
        assert evaluate({"eq": [1, 2], "sum": [1, 2]}, STATE) == 3

    def test_mapping_without_operator_is_returned(self):
        value = {"label": "x", "size": 3}
        assert evaluate(value, STATE) is value
