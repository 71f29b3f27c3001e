"""
Jsonia Expressions -- String and Path Tests

Whole-string references keep the value's type, negated references become
booleans, and any other string is interpolated as text. Paths traverse
mappings, lists, elements and plain objects; a miss is never an error.
"""

from dataclasses import dataclass

from jsonia.runtime.dom import Document
from jsonia.runtime.expressions import (
    evaluate,
    expression_references,
    interpolate,
    loose_equals,
    resolve_path,
    resolve_template,
    to_js_string,
    to_number,
    truthy,
)
from jsonia.runtime.types import UNDEFINED


@dataclass
class Upload:
    file_name: str
    size: int


STATE = {
    "user": {"name": "Ada", "address": {"city": "London"}, "tags": ["admin", "dev"]},
    "count": 3,
    "ratio": 1.5,
    "flag": True,
    "nothing": None,
    "upload": Upload("a.txt", 10),
}


# ============================================================================
# String forms
# ============================================================================


class TestStringForms:
    def test_whole_reference_keeps_type(self):
        assert evaluate("{{count}}", STATE) == 3
        assert evaluate("{{user.tags}}", STATE) == ["admin", "dev"]

    def test_missing_reference_is_none(self):
        assert evaluate("{{missing}}", STATE) is None
        assert evaluate("{{user.missing.deeper}}", STATE) is None

    def test_negated_reference(self):
        assert evaluate("!{{flag}}", STATE) is False
        assert evaluate("!{{missing}}", STATE) is True

    def test_interpolation(self):
        assert evaluate("Hello {{user.name}} from {{user.address.city}}", STATE) == "Hello Ada from London"

    def test_interpolation_uses_js_strings(self):
        assert evaluate("{{flag}}/{{count}}/{{ratio}}/{{user.tags}}", STATE) == "true/3/1.5/admin,dev"

    def test_missing_and_null_interpolate_to_empty(self):
        assert evaluate("[{{missing}}][{{nothing}}]", STATE) == "[][]"

    def test_literal_string(self):
        assert evaluate("plain text", STATE) == "plain text"

    def test_non_string_values_unchanged(self):
        assert evaluate(7, STATE) == 7
        assert evaluate(None, STATE) is None
        assert evaluate([1, "{{count}}"], STATE) == [1, "{{count}}"]


# ============================================================================
# Paths
# ============================================================================


class TestPaths:
    def test_list_index_and_length(self):
        assert resolve_path("user.tags.1", STATE) == "dev"
        assert resolve_path("user.tags.length", STATE) == 2
        assert resolve_path("user.tags.9", STATE) is UNDEFINED

    def test_object_attribute_snake_case(self):
        assert resolve_path("upload.fileName", STATE) == "a.txt"
        assert resolve_path("upload.size", STATE) == 10

    def test_private_attributes_are_hidden(self):
        assert resolve_path("upload.__class__", STATE) is UNDEFINED

    def test_through_null(self):
        assert resolve_path("nothing.name", STATE) is UNDEFINED

    def test_element_properties(self):
        doc = Document('<body><input id="email" class="field wide" name="email" value="a@b.co" data-field-id="7"></body>')
        element = doc.get_element_by_id("email")
        state = {"el": element}
        assert evaluate("{{el.value}}", state) == "a@b.co"
        assert evaluate("{{el.id}}", state) == "email"
        assert evaluate("{{el.tagName}}", state) == "INPUT"
        assert evaluate("{{el.className}}", state) == "field wide"
        assert evaluate("{{el.dataset.fieldId}}", state) == "7"
        assert evaluate("{{el.parentElement.tagName}}", state) == "BODY"
        assert evaluate("{{el.title}}", state) is None

    def test_callable_lookup(self):
        assert resolve_path("a.b", lambda key: {"b": 1} if key == "a" else UNDEFINED) == 1


# ============================================================================
# Helpers
# ============================================================================


class TestHelpers:
    def test_resolve_template_recurses(self):
        template = {"url": "/users/{{user.name}}", "body": ["{{count}}", {"deep": "{{flag}}"}], "n": 4}
        assert resolve_template(template, STATE) == {
            "url": "/users/Ada",
            "body": ["3", {"deep": "true"}],
            "n": 4,
        }

    def test_interpolate(self):
        assert interpolate("{{count}} items", STATE) == "3 items"

    def test_expression_references(self):
        expr = {"add": ["{{subtotal}}", {"multiply": ["{{tax.rate}}", 2]}], "x": "n={{n}}"}
        assert expression_references(expr) == {"subtotal", "tax", "n"}

    def test_to_number(self):
        assert to_number("42") == 42
        assert to_number(" 1.5 ") == 1.5
        assert to_number("") == 0
        assert to_number(None) == 0
        assert to_number(True) == 1
        assert to_number("0x1f") == 31
        assert to_number([]) == 0
        assert to_number(["7"]) == 7

    def test_to_js_string(self):
        assert to_js_string(None) == "null"
        assert to_js_string(UNDEFINED) == "undefined"
        assert to_js_string(False) == "false"
        assert to_js_string(2.0) == "2"
        assert to_js_string({"a": 1}) == "[object Object]"
        assert to_js_string([1, None, "x"]) == "1,,x"

    def test_truthy(self):
        assert truthy([]) is True
        assert truthy({}) is True
        assert truthy("0") is True
        assert truthy(0) is False
        assert truthy(float("nan")) is False
        assert truthy(UNDEFINED) is False

    def test_loose_equals(self):
        assert loose_equals(True, 1)
        assert loose_equals("1", True)
        assert not loose_equals(None, False)
        assert loose_equals(None, UNDEFINED)
