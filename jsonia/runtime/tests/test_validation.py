"""
Jsonia Runtime -- Field Validation Tests

Rules come from a definition's validation block. Each failing check adds
one message; a rule's own message replaces the default text.
"""

from jsonia.runtime.validation import FieldValidators


def validators(rules):
    return FieldValidators.from_definition(rules)


# ============================================================================
# Single rules
# ============================================================================


class TestRules:
    def test_required(self):
        v = validators({"name": [{"required": True}]})
        assert v.validate("name", "").errors == ["name is required"]
        assert v.validate("name", None).errors == ["name is required"]
        assert v.validate("name", "Ada").valid

    def test_required_short_circuits_rule(self):
        v = validators({"name": [{"required": True, "minLength": 3}]})
        assert v.validate("name", "").errors == ["name is required"]

    def test_required_only_short_circuits_its_own_rule(self):
        v = validators({"email": [{"required": True}, {"type": "email", "message": "Bad email"}]})
        assert v.validate("email", "").errors == ["email is required", "Bad email"]

    def test_lengths(self):
        v = validators({"code": [{"minLength": 2, "maxLength": 4}]})
        assert v.validate("code", "a").errors == ["code must be at least 2 characters"]
        assert v.validate("code", "abcde").errors == ["code must be at most 4 characters"]
        assert v.validate("code", "abc").valid

    def test_pattern(self):
        v = validators({"zip": [{"pattern": r"^\d{5}$"}]})
        assert v.validate("zip", "12345").valid
        assert v.validate("zip", "1234").errors == ["zip has an invalid format"]

    def test_broken_pattern_fails_closed(self):
        v = validators({"zip": [{"pattern": "(unclosed"}]})
        assert not v.validate("zip", "anything").valid

    def test_email(self):
        v = validators({"email": [{"type": "email"}]})
        assert v.validate("email", "ada@example.com").valid
        assert v.validate("email", "ada@example").errors == ["Enter a valid email address"]

    def test_number_and_bounds(self):
        v = validators({"age": [{"type": "number", "min": 18, "max": 99.5}]})
        assert v.validate("age", "abc").errors == ["Enter a number"]
        assert v.validate("age", "12").errors == ["Enter a value of at least 18"]
        assert v.validate("age", "120").errors == ["Enter a value of at most 99.5"]
        assert v.validate("age", "42").valid

    def test_custom_message(self):
        v = validators({"email": [{"required": True, "message": "We need your email"}]})
        assert v.validate("email", "").errors == ["We need your email"]

    def test_errors_accumulate_across_rules(self):
        v = validators({"pin": [{"minLength": 4}, {"pattern": r"^\d+$", "message": "Digits only"}]})
        assert v.validate("pin", "ab").errors == ["pin must be at least 4 characters", "Digits only"]

    def test_field_without_rules(self):
        v = validators({})
        assert v.validate("anything", "").valid
        assert "anything" not in v


# ============================================================================
# Whole forms
# ============================================================================


class TestValidateAll:
    def test_form_result(self):
        v = validators({"email": [{"type": "email"}], "name": [{"required": True}]})
        result = v.validate_all({"email": "ada@example.com", "name": "", "note": "free text"})
        assert not result.valid
        assert result.to_dict() == {
            "valid": False,
            "results": {
                "email": {"valid": True, "errors": []},
                "name": {"valid": False, "errors": ["name is required"]},
                "note": {"valid": True, "errors": []},
            },
        }

    def test_empty_form_is_valid(self):
        assert validators({"email": [{"required": True}]}).validate_all({}).valid
