"""
Jsonia Runtime — Field Validation

Form field validators built from a definition's `validation` block:

    {"email": [{"required": true}, {"type": "email", "message": "Bad email"}]}

A field with no validators is always valid.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import Any

from jsonia.runtime.expressions import to_number
from jsonia.runtime.models import ValidationRule
from jsonia.runtime.types import FormValidationResult, ValidationResult

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class FieldValidators:
    """Validator rules keyed by field name."""

    def __init__(self, rules: Mapping[str, list[ValidationRule]] | None = None) -> None:
        self.rules: dict[str, list[ValidationRule]] = dict(rules or {})

    @classmethod
    def from_definition(cls, definition: Mapping[str, list[Any]]) -> FieldValidators:
        return cls(
            {
                name: [r if isinstance(r, ValidationRule) else ValidationRule.model_validate(r) for r in rules]
                for name, rules in definition.items()
            }
        )

    def __contains__(self, name: object) -> bool:
        return name in self.rules

    def validate(self, name: str, value: Any) -> ValidationResult:
        rules = self.rules.get(name)
        if not rules:
            return ValidationResult(valid=True)
        errors: list[str] = []
        for rule in rules:
            errors.extend(_check_rule(name, rule, value))
        return ValidationResult(valid=not errors, errors=errors)

    def validate_all(self, data: Mapping[str, Any]) -> FormValidationResult:
        results = {name: self.validate(name, value) for name, value in data.items()}
        return FormValidationResult(
            valid=all(r.valid for r in results.values()),
            results=results,
        )


def _check_rule(name: str, rule: ValidationRule, value: Any) -> list[str]:
    errors: list[str] = []
    text = "" if value is None else str(value)

    if rule.required and not text:
        # Nothing else in this rule is meaningful for an empty value
        return [rule.message or f"{name} is required"]

    if rule.min_length is not None and len(text) < rule.min_length:
        errors.append(rule.message or f"{name} must be at least {rule.min_length} characters")

    if rule.max_length is not None and len(text) > rule.max_length:
        errors.append(rule.message or f"{name} must be at most {rule.max_length} characters")

    if rule.pattern:
        try:
            matched = re.search(rule.pattern, text) is not None
        except re.error:
            matched = False
        if not matched:
            errors.append(rule.message or f"{name} has an invalid format")

    if rule.type == "email" and not EMAIL_PATTERN.match(text):
        errors.append(rule.message or "Enter a valid email address")

    number = to_number(value)
    if rule.type == "number" and (isinstance(number, float) and math.isnan(number)):
        errors.append(rule.message or "Enter a number")

    if rule.min is not None and number < rule.min:
        errors.append(rule.message or f"Enter a value of at least {_fmt(rule.min)}")

    if rule.max is not None and number > rule.max:
        errors.append(rule.message or f"Enter a value of at most {_fmt(rule.max)}")

    return errors


def _fmt(bound: float) -> str:
    return str(int(bound)) if float(bound).is_integer() else str(bound)
