"""Definition models for the JSON the runtime consumes."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from jsonia.runtime.errors import DefinitionError


class ValidationRule(BaseModel):
    """One rule in a field's validation list."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    required: bool = False
    min_length: int | None = Field(default=None, alias="minLength")
    max_length: int | None = Field(default=None, alias="maxLength")
    pattern: str | None = None
    type: str | None = None
    min: float | None = None
    max: float | None = None
    message: str | None = None


class ApiDefinition(BaseModel):
    """A named HTTP call; url and body may contain {{key}} references."""

    model_config = ConfigDict(extra="allow")

    url: str
    method: str = "GET"
    headers: dict[str, str] = Field(default_factory=dict)
    body: Any = None


class EventDescriptor(BaseModel):
    """Delegated binding: run actions when an element matching target fires type."""

    model_config = ConfigDict(extra="allow")

    type: str
    target: str
    actions: list[Any] | None = None
    action: str | None = None  # legacy: name of a registered custom action


class MethodDefinition(BaseModel):
    """A callable method: params are staged into state while steps run."""

    model_config = ConfigDict(extra="allow")

    params: list[str] = Field(default_factory=list)
    steps: list[Any] = Field(default_factory=list)


class ComponentBehavior(BaseModel):
    """The behavior block of a component descriptor."""

    model_config = ConfigDict(extra="allow")

    actions: dict[str, Any] = Field(default_factory=dict)
    methods: dict[str, MethodDefinition] = Field(default_factory=dict)


class RuntimeDefinition(BaseModel):
    """A page definition: everything the runtime needs at init."""

    model_config = ConfigDict(extra="allow")

    state: dict[str, Any] = Field(default_factory=dict)
    computed: dict[str, Any] = Field(default_factory=dict)
    apis: dict[str, ApiDefinition] = Field(default_factory=dict)
    validation: dict[str, list[ValidationRule]] = Field(default_factory=dict)
    events: list[EventDescriptor] = Field(default_factory=list)
    methods: dict[str, MethodDefinition] = Field(default_factory=dict)
    initialization: list[Any] | None = None


def parse_definition(data: Any) -> RuntimeDefinition:
    """
    Accept a RuntimeDefinition, a mapping, or JSON text.
    Raises DefinitionError when the input cannot be a definition.
    """
    if isinstance(data, RuntimeDefinition):
        return data
    if isinstance(data, (str, bytes)):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as e:
            raise DefinitionError(f"Definition is not valid JSON: {e}") from e
    if not isinstance(data, Mapping):
        raise DefinitionError(f"Definition must be an object, got {type(data).__name__}")
    try:
        return RuntimeDefinition.model_validate(dict(data))
    except ValidationError as e:
        raise DefinitionError(f"Invalid definition: {e}") from e


def parse_behavior(data: Any) -> ComponentBehavior | None:
    """Component behavior block, or None when absent or malformed."""
    if not isinstance(data, Mapping):
        return None
    try:
        return ComponentBehavior.model_validate(dict(data))
    except ValidationError:
        return None
