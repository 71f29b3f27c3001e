"""
Jsonia Runtime — the interpreter for JSON page definitions.

Components:
  expressions : (expression, lookup) → value  (pure, never raises)
  state       : state store with computed keys and a display sink
  components  : component lookup and `extends` merging
  renderer    : component definitions → document elements, slots
  dispatcher  : actions → handlers (built-in library + core variants)
  events      : delegated document listeners
  registry    : custom actions and methods
  runtime     : the Runtime that owns all of the above
"""

from jsonia.runtime.action_schema import validate_action
from jsonia.runtime.components import ComponentResolver, deep_merge_templates
from jsonia.runtime.dom import DataTransfer, Document, DomEvent
from jsonia.runtime.errors import (
    ComponentLoadError,
    ComponentNotFoundError,
    CyclicExtendsError,
    DefinitionError,
    JsoniaError,
)
from jsonia.runtime.events import DelegatedEvent, EventBinder
from jsonia.runtime.expressions import evaluate
from jsonia.runtime.models import RuntimeDefinition, parse_definition
from jsonia.runtime.renderer import TemplateRenderer
from jsonia.runtime.runtime import Host, Runtime
from jsonia.runtime.state import StateStore
from jsonia.runtime.types import UNDEFINED

__all__ = [
    "Runtime",
    "Host",
    "Document",
    "DomEvent",
    "DataTransfer",
    "StateStore",
    "ComponentResolver",
    "TemplateRenderer",
    "EventBinder",
    "DelegatedEvent",
    "RuntimeDefinition",
    "evaluate",
    "validate_action",
    "deep_merge_templates",
    "parse_definition",
    "UNDEFINED",
    "JsoniaError",
    "DefinitionError",
    "ComponentNotFoundError",
    "ComponentLoadError",
    "CyclicExtendsError",
]
