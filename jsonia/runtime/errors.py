"""
Jsonia Runtime — Exceptions

Only structural failures are raised to callers. Everything else (bad actions,
missing targets, bad expressions) is logged and contained where it happens.
"""

from __future__ import annotations


class JsoniaError(Exception):
    """Base class for runtime errors."""


class DefinitionError(JsoniaError):
    """Top-level runtime definition is not a usable object."""


class ComponentNotFoundError(JsoniaError):
    """No component file or registered component for a name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Component not found: {name}")
        self.name = name


class ComponentLoadError(JsoniaError):
    """Component file exists but cannot be read or parsed."""


class CyclicExtendsError(JsoniaError):
    """A component's extends chain refers back to itself."""

    def __init__(self, chain: list[str]) -> None:
        super().__init__(f"Cyclic extends: {' -> '.join(chain)}")
        self.chain = chain
