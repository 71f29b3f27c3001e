"""
Jsonia Runtime — State Store

A single mutable mapping of state keys. Every mutation recomputes all
computed keys, then notifies the display sink.

Computed keys live in the same namespace as plain state. They are evaluated
in dependency order: a computed key that reads another computed key is
evaluated after it, so chains of computed values are consistent after every
mutation. Keys that depend on each other in a cycle are evaluated in
declaration order (logged once, when they are defined).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from jsonia.runtime.expressions import evaluate, expression_references
from jsonia.runtime.types import UNDEFINED

logger = logging.getLogger(__name__)

Sink = Callable[[dict[str, Any]], None]


class StateStore:
    """Key/value state with computed properties and a change sink."""

    def __init__(
        self,
        initial: Mapping[str, Any] | None = None,
        computed: Mapping[str, Any] | None = None,
        sink: Sink | None = None,
    ) -> None:
        self._state: dict[str, Any] = dict(initial or {})
        self._computed: dict[str, Any] = {}
        self._order: list[str] = []
        self._sink = sink
        if computed:
            self.define_computed(computed)

    # -- reads --------------------------------------------------------------

    def get(self, key: str | None = None, default: Any = None) -> Any:
        """Value for key, or the whole state mapping when key is None."""
        if key is None:
            return self._state
        return self._state.get(key, default)

    def lookup(self, key: str) -> Any:
        """Evaluator lookup: UNDEFINED for missing keys."""
        return self._state.get(key, UNDEFINED)

    def __contains__(self, key: object) -> bool:
        return key in self._state

    def snapshot(self) -> dict[str, Any]:
        return dict(self._state)

    @property
    def computed(self) -> dict[str, Any]:
        return dict(self._computed)

    @property
    def computed_order(self) -> list[str]:
        return list(self._order)

    # -- writes -------------------------------------------------------------

    def set(self, key: str | Mapping[str, Any], value: Any = None) -> None:
        """set(key, value) or set({key: value, ...}); last write wins."""
        if isinstance(key, Mapping):
            self._state.update(key)
        else:
            self._state[key] = value
        self._changed()

    def delete(self, *keys: str) -> None:
        for key in keys:
            self._state.pop(key, None)
        self._changed()

    def replace(self, state: Mapping[str, Any]) -> None:
        """Discard current state and start from state."""
        self._state = dict(state)
        self._changed()

    def define_computed(self, definitions: Mapping[str, Any]) -> None:
        self._computed.update(definitions)
        self._order = computed_order(self._computed)
        self._changed()

    def set_sink(self, sink: Sink | None) -> None:
        self._sink = sink

    @contextmanager
    def scoped(self, bindings: Mapping[str, Any]) -> Iterator[None]:
        """
        Bind keys for the duration of a block, then restore each one to its
        previous value, or remove it if it did not exist before.
        """
        saved = [(key, key in self._state, self._state.get(key)) for key in bindings]
        if bindings:
            self.set(bindings)
        try:
            yield
        finally:
            if saved:
                for key, existed, previous in saved:
                    if existed:
                        self._state[key] = previous
                    else:
                        self._state.pop(key, None)
                self._changed()

    # -- internals ----------------------------------------------------------

    def recompute(self) -> None:
        """Re-evaluate every computed key; a failing key keeps its previous value."""
        for key in self._order:
            try:
                self._state[key] = evaluate(self._computed[key], self.lookup)
            except Exception:
                logger.exception("state: computed %r failed, keeping previous value", key)

    def _changed(self) -> None:
        self.recompute()
        if self._sink is None:
            return
        try:
            self._sink(self._state)
        except Exception:
            logger.exception("state: display sink failed")


def computed_order(definitions: Mapping[str, Any]) -> list[str]:
    """
    Order computed keys so dependencies come first.
    Declaration order breaks ties; cyclic members keep declaration order.
    """
    deps = {
        key: (expression_references(expr) & definitions.keys()) - {key}
        for key, expr in definitions.items()
    }
    ordered: list[str] = []
    placed: set[str] = set()
    remaining = list(definitions)

    while remaining:
        progressed = False
        for key in list(remaining):
            if deps[key] <= placed:
                ordered.append(key)
                placed.add(key)
                remaining.remove(key)
                progressed = True
        if not progressed:
            logger.warning("state: cyclic computed dependencies among %s", remaining)
            ordered.extend(remaining)
            break

    return ordered
