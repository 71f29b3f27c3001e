"""
Jsonia Runtime — Component Resolution

Finds component definitions by name, loads them with an mtime-aware cache,
and resolves `extends` chains into merged templates.

Lookup order for a component name:
  1. components registered in memory (register())
  2. <project>/components/<name>.json, <project>/components/<name>/component.json
  3. the same two layouts under each shared components root

Merging (parent ← child):
  - attributes: shallow merge, child wins
  - tag / text: child wins when present
  - children: child's list replaces the parent's when non-empty
  - every other key: child wins
  - `extends` never survives a merge

Cycles are detected with a visited set threaded through the recursion.
"""

from __future__ import annotations

import copy
import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from jsonia.runtime.errors import ComponentLoadError, ComponentNotFoundError, CyclicExtendsError

logger = logging.getLogger(__name__)

_MERGE_KEYS = ("attributes", "tag", "text", "children")

# Keys of a subclass definition that are override points, not template keys
_OVERRIDE_KEYS = ("extends", "header", "content", "template", "behavior", "styleFile", "behaviorFile")


class ComponentResolver:
    """Resolves component names to merged templates."""

    def __init__(
        self,
        project_dir: str | Path | None = None,
        shared_dirs: Iterable[str | Path] = (),
        components: dict[str, dict[str, Any]] | None = None,
    ) -> None:
        self.project_dir = Path(project_dir) if project_dir else None
        self.shared_dirs = [Path(d) for d in shared_dirs]
        self._registered: dict[str, dict[str, Any]] = dict(components or {})
        # name -> resolved path (or None when nothing was found)
        self._path_cache: dict[str, Path | None] = {}
        # path -> (mtime_ns, parsed)
        self._component_cache: dict[Path, tuple[int, dict[str, Any]]] = {}

    # -- registry -----------------------------------------------------------

    def register(self, name: str, definition: dict[str, Any]) -> None:
        self._registered[name] = definition

    def register_many(self, components: Iterable[dict[str, Any]]) -> int:
        """Register each component under its name (or type). Returns the count."""
        count = 0
        for component in components:
            name = component.get("name") or component.get("type")
            if name:
                self.register(name, component)
                count += 1
        return count

    def clear_caches(self) -> None:
        self._path_cache.clear()
        self._component_cache.clear()

    # -- lookup -------------------------------------------------------------

    def candidates(self, name: str) -> list[Path]:
        roots: list[Path] = []
        if self.project_dir is not None:
            roots.append(self.project_dir / "components")
        roots.extend(self.shared_dirs)
        paths: list[Path] = []
        for root in roots:
            paths.append(root / f"{name}.json")
            paths.append(root / name / "component.json")
        return paths

    def find_path(self, name: str) -> Path | None:
        if name in self._path_cache:
            cached = self._path_cache[name]
            if cached is not None and cached.exists():
                return cached
            # stale or negative entry: search again
            del self._path_cache[name]

        found = next((p for p in self.candidates(name) if p.is_file()), None)
        self._path_cache[name] = found
        return found

    def load(self, path: Path) -> dict[str, Any]:
        """Parse a component file, reusing the cached parse while mtime is unchanged."""
        try:
            mtime = path.stat().st_mtime_ns
            cached = self._component_cache.get(path)
            if cached is not None and cached[0] == mtime:
                return cached[1]
            parsed = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            self._component_cache.pop(path, None)
            raise ComponentLoadError(f"Cannot load component {path}: {e}") from e

        if not isinstance(parsed, dict):
            self._component_cache.pop(path, None)
            raise ComponentLoadError(f"Component {path} is not a JSON object")

        self._component_cache[path] = (mtime, parsed)
        return parsed

    def get(self, name: str) -> dict[str, Any]:
        """Raw component definition for a name."""
        if name in self._registered:
            return self._registered[name]
        path = self.find_path(name)
        if path is None:
            raise ComponentNotFoundError(name)
        return self.load(path)

    # -- extends ------------------------------------------------------------

    def resolve_template(self, name: str, visited: list[str] | None = None) -> dict[str, Any]:
        """
        Merged template for a component, following its extends chain.
        Raises CyclicExtendsError or ComponentNotFoundError.
        """
        chain = list(visited or [])
        if name in chain:
            raise CyclicExtendsError(chain + [name])
        chain.append(name)

        component = self.get(name)
        own = component.get("template", component)
        template = copy.deepcopy(own)

        parent_name = component.get("extends") or own.get("extends")
        if parent_name:
            parent = self.resolve_template(parent_name, chain)
            template = deep_merge_templates(parent, template)

        template.pop("extends", None)
        return template

    def merge_component(self, definition: dict[str, Any], visited: list[str] | None = None) -> dict[str, Any]:
        """
        Apply a subclassing definition to its resolved base template.
        Returns a fresh template; the definition is not modified.
        """
        base_name = definition.get("extends")
        if not base_name:
            return copy.deepcopy(definition)

        base = self.resolve_template(base_name, visited)
        overrides = {k: v for k, v in definition.items() if k not in _OVERRIDE_KEYS}
        merged = deep_merge_templates(base, overrides)

        accordion_id = (definition.get("attributes") or {}).get("data-accordion-id")
        header = definition.get("header")
        content = definition.get("content")

        if header or accordion_id:
            header_node = find_element_by_attribute(merged, "data-accordion-header")
            if header_node is not None:
                if accordion_id:
                    header_node.setdefault("attributes", {})["data-accordion-id"] = accordion_id
                if isinstance(header, dict) and header.get("text"):
                    label = _first_label_child(header_node)
                    if label is not None:
                        label["text"] = header["text"]

        if content or accordion_id:
            content_node = find_element_by_attribute(merged, "data-accordion-content")
            if content_node is not None:
                attrs = content_node.setdefault("attributes", {})
                content_id = (content or {}).get("id") if isinstance(content, dict) else None
                content_id = content_id or accordion_id
                if content_id:
                    attrs["id"] = content_id
                    attrs["data-accordion-content"] = accordion_id or content_id
                if isinstance(content, dict) and content.get("children"):
                    content_node["children"] = copy.deepcopy(content["children"])

        merged.pop("extends", None)
        return merged


# ---------------------------------------------------------------------------
# Template helpers
# ---------------------------------------------------------------------------


def deep_merge_templates(parent: dict[str, Any] | None, child: dict[str, Any] | None) -> dict[str, Any]:
    if not parent:
        return copy.deepcopy(child or {})
    if not child:
        return copy.deepcopy(parent)

    merged = copy.deepcopy(parent)
    merged["attributes"] = {**(parent.get("attributes") or {}), **(child.get("attributes") or {})}
    merged["tag"] = child.get("tag") or parent.get("tag")

    if "text" in child:
        merged["text"] = child["text"]

    child_children = child.get("children")
    if isinstance(child_children, list) and child_children:
        merged["children"] = copy.deepcopy(child_children)
    else:
        merged["children"] = copy.deepcopy(parent.get("children") or child_children or [])

    for key, value in child.items():
        if key in _MERGE_KEYS:
            continue
        merged[key] = copy.deepcopy(value)

    merged.pop("extends", None)
    return merged


def find_element_by_attribute(template: dict[str, Any] | None, attribute: str) -> dict[str, Any] | None:
    """First node (depth-first, pre-order) whose attributes carry a truthy attribute."""
    if not template:
        return None
    stack: list[dict[str, Any]] = [template]
    seen: set[int] = set()
    while stack:
        node = stack.pop()
        if id(node) in seen or not isinstance(node, dict):
            continue
        seen.add(id(node))
        if (node.get("attributes") or {}).get(attribute):
            return node
        children = node.get("children")
        if isinstance(children, list):
            stack.extend(reversed(children))
    return None


def _first_label_child(header: dict[str, Any]) -> dict[str, Any] | None:
    for child in header.get("children") or []:
        if not isinstance(child, dict):
            continue
        classes = str((child.get("attributes") or {}).get("class", ""))
        if "accordion-icon" not in classes:
            return child
    return None
