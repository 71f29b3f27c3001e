"""
Jsonia Runtime — Template Renderer

(component definition, children) → DOM element

Rendering steps:
  1. Resolve `extends` against the component resolver (merged template).
  2. Materialise the template depth-first: tag, attributes, children, text.
  3. Track the primary slot (data-slot="children").
  4. Insert the caller's children into the slot, or into the root element.
  5. In editor mode, turn the slot into a drop zone.

A cyclic extends chain renders a diagnostic placeholder instead of raising;
a missing base component renders the definition without its extends.

Palette items and the canvas outline are rendered as markup with chevron
(values are HTML-escaped) and parsed into the document.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

import chevron
from bs4 import Tag
from bs4.element import PageElement

from jsonia.runtime.components import ComponentResolver
from jsonia.runtime.dom import (
    DomEvent,
    Document,
    add_class,
    append_child,
    contains,
    element_children,
    get_classes,
    has_class,
    is_element,
    remove_class,
    select_one,
    set_attribute,
    style_to_css,
)
from jsonia.runtime.errors import ComponentLoadError, ComponentNotFoundError, CyclicExtendsError
from jsonia.runtime.expressions import to_js_string
from jsonia.runtime.types import CONTAINER_TAGS, DEFAULT_SLOT, SLOT_ATTRIBUTE, Warning

if TYPE_CHECKING:
    from jsonia.runtime.runtime import Runtime

logger = logging.getLogger(__name__)

DEFAULT_ICON = "◼️"

COMPONENT_ITEM_TEMPLATE = (
    '<span class="component-icon">{{icon}}</span>'
    '<div class="component-info">'
    '<div class="component-name">{{name}}</div>'
    '{{#description}}<div class="component-description">{{description}}</div>{{/description}}'
    "</div>"
)

TREE_NODE_TEMPLATE = (
    '<div class="tree-node" style="padding: 4px 0 4px {{indent}}px; cursor: pointer; '
    'font-family: monospace; font-size: 13px;" data-component-id="{{component_id}}">'
    '<span style="color: #0066cc;">&lt;{{label}}&gt;</span>'
    '{{#text}} <span style="color: #666;">{{text}}</span>{{/text}}'
    "</div>"
)

_TREE_TEXT_LIMIT = 30
_TREE_INDENT = 20
_NESTED_CLASSES = ("canvas-component", "nested-component")


class TemplateRenderer:
    """Turns component definitions into elements of a Document."""

    def __init__(
        self,
        document: Document,
        resolver: ComponentResolver,
        runtime: Runtime | None = None,
        editor_mode: bool = True,
    ) -> None:
        self.document = document
        self.resolver = resolver
        self.runtime = runtime
        self.editor_mode = editor_mode
        self.warnings: list[Warning] = []

    # ---------------------------------------------------------------------------
    # Component rendering
    # ---------------------------------------------------------------------------

    def render(
        self,
        component_def: dict[str, Any],
        children_to_insert: Iterable[PageElement] | None = None,
    ) -> Tag:
        definition = component_def
        if isinstance(definition, dict) and definition.get("extends"):
            try:
                definition = self.resolver.merge_component(definition)
            except CyclicExtendsError as e:
                logger.error("renderer: %s", e)
                return self._error_placeholder("cyclic-extends", str(e))
            except (ComponentNotFoundError, ComponentLoadError) as e:
                logger.warning("renderer: %s; rendering without extends", e)
                definition = {k: v for k, v in definition.items() if k != "extends"}

        element, slot = self._materialize(definition)

        children = list(children_to_insert or [])
        if children:
            target = slot if slot is not None else element
            for child in children:
                append_child(target, child)

        component_type = (definition or {}).get("type") or _template_of(definition).get("tag")
        container_like = component_type in CONTAINER_TAGS

        if slot is not None:
            if self.editor_mode:
                self._wire_slot(slot, container_like)
        elif container_like:
            warning = Warning(
                code="NO_SLOT",
                message="Component has no slot; children cannot be added to it",
                details={"component_type": component_type, "class_name": " ".join(get_classes(element))},
            )
            self.warnings.append(warning)
            logger.warning("renderer: %s (%s)", warning.message, component_type)

        return element

    def _materialize(self, node: Any) -> tuple[Tag, Tag | None]:
        """Build an element for a template node. Returns (element, primary slot)."""
        template = _template_of(node)
        element = self.document.create_element(template.get("tag") or "div")

        for name, value in (template.get("attributes") or {}).items():
            if name == "style":
                if isinstance(value, str):
                    logger.warning("renderer: inline style string ignored on <%s>", element.name)
                elif isinstance(value, dict):
                    css = style_to_css(value)
                    if css:
                        element["style"] = css
                continue
            set_attribute(element, name, to_js_string(value))

        slot: Tag | None = element if element.get(SLOT_ATTRIBUTE) == DEFAULT_SLOT else None

        children = template.get("children")
        if isinstance(children, list):
            for child in children:
                if isinstance(child, str):
                    element.append(self.document.create_text_node(child))
                    continue
                if not isinstance(child, dict):
                    continue
                child_element, child_slot = self._materialize(child)
                element.append(child_element)
                if child_element.get(SLOT_ATTRIBUTE) == DEFAULT_SLOT:
                    # the first direct child slot wins over one found deeper in an earlier child
                    if slot is None or (slot is not element and slot.parent is not element):
                        slot = child_element
                elif slot is None and child_slot is not None:
                    slot = child_slot

        text = template.get("text")
        if text is not None and text != "" and not children:
            element.append(self.document.create_text_node(to_js_string(text)))

        return element, slot

    def _error_placeholder(self, code: str, message: str) -> Tag:
        element = self.document.create_element("div", {"class": "jsonia-render-error", "data-error": code})
        element.append(self.document.create_comment(f" {message} "))
        return element

    # ---------------------------------------------------------------------------
    # Editor drop zones
    # ---------------------------------------------------------------------------

    def _wire_slot(self, slot: Tag, container_like: bool) -> None:
        set_attribute(slot, "data-drop-zone", "true")
        add_class(slot, "slot-drop-zone")

        def on_dragover(event: DomEvent) -> None:
            event.prevent_default()
            event.stop_propagation()
            if event.data_transfer is not None:
                event.data_transfer.drop_effect = "copy"
            add_class(slot, "drag-over-slot")

        def on_dragleave(event: DomEvent) -> None:
            if not contains(slot, event.related_target):
                remove_class(slot, "drag-over-slot")

        async def on_drop(event: DomEvent) -> None:
            event.prevent_default()
            event.stop_propagation()
            remove_class(slot, "drag-over-slot")
            await self._run_drop_actions(slot, event)

        self.document.add_event_listener("dragover", on_dragover, slot)
        self.document.add_event_listener("dragleave", on_dragleave, slot)
        self.document.add_event_listener("drop", on_drop, slot)

        if container_like and not element_children(slot):
            self._add_inner_drop_zone(slot)

    def _add_inner_drop_zone(self, slot: Tag) -> None:
        placeholder = self.document.create_element("div", {"class": "inner-drop-zone", "data-drop-zone": "true"})

        def on_dragover(event: DomEvent) -> None:
            event.prevent_default()
            event.stop_propagation()
            if event.data_transfer is not None:
                event.data_transfer.drop_effect = "copy"

        async def on_drop(event: DomEvent) -> None:
            event.prevent_default()
            event.stop_immediate_propagation()
            await self._run_drop_actions(slot, event)

        self.document.add_event_listener("dragover", on_dragover, placeholder)
        self.document.add_event_listener("drop", on_drop, placeholder)
        slot.append(placeholder)

    async def _run_drop_actions(self, slot: Tag, event: DomEvent) -> None:
        if self.runtime is None:
            return
        actions = self.runtime.get_state("innerDropActions")
        if not actions:
            return
        self.runtime.set_state("currentDropZone", slot)
        await self.runtime.execute_actions(actions, event)

    # ---------------------------------------------------------------------------
    # Slots
    # ---------------------------------------------------------------------------

    def find_slot(self, element: Tag, slot_name: str = DEFAULT_SLOT) -> Tag | None:
        return find_slot(element, slot_name)

    def insert_into_slot(self, container: Tag, children: Any, slot_name: str = DEFAULT_SLOT) -> bool:
        return insert_into_slot(container, children, slot_name)

    # ---------------------------------------------------------------------------
    # Palette
    # ---------------------------------------------------------------------------

    def create_component_category(
        self,
        name: str,
        components: Any,
        icon_map: dict[str, str] | None = None,
        is_shared: bool = False,
    ) -> Tag:
        container = self.document.create_element("div", {"class": "component-category"})
        header = self.document.create_element("div", {"class": "component-category-header"})
        if name:
            header.append(self.document.create_text_node(name))
        container.append(header)

        listing = self.document.create_element("div", {"class": "component-category-list"})
        if isinstance(components, list):
            for component in components:
                if not isinstance(component, dict):
                    logger.warning("renderer: skipping palette entry %r", component)
                    continue
                listing.append(self.create_component_item(component, icon_map, is_shared))
        container.append(listing)
        return container

    def create_component_item(
        self,
        component: dict[str, Any],
        icon_map: dict[str, str] | None = None,
        is_shared: bool = False,
    ) -> Tag:
        icons = icon_map or {}
        classes = "component-item shared-component" if is_shared else "component-item"
        item = self.document.create_element(
            "div",
            {
                "class": classes,
                "draggable": "true",
                "data-component-type": component.get("type") or component.get("tag") or "unknown",
                "data-component": json.dumps(component, ensure_ascii=False, default=str),
            },
        )

        markup = chevron.render(
            COMPONENT_ITEM_TEMPLATE,
            {
                "icon": component.get("icon") or icons.get(component.get("tag", "")) or icons.get("default") or DEFAULT_ICON,
                "name": component.get("name") or component.get("tag") or "",
                "description": component.get("description") or "",
            },
        )
        for node in self.document.parse_fragment(markup):
            item.append(node)

        async def on_dragstart(event: DomEvent) -> None:
            add_class(item, "dragging")
            if self.runtime is None:
                return
            actions = self.runtime.get_state("dragStartActions")
            if actions:
                await self.runtime.execute_actions(actions, event)

        def on_dragend(event: DomEvent) -> None:
            remove_class(item, "dragging")

        self.document.add_event_listener("dragstart", on_dragstart, item)
        self.document.add_event_listener("dragend", on_dragend, item)
        return item

    # ---------------------------------------------------------------------------
    # Canvas outline
    # ---------------------------------------------------------------------------

    def build_tree_html(self, element: Tag | None, level: int = 0, options: dict[str, Any] | None = None) -> str:
        """Outline markup for the editor canvas, one tree-node per component."""
        if not is_element(element):
            return ""

        if element.get("id") == "drop-zone":
            return "".join(self.build_tree_html(child, level, options) for child in element_children(element))

        if not any(has_class(element, cls) for cls in _NESTED_CLASSES):
            return ""

        actual = next((c for c in element_children(element) if not has_class(c, "delete-component-btn")), None)
        if actual is None:
            return ""

        label = actual.name
        if actual.get("id"):
            label += f"#{actual['id']}"
        classes = get_classes(actual)
        if classes:
            label += "." + ".".join(classes)

        text = ""
        if len(actual.contents) == 1 and not is_element(actual.contents[0]):
            text = actual.get_text().strip()
            if len(text) > _TREE_TEXT_LIMIT:
                text = text[:_TREE_TEXT_LIMIT] + "..."

        html = chevron.render(
            TREE_NODE_TEMPLATE,
            {
                "indent": level * _TREE_INDENT,
                "component_id": element.get("data-component-id", ""),
                "label": label,
                "text": text,
            },
        )

        slots = actual.select(f"[{SLOT_ATTRIBUTE}]")
        if slots:
            for slot in slots:
                for nested in element_children(slot):
                    if any(has_class(nested, cls) for cls in _NESTED_CLASSES):
                        html += self.build_tree_html(nested, level + 1, options)
        else:
            for child in element_children(actual):
                if any(has_class(child, cls) for cls in _NESTED_CLASSES):
                    html += self.build_tree_html(child, level + 1, options)
        return html


# ---------------------------------------------------------------------------
# Slot helpers
# ---------------------------------------------------------------------------


def find_slot(element: Tag | None, slot_name: str = DEFAULT_SLOT) -> Tag | None:
    """The element itself when it is the slot, else its first descendant slot."""
    if not is_element(element):
        return None
    if element.get(SLOT_ATTRIBUTE) == slot_name:
        return element
    return select_one(element, f'[{SLOT_ATTRIBUTE}="{slot_name}"]')


def insert_into_slot(container: Tag, children: Any, slot_name: str = DEFAULT_SLOT) -> bool:
    """
    Append element children into the container's slot (or the container).
    Returns True when a slot was found.
    """
    slot = find_slot(container, slot_name)
    target = slot if slot is not None else container
    items = children if isinstance(children, list) else [children]
    for child in items:
        if is_element(child):
            append_child(target, child)
    return slot is not None


def _template_of(node: Any) -> dict[str, Any]:
    if not isinstance(node, dict):
        return {}
    template = node.get("template")
    return template if isinstance(template, dict) else node
