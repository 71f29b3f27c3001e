"""
Jsonia Runtime — Document

In-memory HTML document the runtime reads and mutates. The tree is a
BeautifulSoup tree (elements are bs4 Tags, text nodes NavigableStrings, CSS
selectors through soupsieve); on top of it the Document keeps an event system
with per-element and document-level listeners and bubbling dispatch.

Element identity is object identity. bs4 Tags compare equal by markup, so
listener tables are keyed by id() and never by the Tag itself.
"""

from __future__ import annotations

import inspect
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import soupsieve
from bs4 import BeautifulSoup, Comment, NavigableString, Tag
from bs4.element import PageElement

from jsonia.runtime.types import UNDEFINED

logger = logging.getLogger(__name__)

Listener = Callable[[Any], Any]

DEFAULT_HTML = "<!DOCTYPE html><html><head></head><body></body></html>"
LISTENERS_ATTRIBUTE = "_jsonia_listeners"

_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@dataclass(eq=False)
class DataTransfer:
    """Drag payload carried by drag-and-drop events."""

    effect_allowed: str = "all"
    drop_effect: str = "none"
    _data: dict[str, str] = field(default_factory=dict)

    def set_data(self, fmt: str, data: Any) -> None:
        self._data[fmt] = data if isinstance(data, str) else str(data)

    def get_data(self, fmt: str) -> str:
        return self._data.get(fmt, "")

    def clear_data(self, fmt: str | None = None) -> None:
        if fmt is None:
            self._data.clear()
        else:
            self._data.pop(fmt, None)

    @property
    def types(self) -> list[str]:
        return list(self._data)


@dataclass(eq=False)
class DomEvent:
    """A dispatched event. current_target is set while listeners run."""

    type: str
    target: PageElement | None = None
    detail: Any = None
    data_transfer: DataTransfer | None = None
    related_target: PageElement | None = None
    bubbles: bool = True
    current_target: PageElement | None = None
    default_prevented: bool = False
    propagation_stopped: bool = False
    immediate_propagation_stopped: bool = False

    def prevent_default(self) -> None:
        self.default_prevented = True

    def stop_propagation(self) -> None:
        self.propagation_stopped = True

    def stop_immediate_propagation(self) -> None:
        self.propagation_stopped = True
        self.immediate_propagation_stopped = True


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------


class Document:
    """An HTML document with listener tables and event dispatch."""

    def __init__(self, html: str | None = None) -> None:
        self.soup = BeautifulSoup(html if html is not None else DEFAULT_HTML, "html.parser")
        self._document_listeners: dict[str, list[Listener]] = {}

    def __str__(self) -> str:
        return str(self.soup)

    @property
    def body(self) -> Tag:
        return self.soup.body or self.soup

    @property
    def head(self) -> Tag:
        return self.soup.head or self.soup

    # -- factories ----------------------------------------------------------

    def create_element(self, tag: str, attrs: dict[str, Any] | None = None) -> Tag:
        element = self.soup.new_tag(tag or "div")
        for name, value in (attrs or {}).items():
            set_attribute(element, name, value)
        return element

    def create_text_node(self, text: str) -> NavigableString:
        return NavigableString(text)

    def create_comment(self, text: str) -> Comment:
        return Comment(text)

    def parse_fragment(self, html: str) -> list[PageElement]:
        """Parse an HTML fragment into detached nodes."""
        return parse_fragment(html)

    # -- queries ------------------------------------------------------------

    def query_selector(self, selector: str, root: Tag | None = None) -> Tag | None:
        scope = self.soup if root is None else root
        try:
            return soupsieve.select_one(selector, scope)
        except soupsieve.SelectorSyntaxError:
            logger.warning("dom: invalid selector %r", selector)
            return None

    def query_selector_all(self, selector: str, root: Tag | None = None) -> list[Tag]:
        scope = self.soup if root is None else root
        try:
            return soupsieve.select(selector, scope)
        except soupsieve.SelectorSyntaxError:
            logger.warning("dom: invalid selector %r", selector)
            return []

    def get_element_by_id(self, element_id: str) -> Tag | None:
        return self.soup.find(id=element_id)

    def is_attached(self, node: PageElement | None) -> bool:
        """True if node belongs to this document's tree."""
        if node is None:
            return False
        if node is self.soup:
            return True
        return any(p is self.soup for p in node.parents)

    # -- listeners ----------------------------------------------------------

    def add_event_listener(self, type: str, listener: Listener, target: Tag | None = None) -> None:
        """Attach a listener to an element, or to the document root when target is None."""
        bucket = self._listener_table(target, create=True).setdefault(type, [])
        if listener not in bucket:
            bucket.append(listener)

    def remove_event_listener(self, type: str, listener: Listener, target: Tag | None = None) -> None:
        table = self._listener_table(target, create=False)
        bucket = table.get(type, [])
        if listener in bucket:
            bucket.remove(listener)

    def listener_count(self, type: str | None = None, target: Tag | None = None) -> int:
        table = self._listener_table(target, create=False)
        if type is not None:
            return len(table.get(type, []))
        return sum(len(b) for b in table.values())

    def _listener_table(self, target: Tag | None, create: bool) -> dict[str, list[Listener]]:
        if target is None:
            return self._document_listeners
        # element tables live on the element, so they go away with it
        table = target.__dict__.get(LISTENERS_ATTRIBUTE)
        if table is None:
            if not create:
                return {}
            table = {}
            setattr(target, LISTENERS_ATTRIBUTE, table)
        return table

    # -- dispatch -----------------------------------------------------------

    async def dispatch_event(self, event: DomEvent) -> DomEvent:
        """
        Run listeners from the target up through its ancestors, then the
        document listeners. Listener failures are logged and do not stop
        the remaining listeners.
        """
        path = _propagation_path(event.target)
        for node in path:
            event.current_target = node
            await self._run_listeners(list(self._listener_table(node, create=False).get(event.type, [])), event)
            if event.propagation_stopped or not event.bubbles:
                break
        else:
            if event.target is None or self.is_attached(event.target):
                event.current_target = None
                await self._run_listeners(list(self._document_listeners.get(event.type, [])), event)
        event.current_target = None
        return event

    async def fire(self, type: str, target: PageElement | None = None, **kwargs: Any) -> DomEvent:
        """Build and dispatch an event in one call."""
        return await self.dispatch_event(DomEvent(type=type, target=target, **kwargs))

    async def _run_listeners(self, listeners: list[Listener], event: DomEvent) -> None:
        for listener in listeners:
            try:
                result = listener(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("dom: %s listener failed", event.type)
            if event.immediate_propagation_stopped:
                break


def _propagation_path(target: PageElement | None) -> list[Tag]:
    if target is None:
        return []
    node = target if isinstance(target, Tag) else target.parent
    if node is None or isinstance(node, BeautifulSoup):
        return []
    return [node] + [p for p in node.parents if not isinstance(p, BeautifulSoup)]


# ---------------------------------------------------------------------------
# Element helpers
# ---------------------------------------------------------------------------


def is_element(node: Any) -> bool:
    return isinstance(node, Tag) and not isinstance(node, BeautifulSoup)


def parse_fragment(html: str) -> list[PageElement]:
    fragment = BeautifulSoup(html or "", "html.parser")
    return [node.extract() for node in list(fragment.contents)]


def closest(node: PageElement | None, selector: str) -> Tag | None:
    """Nearest inclusive ancestor element matching selector."""
    if node is None:
        return None
    element = node if isinstance(node, Tag) else node.parent
    if element is None or isinstance(element, BeautifulSoup):
        return None
    try:
        return soupsieve.closest(selector, element)
    except soupsieve.SelectorSyntaxError:
        logger.warning("dom: invalid selector %r", selector)
        return None


def matches(element: Tag, selector: str) -> bool:
    try:
        return soupsieve.match(selector, element)
    except soupsieve.SelectorSyntaxError:
        logger.warning("dom: invalid selector %r", selector)
        return False


def select_one(root: Tag, selector: str) -> Tag | None:
    try:
        return soupsieve.select_one(selector, root)
    except soupsieve.SelectorSyntaxError:
        logger.warning("dom: invalid selector %r", selector)
        return None


def get_classes(element: Tag) -> list[str]:
    value = element.get("class")
    if value is None:
        return []
    if isinstance(value, str):
        return value.split()
    return list(value)


def _store_classes(element: Tag, classes: list[str]) -> None:
    if classes:
        element["class"] = classes
    elif element.has_attr("class"):
        del element["class"]


def has_class(element: Tag, name: str) -> bool:
    return name in get_classes(element)


def add_class(element: Tag, *names: str) -> None:
    classes = get_classes(element)
    for name in names:
        if name and name not in classes:
            classes.append(name)
    _store_classes(element, classes)


def remove_class(element: Tag, *names: str) -> None:
    _store_classes(element, [c for c in get_classes(element) if c not in names])


def toggle_class(element: Tag, name: str) -> bool:
    """Toggle a class; returns True when the class is now present."""
    if has_class(element, name):
        remove_class(element, name)
        return False
    add_class(element, name)
    return True


def set_attribute(element: Tag, name: str, value: Any) -> None:
    if name == "class":
        _store_classes(element, str(value).split())
    else:
        element[name] = value if isinstance(value, str) else _attr_string(value)


def remove_attribute(element: Tag, name: str) -> None:
    if element.has_attr(name):
        del element[name]


def _attr_string(value: Any) -> str:
    if value is True:
        return "true"
    if value is False:
        return "false"
    if value is None:
        return "null"
    return str(value)


def text_content(node: PageElement) -> str:
    if isinstance(node, Tag):
        return node.get_text()
    return str(node)


def set_text_content(element: Tag, text: str) -> None:
    element.clear()
    if text:
        element.append(NavigableString(text))


def inner_html(element: Tag) -> str:
    return "".join(str(child) for child in element.contents)


def set_inner_html(element: Tag, html: str) -> None:
    element.clear()
    for node in parse_fragment(html):
        element.append(node)


def append_child(parent: Tag, child: PageElement) -> None:
    """Append child, detaching it from its current parent first."""
    if child.parent is not None:
        child.extract()
    parent.append(child)


def remove_node(node: PageElement) -> None:
    if node.parent is not None:
        node.extract()


def element_children(element: Tag) -> list[Tag]:
    return [child for child in element.children if isinstance(child, Tag)]


def contains(ancestor: Tag, node: PageElement | None) -> bool:
    """Inclusive containment by identity."""
    if node is None:
        return False
    if node is ancestor:
        return True
    return any(p is ancestor for p in node.parents)


def camel_to_kebab(name: str) -> str:
    return _CAMEL_BOUNDARY.sub(r"\1-\2", name).lower()


def kebab_to_camel(name: str) -> str:
    head, *rest = name.split("-")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def style_to_css(style: dict[str, Any]) -> str:
    return "; ".join(f"{camel_to_kebab(prop)}: {value}" for prop, value in style.items())


def element_property(element: Tag, name: str) -> Any:
    """
    Read a DOM-style property of an element.
    Unknown names fall back to the attribute of that name (UNDEFINED if absent).
    """
    if name in ("textContent", "innerText"):
        return element.get_text()
    if name == "innerHTML":
        return inner_html(element)
    if name == "outerHTML":
        return str(element)
    if name in ("tagName", "nodeName"):
        return element.name.upper()
    if name == "localName":
        return element.name
    if name == "className":
        return " ".join(get_classes(element))
    if name == "classList":
        return get_classes(element)
    if name == "value":
        return _element_value(element)
    if name == "checked":
        return element.has_attr("checked")
    if name == "dataset":
        return {kebab_to_camel(k[5:]): v for k, v in element.attrs.items() if k.startswith("data-")}
    if name in ("parentElement", "parentNode"):
        parent = element.parent
        return parent if is_element(parent) else None
    if name == "children":
        return element_children(element)
    if name == "childElementCount":
        return len(element_children(element))
    if name == "firstElementChild":
        kids = element_children(element)
        return kids[0] if kids else None
    if name == "lastElementChild":
        kids = element_children(element)
        return kids[-1] if kids else None
    value = element.get(name)
    if value is None:
        return UNDEFINED
    if isinstance(value, list):
        return " ".join(value)
    return value


def _element_value(element: Tag) -> str:
    if element.name == "textarea":
        return element.get_text()
    if element.name == "select":
        options = element.find_all("option")
        chosen = next((o for o in options if o.has_attr("selected")), options[0] if options else None)
        if chosen is None:
            return ""
        return chosen.get("value", chosen.get_text())
    return element.get("value", "")


def form_data(form: Tag) -> dict[str, str]:
    """Named control values of a form, in document order."""
    data: dict[str, str] = {}
    for control in form.find_all(["input", "select", "textarea"]):
        name = control.get("name")
        if not name:
            continue
        if control.name == "input" and control.get("type") in ("checkbox", "radio"):
            if not control.has_attr("checked"):
                continue
            data[name] = control.get("value", "on")
            continue
        data[name] = _element_value(control)
    return data


def describe_node(node: Any) -> str:
    """Short label for a node, e.g. <div#main.card.open>."""
    if isinstance(node, Tag):
        label = node.name
        if node.get("id"):
            label += f"#{node['id']}"
        for cls in get_classes(node):
            label += f".{cls}"
        return f"<{label}>"
    if isinstance(node, NavigableString):
        return "#text"
    return repr(node)
