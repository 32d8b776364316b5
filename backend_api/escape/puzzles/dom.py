"""
Minimal in-memory element tree used as the puzzle mounting surface.

Puzzles render into Element nodes the same way a browser puzzle renders into
DOM nodes: tag, CSS classes, attributes, data-* dataset, inline style, text,
children and event listeners. The tree is serializable (to_dict) so an HTTP
host can hand it to a thin client renderer.

Only what the puzzle kinds need is implemented: simple CSS selectors
(tag, .class, #id, [attr] / [attr="value"], descendant combinator), event
listeners with bubbling, and listener bookkeeping so callers can verify that
unmount leaves nothing attached.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional

Listener = Callable[["Event"], None]

_COMPOUND_RE = re.compile(
    r"""
    (?P<tag>^[a-zA-Z][\w-]*)
    | \.(?P<cls>[\w-]+)
    | \#(?P<id>[\w-]+)
    | \[(?P<attr>[\w:-]+)(?:=(?P<quote>["']?)(?P<value>.*?)(?P=quote))?\]
    """,
    re.VERBOSE,
)


@dataclass
class Event:
    """An interaction delivered to an element.

    Fields:
    - type: event name (click, input, keydown, pointerdown, pointermove, pointerup)
    - target: the element the event was dispatched on
    - data: extra payload (value, key, x, y, ...)
    """

    type: str
    target: "Element"
    data: Dict[str, Any] = field(default_factory=dict)
    current_target: Optional["Element"] = None
    propagation_stopped: bool = False

    def stop_propagation(self) -> None:
        self.propagation_stopped = True

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)


class ClassList:
    """Ordered set of CSS classes with the browser's classList verbs."""

    def __init__(self, names: Optional[List[str]] = None):
        self._names: List[str] = []
        for name in names or []:
            self.add(name)

    def add(self, *names: str) -> None:
        for name in names:
            for part in str(name).split():
                if part not in self._names:
                    self._names.append(part)

    def remove(self, *names: str) -> None:
        for name in names:
            if name in self._names:
                self._names.remove(name)

    def toggle(self, name: str, force: Optional[bool] = None) -> bool:
        present = name in self._names
        want = (not present) if force is None else force
        if want:
            self.add(name)
        else:
            self.remove(name)
        return want

    def contains(self, name: str) -> bool:
        return name in self._names

    def __contains__(self, name: str) -> bool:
        return name in self._names

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._names))

    def __len__(self) -> int:
        return len(self._names)

    def __str__(self) -> str:
        return " ".join(self._names)


# PUBLIC_INTERFACE
class Element:
    """A node of the puzzle element tree."""

    def __init__(self, tag: str = "div", class_name: str = "", text: str = ""):
        self.tag = tag
        self.class_list = ClassList(class_name.split())
        self.attributes: Dict[str, str] = {}
        self.dataset: Dict[str, str] = {}
        self.style: Dict[str, str] = {}
        self.text = text
        self.value = ""
        self.children: List[Element] = []
        self.parent: Optional[Element] = None
        self._listeners: Dict[str, List[Listener]] = {}

    def __repr__(self) -> str:  # pragma: no cover
        cls = f".{'.'.join(self.class_list)}" if len(self.class_list) else ""
        data_id = self.attributes.get("data-id")
        suffix = f" data-id={data_id!r}" if data_id is not None else ""
        return f"<{self.tag}{cls}{suffix}>"

    # --- attributes -------------------------------------------------------

    @property
    def class_name(self) -> str:
        return str(self.class_list)

    def set_attribute(self, name: str, value: Any) -> None:
        self.attributes[name] = str(value)

    def get_attribute(self, name: str) -> Optional[str]:
        if name == "class":
            return self.class_name
        if name.startswith("data-") and name not in self.attributes:
            key = name[len("data-"):]
            return self.dataset.get(key)
        return self.attributes.get(name)

    def has_attribute(self, name: str) -> bool:
        return self.get_attribute(name) is not None

    def remove_attribute(self, name: str) -> None:
        self.attributes.pop(name, None)

    # --- tree -------------------------------------------------------------

    def append_child(self, child: "Element") -> "Element":
        if child.parent is not None:
            child.parent.remove_child(child)
        child.parent = self
        self.children.append(child)
        return child

    def insert_before(self, child: "Element", reference: Optional["Element"]) -> "Element":
        if reference is None or reference not in self.children:
            return self.append_child(child)
        if child.parent is not None:
            child.parent.remove_child(child)
        child.parent = self
        self.children.insert(self.children.index(reference), child)
        return child

    def remove_child(self, child: "Element") -> "Element":
        self.children.remove(child)
        child.parent = None
        return child

    def remove(self) -> None:
        if self.parent is not None:
            self.parent.remove_child(self)

    def clear_children(self) -> None:
        for child in list(self.children):
            self.remove_child(child)

    @property
    def first_child(self) -> Optional["Element"]:
        return self.children[0] if self.children else None

    def iter_descendants(self) -> Iterator["Element"]:
        for child in self.children:
            yield child
            yield from child.iter_descendants()

    def contains(self, other: "Element") -> bool:
        node: Optional[Element] = other
        while node is not None:
            if node is self:
                return True
            node = node.parent
        return False

    @property
    def text_content(self) -> str:
        parts = [self.text] if self.text else []
        for child in self.children:
            content = child.text_content
            if content:
                parts.append(content)
        return " ".join(parts)

    # --- selectors ----------------------------------------------------------

    def matches(self, selector: str) -> bool:
        compounds = _parse_selector(selector)
        if not compounds:
            return False
        if not _matches_compound(self, compounds[-1]):
            return False
        node = self.parent
        for compound in reversed(compounds[:-1]):
            while node is not None and not _matches_compound(node, compound):
                node = node.parent
            if node is None:
                return False
            node = node.parent
        return True

    def closest(self, selector: str) -> Optional["Element"]:
        node: Optional[Element] = self
        while node is not None:
            if node.matches(selector):
                return node
            node = node.parent
        return None

    def query_selector_all(self, selector: str) -> List["Element"]:
        found: List[Element] = []
        for node in self.iter_descendants():
            if _matches_within(node, selector, self):
                found.append(node)
        return found

    def query_selector(self, selector: str) -> Optional["Element"]:
        for node in self.iter_descendants():
            if _matches_within(node, selector, self):
                return node
        return None

    # --- events -------------------------------------------------------------

    def add_event_listener(self, event_type: str, listener: Listener) -> None:
        self._listeners.setdefault(event_type, []).append(listener)

    def remove_event_listener(self, event_type: str, listener: Listener) -> None:
        bucket = self._listeners.get(event_type, [])
        if listener in bucket:
            bucket.remove(listener)
        if not bucket:
            self._listeners.pop(event_type, None)

    def remove_all_listeners(self) -> None:
        self._listeners.clear()

    def listener_count(self, deep: bool = False) -> int:
        count = sum(len(v) for v in self._listeners.values())
        if deep:
            count += sum(child.listener_count(deep=True) for child in self.children)
        return count

    def dispatch_event(self, event: Event) -> Event:
        """Run listeners on this element and its ancestors (bubbling)."""
        node: Optional[Element] = self
        while node is not None and not event.propagation_stopped:
            event.current_target = node
            for listener in list(node._listeners.get(event.type, [])):
                listener(event)
                if event.propagation_stopped:
                    break
            node = node.parent
        return event

    def dispatch(self, event_type: str, **data: Any) -> Event:
        return self.dispatch_event(Event(event_type, self, dict(data)))

    def click(self) -> Event:
        return self.dispatch("click")

    def type_text(self, value: str) -> Event:
        """Set the control value and fire an input event."""
        self.value = value
        return self.dispatch("input", value=value)

    def press_key(self, key: str) -> Event:
        return self.dispatch("keydown", key=key)

    # --- serialization ------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        node: Dict[str, Any] = {"tag": self.tag}
        if len(self.class_list):
            node["class"] = self.class_name
        if self.attributes:
            node["attributes"] = dict(self.attributes)
        if self.dataset:
            node["dataset"] = dict(self.dataset)
        if self.style:
            node["style"] = dict(self.style)
        if self.text:
            node["text"] = self.text
        if self.tag in ("input", "select", "textarea"):
            node["value"] = self.value
        if self.children:
            node["children"] = [child.to_dict() for child in self.children]
        return node


# PUBLIC_INTERFACE
def create_element(tag: str = "div", class_name: str = "", text: str = "", **attributes: Any) -> Element:
    """Create an element; keyword arguments become attributes (underscores become dashes)."""
    el = Element(tag, class_name, text)
    for name, value in attributes.items():
        el.set_attribute(name.replace("_", "-"), value)
    return el


def _parse_selector(selector: str) -> List[List[Dict[str, Optional[str]]]]:
    compounds = []
    for chunk in (selector or "").split():
        parts = []
        pos = 0
        while pos < len(chunk):
            m = _COMPOUND_RE.match(chunk, pos)
            if not m or m.end() == pos:
                raise ValueError(f"Unsupported selector: {selector!r}")
            parts.append(m.groupdict())
            pos = m.end()
        compounds.append(parts)
    return compounds


def _matches_compound(node: Element, parts: List[Dict[str, Optional[str]]]) -> bool:
    for part in parts:
        if part["tag"] and node.tag != part["tag"].lower():
            return False
        if part["cls"] and part["cls"] not in node.class_list:
            return False
        if part["id"] and node.attributes.get("id") != part["id"]:
            return False
        if part["attr"]:
            actual = node.get_attribute(part["attr"])
            if actual is None:
                return False
            if part["value"] is not None and actual != part["value"]:
                return False
    return True


def _matches_within(node: Element, selector: str, scope: Element) -> bool:
    """Like matches(), but ancestors are only searched below ``scope``."""
    compounds = _parse_selector(selector)
    if not compounds or not _matches_compound(node, compounds[-1]):
        return False
    current = node.parent
    for compound in reversed(compounds[:-1]):
        while current is not None and current is not scope and not _matches_compound(current, compound):
            current = current.parent
        if current is None or current is scope:
            return False
        current = current.parent
    return True
