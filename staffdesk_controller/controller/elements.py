"""In-memory element tree used as the host model for the keyboard controllers.

The controllers only rely on :class:`ElementHandle`; this module provides the
reference implementation (``Element``/``Document``) with DOM-like event
bubbling, which is also what the tests drive.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Protocol


class ElementHandle(Protocol):
    tag: str

    @property
    def parent(self) -> Optional["ElementHandle"]: ...

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]: ...

    def has(self, name: str) -> bool: ...

    def is_rendered(self) -> bool: ...

    def iter_descendants(self) -> Iterator["ElementHandle"]: ...

    def text_content(self) -> str: ...

    def focus(self) -> None: ...

    def open_file_picker(self) -> None: ...

    def add_listener(self, event_type: str, callback: Callable[[object], object]) -> None: ...

    def remove_listener(self, event_type: str, callback: Callable[[object], object]) -> None: ...


@dataclass
class Event:
    type: str
    target: Optional[object] = None
    default_prevented: bool = False
    propagation_stopped: bool = False

    def prevent_default(self) -> None:
        self.default_prevented = True

    def stop_propagation(self) -> None:
        self.propagation_stopped = True


@dataclass
class KeyEvent(Event):
    key: str = ""
    modifiers: frozenset[str] = field(default_factory=frozenset)


class Element:
    """A node in the element tree."""

    def __init__(
        self,
        tag: str,
        attrs: Optional[Mapping[str, object]] = None,
        *,
        text: str = "",
        rendered: bool = True,
        children: Iterable["Element"] = (),
    ) -> None:
        self.tag = tag.lower()
        self.attributes: Dict[str, str] = {}
        for name, value in (attrs or {}).items():
            self.set(name, value)
        self.text = text
        self.rendered = rendered
        self._parent: Optional[Element] = None
        self._children: List[Element] = []
        self._listeners: Dict[str, List[Callable[[object], object]]] = {}
        self.picker_requests = 0
        for child in children:
            self.append(child)

    def __repr__(self) -> str:
        ident = self.attributes.get("id") or self.attributes.get("name") or self.text
        return f"<{self.tag} {ident!r}>" if ident else f"<{self.tag}>"

    @property
    def parent(self) -> Optional["Element"]:
        return self._parent

    @property
    def children(self) -> tuple["Element", ...]:
        return tuple(self._children)

    def append(self, child: "Element") -> "Element":
        if child._parent is not None:
            child._parent._children.remove(child)
        child._parent = self
        self._children.append(child)
        return child

    def remove(self, child: "Element") -> None:
        self._children.remove(child)
        child._parent = None

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.attributes.get(name, default)

    def has(self, name: str) -> bool:
        return name in self.attributes

    def set(self, name: str, value: object) -> None:
        """Set an attribute; ``True`` stores a boolean attribute, ``False``/``None`` removes it."""

        if value is None or value is False:
            self.attributes.pop(name, None)
        elif value is True:
            self.attributes[name] = ""
        else:
            self.attributes[name] = str(value)

    def is_rendered(self) -> bool:
        node: Optional[Element] = self
        while node is not None:
            if not node.rendered:
                return False
            node = node._parent
        return True

    def iter_descendants(self) -> Iterator["Element"]:
        for child in self._children:
            yield child
            yield from child.iter_descendants()

    def iter_ancestors(self) -> Iterator["Element"]:
        node = self._parent
        while node is not None:
            yield node
            node = node._parent

    def text_content(self) -> str:
        parts = [self.text] + [child.text_content() for child in self._children]
        return "".join(part for part in parts if part)

    @property
    def document(self) -> Optional["Document"]:
        node: Optional[Element] = self
        while node is not None:
            if isinstance(node, Document):
                return node
            node = node._parent
        return None

    def focus(self) -> None:
        document = self.document
        if document is not None:
            document.set_active(self)

    def open_file_picker(self) -> None:
        self.picker_requests += 1
        document = self.document
        if document is not None and document.file_picker is not None:
            document.file_picker(self)

    def set_value(self, value: str) -> Event:
        """Store a value and fire a ``change`` event, as a host does after user input."""

        self.attributes["value"] = value
        return self.dispatch(Event("change"))

    def add_listener(self, event_type: str, callback: Callable[[object], object]) -> None:
        self._listeners.setdefault(event_type, []).append(callback)

    def remove_listener(self, event_type: str, callback: Callable[[object], object]) -> None:
        listeners = self._listeners.get(event_type)
        if not listeners:
            return
        try:
            listeners.remove(callback)
        except ValueError:
            return
        if not listeners:
            del self._listeners[event_type]

    def listener_count(self, event_type: Optional[str] = None) -> int:
        if event_type is not None:
            return len(self._listeners.get(event_type, ()))
        return sum(len(items) for items in self._listeners.values())

    def dispatch(self, event: Event) -> Event:
        """Deliver ``event`` to this node, then bubble it up through the ancestors."""

        event.target = self
        node: Optional[Element] = self
        while node is not None and not event.propagation_stopped:
            # Copy so a listener may unsubscribe itself while being called.
            for callback in list(node._listeners.get(event.type, ())):
                callback(event)
            node = node._parent
        return event


class Document(Element):
    """Root of an element tree; owns focus and the optional file picker hook."""

    def __init__(self, children: Iterable[Element] = ()) -> None:
        super().__init__("#document", children=children)
        self.active_element: Optional[Element] = None
        self.focus_changes = 0
        self.file_picker: Optional[Callable[[Element], None]] = None

    def set_active(self, element: Element) -> None:
        if element is self.active_element:
            return
        self.active_element = element
        self.focus_changes += 1

    def press(self, key: str, target: Optional[Element] = None) -> KeyEvent:
        """Dispatch a ``keydown`` at ``target`` (default: the focused element)."""

        node = target or self.active_element or self
        return node.dispatch(KeyEvent("keydown", key=key))  # type: ignore[return-value]

    def fire(self, event_type: str, target: Optional[Element] = None) -> Event:
        node = target or self.active_element or self
        return node.dispatch(Event(event_type))
