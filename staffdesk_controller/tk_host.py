"""Tk host binding: exposes Tk widgets and events to the toolkit-agnostic controllers."""

from __future__ import annotations

import itertools
import logging
import weakref
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, Iterator, List, Optional, Tuple

from staffdesk_controller.controller.elements import Event, KeyEvent

if TYPE_CHECKING:
    import tkinter as tk

LOGGER = logging.getLogger("StaffDesk.Controller")

_KEYSYM_NAMES = {
    "Return": "Enter",
    "KP_Enter": "Enter",
    "Up": "ArrowUp",
    "Down": "ArrowDown",
    "Left": "ArrowLeft",
    "Right": "ArrowRight",
    "Escape": "Escape",
    "space": " ",
    "Tab": "Tab",
}

_CLASS_TAGS = {
    "Entry": ("input", "text"),
    "TEntry": ("input", "text"),
    "Spinbox": ("input", "number"),
    "TSpinbox": ("input", "number"),
    "Checkbutton": ("input", "checkbox"),
    "TCheckbutton": ("input", "checkbox"),
    "Radiobutton": ("input", "radio"),
    "TRadiobutton": ("input", "radio"),
    "TCombobox": ("select", None),
    "Listbox": ("select", None),
    "Menubutton": ("select", None),
    "TMenubutton": ("select", None),
    "Text": ("textarea", None),
    "Button": ("button", "button"),
    "TButton": ("button", "button"),
}

# Key presses go through a per-document bindtag placed ahead of the widget's
# class tag, so returning "break" suppresses the class binding (Combobox posting,
# Entry cursor moves, Text newlines). Pointer and visibility events are bound on
# the root's toplevel tag, which every widget in that window carries.
SCOPE_NAV = "nav"
SCOPE_TOPLEVEL = "toplevel"

NAV_BINDTAG_PREFIX = "StaffDeskNav"

# Activity event name -> (Tk sequence, binding scope)
ACTIVITY_SEQUENCES: Dict[str, Tuple[Tuple[str, str], ...]] = {
    "keydown": (("<KeyPress>", SCOPE_NAV),),
    "pointermove": (("<Motion>", SCOPE_TOPLEVEL),),
    "pointerdown": (("<ButtonPress>", SCOPE_TOPLEVEL),),
    "scroll": (("<MouseWheel>", SCOPE_TOPLEVEL), ("<Button-4>", SCOPE_TOPLEVEL), ("<Button-5>", SCOPE_TOPLEVEL)),
    # Tk has no touch events; touchstart subscriptions are accepted and never fire.
    "touchstart": (),
    "visibilitychange": (("<Map>", SCOPE_TOPLEVEL), ("<Unmap>", SCOPE_TOPLEVEL)),
}

_DOCUMENT_IDS = itertools.count(1)

_ATTRIBUTES: "weakref.WeakKeyDictionary[object, Dict[str, str]]" = weakref.WeakKeyDictionary()
_LISTENERS: "weakref.WeakKeyDictionary[object, Dict[str, List[Callable[[object], object]]]]" = (
    weakref.WeakKeyDictionary()
)
_FILE_DIALOGS: "weakref.WeakKeyDictionary[object, Callable[[object], str]]" = weakref.WeakKeyDictionary()


def normalize_keysym(keysym: str) -> str:
    return _KEYSYM_NAMES.get(keysym, keysym)


def mark(widget: object, **attrs: object) -> object:
    """Attach form attributes to a widget, e.g. ``mark(frame, form=True)`` or ``mark(btn, type="submit")``.

    Underscores in names become dashes (``data_cancel`` -> ``data-cancel``);
    ``True`` stores a flag and ``False``/``None`` removes the attribute.
    """

    store = _ATTRIBUTES.setdefault(widget, {})
    for name, value in attrs.items():
        key = name.replace("_", "-")
        if value is None or value is False:
            store.pop(key, None)
        elif value is True:
            store[key] = ""
        else:
            store[key] = str(value)
    return widget


def set_file_dialog(widget: object, dialog: Callable[[object], str]) -> None:
    _FILE_DIALOGS[widget] = dialog


def _default_file_dialog(widget: object) -> str:
    from tkinter import filedialog

    return filedialog.askopenfilename(parent=widget) or ""


def _widget_disabled(widget: object) -> bool:
    instate = getattr(widget, "instate", None)
    if callable(instate):
        try:
            return bool(instate(["disabled"]))
        except Exception:
            pass
    try:
        return str(widget.cget("state")) == "disabled"  # type: ignore[attr-defined]
    except Exception:
        return False


@dataclass(frozen=True)
class TkElement:
    """Element handle over a Tk widget."""

    widget: object

    @property
    def tag(self) -> str:
        explicit = _ATTRIBUTES.get(self.widget, {})
        if "tag" in explicit:
            return explicit["tag"]
        if "form" in explicit:
            return "form"
        return _CLASS_TAGS.get(self._widget_class(), ("div", None))[0]

    @property
    def parent(self) -> Optional["TkElement"]:
        master = getattr(self.widget, "master", None)
        return TkElement(master) if master is not None else None

    def _widget_class(self) -> str:
        try:
            return str(self.widget.winfo_class())  # type: ignore[attr-defined]
        except Exception:
            return ""

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        explicit = _ATTRIBUTES.get(self.widget, {})
        if name in explicit:
            return explicit[name]
        if name == "disabled":
            return "" if _widget_disabled(self.widget) else default
        if name == "type":
            implied = _CLASS_TAGS.get(self._widget_class(), ("div", None))[1]
            return implied if implied is not None else default
        return default

    def has(self, name: str) -> bool:
        return self.get(name) is not None

    def is_rendered(self) -> bool:
        try:
            return bool(self.widget.winfo_viewable())  # type: ignore[attr-defined]
        except Exception:
            return False

    def iter_descendants(self) -> Iterator["TkElement"]:
        try:
            children = list(self.widget.winfo_children())  # type: ignore[attr-defined]
        except Exception:
            children = []
        for child in children:
            element = TkElement(child)
            yield element
            yield from element.iter_descendants()

    def text_content(self) -> str:
        try:
            return str(self.widget.cget("text"))  # type: ignore[attr-defined]
        except Exception:
            return ""

    def focus(self) -> None:
        self.widget.focus_set()  # type: ignore[attr-defined]

    def open_file_picker(self) -> None:
        dialog = _FILE_DIALOGS.get(self.widget, _default_file_dialog)
        path = dialog(self.widget)
        if not path:
            return
        mark(self.widget, value=path)
        self.dispatch(Event("change"))

    def add_listener(self, event_type: str, callback: Callable[[object], object]) -> None:
        _LISTENERS.setdefault(self.widget, {}).setdefault(event_type, []).append(callback)

    def remove_listener(self, event_type: str, callback: Callable[[object], object]) -> None:
        listeners = _LISTENERS.get(self.widget, {}).get(event_type)
        if listeners and callback in listeners:
            listeners.remove(callback)

    def dispatch(self, event: Event) -> Event:
        """Deliver ``event`` here, then to each ancestor widget's listeners."""

        event.target = self
        node: Optional[TkElement] = self
        while node is not None and not event.propagation_stopped:
            for callback in list(_LISTENERS.get(node.widget, {}).get(event.type, ())):
                callback(event)
            node = node.parent
        return event


class TkScheduler:
    """``after``/``after_cancel`` pair bound to one widget."""

    def __init__(self, widget: "tk.Misc") -> None:  # type: ignore[name-defined]  # noqa: F821
        self.widget = widget

    def after(self, delay_ms: int, callback: Callable[[], None]) -> object:
        return self.widget.after(delay_ms, callback)

    def cancel(self, handle: object) -> None:
        self.widget.after_cancel(handle)  # type: ignore[arg-type]


def _iter_widget_tree(widget: object) -> Iterator[object]:
    yield widget
    try:
        children = list(widget.winfo_children())  # type: ignore[attr-defined]
    except Exception:
        children = []
    for child in children:
        yield from _iter_widget_tree(child)


def prepend_bindtag(widget: object, tag: str) -> bool:
    """Put ``tag`` first in the widget's bindtags; returns True when it was added."""

    tags = tuple(widget.bindtags())  # type: ignore[attr-defined]
    if tag in tags:
        return False
    widget.bindtags((tag,) + tags)  # type: ignore[attr-defined]
    return True


def strip_bindtag(widget: object, tag: str) -> None:
    tags = tuple(widget.bindtags())  # type: ignore[attr-defined]
    if tag in tags:
        widget.bindtags(tuple(item for item in tags if item != tag))  # type: ignore[attr-defined]


class TkDocument:
    """Event source for a Tk root: one Tk binding per sequence fans out to registered listeners.

    Key presses are delivered to the focused widget's element listeners first
    (bubbling through its masters), then to document-level listeners. The key
    binding lives on :attr:`bindtag`, which is prepended to every widget in the
    root window (existing widgets when keys are first listened for, later ones
    when they take focus) and removed again when the last key listener leaves.
    The ``all`` tag is never touched, so host bindings there stay intact.
    """

    def __init__(self, root: "tk.Misc") -> None:  # type: ignore[name-defined]  # noqa: F821
        self.root = root
        self.bindtag = f"{NAV_BINDTAG_PREFIX}{next(_DOCUMENT_IDS)}"
        self._listeners: Dict[str, List[Callable[[object], object]]] = {}
        self._bound: Dict[str, Optional[str]] = {}
        self._focus_funcid: Optional[str] = None

    def add_listener(self, event_type: str, callback: Callable[[object], object]) -> None:
        listeners = self._listeners.setdefault(event_type, [])
        listeners.append(callback)
        if len(listeners) == 1:
            self._bind(event_type)

    def remove_listener(self, event_type: str, callback: Callable[[object], object]) -> None:
        listeners = self._listeners.get(event_type)
        if not listeners or callback not in listeners:
            return
        listeners.remove(callback)
        if not listeners:
            del self._listeners[event_type]
            self._unbind(event_type)

    def listener_count(self, event_type: str) -> int:
        return len(self._listeners.get(event_type, ()))

    def _bind(self, event_type: str) -> None:
        for sequence, scope in ACTIVITY_SEQUENCES.get(event_type, ()):
            if sequence in self._bound:
                continue
            handler = self._make_handler(sequence)
            if scope == SCOPE_NAV:
                funcid = self.root.bind_class(self.bindtag, sequence, handler)
                self._attach_bindtags()
            else:
                funcid = self.root.bind(sequence, handler, add="+")
            self._bound[sequence] = funcid

    def _unbind(self, event_type: str) -> None:
        for sequence, scope in ACTIVITY_SEQUENCES.get(event_type, ()):
            if any(
                sequence in (seq for seq, _ in ACTIVITY_SEQUENCES.get(other, ()))
                for other in self._listeners
            ):
                continue
            if sequence not in self._bound:
                continue
            funcid = self._bound.pop(sequence)
            if scope == SCOPE_NAV:
                self.root.unbind_class(self.bindtag, sequence)
                if not any(bound_scope == SCOPE_NAV for _seq, bound_scope in self._bound_scopes()):
                    self._detach_bindtags()
                continue
            try:
                self.root.unbind(sequence, funcid)
            except Exception as exc:
                # Some widgets do not implement unbind; ignore in that case.
                LOGGER.debug("Failed to unbind %s: %s", sequence, exc)

    def _bound_scopes(self) -> Iterator[Tuple[str, str]]:
        for pairs in ACTIVITY_SEQUENCES.values():
            for sequence, scope in pairs:
                if sequence in self._bound:
                    yield sequence, scope

    def _attach_bindtags(self) -> None:
        for widget in _iter_widget_tree(self.root):
            prepend_bindtag(widget, self.bindtag)
        if self._focus_funcid is None:
            # FocusIn reaches the root through its toplevel tag; tag widgets created after mount.
            self._focus_funcid = self.root.bind("<FocusIn>", self._on_focus_in, add="+")

    def _detach_bindtags(self) -> None:
        funcid, self._focus_funcid = self._focus_funcid, None
        if funcid is not None:
            try:
                self.root.unbind("<FocusIn>", funcid)
            except Exception as exc:
                LOGGER.debug("Failed to unbind <FocusIn>: %s", exc)
        for widget in _iter_widget_tree(self.root):
            strip_bindtag(widget, self.bindtag)

    def _on_focus_in(self, tk_event: object) -> None:
        widget = getattr(tk_event, "widget", None)
        if widget is None or isinstance(widget, str):
            return
        if prepend_bindtag(widget, self.bindtag):
            LOGGER.debug("Navigation bindtag added to %r on focus", widget)

    def _make_handler(self, sequence: str) -> Callable[[object], Optional[str]]:
        event_types = [name for name, pairs in ACTIVITY_SEQUENCES.items() if sequence in (seq for seq, _ in pairs)]

        def _handler(tk_event: object) -> Optional[str]:
            if sequence in ("<Map>", "<Unmap>") and getattr(tk_event, "widget", None) is not self.root:
                return None
            handled = False
            for event_type in event_types:
                if event_type in self._listeners:
                    handled = self.dispatch(event_type, tk_event).default_prevented or handled
            return "break" if handled else None

        return _handler

    def dispatch(self, event_type: str, tk_event: object) -> Event:
        widget = getattr(tk_event, "widget", None)
        target = TkElement(widget) if widget is not None and not isinstance(widget, str) else None
        if event_type == "keydown":
            event: Event = KeyEvent(event_type, key=normalize_keysym(str(getattr(tk_event, "keysym", ""))))
        else:
            event = Event(event_type)
        if target is not None:
            target.dispatch(event)
        else:
            event.target = None
        if not event.propagation_stopped:
            for callback in list(self._listeners.get(event_type, ())):
                try:
                    callback(event)
                except Exception:
                    LOGGER.exception("Listener for %s failed", event_type)
        return event
