from .app_context import AppContext, build_app_context
from .elements import Document, Element, ElementHandle, Event, KeyEvent
from .form_navigation import (
    FormNavigationController,
    collect_focusable,
    find_cancel_button,
    find_submit_button,
    nearest_container,
)
from .keyboard_activation import KeyboardActivator

__all__ = [
    "AppContext",
    "build_app_context",
    "Document",
    "Element",
    "ElementHandle",
    "Event",
    "KeyEvent",
    "FormNavigationController",
    "collect_focusable",
    "find_cancel_button",
    "find_submit_button",
    "nearest_container",
    "KeyboardActivator",
]
