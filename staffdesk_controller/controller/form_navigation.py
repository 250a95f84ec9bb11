"""Keyboard focus navigation inside form-like containers."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from staffdesk_config.input_bindings import (
    ACTION_CANCEL,
    ACTION_CONFIRM,
    ACTION_FOCUS_NEXT,
    ACTION_FOCUS_PREVIOUS,
    KeyMap,
)
from staffdesk_controller.controller.elements import ElementHandle
from staffdesk_controller.services.subscriptions import EventSource, OneShotListener, Subscription

LOGGER = logging.getLogger("StaffDesk.Controller")

TARGET_TAGS = frozenset({"input", "select", "textarea", "button", "div"})
FOCUSABLE_TAGS = frozenset({"input", "select", "textarea", "button"})
DROPDOWN_TRIGGER_ROLES = frozenset({"button", "combobox"})


def is_container(element: ElementHandle) -> bool:
    return element.tag == "form" or element.get("role") == "form" or element.has("data-form")


def nearest_container(element: ElementHandle) -> Optional[ElementHandle]:
    node = element.parent
    while node is not None:
        if is_container(node):
            return node
        node = node.parent
    return None


def _is_focus_candidate(element: ElementHandle) -> bool:
    if element.tag in FOCUSABLE_TAGS:
        return True
    tabindex = element.get("tabindex")
    if tabindex is not None and tabindex.strip() != "-1":
        return True
    return element.get("role") == "button"


def _is_available(element: ElementHandle) -> bool:
    if element.has("disabled"):
        return False
    if (element.get("aria-hidden") or "").strip().lower() == "true":
        return False
    return element.is_rendered()


def collect_focusable(container: ElementHandle) -> List[ElementHandle]:
    """Return the enabled, visible interactive descendants of ``container`` in tab order."""

    return [el for el in container.iter_descendants() if _is_focus_candidate(el) and _is_available(el)]


def _is_button(element: ElementHandle) -> bool:
    return element.tag == "button" or element.get("role") == "button"


def find_submit_button(focusable: List[ElementHandle]) -> Optional[ElementHandle]:
    for element in focusable:
        if not _is_button(element):
            continue
        if (element.get("type") or "").lower() == "submit" or element.has("data-submit"):
            return element
    return None


def find_cancel_button(focusable: List[ElementHandle]) -> Optional[ElementHandle]:
    for element in focusable:
        if not _is_button(element):
            continue
        if element.has("data-cancel") or element.text_content().strip().lower() == "cancel":
            return element
    return None


def _is_file_input(element: ElementHandle) -> bool:
    return element.tag == "input" and (element.get("type") or "").lower() == "file"


def _is_dropdown_trigger(element: ElementHandle) -> bool:
    return (element.get("role") or "").lower() in DROPDOWN_TRIGGER_ROLES


class FormNavigationController:
    """Moves focus between form fields in response to navigation keys.

    One ``keydown`` listener is attached to the root passed to :meth:`mount`.
    Nothing is cached between key presses; the focusable set is rebuilt from
    the container every time so it tracks the current UI state.
    """

    def __init__(self, keymap: Optional[KeyMap] = None, *, logger: Optional[logging.Logger] = None) -> None:
        self._keymap = keymap or KeyMap.default()
        self._logger = logger or LOGGER
        self._subscription: Optional[Subscription] = None
        self._file_watchers: Dict[ElementHandle, OneShotListener] = {}

    @property
    def mounted(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def mount(self, root: EventSource) -> Subscription:
        if self.mounted:
            self.unmount()
        self._subscription = Subscription(root, "keydown", self._on_keydown)
        return self._subscription

    def unmount(self) -> None:
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            subscription.cancel()
        watchers = list(self._file_watchers.values())
        self._file_watchers.clear()
        for watcher in watchers:
            watcher.cancel()

    def __enter__(self) -> "FormNavigationController":
        return self

    def __exit__(self, *_exc: object) -> None:
        self.unmount()

    def _on_keydown(self, event: object) -> None:
        if not self.mounted:
            return
        try:
            self.handle_key(event)
        except Exception:
            self._logger.exception("Form navigation failed for key event %r", event)

    def handle_key(self, event: object) -> bool:
        """Apply the navigation rules to one key event; returns True when the key was handled."""

        if getattr(event, "default_prevented", False):
            return False
        target = getattr(event, "target", None)
        if target is None or getattr(target, "tag", None) not in TARGET_TAGS:
            return False
        action = self._keymap.action_for(getattr(event, "key", ""))
        if action is None:
            return False
        container = nearest_container(target)
        if container is None:
            return False

        focusable = collect_focusable(container)
        try:
            index = focusable.index(target)
        except ValueError:
            self._logger.debug("Key target %r is not focusable; ignoring", target)
            return False

        event.prevent_default()  # type: ignore[attr-defined]
        if action == ACTION_CONFIRM:
            self._confirm(target, index, focusable)
        elif action == ACTION_FOCUS_NEXT:
            self._focus_at(focusable, index + 1)
        elif action == ACTION_FOCUS_PREVIOUS:
            self._focus_at(focusable, index - 1)
        elif action == ACTION_CANCEL:
            cancel = find_cancel_button(focusable)
            if cancel is not None:
                cancel.focus()
            else:
                self._logger.debug("No cancel button in %r", container)
        return True

    def _confirm(self, target: ElementHandle, index: int, focusable: List[ElementHandle]) -> None:
        if _is_file_input(target):
            self._open_file_picker(target)
            return
        if _is_dropdown_trigger(target):
            self._focus_at(focusable, index + 1)
            return
        if index + 1 < len(focusable):
            focusable[index + 1].focus()
            return
        submit = find_submit_button(focusable)
        if submit is not None:
            submit.focus()
        else:
            self._logger.debug("Reached end of form without a submit button")

    def _open_file_picker(self, target: ElementHandle) -> None:
        def _after_change(_event: object) -> None:
            if self._file_watchers.get(target) is watcher:
                del self._file_watchers[target]
            if not self.mounted:
                return
            container = nearest_container(target)
            submit = find_submit_button(collect_focusable(container)) if container is not None else None
            if submit is not None:
                submit.focus()

        # Re-pressing Enter before a file is chosen replaces the pending watcher.
        previous = self._file_watchers.pop(target, None)
        if previous is not None:
            previous.cancel()
        watcher = OneShotListener(target, "change", _after_change)
        self._file_watchers[target] = watcher
        target.open_file_picker()

    @staticmethod
    def _focus_at(focusable: List[ElementHandle], index: int) -> None:
        if 0 <= index < len(focusable):
            focusable[index].focus()
