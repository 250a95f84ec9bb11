from __future__ import annotations

from typing import Callable, Iterable, Optional

from staffdesk_controller.services.subscriptions import EventSource, Subscription

ACTIVATION_KEYS = frozenset({"Enter", " ", "Space"})


class KeyboardActivator:
    """Makes a custom control (e.g. a ``role="button"`` div) activatable with Enter or Space."""

    def __init__(self, on_activate: Callable[[], None], *, keys: Optional[Iterable[str]] = None) -> None:
        self._on_activate = on_activate
        self._keys = frozenset(keys) if keys is not None else ACTIVATION_KEYS
        self._subscription: Optional[Subscription] = None

    def attach(self, element: EventSource) -> Subscription:
        self.detach()
        self._subscription = Subscription(element, "keydown", self._on_keydown)
        return self._subscription

    def detach(self) -> None:
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            subscription.cancel()

    def _on_keydown(self, event: object) -> None:
        if getattr(event, "key", None) not in self._keys:
            return
        # Keeps Space from scrolling and lets outer key handlers skip this event.
        event.prevent_default()  # type: ignore[attr-defined]
        self._on_activate()
