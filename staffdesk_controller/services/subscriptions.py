"""Explicit listener subscriptions shared by the controllers and host bindings."""

from __future__ import annotations

from typing import Callable, Optional, Protocol


Listener = Callable[[object], object]


class EventSource(Protocol):
    """Anything that can register and drop listeners by event name."""

    def add_listener(self, event_type: str, callback: Listener) -> None: ...

    def remove_listener(self, event_type: str, callback: Listener) -> None: ...


class Subscription:
    """Handle for a listener attached to an event source.

    ``cancel()`` is idempotent; the subscription can also be used as a context
    manager so the listener is detached on every exit path.
    """

    def __init__(self, source: EventSource, event_type: str, callback: Listener) -> None:
        self._source = source
        self.event_type = event_type
        self._callback = callback
        self._active = True
        source.add_listener(event_type, callback)

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        self._source.remove_listener(self.event_type, self._callback)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *_exc: object) -> None:
        self.cancel()


class OneShotListener:
    """Listener that detaches itself before running its callback, so it fires at most once."""

    def __init__(self, source: EventSource, event_type: str, callback: Callable[[object], None]) -> None:
        self._callback: Optional[Callable[[object], None]] = callback
        self._subscription = Subscription(source, event_type, self._fire)

    @property
    def active(self) -> bool:
        return self._subscription.active

    def _fire(self, event: object) -> None:
        callback = self._callback
        if callback is None or not self._subscription.active:
            return
        self._callback = None
        self._subscription.cancel()
        callback(event)

    def cancel(self) -> None:
        self._callback = None
        self._subscription.cancel()


class SubscriptionGroup:
    """Collects subscriptions created by one mount so they can be torn down together."""

    def __init__(self) -> None:
        self._items: list[Subscription | OneShotListener] = []

    def add(self, item: Subscription | OneShotListener) -> Subscription | OneShotListener:
        self._items.append(item)
        return item

    def prune(self) -> None:
        self._items = [item for item in self._items if item.active]

    def cancel_all(self) -> None:
        items, self._items = self._items, []
        for item in items:
            item.cancel()

    def __len__(self) -> int:
        return len(self._items)
