from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from staffdesk_config.session_settings import DEFAULT_ACTIVITY_EVENTS, DEFAULT_TIMEOUT_SECONDS
from staffdesk_controller.services.subscriptions import EventSource, Subscription, SubscriptionGroup

AfterFn = Callable[[int, Callable[[], None]], object]
AfterCancelFn = Callable[[object], None]

LOGGER = logging.getLogger("StaffDesk.Session")

VISIBILITY_EVENT = "visibilitychange"


@dataclass
class ActivityTimer:
    """The single pending expiry: its deadline and the host scheduler handle."""

    deadline: float
    handle: object


class SessionInactivityController:
    """Fires an expiry callback after a period with no qualifying user activity.

    Scheduling is delegated to ``after``/``after_cancel`` (Tk ``after`` style,
    milliseconds) so any event loop can host the controller. Every qualifying
    event cancels the pending timer before a new one is scheduled.
    """

    def __init__(
        self,
        on_expire: Callable[[], None],
        *,
        after: AfterFn,
        after_cancel: AfterCancelFn,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        activity_events: Iterable[str] = DEFAULT_ACTIVITY_EVENTS,
        reset_on_visibility_change: bool = False,
        time_source: Callable[[], float] = time.monotonic,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be positive, got {timeout_seconds!r}")
        self._on_expire = on_expire
        self._after = after
        self._after_cancel = after_cancel
        self.timeout_seconds = float(timeout_seconds)
        events = list(dict.fromkeys(activity_events))
        if reset_on_visibility_change and VISIBILITY_EVENT not in events:
            events.append(VISIBILITY_EVENT)
        self.activity_events: tuple[str, ...] = tuple(events)
        self._time = time_source
        self._logger = logger or LOGGER

        self._timer: Optional[ActivityTimer] = None
        self._listeners = SubscriptionGroup()
        self._mounted = False
        self._expired = False

    @property
    def mounted(self) -> bool:
        return self._mounted

    @property
    def expired(self) -> bool:
        return self._expired

    @property
    def pending(self) -> bool:
        return self._timer is not None

    @property
    def deadline(self) -> Optional[float]:
        timer = self._timer
        return timer.deadline if timer is not None else None

    def remaining(self) -> Optional[float]:
        timer = self._timer
        if timer is None:
            return None
        return max(0.0, timer.deadline - self._time())

    def mount(self, source: EventSource) -> "SessionInactivityController":
        """Listen for activity on ``source`` and start the countdown."""

        if self._mounted:
            self.unmount()
        for event_type in self.activity_events:
            self._listeners.add(Subscription(source, event_type, self.record_activity))
        self._mounted = True
        self._expired = False
        self._schedule()
        self._logger.debug(
            "Inactivity watch mounted: timeout=%.1fs events=%s",
            self.timeout_seconds,
            ",".join(self.activity_events),
        )
        return self

    def unmount(self) -> None:
        self._cancel_timer()
        self._listeners.cancel_all()
        if self._mounted:
            self._logger.debug("Inactivity watch unmounted")
        self._mounted = False

    def __enter__(self) -> "SessionInactivityController":
        return self

    def __exit__(self, *_exc: object) -> None:
        self.unmount()

    def record_activity(self, _event: object = None) -> None:
        if not self._mounted or self._expired:
            return
        self._schedule()

    def restart(self) -> None:
        """Re-arm after an expiry, e.g. once the user has signed in again."""

        if not self._mounted:
            return
        self._expired = False
        self._schedule()

    def _schedule(self) -> None:
        self._cancel_timer()
        delay_ms = int(round(self.timeout_seconds * 1000))
        deadline = self._time() + self.timeout_seconds
        timer = ActivityTimer(deadline=deadline, handle=None)
        timer.handle = self._after(delay_ms, lambda: self._expire(timer))
        self._timer = timer

    def _cancel_timer(self) -> None:
        timer, self._timer = self._timer, None
        if timer is None:
            return
        try:
            self._after_cancel(timer.handle)
        except Exception as exc:
            # The host may already have discarded a fired handle.
            self._logger.debug("Ignoring failed timer cancel for %r: %s", timer.handle, exc)

    def _expire(self, timer: ActivityTimer) -> None:
        # A superseded handle the host failed to cancel must not expire the session.
        if not self._mounted or self._timer is not timer:
            return
        self._timer = None
        self._expired = True
        self._logger.info("Session expired after %.1fs of inactivity", self.timeout_seconds)
        try:
            self._on_expire()
        except Exception:
            self._logger.exception("Session expiry callback failed")
