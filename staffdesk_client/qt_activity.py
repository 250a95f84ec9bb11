"""PyQt6 host binding for the session inactivity controller."""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

from PyQt6.QtCore import QCoreApplication, QEvent, QObject, QTimer

from staffdesk_config.session_settings import SessionSettings
from staffdesk_controller.controller.elements import Event
from staffdesk_controller.services.inactivity import SessionInactivityController

LOGGER = logging.getLogger("StaffDesk.Client")

QT_ACTIVITY_EVENTS: Dict[QEvent.Type, str] = {
    QEvent.Type.MouseMove: "pointermove",
    QEvent.Type.HoverMove: "pointermove",
    QEvent.Type.MouseButtonPress: "pointerdown",
    QEvent.Type.KeyPress: "keydown",
    QEvent.Type.Wheel: "scroll",
    QEvent.Type.TouchBegin: "touchstart",
    QEvent.Type.ApplicationStateChange: "visibilitychange",
}


def activity_name(event_type: QEvent.Type) -> Optional[str]:
    return QT_ACTIVITY_EVENTS.get(event_type)


class QtTimerScheduler:
    """Tk-style ``after``/``cancel`` implemented with single-shot ``QTimer`` objects."""

    def __init__(self, parent: Optional[QObject] = None) -> None:
        self._parent = parent

    def after(self, delay_ms: int, callback: Callable[[], None]) -> QTimer:
        timer = QTimer(self._parent)
        timer.setSingleShot(True)
        timer.timeout.connect(callback)
        timer.timeout.connect(timer.deleteLater)
        timer.start(max(0, int(delay_ms)))
        return timer

    def cancel(self, handle: object) -> None:
        if not isinstance(handle, QTimer):
            return
        try:
            handle.stop()
            handle.deleteLater()
        except RuntimeError:
            # Underlying C++ timer already deleted after firing.
            pass


class ActivityEventFilter(QObject):
    """Application-wide event filter that reports qualifying user activity. Never consumes events."""

    def __init__(self, on_activity: Callable[[str, QEvent], None], parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._on_activity = on_activity

    def eventFilter(self, obj: QObject, event: QEvent) -> bool:  # noqa: N802 - Qt override
        name = QT_ACTIVITY_EVENTS.get(event.type())
        if name is not None:
            try:
                self._on_activity(name, event)
            except Exception:
                LOGGER.exception("Activity listener failed for %s", name)
        return False


class QtActivitySource:
    """Event source over a ``QCoreApplication``; installs its filter only while someone listens."""

    def __init__(self, app: Optional[QCoreApplication] = None) -> None:
        self._app = app or QCoreApplication.instance()
        if self._app is None:
            raise RuntimeError("QtActivitySource requires a running QApplication")
        self._listeners: Dict[str, List[Callable[[object], object]]] = {}
        self._filter = ActivityEventFilter(self._dispatch)
        self._installed = False

    @property
    def installed(self) -> bool:
        return self._installed

    def add_listener(self, event_type: str, callback: Callable[[object], object]) -> None:
        self._listeners.setdefault(event_type, []).append(callback)
        if not self._installed:
            self._app.installEventFilter(self._filter)
            self._installed = True
            LOGGER.debug("Activity event filter installed")

    def remove_listener(self, event_type: str, callback: Callable[[object], object]) -> None:
        listeners = self._listeners.get(event_type)
        if not listeners or callback not in listeners:
            return
        listeners.remove(callback)
        if not listeners:
            del self._listeners[event_type]
        if not self._listeners and self._installed:
            self._app.removeEventFilter(self._filter)
            self._installed = False
            LOGGER.debug("Activity event filter removed")

    def _dispatch(self, name: str, qt_event: QEvent) -> None:
        event = Event(name, target=qt_event)
        for callback in list(self._listeners.get(name, ())):
            callback(event)


def install_session_watch(
    on_expire: Callable[[], None],
    *,
    settings: Optional[SessionSettings] = None,
    app: Optional[QCoreApplication] = None,
) -> SessionInactivityController:
    """Mount an inactivity controller on the running Qt application and return it."""

    resolved = settings or SessionSettings()
    scheduler = QtTimerScheduler(app or QCoreApplication.instance())
    controller = SessionInactivityController(
        on_expire,
        after=scheduler.after,
        after_cancel=scheduler.cancel,
        timeout_seconds=resolved.timeout_seconds,
        activity_events=resolved.activity_events,
        reset_on_visibility_change=resolved.reset_on_visibility_change,
        logger=LOGGER,
    )
    controller.mount(QtActivitySource(app))
    return controller
