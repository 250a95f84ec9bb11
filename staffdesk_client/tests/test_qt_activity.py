from __future__ import annotations

import os

import pytest
from PyQt6.QtCore import QEvent, QObject
from PyQt6.QtTest import QTest
from PyQt6.QtWidgets import QApplication

from staffdesk_client.qt_activity import (
    ActivityEventFilter,
    QtActivitySource,
    QtTimerScheduler,
    activity_name,
    install_session_watch,
)
from staffdesk_config.session_settings import SessionSettings


@pytest.fixture
def qt_app(monkeypatch):
    monkeypatch.setenv("QT_QPA_PLATFORM", os.getenv("QT_QPA_PLATFORM", "offscreen"))
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app


def test_activity_name_covers_qualifying_events():
    assert activity_name(QEvent.Type.MouseMove) == "pointermove"
    assert activity_name(QEvent.Type.MouseButtonPress) == "pointerdown"
    assert activity_name(QEvent.Type.KeyPress) == "keydown"
    assert activity_name(QEvent.Type.Wheel) == "scroll"
    assert activity_name(QEvent.Type.TouchBegin) == "touchstart"
    assert activity_name(QEvent.Type.Paint) is None


def test_scheduler_cancel_ignores_foreign_handles():
    QtTimerScheduler().cancel("not-a-timer")


@pytest.mark.pyqt_required
def test_event_filter_reports_activity_without_consuming(qt_app):
    seen: list[str] = []
    event_filter = ActivityEventFilter(lambda name, _event: seen.append(name))

    consumed = event_filter.eventFilter(QObject(), QEvent(QEvent.Type.KeyPress))
    event_filter.eventFilter(QObject(), QEvent(QEvent.Type.Paint))

    assert consumed is False
    assert seen == ["keydown"]


@pytest.mark.pyqt_required
def test_activity_source_installs_filter_only_while_listening(qt_app):
    source = QtActivitySource(qt_app)
    seen: list[str] = []

    def _listener(event):
        seen.append(event.type)

    source.add_listener("keydown", _listener)
    assert source.installed is True

    source._filter.eventFilter(QObject(), QEvent(QEvent.Type.KeyPress))
    assert seen == ["keydown"]

    source.remove_listener("keydown", _listener)
    assert source.installed is False


@pytest.mark.pyqt_required
def test_scheduler_fires_and_cancels(qt_app):
    scheduler = QtTimerScheduler(qt_app)
    fired: list[str] = []

    kept = scheduler.after(10, lambda: fired.append("kept"))
    assert kept.isSingleShot() is True
    dropped = scheduler.after(10, lambda: fired.append("dropped"))
    scheduler.cancel(dropped)
    QTest.qWait(100)

    assert fired == ["kept"]


@pytest.mark.pyqt_required
def test_install_session_watch_expires_and_resets(qt_app):
    expired: list[str] = []
    controller = install_session_watch(
        lambda: expired.append("expired"),
        settings=SessionSettings(timeout_seconds=1.0),
        app=qt_app,
    )
    try:
        assert controller.mounted is True
        QTest.qWait(600)
        controller.record_activity()
        QTest.qWait(600)
        assert expired == []
        QTest.qWait(700)
        assert expired == ["expired"]
    finally:
        controller.unmount()
