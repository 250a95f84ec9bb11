from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from staffdesk_config.input_bindings import BindingConfig, KeyMap
from staffdesk_config.session_settings import SessionSettings, load_session_settings
from staffdesk_controller.controller.form_navigation import FormNavigationController
from staffdesk_controller.services import (
    Notice,
    SessionExpiryHandler,
    SessionInactivityController,
    SessionStore,
    ensure_fresh_start,
)
from staffdesk_controller.tk_host import TkDocument, TkScheduler

LOGGER = logging.getLogger("StaffDesk.Controller")


@dataclass
class AppContext:
    root_path: Path
    settings_path: Path
    keybindings_path: Path
    settings: SessionSettings
    keymap: KeyMap
    store: SessionStore
    document: TkDocument
    scheduler: TkScheduler
    navigation: FormNavigationController
    inactivity: SessionInactivityController
    expiry_handler: SessionExpiryHandler
    sign_out: Callable[[], object]

    def mount(self) -> None:
        self.navigation.mount(self.document)
        self.inactivity.mount(self.document)

    def start(self) -> bool:
        """Drop any inherited session and mount keyboard navigation.

        The inactivity watch is only mounted by :meth:`sign_in`. Returns True
        when this store had not been started before (a sign-out was attempted).
        """

        fresh = ensure_fresh_start(self.store, self.sign_out)
        self.navigation.mount(self.document)
        return fresh

    def sign_in(self, user: object) -> None:
        self.store.set("user", user)
        if self.inactivity.mounted:
            self.inactivity.restart()
        else:
            self.inactivity.mount(self.document)

    def unmount(self) -> None:
        self.navigation.unmount()
        self.inactivity.unmount()


def build_app_context(
    *,
    root_path: Path,
    tk_root: object,
    sign_out: Callable[[], object],
    notify: Callable[[Notice], None],
    navigate: Callable[[str], None],
    store: Optional[SessionStore] = None,
    logger: Optional[logging.Logger] = None,
) -> AppContext:
    """Load configuration under ``root_path`` and wire both controllers to ``tk_root``."""

    log = logger or LOGGER
    settings_path = root_path / "session_settings.json"
    keybindings_raw = os.environ.get("STAFFDESK_KEYBINDINGS_PATH", root_path / "keybindings.json")
    keybindings_path = Path(keybindings_raw)

    settings = load_session_settings(settings_path)
    keymap = KeyMap.from_config(BindingConfig.load(keybindings_path))
    session_store = store if store is not None else SessionStore()

    document = TkDocument(tk_root)  # type: ignore[arg-type]
    scheduler = TkScheduler(tk_root)  # type: ignore[arg-type]
    expiry_handler = SessionExpiryHandler(
        store=session_store,
        sign_out=sign_out,
        notify=notify,
        navigate=navigate,
        settings=settings,
        logger=log,
    )
    inactivity = SessionInactivityController(
        expiry_handler,
        after=scheduler.after,
        after_cancel=scheduler.cancel,
        timeout_seconds=settings.timeout_seconds,
        activity_events=settings.activity_events,
        reset_on_visibility_change=settings.reset_on_visibility_change,
        logger=log,
    )
    navigation = FormNavigationController(keymap, logger=log)
    log.debug(
        "App context built: settings=%s keybindings=%s timeout=%.1fs",
        settings_path,
        keybindings_path,
        settings.timeout_seconds,
    )
    return AppContext(
        root_path=root_path,
        settings_path=settings_path,
        keybindings_path=keybindings_path,
        settings=settings,
        keymap=keymap,
        store=session_store,
        document=document,
        scheduler=scheduler,
        navigation=navigation,
        inactivity=inactivity,
        expiry_handler=expiry_handler,
        sign_out=sign_out,
    )
