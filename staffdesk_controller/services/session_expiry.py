"""Forced sign-out performed when an authenticated session goes idle."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, MutableMapping, Optional

from staffdesk_config.session_settings import SessionSettings

LOGGER = logging.getLogger("StaffDesk.Session")

FRESH_START_MARKER = "tab_initialized"


@dataclass(frozen=True)
class Notice:
    title: str
    description: str
    variant: str = "default"


class SessionStore:
    """Locally cached session/user state (the client-side equivalent of browser storage)."""

    def __init__(self, initial: Optional[MutableMapping[str, object]] = None) -> None:
        self._data: Dict[str, object] = dict(initial or {})

    def get(self, key: str, default: object = None) -> object:
        return self._data.get(key, default)

    def set(self, key: str, value: object) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self, keys: Optional[Iterable[str]] = None) -> None:
        if keys is None:
            self._data.clear()
            return
        for key in keys:
            self._data.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._data


class SessionExpiryHandler:
    """Expiry callback: clear cached session, sign out, notify, then navigate to the auth route.

    Navigation always happens, even when signing out fails, so the user is
    removed from the protected view regardless. Failures are not retried.
    """

    def __init__(
        self,
        *,
        store: SessionStore,
        sign_out: Callable[[], object],
        notify: Callable[[Notice], None],
        navigate: Callable[[str], None],
        settings: Optional[SessionSettings] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._store = store
        self._sign_out = sign_out
        self._notify = notify
        self._navigate = navigate
        self._settings = settings or SessionSettings()
        self._logger = logger or LOGGER

    def __call__(self) -> None:
        settings = self._settings
        failed = False
        try:
            self._store.clear(settings.session_keys)
        except Exception as exc:
            self._logger.warning("Clearing cached session after inactivity failed: %s", exc)
            failed = True
        # Sign-out runs even when the local cache could not be cleared.
        try:
            self._sign_out()
        except Exception as exc:
            self._logger.warning("Sign-out after inactivity failed: %s", exc)
            failed = True
        if failed:
            notice = Notice(settings.error_title, settings.error_description, variant="destructive")
        else:
            notice = Notice(settings.expired_title, settings.expired_description, variant="destructive")
        try:
            self._notify(notice)
        except Exception:
            self._logger.exception("Failed to show session notice")
        self._navigate(settings.auth_route)
        self._logger.info("Redirected to %s after session expiry", settings.auth_route)


def ensure_fresh_start(
    store: SessionStore,
    sign_out: Callable[[], object],
    *,
    logger: Optional[logging.Logger] = None,
) -> bool:
    """Sign out once per fresh session store so a new window never inherits a session.

    Returns True when a sign-out was attempted.
    """

    log = logger or LOGGER
    if FRESH_START_MARKER in store:
        return False
    try:
        sign_out()
    except Exception as exc:
        log.warning("Sign-out on fresh start failed: %s", exc)
    store.set(FRESH_START_MARKER, True)
    return True
