"""Session inactivity settings loader."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping, Optional

LOGGER = logging.getLogger("StaffDesk.Session")

TIMEOUT_ENV_VAR = "STAFFDESK_SESSION_TIMEOUT"
DEFAULT_TIMEOUT_SECONDS = 5 * 60.0
MIN_TIMEOUT_SECONDS = 1.0
DEFAULT_ACTIVITY_EVENTS: tuple[str, ...] = ("pointermove", "pointerdown", "keydown", "scroll", "touchstart")


@dataclass(frozen=True)
class SessionSettings:
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    activity_events: tuple[str, ...] = DEFAULT_ACTIVITY_EVENTS
    reset_on_visibility_change: bool = True
    auth_route: str = "/auth"
    session_keys: tuple[str, ...] = ("user", "session")
    expired_title: str = "Session Expired"
    expired_description: str = "Due to inactivity, please log in again."
    error_title: str = "Error"
    error_description: str = "Signing out failed. Please log in again."

    @property
    def timeout_ms(self) -> int:
        return int(round(self.timeout_seconds * 1000))


def _coerce_timeout(value: Any, fallback: float) -> float:
    if value is None or isinstance(value, bool):
        return fallback
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return fallback
    if numeric != numeric:  # NaN
        return fallback
    return max(MIN_TIMEOUT_SECONDS, numeric)


def _coerce_str_tuple(value: Any, fallback: tuple[str, ...]) -> tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        return fallback
    items = tuple(str(item).strip() for item in value if str(item).strip())
    return items or fallback


def _coerce_bool(value: Any, fallback: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        token = value.strip().lower()
        if token in {"1", "true", "yes", "on"}:
            return True
        if token in {"0", "false", "no", "off"}:
            return False
    return fallback


def settings_from_mapping(data: Mapping[str, Any]) -> SessionSettings:
    defaults = SessionSettings()
    auth_route = data.get("auth_route")
    return SessionSettings(
        timeout_seconds=_coerce_timeout(data.get("timeout_seconds"), defaults.timeout_seconds),
        activity_events=_coerce_str_tuple(data.get("activity_events"), defaults.activity_events),
        reset_on_visibility_change=_coerce_bool(
            data.get("reset_on_visibility_change"), defaults.reset_on_visibility_change
        ),
        auth_route=auth_route.strip() if isinstance(auth_route, str) and auth_route.strip() else defaults.auth_route,
        session_keys=_coerce_str_tuple(data.get("session_keys"), defaults.session_keys),
        expired_title=str(data.get("expired_title") or defaults.expired_title),
        expired_description=str(data.get("expired_description") or defaults.expired_description),
        error_title=str(data.get("error_title") or defaults.error_title),
        error_description=str(data.get("error_description") or defaults.error_description),
    )


def load_session_settings(path: Optional[Path] = None, *, env: Optional[Mapping[str, str]] = None) -> SessionSettings:
    """Read session settings from JSON, then apply the timeout env override."""

    data: Any = {}
    if path is not None:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            data = {}
        except (OSError, json.JSONDecodeError) as exc:
            LOGGER.warning("Failed to read session settings from %s: %s", path, exc)
            data = {}
    if not isinstance(data, dict):
        data = {}
    settings = settings_from_mapping(data)

    environ = os.environ if env is None else env
    raw_override = environ.get(TIMEOUT_ENV_VAR)
    if raw_override is not None:
        timeout = _coerce_timeout(raw_override, settings.timeout_seconds)
        if timeout != settings.timeout_seconds:
            LOGGER.debug("Session timeout overridden via %s: %.1fs", TIMEOUT_ENV_VAR, timeout)
        settings = replace(settings, timeout_seconds=timeout)
    return settings
