"""Configurable control schemes for keyboard form navigation."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional

LOGGER = logging.getLogger("StaffDesk.Controller")

DEFAULT_CONFIG_PATH = Path(__file__).with_name("keybindings.json")

ACTION_CONFIRM = "confirm"
ACTION_FOCUS_NEXT = "focus_next"
ACTION_FOCUS_PREVIOUS = "focus_previous"
ACTION_CANCEL = "cancel"
NAVIGATION_ACTIONS = (ACTION_CONFIRM, ACTION_FOCUS_NEXT, ACTION_FOCUS_PREVIOUS, ACTION_CANCEL)

# Default layout that can be extended by the user later on.
DEFAULT_CONFIG = {
    "active_scheme": "keyboard_default",
    "schemes": {
        "keyboard_default": {
            "device_type": "keyboard",
            "display_name": "Keyboard (default)",
            "bindings": {
                ACTION_CONFIRM: ["Enter"],
                ACTION_FOCUS_NEXT: ["ArrowDown", "ArrowRight"],
                ACTION_FOCUS_PREVIOUS: ["ArrowUp", "ArrowLeft"],
                ACTION_CANCEL: ["Escape"],
            },
        },
        "keyboard_vertical": {
            "device_type": "keyboard",
            "display_name": "Keyboard (up/down only)",
            "bindings": {
                ACTION_CONFIRM: ["Enter"],
                ACTION_FOCUS_NEXT: ["ArrowDown"],
                ACTION_FOCUS_PREVIOUS: ["ArrowUp"],
                ACTION_CANCEL: ["Escape"],
            },
        },
    },
}


@dataclass
class ControlScheme:
    """Container for a set of bindings and some metadata."""

    name: str
    device_type: str
    display_name: str
    bindings: Dict[str, List[str]]


@dataclass
class BindingConfig:
    """Representation of the configuration file contents."""

    schemes: Dict[str, ControlScheme]
    active_scheme: str
    source_path: Path

    @classmethod
    def default(cls) -> "BindingConfig":
        return cls.from_payload(DEFAULT_CONFIG, DEFAULT_CONFIG_PATH)

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "BindingConfig":
        """Load config from disk, creating the default file if missing."""

        path = path or DEFAULT_CONFIG_PATH
        if not path.exists():
            path.write_text(json.dumps(DEFAULT_CONFIG, indent=2), encoding="utf-8")

        payload = json.loads(path.read_text(encoding="utf-8"))
        return cls.from_payload(payload, path)

    @classmethod
    def from_payload(cls, payload: Mapping[str, object], path: Path) -> "BindingConfig":
        raw_schemes = payload.get("schemes") or {}
        schemes = {
            name: ControlScheme(
                name=name,
                device_type=spec.get("device_type", "keyboard"),
                display_name=spec.get("display_name", name),
                bindings={
                    action: list(inputs or [])
                    for action, inputs in (spec.get("bindings") or {}).items()
                },
            )
            for name, spec in raw_schemes.items()  # type: ignore[union-attr]
        }

        active = payload.get("active_scheme")
        if active not in schemes:
            raise ValueError(
                f"Active scheme '{active}' is not defined in keybindings file {path}"
            )

        return cls(schemes=schemes, active_scheme=str(active), source_path=path)

    def get_scheme(self, name: Optional[str] = None) -> ControlScheme:
        """Return the requested scheme or the currently active one."""

        scheme_name = name or self.active_scheme
        try:
            return self.schemes[scheme_name]
        except KeyError as exc:
            raise ValueError(f"Unknown control scheme '{scheme_name}'") from exc


class KeyMap:
    """Resolves key names (``Enter``, ``ArrowDown``...) to navigation actions."""

    def __init__(self, bindings: Mapping[str, Iterable[str]]) -> None:
        self._by_key: Dict[str, str] = {}
        for action, keys in bindings.items():
            if action not in NAVIGATION_ACTIONS:
                LOGGER.warning("Ignoring unknown navigation action '%s'", action)
                continue
            for key in keys:
                normalized = self._normalize_key(key)
                if not normalized:
                    LOGGER.warning("Skipping invalid binding %r for action '%s'", key, action)
                    continue
                if normalized in self._by_key and self._by_key[normalized] != action:
                    LOGGER.warning(
                        "Key '%s' bound to both '%s' and '%s'; keeping '%s'",
                        normalized,
                        self._by_key[normalized],
                        action,
                        self._by_key[normalized],
                    )
                    continue
                self._by_key[normalized] = action

    @classmethod
    def from_config(cls, config: BindingConfig, scheme_name: Optional[str] = None) -> "KeyMap":
        return cls(config.get_scheme(scheme_name).bindings)

    @classmethod
    def default(cls) -> "KeyMap":
        return cls.from_config(BindingConfig.default())

    def action_for(self, key: str) -> Optional[str]:
        return self._by_key.get(self._normalize_key(key))

    def keys_for(self, action: str) -> List[str]:
        return [key for key, bound in self._by_key.items() if bound == action]

    @staticmethod
    def _normalize_key(key: str) -> str:
        token = str(key or "").strip()
        if token.startswith("<") and token.endswith(">"):
            token = token[1:-1].strip()
        return token
