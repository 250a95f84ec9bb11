from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from staffdesk_config.input_bindings import DEFAULT_CONFIG, BindingConfig, ControlScheme, KeyMap


def _make_config(bindings: dict[str, list[str]]) -> BindingConfig:
    scheme = ControlScheme(
        name="test",
        device_type="keyboard",
        display_name="Test",
        bindings=bindings,
    )
    return BindingConfig(
        schemes={"test": scheme},
        active_scheme="test",
        source_path=Path("dummy"),
    )


def test_default_keymap_matches_navigation_keys() -> None:
    keymap = KeyMap.default()

    assert keymap.action_for("Enter") == "confirm"
    assert keymap.action_for("ArrowDown") == "focus_next"
    assert keymap.action_for("ArrowRight") == "focus_next"
    assert keymap.action_for("ArrowUp") == "focus_previous"
    assert keymap.action_for("ArrowLeft") == "focus_previous"
    assert keymap.action_for("Escape") == "cancel"
    assert keymap.action_for("Tab") is None
    assert sorted(keymap.keys_for("focus_next")) == ["ArrowDown", "ArrowRight"]


def test_keymap_strips_angle_brackets() -> None:
    keymap = KeyMap.from_config(_make_config({"confirm": ["<Enter>"]}))

    assert keymap.action_for("Enter") == "confirm"
    assert keymap.action_for("<Enter>") == "confirm"


def test_keymap_skips_empty_and_unknown_bindings(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="StaffDesk.Controller"):
        keymap = KeyMap({"confirm": ["", "   ", "Enter"], "jump": ["J"]})

    assert keymap.action_for("Enter") == "confirm"
    assert keymap.action_for("J") is None
    empty_warnings = [record for record in caplog.records if "Skipping invalid binding" in record.getMessage()]
    assert len(empty_warnings) == 2
    assert any("jump" in record.getMessage() for record in caplog.records)


def test_keymap_keeps_first_binding_for_duplicate_key(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="StaffDesk.Controller"):
        keymap = KeyMap({"focus_next": ["Tab"], "focus_previous": ["Tab"]})

    assert keymap.action_for("Tab") == "focus_next"
    assert any("bound to both" in record.getMessage() for record in caplog.records)


def test_load_writes_default_file_when_missing(tmp_path: Path) -> None:
    path = tmp_path / "keybindings.json"

    config = BindingConfig.load(path)

    assert path.exists()
    assert json.loads(path.read_text(encoding="utf-8")) == DEFAULT_CONFIG
    assert config.active_scheme == "keyboard_default"
    assert config.source_path == path


def test_load_selects_named_scheme(tmp_path: Path) -> None:
    path = tmp_path / "keybindings.json"
    payload = dict(DEFAULT_CONFIG, active_scheme="keyboard_vertical")
    path.write_text(json.dumps(payload), encoding="utf-8")

    keymap = KeyMap.from_config(BindingConfig.load(path))

    assert keymap.action_for("ArrowDown") == "focus_next"
    assert keymap.action_for("ArrowRight") is None


def test_unknown_scheme_is_rejected() -> None:
    with pytest.raises(ValueError):
        BindingConfig.from_payload({"active_scheme": "nope", "schemes": {}}, Path("dummy"))

    config = _make_config({"confirm": ["Enter"]})
    with pytest.raises(ValueError):
        config.get_scheme("other")
