from __future__ import annotations

import logging
import os
import tempfile
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_DIR_ENV_VAR = "STAFFDESK_LOG_DIR"
DEBUG_ENV_VAR = "STAFFDESK_DEBUG"
ROOT_LOGGER_NAME = "StaffDesk"


def resolve_logs_dir(log_dir_name: str = "StaffDesk") -> Path:
    """
    Resolve the directory to store StaffDesk logs.

    Strategy:
    - Use STAFFDESK_LOG_DIR if set.
    - Fall back to XDG state/cache locations, then `cwd/logs/<log_dir_name>`.
    - Final fallback: tempdir/<log_dir_name>.
    """
    candidates = []

    env_override = os.environ.get(LOG_DIR_ENV_VAR)
    if env_override:
        candidates.append(Path(env_override).expanduser())

    state_home = Path(os.environ.get("XDG_STATE_HOME", Path.home() / ".local" / "state"))
    cache_home = Path(os.environ.get("XDG_CACHE_HOME", Path.home() / ".cache"))
    candidates.append(state_home / log_dir_name / "logs")
    candidates.append(cache_home / log_dir_name / "logs")
    candidates.append(Path.cwd() / "logs" / log_dir_name)

    for target in candidates:
        try:
            target.mkdir(parents=True, exist_ok=True)
            return target
        except OSError:
            continue

    temp_fallback = Path(tempfile.gettempdir()) / log_dir_name
    temp_fallback.mkdir(parents=True, exist_ok=True)
    return temp_fallback


def build_rotating_file_handler(
    log_dir: Path,
    filename: str,
    *,
    retention: int = 5,
    max_bytes: int = 512 * 1024,
    formatter: Optional[logging.Formatter] = None,
) -> logging.Handler:
    """Construct a rotating file handler with sane defaults."""
    retention = max(1, retention)
    backup_count = max(0, retention - 1)
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_dir / filename,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    if formatter is not None:
        handler.setFormatter(formatter)
    return handler


def debug_enabled(env: Optional[dict] = None) -> bool:
    value = (os.environ if env is None else env).get(DEBUG_ENV_VAR)
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def resolve_log_level(debug: bool) -> int:
    return logging.DEBUG if debug else logging.INFO


def configure_logging(
    filename: str = "staffdesk.log",
    *,
    debug: Optional[bool] = None,
    log_dir: Optional[Path] = None,
    retention: int = 5,
) -> logging.Logger:
    """Attach a rotating file handler to the ``StaffDesk`` logger tree (idempotent)."""

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    level = resolve_log_level(debug_enabled() if debug is None else debug)
    logger.setLevel(level)
    target_dir = log_dir or resolve_logs_dir()
    target_path = (target_dir / filename).resolve()
    for existing in logger.handlers:
        if isinstance(existing, RotatingFileHandler) and Path(existing.baseFilename).resolve() == target_path:
            return logger
    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s", "%Y-%m-%d %H:%M:%S")
    logger.addHandler(build_rotating_file_handler(target_dir, filename, retention=retention, formatter=formatter))
    logger.debug(
        "StaffDesk logger initialised: path=%s level=%s retention=%d",
        target_path,
        logging.getLevelName(level),
        retention,
    )
    return logger
