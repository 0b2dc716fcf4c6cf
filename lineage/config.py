from __future__ import annotations

import logging
import os
from pathlib import Path

_DEFAULT_LOG_LEVEL = "INFO"
_DEFAULT_LAYOUT_TICKS = 300
_DEFAULT_CANVAS = (1200, 800)


def get_data_dir() -> Path:
    raw = os.environ.get("LINEAGE_DATA_DIR")
    if not raw:
        raise RuntimeError("LINEAGE_DATA_DIR is not set")
    return Path(raw).expanduser()


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from None


def get_layout_ticks() -> int:
    return max(0, _int_env("LINEAGE_LAYOUT_TICKS", _DEFAULT_LAYOUT_TICKS))


def get_canvas_size() -> tuple[int, int]:
    return (
        _int_env("LINEAGE_CANVAS_WIDTH", _DEFAULT_CANVAS[0]),
        _int_env("LINEAGE_CANVAS_HEIGHT", _DEFAULT_CANVAS[1]),
    )


def configure_logging() -> None:
    """Apply ``LINEAGE_LOG_LEVEL`` to the package logger."""

    level_name = os.environ.get("LINEAGE_LOG_LEVEL", _DEFAULT_LOG_LEVEL).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        raise RuntimeError(f"unknown LINEAGE_LOG_LEVEL: {level_name}")
    logging.getLogger("lineage").setLevel(level)
