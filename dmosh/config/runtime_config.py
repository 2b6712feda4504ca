"""Runtime configuration helpers for the mosh engines."""
from __future__ import annotations

import os
from typing import Optional

DEFAULT_TIMELINE_ID = "timeline-1"
DEFAULT_SEED = 0
DEFAULT_FPS = 30.0
DEFAULT_LOG_LEVEL = "INFO"


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(name, default)


def get_default_timeline_id() -> str:
    return _get_env("DMOSH_DEFAULT_TIMELINE_ID") or DEFAULT_TIMELINE_ID


def get_default_seed() -> int:
    """Seed used when a caller does not inject its own random source."""
    raw = _get_env("DMOSH_DEFAULT_SEED")
    if not raw:
        return DEFAULT_SEED
    try:
        return int(raw)
    except ValueError:
        return DEFAULT_SEED


def get_default_fps() -> float:
    raw = _get_env("DMOSH_DEFAULT_FPS")
    if not raw:
        return DEFAULT_FPS
    try:
        value = float(raw)
    except ValueError:
        return DEFAULT_FPS
    return value if value > 0 else DEFAULT_FPS


def get_log_level() -> str:
    return (_get_env("DMOSH_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper()
