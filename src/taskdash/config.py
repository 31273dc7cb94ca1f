# src/taskdash/config.py

"""
Settings loaded from environment variables.

One Settings object for the whole app. Command-line flags override these
values; nothing here is required at import time.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import date
from functools import lru_cache
from pathlib import Path
from typing import Optional

from .engine.parse import DEFAULT_SEED

ENV_PREFIX = "TASKDASH"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_path(name: str, default: Optional[Path]) -> Optional[Path]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def _env_date(name: str) -> Optional[date]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return date.fromisoformat(raw.strip())
    except ValueError:
        return None


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- Data ----
    seed_path: Path

    # ---- Clock ----
    # Fixed "today" for reproducible output; None means the real date.
    today: Optional[date]

    # ---- Viewer defaults ----
    role: str
    area: str

    # ---- Output / logging ----
    color: bool
    log_level: str
    log_file: Optional[Path]

    @staticmethod
    def from_env() -> "Settings":
        return Settings(
            seed_path=_env_path(_k("SEED"), DEFAULT_SEED) or DEFAULT_SEED,
            today=_env_date(_k("TODAY")),
            role=_env(_k("ROLE"), "admin"),
            area=_env(_k("AREA"), "Seguridad"),
            color=_env_bool(_k("COLOR"), True),
            log_level=_env(_k("LOG_LEVEL"), "WARNING").upper(),
            log_file=_env_path(_k("LOG_FILE"), None),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
