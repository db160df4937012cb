# src/tasksync/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time.
- Protocol constants (API path, sync cooldown) stay in code, not here.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

ENV_PREFIX = "TASKSYNC"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env locally if python-dotenv is installed. Safe no-op otherwise."""
    try:
        from dotenv import load_dotenv  # type: ignore
    except ImportError:
        return
    load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Task API ----
    base_url: str
    session_cookie: str | None
    request_timeout_seconds: float

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    store_db_path: Path

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "tasksync").strip() or "tasksync"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        base_url = _env(_k("BASE_URL"), "http://localhost:5000").strip().rstrip("/")
        session_cookie = _env(_k("SESSION_COOKIE"), "").strip() or None
        # 0 disables the client-side timeout
        request_timeout_seconds = max(0.0, _env_float(_k("REQUEST_TIMEOUT_SECONDS"), 30.0))

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/tasksync"))
        store_db_path = _env_path(_k("STORE_DB_PATH"), data_dir / "tasksync.sqlite3")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            base_url=base_url,
            session_cookie=session_cookie,
            request_timeout_seconds=request_timeout_seconds,
            data_dir=data_dir,
            store_db_path=store_db_path,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _load_dotenv_if_available()
        _SETTINGS = Settings.from_env()
    return _SETTINGS
