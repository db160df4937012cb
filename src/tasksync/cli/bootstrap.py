# src/tasksync/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the stores and the HTTP client into AppState.
"""

from __future__ import annotations

import logging

import httpx

from ..config import get_settings
from ..core.state import AppState
from ..tasks.task_api import TaskSyncClient, build_http_client
from ..tasks.task_store import LocalTaskCache, SqliteKeyValueStore, SyncCooldown

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.store_db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(
    *, settings=None, transport: httpx.AsyncBaseTransport | None = None
) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings (and the HTTP transport) injectable makes the app easier to test.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    # Two stores with different lifetimes: the task cache lives until cleared,
    # the cooldown gate is a single timestamp that is overwritten on every attempt.
    cache = LocalTaskCache(SqliteKeyValueStore(settings.store_db_path, namespace="cache"))
    cooldown = SyncCooldown(SqliteKeyValueStore(settings.store_db_path, namespace="gate"))

    http = build_http_client(
        base_url=settings.base_url,
        session_cookie=settings.session_cookie,
        timeout_seconds=settings.request_timeout_seconds,
        transport=transport,
    )
    logger.info("Task API base_url=%s session=%s", settings.base_url, "yes" if settings.session_cookie else "no")

    return AppState(
        settings=settings,
        client=TaskSyncClient(http, cache=cache, cooldown=cooldown),
        cache=cache,
        cooldown=cooldown,
    )
