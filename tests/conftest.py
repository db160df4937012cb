# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from tasksync.cli.bootstrap import create_initial_state
from tasksync.core.state import AppState
from tasksync.tasks.task_api import TaskSyncClient, build_http_client
from tasksync.tasks.task_store import LocalTaskCache, MemoryKeyValueStore, SyncCooldown

from .fakes import FakeTaskServer, ManualClock


@pytest.fixture()
def server() -> FakeTaskServer:
    return FakeTaskServer()


@pytest.fixture()
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture()
def cache() -> LocalTaskCache:
    return LocalTaskCache(MemoryKeyValueStore())


@pytest.fixture()
def cooldown(clock: ManualClock) -> SyncCooldown:
    return SyncCooldown(MemoryKeyValueStore(), clock=clock)


@pytest.fixture()
def client(server: FakeTaskServer, cache: LocalTaskCache, cooldown: SyncCooldown) -> TaskSyncClient:
    """
    TaskSyncClient wired to the in-memory fake server.

    In-memory stores keep each test isolated; SQLite adapters have their own tests.
    """
    http = build_http_client(base_url="http://tasks.test", transport=server.transport())
    return TaskSyncClient(http, cache=cache, cooldown=cooldown)


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with the bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the environment.
    """
    return SimpleNamespace(
        app_name="tasksync-test",
        log_level="INFO",
        base_url="http://tasks.test",
        session_cookie="connect.sid=abc123",
        request_timeout_seconds=5.0,
        data_dir=tmp_path / "data",
        store_db_path=tmp_path / "data" / "tasksync.sqlite3",
    )


@pytest.fixture()
def state(settings: SimpleNamespace, server: FakeTaskServer) -> AppState:
    """AppState built by the real bootstrap (SQLite stores), HTTP routed to the fake server."""
    return create_initial_state(settings=settings, transport=server.transport())
