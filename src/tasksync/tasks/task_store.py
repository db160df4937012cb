# src/tasksync/tasks/task_store.py

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
import time
import uuid
from datetime import datetime
from pathlib import Path

from ..core.ports import Clock, KeyValueStore
from .task_models import (
    CreateTaskPayload,
    Task,
    TaskStatus,
    generate_fingerprint,
    parse_timestamp,
    truncate_title,
)

logger = logging.getLogger(__name__)

LOCAL_TASKS_KEY = "tasksync.tasks.local"
INGEST_TIMESTAMP_KEY = "tasksync.tasks.ingest.last"
SYNC_COOLDOWN_SECONDS = 60.0


class SqliteKeyValueStore:
    """
    SQLite key-value store (device-persistent adapter for KeyValueStore).

    The schema is intentionally simple:
    - a single kv table, created if missing

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "tasksync.sqlite3", *, namespace: str = "default") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._namespace = namespace
        self._ensure_schema()
        logger.info("SqliteKeyValueStore ready db=%s namespace=%s", self._db_path, namespace)

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    namespace TEXT NOT NULL,
                    key TEXT NOT NULL,
                    value TEXT NOT NULL,
                    updated_at REAL NOT NULL,
                    PRIMARY KEY (namespace, key)
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    # ---- public API ----

    def get(self, key: str) -> str | None:
        conn = self._get_conn()
        try:
            cur = conn.execute(
                "SELECT value FROM kv WHERE namespace = ? AND key = ?",
                (self._namespace, key),
            )
            row = cur.fetchone()
            return str(row["value"]) if row else None
        finally:
            conn.close()

    def set(self, key: str, value: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO kv(namespace, key, value, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(namespace, key) DO UPDATE
                SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (self._namespace, key, value, time.time()),
            )
            conn.commit()
        finally:
            conn.close()


class MemoryKeyValueStore:
    """In-process KeyValueStore; contents are lost on exit."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class LocalTaskCache:
    """
    Fallback store for tasks created while the server was unreachable.

    Used only as:
    - a read fallback when fetching from the server fails entirely
    - a write target when task creation fails on connectivity

    Entries are never pruned or merged with server state here.
    """

    def __init__(self, store: KeyValueStore, *, key: str = LOCAL_TASKS_KEY) -> None:
        self._store = store
        self._key = key

    def list_tasks(self) -> list[Task]:
        try:
            raw = self._store.get(self._key)
        except (OSError, sqlite3.Error):
            logger.exception("Failed to read local tasks; treating as empty.")
            return []
        if not raw:
            return []
        try:
            items = json.loads(raw)
        except ValueError:
            logger.warning("Local task cache is not valid JSON; treating as empty.")
            return []
        if not isinstance(items, list):
            return []
        return [Task.from_json(item) for item in items if isinstance(item, dict)]

    def count(self) -> int:
        return len(self.list_tasks())

    def _save(self, tasks: list[Task]) -> None:
        try:
            self._store.set(self._key, json.dumps([t.to_json() for t in tasks], ensure_ascii=False))
        except (OSError, sqlite3.Error):
            logger.exception("Failed to save local tasks (count=%d)", len(tasks))

    def add_local_task(self, payload: CreateTaskPayload, now: datetime | None = None) -> Task:
        if now is None:
            now = datetime.now().astimezone()

        title = truncate_title(payload.title)
        task = Task(
            id=None,
            local_id=f"local-{uuid.uuid4().hex}",
            user_id="local",
            title=title,
            source_type=payload.source_type,
            source_id=payload.source_id or None,
            priority=payload.priority,
            status=TaskStatus.OPEN,
            details=payload.details or None,
            due_at=parse_timestamp(payload.due_at),
            fingerprint=generate_fingerprint(payload.source_type, payload.source_id, title),
            created_at=now,
            updated_at=now,
        )

        # read-modify-write in one synchronous step
        tasks = self.list_tasks()
        tasks.append(task)
        self._save(tasks)
        logger.debug("Local task added local_id=%s total=%d", task.local_id, len(tasks))
        return task

    def clear(self) -> None:
        self._save([])


class SyncCooldown:
    """
    Single-timestamp gate for the summary ingestion trigger.

    Best-effort and device-local: processes sharing the same store share the gate.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        cooldown_seconds: float = SYNC_COOLDOWN_SECONDS,
        clock: Clock = time.time,
        key: str = INGEST_TIMESTAMP_KEY,
    ) -> None:
        self._store = store
        self._cooldown = float(cooldown_seconds)
        self._clock = clock
        self._key = key

    @property
    def cooldown_seconds(self) -> float:
        return self._cooldown

    def last_attempt(self) -> float | None:
        try:
            raw = self._store.get(self._key)
        except (OSError, sqlite3.Error):
            # unreadable gate counts as open
            logger.exception("Failed to read last sync attempt")
            return None
        if not raw:
            return None
        try:
            return float(raw)
        except ValueError:
            return None

    def can_sync(self) -> bool:
        last = self.last_attempt()
        if last is None:
            return True
        return self._clock() - last >= self._cooldown

    def mark_attempt(self) -> None:
        try:
            self._store.set(self._key, repr(self._clock()))
        except (OSError, sqlite3.Error):
            logger.exception("Failed to record sync attempt")
