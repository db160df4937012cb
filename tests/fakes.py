# tests/fakes.py

from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass, field
from typing import Any

import httpx


@dataclass(slots=True)
class FakeTaskServer:
    """
    In-memory task API used as an httpx.MockTransport handler.

    - Enforces (sourceType, sourceId) uniqueness with 409
    - Records every request for assertions
    - `offline=True` makes every request fail with a connection error
    - `offline_error` picks the transport error raised while offline
    - `force_status` answers every request with that status code;
      `force_text` replaces the JSON body with raw text
    """

    tasks: dict[str, dict[str, Any]] = field(default_factory=dict)
    requests: list[httpx.Request] = field(default_factory=list)
    offline: bool = False
    offline_error: type[httpx.TransportError] = httpx.ConnectError
    force_status: int | None = None
    force_body: Any = None
    force_text: str | None = None
    sync_result: dict[str, Any] = field(default_factory=lambda: {"created": 2, "skipped": 1})
    next_id: int = 1

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def add(self, **fields: Any) -> dict[str, Any]:
        task_id = str(self.next_id)
        self.next_id += 1
        task = {
            "id": task_id,
            "userId": "u1",
            "title": "",
            "sourceType": "manual",
            "sourceId": None,
            "priority": "medium",
            "status": "open",
            "details": None,
            "dueAt": None,
            "snoozedUntil": None,
            "createdAt": "2026-10-01T08:00:00.000+00:00",
            "updatedAt": "2026-10-01T08:00:00.000+00:00",
            "completedAt": None,
        }
        task.update(fields)
        self.tasks[task_id] = task
        return task

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if self.offline:
            raise self.offline_error("connection refused", request=request)

        if self.force_status is not None:
            if self.force_text is not None:
                return httpx.Response(self.force_status, text=self.force_text)
            return httpx.Response(self.force_status, json=self.force_body or {"error": "forced"})

        path = request.url.path
        parts = [p for p in path.split("/") if p]  # api, user, tasks, ...

        if parts[:3] != ["api", "user", "tasks"]:
            return httpx.Response(404, json={"error": "not found"})

        rest = parts[3:]
        body = json.loads(request.content) if request.content else {}

        if request.method == "GET" and not rest:
            return httpx.Response(200, json=self._list(request.url.params))

        if request.method == "POST" and not rest:
            return self._create(body)

        if request.method == "POST" and rest == ["sync"]:
            return httpx.Response(200, json=self.sync_result)

        if request.method == "POST" and len(rest) == 2:
            task = self.tasks.get(rest[0])
            if task is None:
                return httpx.Response(404, json={"error": "Task not found"})
            if rest[1] == "done":
                task["status"] = "done" if body.get("done") else "open"
                return httpx.Response(200, json=task)
            if rest[1] == "snooze":
                task["snoozedUntil"] = body.get("snoozedUntil")
                return httpx.Response(200, json=task)

        return httpx.Response(404, json={"error": "not found"})

    def _list(self, params: httpx.QueryParams) -> list[dict[str, Any]]:
        out = list(self.tasks.values())
        status = params.get("status")
        if status in ("open", "done"):
            out = [t for t in out if t["status"] == status]
        if params.get("sourceType"):
            out = [t for t in out if t["sourceType"] == params["sourceType"]]
        if params.get("sourceId"):
            out = [t for t in out if t["sourceId"] == params["sourceId"]]
        if params.get("limit"):
            out = out[: int(params["limit"])]
        return out

    def _create(self, body: dict[str, Any]) -> httpx.Response:
        source_id = body.get("sourceId")
        if source_id is not None:
            for t in self.tasks.values():
                if t["sourceType"] == body.get("sourceType") and t["sourceId"] == source_id:
                    return httpx.Response(409, json={"error": "duplicate"})
        task = self.add(**{k: v for k, v in body.items() if v is not None})
        return httpx.Response(201, json=task)


class ManualClock:
    """Controllable wall clock for cooldown tests."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FailingStore:
    """KeyValueStore whose every read and write fails like a locked database."""

    def get(self, key: str) -> str | None:
        raise sqlite3.OperationalError("database is locked")

    def set(self, key: str, value: str) -> None:
        raise sqlite3.OperationalError("database is locked")
