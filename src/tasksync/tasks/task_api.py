# src/tasksync/tasks/task_api.py

from __future__ import annotations

"""
Task sync client.

Single point of contact between the UI and the remote task store.

Behavior:
- Every public operation resolves to Ok / OkDegraded / Err; HTTP and
  connectivity failures never raise past this module.
- 401 on any operation -> Err(AUTH), the local cache is never touched.
- Connectivity failure:
    * fetch_tasks  -> Err(OFFLINE) carrying the local cache as fallback
    * create_task  -> written to the local cache, OkDegraded
    * done/snooze  -> Err(OFFLINE), nothing is changed locally
- Concurrent mutations of the same task are not serialized: whichever
  response resolves last is what the caller sees.
"""

import logging
from collections.abc import Iterable
from datetime import datetime
from typing import Any
from urllib.parse import quote

import httpx

from ..core.result import Err, ErrorKind, Ok, OkDegraded, TaskResult
from .snooze import resolve_snooze
from .task_models import (
    BatchResult,
    CreateTaskPayload,
    NextStep,
    SyncSummary,
    Task,
    TaskFilters,
    TaskSource,
    truncate_title,
)
from .task_store import LocalTaskCache, SyncCooldown

logger = logging.getLogger(__name__)

API_BASE_PATH = "/api/user/tasks"

AUTH_ERROR = "Not signed in"
CONFLICT_ERROR = "Task already exists"
NOT_FOUND_ERROR = "Task not found"
OFFLINE_ERROR = "Connection error"
INVALID_RESPONSE_ERROR = "Invalid server response"


def _server_error(status_code: int) -> str:
    return f"Server error ({status_code})"


def parse_session_cookie(raw: str | None) -> dict[str, str]:
    """Parse "name=value; other=value" into a cookie dict."""
    cookies: dict[str, str] = {}
    if not raw:
        return cookies
    for part in raw.split(";"):
        name, sep, value = part.strip().partition("=")
        if sep and name:
            cookies[name] = value
    return cookies


def build_http_client(
    *,
    base_url: str,
    session_cookie: str | None = None,
    timeout_seconds: float | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """
    Build the HTTP client used by TaskSyncClient.

    Cookie-based session, JSON Accept header on every request.
    A timeout surfaces as httpx.TimeoutException, which is handled as a connectivity failure.
    """
    timeout = httpx.Timeout(timeout_seconds) if timeout_seconds else httpx.Timeout(None)
    return httpx.AsyncClient(
        base_url=base_url,
        headers={"Accept": "application/json"},
        cookies=parse_session_cookie(session_cookie),
        timeout=timeout,
        transport=transport,
    )


class TaskSyncClient:
    def __init__(self, http: httpx.AsyncClient, *, cache: LocalTaskCache, cooldown: SyncCooldown) -> None:
        self._http = http
        self._cache = cache
        self._cooldown = cooldown

    async def close(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> TaskSyncClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ---- reads ----

    async def fetch_tasks(self, filters: TaskFilters | None = None) -> TaskResult[list[Task]]:
        filters = filters or TaskFilters()
        try:
            res = await self._http.get(API_BASE_PATH, params=filters.to_params())
        except httpx.TransportError as e:
            local = self._cache.list_tasks()
            logger.warning(
                "fetch_tasks failed (%s); serving %d local tasks", e.__class__.__name__, len(local)
            )
            return Err(ErrorKind.OFFLINE, OFFLINE_ERROR, fallback=local)

        if res.status_code == 401:
            return Err(ErrorKind.AUTH, AUTH_ERROR, fallback=[])
        if not res.is_success:
            return Err(ErrorKind.SERVER, _server_error(res.status_code), fallback=[])

        body = _json_or_none(res)
        if not isinstance(body, list):
            return Ok([])
        return Ok([Task.from_json(item) for item in body if isinstance(item, dict)])

    def local_tasks(self) -> list[Task]:
        return self._cache.list_tasks()

    # ---- creation ----

    async def create_task(self, payload: CreateTaskPayload) -> TaskResult[Task]:
        if not payload.title or not payload.title.strip():
            return Err(ErrorKind.INVALID, "Task title is required")

        try:
            res = await self._http.post(API_BASE_PATH, json=payload.to_json())
        except httpx.TransportError as e:
            logger.warning("create_task failed (%s); storing locally", e.__class__.__name__)
            task = self._cache.add_local_task(payload)
            logger.info("Task stored offline local_id=%s", task.local_id)
            return OkDegraded(task)

        if res.status_code == 401:
            return Err(ErrorKind.AUTH, AUTH_ERROR)
        if res.status_code == 409:
            logger.debug("create_task conflict source=%s:%s", payload.source_type, payload.source_id)
            return Err(ErrorKind.CONFLICT, CONFLICT_ERROR)
        if not res.is_success:
            body = _json_or_none(res)
            message = body.get("error") if isinstance(body, dict) else None
            return Err(ErrorKind.SERVER, str(message or _server_error(res.status_code)))

        return _task_result(res)

    async def create_task_from_next_step(
        self,
        line: str,
        source_type: TaskSource,
        source_id: str,
        contact_label: str | None = None,
    ) -> TaskResult[Task]:
        return await self.create_task(
            CreateTaskPayload(
                title=truncate_title(line),
                source_type=source_type,
                source_id=source_id,
                details=f"Kontakt: {contact_label}" if contact_label else None,
            )
        )

    async def create_tasks_from_next_steps(
        self, items: Iterable[NextStep], max_count: int = 10
    ) -> BatchResult:
        """
        Create tasks for several next-step lines, one request each.

        409 counts as skipped (already handled). A task kept locally because
        the server was unreachable counts as created.
        """
        result = BatchResult()
        actionable = [item for item in items if item.line and item.line.strip()][: max(0, max_count)]

        for item in actionable:
            outcome = await self.create_task_from_next_step(
                item.line, item.source_type, item.source_id, item.contact_label
            )
            if outcome.success:
                result.created += 1
            elif isinstance(outcome, Err) and outcome.kind == ErrorKind.CONFLICT:
                result.skipped += 1
            else:
                result.failed += 1
                result.errors.append(f"{truncate_title(item.line)}: {outcome.error}")

        logger.info(
            "Batch create: created=%d skipped=%d failed=%d",
            result.created,
            result.skipped,
            result.failed,
        )
        return result

    # ---- updates ----

    async def mark_task_done(self, task_id: str | int, done: bool = True) -> TaskResult[Task]:
        return await self._update_task(task_id, "done", {"done": bool(done)})

    async def snooze_task(
        self, task_id: str | int, mode: str, now: datetime | None = None
    ) -> TaskResult[Task]:
        return await self._update_task(task_id, "snooze", {"snoozedUntil": resolve_snooze(mode, now)})

    async def unsnooze_task(self, task_id: str | int) -> TaskResult[Task]:
        return await self._update_task(task_id, "snooze", {"snoozedUntil": None})

    async def _update_task(self, task_id: str | int, action: str, body: dict[str, Any]) -> TaskResult[Task]:
        # No local fallback: the remote state of the task has to be confirmed first.
        try:
            res = await self._http.post(_task_path(task_id, action), json=body)
        except httpx.TransportError as e:
            logger.warning("%s task_id=%s failed (%s)", action, task_id, e.__class__.__name__)
            return Err(ErrorKind.OFFLINE, OFFLINE_ERROR)

        if res.status_code == 401:
            return Err(ErrorKind.AUTH, AUTH_ERROR)
        if res.status_code == 404:
            return Err(ErrorKind.NOT_FOUND, NOT_FOUND_ERROR)
        if not res.is_success:
            return Err(ErrorKind.SERVER, _server_error(res.status_code))

        return _task_result(res)

    # ---- ingestion ----

    def can_sync_tasks(self) -> bool:
        return self._cooldown.can_sync()

    async def sync_tasks(self) -> TaskResult[SyncSummary]:
        """
        Ask the server to derive tasks from recent call/chat summaries.

        Rate limited: inside the cooldown window this returns Ok(0, 0) without
        a request. The cooldown restarts on every real attempt, whatever its outcome.
        """
        if not self._cooldown.can_sync():
            logger.debug("sync_tasks skipped (cooldown)")
            return Ok(SyncSummary())

        self._cooldown.mark_attempt()

        try:
            res = await self._http.post(f"{API_BASE_PATH}/sync")
        except httpx.TransportError as e:
            logger.warning("sync_tasks failed (%s)", e.__class__.__name__)
            return Err(ErrorKind.OFFLINE, OFFLINE_ERROR)

        if res.status_code == 401:
            return Err(ErrorKind.AUTH, AUTH_ERROR)
        if not res.is_success:
            return Err(ErrorKind.SERVER, _server_error(res.status_code))

        body = _json_or_none(res)
        if body is None:
            return Err(ErrorKind.SERVER, INVALID_RESPONSE_ERROR)

        try:
            summary = SyncSummary.from_json(body)
        except (TypeError, ValueError):
            logger.warning("sync_tasks got non-numeric counts: %r", body)
            return Err(ErrorKind.SERVER, INVALID_RESPONSE_ERROR)
        logger.info("sync_tasks created=%d skipped=%d", summary.created, summary.skipped)
        return Ok(summary)


def _task_path(task_id: str | int, action: str) -> str:
    # ids go into a single path segment; "/", "?" and "#" must stay escaped
    return f"{API_BASE_PATH}/{quote(str(task_id), safe='')}/{action}"


def _json_or_none(res: httpx.Response) -> Any:
    try:
        return res.json()
    except ValueError:
        return None


def _task_result(res: httpx.Response) -> TaskResult[Task]:
    body = _json_or_none(res)
    if not isinstance(body, dict):
        return Err(ErrorKind.SERVER, INVALID_RESPONSE_ERROR)
    return Ok(Task.from_json(body))
