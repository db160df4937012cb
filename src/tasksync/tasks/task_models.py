# src/tasksync/tasks/task_models.py

from __future__ import annotations

import hashlib
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

TITLE_MAX_LENGTH = 180


class TaskSource(StrEnum):
    """Where a task came from."""

    CALL = "call"
    SPACE = "space"
    MANUAL = "manual"

    @classmethod
    def parse(cls, raw: str | None) -> TaskSource:
        if not raw:
            return cls.MANUAL
        try:
            return cls(raw)
        except ValueError:
            return cls.MANUAL


class TaskPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def parse(cls, raw: str | None) -> TaskPriority:
        if not raw:
            return cls.MEDIUM
        try:
            return cls(raw)
        except ValueError:
            return cls.MEDIUM


class TaskStatus(StrEnum):
    OPEN = "open"
    DONE = "done"

    @classmethod
    def parse(cls, raw: str | None) -> TaskStatus:
        # "completed" shows up in older payloads
        if raw in ("done", "completed"):
            return cls.DONE
        return cls.OPEN


def parse_timestamp(raw: Any) -> datetime | None:
    """Parse an ISO-8601 wire timestamp. Unparseable values read as None."""
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        return raw
    try:
        return datetime.fromisoformat(str(raw))
    except ValueError:
        return None


def format_timestamp(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.isoformat(timespec="milliseconds")


def truncate_title(title: str) -> str:
    return title.strip()[:TITLE_MAX_LENGTH]


def generate_fingerprint(source_type: TaskSource | str, source_id: str | None, title: str) -> str:
    """
    Stable de-duplication key for a task.

    Based on source type + source id + normalized title
    (lower-case, trimmed, whitespace collapsed).
    """
    normalized = " ".join(title.lower().split())
    raw = f"{source_type}:{source_id or ''}:{normalized}"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()[:16]


@dataclass(slots=True)
class Task:
    title: str
    source_type: TaskSource = TaskSource.MANUAL
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.OPEN

    # server id; None for tasks that only exist in the local cache
    id: str | None = None
    local_id: str | None = None

    source_id: str | None = None
    details: str | None = None
    due_at: datetime | None = None
    snoozed_until: datetime | None = None

    user_id: str | None = None
    fingerprint: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def done(self) -> bool:
        return self.status == TaskStatus.DONE

    @property
    def is_local(self) -> bool:
        return self.id is None

    @property
    def key(self) -> str:
        """Server id if persisted, otherwise the local surrogate key."""
        return self.id if self.id is not None else (self.local_id or "")

    def is_snoozed(self, now: datetime | None = None) -> bool:
        # a past snoozed_until is kept on the record but no longer counts
        if self.snoozed_until is None:
            return False
        if now is None:
            now = datetime.now(self.snoozed_until.tzinfo)
        return self.snoozed_until > now

    def is_active(self, now: datetime | None = None) -> bool:
        return not self.done and not self.is_snoozed(now)

    @classmethod
    def from_json(cls, raw: dict[str, Any]) -> Task:
        if "done" in raw and "status" not in raw:
            status = TaskStatus.DONE if raw.get("done") else TaskStatus.OPEN
        else:
            status = TaskStatus.parse(raw.get("status"))

        task_id = raw.get("id")
        return cls(
            id=str(task_id) if task_id is not None else None,
            local_id=raw.get("localId"),
            title=str(raw.get("title") or ""),
            source_type=TaskSource.parse(raw.get("sourceType")),
            source_id=raw.get("sourceId"),
            priority=TaskPriority.parse(raw.get("priority")),
            status=status,
            details=raw.get("details"),
            due_at=parse_timestamp(raw.get("dueAt")),
            snoozed_until=parse_timestamp(raw.get("snoozedUntil")),
            user_id=raw.get("userId"),
            fingerprint=raw.get("fingerprint"),
            created_at=parse_timestamp(raw.get("createdAt")),
            updated_at=parse_timestamp(raw.get("updatedAt")),
            completed_at=parse_timestamp(raw.get("completedAt")),
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "localId": self.local_id,
            "title": self.title,
            "sourceType": self.source_type.value,
            "sourceId": self.source_id,
            "priority": self.priority.value,
            "status": self.status.value,
            "done": self.done,
            "details": self.details,
            "dueAt": format_timestamp(self.due_at),
            "snoozedUntil": format_timestamp(self.snoozed_until),
            "userId": self.user_id,
            "fingerprint": self.fingerprint,
            "createdAt": format_timestamp(self.created_at),
            "updatedAt": format_timestamp(self.updated_at),
            "completedAt": format_timestamp(self.completed_at),
        }


def active_tasks(tasks: Iterable[Task], now: datetime | None = None) -> list[Task]:
    """Open tasks that are not currently snoozed."""
    return [t for t in tasks if t.is_active(now)]


@dataclass(slots=True, frozen=True)
class TaskFilters:
    status: str | None = None  # open | done | all
    source_type: TaskSource | None = None
    source_id: str | None = None
    limit: int | None = None
    since_days: int | None = None

    def to_params(self) -> dict[str, str]:
        params: dict[str, str] = {}
        if self.status:
            params["status"] = self.status
        if self.source_type:
            params["sourceType"] = str(self.source_type)
        if self.source_id:
            params["sourceId"] = self.source_id
        if self.limit:
            params["limit"] = str(self.limit)
        if self.since_days:
            params["sinceDays"] = str(self.since_days)
        return params


@dataclass(slots=True, frozen=True)
class CreateTaskPayload:
    title: str
    source_type: TaskSource = TaskSource.MANUAL
    source_id: str | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    due_at: str | None = None
    details: str | None = None

    def to_json(self) -> dict[str, Any]:
        return {
            "title": truncate_title(self.title),
            "sourceType": self.source_type.value,
            "sourceId": self.source_id or None,
            "priority": self.priority.value,
            "dueAt": self.due_at or None,
            "details": self.details or None,
        }


@dataclass(slots=True, frozen=True)
class SyncSummary:
    created: int = 0
    skipped: int = 0

    @classmethod
    def from_json(cls, raw: Any) -> SyncSummary:
        if not isinstance(raw, dict):
            return cls()
        return cls(created=int(raw.get("created") or 0), skipped=int(raw.get("skipped") or 0))


@dataclass(slots=True)
class NextStep:
    """A next-step line from a call/space summary, candidate for a task."""

    line: str
    source_type: TaskSource
    source_id: str
    contact_label: str | None = None


@dataclass(slots=True)
class BatchResult:
    created: int = 0
    skipped: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)
