# src/tasksync/core/result.py

from __future__ import annotations

"""
Operation results returned by the task sync client.

Three outcomes:
- Ok:         the server accepted the operation
- OkDegraded: the operation was kept locally because the server was unreachable
- Err:        the operation failed; `kind` says why

All variants expose the same flat view (success / data / error / is_offline),
so callers can branch on those two flags instead of catching exceptions.
"""

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class ErrorKind(StrEnum):
    AUTH = "auth"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    SERVER = "server"
    OFFLINE = "offline"
    INVALID = "invalid"


@dataclass(slots=True, frozen=True)
class Ok(Generic[T]):
    data: T

    success = True
    is_offline = False
    error = None


@dataclass(slots=True, frozen=True)
class OkDegraded(Generic[T]):
    data: T

    success = True
    is_offline = True
    error = None


@dataclass(slots=True, frozen=True)
class Err:
    kind: ErrorKind
    message: str
    # best-effort view for reads (local cache / empty list), never server truth
    fallback: Any = None

    success = False

    @property
    def is_offline(self) -> bool:
        return self.kind == ErrorKind.OFFLINE

    @property
    def error(self) -> str:
        return self.message

    @property
    def data(self) -> Any:
        return self.fallback


TaskResult = Ok[T] | OkDegraded[T] | Err
