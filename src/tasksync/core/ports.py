# src/tasksync/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the task client.

The client depends on Protocols instead of concrete implementations.
This keeps persistence adapters (SQLite file, in-memory) swappable and makes testing easier.
"""

from typing import Protocol


class KeyValueStore(Protocol):
    """
    Device-local persistent storage.

    Values are opaque strings; callers do their own (de)serialization.
    """

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class Clock(Protocol):
    """Wall clock in seconds since the epoch (time.time compatible)."""

    def __call__(self) -> float: ...
