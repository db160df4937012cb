# src/tasksync/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..tasks.task_api import TaskSyncClient
from ..tasks.task_store import LocalTaskCache, SyncCooldown


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules.
    settings: Any

    client: TaskSyncClient
    cache: LocalTaskCache
    cooldown: SyncCooldown
