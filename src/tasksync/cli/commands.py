# src/tasksync/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import cast

from ..core.result import Err
from ..core.state import AppState
from ..tasks.snooze import SnoozeMode
from ..tasks.task_models import CreateTaskPayload, Task, TaskFilters, active_tasks

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], Awaitable[str]]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], Awaitable[str]]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /tasks, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return await h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return await h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _fmt_ts(value: datetime | None) -> str:
    if value is None:
        return "-"
    return value.astimezone().strftime("%Y-%m-%d %H:%M")


def format_task(task: Task, now: datetime | None = None) -> str:
    mark = "x" if task.done else " "
    line = f"[{mark}] {task.key} {task.title} ({task.priority}, {task.source_type})"
    if task.is_snoozed(now):
        line += f" snoozed until {_fmt_ts(task.snoozed_until)}"
    if task.due_at is not None:
        line += f" due {_fmt_ts(task.due_at)}"
    return line


def _format_tasks(tasks: list[Task], empty: str) -> str:
    if not tasks:
        return empty
    return "\n".join(f"{i}. {format_task(t)}" for i, t in enumerate(tasks, start=1))


def _format_err(result: Err) -> str:
    if result.is_offline:
        return f"[offline] {result.message}. Try again once the connection is back."
    return f"[{result.kind}] {result.message}"


async def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


async def cmd_status(state: AppState, args: list[str]) -> str:
    settings = state.settings
    session = "yes" if getattr(settings, "session_cookie", None) else "no"
    sync = "ready" if state.client.can_sync_tasks() else "cooling down"
    return (
        "Status:\n"
        f"  API: {getattr(settings, 'base_url', '?')}\n"
        f"  Session cookie: {session}\n"
        f"  Local (unsynced) tasks: {state.cache.count()}\n"
        f"  Sync: {sync} (at most once per {state.cooldown.cooldown_seconds:g} s)"
    )


async def cmd_tasks(state: AppState, args: list[str]) -> str:
    """
    /tasks          -> open tasks
    /tasks done     -> completed tasks
    /tasks all      -> everything
    """
    status = args[0].lower() if args else "open"
    if status not in ("open", "done", "all"):
        return "Usage: /tasks [open|done|all]"

    result = await state.client.fetch_tasks(TaskFilters(status=status))
    if isinstance(result, Err):
        listing = _format_tasks(list(result.fallback or []), "No local tasks.")
        if result.is_offline:
            return f"{_format_err(result)}\nShowing local tasks:\n{listing}"
        return _format_err(result)
    return _format_tasks(result.data, "No tasks.")


async def cmd_active(state: AppState, args: list[str]) -> str:
    result = await state.client.fetch_tasks(TaskFilters(status="open"))
    if isinstance(result, Err):
        return _format_err(result)
    return _format_tasks(active_tasks(result.data), "Nothing to do right now.")


async def cmd_add(state: AppState, args: list[str]) -> str:
    title = " ".join(args).strip()
    if not title:
        return "Usage: /add <title>"

    result = await state.client.create_task(CreateTaskPayload(title=title))
    if isinstance(result, Err):
        return _format_err(result)
    if result.is_offline:
        return f"Saved locally (offline): {format_task(result.data)}"
    return f"Created: {format_task(result.data)}"


async def _set_done(state: AppState, args: list[str], done: bool) -> str:
    if not args:
        return f"Usage: /{'done' if done else 'undone'} <task id>"
    result = await state.client.mark_task_done(args[0], done)
    if isinstance(result, Err):
        return _format_err(result)
    return format_task(result.data)


async def cmd_done(state: AppState, args: list[str]) -> str:
    return await _set_done(state, args, True)


async def cmd_undone(state: AppState, args: list[str]) -> str:
    return await _set_done(state, args, False)


async def cmd_snooze(state: AppState, args: list[str]) -> str:
    """
    /snooze <id> 1h|tomorrow|nextweek
    /snooze <id> <ISO timestamp>
    """
    if len(args) < 2:
        modes = "|".join(m.value for m in SnoozeMode)
        return f"Usage: /snooze <task id> <{modes}|ISO timestamp>"
    result = await state.client.snooze_task(args[0], args[1])
    if isinstance(result, Err):
        return _format_err(result)
    return format_task(result.data)


async def cmd_unsnooze(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /unsnooze <task id>"
    result = await state.client.unsnooze_task(args[0])
    if isinstance(result, Err):
        return _format_err(result)
    return format_task(result.data)


async def cmd_sync(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not state.client.can_sync_tasks():
        return "Sync ran less than a minute ago; try again later."

    if emit:
        emit("[SYNC] Asking the server to pick up tasks from recent summaries...")

    result = await state.client.sync_tasks()
    if isinstance(result, Err):
        return _format_err(result)
    return f"Sync done: created={result.data.created} skipped={result.data.skipped}"


async def cmd_local(state: AppState, args: list[str]) -> str:
    return _format_tasks(state.client.local_tasks(), "No local (unsynced) tasks.")


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show API, session and sync status.")
registry.register("tasks", cmd_tasks, help_text="List tasks: /tasks [open|done|all].", aliases=["ls"])
registry.register("active", cmd_active, help_text="List open tasks that are not snoozed.")
registry.register("add", cmd_add, help_text="Create a task: /add <title>.")
registry.register("done", cmd_done, help_text="Mark a task done: /done <id>.")
registry.register("undone", cmd_undone, help_text="Reopen a task: /undone <id>.")
registry.register("snooze", cmd_snooze, help_text="Snooze: /snooze <id> 1h|tomorrow|nextweek|<ISO>.")
registry.register("unsnooze", cmd_unsnooze, help_text="Clear a snooze: /unsnooze <id>.")
registry.register("sync", cmd_sync, help_text="Pick up tasks from recent call/chat summaries.")
registry.register("local", cmd_local, help_text="Show tasks kept locally while offline.")
