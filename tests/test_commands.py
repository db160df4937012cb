# tests/test_commands.py

from __future__ import annotations

import pytest

from tasksync.cli.commands import CommandRegistry, registry

from .fakes import FakeTaskServer


@pytest.mark.asyncio
async def test_command_registry_routes_2_and_3_params(state) -> None:
    reg = CommandRegistry()
    called = {"h2": 0, "h3": 0}

    async def h2(state, args):
        called["h2"] += 1
        return "h2"

    async def h3(state, args, emit):
        called["h3"] += 1
        if emit is not None:
            emit("note")
        return "h3"

    reg.register("a", h2, "a")
    reg.register("b", h3, "b")

    assert await reg.handle(state, "/a x") == "h2"
    assert await reg.handle(state, "/b y", emit=lambda _: None) == "h3"
    assert called == {"h2": 1, "h3": 1}


@pytest.mark.asyncio
async def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert await reg.handle(state, "hello") is None
    assert "Unknown command" in (await reg.handle(state, "/nope") or "")


@pytest.mark.asyncio
async def test_add_and_list_tasks(state, server: FakeTaskServer) -> None:
    created = await registry.handle(state, "/add Send the offer")
    listing = await registry.handle(state, "/tasks")

    assert created is not None and created.startswith("Created:")
    assert listing is not None and "Send the offer" in listing

    req = server.calls("POST", "/api/user/tasks")[0]
    assert req.headers["cookie"] == "connect.sid=abc123"


@pytest.mark.asyncio
async def test_add_offline_keeps_task_locally(state, server: FakeTaskServer) -> None:
    server.offline = True

    created = await registry.handle(state, "/add Call Tim")
    listing = await registry.handle(state, "/tasks")
    local = await registry.handle(state, "/local")

    assert created is not None and created.startswith("Saved locally")
    assert listing is not None and "[offline]" in listing and "Call Tim" in listing
    assert local is not None and "Call Tim" in local


@pytest.mark.asyncio
async def test_done_snooze_and_active(state, server: FakeTaskServer) -> None:
    a = server.add(title="Alpha")
    server.add(title="Beta")

    assert "[x]" in (await registry.handle(state, f"/done {a['id']}") or "")
    snoozed = await registry.handle(state, "/snooze 2 tomorrow")
    assert snoozed is not None and "snoozed until" in snoozed

    active = await registry.handle(state, "/active")
    assert active == "Nothing to do right now."

    await registry.handle(state, "/unsnooze 2")
    active = await registry.handle(state, "/active")
    assert active is not None and "Beta" in active


@pytest.mark.asyncio
async def test_not_found_and_usage(state) -> None:
    assert await registry.handle(state, "/done 404") == "[not_found] Task not found"
    assert (await registry.handle(state, "/snooze 1") or "").startswith("Usage:")
    assert await registry.handle(state, "/tasks later") == "Usage: /tasks [open|done|all]"


@pytest.mark.asyncio
async def test_sync_command_respects_cooldown(state, server: FakeTaskServer) -> None:
    notes: list[str] = []

    first = await registry.handle(state, "/sync", emit=notes.append)
    second = await registry.handle(state, "/sync", emit=notes.append)

    assert first == "Sync done: created=2 skipped=1"
    assert second is not None and "try again later" in second
    assert len(notes) == 1
    assert len(server.calls("POST", "/api/user/tasks/sync")) == 1

    status = await registry.handle(state, "/status")
    assert status is not None and "cooling down" in status
    assert "at most once per 60 s" in status
