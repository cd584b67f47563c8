"""Tests for the application lifespan."""

import asyncio

import pytest

import main


@pytest.mark.asyncio
async def test_lifespan_stops_sweep_task_on_shutdown(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(main.settings, "invitation_sweep_interval_seconds", 3600)
    before = asyncio.all_tasks()

    async with main.lifespan(main.app):
        started = asyncio.all_tasks() - before
        assert len(started) == 1

    (task,) = started
    assert task.done()
    assert task.cancelled()


@pytest.mark.asyncio
async def test_lifespan_without_sweep_starts_no_task(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(main.settings, "invitation_sweep_interval_seconds", 0)
    before = asyncio.all_tasks()

    async with main.lifespan(main.app):
        assert asyncio.all_tasks() - before == set()
