"""
Tests for detached background task supervision.
"""
import asyncio

import pytest

from classcast.services.broadcast import TaskSupervisor


@pytest.mark.asyncio
async def test_drain_waits_for_spawned_tasks():
    supervisor = TaskSupervisor()
    done = []

    async def work(n):
        await asyncio.sleep(0.01 * n)
        done.append(n)

    for n in range(3):
        supervisor.spawn(work(n), name=f"final:{n}")

    assert await supervisor.drain(timeout=1.0) is True
    assert sorted(done) == [0, 1, 2]
    assert supervisor.pending == 0


@pytest.mark.asyncio
async def test_drain_includes_tasks_spawned_while_waiting():
    supervisor = TaskSupervisor()
    done = []

    async def child():
        done.append("child")

    async def parent():
        await asyncio.sleep(0.01)
        supervisor.spawn(child(), name="child")

    supervisor.spawn(parent(), name="parent")

    assert await supervisor.drain(timeout=1.0) is True
    assert done == ["child"]


@pytest.mark.asyncio
async def test_failures_are_logged_and_counted(caplog):
    supervisor = TaskSupervisor()

    async def explode():
        raise RuntimeError("translation bug")

    supervisor.spawn(explode(), name="final:class-1")
    await supervisor.drain(timeout=1.0)

    assert supervisor.failures == 1
    assert "final:class-1" in caplog.text
    assert "translation bug" in caplog.text


@pytest.mark.asyncio
async def test_drain_timeout():
    supervisor = TaskSupervisor()
    supervisor.spawn(asyncio.sleep(10), name="slow")

    assert await supervisor.drain(timeout=0.05) is False
    assert supervisor.pending == 1

    await supervisor.shutdown(timeout=0)


@pytest.mark.asyncio
async def test_shutdown_cancels_unfinished_tasks():
    supervisor = TaskSupervisor()
    task = supervisor.spawn(asyncio.sleep(10), name="slow")

    await supervisor.shutdown(timeout=0.05)

    assert task.cancelled()
    assert supervisor.pending == 0
    assert supervisor.failures == 0
