"""
Task Supervisor - detached background work with a log-and-continue policy.

Ingestion responds before translation finishes, so each utterance runs as a
detached asyncio task. The supervisor keeps a strong reference until the task
finishes, logs any exception with its traceback, and lets tests and shutdown
wait for in-flight work.
"""

import asyncio
import logging
from typing import Awaitable, Optional, Set

from classcast.services.metrics import background_task_failures

logger = logging.getLogger(__name__)


class TaskSupervisor:
    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()
        self._failures = 0

    def spawn(self, coro: Awaitable, *, name: str) -> asyncio.Task:
        """Schedule `coro` without awaiting it."""
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task):
        self._tasks.discard(task)
        if task.cancelled():
            logger.debug(f"Background task {task.get_name()} cancelled")
            return
        exc = task.exception()
        if exc is not None:
            self._failures += 1
            label = task.get_name().split(":", 1)[0]
            background_task_failures.labels(task=label).inc()
            logger.error(
                f"Background task {task.get_name()} failed: {exc}",
                exc_info=(type(exc), exc, exc.__traceback__),
            )

    @property
    def pending(self) -> int:
        return len(self._tasks)

    @property
    def failures(self) -> int:
        return self._failures

    async def drain(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for every in-flight task, including ones spawned while waiting.

        Returns False if the timeout expired first.
        """
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout
        while self._tasks:
            unfinished = {task for task in self._tasks if not task.done()}
            if not unfinished:
                # Let pending done-callbacks run
                await asyncio.sleep(0)
                continue
            remaining = None if deadline is None else deadline - loop.time()
            if remaining is not None and remaining <= 0:
                return False
            await asyncio.wait(unfinished, timeout=remaining)
        return True

    async def shutdown(self, timeout: float):
        """Give in-flight tasks `timeout` seconds, then cancel the rest."""
        if await self.drain(timeout):
            return
        tasks = list(self._tasks)
        logger.warning(f"Cancelling {len(tasks)} unfinished background tasks")
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
