"""Fire-and-forget task tracking."""

import asyncio
from typing import Coroutine, Optional, Set

from mailsync.utils.errors import BackgroundTaskError, ErrorHandler
from mailsync.utils.logging import get_logger

logger = get_logger(__name__)


class TaskSpawner:
    """Spawns background tasks, keeps them referenced and logs their failures.

    Callers never await spawned work; whatever it raises ends up in the log,
    not in the caller.
    """

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine, name: Optional[str] = None) -> asyncio.Task:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)

        if task.cancelled():
            logger.debug(f"Background task {task.get_name()} cancelled")
            return

        error = task.exception()
        if error is not None:
            wrapped = BackgroundTaskError(
                f"Background task {task.get_name()} failed: {error}",
                details={"task": task.get_name()},
            )
            ErrorHandler.handle(wrapped, "Background task failed", log_traceback=False)

    async def drain(self) -> None:
        """Wait until every spawned task, including ones spawned meanwhile, is done."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def cancel_all(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
