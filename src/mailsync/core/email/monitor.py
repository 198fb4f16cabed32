"""Live monitoring of remote folders.

One watch loop runs per monitored folder. Each loop asks the mail source to
wait for changes, publishes a ``NewMailEvent`` when new mail shows up, and
re-issues the wait when it times out. Errors are logged and the loop retries
after ``retry_delay`` seconds, so a flaky connection never ends monitoring
on its own; only ``stop()`` does.
"""

import asyncio
import contextlib
from typing import Dict, Iterable, List

from mailsync.core.email.events import NewMailBus, NewMailEvent
from mailsync.core.email.source import MailSource
from mailsync.utils.logging import get_logger

logger = get_logger(__name__)


class LiveMonitor:
    """Runs per-folder watch loops that feed the new-mail bus."""

    def __init__(
        self,
        source: MailSource,
        bus: NewMailBus,
        account_id: str,
        folders: Iterable[str],
        idle_timeout: float = 29 * 60,
        retry_delay: float = 30.0,
    ) -> None:
        self.source = source
        self.bus = bus
        self.account_id = account_id
        self.folders: List[str] = list(folders)
        self.idle_timeout = idle_timeout
        self.retry_delay = retry_delay
        self._loops: Dict[str, asyncio.Task] = {}

    @property
    def is_running(self) -> bool:
        return any(not task.done() for task in self._loops.values())

    async def start(self) -> None:
        """Start one watch loop per folder, replacing any running loops."""
        await self.stop()

        # Sources without push support keep the base implementation
        if type(self.source).wait_for_changes is MailSource.wait_for_changes:
            raise NotImplementedError(f"{type(self.source).__name__} does not support live monitoring")

        for folder in self.folders:
            self._loops[folder] = asyncio.create_task(
                self._watch(folder), name=f"live-monitor:{folder}"
            )

        logger.info(f"Live monitoring started for {len(self._loops)} folder(s)")

    async def stop(self) -> None:
        """Cancel every watch loop and wait for them to exit."""
        if not self._loops:
            return

        loops = list(self._loops.values())
        self._loops.clear()

        for task in loops:
            task.cancel()

        for task in loops:
            with contextlib.suppress(asyncio.CancelledError):
                await task

        logger.info("Live monitoring stopped")

    async def _watch(self, folder: str) -> None:
        log = get_logger(__name__, folder=folder, account_id=self.account_id)

        while True:
            try:
                changed = await self.source.wait_for_changes(folder, self.idle_timeout)

            except asyncio.CancelledError:
                raise

            except Exception as e:
                log.warning(f"Watch of {folder} failed: {e}. Retrying in {self.retry_delay}s")
                await asyncio.sleep(self.retry_delay)
                continue

            if changed:
                log.info(f"New mail detected in {folder}")
                await self.bus.publish(NewMailEvent(self.account_id, folder))
            else:
                log.debug(f"Wait on {folder} timed out, re-issuing")
