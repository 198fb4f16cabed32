"""Background sync scheduling: the poll timer, push events and live monitoring.

While running, two triggers keep the current folder fresh:

- an APScheduler interval job (every ``poll_interval_minutes``)
- new-mail events arriving on the ``NewMailBus``

Both end up in ``trigger_refresh()``, which forces a network refresh of the
current folder and refreshes the folder statistics.

Usage Examples
--------------

    >>> scheduler = BackgroundSyncScheduler(orchestrator, other_folders, bus, spawner)
    >>> await scheduler.start()
    >>> scheduler.state
    <SchedulerState.RUNNING: 'running'>
    >>> await scheduler.stop()
"""

import asyncio
from enum import Enum
from typing import Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from mailsync.core.email.events import NewMailBus
from mailsync.core.email.monitor import LiveMonitor
from mailsync.utils.errors import BackgroundTaskError, ErrorHandler
from mailsync.utils.logging import async_log_call, get_logger, log_event

from .orchestrator import RefreshOrchestrator
from .other_folders import OtherFoldersSyncer
from .tasks import TaskSpawner

logger = get_logger(__name__)

POLL_JOB_ID = "poll_refresh"


class SchedulerState(Enum):
    """Lifecycle of the background sync scheduler."""

    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"


class BackgroundSyncScheduler:
    """Owns the background triggers that keep the mailbox in sync."""

    def __init__(
        self,
        orchestrator: RefreshOrchestrator,
        other_folders: OtherFoldersSyncer,
        bus: NewMailBus,
        spawner: TaskSpawner,
        live_monitor: Optional[LiveMonitor] = None,
        poll_interval_minutes: int = 10,
        page_size: int = 50,
        account_id: Optional[str] = None,
    ):
        self.orchestrator = orchestrator
        self.other_folders = other_folders
        self.bus = bus
        self.spawner = spawner
        self.live_monitor = live_monitor
        self.poll_interval_minutes = poll_interval_minutes
        self.page_size = page_size
        self.account_id = account_id

        self._state = SchedulerState.STOPPED
        self._epoch = 0
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is not SchedulerState.STOPPED

    @property
    def timer_job(self):
        """The armed APScheduler job, or None while the timer is disarmed."""
        if self._scheduler is None:
            return None
        return self._scheduler.get_job(POLL_JOB_ID)

    ## Lifecycle

    @async_log_call
    async def start(self) -> None:
        """Start background sync, restarting it if already active.

        Steps run in order; a ``stop()`` issued meanwhile aborts the rest.
        """
        if self._state is not SchedulerState.STOPPED:
            logger.info("Background sync already active, restarting")
            await self.stop()

        self._epoch += 1
        epoch = self._epoch
        self._state = SchedulerState.STARTING
        logger.info("Starting background sync")

        await self.orchestrator.load(page_size=self.page_size)
        if not self._still_starting(epoch):
            return

        self.spawner.spawn(self.orchestrator.refresh(self.page_size), name="initial-refresh")
        self.other_folders.spawn()

        await self.orchestrator.refresh_folder_stats()
        if not self._still_starting(epoch):
            return

        self._unsubscribe = self.bus.subscribe(self._on_new_mail)

        if self.live_monitor is not None:
            await self._start_live_monitor()
            if not self._still_starting(epoch):
                await self._stop_live_monitor()
                return

        self._arm_timer()
        self._state = SchedulerState.RUNNING

        log_event(
            "sync_started",
            "Background sync running",
            poll_interval_minutes=self.poll_interval_minutes,
            live_monitoring=self.live_monitor is not None,
        )

    @async_log_call
    async def stop(self) -> None:
        """Stop background sync.

        The timer and the push subscription are gone before the first await,
        so no new trigger can fire once this has been called. Refreshes that
        are already running are left to finish.
        """
        if self._state is SchedulerState.STOPPED:
            return

        self._epoch += 1
        self._state = SchedulerState.STOPPED
        self._disarm_timer()

        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

        await self._stop_live_monitor()

        log_event("sync_stopped", "Background sync stopped")

    def _still_starting(self, epoch: int) -> bool:
        if epoch == self._epoch and self._state is SchedulerState.STARTING:
            return True

        logger.info("Background sync start aborted")
        return False

    ## Triggers

    async def trigger_refresh(self) -> None:
        """Refresh the current folder from the server, plus folder stats."""
        await asyncio.gather(
            self.orchestrator.refresh(self.page_size),
            self.orchestrator.refresh_folder_stats(),
        )

    async def _on_timer(self) -> None:
        if not self.is_active:
            return

        logger.debug("Poll timer fired")
        await self.trigger_refresh()

    def _on_new_mail(self, account_id: str, folder: str) -> None:
        if not self.is_active:
            return

        if self.account_id is not None and account_id != self.account_id:
            logger.debug(f"Ignoring new mail for account {account_id}")
            return

        logger.info(f"New mail in {folder}, refreshing")
        self.spawner.spawn(self.trigger_refresh(), name="push-refresh")

    ## Timer

    def _arm_timer(self) -> None:
        self._disarm_timer()

        scheduler = AsyncIOScheduler(event_loop=asyncio.get_running_loop())
        scheduler.add_job(
            self._on_timer,
            "interval",
            minutes=self.poll_interval_minutes,
            id=POLL_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        scheduler.start()
        self._scheduler = scheduler

        logger.info(f"Poll timer armed (interval: {self.poll_interval_minutes} minutes)")

    def _disarm_timer(self) -> None:
        scheduler, self._scheduler = self._scheduler, None
        if scheduler is None:
            return

        scheduler.remove_all_jobs()
        if scheduler.running:
            scheduler.shutdown(wait=False)

        logger.info("Poll timer disarmed")

    ## Live monitoring

    async def _start_live_monitor(self) -> None:
        try:
            await self.live_monitor.start()

        except Exception as e:
            ErrorHandler.handle(
                BackgroundTaskError(
                    f"Live monitoring unavailable: {e}",
                    details={"monitor": type(self.live_monitor).__name__},
                ),
                "Live monitoring start",
                log_traceback=False,
            )

    async def _stop_live_monitor(self) -> None:
        if self.live_monitor is None:
            return

        try:
            await self.live_monitor.stop()

        except Exception as e:
            ErrorHandler.handle(e, "Live monitoring stop failed", log_traceback=False)
