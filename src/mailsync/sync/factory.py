"""Factory wiring the sync components together with managed resources."""

from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from mailsync.core.database import EngineManager, MessageRepository
from mailsync.core.database.repositories.base import MessageStore
from mailsync.core.email.events import NewMailBus
from mailsync.core.email.monitor import LiveMonitor
from mailsync.core.email.services.fetch import FolderCacheReader, RemoteRefreshFetcher
from mailsync.core.email.source import Indexer, MailSource
from mailsync.core.models.message import normalise_folder
from mailsync.utils.config_manager import ConfigManager
from mailsync.utils.logging import get_logger, init_logging

from .notifier import PostRefreshNotifier
from .orchestrator import RefreshOrchestrator
from .other_folders import OtherFoldersSyncer
from .scheduler import BackgroundSyncScheduler
from .state import SyncState
from .tasks import TaskSpawner

logger = get_logger(__name__)


@dataclass
class SyncCoordinator:
    """Everything a host application needs to drive mail sync."""

    state: SyncState
    orchestrator: RefreshOrchestrator
    scheduler: BackgroundSyncScheduler
    other_folders: OtherFoldersSyncer
    bus: NewMailBus
    spawner: TaskSpawner
    store: MessageStore
    engine_manager: Optional[EngineManager] = None

    async def close(self) -> None:
        """Stop background sync, wait for spawned work and release the database."""
        await self.scheduler.stop()
        await self.spawner.drain()

        if self.engine_manager is not None:
            try:
                await self.engine_manager.close()
                logger.debug("Database connection closed")
            except Exception as e:
                logger.error(f"Error closing database connection: {e}")


class SyncCoordinatorFactory:
    """Factory for creating a SyncCoordinator from configuration."""

    @classmethod
    @asynccontextmanager
    async def create(
        cls,
        source: MailSource,
        config: Optional[ConfigManager] = None,
        embedding_indexer: Optional[Indexer] = None,
        insight_indexer: Optional[Indexer] = None,
        store: Optional[MessageStore] = None,
        bus: Optional[NewMailBus] = None,
    ):
        """Create a coordinator and close it on exit (recommended).

        Yields:
            SyncCoordinator instance ready to use
        """
        coordinator = cls.build(source, config, embedding_indexer, insight_indexer, store, bus)

        try:
            yield coordinator
        finally:
            await coordinator.close()

    @classmethod
    def build(
        cls,
        source: MailSource,
        config: Optional[ConfigManager] = None,
        embedding_indexer: Optional[Indexer] = None,
        insight_indexer: Optional[Indexer] = None,
        store: Optional[MessageStore] = None,
        bus: Optional[NewMailBus] = None,
    ) -> SyncCoordinator:
        """Build a coordinator; the caller is responsible for ``close()``.

        Args:
            source: Remote mail source
            config: ConfigManager instance (creates new if None)
            embedding_indexer: Optional embedding indexer
            insight_indexer: Optional insight indexer
            store: Message store (default: SQLite store at the configured path)
            bus: New-mail bus shared with the host (creates new if None)
        """
        if config is None:
            config = ConfigManager()

        init_logging(config.config.logging.log_level).set_level(config.config.logging.console_level)
        settings = config.sync

        engine_manager = None
        if store is None:
            engine_manager = EngineManager(
                Path(config.config.database.database_path),
                echo=config.config.database.echo,
            )
            store = MessageRepository(engine_manager)

        if bus is None:
            bus = NewMailBus()

        spawner = TaskSpawner()
        state = SyncState(normalise_folder(settings.primary_folder))
        fetcher = RemoteRefreshFetcher(source, store)

        notifier = PostRefreshNotifier(spawner, embedding_indexer, insight_indexer)
        orchestrator = RefreshOrchestrator(
            state=state,
            cache_reader=FolderCacheReader(store),
            fetcher=fetcher,
            source=source,
            store=store,
            spawner=spawner,
            notifier=notifier,
            default_page_size=settings.page_size,
        )
        other_folders = OtherFoldersSyncer(
            orchestrator, spawner, settings.other_folders, page_size=settings.page_size
        )

        live_monitor = None
        if settings.live_monitoring:
            live_monitor = LiveMonitor(
                source,
                bus,
                settings.account_id,
                [normalise_folder(folder) for folder in settings.monitored_folders],
                idle_timeout=settings.idle_timeout_seconds,
                retry_delay=settings.retry_delay_seconds,
            )

        scheduler = BackgroundSyncScheduler(
            orchestrator,
            other_folders,
            bus,
            spawner,
            live_monitor=live_monitor,
            poll_interval_minutes=settings.poll_interval_minutes,
            page_size=settings.page_size,
            account_id=settings.account_id,
        )

        logger.debug("Created all components for SyncCoordinator")

        return SyncCoordinator(
            state=state,
            orchestrator=orchestrator,
            scheduler=scheduler,
            other_folders=other_folders,
            bus=bus,
            spawner=spawner,
            store=store,
            engine_manager=engine_manager,
        )
