"""Kick downstream indexers after a successful network refresh."""

import asyncio
from typing import List, Optional

from mailsync.core.email.source import Indexer
from mailsync.utils.errors import ErrorHandler
from mailsync.utils.logging import get_logger

from .tasks import TaskSpawner

logger = get_logger(__name__)


class PostRefreshNotifier:
    """Requests embedding and insight work once fresh messages are stored.

    Requests are fire-and-forget. An indexer that is still busy with an
    earlier run is skipped; it picks the new messages up on its next run.
    """

    def __init__(
        self,
        spawner: TaskSpawner,
        embedding_indexer: Optional[Indexer] = None,
        insight_indexer: Optional[Indexer] = None,
    ):
        self.spawner = spawner
        self.embedding_indexer = embedding_indexer
        self.insight_indexer = insight_indexer

    def notify(self, page_size: int) -> List[asyncio.Task]:
        """Spawn indexer requests for a refresh of ``page_size`` messages.

        Returns:
            The spawned tasks (empty when every indexer was skipped)
        """
        spawned = []

        embedding = self.embedding_indexer
        if embedding is not None and self._accepts_work(embedding, require_ready=True):
            spawned.append(
                self.spawner.spawn(embedding.request_work(None), name=f"{embedding.name}-request")
            )

        insights = self.insight_indexer
        if insights is not None and self._accepts_work(insights, require_ready=False):
            spawned.append(
                self.spawner.spawn(insights.request_work(page_size), name=f"{insights.name}-request")
            )

        if spawned:
            logger.debug(f"Requested work from {len(spawned)} indexer(s)")

        return spawned

    @staticmethod
    def _accepts_work(indexer: Indexer, require_ready: bool) -> bool:
        try:
            if require_ready and not indexer.is_ready:
                logger.debug(f"{indexer.name} not ready, skipping")
                return False

            if indexer.is_busy():
                logger.debug(f"{indexer.name} busy, skipping")
                return False

        except Exception as e:
            ErrorHandler.handle(e, f"Could not query {indexer.name}", log_traceback=False)
            return False

        return True
