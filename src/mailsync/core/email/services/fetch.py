"""Folder fetch services - cache reads and forced network refreshes"""

import time
from dataclasses import dataclass
from typing import List, Optional

from mailsync.core.database.repositories.base import MessageStore
from mailsync.core.email.source import MailSource
from mailsync.core.models.message import MessageSummary
from mailsync.utils.errors import MailSyncError, wrap_network_error
from mailsync.utils.logging import async_log_call, get_logger

logger = get_logger(__name__)


@dataclass
class FetchStats:
    """Statistics for one folder refresh."""

    folder: str
    messages_fetched: int = 0
    total_duration: float = 0.0


class FolderCacheReader:
    """Reads the locally cached message list of a folder.

    A failing read is logged and reported as an empty list so that the
    caller keeps working with whatever it already shows.
    """

    def __init__(self, store: MessageStore):
        self._store = store

    async def read(self, folder: str, limit: Optional[int] = None) -> List[MessageSummary]:
        try:
            items = await self._store.read_folder(folder, limit)

        except Exception as e:
            logger.warning(
                f"Cache read failed for {folder}: {e}",
                extra={"folder": folder},
            )
            return []

        logger.debug(f"Read {len(items)} cached messages for {folder}")
        return items


class RemoteRefreshFetcher:
    """Fetches a folder from the server and writes it through to the store."""

    def __init__(self, source: MailSource, store: MessageStore):
        """Initialise fetcher.

        Args:
            source: Remote mail source
            store: Local store receiving the fresh list
        """
        self._source = source
        self._store = store

    @async_log_call
    async def fetch(
        self,
        folder: str,
        page_size: int,
        query: Optional[str] = None,
    ) -> List[MessageSummary]:
        """Fetch the canonical list of ``folder`` and persist it.

        The server response always wins: the cached list for the folder is
        replaced, never merged.

        Args:
            folder: Canonical folder name
            page_size: Maximum number of messages to fetch
            query: Optional free-text filter

        Returns:
            The fetched messages, in server order

        Raises:
            NetworkError: If the server could not be reached
            AuthenticationError: If credentials were rejected
            DatabaseError: If the fresh list could not be stored
        """
        stats = FetchStats(folder=folder)
        start_time = time.time()

        logger.info(
            "Starting folder refresh",
            extra={"folder": folder, "page_size": page_size, "query": query},
        )

        try:
            items = await self._source.fetch_folder(folder, page_size, query, force_refresh=True)

        except MailSyncError:
            raise

        except Exception as e:
            raise wrap_network_error(
                e,
                f"Failed to refresh {folder}",
                details={"folder": folder, "page_size": page_size},
            ) from e

        items = list(items)
        await self._store.replace_folder(folder, items)

        stats.messages_fetched = len(items)
        stats.total_duration = time.time() - start_time

        logger.info(
            "Folder refresh completed",
            extra={
                "folder": folder,
                "messages_fetched": stats.messages_fetched,
                "duration_seconds": round(stats.total_duration, 2),
            },
        )

        return items
