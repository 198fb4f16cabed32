"""Refresh orchestration for the visible folder.

The orchestrator decides, per request, whether the local cache or the server
is consulted and how the shared ``SyncState`` changes around it:

- A cache-only load keeps the current list visible while it reads and only
  raises ``loading`` when nothing is shown yet.
- A network refresh raises ``refreshing`` when a list is shown and
  ``loading`` otherwise. The server response replaces the list wholesale.
- Failures end up in ``state.error`` and never propagate to the caller.

Every network refresh goes through ``request_refresh()``. Per folder, a
request identical to the one in flight joins it and a differing request
queues behind it, so the last request issued is the last one written.

Usage Examples
--------------

    >>> orchestrator = RefreshOrchestrator(state, reader, fetcher, source, store, spawner)
    >>> await orchestrator.load()                          # cache only
    >>> await orchestrator.load(force_network=True)        # server refresh
    >>> refresh_task = await orchestrator.switch_folder("Sent")
    >>> await orchestrator.select_message("msg-42")
"""

import asyncio
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from mailsync.core.database.repositories.base import MessageStore
from mailsync.core.email.services.fetch import FolderCacheReader, RemoteRefreshFetcher
from mailsync.core.email.source import MailSource
from mailsync.core.models.message import MessageDetail, normalise_folder
from mailsync.utils.errors import (
    ErrorHandler,
    MailSyncError,
    MessageNotFoundError,
    format_error_message,
    safe_execute_async,
)
from mailsync.utils.logging import get_logger

from .notifier import PostRefreshNotifier
from .state import SyncState
from .tasks import TaskSpawner

logger = get_logger(__name__)

RefreshKey = Tuple[str, int, Optional[str], int]


@dataclass
class _InFlight:
    key: RefreshKey
    task: asyncio.Task


class RefreshOrchestrator:
    """Coordinates cache reads, network refreshes and message selection."""

    def __init__(
        self,
        state: SyncState,
        cache_reader: FolderCacheReader,
        fetcher: RemoteRefreshFetcher,
        source: MailSource,
        store: MessageStore,
        spawner: TaskSpawner,
        notifier: Optional[PostRefreshNotifier] = None,
        default_page_size: int = 50,
    ):
        self.state = state
        self.cache_reader = cache_reader
        self.fetcher = fetcher
        self.source = source
        self.store = store
        self.spawner = spawner
        self.notifier = notifier
        self.default_page_size = default_page_size
        self._inflight: Dict[str, _InFlight] = {}
        self._network_writes: Dict[str, int] = {}

    ## Folder loading

    async def load(
        self,
        folder: Optional[str] = None,
        page_size: Optional[int] = None,
        query: Optional[str] = None,
        force_network: bool = False,
    ) -> bool:
        """Load a folder from the cache or, with ``force_network``, the server.

        Args:
            folder: Folder to load (default: the current folder)
            page_size: Maximum number of messages (default: configured size)
            query: Optional free-text filter for network refreshes
            force_network: Refresh from the server instead of the cache

        Returns:
            False if the load failed, True otherwise. A result that was
            discarded because the folder changed meanwhile counts as success.
        """
        try:
            target = self.state.current_folder if folder is None else normalise_folder(folder)

        except MailSyncError as e:
            self.state.apply(error=format_error_message(e))
            return False

        page_size = page_size or self.default_page_size

        if force_network:
            return await self.request_refresh(target, page_size, query)

        return await self._load_from_cache(target, page_size)

    async def refresh(self, page_size: Optional[int] = None) -> bool:
        """Force a server refresh of the current folder."""
        return await self.load(page_size=page_size, force_network=True)

    async def request_refresh(
        self, folder: str, page_size: int, query: Optional[str] = None
    ) -> bool:
        """Run, join or queue a network refresh of ``folder``.

        Cancelling the caller never cancels the refresh itself.
        """
        generation = self.state.generation
        key = (folder, page_size, query, generation)

        current = self._inflight.get(folder)
        if current is not None and current.key == key and not current.task.done():
            logger.debug(f"Joining in-flight refresh of {folder}")
            return await asyncio.shield(current.task)

        previous = current.task if current is not None else None
        visible = folder == self.state.current_folder

        task = asyncio.create_task(
            self._run_refresh(folder, page_size, query, generation, visible, previous),
            name=f"refresh:{folder}",
        )
        entry = _InFlight(key, task)
        self._inflight[folder] = entry
        task.add_done_callback(lambda _task: self._forget(folder, entry))

        return await asyncio.shield(task)

    def _forget(self, folder: str, entry: _InFlight) -> None:
        if self._inflight.get(folder) is entry:
            del self._inflight[folder]

    def _refresh_shown(self, folder: str) -> bool:
        """Whether a refresh issued for the current view of ``folder`` is running."""
        entry = self._inflight.get(folder)
        return entry is not None and not entry.task.done() and entry.key[3] == self.state.generation

    async def _load_from_cache(self, folder: str, page_size: int) -> bool:
        if folder != self.state.current_folder:
            logger.debug(f"Cache load for {folder} ignored, {self.state.current_folder} is current")
            return True

        generation = self.state.generation
        writes = self._network_writes.get(folder, 0)
        owner = object()
        if not self.state.messages and not self._refresh_shown(folder):
            self.state.begin("loading", owner)
        elif self.state.error is not None:
            self.state.apply(error=None)

        items = await self.cache_reader.read(folder, page_size)

        if not self.state.is_current(folder, generation):
            logger.debug(f"Discarding stale cache read for {folder}")
            return True

        # A server response is newer than anything read from the cache
        if self._refresh_shown(folder) or self._network_writes.get(folder, 0) != writes:
            logger.debug(f"Cache read for {folder} superseded by a network refresh")
            self.state.finish(owner)
            return True

        self.state.finish(owner, messages=items, error=None)
        return True

    async def _run_refresh(
        self,
        folder: str,
        page_size: int,
        query: Optional[str],
        generation: int,
        visible: bool,
        previous: Optional[asyncio.Task],
    ) -> bool:
        if previous is not None and not previous.done():
            logger.debug(f"Refresh of {folder} queued behind the one in flight")
            await asyncio.wait([previous])

        shown = visible and self.state.is_current(folder, generation)

        owner = object()
        if shown:
            self.state.begin("refreshing" if self.state.messages else "loading", owner)

        try:
            items = await self.fetcher.fetch(folder, page_size, query)

        except Exception as e:
            ErrorHandler.handle(e, f"Refresh of {folder} failed", log_traceback=False)
            if shown and self.state.is_current(folder, generation):
                self.state.finish(owner, error=format_error_message(e))
            return False

        if shown and self.state.is_current(folder, generation):
            self._network_writes[folder] = self._network_writes.get(folder, 0) + 1
            self.state.finish(owner, messages=items, error=None)
        elif visible:
            logger.debug(f"Refresh of {folder} stored but not shown, view moved on")

        # Background refreshes of other folders leave the indexers alone
        if self.notifier is not None and visible:
            self.notifier.notify(page_size)

        return True

    ## Folder switching

    async def switch_folder(self, folder: str) -> asyncio.Task:
        """Show ``folder``: clear the view, load its cache, then refresh it.

        Returns:
            The background network refresh, for callers that want to wait

        Raises:
            InvalidFolderError: If ``folder`` is empty
        """
        target = normalise_folder(folder)
        self.state.switch_to(target)
        logger.info(f"Switched folder to {target}")

        await self.load(target)

        return self.spawner.spawn(
            self.load(target, force_network=True),
            name=f"switch-refresh:{target}",
        )

    ## Selection

    async def select_message(self, message_id: str) -> bool:
        """Fetch a message in full and make it the selected one.

        The locally cached copy is used when the server cannot deliver it. If
        neither is available the error is shown and the previous selection
        stays in place.
        """
        generation = self.state.generation
        owner = object()
        self.state.begin("loading", owner)

        detail: Optional[MessageDetail] = None
        failure: Optional[Exception] = None

        try:
            detail = await self.source.get_message(message_id)

        except Exception as e:
            failure = e
            logger.warning(f"Fetching message {message_id} failed: {format_error_message(e)}")
            detail = await safe_execute_async(
                self.store.find_detail,
                message_id,
                context=f"Cached copy of {message_id} unavailable",
            )

        else:
            await safe_execute_async(
                self.store.save_detail,
                detail,
                context=f"Could not cache message {message_id}",
            )

        if detail is None and failure is None:
            failure = MessageNotFoundError(f"Message {message_id} not found", details={"id": message_id})

        if generation != self.state.generation:
            logger.debug(f"Discarding selection of {message_id}, folder changed")
            return detail is not None

        if detail is None:
            self.state.finish(owner, error=format_error_message(failure))
            return False

        if failure is not None:
            logger.info(f"Showing cached copy of {message_id}")

        self.state.finish(owner, selected=detail, error=None)
        return True

    def clear_selection(self) -> None:
        self.state.apply(selected=None)

    ## Folder statistics

    async def refresh_folder_stats(self) -> bool:
        """Fetch per-folder counts from the server; failures are only logged."""
        try:
            stats = await self.source.get_folder_stats()

        except Exception as e:
            ErrorHandler.handle(e, "Folder stats refresh failed", log_traceback=False)
            return False

        self.state.apply(folder_stats=stats)
        return True
