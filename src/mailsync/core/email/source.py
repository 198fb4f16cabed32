"""Interfaces of the collaborators the coordinator talks to.

The remote mail source and the two downstream indexers are supplied by the
host application. The coordinator only ever calls the methods below.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from mailsync.core.models.message import FolderStats, MessageDetail, MessageSummary


class MailSource(ABC):
    """Remote mail source reachable over the network."""

    @abstractmethod
    async def fetch_folder(
        self,
        folder: str,
        page_size: int,
        query: Optional[str] = None,
        force_refresh: bool = True,
    ) -> List[MessageSummary]:
        """Fetch the current message list of a folder from the server.

        Args:
            folder: Canonical folder name
            page_size: Maximum number of messages to return
            query: Optional free-text filter
            force_refresh: Bypass any server-side or client-side cache

        Returns:
            The canonical message list, in server order

        Raises:
            NetworkError: On transport or server failure
            AuthenticationError: When credentials are rejected
        """
        pass

    @abstractmethod
    async def get_folder_stats(self) -> List[FolderStats]:
        """Return total and unread counts for the known folders."""
        pass

    @abstractmethod
    async def get_message(self, message_id: str) -> MessageDetail:
        """Fetch one message in full.

        Raises:
            MessageNotFoundError: If the identifier is unknown
            NetworkError: On transport or server failure
        """
        pass

    async def wait_for_changes(self, folder: str, timeout: float) -> bool:
        """Block until the server reports a change in ``folder``.

        Returns True when new mail arrived and False when ``timeout`` elapsed
        without activity. Sources without push support keep the default, which
        raises so that live monitoring is reported as unavailable and the
        polling timer carries the load.
        """
        raise NotImplementedError(f"{type(self).__name__} does not support live monitoring")


class Indexer(ABC):
    """Downstream consumer of refreshed messages (embeddings, insights)."""

    name = "indexer"

    @property
    def is_ready(self) -> bool:
        """Whether the indexer has been initialised and can accept work."""
        return True

    @abstractmethod
    def is_busy(self) -> bool:
        """Whether a previously requested run is still in progress."""
        pass

    @abstractmethod
    async def request_work(self, limit: Optional[int] = None) -> None:
        """Index whatever is not indexed yet, up to ``limit`` messages."""
        pass
