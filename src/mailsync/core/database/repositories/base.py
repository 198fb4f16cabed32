"""Local message store interface."""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from mailsync.core.models.message import MessageDetail, MessageSummary


class MessageStore(ABC):
    """Durable per-folder cache of message summaries and details."""

    @abstractmethod
    async def read_folder(self, folder: str, limit: Optional[int] = None) -> List[MessageSummary]:
        """Return the cached messages of a folder in server order.

        Args:
            folder: Canonical folder name.
            limit: Maximum number of rows to return (all if None).

        Returns:
            The cached list; empty when nothing is cached.
        """
        pass

    @abstractmethod
    async def replace_folder(self, folder: str, messages: Sequence[MessageSummary]) -> None:
        """Replace the whole cached list of a folder.

        Args:
            folder: Canonical folder name.
            messages: Authoritative list from the server, in server order.
        """
        pass

    @abstractmethod
    async def save_detail(self, detail: MessageDetail) -> None:
        """Cache a fully fetched message."""
        pass

    @abstractmethod
    async def find_detail(self, message_id: str) -> Optional[MessageDetail]:
        """Return a cached message detail, or None."""
        pass
