"""Message repository with SQLAlchemy Core queries."""

import json
from typing import List, Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.dialects.sqlite import insert

from mailsync.core.database.engine_manager import EngineManager
from mailsync.core.database.models import message_details, messages
from mailsync.core.models.message import MessageDetail, MessageSummary
from mailsync.utils.errors import CacheReadError, DatabaseError
from mailsync.utils.logging import get_logger

from .base import MessageStore

logger = get_logger(__name__)

_SUMMARY_FIELDS = (
    "thread_id",
    "subject",
    "sender",
    "sender_email",
    "date",
    "snippet",
    "is_read",
    "is_starred",
    "has_attachments",
)


class MessageRepository(MessageStore):
    """SQLite-backed message store.

    Folder lists are replaced wholesale on every refresh, so a folder's rows
    always describe exactly one server response.
    """

    def __init__(self, engine_manager: EngineManager):
        """Initialize repository.

        Args:
            engine_manager: Engine manager for database access
        """
        self.engine_mgr = engine_manager

    async def read_folder(self, folder: str, limit: Optional[int] = None) -> List[MessageSummary]:
        """Return cached messages for ``folder`` in server order.

        Raises:
            CacheReadError: If the query fails
        """
        query = (
            select(messages)
            .where(messages.c.folder == folder)
            .order_by(messages.c.position)
        )
        if limit is not None:
            query = query.limit(limit)

        try:
            engine = await self.engine_mgr.get_engine()
            async with engine.connect() as conn:
                result = await conn.execute(query)
                rows = result.fetchall()

        except Exception as e:
            raise CacheReadError(
                f"Failed to read cached messages for {folder}",
                details={"folder": folder, "error": str(e)},
            ) from e

        return [self._row_to_summary(row) for row in rows]

    async def replace_folder(self, folder: str, items: Sequence[MessageSummary]) -> None:
        """Atomically swap the cached list for ``folder``.

        Raises:
            DatabaseError: If the transaction fails
        """
        rows = [self._summary_to_row(folder, position, item) for position, item in enumerate(items)]

        try:
            engine = await self.engine_mgr.get_engine()
            async with engine.begin() as conn:
                await conn.execute(delete(messages).where(messages.c.folder == folder))
                if rows:
                    await conn.execute(insert(messages).prefix_with("OR REPLACE"), rows)

        except Exception as e:
            raise DatabaseError(
                f"Failed to store messages for {folder}",
                details={"folder": folder, "count": len(rows), "error": str(e)},
            ) from e

        logger.debug(f"Replaced cached list for {folder} ({len(rows)} messages)")

    async def save_detail(self, detail: MessageDetail) -> None:
        """Upsert a full message.

        Raises:
            DatabaseError: If the write fails
        """
        values = {field: getattr(detail, field) for field in _SUMMARY_FIELDS}
        values.update(
            {
                "recipients": json.dumps(list(detail.to)),
                "labels": json.dumps(list(detail.labels)),
                "body_html": detail.body_html,
                "body_plain": detail.body_plain,
            }
        )

        query = insert(message_details).values(uid=detail.id, **values)
        query = query.on_conflict_do_update(index_elements=["uid"], set_=values)

        try:
            engine = await self.engine_mgr.get_engine()
            async with engine.begin() as conn:
                await conn.execute(query)

        except Exception as e:
            raise DatabaseError(
                f"Failed to cache message {detail.id}",
                details={"id": detail.id, "error": str(e)},
            ) from e

    async def find_detail(self, message_id: str) -> Optional[MessageDetail]:
        """Return the cached detail for ``message_id`` or None."""
        query = select(message_details).where(message_details.c.uid == message_id)

        try:
            engine = await self.engine_mgr.get_engine()
            async with engine.connect() as conn:
                result = await conn.execute(query)
                row = result.fetchone()

        except Exception as e:
            raise CacheReadError(
                f"Failed to read cached message {message_id}",
                details={"id": message_id, "error": str(e)},
            ) from e

        if row is None:
            return None

        return MessageDetail(
            id=row.uid,
            to=json.loads(row.recipients or "[]"),
            labels=json.loads(row.labels or "[]"),
            body_html=row.body_html,
            body_plain=row.body_plain,
            **{field: getattr(row, field) for field in _SUMMARY_FIELDS},
        )

    # Helper methods for domain model <-> database row conversion

    @staticmethod
    def _summary_to_row(folder: str, position: int, item: MessageSummary) -> dict:
        row = {field: getattr(item, field) for field in _SUMMARY_FIELDS}
        row.update({"folder": folder, "position": position, "uid": item.id})
        return row

    @staticmethod
    def _row_to_summary(row) -> MessageSummary:
        return MessageSummary(
            id=row.uid,
            **{field: getattr(row, field) for field in _SUMMARY_FIELDS},
        )
