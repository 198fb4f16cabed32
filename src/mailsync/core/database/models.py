"""SQLAlchemy table definitions for the local message store."""

from sqlalchemy import (
    Boolean,
    Column,
    Index,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
)

from mailsync.core.database.base import metadata


def _summary_columns():
    """Columns shared by cached list rows and cached details."""
    return [
        Column("thread_id", String(255), nullable=False, default="", server_default=""),
        Column("subject", String(1000), nullable=False, default="", server_default=""),
        Column("sender", String(500), nullable=False, default="", server_default=""),
        Column("sender_email", String(500), nullable=False, default="", server_default=""),
        Column("date", String(40), nullable=False, default="", server_default=""),
        Column("snippet", Text, nullable=False, default="", server_default=""),
        Column("is_read", Boolean, nullable=False, default=False, server_default="0"),
        Column("is_starred", Boolean, nullable=False, default=False, server_default="0"),
        Column("has_attachments", Boolean, nullable=False, default=False, server_default="0"),
    ]


# One row per message per folder; ``position`` keeps server order
messages = Table(
    "messages",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("folder", String(255), nullable=False),
    Column("position", Integer, nullable=False),
    Column("uid", String(255), nullable=False),
    *_summary_columns(),
    UniqueConstraint("folder", "uid", name="uq_messages_folder_uid"),
    Index("ix_messages_folder_position", "folder", "position"),
)

message_details = Table(
    "message_details",
    metadata,
    Column("uid", String(255), primary_key=True),
    *_summary_columns(),
    Column("recipients", Text, nullable=False, default="[]", server_default="[]"),
    Column("labels", Text, nullable=False, default="[]", server_default="[]"),
    Column("body_html", Text, nullable=True),
    Column("body_plain", Text, nullable=True),
)
