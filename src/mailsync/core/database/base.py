"""Base database infrastructure with SQLAlchemy async engine."""

from pathlib import Path

from sqlalchemy import MetaData, event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from mailsync.utils.logging import get_logger

logger = get_logger(__name__)

# Shared metadata for all tables
metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_name)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "pk": "pk_%(table_name)s",
    }
)


def create_engine(db_path: Path, echo: bool = False) -> AsyncEngine:
    """Create async SQLAlchemy engine for the local message store.

    Args:
        db_path: Path to SQLite database file
        echo: Enable SQL query logging (for debugging)

    Returns:
        Configured async engine
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)

    url = f"sqlite+aiosqlite:///{db_path}"

    engine = create_async_engine(
        url,
        echo=echo,
        pool_pre_ping=True,
        connect_args={"timeout": 30.0, "check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        """Set SQLite pragmas for performance and safety."""
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.execute("PRAGMA temp_store=MEMORY")
        cursor.close()

    logger.info(f"Database engine created: {db_path}")

    return engine


async def dispose_engine(engine: AsyncEngine) -> None:
    """Dispose of engine and close all connections."""
    await engine.dispose()
    logger.info("Database engine disposed")
