"""Engine manager wrapping the SQLAlchemy async engine."""

import asyncio
from pathlib import Path
from typing import Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from mailsync.core.database.base import create_engine, dispose_engine, metadata
from mailsync.utils.errors import DatabaseConnectionError
from mailsync.utils.logging import get_logger

logger = get_logger(__name__)


class EngineManager:
    """Manages SQLAlchemy async engine lifecycle and schema creation."""

    def __init__(self, db_path: Path, echo: bool = False) -> None:
        """Initialise engine manager.

        Args:
            db_path: Path to SQLite database file
            echo: Enable SQL logging
        """
        self.db_path = db_path
        self.echo = echo

        self._engine: Optional[AsyncEngine] = None
        self._lock = asyncio.Lock()

    async def get_engine(self) -> AsyncEngine:
        """Get or create the async engine, creating tables on first use.

        Raises:
            DatabaseConnectionError: If engine creation fails
        """
        async with self._lock:
            if self._engine is None:
                try:
                    engine = create_engine(self.db_path, echo=self.echo)
                    async with engine.begin() as conn:
                        await conn.run_sync(metadata.create_all)
                    self._engine = engine
                    logger.info(f"Engine initialised: {self.db_path}")
                except Exception as e:
                    raise DatabaseConnectionError(
                        "Failed to create database engine",
                        details={"db_path": str(self.db_path), "error": str(e)},
                    ) from e

        return self._engine

    async def close(self) -> None:
        """Dispose of engine and close all pooled connections."""
        if self._engine:
            try:
                await dispose_engine(self._engine)
            except Exception as e:
                logger.error(f"Error disposing engine: {e}")
            finally:
                self._engine = None

    async def health_check(self) -> bool:
        """Run a trivial query to check the database is reachable."""
        try:
            engine = await self.get_engine()
            async with engine.connect() as conn:
                result = await conn.execute(text("SELECT 1"))
                row = result.fetchone()
            return row is not None and row[0] == 1

        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False
