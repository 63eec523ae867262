"""Async read-only access to the indexer database with SQLAlchemy 2.0."""

import logging
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from core.config import Settings
from core.logging import get_logger
from services.binder import BoundQuery

logger = get_logger(__name__)


def normalize_value(value: Any) -> Any:
    """Make driver values JSON-serializable (numeric columns arrive as Decimal)."""
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, dict):
        return {k: normalize_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [normalize_value(v) for v in value]
    return value


class Database:
    """Async database service over a positional-parameter driver (asyncpg)."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.engine: AsyncEngine = None

    async def startup(self):
        """Create the connection pool."""
        try:
            logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
            logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)

            self.engine = create_async_engine(
                self.settings.database_url,
                echo=self.settings.database_echo,
                pool_size=self.settings.database_pool_size,
                max_overflow=self.settings.database_max_overflow,
                pool_pre_ping=True,
            )
            logger.info("Database initialized successfully")

        except Exception as e:
            logger.error("Database startup failed", error=str(e))
            raise

    async def shutdown(self):
        """Close database connections."""
        if self.engine:
            await self.engine.dispose()
            logger.info("Database connections closed")

    async def fetch(self, query: BoundQuery) -> List[Dict[str, Any]]:
        """Execute a bound query and return its rows as dicts.

        Errors propagate to the caller.
        """
        if not self.engine:
            raise RuntimeError("Database not initialized")

        async with self.engine.connect() as conn:
            result = await conn.exec_driver_sql(query.text, query.values)
            rows = [
                {k: normalize_value(v) for k, v in row.items()}
                for row in result.mappings().all()
            ]

        logger.debug("Query executed", rows=len(rows), params=len(query.values))
        return rows

    async def ping(self) -> bool:
        """Check database connectivity."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception:
            return False
