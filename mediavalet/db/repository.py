"""
MediaValet Repository - Base class for table-level data access.

A subclass names the table it owns, its DDL, and its queries.

Usage:
    class AgentContextRepository(Repository):
        TABLE_NAME = "agent_context"
        CREATE_TABLE_SQL = '''CREATE TABLE IF NOT EXISTS agent_context (...)'''
"""

import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class Repository:
    """Base class for table data access."""

    TABLE_NAME: str = ""
    CREATE_TABLE_SQL: str = ""

    def __init__(self, db: "Database"):
        self._db = db

    @property
    def db(self) -> "Database":
        return self._db

    async def ensure_table(self) -> None:
        """Create the table if it does not exist. Call once at startup."""
        if self.CREATE_TABLE_SQL:
            await self._db.execute(self.CREATE_TABLE_SQL)
            logger.debug(f"Ensured table: {self.TABLE_NAME}")

    async def _fetch_one(self, id_column: str, id_value: Any) -> Optional[Dict[str, Any]]:
        row = await self._db.fetchrow(
            f"SELECT * FROM {self.TABLE_NAME} WHERE {id_column} = $1",
            id_value,
        )
        return dict(row) if row else None

    async def _delete(self, id_column: str, id_value: Any) -> bool:
        """Delete a row by ID. Returns True if a row was deleted."""
        result = await self._db.execute(
            f"DELETE FROM {self.TABLE_NAME} WHERE {id_column} = $1",
            id_value,
        )
        return result == "DELETE 1"

    @staticmethod
    def _affected(status: str) -> int:
        """Row count from an asyncpg status string such as "DELETE 3"."""
        try:
            return int(status.rsplit(" ", 1)[-1])
        except (ValueError, AttributeError, IndexError):
            return 0
