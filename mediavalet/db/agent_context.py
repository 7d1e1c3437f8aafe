"""
Agent context persistence

Stores the tool-call log and generated assets of a chat between runs, so a
follow-up request ("make it a video") can refer to the last image.
"""

import logging
from typing import Any, Dict, Optional

from .repository import Repository

logger = logging.getLogger(__name__)


class AgentContextRepository(Repository):
    """Postgres store for persisted agent context (ContextStoreProtocol)."""

    TABLE_NAME = "agent_context"
    CREATE_TABLE_SQL = """
        CREATE TABLE IF NOT EXISTS agent_context (
            chat_id TEXT PRIMARY KEY,
            tool_calls JSONB NOT NULL DEFAULT '[]'::jsonb,
            generated_assets JSONB NOT NULL DEFAULT '{}'::jsonb,
            last_updated TIMESTAMPTZ NOT NULL DEFAULT NOW()
        );
        CREATE INDEX IF NOT EXISTS idx_agent_context_last_updated
            ON agent_context (last_updated);
    """

    async def upsert(self, chat_id: str, tool_calls: Any, generated_assets: Any) -> None:
        await self.db.execute(
            f"""
            INSERT INTO {self.TABLE_NAME} (chat_id, tool_calls, generated_assets, last_updated)
            VALUES ($1, $2, $3, NOW())
            ON CONFLICT (chat_id) DO UPDATE SET
                tool_calls = EXCLUDED.tool_calls,
                generated_assets = EXCLUDED.generated_assets,
                last_updated = NOW()
            """,
            chat_id,
            tool_calls or [],
            generated_assets or {},
        )

    async def find_by_chat_id(self, chat_id: str) -> Optional[Dict[str, Any]]:
        return await self._fetch_one("chat_id", chat_id)

    async def delete_by_chat_id(self, chat_id: str) -> bool:
        return await self._delete("chat_id", chat_id)

    async def delete_older_than_days(self, days: int) -> int:
        """Remove contexts not updated for ``days`` days; returns the count."""
        status = await self.db.execute(
            f"DELETE FROM {self.TABLE_NAME} "
            f"WHERE last_updated < NOW() - make_interval(days => $1)",
            days,
        )
        deleted = self._affected(status)
        if deleted:
            logger.info(f"Cleaned up {deleted} agent contexts older than {days} days")
        return deleted

    # -- ContextStoreProtocol --

    async def get_agent_context(self, chat_id: str) -> Optional[Dict[str, Any]]:
        row = await self.find_by_chat_id(chat_id)
        if row is None:
            return None
        return {
            "tool_calls": row.get("tool_calls") or [],
            "generated_assets": row.get("generated_assets") or {},
            "last_updated": row.get("last_updated"),
        }

    async def save_agent_context(self, chat_id: str, data: Dict[str, Any]) -> None:
        await self.upsert(chat_id, data.get("tool_calls"), data.get("generated_assets"))


class InMemoryContextStore:
    """Process-local context store (ContextStoreProtocol) for tests and single-process use."""

    def __init__(self) -> None:
        self._contexts: Dict[str, Dict[str, Any]] = {}

    async def get_agent_context(self, chat_id: str) -> Optional[Dict[str, Any]]:
        return self._contexts.get(chat_id)

    async def save_agent_context(self, chat_id: str, data: Dict[str, Any]) -> None:
        self._contexts[chat_id] = {
            "tool_calls": list(data.get("tool_calls") or []),
            "generated_assets": dict(data.get("generated_assets") or {}),
        }

    async def delete(self, chat_id: str) -> bool:
        return self._contexts.pop(chat_id, None) is not None
