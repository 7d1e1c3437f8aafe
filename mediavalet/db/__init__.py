"""
MediaValet Database - asyncpg-based context persistence.

- Database: shared connection pool manager (one per process)
- Repository: base class for table data access
- AgentContextRepository / InMemoryContextStore: context stores
"""

from .database import Database
from .repository import Repository
from .agent_context import AgentContextRepository, InMemoryContextStore

__all__ = ["Database", "Repository", "AgentContextRepository", "InMemoryContextStore"]
