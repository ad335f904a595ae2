"""Database session management for the SQL Server MCP server."""

from .session_manager import SessionManager, SessionStatus
from .async_connectors import AsyncMSSQLConnector, QueryResult

__all__ = [
    "SessionManager",
    "SessionStatus",
    "AsyncMSSQLConnector",
    "QueryResult"
]
