"""Async SQL Server connector with connection pooling."""

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional
import logging

from pydantic import BaseModel, Field

try:
    import aioodbc
except ImportError:
    aioodbc = None

try:
    import pyodbc
except ImportError:
    pyodbc = None

from core.config import ConnectionParameters, SessionConfig

logger = logging.getLogger(__name__)


class QueryResult(BaseModel):
    """Rows and affected counts of one executed batch."""

    rows_affected: List[int] = Field(default_factory=list)
    recordset: List[Dict[str, Any]] = Field(default_factory=list)
    recordsets: List[List[Dict[str, Any]]] = Field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Shape returned by the query tool."""
        return {
            "rowsAffected": self.rows_affected,
            "recordset": self.recordset
        }


def describe_driver_error(error: BaseException) -> str:
    """Reduce a driver exception to a human-readable message.

    pyodbc errors carry ``(sqlstate, diagnostic)``; only the diagnostic is
    useful to the caller.
    """
    if pyodbc is not None and isinstance(error, pyodbc.Error) and len(error.args) > 1:
        return str(error.args[1])
    return str(error) or type(error).__name__


class AsyncDatabaseConnector(ABC):
    """Abstract base class for the pooled handle owned by a session."""

    def __init__(self, params: ConnectionParameters, settings: SessionConfig):
        self.params = params
        self.settings = settings
        self._pool = None

    @abstractmethod
    async def open(self):
        """Create the pool and verify that a connection can be made."""
        pass

    @abstractmethod
    async def execute(self, statement: str, values: Optional[List[Any]] = None) -> QueryResult:
        """Execute a batch with positional values and collect all results."""
        pass

    @abstractmethod
    async def close(self):
        """Close the pool, waiting for borrowed connections to return."""
        pass


class AsyncMSSQLConnector(AsyncDatabaseConnector):
    """Async SQL Server connector using aioodbc with connection pooling."""

    def __init__(self, params: ConnectionParameters, settings: SessionConfig):
        super().__init__(params, settings)
        if aioodbc is None:
            raise ImportError("aioodbc is required for SQL Server connections")
        self.connection_string = params.get_connection_string(
            settings.driver, settings.application_name
        )

    async def open(self):
        """Initialize aioodbc connection pool and probe it with SELECT 1."""
        self._pool = await aioodbc.create_pool(
            dsn=self.connection_string,
            minsize=self.settings.pool_min,
            maxsize=self.settings.pool_max,
            pool_recycle=self.settings.pool_recycle,
            autocommit=True,
            timeout=self.settings.connect_timeout
        )

        # minsize may be 0, so the pool alone does not prove the login works
        async with self.get_connection() as conn:
            async with conn.cursor() as cursor:
                await cursor.execute("SELECT 1")
                await cursor.fetchall()

        logger.info(
            f"✅ MSSQL connection pool opened for {self.params.server}/{self.params.database} "
            f"(size: {self.settings.pool_min}-{self.settings.pool_max})"
        )

    @asynccontextmanager
    async def get_connection(self):
        """Get connection from pool."""
        if not self._pool:
            raise RuntimeError("Connection pool is not open")

        async with self._pool.acquire() as conn:
            yield conn

    async def execute(self, statement: str, values: Optional[List[Any]] = None) -> QueryResult:
        """Execute a batch and walk every result set it produces."""
        async with self.get_connection() as conn:
            async with conn.cursor() as cursor:
                if values:
                    await cursor.execute(statement, values)
                else:
                    await cursor.execute(statement)
                return await self._collect_results(cursor)

    async def _collect_results(self, cursor) -> QueryResult:
        rows_affected: List[int] = []
        recordsets: List[List[Dict[str, Any]]] = []

        while True:
            if cursor.description:
                columns = [column[0] for column in cursor.description]
                rows = await cursor.fetchall()
                recordsets.append([dict(zip(columns, row)) for row in rows])
                rows_affected.append(len(rows))
            elif cursor.rowcount is not None and cursor.rowcount >= 0:
                rows_affected.append(cursor.rowcount)

            if not await cursor.nextset():
                break

        return QueryResult(
            rows_affected=rows_affected,
            recordset=recordsets[0] if recordsets else [],
            recordsets=recordsets
        )

    async def close(self):
        """Close connection pool."""
        if self._pool:
            pool, self._pool = self._pool, None
            pool.close()
            await pool.wait_closed()
            logger.info("MSSQL connection pool closed")


def create_async_database_connector(
    params: ConnectionParameters,
    settings: SessionConfig
) -> AsyncDatabaseConnector:
    """
    Factory function to create the connector for a new session.

    Args:
        params: Effective connection parameters
        settings: Driver, pool and timeout settings

    Returns:
        AsyncDatabaseConnector instance
    """
    return AsyncMSSQLConnector(params, settings)
