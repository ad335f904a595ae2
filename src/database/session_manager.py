"""Session lifecycle manager: owns the single SQL Server session."""

import asyncio
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from pydantic import ValidationError

from core.config import ConnectionParameters, SessionConfig
from core.error_handling import format_validation_error
from core.exceptions import (
    DatabaseConnectionError,
    InvalidParametersError,
    NotConnectedError,
    QueryExecutionError,
)
from database.async_connectors import (
    AsyncDatabaseConnector,
    QueryResult,
    create_async_database_connector,
    describe_driver_error,
)
from database.parameters import ScalarValue, bind_parameters

logger = logging.getLogger(__name__)

ConnectorFactory = Callable[[ConnectionParameters, SessionConfig], AsyncDatabaseConnector]

VERSION_QUERY = "SELECT @@VERSION AS version"
DATABASES_QUERY = "SELECT name FROM sys.databases ORDER BY name"
SCHEMAS_QUERY = "SELECT name FROM sys.schemas ORDER BY name"
TABLES_QUERY = """
SELECT s.name AS schemaName, t.name AS tableName
FROM sys.tables t
JOIN sys.schemas s ON t.schema_id = s.schema_id
{where}
ORDER BY s.name, t.name
"""


class SessionStatus(str, Enum):
    """Lifecycle states of the session."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAILED = "failed"


class SessionManager:
    """
    Owns at most one live SQL Server session.

    connect/disconnect are serialized by a lock. Queries run without the
    lock against a snapshot of the connected handle, so they can proceed
    concurrently up to the pool limit.
    """

    def __init__(
        self,
        settings: Optional[SessionConfig] = None,
        connector_factory: Optional[ConnectorFactory] = None,
        expose_sensitive_info: bool = False
    ):
        self.settings = settings or SessionConfig()
        self._connector_factory = connector_factory or create_async_database_connector
        self.expose_sensitive_info = expose_sensitive_info

        self._status = SessionStatus.DISCONNECTED
        self._connector: Optional[AsyncDatabaseConnector] = None
        self._active_config: Optional[ConnectionParameters] = None
        self._lock = asyncio.Lock()

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def active_config(self) -> Optional[ConnectionParameters]:
        return self._active_config

    def is_connected(self) -> bool:
        return self._status is SessionStatus.CONNECTED and self._connector is not None

    @staticmethod
    def validate_parameters(
        params: Union[ConnectionParameters, Mapping[str, Any]]
    ) -> ConnectionParameters:
        """Normalize connect input, applying defaults.

        Raises:
            InvalidParametersError: If a field is missing, empty or out of range
        """
        if isinstance(params, ConnectionParameters):
            return params
        try:
            return ConnectionParameters.model_validate(dict(params))
        except ValidationError as e:
            raise InvalidParametersError(format_validation_error(e))
        except (TypeError, ValueError) as e:
            raise InvalidParametersError(f"Invalid connection parameters: {e}")

    async def connect(
        self,
        params: Union[ConnectionParameters, Mapping[str, Any]]
    ) -> ConnectionParameters:
        """
        Open a new session, replacing any existing one.

        Args:
            params: Connection parameters (model or plain mapping)

        Returns:
            The effective parameters, with defaults applied

        Raises:
            InvalidParametersError: Input rejected, no I/O performed
            DatabaseConnectionError: The session could not be established
        """
        config = self.validate_parameters(params)

        async with self._lock:
            if self._connector is not None:
                logger.info("Replacing existing session before reconnecting")
            self._status = SessionStatus.CONNECTING
            await self._release_handle()

            logger.info(f"Connecting to {config.server}:{config.port}/{config.database} (encrypt={config.encrypt})")

            connector = None
            try:
                connector = self._connector_factory(config, self.settings)
                await asyncio.wait_for(connector.open(), timeout=self.settings.connect_timeout)
            except BaseException as e:
                self._status = SessionStatus.FAILED
                if connector is not None:
                    await self._close_quietly(connector)
                if not isinstance(e, Exception):
                    # Cancellation and interpreter exits still leave a clean Failed state
                    raise
                message = self._describe(e, self.settings.connect_timeout, "Connection attempt")
                logger.error(f"Connection to {config.server} failed: {message}")
                raise DatabaseConnectionError(
                    message,
                    details={"server": config.server, "database": config.database}
                ) from e

            self._connector = connector
            self._active_config = config
            self._status = SessionStatus.CONNECTED
            logger.info(f"✅ Connected to {config.server}/{config.database}")
            return config

    async def disconnect(self) -> None:
        """Close the session if any. Never raises."""
        async with self._lock:
            had_session = self._connector is not None
            await self._release_handle()
            self._status = SessionStatus.DISCONNECTED
            if had_session:
                logger.info("Disconnected from SQL Server")

    async def query(
        self,
        sql: str,
        parameters: Optional[Mapping[str, ScalarValue]] = None
    ) -> QueryResult:
        """
        Execute SQL text on the connected session.

        Args:
            sql: Statement text, executed as-is
            parameters: Optional named parameters bound via sp_executesql

        Returns:
            QueryResult with rows_affected and recordset

        Raises:
            NotConnectedError: No connected session, driver untouched
            InvalidParametersError: Empty SQL or unusable parameters
            QueryExecutionError: The driver failed or timed out
        """
        connector = self._require_connector()

        if not isinstance(sql, str) or not sql.strip():
            raise InvalidParametersError("sql must be a non-empty string")
        statement, values = bind_parameters(sql, parameters)

        try:
            return await asyncio.wait_for(
                connector.execute(statement, values),
                timeout=self.settings.request_timeout
            )
        except Exception as e:
            message = self._describe(e, self.settings.request_timeout, "Query")
            logger.error(f"Query execution error: {message}")
            raise QueryExecutionError(message, details={"query": sql[:200]}) from e

    async def get_version(self) -> str:
        """Return the server's @@VERSION string."""
        result = await self.query(VERSION_QUERY)
        if not result.recordset:
            return ""
        return result.recordset[0].get("version") or ""

    async def list_databases(self) -> List[str]:
        """Return database names in lexicographic order."""
        result = await self.query(DATABASES_QUERY)
        return sorted(row["name"] for row in result.recordset)

    async def list_schemas(self) -> List[str]:
        """Return schema names in lexicographic order."""
        result = await self.query(SCHEMAS_QUERY)
        return sorted(row["name"] for row in result.recordset)

    async def list_tables(self, schema: Optional[str] = None) -> List[Dict[str, str]]:
        """
        Return tables as {"schema", "name"} ordered by schema then table.

        Args:
            schema: Optional schema name filter, bound as @schema
        """
        if schema:
            sql = TABLES_QUERY.format(where="WHERE s.name = @schema")
            result = await self.query(sql, {"schema": schema})
        else:
            result = await self.query(TABLES_QUERY.format(where=""))

        tables = [
            {"schema": row["schemaName"], "name": row["tableName"]}
            for row in result.recordset
        ]
        return sorted(tables, key=lambda table: (table["schema"], table["name"]))

    def describe_session(self) -> Dict[str, Any]:
        """Snapshot of the session state without credentials."""
        info: Dict[str, Any] = {"status": self._status.value}
        if self._active_config is not None:
            info.update(self._active_config.describe(include_user=self.expose_sensitive_info))
        return info

    def _require_connector(self) -> AsyncDatabaseConnector:
        connector = self._connector
        if self._status is not SessionStatus.CONNECTED or connector is None:
            raise NotConnectedError(
                "Not connected to SQL Server. Use the connect tool first.",
                details={"status": self._status.value}
            )
        return connector

    async def _release_handle(self):
        """Drop the current handle; close failures are logged only."""
        connector, self._connector = self._connector, None
        self._active_config = None
        if connector is not None:
            await self._close_quietly(connector)

    async def _close_quietly(self, connector: AsyncDatabaseConnector):
        try:
            await asyncio.wait_for(connector.close(), timeout=self.settings.connect_timeout)
        except Exception as e:
            logger.warning(f"Error closing connection pool: {self._describe(e, self.settings.connect_timeout, 'Pool close')}")

    @staticmethod
    def _describe(error: BaseException, timeout: int, operation: str) -> str:
        if isinstance(error, asyncio.TimeoutError):
            return f"{operation} timed out after {timeout} seconds"
        return describe_driver_error(error)
