"""Core modules for the SQL Server MCP server."""

from .exceptions import (
    MSSQLMCPError,
    InvalidParametersError,
    DatabaseConnectionError,
    NotConnectedError,
    QueryExecutionError,
    ConfigurationError
)

__all__ = [
    "MSSQLMCPError",
    "InvalidParametersError",
    "DatabaseConnectionError",
    "NotConnectedError",
    "QueryExecutionError",
    "ConfigurationError"
]
