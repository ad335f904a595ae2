"""Custom exceptions for the SQL Server MCP server."""


class MSSQLMCPError(Exception):
    """Base exception for all SQL Server MCP errors."""

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert exception to dictionary for logging and diagnostics."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details
        }


class InvalidParametersError(MSSQLMCPError):
    """Exception raised when tool or connection input is malformed.

    Raised before any I/O is attempted.
    """
    pass


class DatabaseConnectionError(MSSQLMCPError):
    """Exception raised when a database session cannot be established."""
    pass


class NotConnectedError(MSSQLMCPError):
    """Exception raised when an operation requires a connected session."""

    def __init__(self, message: str = "Not connected to SQL Server", details: dict = None):
        super().__init__(message, details)


class QueryExecutionError(MSSQLMCPError):
    """Exception raised when the driver rejects or fails a statement."""
    pass


class ConfigurationError(MSSQLMCPError):
    """Exception raised when configuration is invalid."""
    pass
