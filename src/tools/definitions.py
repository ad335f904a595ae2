"""MCP tool definitions for the SQL Server MCP server."""

import os
from typing import List, Optional
from mcp.types import Tool


SERVER_INSTRUCTIONS = (
    "Use the connect tool first to establish a SQL Server connection, "
    "then query or browse schema."
)


def get_tool_prefix() -> str:
    """Get tool name prefix from environment or default (no prefix)."""
    return os.getenv("TOOL_PREFIX", "")


def make_tool_name(suffix: str, prefix: Optional[str] = None) -> str:
    """Generate a tool name with the configured prefix.

    Args:
        suffix: The tool suffix (e.g. 'query', 'list_tables')
        prefix: Explicit prefix; falls back to TOOL_PREFIX

    Returns:
        Full tool name (e.g. 'query', or 'mssql_query' with a prefix)
    """
    if prefix is None:
        prefix = get_tool_prefix()
    return f"{prefix}_{suffix}" if prefix else suffix


# Tool suffix constants (used for matching in handlers)
TOOL_CONNECT = "connect"
TOOL_DISCONNECT = "disconnect"
TOOL_STATUS = "status"
TOOL_QUERY = "query"
TOOL_INFO = "info"
TOOL_LIST_DATABASES = "list_databases"
TOOL_LIST_SCHEMAS = "list_schemas"
TOOL_LIST_TABLES = "list_tables"


def _no_arguments_schema() -> dict:
    return {
        "type": "object",
        "properties": {},
        "required": [],
        "additionalProperties": False
    }


def get_all_tools(prefix: Optional[str] = None) -> List[Tool]:
    """Get all tool definitions with the configured prefix.

    Args:
        prefix: Explicit prefix; falls back to TOOL_PREFIX

    Returns:
        List of Tool objects
    """
    if prefix is None:
        prefix = get_tool_prefix()

    def name(suffix: str) -> str:
        return make_tool_name(suffix, prefix)

    return [
        Tool(
            name=name(TOOL_CONNECT),
            description=(
                "Connect to a SQL Server instance. Replaces any existing connection. "
                "Must be called before any other database tool."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "server": {
                        "type": "string",
                        "description": "SQL Server host or host\\instance"
                    },
                    "port": {
                        "type": "integer",
                        "minimum": 1,
                        "maximum": 65535,
                        "description": "TCP port; default 1433"
                    },
                    "user": {
                        "type": "string",
                        "description": "SQL login user"
                    },
                    "password": {
                        "type": "string",
                        "description": "SQL login password"
                    },
                    "database": {
                        "type": "string",
                        "description": "Database name; default master"
                    },
                    "encrypt": {
                        "type": "boolean",
                        "description": "Enable TLS encryption with certificate validation; default true"
                    },
                    "trust_server_certificate": {
                        "type": "boolean",
                        "description": "Skip server certificate validation (self-signed certificates); default false"
                    }
                },
                "required": ["server", "user", "password"],
                "additionalProperties": False
            }
        ),
        Tool(
            name=name(TOOL_DISCONNECT),
            description="Close the current SQL Server connection, if any",
            inputSchema=_no_arguments_schema()
        ),
        Tool(
            name=name(TOOL_STATUS),
            description="Show the connection status and the active server/database (never the password)",
            inputSchema=_no_arguments_schema()
        ),
        Tool(
            name=name(TOOL_QUERY),
            description=(
                "Execute SQL text on the connected server and return rowsAffected and recordset as JSON. "
                "Pass caller-supplied values through 'parameters' and reference them as @name in the SQL."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "sql": {
                        "type": "string",
                        "description": "SQL text to execute"
                    },
                    "parameters": {
                        "type": "object",
                        "description": "Named parameters (name -> string, number, boolean or null)",
                        "additionalProperties": {
                            "type": ["string", "number", "boolean", "null"]
                        }
                    }
                },
                "required": ["sql"],
                "additionalProperties": False
            }
        ),
        Tool(
            name=name(TOOL_INFO),
            description="Get the SQL Server version string (@@VERSION)",
            inputSchema=_no_arguments_schema()
        ),
        Tool(
            name=name(TOOL_LIST_DATABASES),
            description="List databases on the server, sorted by name",
            inputSchema=_no_arguments_schema()
        ),
        Tool(
            name=name(TOOL_LIST_SCHEMAS),
            description="List schemas in the current database, sorted by name",
            inputSchema=_no_arguments_schema()
        ),
        Tool(
            name=name(TOOL_LIST_TABLES),
            description="List tables in the current database, sorted by schema then table name",
            inputSchema={
                "type": "object",
                "properties": {
                    "schema": {
                        "type": "string",
                        "description": "Optional schema filter"
                    }
                },
                "required": [],
                "additionalProperties": False
            }
        ),
    ]
