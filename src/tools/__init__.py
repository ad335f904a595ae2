"""MCP tools package for the SQL Server MCP server."""

from tools.base import ToolHandler
from tools.registry import ToolRegistry
from tools.definitions import SERVER_INSTRUCTIONS, get_all_tools, make_tool_name, get_tool_prefix
from tools.validators import ConnectArguments, NoArguments, QueryArguments, ListTablesArguments, parse_arguments

__all__ = [
    'ToolHandler',
    'ToolRegistry',
    'SERVER_INSTRUCTIONS',
    'get_all_tools',
    'make_tool_name',
    'get_tool_prefix',
    'ConnectArguments',
    'NoArguments',
    'QueryArguments',
    'ListTablesArguments',
    'parse_arguments',
]
