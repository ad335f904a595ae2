"""Catalog metadata handler: server version, databases, schemas, tables."""

import logging
from typing import Any, Dict

from core.exceptions import MSSQLMCPError
from tools.base import ToolHandler
from tools.definitions import TOOL_INFO, TOOL_LIST_DATABASES, TOOL_LIST_SCHEMAS, TOOL_LIST_TABLES
from tools.validators import ListTablesArguments, NoArguments, parse_arguments

logger = logging.getLogger(__name__)


class CatalogHandler(ToolHandler):
    """Handler for catalog metadata tools."""

    tool_labels = {
        TOOL_INFO: "Failed to get server info",
        TOOL_LIST_DATABASES: "Failed to list databases",
        TOOL_LIST_SCHEMAS: "Failed to list schemas",
        TOOL_LIST_TABLES: "Failed to list tables",
    }

    async def handle(self, request: Any, session_manager: Any) -> Dict[str, Any]:
        suffix = self.suffix_for(request.name)
        label = self.tool_labels[suffix]

        try:
            if suffix == TOOL_LIST_TABLES:
                args = parse_arguments(ListTablesArguments, request.arguments)
                return self._success_response(await session_manager.list_tables(args.schema_name))

            parse_arguments(NoArguments, request.arguments)
            if suffix == TOOL_INFO:
                return self._success_response(await session_manager.get_version())
            if suffix == TOOL_LIST_DATABASES:
                return self._success_response(await session_manager.list_databases())
            return self._success_response(await session_manager.list_schemas())
        except MSSQLMCPError as e:
            return self._error_response(label, e)
