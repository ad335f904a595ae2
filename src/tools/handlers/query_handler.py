"""Query execution handler."""

import logging
from typing import Any, Dict

from core.exceptions import MSSQLMCPError
from tools.base import ToolHandler
from tools.definitions import TOOL_QUERY
from tools.validators import QueryArguments, parse_arguments

logger = logging.getLogger(__name__)


class QueryHandler(ToolHandler):
    """Handler for database query execution."""

    tool_labels = {TOOL_QUERY: "Query failed"}

    async def handle(self, request: Any, session_manager: Any) -> Dict[str, Any]:
        """
        Execute SQL text with optional named parameters.

        Args:
            request: Tool call with 'sql' and optional 'parameters'
            session_manager: SessionManager instance

        Returns:
            JSON-rendered {rowsAffected, recordset} or a labelled error
        """
        label = self.label_for(request.name)
        try:
            args = parse_arguments(QueryArguments, request.arguments)
            result = await session_manager.query(args.sql, args.parameters)
        except MSSQLMCPError as e:
            return self._error_response(label, e)

        logger.debug(f"Query returned rowsAffected={result.rows_affected}")
        return self._success_response(result.to_dict())
