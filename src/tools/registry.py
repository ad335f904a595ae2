"""Tool registry for routing MCP tool calls to handlers."""

import logging
from typing import Any, Dict, Optional

from core.error_handling import format_error_response, text_response
from tools.base import ToolHandler
from tools.handlers import (
    CatalogHandler,
    ConnectionHandler,
    QueryHandler,
)

logger = logging.getLogger(__name__)


class ToolRegistry:
    """
    Central registry for MCP tool handlers.

    Routes tool calls to appropriate handlers based on tool name and is the
    last line of defence: every call returns a response envelope, whatever
    the handler raised.
    """

    def __init__(self, prefix: Optional[str] = None):
        self.prefix = prefix
        self.handlers: Dict[str, ToolHandler] = {}
        self._register_handlers()

    def _register_handlers(self):
        """Register all tool handlers."""
        handler_classes = [
            ConnectionHandler,
            QueryHandler,
            CatalogHandler,
        ]

        # Register each handler's tools
        for handler_class in handler_classes:
            handler = handler_class(self.prefix)
            for tool_name in handler.tool_names:
                self.handlers[tool_name] = handler
                logger.debug(f"Registered {tool_name} -> {handler_class.__name__}")

        logger.info(f"✅ Registered {len(self.handlers)} MCP tools across {len(handler_classes)} handlers")

    async def handle_tool(
        self,
        request: Any,
        session_manager: Any
    ) -> Dict[str, Any]:
        """
        Route tool call to appropriate handler.

        Args:
            request: Object with ``name`` and ``arguments``
            session_manager: SessionManager instance

        Returns:
            Response envelope; unknown tools and unexpected errors are
            reported as text, never raised
        """
        handler = self.handlers.get(request.name)
        if handler is None:
            logger.warning(f"Unknown tool requested: {request.name}")
            return text_response(f"Unknown tool: {request.name}")

        logger.debug(f"Routing {request.name} to {handler.__class__.__name__}")
        try:
            return await handler.handle(request, session_manager)
        except Exception as e:
            logger.exception(f"Unexpected error in tool {request.name}")
            return format_error_response(handler.label_for(request.name), e)

    def is_tool_registered(self, tool_name: str) -> bool:
        """Check if a tool has a registered handler."""
        return tool_name in self.handlers
