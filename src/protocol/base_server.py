"""Base MCP server - Transport-agnostic MCP protocol implementation."""

import logging
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

from mcp.server import Server
from mcp.types import TextContent

from core.config import ServerConfig
from database.session_manager import SessionManager
from tools import SERVER_INSTRUCTIONS, ToolRegistry, get_all_tools

logger = logging.getLogger(__name__)


def envelope_to_content(envelope: Dict[str, Any]) -> List[TextContent]:
    """Convert a response envelope into MCP text content blocks."""
    return [
        TextContent(type="text", text=block["text"])
        for block in envelope.get("content", [])
    ]


class BaseMCPServer:
    """Base MCP server providing core protocol functionality.

    This class encapsulates the MCP protocol logic independent of
    the transport mechanism (STDIO, HTTP/SSE, etc.). The session manager is
    owned by the caller and passed in by reference.
    """

    def __init__(self, session_manager: SessionManager, server_config: Optional[ServerConfig] = None):
        """Initialize base MCP server.

        Args:
            session_manager: SessionManager owning the database session
            server_config: Server name and tool prefix settings
        """
        self.session_manager = session_manager
        self.server_config = server_config or ServerConfig()
        self.registry = ToolRegistry(self.server_config.tool_prefix)
        self.server = Server(self.server_config.server_name, instructions=SERVER_INSTRUCTIONS)
        self._setup_handlers()
        logger.info(f"Initialized {self.server_config.server_name} MCP server")

    async def call_tool(self, name: str, arguments: Optional[dict]) -> List[TextContent]:
        """Run one tool invocation and return its content blocks."""
        request = SimpleNamespace(name=name, arguments=arguments or {})
        envelope = await self.registry.handle_tool(request, self.session_manager)
        return envelope_to_content(envelope)

    def _setup_handlers(self):
        """Setup MCP protocol handlers."""

        @self.server.list_tools()
        async def list_tools():
            """List all available tools."""
            return get_all_tools(self.server_config.tool_prefix)

        # Arguments are validated by the tool handlers so failures keep the envelope shape
        @self.server.call_tool(validate_input=False)
        async def call_tool(name: str, arguments: dict):
            """Handle tool execution."""
            return await self.call_tool(name, arguments)

        @self.server.list_prompts()
        async def list_prompts():
            """List available prompts (currently none)."""
            return []

        @self.server.list_resources()
        async def list_resources():
            """List available resources (currently none)."""
            return []
