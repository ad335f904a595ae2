"""STDIO transport MCP server.

stdout carries the protocol stream, so nothing else may write to it; logging
goes to stderr (see main.configure_logging).
"""

import logging
from typing import Optional

from mcp.server.stdio import stdio_server

from core.config import ServerConfig
from database.session_manager import SessionManager
from protocol.base_server import BaseMCPServer

logger = logging.getLogger(__name__)


class StdioMCPServer(BaseMCPServer):
    """MCP server bound to the process's stdin/stdout."""

    async def run(self):
        logger.info(f"Starting STDIO MCP server ({len(self.registry.handlers)} tools)")
        async with stdio_server() as (read_stream, write_stream):
            await self.server.run(read_stream, write_stream, self.server.create_initialization_options())
        logger.info("STDIO client closed the stream")


async def run_stdio_server(session_manager: SessionManager, server_config: Optional[ServerConfig] = None):
    """Serve one MCP client over STDIO until it disconnects."""
    await StdioMCPServer(session_manager, server_config or ServerConfig.from_env()).run()
