"""Unified entry point for the SQL Server MCP server.

This module provides a single entry point that can run in either:
- STDIO mode: For use with MCP clients via stdio transport
- SSE mode: MCP over HTTP Server-Sent Events

Usage:
    # STDIO mode (default)
    python main.py

    # SSE mode with custom host/port
    python main.py --sse --host 0.0.0.0 --port 8000
"""

import argparse
import asyncio
import logging
import sys

from core.config import AppConfig
from core.exceptions import ConfigurationError
from database.session_manager import SessionManager

logger = logging.getLogger(__name__)


def configure_logging(level: str):
    """Configure root logging on stderr (stdout carries the stdio transport)."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr
    )


async def run(app_config: AppConfig, sse: bool = False):
    """Run the selected transport and always release the session on exit.

    Args:
        app_config: Loaded application configuration
        sse: Serve over SSE instead of STDIO
    """
    session_manager = SessionManager(
        app_config.session,
        expose_sensitive_info=app_config.server.expose_sensitive_info
    )

    try:
        if sse:
            from protocol.sse_server import run_sse_server
            await run_sse_server(session_manager, app_config.server)
        else:
            from protocol.stdio_server import run_stdio_server
            await run_stdio_server(session_manager, app_config.server)
    finally:
        await session_manager.disconnect()
        logger.info("Graceful shutdown completed")


def main():
    """Main entry point with argument parsing."""
    parser = argparse.ArgumentParser(
        description="SQL Server MCP server - connect, query and browse SQL Server from MCP clients"
    )
    parser.add_argument(
        "--sse",
        action="store_true",
        help="Serve MCP over HTTP/SSE (default: STDIO mode)"
    )
    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host address for SSE mode (default: from HTTP_HOST env or 127.0.0.1)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port for SSE mode (default: from HTTP_PORT env or 8000)"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Logging level (default: from LOG_LEVEL env or INFO)"
    )

    args = parser.parse_args()

    try:
        app_config = AppConfig.from_env()
    except ConfigurationError as e:
        configure_logging("INFO")
        logger.error(f"Failed to load configuration: {e.message}")
        sys.exit(1)

    overrides = {}
    if args.host:
        overrides["http_host"] = args.host
    if args.port:
        overrides["http_port"] = args.port
    if args.log_level:
        overrides["log_level"] = args.log_level
    if overrides:
        app_config.server = app_config.server.model_copy(update=overrides)

    configure_logging(app_config.server.log_level)
    logger.info(
        f"Starting {app_config.server.server_name} in {'SSE' if args.sse else 'STDIO'} mode "
        f"(driver: {app_config.session.driver})"
    )

    try:
        asyncio.run(run(app_config, sse=args.sse))
    except KeyboardInterrupt:
        logger.info("Interrupted")
    except Exception as e:
        logger.error(f"Server error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
