"""SSE/HTTP transport MCP server.

Routes:
    GET  /sse        MCP event stream
    POST /messages/  MCP client messages
    GET  /health     Session status as JSON (no credentials)
"""

import logging
from typing import List, Optional, Tuple

from mcp.server.sse import SseServerTransport

from core.config import ServerConfig
from core.error_handling import render_json
from database.session_manager import SessionManager
from protocol.base_server import BaseMCPServer

logger = logging.getLogger(__name__)

Headers = List[Tuple[bytes, bytes]]


class SseMCPServer(BaseMCPServer):
    """MCP server using HTTP/SSE transport."""

    def __init__(
        self,
        session_manager: SessionManager,
        server_config: Optional[ServerConfig] = None,
        messages_path: str = "/messages/"
    ):
        """Initialize SSE MCP server.

        Args:
            session_manager: Session manager owned by the caller
            server_config: Server, CORS and transport settings
            messages_path: Path for SSE messages endpoint
        """
        super().__init__(session_manager, server_config)
        self.messages_path = messages_path
        self.sse_transport = SseServerTransport(messages_path)
        logger.info(f"SSE MCP server initialized with messages path: {messages_path}")

    async def handle_sse_connection(self, scope, receive, send):
        """Attach one SSE client to the shared MCP server."""
        logger.info("Handling SSE connection")
        async with self.sse_transport.connect_sse(scope, receive, send) as (read_stream, write_stream):
            await self.server.run(
                read_stream,
                write_stream,
                self.server.create_initialization_options()
            )

    async def handle_messages(self, scope, receive, send):
        logger.debug("Handling MCP messages")
        await self.sse_transport.handle_post_message(scope, receive, send)

    async def handle_health(self, send):
        """Report whether the server holds a connected session."""
        session = self.session_manager.describe_session()
        body = {
            "status": "healthy" if session["status"] == "connected" else "degraded",
            "session": session,
        }
        await self._send_plain(send, 200, render_json(body).encode(), b"application/json")

    def create_asgi_app(self, allowed_origins: Optional[List[str]] = None):
        """Create ASGI application for SSE MCP with CORS support.

        Args:
            allowed_origins: Origins allowed for CORS. Defaults to the
                configured CORS_ALLOWED_ORIGINS; empty means same-origin only.

        Returns:
            ASGI callable
        """
        if allowed_origins is None:
            allowed_origins = self.server_config.cors_allowed_origins
        if not allowed_origins:
            logger.info("SSE: CORS_ALLOWED_ORIGINS 未設定，僅允許同源請求")

        messages_prefix = self.messages_path.rstrip("/")

        async def app(scope, receive, send):
            if scope["type"] != "http":
                return

            path = scope.get("path", "/")
            method = scope.get("method", "GET")
            cors_headers = self._cors_headers(scope, allowed_origins, preflight=method == "OPTIONS")

            logger.debug(f"SSE MCP app: method={method}, path={path}")

            if method == "OPTIONS":
                await self._send_plain(send, 200, b"", extra_headers=cors_headers)
                return

            async def cors_send(message):
                if message["type"] == "http.response.start":
                    message["headers"] = list(message.get("headers", [])) + cors_headers
                await send(message)

            route = path.rstrip("/")
            if method == "GET" and route == "/sse":
                await self.handle_sse_connection(scope, receive, cors_send)
            elif method == "POST" and route == messages_prefix:
                await self.handle_messages(scope, receive, cors_send)
            elif method == "GET" and route == "/health":
                await self.handle_health(cors_send)
            else:
                logger.warning(f"Unknown path in SSE MCP app: {method} {path}")
                await self._send_plain(cors_send, 404, b"Not Found")

        return app

    def _cors_headers(self, scope, allowed_origins: List[str], preflight: bool = False) -> Headers:
        """CORS response headers for the request origin, empty if not allowed."""
        origin = self._get_origin_from_scope(scope)
        if not origin or not (origin in allowed_origins or "*" in allowed_origins):
            return []

        headers = [
            (b"access-control-allow-origin", origin.encode()),
            (b"access-control-allow-credentials", b"true"),
        ]
        if preflight:
            headers.extend([
                (b"access-control-allow-methods", b"GET, POST, OPTIONS"),
                (b"access-control-allow-headers", b"Content-Type, Authorization"),
                (b"access-control-max-age", str(self.server_config.cors_preflight_max_age).encode()),
            ])
        return headers

    @staticmethod
    def _get_origin_from_scope(scope) -> Optional[str]:
        origin = dict(scope.get("headers", [])).get(b"origin")
        return origin.decode() if origin else None

    @staticmethod
    async def _send_plain(
        send,
        status: int,
        body: bytes,
        content_type: bytes = b"text/plain",
        extra_headers: Optional[Headers] = None
    ):
        headers = [
            (b"content-type", content_type),
            (b"content-length", str(len(body)).encode()),
        ] + list(extra_headers or [])
        await send({"type": "http.response.start", "status": status, "headers": headers})
        await send({"type": "http.response.body", "body": body})


async def run_sse_server(session_manager: SessionManager, server_config: ServerConfig):
    """Serve the SSE MCP app with uvicorn until shutdown."""
    import uvicorn

    mcp_server = SseMCPServer(session_manager, server_config)
    config = uvicorn.Config(
        mcp_server.create_asgi_app(),
        host=server_config.http_host,
        port=server_config.http_port,
        log_level=server_config.log_level.lower(),
        lifespan="off"
    )
    logger.info(f"Starting SSE MCP server on {server_config.http_host}:{server_config.http_port}")
    await uvicorn.Server(config).serve()
