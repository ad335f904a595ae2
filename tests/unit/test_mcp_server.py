"""
MCP 伺服器單元測試

測試協定層：工具清單、工具呼叫轉換為 TextContent，以及 SSE 應用的路由與 CORS。
"""

import json

import pytest
from mcp.types import TextContent

from core.config import ServerConfig
from protocol.base_server import BaseMCPServer, envelope_to_content
from protocol.sse_server import SseMCPServer


class ASGIRecorder:
    """收集 ASGI send 訊息"""

    def __init__(self):
        self.messages = []

    async def __call__(self, message):
        self.messages.append(message)

    @property
    def status(self):
        return self.messages[0]["status"]

    @property
    def headers(self):
        return dict(self.messages[0]["headers"])


async def empty_receive():
    return {"type": "http.request", "body": b"", "more_body": False}


def http_scope(method, path, origin=None):
    headers = [(b"origin", origin.encode())] if origin else []
    return {"type": "http", "method": method, "path": path, "headers": headers}


class TestBaseMCPServer:
    """BaseMCPServer 測試"""

    def test_envelope_to_content(self):
        """✅ 回應格式轉為 TextContent"""
        content = envelope_to_content({"content": [{"type": "text", "text": "Disconnected"}]})
        assert content == [TextContent(type="text", text="Disconnected")]

    @pytest.mark.asyncio
    async def test_call_tool(self, session_manager, connect_args):
        """✅ 工具呼叫回傳單一文字區塊"""
        server = BaseMCPServer(session_manager, ServerConfig())

        content = await server.call_tool("connect", connect_args)

        assert len(content) == 1
        assert content[0].text == "Connected successfully to db1/master"

    @pytest.mark.asyncio
    async def test_call_tool_none_arguments(self, session_manager):
        """✅ arguments 為 None 時視為空物件"""
        server = BaseMCPServer(session_manager, ServerConfig())
        content = await server.call_tool("status", None)
        assert content[0].text == '{\n  "status": "disconnected"\n}'

    @pytest.mark.asyncio
    async def test_prefix_from_config(self, session_manager):
        """✅ 工具前綴來自設定"""
        server = BaseMCPServer(session_manager, ServerConfig(tool_prefix="mssql"))

        assert server.registry.is_tool_registered("mssql_connect")
        content = await server.call_tool("connect", {})
        assert content[0].text == "Unknown tool: connect"


class TestSseApp:
    """SSE ASGI 應用測試"""

    @pytest.mark.asyncio
    async def test_unknown_path(self, session_manager):
        """❌ 未知路徑回傳 404"""
        app = SseMCPServer(session_manager, ServerConfig()).create_asgi_app()
        send = ASGIRecorder()

        await app(http_scope("GET", "/nope"), empty_receive, send)

        assert send.status == 404
        assert send.messages[1]["body"] == b"Not Found"

    @pytest.mark.asyncio
    async def test_preflight_allowed_origin(self, session_manager):
        """✅ 允許的來源取得 CORS 標頭"""
        config = ServerConfig(cors_allowed_origins=["http://app.test"], cors_preflight_max_age=120)
        app = SseMCPServer(session_manager, config).create_asgi_app()
        send = ASGIRecorder()

        await app(http_scope("OPTIONS", "/sse", origin="http://app.test"), empty_receive, send)

        assert send.status == 200
        assert send.headers[b"access-control-allow-origin"] == b"http://app.test"
        assert send.headers[b"access-control-max-age"] == b"120"

    @pytest.mark.asyncio
    async def test_preflight_same_origin_only_by_default(self, session_manager):
        """✅ 未設定來源時不回傳 CORS 標頭"""
        app = SseMCPServer(session_manager, ServerConfig()).create_asgi_app()
        send = ASGIRecorder()

        await app(http_scope("OPTIONS", "/sse", origin="http://evil.test"), empty_receive, send)

        assert b"access-control-allow-origin" not in send.headers

    @pytest.mark.asyncio
    async def test_404_carries_cors_header_for_allowed_origin(self, session_manager):
        """✅ 一般回應也帶 CORS 標頭"""
        config = ServerConfig(cors_allowed_origins=["*"])
        app = SseMCPServer(session_manager, config).create_asgi_app()
        send = ASGIRecorder()

        await app(http_scope("GET", "/", origin="http://any.test"), empty_receive, send)

        assert send.headers[b"access-control-allow-origin"] == b"http://any.test"

    @pytest.mark.asyncio
    async def test_health(self, session_manager, connect_args):
        """✅ /health 回報連線狀態且不含憑證"""
        app = SseMCPServer(session_manager, ServerConfig()).create_asgi_app()

        send = ASGIRecorder()
        await app(http_scope("GET", "/health"), empty_receive, send)
        assert json.loads(send.messages[1]["body"]) == {
            "status": "degraded",
            "session": {"status": "disconnected"},
        }

        await session_manager.connect({**connect_args, "password": "hunter2"})
        send = ASGIRecorder()
        await app(http_scope("GET", "/health"), empty_receive, send)

        assert send.headers[b"content-type"] == b"application/json"
        body = json.loads(send.messages[1]["body"])
        assert body["status"] == "healthy"
        assert body["session"]["server"] == "db1"
        assert b"hunter2" not in send.messages[1]["body"]
