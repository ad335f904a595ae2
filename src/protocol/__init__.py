"""MCP protocol transports (STDIO and SSE)."""
