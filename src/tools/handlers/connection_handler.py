"""Session lifecycle handler: connect, disconnect and status."""

import logging
from typing import Any, Dict

from core.exceptions import MSSQLMCPError
from tools.base import ToolHandler
from tools.definitions import TOOL_CONNECT, TOOL_DISCONNECT, TOOL_STATUS
from tools.validators import ConnectArguments, NoArguments, parse_arguments

logger = logging.getLogger(__name__)


class ConnectionHandler(ToolHandler):
    """Handler for opening, closing and inspecting the database session."""

    tool_labels = {
        TOOL_CONNECT: "Connection failed",
        TOOL_DISCONNECT: "Disconnect failed",
        TOOL_STATUS: "Status failed",
    }

    async def handle(self, request: Any, session_manager: Any) -> Dict[str, Any]:
        """
        Dispatch to the lifecycle operation named by the request.

        Args:
            request: Tool call with name and arguments
            session_manager: SessionManager instance

        Returns:
            Confirmation text, status JSON or a labelled error
        """
        suffix = self.suffix_for(request.name)
        label = self.tool_labels[suffix]

        try:
            if suffix == TOOL_CONNECT:
                return await self._connect(request.arguments, session_manager)
            if suffix == TOOL_DISCONNECT:
                parse_arguments(NoArguments, request.arguments)
                await session_manager.disconnect()
                return self._success_response("Disconnected")

            parse_arguments(NoArguments, request.arguments)
            return self._success_response(session_manager.describe_session())
        except MSSQLMCPError as e:
            return self._error_response(label, e)

    async def _connect(self, arguments: Dict[str, Any], session_manager: Any) -> Dict[str, Any]:
        args = parse_arguments(ConnectArguments, arguments)
        config = await session_manager.connect(args.connection_fields())
        return self._success_response(
            f"Connected successfully to {config.server}/{config.database}"
        )
