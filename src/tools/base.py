"""Base classes for MCP tool handlers."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from core.error_handling import format_error_response, format_success_response
from tools.definitions import make_tool_name


class ToolHandler(ABC):
    """Abstract base class for MCP tool handlers."""

    # Tool suffixes this handler serves, mapped to their failure label
    tool_labels: Dict[str, str] = {}

    def __init__(self, prefix: Optional[str] = None):
        self.prefix = prefix
        self._suffixes = {
            make_tool_name(suffix, prefix): suffix for suffix in self.tool_labels
        }

    @property
    def tool_names(self) -> List[str]:
        """Return list of tool names this handler supports."""
        return list(self._suffixes)

    def suffix_for(self, tool_name: str) -> str:
        """Map a (possibly prefixed) tool name back to its suffix."""
        return self._suffixes[tool_name]

    def label_for(self, tool_name: str) -> str:
        """Failure label used in the response text for a tool."""
        return self.tool_labels[self.suffix_for(tool_name)]

    @abstractmethod
    async def handle(self, request: Any, session_manager: Any) -> Dict[str, Any]:
        """
        Handle tool invocation.

        Args:
            request: Object with ``name`` and ``arguments``
            session_manager: SessionManager owning the database session

        Returns:
            MCP response dictionary with 'content' key
        """
        pass

    def _error_response(self, label: str, error: Exception) -> Dict[str, Any]:
        """Create standardized error response."""
        return format_error_response(label, error)

    def _success_response(self, data: Any) -> Dict[str, Any]:
        """Create standardized success response."""
        return format_success_response(data)
