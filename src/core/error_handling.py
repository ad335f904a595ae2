"""Unified response envelope for MCP tool results.

Success and failure share the same shape: a ``content`` list holding a
single text block. Failures differ only in their message text.
"""

import json
import logging
import uuid
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Dict

from pydantic import ValidationError

logger = logging.getLogger(__name__)


def _json_default(value: Any) -> Any:
    """Convert driver values that json cannot serialize natively."""
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return "0x" + bytes(value).hex().upper()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def render_json(data: Any) -> str:
    """Pretty-print a result for a text content block."""
    return json.dumps(data, indent=2, ensure_ascii=False, default=_json_default)


def text_response(text: str) -> Dict[str, Any]:
    """Wrap text into the response envelope."""
    return {
        "content": [{
            "type": "text",
            "text": text
        }]
    }


def format_success_response(data: Any) -> Dict[str, Any]:
    """Format success response.

    Args:
        data: Plain text is passed through; anything else is rendered as JSON

    Returns:
        Response envelope
    """
    if isinstance(data, str):
        return text_response(data)
    return text_response(render_json(data))


def format_error_response(label: str, error: Exception) -> Dict[str, Any]:
    """Format failure response with an operation-specific label.

    Args:
        label: Operation label, e.g. "Query failed"
        error: The exception that occurred

    Returns:
        Response envelope with "<label>: <message>" text
    """
    message = getattr(error, "message", None) or str(error) or type(error).__name__
    logger.error(f"{label}: {type(error).__name__}: {message}")
    return text_response(f"{label}: {message}")


def format_validation_error(error: ValidationError) -> str:
    """Flatten a pydantic ValidationError into one line."""
    problems = []
    for item in error.errors():
        field = ".".join(str(part) for part in item.get("loc", ())) or "arguments"
        message = item.get("msg", "invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        problems.append(f"{field}: {message}")
    return "; ".join(problems)
