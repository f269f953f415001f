"""
User-facing error messages.

Converts exceptions raised inside a lifecycle flow into the short
messages shown on the surface, and classifies them for logging.
"""

import asyncio
from typing import Dict

import aiohttp

from .exceptions import (
    BackendError,
    ExecutionError,
    ResponseFormatError,
    TransportError,
    ValidationError,
)


def get_error_category(error: BaseException) -> str:
    """
    Categorize error type.

    Returns:
        Category name: "validation", "transport", "format", "backend",
        "execution", "unexpected"
    """
    if isinstance(error, ValidationError):
        return "validation"
    if isinstance(error, (TransportError, aiohttp.ClientError, asyncio.TimeoutError)):
        return "transport"
    if isinstance(error, ResponseFormatError):
        return "format"
    if isinstance(error, BackendError):
        return "backend"
    if isinstance(error, ExecutionError):
        return "execution"
    return "unexpected"


def error_message(error: BaseException) -> str:
    message = str(error).strip()
    return message or error.__class__.__name__


def format_user_failure(error: BaseException) -> str:
    """Short message shown to the user when a generation fails."""
    if isinstance(error, ValidationError):
        return error_message(error)
    return f"Failed: {error_message(error)}. Try rephrasing your prompt."


def describe_error(error: BaseException, context: str = "") -> Dict[str, str]:
    """Structured description used in log lines and API responses."""
    out = {
        "category": get_error_category(error),
        "type": error.__class__.__name__,
        "message": error_message(error),
    }
    if context:
        out["context"] = context
    return out
