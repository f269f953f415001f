"""
Unit tests for the user-facing error messages.
"""

import asyncio

import aiohttp
import pytest

from genux_core.error_handler import describe_error, format_user_failure, get_error_category
from genux_core.exceptions import (
    BackendError,
    EmptyPromptError,
    ExecutionError,
    ResponseFormatError,
    TargetNotFoundError,
    TransportError,
    TransportStatusError,
)


@pytest.mark.parametrize("error,category", [
    (EmptyPromptError(), "validation"),
    (TargetNotFoundError("#app"), "validation"),
    (TransportStatusError(500), "transport"),
    (aiohttp.ClientConnectionError(), "transport"),
    (asyncio.TimeoutError(), "transport"),
    (ResponseFormatError("bad"), "format"),
    (BackendError("disk full"), "backend"),
    (ExecutionError("no target"), "execution"),
    (RuntimeError("boom"), "unexpected"),
])
def test_get_error_category(error, category):
    assert get_error_category(error) == category


def test_validation_message_is_shown_as_is():
    assert format_user_failure(EmptyPromptError()) == "Please describe what you want to create."


def test_transport_failure_message():
    assert format_user_failure(TransportStatusError(503)) == "Failed: HTTP 503. Try rephrasing your prompt."


def test_exception_without_message_uses_type_name():
    assert format_user_failure(TransportError()) == "Failed: TransportError. Try rephrasing your prompt."


def test_describe_error():
    info = describe_error(TargetNotFoundError("#missing"), "executing")
    assert info == {
        "category": "validation",
        "type": "TargetNotFoundError",
        "message": "Target container not found: #missing",
        "context": "executing",
    }
    assert "context" not in describe_error(RuntimeError("x"))
