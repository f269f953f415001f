"""
Genux exceptions
"""

from typing import Optional


class GenuxError(Exception):
    """Base exception for Genux"""
    pass


class ValidationError(GenuxError):
    """Invalid user input or feature record"""
    pass


class EmptyPromptError(ValidationError):
    """Prompt text is empty after trimming"""

    def __init__(self, message: str = "Please describe what you want to create."):
        super().__init__(message)


class TargetNotFoundError(ValidationError):
    """Configured target container does not resolve to a node"""

    def __init__(self, selector: Optional[str] = None):
        self.selector = selector
        super().__init__(f"Target container not found: {selector or 'body'}")


class TransportError(GenuxError):
    """Network failure talking to the generative backend (retryable)"""
    pass


class TransportStatusError(TransportError):
    """Backend answered with a non-success HTTP status (retryable)"""

    def __init__(self, status: int, body: str = ""):
        self.status = status
        self.body = body
        super().__init__(f"HTTP {status}")


class ResponseFormatError(GenuxError):
    """Backend answered successfully but the payload has an unexpected shape (not retried)"""
    pass


class BackendError(GenuxError):
    """Storage backend misconfiguration"""
    pass


class ExecutionError(GenuxError):
    """Feature could not be applied to the document"""
    pass
