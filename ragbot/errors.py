"""Error taxonomy for the service.

Every error carries the HTTP status it maps to plus a public ``error`` label
and ``message``. Those two are the only parts that ever reach a client;
anything passed as ``detail`` is for the server log.
"""
from typing import Any, Dict, Optional

from ragbot.models import utc_timestamp


class RagbotError(Exception):
    status_code: int = 500
    error: str = "Internal server error"
    message: str = "An unexpected error occurred. Please try again later."

    def __init__(self, message: Optional[str] = None, detail: Optional[str] = None,
                 headers: Optional[Dict[str, str]] = None):
        if message is not None:
            self.message = message
        self.detail = detail or self.message
        self.headers: Dict[str, str] = dict(headers or {})
        super().__init__(self.detail)

    def to_body(self) -> Dict[str, Any]:
        return {"error": self.error, "message": self.message}


class ValidationError(RagbotError):
    status_code = 400
    error = "Invalid input"
    message = "Invalid request body"


class MethodNotAllowedError(RagbotError):
    status_code = 405
    error = "Method not allowed"
    message = "Only POST requests are accepted"


class RateLimitError(RagbotError):
    status_code = 429
    error = "Rate limit exceeded"
    message = "Too many requests. Please try again later."

    def __init__(self, retry_after: int, **kwargs):
        super().__init__(**kwargs)
        self.retry_after = retry_after
        self.headers.setdefault("Retry-After", str(retry_after))

    def to_body(self) -> Dict[str, Any]:
        body = super().to_body()
        body["retryAfter"] = self.retry_after
        return body


class ConfigurationError(RagbotError):
    """Missing secrets or source document."""
    status_code = 500
    error = "Server configuration error"
    message = "Missing required API configuration"


class DataError(RagbotError):
    """The source document produced nothing usable."""
    status_code = 500
    error = "Initialization failed"
    message = "The knowledge base could not be loaded. Please try again later."


class UpstreamError(RagbotError):
    """An embedding or chat-completion provider call failed.

    ``status`` is the provider's HTTP status, or None for timeouts, connection
    failures and malformed payloads. ``body`` is the raw provider response and
    is only ever logged.
    """
    status_code = 500
    error = "Upstream service error"
    message = "An upstream service failed. Please try again later."

    def __init__(self, detail: str, status: Optional[int] = None, body: Any = None):
        super().__init__(detail=detail)
        self.status = status
        self.body = body

    def __str__(self) -> str:
        if self.status is None:
            return self.detail
        return f"{self.detail} (status {self.status})"


class NotFoundError(RagbotError):
    status_code = 404
    error = "No relevant information found"
    message = "I couldn't find any relevant information to answer your question."


class AIRateLimitedError(RagbotError):
    status_code = 429
    error = "AI service rate limit"
    message = "The AI service is currently rate limited. Please try again later."


class AIUnavailableError(RagbotError):
    status_code = 503
    error = "AI service unavailable"
    message = "The AI service is temporarily unavailable. Please try again later."


class GenerationFailedError(RagbotError):
    status_code = 500
    error = "AI processing failed"
    message = "Failed to generate response after multiple attempts."


class InternalServerError(RagbotError):
    """Stand-in for any exception nobody anticipated."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.timestamp = utc_timestamp()

    def to_body(self) -> Dict[str, Any]:
        body = super().to_body()
        body["timestamp"] = self.timestamp
        return body
