"""
Chat Buy Sell error types.

Every error carries a machine-readable ``code`` next to its message so callers
can branch without string matching.
"""

from typing import Any, Optional


class ChatBuySellError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class ValidationError(ChatBuySellError):
    """Missing or empty input detected locally. Never reaches the network."""

    def __init__(self, message: str, fields: Optional[list[str]] = None):
        super().__init__("validation_error", message, {"fields": fields or []})
        self.fields = fields or []


class BackendError(ChatBuySellError):
    """Non-success response. Keeps the original status and decoded payload."""

    def __init__(self, status_code: int, payload: Any, message: Optional[str] = None):
        super().__init__(
            "http_error",
            message or f"HTTP {status_code}: {str(payload)[:200]}",
            {"status_code": status_code, "payload": payload},
        )
        self.status_code = status_code
        self.payload = payload


class ConnectionError(ChatBuySellError):
    def __init__(self, message: str):
        super().__init__("connection_error", message)


class ProtocolError(ChatBuySellError):
    """A success response that is missing required fields."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("protocol_error", message, details)


class AuthError(ChatBuySellError):
    def __init__(self, message: str, code: str = "auth_error", details: Optional[dict[str, Any]] = None):
        super().__init__(code, message, details)
