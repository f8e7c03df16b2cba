"""
qBittorrent Client Error Classes

Every failure coming back from the WebUI (bad credentials, login bans,
missing torrents, network problems, unexpected status codes) is raised as a
QbitError subclass with a machine-matchable kind.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Machine-matchable error kinds."""
    CREDENTIALS = "credentials"
    RATE_LIMITED = "rate_limited"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    TRANSPORT = "transport"
    API = "api"
    INVALID_RESPONSE = "invalid_response"
    CONFIGURATION = "configuration"


class QbitError(Exception):
    """Base error class for the qBittorrent client."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "name": self.__class__.__name__,
            "kind": self.kind.value,
            "message": self.message,
            "status_code": self.status_code,
            "details": self.details,
            "timestamp": self.timestamp,
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(kind={self.kind.value!r}, "
            f"message={self.message!r}, status_code={self.status_code!r})"
        )


class CredentialError(QbitError):
    """Login reached the server but no session cookie came back."""

    def __init__(self, message: str = "The credentials are wrong.", status_code: Optional[int] = None):
        super().__init__(ErrorKind.CREDENTIALS, message, status_code)


class RateLimitError(QbitError):
    """The WebUI banned this client after too many failed logins."""

    def __init__(
        self,
        message: str = "Banned for a while because of too many failed login attempts.",
    ):
        super().__init__(ErrorKind.RATE_LIMITED, message, 403)


class NotFoundError(QbitError):
    """A keyed operation addressed a torrent hash that does not exist."""

    def __init__(
        self,
        operation: str,
        message: str = "The specified torrent hash couldn't be found.",
    ):
        super().__init__(ErrorKind.NOT_FOUND, message, 404, {"operation": operation})
        self.operation = operation


class ConflictError(QbitError):
    """Operation rejected with 409 (endpoint-specific meaning)."""

    def __init__(self, operation: str, message: str):
        super().__init__(ErrorKind.CONFLICT, message, 409, {"operation": operation})
        self.operation = operation


class NetworkError(QbitError):
    """Network error (connection refused, DNS, timeouts)."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(ErrorKind.TRANSPORT, message, None, details)


class ApiError(QbitError):
    """Any other non-2xx response."""

    def __init__(self, operation: str, status_code: int, message: Optional[str] = None):
        super().__init__(
            ErrorKind.API,
            message or f"Something went wrong. operation: {operation}",
            status_code,
            {"operation": operation},
        )
        self.operation = operation


class ResponseFormatError(QbitError):
    """A successful response whose body could not be interpreted."""

    def __init__(self, operation: str, message: str):
        super().__init__(ErrorKind.INVALID_RESPONSE, message, None, {"operation": operation})
        self.operation = operation


class ConfigurationError(QbitError):
    """Configuration error."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(ErrorKind.CONFIGURATION, message, None, details)


def error_for_status(operation: str, status_code: int, message: str) -> QbitError:
    """Build the error for a status code an endpoint documents."""
    if status_code == 404:
        return NotFoundError(operation, message)
    if status_code == 409:
        return ConflictError(operation, message)
    return ApiError(operation, status_code, message)


def is_qbit_error(error: Any) -> bool:
    """Check if error is a QbitError."""
    return isinstance(error, QbitError)


def is_retryable_error(error: Any) -> bool:
    """Check if a caller may reasonably retry after this error."""
    if isinstance(error, NetworkError):
        return True
    if isinstance(error, RateLimitError):
        return False
    if isinstance(error, QbitError) and error.status_code is not None:
        return 500 <= error.status_code < 600
    return False
