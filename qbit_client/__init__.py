"""
qbit-client
A Python client for the qBittorrent WebUI API (v2) with sync and async
support, lazy login, and single-flight session refresh.
"""

from .client import (
    QbitClient,
    QbitAsyncClient,
    create_qbit_client,
    create_async_qbit_client,
)
from .types import (
    QbitConfig,
    Credentials,
    LogFilter,
    DEFAULT_SESSION_TTL,
)
from .errors import (
    ErrorKind,
    QbitError,
    CredentialError,
    RateLimitError,
    NotFoundError,
    ConflictError,
    NetworkError,
    ApiError,
    ResponseFormatError,
    ConfigurationError,
    is_qbit_error,
    is_retryable_error,
)
from .session import Session, SessionCache, AsyncSessionCache
from .auth import extract_session_token

__version__ = "0.1.0"
__all__ = [
    # Clients
    "QbitClient",
    "QbitAsyncClient",
    "create_qbit_client",
    "create_async_qbit_client",
    # Types
    "QbitConfig",
    "Credentials",
    "LogFilter",
    "DEFAULT_SESSION_TTL",
    # Errors
    "ErrorKind",
    "QbitError",
    "CredentialError",
    "RateLimitError",
    "NotFoundError",
    "ConflictError",
    "NetworkError",
    "ApiError",
    "ResponseFormatError",
    "ConfigurationError",
    "is_qbit_error",
    "is_retryable_error",
    # Session
    "Session",
    "SessionCache",
    "AsyncSessionCache",
    "extract_session_token",
]
