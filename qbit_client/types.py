"""
qBittorrent Client Type Definitions

Credentials, configuration and request parameter types shared by the sync
and async clients.
"""

import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from .errors import ConfigurationError


# qBittorrent's own session lifetime is 3600s; refresh with five minutes of margin
DEFAULT_SESSION_TTL = 3300.0

DEFAULT_BASE_URL = "http://localhost:8080"

BASE_URL_REGEX = re.compile(r'^https?://[^/\s]+', re.IGNORECASE)


def is_valid_base_url(url: str) -> bool:
    """Validate the WebUI authority format (scheme + host[:port])."""
    return bool(BASE_URL_REGEX.match(url))


def normalize_base_url(url: str) -> str:
    """Trim trailing path separators from the authority."""
    return url.rstrip("/")


@dataclass(frozen=True)
class Credentials:
    """WebUI account credentials."""

    username: str
    password: str = field(repr=False)

    def to_dict(self) -> Dict[str, str]:
        """Form fields for the login request."""
        return {"username": self.username, "password": self.password}


@dataclass
class QbitConfig:
    """Client configuration options."""

    # WebUI account
    credentials: Credentials
    # WebUI authority (default: http://localhost:8080)
    base_url: str = DEFAULT_BASE_URL
    # Request timeout in seconds (default: 30)
    timeout: float = 30.0
    # Seconds after login before the session is treated as expired (default: 3300)
    session_ttl: float = DEFAULT_SESSION_TTL
    # Verify TLS certificates for https authorities (default: True)
    verify_ssl: bool = True
    # Enable debug logging (default: False)
    debug: bool = False
    # Custom headers to include in requests
    headers: Optional[Dict[str, str]] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides: Any) -> "QbitConfig":
        """
        Build a configuration from environment variables.

        Reads QBIT_URL, QBIT_USERNAME, QBIT_PASSWORD and optionally
        QBIT_TIMEOUT. Keyword overrides win over the environment.
        """
        env = os.environ if environ is None else environ

        username = env.get("QBIT_USERNAME")
        if not username:
            raise ConfigurationError("QBIT_USERNAME is not set")

        timeout_raw = env.get("QBIT_TIMEOUT")
        try:
            timeout = float(timeout_raw) if timeout_raw else 30.0
        except ValueError:
            raise ConfigurationError(
                "QBIT_TIMEOUT must be a number", {"value": timeout_raw}
            ) from None

        options: Dict[str, Any] = {
            "credentials": Credentials(username, env.get("QBIT_PASSWORD", "")),
            "base_url": env.get("QBIT_URL", DEFAULT_BASE_URL),
            "timeout": timeout,
        }
        options.update(overrides)
        return cls(**options)


@dataclass
class LogFilter:
    """Severity filter for the main log endpoint."""

    normal: bool = True
    info: bool = True
    warning: bool = True
    critical: bool = True
    last_known_id: int = -1

    def to_dict(self) -> Dict[str, Any]:
        """Convert to form parameters."""
        return {
            "normal": self.normal,
            "info": self.info,
            "warning": self.warning,
            "critical": self.critical,
            "last_known_id": self.last_known_id,
        }
