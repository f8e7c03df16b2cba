"""
qBittorrent WebUI login handshake.

The WebUI answers a successful login with a ``SID`` cookie; wrong
credentials still get a 2xx but no cookie, and repeated failures get the
client IP banned (403).
"""

from typing import Any, Dict, Optional, Union

import httpx

from .errors import ApiError, CredentialError, NetworkError, RateLimitError
from .types import Credentials


API_PREFIX = "/api/v2"
LOGIN_PATH = "/auth/login"
LOGOUT_PATH = "/auth/logout"
SESSION_COOKIE = "SID"


def api_url(authority: str, path: str) -> str:
    """Full URL of a WebUI API endpoint."""
    return f"{authority}{API_PREFIX}{path}"


def extract_session_token(header: Optional[str], cookie_name: str = SESSION_COOKIE) -> Optional[str]:
    """
    Pull the session token out of a ``set-cookie`` header value.

    The token is the text between ``=`` and the first ``;`` of the named
    cookie. Several cookies folded into one header with ``, `` are
    accepted. Returns None when the cookie is absent or empty.

    Example:
        >>> extract_session_token("SID=abc123; Path=/; HttpOnly")
        'abc123'
    """
    if not header:
        return None

    for cookie in header.split(","):
        name, sep, rest = cookie.strip().partition("=")
        if not sep or name.strip() != cookie_name:
            continue
        token = rest.split(";", 1)[0].strip()
        return token or None

    return None


def forget_cookies(http_client: Union[httpx.Client, httpx.AsyncClient]) -> None:
    """Drop cookies httpx stored from a response; the SID is sent explicitly."""
    http_client.cookies.clear()


def _login_request(authority: str, credentials: Credentials) -> Dict[str, Any]:
    return {
        "url": api_url(authority, LOGIN_PATH),
        "headers": {"Referer": authority},
        "data": credentials.to_dict(),
    }


def read_login_response(response: httpx.Response) -> str:
    """Classify a login response and return the session token."""
    if response.is_success:
        header = ", ".join(response.headers.get_list("set-cookie"))
        token = extract_session_token(header)
        if token is None:
            raise CredentialError(status_code=response.status_code)
        return token

    if response.status_code == 403:
        raise RateLimitError()

    raise ApiError(
        "login",
        response.status_code,
        "Something went wrong while getting the auth cookie.",
    )


def login(http_client: httpx.Client, authority: str, credentials: Credentials) -> str:
    """Log in and return the session token. Never retries."""
    try:
        response = http_client.post(**_login_request(authority, credentials))
    except httpx.TimeoutException as e:
        raise NetworkError("Login request timed out") from e
    except httpx.RequestError as e:
        raise NetworkError(f"Error while handling networking: {e}") from e

    forget_cookies(http_client)
    return read_login_response(response)


async def async_login(http_client: httpx.AsyncClient, authority: str, credentials: Credentials) -> str:
    """Log in and return the session token. Never retries."""
    try:
        response = await http_client.post(**_login_request(authority, credentials))
    except httpx.TimeoutException as e:
        raise NetworkError("Login request timed out") from e
    except httpx.RequestError as e:
        raise NetworkError(f"Error while handling networking: {e}") from e

    forget_cookies(http_client)
    return read_login_response(response)
