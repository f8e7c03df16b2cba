"""
Tests for the WebUI login handshake
"""

import httpx
import pytest
import respx
from hypothesis import given, settings, strategies as st

from qbit_client.auth import async_login, extract_session_token, login
from qbit_client.errors import (
    ApiError,
    CredentialError,
    ErrorKind,
    NetworkError,
    RateLimitError,
)
from qbit_client.types import Credentials


AUTHORITY = "http://localhost:8080"
LOGIN_URL = f"{AUTHORITY}/api/v2/auth/login"
CREDENTIALS = Credentials("admin", "123456")


# =============================================================================
# Token Extraction
# =============================================================================

class TestExtractSessionToken:
    """Tests for set-cookie parsing."""

    def test_typical_header(self):
        assert extract_session_token("SID=abc123; Path=/; HttpOnly") == "abc123"

    def test_trailing_semicolon(self):
        assert extract_session_token("SID=xyz;") == "xyz"

    def test_no_attributes(self):
        assert extract_session_token("SID=xyz") == "xyz"

    def test_missing_header(self):
        assert extract_session_token(None) is None
        assert extract_session_token("") is None

    def test_other_cookie_only(self):
        assert extract_session_token("QBT_LANG=en; Path=/") is None

    def test_empty_value(self):
        assert extract_session_token("SID=; Path=/") is None

    def test_folded_headers(self):
        header = "QBT_LANG=en; Path=/, SID=folded; HttpOnly; SameSite=Strict"
        assert extract_session_token(header) == "folded"

    def test_expires_attribute_with_comma(self):
        header = "SID=abc; Expires=Wed, 21 Oct 2026 07:28:00 GMT; Path=/"
        assert extract_session_token(header) == "abc"

    @given(st.text(alphabet="ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/", min_size=1, max_size=64))
    @settings(max_examples=100)
    def test_extracts_any_token(self, token: str):
        """Property: the value between '=' and the first ';' comes back unchanged."""
        assert extract_session_token(f"SID={token}; Path=/; HttpOnly") == token


# =============================================================================
# Login
# =============================================================================

class TestLogin:
    """Tests for login response classification."""

    @respx.mock
    def test_login_success(self):
        route = respx.post(LOGIN_URL).mock(
            return_value=httpx.Response(200, text="Ok.", headers={"set-cookie": "SID=xyz; HttpOnly; path=/"})
        )

        with httpx.Client() as client:
            token = login(client, AUTHORITY, CREDENTIALS)
            assert len(client.cookies) == 0

        assert token == "xyz"
        request = route.calls.last.request
        assert request.content == b"username=admin&password=123456"
        assert request.headers["referer"] == AUTHORITY
        assert request.headers["content-type"] == "application/x-www-form-urlencoded"

    @respx.mock
    def test_wrong_credentials(self):
        """A 200 without a cookie means the credentials were rejected."""
        respx.post(LOGIN_URL).mock(return_value=httpx.Response(200, text="Fails."))

        with httpx.Client() as client:
            with pytest.raises(CredentialError) as exc_info:
                login(client, AUTHORITY, CREDENTIALS)

        assert exc_info.value.kind == ErrorKind.CREDENTIALS

    @respx.mock
    def test_banned(self):
        respx.post(LOGIN_URL).mock(return_value=httpx.Response(403))

        with httpx.Client() as client:
            with pytest.raises(RateLimitError) as exc_info:
                login(client, AUTHORITY, CREDENTIALS)

        assert exc_info.value.kind == ErrorKind.RATE_LIMITED
        assert exc_info.value.status_code == 403

    @respx.mock
    def test_other_status(self):
        respx.post(LOGIN_URL).mock(return_value=httpx.Response(500))

        with httpx.Client() as client:
            with pytest.raises(ApiError) as exc_info:
                login(client, AUTHORITY, CREDENTIALS)

        assert exc_info.value.status_code == 500
        assert exc_info.value.kind == ErrorKind.API

    @respx.mock
    def test_connection_refused(self):
        route = respx.post(LOGIN_URL).mock(side_effect=httpx.ConnectError)

        with httpx.Client() as client:
            with pytest.raises(NetworkError) as exc_info:
                login(client, AUTHORITY, CREDENTIALS)

        assert exc_info.value.kind == ErrorKind.TRANSPORT
        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
        assert route.call_count == 1

    @respx.mock
    def test_timeout(self):
        respx.post(LOGIN_URL).mock(side_effect=httpx.ConnectTimeout)

        with httpx.Client() as client:
            with pytest.raises(NetworkError, match="timed out"):
                login(client, AUTHORITY, CREDENTIALS)

    @pytest.mark.asyncio
    @respx.mock
    async def test_async_login(self):
        respx.post(LOGIN_URL).mock(
            return_value=httpx.Response(200, headers={"set-cookie": "SID=async-token; path=/"})
        )

        async with httpx.AsyncClient() as client:
            token = await async_login(client, AUTHORITY, CREDENTIALS)

        assert token == "async-token"

    @pytest.mark.asyncio
    @respx.mock
    async def test_async_banned(self):
        respx.post(LOGIN_URL).mock(return_value=httpx.Response(403))

        async with httpx.AsyncClient() as client:
            with pytest.raises(RateLimitError):
                await async_login(client, AUTHORITY, CREDENTIALS)
