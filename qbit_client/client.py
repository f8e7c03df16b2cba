"""
qBittorrent WebUI Client

Main client classes for the qBittorrent WebUI API (v2).
Provides both synchronous and asynchronous clients that log in lazily,
keep the SID session fresh, and funnel every endpoint call through one
dispatcher with uniform error classification.
"""

import json
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import httpx

from .auth import LOGOUT_PATH, api_url, async_login, forget_cookies, login
from .errors import (
    ApiError,
    ConfigurationError,
    NetworkError,
    NotFoundError,
    ResponseFormatError,
    error_for_status,
)
from .session import AsyncSessionCache, Clock, SessionCache
from .types import Credentials, LogFilter, QbitConfig, is_valid_base_url, normalize_base_url


logger = logging.getLogger("qbit_client")

Hashes = Union[str, Iterable[str]]
StatusErrors = Mapping[int, str]

FILE_PRIORITY_ERRORS: Dict[int, str] = {
    400: "The priority is invalid or at least one file id is not a valid integer.",
    404: "The specified torrent hash couldn't be found.",
    409: "The torrent metadata hasn't downloaded yet or at least one file id was not found.",
}


# =============================================================================
# Request Helpers
# =============================================================================

def encode_form(params: Mapping[str, Any]) -> Dict[str, str]:
    """Encode form values the way the WebUI expects them; None entries are dropped."""
    form: Dict[str, str] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            form[key] = "true" if value else "false"
        else:
            form[key] = str(value)
    return form


def join_hashes(hashes: Hashes) -> str:
    """Join torrent hashes with ``|``. A plain string (including ``all``) passes through."""
    if isinstance(hashes, str):
        joined = hashes
    else:
        joined = "|".join(hashes)
    if not joined:
        raise ValueError("no torrents were specified")
    return joined


def parse_json(text: str, operation: str) -> Any:
    try:
        return json.loads(text)
    except ValueError as e:
        raise ResponseFormatError(operation, f"Error while handling JSON data: {e}") from e


def parse_int(text: str, operation: str) -> int:
    try:
        return int(text.strip())
    except ValueError:
        raise ResponseFormatError(operation, f"Expected an integer, got {text!r}") from None


def parse_flag(text: str, operation: str) -> bool:
    value = text.strip()
    if value == "1":
        return True
    if value == "0":
        return False
    raise ResponseFormatError(operation, f"Expected '0' or '1', got {text!r}")


def _handle_response(
    response: httpx.Response,
    operation: str,
    keyed: bool = False,
    status_errors: Optional[StatusErrors] = None,
) -> str:
    """Return the body of a 2xx response, otherwise raise the matching error."""
    if response.is_success:
        return response.text

    status = response.status_code
    if status_errors and status in status_errors:
        raise error_for_status(operation, status, status_errors[status])
    if keyed and status == 404:
        raise NotFoundError(operation)
    raise ApiError(operation, status)


def _validate_config(config: QbitConfig) -> None:
    """Validate configuration."""
    base_url = normalize_base_url(config.base_url or "")
    if not base_url:
        raise ConfigurationError("base_url is required")
    if not is_valid_base_url(base_url):
        raise ConfigurationError(
            "Invalid base_url format. Expected http(s)://host[:port]",
            {"base_url": config.base_url},
        )
    if not config.credentials.username:
        raise ConfigurationError("username is required")
    if config.session_ttl <= 0:
        raise ConfigurationError("session_ttl must be positive", {"session_ttl": config.session_ttl})
    if config.timeout <= 0:
        raise ConfigurationError("timeout must be positive", {"timeout": config.timeout})


# =============================================================================
# Endpoint Namespaces
# =============================================================================

class AppNamespace:
    """Application operations namespace for sync client."""

    def __init__(self, client: "QbitClient") -> None:
        self._client = client

    def version(self) -> str:
        """Get the qBittorrent version, e.g. ``v4.6.2``."""
        return self._client.dispatch_bare("/app/version", "app_version")

    def web_api_version(self) -> str:
        """Get the WebUI API version, e.g. ``2.9.3``."""
        return self._client.dispatch_bare("/app/webapiVersion", "app_web_api_version")

    def build_info(self) -> Dict[str, Any]:
        """Get library versions qBittorrent was built against."""
        text = self._client.dispatch_bare("/app/buildInfo", "app_build_info")
        return parse_json(text, "app_build_info")

    def shutdown(self) -> None:
        """Shut the application down."""
        self._client.dispatch_bare("/app/shutdown", "app_shutdown")

    def default_save_path(self) -> str:
        return self._client.dispatch_bare("/app/defaultSavePath", "app_default_save_path")


class LogNamespace:
    """Log operations namespace for sync client."""

    def __init__(self, client: "QbitClient") -> None:
        self._client = client

    def main(self, log_filter: Optional[LogFilter] = None) -> List[Dict[str, Any]]:
        """
        Get main log entries.

        Args:
            log_filter: Severities to include and the last id already seen
                (default: everything)
        """
        params = (log_filter or LogFilter()).to_dict()
        text = self._client.dispatch_form("/log/main", "log_main", params)
        return parse_json(text, "log_main")

    def peers(self, last_known_id: int = -1) -> List[Dict[str, Any]]:
        """Get peer log entries newer than ``last_known_id``."""
        text = self._client.dispatch_form(
            "/log/peers", "log_peers", {"last_known_id": last_known_id}
        )
        return parse_json(text, "log_peers")


class SyncNamespace:
    """Sync operations namespace for sync client."""

    def __init__(self, client: "QbitClient") -> None:
        self._client = client

    def main_data(self, rid: int = 0) -> Dict[str, Any]:
        """Get main data changes since response id ``rid`` (0 for a full update)."""
        text = self._client.dispatch_form("/sync/maindata", "sync_main_data", {"rid": rid})
        return parse_json(text, "sync_main_data")

    def torrent_peers(self, torrent_hash: str, rid: int = 0) -> Dict[str, Any]:
        """Get peer data for one torrent."""
        text = self._client.dispatch_form_keyed(
            "/sync/torrentPeers",
            "sync_torrent_peers",
            {"hash": torrent_hash, "rid": rid},
        )
        return parse_json(text, "sync_torrent_peers")


class TransferNamespace:
    """Transfer info operations namespace for sync client."""

    def __init__(self, client: "QbitClient") -> None:
        self._client = client

    def info(self) -> Dict[str, Any]:
        """Get global transfer info."""
        text = self._client.dispatch_bare("/transfer/info", "transfer_info")
        return parse_json(text, "transfer_info")

    def speed_limits_mode(self) -> bool:
        """Whether alternative speed limits are enabled."""
        text = self._client.dispatch_bare("/transfer/speedLimitsMode", "transfer_speed_limits_mode")
        return parse_flag(text, "transfer_speed_limits_mode")

    def toggle_speed_limits_mode(self) -> None:
        self._client.dispatch_bare(
            "/transfer/toggleSpeedLimitsMode", "transfer_toggle_speed_limits_mode"
        )

    def download_limit(self) -> int:
        """Global download limit in bytes/second; 0 means unlimited."""
        text = self._client.dispatch_bare("/transfer/downloadLimit", "transfer_download_limit")
        return parse_int(text, "transfer_download_limit")

    def upload_limit(self) -> int:
        """Global upload limit in bytes/second; 0 means unlimited."""
        text = self._client.dispatch_bare("/transfer/uploadLimit", "transfer_upload_limit")
        return parse_int(text, "transfer_upload_limit")

    def set_download_limit(self, limit: int) -> None:
        """Set the global download limit in bytes/second; 0 for no limit."""
        self._client.dispatch_form(
            "/transfer/setDownloadLimit", "transfer_set_download_limit", {"limit": limit}
        )

    def set_upload_limit(self, limit: int) -> None:
        """Set the global upload limit in bytes/second; 0 for no limit."""
        self._client.dispatch_form(
            "/transfer/setUploadLimit", "transfer_set_upload_limit", {"limit": limit}
        )

    def ban_peers(self, peers: Iterable[str]) -> None:
        """
        Ban peers.

        Args:
            peers: Peers formatted as ``host:port``
        """
        self._client.dispatch_form(
            "/transfer/banPeers", "transfer_ban_peers", {"peers": "|".join(peers)}
        )


class TorrentsNamespace:
    """Torrent management operations namespace for sync client."""

    def __init__(self, client: "QbitClient") -> None:
        self._client = client

    def properties(self, torrent_hash: str) -> Dict[str, Any]:
        """Get generic properties of a torrent."""
        text = self._client.dispatch_form_keyed(
            "/torrents/properties", "torrents_properties", {"hash": torrent_hash}
        )
        return parse_json(text, "torrents_properties")

    def trackers(self, torrent_hash: str) -> List[Dict[str, Any]]:
        """Get the trackers of a torrent."""
        text = self._client.dispatch_form_keyed(
            "/torrents/trackers", "torrents_trackers", {"hash": torrent_hash}
        )
        return parse_json(text, "torrents_trackers")

    def pause(self, hashes: Hashes) -> None:
        self._client.dispatch_form(
            "/torrents/pause", "torrents_pause", {"hashes": join_hashes(hashes)}
        )

    def resume(self, hashes: Hashes) -> None:
        self._client.dispatch_form(
            "/torrents/resume", "torrents_resume", {"hashes": join_hashes(hashes)}
        )

    def recheck(self, hashes: Hashes) -> None:
        self._client.dispatch_form(
            "/torrents/recheck", "torrents_recheck", {"hashes": join_hashes(hashes)}
        )

    def reannounce(self, hashes: Hashes) -> None:
        self._client.dispatch_form(
            "/torrents/reannounce", "torrents_reannounce", {"hashes": join_hashes(hashes)}
        )

    def delete(self, hashes: Hashes, delete_files: bool = False) -> None:
        """
        Delete torrents.

        Args:
            hashes: Torrent hashes, or ``all``
            delete_files: Also remove downloaded data
        """
        self._client.dispatch_form(
            "/torrents/delete",
            "torrents_delete",
            {"hashes": join_hashes(hashes), "deleteFiles": delete_files},
        )

    def set_file_priority(self, torrent_hash: str, file_ids: Iterable[int], priority: int) -> None:
        """
        Set the download priority of files in a torrent.

        Raises:
            NotFoundError: If the torrent hash is unknown
            ConflictError: If metadata is missing or a file id was not found
            ApiError: If the priority or a file id is invalid (400)
        """
        self._client.dispatch_form(
            "/torrents/filePrio",
            "torrents_set_file_priority",
            {
                "hash": torrent_hash,
                "id": "|".join(str(file_id) for file_id in file_ids),
                "priority": priority,
            },
            status_errors=FILE_PRIORITY_ERRORS,
        )

    def categories(self) -> Dict[str, Any]:
        text = self._client.dispatch_bare("/torrents/categories", "torrents_categories")
        return parse_json(text, "torrents_categories")

    def tags(self) -> List[str]:
        text = self._client.dispatch_bare("/torrents/tags", "torrents_tags")
        return parse_json(text, "torrents_tags")


class QbitClient:
    """
    qBittorrent Client - Synchronous entry point.

    Logs in lazily (or explicitly via ``login()``), refreshes the SID
    session before it expires, and is safe to share between threads.
    """

    def __init__(self, config: QbitConfig, clock: Optional[Clock] = None) -> None:
        """Initialize the client. No network I/O happens here."""
        _validate_config(config)

        self._base_url = normalize_base_url(config.base_url)
        self._credentials = config.credentials
        self._timeout = config.timeout
        self._debug = config.debug
        self._custom_headers = config.headers or {}

        # State
        self._session = SessionCache(self._authenticate, ttl=config.session_ttl, clock=clock)

        # HTTP client
        self._http_client = httpx.Client(
            timeout=self._timeout,
            verify=config.verify_ssl,
            headers=self._custom_headers,
        )

        # Namespaces
        self.app = AppNamespace(self)
        self.log = LogNamespace(self)
        self.sync = SyncNamespace(self)
        self.transfer = TransferNamespace(self)
        self.torrents = TorrentsNamespace(self)

        self._log(f"QbitClient initialized (base_url={self._base_url})")

    def _log(self, message: str, *args: Any) -> None:
        """Log debug message."""
        if self._debug:
            logger.debug(f"[qbit] {message}", *args)

    @property
    def base_url(self) -> str:
        return self._base_url

    # =========================================================================
    # Session Methods
    # =========================================================================

    def login(self) -> None:
        """
        Log in now instead of on the first request.

        Raises:
            CredentialError: If the username/password pair was rejected
            RateLimitError: If the WebUI banned this client (HTTP 403)
            NetworkError: If the WebUI could not be reached
        """
        self._log(f"Login attempt for: {self._credentials.username}")
        self._session.refresh()
        self._log("Login successful")

    def logout(self) -> None:
        """
        End the WebUI session.

        A no-op when no session exists. An expired session is dropped
        locally without logging in again. The cached session is dropped even
        if the request fails; errors still propagate.
        """
        if self._session.snapshot() is None:
            self._log("Logout skipped, no session")
            return
        if self._session.is_expired():
            self._log("Logout skipped, session expired")
            self._session.invalidate()
            return

        self._log("Logout")
        try:
            self.dispatch_bare(LOGOUT_PATH, "logout")
        finally:
            self._session.invalidate()
            forget_cookies(self._http_client)

    def get_token(self) -> str:
        """Get a valid session token (logs in again if the session expired)."""
        return self._session.get_token()

    def is_authenticated(self) -> bool:
        """Check if a non-expired session is cached. Never does network I/O."""
        return not self._session.is_expired()

    def _authenticate(self) -> str:
        return login(self._http_client, self._base_url, self._credentials)

    # =========================================================================
    # Dispatch Methods
    # =========================================================================

    def dispatch_bare(self, path: str, operation: str) -> str:
        """POST to ``/api/v2{path}`` without a body and return the response text."""
        return self._request(path, operation)

    def dispatch_form(
        self,
        path: str,
        operation: str,
        params: Mapping[str, Any],
        status_errors: Optional[StatusErrors] = None,
    ) -> str:
        """POST form-encoded ``params`` to ``/api/v2{path}`` and return the response text."""
        return self._request(path, operation, params, status_errors=status_errors)

    def dispatch_form_keyed(
        self,
        path: str,
        operation: str,
        params: Mapping[str, Any],
        status_errors: Optional[StatusErrors] = None,
    ) -> str:
        """Like ``dispatch_form`` but a 404 raises NotFoundError."""
        return self._request(path, operation, params, keyed=True, status_errors=status_errors)

    def _request(
        self,
        path: str,
        operation: str,
        params: Optional[Mapping[str, Any]] = None,
        keyed: bool = False,
        status_errors: Optional[StatusErrors] = None,
    ) -> str:
        """Execute a single HTTP request. Never retries."""
        token = self._session.get_token()
        headers = {"Cookie": f"SID={token}"}
        data = encode_form(params) if params is not None else None

        try:
            response = self._http_client.post(
                api_url(self._base_url, path),
                headers=headers,
                data=data,
            )
        except httpx.TimeoutException as e:
            raise NetworkError("Request timeout", {"timeout": self._timeout, "operation": operation}) from e
        except httpx.RequestError as e:
            raise NetworkError(f"Error while handling networking: {e}", {"operation": operation}) from e

        self._log(f"{operation} -> {response.status_code}")
        return _handle_response(response, operation, keyed, status_errors)

    def close(self) -> None:
        """Close the HTTP client."""
        self._http_client.close()

    def __enter__(self) -> "QbitClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


# =============================================================================
# Async Client
# =============================================================================

class AsyncAppNamespace:
    """Application operations namespace for async client."""

    def __init__(self, client: "QbitAsyncClient") -> None:
        self._client = client

    async def version(self) -> str:
        return await self._client.dispatch_bare("/app/version", "app_version")

    async def web_api_version(self) -> str:
        return await self._client.dispatch_bare("/app/webapiVersion", "app_web_api_version")

    async def build_info(self) -> Dict[str, Any]:
        text = await self._client.dispatch_bare("/app/buildInfo", "app_build_info")
        return parse_json(text, "app_build_info")

    async def shutdown(self) -> None:
        await self._client.dispatch_bare("/app/shutdown", "app_shutdown")

    async def default_save_path(self) -> str:
        return await self._client.dispatch_bare("/app/defaultSavePath", "app_default_save_path")


class AsyncLogNamespace:
    """Log operations namespace for async client."""

    def __init__(self, client: "QbitAsyncClient") -> None:
        self._client = client

    async def main(self, log_filter: Optional[LogFilter] = None) -> List[Dict[str, Any]]:
        params = (log_filter or LogFilter()).to_dict()
        text = await self._client.dispatch_form("/log/main", "log_main", params)
        return parse_json(text, "log_main")

    async def peers(self, last_known_id: int = -1) -> List[Dict[str, Any]]:
        text = await self._client.dispatch_form(
            "/log/peers", "log_peers", {"last_known_id": last_known_id}
        )
        return parse_json(text, "log_peers")


class AsyncSyncNamespace:
    """Sync operations namespace for async client."""

    def __init__(self, client: "QbitAsyncClient") -> None:
        self._client = client

    async def main_data(self, rid: int = 0) -> Dict[str, Any]:
        text = await self._client.dispatch_form("/sync/maindata", "sync_main_data", {"rid": rid})
        return parse_json(text, "sync_main_data")

    async def torrent_peers(self, torrent_hash: str, rid: int = 0) -> Dict[str, Any]:
        text = await self._client.dispatch_form_keyed(
            "/sync/torrentPeers",
            "sync_torrent_peers",
            {"hash": torrent_hash, "rid": rid},
        )
        return parse_json(text, "sync_torrent_peers")


class AsyncTransferNamespace:
    """Transfer info operations namespace for async client."""

    def __init__(self, client: "QbitAsyncClient") -> None:
        self._client = client

    async def info(self) -> Dict[str, Any]:
        text = await self._client.dispatch_bare("/transfer/info", "transfer_info")
        return parse_json(text, "transfer_info")

    async def speed_limits_mode(self) -> bool:
        text = await self._client.dispatch_bare(
            "/transfer/speedLimitsMode", "transfer_speed_limits_mode"
        )
        return parse_flag(text, "transfer_speed_limits_mode")

    async def toggle_speed_limits_mode(self) -> None:
        await self._client.dispatch_bare(
            "/transfer/toggleSpeedLimitsMode", "transfer_toggle_speed_limits_mode"
        )

    async def download_limit(self) -> int:
        text = await self._client.dispatch_bare("/transfer/downloadLimit", "transfer_download_limit")
        return parse_int(text, "transfer_download_limit")

    async def upload_limit(self) -> int:
        text = await self._client.dispatch_bare("/transfer/uploadLimit", "transfer_upload_limit")
        return parse_int(text, "transfer_upload_limit")

    async def set_download_limit(self, limit: int) -> None:
        await self._client.dispatch_form(
            "/transfer/setDownloadLimit", "transfer_set_download_limit", {"limit": limit}
        )

    async def set_upload_limit(self, limit: int) -> None:
        await self._client.dispatch_form(
            "/transfer/setUploadLimit", "transfer_set_upload_limit", {"limit": limit}
        )

    async def ban_peers(self, peers: Iterable[str]) -> None:
        await self._client.dispatch_form(
            "/transfer/banPeers", "transfer_ban_peers", {"peers": "|".join(peers)}
        )


class AsyncTorrentsNamespace:
    """Torrent management operations namespace for async client."""

    def __init__(self, client: "QbitAsyncClient") -> None:
        self._client = client

    async def properties(self, torrent_hash: str) -> Dict[str, Any]:
        text = await self._client.dispatch_form_keyed(
            "/torrents/properties", "torrents_properties", {"hash": torrent_hash}
        )
        return parse_json(text, "torrents_properties")

    async def trackers(self, torrent_hash: str) -> List[Dict[str, Any]]:
        text = await self._client.dispatch_form_keyed(
            "/torrents/trackers", "torrents_trackers", {"hash": torrent_hash}
        )
        return parse_json(text, "torrents_trackers")

    async def pause(self, hashes: Hashes) -> None:
        await self._client.dispatch_form(
            "/torrents/pause", "torrents_pause", {"hashes": join_hashes(hashes)}
        )

    async def resume(self, hashes: Hashes) -> None:
        await self._client.dispatch_form(
            "/torrents/resume", "torrents_resume", {"hashes": join_hashes(hashes)}
        )

    async def recheck(self, hashes: Hashes) -> None:
        await self._client.dispatch_form(
            "/torrents/recheck", "torrents_recheck", {"hashes": join_hashes(hashes)}
        )

    async def reannounce(self, hashes: Hashes) -> None:
        await self._client.dispatch_form(
            "/torrents/reannounce", "torrents_reannounce", {"hashes": join_hashes(hashes)}
        )

    async def delete(self, hashes: Hashes, delete_files: bool = False) -> None:
        await self._client.dispatch_form(
            "/torrents/delete",
            "torrents_delete",
            {"hashes": join_hashes(hashes), "deleteFiles": delete_files},
        )

    async def set_file_priority(self, torrent_hash: str, file_ids: Iterable[int], priority: int) -> None:
        await self._client.dispatch_form(
            "/torrents/filePrio",
            "torrents_set_file_priority",
            {
                "hash": torrent_hash,
                "id": "|".join(str(file_id) for file_id in file_ids),
                "priority": priority,
            },
            status_errors=FILE_PRIORITY_ERRORS,
        )

    async def categories(self) -> Dict[str, Any]:
        text = await self._client.dispatch_bare("/torrents/categories", "torrents_categories")
        return parse_json(text, "torrents_categories")

    async def tags(self) -> List[str]:
        text = await self._client.dispatch_bare("/torrents/tags", "torrents_tags")
        return parse_json(text, "torrents_tags")


class QbitAsyncClient:
    """
    qBittorrent Async Client - Asynchronous entry point.

    Same semantics as QbitClient; many tasks may share one instance and
    an expired session is refreshed by exactly one of them.
    """

    def __init__(self, config: QbitConfig, clock: Optional[Clock] = None) -> None:
        """Initialize the async client. No network I/O happens here."""
        _validate_config(config)

        self._base_url = normalize_base_url(config.base_url)
        self._credentials = config.credentials
        self._timeout = config.timeout
        self._verify_ssl = config.verify_ssl
        self._debug = config.debug
        self._custom_headers = config.headers or {}

        # State
        self._session = AsyncSessionCache(self._authenticate, ttl=config.session_ttl, clock=clock)

        # HTTP client (created lazily)
        self._http_client: Optional[httpx.AsyncClient] = None

        # Namespaces
        self.app = AsyncAppNamespace(self)
        self.log = AsyncLogNamespace(self)
        self.sync = AsyncSyncNamespace(self)
        self.transfer = AsyncTransferNamespace(self)
        self.torrents = AsyncTorrentsNamespace(self)

        self._log(f"QbitAsyncClient initialized (base_url={self._base_url})")

    def _log(self, message: str, *args: Any) -> None:
        """Log debug message."""
        if self._debug:
            logger.debug(f"[qbit] {message}", *args)

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self._timeout,
                verify=self._verify_ssl,
                headers=self._custom_headers,
            )
        return self._http_client

    @property
    def base_url(self) -> str:
        return self._base_url

    # =========================================================================
    # Session Methods
    # =========================================================================

    async def login(self) -> None:
        """Log in now instead of on the first request."""
        self._log(f"Login attempt for: {self._credentials.username}")
        await self._session.refresh()
        self._log("Login successful")

    async def logout(self) -> None:
        """End the WebUI session (no-op without a session)."""
        if self._session.snapshot() is None:
            self._log("Logout skipped, no session")
            return
        if self._session.is_expired():
            self._log("Logout skipped, session expired")
            self._session.invalidate()
            return

        self._log("Logout")
        try:
            await self.dispatch_bare(LOGOUT_PATH, "logout")
        finally:
            self._session.invalidate()
            if self._http_client is not None:
                forget_cookies(self._http_client)

    async def get_token(self) -> str:
        """Get a valid session token (logs in again if the session expired)."""
        return await self._session.get_token()

    def is_authenticated(self) -> bool:
        """Check if a non-expired session is cached. Never does network I/O."""
        return not self._session.is_expired()

    async def _authenticate(self) -> str:
        return await async_login(self._get_client(), self._base_url, self._credentials)

    # =========================================================================
    # Dispatch Methods
    # =========================================================================

    async def dispatch_bare(self, path: str, operation: str) -> str:
        """POST to ``/api/v2{path}`` without a body and return the response text."""
        return await self._request(path, operation)

    async def dispatch_form(
        self,
        path: str,
        operation: str,
        params: Mapping[str, Any],
        status_errors: Optional[StatusErrors] = None,
    ) -> str:
        """POST form-encoded ``params`` to ``/api/v2{path}`` and return the response text."""
        return await self._request(path, operation, params, status_errors=status_errors)

    async def dispatch_form_keyed(
        self,
        path: str,
        operation: str,
        params: Mapping[str, Any],
        status_errors: Optional[StatusErrors] = None,
    ) -> str:
        """Like ``dispatch_form`` but a 404 raises NotFoundError."""
        return await self._request(path, operation, params, keyed=True, status_errors=status_errors)

    async def _request(
        self,
        path: str,
        operation: str,
        params: Optional[Mapping[str, Any]] = None,
        keyed: bool = False,
        status_errors: Optional[StatusErrors] = None,
    ) -> str:
        """Execute a single HTTP request. Never retries."""
        token = await self._session.get_token()
        headers = {"Cookie": f"SID={token}"}
        data = encode_form(params) if params is not None else None

        try:
            client = self._get_client()
            response = await client.post(
                api_url(self._base_url, path),
                headers=headers,
                data=data,
            )
        except httpx.TimeoutException as e:
            raise NetworkError("Request timeout", {"timeout": self._timeout, "operation": operation}) from e
        except httpx.RequestError as e:
            raise NetworkError(f"Error while handling networking: {e}", {"operation": operation}) from e

        self._log(f"{operation} -> {response.status_code}")
        return _handle_response(response, operation, keyed, status_errors)

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> "QbitAsyncClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()


# =============================================================================
# Factory Functions
# =============================================================================

def create_qbit_client(base_url: str, username: str, password: str, **options: Any) -> QbitClient:
    """
    Create a synchronous client and log in.

    Extra keyword options are passed to QbitConfig (timeout, session_ttl, ...).
    """
    config = QbitConfig(credentials=Credentials(username, password), base_url=base_url, **options)
    client = QbitClient(config)
    try:
        client.login()
    except Exception:
        client.close()
        raise
    return client


async def create_async_qbit_client(
    base_url: str, username: str, password: str, **options: Any
) -> QbitAsyncClient:
    """Create an asynchronous client and log in."""
    config = QbitConfig(credentials=Credentials(username, password), base_url=base_url, **options)
    client = QbitAsyncClient(config)
    try:
        await client.login()
    except Exception:
        await client.close()
        raise
    return client
