"""Microsoft Graph API client with MSAL authentication."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any
from urllib import request as urllib_request
from urllib.error import HTTPError, URLError

import msal

from onedrive_client.graph.errors import (
    GraphAuthError,
    ProtocolError,
    TransportError,
    api_error_for_status,
)
from onedrive_client.graph.models import ErrorObject

if TYPE_CHECKING:
    from onedrive_client.config import AppConfig

logger = logging.getLogger(__name__)

GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"
GRAPH_SCOPES = ["https://graph.microsoft.com/.default"]
AUTHORITY_BASE_URL = "https://login.microsoftonline.com"

DEFAULT_REQUEST_TIMEOUT = 30.0


@dataclass
class GraphResponse:
    """A successful (2xx) response from the Graph API."""

    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        return self.headers.get(name.lower())

    def json(self) -> Any:
        """Decode the body as JSON; None for an empty body.

        Raises:
            ProtocolError: If the body is not valid JSON.
        """
        if not self.body:
            return None
        try:
            return json.loads(self.body)
        except ValueError as exc:
            raise ProtocolError(f"response body is not valid JSON: {exc}") from exc

    def json_object(self) -> dict[str, Any]:
        """Decode the body as a JSON object; {} for an empty body.

        Raises:
            ProtocolError: If the body is not a JSON object.
        """
        raw = self.json()
        if raw is None:
            return {}
        if not isinstance(raw, dict):
            raise ProtocolError(f"expected a JSON object, got {type(raw).__name__}")
        return raw


class GraphClient:
    """Authenticated client for Microsoft Graph API.

    This is the single-request layer the protocol drivers are built on: each
    call to :meth:`execute` performs exactly one HTTP round trip.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        tenant_id: str,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        """Initialise the MSAL confidential client application.

        Args:
            client_id: Azure AD application (client) ID.
            client_secret: Azure AD application client secret.
            tenant_id: Azure AD tenant ID.
            request_timeout: Connect/read timeout in seconds for every request.
        """
        authority = f"{AUTHORITY_BASE_URL}/{tenant_id}"
        self._app = msal.ConfidentialClientApplication(
            client_id=client_id,
            client_credential=client_secret,
            authority=authority,
        )
        self._timeout = request_timeout

    def _acquire_token(self) -> str:
        """Acquire a Bearer token using client credentials flow.

        Returns:
            Access token string.

        Raises:
            GraphAuthError: If MSAL cannot acquire a token.
        """
        result: dict[str, Any] = self._app.acquire_token_for_client(scopes=GRAPH_SCOPES) or {}
        if "access_token" not in result:
            error = result.get("error", "unknown_error")
            description = result.get("error_description", "No description provided")
            logger.error("[_acquire_token] MSAL token acquisition failed; error:%s", error)
            raise GraphAuthError(f"Token acquisition failed: {error}: {description}")
        return str(result["access_token"])

    @staticmethod
    def resolve_url(path_or_url: str) -> str:
        """Prefix relative paths with the Graph base URL; keep absolute URLs verbatim."""
        if path_or_url.startswith(("https://", "http://")):
            return path_or_url
        return f"{GRAPH_BASE_URL}{path_or_url}"

    def execute(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        body: Any = None,
        authenticated: bool = True,
    ) -> GraphResponse:
        """Perform one HTTP request against the Graph API.

        Args:
            method: HTTP method.
            url: Path relative to GRAPH_BASE_URL (starting with '/') or an
                absolute URL such as a nextLink, upload URL or monitor URL.
            headers: Extra request headers.
            body: ``bytes`` sent as-is, or a JSON-serialisable value.
            authenticated: Attach the Bearer token. Pre-authenticated URLs
                (upload sessions, copy monitors) must be called without it.

        Returns:
            The 2xx response.

        Raises:
            GraphAuthError: If token acquisition fails.
            ApiError: If the API returns a non-2xx status with a Graph error body.
            TransportError: If no response was received, or a non-2xx response
                carried no Graph error body.
        """
        request_headers = {"Accept": "application/json"}
        if authenticated:
            request_headers["Authorization"] = f"Bearer {self._acquire_token()}"

        data: bytes | None = None
        if isinstance(body, bytes):
            data = body
        elif body is not None:
            data = json.dumps(body).encode("utf-8")
            request_headers["Content-Type"] = "application/json"
        request_headers.update(headers or {})

        full_url = self.resolve_url(url)
        req = urllib_request.Request(full_url, data=data, headers=request_headers, method=method)
        logger.debug("[execute] sending request; method:%s;url:%s", method, full_url)
        try:
            with urllib_request.urlopen(req, timeout=self._timeout) as resp:
                return GraphResponse(
                    status_code=resp.status,
                    headers={k.lower(): v for k, v in resp.headers.items()},
                    body=resp.read(),
                )
        except HTTPError as exc:
            raise self._error_from_http(exc) from exc
        except (URLError, TimeoutError, ConnectionError) as exc:
            logger.warning("[execute] transport failure; method:%s;error:%s", method, exc)
            raise TransportError(f"{method} {full_url} failed: {exc}") from exc

    @staticmethod
    def _error_from_http(exc: HTTPError) -> Exception:
        """Map a non-2xx HTTPError to ApiError or TransportError."""
        raw = exc.read()
        try:
            error = ErrorObject.from_response_body(json.loads(raw))
        except ValueError:
            error = None
        if error is None:
            return TransportError(f"Graph API error {exc.code}: {exc.reason}", exc.code)

        retry_after: int | None = None
        header = exc.headers.get("Retry-After") if exc.headers is not None else None
        if header is not None and str(header).isdigit():
            retry_after = int(header)
        logger.info(
            "[_error_from_http] graph api error; status:%d;code:%s", exc.code, error.code
        )
        return api_error_for_status(exc.code, error, retry_after)

    def get(self, path: str) -> dict[str, Any]:
        """Perform an authenticated GET request and decode the JSON body.

        Args:
            path: URL path relative to GRAPH_BASE_URL, or an absolute URL.

        Returns:
            Parsed JSON response body as a dict.
        """
        return self.execute("GET", path).json_object()

    def get_content(self, path: str) -> bytes:
        """Perform an authenticated GET request and return the raw body.

        Args:
            path: URL path relative to GRAPH_BASE_URL, or an absolute URL.

        Returns:
            Raw response bytes.
        """
        return self.execute("GET", path, headers={"Accept": "*/*"}).body

    def post(self, path: str, body: Any = None) -> GraphResponse:
        """Perform an authenticated POST request with a JSON body."""
        return self.execute("POST", path, body=body)

    def patch(self, path: str, body: Any, headers: dict[str, str] | None = None) -> dict[str, Any]:
        """Perform an authenticated PATCH request and decode the JSON body."""
        resp = self.execute("PATCH", path, headers=headers, body=body)
        return resp.json_object()

    def delete(self, path: str, headers: dict[str, str] | None = None) -> None:
        """Perform an authenticated DELETE request."""
        self.execute("DELETE", path, headers=headers)

    def put_content(
        self,
        path: str,
        content: bytes,
        content_type: str = "application/octet-stream",
    ) -> dict[str, Any]:
        """Perform an authenticated PUT request uploading raw content.

        Args:
            path: URL path relative to GRAPH_BASE_URL (must start with '/').
            content: Raw bytes to upload.
            content_type: MIME type for the Content-Type header.

        Returns:
            Parsed JSON response body (the written item) as a dict.
        """
        resp = self.execute("PUT", path, headers={"Content-Type": content_type}, body=content)
        return resp.json_object()


def graph_client_from_config(config: AppConfig) -> GraphClient:
    """Construct a GraphClient from application configuration.

    Args:
        config: Application configuration instance.

    Returns:
        Configured GraphClient instance.
    """
    return GraphClient(
        client_id=config.client_id,
        client_secret=config.client_secret,
        tenant_id=config.tenant_id,
        request_timeout=config.request_timeout,
    )
