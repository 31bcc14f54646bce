"""Error taxonomy shared by the request layer and the protocol drivers."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from onedrive_client.graph.models import ErrorObject


class DriveError(Exception):
    """Base class for every error raised by this package."""

    @property
    def retryable(self) -> bool:
        """Whether repeating the identical call may succeed."""
        return False


class GraphAuthError(DriveError):
    """Raised when MSAL token acquisition fails."""


class TransportError(DriveError):
    """Raised when no usable Graph response was received.

    Covers connection failures and timeouts (``status_code`` is None) as well
    as non-2xx responses whose body is not a Graph error object.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        return self.status_code is None or self.status_code >= 500 or self.status_code == 429


class ApiError(DriveError):
    """Raised when the Graph API returns a non-2xx response with an error object."""

    def __init__(self, status_code: int, error: ErrorObject) -> None:
        self.status_code = status_code
        self.error = error
        self.message = error.message or error.code or "unknown error"
        super().__init__(f"Graph API error {status_code}: {error}")

    @property
    def code(self) -> str | None:
        return self.error.code

    @property
    def retryable(self) -> bool:
        return self.status_code >= 500


class UnauthorizedError(ApiError):
    """HTTP 401: the access token is missing or expired."""


class ForbiddenError(ApiError):
    """HTTP 403: the app lacks permission for the operation."""


class NotFoundError(ApiError):
    """HTTP 404: the item, drive or session does not exist."""


class ConflictError(ApiError):
    """HTTP 409: the operation collides with an existing item."""


class GoneError(ApiError):
    """HTTP 410: the resource expired, e.g. a delta link requiring a resync."""


class PreconditionFailedError(ApiError):
    """HTTP 412: an ``If-Match`` tag no longer matches."""


class ThrottledError(ApiError):
    """HTTP 429 or 503: the service asks the caller to back off.

    ``retry_after`` carries the ``Retry-After`` header in seconds when present.
    """

    def __init__(
        self, status_code: int, error: ErrorObject, retry_after: int | None = None
    ) -> None:
        super().__init__(status_code, error)
        self.retry_after = retry_after

    @property
    def retryable(self) -> bool:
        return True


class ProtocolError(DriveError):
    """Raised when a well-formed response violates the expected protocol."""


class MisuseError(DriveError):
    """Raised when the caller breaks a precondition of a driver or builder."""


_STATUS_ERRORS: dict[int, type[ApiError]] = {
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
    409: ConflictError,
    410: GoneError,
    412: PreconditionFailedError,
}


def api_error_for_status(
    status_code: int, error: ErrorObject, retry_after: int | None = None
) -> ApiError:
    """Build the ApiError subclass matching an HTTP status code.

    Args:
        status_code: HTTP status of the failed response.
        error: Parsed Graph error object.
        retry_after: Parsed ``Retry-After`` header, if any.

    Returns:
        An ApiError instance (not raised).
    """
    if status_code in (429, 503):
        return ThrottledError(status_code, error, retry_after)
    return _STATUS_ERRORS.get(status_code, ApiError)(status_code, error)
