"""Monitor for asynchronous, server-side copy operations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

from onedrive_client.graph.errors import MisuseError, ProtocolError
from onedrive_client.graph.models import DriveItem, ErrorObject

if TYPE_CHECKING:
    from onedrive_client.graph.client import GraphClient

logger = logging.getLogger(__name__)

# Monitor response field names
FIELD_STATUS = "status"
FIELD_PERCENTAGE_COMPLETE = "percentageComplete"
FIELD_RESOURCE_ID = "resourceId"

HEADER_LOCATION = "Location"

_NOT_STARTED = frozenset({"notStarted", "waiting"})
_IN_PROGRESS = frozenset({"inProgress", "updating", "cancelPending"})
_COMPLETED = frozenset({"completed"})
_FAILED = frozenset({"failed", "cancelled"})


@dataclass(frozen=True)
class NotStarted:
    """The copy has been accepted but not started yet."""

    is_terminal = False


@dataclass(frozen=True)
class InProgress:
    """The copy is running. ``percentage`` is informational and may go backwards."""

    percentage: float | None = None
    is_terminal = False


@dataclass(frozen=True)
class Completed:
    """The copy finished; ``item`` is the new item (possibly only its id)."""

    item: DriveItem
    is_terminal = True


@dataclass(frozen=True)
class Failed:
    """The copy failed or was cancelled server-side."""

    error: ErrorObject
    is_terminal = True


CopyStatus = Union[NotStarted, InProgress, Completed, Failed]


class CopyProgressMonitor:
    """Tracks one copy operation through its monitor URL.

    Each :meth:`poll` performs exactly one request and never sleeps; callers
    choose their own poll interval. Once a terminal status is observed the
    monitor refuses to poll again.
    """

    def __init__(
        self, client: GraphClient, monitor_url: str, status: CopyStatus | None = None
    ) -> None:
        """Wrap a monitor URL.

        Args:
            client: GraphClient used to poll.
            monitor_url: URL from the ``Location`` header of the copy response.
            status: Last known status; defaults to NotStarted.
        """
        self._client = client
        self._monitor_url = monitor_url
        self._status: CopyStatus = status if status is not None else NotStarted()

    @classmethod
    def start(
        cls,
        client: GraphClient,
        source_path: str,
        parent_reference: dict[str, str],
        new_name: str | None = None,
    ) -> CopyProgressMonitor:
        """Ask the server to copy an item and return a monitor for the operation.

        Args:
            client: GraphClient used for the request and later polls.
            source_path: Graph path of the source item.
            parent_reference: Destination folder reference, e.g.
                ``{"driveId": ..., "id": ...}``.
            new_name: Name of the copy; defaults to the source name.

        Returns:
            A monitor in the NotStarted state.

        Raises:
            ProtocolError: If the response has no ``Location`` header.
        """
        body: dict[str, Any] = {"parentReference": parent_reference}
        if new_name is not None:
            body["name"] = new_name
        resp = client.execute("POST", f"{source_path}/copy", body=body)
        monitor_url = resp.header(HEADER_LOCATION)
        if not monitor_url:
            raise ProtocolError("copy response has no Location header")
        logger.info("[start] copy accepted; source_path:%s", source_path)
        return cls(client, monitor_url)

    @property
    def monitor_url(self) -> str:
        return self._monitor_url

    @property
    def status(self) -> CopyStatus:
        return self._status

    @property
    def is_terminal(self) -> bool:
        return self._status.is_terminal

    def poll(self) -> CopyStatus:
        """Fetch the current status of the copy.

        Returns:
            The new status, also stored on the monitor.

        Raises:
            MisuseError: If a terminal status was already observed.
            ProtocolError: If the status in the response is not recognised.
        """
        if self._status.is_terminal:
            raise MisuseError(f"copy already finished with {type(self._status).__name__}")
        resp = self._client.execute("GET", self._monitor_url, authenticated=False)
        status = parse_copy_status(resp.json_object())
        self._status = status
        logger.debug("[poll] copy status; status:%s", status)
        return status


def parse_copy_status(raw: dict[str, Any]) -> CopyStatus:
    """Map a monitor response body to a CopyStatus.

    Raises:
        ProtocolError: If the body carries an unknown status or no usable result.
    """
    status = raw.get(FIELD_STATUS)
    if status is None and "id" in raw:
        # Completed monitors may redirect to the new item itself.
        return Completed(DriveItem.from_json(raw))
    if not isinstance(status, str):
        raise ProtocolError(f"copy status must be a string, got {status!r}")
    if status in _NOT_STARTED:
        return NotStarted()
    if status in _IN_PROGRESS:
        return InProgress(_parse_percentage(raw.get(FIELD_PERCENTAGE_COMPLETE)))
    if status in _COMPLETED:
        if "id" in raw:
            return Completed(DriveItem.from_json(raw))
        resource_id = raw.get(FIELD_RESOURCE_ID)
        if not resource_id:
            raise ProtocolError("completed copy status has no resourceId")
        return Completed(DriveItem(id=resource_id))
    if status in _FAILED:
        error = ErrorObject.from_response_body(raw) or ErrorObject(
            code=status, message="copy operation did not complete"
        )
        return Failed(error)
    raise ProtocolError(f"unrecognised copy status {status!r}")


def _parse_percentage(value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ProtocolError(f"percentageComplete must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ProtocolError(f"percentageComplete must be a number, got {value!r}") from exc
