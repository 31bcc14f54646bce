"""Resumable upload sessions for large files."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from onedrive_client.graph.errors import MisuseError, ProtocolError
from onedrive_client.graph.models import (
    ANNOTATION_CONFLICT_BEHAVIOR,
    ByteRange,
    ConflictBehavior,
    DriveItem,
)

if TYPE_CHECKING:
    from onedrive_client.graph.client import GraphClient, GraphResponse

logger = logging.getLogger(__name__)

# Upload session JSON field names
FIELD_UPLOAD_URL = "uploadUrl"
FIELD_NEXT_EXPECTED_RANGES = "nextExpectedRanges"
FIELD_EXPIRATION_DATE_TIME = "expirationDateTime"

# Chunk sizes must be a multiple of this, except for the last chunk
UPLOAD_CHUNK_ALIGNMENT = 320 * 1024


class UploadSession:
    """One resumable upload, bound to a server-issued upload URL and a file size.

    The session tracks the byte ranges the server still expects. Each
    :meth:`upload_chunk` call performs exactly one request; a failed call leaves
    the tracked ranges untouched, so the same chunk may be sent again. No retry
    is attempted here.

    A session is owned by one caller at a time and is not thread-safe.
    """

    def __init__(
        self,
        client: GraphClient,
        upload_url: str,
        file_size: int,
        conflict_behavior: ConflictBehavior = ConflictBehavior.FAIL,
        next_expected_ranges: list[ByteRange] | None = None,
        expiration_date_time: str | None = None,
    ) -> None:
        """Wrap an existing upload URL.

        Args:
            client: GraphClient used to send chunks.
            upload_url: Pre-authenticated upload URL issued by the server.
            file_size: Total size of the file in bytes.
            conflict_behavior: Behavior the session was created with.
            next_expected_ranges: Ranges the server still expects; defaults to
                the whole file.
            expiration_date_time: ISO 8601 expiry of the upload URL, if known.
        """
        if file_size < 0:
            raise MisuseError(f"file size must not be negative, got {file_size}")
        self._client = client
        self._upload_url = upload_url
        self._file_size = file_size
        self._conflict_behavior = conflict_behavior
        self._ranges = (
            list(next_expected_ranges) if next_expected_ranges is not None else [ByteRange(0)]
        )
        self._expiration = expiration_date_time
        self._finished = False

    @classmethod
    def create(
        cls,
        client: GraphClient,
        item_path: str,
        file_size: int,
        conflict_behavior: ConflictBehavior = ConflictBehavior.FAIL,
    ) -> UploadSession:
        """Start a new upload session for the item at ``item_path``.

        Args:
            client: GraphClient used for every request of the session.
            item_path: Graph path of the target item, e.g.
                ``/me/drive/items/{parent-id}:/{file-name}:``.
            file_size: Total size of the file in bytes.
            conflict_behavior: What to do if the item already exists; fixed for
                the lifetime of the session.

        Returns:
            A session expecting the whole file.

        Raises:
            ProtocolError: If the response carries no upload URL.
        """
        body = {"item": {ANNOTATION_CONFLICT_BEHAVIOR: conflict_behavior.value}}
        resp = client.execute("POST", f"{item_path}/createUploadSession", body=body)
        raw = resp.json_object()
        upload_url = raw.get(FIELD_UPLOAD_URL)
        if not upload_url:
            raise ProtocolError("createUploadSession response has no uploadUrl")
        logger.info(
            "[create] upload session created; file_size:%d;conflict_behavior:%s",
            file_size,
            conflict_behavior.value,
        )
        ranges = None
        if FIELD_NEXT_EXPECTED_RANGES in raw:
            ranges = _parse_ranges(raw[FIELD_NEXT_EXPECTED_RANGES])
        return cls(
            client,
            upload_url,
            file_size,
            conflict_behavior,
            ranges,
            raw.get(FIELD_EXPIRATION_DATE_TIME),
        )

    @classmethod
    def resume(cls, client: GraphClient, upload_url: str, file_size: int) -> UploadSession:
        """Re-attach to an upload URL obtained earlier and fetch its missing ranges.

        Args:
            client: GraphClient used for every request of the session.
            upload_url: Upload URL persisted from a previous session.
            file_size: Total size of the file in bytes.

        Returns:
            A session reflecting the server's current view of the upload.
        """
        session = cls(client, upload_url, file_size)
        session.refresh()
        return session

    @property
    def upload_url(self) -> str:
        return self._upload_url

    @property
    def file_size(self) -> int:
        return self._file_size

    @property
    def conflict_behavior(self) -> ConflictBehavior:
        return self._conflict_behavior

    @property
    def next_expected_ranges(self) -> list[ByteRange]:
        """Ranges not yet committed, as of the last response observed."""
        return list(self._ranges)

    @property
    def expiration_date_time(self) -> str | None:
        return self._expiration

    @property
    def is_finished(self) -> bool:
        return self._finished

    @property
    def committed_bytes(self) -> int:
        """Number of bytes the server has acknowledged."""
        missing = sum(
            (r.end if r.end is not None else self._file_size) - r.start for r in self._ranges
        )
        return self._file_size - missing

    def refresh(self) -> None:
        """Fetch the current missing ranges from the upload URL."""
        self._ensure_active()
        resp = self._client.execute("GET", self._upload_url, authenticated=False)
        self._apply_status(resp.json_object())

    def upload_chunk(self, byte_range: ByteRange, data: bytes) -> DriveItem | None:
        """Send one chunk of the file.

        Args:
            byte_range: Bounded range of the file covered by ``data``; must lie
                within one of :attr:`next_expected_ranges`.
            data: Chunk content, exactly ``byte_range.length`` bytes.

        Returns:
            The uploaded item once the server has received every byte, else None.

        Raises:
            MisuseError: If the session is finished or the chunk does not match
                an expected range.
            ProtocolError: If the server reply cannot be interpreted.
        """
        self._ensure_active()
        if byte_range.end is None:
            raise MisuseError("chunk range must be bounded")
        if len(data) != byte_range.length:
            raise MisuseError(
                f"chunk has {len(data)} bytes but range {byte_range} spans {byte_range.length}"
            )
        if byte_range.end > self._file_size:
            raise MisuseError(f"chunk range {byte_range} exceeds file size {self._file_size}")
        if not any(missing.contains(byte_range) for missing in self._ranges):
            raise MisuseError(f"chunk range {byte_range} is not expected by the server")

        headers = {
            "Content-Range": byte_range.content_range(self._file_size),
            "Content-Length": str(len(data)),
            "Content-Type": "application/octet-stream",
        }
        resp = self._client.execute(
            "PUT", self._upload_url, headers=headers, body=data, authenticated=False
        )
        return self._handle_chunk_response(byte_range, resp)

    def cancel(self) -> None:
        """Delete the session on the server; already uploaded bytes are discarded."""
        self._ensure_active()
        self._client.execute("DELETE", self._upload_url, authenticated=False)
        self._finished = True
        logger.info("[cancel] upload session cancelled")

    def _handle_chunk_response(
        self, byte_range: ByteRange, resp: GraphResponse
    ) -> DriveItem | None:
        raw = resp.json()
        if resp.status_code in (200, 201):
            if not isinstance(raw, dict):
                raise ProtocolError("upload completion response has no item body")
            self._ranges = []
            self._finished = True
            logger.info("[upload_chunk] upload complete; file_size:%d", self._file_size)
            return DriveItem.from_json(raw)
        if resp.status_code == 202:
            self._apply_status(raw or {})
            logger.debug(
                "[upload_chunk] chunk accepted; range:%s;missing_ranges:%d",
                byte_range,
                len(self._ranges),
            )
            return None
        raise ProtocolError(f"unexpected upload chunk status {resp.status_code}")

    def _apply_status(self, raw: Any) -> None:
        if not isinstance(raw, dict) or FIELD_NEXT_EXPECTED_RANGES not in raw:
            raise ProtocolError("upload session status has no nextExpectedRanges")
        self._ranges = _parse_ranges(raw[FIELD_NEXT_EXPECTED_RANGES])
        self._expiration = raw.get(FIELD_EXPIRATION_DATE_TIME, self._expiration)

    def _ensure_active(self) -> None:
        if self._finished:
            raise MisuseError("upload session is already finished")


def _parse_ranges(values: Any) -> list[ByteRange]:
    if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
        raise ProtocolError(f"nextExpectedRanges must be a list of strings, got {values!r}")
    return [ByteRange.parse(v) for v in values]
