"""Caller-side loops around the upload and copy drivers: retries, backoff, polling."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from onedrive_client.graph.errors import DriveError, ProtocolError, ThrottledError
from onedrive_client.graph.models import ByteRange, ConflictBehavior
from onedrive_client.graph.upload import UPLOAD_CHUNK_ALIGNMENT

if TYPE_CHECKING:
    from onedrive_client.config import AppConfig
    from onedrive_client.graph.copy import CopyProgressMonitor, CopyStatus
    from onedrive_client.graph.drive import DriveClient
    from onedrive_client.graph.locations import ItemLocation
    from onedrive_client.graph.models import DriveItem
    from onedrive_client.graph.upload import UploadSession

logger = logging.getLogger(__name__)

# Retry defaults
DEFAULT_CHUNK_SIZE = 10 * 1024 * 1024
DEFAULT_MAX_RETRIES = 3
DEFAULT_BACKOFF = 1.0
DEFAULT_POLL_INTERVAL = 1.0


def upload_file(
    drive: DriveClient,
    item: ItemLocation,
    content: bytes,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    max_retries: int = DEFAULT_MAX_RETRIES,
    conflict_behavior: ConflictBehavior = ConflictBehavior.REPLACE,
    backoff: float = DEFAULT_BACKOFF,
    sleep: Callable[[float], None] = time.sleep,
) -> DriveItem:
    """Upload ``content`` to ``item`` through a resumable upload session.

    Empty files cannot go through an upload session and are sent in a single
    request instead.

    Args:
        drive: DriveClient owning the target drive.
        item: Location of the file to write.
        content: Full file content.
        chunk_size: Initial chunk size; a multiple of 320 KiB.
        max_retries: Consecutive retryable failures tolerated per chunk.
        conflict_behavior: What to do if the file already exists.
        backoff: Base delay in seconds, doubled after each consecutive failure.
        sleep: Sleep function, injectable for tests.

    Returns:
        The uploaded item.
    """
    if not content:
        return drive.upload_small(item, content, conflict_behavior)
    session = drive.new_upload_session(item, len(content), conflict_behavior)
    return upload_with_session(session, content, chunk_size, max_retries, backoff, sleep)


def upload_file_from_config(
    config: AppConfig,
    drive: DriveClient,
    item: ItemLocation,
    content: bytes,
    conflict_behavior: ConflictBehavior = ConflictBehavior.REPLACE,
) -> DriveItem:
    """Upload ``content`` with the chunk size and retry budget from configuration."""
    return upload_file(
        drive,
        item,
        content,
        chunk_size=config.upload_chunk_size,
        max_retries=config.max_retries,
        conflict_behavior=conflict_behavior,
    )


def upload_with_session(
    session: UploadSession,
    content: bytes,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    max_retries: int = DEFAULT_MAX_RETRIES,
    backoff: float = DEFAULT_BACKOFF,
    sleep: Callable[[float], None] = time.sleep,
) -> DriveItem:
    """Send the missing ranges of ``session`` until the server returns the item.

    After a retryable failure the chunk size is halved (not below 320 KiB),
    the loop sleeps, then re-reads the missing ranges from the server so that
    bytes it already committed are not sent again.

    Raises:
        DriveError: The last error once ``max_retries`` consecutive attempts
            failed, or immediately for non-retryable errors.
        ProtocolError: If the server stops expecting bytes without returning
            the item.
    """
    if len(content) != session.file_size:
        raise ValueError(f"content has {len(content)} bytes, session expects {session.file_size}")
    chunk = chunk_size
    failures = 0
    needs_refresh = False
    while True:
        try:
            if needs_refresh:
                session.refresh()
                needs_refresh = False
            byte_range = _next_chunk(session, chunk)
            uploaded = session.upload_chunk(byte_range, content[byte_range.start : byte_range.end])
        except DriveError as exc:
            if not exc.retryable or failures >= max_retries:
                logger.error(
                    "[upload_with_session] giving up; failures:%d;committed_bytes:%d",
                    failures,
                    session.committed_bytes,
                )
                raise
            failures += 1
            chunk = _halve_chunk(chunk)
            delay = backoff * 2 ** (failures - 1)
            if isinstance(exc, ThrottledError) and exc.retry_after is not None:
                delay = float(exc.retry_after)
            logger.warning(
                "[upload_with_session] chunk failed, retrying; attempt:%d;chunk_size:%d;delay:%.1f",
                failures,
                chunk,
                delay,
            )
            sleep(delay)
            needs_refresh = True
            continue
        failures = 0
        if uploaded is not None:
            return uploaded


def _halve_chunk(chunk_size: int) -> int:
    """Halve a chunk size, keeping it a multiple of 320 KiB."""
    halved = chunk_size // 2 // UPLOAD_CHUNK_ALIGNMENT * UPLOAD_CHUNK_ALIGNMENT
    return max(UPLOAD_CHUNK_ALIGNMENT, halved)


def _next_chunk(session: UploadSession, chunk_size: int) -> ByteRange:
    """Pick the next chunk from the first missing range."""
    ranges = session.next_expected_ranges
    if not ranges:
        raise ProtocolError("server expects no more bytes but returned no item")
    missing = ranges[0]
    limit = session.file_size if missing.end is None else missing.end
    if missing.start >= limit:
        raise ProtocolError(f"server expects range {missing} beyond file size {session.file_size}")
    return ByteRange(missing.start, min(limit, missing.start + chunk_size))


def wait_for_copy(
    monitor: CopyProgressMonitor,
    interval: float = DEFAULT_POLL_INTERVAL,
    timeout: float | None = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> CopyStatus:
    """Poll ``monitor`` until the copy reaches a terminal status.

    Args:
        monitor: Monitor returned by ``DriveClient.copy``.
        interval: Seconds to sleep between polls.
        timeout: Give up after this many seconds; None waits indefinitely.
        sleep: Sleep function, injectable for tests.
        clock: Monotonic clock, injectable for tests.

    Returns:
        The terminal status (Completed or Failed).

    Raises:
        TimeoutError: If the copy is still running after ``timeout`` seconds.
    """
    deadline = None if timeout is None else clock() + timeout
    status = monitor.poll()
    while not status.is_terminal:
        if deadline is not None and clock() >= deadline:
            raise TimeoutError(f"copy did not finish within {timeout} seconds")
        sleep(interval)
        status = monitor.poll()
    logger.info("[wait_for_copy] copy finished; status:%s", type(status).__name__)
    return status


def wait_for_copy_from_config(
    config: AppConfig, monitor: CopyProgressMonitor, timeout: float | None = None
) -> CopyStatus:
    """Poll ``monitor`` at the configured interval until the copy finishes."""
    return wait_for_copy(monitor, interval=config.copy_poll_interval, timeout=timeout)
