"""Unit tests for graph/copy.py — copy progress monitor."""

import json
from typing import Any
from unittest.mock import MagicMock

import pytest

from onedrive_client.graph.client import GraphResponse
from onedrive_client.graph.copy import (
    Completed,
    CopyProgressMonitor,
    Failed,
    InProgress,
    NotStarted,
    parse_copy_status,
)
from onedrive_client.graph.errors import MisuseError, ProtocolError

MONITOR_URL = "https://monitor.example/operations/op-1"


def _response(
    status: int, body: Any = None, headers: dict[str, str] | None = None
) -> GraphResponse:
    raw = b"" if body is None else json.dumps(body).encode()
    return GraphResponse(status_code=status, headers=headers or {}, body=raw)


# ---------------------------------------------------------------------------
# parse_copy_status tests
# ---------------------------------------------------------------------------


class TestParseCopyStatus:
    @pytest.mark.parametrize("status", ["notStarted", "waiting"])
    def test_not_started(self, status: str) -> None:
        assert parse_copy_status({"status": status}) == NotStarted()

    @pytest.mark.parametrize("status", ["inProgress", "updating", "cancelPending"])
    def test_in_progress(self, status: str) -> None:
        result = parse_copy_status({"status": status, "percentageComplete": 42.5})
        assert result == InProgress(42.5)
        assert result.is_terminal is False

    def test_in_progress_without_percentage(self) -> None:
        assert parse_copy_status({"status": "inProgress"}) == InProgress(None)

    def test_completed_with_resource_id(self) -> None:
        result = parse_copy_status({"status": "completed", "resourceId": "new-1"})
        assert isinstance(result, Completed)
        assert result.item.id == "new-1"
        assert result.is_terminal is True

    def test_completed_with_item_body(self) -> None:
        result = parse_copy_status({"id": "new-2", "name": "copy.docx"})
        assert isinstance(result, Completed)
        assert result.item.name == "copy.docx"

    def test_completed_without_id_is_protocol_error(self) -> None:
        with pytest.raises(ProtocolError):
            parse_copy_status({"status": "completed"})

    def test_failed_carries_error_object(self) -> None:
        result = parse_copy_status(
            {"status": "failed", "error": {"code": "nameAlreadyExists", "message": "dup"}}
        )
        assert isinstance(result, Failed)
        assert result.error.code == "nameAlreadyExists"
        assert result.is_terminal is True

    def test_cancelled_without_error_body(self) -> None:
        result = parse_copy_status({"status": "cancelled"})
        assert isinstance(result, Failed)
        assert result.error.code == "cancelled"

    def test_unknown_status_is_protocol_error(self) -> None:
        with pytest.raises(ProtocolError):
            parse_copy_status({"status": "exploded"})

    @pytest.mark.parametrize("status", [{"nested": 1}, ["inProgress"], 3])
    def test_non_string_status_is_protocol_error(self, status: Any) -> None:
        with pytest.raises(ProtocolError):
            parse_copy_status({"status": status})

    @pytest.mark.parametrize("percentage", ["abc", {"value": 1}, True])
    def test_non_numeric_percentage_is_protocol_error(self, percentage: Any) -> None:
        with pytest.raises(ProtocolError):
            parse_copy_status({"status": "inProgress", "percentageComplete": percentage})


# ---------------------------------------------------------------------------
# CopyProgressMonitor tests
# ---------------------------------------------------------------------------


class TestCopyProgressMonitor:
    def test_start_posts_copy_and_reads_location(self) -> None:
        client = MagicMock()
        client.execute.return_value = _response(202, headers={"location": MONITOR_URL})

        monitor = CopyProgressMonitor.start(
            client, "/me/drive/items/src", {"driveId": "d1", "id": "dest"}, "copy.txt"
        )

        client.execute.assert_called_once_with(
            "POST",
            "/me/drive/items/src/copy",
            body={"parentReference": {"driveId": "d1", "id": "dest"}, "name": "copy.txt"},
        )
        assert monitor.monitor_url == MONITOR_URL
        assert monitor.status == NotStarted()

    def test_start_without_location_is_protocol_error(self) -> None:
        client = MagicMock()
        client.execute.return_value = _response(202)

        with pytest.raises(ProtocolError):
            CopyProgressMonitor.start(client, "/me/drive/items/src", {"id": "dest"})

    def test_poll_until_completed(self) -> None:
        client = MagicMock()
        client.execute.side_effect = [
            _response(202, {"status": "inProgress", "percentageComplete": 10.0}),
            _response(200, {"status": "completed", "resourceId": "new-1"}),
        ]
        monitor = CopyProgressMonitor(client, MONITOR_URL)

        assert monitor.poll() == InProgress(10.0)
        assert monitor.is_terminal is False
        final = monitor.poll()

        assert isinstance(final, Completed)
        assert monitor.is_terminal is True
        client.execute.assert_called_with("GET", MONITOR_URL, authenticated=False)

    def test_poll_after_terminal_status_is_misuse(self) -> None:
        client = MagicMock()
        monitor = CopyProgressMonitor(client, MONITOR_URL, Completed(MagicMock()))

        with pytest.raises(MisuseError):
            monitor.poll()
        client.execute.assert_not_called()

    def test_poll_after_failure_observed_is_misuse(self) -> None:
        client = MagicMock()
        client.execute.side_effect = [
            _response(202, {"status": "inProgress"}),
            _response(200, {"status": "failed", "error": {"code": "quotaLimitReached"}}),
        ]
        monitor = CopyProgressMonitor(client, MONITOR_URL)
        monitor.poll()
        failed = monitor.poll()
        assert isinstance(failed, Failed)

        with pytest.raises(MisuseError):
            monitor.poll()
        assert client.execute.call_count == 2
        assert monitor.status is failed

    def test_poll_after_completion_observed_is_misuse(self) -> None:
        client = MagicMock()
        client.execute.return_value = _response(200, {"status": "completed", "resourceId": "n"})
        monitor = CopyProgressMonitor(client, MONITOR_URL)
        assert isinstance(monitor.poll(), Completed)

        with pytest.raises(MisuseError):
            monitor.poll()
        client.execute.assert_called_once()

    def test_poll_with_html_body_is_protocol_error(self) -> None:
        client = MagicMock()
        client.execute.return_value = GraphResponse(status_code=200, body=b"<html>oops</html>")
        monitor = CopyProgressMonitor(client, MONITOR_URL)

        with pytest.raises(ProtocolError):
            monitor.poll()
        assert monitor.status == NotStarted()
