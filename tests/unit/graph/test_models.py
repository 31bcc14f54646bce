"""Unit tests for graph/models.py — byte ranges, error objects and resources."""

import pytest

from onedrive_client.graph.errors import MisuseError, ProtocolError
from onedrive_client.graph.models import (
    ByteRange,
    ConflictBehavior,
    Drive,
    DriveField,
    DriveItem,
    DriveItemField,
    ErrorObject,
)

# ---------------------------------------------------------------------------
# ByteRange tests
# ---------------------------------------------------------------------------


class TestByteRangeParse:
    def test_bounded_range_upper_is_exclusive(self) -> None:
        assert ByteRange.parse("42-196") == ByteRange(42, 197)

    def test_open_range(self) -> None:
        assert ByteRange.parse("418-") == ByteRange(418, None)

    def test_single_byte_range(self) -> None:
        assert ByteRange.parse("5-5") == ByteRange(5, 6)

    @pytest.mark.parametrize("text", ["", "42-4", "-9", "-", "1-2-3", "0--2", "-1-2"])
    def test_malformed_ranges_rejected(self, text: str) -> None:
        with pytest.raises(ProtocolError):
            ByteRange.parse(text)

    @pytest.mark.parametrize("text", ["a-b", " 1-2", "1-2 ", "+1-2", "1-+2", "١-٢"])
    def test_non_decimal_bounds_rejected(self, text: str) -> None:
        with pytest.raises(ProtocolError):
            ByteRange.parse(text)

    def test_wire_form_round_trips(self) -> None:
        for text in ("0-327679", "418-", "7-7"):
            assert ByteRange.parse(text).to_wire() == text


class TestByteRange:
    def test_reversed_range_cannot_be_built(self) -> None:
        with pytest.raises(ValueError):
            ByteRange(10, 10)

    def test_negative_start_cannot_be_built(self) -> None:
        with pytest.raises(ValueError):
            ByteRange(-1, 4)

    def test_length(self) -> None:
        assert ByteRange(10, 30).length == 20
        assert ByteRange(10).length is None

    def test_content_range_header(self) -> None:
        assert ByteRange(0, 26).content_range(128) == "bytes 0-25/128"

    def test_content_range_requires_bounded_range(self) -> None:
        with pytest.raises(MisuseError):
            ByteRange(5).content_range(10)

    def test_contains(self) -> None:
        assert ByteRange(0, 100).contains(ByteRange(10, 20))
        assert ByteRange(0, 100).contains(ByteRange(0, 100))
        assert not ByteRange(10, 100).contains(ByteRange(5, 20))
        assert not ByteRange(0, 100).contains(ByteRange(50, 101))
        assert ByteRange(50).contains(ByteRange(60, 1000))
        assert not ByteRange(0, 100).contains(ByteRange(50))


# ---------------------------------------------------------------------------
# ConflictBehavior tests
# ---------------------------------------------------------------------------


class TestConflictBehavior:
    def test_wire_values(self) -> None:
        assert [b.value for b in ConflictBehavior] == ["fail", "replace", "rename"]


# ---------------------------------------------------------------------------
# ErrorObject tests
# ---------------------------------------------------------------------------


class TestErrorObject:
    def test_from_json_keeps_unknown_fields_in_extra(self) -> None:
        err = ErrorObject.from_json(
            {"code": "accessDenied", "message": "No", "details": [1], "target": "x"}
        )
        assert err.code == "accessDenied"
        assert err.message == "No"
        assert err.inner_error is None
        assert err.extra == {"details": [1], "target": "x"}

    def test_nested_inner_errors(self) -> None:
        err = ErrorObject.from_json(
            {"code": "a", "innerError": {"code": "b", "innerError": {"code": "c"}}}
        )
        assert [e.code for e in err.chain()] == ["a", "b", "c"]

    def test_from_response_body_requires_error_key(self) -> None:
        assert ErrorObject.from_response_body({"value": []}) is None
        assert ErrorObject.from_response_body("text") is None
        assert ErrorObject.from_response_body({"error": "flat"}) is None

    def test_str(self) -> None:
        assert str(ErrorObject(code="itemNotFound", message="gone")) == "itemNotFound: gone"
        assert str(ErrorObject()) == "unknown error"


# ---------------------------------------------------------------------------
# Resource decoding tests
# ---------------------------------------------------------------------------


class TestDriveItem:
    def test_from_json_maps_camel_case_fields(self) -> None:
        item = DriveItem.from_json(
            {
                "id": "item-001",
                "name": "report.docx",
                "eTag": "etag-1",
                "cTag": "ctag-1",
                "size": 1024,
                "lastModifiedDateTime": "2024-01-01T00:00:00Z",
                "parentReference": {"id": "parent-001", "path": "/drive/root:/Documents"},
                "file": {"mimeType": "application/msword"},
            }
        )
        assert item.id == "item-001"
        assert item.e_tag == "etag-1"
        assert item.c_tag == "ctag-1"
        assert item.size == 1024
        assert item.last_modified_date_time == "2024-01-01T00:00:00Z"
        assert item.parent_id == "parent-001"
        assert item.parent_path == "/drive/root:/Documents"
        assert item.is_file is True
        assert item.is_folder is False
        assert item.is_deleted is False

    def test_download_url_annotation_decoded_under_prefixed_name(self) -> None:
        item = DriveItem.from_json(
            {"id": "x", "@microsoft.graph.downloadUrl": "https://dl.example/x"}
        )
        assert item.download_url == "https://dl.example/x"
        assert "@microsoft.graph.downloadUrl" not in item.extra

    def test_unmodelled_fields_pass_through(self) -> None:
        item = DriveItem.from_json({"id": "x", "malware": {"description": "bad"}})
        assert item.extra == {"malware": {"description": "bad"}}

    def test_children_decoded_recursively(self) -> None:
        item = DriveItem.from_json(
            {"id": "folder", "folder": {"childCount": 1}, "children": [{"id": "c1", "name": "a"}]}
        )
        assert item.is_folder is True
        assert item.children is not None
        assert isinstance(item.children[0], DriveItem)
        assert item.children[0].name == "a"

    def test_deleted_marker(self) -> None:
        item = DriveItem.from_json({"id": "gone", "deleted": {"state": "deleted"}})
        assert item.is_deleted is True

    def test_typed_accessor(self) -> None:
        item = DriveItem.from_json({"id": "x", "size": 3})
        assert item.get(DriveItemField.size) == 3
        assert item.get(DriveItemField.name) is None

    def test_typed_accessor_rejects_foreign_field(self) -> None:
        item = DriveItem(id="x")
        with pytest.raises(MisuseError):
            item.get(DriveField.name)  # type: ignore[arg-type]


class TestDrive:
    def test_from_json_with_root_item(self) -> None:
        drive = Drive.from_json(
            {
                "id": "drive-1",
                "driveType": "business",
                "quota": {"used": 10},
                "root": {"id": "root-id", "folder": {}},
                "special": [{"id": "docs"}],
            }
        )
        assert drive.id == "drive-1"
        assert drive.drive_type == "business"
        assert drive.quota == {"used": 10}
        assert isinstance(drive.root, DriveItem)
        assert drive.root.is_folder is True
        assert drive.special is not None
        assert drive.special[0].id == "docs"
        assert drive.get(DriveField.id) == "drive-1"
