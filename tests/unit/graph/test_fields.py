"""Unit tests for graph/fields.py."""

import pytest

from onedrive_client.graph.fields import FieldDescriptor, FieldSet, snake_to_camel
from onedrive_client.graph.models import Drive, DriveField, DriveItem, DriveItemField


class TestSnakeToCamel:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("abc", "abc"),
            ("hello_world", "helloWorld"),
            ("wh_tst_ef_ck", "whTstEfCk"),
            ("id", "id"),
            ("e_tag", "eTag"),
            ("c_tag", "cTag"),
            ("last_modified_date_time", "lastModifiedDateTime"),
            ("web_dav_url", "webDavUrl"),
        ],
    )
    def test_translation(self, name: str, expected: str) -> None:
        assert snake_to_camel(name) == expected


class TestFieldDescriptor:
    def test_bound_name_and_repr(self) -> None:
        assert DriveItemField.e_tag.name == "e_tag"
        assert DriveItemField.e_tag.field_name == "eTag"
        assert repr(DriveItemField.e_tag) == "DriveItemField.e_tag"

    def test_explicit_wire_name(self) -> None:
        assert DriveItemField.download_url.field_name == "@microsoft.graph.downloadUrl"
        assert DriveItemField.download_url.selectable is False

    def test_target_implies_relationship(self) -> None:
        assert DriveItemField.children.relationship is True
        assert DriveItemField.children.target is DriveItem
        assert DriveItemField.name.relationship is False


class TestFieldSet:
    def test_selectable_excludes_annotations(self) -> None:
        selectable = DriveItemField.selectable()
        assert DriveItemField.id in selectable
        assert DriveItemField.download_url not in selectable
        assert DriveItemField.download_url in DriveItemField.all()

    def test_sets_are_closed_per_resource(self) -> None:
        assert all(d.resource is DriveItem for d in DriveItemField.all())
        assert all(d.resource is Drive for d in DriveField.all())

    def test_by_name(self) -> None:
        assert DriveField.by_name("drive_type") is DriveField.drive_type
        with pytest.raises(KeyError):
            DriveField.by_name("e_tag")

    def test_foreign_descriptor_rejected_at_declaration(self) -> None:
        with pytest.raises(TypeError):

            class _Broken(FieldSet):
                resource = Drive

                name = FieldDescriptor(DriveItem, str)
