"""Unit tests for graph/locations.py."""

import pytest

from onedrive_client.graph.locations import DriveLocation, ItemLocation, validate_file_name


class TestDriveLocation:
    def test_paths(self) -> None:
        assert DriveLocation.me().path == "/me/drive"
        assert DriveLocation.from_user("alice@contoso.com").path == "/users/alice@contoso.com/drive"
        assert DriveLocation.from_group("g-1").path == "/groups/g-1/drive"
        assert DriveLocation.from_id("b!abc").path == "/drives/b!abc"

    def test_site_id_keeps_commas(self) -> None:
        assert DriveLocation.from_site("host,a,b").path == "/sites/host,a,b/drive"


class TestItemLocation:
    def test_root_and_id(self) -> None:
        assert ItemLocation.root().path == "/root"
        assert ItemLocation.from_id("01ABC").path == "/items/01ABC"

    def test_from_path_is_quoted(self) -> None:
        assert ItemLocation.from_path("/Documents/My File.txt").path == (
            "/root:/Documents/My%20File.txt:"
        )

    def test_from_path_slash_is_root(self) -> None:
        assert ItemLocation.from_path("/") == ItemLocation.root()

    def test_from_path_must_be_absolute(self) -> None:
        with pytest.raises(ValueError):
            ItemLocation.from_path("Documents")

    def test_child_of_id(self) -> None:
        assert ItemLocation.child_of_id("p-1", "a b.md").path == "/items/p-1:/a%20b.md:"

    def test_child_path_of_path_location(self) -> None:
        assert ItemLocation.from_path("/Docs").child_path("x.txt") == "/root:/Docs/x.txt:"
        assert ItemLocation.from_id("p-1").child_path("x.txt") == "/items/p-1:/x.txt:"


class TestValidateFileName:
    @pytest.mark.parametrize("name", ["", "a/b", "a:b", "what?", 'q"uote'])
    def test_invalid_names_rejected(self, name: str) -> None:
        with pytest.raises(ValueError):
            validate_file_name(name)

    def test_valid_name_returned(self) -> None:
        assert validate_file_name("report (final).docx") == "report (final).docx"
