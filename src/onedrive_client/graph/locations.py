"""Drive and item locations used to build Graph request paths."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote

# Characters OneDrive rejects in file and folder names
_INVALID_NAME_CHARS = frozenset('/\\*<>?:|"')


def validate_file_name(name: str) -> str:
    """Return ``name`` unchanged if it is a valid OneDrive file name.

    Raises:
        ValueError: If the name is empty or contains a reserved character.
    """
    if not name or any(c in _INVALID_NAME_CHARS for c in name):
        raise ValueError(f"invalid file name: {name!r}")
    return name


@dataclass(frozen=True)
class DriveLocation:
    """A drive addressed through the current user, a user, group, site or id."""

    path: str

    @classmethod
    def me(cls) -> DriveLocation:
        return cls("/me/drive")

    @classmethod
    def from_user(cls, user: str) -> DriveLocation:
        """Drive of a user by UPN or object ID (required with app permissions)."""
        return cls(f"/users/{quote(user, safe='@.')}/drive")

    @classmethod
    def from_group(cls, group_id: str) -> DriveLocation:
        return cls(f"/groups/{quote(group_id)}/drive")

    @classmethod
    def from_site(cls, site_id: str) -> DriveLocation:
        return cls(f"/sites/{quote(site_id, safe=',')}/drive")

    @classmethod
    def from_id(cls, drive_id: str) -> DriveLocation:
        return cls(f"/drives/{quote(drive_id, safe='!')}")


@dataclass(frozen=True)
class ItemLocation:
    """An item addressed by id, by absolute path, or as a named child of an item."""

    path: str

    @classmethod
    def root(cls) -> ItemLocation:
        return cls("/root")

    @classmethod
    def from_id(cls, item_id: str) -> ItemLocation:
        return cls(f"/items/{quote(item_id, safe='!')}")

    @classmethod
    def from_path(cls, path: str) -> ItemLocation:
        """Item at an absolute path such as ``/Documents/report.docx``.

        Raises:
            ValueError: If the path is not absolute.
        """
        if not path.startswith("/"):
            raise ValueError(f"item path must be absolute: {path!r}")
        if path == "/":
            return cls.root()
        return cls(f"/root:{quote(path.rstrip('/'))}:")

    @classmethod
    def child_of_id(cls, parent_id: str, name: str) -> ItemLocation:
        """Item named ``name`` inside the folder ``parent_id`` (may not exist yet)."""
        validate_file_name(name)
        return cls(f"/items/{quote(parent_id, safe='!')}:/{quote(name)}:")

    def child_path(self, name: str) -> str:
        """Path addressing a child of this item by name."""
        validate_file_name(name)
        if self.path.endswith(":"):
            return f"{self.path[:-1]}/{quote(name)}:"
        return f"{self.path}:/{quote(name)}:"
