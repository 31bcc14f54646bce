"""Data models for OneDrive resources, byte ranges and Graph error objects."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeVar

from onedrive_client.graph.errors import MisuseError, ProtocolError
from onedrive_client.graph.fields import FieldDescriptor, FieldSet

# OData response keys
ODATA_DELTA_LINK = "@odata.deltaLink"
ODATA_NEXT_LINK = "@odata.nextLink"
ODATA_VALUE = "value"

# Instance annotations
ANNOTATION_CONFLICT_BEHAVIOR = "@microsoft.graph.conflictBehavior"
ANNOTATION_DOWNLOAD_URL = "@microsoft.graph.downloadUrl"

# Graph error body key
FIELD_ERROR = "error"

V = TypeVar("V")


class ConflictBehavior(str, Enum):
    """Conflict resolution for operations that create a new item."""

    FAIL = "fail"
    REPLACE = "replace"
    RENAME = "rename"


@dataclass(frozen=True)
class ByteRange:
    """Half-open byte range ``[start, end)``; ``end`` None means "to end of file".

    On the wire the upper bound is inclusive: ``"42-196"`` is
    ``ByteRange(42, 197)`` and ``"418-"`` is ``ByteRange(418, None)``.
    """

    start: int
    end: int | None = None

    def __post_init__(self) -> None:
        if self.start < 0:
            raise ValueError(f"negative range start: {self.start}")
        if self.end is not None and self.end <= self.start:
            raise ValueError(f"empty or reversed range: {self.start}..{self.end}")

    @classmethod
    def parse(cls, text: str) -> ByteRange:
        """Parse ``"{lower}-{upper}"`` or ``"{lower}-"``.

        Raises:
            ProtocolError: If the text is malformed, empty or reversed.
        """
        parts = text.split("-")
        if len(parts) != 2 or not _is_decimal(parts[0]):
            raise ProtocolError(f"invalid byte range {text!r}; expected '{{lower}}-{{upper}}'")
        lower, upper = parts
        start = int(lower)
        if upper == "":
            return cls(start)
        if not _is_decimal(upper) or int(upper) < start:
            raise ProtocolError(f"invalid byte range {text!r}; expected '{{lower}}-{{upper}}'")
        return cls(start, int(upper) + 1)

    @property
    def length(self) -> int | None:
        return None if self.end is None else self.end - self.start

    def to_wire(self) -> str:
        return f"{self.start}-" if self.end is None else f"{self.start}-{self.end - 1}"

    def content_range(self, total: int) -> str:
        """Render the ``Content-Range`` header value for a bounded chunk."""
        if self.end is None:
            raise MisuseError("an open-ended range has no Content-Range")
        return f"bytes {self.start}-{self.end - 1}/{total}"

    def contains(self, other: ByteRange) -> bool:
        """Return True if ``other`` lies entirely within this range."""
        if other.start < self.start:
            return False
        if self.end is None:
            return True
        return other.end is not None and other.end <= self.end

    def __str__(self) -> str:
        return self.to_wire()


def _is_decimal(text: str) -> bool:
    return text.isascii() and text.isdigit()


@dataclass
class ErrorObject:
    """Error resource returned by Graph, possibly nesting an inner error."""

    code: str | None = None
    message: str | None = None
    inner_error: ErrorObject | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_json(cls, raw: dict[str, Any]) -> ErrorObject:
        """Build an ErrorObject from the value of a Graph ``error`` key."""
        extra = {k: v for k, v in raw.items() if k not in ("code", "message", "innerError")}
        inner = raw.get("innerError")
        return cls(
            code=raw.get("code"),
            message=raw.get("message"),
            inner_error=cls.from_json(inner) if isinstance(inner, dict) else None,
            extra=extra,
        )

    @classmethod
    def from_response_body(cls, body: Any) -> ErrorObject | None:
        """Return the error object of a decoded response body, or None if absent."""
        if not isinstance(body, dict):
            return None
        raw = body.get(FIELD_ERROR)
        if not isinstance(raw, dict):
            return None
        return cls.from_json(raw)

    def chain(self) -> Iterator[ErrorObject]:
        """Yield this error followed by each nested inner error."""
        current: ErrorObject | None = self
        while current is not None:
            yield current
            current = current.inner_error

    def __str__(self) -> str:
        return ": ".join(part for part in (self.code, self.message) if part) or "unknown error"


def _decode(cls: type[Any], field_set: type[FieldSet], raw: dict[str, Any]) -> Any:
    """Decode a raw resource dict into ``cls`` using its field set's wire names."""
    values: dict[str, Any] = {}
    consumed: set[str] = set()
    for descriptor in field_set.all():
        wire = descriptor.field_name
        consumed.add(wire)
        if wire not in raw:
            continue
        value = raw[wire]
        target = descriptor.target
        if target is not None and isinstance(value, list):
            value = [target.from_json(v) for v in value]
        elif target is not None and isinstance(value, dict):
            value = target.from_json(value)
        values[descriptor.name] = value
    extra = {k: v for k, v in raw.items() if k not in consumed}
    return cls(**values, extra=extra)


@dataclass
class Drive:
    """The top level object representing a user's OneDrive or a document library."""

    id: str | None = None
    created_by: dict[str, Any] | None = None
    created_date_time: str | None = None
    description: str | None = None
    drive_type: str | None = None
    items: list[DriveItem] | None = None
    last_modified_by: dict[str, Any] | None = None
    last_modified_date_time: str | None = None
    name: str | None = None
    owner: dict[str, Any] | None = None
    quota: dict[str, Any] | None = None
    root: DriveItem | None = None
    sharepoint_ids: dict[str, Any] | None = None
    special: list[DriveItem] | None = None
    system: dict[str, Any] | None = None
    web_url: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_json(cls, raw: dict[str, Any]) -> Drive:
        return _decode(cls, DriveField, raw)  # type: ignore[no-any-return]

    def get(self, descriptor: FieldDescriptor[Drive, V]) -> V | None:
        if descriptor.resource is not Drive:
            raise MisuseError(f"{descriptor!r} is not a field of Drive")
        return getattr(self, descriptor.name)  # type: ignore[no-any-return]


@dataclass
class DriveItem:
    """A file, folder or other item stored in a drive.

    Every attribute is optional: partial responses (``$select``) and delta
    pages only carry a subset. Keys not modelled here are kept in ``extra``.
    """

    # Drive item
    audio: dict[str, Any] | None = None
    content: dict[str, Any] | None = None
    c_tag: str | None = None
    deleted: dict[str, Any] | None = None
    description: str | None = None
    file: dict[str, Any] | None = None
    file_system_info: dict[str, Any] | None = None
    folder: dict[str, Any] | None = None
    image: dict[str, Any] | None = None
    location: dict[str, Any] | None = None
    package: dict[str, Any] | None = None
    photo: dict[str, Any] | None = None
    publication: dict[str, Any] | None = None
    remote_item: dict[str, Any] | None = None
    root: dict[str, Any] | None = None
    search_result: dict[str, Any] | None = None
    shared: dict[str, Any] | None = None
    sharepoint_ids: dict[str, Any] | None = None
    size: int | None = None
    special_folder: dict[str, Any] | None = None
    video: dict[str, Any] | None = None
    web_dav_url: str | None = None

    # Relationships
    children: list[DriveItem] | None = None
    created_by_user: dict[str, Any] | None = None
    last_modified_by_user: dict[str, Any] | None = None
    permissions: list[Any] | None = None
    thumbnails: list[Any] | None = None
    versions: list[Any] | None = None

    # Base item
    id: str | None = None
    created_by: dict[str, Any] | None = None
    created_date_time: str | None = None
    e_tag: str | None = None
    last_modified_by: dict[str, Any] | None = None
    last_modified_date_time: str | None = None
    name: str | None = None
    parent_reference: dict[str, Any] | None = None
    web_url: str | None = None

    # Instance annotations
    download_url: str | None = None

    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_json(cls, raw: dict[str, Any]) -> DriveItem:
        return _decode(cls, DriveItemField, raw)  # type: ignore[no-any-return]

    def get(self, descriptor: FieldDescriptor[DriveItem, V]) -> V | None:
        """Typed access to one field; None when the response did not carry it."""
        if descriptor.resource is not DriveItem:
            raise MisuseError(f"{descriptor!r} is not a field of DriveItem")
        return getattr(self, descriptor.name)  # type: ignore[no-any-return]

    @property
    def is_folder(self) -> bool:
        return self.folder is not None

    @property
    def is_file(self) -> bool:
        return self.file is not None

    @property
    def is_deleted(self) -> bool:
        return self.deleted is not None

    @property
    def parent_id(self) -> str | None:
        return (self.parent_reference or {}).get("id")

    @property
    def parent_path(self) -> str | None:
        return (self.parent_reference or {}).get("path")


class DriveField(FieldSet):
    """Field descriptors of :class:`Drive`."""

    resource = Drive

    id = FieldDescriptor(Drive, str)
    created_by = FieldDescriptor(Drive, dict)
    created_date_time = FieldDescriptor(Drive, str)
    description = FieldDescriptor(Drive, str)
    drive_type = FieldDescriptor(Drive, str)
    items = FieldDescriptor(Drive, list, target=DriveItem)
    last_modified_by = FieldDescriptor(Drive, dict)
    last_modified_date_time = FieldDescriptor(Drive, str)
    name = FieldDescriptor(Drive, str)
    owner = FieldDescriptor(Drive, dict)
    quota = FieldDescriptor(Drive, dict)
    root = FieldDescriptor(Drive, DriveItem, target=DriveItem)
    sharepoint_ids = FieldDescriptor(Drive, dict)
    special = FieldDescriptor(Drive, list, target=DriveItem)
    system = FieldDescriptor(Drive, dict)
    web_url = FieldDescriptor(Drive, str)


class DriveItemField(FieldSet):
    """Field descriptors of :class:`DriveItem`.

    ``download_url`` is the ``@microsoft.graph.downloadUrl`` instance
    annotation: it only appears in item-fetch responses and cannot be selected.
    """

    resource = DriveItem

    audio = FieldDescriptor(DriveItem, dict)
    content = FieldDescriptor(DriveItem, dict)
    c_tag = FieldDescriptor(DriveItem, str)
    deleted = FieldDescriptor(DriveItem, dict)
    description = FieldDescriptor(DriveItem, str)
    file = FieldDescriptor(DriveItem, dict)
    file_system_info = FieldDescriptor(DriveItem, dict)
    folder = FieldDescriptor(DriveItem, dict)
    image = FieldDescriptor(DriveItem, dict)
    location = FieldDescriptor(DriveItem, dict)
    package = FieldDescriptor(DriveItem, dict)
    photo = FieldDescriptor(DriveItem, dict)
    publication = FieldDescriptor(DriveItem, dict)
    remote_item = FieldDescriptor(DriveItem, dict)
    root = FieldDescriptor(DriveItem, dict)
    search_result = FieldDescriptor(DriveItem, dict)
    shared = FieldDescriptor(DriveItem, dict)
    sharepoint_ids = FieldDescriptor(DriveItem, dict)
    size = FieldDescriptor(DriveItem, int)
    special_folder = FieldDescriptor(DriveItem, dict)
    video = FieldDescriptor(DriveItem, dict)
    web_dav_url = FieldDescriptor(DriveItem, str)

    children = FieldDescriptor(DriveItem, list, target=DriveItem)
    created_by_user = FieldDescriptor(DriveItem, dict, relationship=True)
    last_modified_by_user = FieldDescriptor(DriveItem, dict, relationship=True)
    permissions = FieldDescriptor(DriveItem, list, relationship=True)
    thumbnails = FieldDescriptor(DriveItem, list, relationship=True)
    versions = FieldDescriptor(DriveItem, list, relationship=True)

    id = FieldDescriptor(DriveItem, str)
    created_by = FieldDescriptor(DriveItem, dict)
    created_date_time = FieldDescriptor(DriveItem, str)
    e_tag = FieldDescriptor(DriveItem, str)
    last_modified_by = FieldDescriptor(DriveItem, dict)
    last_modified_date_time = FieldDescriptor(DriveItem, str)
    name = FieldDescriptor(DriveItem, str)
    parent_reference = FieldDescriptor(DriveItem, dict)
    web_url = FieldDescriptor(DriveItem, str)

    download_url = FieldDescriptor(
        DriveItem, str, wire_name=ANNOTATION_DOWNLOAD_URL, selectable=False
    )
