"""Immutable builders for OData query options (``$select``, ``$expand``, ...)."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Generic, TypeVar
from urllib.parse import quote, urlencode

from onedrive_client.graph.errors import MisuseError
from onedrive_client.graph.fields import FieldDescriptor

R = TypeVar("R")

# Characters left unescaped so that nested options stay readable on the wire
_QUERY_SAFE = "$,();=@"


@dataclass(frozen=True)
class ObjectOption(Generic[R]):
    """Query options for requests returning a single resource of type ``R``.

    Every builder method returns a new option::

        ObjectOption(DriveItem).select(DriveItemField.id, DriveItemField.e_tag)
    """

    resource: type[R]
    selected: tuple[FieldDescriptor[R, Any], ...] = ()
    expanded: tuple[tuple[FieldDescriptor[R, Any], ObjectOption[Any] | None], ...] = ()
    conditional_headers: tuple[tuple[str, str], ...] = ()

    def _check_field(self, descriptor: FieldDescriptor[R, Any]) -> None:
        if not isinstance(descriptor, FieldDescriptor) or descriptor.resource is not self.resource:
            raise MisuseError(f"{descriptor!r} is not a field of {self.resource.__name__}")

    def select(self: _O, *fields: FieldDescriptor[R, Any]) -> _O:
        """Restrict the response to ``fields``.

        Raises:
            MisuseError: If a field belongs to another resource or cannot be selected.
        """
        for descriptor in fields:
            self._check_field(descriptor)
            if not descriptor.selectable:
                raise MisuseError(f"{descriptor!r} cannot be selected")
        return replace(self, selected=self.selected + tuple(fields))

    def expand(
        self: _O, descriptor: FieldDescriptor[R, Any], nested: ObjectOption[Any] | None = None
    ) -> _O:
        """Expand a relationship, optionally shaping it with its own options.

        Raises:
            MisuseError: If the field is not a relationship of this resource, or
                ``nested`` targets a different resource.
        """
        self._check_field(descriptor)
        if not descriptor.relationship:
            raise MisuseError(f"{descriptor!r} is not an expandable relationship")
        if nested is not None and nested.resource is not descriptor.target:
            raise MisuseError(f"nested options for {descriptor!r} target the wrong resource")
        return replace(self, expanded=self.expanded + ((descriptor, nested),))

    def if_match(self: _O, tag: str) -> _O:
        """Only act when the resource still has entity tag ``tag``."""
        return replace(self, conditional_headers=self.conditional_headers + (("If-Match", tag),))

    def if_none_match(self: _O, tag: str) -> _O:
        """Only return the resource when its entity tag differs from ``tag``."""
        return replace(
            self, conditional_headers=self.conditional_headers + (("If-None-Match", tag),)
        )

    def params(self) -> dict[str, str]:
        """Return query parameters in wire form, without URL encoding."""
        result: dict[str, str] = {}
        if self.selected:
            result["$select"] = ",".join(d.field_name for d in self.selected)
        if self.expanded:
            result["$expand"] = ",".join(_render_expand(d, n) for d, n in self.expanded)
        return result

    def query_string(self) -> str:
        """Return the URL-encoded query string (without the leading ``?``)."""
        return urlencode(self.params(), safe=_QUERY_SAFE, quote_via=quote)

    def headers(self) -> dict[str, str]:
        return dict(self.conditional_headers)

    def apply(self, path: str) -> str:
        """Append this option's query string to ``path``."""
        query = self.query_string()
        if not query:
            return path
        return f"{path}{'&' if '?' in path else '?'}{query}"


_O = TypeVar("_O", bound=ObjectOption[Any])


def _render_expand(descriptor: FieldDescriptor[Any, Any], nested: ObjectOption[Any] | None) -> str:
    if nested is None:
        return descriptor.field_name
    inner = ";".join(f"{k}={v}" for k, v in nested.params().items())
    return f"{descriptor.field_name}({inner})" if inner else descriptor.field_name


@dataclass(frozen=True)
class CollectionOption(ObjectOption[R]):
    """Query options for requests returning a collection of ``R``."""

    page_size: int | None = None
    ordering: tuple[tuple[FieldDescriptor[R, Any], bool], ...] = ()

    def top(self, count: int) -> CollectionOption[R]:
        """Hint the maximum number of items per page (``$top``).

        Raises:
            MisuseError: If ``count`` is not positive.
        """
        if count < 1:
            raise MisuseError(f"page size must be positive, got {count}")
        return replace(self, page_size=count)

    def order_by(
        self, descriptor: FieldDescriptor[R, Any], descending: bool = False
    ) -> CollectionOption[R]:
        """Sort the collection server-side by ``descriptor``."""
        self._check_field(descriptor)
        return replace(self, ordering=self.ordering + ((descriptor, descending),))

    def params(self) -> dict[str, str]:
        result = super().params()
        if self.page_size is not None:
            result["$top"] = str(self.page_size)
        if self.ordering:
            result["$orderby"] = ",".join(
                f"{d.field_name} desc" if desc else d.field_name for d, desc in self.ordering
            )
        return result
