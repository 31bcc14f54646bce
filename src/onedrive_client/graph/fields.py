"""Resource field descriptors used to build ``$select`` / ``$expand`` queries.

A descriptor is a token bound to one resource class. Descriptors are declared
as class attributes of a :class:`FieldSet` subclass, one set per resource type,
so the set of selectable attributes of a resource is closed and enumerable::

    class DriveItemField(FieldSet):
        resource = DriveItem

        id = FieldDescriptor(DriveItem, str)
        size = FieldDescriptor(DriveItem, int)

The generic parameters ``FieldDescriptor[R, V]`` carry the resource type ``R``
and the decoded value type ``V`` so a type checker can reject a descriptor of
another resource in :class:`~onedrive_client.graph.query.ObjectOption` and
infer the result of typed accessors such as ``DriveItem.get``.
"""

from __future__ import annotations

from typing import Any, ClassVar, Generic, TypeVar

R = TypeVar("R")
V = TypeVar("V")


def snake_to_camel(name: str) -> str:
    """Translate a snake_case attribute name to its camelCase wire name.

    Args:
        name: Logical attribute name, e.g. ``"last_modified_date_time"``.

    Returns:
        Wire name, e.g. ``"lastModifiedDateTime"``.
    """
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


class FieldDescriptor(Generic[R, V]):
    """A selectable (or explicitly non-selectable) attribute of resource ``R``."""

    def __init__(
        self,
        resource: type[R],
        value_type: type[V],
        *,
        wire_name: str | None = None,
        selectable: bool = True,
        relationship: bool = False,
        target: type[Any] | None = None,
    ) -> None:
        """Declare a field descriptor.

        Args:
            resource: Resource class the field belongs to.
            value_type: Python type of the decoded value.
            wire_name: Explicit wire name for irregular fields (e.g. instance
                annotations). Defaults to the camelCase form of the attribute name.
            selectable: False for fields the service never returns via ``$select``.
            relationship: True when the field may be used with ``$expand``.
            target: Resource class reached through the relationship, when modelled.
        """
        self.resource = resource
        self.value_type = value_type
        self.selectable = selectable
        self.relationship = relationship or target is not None
        self.target = target
        self.name = ""
        self.owner = ""
        self._wire_name = wire_name

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name
        self.owner = owner.__name__

    @property
    def field_name(self) -> str:
        """Name of the field on the wire."""
        return self._wire_name or snake_to_camel(self.name)

    def __repr__(self) -> str:
        return f"{self.owner}.{self.name}"


class FieldSet:
    """Closed set of field descriptors for one resource type."""

    resource: ClassVar[type[Any]]
    _fields: ClassVar[dict[str, FieldDescriptor[Any, Any]]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls._fields = {
            name: value
            for name, value in vars(cls).items()
            if isinstance(value, FieldDescriptor)
        }
        for descriptor in cls._fields.values():
            if descriptor.resource is not cls.resource:
                raise TypeError(f"{descriptor!r} is not a field of {cls.resource.__name__}")

    @classmethod
    def all(cls) -> list[FieldDescriptor[Any, Any]]:
        """Return every descriptor in declaration order."""
        return list(cls._fields.values())

    @classmethod
    def selectable(cls) -> list[FieldDescriptor[Any, Any]]:
        """Return the descriptors accepted by ``$select``."""
        return [d for d in cls._fields.values() if d.selectable]

    @classmethod
    def by_name(cls, name: str) -> FieldDescriptor[Any, Any]:
        """Look up a descriptor by its logical snake_case name.

        Raises:
            KeyError: If the resource has no such field.
        """
        return cls._fields[name]
