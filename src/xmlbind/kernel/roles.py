"""Role declarations for target types.

A field opts into deserialization by carrying one role marker in its
``typing.Annotated`` metadata::

    @dataclass
    class Thing:
        id: Annotated[Optional[int], Attribute()] = None
        name: Annotated[Optional[str], Element(position="name_at")] = None
        name_at: Optional[SourcePosition] = None
        extra: Annotated[Optional[List[RawElement]], AnyElement()] = None

Fields without a marker are ignored by the deserializer.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class RoleKind(str, Enum):
    """Schema-level meaning of a field."""
    ATTRIBUTE = "attribute"
    ELEMENT = "element"
    ARRAY = "array"
    TEXT = "text"
    ANY_ATTRIBUTE = "any_attribute"
    ANY_ELEMENT = "any_element"
    NODE_POSITION = "node_position"


class ValueKind(str, Enum):
    """Declared kind of a field's value (or of its items for collections)."""
    SCALAR = "scalar"
    STRING = "string"
    COMPLEX = "complex"
    RAW_ATTRIBUTE = "raw_attribute"
    RAW_ELEMENT = "raw_element"
    POSITION = "position"


@dataclass(frozen=True)
class RoleMarker:
    """Base class for role markers placed in Annotated metadata."""
    kind = None  # type: Optional[RoleKind]

    @property
    def binding_name(self) -> Optional[str]:
        return getattr(self, "name", None)

    @property
    def position_field(self) -> Optional[str]:
        return getattr(self, "position", None)


@dataclass(frozen=True)
class Attribute(RoleMarker):
    """Bind the field to the attribute ``name`` (defaults to the field name)."""
    name: Optional[str] = None
    position: Optional[str] = None
    kind = RoleKind.ATTRIBUTE


@dataclass(frozen=True)
class Element(RoleMarker):
    """Bind the field to child elements named ``name``.

    Collection fields collect every matching child in document order.
    """
    name: Optional[str] = None
    position: Optional[str] = None
    kind = RoleKind.ELEMENT


@dataclass(frozen=True)
class Array(RoleMarker):
    """Bind a collection field to a wrapper element whose children are items.

    ``item`` is the expected item element name. When omitted, the item
    type's own class name is used.
    """
    name: Optional[str] = None
    item: Optional[str] = None
    position: Optional[str] = None
    kind = RoleKind.ARRAY


@dataclass(frozen=True)
class Text(RoleMarker):
    """Bind the field to the node's trimmed direct text."""
    position: Optional[str] = None
    kind = RoleKind.TEXT


@dataclass(frozen=True)
class AnyAttribute(RoleMarker):
    """Collect attributes not matched by any Attribute role."""
    kind = RoleKind.ANY_ATTRIBUTE


@dataclass(frozen=True)
class AnyElement(RoleMarker):
    """Collect child elements not matched by any Element or Array role."""
    kind = RoleKind.ANY_ELEMENT


@dataclass(frozen=True)
class NodePosition(RoleMarker):
    """Receive the position of the node the owning object was built from."""
    kind = RoleKind.NODE_POSITION


@dataclass(frozen=True)
class FieldRole:
    """One mapped field of a target type, as resolved by schema discovery."""
    field: str  # attribute name on the target object
    binding: str  # document name (attribute / element / wrapper); "" for unnamed roles
    role: RoleKind
    value_kind: ValueKind
    value_type: Any  # item type for collections
    collection_type: Optional[type] = None  # None for singleton fields
    item_name: Optional[str] = None  # array roles only
    position_field: Optional[str] = None
    writable: bool = True

    @property
    def is_collection(self) -> bool:
        return self.collection_type is not None

    @property
    def type_name(self) -> str:
        return getattr(self.value_type, "__name__", str(self.value_type))
