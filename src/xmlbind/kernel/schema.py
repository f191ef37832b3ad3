"""Schema discovery and the process-wide schema registry.

A TypeSchema is computed once per target type from its role-annotated
fields, validated eagerly, and cached for the lifetime of the registry.
"""

import collections.abc
import dataclasses
import logging
import threading
import types
from dataclasses import dataclass
from typing import (
    Annotated, Any, Callable, ClassVar, Dict, List, Mapping, Optional, Tuple, Union,
    get_args, get_origin, get_type_hints,
)

from pydantic import BaseModel

from xmlbind.errors import DuplicatedRole, SchemaMisannotation
from .coerce import is_string_type, is_supported_scalar
from .nodes import RawAttribute, RawElement, SourcePosition
from .roles import FieldRole, RoleKind, RoleMarker, ValueKind

logger = logging.getLogger(__name__)

# Abstract collection annotations are populated with a plain list
_FALLBACK_COLLECTIONS = {
    collections.abc.Sequence,
    collections.abc.MutableSequence,
    collections.abc.Collection,
    collections.abc.Iterable,
}

_NONE_TYPE = type(None)


@dataclass(frozen=True)
class TypeSchema:
    """Validated, immutable set of roles for one target type."""
    target: type
    element_roles: Mapping[str, FieldRole]
    attribute_roles: Mapping[str, FieldRole]
    array_roles: Mapping[str, FieldRole]
    text_role: Optional[FieldRole] = None
    wildcard_attribute_role: Optional[FieldRole] = None
    wildcard_element_role: Optional[FieldRole] = None
    node_position_field: Optional[str] = None

    @property
    def roles(self) -> List[FieldRole]:
        """All roles of the schema in a stable order."""
        result = list(self.attribute_roles.values())
        result.extend(self.element_roles.values())
        result.extend(self.array_roles.values())
        for role in (self.text_role, self.wildcard_attribute_role, self.wildcard_element_role):
            if role is not None:
                result.append(role)
        return result


def _split_annotated(hint: Any) -> Tuple[Any, List[RoleMarker]]:
    if get_origin(hint) is Annotated:
        base, *metadata = get_args(hint)
        return base, [m for m in metadata if isinstance(m, RoleMarker)]
    return hint, []


def _strip_optional(owner: type, field: str, tp: Any) -> Any:
    origin = get_origin(tp)
    if origin is Union or origin is types.UnionType:
        args = [arg for arg in get_args(tp) if arg is not _NONE_TYPE]
        if len(args) != 1:
            raise SchemaMisannotation(
                f"Field {owner.__qualname__}.{field} has a union type {tp!r}; only Optional[X] is supported"
            )
        return args[0]
    return tp


def _split_collection(owner: type, field: str, tp: Any) -> Tuple[Optional[type], Any]:
    """Return (collection_type, item_type); collection_type is None for singletons."""
    origin = get_origin(tp)
    if origin is None:
        if tp is list or tp in _FALLBACK_COLLECTIONS:
            raise SchemaMisannotation(
                f"Collection field {owner.__qualname__}.{field} must declare its item type"
            )
        return None, tp
    args = get_args(tp)
    if origin in _FALLBACK_COLLECTIONS:
        return list, args[0]
    if isinstance(origin, type) and callable(getattr(origin, "append", None)):
        if len(args) != 1:
            raise SchemaMisannotation(
                f"Collection field {owner.__qualname__}.{field} must declare exactly one item type"
            )
        return origin, args[0]
    raise SchemaMisannotation(
        f"Collection type {tp!r} of {owner.__qualname__}.{field} does not support append"
    )


def declares_roles(cls: Any) -> bool:
    """Return True if ``cls`` can be populated as a nested complex type."""
    if not isinstance(cls, type):
        return False
    if dataclasses.is_dataclass(cls) or issubclass(cls, BaseModel):
        return True
    try:
        hints = get_type_hints(cls, include_extras=True)
    except (NameError, TypeError):
        return False
    return any(_split_annotated(hint)[1] for hint in hints.values())


def _classify(owner: type, field: str, tp: Any) -> ValueKind:
    if tp is RawAttribute:
        return ValueKind.RAW_ATTRIBUTE
    if tp is RawElement:
        return ValueKind.RAW_ELEMENT
    if tp is SourcePosition:
        return ValueKind.POSITION
    if is_string_type(tp):
        return ValueKind.STRING
    if is_supported_scalar(tp):
        return ValueKind.SCALAR
    if declares_roles(tp):
        return ValueKind.COMPLEX
    raise SchemaMisannotation(
        f"Unsupported scalar kind {tp!r} for field {owner.__qualname__}.{field}"
    )


def _is_writable(cls: type) -> bool:
    params = getattr(cls, "__dataclass_params__", None)
    if params is not None and params.frozen:
        return False
    if issubclass(cls, BaseModel) and cls.model_config.get("frozen"):
        return False
    return True


def _declared_fields(cls: type) -> Dict[str, Tuple[Any, List[RoleMarker]]]:
    """Return field name -> (declared type, role markers) in declaration order."""
    if issubclass(cls, BaseModel):
        return {
            name: (info.annotation, [m for m in info.metadata if isinstance(m, RoleMarker)])
            for name, info in cls.model_fields.items()
        }
    try:
        hints = get_type_hints(cls, include_extras=True)
    except (NameError, TypeError) as e:
        raise SchemaMisannotation(f"Cannot resolve annotations of {cls.__qualname__}: {e}")
    return {
        name: _split_annotated(hint) for name, hint in hints.items()
        if get_origin(hint) is not ClassVar and hint is not ClassVar
    }


def _build_role(cls: type, field: str, marker: RoleMarker, base: Any, writable: bool) -> FieldRole:
    tp = _strip_optional(cls, field, base)
    collection_type, item_type = _split_collection(cls, field, tp)
    value_kind = _classify(cls, field, item_type)
    where = f"{cls.__qualname__}.{field}"
    kind = marker.kind

    if kind in (RoleKind.ATTRIBUTE, RoleKind.TEXT):
        if collection_type is not None or value_kind not in (ValueKind.SCALAR, ValueKind.STRING):
            raise SchemaMisannotation(
                f"{kind.value.capitalize()} field {where} must be a single scalar or string value"
            )
    elif kind is RoleKind.ELEMENT:
        if value_kind not in (ValueKind.SCALAR, ValueKind.STRING, ValueKind.COMPLEX):
            raise SchemaMisannotation(f"Element field {where} has unsupported kind {item_type!r}")
    elif kind is RoleKind.ARRAY:
        if collection_type is None:
            raise SchemaMisannotation(f"Array field {where} must be a collection")
        if value_kind not in (ValueKind.SCALAR, ValueKind.STRING, ValueKind.COMPLEX):
            raise SchemaMisannotation(f"Array field {where} has unsupported item kind {item_type!r}")
    elif kind is RoleKind.ANY_ATTRIBUTE:
        if collection_type is None or value_kind is not ValueKind.RAW_ATTRIBUTE:
            raise SchemaMisannotation(
                f"Field {where} for any attribute must be a collection of RawAttribute"
            )
    elif kind is RoleKind.ANY_ELEMENT:
        if collection_type is None or value_kind is not ValueKind.RAW_ELEMENT:
            raise SchemaMisannotation(
                f"Field {where} for any element must be a collection of RawElement"
            )

    if kind in (RoleKind.ATTRIBUTE, RoleKind.ELEMENT, RoleKind.ARRAY):
        binding = marker.binding_name or field
    else:
        binding = ""

    item_name = None
    if kind is RoleKind.ARRAY:
        item_name = marker.item or getattr(item_type, "__name__", str(item_type))

    return FieldRole(
        field=field,
        binding=binding,
        role=kind,
        value_kind=value_kind,
        value_type=item_type,
        collection_type=collection_type,
        item_name=item_name,
        position_field=marker.position_field,
        writable=writable,
    )


def build_schema(cls: type) -> TypeSchema:
    """Discover and validate the role schema of ``cls``.

    Raises:
        SchemaMisannotation: If the declared roles are inconsistent
    """
    if not isinstance(cls, type):
        raise SchemaMisannotation(f"Target {cls!r} is not a class")

    declared = _declared_fields(cls)
    writable = _is_writable(cls)

    element_roles: Dict[str, FieldRole] = {}
    attribute_roles: Dict[str, FieldRole] = {}
    array_roles: Dict[str, FieldRole] = {}
    singletons: Dict[RoleKind, List[FieldRole]] = {
        RoleKind.TEXT: [],
        RoleKind.ANY_ATTRIBUTE: [],
        RoleKind.ANY_ELEMENT: [],
    }
    node_position_fields: List[str] = []
    plain_fields: Dict[str, Any] = {}

    for field, (base, markers) in declared.items():
        if not markers:
            plain_fields[field] = base
            continue
        if len(markers) > 1:
            raise SchemaMisannotation(
                f"Field {cls.__qualname__}.{field} declares more than one role"
            )
        marker = markers[0]
        if not writable:
            raise SchemaMisannotation(
                f"Field {cls.__qualname__}.{field} cannot be set: {cls.__qualname__} is frozen"
            )

        if marker.kind is RoleKind.NODE_POSITION:
            if _strip_optional(cls, field, base) is not SourcePosition:
                raise SchemaMisannotation(
                    f"Node position field {cls.__qualname__}.{field} must be a SourcePosition"
                )
            node_position_fields.append(field)
            continue

        role = _build_role(cls, field, marker, base, writable)
        if role.role is RoleKind.ATTRIBUTE:
            if role.binding in attribute_roles:
                raise DuplicatedRole(f"attribute {role.binding!r}", cls)
            attribute_roles[role.binding] = role
        elif role.role in (RoleKind.ELEMENT, RoleKind.ARRAY):
            if role.binding in element_roles or role.binding in array_roles:
                raise DuplicatedRole(f"element {role.binding!r}", cls)
            target = element_roles if role.role is RoleKind.ELEMENT else array_roles
            target[role.binding] = role
        else:
            singletons[role.role].append(role)

    for kind, found in singletons.items():
        if len(found) > 1:
            raise DuplicatedRole(kind.value, cls)
    if len(node_position_fields) > 1:
        raise DuplicatedRole(RoleKind.NODE_POSITION.value, cls)

    role_fields = {role.field for role in element_roles.values()}
    role_fields.update(role.field for role in attribute_roles.values())
    role_fields.update(role.field for role in array_roles.values())
    role_fields.update(role.field for found in singletons.values() for role in found)

    all_roles = list(attribute_roles.values()) + list(element_roles.values()) + list(array_roles.values())
    all_roles.extend(role for found in singletons.values() for role in found)
    for role in all_roles:
        if role.position_field is None:
            continue
        sink = role.position_field
        if sink in role_fields or sink in node_position_fields:
            raise SchemaMisannotation(
                f"Position field {cls.__qualname__}.{sink} of {role.field} is already bound to a role"
            )
        if sink not in plain_fields:
            raise SchemaMisannotation(f"Field {sink} cannot be set.")
        if _strip_optional(cls, sink, plain_fields[sink]) is not SourcePosition:
            raise SchemaMisannotation(
                f"Position field {cls.__qualname__}.{sink} must be a SourcePosition"
            )

    schema = TypeSchema(
        target=cls,
        element_roles=types.MappingProxyType(element_roles),
        attribute_roles=types.MappingProxyType(attribute_roles),
        array_roles=types.MappingProxyType(array_roles),
        text_role=singletons[RoleKind.TEXT][0] if singletons[RoleKind.TEXT] else None,
        wildcard_attribute_role=(
            singletons[RoleKind.ANY_ATTRIBUTE][0] if singletons[RoleKind.ANY_ATTRIBUTE] else None
        ),
        wildcard_element_role=(
            singletons[RoleKind.ANY_ELEMENT][0] if singletons[RoleKind.ANY_ELEMENT] else None
        ),
        node_position_field=node_position_fields[0] if node_position_fields else None,
    )
    logger.debug(
        "Discovered schema for %s: %d attribute, %d element, %d array roles",
        cls.__qualname__, len(attribute_roles), len(element_roles), len(array_roles),
    )
    return schema


class SchemaRegistry:
    """Thread-safe memo of TypeSchema by type identity.

    Concurrent first requests for one type observe a single discovery.
    Cached entries are immutable and never evicted.
    """

    def __init__(self, builder: Callable[[type], TypeSchema] = build_schema):
        self._builder = builder
        self._schemas: Dict[type, TypeSchema] = {}
        self._lock = threading.RLock()

    def schema_for(self, cls: type) -> TypeSchema:
        schema = self._schemas.get(cls)
        if schema is not None:
            return schema
        with self._lock:
            schema = self._schemas.get(cls)
            if schema is None:
                schema = self._builder(cls)
                self._schemas[cls] = schema
            else:
                logger.debug("Schema for %s computed by another thread", cls.__qualname__)
        return schema

    def __contains__(self, cls: object) -> bool:
        return cls in self._schemas

    def __len__(self) -> int:
        return len(self._schemas)


default_registry = SchemaRegistry()


def schema_for(cls: type) -> TypeSchema:
    """Return the cached schema of ``cls`` from the process-wide registry."""
    return default_registry.schema_for(cls)
