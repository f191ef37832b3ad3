"""Recursive population of target objects from document nodes.

The algorithm is strict: every attribute and child element of a mapped node
must be matched by a role or absorbed by a wildcard bag. The first mismatch
aborts the whole call chain.
"""

import inspect
import logging
from typing import Any, Optional, Type, TypeVar

from xmlbind.errors import SchemaMisannotation, UnexpectedNode, ValueCoercionError
from .coerce import coerce
from .nodes import Node, RawAttribute, RawElement, SourcePosition
from .positions import write_position
from .roles import FieldRole, ValueKind
from .schema import SchemaRegistry, TypeSchema, default_registry

logger = logging.getLogger(__name__)

T = TypeVar("T")


def instantiate(cls: Type[T]) -> T:
    """Construct ``cls`` with no arguments.

    Raises:
        SchemaMisannotation: If the constructor requires arguments
    """
    try:
        inspect.signature(cls).bind()
    except TypeError:
        raise SchemaMisannotation(
            f"{cls.__qualname__} cannot be constructed without arguments"
        )
    except ValueError:
        # No introspectable signature (C-implemented types); let the call decide
        pass
    return cls()


def _unexpected(node_name: str, position: SourcePosition) -> UnexpectedNode:
    return UnexpectedNode(node_name, position.line, position.column)


class NodeDeserializer:
    """Walks a node tree against target type schemas."""

    def __init__(self, registry: Optional[SchemaRegistry] = None):
        self.registry = registry if registry is not None else default_registry

    def deserialize(self, node: Node, cls: Type[T]) -> T:
        """Build a new ``cls`` instance from ``node``."""
        schema = self.registry.schema_for(cls)
        target = instantiate(cls)
        logger.debug("Deserializing <%s> into %s", node.name, cls.__qualname__)
        self.populate(node, target, schema)
        return target

    def populate(self, node: Node, target: Any, schema: TypeSchema) -> None:
        """Populate ``target`` in place from ``node``.

        A text role of a non-string kind keeps its current value when the
        trimmed text is empty.
        """
        self._populate_attributes(node, target, schema)
        self._populate_children(node, target, schema)

        role = schema.text_role
        if role is not None:
            text = node.text.strip()
            if text or role.value_kind is ValueKind.STRING:
                setattr(target, role.field, self._coerce(role, text, node.name, node.position))
                write_position(target, role.position_field, node.position)

        write_position(target, schema.node_position_field, node.position)

    def _populate_attributes(self, node: Node, target: Any, schema: TypeSchema) -> None:
        for attr in node.attributes:
            role = schema.attribute_roles.get(attr.name)
            if role is not None:
                value = self._coerce(role, attr.value, attr.name, attr.position)
                setattr(target, role.field, value)
                write_position(target, role.position_field, attr.position)
            elif schema.wildcard_attribute_role is not None:
                self._append(target, schema.wildcard_attribute_role, RawAttribute.from_node_attribute(attr))
            else:
                raise _unexpected(attr.name, attr.position)

    def _populate_children(self, node: Node, target: Any, schema: TypeSchema) -> None:
        for child in node.children:
            role = schema.element_roles.get(child.name)
            if role is not None:
                self._bind_child(child, target, role)
                write_position(target, role.position_field, child.position)
                continue

            role = schema.array_roles.get(child.name)
            if role is not None:
                for item in child.children:
                    if item.name != role.item_name:
                        raise _unexpected(item.name, item.position)
                    self._bind_child(item, target, role)
                write_position(target, role.position_field, child.position)
                continue

            if schema.wildcard_element_role is not None:
                self._append(target, schema.wildcard_element_role, RawElement.from_node(child))
            else:
                raise _unexpected(child.name, child.position)

    def _bind_child(self, child: Node, target: Any, role: FieldRole) -> None:
        if role.value_kind is ValueKind.COMPLEX:
            value = instantiate(role.value_type)
            self.populate(child, value, self.registry.schema_for(role.value_type))
        else:
            # Scalar elements carry only text
            if child.attributes:
                raise _unexpected(child.attributes[0].name, child.attributes[0].position)
            if child.children:
                raise _unexpected(child.children[0].name, child.children[0].position)
            value = self._coerce(role, child.text, child.name, child.position)

        if role.is_collection:
            self._append(target, role, value)
        else:
            setattr(target, role.field, value)

    @staticmethod
    def _coerce(role: FieldRole, raw: str, name: str, position: SourcePosition) -> Any:
        try:
            return coerce(raw, role.value_type)
        except (ValueError, ArithmeticError) as e:
            raise ValueCoercionError(name, raw, role.type_name, position.line, position.column) from e

    @staticmethod
    def _append(target: Any, role: FieldRole, value: Any) -> None:
        collection = getattr(target, role.field, None)
        if collection is None:
            collection = instantiate(role.collection_type)
            setattr(target, role.field, collection)
        collection.append(value)
