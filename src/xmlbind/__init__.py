"""xmlbind: declaration-driven XML tree to object binding."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("xmlbind")
except PackageNotFoundError:
    __version__ = "dev"

# Public API exports
from xmlbind.api import deserialize, deserialize_xml, load
from xmlbind.codes import ErrorCode
from xmlbind.contracts import DeserializationIssue, DeserializationResult
from xmlbind.errors import (
    DuplicatedRole,
    EmptyOrMalformedInput,
    InternalInvariantViolation,
    SchemaMisannotation,
    UnexpectedNode,
    ValueCoercionError,
    XmlBindError,
)
from xmlbind.kernel.nodes import Node, NodeAttribute, RawAttribute, RawElement, SourcePosition
from xmlbind.kernel.roles import AnyAttribute, AnyElement, Array, Attribute, Element, NodePosition, Text
from xmlbind.kernel.schema import SchemaRegistry, TypeSchema, schema_for
from xmlbind._internal.io.xml_source import parse_xml

__all__ = [
    "__version__",
    "deserialize",
    "deserialize_xml",
    "load",
    "parse_xml",
    "schema_for",
    "ErrorCode",
    "DeserializationIssue",
    "DeserializationResult",
    "XmlBindError",
    "EmptyOrMalformedInput",
    "UnexpectedNode",
    "ValueCoercionError",
    "SchemaMisannotation",
    "DuplicatedRole",
    "InternalInvariantViolation",
    "Attribute",
    "Element",
    "Array",
    "Text",
    "AnyAttribute",
    "AnyElement",
    "NodePosition",
    "Node",
    "NodeAttribute",
    "RawAttribute",
    "RawElement",
    "SourcePosition",
    "SchemaRegistry",
    "TypeSchema",
]
