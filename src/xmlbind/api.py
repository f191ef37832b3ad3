"""Public API for xmlbind.

High-level functions that return complete, structured results. Document
and schema errors are reported as DeserializationResult values rather than
raised; use load() or DeserializationResult.unwrap() for the raising form.
"""

import logging
import os
from pathlib import Path
from typing import Optional, Type, TypeVar, Union

from xmlbind.contracts import DeserializationResult
from xmlbind.errors import EmptyOrMalformedInput, XmlBindError
from xmlbind.kernel.deserializer import NodeDeserializer
from xmlbind.kernel.nodes import Node
from xmlbind.kernel.schema import SchemaRegistry
from xmlbind._internal.io.xml_source import parse_xml, parse_xml_file

logger = logging.getLogger(__name__)

T = TypeVar("T")


def deserialize(
    root: Optional[Node],
    target_type: Type[T],
    registry: Optional[SchemaRegistry] = None,
) -> DeserializationResult:
    """
    Build a ``target_type`` instance from a parsed document tree.

    Args:
        root: Root node of the document (None means no root could be located)
        target_type: Class with role-annotated fields and a no-argument constructor
        registry: Schema registry to use (defaults to the process-wide registry)

    Returns:
        DeserializationResult with the populated object, or the issue that
        aborted the call. No partially populated object is ever returned.
    """
    try:
        if root is None:
            raise EmptyOrMalformedInput()
        value = NodeDeserializer(registry).deserialize(root, target_type)
    except XmlBindError as e:
        logger.debug("Deserialization into %s failed: %s", getattr(target_type, "__qualname__", target_type), e)
        return DeserializationResult.failure(e)
    return DeserializationResult.success(value)


def load(root: Optional[Node], target_type: Type[T], registry: Optional[SchemaRegistry] = None) -> T:
    """Like deserialize(), but return the object or raise the XmlBindError."""
    return deserialize(root, target_type, registry=registry).unwrap()


def deserialize_xml(
    source: Union[str, bytes, os.PathLike],
    target_type: Type[T],
    max_depth: Optional[int] = None,
    registry: Optional[SchemaRegistry] = None,
) -> DeserializationResult:
    """
    Parse XML and deserialize it into ``target_type``.

    Args:
        source: XML text, encoded bytes, or an os.PathLike naming an XML file
        target_type: Target class
        max_depth: Optional maximum element nesting depth
        registry: Schema registry to use

    Returns:
        DeserializationResult (parse failures are EMPTY_OR_MALFORMED_INPUT issues)
    """
    try:
        if isinstance(source, (str, bytes)):
            root = parse_xml(source, max_depth=max_depth)
        else:
            root = parse_xml_file(Path(source), max_depth=max_depth)
    except EmptyOrMalformedInput as e:
        return DeserializationResult.failure(e)
    return deserialize(root, target_type, registry=registry)
