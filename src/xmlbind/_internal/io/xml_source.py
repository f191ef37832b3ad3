"""Parse XML text into position-annotated Node trees.

Uses expat so that every element carries the line and column of its start
tag. Attribute positions come from rescanning the start tag text at the
parser's current byte offset.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union
from xml.parsers import expat

from xmlbind.errors import EmptyOrMalformedInput
from xmlbind.kernel.nodes import Node, NodeAttribute, SourcePosition

_NO_ELEMENTS = expat.errors.codes[expat.errors.XML_ERROR_NO_ELEMENTS]

_TAG_NAME = re.compile(rb"<[^\s/>]+")
_ATTRIBUTE = re.compile(rb"(\s+)[^\s=/>]+\s*=\s*(?:\"[^\"]*\"|'[^']*')")


def _advance(position: SourcePosition, skipped: str) -> SourcePosition:
    """Position reached after reading ``skipped`` from ``position``."""
    skipped = skipped.replace("\r\n", "\n").replace("\r", "\n")
    newline = skipped.rfind("\n")
    if newline < 0:
        return SourcePosition(position.line, position.column + len(skipped))
    return SourcePosition(position.line + skipped.count("\n"), len(skipped) - newline)


@dataclass
class _OpenElement:
    name: str
    position: SourcePosition
    attributes: List[NodeAttribute]
    children: List[Node] = field(default_factory=list)
    text: List[str] = field(default_factory=list)

    def close(self) -> Node:
        return Node(
            name=self.name,
            position=self.position,
            attributes=tuple(self.attributes),
            children=tuple(self.children),
            text="".join(self.text),
        )


class _TreeBuilder:
    def __init__(self, parser, data: bytes, max_depth: Optional[int]):
        self._parser = parser
        self._data = data
        self._max_depth = max_depth
        self._stack: List[_OpenElement] = []
        self.root: Optional[Node] = None

    def start(self, name: str, attrs: List[str]) -> None:
        position = SourcePosition(
            line=self._parser.CurrentLineNumber,
            column=self._parser.CurrentColumnNumber + 1,
        )
        if self._max_depth is not None and len(self._stack) >= self._max_depth:
            raise EmptyOrMalformedInput(
                f"Document nesting exceeds max_depth={self._max_depth}",
                line=position.line, column=position.column,
            )
        # ordered_attributes gives a flat [name, value, name, value, ...] list
        names = attrs[0::2]
        positions = self._attribute_positions(position, len(names))
        attributes = [
            NodeAttribute(name=attr_name, value=value, position=attr_position)
            for attr_name, value, attr_position in zip(names, attrs[1::2], positions)
        ]
        self._stack.append(_OpenElement(name=name, position=position, attributes=attributes))

    def _attribute_positions(self, position: SourcePosition, count: int) -> List[SourcePosition]:
        """Locate each attribute name inside the current start tag.

        Attributes the scan cannot find (non UTF-8 compatible encodings) keep
        the element's position.
        """
        positions = []
        if count:
            offset = self._parser.CurrentByteIndex
            match = _TAG_NAME.match(self._data, offset) if offset >= 0 else None
            while match is not None and len(positions) < count:
                match = _ATTRIBUTE.match(self._data, match.end())
                if match is None:
                    break
                name_start = match.end(1)
                skipped = self._data[offset:name_start].decode("utf-8", errors="replace")
                positions.append(_advance(position, skipped))
        positions.extend([position] * (count - len(positions)))
        return positions

    def end(self, name: str) -> None:
        node = self._stack.pop().close()
        if self._stack:
            self._stack[-1].children.append(node)
        else:
            self.root = node

    def data(self, text: str) -> None:
        if self._stack:
            self._stack[-1].text.append(text)


def parse_xml(source: Union[str, bytes], max_depth: Optional[int] = None) -> Node:
    """Parse an XML document and return its root node.

    Args:
        source: XML text or encoded bytes
        max_depth: Optional maximum element nesting depth

    Raises:
        EmptyOrMalformedInput: If no root element is found, the XML is
            malformed, or nesting exceeds ``max_depth``
    """
    if not source or not source.strip():
        raise EmptyOrMalformedInput()

    parser = expat.ParserCreate()
    parser.ordered_attributes = True
    parser.buffer_text = True
    data = source.encode("utf-8") if isinstance(source, str) else source
    builder = _TreeBuilder(parser, data, max_depth)
    parser.StartElementHandler = builder.start
    parser.EndElementHandler = builder.end
    parser.CharacterDataHandler = builder.data

    try:
        parser.Parse(source, True)
    except expat.ExpatError as e:
        if e.code == _NO_ELEMENTS:
            raise EmptyOrMalformedInput() from e
        raise EmptyOrMalformedInput(
            f"Malformed XML: {expat.ErrorString(e.code)}", line=e.lineno, column=e.offset + 1,
        ) from e

    if builder.root is None:
        raise EmptyOrMalformedInput()
    return builder.root


def parse_xml_file(path: Union[str, Path], max_depth: Optional[int] = None) -> Node:
    """Parse the XML document stored at ``path``."""
    return parse_xml(Path(path).read_bytes(), max_depth=max_depth)
