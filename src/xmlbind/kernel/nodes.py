"""Position-annotated document tree consumed by the deserializer.

The tree is produced by a front-end parser and is never mutated by the
kernel.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, Tuple


@dataclass(frozen=True)
class SourcePosition:
    """Line and column of a node in its source document (both 1-based)."""
    line: int
    column: int

    def __str__(self) -> str:
        return f"line {self.line}, {self.column}"


@dataclass(frozen=True)
class NodeAttribute:
    """A single attribute as it appears on a node."""
    name: str
    value: str
    position: SourcePosition


@dataclass(frozen=True)
class Node:
    """One element of the parsed document tree."""
    name: str
    position: SourcePosition
    attributes: Tuple[NodeAttribute, ...] = ()
    children: Tuple["Node", ...] = ()
    text: str = ""  # concatenated direct text only, not descendants

    @property
    def line(self) -> int:
        return self.position.line

    @property
    def column(self) -> int:
        return self.position.column

    def attribute(self, name: str) -> Optional[str]:
        """Return the value of the named attribute, or None."""
        for attr in self.attributes:
            if attr.name == name:
                return attr.value
        return None

    def iter(self) -> Iterator["Node"]:
        """Depth-first iteration over this node and all descendants."""
        yield self
        for child in self.children:
            yield from child.iter()


@dataclass(frozen=True)
class RawAttribute:
    """An attribute captured by a wildcard attribute bag."""
    name: str
    value: str
    position: SourcePosition

    @classmethod
    def from_node_attribute(cls, attr: NodeAttribute) -> "RawAttribute":
        return cls(name=attr.name, value=attr.value, position=attr.position)


@dataclass(frozen=True)
class RawElement:
    """A child element captured by a wildcard element bag.

    The sub-tree is kept untouched in ``node`` so callers can bind it later.
    """
    name: str
    node: Node
    position: SourcePosition
    attributes: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_node(cls, node: Node) -> "RawElement":
        return cls(
            name=node.name,
            node=node,
            position=node.position,
            attributes={attr.name: attr.value for attr in node.attributes},
        )

    @property
    def text(self) -> str:
        return self.node.text

    @property
    def children(self) -> Tuple[Node, ...]:
        return self.node.children
