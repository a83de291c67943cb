"""Hand-built syntax trees that look like tree-sitter output to the extractor."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import SimpleNamespace
from typing import Any, Dict, List, Optional


@dataclass
class FakeNode:
    type: str
    start_byte: int
    end_byte: int
    children: List["FakeNode"] = field(default_factory=list)
    field_name: Optional[str] = None
    has_error: bool = False

    def child_by_field_name(self, name: str) -> Optional["FakeNode"]:
        for child in self.children:
            if child.field_name == name:
                return child
        return None


class SyntaxBuilder:
    """Builds nodes over ``source``; leaves must be created in source order.

    Each leaf is located by searching for its text after the previous leaf,
    so nested ``node(...)`` calls written top to bottom line up with the
    source without spelling out byte offsets.
    """

    def __init__(self, source: str) -> None:
        self.source = source
        self.data = source.encode("utf-8")
        self._cursor = 0

    def leaf(self, node_type: str, text: str, *, field: str | None = None) -> FakeNode:
        encoded = text.encode("utf-8")
        start = self.data.find(encoded, self._cursor)
        if start < 0:
            raise ValueError(f"{text!r} not found after offset {self._cursor}")
        self._cursor = start + len(encoded)
        return FakeNode(node_type, start, self._cursor, field_name=field)

    def node(self, node_type: str, *children: FakeNode, field: str | None = None) -> FakeNode:
        if not children:
            raise ValueError("composite nodes need at least one child")
        return FakeNode(
            node_type,
            min(child.start_byte for child in children),
            max(child.end_byte for child in children),
            list(children),
            field_name=field,
        )

    def tree(self, *children: FakeNode) -> Any:
        return SimpleNamespace(root_node=FakeNode("source_file", 0, len(self.data), list(children)))


def simple_contract(builder: SyntaxBuilder, name: str, *parents: str, keyword: str = "contract") -> FakeNode:
    """`contract Name is A, B {}` with an empty body."""
    kinds = {"contract": "contract_declaration", "interface": "interface_declaration", "library": "library_declaration"}
    children = [builder.leaf(keyword, keyword), builder.leaf("identifier", name, field="name")]
    for parent in parents:
        children.append(builder.node("inheritance_specifier", builder.leaf("user_defined_type", parent, field="ancestor")))
    children.append(builder.leaf("contract_body", "{}"))
    return builder.node(kinds[keyword], *children)


class FakeParser:
    """`SourceParser` returning prepared trees keyed by source text."""

    def __init__(self, trees: Dict[str, Any]) -> None:
        self._trees = {source.encode("utf-8"): tree for source, tree in trees.items()}
        self.calls: List[bytes] = []

    def parse(self, source: bytes) -> Any:
        self.calls.append(source)
        tree = self._trees.get(source)
        if tree is None:
            from port2monad.errors import SourceParseError

            raise SourceParseError("Failed to parse AST")
        return tree


__all__ = ["FakeNode", "FakeParser", "SyntaxBuilder", "simple_contract"]
