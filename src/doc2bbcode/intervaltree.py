"""Attribute interval tree.

An ordered tree of half-open ``[start, end)`` spans over the offsets of one
inline run.  Leaves hold literal text; inner (wrapper) nodes hold the
attributes hoisted out of the leaves they cover.  Trees are only ever built
through :class:`TreeBuilder`, which keeps children ordered and parents
covering their children.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional


class Node:
    """Interval tree node.

    Most operations assume children are sorted by start offset and do not
    intersect; :class:`TreeBuilder` guarantees both.
    """

    def __init__(
        self,
        node_id: int,
        start: int,
        end: int,
        attributes: Optional[Mapping[str, Any]] = None,
        text: Optional[str] = None,
    ) -> None:
        self.id = node_id
        self.start = start
        self.end = end
        self.attributes: dict[str, Any] = dict(attributes or {})
        self.text = text
        self.children: list[Node] = []

    @classmethod
    def clone(cls, node: Node, node_id: int) -> Node:
        """Copy *node* without its children, under a new id."""
        return cls(node_id, node.start, node.end, node.attributes, node.text)

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def widen(self, start: int, end: int) -> None:
        """Grow the span so it covers ``[start, end)``."""
        if self.start < 0 or start < self.start:
            self.start = start
        if end > self.end:
            self.end = end

    def add_child(self, node: Node) -> None:
        self.widen(node.start, node.end)
        self.children.append(node)

    def add_attributes(self, attributes: Mapping[str, Any]) -> None:
        """Set *attributes*, ordering them before the existing entries."""
        merged = dict(attributes)
        for key, value in self.attributes.items():
            merged.setdefault(key, value)
        self.attributes = merged

    def remove_attributes(self, names: Iterable[str]) -> None:
        for name in names:
            self.attributes.pop(name, None)

    def sort(self) -> None:
        """Sort every level of the subtree by start offset (stable)."""
        self.children.sort(key=lambda child: child.start)
        for child in self.children:
            child.sort()

    def __repr__(self) -> str:
        return (
            f"Node(id={self.id}, [{self.start}, {self.end}), "
            f"{self.attributes!r}, text={self.text!r}, children={len(self.children)})"
        )


@dataclass
class AttributeInterval:
    """A maximal stretch sharing identical values for one rule's attributes."""

    start: int
    end: int
    attributes: dict[str, Any] = field(default_factory=dict)


class TreeBuilder:
    """Incremental interval tree builder with a focus cursor.

    The cursor is the path from the root to the active node; new nodes are
    appended under the active node.
    """

    def __init__(self) -> None:
        self._next_id = 0
        self._root = Node(self._new_id(), -1, 0)
        self._path: list[Node] = [self._root]
        self._last_path: list[Node] = [self._root]

    @property
    def active_node(self) -> Node:
        return self._path[-1]

    def add_leaf(
        self,
        start: int,
        end: int,
        attributes: Optional[Mapping[str, Any]] = None,
        text: Optional[str] = None,
    ) -> TreeBuilder:
        """Append a new node under the active node.

        With ``text=None`` the node acts as a wrapper that later children can
        be inserted into.
        """
        return self._insert(Node(self._new_id(), start, end, attributes, text))

    def add_node(self, node: Node) -> TreeBuilder:
        """Append a copy of *node* (without children) under the active node."""
        return self._insert(Node.clone(node, self._new_id()))

    def focus_last_inserted(self) -> None:
        self._path = list(self._last_path)

    def focus_parent(self) -> None:
        if len(self._path) > 1:
            self._path.pop()

    def get_tree(self) -> Node:
        self._root.sort()
        return self._root

    def _insert(self, node: Node) -> TreeBuilder:
        for ancestor in self._path[:-1]:
            ancestor.widen(node.start, node.end)
        self.active_node.add_child(node)
        self._last_path = self._path + [node]
        return self

    def _new_id(self) -> int:
        node_id = self._next_id
        self._next_id += 1
        return node_id
