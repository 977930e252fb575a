"""Model and view document trees with positions and ranges.

The converter reads two parallel representations of one document:

* the **model** tree holds semantic structure (``paragraph``, ``listItem``,
  ``softBreak``...) and text nodes carrying formatting attributes
  (``bold``, ``linkHref``...).  Model offsets count characters for text
  nodes and ``1`` for elements.
* the **view** tree holds the rendering structure (``p``, ``ul``/``li``...)
  that the model does not have.  View offsets count child nodes.

Both trees are addressed with ``(parent, offset)`` positions.  Positions only
support what the converter needs: ordering, and the node before/after them.
"""

from __future__ import annotations

from typing import Any, Optional, Union


# ---------------------------------------------------------------------------
# Shared node behaviour
# ---------------------------------------------------------------------------

class _TreeNode:
    """Base class for every node that can sit inside a container."""

    is_text = False
    name: Optional[str] = None

    def __init__(self) -> None:
        self.parent: Optional[_Container] = None

    @property
    def offset_size(self) -> int:
        return 1

    @property
    def start_offset(self) -> int:
        if self.parent is None:
            raise ValueError(f"{self!r} is not attached to a tree")
        return self.parent.offset_of(self)

    @property
    def end_offset(self) -> int:
        return self.start_offset + self.offset_size

    @property
    def next_sibling(self) -> Optional[_TreeNode]:
        if self.parent is None:
            return None
        siblings = self.parent.children
        index = siblings.index(self) + 1
        return siblings[index] if index < len(siblings) else None


class _Container:
    """Mixin for nodes that own an ordered list of children."""

    def _init_children(self, children: Optional[list[Any]]) -> None:
        self.children: list[Any] = []
        for child in children or []:
            self.append(child)

    def append(self, node: Any) -> Any:
        node.parent = self
        self.children.append(node)
        return node

    def extend(self, nodes: list[Any]) -> None:
        for node in nodes:
            self.append(node)

    @property
    def max_offset(self) -> int:
        return sum(child.offset_size for child in self.children)

    @property
    def is_empty(self) -> bool:
        return not self.children

    def offset_of(self, child: Any) -> int:
        offset = 0
        for node in self.children:
            if node is child:
                return offset
            offset += node.offset_size
        raise ValueError(f"{child!r} is not a child of {self!r}")


# ---------------------------------------------------------------------------
# Model tree
# ---------------------------------------------------------------------------

class ModelText(_TreeNode):
    """A run of characters sharing one attribute set."""

    is_text = True

    def __init__(self, data: str, attributes: Optional[dict[str, Any]] = None) -> None:
        super().__init__()
        self.data = data
        self.attributes: dict[str, Any] = dict(attributes or {})

    @property
    def offset_size(self) -> int:
        return len(self.data)

    def __repr__(self) -> str:
        return f"ModelText({self.data!r}, {self.attributes!r})"


class _ModelContainer(_Container):

    def append(self, node: Any) -> Any:
        # Adjacent text with identical attributes is one node in the model.
        if isinstance(node, ModelText) and self.children:
            last = self.children[-1]
            if isinstance(last, ModelText) and last.attributes == node.attributes:
                last.data += node.data
                return last
        return super().append(node)


class ModelElement(_TreeNode, _ModelContainer):
    """A named model element, e.g. ``paragraph`` or ``listItem``."""

    def __init__(
        self,
        name: str,
        attributes: Optional[dict[str, Any]] = None,
        children: Optional[list[Any]] = None,
    ) -> None:
        super().__init__()
        self.name = name
        self.attributes: dict[str, Any] = dict(attributes or {})
        self._init_children(children)

    def __repr__(self) -> str:
        return f"ModelElement({self.name!r})"


class ModelFragment(_ModelContainer):
    """Root of a model tree.  Has no identity of its own."""

    def __init__(self, children: Optional[list[Any]] = None) -> None:
        self.parent = None
        self._init_children(children)

    def __repr__(self) -> str:
        return f"ModelFragment({len(self.children)} children)"


# ---------------------------------------------------------------------------
# View tree
# ---------------------------------------------------------------------------

class ViewText(_TreeNode):
    """Rendered text.  Atomic: it occupies a single view offset."""

    is_text = True

    def __init__(self, data: str) -> None:
        super().__init__()
        self.data = data

    def __repr__(self) -> str:
        return f"ViewText({self.data!r})"


class ViewElement(_TreeNode, _Container):
    """A rendering element such as ``p``, ``ul`` or ``li``."""

    def __init__(
        self,
        name: str,
        attributes: Optional[dict[str, Any]] = None,
        children: Optional[list[Any]] = None,
    ) -> None:
        super().__init__()
        self.name = name
        self.attributes: dict[str, Any] = dict(attributes or {})
        self._init_children(children)

    def __repr__(self) -> str:
        return f"ViewElement({self.name!r})"


class ViewFragment(_Container):
    """Root of a view tree."""

    def __init__(self, children: Optional[list[Any]] = None) -> None:
        self.parent = None
        self._init_children(children)

    def __repr__(self) -> str:
        return f"ViewFragment({len(self.children)} children)"


ModelNode = Union[ModelText, ModelElement]
ModelParent = Union[ModelElement, ModelFragment]
ViewNode = Union[ViewText, ViewElement]
ViewParent = Union[ViewElement, ViewFragment]


# ---------------------------------------------------------------------------
# Positions and ranges
# ---------------------------------------------------------------------------

class _Position:
    """A location between two children of ``parent``."""

    def __init__(self, parent: Any, offset: int) -> None:
        self.parent = parent
        self.offset = offset

    @classmethod
    def before(cls, node: Any):
        return cls(node.parent, node.start_offset)

    @classmethod
    def after(cls, node: Any):
        return cls(node.parent, node.end_offset)

    @property
    def node_after(self) -> Optional[Any]:
        offset = 0
        for child in self.parent.children:
            if offset == self.offset:
                return child
            if offset > self.offset:
                break
            offset += child.offset_size
        return None

    @property
    def node_before(self) -> Optional[Any]:
        offset = 0
        for child in self.parent.children:
            offset += child.offset_size
            if offset == self.offset:
                return child
            if offset > self.offset:
                break
        return None

    @property
    def text_node(self) -> Optional[Any]:
        """The text node this position splits, if any."""
        offset = 0
        for child in self.parent.children:
            end = offset + child.offset_size
            if offset < self.offset < end:
                return child if child.is_text else None
            offset = end
        return None

    @property
    def path(self) -> list[int]:
        path = [self.offset]
        node = self.parent
        while isinstance(node, _TreeNode) and node.parent is not None:
            path.insert(0, node.start_offset)
            node = node.parent
        return path

    @property
    def root(self) -> Any:
        node = self.parent
        while isinstance(node, _TreeNode) and node.parent is not None:
            node = node.parent
        return node

    def is_before(self, other: _Position) -> bool:
        return self.path < other.path

    def is_after(self, other: _Position) -> bool:
        return self.path > other.path

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, _Position):
            return NotImplemented
        return self.parent is other.parent and self.offset == other.offset

    def __hash__(self) -> int:
        return hash((id(self.parent), self.offset))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.parent!r}, {self.offset})"


class ModelPosition(_Position):
    pass


class ViewPosition(_Position):
    pass


class _Range:
    position_class: type[_Position] = _Position

    def __init__(self, start: _Position, end: _Position) -> None:
        self.start = start
        self.end = end

    @classmethod
    def inside(cls, container: Any):
        """Range covering all children of *container*."""
        make = cls.position_class
        return cls(make(container, 0), make(container, container.max_offset))

    @classmethod
    def on(cls, node: Any):
        """Range covering *node* itself."""
        make = cls.position_class
        return cls(make.before(node), make.after(node))

    @property
    def is_collapsed(self) -> bool:
        return self.start == self.end

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.start!r}, {self.end!r})"


class ModelRange(_Range):
    position_class = ModelPosition


class ViewRange(_Range):
    position_class = ViewPosition
