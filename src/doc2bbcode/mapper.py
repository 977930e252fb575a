"""Position mapping between the model and the view tree.

The :class:`Mapper` is the oracle the converter uses to keep its walk over
both trees in lockstep.  Every model node that has a rendering is *bound* to
the view node rendering it; positions are translated through the nearest
bound neighbour.
"""

from __future__ import annotations

from typing import Any, Optional

from doc2bbcode.document import (
    ModelPosition,
    ModelRange,
    ViewPosition,
    ViewRange,
)


class Mapper:
    """Bidirectional binding between model and view nodes."""

    def __init__(self) -> None:
        self._model_to_view: dict[Any, Any] = {}
        self._view_to_model: dict[Any, Any] = {}

    def bind(self, model_node: Any, view_node: Any) -> None:
        """Record that *view_node* renders *model_node*."""
        self._model_to_view[model_node] = view_node
        self._view_to_model[view_node] = model_node

    def to_view_node(self, model_node: Any) -> Optional[Any]:
        return self._model_to_view.get(model_node)

    def to_model_node(self, view_node: Any) -> Optional[Any]:
        return self._view_to_model.get(view_node)

    # -- positions ----------------------------------------------------------

    def to_view_position(self, position: ModelPosition) -> ViewPosition:
        """Map a model position to the view.

        The node before the position wins over the node after it, so the end
        of a block maps to the end of its rendering rather than into the next
        rendered container.  View text is atomic: a position splitting a text
        node maps to the start of its rendering.
        """
        split = position.text_node
        if split is not None and split in self._model_to_view:
            return ViewPosition.before(self._model_to_view[split])

        before = position.node_before
        if before is not None and before in self._model_to_view:
            return ViewPosition.after(self._model_to_view[before])

        after = position.node_after
        if after is not None and after in self._model_to_view:
            return ViewPosition.before(self._model_to_view[after])

        view_parent = self._model_to_view.get(position.parent)
        if view_parent is None:
            raise ValueError(f"{position!r} is outside the mapped model tree")
        offset = 0 if position.offset == 0 else view_parent.max_offset
        return ViewPosition(view_parent, offset)

    def to_model_position(self, position: ViewPosition) -> ModelPosition:
        """Map a view position to the model.

        Unbound view containers (``ul``, ``ol``) are looked through: the
        position is anchored on the first bound node after it, or failing
        that on the last bound node before it.
        """
        children = position.parent.children

        for node in children[position.offset:]:
            bound = self._first_bound(node)
            if bound is not None:
                return ModelPosition.before(bound)

        for node in reversed(children[:position.offset]):
            bound = self._last_bound(node)
            if bound is not None:
                return ModelPosition.after(bound)

        model_parent = self._view_to_model.get(position.parent)
        if model_parent is not None:
            return ModelPosition(model_parent, 0)

        if position.parent.parent is None:
            raise ValueError(f"{position!r} is outside the mapped view tree")
        if position.offset == 0:
            return self.to_model_position(ViewPosition.before(position.parent))
        return self.to_model_position(ViewPosition.after(position.parent))

    # -- ranges -------------------------------------------------------------

    def to_view_range(self, model_range: ModelRange) -> ViewRange:
        return ViewRange(
            self.to_view_position(model_range.start),
            self.to_view_position(model_range.end),
        )

    def to_model_range(self, view_range: ViewRange) -> ModelRange:
        return ModelRange(
            self.to_model_position(view_range.start),
            self.to_model_position(view_range.end),
        )

    # -- internals ----------------------------------------------------------

    def _first_bound(self, view_node: Any) -> Optional[Any]:
        if view_node in self._view_to_model:
            return self._view_to_model[view_node]
        for child in getattr(view_node, "children", ()):
            bound = self._first_bound(child)
            if bound is not None:
                return bound
        return None

    def _last_bound(self, view_node: Any) -> Optional[Any]:
        if view_node in self._view_to_model:
            return self._view_to_model[view_node]
        for child in reversed(getattr(view_node, "children", ())):
            bound = self._last_bound(child)
            if bound is not None:
                return bound
        return None
