"""Inline and block element processors.

Each processor handles the node right after a pair of synchronised model and
view positions, and reports the BBCode it produced together with the
positions just past what it consumed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

from doc2bbcode.document import ModelPosition, ModelRange, ViewPosition, ViewRange
from doc2bbcode.intervaltree import Node, TreeBuilder
from doc2bbcode.mapper import Mapper
from doc2bbcode.merger import TreeMerger
from doc2bbcode.rules import BlockRule, RuleTable, Side

if TYPE_CHECKING:
    from doc2bbcode.converter import Converter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversionResult:
    """Produced text plus where the walk continues on both trees."""

    text: str
    model_position: ModelPosition
    view_position: ViewPosition


class ElementProcessor:
    """Base class giving processors access to the rules and the converter."""

    def __init__(self, rules: RuleTable) -> None:
        self.rules = rules
        self._converter: Optional[Converter] = None

    @property
    def converter(self) -> Converter:
        if self._converter is None:
            raise RuntimeError(f"{type(self).__name__} is not attached to a converter")
        return self._converter

    def set_converter(self, converter: Converter) -> None:
        self._converter = converter


# ---------------------------------------------------------------------------
# Inline
# ---------------------------------------------------------------------------

class InlineElementProcessor(ElementProcessor):
    """Convert a run of consecutive model text nodes."""

    def process(
        self,
        model_position: ModelPosition,
        view_position: ViewPosition,
        mapper: Mapper,
    ) -> ConversionResult:
        builder = TreeBuilder()

        last_text: Optional[Any] = None
        node = model_position.node_after
        while node is not None and node.is_text:
            builder.add_leaf(node.start_offset, node.end_offset, node.attributes, node.data)
            last_text = node
            node = node.next_sibling

        if last_text is None:
            return ConversionResult("", model_position, view_position)

        tree = TreeMerger(self.rules.priorities).merge(builder.get_tree())
        end_model_position = ModelPosition.after(last_text)

        # The rendering of the last text node anchors the view end.
        last_view_position = mapper.to_view_position(ModelPosition.before(last_text))
        rendered = last_view_position.node_after
        if rendered is not None:
            end_view_position = ViewPosition.after(rendered)
        else:
            end_view_position = mapper.to_view_position(end_model_position)

        return ConversionResult(
            self.tree_to_string(tree),
            end_model_position,
            end_view_position,
        )

    def tree_to_string(self, tree: Node) -> str:
        """Serialise a merged interval tree to BBCode."""
        opening_tags = ""
        closing_tags = ""
        for key in tree.attributes:
            rule = self.rules.inline_rule(key)
            if rule is None:
                continue
            opening_tags += rule.opening_tag(tree.attributes)
            closing_tags = rule.closing_tag(tree.attributes) + closing_tags

        text = tree.text or ""
        for child in tree.children:
            text += self.tree_to_string(child)

        return opening_tags + text + closing_tags


# ---------------------------------------------------------------------------
# Block
# ---------------------------------------------------------------------------

class BlockElementProcessor(ElementProcessor):
    """Convert a block element with the rule registered for it, or skip it."""

    def process(
        self,
        model_position: ModelPosition,
        view_position: ViewPosition,
        mapper: Mapper,
    ) -> ConversionResult:
        model_node = model_position.node_after
        view_node = view_position.node_after

        rule = self.find_rule(model_node, view_node)
        if rule is None:
            return self._skip_node(model_position, view_position, mapper)
        if rule.side is Side.MODEL:
            return self._convert_model_element(rule, model_node, mapper)
        return self._convert_view_element(rule, view_node, mapper)

    def find_rule(self, model_node: Any, view_node: Any) -> Optional[BlockRule]:
        """Look up by model name first, then by view name.

        A rule only counts when it is registered for the side it was found
        through.
        """
        rule = self.rules.block_rule(getattr(model_node, "name", None))
        if rule is not None and rule.side is Side.MODEL:
            return rule
        rule = self.rules.block_rule(getattr(view_node, "name", None))
        if rule is not None and rule.side is Side.VIEW:
            return rule
        return None

    def _convert_model_element(
        self, rule: BlockRule, model_node: Any, mapper: Mapper
    ) -> ConversionResult:
        inner_model_range = ModelRange.inside(model_node)
        inner_view_range = mapper.to_view_range(inner_model_range)
        outer_model_range = ModelRange.on(model_node)
        outer_view_range = mapper.to_view_range(outer_model_range)

        content = self.converter.process_children(inner_model_range, inner_view_range, mapper)

        return ConversionResult(
            rule.opening_tag() + content.text + rule.closing_tag(),
            outer_model_range.end,
            outer_view_range.end,
        )

    def _convert_view_element(
        self, rule: BlockRule, view_node: Any, mapper: Mapper
    ) -> ConversionResult:
        inner_view_range = ViewRange.inside(view_node)
        inner_model_range = mapper.to_model_range(inner_view_range)
        outer_view_range = ViewRange.on(view_node)
        outer_model_range = mapper.to_model_range(outer_view_range)

        content = self.converter.process_children(inner_model_range, inner_view_range, mapper)

        return ConversionResult(
            rule.opening_tag() + content.text + rule.closing_tag(),
            outer_model_range.end,
            outer_view_range.end,
        )

    def _skip_node(
        self,
        model_position: ModelPosition,
        view_position: ViewPosition,
        mapper: Mapper,
    ) -> ConversionResult:
        """Step over an unconverted node on both trees and resynchronise.

        The later of the two landing points, mapped onto the other tree, wins.
        """
        model_node = model_position.node_after
        view_node = view_position.node_after
        logger.debug(
            "no rule for model %r / view %r, skipping",
            getattr(model_node, "name", None),
            getattr(view_node, "name", None),
        )

        model_end = ModelPosition.after(model_node)
        if view_node is not None:
            view_end = ViewPosition.after(view_node)
        else:
            view_end = mapper.to_view_position(model_end)

        view_model_end = mapper.to_model_position(view_end)
        if view_model_end.is_before(model_end):
            view_end = mapper.to_view_position(model_end)
        if model_end.is_before(view_model_end):
            model_end = view_model_end

        return ConversionResult("", model_end, view_end)
