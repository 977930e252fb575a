"""Attribute tree merger.

Hoists attributes shared by consecutive interval tree nodes into one common
wrapper node, rule by rule, so each maximal run becomes a single tag pair.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Mapping, Optional, Sequence

from doc2bbcode.intervaltree import AttributeInterval, Node, TreeBuilder
from doc2bbcode.rules import InlineRule, Priority

logger = logging.getLogger(__name__)


class TreeMerger:
    """Merge consecutive nodes carrying the same rule attributes.

    *rules* maps each :class:`Priority` to its inline rules in registration
    order.  Every rule gets one pass over the tree produced by the previous
    pass; earlier passes end up nested inside later ones.
    """

    def __init__(self, rules: Mapping[Priority, Sequence[InlineRule]]) -> None:
        self._rules = rules

    def merge(self, tree: Node) -> Node:
        """Return a new tree with every rule's runs hoisted into wrappers."""
        for priority in Priority:
            for rule in self._rules.get(priority, ()):
                tree = self._rule_pass(rule, tree)
        return tree

    # -- one rule -----------------------------------------------------------

    def _rule_pass(self, rule: InlineRule, tree: Node) -> Node:
        intervals = self._resolve_intervals(rule, tree)
        if intervals:
            logger.debug(
                "rule %r: %d interval(s) %s",
                rule.name,
                len(intervals),
                [(i.start, i.end) for i in intervals],
            )
        builder = TreeBuilder()
        self._build_tree(tree, builder, deque(intervals), is_root=True)
        return builder.get_tree()

    def _resolve_intervals(self, rule: InlineRule, tree: Node) -> list[AttributeInterval]:
        """Collect the maximal runs of *rule* in document order.

        Post-order walk.  A matching node extends the open interval only when
        it starts exactly where the interval ends and carries identical
        values; any non-matching node at or past the interval's end closes it.
        """
        intervals: list[AttributeInterval] = []
        is_open = False

        def visit(node: Node) -> None:
            nonlocal is_open
            for child in node.children:
                visit(child)

            if rule.matches(node.attributes):
                values = rule.extract(node.attributes)
                last = intervals[-1] if intervals else None
                if (
                    is_open
                    and last is not None
                    and last.end == node.start
                    and last.attributes == values
                ):
                    last.end = node.end
                else:
                    intervals.append(AttributeInterval(node.start, node.end, values))
                is_open = True
            elif is_open and node.start >= intervals[-1].end:
                is_open = False

        visit(tree)
        return intervals

    def _build_tree(
        self,
        node: Node,
        builder: TreeBuilder,
        pending: deque[AttributeInterval],
        is_root: bool = False,
    ) -> None:
        """Copy *node* into *builder*, wrapping the spans of *pending*.

        Intervals are consumed from the left of *pending* as the walk passes
        their end.
        """
        # The root already exists in the new tree; only its attributes move.
        if is_root:
            builder.active_node.add_attributes(node.attributes)
        else:
            builder.add_node(node)
            builder.focus_last_inserted()

        if not pending or pending[0].start >= node.end:
            self._copy_children(node, builder)
            builder.focus_parent()
            return

        interval = pending[0]
        if interval.start == node.start and interval.end == node.end:
            builder.active_node.add_attributes(interval.attributes)
            self._copy_children(node, builder, interval)
            builder.focus_parent()
            pending.popleft()
            return

        wrapper_end: Optional[int] = None
        children = node.children
        for index, child in enumerate(children):
            if not pending:
                self._copy_subtree(child, builder)
                continue

            interval = pending[0]

            # A child reaching past the open wrapper is left out of it.
            if wrapper_end is not None and child.end > wrapper_end:
                builder.focus_parent()
                wrapper_end = None

            if wrapper_end is None:
                has_started = interval.start <= child.start
                spans_two_children = (
                    index + 1 < len(children)
                    and interval.end >= children[index + 1].end
                )
                if has_started and spans_two_children:
                    wrapper_end = min(interval.end, node.end)
                    builder.add_leaf(child.start, wrapper_end, interval.attributes)
                    builder.focus_last_inserted()
                    self._copy_subtree(child, builder, interval)
                else:
                    self._build_tree(child, builder, pending)
            else:
                self._copy_subtree(child, builder, interval)

            if wrapper_end is not None and child.end >= wrapper_end:
                builder.focus_parent()
                wrapper_end = None

            if pending and pending[0] is interval and interval.end <= child.end:
                pending.popleft()

        if wrapper_end is not None:
            builder.focus_parent()
        builder.focus_parent()

    # -- copying ------------------------------------------------------------

    def _copy_subtree(
        self,
        node: Node,
        builder: TreeBuilder,
        interval: Optional[AttributeInterval] = None,
    ) -> None:
        """Copy *node* and its subtree, stripping *interval*'s attributes."""
        builder.add_node(node)
        builder.focus_last_inserted()
        if interval is not None:
            builder.active_node.remove_attributes(interval.attributes)
        self._copy_children(node, builder, interval)
        builder.focus_parent()

    def _copy_children(
        self,
        node: Node,
        builder: TreeBuilder,
        interval: Optional[AttributeInterval] = None,
    ) -> None:
        for child in node.children:
            self._copy_subtree(child, builder, interval)
