"""Editing pipeline: source AST to model tree, view tree and mapper.

Plays the part of the editor framework that owns the documents.  Each
:class:`~doc2bbcode.parser.ASTNode` is cast down twice: into the model
schema (``paragraph``, flat ``listItem`` elements with ``listType`` and
``listIndent``, text nodes carrying formatting attributes) and into the view
(``p``, nested ``ul``/``ol`` > ``li``...).  Every model node is bound to its
rendering in the :class:`~doc2bbcode.mapper.Mapper`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from doc2bbcode.document import (
    ModelElement,
    ModelFragment,
    ModelText,
    ViewElement,
    ViewFragment,
    ViewText,
)
from doc2bbcode.mapper import Mapper
from doc2bbcode.parser import ASTNode, NodeType

# Deeper headings fold into this level.
MAX_HEADING_LEVEL = 3

_INLINE_TYPES = {
    NodeType.TEXT,
    NodeType.BOLD,
    NodeType.ITALIC,
    NodeType.UNDERLINE,
    NodeType.STRIKETHROUGH,
    NodeType.INLINE_CODE,
    NodeType.LINK,
    NodeType.IMAGE,
    NodeType.LINE_BREAK,
    NodeType.SOFT_BREAK,
}

_ATTRIBUTE_FOR_TYPE = {
    NodeType.BOLD: "bold",
    NodeType.ITALIC: "italic",
    NodeType.UNDERLINE: "underline",
    NodeType.STRIKETHROUGH: "strikethrough",
}


def _extract_plain_text(node: ASTNode) -> str:
    """Recursively extract plain text from an AST subtree."""
    parts: list[str] = []
    if node.text:
        parts.append(node.text)
    for child in node.children:
        parts.append(_extract_plain_text(child))
    return "".join(parts)


@dataclass
class EditedDocument:
    """The two trees of one document and the mapper binding them."""

    model: ModelFragment
    view: ViewFragment
    mapper: Mapper


class EditingPipeline:
    """Build an :class:`EditedDocument` from a *DOCUMENT* ``ASTNode``."""

    def __init__(self) -> None:
        self._mapper = Mapper()

    # ======================================================================
    # Public API
    # ======================================================================

    def build(self, doc: ASTNode) -> EditedDocument:
        assert doc.type == NodeType.DOCUMENT, (
            f"Expected DOCUMENT node, got {doc.type}"
        )
        self._mapper = Mapper()
        model = ModelFragment()
        view = ViewFragment()
        self._mapper.bind(model, view)

        self._downcast_blocks(doc.children, model, view)
        return EditedDocument(model=model, view=view, mapper=self._mapper)

    # ======================================================================
    # Block dispatch
    # ======================================================================

    def _downcast_blocks(self, nodes: list[ASTNode], model: Any, view: Any) -> None:
        for node in nodes:
            if node.type in _INLINE_TYPES:
                # Stray inline content at block level gets its own paragraph.
                element, rendering = self._add_element(model, view, "paragraph", "p")
                self._downcast_inline([node], element, rendering, {})
                continue
            handler = getattr(self, f"_downcast_{node.type.value}", None)
            if handler is not None:
                handler(node, model, view)

    def _downcast_paragraph(self, node: ASTNode, model: Any, view: Any) -> None:
        element, rendering = self._add_element(model, view, "paragraph", "p")
        self._downcast_inline(node.children, element, rendering, {})

    def _downcast_heading(self, node: ASTNode, model: Any, view: Any) -> None:
        level = max(1, min(MAX_HEADING_LEVEL, node.level))
        element, rendering = self._add_element(model, view, f"heading{level}", f"h{level}")
        self._downcast_inline(node.children, element, rendering, {})

    def _downcast_code_block(self, node: ASTNode, model: Any, view: Any) -> None:
        attributes = {"language": node.language} if node.language else {}
        element, rendering = self._add_element(model, view, "codeBlock", "pre", attributes)
        code = node.text[:-1] if node.text.endswith("\n") else node.text
        self._add_text(code, {}, element, rendering)

    def _downcast_blockquote(self, node: ASTNode, model: Any, view: Any) -> None:
        element, rendering = self._add_element(model, view, "blockQuote", "blockquote")
        self._downcast_blocks(node.children, element, rendering)

    def _downcast_horizontal_rule(self, _node: ASTNode, model: Any, view: Any) -> None:
        self._add_element(model, view, "horizontalLine", "hr")

    def _downcast_ordered_list(self, node: ASTNode, model: Any, view: Any) -> None:
        self._downcast_list(node, model, view, indent=0)

    def _downcast_unordered_list(self, node: ASTNode, model: Any, view: Any) -> None:
        self._downcast_list(node, model, view, indent=0)

    # ======================================================================
    # Lists
    # ======================================================================

    def _downcast_list(self, node: ASTNode, model: Any, view: Any, *, indent: int) -> None:
        """Flat ``listItem`` elements in the model, nested lists in the view."""
        ordered = node.type == NodeType.ORDERED_LIST
        list_view = view.append(ViewElement("ol" if ordered else "ul"))
        attributes = {
            "listType": "numbered" if ordered else "bulleted",
            "listIndent": indent,
        }

        for item in node.children:
            element, rendering = self._add_element(model, list_view, "listItem", "li", attributes)
            has_content = False
            for child in item.children:
                if child.type in (NodeType.ORDERED_LIST, NodeType.UNORDERED_LIST):
                    self._downcast_list(child, model, rendering, indent=indent + 1)
                    continue
                if has_content:
                    self._add_break(element, rendering)
                if child.type == NodeType.PARAGRAPH:
                    self._downcast_inline(child.children, element, rendering, {})
                else:
                    self._add_text(_extract_plain_text(child), {}, element, rendering)
                has_content = True

    # ======================================================================
    # Inline content
    # ======================================================================

    def _downcast_inline(
        self,
        nodes: list[ASTNode],
        model: ModelElement,
        view: ViewElement,
        attributes: dict[str, Any],
    ) -> None:
        for node in nodes:
            self._downcast_inline_child(node, model, view, attributes)

    def _downcast_inline_child(
        self,
        node: ASTNode,
        model: ModelElement,
        view: ViewElement,
        attributes: dict[str, Any],
    ) -> None:
        nt = node.type

        if nt == NodeType.TEXT:
            text = node.text
            if not text and node.children:
                text = _extract_plain_text(node)
            self._add_text(text, attributes, model, view)
            return

        if nt in _ATTRIBUTE_FOR_TYPE:
            derived = {**attributes, _ATTRIBUTE_FOR_TYPE[nt]: True}
            self._downcast_inline(node.children, model, view, derived)
            return

        if nt == NodeType.INLINE_CODE:
            text = node.text or _extract_plain_text(node)
            self._add_text(text, {**attributes, "code": True}, model, view)
            return

        if nt == NodeType.LINK:
            derived = {**attributes, "linkHref": node.url}
            if node.children:
                self._downcast_inline(node.children, model, view, derived)
            else:
                self._add_text(node.url, derived, model, view)
            return

        if nt == NodeType.IMAGE:
            self._add_text(node.alt or node.title or node.url, attributes, model, view)
            return

        if nt == NodeType.LINE_BREAK:
            self._add_break(model, view)
            return

        if nt == NodeType.SOFT_BREAK:
            self._add_text(" ", attributes, model, view)
            return

        self._add_text(_extract_plain_text(node), attributes, model, view)

    # ======================================================================
    # Node builders
    # ======================================================================

    def _add_element(
        self,
        model: Any,
        view: Any,
        model_name: str,
        view_name: str,
        attributes: dict[str, Any] | None = None,
    ) -> tuple[ModelElement, ViewElement]:
        element = model.append(ModelElement(model_name, attributes))
        rendering = view.append(ViewElement(view_name))
        self._mapper.bind(element, rendering)
        return element, rendering

    def _add_break(self, model: ModelElement, view: ViewElement) -> None:
        self._add_element(model, view, "softBreak", "br")

    def _add_text(
        self,
        text: str,
        attributes: dict[str, Any],
        model: Any,
        view: Any,
    ) -> None:
        if not text:
            return
        node = model.append(ModelText(text, attributes))
        rendering = self._mapper.to_view_node(node)
        if rendering is not None:
            # The model merged this text into the previous node.
            rendering.data = node.data
            return
        rendering = view.append(ViewText(text))
        self._mapper.bind(node, rendering)
