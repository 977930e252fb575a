"""Markdown parser producing the source AST fed to the editing pipeline.

Uses mistune v3 to parse Markdown and converts its token stream into
:class:`ASTNode` trees.  ``^^text^^`` (mistune's *insert* plugin) is read as
underline, since plain Markdown has no underline syntax.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

import mistune


# ---------------------------------------------------------------------------
# AST node definitions
# ---------------------------------------------------------------------------

class NodeType(Enum):
    DOCUMENT = "document"
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    TEXT = "text"
    BOLD = "bold"
    ITALIC = "italic"
    UNDERLINE = "underline"
    STRIKETHROUGH = "strikethrough"
    INLINE_CODE = "inline_code"
    CODE_BLOCK = "code_block"
    ORDERED_LIST = "ordered_list"
    UNORDERED_LIST = "unordered_list"
    LIST_ITEM = "list_item"
    BLOCKQUOTE = "blockquote"
    HORIZONTAL_RULE = "horizontal_rule"
    LINK = "link"
    IMAGE = "image"
    LINE_BREAK = "line_break"
    SOFT_BREAK = "soft_break"


@dataclass
class ASTNode:
    type: NodeType
    children: list[ASTNode] = field(default_factory=list)
    text: str = ""
    # Heading
    level: int = 0
    # Code block
    language: str = ""
    # Link / Image
    url: str = ""
    title: str = ""
    alt: str = ""


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

class MarkdownParser:
    """Parse Markdown text into an :class:`ASTNode` tree."""

    def __init__(self) -> None:
        self._md = mistune.create_markdown(
            renderer=None,  # AST mode
            plugins=["strikethrough", "insert", "url"],
        )

    # -- public API ---------------------------------------------------------

    def parse(self, markdown_text: str) -> ASTNode:
        """Return a *DOCUMENT* ``ASTNode`` for *markdown_text*."""
        tokens: list[dict[str, Any]] = self._md(markdown_text)  # type: ignore[assignment]
        return ASTNode(type=NodeType.DOCUMENT, children=self._convert_tokens(tokens))

    # -- token conversion ---------------------------------------------------

    def _convert_tokens(self, tokens: list[dict[str, Any]]) -> list[ASTNode]:
        nodes: list[ASTNode] = []
        for tok in tokens:
            node = self._convert_token(tok)
            if node is not None:
                nodes.append(node)
        return nodes

    def _convert_token(self, tok: dict[str, Any]) -> Optional[ASTNode]:
        ttype = tok.get("type", "")
        handler = getattr(self, f"_handle_{ttype}", None)
        if handler:
            return handler(tok)
        # Unknown tokens (raw HTML...) keep their text.
        raw = tok.get("raw", tok.get("text", ""))
        if raw:
            return ASTNode(type=NodeType.TEXT, text=str(raw))
        return None

    def _convert_inline(self, children: Any) -> list[ASTNode]:
        if children is None:
            return []
        if isinstance(children, str):
            return [ASTNode(type=NodeType.TEXT, text=children)]
        if isinstance(children, list):
            return self._convert_tokens(children)
        return []

    def _children(self, tok: dict) -> list[ASTNode]:
        return self._convert_inline(tok.get("children") or tok.get("text", ""))

    # -- block handlers -----------------------------------------------------

    def _handle_heading(self, tok: dict) -> ASTNode:
        return ASTNode(
            type=NodeType.HEADING,
            level=tok.get("attrs", {}).get("level", tok.get("level", 1)),
            children=self._children(tok),
        )

    def _handle_paragraph(self, tok: dict) -> ASTNode:
        return ASTNode(type=NodeType.PARAGRAPH, children=self._children(tok))

    def _handle_block_text(self, tok: dict) -> ASTNode:
        """Tight list item content."""
        return ASTNode(type=NodeType.PARAGRAPH, children=self._children(tok))

    def _handle_block_code(self, tok: dict) -> ASTNode:
        attrs = tok.get("attrs", {})
        raw = tok.get("raw", tok.get("text", ""))
        return ASTNode(
            type=NodeType.CODE_BLOCK,
            text=raw if isinstance(raw, str) else str(raw),
            language=attrs.get("info", tok.get("info", "")) or "",
        )

    def _handle_block_quote(self, tok: dict) -> ASTNode:
        children_raw = tok.get("children", [])
        children = (
            self._convert_tokens(children_raw)
            if isinstance(children_raw, list)
            else self._convert_inline(children_raw)
        )
        return ASTNode(type=NodeType.BLOCKQUOTE, children=children)

    def _handle_thematic_break(self, _tok: dict) -> ASTNode:
        return ASTNode(type=NodeType.HORIZONTAL_RULE)

    def _handle_list(self, tok: dict) -> ASTNode:
        ordered = tok.get("attrs", {}).get("ordered", False)
        children_raw = tok.get("children", [])
        items = self._convert_tokens(children_raw) if isinstance(children_raw, list) else []
        return ASTNode(
            type=NodeType.ORDERED_LIST if ordered else NodeType.UNORDERED_LIST,
            children=items,
        )

    def _handle_list_item(self, tok: dict) -> ASTNode:
        children_raw = tok.get("children", [])
        children = (
            self._convert_tokens(children_raw)
            if isinstance(children_raw, list)
            else self._convert_inline(children_raw)
        )
        return ASTNode(type=NodeType.LIST_ITEM, children=children)

    def _handle_blank_line(self, _tok: dict) -> Optional[ASTNode]:
        return None

    # -- inline handlers ----------------------------------------------------

    def _handle_text(self, tok: dict) -> ASTNode:
        raw = tok.get("raw", tok.get("text", tok.get("children", "")))
        if isinstance(raw, str):
            return ASTNode(type=NodeType.TEXT, text=raw)
        return ASTNode(type=NodeType.TEXT, children=self._convert_inline(raw))

    def _handle_strong(self, tok: dict) -> ASTNode:
        return ASTNode(type=NodeType.BOLD, children=self._children(tok))

    def _handle_emphasis(self, tok: dict) -> ASTNode:
        return ASTNode(type=NodeType.ITALIC, children=self._children(tok))

    def _handle_insert(self, tok: dict) -> ASTNode:
        return ASTNode(type=NodeType.UNDERLINE, children=self._children(tok))

    def _handle_strikethrough(self, tok: dict) -> ASTNode:
        return ASTNode(type=NodeType.STRIKETHROUGH, children=self._children(tok))

    def _handle_codespan(self, tok: dict) -> ASTNode:
        raw = tok.get("raw", tok.get("text", tok.get("children", "")))
        return ASTNode(type=NodeType.INLINE_CODE, text=raw if isinstance(raw, str) else str(raw))

    def _handle_link(self, tok: dict) -> ASTNode:
        attrs = tok.get("attrs", {})
        return ASTNode(
            type=NodeType.LINK,
            url=attrs.get("url", tok.get("link", "")),
            title=attrs.get("title", "") or "",
            children=self._children(tok),
        )

    def _handle_image(self, tok: dict) -> ASTNode:
        attrs = tok.get("attrs", {})
        alt = attrs.get("alt", tok.get("alt", ""))
        children_raw = tok.get("children")
        if not alt and children_raw:
            alt = self._extract_text(children_raw)
        return ASTNode(
            type=NodeType.IMAGE,
            url=attrs.get("url", tok.get("src", "")),
            title=attrs.get("title", "") or "",
            alt=alt,
        )

    def _handle_linebreak(self, _tok: dict) -> ASTNode:
        return ASTNode(type=NodeType.LINE_BREAK)

    def _handle_softbreak(self, _tok: dict) -> ASTNode:
        return ASTNode(type=NodeType.SOFT_BREAK)

    # -- helpers ------------------------------------------------------------

    def _extract_text(self, children: Any) -> str:
        if isinstance(children, str):
            return children
        if isinstance(children, list):
            parts: list[str] = []
            for c in children:
                if isinstance(c, dict):
                    parts.append(c.get("raw", c.get("text", "")))
                elif isinstance(c, str):
                    parts.append(c)
            return "".join(parts)
        return ""
