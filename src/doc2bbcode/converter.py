"""High-level document-to-BBCode conversion orchestrator.

Walks a model fragment and its view fragment in lockstep, handing text runs
to the inline processor and everything else to the block processor.  Also
offers the Markdown convenience API used by the CLI and the web service.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

from doc2bbcode.document import (
    ModelFragment,
    ModelPosition,
    ModelRange,
    ViewFragment,
    ViewPosition,
    ViewRange,
)
from doc2bbcode.editing import EditingPipeline
from doc2bbcode.mapper import Mapper
from doc2bbcode.parser import MarkdownParser
from doc2bbcode.processors import (
    BlockElementProcessor,
    ConversionResult,
    InlineElementProcessor,
)
from doc2bbcode.rules import RuleTable

logger = logging.getLogger(__name__)


class Converter:
    """Convert a model/view document pair to BBCode.

    Usage::

        converter = Converter(preset="phpbb", mapper=mapper)
        bbcode = converter.convert(model_fragment, view_fragment)

        # or from Markdown
        bbcode = Converter(preset="extended").convert_text("**Hello**")
    """

    PRESETS = RuleTable.PRESETS

    def __init__(
        self,
        preset: str = "phpbb",
        *,
        rules: Optional[RuleTable] = None,
        mapper: Optional[Mapper] = None,
    ) -> None:
        self.rules = rules if rules is not None else RuleTable(preset)
        self._mapper = mapper
        self.inline_processor = InlineElementProcessor(self.rules)
        self.block_processor = BlockElementProcessor(self.rules)
        self.inline_processor.set_converter(self)
        self.block_processor.set_converter(self)

    @property
    def mapper(self) -> Mapper:
        """Default mapper for :meth:`convert` calls that do not pass one."""
        if self._mapper is None:
            raise RuntimeError("No mapper set; call set_mapper() before converting")
        return self._mapper

    def set_mapper(self, mapper: Mapper) -> None:
        self._mapper = mapper

    # -- document API -------------------------------------------------------

    def convert(
        self,
        model_fragment: Any,
        view_fragment: Any,
        *,
        mapper: Optional[Mapper] = None,
    ) -> str:
        """Return the BBCode for a model fragment and its view fragment.

        *mapper* binds the two fragments; it defaults to the converter's own.
        Anything other than two non-empty fragments yields ``""``.
        """
        if not isinstance(model_fragment, ModelFragment) or not isinstance(
            view_fragment, ViewFragment
        ):
            logger.debug(
                "not a fragment pair (%s, %s), nothing to convert",
                type(model_fragment).__name__,
                type(view_fragment).__name__,
            )
            return ""
        if model_fragment.is_empty or view_fragment.is_empty:
            logger.debug("empty fragment, nothing to convert")
            return ""

        result = self.process_children(
            ModelRange.inside(model_fragment),
            ViewRange.inside(view_fragment),
            mapper if mapper is not None else self.mapper,
        )
        return result.text.strip()

    def process_children(
        self,
        model_range: ModelRange,
        view_range: ViewRange,
        mapper: Mapper,
    ) -> ConversionResult:
        """Convert everything inside two matching ranges."""
        model_end = model_range.end
        view_end = view_range.end
        model_position = model_range.start
        view_position = view_range.start

        output = ""
        while model_position.is_before(model_end) and view_position.is_before(view_end):
            if model_position.node_after is None:
                # Ranges mapped from the view may span flat model siblings.
                parent = model_position.parent
                if parent.parent is None:
                    break
                model_position = ModelPosition.after(parent)
                continue

            result = self.process_node(model_position, view_position, mapper)
            output += result.text
            model_position = result.model_position
            view_position = result.view_position

        return ConversionResult(output, model_end, view_end)

    def process_node(
        self,
        model_position: ModelPosition,
        view_position: ViewPosition,
        mapper: Mapper,
    ) -> ConversionResult:
        if model_position.node_after.is_text:
            return self.inline_processor.process(model_position, view_position, mapper)
        return self.block_processor.process(model_position, view_position, mapper)

    # -- Markdown API -------------------------------------------------------

    def convert_text(self, markdown_text: str) -> str:
        """Convert Markdown text to BBCode.

        Args:
            markdown_text: Markdown source string.

        Returns:
            BBCode string.
        """
        source = MarkdownParser().parse(markdown_text)
        document = EditingPipeline().build(source)
        return self.convert(document.model, document.view, mapper=document.mapper)

    def convert_file(
        self,
        input_path: str | Path,
        output_path: str | Path,
        *,
        encoding: str = "utf-8",
    ) -> None:
        """Read a Markdown file and write the BBCode output.

        Args:
            input_path: Path to the input ``.md`` file.
            output_path: Path for the output ``.bbcode`` file.
            encoding: Text encoding of the source file.
        """
        input_path = Path(input_path)
        output_path = Path(output_path)

        md_text = input_path.read_text(encoding=encoding)
        bbcode = self.convert_text(md_text)

        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(bbcode, encoding="utf-8")
