"""Integration tests for the Converter orchestrator."""

from __future__ import annotations

from pathlib import Path

import pytest

from doc2bbcode.converter import Converter
from doc2bbcode.document import (
    ModelElement,
    ModelFragment,
    ModelPosition,
    ModelText,
    ViewElement,
    ViewFragment,
    ViewPosition,
    ViewText,
)
from doc2bbcode.mapper import Mapper
from doc2bbcode.rules import (
    Priority,
    RuleTable,
    StaticBlockRule,
    StaticViewRule,
    inline_rule,
)

FIXTURE_DIR = Path(__file__).parent / "fixtures"
SAMPLE_MD = FIXTURE_DIR / "sample.md"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def paragraph_document(*runs: tuple[str, dict]):
    """One paragraph whose text runs are each rendered by their own view text."""
    mapper = Mapper()
    para = ModelElement("paragraph")
    p = ViewElement("p")
    for data, attributes in runs:
        text = para.append(ModelText(data, attributes))
        rendered = p.append(ViewText(data))
        mapper.bind(text, rendered)
    model = ModelFragment([para])
    view = ViewFragment([p])
    mapper.bind(model, view)
    mapper.bind(para, p)
    return model, view, mapper


class TestConverterInit:

    def test_default_preset(self):
        assert Converter().rules.preset == "phpbb"

    def test_invalid_preset_raises(self):
        with pytest.raises(ValueError):
            Converter(preset="nonexistent")

    def test_all_presets_valid(self):
        for preset in Converter.PRESETS:
            assert Converter(preset=preset).rules.preset == preset

    def test_mapper_required(self):
        with pytest.raises(RuntimeError):
            Converter().mapper


class TestConvertDocument:

    def test_bold_word(self):
        model, view, mapper = paragraph_document(("Hello ", {}), ("world", {"bold": True}))
        assert Converter(mapper=mapper).convert(model, view) == "Hello [b]world[/b]"

    def test_link_and_bold_same_span(self):
        model, view, mapper = paragraph_document(
            ("text", {"bold": True, "linkHref": "http://x"})
        )
        result = Converter(mapper=mapper).convert(model, view)
        assert result == "[b][url=http://x]text[/url][/b]"

    def test_unordered_list(self):
        mapper = Mapper()
        model = ModelFragment()
        view = ViewFragment()
        mapper.bind(model, view)
        ul = view.append(ViewElement("ul"))
        for data in ("A", "B"):
            text = ModelText(data)
            item = model.append(ModelElement(
                "listItem", {"listType": "bulleted", "listIndent": 0}, [text]
            ))
            rendered = ViewText(data)
            li = ul.append(ViewElement("li", children=[rendered]))
            mapper.bind(item, li)
            mapper.bind(text, rendered)
        assert Converter(mapper=mapper).convert(model, view) == "[list][*]A\n[*]B\n[/list]"

    def test_empty_fragment(self):
        assert Converter(mapper=Mapper()).convert(ModelFragment(), ViewFragment()) == ""

    def test_non_fragment_input(self):
        converter = Converter(mapper=Mapper())
        assert converter.convert(ModelElement("paragraph"), ViewFragment()) == ""
        assert converter.convert(None, None) == ""

    def test_unbound_view_text_still_converts(self):
        # Two model runs rendered as one view text node.
        mapper = Mapper()
        first = ModelText("ab", {"bold": True})
        second = ModelText("cd")
        para = ModelElement("paragraph", children=[first, second])
        rendered = ViewText("abcd")
        p = ViewElement("p", children=[rendered])
        model, view = ModelFragment([para]), ViewFragment([p])
        for m, v in [(model, view), (para, p), (first, rendered)]:
            mapper.bind(m, v)
        assert Converter(mapper=mapper).convert(model, view) == "[b]ab[/b]cd"

    def test_custom_rule_table(self):
        rules = RuleTable()
        rules.register(inline_rule("spoiler", "[spoiler]", "[/spoiler]", Priority.LOWEST))
        rules.register(StaticBlockRule("paragraph", "[p]", "[/p]"))
        model, view, mapper = paragraph_document(("x", {"spoiler": True, "bold": True}))
        result = Converter(rules=rules, mapper=mapper).convert(model, view)
        assert result == "[p][spoiler][b]x[/b][/spoiler][/p]"

    def test_mapper_per_call(self):
        model, view, mapper = paragraph_document(("x", {"italic": True}))
        converter = Converter()
        assert converter.convert(model, view, mapper=mapper) == "[i]x[/i]"
        with pytest.raises(RuntimeError):
            converter.mapper

    def test_convert_text_leaves_mapper_unset(self):
        converter = Converter()
        assert converter.convert_text("**a**") == "[b]a[/b]"
        with pytest.raises(RuntimeError):
            converter.mapper


class TestBlockElementProcessor:
    """Rule lookup and resynchronisation after an unconverted node."""

    @pytest.fixture
    def desynced(self):
        """A model node with no rendering between two bound paragraphs."""
        mapper = Mapper()
        text_a, text_b = ModelText("a"), ModelText("b")
        para_a = ModelElement("paragraph", children=[text_a])
        widget = ModelElement("widget")
        para_b = ModelElement("paragraph", children=[text_b])
        model = ModelFragment([para_a, widget, para_b])

        view_a, view_b = ViewText("a"), ViewText("b")
        p_a = ViewElement("p", children=[view_a])
        p_b = ViewElement("p", children=[view_b])
        view = ViewFragment([p_a, p_b])

        for m, v in [
            (model, view), (para_a, p_a), (para_b, p_b), (text_a, view_a), (text_b, view_b),
        ]:
            mapper.bind(m, v)
        return model, view, mapper, para_b, p_b

    def test_skip_resyncs_to_later_position(self, desynced):
        model, view, mapper, para_b, p_b = desynced
        processor = Converter().block_processor
        result = processor.process(ModelPosition(model, 1), ViewPosition(view, 1), mapper)
        assert result.text == ""
        assert result.model_position == ModelPosition.after(para_b)
        assert result.view_position == ViewPosition.after(p_b)

    def test_desynced_document_converts(self, desynced):
        model, view, mapper, _, _ = desynced
        assert Converter().convert(model, view, mapper=mapper) == "a"

    def test_view_rule_ignores_model_name(self):
        rules = RuleTable()
        rules.register(StaticViewRule("paragraph", "[P]", "[/P]"))
        processor = Converter(rules=rules).block_processor
        assert processor.find_rule(ModelElement("paragraph"), ViewElement("p")) is None

    def test_model_rule_ignores_view_name(self):
        rules = RuleTable()
        rules.register(StaticBlockRule("p", "[P]", "[/P]"))
        processor = Converter(rules=rules).block_processor
        assert processor.find_rule(ModelElement("widget"), ViewElement("p")) is None
        assert processor.find_rule(ModelElement("p"), ViewElement("div")).name == "p"

    def test_view_rule_found_through_view_name(self):
        processor = Converter().block_processor
        rule = processor.find_rule(ModelElement("listItem"), ViewElement("li"))
        assert rule.opening_tag() == "[*]"


class TestConvertText:
    """Markdown in, BBCode out."""

    @pytest.mark.parametrize(
        "markdown, expected",
        [
            ("Hello **world**", "Hello [b]world[/b]"),
            ("*a* ^^b^^", "[i]a[/i] [u]b[/u]"),
            ("[text](http://x)", "[url=http://x]text[/url]"),
            ("**[text](http://x)**", "[b][url=http://x]text[/url][/b]"),
            ("[**text**](http://x)", "[b][url=http://x]text[/url][/b]"),
            ("one\n\ntwo", "one\n\ntwo"),
            ("one  \ntwo", "one\ntwo"),
            ("- A\n- B", "[list][*]A\n[*]B\n[/list]"),
            ("1. A\n2. B", "[list=1][*]A\n[*]B\n[/list]"),
            ("", ""),
        ],
    )
    def test_phpbb(self, markdown, expected):
        assert Converter().convert_text(markdown) == expected

    def test_nested_list(self):
        result = Converter().convert_text("- A\n  - A1\n- B")
        assert result == "[list][*]A[list][*]A1\n[/list]\n[*]B\n[/list]"

    def test_unknown_block_skipped(self):
        assert Converter().convert_text("a\n\n---\n\nb") == "a\n\nb"

    def test_unknown_attribute_dropped(self):
        assert Converter().convert_text("~~gone~~ kept") == "gone kept"

    def test_overlapping_emphasis_balanced(self):
        result = Converter().convert_text("**a *b*** *c*")
        assert result == "[b]a [i]b[/i][/b] [i]c[/i]"

    def test_converter_reusable(self):
        converter = Converter()
        assert converter.convert_text("**a**") == "[b]a[/b]"
        assert converter.convert_text("*b*") == "[i]b[/i]"


class TestExtendedPreset:

    @pytest.mark.parametrize(
        "markdown, expected",
        [
            ("# Title", "[size=200][b]Title[/b][/size]"),
            ("### Small", "[size=120][b]Small[/b][/size]"),
            ("> quoted", "[quote]quoted\n\n[/quote]"),
            ("```\nx = 1\n```", "[code]x = 1[/code]"),
            ("~~gone~~", "[s]gone[/s]"),
            ("**`x`**", "[b][c]x[/c][/b]"),
        ],
    )
    def test_extended(self, markdown, expected):
        assert Converter(preset="extended").convert_text(markdown) == expected

    def test_heading_then_paragraph(self):
        result = Converter(preset="extended").convert_text("# T\n\nbody")
        assert result == "[size=200][b]T[/b][/size]\n\nbody"


class TestConvertFile:

    def test_convert_file(self, tmp_path):
        md = tmp_path / "in.md"
        md.write_text("**hi**", encoding="utf-8")
        out = tmp_path / "sub" / "out.bbcode"
        Converter().convert_file(md, out)
        assert out.read_text(encoding="utf-8") == "[b]hi[/b]"

    def test_encoding(self, tmp_path):
        md = tmp_path / "in.md"
        md.write_bytes("café".encode("latin-1"))
        out = tmp_path / "out.bbcode"
        Converter().convert_file(md, out, encoding="latin-1")
        assert out.read_text(encoding="utf-8") == "café"

    def test_sample(self, tmp_path):
        out = tmp_path / "sample.bbcode"
        Converter(preset="extended").convert_file(SAMPLE_MD, out)
        text = out.read_text(encoding="utf-8")
        assert "[b]" in text
        assert "[list]" in text
        assert "[url=" in text
