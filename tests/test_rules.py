"""Tests for conversion rules and the rule table."""

from __future__ import annotations

from dataclasses import FrozenInstanceError

import pytest

from doc2bbcode.rules import (
    LinkInlineRule,
    Priority,
    RuleTable,
    Side,
    StaticBlockRule,
    StaticInlineRule,
    StaticViewRule,
    inline_rule,
    link_rule,
)


class TestInlineRules:

    def test_static_tags(self):
        rule = inline_rule("bold", "[b]", "[/b]")
        assert rule.opening_tag({"bold": True}) == "[b]"
        assert rule.closing_tag({"bold": True}) == "[/b]"
        assert rule.priority is Priority.LOW
        assert rule.attribute_names == ("bold",)

    def test_link_tags_use_value(self):
        rule = link_rule()
        assert rule.opening_tag({"linkHref": "http://x"}) == "[url=http://x]"
        assert rule.closing_tag({"linkHref": "http://x"}) == "[/url]"
        assert rule.priority is Priority.HIGHEST

    def test_matches_requires_every_attribute(self):
        rule = inline_rule("color", "[c]", "[/c]", attribute_names=("color", "shade"))
        assert rule.matches({"color": "red", "shade": 1})
        assert not rule.matches({"color": "red"})

    def test_extract_in_rule_order(self):
        rule = inline_rule("color", "[c]", "[/c]", attribute_names=("color", "shade"))
        values = rule.extract({"shade": 1, "bold": True, "color": "red"})
        assert list(values.items()) == [("color", "red"), ("shade", 1)]

    def test_empty_attributes_rejected(self):
        with pytest.raises(ValueError):
            StaticInlineRule(name="bold", priority=Priority.LOW, attribute_names=())

    def test_name_must_be_an_attribute(self):
        with pytest.raises(ValueError):
            inline_rule("bold", "[b]", "[/b]", attribute_names=("strong",))

    def test_rules_are_immutable(self):
        rule = inline_rule("bold", "[b]", "[/b]")
        with pytest.raises(FrozenInstanceError):
            rule.opening = "[strong]"  # type: ignore[misc]


class TestBlockRules:

    def test_model_rule(self):
        rule = StaticBlockRule("paragraph", "", "\n\n")
        assert rule.side is Side.MODEL
        assert rule.matches("paragraph")
        assert not rule.matches("p")
        assert rule.opening_tag() == ""
        assert rule.closing_tag() == "\n\n"

    def test_view_rule(self):
        rule = StaticViewRule("ul", "[list]", "[/list]")
        assert rule.side is Side.VIEW


class TestRuleTable:

    def test_default_preset(self):
        table = RuleTable()
        assert table.preset == "phpbb"

    def test_invalid_preset_raises(self):
        with pytest.raises(ValueError):
            RuleTable("nonexistent")

    def test_phpbb_rules(self):
        table = RuleTable("phpbb")
        assert table.inline_rule("bold").opening_tag({}) == "[b]"
        assert table.inline_rule("underline").opening_tag({}) == "[u]"
        assert table.inline_rule("italic").opening_tag({}) == "[i]"
        assert isinstance(table.inline_rule("linkHref"), LinkInlineRule)
        assert table.block_rule("ol").opening_tag() == "[list=1]"
        assert table.block_rule("li").closing_tag() == "\n"
        assert table.inline_rule("strikethrough") is None
        assert table.block_rule("heading1") is None

    def test_extended_adds_rules(self):
        table = RuleTable("extended")
        assert table.inline_rule("strikethrough").priority is Priority.NORMAL
        assert table.inline_rule("code").priority is Priority.HIGH
        assert table.block_rule("heading1").opening_tag() == "[size=200][b]"
        assert table.block_rule("blockQuote").closing_tag() == "[/quote]\n"

    def test_priorities_grouped_in_registration_order(self):
        groups = RuleTable().priorities
        assert [r.name for r in groups[Priority.LOW]] == ["bold", "underline", "italic"]
        assert [r.name for r in groups[Priority.HIGHEST]] == ["linkHref"]
        assert groups[Priority.LOWEST] == []

    def test_priorities_returns_copy(self):
        table = RuleTable()
        table.priorities[Priority.LOW].clear()
        assert len(table.priorities[Priority.LOW]) == 3

    def test_register_new_rule(self):
        table = RuleTable()
        table.register(inline_rule("spoiler", "[spoiler]", "[/spoiler]", Priority.LOWEST))
        assert table.inline_rule("spoiler") is not None
        assert [r.name for r in table.priorities[Priority.LOWEST]] == ["spoiler"]

    def test_replace_keeps_slot(self):
        table = RuleTable()
        table.register(inline_rule("bold", "[strong]", "[/strong]"))
        names = [r.name for r in table.priorities[Priority.LOW]]
        assert names == ["bold", "underline", "italic"]
        assert table.inline_rule("bold").opening_tag({}) == "[strong]"

    def test_replace_with_new_priority_moves(self):
        table = RuleTable()
        table.register(inline_rule("bold", "[b]", "[/b]", Priority.HIGH))
        assert [r.name for r in table.priorities[Priority.LOW]] == ["underline", "italic"]
        assert [r.name for r in table.priorities[Priority.HIGH]] == ["bold"]

    def test_register_block_rule(self):
        table = RuleTable()
        table.register(StaticBlockRule("heading1", "[h1]", "[/h1]\n"))
        assert table.block_rule("heading1").opening_tag() == "[h1]"

    def test_register_rejects_other_types(self):
        with pytest.raises(TypeError):
            RuleTable().register("bold")  # type: ignore[arg-type]

    def test_block_rule_none_name(self):
        assert RuleTable().block_rule(None) is None

    def test_list_rule_names(self):
        names = RuleTable().list_rule_names()
        assert names == sorted(names)
        assert "paragraph" in names
        assert "linkHref" in names
