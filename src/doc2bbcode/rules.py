"""BBCode conversion rules and rule table presets.

Two families of rules exist:

* **inline rules** turn text attributes into tag pairs.  They carry a
  :class:`Priority`; the tree merger applies them class by class, and a rule
  applied later ends up *outside* rules applied earlier.
* **block rules** wrap the converted content of a whole model element or
  view element with a fixed pair of strings.

The variant set is closed: :class:`StaticInlineRule`, :class:`LinkInlineRule`,
:class:`StaticBlockRule` and :class:`StaticViewRule`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, ClassVar, Mapping, Optional, Union


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class Priority(Enum):
    """Merge order of inline rules.  Iteration order is application order."""

    HIGHEST = "highest"
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"
    LOWEST = "lowest"


class Side(Enum):
    """Which tree a block rule is matched against."""

    MODEL = "model"
    VIEW = "view"


# ---------------------------------------------------------------------------
# Inline rules
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class _AttributeRule:
    name: str
    priority: Priority
    attribute_names: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.attribute_names:
            raise ValueError(f"Rule {self.name!r} needs at least one attribute")
        if self.name not in self.attribute_names:
            raise ValueError(
                f"Rule {self.name!r} must be keyed by one of its attributes "
                f"{list(self.attribute_names)}"
            )

    def matches(self, attributes: Mapping[str, Any]) -> bool:
        """True when *attributes* carries every attribute of this rule."""
        return all(name in attributes for name in self.attribute_names)

    def extract(self, attributes: Mapping[str, Any]) -> dict[str, Any]:
        """Return this rule's attribute values, in rule order."""
        return {name: attributes[name] for name in self.attribute_names}


@dataclass(frozen=True)
class StaticInlineRule(_AttributeRule):
    """Fixed tag pair, e.g. ``bold`` -> ``[b]...[/b]``."""

    opening: str = ""
    closing: str = ""

    def opening_tag(self, attributes: Mapping[str, Any]) -> str:
        return self.opening

    def closing_tag(self, attributes: Mapping[str, Any]) -> str:
        return self.closing


@dataclass(frozen=True)
class LinkInlineRule(_AttributeRule):
    """``[url=HREF]...[/url]`` built from the attribute value."""

    def opening_tag(self, attributes: Mapping[str, Any]) -> str:
        return f"[url={attributes[self.name]}]"

    def closing_tag(self, attributes: Mapping[str, Any]) -> str:
        return "[/url]"


def inline_rule(
    name: str,
    opening: str,
    closing: str,
    priority: Priority = Priority.LOW,
    attribute_names: tuple[str, ...] = (),
) -> StaticInlineRule:
    """Build a :class:`StaticInlineRule`; attributes default to ``(name,)``."""
    return StaticInlineRule(
        name=name,
        priority=priority,
        attribute_names=attribute_names or (name,),
        opening=opening,
        closing=closing,
    )


def link_rule(name: str = "linkHref") -> LinkInlineRule:
    return LinkInlineRule(name=name, priority=Priority.HIGHEST, attribute_names=(name,))


# ---------------------------------------------------------------------------
# Block rules
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StaticBlockRule:
    """Wraps a model element, e.g. ``paragraph`` -> ``...\\n\\n``."""

    name: str
    opening: str
    closing: str

    side: ClassVar[Side] = Side.MODEL

    def matches(self, node_name: Optional[str]) -> bool:
        return node_name == self.name

    def opening_tag(self) -> str:
        return self.opening

    def closing_tag(self) -> str:
        return self.closing


@dataclass(frozen=True)
class StaticViewRule(StaticBlockRule):
    """Wraps a view element, e.g. ``ul`` -> ``[list]...[/list]``."""

    side: ClassVar[Side] = Side.VIEW


InlineRule = Union[StaticInlineRule, LinkInlineRule]
BlockRule = Union[StaticBlockRule, StaticViewRule]
Rule = Union[InlineRule, BlockRule]


# ---------------------------------------------------------------------------
# Preset definitions
# ---------------------------------------------------------------------------

def _build_phpbb_rules() -> list[Rule]:
    """Build the **phpbb** preset: the tags a stock phpBB board accepts."""
    return [
        inline_rule("bold", "[b]", "[/b]"),
        inline_rule("underline", "[u]", "[/u]"),
        inline_rule("italic", "[i]", "[/i]"),
        link_rule("linkHref"),
        StaticBlockRule("paragraph", "", "\n\n"),
        StaticBlockRule("softBreak", "", "\n"),
        StaticViewRule("ul", "[list]", "[/list]"),
        StaticViewRule("ol", "[list=1]", "[/list]"),
        StaticViewRule("li", "[*]", "\n"),
    ]


def _build_extended_rules() -> list[Rule]:
    """Build the **extended** preset: phpbb plus common custom BBCodes."""
    rules = _build_phpbb_rules()
    heading_sizes = {1: 200, 2: 150, 3: 120}
    rules.extend([
        inline_rule("strikethrough", "[s]", "[/s]", priority=Priority.NORMAL),
        inline_rule("code", "[c]", "[/c]", priority=Priority.HIGH),
        StaticBlockRule("blockQuote", "[quote]", "[/quote]\n"),
        StaticBlockRule("codeBlock", "[code]", "[/code]\n"),
    ])
    for level, size in heading_sizes.items():
        rules.append(StaticBlockRule(
            f"heading{level}",
            f"[size={size}][b]",
            "[/b][/size]\n\n",
        ))
    return rules


_PRESET_BUILDERS: dict[str, Callable[[], list[Rule]]] = {
    "phpbb": _build_phpbb_rules,
    "extended": _build_extended_rules,
}


# ---------------------------------------------------------------------------
# RuleTable
# ---------------------------------------------------------------------------

class RuleTable:
    """Registered rules, looked up by name and grouped by priority.

    Usage::

        table = RuleTable("extended")
        table.register(inline_rule("spoiler", "[spoiler]", "[/spoiler]"))
        table.inline_rule("bold").opening_tag({})
    """

    PRESETS = list(_PRESET_BUILDERS.keys())

    def __init__(self, preset: str = "phpbb") -> None:
        if preset not in _PRESET_BUILDERS:
            raise ValueError(
                f"Unknown preset {preset!r}. Choose from: {', '.join(_PRESET_BUILDERS)}"
            )
        self.preset = preset
        self._inline: dict[str, InlineRule] = {}
        self._block: dict[str, BlockRule] = {}
        self._priorities: dict[Priority, list[InlineRule]] = {p: [] for p in Priority}
        for rule in _PRESET_BUILDERS[preset]():
            self.register(rule)

    # -- public API ---------------------------------------------------------

    def register(self, rule: Rule) -> None:
        """Add *rule*, replacing any rule registered under the same name.

        A replaced inline rule keeps its slot in the priority order when the
        priority is unchanged; otherwise it moves to the end of its new class.
        """
        if isinstance(rule, (StaticBlockRule, StaticViewRule)):
            self._block[rule.name] = rule
            return
        if not isinstance(rule, (StaticInlineRule, LinkInlineRule)):
            raise TypeError(f"Unsupported rule type: {type(rule).__name__}")

        previous = self._inline.get(rule.name)
        self._inline[rule.name] = rule
        if previous is not None:
            group = self._priorities[previous.priority]
            index = group.index(previous)
            if previous.priority is rule.priority:
                group[index] = rule
                return
            del group[index]
        self._priorities[rule.priority].append(rule)

    def inline_rule(self, name: str) -> Optional[InlineRule]:
        return self._inline.get(name)

    def block_rule(self, name: Optional[str]) -> Optional[BlockRule]:
        if name is None:
            return None
        return self._block.get(name)

    @property
    def priorities(self) -> dict[Priority, list[InlineRule]]:
        """Inline rules per priority class, in registration order."""
        return {priority: list(rules) for priority, rules in self._priorities.items()}

    def list_rule_names(self) -> list[str]:
        """Return all registered rule names."""
        return sorted({*self._inline, *self._block})
