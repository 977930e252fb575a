"""doc2bbcode: convert structured rich-text documents to phpBB BBCode."""

from doc2bbcode.converter import Converter
from doc2bbcode.rules import Priority, RuleTable, inline_rule, link_rule

__version__ = "0.1.0"

__all__ = [
    "Converter",
    "Priority",
    "RuleTable",
    "__version__",
    "inline_rule",
    "link_rule",
]
