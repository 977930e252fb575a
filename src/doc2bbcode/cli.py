"""Command-line interface for doc2bbcode.

Usage::

    doc2bbcode input.md                     # writes input.bbcode
    doc2bbcode input.md -o output.bbcode    # explicit output path
    doc2bbcode input.md -o -                # print to stdout
    doc2bbcode input.md --preset extended   # use the extended rule table
    doc2bbcode --list-presets               # list available rule presets
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from doc2bbcode import __version__
from doc2bbcode.converter import Converter
from doc2bbcode.rules import RuleTable


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="doc2bbcode",
        description="Convert Markdown files to phpBB BBCode.",
    )
    parser.add_argument(
        "input",
        nargs="?",
        help="Path to the Markdown file to convert.",
    )
    parser.add_argument(
        "-o", "--output",
        help="Output file path, '-' for stdout. Defaults to <input>.bbcode.",
    )
    parser.add_argument(
        "-p", "--preset",
        default="phpbb",
        choices=RuleTable.PRESETS,
        help="Rule preset (default: %(default)s).",
    )
    parser.add_argument(
        "-e", "--encoding",
        default="utf-8",
        help="Input file encoding (default: %(default)s).",
    )
    parser.add_argument(
        "--list-presets",
        action="store_true",
        help="List available rule presets and exit.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Print progress information and debug logging.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point for the CLI."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.list_presets:
        print("Available rule presets:")
        for preset in RuleTable.PRESETS:
            print(f"  - {preset}")
        return 0

    if not args.input:
        parser.error("the following argument is required: input")

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    input_path = Path(args.input)
    if not input_path.is_file():
        print(f"Error: file not found: {input_path}", file=sys.stderr)
        return 1

    to_stdout = args.output == "-"
    if to_stdout:
        output_path = None
    elif args.output:
        output_path = Path(args.output)
    else:
        output_path = input_path.with_suffix(".bbcode")

    if args.verbose:
        print(f"Input:  {input_path}", file=sys.stderr)
        print(f"Output: {output_path or 'stdout'}", file=sys.stderr)
        print(f"Preset: {args.preset}", file=sys.stderr)

    try:
        converter = Converter(preset=args.preset)
        if output_path is None:
            md_text = input_path.read_text(encoding=args.encoding)
            print(converter.convert_text(md_text))
        else:
            converter.convert_file(input_path, output_path, encoding=args.encoding)
    except (OSError, UnicodeDecodeError, LookupError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if output_path is None:
        return 0
    if args.verbose:
        print(f"Done. {output_path.stat().st_size} bytes written.", file=sys.stderr)
    else:
        print(f"Converted: {output_path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
