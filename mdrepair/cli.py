"""
mdrepair: command line front end for the partial-Markdown repair engine.

Commands:
    repair   Print the repaired Markdown of FILE (or stdin)
    tree     Print the repaired tree of FILE (or stdin) as JSON
    scan     List the open constructs detected in FILE (or stdin)

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

import logging

from mdrepair.config import RepairConfig, load_repair_config
from mdrepair.repair import repair_markdown, repair_markdown_to_tree
from mdrepair.resolver import collect_candidates
from mdrepair.scanner import delimiter_counts
from mdrepair.tree import ParseFailure

logger = logging.getLogger(__name__)

# ANSI color helpers (auto-disabled for non-TTY)
_USE_COLOR = sys.stderr.isatty()


def _red(text: str) -> str:
    if not _USE_COLOR:
        return text
    return f"\033[31m{text}\033[0m"


# ---------------------------------------------------------------------------
# Input and config
# ---------------------------------------------------------------------------

def _read_input(path: Optional[str]) -> str:
    """Read FILE, or stdin when FILE is omitted or '-'."""
    if not path or path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def _load_config(args: argparse.Namespace) -> RepairConfig:
    if args.config:
        return load_repair_config(args.config)
    return RepairConfig()


# ---------------------------------------------------------------------------
# Command: repair
# ---------------------------------------------------------------------------

def cmd_repair(args: argparse.Namespace) -> int:
    """Repair a document and print the result."""
    content = _read_input(args.file)
    try:
        repaired = repair_markdown(content, _load_config(args))
    except ParseFailure as e:
        print(_red(f"Repair failed ({e.stage}): {e}"), file=sys.stderr)
        return 1
    sys.stdout.write(repaired + "\n")
    return 0


# ---------------------------------------------------------------------------
# Command: tree
# ---------------------------------------------------------------------------

def cmd_tree(args: argparse.Namespace) -> int:
    """Repair a document and dump the flagged tree."""
    content = _read_input(args.file)
    try:
        tree = repair_markdown_to_tree(content, _load_config(args))
    except ParseFailure as e:
        print(_red(f"Repair failed ({e.stage}): {e}"), file=sys.stderr)
        return 1
    print(json.dumps(tree.to_dict(), indent=args.indent, ensure_ascii=False))
    return 0


# ---------------------------------------------------------------------------
# Command: scan
# ---------------------------------------------------------------------------

def cmd_scan(args: argparse.Namespace) -> int:
    """Show delimiter counts and the open constructs of the raw text."""
    content = _read_input(args.file)
    if content.endswith("\n"):
        content = content[:-1]

    counts = {kind.value: n for kind, n in delimiter_counts(content).items() if n}
    candidates = [
        {"kind": c.kind.value, "opens_at": c.opens_at, "closing": c.closing}
        for c in collect_candidates(content)
    ]
    print(json.dumps({"counts": counts, "candidates": candidates}, indent=2, ensure_ascii=False))
    return 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    """Build the mdrepair argument parser."""
    parser = argparse.ArgumentParser(
        prog="mdrepair",
        description="Close formatting left open in partial (streamed) Markdown",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Verbose output"
    )
    parser.add_argument(
        "-c", "--config", help="YAML file with repair settings"
    )

    sub = parser.add_subparsers(dest="command", help="Available commands")

    # --- repair ---
    p_repair = sub.add_parser("repair", help="Print the repaired Markdown")
    p_repair.add_argument("file", nargs="?", help="Markdown file (default: stdin)")
    p_repair.set_defaults(func=cmd_repair)

    # --- tree ---
    p_tree = sub.add_parser("tree", help="Print the repaired tree as JSON")
    p_tree.add_argument("file", nargs="?", help="Markdown file (default: stdin)")
    p_tree.add_argument("--indent", type=int, default=2, help="JSON indent (default: 2)")
    p_tree.set_defaults(func=cmd_tree)

    # --- scan ---
    p_scan = sub.add_parser("scan", help="List open constructs without repairing")
    p_scan.add_argument("file", nargs="?", help="Markdown file (default: stdin)")
    p_scan.set_defaults(func=cmd_scan)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for mdrepair."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    if not args.command:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
