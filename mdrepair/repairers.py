"""
Specialized repairers for constructs without symmetric delimiters.

- Links and images: ``[text](url``, ``[text]`` and ``[text``
- Pipe tables: incomplete header or delimiter rows
- Directives: trailing ``execute::...`` calls cut before their ``)``

Only the trailing construct of a string is considered; earlier incomplete
links or directives are left as literal text.

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

import re
from typing import Optional

from mdrepair.models import (
    CandidateKind,
    DIRECTIVE_KEYWORD,
    PARTIAL_DIRECTIVE,
    RepairCandidate,
)


# ---------------------------------------------------------------------------
# Links and images
# ---------------------------------------------------------------------------

# Checked in order, first hit wins
LINK_REPAIRS = (
    (re.compile(r"(!)?\[[^\]]*\]\([^)]*\Z"), ")"),      # [text](url
    (re.compile(r"(!)?\[[^\]]*\]\Z"), "()"),            # [text]
    (re.compile(r"(!)?\[[^\]]*\Z"), "]()"),             # [text
)


def find_link_repair(content: str) -> Optional[RepairCandidate]:
    """Candidate closing the trailing incomplete link or image, if any."""
    for pattern, closing in LINK_REPAIRS:
        m = pattern.search(content)
        if m:
            return RepairCandidate(CandidateKind.LINK, m.start(), closing)
    return None


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------

_TABLE_START = re.compile(r"(^|\n)\|")


def find_table_repair(content: str) -> Optional[RepairCandidate]:
    """
    Candidate completing a pipe table whose header or delimiter is cut short.

    The first line starting with ``|`` is the header; the next line, if any,
    is the delimiter row. Missing cells are synthesized as ``-``.
    """
    m = _TABLE_START.search(content)
    if m is None:
        return None
    starts_at = m.start() + len(m.group(1))

    lines = content[starts_at:].split("\n")
    header = lines[0]
    separator = lines[1] if len(lines) > 1 else ""
    header_complete = header.endswith("|")
    header_pipes = header.count("|")
    columns = max(1, header_pipes - (1 if header_complete else 0))
    separator_pipes = separator.count("|")

    if not header_complete:
        closing = "|\n" + "|-" * columns + "|"
    elif not separator:
        closing = "\n" + "|-" * columns + "|"
    elif separator_pipes != header_pipes:
        missing = header_pipes - separator_pipes
        closing = ("" if separator.endswith("-") else "-") + "|" + "-|" * max(0, missing - 1)
    else:
        return None
    return RepairCandidate(CandidateKind.TABLE, starts_at, closing)


# ---------------------------------------------------------------------------
# Directives
# ---------------------------------------------------------------------------

_TRAILING_DIRECTIVE = re.compile(re.escape(DIRECTIVE_KEYWORD) + r"::([^(\s]*)(?:\([^)]*)?\Z")


def repair_directive(content: str) -> str:
    """Replace a trailing unterminated directive with the PARTIAL call."""
    def replace(m):
        if m.group(0).endswith(")"):
            return m.group(0)
        return PARTIAL_DIRECTIVE
    return _TRAILING_DIRECTIVE.sub(replace, content)
