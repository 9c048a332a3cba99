"""
Offset scanner for symmetric inline delimiters.

Each delimiter kind has one compiled pattern. A kind is unclosed when its
pattern matches an odd number of times in a flat string; the last match is
then the unmatched opener.

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

import re
from typing import Dict, List, Optional, Pattern, Tuple

from mdrepair.models import CandidateKind, RepairCandidate


# ---------------------------------------------------------------------------
# Delimiter patterns
# ---------------------------------------------------------------------------
# (?<!\S) / (?!\S) stand for "at a whitespace or string boundary", which keeps
# underscores inside identifiers (my_var_name) from counting as delimiters.

DELIMITER_PATTERNS: Tuple[Tuple[CandidateKind, Pattern[str], str], ...] = (
    (CandidateKind.INLINE_CODE,
     re.compile(r"(?<!\\)`"), "`"),
    (CandidateKind.INLINE_MATH,
     re.compile(r"(?<!\\)\$\$"), "$$"),
    (CandidateKind.BOLD_ITALIC_ASTERISK,
     re.compile(r"(?<!\\)(?<!\*)\*\*\*(?!\*)"), "***"),
    (CandidateKind.BOLD_ITALIC_UNDERSCORE,
     re.compile(r"(?<!\\)(?<!_)(?:(?<!\S)___|___(?!\S))(?!_)"), "___"),
    (CandidateKind.BOLD_ASTERISK,
     re.compile(r"(?<!\\)(?<!\*)\*\*(?!\*)"), "**"),
    (CandidateKind.BOLD_UNDERSCORE,
     re.compile(r"(?<!\\)(?<!_)(?:(?<!\S)__|__(?!\S))(?!_)"), "__"),
    (CandidateKind.ITALIC_ASTERISK,
     re.compile(r"(?<!\\)(?<!\*)\*(?!\*)"), "*"),
    (CandidateKind.ITALIC_UNDERSCORE,
     re.compile(r"(?<!\\)(?<!_)(?:(?<!\S)_|_(?!\S))(?!_)"), "_"),
    (CandidateKind.STRIKETHROUGH_DOUBLE,
     re.compile(r"(?<!\\)~~"), "~~"),
    (CandidateKind.STRIKETHROUGH_SINGLE,
     re.compile(r"(?<!~)(?<!\\)~(?!~)"), "~"),
)


def find_unclosed_opener(content: str, pattern: Pattern[str]) -> Optional[int]:
    """
    Offset of the last unmatched opener, or None when matches pair up.

    Args:
        content: Flat Markdown string
        pattern: One of the delimiter patterns

    Returns:
        Start offset of the last match when the match count is odd
    """
    last = None
    count = 0
    for m in pattern.finditer(content):
        count += 1
        last = m.start()
    if count % 2 == 1:
        return last
    return None


def scan_delimiters(content: str) -> List[RepairCandidate]:
    """Repair candidates for every delimiter kind left open in ``content``."""
    candidates = []
    for kind, pattern, closing in DELIMITER_PATTERNS:
        opens_at = find_unclosed_opener(content, pattern)
        if opens_at is not None:
            candidates.append(RepairCandidate(kind, opens_at, closing))
    return candidates


def delimiter_counts(content: str) -> Dict[CandidateKind, int]:
    """Match count per delimiter kind (debugging aid for the CLI)."""
    return {kind: len(pattern.findall(content)) for kind, pattern, _ in DELIMITER_PATTERNS}
