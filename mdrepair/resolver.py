"""
Repair resolver: close every construct left open in a flat string.

Candidates from the offset scanner and the specialized repairers are
applied rightmost first, so inner sequences close before outer ones. Openers
inside an unclosed inline code or math span are left alone, and openers
with nothing after them are deleted instead of closed.

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

from typing import Dict, List
import logging

from mdrepair.models import (
    CandidateKind,
    NEVER_EMPTY_KINDS,
    PARTIAL_MARKER,
    RepairCandidate,
    SAFE_ZONE_KINDS,
)
from mdrepair.repairers import find_link_repair, find_table_repair, repair_directive
from mdrepair.scanner import scan_delimiters

logger = logging.getLogger(__name__)


def collect_candidates(content: str) -> List[RepairCandidate]:
    """All open constructs in ``content``, in detection order."""
    candidates = scan_delimiters(content)
    link = find_link_repair(content)
    if link is not None:
        candidates.append(link)
    table = find_table_repair(content)
    if table is not None:
        candidates.append(table)
    return candidates


def resolve_candidates(content: str, candidates: List[RepairCandidate]) -> str:
    """
    Apply candidates to ``content``.

    Args:
        content: Flat string the candidates were detected in
        candidates: Output of ``collect_candidates``

    Returns:
        The string with every applicable candidate closed or deleted
    """
    safe_zones: Dict[CandidateKind, int] = {
        c.kind: c.opens_at for c in candidates if c.kind in SAFE_ZONE_KINDS
    }
    applied = 0
    # sorted() is stable, ties keep detection order
    for item in sorted(candidates, key=lambda c: -c.opens_at):
        if any(opens_at < item.opens_at for opens_at in safe_zones.values()):
            continue
        is_empty = (
            item.kind not in NEVER_EMPTY_KINDS
            and item.opens_at == len(content) - len(item.closing)
        )
        if is_empty:
            content = content[:item.opens_at]
        else:
            content = close_candidate(content, item)
        applied += 1
    if applied:
        logger.debug(f"Resolved {applied}/{len(candidates)} open constructs")
    return content


def close_candidate(content: str, item: RepairCandidate) -> str:
    """
    Append ``item.closing`` with the partial marker inside the construct.

    The marker must not change how the closed text parses: it goes before
    the closing delimiter, into an empty link destination, or into the last
    header cell of a table (a delimiter row cannot hold it).
    """
    if item.kind == CandidateKind.LINK and item.closing.startswith("("):
        return content + "(" + PARTIAL_MARKER + item.closing[1:]
    if item.kind == CandidateKind.TABLE:
        end = content.find("\n", item.opens_at)
        if end == -1:
            end = len(content)
        if content[end - 1] == "|":
            end -= 1
        return content[:end] + PARTIAL_MARKER + content[end:] + item.closing
    return content + PARTIAL_MARKER + item.closing


def repair_content(content: str) -> str:
    """Repair one flat Markdown string (directives first, then delimiters)."""
    content = repair_directive(content)
    return resolve_candidates(content, collect_candidates(content))
