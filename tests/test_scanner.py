"""
Tests for the delimiter offset scanner

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

from mdrepair.models import CandidateKind
from mdrepair.scanner import (
    DELIMITER_PATTERNS,
    delimiter_counts,
    find_unclosed_opener,
    scan_delimiters,
)


def _pattern(kind: CandidateKind):
    for k, pattern, _ in DELIMITER_PATTERNS:
        if k == kind:
            return pattern
    raise KeyError(kind)


class TestFindUnclosedOpener:
    """Tests for find_unclosed_opener."""

    def test_single_opener(self):
        assert find_unclosed_opener("a **b", _pattern(CandidateKind.BOLD_ASTERISK)) == 2

    def test_last_of_odd_count(self):
        assert find_unclosed_opener("**a** **b", _pattern(CandidateKind.BOLD_ASTERISK)) == 6

    def test_balanced(self):
        assert find_unclosed_opener("**a**", _pattern(CandidateKind.BOLD_ASTERISK)) is None

    def test_escaped_opener_ignored(self):
        assert find_unclosed_opener(r"\*not", _pattern(CandidateKind.ITALIC_ASTERISK)) is None


class TestScanDelimiters:
    """Tests for scan_delimiters."""

    def test_inline_code(self):
        candidates = scan_delimiters("`code")
        assert len(candidates) == 1
        assert candidates[0].kind == CandidateKind.INLINE_CODE
        assert candidates[0].opens_at == 0
        assert candidates[0].closing == "`"

    def test_triple_asterisk_is_one_candidate(self):
        candidates = scan_delimiters("***both")
        assert [c.kind for c in candidates] == [CandidateKind.BOLD_ITALIC_ASTERISK]

    def test_double_tilde_not_single(self):
        candidates = scan_delimiters("~~strike")
        assert [c.kind for c in candidates] == [CandidateKind.STRIKETHROUGH_DOUBLE]

    def test_intraword_underscores_ignored(self):
        assert scan_delimiters("my_var_name") == []
        assert scan_delimiters("hello__world") == []

    def test_underscore_after_space(self):
        candidates = scan_delimiters(" _italic")
        assert len(candidates) == 1
        assert candidates[0].kind == CandidateKind.ITALIC_UNDERSCORE
        assert candidates[0].opens_at == 1

    def test_nested_openers_all_reported(self):
        kinds = {c.kind for c in scan_delimiters("**bold *italic ~~strike")}
        assert kinds == {
            CandidateKind.BOLD_ASTERISK,
            CandidateKind.ITALIC_ASTERISK,
            CandidateKind.STRIKETHROUGH_DOUBLE,
        }

    def test_plain_text(self):
        assert scan_delimiters("nothing to see") == []


class TestDelimiterCounts:
    """Tests for delimiter_counts."""

    def test_counts(self):
        counts = delimiter_counts("**a** *b")
        assert counts[CandidateKind.BOLD_ASTERISK] == 2
        assert counts[CandidateKind.ITALIC_ASTERISK] == 1
        assert counts[CandidateKind.INLINE_CODE] == 0
