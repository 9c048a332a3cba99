"""
Tests for the repair resolver

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

from mdrepair.models import CandidateKind, PARTIAL_MARKER as M, RepairCandidate
from mdrepair.resolver import (
    close_candidate,
    collect_candidates,
    repair_content,
    resolve_candidates,
)


class TestCollectCandidates:
    """Tests for collect_candidates."""

    def test_scanner_then_specialized(self):
        kinds = [c.kind for c in collect_candidates("**a [b")]
        assert kinds == [CandidateKind.BOLD_ASTERISK, CandidateKind.LINK]

    def test_table(self):
        kinds = [c.kind for c in collect_candidates("|a|b")]
        assert CandidateKind.TABLE in kinds


class TestResolveCandidates:
    """Tests for resolve_candidates and repair_content."""

    def test_close_bold(self):
        assert repair_content("**bold") == "**bold" + M + "**"

    def test_empty_opener_deleted(self):
        assert repair_content("**") == ""
        assert repair_content("text **") == "text "

    def test_inner_closes_first(self):
        assert repair_content("**bold _italic") == "**bold _italic" + M + "_" + M + "**"

    def test_safe_zone(self):
        assert repair_content("`code **bold") == "`code **bold" + M + "`"

    def test_empty_link_kept(self):
        assert repair_content("[") == "[" + M + "]()"

    def test_link(self):
        assert repair_content("[text") == "[text" + M + "]()"

    def test_directive_first(self):
        assert repair_content("execute::name(") == "execute::PARTIAL()"

    def test_no_candidates(self):
        assert resolve_candidates("plain", []) == "plain"


class TestCloseCandidate:
    """Marker placement inside the closed construct."""

    def test_delimiter(self):
        c = RepairCandidate(CandidateKind.BOLD_ASTERISK, 0, "**")
        assert close_candidate("**a", c) == "**a" + M + "**"

    def test_link_destination(self):
        assert repair_content("[text]") == "[text](" + M + ")"
        assert repair_content("![alt]") == "![alt](" + M + ")"

    def test_link_text(self):
        assert repair_content("[text](url") == "[text](url" + M + ")"

    def test_table_header_cell(self):
        assert repair_content("|a|b|") == "|a|b" + M + "|\n|-|-|"
        assert repair_content("|a|b|\n|-") == "|a|b" + M + "|\n|-|-|"

    def test_open_table_header(self):
        assert repair_content("Text\n|a|b") == "Text\n|a|b" + M + "|\n|-|-|"
