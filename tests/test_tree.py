"""
Tests for Markdown parsing and the mistune grammar extensions

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

import pytest

from mdrepair.extensions import parse_directive_input, split_table_row
from mdrepair.models import Node, NodeKind, PARTIAL_MARKER
from mdrepair.tree import ParseFailure, assign_keys, iter_nodes, markdown_to_tree


def _only_block(content: str) -> Node:
    root = markdown_to_tree(content)
    assert len(root.children) == 1
    return root.children[0]


# ---------------------------------------------------------------------------
# Core syntax
# ---------------------------------------------------------------------------

class TestMarkdownToTree:
    """Tests for markdown_to_tree."""

    def test_paragraph_with_strong(self):
        para = _only_block("Hello **bold**")
        assert para.type == NodeKind.PARAGRAPH
        assert [c.type for c in para.children] == [NodeKind.TEXT, NodeKind.STRONG]
        assert para.children[0].value == "Hello "
        assert para.children[1].children[0].value == "bold"

    def test_keys_are_sibling_local(self):
        root = markdown_to_tree("a\n\nb **c**")
        assert root.key == 0
        assert [c.key for c in root.children] == [0, 1]
        assert [c.key for c in root.children[1].children] == [0, 1]

    def test_heading_depth(self):
        heading = _only_block("## Title")
        assert heading.type == NodeKind.HEADING
        assert heading.depth == 2

    def test_softbreak_merged_into_text(self):
        para = _only_block("one\ntwo")
        assert len(para.children) == 1
        assert para.children[0].value == "one\ntwo"

    def test_hard_break(self):
        para = _only_block("one  \ntwo")
        assert [c.type for c in para.children] == [NodeKind.TEXT, NodeKind.BREAK, NodeKind.TEXT]

    def test_tight_list_items_hold_paragraphs(self):
        lst = _only_block("* a\n* b")
        assert lst.type == NodeKind.LIST
        assert lst.ordered is False
        assert [item.children[0].type for item in lst.children] == [NodeKind.PARAGRAPH] * 2

    def test_ordered_list_start(self):
        lst = _only_block("3. a\n4. b")
        assert lst.ordered is True
        assert lst.start == 3

    def test_task_list(self):
        lst = _only_block("- [x] done\n- [ ] todo")
        assert [item.checked for item in lst.children] == [True, False]

    def test_code_block(self):
        code = _only_block("```python\nx = 1\n```")
        assert code.type == NodeKind.CODE
        assert code.lang == "python"
        assert code.value == "x = 1"

    def test_reference_link_and_definition(self):
        root = markdown_to_tree("[text][a]\n\n[a]: http://example.com")
        types = [c.type for c in root.children]
        assert types == [NodeKind.PARAGRAPH, NodeKind.DEFINITION]
        assert root.children[0].children[0].type == NodeKind.LINK_REFERENCE
        assert root.children[1].url == "http://example.com"

    def test_marker_in_url_restored(self):
        link = _only_block("[a](x" + PARTIAL_MARKER + ")").children[0]
        assert link.type == NodeKind.LINK
        assert link.url == "x" + PARTIAL_MARKER

    def test_autolinks_off_by_default(self):
        para = _only_block("see https://example.com")
        assert [c.type for c in para.children] == [NodeKind.TEXT]

    def test_autolinks_on(self):
        para = markdown_to_tree("see https://example.com", autolinks=True).children[0]
        assert NodeKind.LINK in [c.type for c in para.children]

    def test_empty_document(self):
        assert markdown_to_tree("").children == []

    def test_parser_error_wrapped(self, monkeypatch):
        class BrokenParser:
            def parse(self, content):
                raise RuntimeError("boom")

        monkeypatch.setattr("mdrepair.tree._get_parser", lambda autolinks: BrokenParser())
        with pytest.raises(ParseFailure) as exc_info:
            markdown_to_tree("text")
        assert exc_info.value.stage == "parse"
        assert isinstance(exc_info.value.__cause__, RuntimeError)


class TestTreeHelpers:
    """Tests for iter_nodes and assign_keys."""

    def test_iter_nodes_document_order(self):
        root = markdown_to_tree("a **b**")
        types = [n.type for n in iter_nodes(root)]
        assert types == [NodeKind.ROOT, NodeKind.PARAGRAPH, NodeKind.TEXT,
                         NodeKind.STRONG, NodeKind.TEXT]

    def test_assign_keys_root_key(self):
        root = markdown_to_tree("a\n\nb")
        assign_keys(root, 7)
        assert root.key == 7
        assert root.children[1].key == 1


# ---------------------------------------------------------------------------
# Extensions
# ---------------------------------------------------------------------------

class TestDirective:
    """Tests for execute::name(args) directives."""

    def test_json_object_input(self):
        node = _only_block('execute::act({"k":1})').children[0]
        assert node.type == NodeKind.DIRECTIVE
        assert node.name == "act"
        assert node.input == {"k": 1}
        assert node.raw == '{"k":1}'

    def test_parse_directive_input(self):
        assert parse_directive_input("") is None
        assert parse_directive_input("  ") is None
        assert parse_directive_input("42") == {"value": 42}
        assert parse_directive_input("not json") == {"value": "not json"}

    def test_unterminated_is_text(self):
        para = _only_block("execute::act(")
        assert [c.type for c in para.children] == [NodeKind.TEXT]


class TestInterruptedMarker:

    def test_author(self):
        node = _only_block("Stopped [Interrupted by user]").children[-1]
        assert node.type == NodeKind.INTERRUPTED
        assert node.author == "user"


class TestStrikethroughAndMath:
    """Tests for tilde and dollar syntax."""

    def test_single_tilde(self):
        node = _only_block("~strike~").children[0]
        assert node.type == NodeKind.DELETE
        assert node.children[0].value == "strike"

    def test_double_tilde(self):
        assert _only_block("~~strike~~").children[0].type == NodeKind.DELETE

    def test_single_dollar_is_text(self):
        para = _only_block("$29.99")
        assert [c.type for c in para.children] == [NodeKind.TEXT]

    def test_inline_math(self):
        node = _only_block("Hello $$x^2$$").children[-1]
        assert node.type == NodeKind.INLINE_MATH
        assert node.value == "x^2"

    def test_block_math(self):
        node = _only_block("$$\nx^2\n$$")
        assert node.type == NodeKind.MATH
        assert node.value == "x^2"

    def test_unterminated_block_math(self):
        node = _only_block("$$math")
        assert node.type == NodeKind.MATH
        assert node.meta == "math"
        assert node.value == ""


class TestPipeTable:
    """Tests for GFM pipe tables."""

    def test_table(self):
        table = _only_block("|a|b|\n|-|-|\n|c|d|")
        assert table.type == NodeKind.TABLE
        assert len(table.children) == 2
        assert all(len(row.children) == 2 for row in table.children)
        assert table.align == [None, None]

    def test_alignment(self):
        table = _only_block("|a|b|\n|:-|-:|")
        assert table.align == ["left", "right"]

    def test_short_row_padded(self):
        table = _only_block("|a|b|\n|-|-|\n|c|")
        row = table.children[1]
        assert len(row.children) == 2
        assert row.children[1].children == []

    def test_cell_count_mismatch_is_not_table(self):
        assert _only_block("|a|b|\n|-|").type == NodeKind.PARAGRAPH

    def test_single_line_is_not_table(self):
        assert _only_block("|a|" + PARTIAL_MARKER).type == NodeKind.PARAGRAPH

    def test_split_table_row(self):
        assert split_table_row("| a | b |") == ["a", "b"]
        assert split_table_row("a | b") == ["a", "b"]
        assert split_table_row(r"| a \| b |") == [r"a \| b"]
