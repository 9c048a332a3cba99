"""
Markdown parsing into mdrepair Node trees.

Uses mistune v3 in AST mode (``renderer=None``) with the mdrepair grammar
extensions, then converts mistune tokens into ``Node`` objects with mdast
kind names and assigns sibling-local keys.

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

from functools import lru_cache
from typing import Any, Dict, Iterator, List, Optional
from urllib.parse import quote
import logging

import mistune

from mdrepair.extensions import (
    directive,
    double_dollar_math,
    interrupted_marker,
    pipe_table,
    tilde_strikethrough,
)
from mdrepair.models import Node, NodeKind, PARTIAL_MARKER, plain_text, text_node

logger = logging.getLogger(__name__)

# escape_url percent-encodes the marker inside link destinations
_ENCODED_MARKER = quote(PARTIAL_MARKER)


class ParseFailure(Exception):
    """The Markdown parser or serializer could not process its input."""

    def __init__(self, message: str, stage: str = "parse"):
        super().__init__(message)
        self.stage = stage


# ---------------------------------------------------------------------------
# Parser factory
# ---------------------------------------------------------------------------

@lru_cache(maxsize=2)
def _get_parser(autolinks: bool) -> mistune.Markdown:
    plugins = [
        "strikethrough",
        tilde_strikethrough,
        pipe_table,
        "task_lists",
        double_dollar_math,
        directive,
        interrupted_marker,
    ]
    if autolinks:
        plugins.append("url")
    return mistune.create_markdown(renderer=None, plugins=plugins)


def markdown_to_tree(content: str, autolinks: bool = False) -> Node:
    """
    Parse Markdown text into a keyed Node tree.

    Args:
        content: Markdown source
        autolinks: Turn bare URLs into links (the repair path never does)

    Returns:
        Root node

    Raises:
        ParseFailure: mistune failed or produced an unknown token
    """
    try:
        tokens, state = _get_parser(autolinks).parse(content)
        root = Node(NodeKind.ROOT, children=_convert_blocks(tokens))
        root.children.extend(_convert_definitions(state.env.get("ref_links") or {}))
    except Exception as e:
        raise ParseFailure(f"Failed to parse Markdown ({len(content)} chars): {e}") from e
    assign_keys(root)
    return root


# ---------------------------------------------------------------------------
# Tree helpers
# ---------------------------------------------------------------------------

def assign_keys(node: Node, key: int = 0) -> None:
    """Assign depth-first, sibling-local keys (root gets ``key``)."""
    node.key = key
    for i, child in enumerate(node.children):
        assign_keys(child, i)


def iter_nodes(node: Node) -> Iterator[Node]:
    """Yield ``node`` and all its descendants in document order."""
    yield node
    for child in node.children:
        yield from iter_nodes(child)


# ---------------------------------------------------------------------------
# Block tokens
# ---------------------------------------------------------------------------

def _convert_blocks(tokens: List[Dict[str, Any]]) -> List[Node]:
    nodes = []
    for tok in tokens:
        node = _convert_block(tok)
        if node is not None:
            nodes.append(node)
    return nodes


def _convert_block(tok: Dict[str, Any]) -> Optional[Node]:
    kind = tok["type"]
    attrs = tok.get("attrs") or {}

    if kind == "blank_line":
        return None
    if kind in ("paragraph", "block_text"):
        return Node(NodeKind.PARAGRAPH, children=_convert_inlines(tok["children"]))
    if kind == "heading":
        return Node(NodeKind.HEADING, depth=attrs["level"],
                    children=_convert_inlines(tok["children"]))
    if kind == "thematic_break":
        return Node(NodeKind.THEMATIC_BREAK)
    if kind == "block_quote":
        return Node(NodeKind.BLOCKQUOTE, children=_convert_blocks(tok["children"]))
    if kind == "list":
        return _convert_list(tok)
    if kind == "block_code":
        return _convert_code(tok)
    if kind == "block_math":
        return Node(NodeKind.MATH, value=tok["raw"], meta=attrs.get("meta"))
    if kind == "block_html":
        return Node(NodeKind.HTML, value=tok["raw"].rstrip("\n"))
    if kind == "table":
        return _convert_table(tok)
    raise ValueError(f"Unsupported block token: {kind}")


def _convert_list(tok: Dict[str, Any]) -> Node:
    attrs = tok["attrs"]
    spread = not tok.get("tight", True)
    items = []
    for item in tok["children"]:
        checked = None
        if item["type"] == "task_list_item":
            checked = bool(item["attrs"]["checked"])
        items.append(Node(NodeKind.LIST_ITEM, spread=spread, checked=checked,
                          children=_convert_blocks(item["children"])))
    ordered = bool(attrs.get("ordered"))
    return Node(NodeKind.LIST, ordered=ordered, spread=spread,
                start=attrs.get("start", 1) if ordered else None, children=items)


def _convert_code(tok: Dict[str, Any]) -> Node:
    code = tok["raw"]
    if code.endswith("\n"):
        code = code[:-1]
    info = (tok.get("attrs") or {}).get("info", "")
    lang, _, meta = info.partition(" ")
    return Node(NodeKind.CODE, value=code, lang=lang or None, meta=meta.strip() or None)


def _convert_table(tok: Dict[str, Any]) -> Node:
    head, body = tok["children"]
    rows = [_convert_row(head["children"])]
    rows.extend(_convert_row(row["children"]) for row in body["children"])
    align = (tok.get("attrs") or {}).get("align")
    if align is None:
        align = [c["attrs"].get("align") for c in head["children"]]
    return Node(NodeKind.TABLE, align=list(align), children=rows)


def _convert_row(cells: List[Dict[str, Any]]) -> Node:
    return Node(NodeKind.TABLE_ROW, children=[
        Node(NodeKind.TABLE_CELL, children=_convert_inlines(c["children"]))
        for c in cells
    ])


def _convert_definitions(ref_links: Dict[str, Dict[str, Any]]) -> List[Node]:
    return [
        Node(NodeKind.DEFINITION, identifier=key, label=data.get("label", key),
             url=_restore_marker(data["url"]), title=data.get("title"))
        for key, data in ref_links.items()
    ]


# ---------------------------------------------------------------------------
# Inline tokens
# ---------------------------------------------------------------------------

def _restore_marker(url: Optional[str]) -> Optional[str]:
    if url is None:
        return None
    return url.replace(_ENCODED_MARKER, PARTIAL_MARKER)


def _convert_inlines(tokens: List[Dict[str, Any]]) -> List[Node]:
    nodes: List[Node] = []
    for tok in tokens:
        kind = tok["type"]
        if kind in ("text", "softbreak"):
            value = tok["raw"] if kind == "text" else "\n"
            if nodes and nodes[-1].type == NodeKind.TEXT:
                nodes[-1].value += value
            else:
                nodes.append(text_node(value))
            continue
        nodes.append(_convert_inline(tok))
    return [n for n in nodes if n.type != NodeKind.TEXT or n.value]


def _convert_inline(tok: Dict[str, Any]) -> Node:
    kind = tok["type"]
    attrs = tok.get("attrs") or {}

    if kind == "strong":
        return Node(NodeKind.STRONG, children=_convert_inlines(tok["children"]))
    if kind == "emphasis":
        return Node(NodeKind.EMPHASIS, children=_convert_inlines(tok["children"]))
    if kind == "strikethrough":
        return Node(NodeKind.DELETE, children=_convert_inlines(tok["children"]))
    if kind == "codespan":
        return Node(NodeKind.INLINE_CODE, value=tok["raw"])
    if kind == "inline_math":
        return Node(NodeKind.INLINE_MATH, value=tok["raw"])
    if kind == "linebreak":
        return Node(NodeKind.BREAK)
    if kind == "inline_html":
        return Node(NodeKind.HTML, value=tok["raw"])
    if kind == "link":
        children = _convert_inlines(tok["children"])
        if "ref" in tok:
            return Node(NodeKind.LINK_REFERENCE, identifier=tok["ref"],
                        label=tok.get("label", tok["ref"]), children=children)
        return Node(NodeKind.LINK, url=_restore_marker(attrs.get("url", "")),
                    title=attrs.get("title"), children=children)
    if kind == "image":
        alt = plain_text(Node(NodeKind.PARAGRAPH, children=_convert_inlines(tok["children"])))
        if "ref" in tok:
            return Node(NodeKind.IMAGE_REFERENCE, identifier=tok["ref"],
                        label=tok.get("label", tok["ref"]), alt=alt)
        return Node(NodeKind.IMAGE, url=_restore_marker(attrs.get("url", "")),
                    title=attrs.get("title"), alt=alt)
    if kind == "directive":
        return Node(NodeKind.DIRECTIVE, name=attrs["name"], input=attrs["input"], raw=attrs["raw"])
    if kind == "interrupted_marker":
        return Node(NodeKind.INTERRUPTED, author=attrs["author"])
    raise ValueError(f"Unsupported inline token: {kind}")
