"""
Markdown serialization of mdrepair Node trees.

``markdown_from_tree`` writes a canonical Markdown form that mistune (with
the mdrepair extensions) parses back into the same tree. Text is escaped
where it would otherwise turn into syntax.

``safe_markdown_from_tree`` is the variant used by the repair engine: it
guarantees literal backslashes in the tree come out untouched and removes
every escape the serializer added, so the engine works on raw text.

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

import copy
import json
import re
from typing import List, Optional

from mdrepair.models import BLOCK_KINDS, DIRECTIVE_KEYWORD, Node, NodeKind
from mdrepair.tree import ParseFailure, iter_nodes

# Characters the text escaper may prefix with a backslash
ESCAPABLE = "\\`*_[]~$<>#+-=.)"

# Stand-in for literal backslashes while the serializer runs
BACKSLASH_TOKEN = "\uE001"

_ESCAPE_RE = re.compile(r"\\([" + re.escape(ESCAPABLE) + r"])")
_ALWAYS_ESCAPED = re.compile(r"([\\`*\[\]~])")
_DOUBLE_DOLLAR = re.compile(r"\$(?=\$)|(?<=\$)\$")
_HTML_START = re.compile(r"<(?=[A-Za-z/!?])")
_LINE_START = re.compile(
    r"^( {0,3})(?:(#{1,6}|[>+-])(?=[ \t]|$)|(>)|(\d{1,9})([.)])(?=[ \t]|$)|([=-]+[ \t]*$))",
    re.M,
)


def markdown_from_tree(node: Node) -> str:
    """
    Serialize a tree (or any subtree) to Markdown.

    Args:
        node: Root or any other node

    Returns:
        Markdown text ending with a newline, or "" when there is no content

    Raises:
        ParseFailure: the tree holds a node that cannot be serialized
    """
    try:
        if node.type == NodeKind.ROOT:
            out = _render_blocks(node.children, "\n\n")
        else:
            out = _render_node(node)
    except Exception as e:
        raise ParseFailure(f"Failed to serialize {node.type.value} node: {e}", stage="serialize") from e
    return out + "\n" if out else ""


def safe_markdown_from_tree(node: Node) -> str:
    """
    Serialize without escapes while keeping literal backslashes intact.

    Literal backslashes are swapped for a private token before serializing,
    the serializer's own escapes are removed, then the token is swapped back.
    The trailing newline is dropped.
    """
    clone = copy.deepcopy(node)
    for n in iter_nodes(clone):
        if n.type == NodeKind.DIRECTIVE and n.raw is None:
            n.raw = compact_json(n.input)
        n.map_strings(lambda s: s.replace("\\", BACKSLASH_TOKEN))
    text = markdown_from_tree(clone)
    text = _ESCAPE_RE.sub(r"\1", text).replace(BACKSLASH_TOKEN, "\\")
    if text.endswith("\n"):
        text = text[:-1]
    return text


def compact_json(value) -> str:
    if value is None:
        return ""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def format_destination(url: Optional[str]) -> str:
    """Link destination, wrapped in <> when it would not parse bare."""
    if not url:
        return ""
    if re.search(r"[\s<>]", url) or url.count("(") != url.count(")"):
        return "<" + url + ">"
    return url


def format_title(title: Optional[str]) -> str:
    if not title:
        return ""
    return ' "' + title.replace('"', '\\"') + '"'


# ---------------------------------------------------------------------------
# Text escaping
# ---------------------------------------------------------------------------

def escape_text(value: str) -> str:
    """Escape inline punctuation that would otherwise become syntax."""
    text = _ALWAYS_ESCAPED.sub(r"\\\1", value)
    text = _DOUBLE_DOLLAR.sub(r"\\$", text)
    text = _HTML_START.sub(r"\\<", text)
    out = []
    for i, c in enumerate(text):
        if c == "_":
            prev = text[i - 1] if i > 0 else ""
            nxt = text[i + 1] if i + 1 < len(text) else ""
            if not (prev.isalnum() and nxt.isalnum()):
                out.append("\\")
        out.append(c)
    return "".join(out)


def _escape_line_starts(text: str) -> str:
    def fix(m):
        indent = m.group(1)
        if m.group(2):
            return indent + "\\" + m.group(2)
        if m.group(3):
            return indent + "\\>"
        if m.group(4):
            return indent + m.group(4) + "\\" + m.group(5)
        return indent + "\\" + m.group(6)
    return _LINE_START.sub(fix, text)


# ---------------------------------------------------------------------------
# Blocks
# ---------------------------------------------------------------------------

def _render_blocks(children: List[Node], sep: str) -> str:
    parts: List[str] = []
    prev: Optional[Node] = None
    alternate = False
    for child in children:
        if child.type == NodeKind.LIST:
            # Adjacent lists of the same kind would merge without a new marker
            same = prev is not None and prev.type == NodeKind.LIST and bool(prev.ordered) == bool(child.ordered)
            alternate = (not alternate) if same else False
            rendered = _render_list(child, alternate)
        else:
            rendered = _render_node(child)
        if parts and (child.type in BLOCK_KINDS or prev.type in BLOCK_KINDS):
            parts.append(sep)
        parts.append(rendered)
        prev = child
    return "".join(parts)


def _render_node(node: Node) -> str:
    kind = node.type
    if kind == NodeKind.PARAGRAPH:
        return _escape_line_starts(_render_inlines(node.children))
    if kind == NodeKind.HEADING:
        return _render_heading(node)
    if kind == NodeKind.THEMATIC_BREAK:
        return "***"
    if kind == NodeKind.BLOCKQUOTE:
        inner = _render_blocks(node.children, "\n\n")
        return "\n".join(("> " + line) if line else ">" for line in inner.split("\n"))
    if kind == NodeKind.LIST:
        return _render_list(node, False)
    if kind == NodeKind.LIST_ITEM:
        return _render_list_item(node, "-", bool(node.spread))
    if kind == NodeKind.CODE:
        return _render_code(node)
    if kind == NodeKind.MATH:
        head = "$$" + (node.meta or "")
        if node.value:
            return head + "\n" + node.value + "\n$$"
        return head + "\n$$"
    if kind == NodeKind.DEFINITION:
        return f"[{node.label or node.identifier}]: {format_destination(node.url) or '<>'}{format_title(node.title)}"
    if kind == NodeKind.TABLE:
        return _render_table(node)
    if kind == NodeKind.TABLE_ROW:
        return "| " + " | ".join(_render_cell(c) for c in node.children) + " |"
    if kind == NodeKind.TABLE_CELL:
        return _render_inlines(node.children)
    return _render_inline(node)


def _render_heading(node: Node) -> str:
    depth = node.depth or 1
    content = _render_inlines(node.children)
    if "\n" in content:
        if depth <= 2:
            return content + "\n" + ("===" if depth == 1 else "---")
        content = content.replace("\n", " ")
    if not content:
        return "#" * depth
    return "#" * depth + " " + content


def _render_code(node: Node) -> str:
    value = node.value or ""
    runs = [len(r) for r in re.findall(r"`{3,}", value)]
    fence = "`" * max([3] + [r + 1 for r in runs])
    info = node.lang or ""
    if node.meta:
        info = (info + " " + node.meta).strip()
    if value:
        return f"{fence}{info}\n{value}\n{fence}"
    return f"{fence}{info}\n{fence}"


def _render_list(node: Node, alternate: bool) -> str:
    spread = bool(node.spread)
    items = []
    for i, item in enumerate(node.children):
        if node.ordered:
            marker = f"{(node.start or 1) + i}{')' if alternate else '.'}"
        else:
            marker = "*" if alternate else "-"
        items.append(_render_list_item(item, marker, spread))
    return ("\n\n" if spread else "\n").join(items)


def _render_list_item(item: Node, marker: str, spread: bool) -> str:
    content = _render_blocks(item.children, "\n\n" if spread else "\n")
    if item.checked is not None:
        content = ("[x] " if item.checked else "[ ] ") + content
    if not content:
        return marker
    indent = " " * (len(marker) + 1)
    lines = content.split("\n")
    rest = [(indent + line) if line else "" for line in lines[1:]]
    return "\n".join([marker + " " + lines[0]] + rest)


def _render_cell(cell: Node) -> str:
    text = _render_inlines(cell.children).replace("\n", " ")
    return re.sub(r"(?<!\\)\|", r"\\|", text)


def _render_table(node: Node) -> str:
    rows = [[_render_cell(c) for c in row.children] for row in node.children]
    align = list(node.align or [])
    ncols = max([len(align)] + [len(r) for r in rows])
    align += [None] * (ncols - len(align))
    rows = [r + [""] * (ncols - len(r)) for r in rows]

    minimum = {"center": 3, "left": 2, "right": 2}
    widths = [
        max([minimum.get(align[i], 1)] + [len(r[i]) for r in rows])
        for i in range(ncols)
    ]

    def fmt(cells: List[str]) -> str:
        padded = []
        for i, text in enumerate(cells):
            if align[i] == "right":
                padded.append(text.rjust(widths[i]))
            elif align[i] == "center":
                padded.append(text.center(widths[i]))
            else:
                padded.append(text.ljust(widths[i]))
        return "| " + " | ".join(padded) + " |"

    delimiter = []
    for i, w in enumerate(widths):
        a = align[i]
        if a == "center":
            delimiter.append(":" + "-" * (w - 2) + ":")
        elif a == "left":
            delimiter.append(":" + "-" * (w - 1))
        elif a == "right":
            delimiter.append("-" * (w - 1) + ":")
        else:
            delimiter.append("-" * w)

    lines = [fmt(rows[0]), "| " + " | ".join(delimiter) + " |"] if rows else []
    lines.extend(fmt(r) for r in rows[1:])
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Inlines
# ---------------------------------------------------------------------------

def _render_inlines(children: List[Node]) -> str:
    parts = [_render_inline(c) for c in children]
    for i, child in enumerate(children):
        if child.type != NodeKind.EMPHASIS:
            continue
        before = parts[i - 1][-1:] if i > 0 else ""
        after = parts[i + 1][:1] if i + 1 < len(parts) else ""
        if before.isalnum() or after.isalnum():
            # Intraword emphasis only parses with asterisks
            parts[i] = "*" + parts[i][1:-1] + "*"
    return "".join(parts)


def _render_inline(node: Node) -> str:
    kind = node.type
    if kind == NodeKind.TEXT:
        return escape_text(node.value or "")
    if kind == NodeKind.STRONG:
        return "**" + _render_inlines(node.children) + "**"
    if kind == NodeKind.EMPHASIS:
        return "_" + _render_inlines(node.children) + "_"
    if kind == NodeKind.DELETE:
        return "~~" + _render_inlines(node.children) + "~~"
    if kind == NodeKind.INLINE_CODE:
        return _render_inline_code(node.value or "")
    if kind == NodeKind.INLINE_MATH:
        return "$$" + (node.value or "") + "$$"
    if kind == NodeKind.BREAK:
        return "  \n"
    if kind == NodeKind.HTML:
        return node.value or ""
    if kind == NodeKind.LINK:
        inner = _render_inlines(node.children)
        return f"[{inner}]({format_destination(node.url)}{format_title(node.title)})"
    if kind == NodeKind.LINK_REFERENCE:
        return f"[{_render_inlines(node.children)}][{node.label or node.identifier}]"
    if kind == NodeKind.IMAGE:
        return f"![{escape_text(node.alt or '')}]({format_destination(node.url)}{format_title(node.title)})"
    if kind == NodeKind.IMAGE_REFERENCE:
        return f"![{escape_text(node.alt or '')}][{node.label or node.identifier}]"
    if kind == NodeKind.DIRECTIVE:
        args = node.raw if node.raw is not None else compact_json(node.input)
        return f"{DIRECTIVE_KEYWORD}::{node.name}({args})"
    if kind == NodeKind.INTERRUPTED:
        return f"[Interrupted by {node.author}]"
    raise ValueError(f"Unsupported node kind: {kind.value}")


def _render_inline_code(value: str) -> str:
    runs = [len(r) for r in re.findall(r"`+", value)]
    fence = "`" * (max(runs) + 1 if runs else 1)
    pad = ""
    if value.startswith("`") or value.endswith("`"):
        pad = " "
    elif value.startswith(" ") and value.endswith(" ") and value.strip():
        pad = " "
    return fence + pad + value + pad + fence
