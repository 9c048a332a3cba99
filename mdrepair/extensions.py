"""
mistune v3 grammar extensions used by the mdrepair parser.

Each function here is a mistune plugin (``plugin(md)``) registering block or
inline rules that emit AST tokens for ``mdrepair.tree`` to convert:

- ``directive``: inline ``execute::name(args)`` action calls
- ``interrupted_marker``: inline ``[Interrupted by user|agent]``
- ``tilde_strikethrough``: single-tilde ``~strike~``
- ``double_dollar_math``: ``$$x$$`` inline math and ``$$`` fenced display math
- ``pipe_table``: GFM pipe tables (leading/trailing pipes optional)

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

import json
import re
from typing import Any, Dict, List, Optional

from mdrepair.models import DIRECTIVE_KEYWORD


# ---------------------------------------------------------------------------
# Directive: execute::name(args)
# ---------------------------------------------------------------------------

DIRECTIVE_PATTERN = (
    re.escape(DIRECTIVE_KEYWORD)
    + r"::(?P<directive_name>[^()\s]+)\((?P<directive_args>[^)]*)\)"
)


def parse_directive_input(raw: str) -> Optional[Dict[str, Any]]:
    """
    Decode a directive argument payload.

    Blank payloads give None, JSON objects are returned as-is, any other JSON
    value is wrapped as ``{"value": ...}`` and non-JSON text is kept verbatim
    under ``value``.
    """
    if not raw.strip():
        return None
    try:
        parsed = json.loads(raw)
    except ValueError:
        return {"value": raw}
    if isinstance(parsed, dict):
        return parsed
    return {"value": parsed}


def _parse_directive(inline, m, state) -> int:
    raw = m.group("directive_args")
    state.append_token({
        "type": "directive",
        "attrs": {
            "name": m.group("directive_name").strip(),
            "input": parse_directive_input(raw),
            "raw": raw,
        },
    })
    return m.end()


def directive(md) -> None:
    """Register the ``execute::name(args)`` inline action syntax."""
    md.inline.register("directive", DIRECTIVE_PATTERN, _parse_directive, before="link")


# ---------------------------------------------------------------------------
# Interrupted marker: [Interrupted by user]
# ---------------------------------------------------------------------------

INTERRUPTED_PATTERN = r"\[Interrupted by (?P<interrupted_author>user|agent)\]"


def _parse_interrupted(inline, m, state) -> int:
    state.append_token({
        "type": "interrupted_marker",
        "attrs": {"author": m.group("interrupted_author")},
    })
    return m.end()


def interrupted_marker(md) -> None:
    """Register the ``[Interrupted by ...]`` marker left by a stopped stream."""
    md.inline.register("interrupted_marker", INTERRUPTED_PATTERN, _parse_interrupted, before="link")


# ---------------------------------------------------------------------------
# Single-tilde strikethrough: ~strike~
# ---------------------------------------------------------------------------

TILDE_PATTERN = r"~(?=[^\s~])"
_TILDE_END = re.compile(r"(?<![\s~\\])~(?!~)")


def _parse_tilde(inline, m, state) -> Optional[int]:
    start = m.start()
    if start > 0 and state.src[start - 1] in "~\\":
        return None
    end = _TILDE_END.search(state.src, m.end())
    if end is None:
        return None
    new_state = state.copy()
    new_state.src = state.src[m.end():end.start()]
    children = inline.render(new_state)
    state.append_token({"type": "strikethrough", "children": children})
    return end.end()


def tilde_strikethrough(md) -> None:
    """Register ``~strike~``; needs mistune's ``strikethrough`` for ``~~``."""
    md.inline.register("tilde_strikethrough", TILDE_PATTERN, _parse_tilde, before="link")


# ---------------------------------------------------------------------------
# Math: $$inline$$ and $$-fenced display blocks
# ---------------------------------------------------------------------------

INLINE_MATH_PATTERN = r"\$\$(?P<inline_math_text>[\s\S]+?)\$\$"
BLOCK_MATH_PATTERN = r"^ {0,3}\$\$(?P<math_meta>[^$\n]*)$"
_BLOCK_MATH_CLOSE = re.compile(r"^ {0,3}\$\$[ \t]*$", re.M)


def _parse_inline_math(inline, m, state) -> int:
    state.append_token({"type": "inline_math", "raw": m.group("inline_math_text")})
    return m.end()


def _parse_block_math(block, m, state) -> int:
    src = state.src
    start = m.end() + 1
    closing = _BLOCK_MATH_CLOSE.search(src, start) if start < len(src) else None
    if closing:
        body = src[start:closing.start()]
        end = closing.end()
        if end < len(src) and src[end] == "\n":
            end += 1
    else:
        # Unterminated fence runs to the end of the container
        body = src[start:] if start < len(src) else ""
        end = len(src)
    if body.endswith("\n"):
        body = body[:-1]
    meta = m.group("math_meta").strip()
    state.append_token({
        "type": "block_math",
        "raw": body,
        "attrs": {"meta": meta or None},
    })
    return end


def double_dollar_math(md) -> None:
    """
    Register ``$$`` math.

    Unlike mistune's bundled math plugin a single ``$`` is never math, so
    prices such as ``$29.99`` stay plain text.
    """
    md.inline.register("inline_math", INLINE_MATH_PATTERN, _parse_inline_math, before="codespan")
    md.block.register("block_math", BLOCK_MATH_PATTERN, _parse_block_math, before="list")
    md.block.insert_rule(md.block.block_quote_rules, "block_math", before="list")
    md.block.insert_rule(md.block.list_rules, "block_math", before="list")


# ---------------------------------------------------------------------------
# GFM pipe tables
# ---------------------------------------------------------------------------

PIPE_TABLE_PATTERN = (
    r"^ {0,3}(?P<pipe_table_head>[^\n]*\|[^\n]*)\n"
    r" {0,3}(?P<pipe_table_align>\|?[ \t]*:?-+:?[ \t]*(?:\|[ \t]*:?-+:?[ \t]*)*\|?)"
    r"[ \t]*(?:\n|$)"
)


def _is_escaped(text: str, pos: int) -> bool:
    backslashes = 0
    pos -= 1
    while pos >= 0 and text[pos] == "\\":
        backslashes += 1
        pos -= 1
    return backslashes % 2 == 1


def split_table_row(line: str) -> List[str]:
    """Split one table row into stripped cell texts (outer pipes optional)."""
    text = line.strip()
    if text.startswith("|"):
        text = text[1:]
    if text.endswith("|") and not _is_escaped(text, len(text) - 1):
        text = text[:-1]
    cells = []
    start = 0
    for pos, c in enumerate(text):
        if c == "|" and not _is_escaped(text, pos):
            cells.append(text[start:pos].strip())
            start = pos + 1
    cells.append(text[start:].strip())
    return cells


def _cell_align(delimiter: str) -> Optional[str]:
    left = delimiter.startswith(":")
    right = delimiter.endswith(":")
    if left and right:
        return "center"
    if left:
        return "left"
    if right:
        return "right"
    return None


def _row_token(cells: List[str], aligns: List[Optional[str]], head: bool) -> List[Dict[str, Any]]:
    return [
        {"type": "table_cell", "text": text, "attrs": {"align": aligns[i], "head": head}}
        for i, text in enumerate(cells)
    ]


def _parse_pipe_table(block, m, state) -> Optional[int]:
    header = split_table_row(m.group("pipe_table_head"))
    aligns = [_cell_align(c) for c in split_table_row(m.group("pipe_table_align"))]
    if len(header) != len(aligns):
        return None

    src = state.src
    pos = m.end()
    rows = []
    while pos < len(src):
        line_end = src.find("\n", pos)
        line_end = len(src) if line_end == -1 else line_end + 1
        line = src[pos:line_end]
        if not line.strip() or "|" not in line:
            break
        cells = split_table_row(line)
        cells = (cells + [""] * len(aligns))[:len(aligns)]
        rows.append({"type": "table_row", "children": _row_token(cells, aligns, False)})
        pos = line_end

    state.append_token({
        "type": "table",
        "attrs": {"align": aligns},
        "children": [
            {"type": "table_head", "children": _row_token(header, aligns, True)},
            {"type": "table_body", "children": rows},
        ],
    })
    return pos


def pipe_table(md) -> None:
    """Register GFM pipe tables at top level, in block quotes and in lists."""
    md.block.register("table", PIPE_TABLE_PATTERN, _parse_pipe_table, before="paragraph")
    md.block.insert_rule(md.block.block_quote_rules, "table", before="paragraph")
    md.block.insert_rule(md.block.list_rules, "table", before="paragraph")
