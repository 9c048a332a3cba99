"""
Node-level repair of one paragraph, heading or table cell.

The unit's non-text children are swapped for opaque placeholder tokens so
the flat-string resolver only ever sees the unit's own text:

- safe leaves (code, math, images, directives, ...) are recorded in their
  serialized form and come back byte-for-byte
- formatting containers (strong, emphasis, delete, links) are repaired
  recursively and recorded with their delimiters around the result

After the flat string is repaired the placeholders are substituted back.

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

from typing import List, Optional, Tuple
import logging

from mdrepair.config import RepairConfig
from mdrepair.models import (
    DIRECTIVE_KEYWORD,
    Node,
    NodeKind,
    PlaceholderEntry,
    SAFE_LEAF_KINDS,
    text_node,
)
from mdrepair.resolver import repair_content
from mdrepair.serializer import format_destination, format_title, safe_markdown_from_tree

logger = logging.getLogger(__name__)

# A hard break must keep its newline, which safe serialization would trim
BREAK_REPLACEMENT = "  \n"


def repair_unit(unit: Node, config: Optional[RepairConfig] = None) -> str:
    """
    Repair one structural unit into a flat Markdown string.

    Args:
        unit: Paragraph, heading or table cell
        config: Supplies the placeholder substitution cap

    Returns:
        Repaired Markdown for the unit, with synthesized text tagged by the
        partial marker
    """
    config = config or RepairConfig()
    placeholders: List[PlaceholderEntry] = []
    content = _flatten_and_repair(unit, placeholders, keep_kind=True)
    return substitute_placeholders(content, placeholders, config.substitution_passes)


def substitute_placeholders(content: str, placeholders: List[PlaceholderEntry], max_passes: int) -> str:
    """Replace placeholder tokens until none is left or ``max_passes`` is hit."""
    for _ in range(max_passes):
        # Outer containers were recorded last; their text holds inner tokens
        pending = [e for e in reversed(placeholders) if e.id in content]
        if not pending:
            return content
        for entry in pending:
            content = content.replace(entry.id, entry.replacement)
    if any(e.id in content for e in placeholders):
        logger.warning(f"Placeholder substitution stopped after {max_passes} passes")
    return content


# ---------------------------------------------------------------------------
# Flattening
# ---------------------------------------------------------------------------

def _flatten_and_repair(container: Node, placeholders: List[PlaceholderEntry], keep_kind: bool = False) -> str:
    flat_children = []
    siblings = container.children
    for i, child in enumerate(siblings):
        if child.type == NodeKind.TEXT:
            flat_children.append(child)
            continue
        if child.type in (NodeKind.STRONG, NodeKind.EMPHASIS, NodeKind.DELETE,
                          NodeKind.LINK, NodeKind.LINK_REFERENCE):
            before = _edge_char(siblings[i - 1], last=True) if i > 0 else ""
            after = _edge_char(siblings[i + 1], last=False) if i + 1 < len(siblings) else ""
            prefix, suffix = _delimiters(child, before.isalnum() or after.isalnum())
            replacement = prefix + _flatten_and_repair(child, placeholders) + suffix
        else:
            replacement = _leaf_replacement(child)
        entry = PlaceholderEntry(replacement)
        placeholders.append(entry)
        flat_children.append(text_node(entry.id))

    if keep_kind:
        flat = Node(container.type, depth=container.depth, children=flat_children)
    else:
        flat = Node(NodeKind.PARAGRAPH, children=flat_children)
    serialized = safe_markdown_from_tree(Node(NodeKind.ROOT, children=[flat]))
    return repair_content(serialized)


def _leaf_replacement(node: Node) -> str:
    if node.type == NodeKind.BREAK:
        return BREAK_REPLACEMENT
    if node.type not in SAFE_LEAF_KINDS:
        logger.debug(f"Treating unexpected inline {node.type.value} as a safe leaf")
    return safe_markdown_from_tree(Node(NodeKind.ROOT, children=[node]))


def _edge_char(node: Node, last: bool) -> str:
    """Character a sibling puts next to a flattened container."""
    if node.type == NodeKind.TEXT:
        text = node.value or ""
    elif node.type == NodeKind.DIRECTIVE:
        text = DIRECTIVE_KEYWORD + "()"
    else:
        return ""
    return text[-1:] if last else text[:1]


def _delimiters(node: Node, intraword: bool = False) -> Tuple[str, str]:
    if node.type == NodeKind.STRONG:
        return "**", "**"
    if node.type == NodeKind.EMPHASIS:
        # Underscores do not open or close between alphanumerics (a*b*c)
        if intraword:
            return "*", "*"
        return "_", "_"
    if node.type == NodeKind.DELETE:
        return "~~", "~~"
    if node.type == NodeKind.LINK:
        return "[", "](" + format_destination(node.url) + format_title(node.title) + ")"
    return "[", "][" + (node.label or node.identifier or "") + "]"
