"""
Whole-document repair.

Runs the node-level repairer on every repairable unit and splices the
re-parsed results back. The document is then re-parsed once, with the partial
marker still in place, so structure and keys are canonical. Finally the
marker is turned into ``partial`` flags, stripped, and empty nodes are pruned.

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

from typing import Dict, List, Optional
import logging

from mdrepair.config import RepairConfig
from mdrepair.models import (
    Node,
    NodeKind,
    PARTIAL_MARKER,
    REPAIRABLE_KINDS,
    VALUE_KINDS,
    text_node,
)
from mdrepair.node_repair import repair_unit
from mdrepair.serializer import safe_markdown_from_tree
from mdrepair.tree import assign_keys, iter_nodes, markdown_to_tree

logger = logging.getLogger(__name__)


def repair_tree(tree: Node, config: Optional[RepairConfig] = None) -> Node:
    """
    Repair a parsed document in place.

    Args:
        tree: Root node from ``markdown_to_tree``
        config: Iteration caps and normalization switch

    Returns:
        The same root, now holding the repaired, normalized document with
        ``partial`` set on nodes that contain synthesized content

    Raises:
        ParseFailure: a repaired unit or the final document failed to parse
    """
    config = config or RepairConfig()

    units = collect_units(tree)
    logger.debug(f"Repairing {len(units)} units")
    replacements: Dict[int, List[Node]] = {}
    for unit in units:
        replacements[id(unit)] = _reparse_unit(unit, repair_unit(unit, config))
    _splice(tree, replacements)

    if config.normalize:
        # Markers sit inside the constructs they close and survive the re-parse
        tree.children = markdown_to_tree(safe_markdown_from_tree(tree)).children

    flag_partial(tree)
    strip_markers(tree)
    prune_empty(tree, config.prune_passes)
    assign_keys(tree)
    return tree


# ---------------------------------------------------------------------------
# Scan and splice
# ---------------------------------------------------------------------------

def collect_units(node: Node) -> List[Node]:
    """Repairable units below ``node``; units are not searched further."""
    units = []
    for child in node.children:
        if child.type in REPAIRABLE_KINDS:
            units.append(child)
        else:
            units.extend(collect_units(child))
    return units


def _reparse_unit(unit: Node, repaired: str) -> List[Node]:
    parsed = markdown_to_tree(repaired)
    if unit.type != NodeKind.TABLE_CELL:
        return parsed.children

    # A cell keeps its slot in the row; only its inline content changes
    inlines: List[Node] = []
    for block in parsed.children:
        if block.type in (NodeKind.PARAGRAPH, NodeKind.HEADING):
            inlines.extend(block.children)
    if not inlines and repaired.strip():
        inlines = [text_node(repaired.strip())]
    unit.children = inlines
    return [unit]


def _splice(node: Node, replacements: Dict[int, List[Node]]) -> None:
    children = []
    for child in node.children:
        if id(child) in replacements:
            children.extend(replacements[id(child)])
        else:
            _splice(child, replacements)
            children.append(child)
    node.children = children


# ---------------------------------------------------------------------------
# Flag, strip, prune
# ---------------------------------------------------------------------------

def flag_partial(node: Node) -> bool:
    """Set ``partial`` where the marker occurs in the node or below it."""
    partial = node.has_marker()
    for child in node.children:
        if flag_partial(child):
            partial = True
    node.partial = partial
    return partial


def strip_markers(tree: Node) -> None:
    for node in iter_nodes(tree):
        node.map_strings(lambda s: s.replace(PARTIAL_MARKER, ""))


def _is_empty(node: Node) -> bool:
    if node.type in VALUE_KINDS:
        return not node.value
    # Empty cells hold a column
    return node.is_container and node.type != NodeKind.TABLE_CELL and not node.children


def _prune_pass(node: Node) -> int:
    removed = 0
    kept = []
    for child in node.children:
        if child.type == NodeKind.MATH and not child.value and child.meta:
            # $$x with no closing fence leaves the formula on the fence line
            child.value, child.meta = child.meta, None
        removed += _prune_pass(child)
        if _is_empty(child):
            removed += 1
            continue
        kept.append(child)
    node.children = kept
    return removed


def prune_empty(tree: Node, max_passes: int = 10) -> int:
    """Remove empty value nodes and childless containers; returns the count."""
    total = 0
    for i in range(max_passes):
        removed = _prune_pass(tree)
        total += removed
        if not removed:
            logger.debug(f"Pruned {total} empty nodes in {i + 1} passes")
            return total
    logger.warning(f"Pruning stopped after {max_passes} passes, tree may hold empty nodes")
    return total
