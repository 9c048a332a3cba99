"""
mdrepair: partial-Markdown repair for streamed text.

Closes formatting, links, tables and directives left open by a truncated
document and flags the synthesized parts of the result.

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

__version__ = "0.1.0"

from mdrepair.config import RepairConfig, load_repair_config
from mdrepair.models import Node, NodeKind, PARTIAL_MARKER
from mdrepair.repair import repair, repair_markdown, repair_markdown_to_tree, repair_to_tree
from mdrepair.serializer import markdown_from_tree, safe_markdown_from_tree
from mdrepair.tree import ParseFailure, markdown_to_tree
from mdrepair.tree_repair import repair_tree

__all__ = [
    "__version__",
    "Node",
    "NodeKind",
    "PARTIAL_MARKER",
    "ParseFailure",
    "RepairConfig",
    "load_repair_config",
    "markdown_from_tree",
    "markdown_to_tree",
    "repair",
    "repair_markdown",
    "repair_markdown_to_tree",
    "repair_to_tree",
    "repair_tree",
    "safe_markdown_from_tree",
]
