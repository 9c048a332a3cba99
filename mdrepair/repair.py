"""
Public entry points of the mdrepair engine.

    >>> repair("Hello **bold")
    'Hello **bold**'

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

from typing import Optional

from mdrepair.config import RepairConfig
from mdrepair.models import Node
from mdrepair.serializer import safe_markdown_from_tree
from mdrepair.tree import markdown_to_tree
from mdrepair.tree_repair import repair_tree


def repair_markdown(content: str, config: Optional[RepairConfig] = None) -> str:
    """
    Close every construct left open in a (possibly truncated) document.

    Args:
        content: Markdown text, typically a prefix of a streamed document
        config: Optional iteration caps

    Returns:
        Markdown text that re-parses with every sequence closed

    Raises:
        ParseFailure: parsing or serializing failed
    """
    tree = markdown_to_tree(content, autolinks=False)
    return safe_markdown_from_tree(repair_tree(tree, config))


def repair_markdown_to_tree(content: str, config: Optional[RepairConfig] = None) -> Node:
    """Parse and repair ``content``, returning the flagged tree."""
    return repair_tree(markdown_to_tree(content, autolinks=False), config)


# Short aliases
repair = repair_markdown
repair_to_tree = repair_markdown_to_tree
