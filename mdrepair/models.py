"""
Core data models for the mdrepair engine.

A Markdown document is held as a tree of ``Node`` dataclasses using mdast
kind names. Transient repair records (candidates, placeholders) live here
too so every stage of the pipeline shares one vocabulary.

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional
import uuid


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

PARTIAL_MARKER = "\uE000"    # Tags text synthesized by a repair
DIRECTIVE_KEYWORD = "execute"   # execute::name(args)
PARTIAL_DIRECTIVE = f"{DIRECTIVE_KEYWORD}::PARTIAL()"


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class NodeKind(str, Enum):
    """Node kinds, named after their mdast counterparts."""
    ROOT = "root"
    PARAGRAPH = "paragraph"
    HEADING = "heading"
    THEMATIC_BREAK = "thematicBreak"
    BLOCKQUOTE = "blockquote"
    LIST = "list"
    LIST_ITEM = "listItem"
    TABLE = "table"
    TABLE_ROW = "tableRow"
    TABLE_CELL = "tableCell"
    CODE = "code"
    MATH = "math"
    HTML = "html"
    DEFINITION = "definition"
    TEXT = "text"
    STRONG = "strong"
    EMPHASIS = "emphasis"
    DELETE = "delete"
    LINK = "link"
    LINK_REFERENCE = "linkReference"
    IMAGE = "image"
    IMAGE_REFERENCE = "imageReference"
    INLINE_CODE = "inlineCode"
    INLINE_MATH = "inlineMath"
    BREAK = "break"
    DIRECTIVE = "directive"
    INTERRUPTED = "interruptedMarker"


CONTAINER_KINDS = frozenset({
    NodeKind.ROOT, NodeKind.PARAGRAPH, NodeKind.HEADING, NodeKind.BLOCKQUOTE,
    NodeKind.LIST, NodeKind.LIST_ITEM, NodeKind.TABLE, NodeKind.TABLE_ROW,
    NodeKind.TABLE_CELL, NodeKind.STRONG, NodeKind.EMPHASIS, NodeKind.DELETE,
    NodeKind.LINK, NodeKind.LINK_REFERENCE,
})

VALUE_KINDS = frozenset({
    NodeKind.TEXT, NodeKind.INLINE_CODE, NodeKind.INLINE_MATH,
    NodeKind.CODE, NodeKind.MATH, NodeKind.HTML,
})

BLOCK_KINDS = frozenset({
    NodeKind.PARAGRAPH, NodeKind.HEADING, NodeKind.THEMATIC_BREAK,
    NodeKind.BLOCKQUOTE, NodeKind.LIST, NodeKind.TABLE, NodeKind.CODE,
    NodeKind.MATH, NodeKind.DEFINITION,
})

# Units the engine repairs directly; everything else is reached through them
REPAIRABLE_KINDS = frozenset({
    NodeKind.PARAGRAPH, NodeKind.HEADING, NodeKind.TABLE_CELL,
})

# Inline leaves reinserted verbatim, never reinterpreted
SAFE_LEAF_KINDS = frozenset({
    NodeKind.INLINE_MATH, NodeKind.INLINE_CODE, NodeKind.IMAGE,
    NodeKind.IMAGE_REFERENCE, NodeKind.DIRECTIVE, NodeKind.INTERRUPTED,
    NodeKind.BREAK, NodeKind.HTML,
})


class CandidateKind(str, Enum):
    """Unclosed constructs the resolver knows how to close."""
    INLINE_CODE = "inline_code"
    INLINE_MATH = "inline_math"
    BOLD_ITALIC_ASTERISK = "bold_italic_asterisk"
    BOLD_ITALIC_UNDERSCORE = "bold_italic_underscore"
    BOLD_ASTERISK = "bold_asterisk"
    BOLD_UNDERSCORE = "bold_underscore"
    ITALIC_ASTERISK = "italic_asterisk"
    ITALIC_UNDERSCORE = "italic_underscore"
    STRIKETHROUGH_DOUBLE = "strikethrough_double"
    STRIKETHROUGH_SINGLE = "strikethrough_single"
    LINK = "link"
    TABLE = "table"


# Contents of these candidates are never reinterpreted
SAFE_ZONE_KINDS = (CandidateKind.INLINE_CODE, CandidateKind.INLINE_MATH)

# Candidates that are closed even when nothing follows the opener
NEVER_EMPTY_KINDS = frozenset({CandidateKind.LINK, CandidateKind.TABLE})


# ---------------------------------------------------------------------------
# Node
# ---------------------------------------------------------------------------

_STRUCTURE_FIELDS = ("type", "children", "key", "partial")


@dataclass
class Node:
    """
    One node of a Markdown tree.

    Only the attributes relevant to ``type`` are set; the rest stay None.
    ``key`` is a sibling-local index refreshed on every parse and
    ``partial`` marks content synthesized by the current repair.
    """
    type: NodeKind
    children: List["Node"] = field(default_factory=list)
    value: Optional[str] = None
    url: Optional[str] = None
    title: Optional[str] = None
    alt: Optional[str] = None
    depth: Optional[int] = None
    ordered: Optional[bool] = None
    start: Optional[int] = None
    spread: Optional[bool] = None
    checked: Optional[bool] = None
    identifier: Optional[str] = None
    label: Optional[str] = None
    lang: Optional[str] = None
    meta: Optional[str] = None
    align: Optional[List[Optional[str]]] = None
    name: Optional[str] = None
    input: Optional[Dict[str, Any]] = None
    raw: Optional[str] = None
    author: Optional[str] = None
    key: int = 0
    partial: bool = False

    def __post_init__(self):
        self.type = NodeKind(self.type)

    @property
    def is_container(self) -> bool:
        return self.type in CONTAINER_KINDS

    def string_fields(self) -> Iterator[str]:
        """Names of string attributes currently set on this node."""
        for f in fields(self):
            if f.name in _STRUCTURE_FIELDS:
                continue
            if isinstance(getattr(self, f.name), str):
                yield f.name

    def has_marker(self) -> bool:
        """Whether any string attribute carries the partial marker."""
        return any(PARTIAL_MARKER in getattr(self, name) for name in self.string_fields())

    def map_strings(self, func) -> None:
        """Apply ``func`` to every string attribute of this node (not descendants)."""
        for name in list(self.string_fields()):
            setattr(self, name, func(getattr(self, name)))

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"type": self.type.value, "key": self.key}
        for f in fields(self):
            if f.name in _STRUCTURE_FIELDS:
                continue
            v = getattr(self, f.name)
            if v is not None:
                d[f.name] = v
        if self.partial:
            d["partial"] = True
        if self.is_container:
            d["children"] = [c.to_dict() for c in self.children]
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Node":
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in d.items() if k in known and k != "children"}
        node = cls(**kwargs)
        node.children = [cls.from_dict(c) for c in d.get("children", [])]
        return node


def text_node(value: str) -> Node:
    return Node(NodeKind.TEXT, value=value)


def plain_text(node: Node) -> str:
    """Concatenated text content of a subtree (used for image alt text)."""
    if node.type in VALUE_KINDS:
        return node.value or ""
    if node.type in (NodeKind.IMAGE, NodeKind.IMAGE_REFERENCE):
        return node.alt or ""
    if node.type == NodeKind.BREAK:
        return "\n"
    return "".join(plain_text(c) for c in node.children)


# ---------------------------------------------------------------------------
# Transient repair records
# ---------------------------------------------------------------------------

@dataclass
class RepairCandidate:
    """An unclosed construct found in one flat string."""
    kind: CandidateKind
    opens_at: int
    closing: str


@dataclass
class PlaceholderEntry:
    """Opaque token standing in for one flattened child."""
    replacement: str
    id: str = field(default_factory=lambda: "{" + uuid.uuid4().hex + "}")
