"""
Data models for SEO Page CMS.

This module defines the core data structures shared by the extractor,
scoring engine, reconstructor and bulk edit engine.
"""

import copy
import logging
import re
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Literal, Optional

logger = logging.getLogger(__name__)


# Paragraphs at or below this many characters are layout/boilerplate.
MIN_PARAGRAPH_CHARS = 50

Status = Literal["green", "yellow", "red"]


class NodeKind(Enum):
    """Kinds of content node recovered from markup."""
    H1 = "h1"
    H2 = "h2"
    H3 = "h3"
    PARAGRAPH = "paragraph"

    @property
    def key_prefix(self) -> str:
        """Prefix used when building node keys."""
        if self is NodeKind.PARAGRAPH:
            return "paragraph"
        return f"heading_{self.value}"

    @property
    def heading_level(self) -> Optional[int]:
        """Heading level (1-3), or None for paragraphs."""
        if self is NodeKind.PARAGRAPH:
            return None
        return int(self.value[1])

    @property
    def tag(self) -> str:
        """Markup element name."""
        return "p" if self is NodeKind.PARAGRAPH else self.value


# Document order used when two nodes share an ordinal.
KIND_ORDER = (NodeKind.H1, NodeKind.H2, NodeKind.H3, NodeKind.PARAGRAPH)

_NODE_KEY_RE = re.compile(r"(heading_h[123]|paragraph)_(0|[1-9]\d*)")


def parse_node_key(key: str) -> Optional[tuple[NodeKind, int]]:
    """
    Split a node key such as ``heading_h2_3`` into kind and ordinal.

    Returns:
        Tuple of (NodeKind, ordinal), or None if the key is not recognised.
    """
    match = _NODE_KEY_RE.fullmatch(key)
    if not match:
        return None
    prefix, ordinal = match.groups()
    for kind in NodeKind:
        if kind.key_prefix == prefix:
            return kind, int(ordinal)
    return None


@dataclass
class Keyword:
    """A target keyword with its configured priority."""
    phrase: str
    priority: int = 0

    def __post_init__(self) -> None:
        """Normalize the keyword phrase."""
        self.phrase = self.phrase.strip()


@dataclass
class ContentNode:
    """One recovered content unit, addressed by kind and ordinal position."""
    kind: NodeKind
    ordinal_index: int
    text: str

    @property
    def key(self) -> str:
        """Stable key, e.g. ``heading_h1_0`` or ``paragraph_2``."""
        return f"{self.kind.key_prefix}_{self.ordinal_index}"

    @property
    def word_count(self) -> int:
        return len(self.text.split())


@dataclass
class SeoMeta:
    """SEO attribute literals of a page component."""
    title: str = ""
    description: str = ""
    keywords: str = ""
    canonical_url: str = ""

    def to_dict(self) -> dict[str, str]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "SeoMeta":
        """Build SeoMeta from a stored mapping, ignoring unknown fields."""
        data = data or {}
        return cls(
            title=str(data.get("title") or ""),
            description=str(data.get("description") or ""),
            keywords=str(data.get("keywords") or ""),
            canonical_url=str(data.get("canonical_url") or data.get("canonicalUrl") or ""),
        )


@dataclass
class ContentTree:
    """
    Structured representation of one document's content plus SEO metadata.

    ``nodes`` maps node keys to nodes. Keys are unique per (kind, ordinal), so
    the mapping itself enforces the uniqueness invariant.
    """
    slug: str
    document_type: str = "general"
    seo_meta: SeoMeta = field(default_factory=SeoMeta)
    nodes: dict[str, ContentNode] = field(default_factory=dict)

    def add_node(self, kind: NodeKind, text: str) -> ContentNode:
        """Append a node of ``kind`` with the next free ordinal for that kind."""
        ordinal = sum(1 for node in self.nodes.values() if node.kind is kind)
        node = ContentNode(kind=kind, ordinal_index=ordinal, text=text)
        self.nodes[node.key] = node
        return node

    def nodes_of(self, kind: NodeKind) -> list[ContentNode]:
        """Nodes of one kind ordered by ordinal."""
        return sorted(
            (node for node in self.nodes.values() if node.kind is kind),
            key=lambda node: node.ordinal_index,
        )

    @property
    def h1_count(self) -> int:
        return sum(1 for node in self.nodes.values() if node.kind is NodeKind.H1)

    def copy(self) -> "ContentTree":
        """Return an independent deep copy."""
        return copy.deepcopy(self)

    def to_content_payload(self) -> dict[str, dict[str, str]]:
        """Serialize nodes into the stored JSON shape."""
        return {
            key: {"type": node.kind.value, "content": node.text}
            for key, node in self.nodes.items()
        }

    @classmethod
    def from_content_payload(
        cls,
        slug: str,
        document_type: str,
        seo_meta: SeoMeta,
        payload: Optional[dict],
    ) -> "ContentTree":
        """
        Rebuild a tree from the stored JSON shape.

        Entries whose key is not a canonical node key (``paragraph_07`` is
        not), or whose content is not a string, are skipped with a warning.
        Canonical keys keep every (kind, ordinal) pair unique.
        """
        tree = cls(slug=slug, document_type=document_type, seo_meta=seo_meta)
        for key, entry in (payload or {}).items():
            parsed = parse_node_key(key)
            text = entry.get("content") if isinstance(entry, dict) else None
            if parsed is None or not isinstance(text, str):
                logger.warning(f"Skipping unrecognised content entry '{key}' on page '{slug}'")
                continue
            kind, ordinal = parsed
            tree.nodes[key] = ContentNode(kind=kind, ordinal_index=ordinal, text=text)
        return tree

    def to_dict(self) -> dict:
        return {
            "slug": self.slug,
            "document_type": self.document_type,
            "seo_meta": self.seo_meta.to_dict(),
            "content": self.to_content_payload(),
        }


@dataclass
class ScoreBreakdown:
    """Score for a single SEO category."""
    category: str
    score: int
    max_score: int
    status: Status
    issues: list[str] = field(default_factory=list)


@dataclass
class StuffingAlert:
    """Raised when a keyword's density exceeds the safe threshold."""
    keyword: str
    density: float
    severity: Literal["low", "medium", "high"]
    penalty_risk: Literal["Low", "Medium", "High"]
    current_count: int
    recommended_count: int


@dataclass
class AnalysisReport:
    """SEO analysis of one content tree against a keyword list."""
    word_count: int
    keyword_density: dict[str, float]
    readability_score: float
    overall_score: int
    category_breakdown: list[ScoreBreakdown]
    stuffing_alerts: list[StuffingAlert]

    title_length: int
    title_status: Status
    title_has_keyword: bool

    first_paragraph_word_count: int
    first_paragraph_status: Status
    keyword_in_first_sentence: bool

    has_h1: bool
    h1_count: int
    has_meta_description: bool

    # Legacy flat suggestion list
    suggestions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class DocumentChange:
    """Fields changed in one document by a bulk edit."""
    slug: str
    changed_field_paths: list[str] = field(default_factory=list)


@dataclass
class BulkEditResult:
    """Report of a bulk find/replace run."""
    dry_run: bool
    per_document_changes: list[DocumentChange] = field(default_factory=list)

    @property
    def total_affected(self) -> int:
        return len(self.per_document_changes)

    def to_dict(self) -> dict:
        return {
            "dry_run": self.dry_run,
            "per_document_changes": [asdict(change) for change in self.per_document_changes],
            "total_affected": self.total_affected,
        }
