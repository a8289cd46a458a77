"""
Content extraction from page component source files.

Recovers a ContentTree from markup text by pattern matching:
- SEO attribute literals (title, description, keywords, canonicalUrl)
- h1/h2/h3 headings and paragraphs, in document order per kind

Extraction is best-effort. Malformed or empty input never raises; missing
patterns simply leave fields empty. File reading errors are the only
failures, and batch extraction tallies them instead of raising.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Union

from .markup import META_ATTRIBUTES, find_attribute, iter_elements
from .models import KIND_ORDER, ContentTree, SeoMeta

logger = logging.getLogger(__name__)


# Checked in order; first match wins.
DOCUMENT_TYPE_KEYWORDS = ("about", "service", "location", "portfolio", "contact")
DEFAULT_DOCUMENT_TYPE = "general"


@dataclass
class BatchExtraction:
    """Outcome of extracting a batch of source documents."""
    total: int = 0
    trees: list[ContentTree] = field(default_factory=list)
    failures: list[tuple[str, str]] = field(default_factory=list)  # (name, error)

    @property
    def successful(self) -> int:
        return len(self.trees)


def determine_document_type(identity_hint: str) -> str:
    """
    Classify a document from its identity hint (usually the file name).

    Args:
        identity_hint: File name or slug.

    Returns:
        One of DOCUMENT_TYPE_KEYWORDS, or 'general'.
    """
    lower_hint = identity_hint.lower()
    for keyword in DOCUMENT_TYPE_KEYWORDS:
        if keyword in lower_hint:
            return keyword
    return DEFAULT_DOCUMENT_TYPE


def extract_seo_meta(source_text: str) -> SeoMeta:
    """Read the first occurrence of each SEO attribute literal."""
    values = {name: find_attribute(source_text, name) for name in META_ATTRIBUTES}
    return SeoMeta(**values)


def extract(source_text: str, identity_hint: str) -> ContentTree:
    """
    Extract a ContentTree from page component markup.

    Args:
        source_text: The markup text.
        identity_hint: Name the slug and document type are derived from.

    Returns:
        ContentTree with SEO metadata and content nodes.
    """
    tree = ContentTree(
        slug=identity_hint.lower(),
        document_type=determine_document_type(identity_hint),
        seo_meta=extract_seo_meta(source_text),
    )

    for kind in KIND_ORDER:
        for element in iter_elements(source_text, kind):
            tree.add_node(kind, element.text)

    logger.debug(
        f"Extracted '{tree.slug}' ({tree.document_type}): {len(tree.nodes)} nodes"
    )
    return tree


def extract_file(file_path: Union[str, Path]) -> ContentTree:
    """
    Extract a ContentTree from a source file. The slug is the file stem.

    Raises:
        OSError: If the file cannot be read.
        UnicodeDecodeError: If the file is not valid UTF-8.
    """
    path = Path(file_path)
    return extract(path.read_text(encoding="utf-8"), path.stem)


def extract_batch(sources: Iterable[tuple[str, str]]) -> BatchExtraction:
    """
    Extract many in-memory documents.

    Args:
        sources: Iterable of (identity_hint, source_text) pairs.

    Returns:
        BatchExtraction with the trees and the success tally.
    """
    result = BatchExtraction()
    for identity_hint, source_text in sources:
        result.total += 1
        result.trees.append(extract(source_text, identity_hint))
    return result


def extract_files(paths: Iterable[Union[str, Path]]) -> BatchExtraction:
    """
    Extract many source files, tallying unreadable ones as failures.

    Args:
        paths: Paths of source files.

    Returns:
        BatchExtraction with extracted trees and per-file failures.
    """
    result = BatchExtraction()
    for file_path in paths:
        path = Path(file_path)
        result.total += 1
        try:
            result.trees.append(extract_file(path))
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Error processing {path.name}: {e}")
            result.failures.append((path.name, str(e)))
    return result
