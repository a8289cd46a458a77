"""
Pattern vocabulary for page component markup.

The extractor and the reconstructor both address elements by
(kind, ordinal). Both go through the ordered scan in this module so that an
ordinal produced at extraction time points at the same element at patch time.
This is a tolerant pattern recognizer for a small fixed vocabulary, not a
parser: nested elements of the same kind, tags inside attribute values and
unbalanced markup are not handled.
"""

import re
from dataclasses import dataclass
from typing import Iterator

from .models import MIN_PARAGRAPH_CHARS, NodeKind

# SeoMeta field name -> attribute name in the markup.
META_ATTRIBUTES: dict[str, str] = {
    "title": "title",
    "description": "description",
    "keywords": "keywords",
    "canonical_url": "canonicalUrl",
}

_TAG_RE = re.compile(r"<[^>]*>")
_ESCAPED_RE = re.compile(r'\\([\\"])')


def _compile_attribute(name: str) -> re.Pattern:
    # Attribute literal, allowing backslash-escaped quotes inside the value.
    return re.compile(
        rf'(?<![\w-]){re.escape(name)}="((?:[^"\\]|\\.)*)"',
        re.DOTALL,
    )


def _compile_element(tag: str) -> re.Pattern:
    return re.compile(rf"(<{tag}(?:\s[^>]*)?>)(.*?)(</{tag}\s*>)", re.DOTALL)


ATTRIBUTE_PATTERNS: dict[str, re.Pattern] = {
    field_name: _compile_attribute(attr) for field_name, attr in META_ATTRIBUTES.items()
}

ELEMENT_PATTERNS: dict[NodeKind, re.Pattern] = {
    kind: _compile_element(kind.tag) for kind in NodeKind
}


@dataclass
class ElementMatch:
    """An accepted element occurrence found by the ordered scan."""
    ordinal: int
    match: re.Match
    text: str


def escape_quotes(value: str) -> str:
    """Escape backslashes and double quotes for use inside an attribute literal."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


def unescape_quotes(value: str) -> str:
    """Undo escape_quotes; other backslash sequences are kept as written."""
    return _ESCAPED_RE.sub(r"\1", value)


def strip_tags(fragment: str) -> str:
    """Remove nested markup tags and trim whitespace."""
    return _TAG_RE.sub("", fragment).strip()


def is_content_element(kind: NodeKind, text: str) -> bool:
    """
    Whether an element's stripped text counts as a content node.

    Paragraphs must exceed MIN_PARAGRAPH_CHARS; headings must be non-empty.
    Rejected elements never consume an ordinal.
    """
    if kind is NodeKind.PARAGRAPH:
        return len(text) > MIN_PARAGRAPH_CHARS
    return bool(text)


def find_attribute(source: str, field_name: str) -> str:
    """Value of the first occurrence of a SEO attribute, or ''."""
    match = ATTRIBUTE_PATTERNS[field_name].search(source)
    if match is None:
        return ""
    return unescape_quotes(match.group(1))


def replace_attribute(source: str, field_name: str, value: str) -> str:
    """Replace the first occurrence of a SEO attribute literal."""
    attr = META_ATTRIBUTES[field_name]
    literal = f'{attr}="{escape_quotes(value)}"'
    # Callable replacement so backslashes in the value are not template escapes.
    return ATTRIBUTE_PATTERNS[field_name].sub(lambda _m: literal, source, count=1)


def iter_elements(source: str, kind: NodeKind) -> Iterator[ElementMatch]:
    """Yield accepted elements of ``kind`` in document order with their ordinals."""
    ordinal = 0
    for match in ELEMENT_PATTERNS[kind].finditer(source):
        text = strip_tags(match.group(2))
        if not is_content_element(kind, text):
            continue
        yield ElementMatch(ordinal=ordinal, match=match, text=text)
        ordinal += 1


def replace_elements(
    source: str,
    kind: NodeKind,
    replacements: dict[int, str],
) -> tuple[str, set[int]]:
    """
    Replace the inner content of the accepted elements at the given ordinals.

    Counting and acceptance are evaluated against ``source`` as passed in,
    in a single pass, so a replacement never shifts the ordinals of later
    elements. Open and close tags are kept as they are.

    Args:
        source: Markup text to patch.
        kind: Element kind to patch.
        replacements: Mapping of ordinal -> new inner text (inserted verbatim).

    Returns:
        Tuple of (patched text, set of ordinals that were found).
    """
    found: set[int] = set()
    counter = 0

    def _substitute(match: re.Match) -> str:
        nonlocal counter
        text = strip_tags(match.group(2))
        if not is_content_element(kind, text):
            return match.group(0)
        ordinal = counter
        counter += 1
        if ordinal not in replacements:
            return match.group(0)
        found.add(ordinal)
        return f"{match.group(1)}{replacements[ordinal]}{match.group(3)}"

    return ELEMENT_PATTERNS[kind].sub(_substitute, source), found
