"""
Page component reconstruction from edited content trees.

Two modes:
- render: regenerate a canonical component from the tree alone
- patch: surgically update an existing component, touching only the SEO
  attributes and element inner text addressed by the tree

Patch mode relies on the same (kind, ordinal) ordered scan as the
extractor, so ordinals recovered at extraction time resolve to the same
elements here. Everything not addressed by the tree is kept verbatim.
"""

import logging
import re
from pathlib import Path
from typing import Optional, Union

from .markup import META_ATTRIBUTES, escape_quotes, replace_attribute, replace_elements
from .models import KIND_ORDER, ContentNode, ContentTree, NodeKind

logger = logging.getLogger(__name__)


ELEMENT_TEMPLATES: dict[NodeKind, str] = {
    NodeKind.H1: '      <h1 className="text-4xl font-bold mb-6">{text}</h1>',
    NodeKind.H2: '      <h2 className="text-3xl font-semibold mt-8 mb-4">{text}</h2>',
    NodeKind.H3: '      <h3 className="text-2xl font-semibold mt-6 mb-3">{text}</h3>',
    NodeKind.PARAGRAPH: '      <p className="text-lg mb-4">{text}</p>',
}

PAGE_TEMPLATE = """import React from 'react';
import SEOHead from '../components/SEOHead';

export default function {component}() {{
  return (
    <>
      <SEOHead
        title="{title}"
        description="{description}"
        keywords="{keywords}"
        canonicalUrl="{canonical_url}"
      />

      <div className="container mx-auto px-4 py-12">
{content}
      </div>
    </>
  );
}}
"""


def to_pascal_case(value: str) -> str:
    """
    Convert a slug to a component name.

    Examples:
        >>> to_pascal_case("custom-framing_services")
        'CustomFramingServices'
    """
    return "".join(word[:1].upper() + word[1:].lower() for word in re.split(r"[-_]", value))


def _render_order(node: ContentNode) -> tuple[int, int]:
    return node.ordinal_index, KIND_ORDER.index(node.kind)


def render(tree: ContentTree) -> str:
    """
    Regenerate a complete page component from a content tree.

    Nodes are emitted ordered by ordinal, then by kind (h1, h2, h3, p).

    Args:
        tree: Content tree to render.

    Returns:
        Component source text.
    """
    lines = [
        ELEMENT_TEMPLATES[node.kind].format(text=node.text)
        for node in sorted(tree.nodes.values(), key=_render_order)
    ]
    meta = tree.seo_meta
    return PAGE_TEMPLATE.format(
        component=to_pascal_case(tree.slug),
        title=escape_quotes(meta.title),
        description=escape_quotes(meta.description),
        keywords=escape_quotes(meta.keywords),
        canonical_url=escape_quotes(meta.canonical_url),
        content="\n".join(lines),
    )


def patch(original_text: Optional[str], edited_tree: ContentTree) -> str:
    """
    Apply an edited content tree to an existing component.

    Falls back to render() when no original is available. Empty SEO fields in
    the edited tree leave the original attribute untouched.

    Args:
        original_text: The existing component source, or None.
        edited_tree: The edited content tree.

    Returns:
        Patched component source text.
    """
    if original_text is None:
        return render(edited_tree)

    patched = original_text
    meta = edited_tree.seo_meta.to_dict()
    for field_name in META_ATTRIBUTES:
        value = meta[field_name]
        if value:
            patched = replace_attribute(patched, field_name, value)

    for kind in KIND_ORDER:
        replacements = {node.ordinal_index: node.text for node in edited_tree.nodes_of(kind)}
        if not replacements:
            continue
        patched, found = replace_elements(patched, kind, replacements)
        missing = sorted(set(replacements) - found)
        if missing:
            logger.debug(
                f"No {kind.value} elements at ordinals {missing} in '{edited_tree.slug}'; left unchanged"
            )

    return patched


def patch_file(original_path: Union[str, Path], edited_tree: ContentTree) -> str:
    """
    Patch the component stored at ``original_path``.

    A missing original file is not an error; the tree is rendered instead.
    """
    path = Path(original_path)
    try:
        original_text: Optional[str] = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.info(f"Original {path} not found, regenerating '{edited_tree.slug}'")
        original_text = None
    return patch(original_text, edited_tree)
