"""
Bulk export of rendered pages.

Renders each content tree to a component file and packages the files in a
ZIP archive together with a plain-text manifest.
"""

import io
import logging
import zipfile
from datetime import datetime
from typing import Iterable

from .models import ContentTree
from .reconstructor import render

logger = logging.getLogger(__name__)


EXPORT_FOLDER = "pages"
FILE_EXTENSION = ".tsx"
MANIFEST_NAME = "_manifest.txt"


class ExportError(Exception):
    """Raised when there is nothing to export."""
    pass


def export_filename(tree: ContentTree) -> str:
    """Archive member name for a tree, e.g. ``pages/about-us.tsx``."""
    return f"{EXPORT_FOLDER}/{tree.slug}{FILE_EXTENSION}"


def _create_manifest(trees: list[ContentTree]) -> str:
    """Create a manifest text file summarizing the export."""
    lines = [
        "SEO Page CMS - Page Export",
        "=" * 50,
        f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        "",
        f"Total pages: {len(trees)}",
        "",
        "Files:",
        "-" * 50,
    ]
    for tree in trees:
        lines.append(f"{export_filename(tree)} ({tree.document_type}, {len(tree.nodes)} sections)")
    return "\n".join(lines)


def build_export_archive(trees: Iterable[ContentTree]) -> bytes:
    """
    Render trees and package them into a ZIP archive.

    Args:
        trees: Content trees to export.

    Returns:
        ZIP archive bytes.

    Raises:
        ExportError: If no trees are given.
    """
    tree_list = list(trees)
    if not tree_list:
        raise ExportError("No pages to export")

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
        for tree in tree_list:
            zf.writestr(export_filename(tree), render(tree))
        zf.writestr(MANIFEST_NAME, _create_manifest(tree_list))

    logger.info(f"Exported {len(tree_list)} pages")
    return buffer.getvalue()
