"""
Bulk find-and-replace across many pages.

Edits are computed on working copies of each page's content tree. A dry
run reports the changes and discards the copies; a commit saves every
changed page inside one repository transaction, so a failure on any page
leaves all of them as they were.

The find text is a literal substring, never a pattern.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Union

from .models import BulkEditResult, ContentTree, DocumentChange
from .storage import PageRepository

logger = logging.getLogger(__name__)


TARGET_FIELDS = ("content", "seo_meta")


class BulkEditError(Exception):
    """Raised when a bulk edit cannot be executed or committed."""
    pass


class BulkEditValidationError(BulkEditError):
    """Raised when bulk edit input is rejected before any work begins."""
    pass


@dataclass
class TextLeaf:
    """Editable string value in a content payload."""
    value: str


@dataclass
class Branch:
    """Nested mapping in a content payload."""
    children: dict[str, "ContentValue"]


ContentValue = Union[TextLeaf, Branch]


def replace_in_value(value: ContentValue, find: str, replace: str, path: str = "") -> list[str]:
    """
    Replace every occurrence of ``find`` in the string leaves of a payload.

    Args:
        value: Tagged payload, modified in place.
        find: Literal text to find.
        replace: Replacement text.
        path: Dotted path of ``value``.

    Returns:
        Dotted paths of the leaves that changed.
    """
    if isinstance(value, TextLeaf):
        if find in value.value:
            value.value = value.value.replace(find, replace)
            return [path]
        return []

    changed: list[str] = []
    for key, child in value.children.items():
        child_path = f"{path}.{key}" if path else key
        changed.extend(replace_in_value(child, find, replace, child_path))
    return changed


def content_payload(tree: ContentTree) -> Branch:
    """Tagged payload of a tree's node text, keyed like the stored content."""
    return Branch({
        key: Branch({"content": TextLeaf(node.text)})
        for key, node in tree.nodes.items()
    })


def _apply_content_payload(tree: ContentTree, payload: Branch) -> None:
    for key, entry in payload.children.items():
        leaf = entry.children["content"]
        tree.nodes[key].text = leaf.value


def _validate(find: str, target_fields: Iterable[str]) -> list[str]:
    if not find:
        raise BulkEditValidationError("Find text must not be empty")
    fields = list(dict.fromkeys(target_fields))
    if not fields:
        raise BulkEditValidationError("At least one target field is required")
    unknown = [f for f in fields if f not in TARGET_FIELDS]
    if unknown:
        raise BulkEditValidationError(
            f"Unknown target fields: {', '.join(unknown)}. "
            f"Expected any of: {', '.join(TARGET_FIELDS)}"
        )
    return fields


def apply_find_replace(
    tree: ContentTree,
    find: str,
    replace: str,
    target_fields: Iterable[str],
) -> tuple[ContentTree, list[str]]:
    """
    Apply a literal find/replace to a copy of a tree.

    Args:
        tree: Source tree. Not modified.
        find: Literal text to find.
        replace: Replacement text.
        target_fields: Any of "content" and "seo_meta".

    Returns:
        Tuple of (edited copy, changed field paths).
    """
    fields = _validate(find, target_fields)
    edited = tree.copy()
    changes: list[str] = []

    if "seo_meta" in fields:
        meta = edited.seo_meta
        for name, value in meta.to_dict().items():
            if find in value:
                setattr(meta, name, value.replace(find, replace))
                changes.append(f"seo_meta.{name}")

    if "content" in fields:
        payload = content_payload(edited)
        changed_paths = replace_in_value(payload, find, replace)
        if changed_paths:
            _apply_content_payload(edited, payload)
            changes.extend(f"content.{path}" for path in changed_paths)

    return edited, changes


def execute_on_trees(
    trees: Iterable[ContentTree],
    find: str,
    replace: str,
    target_fields: Iterable[str],
) -> tuple[BulkEditResult, list[ContentTree]]:
    """
    Compute a bulk edit over in-memory trees without persisting anything.

    Returns:
        Tuple of (dry-run report, edited copies of the affected trees).
    """
    fields = _validate(find, target_fields)
    result = BulkEditResult(dry_run=True)
    edited_trees: list[ContentTree] = []

    for tree in trees:
        edited, changes = apply_find_replace(tree, find, replace, fields)
        if changes:
            result.per_document_changes.append(DocumentChange(slug=tree.slug, changed_field_paths=changes))
            edited_trees.append(edited)

    return result, edited_trees


class BulkEditEngine:
    """Runs find/replace batches against stored pages."""

    def __init__(self, repository: PageRepository) -> None:
        self._repository = repository

    def execute(
        self,
        slugs: list[str],
        find: str,
        replace: str,
        target_fields: Iterable[str],
        dry_run: bool = True,
    ) -> BulkEditResult:
        """
        Find and replace across the selected pages.

        Args:
            slugs: Pages to edit. Unknown slugs are skipped.
            find: Literal text to find.
            replace: Replacement text.
            target_fields: Any of "content" and "seo_meta".
            dry_run: Report changes without saving them.

        Returns:
            BulkEditResult listing changed field paths per page.

        Raises:
            BulkEditValidationError: On empty find text, empty selection or
                unknown target fields.
            BulkEditError: If saving fails. No page keeps any edit.
        """
        if not slugs:
            raise BulkEditValidationError("No pages selected")
        fields = _validate(find, target_fields)

        records = []
        for slug in dict.fromkeys(slugs):
            record = self._repository.get(slug)
            if record is None:
                logger.warning(f"Bulk edit skipping unknown page '{slug}'")
                continue
            records.append(record)

        report, edited_trees = execute_on_trees(
            (record.tree for record in records), find, replace, fields
        )
        result = BulkEditResult(dry_run=dry_run, per_document_changes=report.per_document_changes)

        if dry_run:
            logger.info(f"Bulk edit dry run: {result.total_affected} pages would change")
            return result

        statuses = {record.slug: record.status for record in records}
        try:
            with self._repository.transaction():
                for tree in edited_trees:
                    self._repository.save(tree, status=statuses[tree.slug])
        except Exception as e:
            logger.error(f"Bulk edit rolled back: {e}")
            raise BulkEditError(f"Bulk edit failed, no pages were changed: {e}") from e

        logger.info(f"Bulk edit committed: {result.total_affected} pages changed")
        return result
