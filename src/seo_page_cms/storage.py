"""SQLite-backed page repository with version snapshots and keyword configuration."""

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, Union

from .keyword_loader import deduplicate_keywords
from .models import ContentTree, Keyword, SeoMeta

logger = logging.getLogger(__name__)


PAGE_STATUSES = ("draft", "published", "archived")

SCHEMA = """
CREATE TABLE IF NOT EXISTS pages (
    id INTEGER PRIMARY KEY,
    page_slug TEXT NOT NULL UNIQUE,
    page_type TEXT NOT NULL DEFAULT 'general',
    content TEXT NOT NULL DEFAULT '{}',
    seo_meta TEXT NOT NULL DEFAULT '{}',
    status TEXT NOT NULL DEFAULT 'draft',
    version INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS page_versions (
    id INTEGER PRIMARY KEY,
    page_id INTEGER NOT NULL REFERENCES pages(id) ON DELETE CASCADE,
    version INTEGER NOT NULL,
    content TEXT NOT NULL,
    seo_meta TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_page_versions_page_id
ON page_versions(page_id, version);

CREATE TABLE IF NOT EXISTS seo_keywords (
    id INTEGER PRIMARY KEY,
    keyword TEXT NOT NULL UNIQUE,
    priority INTEGER NOT NULL DEFAULT 0
);
"""


class StorageError(Exception):
    """Raised when the page store cannot complete an operation."""
    pass


@dataclass
class PageRecord:
    """A stored page and its bookkeeping columns."""
    id: int
    tree: ContentTree
    status: str
    version: int
    created_at: str
    updated_at: str

    @property
    def slug(self) -> str:
        return self.tree.slug

    def to_dict(self) -> dict:
        data = self.tree.to_dict()
        data.update(
            id=self.id,
            status=self.status,
            version=self.version,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
        return data


@dataclass
class PageVersion:
    """An archived snapshot of a page."""
    version: int
    tree: ContentTree
    created_at: str


def _tree_from_row(row: sqlite3.Row, slug: str, page_type: str) -> ContentTree:
    return ContentTree.from_content_payload(
        slug=slug,
        document_type=page_type,
        seo_meta=SeoMeta.from_dict(json.loads(row["seo_meta"])),
        payload=json.loads(row["content"]),
    )


class PageRepository:
    """
    Page persistence for the CMS.

    Every ``save`` supersedes the stored page and archives its prior state in
    ``page_versions``. Writes made inside ``transaction()`` commit or roll
    back together.
    """

    def __init__(self, db_path: Union[str, Path]) -> None:
        self._db_path = str(db_path)
        # Autocommit mode; transactions are opened explicitly with BEGIN.
        # Connections may be handed between threads by the HTTP layer.
        self._connection = sqlite3.connect(
            self._db_path, isolation_level=None, check_same_thread=False
        )
        self._connection.row_factory = sqlite3.Row
        self._connection.execute("PRAGMA foreign_keys = ON")
        self._connection.executescript(SCHEMA)
        self._transaction_depth = 0

    @property
    def connection(self) -> sqlite3.Connection:
        return self._connection

    def close(self) -> None:
        self._connection.close()

    def __enter__(self) -> "PageRepository":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def in_transaction(self) -> bool:
        return self._transaction_depth > 0

    @contextmanager
    def transaction(self) -> Iterator["PageRepository"]:
        """
        Group writes into one all-or-nothing unit.

        Nested use joins the outermost transaction. Any exception rolls back
        every write made since the outermost BEGIN and is re-raised.
        """
        if self._transaction_depth:
            self._transaction_depth += 1
            try:
                yield self
            finally:
                self._transaction_depth -= 1
            return

        try:
            self._connection.execute("BEGIN")
        except sqlite3.Error as e:
            raise StorageError(f"Failed to begin transaction: {e}") from e

        self._transaction_depth = 1
        try:
            yield self
        except BaseException:
            if self._connection.in_transaction:
                self._connection.execute("ROLLBACK")
            logger.info("Transaction rolled back")
            raise
        else:
            try:
                self._connection.execute("COMMIT")
            except sqlite3.Error as e:
                if self._connection.in_transaction:
                    self._connection.execute("ROLLBACK")
                raise StorageError(f"Failed to commit transaction: {e}") from e
        finally:
            self._transaction_depth = 0

    def get(self, slug: str) -> Optional[PageRecord]:
        """Fetch a page record by slug, or None."""
        row = self._connection.execute(
            "SELECT * FROM pages WHERE page_slug = ?",
            (slug,),
        ).fetchone()
        if row is None:
            return None
        return self._record_from_row(row)

    def load(self, slug: str) -> Optional[ContentTree]:
        """Fetch a page's content tree by slug, or None."""
        record = self.get(slug)
        return record.tree if record else None

    def save(self, tree: ContentTree, status: str = "draft") -> int:
        """
        Create or supersede a page.

        The prior state of an existing page is archived before it is
        overwritten.

        Args:
            tree: Content tree to store.
            status: One of PAGE_STATUSES.

        Returns:
            The page's new version number.

        Raises:
            ValueError: If status is not a known page status.
            StorageError: If the write fails.
        """
        if status not in PAGE_STATUSES:
            raise ValueError(f"status must be one of {', '.join(PAGE_STATUSES)}, got '{status}'")

        content = json.dumps(tree.to_content_payload())
        seo_meta = json.dumps(tree.seo_meta.to_dict())

        try:
            with self.transaction():
                existing = self._connection.execute(
                    "SELECT id, version FROM pages WHERE page_slug = ?",
                    (tree.slug,),
                ).fetchone()

                if existing is None:
                    self._connection.execute(
                        """
                        INSERT INTO pages (page_slug, page_type, content, seo_meta, status, version)
                        VALUES (?, ?, ?, ?, ?, 1)
                        """,
                        (tree.slug, tree.document_type, content, seo_meta, status),
                    )
                    version = 1
                else:
                    page_id = int(existing["id"])
                    version = int(existing["version"]) + 1
                    self._connection.execute(
                        """
                        INSERT INTO page_versions (page_id, version, content, seo_meta)
                        SELECT id, version, content, seo_meta FROM pages WHERE id = ?
                        """,
                        (page_id,),
                    )
                    self._connection.execute(
                        """
                        UPDATE pages
                        SET page_type = ?, content = ?, seo_meta = ?, status = ?,
                            version = ?, updated_at = CURRENT_TIMESTAMP
                        WHERE id = ?
                        """,
                        (tree.document_type, content, seo_meta, status, version, page_id),
                    )
        except sqlite3.Error as e:
            raise StorageError(f"Failed to save page '{tree.slug}': {e}") from e

        logger.debug(f"Saved page '{tree.slug}' as version {version}")
        return version

    def list(
        self,
        page_type: Optional[str] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[PageRecord]:
        """
        List pages, most recently updated first.

        Args:
            page_type: Only pages of this document type.
            status: Only pages with this status.
            search: Case-insensitive substring of the slug or SEO title.
        """
        query = "SELECT * FROM pages WHERE 1=1"
        params: list = []

        if page_type:
            query += " AND page_type = ?"
            params.append(page_type)
        if status:
            query += " AND status = ?"
            params.append(status)
        if search:
            query += " AND (page_slug LIKE ? OR json_extract(seo_meta, '$.title') LIKE ?)"
            params.extend([f"%{search}%", f"%{search}%"])

        query += " ORDER BY updated_at DESC, page_slug ASC"

        rows = self._connection.execute(query, params).fetchall()
        return [self._record_from_row(row) for row in rows]

    def list_versions(self, slug: str) -> list[PageVersion]:
        """Archived snapshots of a page, newest first."""
        rows = self._connection.execute(
            """
            SELECT v.version, v.content, v.seo_meta, v.created_at, p.page_type
            FROM page_versions v
            JOIN pages p ON p.id = v.page_id
            WHERE p.page_slug = ?
            ORDER BY v.version DESC
            """,
            (slug,),
        ).fetchall()
        return [
            PageVersion(
                version=int(row["version"]),
                tree=_tree_from_row(row, slug, row["page_type"]),
                created_at=row["created_at"],
            )
            for row in rows
        ]

    def set_keywords(self, keywords: list[Keyword]) -> None:
        """Replace the configured target keywords.

        Case-insensitive repeats are dropped, keeping the first occurrence.
        """
        try:
            with self.transaction():
                self._connection.execute("DELETE FROM seo_keywords")
                self._connection.executemany(
                    "INSERT INTO seo_keywords (keyword, priority) VALUES (?, ?)",
                    [(kw.phrase, kw.priority) for kw in deduplicate_keywords(keywords) if kw.phrase],
                )
        except sqlite3.Error as e:
            raise StorageError(f"Failed to store keywords: {e}") from e

    def get_active_keywords(self) -> list[str]:
        """Configured keyword phrases, highest priority first."""
        rows = self._connection.execute(
            "SELECT keyword FROM seo_keywords ORDER BY priority DESC, id ASC"
        ).fetchall()
        return [row["keyword"] for row in rows]

    def _record_from_row(self, row: sqlite3.Row) -> PageRecord:
        return PageRecord(
            id=int(row["id"]),
            tree=_tree_from_row(row, row["page_slug"], row["page_type"]),
            status=row["status"],
            version=int(row["version"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
