"""SQLite FTS5 full-text index for Next.js documentation."""

import re
import sqlite3
import threading
from collections.abc import Generator
from contextlib import contextmanager
from typing import Protocol

from mcp_nextjs_documentation.models import Document, IndexHit

# Probe order; candidates are returned grouped by field in this order.
INDEXED_FIELDS = ("title", "content", "description")

_TERM = re.compile(r"\w+")


class SearchIndex(Protocol):
    """Operations the search engine needs from a multi-field index."""

    def add(self, document: Document) -> None:
        """Insert or replace a document in the index."""

    def search(self, variant: str, limit: int) -> list[IndexHit]:
        """Return ranked candidate ids with the field they matched on."""


class FullTextIndex:
    """In-memory FTS5 index over title, content and description."""

    def __init__(self) -> None:
        """Initialise an empty in-memory index."""
        self._conn = sqlite3.connect(":memory:", check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._initialise_schema()

    @staticmethod
    def _build_match_expression(variant: str) -> str | None:
        """Turn a free-text query variant into an FTS5 MATCH expression.

        Every word becomes a quoted prefix term, so FTS5 operators and
        punctuation in user input never reach the query parser. Terms are
        combined with the implicit AND.

        Args:
            variant: Raw query variant.

        Returns:
            MATCH expression, or None if the variant has no word characters.
        """
        terms = _TERM.findall(variant.lower())
        if not terms:
            return None
        return " ".join(f'"{term}"*' for term in terms)

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Context manager serialising access to the shared connection.

        Yields:
            SQLite connection with Row factory enabled.
        """
        with self._lock:
            yield self._conn

    def _initialise_schema(self) -> None:
        """Create the document table, FTS table and sync triggers."""
        with self._get_connection() as conn:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS documents (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    doc_id TEXT UNIQUE NOT NULL,
                    title TEXT NOT NULL,
                    description TEXT,
                    content TEXT NOT NULL
                );

                CREATE VIRTUAL TABLE IF NOT EXISTS documents_fts USING fts5(
                    title,
                    description,
                    content,
                    content='documents',
                    content_rowid='id',
                    tokenize='porter unicode61'
                );

                CREATE TRIGGER IF NOT EXISTS documents_ai AFTER INSERT ON documents BEGIN
                    INSERT INTO documents_fts(rowid, title, description, content)
                    VALUES (new.id, new.title, new.description, new.content);
                END;

                CREATE TRIGGER IF NOT EXISTS documents_au AFTER UPDATE ON documents BEGIN
                    INSERT INTO documents_fts(documents_fts, rowid, title, description, content)
                    VALUES ('delete', old.id, old.title, old.description, old.content);
                    INSERT INTO documents_fts(rowid, title, description, content)
                    VALUES (new.id, new.title, new.description, new.content);
                END;
            """)
            conn.commit()

    def add(self, document: Document) -> None:
        """Insert or update a document.

        Args:
            document: Document to index.
        """
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO documents (doc_id, title, description, content)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(doc_id) DO UPDATE SET
                    title = excluded.title,
                    description = excluded.description,
                    content = excluded.content
                """,
                (document.id, document.title, document.description, document.content),
            )
            conn.commit()

    def search(self, variant: str, limit: int) -> list[IndexHit]:
        """Probe each indexed field for a query variant.

        Args:
            variant: Query variant.
            limit: Maximum number of hits per field.

        Returns:
            Hits grouped by field (title, content, description), each group
            ordered by BM25 relevance. A document may appear in several groups.
        """
        expression = self._build_match_expression(variant)
        if expression is None:
            return []

        hits: list[IndexHit] = []
        with self._get_connection() as conn:
            for field in INDEXED_FIELDS:
                cursor = conn.execute(
                    """
                    SELECT d.doc_id, bm25(documents_fts, 5.0, 2.0, 1.0) AS score
                    FROM documents_fts
                    JOIN documents d ON documents_fts.rowid = d.id
                    WHERE documents_fts MATCH ?
                    ORDER BY score, d.id
                    LIMIT ?
                    """,
                    (f"{field} : ({expression})", limit),
                )
                hits.extend(IndexHit(doc_id=row["doc_id"], field=field) for row in cursor.fetchall())
        return hits
