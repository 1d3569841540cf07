"""SQLite FTS5 storage for documentation search index entries."""

import logging
import re
import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from documenter_search_index.models import Category, Entry, SearchIndex, SearchResult

logger = logging.getLogger(__name__)


class SearchIndexDatabase:
    """Stores search index entries per docs version for keyword lookup."""

    def __init__(self, db_path: Path) -> None:
        """Initialise database with the given path.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = db_path
        self._initialise_schema()

    @staticmethod
    def _sanitise_query(query: str) -> str:
        """Sanitise user query for FTS5 MATCH clause.

        FTS5 rejects punctuation in barewords and gives meaning to the
        AND/OR/NOT/NEAR keywords. Such queries are quoted as a literal phrase.

        Args:
            query: Raw user query string.

        Returns:
            Sanitised query string safe for FTS5 MATCH.
        """
        fts5_special_chars = r"[^\w\s]"
        fts5_operators = re.compile(r"\b(AND|OR|NOT|NEAR)\b", re.IGNORECASE)

        if re.search(fts5_special_chars, query) or fts5_operators.search(query):
            query = query.replace('"', '""')
            return f'"{query}"'

        return query

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Context manager for database connections.

        Yields:
            SQLite connection with Row factory enabled.
        """
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def _initialise_schema(self) -> None:
        """Create database schema if it doesn't exist."""
        with self._get_connection() as conn:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS entries (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    version TEXT NOT NULL,
                    position INTEGER NOT NULL,
                    location TEXT NOT NULL,
                    page_path TEXT NOT NULL,
                    page TEXT NOT NULL,
                    title TEXT NOT NULL,
                    text TEXT NOT NULL,
                    category TEXT NOT NULL,
                    UNIQUE (version, position)
                );

                CREATE VIRTUAL TABLE IF NOT EXISTS entries_fts USING fts5(
                    title,
                    page,
                    text,
                    content='entries',
                    content_rowid='id',
                    tokenize='porter unicode61'
                );

                CREATE TRIGGER IF NOT EXISTS entries_ai AFTER INSERT ON entries BEGIN
                    INSERT INTO entries_fts(rowid, title, page, text)
                    VALUES (new.id, new.title, new.page, new.text);
                END;

                CREATE TRIGGER IF NOT EXISTS entries_ad AFTER DELETE ON entries BEGIN
                    INSERT INTO entries_fts(entries_fts, rowid, title, page, text)
                    VALUES ('delete', old.id, old.title, old.page, old.text);
                END;

                CREATE INDEX IF NOT EXISTS idx_entries_page ON entries(version, page_path);
            """)
            conn.commit()

    def replace_index(self, version: str, index: SearchIndex) -> int:
        """Replace every stored entry of a version with the given index.

        Args:
            version: Docs version the index was built for.
            index: Search index to store.

        Returns:
            Number of entries stored.
        """
        rows = [
            (
                version,
                position,
                entry.location,
                entry.page_path,
                entry.page,
                entry.title,
                entry.text,
                Category(entry.category).value,
            )
            for position, entry in enumerate(index)
        ]
        with self._get_connection() as conn:
            conn.execute("DELETE FROM entries WHERE version = ?", (version,))
            conn.executemany(
                """
                INSERT INTO entries (version, position, location, page_path, page, title, text, category)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                rows,
            )
            conn.commit()
        logger.debug("Stored %d entries for version %s", len(rows), version)
        return len(rows)

    def search(
        self,
        query: str,
        version: str | None = None,
        category: Category | None = None,
        limit: int = 10,
    ) -> list[SearchResult]:
        """Search entries using FTS5.

        Args:
            query: Search query string.
            version: Optional docs version filter.
            category: Optional category filter.
            limit: Maximum number of results.

        Returns:
            List of SearchResult instances ordered by relevance.
        """
        sanitised_query = self._sanitise_query(query)
        if not re.search(r"\w", query):
            return []

        with self._get_connection() as conn:
            sql = """
                SELECT
                    e.version,
                    e.location,
                    e.page,
                    e.title,
                    e.category,
                    snippet(entries_fts, 2, '<mark>', '</mark>', '...', 32) as snippet,
                    bm25(entries_fts, 5.0, 2.0, 1.0) as score
                FROM entries_fts
                JOIN entries e ON entries_fts.rowid = e.id
                WHERE entries_fts MATCH ?
            """
            params: list[str | int] = [sanitised_query]

            if version:
                sql += " AND e.version = ?"
                params.append(version)

            if category:
                sql += " AND e.category = ?"
                params.append(Category(category).value)

            sql += " ORDER BY score, e.version, e.position LIMIT ?"
            params.append(limit)

            cursor = conn.execute(sql, params)
            results = []
            for row in cursor.fetchall():
                results.append(
                    SearchResult(
                        version=row["version"],
                        location=row["location"],
                        page=row["page"],
                        title=row["title"],
                        category=Category(row["category"]),
                        snippet=row["snippet"],
                        score=abs(row["score"]),  # BM25 returns negative scores
                    )
                )
            return results

    def get_index(self, version: str) -> SearchIndex | None:
        """Rebuild the stored index of a version in its original order.

        Args:
            version: Docs version to load.

        Returns:
            SearchIndex instance or None if the version is not stored.
        """
        with self._get_connection() as conn:
            cursor = conn.execute(
                "SELECT * FROM entries WHERE version = ? ORDER BY position",
                (version,),
            )
            entries = [self._row_to_entry(row) for row in cursor.fetchall()]
        if not entries:
            return None
        return SearchIndex(docs=entries)

    def get_page(self, version: str, page_path: str) -> list[Entry]:
        """Return the entries of one page in index order.

        Args:
            version: Docs version.
            page_path: Page location without anchor, e.g. ``"figure1/"``.

        Returns:
            Entries of the page, empty if unknown.
        """
        with self._get_connection() as conn:
            cursor = conn.execute(
                "SELECT * FROM entries WHERE version = ? AND page_path = ? ORDER BY position",
                (version, page_path),
            )
            return [self._row_to_entry(row) for row in cursor.fetchall()]

    def list_versions(self) -> list[str]:
        """Return the stored docs versions, sorted by name."""
        with self._get_connection() as conn:
            cursor = conn.execute("SELECT DISTINCT version FROM entries ORDER BY version")
            return [row["version"] for row in cursor.fetchall()]

    def delete_version(self, version: str) -> None:
        """Remove every entry of a version."""
        with self._get_connection() as conn:
            conn.execute("DELETE FROM entries WHERE version = ?", (version,))
            conn.commit()

    def clear(self) -> None:
        """Clear all entries from the database."""
        with self._get_connection() as conn:
            conn.execute("DELETE FROM entries")
            conn.commit()

    def get_entry_count(self, version: str | None = None) -> int:
        """Return the number of stored entries.

        Args:
            version: Optional docs version to count.

        Returns:
            Count of entries in the database.
        """
        with self._get_connection() as conn:
            if version is None:
                cursor = conn.execute("SELECT COUNT(*) FROM entries")
            else:
                cursor = conn.execute("SELECT COUNT(*) FROM entries WHERE version = ?", (version,))
            result = cursor.fetchone()
            return int(result[0]) if result else 0

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> Entry:
        return Entry(
            location=row["location"],
            page=row["page"],
            title=row["title"],
            text=row["text"],
            category=Category(row["category"]),
        )
