"""Data models for documentation search indexes."""

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import StrEnum


class Category(StrEnum):
    """Kind of documentation unit an entry describes."""

    PAGE = "page"
    SECTION = "section"
    FUNCTION = "function"


@dataclass(frozen=True)
class Entry:
    """One record of a search index."""

    location: str
    page: str
    title: str
    text: str
    category: Category

    @property
    def page_path(self) -> str:
        """Location of the page this entry belongs to, without the anchor."""
        return self.location.partition("#")[0]

    @property
    def anchor(self) -> str:
        """Fragment identifier within the page, or an empty string."""
        return self.location.partition("#")[2]

    def url(self, base_url: str) -> str:
        """Build a navigable link to this entry.

        Args:
            base_url: Root URL of the deployed documentation version.

        Returns:
            Full URL pointing at the entry location.
        """
        return f"{base_url.rstrip('/')}/{self.location}"


@dataclass
class SearchIndex:
    """Ordered sequence of entries as shipped in ``search_index.js``."""

    docs: list[Entry] = field(default_factory=list)

    def __iter__(self) -> Iterator[Entry]:
        return iter(self.docs)

    def __len__(self) -> int:
        return len(self.docs)

    def pages(self) -> dict[str, list[Entry]]:
        """Group entries by page path, keeping first-seen order.

        Returns:
            Mapping of page path to the entries on that page.
        """
        grouped: dict[str, list[Entry]] = {}
        for entry in self.docs:
            grouped.setdefault(entry.page_path, []).append(entry)
        return grouped

    def find(self, term: str) -> list[Entry]:
        """Linear case-insensitive substring scan over titles and text.

        Args:
            term: Text to look for.

        Returns:
            Matching entries in index order.
        """
        needle = term.lower()
        if not needle:
            return []
        return [entry for entry in self.docs if needle in entry.title.lower() or needle in entry.text.lower()]


@dataclass
class SearchResult:
    """Represents a search result."""

    version: str
    location: str
    page: str
    title: str
    category: Category
    snippet: str
    score: float
