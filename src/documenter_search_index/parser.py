"""Reader and writer for ``search_index.js`` files."""

import json
import logging
import re
from pathlib import Path
from typing import Any

from documenter_search_index.models import Category, Entry, SearchIndex

logger = logging.getLogger(__name__)

ENTRY_FIELDS = ("location", "page", "title", "text", "category")


class SearchIndexFormatError(ValueError):
    """Raised when a search index source cannot be decoded."""


class SearchIndexParser:
    """Parses and serializes documentation search indexes."""

    DEFAULT_VARIABLE = "documenterSearchIndex"

    _IDENTIFIER = r"[A-Za-z_$][\w$]*"
    _ASSIGNMENT = re.compile(
        rf"^(?:var|let|const)\s+(?P<name>{_IDENTIFIER})\s*=\s*(?P<body>.*?)\s*;?$",
        re.DOTALL,
    )

    def parse(self, source: str) -> SearchIndex:
        """Parse a search index from JavaScript or plain JSON source.

        Args:
            source: File contents.

        Returns:
            SearchIndex with entries in source order.

        Raises:
            SearchIndexFormatError: If the source is not a valid search index.
        """
        body = self._extract_body(source)
        try:
            data = json.loads(body)
        except json.JSONDecodeError as exc:
            msg = f"Invalid JSON in search index: {exc}"
            raise SearchIndexFormatError(msg) from exc

        if not isinstance(data, dict) or "docs" not in data:
            msg = "Search index must be an object with a 'docs' field"
            raise SearchIndexFormatError(msg)
        docs = data["docs"]
        if not isinstance(docs, list):
            msg = f"'docs' must be a list, got {type(docs).__name__}"
            raise SearchIndexFormatError(msg)

        return SearchIndex(docs=[self._parse_entry(position, record) for position, record in enumerate(docs)])

    def parse_file(self, file_path: Path) -> SearchIndex | None:
        """Parse a search index file.

        Args:
            file_path: Path to ``search_index.js``.

        Returns:
            SearchIndex instance or None if reading or parsing fails.
        """
        try:
            return self.parse(file_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, SearchIndexFormatError) as exc:
            logger.warning("Could not parse %s: %s", file_path, exc)
            return None

    def serialize(self, index: SearchIndex, variable: str = DEFAULT_VARIABLE) -> str:
        """Serialize a search index in the layout the site generator emits.

        Args:
            index: Search index to write.
            variable: Name of the JavaScript variable holding the index.

        Returns:
            JavaScript source assigning the index to ``variable``.

        Raises:
            ValueError: If ``variable`` is not a valid JavaScript identifier.
        """
        if not re.fullmatch(self._IDENTIFIER, variable):
            msg = f"Invalid JavaScript variable name: {variable!r}"
            raise ValueError(msg)

        records = [
            {
                "location": entry.location,
                "page": entry.page,
                "title": entry.title,
                "text": entry.text,
                "category": Category(entry.category).value,
            }
            for entry in index
        ]
        body = json.dumps(records, ensure_ascii=False, separators=(",", ":"))
        return f'var {variable} = {{"docs":\n{body}\n}}'

    def write_file(self, index: SearchIndex, file_path: Path, variable: str = DEFAULT_VARIABLE) -> None:
        """Write a search index to disk.

        Args:
            index: Search index to write.
            file_path: Destination path; parent directories are created.
            variable: Name of the JavaScript variable holding the index.
        """
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(self.serialize(index, variable), encoding="utf-8")
        logger.debug("Wrote %d entries to %s", len(index), file_path)

    def _extract_body(self, source: str) -> str:
        """Strip the variable assignment around the JSON body.

        Args:
            source: Raw file contents.

        Returns:
            The JSON text.

        Raises:
            SearchIndexFormatError: If no assignment or JSON object is found.
        """
        stripped = source.lstrip("\ufeff").strip()
        if stripped.startswith("{"):
            return stripped
        match = self._ASSIGNMENT.match(stripped)
        if not match:
            msg = "Search index source has no variable assignment"
            raise SearchIndexFormatError(msg)
        return match.group("body")

    def _parse_entry(self, position: int, record: Any) -> Entry:
        """Convert one decoded record into an Entry.

        Args:
            position: Index of the record within ``docs``.
            record: Decoded JSON value.

        Returns:
            Entry instance.

        Raises:
            SearchIndexFormatError: If the record is malformed.
        """
        if not isinstance(record, dict):
            msg = f"Entry {position} must be an object, got {type(record).__name__}"
            raise SearchIndexFormatError(msg)

        values: dict[str, str] = {}
        for name in ENTRY_FIELDS:
            if name not in record:
                msg = f"Entry {position} is missing field '{name}'"
                raise SearchIndexFormatError(msg)
            value = record[name]
            if not isinstance(value, str):
                msg = f"Entry {position} field '{name}' must be a string, got {type(value).__name__}"
                raise SearchIndexFormatError(msg)
            values[name] = value

        try:
            category = Category(values["category"])
        except ValueError as exc:
            msg = f"Entry {position} has unknown category '{values['category']}'"
            raise SearchIndexFormatError(msg) from exc

        return Entry(
            location=values["location"],
            page=values["page"],
            title=values["title"],
            text=values["text"],
            category=category,
        )
