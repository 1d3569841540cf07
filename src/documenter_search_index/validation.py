"""Structural checks for search indexes."""

from dataclasses import dataclass

from documenter_search_index.models import Category, SearchIndex


class SearchIndexValidationError(ValueError):
    """Raised when a search index fails structural validation."""

    def __init__(self, issues: list["ValidationIssue"]) -> None:
        self.issues = issues
        super().__init__("; ".join(str(issue) for issue in issues))


@dataclass(frozen=True)
class ValidationIssue:
    """A single structural problem found in an index."""

    position: int | None
    field: str
    message: str

    def __str__(self) -> str:
        where = "index" if self.position is None else f"entry {self.position}"
        return f"{where}: {self.field}: {self.message}"


class IndexValidator:
    """Validates the structure of a search index."""

    def validate(self, index: SearchIndex) -> list[ValidationIssue]:
        """Collect every structural issue in the index.

        Args:
            index: Search index to check.

        Returns:
            List of issues, empty when the index is valid.
        """
        if len(index) == 0:
            return [ValidationIssue(None, "docs", "index has no entries")]

        issues: list[ValidationIssue] = []
        anchors: dict[str, int] = {}
        page_titles: dict[str, str] = {}

        for position, entry in enumerate(index):
            for name in ("location", "page", "title", "text"):
                if not isinstance(getattr(entry, name), str):
                    issues.append(ValidationIssue(position, name, "must be a string"))
            if entry.category not in tuple(Category):
                issues.append(ValidationIssue(position, "category", f"unknown category '{entry.category}'"))
                continue
            if not isinstance(entry.location, str):
                continue

            # Only the site root page may sit at the empty location
            if entry.category != Category.PAGE:
                if not entry.location:
                    issues.append(ValidationIssue(position, "location", "must not be empty"))
                elif entry.location in anchors:
                    first = anchors[entry.location]
                    issues.append(
                        ValidationIssue(position, "location", f"duplicates entry {first} ('{entry.location}')")
                    )
                else:
                    anchors[entry.location] = position

            expected = page_titles.setdefault(entry.page_path, entry.page)
            if entry.page != expected:
                issues.append(
                    ValidationIssue(
                        position, "page", f"'{entry.page}' differs from '{expected}' for page '{entry.page_path}'"
                    )
                )

        return issues

    def check(self, index: SearchIndex) -> None:
        """Validate the index and raise on any issue.

        Args:
            index: Search index to check.

        Raises:
            SearchIndexValidationError: If the index has structural issues.
        """
        issues = self.validate(index)
        if issues:
            raise SearchIndexValidationError(issues)
