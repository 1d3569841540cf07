"""Tests for structural validation of search indexes."""

from pathlib import Path

import pytest

from documenter_search_index.models import Category, Entry, SearchIndex
from documenter_search_index.parser import SearchIndexParser
from documenter_search_index.validation import IndexValidator, SearchIndexValidationError

SAMPLE_INDEX = Path(__file__).parent / "data" / "search_index.js"


@pytest.fixture
def validator() -> IndexValidator:
    """Create an IndexValidator instance.

    Returns:
        IndexValidator instance.
    """
    return IndexValidator()


def test_generator_output_is_valid(validator: IndexValidator) -> None:
    """Test that real generator output passes every check."""
    index = SearchIndexParser().parse_file(SAMPLE_INDEX)

    assert index is not None
    assert validator.validate(index) == []
    validator.check(index)


def test_empty_index(validator: IndexValidator) -> None:
    """Test that an empty index is reported."""
    issues = validator.validate(SearchIndex())

    assert len(issues) == 1
    assert issues[0].position is None
    assert str(issues[0]) == "index: docs: index has no entries"


def test_repeated_page_locations_allowed(validator: IndexValidator) -> None:
    """Test that page entries may share the page location."""
    index = SearchIndex(
        docs=[
            Entry("guide/", "Guide", "Guide", "First block.", Category.PAGE),
            Entry("guide/", "Guide", "Guide", "Second block.", Category.PAGE),
        ]
    )

    assert validator.validate(index) == []


def test_duplicate_anchor(validator: IndexValidator) -> None:
    """Test that two sections at the same anchor are reported."""
    index = SearchIndex(
        docs=[
            Entry("guide/#Setup", "Guide", "Setup", "", Category.SECTION),
            Entry("guide/#Setup", "Guide", "Setup", "", Category.FUNCTION),
        ]
    )

    issues = validator.validate(index)

    assert len(issues) == 1
    assert issues[0].position == 1
    assert issues[0].field == "location"
    assert "duplicates entry 0" in issues[0].message


def test_empty_location_only_for_pages(validator: IndexValidator) -> None:
    """Test that sections and functions need a location."""
    index = SearchIndex(
        docs=[
            Entry("", "Home", "Home", "", Category.PAGE),
            Entry("", "Home", "Intro", "", Category.SECTION),
        ]
    )

    issues = validator.validate(index)

    assert [(issue.position, issue.field) for issue in issues] == [(1, "location")]


def test_unknown_category(validator: IndexValidator) -> None:
    """Test that entries built in code are checked for their category."""
    index = SearchIndex(docs=[Entry("api/#m", "API", "m", "", "macro")])  # type: ignore[arg-type]

    issues = validator.validate(index)

    assert [(issue.position, issue.field) for issue in issues] == [(0, "category")]


def test_plain_string_category_accepted(validator: IndexValidator) -> None:
    """Test that category strings matching the enum are accepted."""
    index = SearchIndex(docs=[Entry("api/#f", "API", "f", "", "function")])  # type: ignore[arg-type]

    assert validator.validate(index) == []


def test_inconsistent_page_title(validator: IndexValidator) -> None:
    """Test that entries of one page must share its title."""
    index = SearchIndex(
        docs=[
            Entry("figure1/", "Figure 1", "Figure 1", "", Category.PAGE),
            Entry("figure1/#Functions", "Figure One", "Functions", "", Category.SECTION),
        ]
    )

    issues = validator.validate(index)

    assert len(issues) == 1
    assert issues[0].field == "page"
    assert "'Figure One' differs from 'Figure 1'" in issues[0].message


def test_null_field(validator: IndexValidator) -> None:
    """Test that non-string fields are reported."""
    index = SearchIndex(docs=[Entry("guide/", "Guide", None, "", Category.PAGE)])  # type: ignore[arg-type]

    issues = validator.validate(index)

    assert [(issue.position, issue.field) for issue in issues] == [(0, "title")]


def test_check_raises_with_all_issues(validator: IndexValidator) -> None:
    """Test that check reports every issue at once."""
    index = SearchIndex(
        docs=[
            Entry("", "Home", "Intro", "", Category.SECTION),
            Entry("a/#x", "A", "x", "", Category.FUNCTION),
            Entry("a/#x", "A", "x", "", Category.FUNCTION),
        ]
    )

    with pytest.raises(SearchIndexValidationError) as exc_info:
        validator.check(index)

    assert len(exc_info.value.issues) == 2
    assert "entry 0: location: must not be empty" in str(exc_info.value)
