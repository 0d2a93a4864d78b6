"""Unit tests for page selector parsing."""

import pytest

from folio.contexts.session import PageRangeError, parse_page_ranges


@pytest.mark.unit
def test_mixed_selector():
    """Test pages and ranges in input order."""
    assert parse_page_ranges("1-3,5,7-9", 10) == [(1, 3), (5, 5), (7, 9)]


@pytest.mark.unit
def test_whitespace_trimmed():
    """Test that whitespace around tokens and bounds is ignored."""
    assert parse_page_ranges(" 2 , 4 - 6 ", 6) == [(2, 2), (4, 6)]


@pytest.mark.unit
def test_duplicates_and_overlaps_kept():
    """Test that ranges are neither merged, sorted nor de-duplicated."""
    assert parse_page_ranges("5,1-3,2-4,5", 5) == [(5, 5), (1, 3), (2, 4), (5, 5)]


@pytest.mark.unit
def test_full_document_range():
    """Test that the last page is inclusive."""
    assert parse_page_ranges("1-10", 10) == [(1, 10)]


@pytest.mark.unit
@pytest.mark.parametrize(
    "selector,message",
    [
        ("0-2", "Page range out of bounds: 0-2"),
        ("5-3", "Page range out of bounds: 5-3"),
        ("8-11", "Page range out of bounds: 8-11"),
        ("11", "Page number out of bounds: 11"),
        ("0", "Page number out of bounds: 0"),
        ("a-3", "Invalid page number in range: a-3"),
        ("1-", "Invalid page number in range: 1-"),
        ("1-2-3", "Invalid page number in range: 1-2-3"),
        ("x", "Invalid page number: x"),
        ("+3", "Invalid page number: +3"),
        ("", "Invalid page number: "),
        ("1,,2", "Invalid page number: "),
    ],
)
def test_invalid_selectors(selector, message):
    """Test that each violation names the offending token."""
    with pytest.raises(PageRangeError) as exc_info:
        parse_page_ranges(selector, 10)
    assert str(exc_info.value) == message


@pytest.mark.unit
def test_fails_fast_on_first_bad_token():
    """Test that parsing stops at the first invalid token."""
    with pytest.raises(PageRangeError) as exc_info:
        parse_page_ranges("1,99,x", 10)
    assert exc_info.value.token == "99"


@pytest.mark.unit
def test_non_ascii_digits_rejected():
    """Test that only ASCII digits count as page numbers."""
    with pytest.raises(PageRangeError, match="Invalid page number"):
        parse_page_ranges("٣", 10)
