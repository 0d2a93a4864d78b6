"""
Page selectors for partial export.

Grammar: comma-separated tokens, each a page number "N" or a range "N-M",
1-based and inclusive. Tokens keep their input order; overlapping or duplicate
ranges are neither merged, sorted nor removed.
"""

import re
from typing import List, Tuple

PageRange = Tuple[int, int]

PAGE_NUMBER = re.compile(r"[0-9]+")


class PageRangeError(ValueError):
    """
    A selector token failed to parse or fell outside the document.

    Attributes:
        token: The offending token (trimmed)
    """

    def __init__(self, message: str, token: str):
        self.token = token
        super().__init__(message)


def _page_number(text: str) -> int:
    text = text.strip()
    if not PAGE_NUMBER.fullmatch(text):
        raise ValueError(text)
    return int(text)


def parse_page_ranges(selector: str, total: int) -> List[PageRange]:
    """
    Parse a page selector against a document of total pages.

    Args:
        selector: Selector such as "1-3,5,7-9"
        total: Number of pages in the document

    Returns:
        Inclusive (start, end) pairs in input order; single pages become (n, n)

    Raises:
        PageRangeError: On the first token that is malformed or out of bounds

    Examples:
        parse_page_ranges("1-3,5,7-9", 10)  # [(1, 3), (5, 5), (7, 9)]
        parse_page_ranges("5-3", 10)        # PageRangeError: Page range out of bounds: 5-3
    """
    ranges: List[PageRange] = []
    for raw in selector.split(","):
        token = raw.strip()
        if "-" in token:
            start_text, _, end_text = token.partition("-")
            try:
                start, end = _page_number(start_text), _page_number(end_text)
            except ValueError:
                raise PageRangeError(f"Invalid page number in range: {token}", token) from None
            if start < 1 or end < 1 or start > total or end > total or start > end:
                raise PageRangeError(f"Page range out of bounds: {token}", token)
            ranges.append((start, end))
        else:
            try:
                page = _page_number(token)
            except ValueError:
                raise PageRangeError(f"Invalid page number: {token}", token) from None
            if page < 1 or page > total:
                raise PageRangeError(f"Page number out of bounds: {page}", token)
            ranges.append((page, page))
    return ranges
