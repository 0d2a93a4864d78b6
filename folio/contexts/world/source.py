"""
Parsed source files.

A Source couples a file identity with its text and a byte-offset line index.
Sources are edited in place when their file changes, so downstream consumers
can reuse everything before and after the changed range.
"""

import re
from bisect import bisect_right
from typing import List, Optional, Tuple

from folio.contexts.world.identity import FileId

LINE_BREAK = re.compile(rb"\r\n|\r|\n")


def _scan_line_starts(data: bytes, offset: int, starts: List[int]) -> List[int]:
    for match in LINE_BREAK.finditer(data, offset):
        starts.append(match.end())
    return starts


class Source:
    """
    Source text of one file with a line index over UTF-8 byte offsets.

    Attributes:
        id: Identity of the file this text belongs to
        revision: Incremented on every edit
    """

    def __init__(self, id: FileId, text: str):
        self.id = id
        self.revision = 0
        self._text = text
        self._data = text.encode("utf-8")
        self._line_starts = _scan_line_starts(self._data, 0, [0])

    def __repr__(self) -> str:
        return f"Source({self.id}, {len(self._data)} bytes, revision {self.revision})"

    @property
    def text(self) -> str:
        return self._text

    @property
    def len_bytes(self) -> int:
        return len(self._data)

    @property
    def len_lines(self) -> int:
        return len(self._line_starts)

    def replace(self, new_text: str) -> Optional[Tuple[int, int]]:
        """
        Replace the whole text, editing only the range that actually differs.

        Args:
            new_text: Complete new text of the file

        Returns:
            Byte range (start, end) of the old text that was replaced, or None
            when the text is unchanged
        """
        old_text = self._text
        if old_text == new_text:
            return None

        limit = min(len(old_text), len(new_text))
        prefix = 0
        while prefix < limit and old_text[prefix] == new_text[prefix]:
            prefix += 1

        suffix = 0
        while (
            suffix < limit - prefix
            and old_text[len(old_text) - 1 - suffix] == new_text[len(new_text) - 1 - suffix]
        ):
            suffix += 1

        start = len(old_text[:prefix].encode("utf-8"))
        end = self.len_bytes - len(old_text[len(old_text) - suffix :].encode("utf-8"))
        replacement = new_text[prefix : len(new_text) - suffix]
        self.edit(start, end, replacement)
        return start, end

    def edit(self, start: int, end: int, replacement: str) -> None:
        """
        Replace the byte range [start, end) with replacement text.

        Raises:
            ValueError: If the range is out of bounds or splits a UTF-8 character
        """
        if not 0 <= start <= end <= self.len_bytes:
            raise ValueError(f"Edit range {start}..{end} out of bounds ({self.len_bytes} bytes)")

        try:
            head = self._data[:start].decode("utf-8")
            tail = self._data[end:].decode("utf-8")
        except UnicodeDecodeError as e:
            raise ValueError(f"Edit range {start}..{end} is not on a character boundary") from e

        self._text = head + replacement + tail
        self._data = self._text.encode("utf-8")
        self.revision += 1

        # Line starts strictly before the edit are unaffected
        keep = bisect_right(self._line_starts, start - 1) if start > 0 else 1
        starts = self._line_starts[:keep]
        self._line_starts = _scan_line_starts(self._data, starts[-1], starts)

    def byte_to_line(self, offset: int) -> Optional[int]:
        """0-based line containing the byte offset, or None past the end of the text."""
        if not 0 <= offset <= self.len_bytes:
            return None
        return bisect_right(self._line_starts, offset) - 1

    def byte_to_column(self, offset: int) -> Optional[int]:
        """
        0-based column (in characters) of the byte offset within its line.

        Returns None past the end of the text or when the offset falls inside
        a multi-byte character.
        """
        line = self.byte_to_line(offset)
        if line is None:
            return None
        try:
            head = self._data[self._line_starts[line] : offset].decode("utf-8")
        except UnicodeDecodeError:
            return None
        return len(head)

    def line_to_byte(self, line: int) -> Optional[int]:
        """Byte offset at which a 0-based line starts."""
        if 0 <= line < len(self._line_starts):
            return self._line_starts[line]
        return None
