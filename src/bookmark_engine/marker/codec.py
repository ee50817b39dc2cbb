"""Encode, find and erase the invisible bookmark token inside raw text."""

from __future__ import annotations

import re

from bookmark_engine.config import BOOKMARK_MARKER
from bookmark_engine.document import BookmarkState, Document, split_lines


class MarkerCodec:
    """Pure string operations over a single reserved marker token.

    Lines passed to the per-line helpers carry no newline characters. The
    whole-text helpers keep every line's own terminator intact.
    """

    def __init__(self, marker: str = BOOKMARK_MARKER) -> None:
        self.marker = marker
        token = re.escape(marker)
        # Order matters: end-of-line, then start-of-line, then mid-line.
        self._strip_patterns = (
            re.compile(rf" ?{token}[ \t]*(?=\r?$)", re.MULTILINE),
            re.compile(rf"^{token}[ \t]*", re.MULTILINE),
            re.compile(rf" ?{token}"),
        )

    def find(self, text: str) -> BookmarkState:
        for index, line in enumerate(split_lines(text)):
            if self.marker in line:
                return BookmarkState(present=True, line=index)
        return BookmarkState.absent()

    def count_occurrences(self, text: str) -> int:
        return text.count(self.marker)

    def strip(self, text: str) -> str:
        # Removing one token can splice a new one together; repeat until clean.
        while self.marker in text:
            for pattern in self._strip_patterns:
                text = pattern.sub("", text)
        return text

    def insert_at_end_of_line(self, line: str) -> str:
        if self.marker in line:
            return line
        return f"{line} {self.marker}"

    def insert_at_start_of_line(self, line: str) -> str:
        if self.marker in line:
            return line
        return f"{self.marker} {line}"

    def remove_from_line(self, line: str) -> str:
        start = line.find(self.marker)
        if start == -1:
            return line
        end = start + len(self.marker)
        if start > 0 and line[start - 1] == " ":
            start -= 1
        elif start == 0 and line[end:end + 1] == " ":
            end += 1
        return line[:start] + line[end:]

    def insert_in_text(self, text: str, line: int, *, at_start: bool = False) -> str:
        """Return ``text`` with the marker added to ``line``."""

        document = Document.from_text(text)
        current = document.get_line(line)
        if at_start:
            updated = self.insert_at_start_of_line(current)
        else:
            updated = self.insert_at_end_of_line(current)
        if updated == current:
            return text
        return document.replace_line(line, updated).to_text()

    def remove_first_in_text(self, text: str) -> str:
        """Return ``text`` without the first marker found, or unchanged."""

        state = self.find(text)
        if not state.present or state.line is None:
            return text
        document = Document.from_text(text)
        current = document.get_line(state.line)
        return document.replace_line(state.line, self.remove_from_line(current)).to_text()


__all__ = ["MarkerCodec"]
