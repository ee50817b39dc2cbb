"""Line-oriented document model used for whole-content rewrites."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Sequence, Tuple

from .validation import ensure_line

CRLF = "\r\n"
LF = "\n"

_LINE_BREAK = re.compile(r"(\r\n|\n)")


def detect_newline(text: str) -> str:
    """Return ``"\\r\\n"`` when the text uses it anywhere, otherwise ``"\\n"``."""

    return CRLF if CRLF in text else LF


def split_lines(text: str) -> List[str]:
    """Split on either newline convention; a trailing newline keeps an empty line."""

    return text.replace(CRLF, LF).split(LF)


def split_line_endings(text: str) -> List[Tuple[str, str]]:
    """Pair every line with the terminator that followed it (``""`` for the last)."""

    parts = _LINE_BREAK.split(text)
    endings = parts[1::2] + [""]
    return list(zip(parts[0::2], endings))


@dataclass(slots=True)
class Document:
    """Immutable-ish list-of-lines snapshot of host text.

    Each line keeps its own terminator, so a document with mixed endings
    is written back exactly as it was read. ``newline`` is the convention
    used for lines that have none recorded. Mutating helpers return a new
    document with a bumped ``version``.
    """

    _lines: List[str] = field(default_factory=lambda: [""])
    _endings: List[str] = field(default_factory=lambda: [""])
    newline: str = LF
    version: int = 0

    @classmethod
    def from_text(cls, text: str) -> "Document":
        pairs = split_line_endings(text)
        return cls(
            _lines=[line for line, _ending in pairs],
            _endings=[ending for _line, ending in pairs],
            newline=detect_newline(text),
        )

    @classmethod
    def from_lines(cls, lines: Iterable[str], *, newline: str = LF) -> "Document":
        values = list(lines) or [""]
        endings = [newline] * (len(values) - 1) + [""]
        return cls(_lines=values, _endings=endings, newline=newline)

    def snapshot(self) -> Sequence[str]:
        return tuple(self._lines)

    def line_endings(self) -> Sequence[str]:
        return tuple(self._endings)

    def to_text(self) -> str:
        return "".join(line + ending for line, ending in zip(self._lines, self._endings))

    @property
    def line_count(self) -> int:
        return len(self._lines)

    @property
    def last_line(self) -> int:
        return len(self._lines) - 1

    def get_line(self, index: int) -> str:
        return self._lines[ensure_line(self, index)]

    def replace_line(self, index: int, text: str) -> "Document":
        lines = list(self._lines)
        lines[ensure_line(self, index)] = text
        return Document(
            _lines=lines,
            _endings=list(self._endings),
            newline=self.newline,
            version=self.version + 1,
        )


__all__ = [
    "CRLF",
    "LF",
    "Document",
    "detect_newline",
    "split_line_endings",
    "split_lines",
]
