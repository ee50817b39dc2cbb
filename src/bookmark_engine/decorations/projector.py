"""Line highlights and token-hiding ranges derived from marker positions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from bookmark_engine.config import BOOKMARK_MARKER
from bookmark_engine.document import split_line_endings
from bookmark_engine.runtime import telemetry

LINE_CLASS = "bookmark-line"
HIDDEN_CLASS = "bookmark-marker-hidden"


@dataclass(frozen=True, slots=True)
class LineDecoration:
    line: int
    css_class: str = LINE_CLASS


@dataclass(frozen=True, slots=True)
class MarkDecoration:
    """Character range covering one marker token.

    ``start``/``end`` are columns within ``line``; ``offset_start`` and
    ``offset_end`` are absolute offsets into the raw text.
    """

    line: int
    start: int
    end: int
    offset_start: int
    offset_end: int
    css_class: str = HIDDEN_CLASS


@dataclass(frozen=True, slots=True)
class DecorationSet:
    lines: Tuple[LineDecoration, ...] = ()
    marks: Tuple[MarkDecoration, ...] = ()

    @property
    def marked_lines(self) -> Tuple[int, ...]:
        return tuple(decoration.line for decoration in self.lines)

    def __bool__(self) -> bool:
        return bool(self.lines)


class DecorationProjector:
    def __init__(self, marker: str = BOOKMARK_MARKER) -> None:
        self.marker = marker

    def project(self, text: str) -> DecorationSet:
        lines: list[LineDecoration] = []
        marks: list[MarkDecoration] = []
        line_offset = 0
        for index, (content, ending) in enumerate(split_line_endings(text)):
            column = content.find(self.marker)
            if column != -1:
                lines.append(LineDecoration(line=index))
            while column != -1:
                end = column + len(self.marker)
                marks.append(
                    MarkDecoration(
                        line=index,
                        start=column,
                        end=end,
                        offset_start=line_offset + column,
                        offset_end=line_offset + end,
                    )
                )
                column = content.find(self.marker, end)
            line_offset += len(content) + len(ending)
        return DecorationSet(lines=tuple(lines), marks=tuple(marks))


class BookmarkDecorationExtension:
    """Pluggable decoration source a host rendering pipeline can poll.

    ``update`` rebuilds the whole set when the text differs from the last
    projection; there is no incremental mapping.
    """

    def __init__(self, projector: Optional[DecorationProjector] = None) -> None:
        self.projector = projector or DecorationProjector()
        self._text: Optional[str] = None
        self._decorations = DecorationSet()

    @property
    def decorations(self) -> DecorationSet:
        return self._decorations

    def update(self, text: str) -> bool:
        """Recompute for ``text``; return whether anything was rebuilt."""

        if text == self._text:
            return False
        self._text = text
        self._decorations = self.projector.project(text)
        telemetry.record_event(
            "decorations.rebuilt",
            level="debug",
            data={"lines": len(self._decorations.lines)},
        )
        return True

    def reset(self) -> None:
        self._text = None
        self._decorations = DecorationSet()


__all__ = [
    "HIDDEN_CLASS",
    "LINE_CLASS",
    "BookmarkDecorationExtension",
    "DecorationProjector",
    "DecorationSet",
    "LineDecoration",
    "MarkDecoration",
]
