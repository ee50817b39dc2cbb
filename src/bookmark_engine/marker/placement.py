"""Choose a marker line that cannot break front matter or fenced code."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from bookmark_engine.config import DEFAULT_CONFIG, BookmarkConfig
from bookmark_engine.document import Document, clamp_line
from bookmark_engine.runtime import telemetry


@dataclass(frozen=True, slots=True)
class Placement:
    """Resolved insertion point.

    ``at_start`` is set when the only safe spot is a fence delimiter at the
    top of the document, where the marker has to be prepended.
    """

    line: int
    at_start: bool = False


class PlacementPolicy:
    def __init__(self, config: BookmarkConfig = DEFAULT_CONFIG) -> None:
        self.header_delimiter = config.header_delimiter
        self.fence_token = config.fence_token

    def is_header_delimiter(self, line: str) -> bool:
        return line.rstrip() == self.header_delimiter

    def is_fence_delimiter(self, line: str) -> bool:
        return line.startswith(self.fence_token)

    def header_end(self, lines: Sequence[str]) -> Optional[int]:
        """Index of the closing header delimiter, or ``None`` without a header."""

        if not lines or not self.is_header_delimiter(lines[0]):
            return None
        for index in range(1, len(lines)):
            if self.is_header_delimiter(lines[index]):
                return index
        return None

    def avoid_header(self, lines: Sequence[str], candidate: int) -> int:
        end = self.header_end(lines)
        if end is not None and candidate <= end:
            return min(end + 1, len(lines) - 1)
        return candidate

    def fence_opening(self, lines: Sequence[str], index: int) -> Optional[int]:
        """Opening delimiter of the fenced block that ``index`` sits in or bounds."""

        open_at: Optional[int] = None
        for position in range(index + 1):
            if not self.is_fence_delimiter(lines[position]):
                continue
            if open_at is None:
                open_at = position
            elif position == index:
                return open_at
            else:
                open_at = None
        return open_at

    def resolve(
        self, document: Document, candidate: int, *, avoid_fences: bool = True
    ) -> Placement:
        lines = document.snapshot()
        target = self.avoid_header(lines, clamp_line(candidate, len(lines)))

        if avoid_fences:
            end = self.header_end(lines)
            floor = 0 if end is None else end + 1
            opening = self.fence_opening(lines, target)
            while opening is not None:
                previous = opening - 1
                if previous < floor:
                    fallback = clamp_line(self.avoid_header(lines, 0), len(lines))
                    telemetry.record_event(
                        "placement.fence_fallback",
                        level="debug",
                        data={"candidate": candidate, "line": fallback},
                    )
                    return Placement(
                        line=fallback,
                        at_start=self.is_fence_delimiter(lines[fallback]),
                    )
                target = previous
                opening = self.fence_opening(lines, previous)

        resolved = clamp_line(target, len(lines))
        if resolved != candidate:
            telemetry.record_event(
                "placement.relocated",
                level="debug",
                data={"candidate": candidate, "line": resolved},
            )
        return Placement(line=resolved)

    def resolve_target(
        self, document: Document, candidate: int, *, avoid_fences: bool = True
    ) -> int:
        return self.resolve(document, candidate, avoid_fences=avoid_fences).line


__all__ = ["Placement", "PlacementPolicy"]
