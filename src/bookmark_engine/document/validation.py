"""Line-index helpers shared across the engine."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .sync import LineRangeError

if TYPE_CHECKING:
    from .document import Document


def ensure_line(document: "Document", index: int) -> int:
    if index < 0 or index >= document.line_count:
        raise LineRangeError("Line out of range", line=index)
    return index


def clamp_line(index: int, line_count: int) -> int:
    if line_count <= 0:
        return 0
    return min(max(0, index), line_count - 1)
