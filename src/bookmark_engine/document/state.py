"""Snapshot value types: bookmark state, scroll samples and render mode."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class RenderMode(str, Enum):
    """How the host is currently presenting the document."""

    EDITABLE = "editable"
    RENDERED = "rendered"


class IndicatorState(str, Enum):
    """Toolbar indicator shown by UI glue."""

    MARKED = "marked"
    UNMARKED = "unmarked"

    @property
    def icon(self) -> str:
        return "bookmark-check" if self is IndicatorState.MARKED else "bookmark"

    @property
    def tooltip(self) -> str:
        return "Jump to bookmark" if self is IndicatorState.MARKED else "Set bookmark"


@dataclass(frozen=True, slots=True)
class BookmarkState:
    """Derived on every read; never stored between operations."""

    present: bool
    line: Optional[int] = None

    @classmethod
    def absent(cls) -> "BookmarkState":
        return cls(present=False, line=None)


@dataclass(frozen=True, slots=True)
class ScrollInfo:
    """Scroll position as reported by a host view."""

    offset: float
    viewport_extent: Optional[float] = None
    content_extent: Optional[float] = None


@dataclass(frozen=True, slots=True)
class ViewportSample:
    scroll_offset: float
    viewport_extent: Optional[float]
    content_extent: Optional[float]
    total_lines: int


__all__ = [
    "BookmarkState",
    "IndicatorState",
    "RenderMode",
    "ScrollInfo",
    "ViewportSample",
]
