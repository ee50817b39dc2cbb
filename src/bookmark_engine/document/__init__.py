"""Document snapshots, host boundary protocols and errors."""

from .document import (
    CRLF,
    LF,
    Document,
    detect_newline,
    split_line_endings,
    split_lines,
)
from .state import BookmarkState, IndicatorState, RenderMode, ScrollInfo, ViewportSample
from .sync import (
    BookmarkEngineError,
    BookmarkHost,
    DocumentView,
    HostError,
    LineRangeError,
    TextTransform,
)
from .validation import clamp_line, ensure_line

__all__ = [
    "CRLF",
    "LF",
    "Document",
    "detect_newline",
    "split_line_endings",
    "split_lines",
    "BookmarkState",
    "IndicatorState",
    "RenderMode",
    "ScrollInfo",
    "ViewportSample",
    "BookmarkEngineError",
    "BookmarkHost",
    "DocumentView",
    "HostError",
    "LineRangeError",
    "TextTransform",
    "clamp_line",
    "ensure_line",
]
