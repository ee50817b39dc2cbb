"""Boundary types describing what the engine needs from a host editor."""

from __future__ import annotations

from typing import Callable, Optional, Protocol

from .state import RenderMode, ScrollInfo

TextTransform = Callable[[str], str]


class BookmarkEngineError(RuntimeError):
    """Base class for errors raised by the bookmark engine."""


class HostError(BookmarkEngineError):
    """Raised by host adapters when a capability fails (mode switch, file IO)."""

    def __init__(self, message: str, *, capability: str | None = None) -> None:
        super().__init__(message)
        self.capability = capability


class LineRangeError(BookmarkEngineError, IndexError):
    """Raised when a line index falls outside the document."""

    def __init__(self, message: str, *, line: int | None = None) -> None:
        super().__init__(message)
        self.line = line


class DocumentView(Protocol):
    """One open document as the host presents it, in either render mode.

    ``path`` is the document identity; it is the only thing deferred work
    keeps hold of across a suspension.
    """

    @property
    def path(self) -> str: ...

    def get_text(self) -> str: ...

    def set_text(self, text: str) -> None: ...

    def get_line(self, index: int) -> str: ...

    def set_line(self, index: int, text: str) -> None: ...

    def line_count(self) -> int: ...

    def get_scroll(self) -> ScrollInfo: ...

    def set_scroll(self, offset: float) -> None: ...

    def get_render_mode(self) -> RenderMode: ...

    def set_render_mode(self, mode: RenderMode) -> None:
        """Switch presentation; may raise ``HostError``."""
        ...

    def apply_rendered_scroll(self, percentage: float) -> None: ...

    def set_cursor(self, line: int, column: int = 0) -> None: ...

    def scroll_into_view(self, line: int) -> None: ...


class BookmarkHost(Protocol):
    """Workspace-level capabilities: active view, file rewrites, notices."""

    def active_view(self) -> Optional[DocumentView]: ...

    def transform_file(self, path: str, fn: TextTransform) -> None:
        """Atomically replace a file's content with ``fn(content)``."""
        ...

    def notify(self, message: str, *, timeout_ms: int = 5000) -> None: ...


__all__ = [
    "BookmarkEngineError",
    "BookmarkHost",
    "DocumentView",
    "HostError",
    "LineRangeError",
    "TextTransform",
]
