"""In-memory host: a workspace of text files with one view per file.

Used by the test-suite and handy for embedding the engine somewhere without
a real editor. Failure switches let callers exercise the fallback paths.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from bookmark_engine.document import (
    Document,
    HostError,
    RenderMode,
    ScrollInfo,
    TextTransform,
)


@dataclass
class FailureSwitches:
    transform: bool = False
    mode_switch: bool = False
    scroll: bool = False
    rendered_scroll: bool = False
    cursor: bool = False
    edit: bool = False


class MemoryDocumentView:
    """Editable/rendered presentation of one workspace file.

    The buffer and the file share storage, so edits are visible to
    ``transform_file`` immediately and vice versa.
    """

    def __init__(
        self,
        workspace: "MemoryHost",
        path: str,
        *,
        mode: RenderMode = RenderMode.EDITABLE,
        scroll_offset: float = 0.0,
        viewport_extent: Optional[float] = 600.0,
        content_extent: Optional[float] = None,
    ) -> None:
        self._workspace = workspace
        self._path = path
        self.mode = RenderMode(mode)
        self.scroll_offset = scroll_offset
        self.viewport_extent = viewport_extent
        self.content_extent = content_extent
        self.cursor: Tuple[int, int] = (0, 0)
        self.rendered_scroll: Optional[float] = None
        self.revealed: List[int] = []
        self.mode_history: List[RenderMode] = []
        self.edits: List[Tuple[str, Optional[int]]] = []

    @property
    def path(self) -> str:
        return self._path

    @property
    def failures(self) -> FailureSwitches:
        return self._workspace.failures

    def _document(self) -> Document:
        return Document.from_text(self._workspace.files[self._path])

    def get_text(self) -> str:
        return self._workspace.files[self._path]

    def set_text(self, text: str) -> None:
        if self.failures.edit:
            raise HostError("buffer is read-only", capability="set_text")
        self.edits.append(("set_text", None))
        self._workspace.files[self._path] = text

    def get_line(self, index: int) -> str:
        return self._document().get_line(index)

    def set_line(self, index: int, text: str) -> None:
        if self.failures.edit:
            raise HostError("buffer is read-only", capability="set_line")
        self.edits.append(("set_line", index))
        updated = self._document().replace_line(index, text)
        self._workspace.files[self._path] = updated.to_text()

    def line_count(self) -> int:
        return self._document().line_count

    def get_scroll(self) -> ScrollInfo:
        if self.failures.scroll:
            raise HostError("scroll container unavailable", capability="get_scroll")
        return ScrollInfo(
            offset=self.scroll_offset,
            viewport_extent=self.viewport_extent,
            content_extent=self.content_extent,
        )

    def set_scroll(self, offset: float) -> None:
        if self.failures.scroll:
            raise HostError("scroll container unavailable", capability="set_scroll")
        self.scroll_offset = offset

    def get_render_mode(self) -> RenderMode:
        return self.mode

    def set_render_mode(self, mode: RenderMode) -> None:
        if self.failures.mode_switch:
            raise HostError("mode switch rejected", capability="set_render_mode")
        self.mode = RenderMode(mode)
        self.mode_history.append(self.mode)

    def apply_rendered_scroll(self, percentage: float) -> None:
        if self.failures.rendered_scroll:
            raise HostError("preview not ready", capability="apply_rendered_scroll")
        self.rendered_scroll = percentage

    def set_cursor(self, line: int, column: int = 0) -> None:
        if self.failures.cursor:
            raise HostError("cursor unavailable", capability="set_cursor")
        self.cursor = (line, column)

    def scroll_into_view(self, line: int) -> None:
        self.revealed.append(line)


@dataclass
class MemoryHost:
    files: Dict[str, str] = field(default_factory=dict)
    failures: FailureSwitches = field(default_factory=FailureSwitches)
    notices: List[Tuple[str, int]] = field(default_factory=list)
    transforms: List[str] = field(default_factory=list)
    _views: Dict[str, MemoryDocumentView] = field(default_factory=dict)
    _active: Optional[str] = None

    def open(
        self,
        path: str,
        text: Optional[str] = None,
        *,
        mode: RenderMode = RenderMode.EDITABLE,
        **view_options: object,
    ) -> MemoryDocumentView:
        """Open (or re-focus) ``path``; ``text`` seeds or replaces the file."""

        if text is not None:
            self.files[path] = text
        self.files.setdefault(path, "")
        view = self._views.get(path)
        if view is None:
            view = MemoryDocumentView(self, path, mode=mode, **view_options)  # type: ignore[arg-type]
            self._views[path] = view
        self._active = path
        return view

    def active_view(self) -> Optional[MemoryDocumentView]:
        if self._active is None:
            return None
        return self._views.get(self._active)

    def transform_file(self, path: str, fn: TextTransform) -> None:
        if self.failures.transform:
            raise HostError("file transform unavailable", capability="transform_file")
        if path not in self.files:
            raise HostError(f"unknown file '{path}'", capability="transform_file")
        self.transforms.append(path)
        self.files[path] = fn(self.files[path])

    def notify(self, message: str, *, timeout_ms: int = 5000) -> None:
        self.notices.append((message, timeout_ms))


__all__ = ["FailureSwitches", "MemoryDocumentView", "MemoryHost"]
