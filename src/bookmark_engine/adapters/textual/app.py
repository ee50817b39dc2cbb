"""Executable Textual app: a Markdown file with a self-erasing bookmark."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any, Optional, Sequence

try:  # pragma: no cover - imported only when demo is run
    from textual.app import App, ComposeResult
    from textual.containers import VerticalScroll
    from textual.widgets import Footer, Header, Markdown, Static, TextArea
except ModuleNotFoundError as exc:  # pragma: no cover - friendly error for missing dep
    raise RuntimeError(
        "Install the 'textual' package to use bookmark_engine.adapters.textual.app"
    ) from exc

from bookmark_engine.bookmark import BookmarkStateMachine
from bookmark_engine.config import BookmarkConfig
from bookmark_engine.decorations import BookmarkDecorationExtension, DecorationProjector
from bookmark_engine.document import (
    HostError,
    IndicatorState,
    RenderMode,
    ScrollInfo,
    TextTransform,
)
from bookmark_engine.runtime import telemetry
from bookmark_engine.runtime.scheduler import DeferredScheduler

from .controller import BookmarkUIHooks, TextualBookmarkAdapter


class TextualDocumentView:
    """DocumentView over a TextArea (editable) and a Markdown pane (rendered)."""

    def __init__(
        self, path: Path, editor: TextArea, preview: Markdown, scroller: VerticalScroll
    ) -> None:
        self._path = path
        self.editor = editor
        self.preview = preview
        self.scroller = scroller
        self.mode = RenderMode.EDITABLE

    @property
    def path(self) -> str:
        return str(self._path)

    def get_text(self) -> str:
        return self.editor.text

    def set_text(self, text: str) -> None:
        self.editor.load_text(text)
        if self.mode is RenderMode.RENDERED:
            self.preview.update(text)

    def get_line(self, index: int) -> str:
        return self.editor.document.get_line(index)

    def set_line(self, index: int, text: str) -> None:
        current = self.editor.document.get_line(index)
        self.editor.replace(text, (index, 0), (index, len(current)))

    def line_count(self) -> int:
        return self.editor.document.line_count

    def get_scroll(self) -> ScrollInfo:
        if self.mode is RenderMode.RENDERED:
            maximum = self.scroller.max_scroll_y
            percentage = (self.scroller.scroll_y / maximum) * 100 if maximum else 0.0
            return ScrollInfo(
                offset=percentage,
                viewport_extent=self.scroller.size.height,
                content_extent=self.scroller.virtual_size.height,
            )
        return ScrollInfo(
            offset=self.editor.scroll_offset.y,
            viewport_extent=self.editor.size.height,
            content_extent=self.editor.virtual_size.height,
        )

    def set_scroll(self, offset: float) -> None:
        target = self.scroller if self.mode is RenderMode.RENDERED else self.editor
        target.scroll_to(y=offset, animate=False)

    def get_render_mode(self) -> RenderMode:
        return self.mode

    def set_render_mode(self, mode: RenderMode) -> None:
        mode = RenderMode(mode)
        if not self.editor.is_mounted:
            raise HostError("editor not mounted", capability="set_render_mode")
        self.mode = mode
        rendered = mode is RenderMode.RENDERED
        if rendered:
            self.preview.update(self.editor.text)
        self.editor.display = not rendered
        self.scroller.display = rendered

    def apply_rendered_scroll(self, percentage: float) -> None:
        y = (percentage / 100.0) * self.scroller.max_scroll_y
        self.scroller.scroll_to(y=y, animate=False)

    def set_cursor(self, line: int, column: int = 0) -> None:
        self.editor.cursor_location = (line, column)

    def scroll_into_view(self, line: int) -> None:
        del line  # the cursor already sits on the target line
        self.editor.scroll_cursor_visible(center=True)


class FileWorkspaceHost:
    """BookmarkHost backed by files on disk and a single open view."""

    def __init__(self, app: "BookmarkApp") -> None:
        self.app = app
        self.view: Optional[TextualDocumentView] = None

    def active_view(self) -> Optional[TextualDocumentView]:
        return self.view

    def transform_file(self, path: str, fn: TextTransform) -> None:
        if self.view is not None and self.view.path == path:
            updated = fn(self.view.get_text())
            self.view.set_text(updated)
        else:
            try:
                target = Path(path)
                updated = fn(target.read_text(encoding="utf-8"))
            except OSError as exc:
                raise HostError(str(exc), capability="transform_file") from exc
        try:
            Path(path).write_text(updated, encoding="utf-8")
        except OSError as exc:
            raise HostError(str(exc), capability="transform_file") from exc

    def notify(self, message: str, *, timeout_ms: int = 5000) -> None:
        self.app.notify(message, severity="warning", timeout=timeout_ms / 1000.0)


class BookmarkApp(App[None]):
    """Minimal Markdown editor with a toggleable, self-erasing bookmark."""

    CSS = """
	Screen {
		layout: vertical;
	}

	#editor, #preview-scroll {
		height: 1fr;
		border: round $accent;
	}

	#indicator {
		height: 1;
		background: $surface-darken-1;
		padding: 0 1;
	}

	#status-line {
		height: 1;
		background: $surface-darken-2;
		padding: 0 1;
	}
	"""

    BINDINGS = [
        ("ctrl+b", "toggle_bookmark", "Bookmark"),
        ("ctrl+l", "cleanup_bookmarks", "Clean up"),
        ("ctrl+r", "toggle_mode", "Edit/Preview"),
        ("ctrl+s", "save", "Save"),
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(
        self,
        path: Path,
        *,
        rendered: bool = False,
        config: Optional[BookmarkConfig] = None,
    ) -> None:
        super().__init__()
        self.path = path
        self._start_rendered = rendered
        self.config = config or BookmarkConfig.from_env()
        self.host = FileWorkspaceHost(self)
        self.machine = BookmarkStateMachine(
            self.host, scheduler=DeferredScheduler(), config=self.config
        )
        self.decorations = BookmarkDecorationExtension(
            DecorationProjector(self.config.marker)
        )
        self.adapter: TextualBookmarkAdapter | None = None
        self.logger = telemetry.get_logger("bookmark_engine.app")

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield TextArea(id="editor")
        with VerticalScroll(id="preview-scroll"):
            yield Markdown(id="preview")
        yield Static("", id="indicator")
        yield Static("", id="status-line")
        yield Footer()

    async def on_mount(self) -> None:
        editor = self.query_one("#editor", TextArea)
        preview = self.query_one("#preview", Markdown)
        scroller = self.query_one("#preview-scroll", VerticalScroll)
        text = self.path.read_text(encoding="utf-8") if self.path.exists() else ""
        editor.load_text(text)
        scroller.display = False

        view = TextualDocumentView(self.path, editor, preview, scroller)
        self.host.view = view
        hooks = BookmarkUIHooks(
            set_indicator=self._set_indicator,
            handle_event=self._handle_event,
            log=self._log_line,
        )
        self.adapter = TextualBookmarkAdapter(self.machine, hooks)
        self.adapter.attach(view.path, self.query_one("#indicator", Static))
        if self._start_rendered:
            view.set_render_mode(RenderMode.RENDERED)
        self.adapter.refresh(view)
        self._refresh_decorations()
        self.set_interval(0.05, self._process_timeouts)

    def on_text_area_changed(self, event: TextArea.Changed) -> None:
        del event
        self._refresh_decorations()

    def action_toggle_bookmark(self) -> None:
        if self.adapter:
            self.adapter.toggle()

    def action_cleanup_bookmarks(self) -> None:
        if self.adapter:
            removed = self.adapter.cleanup()
            self._update_status(f"Removed {removed} bookmark(s)")

    def action_toggle_mode(self) -> None:
        view = self.host.view
        if view is None:
            return
        target = (
            RenderMode.EDITABLE
            if view.get_render_mode() is RenderMode.RENDERED
            else RenderMode.RENDERED
        )
        try:
            view.set_render_mode(target)
        except HostError as exc:
            self._update_status(f"Mode switch failed: {exc}")

    def action_save(self) -> None:
        view = self.host.view
        if view is None:
            return
        self.path.write_text(view.get_text(), encoding="utf-8")
        self._update_status(f"Saved {self.path}")

    def _process_timeouts(self) -> None:
        if self.adapter:
            self.adapter.process_timeouts()

    def _refresh_decorations(self) -> None:
        view = self.host.view
        if view is None or not self.decorations.update(view.get_text()):
            return
        lines = self.decorations.decorations.marked_lines
        if lines:
            self._update_status("Bookmark on line " + ", ".join(str(n + 1) for n in lines))
        else:
            self._update_status("")

    def _set_indicator(self, handle: object, state: IndicatorState) -> None:
        if isinstance(handle, Static):
            symbol = "[x]" if state is IndicatorState.MARKED else "[ ]"
            handle.update(f"{symbol} {state.tooltip} ({state.icon})")

    def _handle_event(self, name: str, payload: Any | None) -> None:
        if name == "bookmark.jump":
            self._update_status(f"Jumping: {payload}")

    def _update_status(self, status: str) -> None:
        self.query_one("#status-line", Static).update(status)

    def _log_line(self, line: str) -> None:
        self.logger.debug(line)


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Edit a Markdown file with a bookmark toggle.")
    parser.add_argument("path", type=Path, help="Markdown file to open")
    parser.add_argument(
        "--rendered",
        action="store_true",
        help="Start in the rendered (read-only) presentation",
    )
    parser.add_argument(
        "--log-preset",
        choices=("development", "production", "performance"),
        default=None,
        help="telelog preset to use instead of BOOKMARK_ENGINE_* variables",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    if args.log_preset:
        telemetry.configure(preset=args.log_preset)
    app = BookmarkApp(args.path, rendered=args.rendered)
    app.run()


if __name__ == "__main__":  # pragma: no cover - manual demo
    main()
