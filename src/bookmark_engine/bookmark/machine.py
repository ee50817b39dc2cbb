"""Two-state bookmark toggle: place a marker, or jump to it and erase it.

No bookmark state is kept between calls. Every operation re-reads the host
document, and deferred removal carries only the document identity across
the delay, re-resolving view, mode and marker position when it fires.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from bookmark_engine.config import DEFAULT_CONFIG, BookmarkConfig
from bookmark_engine.document import (
    BookmarkHost,
    BookmarkState,
    Document,
    DocumentView,
    HostError,
    IndicatorState,
    RenderMode,
    TextTransform,
)
from bookmark_engine.marker import MarkerCodec, PlacementPolicy
from bookmark_engine.runtime import telemetry
from bookmark_engine.runtime.scheduler import DeferredScheduler
from bookmark_engine.viewport import ViewportLineEstimator

from .channels import MutationChannel, build_channels
from .events import (
    INDICATOR,
    JUMP,
    MULTIPLE,
    REMOVED,
    EventBus,
    IndicatorUpdate,
    JumpRequest,
    MultipleMarkers,
)

MULTIPLE_WARNING = "Warning: Multiple bookmarks found. Please clean up manually."
REMOVAL_LABEL = "bookmark.remove"
SETTLE_LABEL = "bookmark.scroll_into_view"
RESTORE_LABEL = "bookmark.restore_scroll"


@dataclass(frozen=True, slots=True)
class PendingRemoval:
    """Identity snapshot carried across the confirmation delay.

    ``line`` and ``mode`` are what the toggle saw and are kept for logging
    only; the removal re-finds the marker by content.
    """

    path: str
    line: int
    mode: RenderMode


@dataclass(frozen=True, slots=True)
class ToggleOutcome:
    action: str  # "marked", "jumped" or "noop"
    line: Optional[int] = None
    removal_handle: Optional[int] = None


class BookmarkStateMachine:
    def __init__(
        self,
        host: BookmarkHost,
        *,
        scheduler: Optional[DeferredScheduler] = None,
        config: BookmarkConfig = DEFAULT_CONFIG,
        codec: Optional[MarkerCodec] = None,
        policy: Optional[PlacementPolicy] = None,
        estimator: Optional[ViewportLineEstimator] = None,
        bus: Optional[EventBus] = None,
        channels: Optional[Dict[RenderMode, MutationChannel]] = None,
    ) -> None:
        self.host = host
        self.config = config
        self.scheduler = scheduler or DeferredScheduler()
        self.codec = codec or MarkerCodec(config.marker)
        self.policy = policy or PlacementPolicy(config)
        self.estimator = estimator or ViewportLineEstimator(config)
        self.bus = bus or EventBus()
        self.channels = channels or build_channels(host)
        self.logger = telemetry.get_logger("bookmark_engine.bookmark")

    def channel_for(self, mode: RenderMode) -> MutationChannel:
        return self.channels[RenderMode(mode)]

    def render_mode(self, view: DocumentView) -> RenderMode:
        try:
            return RenderMode(view.get_render_mode())
        except HostError as exc:
            telemetry.record_event(
                "bookmark.mode_unknown",
                level="warning",
                data={"path": view.path, "reason": str(exc)},
            )
            return RenderMode.EDITABLE

    def inspect(self, view: DocumentView) -> BookmarkState:
        text = view.get_text()
        self.warn_if_multiple(text, path=view.path)
        return self.codec.find(text)

    def warn_if_multiple(self, text: str, *, path: str = "") -> bool:
        count = self.codec.count_occurrences(text)
        if count <= 1:
            return False
        telemetry.record_event(
            "bookmark.multiple", level="warning", data={"path": path, "count": count}
        )
        self.host.notify(MULTIPLE_WARNING, timeout_ms=self.config.notice_timeout_ms)
        self.bus.emit(MULTIPLE, MultipleMarkers(path=path, count=count))
        return True

    def current_indicator_state(self, view: DocumentView) -> IndicatorState:
        state = self.inspect(view)
        return IndicatorState.MARKED if state.present else IndicatorState.UNMARKED

    def toggle(self, view: Optional[DocumentView] = None) -> ToggleOutcome:
        view = view or self.host.active_view()
        if view is None:
            return ToggleOutcome(action="noop")

        with telemetry.span(
            name="bookmark::toggle",
            component="bookmark",
            metadata={"path": view.path},
        ) as handle:
            state = self.inspect(view)
            mode = self.render_mode(view)
            handle.add_metadata("mode", mode.value)

            if state.present and state.line is not None:
                self.jump(view, state.line, mode=mode)
                pending = PendingRemoval(path=view.path, line=state.line, mode=mode)
                removal = self.scheduler.call_later(
                    self.config.removal_delay_ms,
                    lambda: self.fire_removal(pending),
                    label=REMOVAL_LABEL,
                )
                handle.add_metadata("action", "jumped")
                return ToggleOutcome(
                    action="jumped", line=state.line, removal_handle=removal
                )

            candidate = self.estimator.estimate_view(view, mode)
            try:
                line = self._insert(view, mode, candidate)
            except HostError as exc:
                telemetry.record_event(
                    "bookmark.insert_failed",
                    level="error",
                    data={"path": view.path, "line": candidate, "reason": str(exc)},
                )
                handle.add_metadata("action", "noop")
                return ToggleOutcome(action="noop")
            handle.add_metadata("action", "marked")
            self._emit_indicator(view.path, IndicatorState.MARKED)
            return ToggleOutcome(action="marked", line=line)

    def jump(
        self, view: DocumentView, line: int, *, mode: Optional[RenderMode] = None
    ) -> None:
        mode = RenderMode(mode) if mode is not None else self.render_mode(view)
        self.bus.emit(JUMP, JumpRequest(path=view.path, line=line))
        if mode is RenderMode.RENDERED:
            try:
                total = view.line_count()
                percentage = (line / total) * 100 if total > 0 else 0.0
                view.apply_rendered_scroll(percentage)
            except HostError as exc:
                telemetry.record_event(
                    "bookmark.jump_failed",
                    level="error",
                    data={"path": view.path, "line": line, "reason": str(exc)},
                )
            return

        try:
            view.set_cursor(line, 0)
        except HostError as exc:
            telemetry.record_event(
                "bookmark.jump_failed",
                level="error",
                data={"path": view.path, "line": line, "reason": str(exc)},
            )
            return
        path = view.path
        # The host needs a redraw before scroll-into-view lands reliably.
        self.scheduler.call_later(
            self.config.settle_delay_ms,
            lambda: self._scroll_into_view(path, line),
            label=SETTLE_LABEL,
        )

    def fire_removal(self, pending: PendingRemoval) -> bool:
        """Erase the marker once the confirmation delay has passed."""

        with telemetry.span(
            name="bookmark::deferred_remove",
            component="bookmark",
            metadata={"path": pending.path, "requested_mode": pending.mode.value},
        ) as handle:
            view = self.host.active_view()
            if view is None or view.path != pending.path:
                # Another document is open now; never touch its buffer.
                handle.add_metadata("channel", "file")
                changed = self._rewrite_file(pending.path, self.codec.remove_first_in_text)
                remaining = None
            else:
                mode = self.render_mode(view)
                handle.add_metadata("channel", mode.value)
                try:
                    changed = self.channel_for(mode).apply(
                        view, self.codec.remove_first_in_text, label="remove"
                    )
                except HostError as exc:
                    telemetry.record_event(
                        "bookmark.removal_failed",
                        level="error",
                        data={"path": pending.path, "reason": str(exc)},
                    )
                    changed = False
                remaining = self.codec.find(view.get_text()).present

            if changed:
                self.bus.emit(REMOVED, pending)
            else:
                telemetry.record_event(
                    "bookmark.stale_removal",
                    level="debug",
                    data={"path": pending.path, "line": pending.line},
                )
            self._emit_indicator(
                pending.path,
                IndicatorState.MARKED if remaining else IndicatorState.UNMARKED,
            )
            return changed

    def cleanup_all(self, view: Optional[DocumentView] = None) -> int:
        """Strip every marker from the document; return how many were removed."""

        view = view or self.host.active_view()
        if view is None:
            return 0

        with telemetry.span(
            name="bookmark::cleanup",
            component="bookmark",
            metadata={"path": view.path},
        ) as handle:
            count = self.codec.count_occurrences(view.get_text())
            handle.add_metadata("count", count)
            if count:
                mode = self.render_mode(view)
                try:
                    self.channel_for(mode).apply(view, self.codec.strip, label="cleanup")
                except HostError as exc:
                    telemetry.record_event(
                        "bookmark.cleanup_failed",
                        level="error",
                        data={"path": view.path, "count": count, "reason": str(exc)},
                    )
                    self._emit_indicator(view.path, IndicatorState.MARKED)
                    return 0
            self._emit_indicator(view.path, IndicatorState.UNMARKED)
            return count

    def _insert(self, view: DocumentView, mode: RenderMode, candidate: int) -> Optional[int]:
        avoid_fences = mode is RenderMode.EDITABLE or self.config.avoid_fences_in_rendered
        placed: Dict[str, int] = {}
        offset = self._scroll_offset(view) if mode is RenderMode.EDITABLE else None

        def place(text: str) -> str:
            if self.codec.find(text).present:
                return text
            placement = self.policy.resolve(
                Document.from_text(text), candidate, avoid_fences=avoid_fences
            )
            placed["line"] = placement.line
            return self.codec.insert_in_text(
                text, placement.line, at_start=placement.at_start
            )

        changed = self.channel_for(mode).apply(view, place, label="insert")
        if changed and offset is not None:
            path = view.path
            # Buffer edits may move the viewport; put it back once they settle.
            self.scheduler.call_later(
                self.config.restore_scroll_delay_ms,
                lambda: self._restore_scroll(path, offset),
                label=RESTORE_LABEL,
            )
        return placed.get("line")

    def _scroll_offset(self, view: DocumentView) -> Optional[float]:
        try:
            return view.get_scroll().offset
        except HostError as exc:
            telemetry.record_event(
                "bookmark.scroll_unknown",
                level="debug",
                data={"path": view.path, "reason": str(exc)},
            )
            return None

    def _active_view_for(self, path: str) -> Optional[DocumentView]:
        view = self.host.active_view()
        if view is None or view.path != path:
            return None
        return view

    def _restore_scroll(self, path: str, offset: float) -> None:
        view = self._active_view_for(path)
        if view is None:
            telemetry.record_event(
                "bookmark.restore_skipped", level="debug", data={"path": path}
            )
            return
        try:
            view.set_scroll(offset)
        except HostError as exc:
            telemetry.record_event(
                "bookmark.restore_failed",
                level="warning",
                data={"path": path, "offset": offset, "reason": str(exc)},
            )

    def _rewrite_file(self, path: str, fn: TextTransform) -> bool:
        changed = False

        def tracked(text: str) -> str:
            nonlocal changed
            result = fn(text)
            changed = result != text
            return result

        try:
            self.host.transform_file(path, tracked)
        except HostError as exc:
            telemetry.record_event(
                "bookmark.file_rewrite_failed",
                level="error",
                data={"path": path, "reason": str(exc)},
            )
            return False
        return changed

    def _scroll_into_view(self, path: str, line: int) -> None:
        view = self._active_view_for(path)
        if view is None:
            telemetry.record_event(
                "bookmark.scroll_skipped", level="debug", data={"path": path, "line": line}
            )
            return
        try:
            view.scroll_into_view(line)
        except HostError as exc:
            telemetry.record_event(
                "bookmark.scroll_failed",
                level="warning",
                data={"path": path, "line": line, "reason": str(exc)},
            )

    def _emit_indicator(self, path: str, state: IndicatorState) -> None:
        self.bus.emit(INDICATOR, IndicatorUpdate(path=path, state=state))


__all__ = [
    "MULTIPLE_WARNING",
    "REMOVAL_LABEL",
    "RESTORE_LABEL",
    "SETTLE_LABEL",
    "BookmarkStateMachine",
    "PendingRemoval",
    "ToggleOutcome",
]
