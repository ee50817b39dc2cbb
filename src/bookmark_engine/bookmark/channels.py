"""Mutation channels: how a text rewrite reaches the host in each render mode."""

from __future__ import annotations

from typing import Dict

from bookmark_engine.document import (
    BookmarkHost,
    DocumentView,
    HostError,
    RenderMode,
    TextTransform,
    split_lines,
)
from bookmark_engine.runtime import telemetry


class _Tracked:
    """Wraps a transform so callers learn whether it changed anything."""

    def __init__(self, fn: TextTransform) -> None:
        self.fn = fn
        self.changed = False

    def __call__(self, text: str) -> str:
        result = self.fn(text)
        self.changed = result != text
        return result


class MutationChannel:
    mode: RenderMode

    def apply(self, view: DocumentView, fn: TextTransform, *, label: str = "rewrite") -> bool:
        """Rewrite the view's document with ``fn``; return whether it changed."""

        raise NotImplementedError


class EditableChannel(MutationChannel):
    """Edits the live buffer, touching only the lines that differ."""

    mode = RenderMode.EDITABLE

    def apply(self, view: DocumentView, fn: TextTransform, *, label: str = "rewrite") -> bool:
        before = view.get_text()
        after = fn(before)
        if after == before:
            return False

        old_lines = split_lines(before)
        new_lines = split_lines(after)
        with telemetry.span(
            name=f"channel::editable::{label}",
            component="channels",
            metadata={"path": view.path},
        ) as handle:
            if len(old_lines) == len(new_lines):
                edited = 0
                for index, (old, new) in enumerate(zip(old_lines, new_lines)):
                    if old != new:
                        view.set_line(index, new)
                        edited += 1
                handle.add_metadata("lines", edited)
            else:
                view.set_text(after)
                handle.add_metadata("lines", "all")
        return True


class RenderedChannel(MutationChannel):
    """Rewrites the backing file while the view shows rendered output.

    When the host cannot transform the file, the view is switched to the
    editable presentation for a direct buffer edit and switched back. If the
    switch itself fails the buffer is edited directly.
    """

    mode = RenderMode.RENDERED

    def __init__(self, host: BookmarkHost, *, fallback: EditableChannel | None = None) -> None:
        self.host = host
        self.fallback = fallback or EditableChannel()

    def apply(self, view: DocumentView, fn: TextTransform, *, label: str = "rewrite") -> bool:
        tracked = _Tracked(fn)
        try:
            with telemetry.span(
                name=f"channel::rendered::{label}",
                component="channels",
                metadata={"path": view.path},
            ):
                self.host.transform_file(view.path, tracked)
            return tracked.changed
        except HostError as exc:
            telemetry.record_event(
                "channel.transform_failed",
                level="warning",
                data={"path": view.path, "label": label, "reason": str(exc)},
            )

        try:
            view.set_render_mode(RenderMode.EDITABLE)
        except HostError as exc:
            telemetry.record_event(
                "channel.mode_switch_failed",
                level="error",
                data={"path": view.path, "label": label, "reason": str(exc)},
            )
            return self.fallback.apply(view, fn, label=label)

        try:
            return self.fallback.apply(view, fn, label=label)
        finally:
            try:
                view.set_render_mode(RenderMode.RENDERED)
            except HostError as exc:
                telemetry.record_event(
                    "channel.mode_restore_failed",
                    level="error",
                    data={"path": view.path, "label": label, "reason": str(exc)},
                )


def build_channels(host: BookmarkHost) -> Dict[RenderMode, MutationChannel]:
    editable = EditableChannel()
    return {
        RenderMode.EDITABLE: editable,
        RenderMode.RENDERED: RenderedChannel(host, fallback=editable),
    }


__all__ = [
    "EditableChannel",
    "MutationChannel",
    "RenderedChannel",
    "build_channels",
]
