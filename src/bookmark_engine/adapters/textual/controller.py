"""Glue between the bookmark state machine and a Textual UI."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional

from bookmark_engine.bookmark import (
    INDICATOR,
    JUMP,
    MULTIPLE,
    REMOVED,
    BookmarkStateMachine,
    IndicatorUpdate,
    ToggleOutcome,
)
from bookmark_engine.document import DocumentView, IndicatorState


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


@dataclass(slots=True)
class BookmarkUIHooks:
    """Callbacks the adapter uses to update host widgets."""

    set_indicator: Callable[[object, IndicatorState], None]
    handle_event: Callable[[str, object | None], None] = _noop
    log: Callable[[str], None] = _noop


class TextualBookmarkAdapter:
    """Owns the document → indicator-handle association for one UI.

    The state machine knows nothing about widgets; it announces indicator
    changes by document path and this adapter routes them to whichever
    handle was attached for that path.
    """

    def __init__(self, machine: BookmarkStateMachine, hooks: BookmarkUIHooks) -> None:
        self.machine = machine
        self.hooks = hooks
        self._indicators: Dict[str, object] = {}
        self._subscribe_events()

    def attach(self, path: str, handle: object) -> None:
        self._indicators[path] = handle
        self._log_state("attach ->", path=path)

    def detach(self, path: str) -> Optional[object]:
        self._log_state("detach ->", path=path)
        return self._indicators.pop(path, None)

    def indicator_for(self, path: str) -> Optional[object]:
        return self._indicators.get(path)

    def toggle(self) -> ToggleOutcome:
        self._log_state("toggle ->")
        outcome = self.machine.toggle()
        self._log_state(
            "toggle <-",
            action=outcome.action,
            line=outcome.line,
            removal=outcome.removal_handle,
        )
        return outcome

    def cleanup(self) -> int:
        removed = self.machine.cleanup_all()
        self._log_state("cleanup <-", removed=removed)
        return removed

    def refresh(self, view: Optional[DocumentView] = None) -> Optional[IndicatorState]:
        """Re-derive the indicator for ``view`` (default: the active view)."""

        view = view or self.machine.host.active_view()
        if view is None:
            return None
        state = self.machine.current_indicator_state(view)
        self._apply_indicator(IndicatorUpdate(path=view.path, state=state))
        return state

    def process_timeouts(self) -> int:
        ran = self.machine.scheduler.process_due()
        if ran:
            self._log_state("timeouts ->", ran=ran)
        return ran

    def _subscribe_events(self) -> None:
        bus = self.machine.bus
        bus.subscribe(INDICATOR, self._on_indicator)
        for event in (MULTIPLE, JUMP, REMOVED):
            bus.subscribe(
                event, lambda payload, name=event: self._handle_event(name, payload)
            )

    def _on_indicator(self, payload: object | None) -> None:
        if isinstance(payload, IndicatorUpdate):
            self._apply_indicator(payload)

    def _apply_indicator(self, update: IndicatorUpdate) -> None:
        handle = self._indicators.get(update.path)
        self._log_state("indicator ->", path=update.path, state=update.state.value)
        if handle is not None:
            self.hooks.set_indicator(handle, update.state)

    def _handle_event(self, name: str, payload: object | None) -> None:
        self._log_state("event ->", event=name, payload=payload)
        self.hooks.handle_event(name, payload)

    def _log_state(self, prefix: str, **fields: object) -> None:
        view = self.machine.host.active_view()
        snapshot: Dict[str, object] = {
            "active": view.path if view is not None else None,
            "pending": len(self.machine.scheduler.pending()),
        }
        snapshot.update({key: value for key, value in fields.items() if value is not None})
        parts = [prefix] + [f"{key}={value!r}" for key, value in snapshot.items()]
        self.hooks.log(" ".join(parts))


__all__ = ["BookmarkUIHooks", "TextualBookmarkAdapter"]
