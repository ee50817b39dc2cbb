"""Event bus connecting the state machine to UI glue."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict

from bookmark_engine.document import IndicatorState

INDICATOR = "bookmark.indicator"
MULTIPLE = "bookmark.multiple"
JUMP = "bookmark.jump"
REMOVED = "bookmark.removed"


@dataclass(frozen=True, slots=True)
class IndicatorUpdate:
    path: str
    state: IndicatorState


@dataclass(frozen=True, slots=True)
class MultipleMarkers:
    path: str
    count: int


@dataclass(frozen=True, slots=True)
class JumpRequest:
    path: str
    line: int


class EventBus:
    """Minimal publish/subscribe for structured engine signals."""

    def __init__(self) -> None:
        self._subscribers: Dict[str, list[Callable[[object], None]]] = {}

    def subscribe(self, event: str, callback: Callable[[object], None]) -> None:
        self._subscribers.setdefault(event, []).append(callback)

    def emit(self, event: str, payload: object | None = None) -> None:
        for callback in list(self._subscribers.get(event, [])):
            callback(payload)


__all__ = [
    "INDICATOR",
    "JUMP",
    "MULTIPLE",
    "REMOVED",
    "EventBus",
    "IndicatorUpdate",
    "JumpRequest",
    "MultipleMarkers",
]
