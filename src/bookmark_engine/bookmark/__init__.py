"""Bookmark toggle state machine, mutation channels and engine events."""

from .channels import EditableChannel, MutationChannel, RenderedChannel, build_channels
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
from .machine import (
    MULTIPLE_WARNING,
    REMOVAL_LABEL,
    RESTORE_LABEL,
    SETTLE_LABEL,
    BookmarkStateMachine,
    PendingRemoval,
    ToggleOutcome,
)

__all__ = [
    "EditableChannel",
    "MutationChannel",
    "RenderedChannel",
    "build_channels",
    "INDICATOR",
    "JUMP",
    "MULTIPLE",
    "REMOVED",
    "EventBus",
    "IndicatorUpdate",
    "JumpRequest",
    "MultipleMarkers",
    "MULTIPLE_WARNING",
    "REMOVAL_LABEL",
    "RESTORE_LABEL",
    "SETTLE_LABEL",
    "BookmarkStateMachine",
    "PendingRemoval",
    "ToggleOutcome",
]
