"""Deferred callbacks driven by a host-polled timer table."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from bookmark_engine.runtime import telemetry

Clock = Callable[[], float]


@dataclass(slots=True)
class ScheduledTask:
    handle: int
    label: str
    deadline: float
    delay_ms: int
    callback: Callable[[], None]


class DeferredScheduler:
    """Holds callbacks until their deadline passes and the host polls.

    Nothing runs on its own thread: hosts call ``process_due`` periodically
    (the Textual app does so on an interval) and tests call ``flush`` or
    advance an injected clock.
    """

    def __init__(self, *, clock: Optional[Clock] = None) -> None:
        self._clock: Clock = clock or time.monotonic
        self._tasks: Dict[int, ScheduledTask] = {}
        self._counter = 0
        self.logger = telemetry.get_logger("bookmark_engine.scheduler")

    def call_later(
        self, delay_ms: int, callback: Callable[[], None], *, label: str = "task"
    ) -> int:
        self._counter += 1
        deadline = self._clock() + (max(delay_ms, 0) / 1000.0)
        self._tasks[self._counter] = ScheduledTask(
            handle=self._counter,
            label=label,
            deadline=deadline,
            delay_ms=delay_ms,
            callback=callback,
        )
        telemetry.record_event(
            "scheduler.armed",
            level="debug",
            data={"label": label, "delay_ms": delay_ms, "handle": self._counter},
        )
        return self._counter

    def cancel(self, handle: int) -> bool:
        return self._tasks.pop(handle, None) is not None

    def pending(self, label: Optional[str] = None) -> List[ScheduledTask]:
        tasks = sorted(self._tasks.values(), key=lambda task: (task.deadline, task.handle))
        if label is None:
            return tasks
        return [task for task in tasks if task.label == label]

    def process_due(self) -> int:
        """Run every task whose deadline has passed; return how many ran."""

        now = self._clock()
        due = [task for task in self.pending() if task.deadline <= now]
        for task in due:
            self._fire(task)
        return len(due)

    def flush(self, label: Optional[str] = None) -> int:
        """Run pending tasks immediately regardless of their deadline."""

        tasks = self.pending(label)
        for task in tasks:
            self._fire(task)
        return len(tasks)

    def _fire(self, task: ScheduledTask) -> None:
        # A task may have been cancelled by an earlier callback in this batch.
        if self._tasks.pop(task.handle, None) is None:
            return
        with telemetry.span(
            name=f"scheduler::{task.label}",
            component="scheduler",
            metadata={"handle": task.handle},
        ):
            task.callback()


__all__ = ["Clock", "DeferredScheduler", "ScheduledTask"]
