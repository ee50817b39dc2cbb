from __future__ import annotations

from typing import List

from bookmark_engine.bookmark import (
    INDICATOR,
    MULTIPLE,
    MULTIPLE_WARNING,
    REMOVAL_LABEL,
    RESTORE_LABEL,
    SETTLE_LABEL,
    BookmarkStateMachine,
    IndicatorUpdate,
)
from bookmark_engine.config import BOOKMARK_MARKER, BookmarkConfig
from bookmark_engine.document import IndicatorState, RenderMode
from bookmark_engine.host import MemoryHost
from bookmark_engine.runtime.scheduler import DeferredScheduler

M = BOOKMARK_MARKER


class FakeClock:
    def __init__(self) -> None:
        self.elapsed_ms = 0

    def __call__(self) -> float:
        return self.elapsed_ms / 1000.0

    def advance(self, ms: int) -> None:
        self.elapsed_ms += ms


def make_text(count: int = 10) -> str:
    return "\n".join(f"line {i}" for i in range(count))


def make_machine(
    host: MemoryHost, *, config: BookmarkConfig | None = None
) -> tuple[BookmarkStateMachine, FakeClock, List[IndicatorUpdate]]:
    clock = FakeClock()
    machine = BookmarkStateMachine(
        host,
        scheduler=DeferredScheduler(clock=clock),
        config=config or BookmarkConfig(),
    )
    updates: List[IndicatorUpdate] = []
    machine.bus.subscribe(INDICATOR, lambda payload: updates.append(payload))  # type: ignore[arg-type]
    return machine, clock, updates


def test_toggle_without_marker_inserts_at_visible_line() -> None:
    host = MemoryHost()
    view = host.open(
        "notes.md", make_text(), scroll_offset=500, viewport_extent=600, content_extent=1600
    )
    machine, _clock, updates = make_machine(host)

    outcome = machine.toggle()

    assert outcome.action == "marked"
    assert outcome.line == 5
    assert view.get_line(5) == f"line 5 {M}"
    assert view.edits == [("set_line", 5)]
    assert updates == [IndicatorUpdate(path="notes.md", state=IndicatorState.MARKED)]


def test_toggle_with_marker_jumps_then_removes_after_delay() -> None:
    host = MemoryHost()
    original = make_text()
    view = host.open("notes.md", original)
    machine, clock, updates = make_machine(host)
    view.set_line(3, f"line 3 {M}")

    outcome = machine.toggle()

    assert outcome.action == "jumped"
    assert outcome.line == 3
    assert view.cursor == (3, 0)
    assert view.revealed == []

    clock.advance(50)
    machine.scheduler.process_due()
    assert view.revealed == [3]
    assert M in view.get_text()

    clock.advance(449)
    machine.scheduler.process_due()
    assert M in view.get_text()

    clock.advance(1)
    machine.scheduler.process_due()
    assert view.get_text() == original
    assert updates[-1].state is IndicatorState.UNMARKED


def test_full_cycle_returns_document_to_original() -> None:
    host = MemoryHost()
    original = make_text(30)
    view = host.open("notes.md", original)
    machine, _clock, _updates = make_machine(host)

    machine.toggle()
    assert machine.current_indicator_state(view) is IndicatorState.MARKED
    machine.toggle()
    machine.scheduler.flush()

    assert view.get_text() == original
    assert machine.current_indicator_state(view) is IndicatorState.UNMARKED


def test_insertion_avoids_header_and_fence() -> None:
    host = MemoryHost()
    view = host.open("notes.md", "---\ntitle: x\n---\nbody")
    machine, _clock, _updates = make_machine(host)

    machine.toggle()

    assert view.get_text() == f"---\ntitle: x\n---\nbody {M}"

    fenced = host.open("code.md", "intro\n```\ncode\n```\noutro", scroll_offset=34 * 2)
    machine.toggle(fenced)

    assert fenced.get_text() == f"intro {M}\n```\ncode\n```\noutro"


def test_rendered_insertion_rewrites_file_through_host() -> None:
    host = MemoryHost()
    view = host.open("notes.md", make_text(100), mode=RenderMode.RENDERED, scroll_offset=40)
    machine, _clock, _updates = make_machine(host)

    outcome = machine.toggle()

    assert outcome.line == 40
    assert host.transforms == ["notes.md"]
    assert view.edits == []
    assert machine.codec.find(view.get_text()).line == 40


def test_rendered_jump_applies_scroll_percentage() -> None:
    host = MemoryHost()
    view = host.open("notes.md", make_text(100), mode=RenderMode.RENDERED)
    view.set_line(50, f"line 50 {M}")
    machine, _clock, _updates = make_machine(host)

    machine.toggle()

    assert view.rendered_scroll == 50.0
    assert view.cursor == (0, 0)
    assert [task.label for task in machine.scheduler.pending()] == ["bookmark.remove"]


def test_rendered_jump_failure_still_schedules_removal() -> None:
    host = MemoryHost()
    view = host.open("notes.md", f"a {M}\nb", mode=RenderMode.RENDERED)
    host.failures.rendered_scroll = True
    machine, _clock, _updates = make_machine(host)

    outcome = machine.toggle()
    machine.scheduler.flush()

    assert outcome.action == "jumped"
    assert view.get_text() == "a\nb"


def test_deferred_removal_is_noop_when_marker_vanished() -> None:
    host = MemoryHost()
    view = host.open("notes.md", f"a\nb {M}\nc")
    machine, _clock, _updates = make_machine(host)
    machine.toggle()

    view.set_text("a\nb\nc\nuser edit")
    edits_before = list(view.edits)
    removed = machine.scheduler.flush("bookmark.remove")

    assert removed == 1
    assert view.get_text() == "a\nb\nc\nuser edit"
    assert view.edits == edits_before


def test_deferred_removal_refinds_marker_after_content_shift() -> None:
    host = MemoryHost()
    view = host.open("notes.md", f"a\nb {M}\nc")
    machine, _clock, _updates = make_machine(host)
    machine.toggle()

    view.set_text(f"new first line\na\nb {M}\nc")
    machine.scheduler.flush("bookmark.remove")

    assert view.get_text() == "new first line\na\nb\nc"


def test_deferred_removal_targets_original_document_after_switch() -> None:
    host = MemoryHost()
    host.open("a.md", f"alpha {M}\nmore")
    machine, _clock, updates = make_machine(host)
    machine.toggle()

    other = host.open("b.md", f"beta {M}")
    machine.scheduler.flush("bookmark.remove")

    assert host.files["a.md"] == "alpha\nmore"
    assert other.get_text() == f"beta {M}"
    assert host.transforms == ["a.md"]
    assert updates[-1] == IndicatorUpdate(path="a.md", state=IndicatorState.UNMARKED)


def test_deferred_removal_uses_channel_of_current_mode() -> None:
    host = MemoryHost()
    view = host.open("notes.md", f"a {M}\nb")
    machine, _clock, _updates = make_machine(host)
    machine.toggle()

    view.mode = RenderMode.RENDERED
    edits_before = list(view.edits)
    machine.scheduler.flush()

    assert view.get_text() == "a\nb"
    assert host.transforms == ["notes.md"]
    assert view.edits == edits_before


def test_rendered_mutation_falls_back_to_mode_switch() -> None:
    host = MemoryHost()
    view = host.open("notes.md", make_text(5), mode=RenderMode.RENDERED)
    host.failures.transform = True
    machine, _clock, _updates = make_machine(host)

    machine.toggle()

    assert view.mode_history == [RenderMode.EDITABLE, RenderMode.RENDERED]
    assert view.mode is RenderMode.RENDERED
    assert view.get_line(0) == f"line 0 {M}"


def test_rendered_mutation_falls_back_to_direct_edit() -> None:
    host = MemoryHost()
    view = host.open("notes.md", make_text(5), mode=RenderMode.RENDERED)
    host.failures.transform = True
    host.failures.mode_switch = True
    machine, _clock, _updates = make_machine(host)

    outcome = machine.toggle()

    assert outcome.action == "marked"
    assert view.mode is RenderMode.RENDERED
    assert view.mode_history == []
    assert view.get_line(0) == f"line 0 {M}"


def test_estimation_failure_places_marker_on_first_line() -> None:
    host = MemoryHost()
    view = host.open("notes.md", make_text(), scroll_offset=900)
    host.failures.scroll = True
    machine, _clock, _updates = make_machine(host)

    outcome = machine.toggle()

    assert outcome.line == 0
    assert view.get_line(0) == f"line 0 {M}"


def test_multiple_markers_warn_once_per_inspection() -> None:
    host = MemoryHost()
    view = host.open("notes.md", f"a {M}\nb {M}")
    machine, _clock, _updates = make_machine(host)
    counts: List[object] = []
    machine.bus.subscribe(MULTIPLE, counts.append)

    state = machine.inspect(view)

    assert machine.codec.count_occurrences(view.get_text()) == 2
    assert state.line == 0
    assert host.notices == [(MULTIPLE_WARNING, 5000)]
    assert len(counts) == 1

    machine.inspect(view)
    assert len(host.notices) == 2
    assert view.get_text() == f"a {M}\nb {M}"


def test_single_marker_does_not_warn() -> None:
    host = MemoryHost()
    view = host.open("notes.md", f"a {M}")
    machine, _clock, _updates = make_machine(host)

    machine.inspect(view)

    assert host.notices == []


def test_cleanup_all_strips_every_marker() -> None:
    host = MemoryHost()
    view = host.open("notes.md", f"a {M}\nb {M}\nc")
    machine, _clock, updates = make_machine(host)

    removed = machine.cleanup_all()

    assert removed == 2
    assert view.get_text() == "a\nb\nc"
    assert updates[-1].state is IndicatorState.UNMARKED


def test_cleanup_all_in_rendered_mode_uses_file_transform() -> None:
    host = MemoryHost()
    view = host.open("notes.md", f"a {M}\r\nb {M}\r\n", mode=RenderMode.RENDERED)
    machine, _clock, _updates = make_machine(host)

    machine.cleanup_all(view)

    assert view.get_text() == "a\r\nb\r\n"
    assert host.transforms == ["notes.md"]


def test_toggle_without_active_view_is_noop() -> None:
    machine, _clock, updates = make_machine(MemoryHost())

    assert machine.toggle().action == "noop"
    assert machine.cleanup_all() == 0
    assert updates == []


def test_fence_avoidance_in_rendered_mode_is_configurable() -> None:
    text = "intro\n```\ncode\n```\noutro"
    host = MemoryHost()
    view = host.open("code.md", text, mode=RenderMode.RENDERED, scroll_offset=40)
    machine, _clock, _updates = make_machine(
        host, config=BookmarkConfig(avoid_fences_in_rendered=True)
    )

    machine.toggle()

    assert view.get_text() == f"intro {M}\n```\ncode\n```\noutro"


def test_editable_insert_restores_scroll_offset() -> None:
    host = MemoryHost()
    view = host.open("notes.md", make_text(), scroll_offset=170, content_extent=1600)
    machine, clock, _updates = make_machine(host)

    machine.toggle()
    assert [task.label for task in machine.scheduler.pending()] == [RESTORE_LABEL]

    view.scroll_offset = 0.0
    clock.advance(9)
    machine.scheduler.process_due()
    assert view.scroll_offset == 0.0

    clock.advance(1)
    machine.scheduler.process_due()
    assert view.scroll_offset == 170


def test_scroll_restore_skips_document_no_longer_active() -> None:
    host = MemoryHost()
    view = host.open("a.md", make_text(), scroll_offset=170, content_extent=1600)
    machine, _clock, _updates = make_machine(host)
    machine.toggle()

    host.open("b.md", "other")
    view.scroll_offset = 0.0
    machine.scheduler.flush(RESTORE_LABEL)

    assert view.scroll_offset == 0.0


def test_scroll_restore_failure_is_contained() -> None:
    host = MemoryHost()
    view = host.open("notes.md", make_text(), scroll_offset=170, content_extent=1600)
    machine, _clock, _updates = make_machine(host)
    machine.toggle()

    host.failures.scroll = True
    assert machine.scheduler.flush() == 1
    assert machine.scheduler.pending() == []
    assert M in view.get_text()


def test_rendered_insert_does_not_schedule_scroll_restore() -> None:
    host = MemoryHost()
    host.open("notes.md", make_text(), mode=RenderMode.RENDERED)
    machine, _clock, _updates = make_machine(host)

    machine.toggle()

    assert machine.scheduler.pending() == []


def test_cursor_failure_during_jump_still_schedules_removal() -> None:
    host = MemoryHost()
    view = host.open("notes.md", f"a {M}\nb")
    host.failures.cursor = True
    machine, _clock, updates = make_machine(host)

    outcome = machine.toggle()

    assert outcome.action == "jumped"
    assert [task.label for task in machine.scheduler.pending()] == [REMOVAL_LABEL]

    machine.scheduler.flush()
    assert view.get_text() == "a\nb"
    assert updates[-1].state is IndicatorState.UNMARKED


def test_edit_failure_during_deferred_removal_is_contained() -> None:
    host = MemoryHost()
    view = host.open("notes.md", f"a {M}\nb")
    machine, _clock, updates = make_machine(host)
    machine.toggle()

    host.failures.edit = True
    machine.scheduler.flush()

    assert view.get_text() == f"a {M}\nb"
    assert updates[-1].state is IndicatorState.MARKED

    host.failures.edit = False
    assert machine.toggle().action == "jumped"
    machine.scheduler.flush()
    assert view.get_text() == "a\nb"


def test_edit_failure_during_insert_is_noop() -> None:
    host = MemoryHost()
    view = host.open("notes.md", make_text())
    host.failures.edit = True
    machine, _clock, updates = make_machine(host)

    outcome = machine.toggle()

    assert outcome.action == "noop"
    assert M not in view.get_text()
    assert updates == []
    assert machine.scheduler.pending() == []


def test_edit_failure_during_cleanup_keeps_marked_indicator() -> None:
    host = MemoryHost()
    view = host.open("notes.md", f"a {M}\nb {M}")
    machine, _clock, updates = make_machine(host)
    host.failures.edit = True

    assert machine.cleanup_all() == 0
    assert view.get_text() == f"a {M}\nb {M}"
    assert updates[-1].state is IndicatorState.MARKED


def test_settle_scroll_skips_document_no_longer_active() -> None:
    host = MemoryHost()
    view = host.open("a.md", f"a\nb {M}")
    machine, _clock, _updates = make_machine(host)
    machine.toggle()

    host.open("b.md", "other")
    machine.scheduler.flush(SETTLE_LABEL)

    assert view.cursor == (1, 0)
    assert view.revealed == []


def test_cycle_preserves_mixed_line_endings() -> None:
    host = MemoryHost()
    original = "a\r\nb\nc\r\nd"
    view = host.open("notes.md", original, mode=RenderMode.RENDERED)
    machine, _clock, _updates = make_machine(host)

    machine.toggle()
    assert M in view.get_text()
    machine.toggle()
    machine.scheduler.flush()

    assert view.get_text() == original
