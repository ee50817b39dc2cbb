"""Turn a scroll offset into the line index at the top of the viewport.

Hosts expose no reliable "first visible line" API, and the two render
backends report scroll in different units. Both algorithms reduce the
sample to a fraction of the document and share the fraction-to-line step.
Estimation is advisory: any failure degrades to line 0.
"""

from __future__ import annotations

import math
from typing import Optional

from bookmark_engine.config import DEFAULT_CONFIG, BookmarkConfig
from bookmark_engine.document import (
    DocumentView,
    RenderMode,
    ViewportSample,
    clamp_line,
)
from bookmark_engine.runtime import telemetry


class EstimationError(ValueError):
    """Internal signal that a sample cannot be turned into a fraction."""


class ViewportLineEstimator:
    def __init__(self, config: BookmarkConfig = DEFAULT_CONFIG) -> None:
        self.assumed_line_height = config.assumed_line_height
        self.default_viewport_extent = config.default_viewport_extent
        self.percent_threshold = config.percent_threshold

    def estimate(self, sample: ViewportSample, mode: RenderMode) -> int:
        mode = RenderMode(mode)
        if sample.total_lines <= 0:
            return 0
        try:
            if mode is RenderMode.RENDERED:
                fraction = self._rendered_fraction(sample)
            else:
                fraction = self._editable_fraction(sample)
            return self._to_line(fraction, sample.total_lines)
        except (ArithmeticError, TypeError, ValueError) as exc:
            telemetry.record_event(
                "estimate.fallback",
                level="warning",
                data={"mode": mode.value, "reason": str(exc) or type(exc).__name__},
            )
            return 0

    def sample(self, view: DocumentView) -> Optional[ViewportSample]:
        """Capture the view's scroll state, or ``None`` if the host cannot say."""

        try:
            info = view.get_scroll()
            total = view.line_count()
        except Exception as exc:  # host-side failures only degrade the estimate
            telemetry.record_event(
                "estimate.sample_failed",
                level="warning",
                data={"path": getattr(view, "path", "?"), "reason": str(exc)},
            )
            return None
        return ViewportSample(
            scroll_offset=info.offset,
            viewport_extent=info.viewport_extent,
            content_extent=info.content_extent,
            total_lines=total,
        )

    def estimate_view(self, view: DocumentView, mode: RenderMode) -> int:
        sample = self.sample(view)
        if sample is None:
            return 0
        return self.estimate(sample, mode)

    def _editable_fraction(self, sample: ViewportSample) -> float:
        viewport = sample.viewport_extent or self.default_viewport_extent
        content = sample.content_extent or viewport
        if content > viewport:
            return sample.scroll_offset / (content - viewport)
        # Content fits or its extent is unknown: assume a fixed line height.
        return min(
            sample.scroll_offset / (sample.total_lines * self.assumed_line_height), 1.0
        )

    def _rendered_fraction(self, sample: ViewportSample) -> float:
        if sample.scroll_offset <= self.percent_threshold:
            return sample.scroll_offset / 100.0
        if not sample.content_extent:
            raise EstimationError("pixel offset without content extent")
        return sample.scroll_offset / sample.content_extent

    @staticmethod
    def _to_line(fraction: float, total_lines: int) -> int:
        if not math.isfinite(fraction):
            raise EstimationError("non-finite scroll fraction")
        return clamp_line(math.floor(fraction * total_lines), total_lines)


__all__ = ["EstimationError", "ViewportLineEstimator"]
