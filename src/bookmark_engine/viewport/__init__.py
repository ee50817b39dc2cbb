"""Scroll offset to line index estimation."""

from .estimator import EstimationError, ViewportLineEstimator

__all__ = ["EstimationError", "ViewportLineEstimator"]
