"""Reference host implementations."""

from .memory import FailureSwitches, MemoryDocumentView, MemoryHost

__all__ = ["FailureSwitches", "MemoryDocumentView", "MemoryHost"]
