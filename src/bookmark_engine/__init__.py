"""UI-agnostic engine for a single self-erasing document bookmark."""

__all__ = [
    "adapters",
    "bookmark",
    "config",
    "decorations",
    "document",
    "host",
    "marker",
    "runtime",
    "viewport",
]

__version__ = "0.1.0"
