"""Decorations that highlight bookmarked lines and hide the raw token."""

from .projector import (
    HIDDEN_CLASS,
    LINE_CLASS,
    BookmarkDecorationExtension,
    DecorationProjector,
    DecorationSet,
    LineDecoration,
    MarkDecoration,
)

__all__ = [
    "HIDDEN_CLASS",
    "LINE_CLASS",
    "BookmarkDecorationExtension",
    "DecorationProjector",
    "DecorationSet",
    "LineDecoration",
    "MarkDecoration",
]
