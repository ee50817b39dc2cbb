"""Textual integration for the bookmark engine."""

from .controller import BookmarkUIHooks, TextualBookmarkAdapter

__all__ = ["BookmarkUIHooks", "TextualBookmarkAdapter"]
