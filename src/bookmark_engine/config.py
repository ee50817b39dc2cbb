"""Engine configuration and shared constants."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace

from bookmark_engine.runtime.telemetry import env_flag, env_value

BOOKMARK_MARKER = "<!-- bookmark-marker -->"
HEADER_DELIMITER = "---"
FENCE_TOKEN = "```"


@dataclass(frozen=True, slots=True)
class BookmarkConfig:
    """Tunables for placement, estimation and deferred work."""

    marker: str = BOOKMARK_MARKER
    header_delimiter: str = HEADER_DELIMITER
    fence_token: str = FENCE_TOKEN
    removal_delay_ms: int = 500
    settle_delay_ms: int = 50
    restore_scroll_delay_ms: int = 10
    assumed_line_height: float = 34.0
    default_viewport_extent: float = 600.0
    percent_threshold: float = 100.0
    notice_timeout_ms: int = 5000
    avoid_fences_in_rendered: bool = False

    def __post_init__(self) -> None:
        if not self.marker.strip():
            raise ValueError("marker cannot be blank")
        if self.assumed_line_height <= 0:
            raise ValueError("assumed_line_height must be positive")
        if min(self.removal_delay_ms, self.settle_delay_ms, self.restore_scroll_delay_ms) < 0:
            raise ValueError("delays cannot be negative")

    @classmethod
    def from_env(cls, **overrides: object) -> "BookmarkConfig":
        """Build a config from ``BOOKMARK_ENGINE_*`` variables.

        Every field reads the upper-cased variable of the same name, for
        example ``REMOVAL_DELAY_MS`` or ``AVOID_FENCES_IN_RENDERED``. Keyword
        overrides win over the environment.
        """

        config = cls()
        values: dict[str, object] = {}
        for item in fields(cls):
            raw = env_value(item.name.upper())
            if raw is None:
                continue
            default = getattr(config, item.name)
            if isinstance(default, bool):
                values[item.name] = env_flag(item.name.upper(), default)
            elif isinstance(default, int):
                values[item.name] = int(raw)
            elif isinstance(default, float):
                values[item.name] = float(raw)
            else:
                values[item.name] = raw
        values.update(overrides)
        return replace(config, **values)


DEFAULT_CONFIG = BookmarkConfig()

__all__ = [
    "BOOKMARK_MARKER",
    "FENCE_TOKEN",
    "HEADER_DELIMITER",
    "BookmarkConfig",
    "DEFAULT_CONFIG",
]
