"""Per-pattern gutter icons, memoised by pattern name.

The cache must be cleared whenever settings are reloaded, since a pattern
name can come back with a different style.
"""

from __future__ import annotations

from typing import Any

import tagger.patterns

_SVG_TEMPLATE = (
    '<svg xmlns="http://www.w3.org/2000/svg" width="16" height="16">'
    '<circle cx="8" cy="8" r="4" fill="{fill}"/></svg>'
)
_FALLBACK_FILL = "currentColor"


def _fill(style: dict[str, Any]) -> str:
    for key in ("color", "backgroundColor"):
        value = style.get(key)
        if isinstance(value, str) and value:
            return value
    return _FALLBACK_FILL


class IconCache:
    """Memoise icon markup per pattern name."""

    def __init__(self) -> None:
        self._icons: dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._icons)

    def get(self, pattern: tagger.patterns.CompiledPattern) -> str:
        icon = self._icons.get(pattern.name)
        if icon is None:
            icon = _SVG_TEMPLATE.format(fill=_fill(pattern.style))
            self._icons[pattern.name] = icon
        return icon

    def reset(self) -> None:
        self._icons.clear()
