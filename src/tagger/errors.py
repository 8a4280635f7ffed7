"""Configuration errors raised while resolving tagger settings."""

from __future__ import annotations


class ConfigError(Exception):
    """A pattern entry could not be turned into a compiled pattern."""


class MissingField(ConfigError):
    """A mandatory pattern field (``name`` or ``pattern``) is absent or empty."""

    def __init__(self, field: str, index: int, name: str | None = None) -> None:
        self.field = field
        self.index = index
        self.name = name
        where = f"pattern #{index}"
        if name:
            where += f" ({name!r})"
        super().__init__(f"Missing property: {field!r} in {where}")


class InvalidPattern(ConfigError):
    """A pattern's regex source failed to compile under its flags."""

    def __init__(self, name: str, message: str, index: int | None = None) -> None:
        self.name = name
        self.message = message
        self.index = index
        super().__init__(f"Invalid pattern {name!r}: {message}")
