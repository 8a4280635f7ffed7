"""Resolve raw tagger configuration into an immutable settings snapshot.

Raw values come from whatever the host hands us: any field may be missing,
empty or of the wrong type. ``resolve()`` applies the documented defaults,
validates every pattern entry, merges it onto the default pattern and
compiles it. Resolution is all-or-nothing: the first bad entry raises a
``ConfigError`` and no settings are produced.

``SettingsStore`` owns the current snapshot and replaces it wholesale on
each successful update.
"""

from __future__ import annotations

import copy
import dataclasses
import logging
import re
import threading
from collections.abc import Callable, Mapping
from typing import Any

import tagger.errors
import tagger.patterns

logger = logging.getLogger("tagger.settings")

DEFAULT_UPDATE_ON = "change"
DEFAULT_INCLUDE = "**/*"
DEFAULT_EXCLUDE = "**/node_modules/*"
DEFAULT_GO_TO_BEHAVIOUR = "end"
DEFAULT_STATUS_BAR_OUTPUT = "$(tag) {all}"
DEFAULT_FLAGS = "g"

# Host key -> RawConfigSnapshot field.
RAW_KEYS = {
    "updateOn": "update_on",
    "include": "include",
    "exclude": "exclude",
    "goToBehaviour": "go_to_behaviour",
    "statusBar.enabled": "status_bar_enabled",
    "statusBar.output": "status_bar_output",
    "defaultPattern.flags": "default_flags",
    "defaultPattern.style": "default_style",
    "patterns": "patterns",
}


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------

@dataclasses.dataclass(frozen=True)
class RawConfigSnapshot:
    """Untyped configuration values as read from the host."""

    update_on: Any = None
    include: Any = None
    exclude: Any = None
    go_to_behaviour: Any = None
    status_bar_enabled: Any = None
    status_bar_output: Any = None
    default_flags: Any = None
    default_style: Any = None
    patterns: Any = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> RawConfigSnapshot:
        """Build a snapshot from flat dotted keys or nested tables."""
        kwargs = {}
        for key, field in RAW_KEYS.items():
            value = _lookup(data, key)
            if value is not None:
                kwargs[field] = value
        return cls(**kwargs)


@dataclasses.dataclass(frozen=True)
class StatusBarSpec:
    enabled: bool = True
    output: str = DEFAULT_STATUS_BAR_OUTPUT


@dataclasses.dataclass(frozen=True)
class DefaultPatternSpec:
    flags: str = DEFAULT_FLAGS
    style: dict[str, Any] = dataclasses.field(default_factory=dict)


@dataclasses.dataclass(frozen=True)
class ResolvedSettings:
    """Fully merged, validated settings consumed by the scan pass."""

    update_on: str = DEFAULT_UPDATE_ON
    include: str = DEFAULT_INCLUDE
    exclude: str = DEFAULT_EXCLUDE
    go_to_behaviour: str = DEFAULT_GO_TO_BEHAVIOUR
    status_bar: StatusBarSpec = dataclasses.field(default_factory=StatusBarSpec)
    default_pattern: DefaultPatternSpec = dataclasses.field(
        default_factory=DefaultPatternSpec
    )
    patterns: tuple[tagger.patterns.CompiledPattern, ...] = ()


# ---------------------------------------------------------------------------
# Raw value helpers
# ---------------------------------------------------------------------------

def _lookup(data: Mapping[str, Any], key: str) -> Any:
    """Return ``data[key]``, falling back to walking nested tables."""
    if key in data:
        return data[key]
    node: Any = data
    for part in key.split("."):
        if not isinstance(node, Mapping) or part not in node:
            return None
        node = node[part]
    return node


def _string(value: Any, default: str, key: str) -> str:
    if value is None:
        return default
    if not isinstance(value, str):
        logger.warning("Ignoring %s: expected a string, got %r", key, value)
        return default
    return value or default


def _enabled(value: Any) -> bool:
    # Unset means enabled; an explicit False must survive.
    if value is None:
        return True
    if not isinstance(value, bool):
        logger.warning("Ignoring statusBar.enabled: expected a boolean, got %r", value)
        return True
    return value


def _style(value: Any, key: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        logger.warning("Ignoring %s: expected a table, got %r", key, value)
        return {}
    return dict(value)


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------

def _compile_entry(
    index: int, entry: Any, default: DefaultPatternSpec
) -> tagger.patterns.CompiledPattern:
    if not isinstance(entry, Mapping):
        raise tagger.errors.MissingField("name", index)

    name = entry.get("name")
    if not isinstance(name, str) or not name:
        raise tagger.errors.MissingField("name", index)

    source = entry.get("pattern")
    if not isinstance(source, str) or not source:
        raise tagger.errors.MissingField("pattern", index, name)

    flags = entry.get("flags")
    if not isinstance(flags, str) or not flags:
        flags = default.flags

    own_style = entry.get("style")
    if not isinstance(own_style, Mapping):
        own_style = {}
    style = copy.deepcopy({**default.style, **own_style})

    try:
        return tagger.patterns.compile_pattern(name, source, flags, style)
    except (re.error, ValueError) as exc:
        raise tagger.errors.InvalidPattern(name, str(exc), index) from exc


def resolve(raw: RawConfigSnapshot | Mapping[str, Any]) -> ResolvedSettings:
    """Validate and merge *raw* into a new ``ResolvedSettings``.

    Raises ``MissingField`` or ``InvalidPattern`` on the first bad pattern.
    """
    if not isinstance(raw, RawConfigSnapshot):
        raw = RawConfigSnapshot.from_mapping(raw)

    default = DefaultPatternSpec(
        flags=_string(raw.default_flags, DEFAULT_FLAGS, "defaultPattern.flags"),
        style=_style(raw.default_style, "defaultPattern.style"),
    )

    entries = raw.patterns
    if entries is None:
        entries = []
    elif not isinstance(entries, (list, tuple)):
        logger.warning("Ignoring patterns: expected a list, got %r", entries)
        entries = []

    compiled = tuple(
        _compile_entry(index, entry, default) for index, entry in enumerate(entries)
    )

    return ResolvedSettings(
        update_on=_string(raw.update_on, DEFAULT_UPDATE_ON, "updateOn"),
        include=_string(raw.include, DEFAULT_INCLUDE, "include"),
        exclude=_string(raw.exclude, DEFAULT_EXCLUDE, "exclude"),
        go_to_behaviour=_string(
            raw.go_to_behaviour, DEFAULT_GO_TO_BEHAVIOUR, "goToBehaviour"
        ),
        status_bar=StatusBarSpec(
            enabled=_enabled(raw.status_bar_enabled),
            output=_string(
                raw.status_bar_output, DEFAULT_STATUS_BAR_OUTPUT, "statusBar.output"
            ),
        ),
        default_pattern=DefaultPatternSpec(
            flags=default.flags, style=copy.deepcopy(default.style)
        ),
        patterns=compiled,
    )


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class SettingsStore:
    """Own the current ``ResolvedSettings`` and swap it on every update.

    *loader* returns the raw configuration (a mapping or a
    ``RawConfigSnapshot``). Reset hooks run after each successful swap, so
    caches keyed by pattern name never outlive the patterns they describe.
    """

    def __init__(
        self,
        loader: Callable[[], RawConfigSnapshot | Mapping[str, Any]],
        *,
        reset_hooks: list[Callable[[], None]] | None = None,
    ) -> None:
        self._loader = loader
        self._reset_hooks = list(reset_hooks or [])
        self._lock = threading.Lock()
        self._current: ResolvedSettings | None = None

    @property
    def current(self) -> ResolvedSettings | None:
        return self._current

    def add_reset_hook(self, hook: Callable[[], None]) -> None:
        self._reset_hooks.append(hook)

    def load(self) -> ResolvedSettings:
        """Resolve the initial settings."""
        logger.info("Creating settings...")
        return self._apply()

    def update(self) -> ResolvedSettings:
        """Re-resolve after a configuration change.

        On failure the error is logged and re-raised; the previous
        snapshot stays active.
        """
        logger.info("Updating settings...")
        return self._apply()

    def _apply(self) -> ResolvedSettings:
        with self._lock:
            try:
                resolved = resolve(self._loader())
            except tagger.errors.ConfigError as exc:
                logger.error("%s", exc)
                raise
            self._current = resolved
            # The new snapshot is already live; a failing hook must not
            # look like a failed resolve to the caller.
            for hook in self._reset_hooks:
                try:
                    hook()
                except Exception:
                    logger.exception("Reset hook %r failed", hook)
        logger.info("Loaded %d pattern(s)", len(resolved.patterns))
        return resolved
