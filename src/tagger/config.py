"""TOML-backed tagger configuration.

Raw settings live under a ``[tagger]`` table and are merged
global → local, key by key:

    ~/.config/tagger/config.toml     global (user-wide)
    .tagger/config.toml              local  (project-specific)

Only the keys in ``tagger.settings.RAW_KEYS`` are recognised. Nested tables
are flattened to dotted keys (``[tagger.statusBar] enabled = false`` becomes
``statusBar.enabled``) before merging, so a local file can override a single
status-bar field without restating the rest.
"""

from __future__ import annotations

import json
import logging
import pathlib
import tomllib
from typing import Any

import tagger.settings

logger = logging.getLogger("tagger.config")

SECTION = "tagger"

KEYS = tuple(tagger.settings.RAW_KEYS)

_BOOL_KEYS = {"statusBar.enabled"}
_JSON_KEYS = {"defaultPattern.style", "patterns"}


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

def _global_path() -> pathlib.Path:
    return pathlib.Path.home() / ".config" / "tagger" / "config.toml"


def _local_path(root: pathlib.Path) -> pathlib.Path:
    return root / ".tagger" / "config.toml"


def _find_root(root: pathlib.Path | None = None) -> pathlib.Path:
    """Locate the project root (nearest .git or .tagger ancestor, or cwd)."""
    if root is not None:
        return root
    cwd = pathlib.Path.cwd()
    for candidate in (cwd, *cwd.parents):
        if (candidate / ".git").exists() or (candidate / ".tagger").is_dir():
            return candidate
    return cwd


# ---------------------------------------------------------------------------
# TOML I/O
# ---------------------------------------------------------------------------

def _load_toml(path: pathlib.Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        return tomllib.loads(path.read_text())
    except (OSError, tomllib.TOMLDecodeError):
        logger.warning("Could not read %s, ignoring it", path)
        return {}


def _write_toml(path: pathlib.Path, data: dict[str, Any]) -> None:
    import tomli_w

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(tomli_w.dumps(data).encode())


def _flatten(table: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    """Flatten nested tables down to the known dotted keys."""
    flat: dict[str, Any] = {}
    for k, v in table.items():
        key = f"{prefix}{k}"
        if key in KEYS:
            flat[key] = v
        elif isinstance(v, dict) and any(x.startswith(key + ".") for x in KEYS):
            flat.update(_flatten(v, key + "."))
        else:
            logger.debug("Ignoring unknown config key: %s", key)
    return flat


# ---------------------------------------------------------------------------
# Type coercion
# ---------------------------------------------------------------------------

def _coerce(key: str, value: str) -> Any:
    """Coerce a CLI string for *key*."""
    if key in _BOOL_KEYS:
        return value.lower() in ("true", "1", "yes")
    if key in _JSON_KEYS:
        try:
            return json.loads(value)
        except json.JSONDecodeError as exc:
            raise ValueError(f"{key} expects JSON: {exc}") from exc
    return value


def _check_key(key: str) -> None:
    if key not in KEYS:
        raise KeyError(f"Unknown key: {key}")


# ---------------------------------------------------------------------------
# Core API
# ---------------------------------------------------------------------------

def load_raw(root: pathlib.Path | None = None) -> dict[str, Any]:
    """Return raw settings as dotted keys, merging global → local."""
    root = _find_root(root)

    global_data = _flatten(_load_toml(_global_path()).get(SECTION, {}))
    local_data = _flatten(_load_toml(_local_path(root)).get(SECTION, {}))

    return {**global_data, **local_data}


def load(root: pathlib.Path | None = None) -> tagger.settings.ResolvedSettings:
    """Load and resolve the settings for *root*."""
    return tagger.settings.resolve(load_raw(root))


def get_effective(key: str, root: pathlib.Path | None = None) -> Any:
    """Get the effective (resolved) value for a single key."""
    _check_key(key)
    resolved = load(root)
    if key == "statusBar.enabled":
        return resolved.status_bar.enabled
    if key == "statusBar.output":
        return resolved.status_bar.output
    if key == "defaultPattern.flags":
        return resolved.default_pattern.flags
    if key == "defaultPattern.style":
        return resolved.default_pattern.style
    if key == "patterns":
        return [
            {"name": p.name, "pattern": p.source, "flags": p.flags, "style": p.style}
            for p in resolved.patterns
        ]
    return getattr(resolved, tagger.settings.RAW_KEYS[key])


def set_value(
    key: str,
    value: Any,
    *,
    scope: str = "local",
    root: pathlib.Path | None = None,
) -> None:
    """Write a config value to the appropriate TOML file."""
    _check_key(key)
    if isinstance(value, str):
        value = _coerce(key, value)

    root = _find_root(root)
    path = _global_path() if scope == "global" else _local_path(root)
    data = _load_toml(path)
    node = data.setdefault(SECTION, {})
    *parents, leaf = key.split(".")
    for part in parents:
        node = node.setdefault(part, {})
    node[leaf] = value
    _write_toml(path, data)


def reset_value(
    key: str,
    *,
    scope: str = "local",
    root: pathlib.Path | None = None,
) -> None:
    """Remove a config override from the TOML file."""
    _check_key(key)
    root = _find_root(root)
    path = _global_path() if scope == "global" else _local_path(root)
    data = _load_toml(path)

    parts = [SECTION, *key.split(".")]
    trail = [data]
    for part in parts[:-1]:
        child = trail[-1].get(part)
        if not isinstance(child, dict):
            return
        trail.append(child)
    if parts[-1] not in trail[-1]:
        return
    del trail[-1][parts[-1]]

    # Drop tables left empty by the removal.
    for parent, part in zip(reversed(trail[:-1]), reversed(parts[:-1])):
        if parent[part]:
            break
        del parent[part]
    _write_toml(path, data)
