"""Decide whether a file or open document should be searched for tags.

All predicates are pure and never raise: a malformed exclude glob matches
nothing, so it can never hide every file from the scan.
"""

from __future__ import annotations

import functools
import glob
import logging
import re
from typing import NamedTuple, Protocol

logger = logging.getLogger("tagger.exclude")

# Numbered backup files, *settings.json, and the .vscode directory itself.
_CONFIG_FILE_RE = re.compile(r"^(?:\d+|.*settings\.json|\.vscode)$")


class DocumentLike(Protocol):
    path: str
    is_untitled: bool


class Document(NamedTuple):
    """An open editor document."""

    path: str
    is_untitled: bool = False


def _final_segment(path: str) -> str:
    return path.replace("\\", "/").rstrip("/").rsplit("/", 1)[-1]


def _normalize(path: str) -> str:
    return path.replace("\\", "/")


@functools.lru_cache(maxsize=64)
def _exclude_regex(exclude: str) -> re.Pattern[str] | None:
    # "*" stays inside one segment, "**" spans segments, dotfiles match.
    if not isinstance(exclude, str) or not exclude.strip():
        return None
    try:
        return re.compile(
            glob.translate(exclude, recursive=True, include_hidden=True, seps="/")
        )
    except (ValueError, re.error):
        logger.debug("Malformed exclude glob %r, excluding nothing", exclude)
        return None


def is_config_file(path: str) -> bool:
    """Return True if *path* looks like an editor/config file."""
    return _CONFIG_FILE_RE.fullmatch(_final_segment(path)) is not None


def is_excluded_file(path: str, exclude: str) -> bool:
    """Return True if *path* matches the *exclude* glob."""
    regex = _exclude_regex(exclude)
    if regex is None:
        return False
    return regex.match(_normalize(path)) is not None


def should_search_file(path: str, exclude: str) -> bool:
    """Return True if tags should be searched for in the file at *path*."""
    return not is_config_file(path) and not is_excluded_file(path, exclude)


def should_search_document(document: DocumentLike, exclude: str) -> bool:
    """Return True if tags should be searched for in an open *document*.

    Untitled documents have no stable path and are never searched.
    """
    return not document.is_untitled and should_search_file(document.path, exclude)
