"""Compiled tag patterns and regex flag translation.

Pattern flags use the single-character notation from the editor settings
(``"gi"``, ``"gm"``, ...). They are mapped onto Python ``re`` flags here:

    g   report every match (otherwise only the first one)
    i   re.IGNORECASE
    m   re.MULTILINE
    s   re.DOTALL
    u   accepted, no effect (str patterns are always unicode)
"""

from __future__ import annotations

import dataclasses
import re
from typing import Any

GLOBAL_FLAG = "g"

_FLAG_MAP = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "u": 0,
}


def translate_flags(flags: str) -> tuple[int, bool]:
    """Return ``(re_flags, global_match)`` for a flag string.

    Raises ``ValueError`` for unknown or repeated flag characters.
    """
    re_flags = 0
    global_match = False
    seen: set[str] = set()
    for ch in flags:
        if ch in seen:
            raise ValueError(f"duplicate flag {ch!r} in {flags!r}")
        seen.add(ch)
        if ch == GLOBAL_FLAG:
            global_match = True
        elif ch in _FLAG_MAP:
            re_flags |= _FLAG_MAP[ch]
        else:
            raise ValueError(f"unsupported flag {ch!r} in {flags!r}")
    return re_flags, global_match


@dataclasses.dataclass(frozen=True)
class CompiledPattern:
    """A named tag pattern, merged with the defaults and ready to match."""

    name: str
    source: str
    flags: str
    regex: re.Pattern[str]
    style: dict[str, Any]
    global_match: bool = True

    def find_all(self, text: str) -> list[tuple[int, int, str]]:
        """Return ``(start, end, matched_text)`` for each tag in *text*.

        Without the global flag only the first match is returned.
        """
        hits: list[tuple[int, int, str]] = []
        for m in self.regex.finditer(text):
            hits.append((m.start(), m.end(), m.group(0)))
            if not self.global_match:
                break
        return hits


def compile_pattern(
    name: str, source: str, flags: str, style: dict[str, Any]
) -> CompiledPattern:
    """Compile *source* under *flags*.

    Raises ``ValueError`` for bad flags and ``re.error`` for bad syntax.
    """
    re_flags, global_match = translate_flags(flags)
    return CompiledPattern(
        name=name,
        source=source,
        flags=flags,
        regex=re.compile(source, re_flags),
        style=style,
        global_match=global_match,
    )
