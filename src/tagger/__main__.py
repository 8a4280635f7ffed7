"""Tagger CLI — tag-pattern settings and scan eligibility.

Usage:
    tagger patterns [--path DIR]              Resolve and list configured tag patterns
    tagger check PATH... [--path DIR] [--exclude GLOB] [--untitled]
                                              Show whether each path would be scanned
    tagger config <cmd>                       Configuration (list/get/set/reset/show/edit)

Add -v before the command for informational logging.
"""

from __future__ import annotations

import argparse
import json
import logging
import pathlib
import sys

import tagger.config
import tagger.config_cli
import tagger.errors
import tagger.exclude
import tagger.icons
import tagger.settings


def _make_store(root: pathlib.Path) -> tagger.settings.SettingsStore:
    icons = tagger.icons.IconCache()
    return tagger.settings.SettingsStore(
        lambda: tagger.config.load_raw(root),
        reset_hooks=[icons.reset],
    )


def _cmd_patterns(args: list[str]) -> int:
    parser = argparse.ArgumentParser(prog="tagger patterns")
    parser.add_argument("--path", type=pathlib.Path, default=pathlib.Path.cwd())
    parsed = parser.parse_args(args)

    try:
        settings = _make_store(parsed.path).load()
    except tagger.errors.ConfigError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    if not settings.patterns:
        print("No patterns configured.")
        return 0
    for pattern in settings.patterns:
        style = json.dumps(pattern.style, sort_keys=True)
        print(f"{pattern.name}: /{pattern.source}/{pattern.flags} {style}")
    return 0


def _skip_reason(path: str, exclude: str) -> str | None:
    if tagger.exclude.is_config_file(path):
        return "config file"
    if tagger.exclude.is_excluded_file(path, exclude):
        return "excluded"
    return None


def _cmd_check(args: list[str]) -> int:
    parser = argparse.ArgumentParser(prog="tagger check")
    parser.add_argument("paths", nargs="+")
    parser.add_argument("--path", type=pathlib.Path, default=pathlib.Path.cwd())
    parser.add_argument("--exclude", default=None, help="Override the exclude glob")
    parser.add_argument(
        "--untitled", action="store_true", help="Treat paths as untitled documents"
    )
    parsed = parser.parse_args(args)

    exclude = parsed.exclude
    if exclude is None:
        try:
            exclude = tagger.config.load(parsed.path).exclude
        except tagger.errors.ConfigError as exc:
            print(str(exc), file=sys.stderr)
            return 1

    for path in parsed.paths:
        doc = tagger.exclude.Document(path, is_untitled=parsed.untitled)
        if tagger.exclude.should_search_document(doc, exclude):
            print(f"scan  {path}")
        elif parsed.untitled:
            print(f"skip  {path} (untitled)")
        else:
            print(f"skip  {path} ({_skip_reason(path, exclude)})")
    return 0


def _cmd_config(args: list[str]) -> int:
    return tagger.config_cli.main(args)


def main() -> None:
    args = sys.argv[1:]
    verbose = False
    while args and args[0] in ("-v", "--verbose"):
        verbose = True
        args = args[1:]

    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
    )

    if not args:
        print(__doc__)
        sys.exit(1)

    cmd = args[0]
    rest = args[1:]

    if cmd == "patterns":
        sys.exit(_cmd_patterns(rest))
    elif cmd == "check":
        sys.exit(_cmd_check(rest))
    elif cmd == "config":
        sys.exit(_cmd_config(rest))
    else:
        print(__doc__)
        sys.exit(1)


if __name__ == "__main__":
    main()
