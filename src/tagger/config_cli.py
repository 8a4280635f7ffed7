"""CLI for tagger configuration.

Usage:
    tagger config list                        Show all recognised keys and defaults
    tagger config get <key>                   Print effective value
    tagger config set [--global] <key> <value>
                                              Write a config value
    tagger config reset [--global] <key>      Remove an override
    tagger config show                        Dump full effective config
    tagger config edit [--global]             Open config.toml in $EDITOR
"""

from __future__ import annotations

import argparse
import json
import os
import subprocess
import sys
from pathlib import Path

import tagger.config
import tagger.errors
import tagger.settings

_DEFAULTS = {
    "updateOn": tagger.settings.DEFAULT_UPDATE_ON,
    "include": tagger.settings.DEFAULT_INCLUDE,
    "exclude": tagger.settings.DEFAULT_EXCLUDE,
    "goToBehaviour": tagger.settings.DEFAULT_GO_TO_BEHAVIOUR,
    "statusBar.enabled": True,
    "statusBar.output": tagger.settings.DEFAULT_STATUS_BAR_OUTPUT,
    "defaultPattern.flags": tagger.settings.DEFAULT_FLAGS,
    "defaultPattern.style": {},
    "patterns": [],
}


def _format(value: object) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def cmd_list() -> int:
    """Print every recognised key with its default."""
    print(f"[{tagger.config.SECTION}]")
    for key in tagger.config.KEYS:
        print(f"  {key} = {_DEFAULTS[key]!r}")
    return 0


def cmd_get(key: str, root: Path) -> int:
    """Print the effective value for key."""
    try:
        value = tagger.config.get_effective(key, root)
    except KeyError as exc:
        print(exc.args[0], file=sys.stderr)
        return 1
    except tagger.errors.ConfigError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    print(_format(value))
    return 0


def cmd_set(key: str, value: str, *, global_flag: bool, root: Path) -> int:
    """Set a config value in the TOML file."""
    scope = "global" if global_flag else "local"
    try:
        tagger.config.set_value(key, value, scope=scope, root=root)
    except KeyError as exc:
        print(exc.args[0], file=sys.stderr)
        return 1
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    print(f"Set {key} = {value} ({scope})")
    return 0


def cmd_reset(key: str, *, global_flag: bool, root: Path) -> int:
    """Remove a config override."""
    scope = "global" if global_flag else "local"
    try:
        tagger.config.reset_value(key, scope=scope, root=root)
    except KeyError as exc:
        print(exc.args[0], file=sys.stderr)
        return 1
    print(f"Reset {key} ({scope})")
    return 0


def cmd_show(root: Path) -> int:
    """Dump the full effective config."""
    print(f"[{tagger.config.SECTION}]")
    for key in tagger.config.KEYS:
        try:
            value = tagger.config.get_effective(key, root)
        except tagger.errors.ConfigError as exc:
            print(str(exc), file=sys.stderr)
            return 1
        print(f"  {key} = {_format(value)}")
    return 0


def cmd_edit(*, global_flag: bool, root: Path) -> int:
    """Open the config TOML in the user's editor."""
    if global_flag:
        path = tagger.config._global_path()
    else:
        path = tagger.config._local_path(root)

    path.parent.mkdir(parents=True, exist_ok=True)
    if not path.exists():
        path.write_text("# Tagger configuration\n# See: tagger config list\n\n[tagger]\n")

    editor = os.environ.get("EDITOR", "vi")
    return subprocess.call([editor, str(path)])


def main(argv: list[str] | None = None) -> int:
    """Entry point for ``tagger config``."""
    parser = argparse.ArgumentParser(
        prog="tagger config",
        description="Tagger configuration.",
    )
    sub = parser.add_subparsers(dest="subcmd")

    sub.add_parser("list", help="Show all recognised keys")

    p_get = sub.add_parser("get", help="Print effective value")
    p_get.add_argument("key", help="e.g. statusBar.enabled")
    p_get.add_argument("--path", type=Path, default=Path.cwd())

    p_set = sub.add_parser("set", help="Set a config value")
    p_set.add_argument("key", help="e.g. statusBar.enabled")
    p_set.add_argument("value", help="New value (JSON for style and patterns)")
    p_set.add_argument("--global", dest="global_flag", action="store_true")
    p_set.add_argument("--path", type=Path, default=Path.cwd())

    p_reset = sub.add_parser("reset", help="Remove an override")
    p_reset.add_argument("key", help="e.g. statusBar.enabled")
    p_reset.add_argument("--global", dest="global_flag", action="store_true")
    p_reset.add_argument("--path", type=Path, default=Path.cwd())

    p_show = sub.add_parser("show", help="Dump full effective config")
    p_show.add_argument("--path", type=Path, default=Path.cwd())

    p_edit = sub.add_parser("edit", help="Open config.toml in $EDITOR")
    p_edit.add_argument("--global", dest="global_flag", action="store_true")
    p_edit.add_argument("--path", type=Path, default=Path.cwd())

    args = parser.parse_args(argv)

    if args.subcmd is None:
        parser.print_help()
        return 1

    if args.subcmd == "list":
        return cmd_list()
    elif args.subcmd == "get":
        return cmd_get(args.key, args.path)
    elif args.subcmd == "set":
        return cmd_set(
            args.key, args.value, global_flag=args.global_flag, root=args.path
        )
    elif args.subcmd == "reset":
        return cmd_reset(args.key, global_flag=args.global_flag, root=args.path)
    elif args.subcmd == "show":
        return cmd_show(args.path)
    elif args.subcmd == "edit":
        return cmd_edit(global_flag=args.global_flag, root=args.path)
    else:
        parser.print_help()
        return 1
