"""Command-line front door for trambar-deco.

Parses CLI options, locates the repository and prints component data.
Unless told otherwise it then watches the repository and prints one
``change`` line per notification until interrupted.
"""

from __future__ import annotations

import argparse
import json
import sys
import threading
from pathlib import Path

from .config import DecoConfig, load_watch_enabled, resolve_language, resolve_log_level
from .errors import DecoError
from .logging_setup import configure_logging
from .workspace import Workspace


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="trambar-deco",
        description="Generates preview of component descriptions.",
    )
    parser.add_argument("path", nargs="?", default=None, help="Folder to describe. Defaults to current directory.")
    parser.add_argument("-j", "--json", action="store_true", help="Output component information in flat JSON form and exit.")
    parser.add_argument("--tree", action="store_true", help="Output the folder tree with component ids and exit.")
    parser.add_argument("--lang", default=None, help="Default two-letter language code for descriptions.")
    parser.add_argument("--no-watch", action="store_true", help="Do not monitor folders for changes.")
    parser.add_argument("--log-level", default=None, help="Logging level (default: WARNING).")
    return parser


def _print_json(data: dict[str, object]) -> None:
    sys.stdout.write(json.dumps(data, indent=2) + "\n")
    sys.stdout.flush()


def _print_change(message: str) -> None:
    sys.stdout.write(message + "\n")
    sys.stdout.flush()


def watch_until_interrupted(workspace: Workspace, stop_event: threading.Event | None = None) -> None:
    """Print change notifications until ``stop_event`` is set or Ctrl-C."""
    stop = stop_event if stop_event is not None else threading.Event()
    unsubscribe = workspace.notifier.subscribe(_print_change)
    workspace.start_watch()
    try:
        while not stop.wait(0.5):
            pass
    except KeyboardInterrupt:
        pass
    finally:
        unsubscribe()
        workspace.stop_watch()


def main(argv: list[str] | None = None, default_path: Path | None = None) -> None:
    """Parse CLI arguments and describe the repository enclosing the target folder.

    ``default_path`` is primarily for tests; when omitted the current working
    directory is used.
    """
    args = build_parser().parse_args(argv)
    settings = DecoConfig(
        start_path=Path(args.path) if args.path is not None else (default_path or Path.cwd()),
        language=resolve_language(args.lang),
        watch=not args.no_watch and load_watch_enabled(),
        log_level=resolve_log_level(args.log_level),
    )
    configure_logging(settings.log_level)

    start = settings.start_path
    try:
        workspace = Workspace.discover(start, language=settings.language)
    except DecoError as exc:
        sys.stderr.write(f"{exc}\n")
        raise SystemExit(exc.exit_code) from exc

    if args.json:
        _print_json(workspace.describe_flat(start))
        return
    _print_json(workspace.describe_tree(start))
    if args.tree or not settings.watch:
        return
    watch_until_interrupted(workspace)


if __name__ == "__main__":
    main()
