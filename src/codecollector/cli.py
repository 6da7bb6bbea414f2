"""
CLI entrypoint for codecollector package.
"""
import argparse
import sys
from pathlib import Path
from typing import List, Optional

from colorama import Fore, Style, init as colorama_init

from . import __version__
from .clipboard import ClipboardSink, PyperclipSink
from .core import (
    load_extra_excludes,
    parse_extensions,
    run,
    ClipboardUnavailable,
    ConfigFileError,
    NotADirectory,
)

colorama_init()


def _say(msg: str, color: str = "", err: bool = False) -> None:
    stream = sys.stderr if err else sys.stdout
    if color:
        msg = color + msg + Style.RESET_ALL
    print(msg, file=stream)


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="codecollector",
        description="Collect code files into a buffer and copy it to the clipboard.",
    )
    p.add_argument("directory", type=Path, help="The directory to process")
    p.add_argument(
        "-e",
        "--extensions",
        action="append",
        metavar="EXT",
        help="File extensions to include, comma-separated (e.g. rs,py). Repeatable.",
    )
    p.add_argument(
        "-x",
        "--exclude-dirs",
        action="append",
        metavar="DIR",
        help="Directory names to skip, comma-separated. Repeatable.",
    )
    p.add_argument(
        "--config",
        type=Path,
        help="Path to a file with extra directory names to skip (one per line)",
    )
    p.add_argument("--hidden", action="store_true", help="Include hidden files and directories")
    p.add_argument(
        "--no-follow-links",
        dest="follow_links",
        action="store_false",
        help="Do not descend into symlinked directories",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None, sink: Optional[ClipboardSink] = None) -> None:
    try:
        ns = _parse_args(argv)
        root: Path = ns.directory

        excludes: List[str] = []
        for value in ns.exclude_dirs or ():
            excludes.extend(v for v in value.split(",") if v.strip())
        if ns.config:
            try:
                excludes.extend(load_extra_excludes(ns.config.resolve()))
                if ns.verbose:
                    _say(f"[codecollector] Loaded extra excludes from {ns.config}")
            except ConfigFileError as e:
                _say(f"Error: {e}", Fore.RED, err=True)
                sys.exit(1)

        filter_spec = parse_extensions(ns.extensions)
        _say(f"Processing directory: {root}")
        if ns.verbose:
            wanted = ", ".join(sorted(filter_spec)) if filter_spec else "all"
            _say(f"[codecollector] Extensions: {wanted}")

        try:
            result = run(
                root,
                filter_spec,
                sink or PyperclipSink(),
                exclude_dirs=excludes,
                include_hidden=ns.hidden,
                follow_links=ns.follow_links,
            )
        except NotADirectory as e:
            _say(f"Error: {e}", Fore.RED, err=True)
            sys.exit(1)
        except ClipboardUnavailable as e:
            _say(f"Clipboard error: {e}", Fore.RED, err=True)
            sys.exit(1)

        for w in result.warnings:
            _say(f"[codecollector] ! {w}", Fore.YELLOW, err=True)

        if not result.copied:
            _say(
                "[codecollector] No files matched; clipboard left unchanged.",
                Fore.YELLOW,
                err=True,
            )
            return

        _say("Copied files tree:")
        _say(result.tree_text)
        _say(
            f"Code buffer has been copied to the clipboard "
            f"({len(result.copied)} files, {len(result.buffer)} characters).",
            Fore.GREEN,
        )

    except KeyboardInterrupt:
        _say("\nCancelled.", err=True)
        sys.exit(130)
    except Exception as e:
        _say(f"Unexpected error: {e}", Fore.RED, err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
