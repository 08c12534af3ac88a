"""Command-line entry point for pytree."""

import argparse
import locale
import logging
import os
import pwd
import sys
from pathlib import Path

from pytree.config import DEFAULT_ROOT_PID, VERSION
from pytree.errors import PytreeError
from pytree.forest import ProcessForest
from pytree.logging_config import logger, set_level
from pytree.models import RenderOptions, SortMode, SymbolSet
from pytree.monitor import collect_records
from pytree.render import TreeRenderer
from pytree.terminal import detect_symbol_set, detect_width, emphasis_sequences

WAIT_PROGRAM_NAME = "pytree.x11"


def build_parser() -> argparse.ArgumentParser:
    """Build the pstree-compatible argument parser."""
    parser = argparse.ArgumentParser(
        prog="pytree",
        description="Display a tree of processes.",
        add_help=False,
    )
    parser.add_argument("--help", action="help", help="show this help message and exit")
    parser.add_argument("-a", dest="show_arguments", action="store_true",
                        help="show command line arguments")
    parser.add_argument("-A", dest="symbol_set", action="store_const", const=SymbolSet.ASCII,
                        help="use ASCII line drawing characters")
    parser.add_argument("-c", dest="compact", action="store_false",
                        help="don't compact identical subtrees")
    parser.add_argument("-G", dest="symbol_set", action="store_const", const=SymbolSet.VT100,
                        help="use VT100 line drawing characters")
    parser.add_argument("-h", dest="highlight_self", action="store_true",
                        help="highlight current process and its ancestors")
    parser.add_argument("-H", dest="highlight_pid", type=int, metavar="PID",
                        help='highlight process "PID" and its ancestors')
    parser.add_argument("-l", dest="truncate", action="store_false",
                        help="don't truncate long lines")
    parser.add_argument("-n", dest="sort_by_pid", action="store_true",
                        help="sort output by PID")
    parser.add_argument("-p", dest="show_pids", action="store_true",
                        help="show PIDs; implies -c")
    parser.add_argument("-u", dest="show_owner_transitions", action="store_true",
                        help="show uid transitions")
    parser.add_argument("-U", dest="symbol_set", action="store_const", const=SymbolSet.UTF8,
                        help="use UTF-8 (Unicode) line drawing characters")
    parser.add_argument("-V", dest="version", action="store_true",
                        help="display version information")
    parser.add_argument("-i", "--interactive", action="store_true",
                        help="open the auto-refreshing tree viewer")
    parser.add_argument("--debug", action="store_true", help="log debug messages to stderr")
    parser.add_argument("target", nargs="?", metavar="pid|user",
                        help="start at pid (default 1), or show only trees of that user")
    return parser


def print_version() -> None:
    print(f"pytree {VERSION}", file=sys.stderr)
    print(
        "pytree comes with ABSOLUTELY NO WARRANTY.\n"
        "This is free software, and you are welcome to redistribute it under\n"
        "the terms of the GNU General Public License.",
        file=sys.stderr,
    )


def resolve_target(parser: argparse.ArgumentParser, target: str | None) -> tuple[int, int | None]:
    """
    Interpret the positional argument.

    Returns the start pid and the owner uid to filter on (None for a
    single rooted tree). Exits on an unknown user or an invalid pid.
    """
    if target is None:
        return DEFAULT_ROOT_PID, None
    if target[0].isdigit():
        try:
            pid = int(target)
        except ValueError:
            parser.error(f"invalid pid: {target}")
        if pid == 0:
            parser.error("pid must be positive")
        return pid, None
    try:
        return DEFAULT_ROOT_PID, pwd.getpwnam(target).pw_uid
    except KeyError:
        print(f"No such user name: {target}", file=sys.stderr)
        sys.exit(1)


def build_options(args: argparse.Namespace, filter_owner: int | None) -> RenderOptions:
    """Turn parsed arguments into render options."""
    symbol_set = args.symbol_set if args.symbol_set is not None else detect_symbol_set()
    return RenderOptions(
        compact=args.compact and not args.show_pids,
        show_arguments=args.show_arguments,
        show_pids=args.show_pids,
        show_owner_transitions=args.show_owner_transitions,
        sort_mode=SortMode.PID if args.sort_by_pid else SortMode.NAME,
        truncate=args.truncate,
        width=detect_width(),
        symbol_set=symbol_set,
        filter_owner=filter_owner,
    )


def run_tree(options: RenderOptions, root_pid: int, emphasis: tuple[str, str] | None) -> int:
    """Sample the process table and print it. Returns the exit status."""
    forest = ProcessForest(options.sort_mode)
    forest.add_records(collect_records(with_args=options.show_arguments))
    renderer = TreeRenderer(options, emphasis=emphasis)

    if options.filter_owner is not None:
        if not renderer.render_by_owner(forest, options.filter_owner):
            print("No processes found.", file=sys.stderr)
            return 1
        return 0

    if options.highlight_pid is not None:
        forest.highlight_path(options.highlight_pid)
    root = forest.find(root_pid)
    if root is None:
        print(f"No such process: {root_pid}", file=sys.stderr)
        return 1
    renderer.render(root)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point for pytree. Returns the exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.debug:
        set_level(logging.DEBUG)
    if args.version:
        print_version()
        return 0
    if args.highlight_self and args.highlight_pid is not None:
        parser.error("-h and -H are mutually exclusive")
    if args.highlight_pid is not None and args.highlight_pid <= 0:
        parser.error("-H needs a positive pid")

    try:
        locale.setlocale(locale.LC_ALL, "")
    except locale.Error as exc:
        logger.debug("locale not supported: %s", exc)

    root_pid, filter_owner = resolve_target(parser, args.target)
    options = build_options(args, filter_owner)

    try:
        emphasis = None
        if args.highlight_pid is not None:
            emphasis = emphasis_sequences(required=True)
            options.highlight_pid = args.highlight_pid
        elif args.highlight_self:
            emphasis = emphasis_sequences()
            if emphasis is not None:
                options.highlight_pid = os.getpid()

        if args.interactive:
            from pytree.app import PytreeApp

            PytreeApp(options, root_pid=root_pid).run()
            return 0

        status = run_tree(options, root_pid, emphasis)
    except PytreeError as exc:
        print(exc, file=sys.stderr)
        return 1

    if Path(sys.argv[0]).name == WAIT_PROGRAM_NAME:
        print("Press return to close", file=sys.stderr)
        sys.stdin.readline()
    return status


def run() -> None:
    """Console script wrapper."""
    sys.exit(main())


if __name__ == "__main__":
    run()
