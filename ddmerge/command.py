# Copyright Red Hat
#
# ddmerge/command.py - Directory merge command interface
#
# This file is part of the ddmerge project.
#
# SPDX-License-Identifier: Apache-2.0
"""The ``ddmerge.command`` module provides both the ddmerge command line
interface and a simple procedural interface to the ``ddmerge.dirdiff``
modules.
"""
from argparse import ArgumentParser
from typing import Optional
from os.path import basename
import logging
import sys
import os

from ddmerge import (
    DDMERGE_DEBUG_DIRDIFF,
    DDMERGE_DEBUG_SESSION,
    DDMERGE_DEBUG_COMMAND,
    DDMERGE_DEBUG_ALL,
    DDMERGE_SUBSYSTEM_COMMAND,
    DdmergeError,
    DdmergePathError,
    SubsystemFilter,
    set_debug_mask,
    ProgressAwareHandler,
    __version__,
)
from ddmerge.termcontrol import COLOR_MODES, TermControl
from ddmerge.dirdiff import (
    ConsoleDecisionSource,
    DEFAULT_CONTEXT_LINES,
    DecisionSource,
    DiffResults,
    MergeOptions,
    MergeSession,
    MergeSummary,
    compare_directories,
)

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_command(msg, *args, **kwargs):
    """A wrapper for command subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": DDMERGE_SUBSYSTEM_COMMAND}, **kwargs)


_DEFAULT_LOG_LEVEL = logging.WARNING
_CONSOLE_HANDLER = None


def _check_root(path: str, side: str):
    """
    Raise ``DdmergePathError`` unless ``path`` is an existing directory.
    """
    if not os.path.exists(path):
        raise DdmergePathError(f"{side} path does not exist: {path}")
    if not os.path.isdir(path):
        raise DdmergePathError(f"{side} path is not a directory: {path}")


def diff_directories(left: str, right: str) -> DiffResults:
    """
    Compare two directory trees.

    :param left: The left directory.
    :type left: ``str``
    :param right: The right directory.
    :type right: ``str``
    :returns: The differences between ``left`` and ``right``.
    :rtype: ``DiffResults``
    :raises: ``DdmergePathError`` if either path is not a directory.
    """
    _check_root(left, "Left")
    _check_root(right, "Right")
    return compare_directories(left, right)


def merge_directories(
    left: str,
    right: str,
    source: DecisionSource,
    options: Optional[MergeOptions] = None,
    results: Optional[DiffResults] = None,
) -> MergeSummary:
    """
    Interactively merge two directory trees.

    :param left: The left directory.
    :type left: ``str``
    :param right: The right directory.
    :type right: ``str``
    :param source: The decision source to consult.
    :type source: ``DecisionSource``
    :param options: Merge options.
    :type options: ``Optional[MergeOptions]``
    :param results: Precomputed comparison results.
    :type results: ``Optional[DiffResults]``
    :returns: The decision counts for the session.
    :rtype: ``MergeSummary``
    """
    if results is None:
        results = diff_directories(left, right)
    session = MergeSession(left, right, source, options=options)
    return session.run(results)


def print_summary(summary: MergeSummary, tc: Optional[TermControl] = None):
    """
    Print the final status line and decision counts of a merge session.

    :param summary: The session summary to print.
    :type summary: ``MergeSummary``
    :param tc: Terminal control for colored output.
    :type tc: ``Optional[TermControl]``
    """
    tc = tc or TermControl(color="never")
    color = tc.YELLOW if summary.cancelled or summary.dry_run else tc.GREEN
    print()
    print(f"{color}{summary.status}{tc.NORMAL}")
    print()
    print(tc.render("${CYAN}${BOLD}Summary:${NORMAL}"))
    counts = str(summary)
    if counts:
        print(counts)


def _merge_cmd(cmd_args):
    """
    Merge command handler.

    Compare the two directory trees and interactively reconcile every
    difference found.

    :param cmd_args: Command line arguments for the command
    :returns: integer status code returned from ``main()``
    """
    left = cmd_args.left
    right = cmd_args.right

    try:
        options = MergeOptions.from_cmd_args(cmd_args)
        options.compiled_excludes()
        _check_root(left, "Left")
        _check_root(right, "Right")
    except DdmergeError as err:
        _log_error("%s", err)
        return 1
    _log_debug_command("Merge options:\n%s", options)

    if os.path.realpath(left) == os.path.realpath(right):
        _log_error("Cannot merge %s with itself.", left)
        return 1

    results = compare_directories(left, right)
    for error in results.errors:
        _log_error("Could not compare %s", error)

    tc = TermControl(color=options.color)
    if not results:
        print("No differences found.")
        return 1 if results.errors else 0

    print(f"{tc.YELLOW}Found {len(results)} file(s) with differences.{tc.NORMAL}")

    source = ConsoleDecisionSource(
        left,
        right,
        tc=tc,
        use_magic=options.use_magic_file_type,
        skip_binary=options.skip_binary,
        handler=_CONSOLE_HANDLER,
    )
    summary = merge_directories(left, right, source, options=options, results=results)
    print_summary(summary, tc=tc)
    return 1 if summary.errors else 0


def setup_logging(cmd_args):
    """
    Set up ddmerge logging.
    """
    # pylint: disable=global-statement
    global _CONSOLE_HANDLER
    level = _DEFAULT_LOG_LEVEL
    if cmd_args.verbose and cmd_args.verbose > 1:
        level = logging.DEBUG
    elif cmd_args.verbose and cmd_args.verbose > 0:
        level = logging.INFO

    ddmerge_log = logging.getLogger("ddmerge")
    formatter = logging.Formatter("%(levelname)s - %(message)s")
    ddmerge_log.setLevel(level)
    if ddmerge_log.hasHandlers():
        ddmerge_log.handlers.clear()

    _CONSOLE_HANDLER = ProgressAwareHandler()

    _CONSOLE_HANDLER.setLevel(level)
    _CONSOLE_HANDLER.setFormatter(formatter)
    _CONSOLE_HANDLER.addFilter(SubsystemFilter("ddmerge"))

    ddmerge_log.addHandler(_CONSOLE_HANDLER)


def shutdown_logging():
    """
    Shut down ddmerge logging.
    """
    logging.shutdown()


def set_debug(debug_arg):
    """
    Set debugging mask from command line argument.
    """
    if not debug_arg:
        return

    mask_map = {
        "dirdiff": DDMERGE_DEBUG_DIRDIFF,
        "session": DDMERGE_DEBUG_SESSION,
        "command": DDMERGE_DEBUG_COMMAND,
        "all": DDMERGE_DEBUG_ALL,
    }

    mask = 0
    for name in debug_arg.split(","):
        if name not in mask_map:
            raise ValueError(f"Unknown debug option: {name}")
        mask |= mask_map[name]
    set_debug_mask(mask)


def _add_merge_args(parser):
    """
    Add the positional roots and merge options to ``parser``.
    """
    parser.add_argument("left", metavar="LEFT", type=str, help="Left directory")
    parser.add_argument("right", metavar="RIGHT", type=str, help="Right directory")
    parser.add_argument(
        "-n",
        "--dry-run",
        action="store_true",
        help="Show what would be done without making changes",
    )
    parser.add_argument(
        "-b",
        "--skip-binary",
        action="store_true",
        help="Skip binary files silently",
    )
    parser.add_argument(
        "--exclude-regex-left",
        metavar="REGEX",
        type=str,
        help="Exclude left-side paths matching REGEX",
    )
    parser.add_argument(
        "--exclude-regex-right",
        metavar="REGEX",
        type=str,
        help="Exclude right-side paths matching REGEX",
    )
    parser.add_argument(
        "-c",
        "--context",
        dest="context_lines",
        metavar="LINES",
        type=int,
        default=DEFAULT_CONTEXT_LINES,
        help=f"Number of context lines around each hunk (default {DEFAULT_CONTEXT_LINES})",
    )
    parser.add_argument(
        "--color",
        type=str,
        choices=COLOR_MODES,
        default=COLOR_MODES[0],
        help=f"Enable colored output ({', '.join(COLOR_MODES)})",
    )
    parser.add_argument(
        "-m",
        "--magic",
        dest="use_magic_file_type",
        action="store_true",
        help="Describe file types using libmagic",
    )


def main(args):
    """
    Main entry point for ddmerge.
    """
    parser = ArgumentParser(
        description="Interactive directory merge", prog=basename(args[0])
    )

    # Global arguments
    parser.add_argument(
        "-d",
        "--debug",
        metavar="DEBUGOPTS",
        type=str,
        help="A list of debug options to enable (dirdiff,session,command,all)",
    )
    parser.add_argument("-v", "--verbose", help="Enable verbose output", action="count")
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        help="Report the version number of ddmerge",
        version=__version__,
    )
    _add_merge_args(parser)

    cmd_args = parser.parse_args(args[1:])

    status = 1

    try:
        set_debug(cmd_args.debug)
    except ValueError as err:
        print(err)
        parser.print_help()
        return status

    setup_logging(cmd_args)

    _log_debug_command("Parsed %s", " ".join(args[1:]))

    if cmd_args.debug:
        status = _merge_cmd(cmd_args)
    else:
        try:
            status = _merge_cmd(cmd_args)
        except KeyboardInterrupt:  # pragma: no cover
            _log_info("Exiting on user cancel")
        # pylint: disable=broad-except
        except Exception as err:
            _log_error("Command failed: %s", err)

    shutdown_logging()
    return status


def _main():
    """
    Console script entry point.
    """
    sys.exit(main(sys.argv))


# vim: set et ts=4 sw=4 :
