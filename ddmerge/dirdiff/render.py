# Copyright Red Hat
#
# ddmerge/dirdiff/render.py - Directory merge rendering
#
# This file is part of the ddmerge project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Render diff entries and hunks as display strings.
"""
from typing import Optional
from datetime import datetime
import logging
import os

from ddmerge import DdmergeIOError
from ddmerge.termcontrol import TermControl

from .difftypes import DiffType
from .engine import DiffEntry
from .filetypes import detect_file_type
from .hunks import Hunk

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

_WHITESPACE_MAP = str.maketrans(
    {
        " ": "·",  # middle dot
        "\t": "→",  # rightwards arrow
        "\n": "↵",  # downwards arrow with corner leftwards
        "\r": "␍",  # symbol for carriage return
    }
)


def _color(tc: Optional[TermControl], attr: str) -> str:
    return getattr(tc, attr) if tc else ""


def _paint(tc: Optional[TermControl], attrs: str, text: str) -> str:
    """
    Wrap ``text`` in the space separated ``TermControl`` attributes named
    by ``attrs``.
    """
    if not tc:
        return text
    prefix = "".join(_color(tc, attr) for attr in attrs.split())
    return f"{prefix}{text}{tc.NORMAL}" if prefix else text


def format_size(size: int) -> str:
    """
    Format a byte count with a binary unit suffix.

    :param size: The size in bytes.
    :type size: ``int``
    :returns: A string such as "512B", "1.5KB" or "2.0MB".
    :rtype: ``str``
    """
    if size < 2**10:
        return f"{size}B"
    if size < 2**20:
        return f"{size / 2**10:.1f}KB"
    if size < 2**30:
        return f"{size / 2**20:.1f}MB"
    return f"{size / 2**30:.1f}GB"


def visualize_whitespace(line: str) -> str:
    """
    Replace whitespace characters with visible symbols.

    :param line: The line to transform.
    :type line: ``str``
    :rtype: ``str``
    """
    return line.translate(_WHITESPACE_MAP)


def _kind_desc(is_dir: Optional[bool]) -> str:
    return "directory" if is_dir else "file"


def render_entry(
    entry: DiffEntry, index: int, total: int, tc: Optional[TermControl] = None
) -> str:
    """
    Render the banner and classification of a single diff entry.

    :param entry: The entry to render.
    :type entry: ``DiffEntry``
    :param index: The 0-based position of ``entry`` in the results.
    :type index: ``int``
    :param total: The number of entries in the results.
    :type total: ``int``
    :param tc: Optional terminal control for colored output.
    :type tc: ``Optional[TermControl]``
    :returns: The rendered lines joined by newlines.
    :rtype: ``str``
    """
    banner = _paint(tc, "CYAN BOLD", f"[{index + 1}/{total}]")
    lines = [f"{banner} {_paint(tc, 'BOLD', 'File: ' + entry.path)}"]

    if entry.diff_type == DiffType.LEFT_ONLY:
        lines.append(f"  {_paint(tc, 'YELLOW', _kind_desc(entry.left_is_dir))} (only in left)")
    elif entry.diff_type == DiffType.RIGHT_ONLY:
        lines.append(f"  {_paint(tc, 'YELLOW', _kind_desc(entry.right_is_dir))} (only in right)")
    elif entry.diff_type == DiffType.MODIFIED:
        lines.append(f"  {_paint(tc, 'YELLOW', 'modified')}")
    else:
        lines.append(
            f"  {_paint(tc, 'RED BOLD', 'Type mismatch:')} "
            f"Left is {_paint(tc, 'YELLOW', _kind_desc(entry.left_is_dir))}, "
            f"Right is {_paint(tc, 'YELLOW', _kind_desc(entry.right_is_dir))}"
        )
    return "\n".join(lines)


def render_file_info(
    path: str, side: str, tc: Optional[TermControl] = None, use_magic: bool = False
) -> str:
    """
    Render the modification time, size and type of one side of an entry.

    :param path: The file to describe.
    :type path: ``str``
    :param side: The side label, "Left" or "Right".
    :type side: ``str``
    :param tc: Optional terminal control for colored output.
    :type tc: ``Optional[TermControl]``
    :param use_magic: Describe the file type using magic.
    :type use_magic: ``bool``
    :returns: A single line description, or the empty string if ``path``
              cannot be examined.
    :rtype: ``str``
    """
    try:
        st = os.stat(path)
    except OSError:
        return ""

    mtime = datetime.fromtimestamp(st.st_mtime).strftime("%Y-%m-%d %H:%M")
    info = f"  {_paint(tc, 'CYAN', side)}: modified {mtime}, {format_size(st.st_size)}"
    if os.path.isfile(path):
        try:
            info += f", {detect_file_type(path, use_magic=use_magic).description}"
        except DdmergeIOError as err:
            _log_debug("Could not detect file type of %s: %s", path, err)
    return info


def render_hunk(
    hunk: Hunk, index: int, total: int, path: str, tc: Optional[TermControl] = None
) -> str:
    """
    Render a hunk with its range header, context and changed lines.

    Whitespace-only hunks are flagged in the banner and shown with visible
    whitespace; otherwise trailing whitespace is trimmed for display.

    :param hunk: The hunk to render.
    :type hunk: ``Hunk``
    :param index: The 0-based position of ``hunk`` in its file.
    :type index: ``int``
    :param total: The number of hunks in the file.
    :type total: ``int``
    :param path: The relative path of the file.
    :type path: ``str``
    :param tc: Optional terminal control for colored output.
    :type tc: ``Optional[TermControl]``
    :returns: The rendered lines joined by newlines.
    :rtype: ``str``
    """
    whitespace_only = hunk.is_whitespace_only

    def _show(line: str) -> str:
        return visualize_whitespace(line) if whitespace_only else line.rstrip()

    banner = (
        f"{_paint(tc, 'CYAN BOLD', f'[{index + 1}/{total}]')} "
        f"{_paint(tc, 'BOLD', 'Hunk')} in {path}"
    )
    if whitespace_only:
        banner += " " + _paint(tc, "YELLOW", "(whitespace only)")

    lines = [banner, "  " + _paint(tc, "CYAN", str(hunk))]
    lines.extend("  " + _paint(tc, "DIM", " " + _show(ln)) for ln in hunk.context_before)
    lines.extend("  " + _paint(tc, "RED", "-" + _show(ln)) for ln in hunk.left_lines)
    lines.extend("  " + _paint(tc, "GREEN", "+" + _show(ln)) for ln in hunk.right_lines)
    lines.extend("  " + _paint(tc, "DIM", " " + _show(ln)) for ln in hunk.context_after)
    return "\n".join(lines)
