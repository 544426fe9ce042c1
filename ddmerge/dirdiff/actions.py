# Copyright Red Hat
#
# ddmerge/dirdiff/actions.py - Directory merge file actions
#
# This file is part of the ddmerge project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Apply path-level decisions and persist reconciled file contents.
"""
from typing import Tuple
import logging
import tempfile
import shutil
import stat
import os

from ddmerge import (
    DDMERGE_SUBSYSTEM_DIRDIFF,
    DdmergeArgumentError,
    DdmergeIOError,
)

from .difftypes import DiffType, FileAction
from .engine import DiffEntry

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_dirdiff(msg, *args, **kwargs):
    """A wrapper for dirdiff subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": DDMERGE_SUBSYSTEM_DIRDIFF}, **kwargs)


def _copy_entry(src: str, dst: str):
    """
    Copy a file, symbolic link or directory tree from ``src`` to ``dst``,
    creating missing parent directories of ``dst``.
    """
    try:
        os.makedirs(os.path.dirname(dst) or ".", exist_ok=True)
        if os.path.isdir(src) and not os.path.islink(src):
            shutil.copytree(src, dst, symlinks=True)
        else:
            shutil.copy2(src, dst, follow_symlinks=False)
    except OSError as err:
        raise DdmergeIOError(src, err, action=f"copy to {dst}") from err
    _log_debug_dirdiff("Copied %s to %s", src, dst)


def _remove_entry(path: str):
    """
    Remove a file, symbolic link or directory tree at ``path``. A path
    that does not exist is ignored.
    """
    try:
        if os.path.isdir(path) and not os.path.islink(path):
            shutil.rmtree(path)
        elif os.path.lexists(path):
            os.unlink(path)
    except OSError as err:
        raise DdmergeIOError(path, err, action="remove") from err
    _log_debug_dirdiff("Removed %s", path)


_ONE_SIDED_ACTIONS = (FileAction.COPY, FileAction.DELETE, FileAction.SKIP)
_MISMATCH_ACTIONS = (FileAction.USE_LEFT, FileAction.USE_RIGHT, FileAction.SKIP)


def entry_actions(entry: DiffEntry) -> Tuple[FileAction, ...]:
    """
    Return the path-level actions that apply to ``entry``.

    :param entry: The difference to act on.
    :type entry: ``DiffEntry``
    :returns: The applicable actions; empty for modified file pairs, which
              are resolved hunk by hunk.
    :rtype: ``Tuple[FileAction, ...]``
    """
    if entry.is_one_sided:
        return _ONE_SIDED_ACTIONS
    if entry.diff_type == DiffType.TYPE_MISMATCH:
        return _MISMATCH_ACTIONS
    return ()


def apply_file_action(
    entry: DiffEntry, action: FileAction, left_root: str, right_root: str
):
    """
    Apply a path-level decision to the two trees.

    One-sided entries accept ``COPY`` (to the other tree), ``DELETE``
    (from the tree that has the path) and ``SKIP``. Type mismatches
    accept ``USE_LEFT`` (replace the right path with a copy of the left),
    ``USE_RIGHT`` (the reverse) and ``SKIP``.

    :param entry: The difference to act on.
    :type entry: ``DiffEntry``
    :param action: The decision to apply.
    :type action: ``FileAction``
    :param left_root: The left comparison root.
    :type left_root: ``str``
    :param right_root: The right comparison root.
    :type right_root: ``str``
    :raises: ``DdmergeArgumentError`` if ``action`` does not apply to
             ``entry``; ``DdmergeIOError`` if a file operation fails.
    """
    if action == FileAction.SKIP:
        return

    left_path = os.path.join(left_root, entry.path)
    right_path = os.path.join(right_root, entry.path)

    if entry.diff_type == DiffType.LEFT_ONLY and action == FileAction.COPY:
        _copy_entry(left_path, right_path)
    elif entry.diff_type == DiffType.LEFT_ONLY and action == FileAction.DELETE:
        _remove_entry(left_path)
    elif entry.diff_type == DiffType.RIGHT_ONLY and action == FileAction.COPY:
        _copy_entry(right_path, left_path)
    elif entry.diff_type == DiffType.RIGHT_ONLY and action == FileAction.DELETE:
        _remove_entry(right_path)
    elif entry.diff_type == DiffType.TYPE_MISMATCH and action == FileAction.USE_LEFT:
        _remove_entry(right_path)
        _copy_entry(left_path, right_path)
    elif entry.diff_type == DiffType.TYPE_MISMATCH and action == FileAction.USE_RIGHT:
        _remove_entry(left_path)
        _copy_entry(right_path, left_path)
    else:
        raise DdmergeArgumentError(
            f"Action {action.value} does not apply to {entry.diff_type.value} "
            f"entry {entry.path}"
        )
    _log_info("Applied %s to %s", action.value, entry)


def write_text(path: str, text: str):
    """
    Atomically replace the content of ``path`` with ``text``.

    The text is written to a temporary file in the same directory, synced,
    and renamed over ``path``, so the file always holds either the old or
    the new content in full. An existing file's permission bits are
    preserved. A symbolic link is followed and its target rewritten.

    :param path: The file to replace.
    :type path: ``str``
    :param text: The new content, written as UTF-8 without newline
                 translation.
    :type text: ``str``
    :raises: ``DdmergeIOError`` if the file cannot be written.
    """
    target = os.path.realpath(path)
    dir_name = os.path.dirname(target)
    try:
        mode = stat.S_IMODE(os.stat(target).st_mode)
    except FileNotFoundError:
        mode = None
    except OSError as err:
        raise DdmergeIOError(path, err, action="stat") from err

    try:
        fd, tmp_path = tempfile.mkstemp(dir=dir_name, prefix=".tmp_", text=True)
    except OSError as err:
        raise DdmergeIOError(path, err, action="create temporary file for") from err

    try:
        with os.fdopen(fd, "w", encoding="utf8", newline="") as f:
            f.write(text)
            f.flush()
            os.fdatasync(f.fileno())
        if mode is not None:
            os.chmod(tmp_path, mode)
        os.rename(tmp_path, target)
    except OSError as err:
        if os.path.lexists(tmp_path):
            os.unlink(tmp_path)
        raise DdmergeIOError(path, err, action="write") from err


def write_merged(left_path: str, right_path: str, left_text: str, right_text: str):
    """
    Rewrite both files of a modified pair in full.

    :param left_path: The left file.
    :type left_path: ``str``
    :param right_path: The right file.
    :type right_path: ``str``
    :param left_text: The new left content.
    :type left_text: ``str``
    :param right_text: The new right content.
    :type right_text: ``str``
    :raises: ``DdmergeIOError`` if either file cannot be written.
    """
    write_text(left_path, left_text)
    write_text(right_path, right_text)
    _log_debug_dirdiff("Rewrote %s and %s", left_path, right_path)
