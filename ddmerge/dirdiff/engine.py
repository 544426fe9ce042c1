# Copyright Red Hat
#
# ddmerge/dirdiff/engine.py - Directory merge diff engine
#
# This file is part of the ddmerge project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Directory comparison engine
"""
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple
from dataclasses import dataclass
import errno
import logging
import json
import stat
import os

from ddmerge import DDMERGE_SUBSYSTEM_DIRDIFF, DdmergeIOError

from .difftypes import DiffType
from .filecompare import identical
from .treewalk import TreeWalker, path_key

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_dirdiff(msg, *args, **kwargs):
    """A wrapper for dirdiff subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": DDMERGE_SUBSYSTEM_DIRDIFF}, **kwargs)


_ONE_SIDED = (DiffType.LEFT_ONLY, DiffType.RIGHT_ONLY)


@dataclass(frozen=True)
class DiffEntry:
    """
    A single path-level difference between two directory trees.

    ``left_is_dir`` and ``right_is_dir`` are ``None`` for a side on which
    the path does not exist.
    """

    #: The path relative to both comparison roots
    path: str
    #: The kind of difference
    diff_type: DiffType
    #: Whether the left side is a directory (``None`` if absent)
    left_is_dir: Optional[bool] = None
    #: Whether the right side is a directory (``None`` if absent)
    right_is_dir: Optional[bool] = None

    @classmethod
    def left_only(cls, path: str, is_dir: bool) -> "DiffEntry":
        """Return a new ``LEFT_ONLY`` entry."""
        return cls(path, DiffType.LEFT_ONLY, left_is_dir=is_dir)

    @classmethod
    def right_only(cls, path: str, is_dir: bool) -> "DiffEntry":
        """Return a new ``RIGHT_ONLY`` entry."""
        return cls(path, DiffType.RIGHT_ONLY, right_is_dir=is_dir)

    @classmethod
    def modified(cls, path: str) -> "DiffEntry":
        """Return a new ``MODIFIED`` entry for a pair of files."""
        return cls(path, DiffType.MODIFIED, left_is_dir=False, right_is_dir=False)

    @classmethod
    def type_mismatch(
        cls, path: str, left_is_dir: bool, right_is_dir: bool
    ) -> "DiffEntry":
        """Return a new ``TYPE_MISMATCH`` entry."""
        return cls(path, DiffType.TYPE_MISMATCH, left_is_dir, right_is_dir)

    def __str__(self) -> str:
        """
        Return a string representation of this ``DiffEntry`` object.

        :returns: A human readable representation of this ``DiffEntry``.
        :rtype: ``str``
        """
        return f"{self.path} ({self.diff_type.value})"

    @property
    def is_one_sided(self) -> bool:
        """
        True if the path exists on only one side.

        :rtype: ``bool``
        """
        return self.diff_type in _ONE_SIDED

    @property
    def is_dir(self) -> bool:
        """
        True if the existing side of a one-sided entry is a directory.

        :rtype: ``bool``
        """
        return bool(self.left_is_dir or self.right_is_dir) and self.is_one_sided

    def swapped(self) -> "DiffEntry":
        """
        Return this entry as it would be reported with the two roots
        exchanged.

        :returns: The mirrored ``DiffEntry``.
        :rtype: ``DiffEntry``
        """
        return DiffEntry(
            self.path, self.diff_type.swapped(), self.right_is_dir, self.left_is_dir
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert this ``DiffEntry`` object into a dictionary representation
        suitable for encoding as JSON.

        :returns: A dictionary mapping this instance's keys to values.
        :rtype: ``Dict[str, Any]``
        """
        return {
            "path": self.path,
            "diff_type": self.diff_type.value,
            "left_is_dir": self.left_is_dir,
            "right_is_dir": self.right_is_dir,
        }


class DiffError:
    """
    A path that could not be classified because of an I/O failure.
    """

    def __init__(self, path: str, error: DdmergeIOError):
        """
        Initialise a new ``DiffError``.

        :param path: The relative path that failed.
        :type path: ``str``
        :param error: The error raised while classifying ``path``.
        :type error: ``DdmergeIOError``
        """
        self.path = path
        self.error = error

    def __str__(self) -> str:
        return f"{self.path}: {self.error}"

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert this ``DiffError`` into a dictionary representation.

        :rtype: ``Dict[str, Any]``
        """
        return {"path": self.path, "error": str(self.error)}


class DiffResults:
    """Container for directory comparison results."""

    def __init__(
        self,
        entries: List[DiffEntry],
        errors: Optional[List[DiffError]] = None,
    ):
        self._entries = entries
        self.errors: List[DiffError] = errors or []

    def __repr__(self) -> str:
        """
        Return a machine-readable representation of this instance.

        :returns: ``DiffResults`` constructor style string.
        :rtype: ``str``
        """
        return f"DiffResults({self._entries!r}, {self.errors!r})"

    # List-like interface
    def __iter__(self) -> Iterator[DiffEntry]:
        """
        Implement iter(self).
        """
        return iter(self._entries)

    def __len__(self):
        """
        Implement len(self).
        """
        return len(self._entries)

    def __getitem__(self, index: int) -> DiffEntry:
        """
        Return self[index]

        :param index: The index to return.
        :type index: ``int``
        """
        return self._entries[index]

    def __eq__(self, other) -> bool:
        if isinstance(other, DiffResults):
            return self._entries == other._entries
        if isinstance(other, list):
            return self._entries == other
        return NotImplemented

    def _of_type(self, diff_type: DiffType) -> List[DiffEntry]:
        return [entry for entry in self._entries if entry.diff_type == diff_type]

    @property
    def left_only(self) -> List[DiffEntry]:
        """
        Return a list of entries present only in the left tree.

        :rtype: ``List[DiffEntry]``
        """
        return self._of_type(DiffType.LEFT_ONLY)

    @property
    def right_only(self) -> List[DiffEntry]:
        """
        Return a list of entries present only in the right tree.

        :rtype: ``List[DiffEntry]``
        """
        return self._of_type(DiffType.RIGHT_ONLY)

    @property
    def modified(self) -> List[DiffEntry]:
        """
        Return a list of files whose content differs.

        :rtype: ``List[DiffEntry]``
        """
        return self._of_type(DiffType.MODIFIED)

    @property
    def type_mismatch(self) -> List[DiffEntry]:
        """
        Return a list of paths that are a directory on one side only.

        :rtype: ``List[DiffEntry]``
        """
        return self._of_type(DiffType.TYPE_MISMATCH)

    def paths(self) -> List[str]:
        """
        Return the relative paths of all entries in order.

        :rtype: ``List[str]``
        """
        return [entry.path for entry in self._entries]

    def json(self, pretty: bool = False) -> str:
        """
        Return a JSON representation of these results.

        :param pretty: Indent the output for readability.
        :type pretty: ``bool``
        :rtype: ``str``
        """
        return json.dumps(
            {
                "entries": [entry.to_dict() for entry in self._entries],
                "errors": [error.to_dict() for error in self.errors],
            },
            indent=4 if pretty else None,
        )


def _ancestors(path: str) -> Iterator[str]:
    """
    Yield each strict ancestor of a relative path, nearest first.
    """
    parts = path_key(path)
    for depth in range(len(parts) - 1, 0, -1):
        yield os.sep.join(parts[:depth])


def _suppress_nested(entries: List[DiffEntry]) -> List[DiffEntry]:
    """
    Drop one-sided entries lying beneath a one-sided directory entry of
    the same type.

    Every ancestor level is checked, so a suppressed intermediate directory
    still hides everything below its own suppressed ancestor.

    :param entries: Classified entries in comparison order.
    :type entries: ``List[DiffEntry]``
    :returns: The entries with nested one-sided entries removed.
    :rtype: ``List[DiffEntry]``
    """
    only_dirs: Set[Tuple[DiffType, str]] = {
        (entry.diff_type, entry.path) for entry in entries if entry.is_dir
    }

    def _is_nested(entry: DiffEntry) -> bool:
        if not entry.is_one_sided:
            return False
        return any(
            (entry.diff_type, ancestor) in only_dirs
            for ancestor in _ancestors(entry.path)
        )

    kept = [entry for entry in entries if not _is_nested(entry)]
    _log_debug_dirdiff(
        "Suppressed %d nested entries (%d remain)", len(entries) - len(kept), len(kept)
    )
    return kept


def _lstat(path: str) -> os.stat_result:
    try:
        return os.lstat(path)
    except OSError as err:
        raise DdmergeIOError(path, err, action="stat") from err


def _is_regular(path: str, st: os.stat_result) -> bool:
    """
    Return ``True`` if ``st`` describes a regular file or a symbolic link
    resolving to one.
    """
    if stat.S_ISREG(st.st_mode):
        return True
    if not stat.S_ISLNK(st.st_mode):
        return False
    try:
        return stat.S_ISREG(os.stat(path).st_mode)
    except OSError:
        return False


def _same_special(
    left_full: str, left_st: os.stat_result, right_full: str, right_st: os.stat_result
) -> bool:
    """
    Compare two entries that are not both regular files by type, link
    target and device number. Content is never read.
    """
    if stat.S_IFMT(left_st.st_mode) != stat.S_IFMT(right_st.st_mode):
        return False
    if stat.S_ISLNK(left_st.st_mode):
        try:
            return os.readlink(left_full) == os.readlink(right_full)
        except OSError as err:
            raise DdmergeIOError(left_full, err, action="read link") from err
    if stat.S_ISCHR(left_st.st_mode) or stat.S_ISBLK(left_st.st_mode):
        return left_st.st_rdev == right_st.st_rdev
    return True


class DiffEngine:
    """
    Core class for generating directory comparisons.
    """

    def _classify(
        self,
        rel_path: str,
        left_root: str,
        right_root: str,
        in_left: bool = True,
        in_right: bool = True,
    ) -> Optional[DiffEntry]:
        """
        Classify a single relative path present in at least one tree.

        Which sides hold the path is decided by the enumerated path sets;
        a path that was enumerated but is no longer present is an error.
        Only regular files (or links to them) have their content compared.
        Other entries of the same type are equal when their link targets
        and device numbers match; any other special file pair cannot be
        merged and is reported as an error.

        :param rel_path: The path relative to both roots.
        :param left_root: The left comparison root.
        :param right_root: The right comparison root.
        :param in_left: ``True`` if the left walk found ``rel_path``.
        :param in_right: ``True`` if the right walk found ``rel_path``.
        :returns: A ``DiffEntry`` or ``None`` if the path does not differ.
        :rtype: ``Optional[DiffEntry]``
        :raises: ``DdmergeIOError`` if the path vanished from a tree that
                 listed it, a file pair could not be read, or a special
                 file pair cannot be merged.
        """
        left_full = os.path.join(left_root, rel_path)
        right_full = os.path.join(right_root, rel_path)

        left_exists = in_left and os.path.lexists(left_full)
        right_exists = in_right and os.path.lexists(right_full)

        if in_left != left_exists or in_right != right_exists or not (
            left_exists or right_exists
        ):
            err = FileNotFoundError(errno.ENOENT, "path vanished during comparison")
            raise DdmergeIOError(rel_path, err, action="classify")

        if not right_exists:
            return DiffEntry.left_only(rel_path, os.path.isdir(left_full))

        if not left_exists:
            return DiffEntry.right_only(rel_path, os.path.isdir(right_full))

        left_is_dir = os.path.isdir(left_full)
        right_is_dir = os.path.isdir(right_full)

        if left_is_dir != right_is_dir:
            return DiffEntry.type_mismatch(rel_path, left_is_dir, right_is_dir)

        if left_is_dir:
            return None

        left_st = _lstat(left_full)
        right_st = _lstat(right_full)
        if _is_regular(left_full, left_st) and _is_regular(right_full, right_st):
            if not identical(left_full, right_full):
                return DiffEntry.modified(rel_path)
            return None

        if _same_special(left_full, left_st, right_full, right_st):
            _log_debug_dirdiff("Special files match at %s", rel_path)
            return None

        err = OSError(errno.ENOTSUP, "special files differ and cannot be merged")
        raise DdmergeIOError(rel_path, err, action="compare")

    def compute_diff(self, left_root: str, right_root: str) -> DiffResults:
        """
        Compare two directory trees.

        Every relative path found under either root is classified in
        component-wise lexicographic order. Paths that cannot be classified
        because of an I/O failure are reported in ``DiffResults.errors``
        and do not abort the comparison.

        :param left_root: The left comparison root.
        :type left_root: ``str``
        :param right_root: The right comparison root.
        :type right_root: ``str``
        :returns: The ordered comparison results.
        :rtype: ``DiffResults``
        :raises: ``DdmergeIOError`` if either tree cannot be walked.
        """
        left_paths = TreeWalker(left_root).collect_paths()
        right_paths = TreeWalker(right_root).collect_paths()

        entries = []
        errors = []
        for rel_path in sorted(left_paths | right_paths, key=path_key):
            try:
                entry = self._classify(
                    rel_path,
                    left_root,
                    right_root,
                    in_left=rel_path in left_paths,
                    in_right=rel_path in right_paths,
                )
            except DdmergeIOError as err:
                _log_warn("Could not compare %s: %s", rel_path, err)
                errors.append(DiffError(rel_path, err))
                continue
            if entry is not None:
                _log_debug_dirdiff("Classified %s", entry)
                entries.append(entry)

        results = DiffResults(_suppress_nested(entries), errors)
        _log_info(
            "Compared %s and %s: %d differences, %d errors",
            left_root,
            right_root,
            len(results),
            len(errors),
        )
        return results


def compare_directories(left_root: str, right_root: str) -> DiffResults:
    """
    Compare two directory trees and return the differences between them.

    :param left_root: The left comparison root.
    :type left_root: ``str``
    :param right_root: The right comparison root.
    :type right_root: ``str``
    :returns: The ordered comparison results.
    :rtype: ``DiffResults``
    """
    return DiffEngine().compute_diff(left_root, right_root)
