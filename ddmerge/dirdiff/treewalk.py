# Copyright Red Hat
#
# ddmerge/dirdiff/treewalk.py - Directory merge tree walk
#
# This file is part of the ddmerge project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Tree walking support for dirdiff.
"""
from typing import Set, Tuple
import itertools
import logging
import os

from ddmerge import DDMERGE_SUBSYSTEM_DIRDIFF, DdmergeIOError

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_dirdiff(msg, *args, **kwargs):
    """A wrapper for dirdiff subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": DDMERGE_SUBSYSTEM_DIRDIFF}, **kwargs)


def path_key(path: str) -> Tuple[str, ...]:
    """
    Return the sort key for a relative path: its components in order.

    Ordering by components places every directory immediately before its
    own descendants, independent of the characters that sort below the
    path separator.

    :param path: A relative path using ``os.sep`` separators.
    :type path: ``str``
    :returns: A tuple of path components.
    :rtype: ``Tuple[str, ...]``
    """
    return tuple(path.split(os.sep))


class TreeWalker:
    """
    Enumerates every relative path beneath a comparison root.
    """

    def __init__(self, root: str):
        """
        Initialise a new ``TreeWalker`` object.

        :param root: The root directory to walk.
        :type root: ``str``
        """
        self.root: str = root

    def collect_paths(self) -> Set[str]:
        """
        Collect every path below the root, relative to the root.

        Files, directories, symbolic links and any other entry returned by
        the directory walk are included; the root itself is not. Symbolic
        links to directories are recorded but not descended into.

        :returns: The set of relative path strings.
        :rtype: ``Set[str]``
        :raises: ``DdmergeIOError`` if the root or any directory below it
                 cannot be read.
        """

        def _onerror(err: OSError):
            raise DdmergeIOError(err.filename or self.root, err, action="walk")

        paths = {
            os.path.relpath(os.path.join(root, name), self.root)
            for root, dirs, files in os.walk(self.root, onerror=_onerror)
            for name in itertools.chain(files, dirs)
        }
        _log_debug_dirdiff("Collected %d paths from %s", len(paths), self.root)
        return paths
