# Copyright Red Hat
#
# ddmerge/dirdiff/difftypes.py - Directory merge diff types
#
# This file is part of the ddmerge project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Directory diff and decision types
"""
from enum import Enum


class DiffType(Enum):
    """
    Enum for different difference types.
    """

    LEFT_ONLY = "left_only"
    RIGHT_ONLY = "right_only"
    MODIFIED = "modified"
    TYPE_MISMATCH = "type_mismatch"

    def swapped(self) -> "DiffType":
        """
        Return the type this difference has when the two sides are swapped.

        :returns: The mirrored ``DiffType``.
        :rtype: ``DiffType``
        """
        if self is DiffType.LEFT_ONLY:
            return DiffType.RIGHT_ONLY
        if self is DiffType.RIGHT_ONLY:
            return DiffType.LEFT_ONLY
        return self


class HunkChoice(Enum):
    """
    A decision for one hunk of a modified file pair.
    """

    LEFT = "left"
    RIGHT = "right"
    SKIP = "skip"


class FileAction(Enum):
    """
    A decision for a one-sided or type-mismatched path.
    """

    COPY = "copy"  # one-sided: copy to the other side
    DELETE = "delete"  # one-sided: delete from the owning side
    USE_LEFT = "use_left"  # type mismatch: replace right with left
    USE_RIGHT = "use_right"  # type mismatch: replace left with right
    SKIP = "skip"


class SessionControl(Enum):
    """
    Non-decision signals from a decision source.
    """

    SKIP_FILE = "skip_file"
    QUIT = "quit"
