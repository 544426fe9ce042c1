# Copyright Red Hat
#
# ddmerge/dirdiff/reconcile.py - Directory merge hunk reconciliation
#
# This file is part of the ddmerge project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Choice-driven reconstruction of two texts from per-hunk decisions.
"""
from typing import List, Optional, Sequence, Tuple
import logging

from ddmerge import DDMERGE_SUBSYSTEM_DIRDIFF

from .difftypes import HunkChoice
from .hunks import (
    Aligner,
    EditOp,
    TextLines,
    OP_DELETE,
    OP_EQUAL,
    OP_INSERT,
    diff_ops,
    join_lines,
)

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_dirdiff(msg, *args, **kwargs):
    """A wrapper for dirdiff subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": DDMERGE_SUBSYSTEM_DIRDIFF}, **kwargs)


def resolve_trailing_newlines(
    choices: Sequence[HunkChoice], left_newline: bool, right_newline: bool
) -> Tuple[bool, bool]:
    """
    Decide whether each reconciled text ends with a newline.

    The last non-skip decision wins for both outputs: ``LEFT`` adopts the
    left text's trailing newline state and ``RIGHT`` the right text's. If
    every decision is ``SKIP`` (or there are none) each side keeps its own.

    :param choices: The decisions in operation order.
    :type choices: ``Sequence[HunkChoice]``
    :param left_newline: Whether the original left text ends with a newline.
    :type left_newline: ``bool``
    :param right_newline: Whether the original right text ends with a
                          newline.
    :type right_newline: ``bool``
    :returns: A 2-tuple of flags for the new left and right texts.
    :rtype: ``Tuple[bool, bool]``
    """
    for choice in reversed(choices):
        if choice == HunkChoice.LEFT:
            return (left_newline, left_newline)
        if choice == HunkChoice.RIGHT:
            return (right_newline, right_newline)
    return (left_newline, right_newline)


class HunkReconciler:
    """
    Rebuilds both sides of a modified file pair from hunk decisions.
    """

    def __init__(self, left_text: str, right_text: str, aligner: Optional[Aligner] = None):
        """
        Initialise a new ``HunkReconciler`` for a pair of texts.

        :param left_text: The original left text.
        :type left_text: ``str``
        :param right_text: The original right text.
        :type right_text: ``str``
        :param aligner: Alignment engine to use (default ``align_lines``).
        :type aligner: ``Optional[Aligner]``
        """
        self.left = TextLines(left_text)
        self.right = TextLines(right_text)
        self.aligner = aligner
        self._merged_left: List[str] = []
        self._merged_right: List[str] = []

    def _to_both(self, lines: List[str]):
        self._merged_left.extend(lines)
        self._merged_right.extend(lines)

    def _apply(self, op: EditOp, choice: HunkChoice):
        """
        Append the lines selected by ``choice`` for a single operation.
        """
        left_lines = self.left.span(op.left_start, op.left_end)
        right_lines = self.right.span(op.right_start, op.right_end)

        if op.tag == OP_EQUAL:
            self._to_both(left_lines)
        elif op.tag == OP_DELETE:
            if choice == HunkChoice.LEFT:
                self._to_both(left_lines)
            elif choice == HunkChoice.SKIP:
                self._merged_left.extend(left_lines)
        elif op.tag == OP_INSERT:
            if choice == HunkChoice.RIGHT:
                self._to_both(right_lines)
            elif choice == HunkChoice.SKIP:
                self._merged_right.extend(right_lines)
        else:
            if choice == HunkChoice.LEFT:
                self._to_both(left_lines)
            elif choice == HunkChoice.RIGHT:
                self._to_both(right_lines)
            else:
                self._merged_left.extend(left_lines)
                self._merged_right.extend(right_lines)

    def reconcile(self, choices: Sequence[HunkChoice]) -> Tuple[str, str]:
        """
        Produce the new left and right texts for a sequence of decisions.

        The alignment is recomputed and walked in order; the n-th non-equal
        operation takes ``choices[n]``, defaulting to ``SKIP`` when fewer
        choices than operations are supplied.

        :param choices: One decision per hunk, in hunk order.
        :type choices: ``Sequence[HunkChoice]``
        :returns: A 2-tuple of the new left and right texts.
        :rtype: ``Tuple[str, str]``
        """
        self._merged_left = []
        self._merged_right = []

        hunk_idx = 0
        for op in diff_ops(self.left, self.right, aligner=self.aligner):
            if op.tag == OP_EQUAL:
                self._apply(op, HunkChoice.SKIP)
                continue
            choice = choices[hunk_idx] if hunk_idx < len(choices) else HunkChoice.SKIP
            self._apply(op, choice)
            hunk_idx += 1

        if len(choices) > hunk_idx:
            _log_debug_dirdiff(
                "Ignoring %d choices beyond %d hunks", len(choices) - hunk_idx, hunk_idx
            )

        left_newline, right_newline = resolve_trailing_newlines(
            choices, self.left.ends_with_newline, self.right.ends_with_newline
        )
        return (
            join_lines(self._merged_left, left_newline),
            join_lines(self._merged_right, right_newline),
        )


def reconcile(
    left_text: str,
    right_text: str,
    choices: Sequence[HunkChoice],
    aligner: Optional[Aligner] = None,
) -> Tuple[str, str]:
    """
    Reconstruct both texts of a modified file pair from hunk decisions.

    :param left_text: The original left text.
    :type left_text: ``str``
    :param right_text: The original right text.
    :type right_text: ``str``
    :param choices: One decision per hunk, in hunk order.
    :type choices: ``Sequence[HunkChoice]``
    :param aligner: Alignment engine to use (default ``align_lines``).
    :type aligner: ``Optional[Aligner]``
    :returns: A 2-tuple of the new left and right texts.
    :rtype: ``Tuple[str, str]``
    """
    return HunkReconciler(left_text, right_text, aligner=aligner).reconcile(choices)
