# Copyright Red Hat
#
# ddmerge/dirdiff/hunks.py - Directory merge hunk extraction
#
# This file is part of the ddmerge project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Line-level hunk extraction.

Two texts are split into lines, aligned by a line-level alignment engine
into an ordered sequence of ``EditOp`` values, and every non-equal
operation becomes one ``Hunk``. The alignment is never stored: callers
that need to apply decisions re-run the same alignment and rely on the
operation order being reproducible.
"""
from typing import Callable, List, NamedTuple, Optional, Sequence, Tuple
from dataclasses import dataclass
import difflib
import logging

from ddmerge import DDMERGE_SUBSYSTEM_DIRDIFF

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_dirdiff(msg, *args, **kwargs):
    """A wrapper for dirdiff subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": DDMERGE_SUBSYSTEM_DIRDIFF}, **kwargs)


OP_EQUAL = "equal"
OP_DELETE = "delete"
OP_INSERT = "insert"
OP_REPLACE = "replace"

_OP_TAGS = (OP_EQUAL, OP_DELETE, OP_INSERT, OP_REPLACE)


class EditOp(NamedTuple):
    """
    One unit of a line-level alignment between two texts.

    Ranges are half-open and 0-based. A delete has an empty right range
    marking the insertion point in the right text; an insert has an empty
    left range anchoring it in the left text.
    """

    tag: str
    left_start: int
    left_end: int
    right_start: int
    right_end: int

    @property
    def left_count(self) -> int:
        """Number of left lines covered by this operation."""
        return self.left_end - self.left_start

    @property
    def right_count(self) -> int:
        """Number of right lines covered by this operation."""
        return self.right_end - self.right_start


#: Type of a line-level alignment engine.
Aligner = Callable[[Sequence[str], Sequence[str]], List[EditOp]]


def align_lines(left_lines: Sequence[str], right_lines: Sequence[str]) -> List[EditOp]:
    """
    Align two sequences of lines.

    :param left_lines: The left lines, each including its terminator.
    :type left_lines: ``Sequence[str]``
    :param right_lines: The right lines, each including its terminator.
    :type right_lines: ``Sequence[str]``
    :returns: Contiguous, ordered edit operations covering both sequences.
    :rtype: ``List[EditOp]``
    """
    matcher = difflib.SequenceMatcher(None, left_lines, right_lines, autojunk=False)
    return [EditOp(*opcode) for opcode in matcher.get_opcodes()]


def split_lines(text: str) -> List[str]:
    """
    Split ``text`` into lines on ``"\\n"``, without terminators.

    A trailing newline does not produce a final empty line, and the empty
    string has no lines.

    :param text: The text to split.
    :type text: ``str``
    :returns: The lines of ``text``.
    :rtype: ``List[str]``
    """
    if not text:
        return []
    lines = text.split("\n")
    if text.endswith("\n"):
        lines.pop()
    return lines


def join_lines(lines: Sequence[str], trailing_newline: bool) -> str:
    """
    Join lines with ``"\\n"`` separators, appending a final newline if
    ``trailing_newline`` is set and there is at least one line.

    :param lines: Lines without terminators.
    :type lines: ``Sequence[str]``
    :param trailing_newline: Whether to end the text with a newline.
    :type trailing_newline: ``bool``
    :returns: The joined text.
    :rtype: ``str``
    """
    text = "\n".join(lines)
    if trailing_newline and lines:
        text += "\n"
    return text


class TextLines:
    """
    The lines of one text together with its trailing newline state.
    """

    def __init__(self, text: str):
        """
        Initialise a new ``TextLines`` object from ``text``.

        :param text: The source text.
        :type text: ``str``
        """
        self.lines: List[str] = split_lines(text)
        self.ends_with_newline: bool = text.endswith("\n")

    def __len__(self):
        return len(self.lines)

    def rendered(self, index: int) -> str:
        """
        Return line ``index`` with its terminator restored.

        Every line gets a newline except the last line of a text that did
        not end with one.

        :param index: The line index.
        :type index: ``int``
        :rtype: ``str``
        """
        line = self.lines[index]
        if index == len(self.lines) - 1 and not self.ends_with_newline:
            return line
        return line + "\n"

    def rendered_lines(self) -> List[str]:
        """
        Return all lines with terminators; their concatenation is the
        source text.

        :rtype: ``List[str]``
        """
        return [self.rendered(i) for i in range(len(self.lines))]

    def valid_range(self, start: int, end: int) -> range:
        """
        Return the part of ``[start, end)`` that indexes existing lines.

        :rtype: ``range``
        """
        return range(max(start, 0), min(end, len(self.lines)))

    def span(self, start: int, end: int) -> List[str]:
        """
        Return the raw lines in ``[start, end)``, skipping indices that
        fall outside the text.

        :rtype: ``List[str]``
        """
        return [self.lines[i] for i in self.valid_range(start, end)]

    def rendered_span(self, start: int, end: int) -> List[str]:
        """
        Return the rendered lines in ``[start, end)``, skipping indices
        that fall outside the text.

        :rtype: ``List[str]``
        """
        return [self.rendered(i) for i in self.valid_range(start, end)]


def diff_ops(
    left: TextLines, right: TextLines, aligner: Optional[Aligner] = None
) -> List[EditOp]:
    """
    Run the alignment engine over two split texts.

    Lines are aligned with their terminators, so texts that differ only in
    the presence of a final newline produce a change for the last line.
    Operations with an unknown tag are dropped, so every consumer sees the
    same operation indices.

    :param left: The split left text.
    :type left: ``TextLines``
    :param right: The split right text.
    :type right: ``TextLines``
    :param aligner: Alignment engine to use (default ``align_lines``).
    :type aligner: ``Optional[Aligner]``
    :returns: The ordered edit operations.
    :rtype: ``List[EditOp]``
    """
    aligner = aligner or align_lines
    ops = []
    for op in aligner(left.rendered_lines(), right.rendered_lines()):
        if op.tag not in _OP_TAGS:
            _log_debug_dirdiff("Skipping unknown edit operation: %s", op)
            continue
        ops.append(op)
    return ops


@dataclass(frozen=True)
class Hunk:
    """
    A contiguous block of line differences with surrounding context.

    All line lists hold rendered lines: each includes its own trailing
    newline except the final line of a source text that lacked one. The
    context lines are always taken from the left text.
    """

    #: The edit operation tag this hunk was created from
    tag: str
    #: First left line of the change (insertion point for an insert)
    left_start: int
    #: Number of left lines changed
    left_count: int
    #: First right line of the change (insertion point for a delete)
    right_start: int
    #: Number of right lines changed
    right_count: int
    #: The changed lines from the left text
    left_lines: Tuple[str, ...]
    #: The changed lines from the right text
    right_lines: Tuple[str, ...]
    #: Unchanged left lines immediately before the change
    context_before: Tuple[str, ...]
    #: Unchanged left lines immediately after the change
    context_after: Tuple[str, ...]

    def __str__(self) -> str:
        """
        Return the unified diff style range header for this hunk.

        :rtype: ``str``
        """
        return (
            f"@@ -{self.left_start + 1},{self.left_count} "
            f"+{self.right_start + 1},{self.right_count} @@"
        )

    @property
    def is_whitespace_only(self) -> bool:
        """
        True if the two sides differ only in whitespace.

        :rtype: ``bool``
        """

        def _strip(lines: Sequence[str]) -> str:
            return "".join(c for line in lines for c in line if not c.isspace())

        return _strip(self.left_lines) == _strip(self.right_lines)


def _make_hunk(op: EditOp, left: TextLines, right: TextLines, context: int) -> Hunk:
    """
    Build the ``Hunk`` for a single non-equal edit operation.
    """
    return Hunk(
        tag=op.tag,
        left_start=op.left_start,
        left_count=op.left_count,
        right_start=op.right_start,
        right_count=op.right_count,
        left_lines=tuple(left.rendered_span(op.left_start, op.left_end)),
        right_lines=tuple(right.rendered_span(op.right_start, op.right_end)),
        context_before=tuple(left.rendered_span(op.left_start - context, op.left_start)),
        context_after=tuple(left.rendered_span(op.left_end, op.left_end + context)),
    )


def extract_hunks(
    left_text: str,
    right_text: str,
    context_lines: int = 3,
    aligner: Optional[Aligner] = None,
) -> List[Hunk]:
    """
    Extract the reviewable hunks between two texts.

    One ``Hunk`` is produced for each delete, insert or replace operation,
    in operation order; equal operations produce nothing. Operation
    indices outside either text are skipped rather than raising an error.

    :param left_text: The left text.
    :type left_text: ``str``
    :param right_text: The right text.
    :type right_text: ``str``
    :param context_lines: The maximum number of context lines to include
                          before and after each change.
    :type context_lines: ``int``
    :param aligner: Alignment engine to use (default ``align_lines``).
    :type aligner: ``Optional[Aligner]``
    :returns: The hunks in operation order.
    :rtype: ``List[Hunk]``
    """
    if context_lines < 0:
        raise ValueError(f"Context lines must be non-negative: {context_lines}")

    left = TextLines(left_text)
    right = TextLines(right_text)

    hunks = [
        _make_hunk(op, left, right, context_lines)
        for op in diff_ops(left, right, aligner=aligner)
        if op.tag != OP_EQUAL
    ]
    _log_debug_dirdiff(
        "Extracted %d hunks (%d/%d lines)", len(hunks), len(left), len(right)
    )
    return hunks
