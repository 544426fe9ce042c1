# Copyright Red Hat
#
# ddmerge/dirdiff/session.py - Directory merge session
#
# This file is part of the ddmerge project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Interactive directory merge sessions.

A ``MergeSession`` walks the entries of a ``DiffResults`` in order, asks a
``DecisionSource`` what to do with each one and applies the decisions to
the two trees. Modified file pairs are resolved hunk by hunk: after every
non-skip decision both files are rebuilt from the original texts and all
decisions made so far, then rewritten in full, so an interrupted session
leaves every file either untouched or fully reconciled up to the last
decision.
"""
from typing import List, Optional, Union
from dataclasses import dataclass, field
from enum import Enum
import logging
import os

from ddmerge import (
    DDMERGE_SUBSYSTEM_SESSION,
    DdmergeArgumentError,
    DdmergeError,
)

from .actions import apply_file_action, entry_actions, write_merged
from .difftypes import DiffType, FileAction, HunkChoice, SessionControl
from .engine import DiffEntry, DiffResults, compare_directories
from .filecompare import BINARY, is_binary, read_as_text
from .hunks import Aligner, Hunk, extract_hunks
from .options import MergeOptions
from .reconcile import reconcile

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_session(msg, *args, **kwargs):
    """A wrapper for session subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": DDMERGE_SUBSYSTEM_SESSION}, **kwargs)


class OutcomeStatus(Enum):
    """
    The result of processing one diff entry.
    """

    APPLIED = "applied"  # at least one change was made (or would be, in dry run)
    SKIPPED = "skipped"  # the decision source left the entry unchanged
    EXCLUDED = "excluded"  # matched an exclusion expression
    BINARY = "binary"  # binary content, no textual merge possible
    UNCHANGED = "unchanged"  # modified pair with no line differences
    ERROR = "error"
    QUIT = "quit"  # the session was aborted at this entry


@dataclass
class EntryOutcome:
    """
    The outcome of processing a single ``DiffEntry``.
    """

    #: The entry processed
    entry: DiffEntry
    #: What happened to it
    status: OutcomeStatus
    #: The path-level action chosen, if any
    action: Optional[FileAction] = None
    #: The hunk decisions made, in hunk order
    choices: List[HunkChoice] = field(default_factory=list)
    #: The error that stopped processing, if any
    error: Optional[DdmergeError] = None

    def __str__(self) -> str:
        desc = f"{self.entry}: {self.status.value}"
        if self.error:
            desc += f" ({self.error})"
        return desc


@dataclass
class MergeSummary:
    """
    Decision counts for a completed (or cancelled) merge session.
    """

    #: Hunk decisions made, of any kind
    total_hunks: int = 0
    #: Decisions that kept the left version (updating the right)
    left_choices: int = 0
    #: Decisions that kept the right version (updating the left)
    right_choices: int = 0
    #: Explicit skip decisions
    skipped: int = 0
    #: Entries that failed, including paths that could not be compared
    errors: int = 0
    #: The session was aborted before all entries were processed
    cancelled: bool = False
    #: No changes were written
    dry_run: bool = False

    @property
    def status(self) -> str:
        """
        A one line description of how the session ended.

        :rtype: ``str``
        """
        if self.cancelled:
            return "Merge cancelled."
        if self.dry_run:
            return "Dry run complete. No files were modified."
        return "Merge complete!"

    def __str__(self) -> str:
        """
        Return the non-zero counts of this summary, one per line.

        :rtype: ``str``
        """
        counts = [
            ("Total hunks processed", self.total_hunks),
            ("Left choices (updated right)", self.left_choices),
            ("Right choices (updated left)", self.right_choices),
            ("Skipped", self.skipped),
            ("Errors", self.errors),
        ]
        return "\n".join(f"  {desc}: {count}" for desc, count in counts if count)


class DecisionSource:
    """
    Supplies decisions for a ``MergeSession``.

    Subclasses implement ``entry_action`` and ``hunk_choice``; the
    notification hooks are optional.
    """

    def entry_action(
        self, entry: DiffEntry, index: int, total: int
    ) -> Union[FileAction, SessionControl]:
        """
        Return the action for a one-sided or type-mismatched entry.

        :param entry: The entry to decide.
        :type entry: ``DiffEntry``
        :param index: The 0-based position of ``entry`` in the results.
        :type index: ``int``
        :param total: The number of entries in the results.
        :type total: ``int``
        :returns: One of ``entry_actions(entry)`` or ``SessionControl.QUIT``.
        """
        raise NotImplementedError

    def hunk_choice(
        self, entry: DiffEntry, hunk: Hunk, index: int, total: int
    ) -> Union[HunkChoice, SessionControl]:
        """
        Return the decision for one hunk of a modified file pair.

        :param entry: The modified entry.
        :type entry: ``DiffEntry``
        :param hunk: The hunk to decide.
        :type hunk: ``Hunk``
        :param index: The 0-based position of ``hunk`` in the file.
        :type index: ``int``
        :param total: The number of hunks in the file.
        :type total: ``int``
        :returns: A ``HunkChoice``, ``SessionControl.SKIP_FILE`` to leave
                  the remaining hunks of this file undecided, or
                  ``SessionControl.QUIT``.
        """
        raise NotImplementedError

    def hunk_applied(self, entry: DiffEntry, index: int):
        """Called after a hunk decision has been written to both files."""

    def entry_done(self, outcome: EntryOutcome):
        """Called once for every entry after it has been processed."""


class MergeSession:
    """
    Drive a merge of two directory trees through a ``DecisionSource``.
    """

    def __init__(
        self,
        left_root: str,
        right_root: str,
        source: DecisionSource,
        options: Optional[MergeOptions] = None,
        aligner: Optional[Aligner] = None,
    ):
        """
        Initialise a new ``MergeSession``.

        :param left_root: The left tree root.
        :type left_root: ``str``
        :param right_root: The right tree root.
        :type right_root: ``str``
        :param source: The decision source to consult.
        :type source: ``DecisionSource``
        :param options: Merge options (defaults to ``MergeOptions()``).
        :type options: ``Optional[MergeOptions]``
        :param aligner: Alignment engine for hunk extraction and
                        reconciliation.
        :type aligner: ``Optional[Aligner]``
        :raises: ``DdmergeArgumentError`` if an exclusion expression is
                 invalid.
        """
        self.left_root = left_root
        self.right_root = right_root
        self.source = source
        self.options = options or MergeOptions()
        self.aligner = aligner
        (self._exclude_left, self._exclude_right) = self.options.compiled_excludes()
        self.outcomes: List[EntryOutcome] = []
        self.summary = MergeSummary(dry_run=self.options.dry_run)

    def _left_path(self, entry: DiffEntry) -> str:
        return os.path.join(self.left_root, entry.path)

    def _right_path(self, entry: DiffEntry) -> str:
        return os.path.join(self.right_root, entry.path)

    def is_excluded(self, entry: DiffEntry) -> bool:
        """
        Test whether ``entry`` matches the exclusion expressions.

        Left-only entries are tested against the left expression and
        right-only entries against the right expression; other entries are
        excluded if either expression matches.

        :param entry: The entry to test.
        :type entry: ``DiffEntry``
        :rtype: ``bool``
        """

        def _matches(pattern) -> bool:
            return bool(pattern and pattern.search(entry.path))

        if entry.diff_type == DiffType.LEFT_ONLY:
            return _matches(self._exclude_left)
        if entry.diff_type == DiffType.RIGHT_ONLY:
            return _matches(self._exclude_right)
        return _matches(self._exclude_left) or _matches(self._exclude_right)

    def _is_binary_one_sided(self, entry: DiffEntry) -> bool:
        if entry.is_dir:
            return False
        if entry.diff_type == DiffType.LEFT_ONLY:
            path = self._left_path(entry)
        else:
            path = self._right_path(entry)
        # Special files such as FIFOs are never opened.
        return os.path.isfile(path) and is_binary(path)

    def _process_file_action(
        self, entry: DiffEntry, index: int, total: int
    ) -> EntryOutcome:
        if (
            entry.is_one_sided
            and self.options.skip_binary
            and self._is_binary_one_sided(entry)
        ):
            _log_debug_session("Skipping binary entry %s", entry)
            return EntryOutcome(entry, OutcomeStatus.BINARY)

        action = self.source.entry_action(entry, index, total)
        if action == SessionControl.QUIT:
            self.summary.cancelled = True
            return EntryOutcome(entry, OutcomeStatus.QUIT)
        if action == SessionControl.SKIP_FILE:
            action = FileAction.SKIP

        if action not in entry_actions(entry):
            raise DdmergeArgumentError(
                f"Action {action} does not apply to {entry.diff_type.value} "
                f"entry {entry.path}"
            )

        if action == FileAction.SKIP:
            self.summary.skipped += 1
            return EntryOutcome(entry, OutcomeStatus.SKIPPED, action=action)

        if action == FileAction.USE_LEFT:
            self.summary.left_choices += 1
        elif action == FileAction.USE_RIGHT:
            self.summary.right_choices += 1

        if not self.options.dry_run:
            apply_file_action(entry, action, self.left_root, self.right_root)
        return EntryOutcome(entry, OutcomeStatus.APPLIED, action=action)

    def _record_choice(self, choice: HunkChoice):
        self.summary.total_hunks += 1
        if choice == HunkChoice.LEFT:
            self.summary.left_choices += 1
        elif choice == HunkChoice.RIGHT:
            self.summary.right_choices += 1
        else:
            self.summary.skipped += 1

    def _process_modified(self, entry: DiffEntry) -> EntryOutcome:
        left_path = self._left_path(entry)
        right_path = self._right_path(entry)

        left_text = read_as_text(left_path)
        right_text = read_as_text(right_path)
        if left_text is BINARY or right_text is BINARY:
            _log_debug_session("Binary content in %s", entry)
            return EntryOutcome(entry, OutcomeStatus.BINARY)

        hunks = extract_hunks(
            left_text,
            right_text,
            context_lines=self.options.context_lines,
            aligner=self.aligner,
        )
        if not hunks:
            return EntryOutcome(entry, OutcomeStatus.UNCHANGED)

        outcome = EntryOutcome(entry, OutcomeStatus.SKIPPED)
        for index, hunk in enumerate(hunks):
            choice = self.source.hunk_choice(entry, hunk, index, len(hunks))
            if choice == SessionControl.SKIP_FILE:
                _log_debug_session(
                    "Skipping %d remaining hunks in %s", len(hunks) - index, entry.path
                )
                break
            if choice == SessionControl.QUIT:
                self.summary.cancelled = True
                outcome.status = OutcomeStatus.QUIT
                break

            outcome.choices.append(choice)
            self._record_choice(choice)
            if choice == HunkChoice.SKIP:
                continue

            outcome.status = OutcomeStatus.APPLIED
            if self.options.dry_run:
                continue

            (merged_left, merged_right) = reconcile(
                left_text, right_text, outcome.choices, aligner=self.aligner
            )
            write_merged(left_path, right_path, merged_left, merged_right)
            _log_debug_session(
                "Applied hunk %d/%d of %s (%s)",
                index + 1,
                len(hunks),
                entry.path,
                choice.value,
            )
            self.source.hunk_applied(entry, index)
        return outcome

    def process_entry(self, entry: DiffEntry, index: int, total: int) -> EntryOutcome:
        """
        Process a single diff entry.

        I/O and argument errors are captured in the returned outcome;
        changes already written for earlier entries are unaffected.

        :param entry: The entry to process.
        :type entry: ``DiffEntry``
        :param index: The 0-based position of ``entry`` in the results.
        :type index: ``int``
        :param total: The number of entries in the results.
        :type total: ``int``
        :returns: The outcome for ``entry``.
        :rtype: ``EntryOutcome``
        """
        if self.is_excluded(entry):
            _log_debug_session("Excluded %s", entry)
            return EntryOutcome(entry, OutcomeStatus.EXCLUDED)
        try:
            if entry.diff_type == DiffType.MODIFIED:
                return self._process_modified(entry)
            return self._process_file_action(entry, index, total)
        except DdmergeError as err:
            _log_error("Error processing %s: %s", entry.path, err)
            self.summary.errors += 1
            return EntryOutcome(entry, OutcomeStatus.ERROR, error=err)

    def run(self, results: Optional[DiffResults] = None) -> MergeSummary:
        """
        Run the session over ``results``, comparing the two roots first if
        no results are given.

        Processing stops early when the decision source quits; completed
        writes are kept.

        :param results: Precomputed comparison results.
        :type results: ``Optional[DiffResults]``
        :returns: The decision counts for the session.
        :rtype: ``MergeSummary``
        :raises: ``DdmergeIOError`` if a root cannot be walked.
        """
        if results is None:
            results = compare_directories(self.left_root, self.right_root)

        self.summary.errors += len(results.errors)
        _log_info(
            "Merging %d entries between %s and %s%s",
            len(results),
            self.left_root,
            self.right_root,
            " (dry run)" if self.options.dry_run else "",
        )

        for index, entry in enumerate(results):
            outcome = self.process_entry(entry, index, len(results))
            _log_debug_session("Outcome: %s", outcome)
            self.outcomes.append(outcome)
            self.source.entry_done(outcome)
            if self.summary.cancelled:
                _log_info("Merge cancelled at %s", entry.path)
                break
        return self.summary
