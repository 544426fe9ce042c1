# Copyright Red Hat
#
# ddmerge/dirdiff/__init__.py - Directory merge dirdiff package
#
# This file is part of the ddmerge project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Directory diff and merge package.

Provides two-tree directory comparison, line-level hunk extraction and
choice-driven reconciliation of modified file pairs. The main entry points
are ``compare_directories``, ``extract_hunks``, ``reconcile`` and
``MergeSession``.
"""
from .difftypes import DiffType, FileAction, HunkChoice, SessionControl
from .engine import DiffEngine, DiffEntry, DiffError, DiffResults, compare_directories
from .hunks import EditOp, Hunk, align_lines, extract_hunks
from .options import DEFAULT_CONTEXT_LINES, MergeOptions
from .prompt import ConsoleDecisionSource
from .reconcile import HunkReconciler, reconcile
from .session import (
    DecisionSource,
    EntryOutcome,
    MergeSession,
    MergeSummary,
    OutcomeStatus,
)

__all__ = [
    "ConsoleDecisionSource",
    "DEFAULT_CONTEXT_LINES",
    "DecisionSource",
    "DiffEngine",
    "DiffEntry",
    "DiffError",
    "DiffResults",
    "DiffType",
    "EditOp",
    "EntryOutcome",
    "FileAction",
    "Hunk",
    "HunkChoice",
    "HunkReconciler",
    "MergeOptions",
    "MergeSession",
    "MergeSummary",
    "OutcomeStatus",
    "SessionControl",
    "align_lines",
    "compare_directories",
    "extract_hunks",
    "reconcile",
]
