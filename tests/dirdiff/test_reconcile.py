# Copyright Red Hat
#
# tests/dirdiff/test_reconcile.py - Hunk reconciliation tests.
#
# This file is part of the ddmerge project.
#
# SPDX-License-Identifier: Apache-2.0
import unittest

from ddmerge.dirdiff.difftypes import HunkChoice
from ddmerge.dirdiff.hunks import EditOp, OP_REPLACE, extract_hunks
from ddmerge.dirdiff.reconcile import (
    HunkReconciler,
    reconcile,
    resolve_trailing_newlines,
)

L = HunkChoice.LEFT
R = HunkChoice.RIGHT
S = HunkChoice.SKIP

_PAIRS = [
    ("", ""),
    ("", "a\nb\n"),
    ("a\nb\n", ""),
    ("hello", "hello\n"),
    ("a\n", "a\nb"),
    ("a\nb", "a\nc\n"),
    ("line1\nline2\nline3\n", "line1\nmodified\nline3\n"),
    ("a\nb\nc\nd\ne\n", "a\nB\nc\nd\nE\n"),
    ("a\r\nb\r\n", "a\nb\n"),
    ("x\n\n\ny\n", "x\ny\n\n"),
]


class TestResolveTrailingNewlines(unittest.TestCase):
    def test_no_choices_keep_own(self):
        self.assertEqual(resolve_trailing_newlines([], True, False), (True, False))
        self.assertEqual(resolve_trailing_newlines([S, S], False, True), (False, True))

    def test_last_non_skip_wins(self):
        self.assertEqual(resolve_trailing_newlines([L], True, False), (True, True))
        self.assertEqual(resolve_trailing_newlines([R], True, False), (False, False))
        self.assertEqual(resolve_trailing_newlines([L, R, S], True, False), (False, False))
        self.assertEqual(resolve_trailing_newlines([R, L, S], True, False), (True, True))


class TestReconcile(unittest.TestCase):
    def _choices(self, left, right, choice):
        return [choice] * len(extract_hunks(left, right))

    def test_all_left_is_left(self):
        for left, right in _PAIRS:
            with self.subTest(left=left, right=right):
                choices = self._choices(left, right, L)
                self.assertEqual(reconcile(left, right, choices), (left, left))

    def test_all_right_is_right(self):
        for left, right in _PAIRS:
            with self.subTest(left=left, right=right):
                choices = self._choices(left, right, R)
                self.assertEqual(reconcile(left, right, choices), (right, right))

    def test_all_skip_is_identity(self):
        for left, right in _PAIRS:
            with self.subTest(left=left, right=right):
                choices = self._choices(left, right, S)
                self.assertEqual(reconcile(left, right, choices), (left, right))

    def test_no_choices_is_identity(self):
        for left, right in _PAIRS:
            with self.subTest(left=left, right=right):
                self.assertEqual(reconcile(left, right, []), (left, right))

    def test_trailing_newline_example(self):
        self.assertEqual(reconcile("hello", "hello\n", [L]), ("hello", "hello"))
        self.assertEqual(reconcile("hello", "hello\n", [R]), ("hello\n", "hello\n"))
        self.assertEqual(reconcile("hello", "hello\n", [S]), ("hello", "hello\n"))

    def test_mixed_choices(self):
        left = "a\nb\nc\nd\ne\n"
        right = "a\nB\nc\nd\nE\n"
        self.assertEqual(
            reconcile(left, right, [L, R]), ("a\nb\nc\nd\nE\n", "a\nb\nc\nd\nE\n")
        )
        self.assertEqual(
            reconcile(left, right, [R, S]), ("a\nB\nc\nd\ne\n", "a\nB\nc\nd\nE\n")
        )

    def test_missing_choices_default_to_skip(self):
        left = "a\nb\nc\nd\ne\n"
        right = "a\nB\nc\nd\nE\n"
        self.assertEqual(reconcile(left, right, [R]), reconcile(left, right, [R, S]))

    def test_extra_choices_are_ignored(self):
        self.assertEqual(reconcile("a\n", "b\n", [R, L, L]), ("b\n", "b\n"))

    def test_delete_choices(self):
        left = "a\nb\nc\n"
        right = "a\nc\n"
        self.assertEqual(reconcile(left, right, [L]), (left, left))
        self.assertEqual(reconcile(left, right, [R]), (right, right))
        self.assertEqual(reconcile(left, right, [S]), (left, right))

    def test_insert_choices(self):
        left = "a\nc\n"
        right = "a\nb\nc\n"
        self.assertEqual(reconcile(left, right, [L]), (left, left))
        self.assertEqual(reconcile(left, right, [R]), (right, right))
        self.assertEqual(reconcile(left, right, [S]), (left, right))

    def test_out_of_range_ops_are_tolerated(self):
        def _aligner(_left, _right):
            return [EditOp(OP_REPLACE, 0, 3, 0, 3)]

        self.assertEqual(
            reconcile("a\n", "b\n", [R], aligner=_aligner), ("b\n", "b\n")
        )

    def test_unknown_ops_are_skipped(self):
        def _aligner(_left, _right):
            return [EditOp("bogus", 0, 1, 0, 1), EditOp(OP_REPLACE, 0, 1, 0, 1)]

        self.assertEqual(
            reconcile("a\n", "b\n", [L], aligner=_aligner), ("a\n", "a\n")
        )

    def test_reconciler_is_reusable(self):
        reconciler = HunkReconciler("a\n", "b\n")
        self.assertEqual(reconciler.reconcile([L]), ("a\n", "a\n"))
        self.assertEqual(reconciler.reconcile([R]), ("b\n", "b\n"))
