# Copyright Red Hat
#
# tests/dirdiff/test_actions.py - File action and write tests.
#
# This file is part of the ddmerge project.
#
# SPDX-License-Identifier: Apache-2.0
import unittest
from unittest.mock import patch
import stat
import os

from ddmerge import DdmergeArgumentError, DdmergeIOError
from ddmerge.dirdiff.difftypes import FileAction
from ddmerge.dirdiff.engine import DiffEntry
from ddmerge.dirdiff.actions import (
    apply_file_action,
    entry_actions,
    write_merged,
    write_text,
)

from ._util import TreePairTestCase, make_tree, read_file


class TestEntryActions(unittest.TestCase):
    def test_entry_actions(self):
        self.assertIn(FileAction.COPY, entry_actions(DiffEntry.left_only("a", False)))
        self.assertIn(FileAction.DELETE, entry_actions(DiffEntry.right_only("a", True)))
        self.assertIn(
            FileAction.USE_LEFT, entry_actions(DiffEntry.type_mismatch("a", True, False))
        )
        self.assertNotIn(
            FileAction.COPY, entry_actions(DiffEntry.type_mismatch("a", True, False))
        )
        self.assertEqual(entry_actions(DiffEntry.modified("a")), ())


class TestApplyFileAction(TreePairTestCase, unittest.TestCase):
    def setUp(self):
        self.make_roots()

    def test_copy_left_only_file(self):
        make_tree(self.left, {os.path.join("sub", "dir", "f.txt"): "hi\n"})
        entry = DiffEntry.left_only(os.path.join("sub", "dir", "f.txt"), False)
        apply_file_action(entry, FileAction.COPY, self.left, self.right)
        self.assertEqual(read_file(self.rpath(os.path.join("sub", "dir", "f.txt"))), "hi\n")

    def test_copy_right_only_dir(self):
        make_tree(
            self.right,
            {os.path.join("d", "a"): "a", os.path.join("d", "e", "b"): "b"},
        )
        apply_file_action(DiffEntry.right_only("d", True), FileAction.COPY, self.left, self.right)
        self.assertEqual(read_file(self.lpath(os.path.join("d", "a"))), "a")
        self.assertEqual(read_file(self.lpath(os.path.join("d", "e", "b"))), "b")

    def test_copy_symlink(self):
        make_tree(self.left, {"target": "t"})
        os.symlink("target", self.lpath("link"))
        apply_file_action(DiffEntry.left_only("link", False), FileAction.COPY, self.left, self.right)
        self.assertTrue(os.path.islink(self.rpath("link")))
        self.assertEqual(os.readlink(self.rpath("link")), "target")

    def test_delete_left_only_dir(self):
        make_tree(self.left, {os.path.join("d", "x"): "x"})
        apply_file_action(DiffEntry.left_only("d", True), FileAction.DELETE, self.left, self.right)
        self.assertFalse(os.path.exists(self.lpath("d")))

    def test_delete_right_only_file(self):
        make_tree(self.right, {"f": "x"})
        apply_file_action(DiffEntry.right_only("f", False), FileAction.DELETE, self.left, self.right)
        self.assertFalse(os.path.exists(self.rpath("f")))

    def test_skip_does_nothing(self):
        make_tree(self.left, {"f": "x"})
        apply_file_action(DiffEntry.left_only("f", False), FileAction.SKIP, self.left, self.right)
        self.assertTrue(os.path.exists(self.lpath("f")))
        self.assertFalse(os.path.exists(self.rpath("f")))

    def test_type_mismatch_use_left(self):
        make_tree(self.left, {os.path.join("x", "child"): "c"})
        make_tree(self.right, {"x": "file"})
        entry = DiffEntry.type_mismatch("x", True, False)
        apply_file_action(entry, FileAction.USE_LEFT, self.left, self.right)
        self.assertTrue(os.path.isdir(self.rpath("x")))
        self.assertEqual(read_file(self.rpath(os.path.join("x", "child"))), "c")

    def test_type_mismatch_use_right(self):
        make_tree(self.left, {os.path.join("x", "child"): "c"})
        make_tree(self.right, {"x": "file"})
        entry = DiffEntry.type_mismatch("x", True, False)
        apply_file_action(entry, FileAction.USE_RIGHT, self.left, self.right)
        self.assertTrue(os.path.isfile(self.lpath("x")))
        self.assertEqual(read_file(self.lpath("x")), "file")

    def test_invalid_action_raises(self):
        with self.assertRaises(DdmergeArgumentError):
            apply_file_action(
                DiffEntry.modified("m"), FileAction.COPY, self.left, self.right
            )
        with self.assertRaises(DdmergeArgumentError):
            apply_file_action(
                DiffEntry.left_only("m", False), FileAction.USE_LEFT, self.left, self.right
            )

    def test_copy_missing_source_raises(self):
        with self.assertRaises(DdmergeIOError):
            apply_file_action(
                DiffEntry.left_only("gone", False), FileAction.COPY, self.left, self.right
            )


class TestWriteText(TreePairTestCase, unittest.TestCase):
    def setUp(self):
        self.make_roots()

    def test_write_text_replaces_content(self):
        make_tree(self.left, {"f": "old\n"})
        write_text(self.lpath("f"), "new\r\ncontent")
        self.assertEqual(read_file(self.lpath("f")), "new\r\ncontent")
        self.assertEqual(os.listdir(self.left), ["f"])

    def test_write_text_preserves_mode(self):
        make_tree(self.left, {"script": "#!/bin/sh\n"})
        os.chmod(self.lpath("script"), 0o755)
        write_text(self.lpath("script"), "#!/bin/sh\ntrue\n")
        self.assertEqual(stat.S_IMODE(os.stat(self.lpath("script")).st_mode), 0o755)

    def test_write_text_new_file(self):
        write_text(self.lpath("new"), "x")
        self.assertEqual(read_file(self.lpath("new")), "x")

    def test_write_text_through_symlink_updates_target(self):
        make_tree(self.left, {os.path.join("real", "f"): "old\n"})
        os.symlink(os.path.join("real", "f"), self.lpath("link"))
        write_text(self.lpath("link"), "new\n")
        self.assertTrue(os.path.islink(self.lpath("link")))
        self.assertEqual(read_file(self.lpath(os.path.join("real", "f"))), "new\n")
        self.assertEqual(sorted(os.listdir(self.lpath("real"))), ["f"])

    def test_write_text_failure_leaves_original(self):
        make_tree(self.left, {"f": "old\n"})
        with patch("ddmerge.dirdiff.actions.os.rename", side_effect=OSError(28, "No space")):
            with self.assertRaises(DdmergeIOError):
                write_text(self.lpath("f"), "new\n")
        self.assertEqual(read_file(self.lpath("f")), "old\n")
        self.assertEqual(os.listdir(self.left), ["f"])

    def test_write_text_missing_dir_raises(self):
        with self.assertRaises(DdmergeIOError):
            write_text(self.lpath(os.path.join("missing", "f")), "x")

    def test_write_merged(self):
        make_tree(self.left, {"f": "l\n"})
        make_tree(self.right, {"f": "r\n"})
        write_merged(self.lpath("f"), self.rpath("f"), "L\n", "R\n")
        self.assertEqual(read_file(self.lpath("f")), "L\n")
        self.assertEqual(read_file(self.rpath("f")), "R\n")
