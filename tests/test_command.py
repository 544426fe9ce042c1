# Copyright Red Hat
#
# tests/test_command.py - CLI layer tests
#
# This file is part of the ddmerge project.
#
# SPDX-License-Identifier: Apache-2.0
from io import StringIO
from typing import Optional, get_type_hints
import unittest
from unittest.mock import patch
import tempfile
import logging
import os

log = logging.getLogger()

import ddmerge
import ddmerge.command as command
from ddmerge.termcontrol import TermControl
from ddmerge.dirdiff.difftypes import HunkChoice
from ddmerge.dirdiff.engine import DiffResults
from ddmerge.dirdiff.options import MergeOptions
from ddmerge.dirdiff.session import MergeSummary

from tests import MockArgs
from tests.dirdiff._util import ScriptedDecisionSource, make_tree, read_file


class CommandTestsBase(unittest.TestCase):
    def setUp(self):
        log.debug("Preparing %s", self._testMethodName)
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.left = os.path.join(tmp.name, "left")
        self.right = os.path.join(tmp.name, "right")
        os.mkdir(self.left)
        os.mkdir(self.right)
        self.addCleanup(ddmerge.set_debug_mask, 0)

    def tearDown(self):
        log.debug("Tearing down (%s)", self._testMethodName)

    def get_main_args(self):
        """
        Return an argument array (in the form of sys.argv) reflecting the
        ``ddmerge`` command.

        :returns: A list of command arguments.
        """
        return ["ddmerge", "--color", "never"]

    def get_debug_main_args(self):
        """
        Return an argument array (in the form of sys.argv) reflecting the
        ``ddmerge`` command, with verbose logging and debug enabled.

        :returns: A list of command arguments.
        """
        return self.get_main_args() + ["-vv", "--debug=all"]

    def run_main(self, args, replies=()):
        """
        Run ``command.main()`` feeding ``replies`` to the prompts and
        capturing standard output.
        """
        it = iter(replies)

        def _input(_prompt):
            try:
                return next(it)
            except StopIteration as err:
                raise EOFError from err

        with patch("builtins.input", side_effect=_input), patch(
            "sys.stdout", new_callable=StringIO
        ) as out:
            status = command.main(args)
        return (status, out.getvalue())


class CommandTestsSimple(CommandTestsBase):
    """
    Test command interfaces
    """

    def test_set_debug(self):
        command.set_debug("dirdiff,session")
        self.assertEqual(
            ddmerge.get_debug_mask(),
            ddmerge.DDMERGE_DEBUG_DIRDIFF | ddmerge.DDMERGE_DEBUG_SESSION,
        )
        command.set_debug("all")
        self.assertEqual(ddmerge.get_debug_mask(), ddmerge.DDMERGE_DEBUG_ALL)

    def test_set_debug_bad_name(self):
        with self.assertRaises(ValueError):
            command.set_debug("nosuchsubsystem")

    def test_setup_logging(self):
        args = MockArgs()
        args.verbose = 2
        command.setup_logging(args)
        ddmerge_log = logging.getLogger("ddmerge")
        self.assertEqual(ddmerge_log.level, logging.DEBUG)
        self.assertEqual(len(ddmerge_log.handlers), 1)
        self.assertIsInstance(ddmerge_log.handlers[0], ddmerge.ProgressAwareHandler)
        self.addCleanup(ddmerge_log.handlers.clear)

    def test_diff_directories(self):
        make_tree(self.left, {"a": "1\n"})
        make_tree(self.right, {"a": "2\n", "b": "x"})
        results = command.diff_directories(self.left, self.right)
        self.assertEqual(results.paths(), ["a", "b"])

    def test_diff_directories_bad_root(self):
        with self.assertRaises(ddmerge.DdmergePathError):
            command.diff_directories(os.path.join(self.left, "nope"), self.right)
        make_tree(self.left, {"file": "x"})
        with self.assertRaises(ddmerge.DdmergePathError):
            command.diff_directories(os.path.join(self.left, "file"), self.right)

    def test_merge_directories(self):
        make_tree(self.left, {"a": "1\n"})
        make_tree(self.right, {"a": "2\n"})
        source = ScriptedDecisionSource(choices=[HunkChoice.RIGHT])
        summary = command.merge_directories(self.left, self.right, source)
        self.assertEqual(summary.right_choices, 1)
        self.assertEqual(read_file(os.path.join(self.left, "a")), "2\n")

    def test_print_summary(self):
        with patch("sys.stdout", new_callable=StringIO) as out:
            command.print_summary(MergeSummary(total_hunks=2, left_choices=2))
        text = out.getvalue()
        self.assertIn("Merge complete!", text)
        self.assertIn("Summary:", text)
        self.assertIn("Total hunks processed: 2", text)

    def test_optional_parameter_annotations(self):
        merge_hints = get_type_hints(command.merge_directories)
        self.assertEqual(merge_hints["options"], Optional[MergeOptions])
        self.assertEqual(merge_hints["results"], Optional[DiffResults])
        summary_hints = get_type_hints(command.print_summary)
        self.assertEqual(summary_hints["tc"], Optional[TermControl])


class CommandTestsMain(CommandTestsBase):
    """
    Test the ``main()`` entry point
    """

    def test_main_no_differences(self):
        make_tree(self.left, {"a": "same"})
        make_tree(self.right, {"a": "same"})
        (status, output) = self.run_main(self.get_main_args() + [self.left, self.right])
        self.assertEqual(status, 0)
        self.assertIn("No differences found.", output)

    def test_main_missing_root(self):
        args = self.get_main_args() + [os.path.join(self.left, "nope"), self.right]
        (status, _) = self.run_main(args)
        self.assertEqual(status, 1)

    def test_main_root_is_file(self):
        make_tree(self.left, {"file": "x"})
        args = self.get_main_args() + [os.path.join(self.left, "file"), self.right]
        (status, _) = self.run_main(args)
        self.assertEqual(status, 1)

    def test_main_same_root(self):
        (status, _) = self.run_main(self.get_main_args() + [self.left, self.left])
        self.assertEqual(status, 1)

    def test_main_bad_regex(self):
        args = self.get_main_args() + ["--exclude-regex-left", "(", self.left, self.right]
        (status, _) = self.run_main(args)
        self.assertEqual(status, 1)

    def test_main_bad_debug(self):
        args = self.get_main_args() + ["--debug", "bogus", self.left, self.right]
        (status, _) = self.run_main(args)
        self.assertEqual(status, 1)

    def test_main_merge(self):
        make_tree(self.left, {"m.txt": "line1\nline2\nline3\n", "lonly": "l\n"})
        make_tree(self.right, {"m.txt": "line1\nmodified\nline3\n"})
        args = self.get_main_args() + [self.left, self.right]
        (status, output) = self.run_main(args, replies=["c", "r"])

        self.assertEqual(status, 0)
        self.assertIn("Found 2 file(s) with differences.", output)
        self.assertIn("Merge complete!", output)
        self.assertIn("Right choices (updated left): 1", output)
        self.assertEqual(read_file(os.path.join(self.right, "lonly")), "l\n")
        self.assertEqual(
            read_file(os.path.join(self.left, "m.txt")), "line1\nmodified\nline3\n"
        )

    def test_main_debug_merge(self):
        make_tree(self.left, {"m.txt": "a\n"})
        make_tree(self.right, {"m.txt": "b\n"})
        args = self.get_debug_main_args() + [self.left, self.right]
        (status, output) = self.run_main(args, replies=["l"])
        self.assertEqual(status, 0)
        self.assertEqual(read_file(os.path.join(self.right, "m.txt")), "a\n")

    def test_main_dry_run(self):
        make_tree(self.left, {"m.txt": "a\n"})
        make_tree(self.right, {"m.txt": "b\n"})
        args = self.get_main_args() + ["--dry-run", self.left, self.right]
        (status, output) = self.run_main(args, replies=["l"])
        self.assertEqual(status, 0)
        self.assertIn("Dry run complete. No files were modified.", output)
        self.assertEqual(read_file(os.path.join(self.right, "m.txt")), "b\n")

    def test_main_quit(self):
        make_tree(self.left, {"a": "1\n", "b": "1\n"})
        make_tree(self.right, {"a": "2\n", "b": "2\n"})
        args = self.get_main_args() + [self.left, self.right]
        (status, output) = self.run_main(args, replies=["q"])
        self.assertEqual(status, 0)
        self.assertIn("Merge cancelled.", output)
        self.assertEqual(read_file(os.path.join(self.left, "b")), "1\n")

    def test_main_end_of_input_cancels(self):
        make_tree(self.left, {"a": "1\n"})
        make_tree(self.right, {"a": "2\n"})
        (status, output) = self.run_main(self.get_main_args() + [self.left, self.right])
        self.assertEqual(status, 0)
        self.assertIn("Merge cancelled.", output)

    def test_main_entry_error_status(self):
        make_tree(self.left, {"a": "1\n"})
        make_tree(self.right, {"a": "2\n"})
        err = ddmerge.DdmergeIOError("a", OSError(28, "No space left on device"), "write")
        args = self.get_main_args() + [self.left, self.right]
        with patch("ddmerge.dirdiff.session.write_merged", side_effect=err):
            (status, output) = self.run_main(args, replies=["r"])
        self.assertEqual(status, 1)
        self.assertIn("Errors: 1", output)

    def test_main_version(self):
        with patch("sys.stdout", new_callable=StringIO) as out:
            with self.assertRaises(SystemExit):
                command.main(["ddmerge", "--version"])
        self.assertIn(ddmerge.__version__, out.getvalue())
