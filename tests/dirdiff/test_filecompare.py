# Copyright Red Hat
#
# tests/dirdiff/test_filecompare.py - File content comparison tests.
#
# This file is part of the ddmerge project.
#
# SPDX-License-Identifier: Apache-2.0
import unittest
import tempfile
import os

from ddmerge import DdmergeIOError
from ddmerge.dirdiff.filecompare import (
    BINARY,
    BINARY_CHECK_SIZE,
    identical,
    is_binary,
    read_as_text,
)

from ._util import make_tree


class TestFileCompare(unittest.TestCase):
    def setUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.root = tmp.name

    def _path(self, name):
        return os.path.join(self.root, name)

    def test_identical_same_content(self):
        make_tree(self.root, {"a": "same\n", "b": "same\n"})
        self.assertTrue(identical(self._path("a"), self._path("b")))

    def test_identical_different_content(self):
        make_tree(self.root, {"a": "one\n", "b": "two\n"})
        self.assertFalse(identical(self._path("a"), self._path("b")))

    def test_identical_trailing_newline_differs(self):
        make_tree(self.root, {"a": "hello", "b": "hello\n"})
        self.assertFalse(identical(self._path("a"), self._path("b")))

    def test_identical_missing_file_raises(self):
        make_tree(self.root, {"a": "x"})
        with self.assertRaises(DdmergeIOError) as cm:
            identical(self._path("a"), self._path("missing"))
        self.assertEqual(cm.exception.path, self._path("missing"))

    def test_is_binary_null_byte(self):
        make_tree(self.root, {"bin": b"abc\x00def", "text": "abc\n"})
        self.assertTrue(is_binary(self._path("bin")))
        self.assertFalse(is_binary(self._path("text")))

    def test_is_binary_only_checks_prefix(self):
        data = b"a" * BINARY_CHECK_SIZE + b"\x00"
        make_tree(self.root, {"late": data})
        self.assertFalse(is_binary(self._path("late")))

    def test_is_binary_empty_file(self):
        make_tree(self.root, {"empty": b""})
        self.assertFalse(is_binary(self._path("empty")))

    def test_read_as_text(self):
        make_tree(self.root, {"text": "line1\r\nline2\n"})
        self.assertEqual(read_as_text(self._path("text")), "line1\r\nline2\n")

    def test_read_as_text_binary(self):
        make_tree(self.root, {"bin": b"\x00\x01\x02"})
        self.assertIs(read_as_text(self._path("bin")), BINARY)

    def test_read_as_text_invalid_utf8_is_replaced(self):
        make_tree(self.root, {"latin1": b"caf\xe9\n"})
        self.assertEqual(read_as_text(self._path("latin1")), "caf�\n")

    def test_read_as_text_missing_raises(self):
        with self.assertRaises(DdmergeIOError):
            read_as_text(self._path("missing"))
