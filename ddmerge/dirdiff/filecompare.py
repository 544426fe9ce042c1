# Copyright Red Hat
#
# ddmerge/dirdiff/filecompare.py - Directory merge file comparison
#
# This file is part of the ddmerge project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Byte-exact file comparison and the binary content heuristic.
"""
from typing import Union
import logging

from ddmerge import DDMERGE_SUBSYSTEM_DIRDIFF, DdmergeIOError

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_dirdiff(msg, *args, **kwargs):
    """A wrapper for dirdiff subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": DDMERGE_SUBSYSTEM_DIRDIFF}, **kwargs)


#: Number of leading bytes inspected by the binary heuristic.
BINARY_CHECK_SIZE = 8192


class _BinarySentinel:
    """
    Marker returned by ``read_as_text()`` for binary content.
    """

    def __repr__(self):
        return "BINARY"


#: Singleton returned in place of text for binary files.
BINARY = _BinarySentinel()


def _read_bytes(path: str) -> bytes:
    """
    Read the complete content of ``path``.

    :param path: The file to read.
    :type path: ``str``
    :returns: The file content.
    :rtype: ``bytes``
    :raises: ``DdmergeIOError`` if the file cannot be read.
    """
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as err:
        raise DdmergeIOError(path, err, action="read") from err


def _has_null_prefix(data: bytes) -> bool:
    return b"\x00" in data[:BINARY_CHECK_SIZE]


def identical(path_a: str, path_b: str) -> bool:
    """
    Return ``True`` if two files have exactly the same content.

    Both files are read in full and compared byte for byte.

    :param path_a: The first file to compare.
    :type path_a: ``str``
    :param path_b: The second file to compare.
    :type path_b: ``str``
    :returns: ``True`` if the contents are equal or ``False`` otherwise.
    :rtype: ``bool``
    :raises: ``DdmergeIOError`` if either file cannot be read.
    """
    return _read_bytes(path_a) == _read_bytes(path_b)


def is_binary(path: str) -> bool:
    """
    Return ``True`` if a file appears to contain binary data.

    The first ``BINARY_CHECK_SIZE`` bytes are inspected and the file is
    considered binary if any zero byte is present.

    :param path: The file to inspect.
    :type path: ``str``
    :returns: ``True`` if the file looks binary or ``False`` otherwise.
    :rtype: ``bool``
    :raises: ``DdmergeIOError`` if the file cannot be read.
    """
    try:
        with open(path, "rb") as f:
            prefix = f.read(BINARY_CHECK_SIZE)
    except OSError as err:
        raise DdmergeIOError(path, err, action="read") from err
    return _has_null_prefix(prefix)


def read_as_text(path: str) -> Union[str, _BinarySentinel]:
    """
    Read a file as text, or return ``BINARY`` for binary content.

    Invalid UTF-8 sequences are replaced with U+FFFD rather than raising
    an error.

    :param path: The file to read.
    :type path: ``str``
    :returns: The decoded text or the ``BINARY`` sentinel.
    :rtype: ``Union[str, _BinarySentinel]``
    :raises: ``DdmergeIOError`` if the file cannot be read.
    """
    data = _read_bytes(path)
    if _has_null_prefix(data):
        _log_debug_dirdiff("Treating %s as binary", path)
        return BINARY
    return data.decode("utf-8", errors="replace")
