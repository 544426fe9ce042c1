# Copyright Red Hat
#
# ddmerge/dirdiff/filetypes.py - Directory merge file types
#
# This file is part of the ddmerge project.
#
# SPDX-License-Identifier: Apache-2.0
"""
File type information support.
"""
from typing import Optional
import logging
import magic

from ddmerge import DDMERGE_SUBSYSTEM_DIRDIFF

from .filecompare import is_binary

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_dirdiff(msg, *args, **kwargs):
    """A wrapper for dirdiff subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": DDMERGE_SUBSYSTEM_DIRDIFF}, **kwargs)


class FileTypeInfo:
    """
    Class representing file type information and encoding.
    """

    def __init__(
        self,
        mime_type: str,
        description: str,
        encoding: Optional[str] = None,
    ):
        """
        Initialise a new ``FileTypeInfo`` object.

        :param mime_type: The detected MIME type.
        :type mime_type: ``str``
        :param description: Type description.
        :type description: ``str``
        :param encoding: Optional file encoding.
        :type encoding: ``Optional[str]``
        """
        self.mime_type = mime_type
        self.description = description
        self.encoding = encoding

    def __str__(self):
        """
        Return a string representation of this ``FileTypeInfo`` object.

        :returns: A human readable string describing this instance.
        :rtype: ``str``
        """
        return f"{self.description} ({self.mime_type})"

    @property
    def is_binary(self) -> bool:
        """
        True if this type describes binary content.

        :rtype: ``bool``
        """
        return self.encoding == "binary"


#: Fallback type for binary content when magic is not used.
_BINARY_INFO = ("application/octet-stream", "binary data", "binary")

#: Fallback type for text content when magic is not used.
_TEXT_INFO = ("text/plain", "text", "utf-8")


def detect_file_type(file_path: str, use_magic: bool = False) -> FileTypeInfo:
    """
    Detect file type information, optionally using libmagic.

    Without magic the type is one of two fixed descriptions chosen by the
    null-byte binary heuristic.

    :param file_path: The path to the file to inspect.
    :type file_path: ``str``
    :param use_magic: Query libmagic for the MIME type and description.
    :type use_magic: ``bool``
    :returns: File type information for ``file_path``.
    :rtype: ``FileTypeInfo``
    :raises: ``DdmergeIOError`` if the file cannot be read without magic.
    """
    if use_magic:
        # Some builds of the magic bindings do not define magic.error
        if hasattr(magic, "error"):
            magic_errors = (magic.error, OSError, ValueError)
        else:
            magic_errors = (OSError, ValueError)

        try:
            fm = magic.detect_from_filename(file_path)
            _log_debug_dirdiff("magic: %s is %s (%s)", file_path, fm.mime_type, fm.name)
            return FileTypeInfo(fm.mime_type, fm.name, fm.encoding)
        except magic_errors as err:
            _log_warn("Error detecting file type for %s: %s", file_path, err)
            return FileTypeInfo("application/octet-stream", "unknown")

    info = _BINARY_INFO if is_binary(file_path) else _TEXT_INFO
    return FileTypeInfo(*info)
