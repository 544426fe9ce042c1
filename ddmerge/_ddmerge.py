# Copyright Red Hat
#
# ddmerge/_ddmerge.py - Directory merge global definitions
#
# This file is part of the ddmerge project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Global definitions for the top-level ddmerge package.
"""
from typing import Optional, TextIO
import logging
import sys

_log = logging.getLogger("ddmerge")

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

# Ddmerge debugging subsystem mask
DDMERGE_DEBUG_DIRDIFF = 1
DDMERGE_DEBUG_SESSION = 2
DDMERGE_DEBUG_COMMAND = 4
DDMERGE_DEBUG_ALL = DDMERGE_DEBUG_DIRDIFF | DDMERGE_DEBUG_SESSION | DDMERGE_DEBUG_COMMAND

# Ddmerge debugging subsystem names
DDMERGE_SUBSYSTEM_DIRDIFF = "ddmerge.dirdiff"
DDMERGE_SUBSYSTEM_SESSION = "ddmerge.session"
DDMERGE_SUBSYSTEM_COMMAND = "ddmerge.command"

_DEBUG_MASK_TO_SUBSYSTEM = {
    DDMERGE_DEBUG_DIRDIFF: DDMERGE_SUBSYSTEM_DIRDIFF,
    DDMERGE_DEBUG_SESSION: DDMERGE_SUBSYSTEM_SESSION,
    DDMERGE_DEBUG_COMMAND: DDMERGE_SUBSYSTEM_COMMAND,
}

_debug_subsystems = set()


class SubsystemFilter(logging.Filter):
    """
    Filters DEBUG records based on a set of enabled subsystem names.
    Non-DEBUG records or DEBUG records without a 'subsystem' attribute
    are always passed through.
    """

    def __init__(self, name=""):
        super().__init__(name)
        self.enabled_subsystems = set(_debug_subsystems)

    def filter(self, record):
        if record.levelno != logging.DEBUG:
            return True

        if not hasattr(record, "subsystem"):
            return True

        return record.subsystem in self.enabled_subsystems

    def set_debug_subsystems(self, subsystems):
        """Sets the collection of subsystems to allow."""
        self.enabled_subsystems = set(subsystems)


def get_debug_mask():
    """
    Return the current debug mask for the ``ddmerge`` package.

    :returns: The current debug mask value
    :rtype: int
    """
    enabled_subsystems = set(_debug_subsystems)
    ddmerge_log = logging.getLogger("ddmerge")

    for handler in ddmerge_log.handlers:
        for f in handler.filters:
            if isinstance(f, SubsystemFilter):
                enabled_subsystems.update(f.enabled_subsystems)

    mask_map = {v: k for k, v in _DEBUG_MASK_TO_SUBSYSTEM.items()}
    mask = 0
    for subsystem_name in enabled_subsystems:
        mask |= mask_map.get(subsystem_name, 0)
    return mask


def set_debug_mask(mask):
    """
    Set the debug mask for the ``ddmerge`` package.

    :param mask: the logical OR of the ``DDMERGE_DEBUG_*``
                 values to log.
    :rtype: None
    """
    # pylint: disable=global-statement
    global _debug_subsystems

    if mask < 0 or mask > DDMERGE_DEBUG_ALL:
        raise ValueError(f"Invalid ddmerge debug mask: {mask}")

    enabled_subsystems = [
        subsystem_name
        for flag, subsystem_name in _DEBUG_MASK_TO_SUBSYSTEM.items()
        if mask & flag
    ]

    ddmerge_log = logging.getLogger("ddmerge")
    for handler in ddmerge_log.handlers:
        for f in handler.filters:
            if isinstance(f, SubsystemFilter):
                f.set_debug_subsystems(enabled_subsystems)

    _debug_subsystems = set(enabled_subsystems)


class ProgressAwareHandler(logging.StreamHandler):
    """
    A logging handler that writes complete records to the console stream.

    Interactive prompts leave the cursor at the end of a partial line, so
    each record starts on a fresh line when the previous write did not end
    with a newline.
    """

    def __init__(self, stream: Optional[TextIO] = None, **kwargs):
        super().__init__(stream=stream or sys.stderr, **kwargs)
        self.at_line_start = True

    def mark_partial_line(self):
        """Record that a prompt left the cursor mid-line."""
        self.at_line_start = False

    def emit(self, record):
        try:
            msg = self.format(record)
            prefix = "" if self.at_line_start else "\n"
            self.stream.write(prefix + msg + "\n")
            self.stream.flush()
            self.at_line_start = True
        except Exception:  # pylint: disable=broad-exception-caught
            self.handleError(record)


#
# Ddmerge exception types
#


class DdmergeError(Exception):
    """
    Base class for directory merge errors.
    """


class DdmergePathError(DdmergeError):
    """
    An invalid path was supplied, for example a comparison root that does
    not exist or is not a directory.
    """


class DdmergeIOError(DdmergeError):
    """
    A file system operation failed while walking, reading, or writing a
    path.
    """

    def __init__(self, path: str, err: OSError, action: str = "access"):
        """
        Initialise a new ``DdmergeIOError`` exception.

        :param path: The path that could not be accessed.
        :param err: The underlying ``OSError``.
        :param action: A short verb describing the failed operation.
        """
        self.path, self.err, self.action = path, err, action
        super().__init__(f"Failed to {action} {path}: {err.strerror or err}")


class DdmergeArgumentError(DdmergeError):
    """
    An invalid argument was passed to a ddmerge API call.
    """


__all__ = [
    "DDMERGE_DEBUG_DIRDIFF",
    "DDMERGE_DEBUG_SESSION",
    "DDMERGE_DEBUG_COMMAND",
    "DDMERGE_DEBUG_ALL",
    "DDMERGE_SUBSYSTEM_DIRDIFF",
    "DDMERGE_SUBSYSTEM_SESSION",
    "DDMERGE_SUBSYSTEM_COMMAND",
    "SubsystemFilter",
    "get_debug_mask",
    "set_debug_mask",
    "ProgressAwareHandler",
    "DdmergeError",
    "DdmergePathError",
    "DdmergeIOError",
    "DdmergeArgumentError",
]
