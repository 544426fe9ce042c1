# Copyright Red Hat
#
# ddmerge/dirdiff/options.py - Directory merge options
#
# This file is part of the ddmerge project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Directory merge options.
"""
from dataclasses import dataclass, fields
from typing import Optional, Pattern, Tuple
from argparse import Namespace
import logging
import re

from ddmerge import DdmergeArgumentError

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

#: Default number of context lines shown around each hunk.
DEFAULT_CONTEXT_LINES = 3


@dataclass(frozen=True)
class MergeOptions:
    """
    Directory merge options.
    """

    #: Collect decisions without modifying either tree
    dry_run: bool = False
    #: Silently skip binary files
    skip_binary: bool = False
    #: Regular expression excluding matching left-side paths
    exclude_regex_left: Optional[str] = None
    #: Regular expression excluding matching right-side paths
    exclude_regex_right: Optional[str] = None
    #: Number of unchanged lines shown before and after each hunk
    context_lines: int = DEFAULT_CONTEXT_LINES
    #: Describe file types using magic
    use_magic_file_type: bool = False
    #: Color mode for rendered output: "auto", "always", or "never"
    color: str = "auto"

    def __post_init__(self):
        if self.context_lines < 0:
            raise DdmergeArgumentError(
                f"Context lines must be non-negative: {self.context_lines}"
            )

    def __str__(self):
        """
        Return a human readable string representation of this
        ``MergeOptions`` instance.

        :returns: A human readable string.
        :rtype: ``str``
        """
        return "\n".join(f"{key}={val}" for key, val in self.__dict__.items())

    def compiled_excludes(
        self,
    ) -> Tuple[Optional[Pattern[str]], Optional[Pattern[str]]]:
        """
        Compile the left and right exclusion expressions.

        :returns: A 2-tuple of compiled patterns (or ``None`` where unset)
                  for the left and right sides.
        :rtype: ``Tuple[Optional[Pattern[str]], Optional[Pattern[str]]]``
        :raises: ``DdmergeArgumentError`` if either expression is invalid.
        """

        def _compile(pattern: Optional[str], side: str) -> Optional[Pattern[str]]:
            if pattern is None:
                return None
            try:
                return re.compile(pattern)
            except re.error as err:
                raise DdmergeArgumentError(
                    f"Invalid regex pattern for --exclude-regex-{side}: {err}"
                ) from err

        return (
            _compile(self.exclude_regex_left, "left"),
            _compile(self.exclude_regex_right, "right"),
        )

    @classmethod
    def from_cmd_args(cls, cmd_args: Namespace) -> "MergeOptions":
        """
        Initialise MergeOptions from command line arguments.

        Construct a new ``MergeOptions`` object from the command line
        arguments in ``cmd_args``. Arguments that are absent or ``None``
        take the field default.

        :param cmd_args: The command line selection arguments.
        :type cmd_args: ``Namespace``
        :returns: A new ``MergeOptions`` instance
        :rtype: ``MergeOptions``
        """
        field_names = {f.name for f in fields(cls)}
        kwargs = {
            name: getattr(cmd_args, name)
            for name in field_names
            if getattr(cmd_args, name, None) is not None
        }
        options = cls(**kwargs)
        _log_debug("Initialised MergeOptions from arguments: %s", repr(options))
        return options
