# Copyright Red Hat
#
# ddmerge/dirdiff/prompt.py - Directory merge console prompts
#
# This file is part of the ddmerge project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Console decision source for interactive merge sessions.
"""
from typing import Callable, Dict, Optional, TextIO, Tuple, Union
import logging
import os
import sys

from ddmerge import DDMERGE_SUBSYSTEM_SESSION, ProgressAwareHandler
from ddmerge.termcontrol import TermControl

from .difftypes import DiffType, FileAction, HunkChoice, SessionControl
from .engine import DiffEntry
from .hunks import Hunk
from .render import render_entry, render_file_info, render_hunk
from .session import DecisionSource, EntryOutcome, OutcomeStatus

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_session(msg, *args, **kwargs):
    """A wrapper for session subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": DDMERGE_SUBSYSTEM_SESSION}, **kwargs)


# (key, label, color, decision, confirmation)
_Key = Tuple[str, str, str, Union[FileAction, HunkChoice, SessionControl], str]

_QUIT = ("q", "uit", "MAGENTA", SessionControl.QUIT, "Quitting...")

_LEFT_ONLY_KEYS = (
    ("c", "opy to right", "CYAN", FileAction.COPY, "Copying to right..."),
    ("d", "elete from left", "RED", FileAction.DELETE, "Deleting from left..."),
    ("s", "kip", "YELLOW", FileAction.SKIP, "Skipped"),
    _QUIT,
)

_RIGHT_ONLY_KEYS = (
    ("c", "opy to left", "CYAN", FileAction.COPY, "Copying to left..."),
    ("d", "elete from right", "RED", FileAction.DELETE, "Deleting from right..."),
    ("s", "kip", "YELLOW", FileAction.SKIP, "Skipped"),
    _QUIT,
)

_MISMATCH_KEYS = (
    ("l", "eft (overwrite right)", "RED", FileAction.USE_LEFT, "Using left (updating right)..."),
    ("r", "ight (overwrite left)", "GREEN", FileAction.USE_RIGHT, "Using right (updating left)..."),
    ("s", "kip", "YELLOW", FileAction.SKIP, "Skipped"),
    _QUIT,
)

_HUNK_KEYS = (
    ("l", "eft (update right)", "RED", HunkChoice.LEFT, "Using left (will update right file)"),
    ("r", "ight (update left)", "GREEN", HunkChoice.RIGHT, "Using right (will update left file)"),
    ("s", "kip", "YELLOW", HunkChoice.SKIP, "Skipped"),
    ("f", "ile skip", "YELLOW", SessionControl.SKIP_FILE, "Skipping file..."),
    _QUIT,
)


class ConsoleDecisionSource(DecisionSource):
    """
    Ask the user for every merge decision on the console.

    Each entry and hunk is rendered to ``out`` followed by a single line
    prompt listing the accepted keys. Invalid replies repeat the prompt;
    end of input is treated as a request to quit.
    """

    def __init__(
        self,
        left_root: str,
        right_root: str,
        tc: Optional[TermControl] = None,
        use_magic: bool = False,
        skip_binary: bool = False,
        out: Optional[TextIO] = None,
        input_func: Optional[Callable[[str], str]] = None,
        handler: Optional[ProgressAwareHandler] = None,
    ):
        """
        Initialise a new ``ConsoleDecisionSource``.

        :param left_root: The left tree root.
        :param right_root: The right tree root.
        :param tc: Terminal control for colored output.
        :param use_magic: Describe file types using magic.
        :param skip_binary: Do not report binary files that are skipped.
        :param out: Output stream (default ``sys.stdout``).
        :param input_func: Function reading one reply given a prompt
                           (default ``input``).
        :param handler: Console log handler to notify when a prompt leaves
                        the cursor mid-line.
        """
        self.left_root = left_root
        self.right_root = right_root
        self.tc = tc
        self.use_magic = use_magic
        self.skip_binary = skip_binary
        self.out = out or sys.stdout
        self.input_func = input_func or input
        self.handler = handler

    def _color(self, attr: str) -> str:
        return getattr(self.tc, attr) if self.tc else ""

    def _print(self, text: str = ""):
        print(text, file=self.out)

    def _format_prompt(self, keys: Tuple[_Key, ...]) -> str:
        normal = self._color("NORMAL")
        choices = " / ".join(
            f"{self._color(color)}{self._color('BOLD')}({key}){normal}{label}"
            for (key, label, color, _, _) in keys
        )
        return f"  Choose: {choices} > "

    def _read_reply(self, prompt: str) -> Optional[str]:
        if self.handler:
            self.handler.mark_partial_line()
        try:
            return self.input_func(prompt)
        except EOFError:
            return None
        finally:
            if self.handler:
                self.handler.at_line_start = True

    def _ask(self, keys: Tuple[_Key, ...]):
        """
        Prompt until the user enters one of ``keys`` and return the
        matching decision.
        """
        by_key: Dict[str, _Key] = {key[0]: key for key in keys}
        prompt = self._format_prompt(keys)
        self.out.flush()
        while True:
            reply = self._read_reply(prompt)
            if reply is None:
                self._print()
                _log_debug_session("End of input: quitting")
                return SessionControl.QUIT
            reply = reply.strip().lower()
            if reply in by_key:
                (_, _, color, decision, confirmation) = by_key[reply]
                self._print(f"  {self._color(color)}{confirmation}{self._color('NORMAL')}")
                return decision
            _log_debug_session("Ignoring invalid reply: '%s'", reply)

    def entry_action(
        self, entry: DiffEntry, index: int, total: int
    ) -> Union[FileAction, SessionControl]:
        self._print()
        self._print(render_entry(entry, index, total, tc=self.tc))
        for root, side in ((self.left_root, "Left"), (self.right_root, "Right")):
            info = render_file_info(
                os.path.join(root, entry.path), side, tc=self.tc, use_magic=self.use_magic
            )
            if info:
                self._print(info)

        if entry.diff_type == DiffType.LEFT_ONLY:
            return self._ask(_LEFT_ONLY_KEYS)
        if entry.diff_type == DiffType.RIGHT_ONLY:
            return self._ask(_RIGHT_ONLY_KEYS)
        return self._ask(_MISMATCH_KEYS)

    def hunk_choice(
        self, entry: DiffEntry, hunk: Hunk, index: int, total: int
    ) -> Union[HunkChoice, SessionControl]:
        self._print()
        if index == 0:
            label = f"{self._color('CYAN')}{self._color('BOLD')}File:{self._color('NORMAL')}"
            self._print(f"{label} {entry.path} ({total} hunk(s))")
        self._print(render_hunk(hunk, index, total, entry.path, tc=self.tc))
        return self._ask(_HUNK_KEYS)

    def hunk_applied(self, entry: DiffEntry, index: int):
        self._print(f"  {self._color('GREEN')}✓ Applied.{self._color('NORMAL')}")

    def entry_done(self, outcome: EntryOutcome):
        path = outcome.entry.path
        if outcome.status == OutcomeStatus.BINARY and not self.skip_binary:
            self._print(f"File: {path} (binary file - skipping)")
        elif outcome.status == OutcomeStatus.ERROR:
            self._print(
                f"{self._color('RED')}File: {path} (error: {outcome.error})"
                f"{self._color('NORMAL')}"
            )
