# Copyright Red Hat
#
# ddmerge/termcontrol.py - Directory merge terminal control
#
# This file is part of the ddmerge project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Terminal capability probing for colored output.
"""
from typing import List, Optional, TextIO
import curses
import sys
import re

#: Valid values for the ``color`` argument.
COLOR_MODES = ["auto", "always", "never"]


class TermControl:
    """
    Portable terminal control strings for the current terminal.

    Uses the curses package to look up the control sequences needed to
    switch output modes and foreground colors. Each attribute holds the
    control string for the corresponding action, or the empty string if
    the terminal (or the ``color`` policy) does not support it, so that
    output can always be built as:

        >>> term = TermControl()
        >>> print("This is " + term.GREEN + "green" + term.NORMAL)

    The ``render()`` method replaces ``${NAME}`` with the matching control
    string:

        >>> print(term.render("This is ${GREEN}green${NORMAL}"))
    """

    # Output modes:
    BOLD: str = ""  #: Turn on bold mode
    DIM: str = ""  #: Turn on half-bright mode
    REVERSE: str = ""  #: Turn on reverse-video mode
    NORMAL: str = ""  #: Turn off all modes

    # Foreground colors:
    BLACK: str = ""  #: Black foreground color
    BLUE: str = ""  #: Blue foreground color
    GREEN: str = ""  #: Green foreground color
    CYAN: str = ""  #: Cyan foreground color
    RED: str = ""  #: Red foreground color
    MAGENTA: str = ""  #: Magenta foreground color
    YELLOW: str = ""  #: Yellow foreground color
    WHITE: str = ""  #: White foreground color

    _STRING_CAPABILITIES: List[str] = "BOLD:bold DIM:dim REVERSE:rev NORMAL:sgr0".split()
    _ANSI_COLORS: List[str] = "BLACK RED GREEN YELLOW BLUE MAGENTA CYAN WHITE".split()

    def _force_ansi(self):
        for i, color in enumerate(self._ANSI_COLORS):
            setattr(self, color, f"\033[0;3{i}m")
        setattr(self, "BOLD", "\033[1m")
        setattr(self, "DIM", "\033[2m")
        setattr(self, "NORMAL", "\033[0m")

    def _init_colors(self):
        """
        Initialize terminal color codes.
        """
        set_fg_ansi = self._tigetstr("setaf")
        if set_fg_ansi:
            set_fg_ansi = set_fg_ansi.encode("utf8")
            for i, color in enumerate(self._ANSI_COLORS):
                setattr(self, color, curses.tparm(set_fg_ansi, i).decode("utf8") or "")

    def __init__(self, term_stream: Optional[TextIO] = None, color: str = "auto"):
        """
        Initialize terminal capabilities.

        If the output stream is not a tty or terminal setup fails, the
        instance has no capabilities unless ``color`` is "always", in which
        case plain ANSI sequences are used.

        :param term_stream: Output stream to probe for capabilities.
        :type term_stream: ``Optional[TextIO]``
        :param color: A string to control color rendering: "auto", "always", or
                      "never".
        :type color: ``str``
        """
        if color not in COLOR_MODES:
            raise ValueError(f"Invalid color mode: {color}")

        if term_stream is None:
            term_stream = sys.stdout

        self.term_stream = term_stream
        self.color = color

        if color == "never":
            return

        if color != "always":
            if not hasattr(term_stream, "isatty") or not term_stream.isatty():
                return

        # curses.error does not derive from a class that can be named in an
        # except clause on every platform.
        try:
            curses.setupterm()
        except BaseException as err:  # pylint: disable=broad-exception-caught
            if isinstance(err, (KeyboardInterrupt, SystemExit)):  # pragma: no cover
                raise
            if color == "always":
                self._force_ansi()
            return  # pragma: no cover

        for capability in self._STRING_CAPABILITIES:
            (attr, cap_name) = capability.split(":")
            setattr(self, attr, self._tigetstr(cap_name) or "")

        self._init_colors()

    def _tigetstr(self, cap_name):
        # String capabilities can include "delays" of the form "$<2>".
        cap = curses.tigetstr(cap_name)
        cap = cap.decode(encoding="utf8") if cap else ""
        return cap.split("$", maxsplit=1)[0]

    def render(self, template):
        """
        Replace each $-substitution with the corresponding control.

        :param template: Template string containing ${NAME} patterns.
        :type template: ``str``
        :returns: Rendered string with substitutions applied.
        :rtype: ``str``
        """
        return re.sub(r"\$\$|\${\w+}", self._render_sub, template)

    def _render_sub(self, match):
        s = match.group()
        if s == "$$":
            return "$"
        return getattr(self, s[2:-1], "")
