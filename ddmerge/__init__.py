# Copyright Red Hat
#
# ddmerge/__init__.py - Directory merge package initialisation
#
# This file is part of the ddmerge project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Ddmerge top-level package.
"""
from ._ddmerge import *  # noqa: F401, F403
from ._ddmerge import __all__  # noqa: F401

__version__ = "0.1.0"
