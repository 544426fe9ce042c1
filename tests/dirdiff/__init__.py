# Copyright Red Hat
#
# tests/dirdiff/__init__.py - Directory diff test package
#
# This file is part of the ddmerge project.
#
# SPDX-License-Identifier: Apache-2.0
