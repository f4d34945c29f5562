# Copyright Red Hat
#
# imgdiff/__init__.py - Image diff package initialisation
#
# This file is part of the imgdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Imgdiff top-level package.
"""
from ._imgdiff import *  # noqa: F401, F403
from ._imgdiff import __all__  # noqa: F401

__version__ = "0.1.0"
