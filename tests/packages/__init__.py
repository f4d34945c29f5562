# Copyright Red Hat
#
# tests/packages/__init__.py - Image diff packages test package
#
# This file is part of the imgdiff project.
#
# SPDX-License-Identifier: Apache-2.0
