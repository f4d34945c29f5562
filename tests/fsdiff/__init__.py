# Copyright Red Hat
#
# tests/fsdiff/__init__.py - Image diff fsdiff test package
#
# This file is part of the imgdiff project.
#
# SPDX-License-Identifier: Apache-2.0
