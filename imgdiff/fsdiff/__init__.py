# Copyright Red Hat
#
# imgdiff/fsdiff/__init__.py - Image diff fs differ package
#
# This file is part of the imgdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
File system diff package.

Provides directory snapshot comparison: added, deleted and modified
entries with their sizes. The main entry points are ``diff_directory``,
``DiffEngine``, ``FileDiffer`` and ``DiffOptions``.
"""
from .archives import ArchiveDetector, is_archive
from .directory import Directory, get_directory
from .engine import (
    DiffEngine,
    DiffType,
    DirDiff,
    DirectoryEntry,
    EntryDiff,
    diff_directory,
    get_added_entries,
    get_deleted_entries,
    get_directory_entries,
    get_modified_entries,
    get_size,
)
from .filediffer import DirDiffResult, DirectoryAnalyzeResult, FileDiffer
from .options import DiffOptions

__all__ = [
    "ArchiveDetector",
    "is_archive",
    "DiffType",
    "Directory",
    "get_directory",
    "DiffEngine",
    "DirDiff",
    "DirectoryEntry",
    "EntryDiff",
    "diff_directory",
    "get_added_entries",
    "get_deleted_entries",
    "get_directory_entries",
    "get_modified_entries",
    "get_size",
    "DirDiffResult",
    "DirectoryAnalyzeResult",
    "FileDiffer",
    "DiffOptions",
]
