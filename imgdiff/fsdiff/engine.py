# Copyright Red Hat
#
# imgdiff/fsdiff/engine.py - Image diff directory diff engine
#
# This file is part of the imgdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Directory diff engine
"""
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple
import itertools
import logging
import stat
import os

from imgdiff import IMGDIFF_SUBSYSTEM_FSDIFF, SIZE_UNKNOWN, JsonRecord, size_fmt
from imgdiff.setdiff import get_additions, get_deletions, get_matches

from .archives import ArchiveDetector
from .directory import Directory
from .options import DiffOptions

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


class DiffType(Enum):
    """
    The kind of change recorded for a directory entry.
    """

    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"


@dataclass(frozen=True)
class DirectoryEntry(JsonRecord):
    """
    A snapshot entry and its resolved size.

    A size of ``SIZE_UNKNOWN`` (-1) means the size could not be
    determined; it is never a valid size.
    """

    name: str
    size: int

    def __str__(self):
        return f"{self.name} ({size_fmt(self.size)})"

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "size": self.size}


@dataclass(frozen=True)
class EntryDiff(JsonRecord):
    """
    An entry present in both snapshots whose content differs.
    """

    name: str
    #: Size in the first snapshot
    size1: int
    #: Size in the second snapshot
    size2: int

    def __str__(self):
        return f"{self.name} ({size_fmt(self.size1)} -> {size_fmt(self.size2)})"

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "size1": self.size1, "size2": self.size2}


@dataclass(frozen=True)
class DirDiff(JsonRecord):
    """
    The difference between two directory snapshots.
    """

    #: Entries only present in the second snapshot, with their new size
    adds: Tuple[DirectoryEntry, ...] = ()
    #: Entries only present in the first snapshot, with their old size
    dels: Tuple[DirectoryEntry, ...] = ()
    #: Entries present in both snapshots with differing content
    mods: Tuple[EntryDiff, ...] = ()

    def __str__(self):
        return "\n".join(
            f"{diff_type.value}: {entry}" for diff_type, entry in self._entries()
        )

    @property
    def same(self) -> bool:
        """
        ``True`` if the snapshots compared equal.
        """
        return not (self.adds or self.dels or self.mods)

    def _entries(self):
        return itertools.chain(
            ((DiffType.ADDED, entry) for entry in self.adds),
            ((DiffType.REMOVED, entry) for entry in self.dels),
            ((DiffType.MODIFIED, entry) for entry in self.mods),
        )

    def records(self) -> List[Tuple[DiffType, str]]:
        """
        Return a flat list of ``(DiffType, name)`` pairs for every change,
        additions first, then deletions, then modifications.

        :returns: A list of change records.
        :rtype: ``List[Tuple[DiffType, str]]``
        """
        return [(diff_type, entry.name) for diff_type, entry in self._entries()]

    def sort_by_size(self) -> "DirDiff":
        """
        Return a copy of this ``DirDiff`` with each sequence ordered by
        size, largest first. Modified entries are ordered by their size in
        the second snapshot. Ties are ordered by name.

        :returns: A new ``DirDiff`` instance.
        :rtype: ``DirDiff``
        """
        return replace(
            self,
            adds=tuple(sorted(self.adds, key=lambda e: (-e.size, e.name))),
            dels=tuple(sorted(self.dels, key=lambda e: (-e.size, e.name))),
            mods=tuple(sorted(self.mods, key=lambda e: (-e.size2, e.name))),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "adds": [entry.to_dict() for entry in self.adds],
            "dels": [entry.to_dict() for entry in self.dels],
            "mods": [entry.to_dict() for entry in self.mods],
        }


def _entry_path(root: str, name: str) -> str:
    """
    Resolve snapshot entry ``name`` against ``root``.

    :param root: The snapshot root.
    :type root: ``str``
    :param name: The entry path relative to ``root``.
    :type name: ``str``
    :returns: The host path of the entry.
    :rtype: ``str``
    """
    return os.path.join(root, name.lstrip(os.sep))


def _get_directory_size(path: str) -> int:
    """
    Return the summed size of every non-directory below ``path``.

    Descendants are measured with ``lstat()`` so symbolic links count
    their own size. Pending directories are kept on an explicit stack.

    :param path: The directory to measure.
    :type path: ``str``
    :returns: The total size in bytes.
    :rtype: ``int``
    :raises: ``OSError`` if any part of the tree cannot be read.
    """
    size = 0
    pending = [path]
    while pending:
        with os.scandir(pending.pop()) as it:
            for entry in it:
                entry_stat = os.lstat(entry.path)
                if stat.S_ISDIR(entry_stat.st_mode):
                    pending.append(entry.path)
                else:
                    size += entry_stat.st_size
    return size


def get_size(path: str, log: Optional[logging.Logger] = None) -> int:
    """
    Return the size of the entry at ``path``.

    Directories report the recursive sum of the sizes of all their
    non-directory descendants. This function never raises: entries whose
    size cannot be determined are logged and reported as ``SIZE_UNKNOWN``.

    :param path: The path to measure.
    :type path: ``str``
    :param log: An optional logger to use for diagnostics.
    :type log: ``Optional[logging.Logger]``
    :returns: The size in bytes or ``SIZE_UNKNOWN``.
    :rtype: ``int``
    """
    log = log or _log
    try:
        path_stat = os.stat(path)
    except OSError as err:
        log.error("Could not obtain size for %s: %s", path, err)
        return SIZE_UNKNOWN

    if not stat.S_ISDIR(path_stat.st_mode):
        return path_stat.st_size

    try:
        return _get_directory_size(path)
    except OSError as err:
        log.error("Could not obtain directory size for %s: %s", path, err)
        return SIZE_UNKNOWN


def _same_content(path1: str, path2: str, chunk_size: int) -> bool:
    """
    Compare the content of two files chunk by chunk.

    :param path1: The first file.
    :type path1: ``str``
    :param path2: The second file.
    :type path2: ``str``
    :param chunk_size: The number of bytes to compare at a time.
    :type chunk_size: ``int``
    :returns: ``True`` if the files have identical content.
    :rtype: ``bool``
    :raises: ``OSError`` if either file cannot be read.
    """
    with open(path1, "rb") as f1, open(path2, "rb") as f2:
        while True:
            chunk1 = f1.read(chunk_size)
            chunk2 = f2.read(chunk_size)
            if chunk1 != chunk2:
                return False
            if not chunk1:
                return True


class DiffEngine:
    """
    Compute the difference between two directory snapshots.

    Inspection failures for individual entries are logged and the entry is
    left out of the result; they never abort a comparison.

    Type changes are judged from the first snapshot: a regular file that
    became any other kind of entry is modified, while an entry that was a
    directory or special file is never compared, whatever it became.
    """

    def __init__(
        self, options: Optional[DiffOptions] = None, log: Optional[logging.Logger] = None
    ):
        """
        Initialise a new ``DiffEngine``.

        :param options: Options controlling the comparison.
        :type options: ``Optional[DiffOptions]``
        :param log: A logger to receive diagnostics. Defaults to the module
                    logger.
        :type log: ``Optional[logging.Logger]``
        """
        self.options: DiffOptions = options or DiffOptions()
        self.log: logging.Logger = log or _log
        self.archive_detector: ArchiveDetector = ArchiveDetector(
            self.options, self.log
        )

    def _log_debug_fsdiff(self, msg, *args, **kwargs):
        """A wrapper for fsdiff subsystem debug logs."""
        self.log.debug(
            msg, *args, extra={"subsystem": IMGDIFF_SUBSYSTEM_FSDIFF}, **kwargs
        )

    def get_size(self, path: str) -> int:
        """
        Return the size of the entry at ``path`` or ``SIZE_UNKNOWN``.

        :param path: The path to measure.
        :type path: ``str``
        :returns: The size in bytes or ``SIZE_UNKNOWN``.
        :rtype: ``int``
        """
        return get_size(path, log=self.log)

    def create_directory_entries(
        self, root: str, names: Iterable[str]
    ) -> List[DirectoryEntry]:
        """
        Resolve the sizes of ``names`` below ``root``.

        :param root: The snapshot root.
        :type root: ``str``
        :param names: Entry paths relative to ``root``.
        :type names: ``Iterable[str]``
        :returns: A list of entries with their sizes.
        :rtype: ``List[DirectoryEntry]``
        """
        return [
            DirectoryEntry(name, self.get_size(_entry_path(root, name)))
            for name in names
        ]

    def create_entry_diffs(
        self, root1: str, root2: str, names: Iterable[str]
    ) -> List[EntryDiff]:
        """
        Resolve the sizes of ``names`` below both ``root1`` and ``root2``.

        :param root1: The first snapshot root.
        :type root1: ``str``
        :param root2: The second snapshot root.
        :type root2: ``str``
        :param names: Entry paths relative to both roots.
        :type names: ``Iterable[str]``
        :returns: A list of entry diffs with both sizes.
        :rtype: ``List[EntryDiff]``
        """
        return [
            EntryDiff(
                name,
                self.get_size(_entry_path(root1, name)),
                self.get_size(_entry_path(root2, name)),
            )
            for name in names
        ]

    def get_directory_entries(self, directory: Directory) -> List[DirectoryEntry]:
        """
        Return a ``DirectoryEntry`` for every entry of ``directory``.

        :param directory: The snapshot to measure.
        :type directory: ``Directory``
        :returns: A list of entries with their sizes.
        :rtype: ``List[DirectoryEntry]``
        """
        return self.create_directory_entries(directory.root, directory.content)

    def _same_entry(self, name: str, path1: str, path2: str) -> Optional[bool]:
        """
        Apply the equality policy to one entry present in both snapshots.

        :param name: The entry path relative to the snapshot roots.
        :type name: ``str``
        :param path1: The host path of the entry in the first snapshot.
        :type path1: ``str``
        :param path2: The host path of the entry in the second snapshot.
        :type path2: ``str``
        :returns: ``True`` if the entries are the same, ``False`` if they
                  differ, or ``None`` if the entry is not compared.
        :rtype: ``Optional[bool]``
        """
        try:
            stat1 = os.stat(path1)
            stat2 = os.stat(path2)
        except OSError as err:
            self.log.warning("Error checking directory entry %s: %s", name, err)
            return None

        # Archives are expensive to compare: same size means same archive.
        if not self.options.strict_archive_compare and self.archive_detector.is_archive(
            path1
        ):
            return stat1.st_size == stat2.st_size

        # Directories are compared through their own entries.
        if stat.S_ISDIR(stat1.st_mode):
            return None

        if not stat.S_ISREG(stat1.st_mode):
            self._log_debug_fsdiff("Not comparing special file %s", name)
            return None

        if not stat.S_ISREG(stat2.st_mode) or stat1.st_size != stat2.st_size:
            return False

        try:
            return _same_content(path1, path2, self.options.chunk_size)
        except OSError as err:
            self.log.warning(
                "Error diffing contents of %s and %s: %s", path1, path2, err
            )
            return None

    def get_modified_entries(self, d1: Directory, d2: Directory) -> List[str]:
        """
        Return the entries present in both snapshots whose content differs.

        :param d1: The first (old) snapshot.
        :type d1: ``Directory``
        :param d2: The second (new) snapshot.
        :type d2: ``Directory``
        :returns: The modified entry paths in ``d1`` order.
        :rtype: ``List[str]``
        """
        modified = []
        for name in get_matches(d1.content, d2.content):
            same = self._same_entry(
                name, _entry_path(d1.root, name), _entry_path(d2.root, name)
            )
            if same is False:
                modified.append(name)
        return modified

    def diff_directory(self, d1: Directory, d2: Directory) -> Tuple[DirDiff, bool]:
        """
        Compute the difference between two directory snapshots.

        :param d1: The first (old) snapshot.
        :type d1: ``Directory``
        :param d2: The second (new) snapshot.
        :type d2: ``Directory``
        :returns: A tuple of the ``DirDiff`` and a flag that is ``True`` if
                  the snapshots are the same.
        :rtype: ``Tuple[DirDiff, bool]``
        """
        self._log_debug_fsdiff(
            "Comparing %s (%d entries) with %s (%d entries)",
            d1.root,
            len(d1.content),
            d2.root,
            len(d2.content),
        )
        adds = sorted(get_additions(d1.content, d2.content))
        added_entries = self.create_directory_entries(d2.root, adds)

        dels = sorted(get_deletions(d1.content, d2.content))
        deleted_entries = self.create_directory_entries(d1.root, dels)

        mods = sorted(self.get_modified_entries(d1, d2))
        modified_entries = self.create_entry_diffs(d1.root, d2.root, mods)

        dir_diff = DirDiff(
            tuple(added_entries), tuple(deleted_entries), tuple(modified_entries)
        )
        self._log_debug_fsdiff(
            "Directory diff: %d added, %d deleted, %d modified",
            len(adds),
            len(dels),
            len(mods),
        )
        return dir_diff, dir_diff.same


def diff_directory(
    d1: Directory,
    d2: Directory,
    options: Optional[DiffOptions] = None,
    log: Optional[logging.Logger] = None,
) -> Tuple[DirDiff, bool]:
    """
    Compute the difference between two directory snapshots.

    :param d1: The first (old) snapshot.
    :type d1: ``Directory``
    :param d2: The second (new) snapshot.
    :type d2: ``Directory``
    :param options: Options controlling the comparison.
    :type options: ``Optional[DiffOptions]``
    :param log: An optional logger to use for diagnostics.
    :type log: ``Optional[logging.Logger]``
    :returns: A tuple of the ``DirDiff`` and a flag that is ``True`` if the
              snapshots are the same.
    :rtype: ``Tuple[DirDiff, bool]``
    """
    return DiffEngine(options, log).diff_directory(d1, d2)


def get_directory_entries(
    directory: Directory, log: Optional[logging.Logger] = None
) -> List[DirectoryEntry]:
    """
    Return a ``DirectoryEntry`` for every entry of ``directory``.
    """
    return DiffEngine(log=log).get_directory_entries(directory)


def get_added_entries(d1: Directory, d2: Directory) -> List[str]:
    """
    Return the entry paths only present in ``d2``.
    """
    return get_additions(d1.content, d2.content)


def get_deleted_entries(d1: Directory, d2: Directory) -> List[str]:
    """
    Return the entry paths only present in ``d1``.
    """
    return get_deletions(d1.content, d2.content)


def get_modified_entries(
    d1: Directory,
    d2: Directory,
    options: Optional[DiffOptions] = None,
    log: Optional[logging.Logger] = None,
) -> List[str]:
    """
    Return the entry paths present in both snapshots whose content differs.
    """
    return DiffEngine(options, log).get_modified_entries(d1, d2)


__all__ = [
    "DiffType",
    "DirectoryEntry",
    "EntryDiff",
    "DirDiff",
    "DiffEngine",
    "get_size",
    "diff_directory",
    "get_directory_entries",
    "get_added_entries",
    "get_deleted_entries",
    "get_modified_entries",
]
