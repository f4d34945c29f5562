# Copyright Red Hat
#
# imgdiff/fsdiff/directory.py - Image diff directory snapshots
#
# This file is part of the imgdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Directory snapshot support for fsdiff.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional
import logging
import os

from imgdiff import IMGDIFF_SUBSYSTEM_FSDIFF, ImgdiffPathError, JsonRecord

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_fsdiff(log: logging.Logger, msg, *args, **kwargs):
    """A wrapper for fsdiff subsystem debug logs."""
    log.debug(msg, *args, extra={"subsystem": IMGDIFF_SUBSYSTEM_FSDIFF}, **kwargs)


@dataclass
class Directory(JsonRecord):
    """
    A snapshot of a file system tree: a root path and the paths of the
    entries below it, relative to ``root``.

    Each entry of ``content`` resolves to an on-disk path as ``root`` plus
    the entry path. Entries may be files or directories.
    """

    #: The root of the snapshot on the host
    root: str
    #: Entry paths relative to ``root``
    content: List[str] = field(default_factory=list)

    def __len__(self):
        return len(self.content)

    def to_dict(self) -> Dict[str, Any]:
        return {"root": self.root, "content": list(self.content)}


def _sorted_entries(path: str, log: logging.Logger) -> List[os.DirEntry]:
    """
    Return the entries of directory ``path`` sorted by name, or an empty
    list if the directory cannot be read.
    """
    try:
        with os.scandir(path) as it:
            return sorted(it, key=lambda entry: entry.name)
    except OSError as err:
        log.warning("Could not read directory %s: %s", path, err)
        return []


def _is_dir(entry: os.DirEntry) -> bool:
    try:
        return entry.is_dir(follow_symlinks=False)
    except OSError:
        return False


def _walk_lexical(path: str, log: logging.Logger) -> Iterator[str]:
    """
    Yield every path below ``path`` in lexical order, depth first.

    Symbolic links to directories are reported but not followed.
    Directories that cannot be read are logged and not descended into.
    Open levels are kept on an explicit stack; tree depth is not bounded
    by the interpreter recursion limit.

    :param path: The directory to walk.
    :type path: ``str``
    :param log: The logger to report unreadable directories to.
    :type log: ``logging.Logger``
    """
    pending = [iter(_sorted_entries(path, log))]
    while pending:
        entry = next(pending[-1], None)
        if entry is None:
            pending.pop()
            continue
        yield entry.path
        if _is_dir(entry):
            pending.append(iter(_sorted_entries(entry.path, log)))


def get_directory(
    path: str, deep: bool = False, log: Optional[logging.Logger] = None
) -> Directory:
    """
    Build a ``Directory`` snapshot of the tree rooted at ``path``.

    A shallow snapshot lists the direct children of ``path``, each prefixed
    with a path separator. A deep snapshot lists every descendant,
    directories included, as the full path with ``path`` removed from the
    front.

    :param path: The root of the tree.
    :type path: ``str``
    :param deep: Walk the whole tree instead of the direct children only.
    :type deep: ``bool``
    :param log: An optional logger to use for diagnostics.
    :type log: ``Optional[logging.Logger]``
    :returns: A snapshot of the tree.
    :rtype: ``Directory``
    :raises: ``ImgdiffPathError`` if ``path`` cannot be listed.
    """
    log = log or _log
    directory = Directory(path)

    if not deep:
        try:
            names = sorted(os.listdir(path))
        except OSError as err:
            raise ImgdiffPathError(f"Could not list directory {path}: {err}") from err
        directory.content = [os.sep + name for name in names]
        return directory

    if not os.path.isdir(path):
        raise ImgdiffPathError(f"Could not walk directory {path}: not a directory")

    prefix = path.rstrip(os.sep)
    for entry_path in _walk_lexical(path, log):
        name = entry_path.removeprefix(prefix)
        if name:
            directory.content.append(name)

    _log_debug_fsdiff(log, "Found %d entries below %s", len(directory.content), path)
    return directory


__all__ = [
    "Directory",
    "get_directory",
]
