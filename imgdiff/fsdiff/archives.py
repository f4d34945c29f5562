# Copyright Red Hat
#
# imgdiff/fsdiff/archives.py - Image diff archive detection
#
# This file is part of the imgdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Archive detection support.

Archives are recognised by file name pattern. Optionally the MIME type
reported by libmagic can be used to recognise tar archives with
unconventional names.
"""
from typing import ClassVar, Iterable, Optional, Tuple
from fnmatch import fnmatchcase
import logging
import os

import magic

from imgdiff import IMGDIFF_SUBSYSTEM_FSDIFF

from .options import DiffOptions, TAR_ARCHIVE_PATTERNS

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_fsdiff(log: logging.Logger, msg, *args, **kwargs):
    """A wrapper for fsdiff subsystem debug logs."""
    log.debug(msg, *args, extra={"subsystem": IMGDIFF_SUBSYSTEM_FSDIFF}, **kwargs)


def is_archive(path: str, patterns: Iterable[str] = TAR_ARCHIVE_PATTERNS) -> bool:
    """
    Test whether ``path`` names an archive according to ``patterns``.

    Only the final path component is matched and matching is case
    sensitive. The file itself is never opened.

    :param path: The path to test.
    :type path: ``str``
    :param patterns: Glob patterns identifying archives.
    :type patterns: ``Iterable[str]``
    :returns: ``True`` if ``path`` names an archive or ``False`` otherwise.
    :rtype: ``bool``
    """
    name = os.path.basename(path.rstrip(os.sep))
    return any(fnmatchcase(name, pattern) for pattern in patterns)


def _detect_mime_type(path: str, log: logging.Logger) -> Optional[str]:
    """
    Return the MIME type of ``path`` as reported by libmagic.

    :param path: The path to inspect.
    :type path: ``str``
    :param log: The logger to report detection failures to.
    :type log: ``logging.Logger``
    :returns: The detected MIME type or ``None`` if detection failed.
    :rtype: ``Optional[str]``
    """
    # c9s magic does not have magic.error
    if hasattr(magic, "error"):
        magic_errors = (magic.error, OSError, ValueError)
    else:
        magic_errors = (OSError, ValueError)

    try:
        return magic.detect_from_filename(path).mime_type
    except magic_errors as err:
        log.warning("Error detecting file type for %s: %s", path, err)
        return None


class ArchiveDetector:
    """
    Decide whether directory entries are archives.
    """

    #: MIME types identifying tar archives
    archive_mime_types: ClassVar[Tuple[str, ...]] = (
        "application/x-tar",
        "application/x-gtar",
        "application/x-ustar",
    )

    def __init__(
        self, options: Optional[DiffOptions] = None, log: Optional[logging.Logger] = None
    ):
        """
        Initialise a new ``ArchiveDetector``.

        :param options: Options controlling archive detection.
        :type options: ``Optional[DiffOptions]``
        :param log: A logger to receive diagnostics. Defaults to the module
                    logger.
        :type log: ``Optional[logging.Logger]``
        """
        options = options or DiffOptions()
        self.patterns: Tuple[str, ...] = tuple(options.archive_patterns)
        self.use_magic: bool = options.use_magic_archive_detection
        self.log: logging.Logger = log or _log

    def is_archive(self, path: str) -> bool:
        """
        Test whether the entry at ``path`` is an archive.

        :param path: The path to test.
        :type path: ``str``
        :returns: ``True`` if ``path`` is an archive or ``False`` otherwise.
        :rtype: ``bool``
        """
        if is_archive(path, self.patterns):
            return True
        if not self.use_magic or os.path.isdir(path):
            return False

        mime_type = _detect_mime_type(path, self.log)
        _log_debug_fsdiff(self.log, "Detected MIME type %s for %s", mime_type, path)
        return mime_type in self.archive_mime_types


__all__ = [
    "ArchiveDetector",
    "is_archive",
]
