# Copyright Red Hat
#
# imgdiff/fsdiff/options.py - Image diff fs diff options
#
# This file is part of the imgdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
File system diff options.
"""
from dataclasses import dataclass, fields
from typing import Tuple, Union
from argparse import Namespace
import logging

from imgdiff import ImgdiffArgumentError

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

#: Default chunk size for streaming content comparison
DEFAULT_CHUNK_SIZE = 2**16

#: File name patterns recognised as tar-family archives (glob notation)
TAR_ARCHIVE_PATTERNS = (
    "*.tar",
    "*.tar.gz",
    "*.tgz",
    "*.tar.bz2",
    "*.tbz2",
    "*.tar.xz",
    "*.txz",
    "*.tar.zst",
    "*.tar.lz",
    "*.tar.lzma",
)


@dataclass(frozen=True)
class DiffOptions:
    """
    File system comparison options.
    """

    #: Compare archive content instead of declaring same-sized archives equal
    strict_archive_compare: bool = False
    #: File patterns identifying archives (glob notation)
    archive_patterns: Tuple[str, ...] = TAR_ARCHIVE_PATTERNS
    #: Also identify archives by MIME type using magic
    use_magic_archive_detection: bool = False
    #: Chunk size for streaming file content comparison
    chunk_size: int = DEFAULT_CHUNK_SIZE
    #: Walk image file systems recursively when building snapshots
    deep: bool = True

    def __post_init__(self):
        if self.chunk_size <= 0:
            raise ImgdiffArgumentError(
                f"Invalid comparison chunk size: {self.chunk_size}"
            )

    def __str__(self):
        """
        Return a human readable string representation of this
        ``DiffOptions`` instance.

        :returns: A human readable string.
        :rtype: ``str``
        """

        def _join_tuple(val: Tuple[str, ...]) -> str:
            """
            Convert string tuples into space separated strings.

            :param val: The value to join.
            :type val: ``Tuple[str, ...]``
            :returns: The string tuple value converted to a space separated
                      string.
            :rtype: ``str``
            """
            return " ".join(val)

        items = [
            (key, val) if not isinstance(val, tuple) else (key, _join_tuple(val))
            for key, val in self.__dict__.items()
        ]
        return "\n".join(f"{key}={val}" for key, val in items)

    @classmethod
    def from_cmd_args(cls, cmd_args: Namespace) -> "DiffOptions":
        """
        Initialise DiffOptions from command line arguments.

        Construct a new ``DiffOptions`` object from the command line
        arguments in ``cmd_args``.

        :param cmd_args: The command line selection arguments.
        :type cmd_args: ``Namespace``
        :returns: A new ``DiffOptions`` instance
        :rtype: ``DiffOptions``
        """

        def get_value(name: str) -> Union[bool, int, Tuple[str, ...]]:
            """
            Get a value from ``cmd_args``, converting lists to tuples.

            :param name: The name of the argument.
            :type name: ``str``
            :returns: The argument converted to a tuple if appropriate.
            :rtype: ``Union[bool, int, Tuple[str, ...]]``
            """
            attr = getattr(cmd_args, name)
            if isinstance(attr, list):
                return tuple(attr)
            return attr

        field_names = {f.name for f in fields(cls)}
        kwargs = {
            name: get_value(name)
            for name in field_names
            if getattr(cmd_args, name, None) is not None
        }
        options = cls(**kwargs)
        _log_debug("Initialised DiffOptions from arguments: %s", repr(options))
        return options


__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "TAR_ARCHIVE_PATTERNS",
    "DiffOptions",
]
