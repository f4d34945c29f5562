# Copyright Red Hat
#
# imgdiff/fsdiff/filediffer.py - Image diff file system differ
#
# This file is part of the imgdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Top-level fsdiff interface.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import logging

from imgdiff import Image, JsonRecord

from .directory import Directory, get_directory
from .engine import DiffEngine, DirDiff, DirectoryEntry
from .options import DiffOptions

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

#: Diff and analysis type label for file system results
FILE_DIFF_TYPE = "File"


@dataclass(frozen=True)
class DirDiffResult(JsonRecord):
    """
    Result of diffing the file systems of two images.
    """

    image1: str = ""
    image2: str = ""
    diff_type: str = ""
    diff: DirDiff = field(default_factory=DirDiff)
    same: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "image1": self.image1,
            "image2": self.image2,
            "diff_type": self.diff_type,
            "diff": self.diff.to_dict(),
            "same": self.same,
        }


@dataclass(frozen=True)
class DirectoryAnalyzeResult(JsonRecord):
    """
    The file system entries of one image with their sizes.
    """

    image: str = ""
    analyze_type: str = ""
    analysis: List[DirectoryEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "image": self.image,
            "analyze_type": self.analyze_type,
            "analysis": [entry.to_dict() for entry in self.analysis],
        }


class FileDiffer:
    """
    Top-level interface for comparing and inspecting image file systems.
    """

    #: Label used as the diff or analysis type of results
    label = FILE_DIFF_TYPE

    def __init__(
        self, options: Optional[DiffOptions] = None, log: Optional[logging.Logger] = None
    ):
        """
        Initialise a new ``FileDiffer``.

        :param options: Options to control this ``FileDiffer`` instance.
        :type options: ``Optional[DiffOptions]``
        :param log: A logger to receive diagnostics.
        :type log: ``Optional[logging.Logger]``
        """
        self.options: DiffOptions = options or DiffOptions()
        self.log: logging.Logger = log or _log
        self.diff_engine: DiffEngine = DiffEngine(self.options, self.log)

    def snapshot(self, image: Image) -> Directory:
        """
        Return a snapshot of the unpacked file system of ``image``.

        :param image: The image to snapshot.
        :type image: ``Image``
        :returns: A snapshot rooted at ``image.fs_path``.
        :rtype: ``Directory``
        :raises: ``ImgdiffPathError`` if the file system cannot be listed.
        """
        self.log.info("Reading file system of %s from %s", image.source, image.fs_path)
        return get_directory(image.fs_path, deep=self.options.deep, log=self.log)

    def diff(self, image1: Image, image2: Image) -> DirDiffResult:
        """
        Compare the file systems of two images.

        :param image1: The first (old) image.
        :type image1: ``Image``
        :param image2: The second (new) image.
        :type image2: ``Image``
        :returns: The diff result.
        :rtype: ``DirDiffResult``
        :raises: ``ImgdiffPathError`` if either file system cannot be listed.
        """
        dir1 = self.snapshot(image1)
        dir2 = self.snapshot(image2)

        dir_diff, same = self.diff_engine.diff_directory(dir1, dir2)
        return DirDiffResult(
            image1=image1.source,
            image2=image2.source,
            diff_type=self.label,
            diff=dir_diff,
            same=same,
        )

    def analyze(self, image: Image) -> DirectoryAnalyzeResult:
        """
        List the file system entries of one image with their sizes.

        :param image: The image to inspect.
        :type image: ``Image``
        :returns: The analysis result.
        :rtype: ``DirectoryAnalyzeResult``
        :raises: ``ImgdiffPathError`` if the file system cannot be listed.
        """
        directory = self.snapshot(image)
        return DirectoryAnalyzeResult(
            image=image.source,
            analyze_type=self.label,
            analysis=self.diff_engine.get_directory_entries(directory),
        )


__all__ = [
    "FILE_DIFF_TYPE",
    "DirDiffResult",
    "DirectoryAnalyzeResult",
    "FileDiffer",
]
