# Copyright Red Hat
#
# imgdiff/_imgdiff.py - Image diff global definitions
#
# This file is part of the imgdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Global definitions for the top-level imgdiff package.
"""
from dataclasses import dataclass
from typing import Any, Dict
import logging
import json
import math

_log = logging.getLogger("imgdiff")

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

# Imgdiff debugging subsystem mask (legacy interface)
IMGDIFF_DEBUG_PACKAGES = 1
IMGDIFF_DEBUG_FSDIFF = 2
IMGDIFF_DEBUG_ALL = IMGDIFF_DEBUG_PACKAGES | IMGDIFF_DEBUG_FSDIFF

# Imgdiff debugging subsystem names
IMGDIFF_SUBSYSTEM_PACKAGES = "imgdiff.packages"
IMGDIFF_SUBSYSTEM_FSDIFF = "imgdiff.fsdiff"

_DEBUG_MASK_TO_SUBSYSTEM = {
    IMGDIFF_DEBUG_PACKAGES: IMGDIFF_SUBSYSTEM_PACKAGES,
    IMGDIFF_DEBUG_FSDIFF: IMGDIFF_SUBSYSTEM_FSDIFF,
}

_debug_subsystems = set()

#: Size value reported for entries whose size could not be determined.
SIZE_UNKNOWN = -1


class SubsystemFilter(logging.Filter):
    """
    Filters DEBUG records based on a set of enabled subsystem names.
    Non-DEBUG records or DEBUG records without a 'subsystem' attribute
    are always passed through.
    """

    def __init__(self, name=""):
        super().__init__(name)
        self.enabled_subsystems = set(_debug_subsystems)

    def filter(self, record):
        # Always pass non-DEBUG messages.
        if record.levelno != logging.DEBUG:
            return True

        # Always pass DEBUG messages that aren't for a specific subsystem.
        if not hasattr(record, "subsystem"):
            return True

        # For subsystem-specific DEBUG messages, check if the subsystem is enabled.
        return record.subsystem in self.enabled_subsystems

    def set_debug_subsystems(self, subsystems):
        """Sets the collection of subsystems to allow."""
        self.enabled_subsystems = set(subsystems)


def get_debug_mask():
    """
    Return the current debug mask for the ``imgdiff`` package.

    :returns: The current debug mask value
    :rtype: int
    """
    enabled_subsystems = set(_debug_subsystems)
    imgdiff_log = logging.getLogger("imgdiff")

    for handler in imgdiff_log.handlers:
        for f in handler.filters:
            if isinstance(f, SubsystemFilter):
                enabled_subsystems.update(f.enabled_subsystems)

    mask_map = {v: k for k, v in _DEBUG_MASK_TO_SUBSYSTEM.items()}
    mask = 0
    for subsystem_name in enabled_subsystems:
        mask |= mask_map.get(subsystem_name, 0)
    return mask


def set_debug_mask(mask):
    """
    Set the debug mask for the ``imgdiff`` package.

    :param mask: the logical OR of the ``IMGDIFF_DEBUG_*``
                 values to log.
    :rtype: None
    """
    # pylint: disable=global-statement
    global _debug_subsystems

    if mask < 0 or mask > IMGDIFF_DEBUG_ALL:
        raise ValueError(f"Invalid imgdiff debug mask: {mask}")

    enabled_subsystems = []
    for flag, subsystem_name in _DEBUG_MASK_TO_SUBSYSTEM.items():
        if mask & flag:
            enabled_subsystems.append(subsystem_name)

    imgdiff_log = logging.getLogger("imgdiff")
    for handler in imgdiff_log.handlers:
        for f in handler.filters:
            if isinstance(f, SubsystemFilter):
                f.set_debug_subsystems(enabled_subsystems)

    _debug_subsystems = set(enabled_subsystems)


#
# Imgdiff exception types
#


class ImgdiffError(Exception):
    """
    Base class for image diff errors.
    """


class ImgdiffInventoryError(ImgdiffError):
    """
    A package inventory could not be obtained for an image.
    """

    def __init__(self, image: str, result, msg: str):
        """
        Initialise a new `ImgdiffInventoryError` exception.

        :param image: The source identifier of the image that failed.
        :param result: The empty result record for the failed operation.
        :param msg: A description of the failure.
        """
        self.image, self.result = image, result
        super().__init__(f"Failed to get packages for {image}: {msg}")


class ImgdiffPathError(ImgdiffError):
    """
    An invalid path was supplied, for example a snapshot root that cannot
    be listed.
    """


class ImgdiffArgumentError(ImgdiffError):
    """
    An invalid argument was passed to an image diff API call.
    """


class JsonRecord:
    """
    Mixin providing JSON encoding for records implementing ``to_dict()``.
    """

    def to_dict(self) -> Dict[str, Any]:  # pragma: no cover
        """
        Convert this record into a dictionary suitable for encoding as JSON.
        """
        raise NotImplementedError

    def json(self, pretty=False) -> str:
        """
        Return a string representation of this record in JSON notation.

        :param pretty: Indent JSON to be human readable.
        :type pretty: ``bool``
        :returns: A JSON representation of this instance.
        :rtype: ``str``
        """
        return json.dumps(self.to_dict(), indent=4 if pretty else None)


@dataclass(frozen=True)
class Image:
    """
    An image to inspect: a label plus the root of its unpacked file system.
    """

    #: Identifier used to label results
    source: str = ""
    #: Root of the image's unpacked file system
    fs_path: str = ""


def size_fmt(value):
    """
    Format a size in bytes as a human readable string.

    :param value: The integer value to format.
    :returns: A human readable string reflecting value.
    """
    if value == SIZE_UNKNOWN:
        return "unknown"
    suffixes = ["B", "KiB", "MiB", "GiB", "TiB", "PiB", "EiB", "ZiB"]
    if value == 0:
        return "0B"
    magnitude = math.floor(math.log(abs(value), 1024))
    val = value / math.pow(1024, magnitude)
    if magnitude > 7:
        return f"{val:.1f}YiB"
    return f"{val:3.1f}{suffixes[magnitude]}"


__all__ = [
    "IMGDIFF_DEBUG_PACKAGES",
    "IMGDIFF_DEBUG_FSDIFF",
    "IMGDIFF_DEBUG_ALL",
    # Debug logging - subsystem name interface
    "SubsystemFilter",
    "IMGDIFF_SUBSYSTEM_PACKAGES",
    "IMGDIFF_SUBSYSTEM_FSDIFF",
    # Debug logging - legacy interface
    "set_debug_mask",
    "get_debug_mask",
    "SIZE_UNKNOWN",
    "ImgdiffError",
    "ImgdiffInventoryError",
    "ImgdiffPathError",
    "ImgdiffArgumentError",
    "JsonRecord",
    "Image",
    "size_fmt",
]
