# Copyright Red Hat
#
# imgdiff/packages/engine.py - Image diff package diff engine
#
# This file is part of the imgdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Package inventory diff engine.
"""
from typing import Dict, Optional
import logging

from imgdiff import IMGDIFF_SUBSYSTEM_PACKAGES
from imgdiff.setdiff import get_additions, get_deletions

from .types import (
    MultiVersionInventory,
    MultiVersionPackageDiff,
    PackageDiff,
    PackageInfo,
    PackageInfoDiff,
    SingleVersionInventory,
)

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_packages(log: logging.Logger, msg, *args, **kwargs):
    """A wrapper for packages subsystem debug logs."""
    log.debug(msg, *args, extra={"subsystem": IMGDIFF_SUBSYSTEM_PACKAGES}, **kwargs)


def get_map_diff(
    packages1: SingleVersionInventory,
    packages2: SingleVersionInventory,
    log: Optional[logging.Logger] = None,
) -> PackageDiff:
    """
    Compare two single-version package inventories.

    Packages only found in ``packages2`` are added, packages only found in
    ``packages1`` are removed and packages found in both with differing
    ``PackageInfo`` are modified. Packages with identical information are
    omitted.

    :param packages1: The first (old) inventory.
    :type packages1: ``Dict[str, PackageInfo]``
    :param packages2: The second (new) inventory.
    :type packages2: ``Dict[str, PackageInfo]``
    :param log: An optional logger to use for diagnostics.
    :type log: ``Optional[logging.Logger]``
    :returns: The package difference.
    :rtype: ``PackageDiff``
    """
    log = log or _log

    added = {name: packages2[name] for name in sorted(set(packages2) - set(packages1))}
    removed = {
        name: packages1[name] for name in sorted(set(packages1) - set(packages2))
    }

    modified = {}
    for name in sorted(set(packages1) & set(packages2)):
        info1, info2 = packages1[name], packages2[name]
        if info1 != info2:
            modified[name] = PackageInfoDiff(info1, info2)

    _log_debug_packages(
        log,
        "Package diff: %d added, %d removed, %d modified",
        len(added),
        len(removed),
        len(modified),
    )
    return PackageDiff(added=added, removed=removed, modified=modified)


def _select_versions(
    versions: Dict[str, PackageInfo], selected
) -> Dict[str, PackageInfo]:
    return {version: versions[version] for version in sorted(selected)}


def get_multi_version_map_diff(
    packages1: MultiVersionInventory,
    packages2: MultiVersionInventory,
    log: Optional[logging.Logger] = None,
) -> MultiVersionPackageDiff:
    """
    Compare two multi-version package inventories.

    For every package name found in either inventory the version keys are
    compared as sets: versions only in ``packages2`` are added and versions
    only in ``packages1`` are removed. A version found in both inventories
    is never reported, even if its metadata differs. Packages without added
    or removed versions are omitted.

    :param packages1: The first (old) inventory.
    :type packages1: ``Dict[str, Dict[str, PackageInfo]]``
    :param packages2: The second (new) inventory.
    :type packages2: ``Dict[str, Dict[str, PackageInfo]]``
    :param log: An optional logger to use for diagnostics.
    :type log: ``Optional[logging.Logger]``
    :returns: The per-package version difference.
    :rtype: ``MultiVersionPackageDiff``
    """
    log = log or _log

    added = {}
    removed = {}
    for name in sorted(set(packages1) | set(packages2)):
        versions1 = packages1.get(name, {})
        versions2 = packages2.get(name, {})

        new_versions = get_additions(versions1.keys(), versions2.keys())
        old_versions = get_deletions(versions1.keys(), versions2.keys())

        if new_versions:
            added[name] = _select_versions(versions2, new_versions)
        if old_versions:
            removed[name] = _select_versions(versions1, old_versions)
        if new_versions or old_versions:
            _log_debug_packages(
                log,
                "Package %s: versions added %s, removed %s",
                name,
                new_versions,
                old_versions,
            )

    return MultiVersionPackageDiff(added=added, removed=removed)


__all__ = [
    "get_map_diff",
    "get_multi_version_map_diff",
]
