# Copyright Red Hat
#
# imgdiff/packages/types.py - Image diff package types
#
# This file is part of the imgdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Package inventory and package diff result types.
"""
from dataclasses import dataclass, field
from typing import Any, Dict

from imgdiff import JsonRecord

#: Single-version inventory: package name to ``PackageInfo``.
SingleVersionInventory = Dict[str, "PackageInfo"]

#: Multi-version inventory: package name to (version to ``PackageInfo``).
MultiVersionInventory = Dict[str, Dict[str, "PackageInfo"]]


@dataclass(frozen=True)
class PackageInfo(JsonRecord):
    """
    Metadata for one installed package version.
    """

    version: str = ""
    size: int = 0

    def __str__(self):
        return f"{self.version} ({self.size})"

    def to_dict(self) -> Dict[str, Any]:
        return {"version": self.version, "size": self.size}


@dataclass(frozen=True)
class PackageInfoDiff(JsonRecord):
    """
    A package present in both inventories with differing metadata.
    """

    #: Metadata in the first (old) inventory
    info1: PackageInfo
    #: Metadata in the second (new) inventory
    info2: PackageInfo

    def to_dict(self) -> Dict[str, Any]:
        return {"info1": self.info1.to_dict(), "info2": self.info2.to_dict()}


def _infos_to_dict(infos: Dict[str, PackageInfo]) -> Dict[str, Any]:
    return {name: info.to_dict() for name, info in infos.items()}


def _versions_to_dict(packages: MultiVersionInventory) -> Dict[str, Any]:
    return {name: _infos_to_dict(versions) for name, versions in packages.items()}


@dataclass(frozen=True)
class PackageDiff(JsonRecord):
    """
    Difference between two single-version package inventories.

    Each mapping is keyed by package name and iterates in name order.
    """

    #: Packages only present in the second inventory
    added: Dict[str, PackageInfo] = field(default_factory=dict)
    #: Packages only present in the first inventory
    removed: Dict[str, PackageInfo] = field(default_factory=dict)
    #: Packages present in both inventories with differing metadata
    modified: Dict[str, PackageInfoDiff] = field(default_factory=dict)

    @property
    def same(self) -> bool:
        """
        ``True`` if the inventories compared equal.
        """
        return not (self.added or self.removed or self.modified)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "added": _infos_to_dict(self.added),
            "removed": _infos_to_dict(self.removed),
            "modified": {
                name: info_diff.to_dict() for name, info_diff in self.modified.items()
            },
        }


@dataclass(frozen=True)
class MultiVersionPackageDiff(JsonRecord):
    """
    Difference between two multi-version package inventories.

    Versions are distinct entities: a version is either added or removed as
    a whole. Only packages with at least one added or removed version are
    present.
    """

    #: Package name to the versions only present in the second inventory
    added: Dict[str, Dict[str, PackageInfo]] = field(default_factory=dict)
    #: Package name to the versions only present in the first inventory
    removed: Dict[str, Dict[str, PackageInfo]] = field(default_factory=dict)

    @property
    def same(self) -> bool:
        """
        ``True`` if the inventories compared equal.
        """
        return not (self.added or self.removed)

    @property
    def packages(self):
        """
        The sorted names of all packages with version changes.
        """
        return sorted(set(self.added) | set(self.removed))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "added": _versions_to_dict(self.added),
            "removed": _versions_to_dict(self.removed),
        }


@dataclass(frozen=True)
class SingleVersionPackageDiffResult(JsonRecord):
    """
    Result of diffing the single-version inventories of two images.
    """

    image1: str = ""
    image2: str = ""
    diff_type: str = ""
    diff: PackageDiff = field(default_factory=PackageDiff)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "image1": self.image1,
            "image2": self.image2,
            "diff_type": self.diff_type,
            "diff": self.diff.to_dict(),
        }


@dataclass(frozen=True)
class MultiVersionPackageDiffResult(JsonRecord):
    """
    Result of diffing the multi-version inventories of two images.
    """

    image1: str = ""
    image2: str = ""
    diff_type: str = ""
    diff: MultiVersionPackageDiff = field(default_factory=MultiVersionPackageDiff)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "image1": self.image1,
            "image2": self.image2,
            "diff_type": self.diff_type,
            "diff": self.diff.to_dict(),
        }


@dataclass(frozen=True)
class SingleVersionPackageAnalyzeResult(JsonRecord):
    """
    The single-version inventory of one image.
    """

    image: str = ""
    analyze_type: str = ""
    analysis: Dict[str, PackageInfo] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "image": self.image,
            "analyze_type": self.analyze_type,
            "analysis": _infos_to_dict(self.analysis),
        }


@dataclass(frozen=True)
class MultiVersionPackageAnalyzeResult(JsonRecord):
    """
    The multi-version inventory of one image.
    """

    image: str = ""
    analyze_type: str = ""
    analysis: Dict[str, Dict[str, PackageInfo]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "image": self.image,
            "analyze_type": self.analyze_type,
            "analysis": _versions_to_dict(self.analysis),
        }


__all__ = [
    "SingleVersionInventory",
    "MultiVersionInventory",
    "PackageInfo",
    "PackageInfoDiff",
    "PackageDiff",
    "MultiVersionPackageDiff",
    "SingleVersionPackageDiffResult",
    "MultiVersionPackageDiffResult",
    "SingleVersionPackageAnalyzeResult",
    "MultiVersionPackageAnalyzeResult",
]
