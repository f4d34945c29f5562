# Copyright Red Hat
#
# imgdiff/packages/__init__.py - Image diff packages package
#
# This file is part of the imgdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Package inventory diff package.

Provides the single-version and multi-version package diff algorithms, the
analyzer interfaces that supply package inventories, and the diff and
analysis operations combining the two.
"""
from .analyzers import (
    MultiVersionPackageAnalyzer,
    PackageAnalyzer,
    SingleVersionPackageAnalyzer,
    multi_version_analysis,
    multi_version_diff,
    single_version_analysis,
    single_version_diff,
)
from .engine import get_map_diff, get_multi_version_map_diff
from .types import (
    MultiVersionPackageAnalyzeResult,
    MultiVersionPackageDiff,
    MultiVersionPackageDiffResult,
    PackageDiff,
    PackageInfo,
    PackageInfoDiff,
    SingleVersionPackageAnalyzeResult,
    SingleVersionPackageDiffResult,
)

__all__ = [
    "MultiVersionPackageAnalyzer",
    "PackageAnalyzer",
    "SingleVersionPackageAnalyzer",
    "multi_version_analysis",
    "multi_version_diff",
    "single_version_analysis",
    "single_version_diff",
    "get_map_diff",
    "get_multi_version_map_diff",
    "MultiVersionPackageAnalyzeResult",
    "MultiVersionPackageDiff",
    "MultiVersionPackageDiffResult",
    "PackageDiff",
    "PackageInfo",
    "PackageInfoDiff",
    "SingleVersionPackageAnalyzeResult",
    "SingleVersionPackageDiffResult",
]
