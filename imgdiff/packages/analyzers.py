# Copyright Red Hat
#
# imgdiff/packages/analyzers.py - Image diff package analyzers
#
# This file is part of the imgdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Package analyzer interfaces and the diff/analysis operations built on them.

Analyzers come in two shapes: single-version analyzers (at most one
installed version per package name, e.g. OS package managers) and
multi-version analyzers (several versions of a package may coexist, e.g.
language package managers). The two shapes use separate interfaces and
separate diff code paths.
"""
from abc import ABC, abstractmethod
from typing import Optional
import logging

from imgdiff import Image, ImgdiffInventoryError, IMGDIFF_SUBSYSTEM_PACKAGES

from .engine import get_map_diff, get_multi_version_map_diff
from .types import (
    MultiVersionInventory,
    MultiVersionPackageAnalyzeResult,
    MultiVersionPackageDiffResult,
    SingleVersionInventory,
    SingleVersionPackageAnalyzeResult,
    SingleVersionPackageDiffResult,
)

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_packages(msg, *args, **kwargs):
    """A wrapper for packages subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": IMGDIFF_SUBSYSTEM_PACKAGES}, **kwargs)


class PackageAnalyzer(ABC):
    """
    Abstract base class for package analyzers.
    """

    #: Display name of this analyzer
    name = "PackageAnalyzer"
    #: Label used as the diff or analysis type of results
    label = "Package"

    def __str__(self):
        return self.name


class SingleVersionPackageAnalyzer(PackageAnalyzer):
    """
    Abstract base class for analyzers producing single-version inventories.
    """

    @abstractmethod
    def get_packages(self, image: Image) -> SingleVersionInventory:
        """
        Return the package inventory of ``image``.

        :param image: The image to inspect.
        :type image: ``Image``
        :returns: A map of package name to ``PackageInfo``.
        :rtype: ``Dict[str, PackageInfo]``
        """


class MultiVersionPackageAnalyzer(PackageAnalyzer):
    """
    Abstract base class for analyzers producing multi-version inventories.
    """

    @abstractmethod
    def get_packages(self, image: Image) -> MultiVersionInventory:
        """
        Return the package inventory of ``image``.

        :param image: The image to inspect.
        :type image: ``Image``
        :returns: A map of package name to a map of version to
                  ``PackageInfo``.
        :rtype: ``Dict[str, Dict[str, PackageInfo]]``
        """


def _get_packages(image: Image, analyzer: PackageAnalyzer, empty_result):
    """
    Fetch the inventory of ``image`` from ``analyzer``.

    :param image: The image to inspect.
    :param analyzer: The analyzer to query.
    :param empty_result: The empty result record to attach to any error.
    :returns: The inventory returned by ``analyzer``.
    :raises: ``ImgdiffInventoryError`` if the analyzer fails.
    """
    _log_debug_packages("Getting %s packages for %s", analyzer.label, image.source)
    try:
        return analyzer.get_packages(image)
    except Exception as err:  # pylint: disable=broad-exception-caught
        _log_error(
            "Error getting %s packages for %s: %s", analyzer.name, image.source, err
        )
        raise ImgdiffInventoryError(image.source, empty_result, str(err)) from err


def single_version_diff(
    image1: Image,
    image2: Image,
    differ: SingleVersionPackageAnalyzer,
    log: Optional[logging.Logger] = None,
) -> SingleVersionPackageDiffResult:
    """
    Diff the single-version package inventories of two images.

    :param image1: The first (old) image.
    :type image1: ``Image``
    :param image2: The second (new) image.
    :type image2: ``Image``
    :param differ: The analyzer used to obtain both inventories.
    :type differ: ``SingleVersionPackageAnalyzer``
    :param log: An optional logger to use for diagnostics.
    :type log: ``Optional[logging.Logger]``
    :returns: The diff result.
    :rtype: ``SingleVersionPackageDiffResult``
    :raises: ``ImgdiffInventoryError`` carrying an empty
             ``SingleVersionPackageDiffResult`` if either inventory cannot
             be obtained.
    """
    empty = SingleVersionPackageDiffResult()
    packages1 = _get_packages(image1, differ, empty)
    packages2 = _get_packages(image2, differ, empty)

    return SingleVersionPackageDiffResult(
        image1=image1.source,
        image2=image2.source,
        diff_type=differ.label,
        diff=get_map_diff(packages1, packages2, log=log),
    )


def multi_version_diff(
    image1: Image,
    image2: Image,
    differ: MultiVersionPackageAnalyzer,
    log: Optional[logging.Logger] = None,
) -> MultiVersionPackageDiffResult:
    """
    Diff the multi-version package inventories of two images.

    :param image1: The first (old) image.
    :type image1: ``Image``
    :param image2: The second (new) image.
    :type image2: ``Image``
    :param differ: The analyzer used to obtain both inventories.
    :type differ: ``MultiVersionPackageAnalyzer``
    :param log: An optional logger to use for diagnostics.
    :type log: ``Optional[logging.Logger]``
    :returns: The diff result.
    :rtype: ``MultiVersionPackageDiffResult``
    :raises: ``ImgdiffInventoryError`` carrying an empty
             ``MultiVersionPackageDiffResult`` if either inventory cannot
             be obtained.
    """
    empty = MultiVersionPackageDiffResult()
    packages1 = _get_packages(image1, differ, empty)
    packages2 = _get_packages(image2, differ, empty)

    return MultiVersionPackageDiffResult(
        image1=image1.source,
        image2=image2.source,
        diff_type=differ.label,
        diff=get_multi_version_map_diff(packages1, packages2, log=log),
    )


def single_version_analysis(
    image: Image, analyzer: SingleVersionPackageAnalyzer
) -> SingleVersionPackageAnalyzeResult:
    """
    Return the single-version package inventory of one image.

    :param image: The image to inspect.
    :type image: ``Image``
    :param analyzer: The analyzer used to obtain the inventory.
    :type analyzer: ``SingleVersionPackageAnalyzer``
    :returns: The analysis result.
    :rtype: ``SingleVersionPackageAnalyzeResult``
    :raises: ``ImgdiffInventoryError`` if the inventory cannot be obtained.
    """
    packages = _get_packages(image, analyzer, SingleVersionPackageAnalyzeResult())
    return SingleVersionPackageAnalyzeResult(
        image=image.source,
        analyze_type=analyzer.label,
        analysis=packages,
    )


def multi_version_analysis(
    image: Image, analyzer: MultiVersionPackageAnalyzer
) -> MultiVersionPackageAnalyzeResult:
    """
    Return the multi-version package inventory of one image.

    :param image: The image to inspect.
    :type image: ``Image``
    :param analyzer: The analyzer used to obtain the inventory.
    :type analyzer: ``MultiVersionPackageAnalyzer``
    :returns: The analysis result.
    :rtype: ``MultiVersionPackageAnalyzeResult``
    :raises: ``ImgdiffInventoryError`` if the inventory cannot be obtained.
    """
    packages = _get_packages(image, analyzer, MultiVersionPackageAnalyzeResult())
    return MultiVersionPackageAnalyzeResult(
        image=image.source,
        analyze_type=analyzer.label,
        analysis=packages,
    )


__all__ = [
    "PackageAnalyzer",
    "SingleVersionPackageAnalyzer",
    "MultiVersionPackageAnalyzer",
    "single_version_diff",
    "multi_version_diff",
    "single_version_analysis",
    "multi_version_analysis",
]
