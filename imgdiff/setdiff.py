# Copyright Red Hat
#
# imgdiff/setdiff.py - Image diff set operations
#
# This file is part of the imgdiff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Set operations over ordered string sequences.

The sequences are treated as sets: duplicates are ignored and order does
not affect membership. Results keep the first-appearance order of the
sequence they are drawn from so that callers get a stable ordering.
"""
from typing import Iterable, List


def _select(values: Iterable[str], keep) -> List[str]:
    """
    Return the unique members of ``values`` for which ``keep`` is true.

    :param values: The sequence to filter.
    :type values: ``Iterable[str]``
    :param keep: A predicate applied to each distinct member.
    :returns: The selected members in first-appearance order.
    :rtype: ``List[str]``
    """
    seen = set()
    selected = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        if keep(value):
            selected.append(value)
    return selected


def get_matches(a: Iterable[str], b: Iterable[str]) -> List[str]:
    """
    Return the elements present in both ``a`` and ``b``.

    :param a: The old sequence.
    :type a: ``Iterable[str]``
    :param b: The new sequence.
    :type b: ``Iterable[str]``
    :returns: Common elements in the order they appear in ``a``.
    :rtype: ``List[str]``
    """
    b_set = set(b)
    return _select(a, lambda value: value in b_set)


def get_additions(a: Iterable[str], b: Iterable[str]) -> List[str]:
    """
    Return the elements present in ``b`` but not in ``a``.

    :param a: The old sequence.
    :type a: ``Iterable[str]``
    :param b: The new sequence.
    :type b: ``Iterable[str]``
    :returns: Added elements in the order they appear in ``b``.
    :rtype: ``List[str]``
    """
    a_set = set(a)
    return _select(b, lambda value: value not in a_set)


def get_deletions(a: Iterable[str], b: Iterable[str]) -> List[str]:
    """
    Return the elements present in ``a`` but not in ``b``.

    :param a: The old sequence.
    :type a: ``Iterable[str]``
    :param b: The new sequence.
    :type b: ``Iterable[str]``
    :returns: Deleted elements in the order they appear in ``a``.
    :rtype: ``List[str]``
    """
    b_set = set(b)
    return _select(a, lambda value: value not in b_set)


__all__ = [
    "get_matches",
    "get_additions",
    "get_deletions",
]
