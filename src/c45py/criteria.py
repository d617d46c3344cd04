# -*- coding: utf-8 -*-
"""
c45py.criteria
==============

Information-theoretic splitting criteria over collections of records.

A *record* is a mapping from attribute name to a scalar value.  All functions
here are pure: they never mutate the records they receive.  Attribute values
are grouped by their canonical string form (see :func:`canonical_value`), so
``1``, ``1.0`` and ``"1"`` fall into the same branch.
"""

from __future__ import annotations

from collections import Counter
from typing import Any, Mapping, Sequence

import numpy as np

from .exceptions import EmptyDatasetError

Record = Mapping[str, Any]


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def is_missing(v) -> bool:
    return (v is None) or (isinstance(v, float) and np.isnan(v))


def canonical_value(v) -> str:
    """Return the string key used to group and route attribute values."""
    if isinstance(v, np.generic):
        v = v.item()
    if isinstance(v, float) and v.is_integer():
        return str(int(v))
    return str(v)


def _entropy(dist_vec: np.ndarray) -> float:
    tot = dist_vec.sum()
    if tot <= 0:
        return 0.0
    p = dist_vec / tot
    p = p[p > 0]
    if p.size <= 1:
        return 0.0
    return float(-np.sum(p * np.log2(p)))


def _split_info(sizes: np.ndarray) -> float:
    tot = sizes.sum()
    if tot <= 0:
        return 0.0
    w = sizes[sizes > 0] / tot
    if w.size <= 1:
        return 0.0
    return float(-np.sum(w * np.log2(w)))


def class_counts(records: Sequence[Record], target: str) -> dict:
    """Count target values, keyed in order of first occurrence."""
    return dict(Counter(r[target] for r in records))


def majority_class(records: Sequence[Record], target: str):
    """Most frequent target value; ties go to the value seen first."""
    counts = class_counts(records, target)
    return max(counts, key=counts.get)


# -----------------------------------------------------------------------------
# Criteria
# -----------------------------------------------------------------------------
def entropy(records: Sequence[Record], target: str) -> float:
    """
    Shannon entropy (base 2) of the target distribution.

    Raises
    ------
    EmptyDatasetError
        If ``records`` is empty.
    """
    if not records:
        raise EmptyDatasetError("Data must not be empty")
    counts = np.fromiter(class_counts(records, target).values(), dtype=float)
    return _entropy(counts)


def group_by(records: Sequence[Record], attribute: str) -> dict[str, list]:
    """Partition ``records`` by the canonical value of ``attribute``.

    Groups are ordered by first occurrence; each group keeps the input order.
    """
    groups: dict[str, list] = {}
    for row in records:
        groups.setdefault(canonical_value(row[attribute]), []).append(row)
    return groups


def split_information(groups: Mapping[str, Sequence[Record]]) -> float:
    sizes = np.fromiter((len(g) for g in groups.values()), dtype=float)
    return _split_info(sizes)


def gain_ratio(records: Sequence[Record], attribute: str, target: str) -> float:
    """
    Information gain of splitting on ``attribute`` divided by its split information.

    The ratio is 0 when the split information is 0 (every record shares one
    value) and when every record carries its own value: such identifier-like
    attributes never win a split.
    """
    parent = entropy(records, target)
    groups = group_by(records, attribute)
    n = float(len(records))
    if len(groups) == len(records):
        return 0.0
    si = split_information(groups)
    if si <= 0:
        return 0.0
    after = sum(len(g) / n * entropy(g, target) for g in groups.values())
    return float((parent - after) / si)
