# -*- coding: utf-8 -*-
"""
c45py.training
==============

Training orchestration: shuffled train/test partitioning, a single
build-and-evaluate run (:func:`train`) and k-fold cross-validation
(:func:`cross_validate`).

Randomness is not seeded by default.  Every function accepts ``seed`` (an int,
a ``numpy.random.RandomState`` or None), resolved with
:func:`sklearn.utils.check_random_state`; the same seed and inputs always give
the same partitions, trees and metrics.  Input records are never modified.

Errors raised while building a tree (see :mod:`c45py.exceptions`) propagate
unchanged to the caller.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

import numpy as np
from joblib import Parallel, delayed
from sklearn.utils import check_random_state

from .config import DEFAULT_FOLDS, DEFAULT_TEST_RATIO, TrainingConfig, resolve_config
from .exceptions import EmptyDatasetError, InvalidInputError
from .logger import get_logger
from .metrics import EvaluationResult, evaluate
from .rules import extract_rules
from .tree import TreeNode, build_tree, count_leaves, tree_depth, tree_to_dict

logger = get_logger(__name__)

METRIC_NAMES = ("accuracy", "precision", "recall", "f1")


# -----------------------------------------------------------------------------
# Partitioning
# -----------------------------------------------------------------------------
def shuffle_records(records: Iterable[Mapping[str, Any]], seed=None) -> list:
    """Uniform random permutation of ``records`` as a new list."""
    rows = list(records)
    rng = check_random_state(seed)
    order = rng.permutation(len(rows))
    return [rows[i] for i in order]


def split(records: Iterable[Mapping[str, Any]], test_ratio: float = DEFAULT_TEST_RATIO,
          seed=None) -> tuple[list, list]:
    """
    Shuffle and slice ``records`` into ``(train, test)``.

    The test set holds ``floor(n * test_ratio)`` records and the training set
    the remaining ``ceil(n * (1 - test_ratio))``.
    """
    if not 0.0 <= float(test_ratio) < 1.0:
        raise InvalidInputError("test_ratio must lie in [0, 1)")
    shuffled = shuffle_records(records, seed)
    n_test = int(math.floor(len(shuffled) * float(test_ratio)))
    n_train = len(shuffled) - n_test
    return shuffled[:n_train], shuffled[n_train:]


def _fit(train_rows: list, cfg: TrainingConfig) -> TreeNode:
    return build_tree(train_rows, cfg.target_attribute, cfg.min_samples,
                      cfg.min_gain_ratio, cfg.excluded_attributes)


def _score(tree: TreeNode, test_rows: list, cfg: TrainingConfig) -> EvaluationResult:
    return evaluate(tree, test_rows, cfg.target_attribute, cfg.positive_class,
                    cfg.default_label)


def _require_records(records) -> list:
    rows = list(records) if records is not None else []
    if not rows:
        raise EmptyDatasetError("Training data must not be empty")
    return rows


# -----------------------------------------------------------------------------
# Single run
# -----------------------------------------------------------------------------
@dataclass
class TrainingResult:
    tree: TreeNode
    metrics: EvaluationResult
    rules: list
    train_set: list
    test_set: list
    config: TrainingConfig

    def to_dict(self) -> dict:
        return {"tree": tree_to_dict(self.tree),
                "metrics": self.metrics.to_dict(),
                "rules": [r.to_dict() for r in self.rules],
                "train_size": len(self.train_set),
                "test_size": len(self.test_set),
                "config": self.config.to_dict()}


def train(records: Iterable[Mapping[str, Any]],
          config: TrainingConfig | Mapping[str, Any] | None = None,
          seed=None, **overrides) -> TrainingResult:
    """
    Split ``records``, build a tree on the training part and score it on the rest.

    Parameters
    ----------
    records : iterable of mappings
        Labelled records.
    config : TrainingConfig or mapping, optional
        Hyper-parameters; keyword ``overrides`` are applied on top.
    seed : int, RandomState or None
        Controls the shuffle.

    Returns
    -------
    TrainingResult
    """
    cfg = resolve_config(config, **overrides)
    rows = _require_records(records)
    train_set, test_set = split(rows, cfg.test_ratio, seed)
    logger.info("training on %d records, testing on %d", len(train_set), len(test_set))

    tree = _fit(train_set, cfg)
    metrics = _score(tree, test_set, cfg)
    rules = extract_rules(tree)
    logger.info("tree: %d leaves, depth %d; accuracy=%.4f precision=%.4f recall=%.4f f1=%.4f",
                count_leaves(tree), tree_depth(tree), metrics.accuracy,
                metrics.precision, metrics.recall, metrics.f1)
    return TrainingResult(tree=tree, metrics=metrics, rules=rules,
                          train_set=train_set, test_set=test_set, config=cfg)


# -----------------------------------------------------------------------------
# Cross-validation
# -----------------------------------------------------------------------------
@dataclass
class FoldResult:
    index: int
    metrics: EvaluationResult
    train_size: int
    test_size: int


@dataclass
class CrossValidationResult:
    folds: list
    mean: dict = field(default_factory=dict)
    std: dict = field(default_factory=dict)
    config: Optional[TrainingConfig] = None

    @property
    def k(self) -> int:
        return len(self.folds)

    def fold_scores(self, metric: str = "accuracy") -> list[float]:
        return [getattr(f.metrics, metric) for f in self.folds]

    def to_dict(self) -> dict:
        return {"folds": [{"index": f.index, "train_size": f.train_size,
                           "test_size": f.test_size, "metrics": f.metrics.to_dict()}
                          for f in self.folds],
                "mean": dict(self.mean), "std": dict(self.std),
                "config": self.config.to_dict() if self.config else None}


def fold_bounds(n: int, k: int) -> list[tuple[int, int]]:
    """Contiguous ``[start, end)`` slices; the last fold absorbs the remainder."""
    size = n // k
    return [(i * size, n if i == k - 1 else (i + 1) * size) for i in range(k)]


def _run_fold(index: int, train_rows: list, test_rows: list,
              cfg: TrainingConfig) -> FoldResult:
    tree = _fit(train_rows, cfg)
    metrics = _score(tree, test_rows, cfg)
    return FoldResult(index=index, metrics=metrics,
                      train_size=len(train_rows), test_size=len(test_rows))


def cross_validate(records: Iterable[Mapping[str, Any]], k: int = DEFAULT_FOLDS,
                   config: TrainingConfig | Mapping[str, Any] | None = None,
                   seed=None, n_jobs: Optional[int] = None,
                   **overrides) -> CrossValidationResult:
    """
    k-fold cross-validation.

    The records are shuffled once and cut into ``k`` contiguous folds; each
    fold is held out once while a tree is built on the others.  Folds are
    independent and run through :class:`joblib.Parallel` (``n_jobs``).

    Returns
    -------
    CrossValidationResult
        Per-fold metrics plus the mean and population standard deviation of
        accuracy, precision, recall and F1.

    Raises
    ------
    InvalidInputError
        If ``k`` is not between 2 and the number of records.
    """
    cfg = resolve_config(config, **overrides)
    rows = _require_records(records)
    n, k = len(rows), int(k)
    if k < 2 or k > n:
        raise InvalidInputError(f"k must lie in [2, {n}], got {k}")

    shuffled = shuffle_records(rows, seed)
    jobs = []
    for i, (start, end) in enumerate(fold_bounds(n, k)):
        test_rows = shuffled[start:end]
        train_rows = shuffled[:start] + shuffled[end:]
        jobs.append(delayed(_run_fold)(i, train_rows, test_rows, cfg))
    folds = Parallel(n_jobs=n_jobs)(jobs)

    mean, std = {}, {}
    for name in METRIC_NAMES:
        values = np.array([getattr(f.metrics, name) for f in folds], dtype=float)
        mean[name] = float(values.mean())
        std[name] = float(values.std())
    logger.info("%d-fold cross-validation: mean accuracy=%.4f (std %.4f)",
                k, mean["accuracy"], std["accuracy"])
    return CrossValidationResult(folds=list(folds), mean=mean, std=std, config=cfg)
