# -*- coding: utf-8 -*-
"""
c45py.metrics
=============

Scoring of a decision tree against held-out records.

The headline metrics follow a binary framing: one *positive* class is chosen
(explicitly, or inferred from the labels) and every other class is collapsed
into a single negative bucket.  For targets with more than two classes this is
a simplification, so :class:`EvaluationResult` also carries the full
class-by-class contingency table.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Sequence

import numpy as np

from .config import DEFAULT_LABEL, DEFAULT_TARGET, POSITIVE_CLASS_FALLBACKS
from .predictor import is_restock_label, predict
from .tree import TreeNode


def _safe_div(a: float, b: float, default: float = 0.0) -> float:
    return a / b if b != 0 else default


@dataclass
class EvaluationResult:
    """Confusion counts against ``positive_class`` and the derived metrics.

    Attributes
    ----------
    true_positive, false_positive, true_negative, false_negative : int
        Binary confusion counts.
    accuracy, precision, recall, f1 : float
        Derived metrics in [0, 1]; 0 whenever the denominator is 0.
    positive_class : object
        The class treated as positive.
    labels : list
        Row/column order of ``contingency``.
    contingency : list[list[int]]
        ``contingency[i][j]`` counts records of actual class ``labels[i]``
        predicted as ``labels[j]``.
    """
    true_positive: int = 0
    false_positive: int = 0
    true_negative: int = 0
    false_negative: int = 0
    accuracy: float = 0.0
    precision: float = 0.0
    recall: float = 0.0
    f1: float = 0.0
    positive_class: Any = None
    labels: list = field(default_factory=list)
    contingency: list = field(default_factory=list)

    @property
    def confusion_matrix(self) -> dict:
        return {"true_positive": self.true_positive,
                "false_positive": self.false_positive,
                "true_negative": self.true_negative,
                "false_negative": self.false_negative}

    @property
    def support(self) -> int:
        return (self.true_positive + self.false_positive
                + self.true_negative + self.false_negative)

    def scores(self) -> dict:
        return {"accuracy": self.accuracy, "precision": self.precision,
                "recall": self.recall, "f1": self.f1}

    def to_dict(self) -> dict:
        d = self.scores()
        d["confusion_matrix"] = self.confusion_matrix
        d["positive_class"] = self.positive_class
        d["labels"] = list(self.labels)
        d["contingency"] = [list(row) for row in self.contingency]
        return d


def infer_positive_class(labels: Iterable[Any]):
    """First label naming a restock, else a known "excess" class, else ``"Berlebih"``."""
    observed = list(dict.fromkeys(labels))
    for label in observed:
        if is_restock_label(label):
            return label
    for fallback in POSITIVE_CLASS_FALLBACKS:
        if fallback in observed:
            return fallback
    return POSITIVE_CLASS_FALLBACKS[0]


def contingency_table(actual: Sequence[Any], predicted: Sequence[Any],
                      labels: Optional[Sequence[Any]] = None) -> tuple[list, np.ndarray]:
    """Full C x C table of actual (rows) against predicted (columns) classes."""
    if labels is None:
        labels = list(dict.fromkeys(list(actual) + list(predicted)))
    idx = {lab: i for i, lab in enumerate(labels)}
    M = np.zeros((len(labels), len(labels)), dtype=int)
    for a, p in zip(actual, predicted):
        M[idx[a], idx[p]] += 1
    return list(labels), M


def score_predictions(actual: Sequence[Any], predicted: Sequence[Any],
                      positive_class: Any = None) -> EvaluationResult:
    """Binary confusion counts and metrics for paired label sequences."""
    if len(actual) != len(predicted):
        raise ValueError("actual and predicted must have the same length")
    if positive_class is None:
        positive_class = infer_positive_class(actual)

    tp = fp = tn = fn = 0
    for a, p in zip(actual, predicted):
        if a == positive_class and p == positive_class:
            tp += 1
        elif a != positive_class and p == positive_class:
            fp += 1
        elif a != positive_class and p != positive_class:
            tn += 1
        else:
            fn += 1

    precision = _safe_div(tp, tp + fp)
    recall = _safe_div(tp, tp + fn)
    labels, M = contingency_table(actual, predicted)
    return EvaluationResult(
        true_positive=tp, false_positive=fp, true_negative=tn, false_negative=fn,
        accuracy=_safe_div(tp + tn, tp + fp + tn + fn),
        precision=precision,
        recall=recall,
        f1=_safe_div(2 * precision * recall, precision + recall),
        positive_class=positive_class,
        labels=labels,
        contingency=M.tolist(),
    )


def evaluate(tree: TreeNode, test_records: Iterable[Mapping[str, Any]],
             target: str = DEFAULT_TARGET, positive_class: Any = None,
             default_label: Any = DEFAULT_LABEL) -> EvaluationResult:
    """
    Score ``tree`` on ``test_records``.

    Parameters
    ----------
    tree : LeafNode or SplitNode
        Tree to evaluate.
    test_records : iterable of mappings
        Held-out records, each carrying the ``target`` attribute.
    target : str
        The class attribute.
    positive_class : object, optional
        Class treated as positive.  Inferred from the actual labels when None.
    default_label : object
        Passed to :func:`c45py.predictor.predict` for unroutable records.

    Returns
    -------
    EvaluationResult
        All zeros for an empty test set.
    """
    rows = list(test_records)
    actual = [r[target] for r in rows]
    predicted = [predict(tree, r, default_label).label for r in rows]
    return score_predictions(actual, predicted, positive_class)
