# -*- coding: utf-8 -*-
"""
c45py.classifier
================

A scikit-learn style estimator around :func:`c45py.tree.build_tree`.

Rows of ``X`` are turned into records keyed by ``feature_names`` and the
labels ``y`` become the target attribute, so every feature is treated as
categorical: one branch per distinct value.  Rule tracing, rule export,
pretty printing and Graphviz export work on the fitted tree.
"""

from __future__ import annotations

import numpy as np
from sklearn.base import BaseEstimator, ClassifierMixin

from .config import DEFAULT_MIN_GAIN_RATIO, DEFAULT_MIN_SAMPLES
from .predictor import predict as _predict_record
from .rules import extract_rules
from .tree import build_tree, export_graphviz as _export_graphviz, format_tree

_TARGET = "__target__"


class C45Classifier(BaseEstimator, ClassifierMixin):
    """
    Categorical decision tree classifier in the style of Quinlan's C4.5.

    Parameters
    ----------
    min_samples : int, default=5
        Nodes with fewer training samples become leaves.
    min_gain_ratio : float, default=0.01
        Minimum gain ratio required to accept a split.
    default_label : object or None, default=None
        Prediction for samples that reach a value never seen during training.
        ``None`` uses the majority class of the training labels.
    feature_names : list[str] or None, default=None
        Names used for the record attributes and in rule exports.  Defaults
        to ``f0, f1, ...``.

    Attributes
    ----------
    tree_ : LeafNode or SplitNode
        Root of the fitted tree.
    classes_ : ndarray
        Class labels seen during ``fit``.
    feature_names_ : list[str]
        Feature names used by the tree.
    """

    def __init__(self, *, min_samples: int = DEFAULT_MIN_SAMPLES,
                 min_gain_ratio: float = DEFAULT_MIN_GAIN_RATIO,
                 default_label=None, feature_names: list[str] | None = None):
        self.min_samples = min_samples
        self.min_gain_ratio = min_gain_ratio
        self.default_label = default_label
        self.feature_names = feature_names

    def _records(self, X) -> list[dict]:
        X = np.asarray(X, dtype=object)
        if X.ndim != 2:
            raise ValueError("X must be a 2-dimensional array")
        if X.shape[1] != len(self.feature_names_):
            raise ValueError("X has %d features, expected %d"
                             % (X.shape[1], len(self.feature_names_)))
        return [dict(zip(self.feature_names_, row)) for row in X]

    def _check_fitted(self):
        if getattr(self, "tree_", None) is None:
            raise ValueError("Estimator not fitted. Call fit(...) first.")

    def fit(self, X, y, feature_names=None):
        X = np.asarray(X, dtype=object)
        y = np.asarray(y)
        if X.ndim != 2:
            raise ValueError("X must be a 2-dimensional array")
        if len(X) != len(y):
            raise ValueError("X and y must have the same number of samples")
        n_features = X.shape[1]
        names = feature_names if feature_names is not None else self.feature_names
        if names is not None:
            if len(names) != n_features:
                raise ValueError("feature_names length must match X.shape[1]")
            self.feature_names_ = [str(n) for n in names]
        else:
            self.feature_names_ = [f"f{i}" for i in range(n_features)]
        if _TARGET in self.feature_names_:
            raise ValueError(f"{_TARGET!r} is reserved and cannot be a feature name")

        self.classes_ = np.unique(y)
        records = self._records(X)
        labels = y.tolist()
        for record, label in zip(records, labels):
            record[_TARGET] = label
        self.tree_ = build_tree(records, _TARGET, self.min_samples,
                                self.min_gain_ratio, excluded_attributes=())
        if self.default_label is None:
            counts = self.tree_.class_distribution or {}
            self.default_label_ = max(counts, key=counts.get) if counts else None
        else:
            self.default_label_ = self.default_label
        return self

    def predict(self, X):
        """
        Predict class labels for the provided samples.

        Returns
        -------
        ndarray of shape (n_samples,)
            Predicted class labels.

        Raises
        ------
        ValueError
            If the estimator has not been fitted.
        """
        self._check_fitted()
        return np.array([_predict_record(self.tree_, r, self.default_label_).label
                         for r in self._records(X)])

    def predict_path(self, X) -> list[list[str]]:
        """The ``attribute=value`` steps taken by each sample."""
        self._check_fitted()
        return [_predict_record(self.tree_, r, self.default_label_).path
                for r in self._records(X)]

    def predict_rule(self, X) -> list[str]:
        """
        Return the decision rule (antecedent) followed by each input sample.

        Samples predicted at the root, or stopped on an unseen value before
        any step, get ``"<root>"``.
        """
        return [" AND ".join(path) if path else "<root>" for path in self.predict_path(X)]

    def export_rules(self) -> list[str]:
        """All rules of the tree as ``<antecedent> => <class>`` strings."""
        self._check_fitted()
        return [str(rule) for rule in extract_rules(self.tree_)]

    def print_tree(self) -> None:
        self._check_fitted()
        print(format_tree(self.tree_), end="")

    def export_graphviz(self, filename: str | None = None, *, format: str = "png") -> str:
        """Export the fitted tree, see :func:`c45py.tree.export_graphviz`."""
        self._check_fitted()
        return _export_graphviz(self.tree_, filename, format=format)
