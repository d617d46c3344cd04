# c45py/__init__.py
"""
c45py: C4.5-style categorical decision trees for stock-status prediction.

Exports:
    - build_tree, predict, advise, evaluate, extract_rules
    - split, train, cross_validate
    - ModelRegistry
    - C45Classifier
"""
import logging

from .classifier import C45Classifier
from .config import TrainingConfig
from .criteria import entropy, gain_ratio, group_by
from .exceptions import (
    C45Error,
    EmptyDatasetError,
    InvalidInputError,
    MissingTargetAttributeError,
    ModelNotFoundError,
    NoSplittableAttributeError,
)
from .metrics import EvaluationResult, evaluate
from .predictor import PredictionResult, StockAdvice, advise, predict, predict_batch
from .registry import ModelArtifact, ModelRegistry
from .rules import Rule, extract_rules
from .training import cross_validate, split, train
from .tree import LeafNode, SplitNode, build_tree, tree_from_dict, tree_to_dict

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "C45Classifier",
    "TrainingConfig",
    "entropy",
    "gain_ratio",
    "group_by",
    "C45Error",
    "EmptyDatasetError",
    "InvalidInputError",
    "MissingTargetAttributeError",
    "ModelNotFoundError",
    "NoSplittableAttributeError",
    "EvaluationResult",
    "evaluate",
    "PredictionResult",
    "predict",
    "predict_batch",
    "StockAdvice",
    "advise",
    "ModelArtifact",
    "ModelRegistry",
    "Rule",
    "extract_rules",
    "cross_validate",
    "split",
    "train",
    "LeafNode",
    "SplitNode",
    "build_tree",
    "tree_from_dict",
    "tree_to_dict",
]
__version__ = "0.1.0"
