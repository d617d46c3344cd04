"""Flatten a decision tree into condition -> result rules."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from .tree import TreeNode, iter_nodes

ROOT_CONDITION = "default"


@dataclass(frozen=True)
class Rule:
    condition: str
    result: Any
    confidence: float = 1.0
    support: float = 1.0

    def to_dict(self) -> dict:
        return asdict(self)

    def __str__(self) -> str:
        return f"{self.condition} => {self.result}"


def _leaf_stats(leaf, root_n: int) -> tuple[float, float]:
    dist = leaf.class_distribution
    n = leaf.n_samples
    if not dist or n <= 0 or root_n <= 0:
        return 1.0, 1.0
    return dist.get(leaf.label, 0) / n, n / root_n


def extract_rules(tree: TreeNode, path_prefix: str = "") -> list[Rule]:
    """
    One rule per leaf, in depth-first branch order.

    The condition joins the ``attribute=value`` steps from the root with
    ``AND``, after ``path_prefix`` when one is given.  When the tree records
    training statistics, ``confidence`` is the share of the leaf's records
    carrying its label and ``support`` the share of the root's records that
    reach the leaf; otherwise both are 1.0.
    """
    rules: list[Rule] = []
    root_n = tree.n_samples
    for node, _, conds in iter_nodes(tree):
        if not node.is_leaf:
            continue
        parts = [path_prefix] if path_prefix else []
        parts += [f"{attr}={value}" for attr, value in conds]
        confidence, support = _leaf_stats(node, root_n)
        rules.append(Rule(condition=" AND ".join(parts) or ROOT_CONDITION,
                          result=node.label, confidence=confidence, support=support))
    return rules


def parse_condition(condition: str) -> dict[str, str]:
    """Turn an ``a=x AND b=y`` condition back into ``{"a": "x", "b": "y"}``."""
    if condition == ROOT_CONDITION:
        return {}
    terms = {}
    for part in condition.split(" AND "):
        attr, _, value = part.partition("=")
        terms[attr] = value
    return terms
