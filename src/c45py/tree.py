# -*- coding: utf-8 -*-
"""
c45py.tree
==========

This module implements C4.5-style induction of categorical decision trees.
Splits are chosen by the gain ratio criterion (see :mod:`c45py.criteria`) and
every split partitions the records on exact attribute-value equality, with one
branch per observed value.  Growth stops on small partitions
(``min_samples``), pure partitions (zero entropy) and weak splits
(``min_gain_ratio``).

Trees are plain data: a :class:`LeafNode` carries a label, a
:class:`SplitNode` carries the split attribute, the gain ratio that justified
it and one child per attribute value.  Every node also records how many
training records reached it and their class distribution; these statistics do
not influence the tree shape.

Construction uses an explicit work stack instead of Python recursion, so very
deep trees on large flat datasets do not hit the interpreter recursion limit.
The module also provides conversion to/from nested dictionaries, a text
rendering and Graphviz export.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Mapping, Optional, Union

from .config import (
    DEFAULT_EXCLUDED_ATTRIBUTES,
    DEFAULT_MIN_GAIN_RATIO,
    DEFAULT_MIN_SAMPLES,
    DEFAULT_TARGET,
)
from .criteria import Record, class_counts, entropy, gain_ratio, group_by
from .exceptions import (
    EmptyDatasetError,
    InvalidInputError,
    MissingTargetAttributeError,
    NoSplittableAttributeError,
)
from .logger import get_logger

logger = get_logger(__name__)


# -----------------------------------------------------------------------------
# Nodes
# -----------------------------------------------------------------------------
@dataclass
class LeafNode:
    """Terminal node predicting a single class label."""
    label: Any
    n_samples: int = 0
    class_distribution: Optional[dict] = None

    is_leaf = True


@dataclass
class SplitNode:
    """Internal node splitting on the exact value of ``attribute``.

    ``branches`` maps the canonical string form of each attribute value seen
    in the node's partition to the child node for that value.
    """
    attribute: Optional[str]
    gain_ratio: float = 0.0
    branches: dict = field(default_factory=dict)
    n_samples: int = 0
    class_distribution: Optional[dict] = None

    is_leaf = False


TreeNode = Union[LeafNode, SplitNode]


def iter_nodes(tree: TreeNode) -> Iterator[tuple[TreeNode, Optional[TreeNode], tuple]]:
    """Yield ``(node, parent, conditions)`` in depth-first pre-order.

    ``conditions`` is the tuple of ``(attribute, value)`` pairs leading from
    the root to ``node``.  Branch order is preserved.
    """
    stack = [(tree, None, ())]
    while stack:
        node, parent, conds = stack.pop()
        yield node, parent, conds
        if node.is_leaf or not node.branches:
            continue
        for value, child in reversed(list(node.branches.items())):
            if child is not None:
                stack.append((child, node, conds + ((node.attribute, value),)))


def count_leaves(tree: TreeNode) -> int:
    return sum(1 for node, _, _ in iter_nodes(tree) if node.is_leaf)


def tree_depth(tree: TreeNode) -> int:
    return max(len(conds) for _, _, conds in iter_nodes(tree))


# -----------------------------------------------------------------------------
# Tree construction (gain ratio)
# -----------------------------------------------------------------------------
def _validate_records(records, target: str) -> list:
    if records is None:
        raise EmptyDatasetError("Data must not be empty")
    if isinstance(records, (str, bytes, Mapping)):
        raise InvalidInputError("Data must be a collection of records (mappings)")
    try:
        rows = list(records)
    except TypeError as e:
        raise InvalidInputError("Data must be a collection of records (mappings)") from e
    if not rows:
        raise EmptyDatasetError("Data must not be empty")
    first = rows[0]
    if not isinstance(first, Mapping):
        raise InvalidInputError("Data must be a collection of records (mappings)")
    if target not in first:
        raise MissingTargetAttributeError(target)
    keys = set(first)
    for i, row in enumerate(rows):
        if not isinstance(row, Mapping):
            raise InvalidInputError(f"Record {i} is not a mapping")
        if set(row) != keys:
            raise InvalidInputError(f"Record {i} does not share the attributes of the first record")
    return rows


class _TreeBuilder:
    def __init__(self, target: str, min_samples: int, min_gain_ratio: float,
                 candidates: list[str]):
        self.target = target
        self.min_samples = int(min_samples)
        self.min_gain_ratio = float(min_gain_ratio)
        self.candidates = candidates

    def build(self, rows: list) -> TreeNode:
        holder: dict = {}
        stack = [(holder, "root", rows)]
        while stack:
            parent, key, subset = stack.pop()
            node, pending = self._grow(subset)
            parent[key] = node
            for value, group in reversed(pending):
                stack.append((node.branches, value, group))
        return holder["root"]

    def _leaf(self, label, counts: dict, n: int) -> LeafNode:
        return LeafNode(label=label, n_samples=n, class_distribution=counts)

    def _grow(self, rows: list) -> tuple[TreeNode, list]:
        """Turn one partition into a node; return it with the groups still to expand."""
        target = self.target
        n = len(rows)
        counts = class_counts(rows, target)
        if n < self.min_samples:
            return self._leaf(max(counts, key=counts.get), counts, n), []
        if entropy(rows, target) == 0.0:
            return self._leaf(rows[0][target], counts, n), []
        if not self.candidates:
            raise NoSplittableAttributeError("No attributes available to split on")

        best_attr, best_gr = None, 0.0
        for attr in self.candidates:
            gr = gain_ratio(rows, attr, target)
            if gr > best_gr:
                best_attr, best_gr = attr, gr
        if best_attr is None or best_gr < self.min_gain_ratio:
            return self._leaf(max(counts, key=counts.get), counts, n), []

        node = SplitNode(attribute=best_attr, gain_ratio=best_gr, branches={},
                         n_samples=n, class_distribution=counts)
        pending = []
        for value, group in group_by(rows, best_attr).items():
            group_counts = class_counts(group, target)
            if len(group_counts) == 1:
                node.branches[value] = self._leaf(next(iter(group_counts)), group_counts, len(group))
            else:
                # placeholder keeps the branch in first-occurrence order
                node.branches[value] = None
                pending.append((value, group))
        logger.debug("split on %r (gain ratio %.4f, %d records, %d branches)",
                     best_attr, best_gr, n, len(node.branches))
        return node, pending


def build_tree(records: Iterable[Record],
               target: str = DEFAULT_TARGET,
               min_samples: int = DEFAULT_MIN_SAMPLES,
               min_gain_ratio: float = DEFAULT_MIN_GAIN_RATIO,
               excluded_attributes: Iterable[str] = DEFAULT_EXCLUDED_ATTRIBUTES) -> TreeNode:
    """
    Induce a decision tree from ``records``.

    Parameters
    ----------
    records : iterable of mappings
        Training records, all sharing the same attribute names.  They are
        never modified.
    target : str, default="status_stok"
        The class attribute.
    min_samples : int, default=5
        Partitions smaller than this become majority-class leaves.
    min_gain_ratio : float, default=0.01
        Best splits with a lower gain ratio become majority-class leaves.
    excluded_attributes : iterable of str
        Bookkeeping attributes never used for splitting.

    Returns
    -------
    LeafNode or SplitNode
        Root of the tree.

    Raises
    ------
    EmptyDatasetError
        If ``records`` is empty.
    MissingTargetAttributeError
        If the first record has no ``target`` attribute.
    InvalidInputError
        If ``records`` is not a collection of mappings sharing one key set.
    NoSplittableAttributeError
        If a split is needed but every attribute is the target or excluded.
    """
    rows = _validate_records(records, target)
    excluded = set(excluded_attributes or ())
    candidates = [a for a in rows[0].keys() if a != target and a not in excluded]
    builder = _TreeBuilder(target, min_samples, min_gain_ratio, candidates)
    tree = builder.build(rows)
    logger.debug("built tree from %d records: %d leaves, depth %d",
                 len(rows), count_leaves(tree), tree_depth(tree))
    return tree


# -----------------------------------------------------------------------------
# Plain-data conversion
# -----------------------------------------------------------------------------
def _node_to_dict(node: TreeNode) -> dict:
    if node.is_leaf:
        d = {"type": "leaf", "label": node.label}
    else:
        d = {"type": "categorical", "attribute": node.attribute,
             "gain_ratio": node.gain_ratio, "branches": {}}
    d["n_samples"] = node.n_samples
    d["class_distribution"] = (dict(node.class_distribution)
                               if node.class_distribution is not None else None)
    return d


def tree_to_dict(tree: TreeNode) -> dict:
    """Convert a tree into nested dictionaries (no behaviour attached)."""
    converted: dict[int, dict] = {}
    root = None
    for node, parent, conds in iter_nodes(tree):
        d = _node_to_dict(node)
        converted[id(node)] = d
        if parent is None:
            root = d
        else:
            converted[id(parent)]["branches"][conds[-1][1]] = d
    return root


def _node_from_dict(data) -> TreeNode:
    if not isinstance(data, Mapping):
        # compact form: a branch holding the label directly
        return LeafNode(label=data)
    counts = data.get("class_distribution")
    counts = dict(counts) if counts is not None else None
    n = int(data.get("n_samples") or 0)
    if data.get("type") == "leaf":
        return LeafNode(label=data.get("label"), n_samples=n, class_distribution=counts)
    return SplitNode(attribute=data.get("attribute"),
                     gain_ratio=float(data.get("gain_ratio") or 0.0),
                     branches={}, n_samples=n, class_distribution=counts)


def tree_from_dict(data: Mapping) -> TreeNode:
    """Rebuild a tree from :func:`tree_to_dict` output.

    Split nodes without an attribute or branches are kept as they are; the
    predictor treats them as dead ends.
    """
    root = _node_from_dict(data)
    stack = [(root, data)]
    while stack:
        node, raw = stack.pop()
        if node.is_leaf:
            continue
        for value, child_raw in (raw.get("branches") or {}).items():
            child = _node_from_dict(child_raw)
            node.branches[str(value)] = child
            if isinstance(child_raw, Mapping):
                stack.append((child, child_raw))
    return root


# -----------------------------------------------------------------------------
# Printing / Graphviz
# -----------------------------------------------------------------------------
def format_tree(tree: TreeNode, indent: str = "  ") -> str:
    """Render the tree as indented ``attribute = value`` lines."""
    lines = []
    for node, _, conds in iter_nodes(tree):
        depth = len(conds)
        if conds:
            attr, value = conds[-1]
            lines.append(f"{indent * (depth - 1)}{attr} = {value}")
        if node.is_leaf:
            lines.append(f"{indent * depth}-> {node.label}")
    return "\n".join(lines) + "\n"


def print_tree(tree: TreeNode) -> None:
    print(format_tree(tree), end="")


def export_graphviz(tree: TreeNode, filename: str | None = None, *,
                    format: str = "png") -> str:
    """
    Export the tree structure in Graphviz format.

    Parameters
    ----------
    tree : LeafNode or SplitNode
        Root of the tree.
    filename : str or None, default=None
        Basename of the output file (the extension is determined by
        ``format``). If None, the DOT source code is returned as a string
        and no file is written.
    format : str, default="png"
        Graphviz output format.  ``'dot'`` writes the DOT source directly and
        does not call the external ``dot`` command.

    Returns
    -------
    str
        Path to the written file, or the DOT source code if filename is None.

    Raises
    ------
    RuntimeError
        If the ``graphviz`` package is not installed.
    """
    try:
        import graphviz
    except ImportError as e:
        raise RuntimeError("Graphviz is required for export_graphviz but not installed.") from e
    dot = graphviz.Digraph(comment="C45 decision tree", format=format)
    names: dict[int, str] = {}
    for node, parent, conds in iter_nodes(tree):
        name = f"n{len(names)}"
        names[id(node)] = name
        if node.is_leaf:
            dist = dict(node.class_distribution) if node.class_distribution else {}
            dot.node(name, f"{node.label}\nN={node.n_samples} {dist}",
                     shape="box", style="filled", color="lightgrey")
        else:
            dot.node(name, f"{node.attribute}\ngain ratio={node.gain_ratio:.4f}",
                     shape="ellipse", style="filled", color="lightblue")
        if parent is not None:
            dot.edge(names[id(parent)], name, label=str(conds[-1][1]))

    if filename is None:
        return dot.source
    if format.lower() == "dot":
        path = f"{filename}.dot"
        dot.save(path)
        return path
    try:
        dot.render(filename, cleanup=True)
        return f"{filename}.{format}"
    except Exception:
        # e.g. missing graphviz binary
        fallback_path = f"{filename}.dot"
        dot.save(fallback_path)
        return fallback_path
