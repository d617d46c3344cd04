"""Classify records by walking a decision tree and turn predictions into restock advice."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from typing import Any, Iterable, Mapping

from .config import (
    DAYS_PER_MONTH,
    DEFAULT_LABEL,
    DEFAULT_LEAD_TIME,
    DEFAULT_LEAD_TIME_ATTRIBUTE,
    DEFAULT_SALES_ATTRIBUTE,
    DEFAULT_STOCK_ATTRIBUTE,
    POSITIVE_CLASS_MARKERS,
    SAFETY_FACTOR,
)
from .criteria import canonical_value, is_missing
from .exceptions import InvalidInputError
from .tree import TreeNode

# Confidence lost per decision on the path, and its floor.
CONFIDENCE_STEP = 0.1
MIN_CONFIDENCE = 0.5


@dataclass
class PredictionResult:
    label: Any
    confidence: float
    path: list = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


def is_restock_label(label) -> bool:
    text = str(label).lower()
    return any(marker in text for marker in POSITIVE_CLASS_MARKERS)


def path_confidence(depth: int) -> float:
    """Depth-penalising heuristic, not a calibrated probability."""
    return max(MIN_CONFIDENCE, 1.0 - CONFIDENCE_STEP * depth)


def predict(tree: TreeNode, record: Mapping[str, Any],
            default_label: Any = DEFAULT_LABEL) -> PredictionResult:
    """
    Route ``record`` from the root to a leaf.

    Attributes the tree does not test are ignored.  When the record lacks the
    attribute tested by a node, holds a missing value for it, or holds a value
    with no matching branch, ``default_label`` is returned instead.  Split
    nodes without an attribute or branches (e.g. from a hand-edited tree)
    resolve the same way.

    Returns
    -------
    PredictionResult
        The label, the heuristic confidence and the ``"attribute=value"``
        steps taken.
    """
    path: list[str] = []
    node = tree
    label = default_label
    while node is not None:
        if node.is_leaf:
            label = node.label
            break
        if not node.attribute or not node.branches:
            break
        value = record.get(node.attribute)
        if is_missing(value):
            break
        key = canonical_value(value)
        child = node.branches.get(key)
        if child is None:
            break
        path.append(f"{node.attribute}={key}")
        node = child
    return PredictionResult(label=label, confidence=path_confidence(len(path)), path=path)


@dataclass
class BatchPrediction:
    predictions: list
    total: int
    positive: int
    negative: int
    average_confidence: float

    @property
    def summary(self) -> dict:
        return {"total": self.total, "positive": self.positive,
                "negative": self.negative,
                "average_confidence": self.average_confidence}

    def to_dict(self) -> dict:
        return {"predictions": [p.to_dict() for p in self.predictions],
                "summary": self.summary}


def predict_batch(tree: TreeNode, records: Iterable[Mapping[str, Any]],
                  default_label: Any = DEFAULT_LABEL,
                  positive_class: Any = None) -> BatchPrediction:
    """Predict every record and count how many land in the positive (restock) class.

    Without an explicit ``positive_class`` a label counts as positive when it
    names a restock, see :func:`is_restock_label`.
    """
    predictions = [predict(tree, r, default_label) for r in records]
    if positive_class is None:
        positive = sum(1 for p in predictions if is_restock_label(p.label))
    else:
        positive = sum(1 for p in predictions if p.label == positive_class)
    total = len(predictions)
    avg = sum(p.confidence for p in predictions) / total if total else 0.0
    return BatchPrediction(predictions=predictions, total=total, positive=positive,
                           negative=total - positive, average_confidence=avg)


# -----------------------------------------------------------------------------
# Restock advice
# -----------------------------------------------------------------------------
RISK_LOW, RISK_MEDIUM, RISK_HIGH = "Low", "Medium", "High"


@dataclass
class StockAdvice:
    risk_level: str
    recommendation: str
    suggested_order: int
    stock_days: float

    def to_dict(self) -> dict:
        return asdict(self)


def _quantity(record: Mapping[str, Any], attribute: str, default: float) -> float:
    value = record.get(attribute)
    if is_missing(value):
        return float(default)
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"Attribute {attribute!r} must be numeric, got {value!r}") from e


def stock_days(stock: float, monthly_sales: float) -> float:
    """Days the current stock lasts at the average daily demand; ``inf`` without sales."""
    daily = monthly_sales / DAYS_PER_MONTH
    if daily <= 0:
        return math.inf
    return stock / daily


def suggested_order(monthly_sales: float, lead_time: float) -> int:
    """Units covering the lead-time demand plus the safety margin."""
    return int(math.ceil(monthly_sales / DAYS_PER_MONTH * lead_time * SAFETY_FACTOR))


def risk_level(label, confidence: float, days: float) -> str:
    """
    Grade a prediction as ``"Low"``, ``"Medium"`` or ``"High"`` risk.

    For a restock prediction the risk grows as the stock runs out or the
    confidence drops.  For any other prediction the risk is only low when
    plenty of stock remains and the prediction is confident.
    """
    if is_restock_label(label):
        if days < 3 or confidence < 0.7:
            return RISK_HIGH
        if days < 7 or confidence < 0.8:
            return RISK_MEDIUM
        return RISK_LOW
    if days > 14 and confidence > 0.8:
        return RISK_LOW
    if days > 7 and confidence > 0.7:
        return RISK_MEDIUM
    return RISK_HIGH


def advise(prediction: PredictionResult, record: Mapping[str, Any],
           stock_attribute: str = DEFAULT_STOCK_ATTRIBUTE,
           sales_attribute: str = DEFAULT_SALES_ATTRIBUTE,
           lead_time_attribute: str = DEFAULT_LEAD_TIME_ATTRIBUTE) -> StockAdvice:
    """
    Turn a prediction into a risk level and a restock recommendation.

    Parameters
    ----------
    prediction : PredictionResult
        Output of :func:`predict` for ``record``.
    record : mapping
        The classified record; it must carry the current stock and the
        average monthly sales.  A missing lead time counts as one day.
    stock_attribute, sales_attribute, lead_time_attribute : str
        Names of the quantity attributes in ``record``.

    Returns
    -------
    StockAdvice
        ``suggested_order`` is 0 unless the prediction is a restock.

    Raises
    ------
    InvalidInputError
        If a quantity attribute holds a non-numeric value.
    """
    stock = _quantity(record, stock_attribute, 0)
    sales = _quantity(record, sales_attribute, 0)
    lead_time = _quantity(record, lead_time_attribute, DEFAULT_LEAD_TIME)
    days = stock_days(stock, sales)
    level = risk_level(prediction.label, prediction.confidence, days)

    if is_restock_label(prediction.label):
        order = suggested_order(sales, lead_time)
        text = (f"Perlu restock segera. Disarankan order {order} unit untuk "
                f"mengantisipasi permintaan selama {lead_time:g} hari.")
    else:
        order = 0
        if math.isinf(days):
            text = f"Stok aman. Tidak perlu restock saat ini. Belum ada penjualan untuk stok {stock:g} unit."
        else:
            text = (f"Stok aman. Tidak perlu restock saat ini. Stok {stock:g} unit "
                    f"cukup untuk {math.ceil(days)} hari ke depan.")
    return StockAdvice(risk_level=level, recommendation=text,
                       suggested_order=order, stock_days=days)
