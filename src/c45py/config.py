# -*- coding: utf-8 -*-
"""
c45py.config
============

Default hyper-parameters and the :class:`TrainingConfig` container that the
training orchestrator, the model registry and the estimator share.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields, replace as _replace
from typing import Any, Mapping

from .exceptions import InvalidInputError

DEFAULT_MIN_SAMPLES = 5
DEFAULT_MIN_GAIN_RATIO = 0.01
DEFAULT_TARGET = "status_stok"
DEFAULT_TEST_RATIO = 0.2
DEFAULT_FOLDS = 5

# Bookkeeping columns added by ingestion/persistence; never used for splits.
DEFAULT_EXCLUDED_ATTRIBUTES: tuple[str, ...] = (
    "id",
    "created_at",
    "updated_at",
    "type",
    "split_type",
    "split_percentage",
    "is_processed",
)

# Label returned when a record cannot be routed to a leaf.
DEFAULT_LABEL = "Cukup"

# Substrings marking the "needs restock" class, matched case-insensitively.
POSITIVE_CLASS_MARKERS: tuple[str, ...] = ("restock", "perlu")
# Fallback positive classes when no label matches the markers.
POSITIVE_CLASS_FALLBACKS: tuple[str, ...] = ("Berlebih", "Excess")

# Quantity attributes read by the restock advice, and their units.
DEFAULT_STOCK_ATTRIBUTE = "stok_sekarang"
DEFAULT_SALES_ATTRIBUTE = "penjualan_rata2"      # monthly sales
DEFAULT_LEAD_TIME_ATTRIBUTE = "lead_time"        # days
DEFAULT_LEAD_TIME = 1
DAYS_PER_MONTH = 30
SAFETY_FACTOR = 1.2


@dataclass(frozen=True)
class TrainingConfig:
    """Hyper-parameters of one training run.

    Parameters
    ----------
    min_samples : int, default=5
        Partitions with fewer records become leaves.
    min_gain_ratio : float, default=0.01
        A split is only accepted when its gain ratio reaches this value.
    target_attribute : str, default="status_stok"
        Name of the class attribute.
    test_ratio : float, default=0.2
        Share of the records held out for evaluation by ``train``.
    excluded_attributes : tuple[str, ...]
        Attributes never considered as split candidates.
    default_label : str, default="Cukup"
        Prediction used when a record reaches a branch that does not exist.
    positive_class : str or None, default=None
        Class treated as "positive" by the evaluator. Inferred when ``None``.
    """

    min_samples: int = DEFAULT_MIN_SAMPLES
    min_gain_ratio: float = DEFAULT_MIN_GAIN_RATIO
    target_attribute: str = DEFAULT_TARGET
    test_ratio: float = DEFAULT_TEST_RATIO
    excluded_attributes: tuple[str, ...] = field(default=DEFAULT_EXCLUDED_ATTRIBUTES)
    default_label: Any = DEFAULT_LABEL
    positive_class: Any = None

    def __post_init__(self):
        if int(self.min_samples) < 0:
            raise InvalidInputError("min_samples must be >= 0")
        if not 0.0 <= float(self.test_ratio) < 1.0:
            raise InvalidInputError("test_ratio must lie in [0, 1)")
        # accept any iterable of names but store an immutable tuple
        object.__setattr__(self, "excluded_attributes", tuple(self.excluded_attributes))

    def replace(self, **overrides) -> "TrainingConfig":
        return _replace(self, **overrides)

    def to_dict(self) -> dict:
        d = asdict(self)
        d["excluded_attributes"] = list(self.excluded_attributes)
        return d

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "TrainingConfig":
        if data is None:
            return cls()
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise InvalidInputError(f"Unknown configuration keys: {sorted(unknown)}")
        return cls(**dict(data))


def resolve_config(config: TrainingConfig | Mapping[str, Any] | None = None,
                   **overrides) -> TrainingConfig:
    """Normalise ``config`` (instance, mapping or None) and apply overrides."""
    if isinstance(config, TrainingConfig):
        cfg = config
    else:
        cfg = TrainingConfig.from_dict(config)
    return cfg.replace(**overrides) if overrides else cfg
