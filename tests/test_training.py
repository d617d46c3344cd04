import copy

import numpy as np
import pytest
from joblib import parallel_backend

from c45py import (
    EmptyDatasetError,
    InvalidInputError,
    MissingTargetAttributeError,
    NoSplittableAttributeError,
    TrainingConfig,
    cross_validate,
    split,
    train,
)
from c45py.training import fold_bounds


def _stock_records(repeat=4):
    records = []
    for stok in ("Rendah", "Sedang", "Tinggi"):
        for jual in ("Rendah", "Tinggi"):
            if stok == "Rendah" and jual == "Tinggi":
                label = "Perlu Restock"
            elif stok == "Tinggi" and jual == "Rendah":
                label = "Berlebih"
            else:
                label = "Cukup"
            for _ in range(repeat):
                records.append({"id": len(records) + 1, "stok": stok,
                                "penjualan": jual, "status_stok": label})
    return records


def test_split_sizes():
    records = [{"i": i} for i in range(10)]
    train_set, test_set = split(records, 0.3, seed=0)
    assert len(train_set) == 7
    assert len(test_set) == 3
    assert sorted(r["i"] for r in train_set + test_set) == list(range(10))


def test_split_rounds_test_size_down():
    records = [{"i": i} for i in range(7)]
    train_set, test_set = split(records, 0.2, seed=1)
    assert (len(train_set), len(test_set)) == (6, 1)


def test_split_is_reproducible_with_seed():
    records = [{"i": i} for i in range(20)]
    assert split(records, 0.25, seed=42) == split(records, 0.25, seed=42)
    assert split(records, 0.25, seed=np.random.RandomState(3)) == \
        split(records, 0.25, seed=np.random.RandomState(3))


def test_split_does_not_mutate_input():
    records = [{"i": i} for i in range(10)]
    before = copy.deepcopy(records)
    split(records, 0.5, seed=0)
    assert records == before


@pytest.mark.parametrize("ratio", [-0.1, 1.0, 1.5])
def test_split_rejects_bad_ratio(ratio):
    with pytest.raises(InvalidInputError):
        split([{"i": 1}], ratio)


def test_train_result():
    records = _stock_records()
    result = train(records, seed=0, min_samples=2, min_gain_ratio=0.0)
    assert len(result.train_set) + len(result.test_set) == len(records)
    assert len(result.test_set) == 4
    assert result.config.min_samples == 2
    assert result.metrics.support == 4
    assert result.rules
    d = result.to_dict()
    assert d["train_size"] == 20
    assert d["config"]["target_attribute"] == "status_stok"


def test_train_accepts_config_mapping():
    result = train(_stock_records(), {"min_samples": 2, "test_ratio": 0.25}, seed=0)
    assert isinstance(result.config, TrainingConfig)
    assert len(result.test_set) == 6


def test_train_with_no_test_set():
    result = train(_stock_records(), seed=0, test_ratio=0.0)
    assert result.test_set == []
    assert result.metrics.support == 0


def test_train_propagates_build_errors():
    with pytest.raises(EmptyDatasetError):
        train([])
    with pytest.raises(MissingTargetAttributeError):
        train(_stock_records(), target_attribute="missing", seed=0)
    records = [{"id": i, "status_stok": "Cukup" if i % 2 else "Rendah"} for i in range(10)]
    with pytest.raises(NoSplittableAttributeError):
        train(records, seed=0)


def test_train_rejects_unknown_config_keys():
    with pytest.raises(InvalidInputError):
        train(_stock_records(), {"depth": 3})


def test_fold_bounds_last_fold_absorbs_remainder():
    assert fold_bounds(24, 5) == [(0, 4), (4, 8), (8, 12), (12, 16), (16, 24)]
    assert fold_bounds(10, 2) == [(0, 5), (5, 10)]


def test_cross_validate_folds():
    records = _stock_records()
    cv = cross_validate(records, k=5, seed=0, min_samples=2, min_gain_ratio=0.0)
    assert cv.k == 5
    assert [f.index for f in cv.folds] == [0, 1, 2, 3, 4]
    assert [f.test_size for f in cv.folds] == [4, 4, 4, 4, 8]
    assert all(f.train_size + f.test_size == len(records) for f in cv.folds)

    accuracies = cv.fold_scores("accuracy")
    assert min(accuracies) - 1e-12 <= cv.mean["accuracy"] <= max(accuracies) + 1e-12
    assert cv.std["accuracy"] == pytest.approx(float(np.std(accuracies)))
    assert set(cv.mean) == {"accuracy", "precision", "recall", "f1"}


def test_cross_validate_is_reproducible_with_seed():
    records = _stock_records()
    a = cross_validate(records, k=4, seed=7)
    b = cross_validate(records, k=4, seed=7)
    assert a.to_dict() == b.to_dict()


def test_cross_validate_parallel_matches_sequential():
    records = _stock_records()
    sequential = cross_validate(records, k=3, seed=11)
    with parallel_backend("threading", n_jobs=2):
        parallel = cross_validate(records, k=3, seed=11, n_jobs=2)
    assert parallel.to_dict() == sequential.to_dict()


@pytest.mark.parametrize("k", [0, 1, 25])
def test_cross_validate_rejects_bad_k(k):
    with pytest.raises(InvalidInputError):
        cross_validate(_stock_records(), k=k)


def test_cross_validate_propagates_build_errors():
    records = [{"id": i, "status_stok": "Cukup" if i % 2 else "Rendah"} for i in range(20)]
    with pytest.raises(NoSplittableAttributeError):
        cross_validate(records, k=2, seed=0, min_samples=1)
