import numpy as np

from c45py import (
    C45Classifier,
    ModelRegistry,
    cross_validate,
    extract_rules,
    predict,
    predict_batch,
    train,
)


def _records():
    rows = []
    for stok in ("Rendah", "Sedang", "Tinggi"):
        for jual in ("Rendah", "Tinggi"):
            label = {"Rendah": "Perlu Restock", "Tinggi": "Berlebih"}.get(stok, "Cukup")
            for _ in range(4):
                rows.append({"id": len(rows), "stok": stok, "penjualan": jual,
                             "status_stok": label})
    return rows


def test_train_save_predict_smoke(tmp_path):
    result = train(_records(), seed=0, min_samples=2)
    with ModelRegistry(tmp_path) as reg:
        reg.save("stock", result, name="smoke")
    artifact = ModelRegistry(tmp_path).open().latest()
    out = predict(artifact.tree, {"stok": "Rendah", "penjualan": "Tinggi"})
    assert out.label == "Perlu Restock"
    assert 0.5 <= out.confidence <= 1.0
    batch = predict_batch(artifact.tree, _records())
    assert batch.total == len(_records())
    _ = extract_rules(artifact.tree)
    _ = cross_validate(_records(), k=3, seed=0)


def test_classifier_smoke():
    X = np.array([["A", "x"], ["A", "y"], ["B", "x"], ["B", "y"]], dtype=object)
    y = np.array(["no", "no", "yes", "yes"])
    clf = C45Classifier(min_samples=2, feature_names=["grp", "flag"])
    clf.fit(X, y)
    _ = clf.predict(X)
    _ = clf.export_rules()
