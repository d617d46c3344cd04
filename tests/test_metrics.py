import pytest

from c45py import LeafNode, SplitNode, evaluate
from c45py.metrics import contingency_table, infer_positive_class, score_predictions


def _restock_tree():
    return SplitNode(attribute="A", gain_ratio=1.0, branches={
        "x": LeafNode("Perlu Restock"),
        "y": LeafNode("Cukup"),
    })


def test_evaluate_confusion_counts():
    test = [{"A": "x", "L": "Perlu Restock"},   # true positive
            {"A": "y", "L": "Cukup"},           # true negative
            {"A": "x", "L": "Cukup"},           # false positive
            {"A": "z", "L": "Perlu Restock"}]   # unseen value -> "Cukup": false negative
    result = evaluate(_restock_tree(), test, "L")
    assert result.positive_class == "Perlu Restock"
    assert result.confusion_matrix == {"true_positive": 1, "false_positive": 1,
                                       "true_negative": 1, "false_negative": 1}
    assert result.accuracy == pytest.approx(0.5)
    assert result.precision == pytest.approx(0.5)
    assert result.recall == pytest.approx(0.5)
    assert result.f1 == pytest.approx(0.5)
    assert result.labels == ["Perlu Restock", "Cukup"]
    assert result.contingency == [[1, 1], [1, 1]]


def test_evaluate_perfect_tree():
    test = [{"A": "x", "L": "Perlu Restock"}, {"A": "y", "L": "Cukup"}] * 3
    result = evaluate(_restock_tree(), test, "L")
    assert result.accuracy == 1.0
    assert result.precision == 1.0
    assert result.recall == 1.0
    assert result.f1 == 1.0


def test_no_positive_members_gives_zero_precision_and_recall():
    tree = SplitNode(attribute="A", branches={"x": LeafNode("Rendah"), "y": LeafNode("Cukup")})
    test = [{"A": "x", "L": "Rendah"}, {"A": "y", "L": "Cukup"}, {"A": "y", "L": "Rendah"}]
    result = evaluate(tree, test, "L")
    assert result.positive_class == "Berlebih"
    assert result.true_positive == 0
    assert result.precision == 0.0
    assert result.recall == 0.0
    assert result.f1 == 0.0
    # every record is a (true or false) negative
    assert result.accuracy == 1.0


def test_evaluate_empty_test_set():
    result = evaluate(_restock_tree(), [], "L")
    assert result.support == 0
    assert result.scores() == {"accuracy": 0.0, "precision": 0.0, "recall": 0.0, "f1": 0.0}


def test_explicit_positive_class():
    test = [{"A": "x", "L": "Perlu Restock"}, {"A": "y", "L": "Cukup"}]
    result = evaluate(_restock_tree(), test, "L", positive_class="Cukup")
    assert result.positive_class == "Cukup"
    assert result.true_positive == 1
    assert result.true_negative == 1


@pytest.mark.parametrize("labels, expected", [
    (["Cukup", "PerluRestock", "Berlebih"], "PerluRestock"),
    (["Low", "Needs RESTOCK"], "Needs RESTOCK"),
    (["Cukup", "Berlebih", "Rendah"], "Berlebih"),
    (["Low", "Sufficient", "Excess"], "Excess"),
    (["Low", "Sufficient"], "Berlebih"),
])
def test_infer_positive_class(labels, expected):
    assert infer_positive_class(labels) == expected


def test_multi_class_collapses_negatives_but_keeps_full_table():
    actual = ["Rendah", "Cukup", "Berlebih", "Berlebih", "Rendah"]
    predicted = ["Rendah", "Rendah", "Berlebih", "Cukup", "Cukup"]
    result = score_predictions(actual, predicted, positive_class="Berlebih")
    assert result.true_positive == 1
    assert result.false_negative == 1
    assert result.false_positive == 0
    # Rendah/Cukup mix-ups still count as true negatives in the binary view
    assert result.true_negative == 3
    assert result.labels == ["Rendah", "Cukup", "Berlebih"]
    assert result.contingency == [[1, 1, 0],
                                  [1, 0, 0],
                                  [0, 1, 1]]


def test_contingency_table_with_explicit_labels():
    labels, M = contingency_table(["a", "b"], ["b", "b"], labels=["b", "a"])
    assert labels == ["b", "a"]
    assert M.tolist() == [[1, 0], [1, 0]]


def test_score_predictions_length_mismatch():
    with pytest.raises(ValueError):
        score_predictions(["a"], ["a", "b"])


def test_to_dict():
    test = [{"A": "x", "L": "Perlu Restock"}]
    d = evaluate(_restock_tree(), test, "L").to_dict()
    assert d["confusion_matrix"]["true_positive"] == 1
    assert d["positive_class"] == "Perlu Restock"
    assert set(d) >= {"accuracy", "precision", "recall", "f1", "contingency", "labels"}
