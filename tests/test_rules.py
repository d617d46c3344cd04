import pytest

from c45py import LeafNode, SplitNode, build_tree, extract_rules, predict, tree_from_dict, tree_to_dict
from c45py.rules import parse_condition
from c45py.tree import count_leaves


def _stock_records(repeat=3):
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


def test_scenario_rules():
    records = [{"A": "x", "Label": "L1"}] * 3 + [{"A": "y", "Label": "L2"}] * 3
    tree = build_tree(records, "Label", min_samples=2, min_gain_ratio=0.0)
    rules = extract_rules(tree)
    assert [(r.condition, r.result) for r in rules] == [("A=x", "L1"), ("A=y", "L2")]
    assert all(r.confidence == 1.0 for r in rules)
    assert [r.support for r in rules] == [0.5, 0.5]
    assert str(rules[0]) == "A=x => L1"


def test_every_rule_routes_to_its_result():
    tree = build_tree(_stock_records(), "status_stok", min_samples=2, min_gain_ratio=0.0)
    rules = extract_rules(tree)
    assert len(rules) >= count_leaves(tree)
    for rule in rules:
        record = parse_condition(rule.condition)
        assert predict(tree, record).label == rule.result


def test_support_covers_all_training_records():
    tree = build_tree(_stock_records(), "status_stok", min_samples=2, min_gain_ratio=0.0)
    rules = extract_rules(tree)
    assert sum(r.support for r in rules) == pytest.approx(1.0)


def test_condition_joins_steps_with_and():
    tree = build_tree(_stock_records(), "status_stok", min_samples=2, min_gain_ratio=0.0)
    nested = [r for r in extract_rules(tree) if r.result == "Perlu Restock"]
    assert len(nested) == 1
    parts = nested[0].condition.split(" AND ")
    assert sorted(parts) == ["penjualan=Tinggi", "stok=Rendah"]


def test_impure_leaf_confidence():
    records = [{"A": "x", "L": "p"}] * 3 + [{"A": "x", "L": "q"}]
    rules = extract_rules(build_tree(records, "L"))
    assert len(rules) == 1
    assert rules[0].condition == "default"
    assert rules[0].result == "p"
    assert rules[0].confidence == pytest.approx(0.75)
    assert rules[0].support == 1.0


def test_path_prefix():
    tree = SplitNode(attribute="B", branches={"1": LeafNode("p"), "2": LeafNode("q")})
    rules = extract_rules(tree, path_prefix="A=x")
    assert [r.condition for r in rules] == ["A=x AND B=1", "A=x AND B=2"]
    assert extract_rules(LeafNode("p"), path_prefix="A=x")[0].condition == "A=x"


def test_tree_without_statistics_uses_static_values():
    tree = tree_from_dict({"type": "categorical", "attribute": "A",
                           "branches": {"x": "L1", "y": "L2"}})
    rules = extract_rules(tree)
    assert [(r.confidence, r.support) for r in rules] == [(1.0, 1.0), (1.0, 1.0)]


def test_rules_survive_dict_round_trip():
    tree = build_tree(_stock_records(), "status_stok", min_samples=2, min_gain_ratio=0.0)
    assert extract_rules(tree_from_dict(tree_to_dict(tree))) == extract_rules(tree)


def test_parse_condition():
    assert parse_condition("default") == {}
    assert parse_condition("a=1 AND b=x=y") == {"a": "1", "b": "x=y"}
