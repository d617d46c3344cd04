import random
from time import perf_counter

from c45py import ModelRegistry, advise, cross_validate, predict, predict_batch, train
from c45py.logger import configure_logging
from c45py.tree import export_graphviz, print_tree

configure_logging()

rng = random.Random(7)
levels = ["Rendah", "Sedang", "Tinggi"]
records = []
for i in range(300):
    stok, jual, tren = rng.choice(levels), rng.choice(levels), rng.choice(["Naik", "Stabil", "Turun"])
    if stok == "Rendah" and jual != "Rendah":
        status = "Perlu Restock"
    elif stok == "Tinggi" and jual == "Rendah":
        status = "Berlebih"
    else:
        status = "Cukup"
    if rng.random() < 0.05:
        status = rng.choice(["Perlu Restock", "Cukup", "Berlebih"])
    records.append({"id": i + 1, "stok": stok, "penjualan": jual, "tren": tren,
                    "status_stok": status})

t0 = perf_counter(); result = train(records, seed=42); print(f"train: {perf_counter()-t0:.3f} s")
print_tree(result.tree)
print(result.metrics.scores())
for rule in result.rules:
    print(f"{rule}  (confidence {rule.confidence:.2f}, support {rule.support:.2f})")

cv = cross_validate(records, k=5, seed=42)
print("cv accuracy: %.3f +/- %.3f" % (cv.mean["accuracy"], cv.std["accuracy"]))

with ModelRegistry("models") as registry:
    registry.save("stock-status", result, name="quickstart")
    model = registry.latest()

item = {"stok": "Rendah", "penjualan": "Tinggi", "tren": "Naik",
        "stok_sekarang": 12, "penjualan_rata2": 240, "lead_time": 5}
prediction = predict(model.tree, item)
print(prediction)
print(advise(prediction, item))
print(predict_batch(model.tree, records[:20]).summary)

try:
    export_graphviz(model.tree, "stock_tree", format="dot")
except RuntimeError as e:
    print(f"Skipping Graphviz export: {e}")
