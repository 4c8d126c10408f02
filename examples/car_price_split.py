import logging

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from pySplit import SplitEvaluator, evaluate_splits
from pySplit.plotting import plot_split, plot_split_scores

logging.basicConfig(level=logging.DEBUG, format="%(name)s %(levelname)s %(message)s")

rng = np.random.default_rng(0)
n = 300
cars = pd.DataFrame({
    "mileage": rng.uniform(5_000, 150_000, size=n),
    "age": rng.integers(1, 15, size=n).astype(float),
})
cars["price"] = 22_000 - 0.06 * cars["mileage"] - 400 * cars["age"] + rng.normal(0, 1_500, size=n)

by_sse = evaluate_splits(cars["mileage"], cars["price"])
by_test = evaluate_splits(cars["mileage"], cars["price"], criterion="significance", test="ctree")
print(by_sse)
print(by_test)

best = SplitEvaluator().evaluate_frame(cars[["mileage", "age"]], cars["price"])
print(best.to_dict())

fig, axes = plt.subplots(1, 2, figsize=(11, 4))
plot_split_scores(by_sse, ax=axes[0])
plot_split(cars["mileage"], cars["price"], by_sse, ax=axes[1])
plt.tight_layout()
plt.show()
