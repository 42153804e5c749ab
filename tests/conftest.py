import numpy as np
import pandas as pd

ATTITUDE = ["ConstCom", "TimelyInf", "TaskMgm", "DeviceSt", "Wellness", "Athlete", "Style"]

# First six respondents of the smartwatch survey
SIX_ROWS = pd.DataFrame({
    "ConstCom":  [3, 6, 7, 7, 7, 2],
    "TimelyInf": [2, 6, 4, 5, 4, 1],
    "TaskMgm":   [3, 6, 4, 4, 2, 3],
    "DeviceSt":  [3, 6, 4, 5, 6, 2],
    "Wellness":  [2, 5, 6, 5, 3, 2],
    "Athlete":   [3, 3, 4, 4, 2, 4],
    "Style":     [3, 1, 1, 4, 4, 3],
    "AmznP":     [1, 1, 0, 1, 1, 0],
    "Female":    [1, 0, 0, 0, 0, 1],
    "Degree":    [1, 2, 1, 2, 1, 2],
    "Income":    [2, 3, 3, 5, 3, 2],
    "Age":       [38, 38, 42, 35, 36, 47],
})

SEGMENT_CENTERS = np.array([
    [6, 6, 6, 6, 5, 3, 2],
    [2, 2, 3, 2, 2, 6, 6],
    [4, 5, 2, 5, 6, 2, 4],
], dtype=float)
SEGMENT_AGES = (30, 45, 60)


def make_survey(n_per_segment=40, seed=0):
    """Synthetic survey with three well-separated attitude segments.

    Returns (observations, true_segment) with rows shuffled.
    """
    rng = np.random.default_rng(seed)
    blocks, truth = [], []
    for seg, center in enumerate(SEGMENT_CENTERS):
        scores = np.clip(np.rint(center + rng.normal(0, 0.4, size=(n_per_segment, len(center)))), 1, 7)
        block = pd.DataFrame(scores.astype(int), columns=ATTITUDE)
        block["AmznP"] = rng.integers(0, 2, n_per_segment)
        block["Female"] = rng.integers(0, 2, n_per_segment)
        block["Degree"] = rng.integers(1, 3, n_per_segment)
        block["Income"] = rng.integers(1, 6, n_per_segment)
        block["Age"] = np.rint(SEGMENT_AGES[seg] + rng.normal(0, 4, n_per_segment)).astype(int)
        blocks.append(block)
        truth.extend([seg] * n_per_segment)
    df = pd.concat(blocks, ignore_index=True)
    order = rng.permutation(len(df))
    return df.iloc[order].reset_index(drop=True), np.asarray(truth)[order]


def recompute_inertia(X, centroids, labels):
    total = 0.0
    for i, lab in enumerate(labels):
        total += float(((X[i] - centroids[lab]) ** 2).sum())
    return total
