"""
Feature standardization for attitude scores.

Z-scores use the sample standard deviation (ddof=1), matching R's ``scale()``.
sklearn's StandardScaler divides by the population deviation, so the transform
is computed directly with numpy here.
"""
from __future__ import annotations

import logging

import numpy as np

from .errors import DegenerateColumn
from .models import FeatureMatrix, ScaledMatrix

_LOG = logging.getLogger(__name__)


def standardize(matrix: FeatureMatrix) -> ScaledMatrix:
    """
    Scale every column to mean 0 and sample standard deviation 1.

    Args:
        matrix: m x n attitude features, m >= 2, n >= 1.

    Returns:
        ScaledMatrix holding the z-scores and the means/stds used.

    Raises:
        DegenerateColumn: if any column is constant.
    """
    X = matrix.values
    m, n = X.shape
    if n < 1:
        raise ValueError("Need at least one feature column to standardize")
    if m < 2:
        raise ValueError(f"Need at least 2 rows to standardize, got {m}")

    # max == min catches constant columns exactly; a computed std can come out as 1e-17
    constant = X.max(axis=0) == X.min(axis=0)
    if constant.any():
        bad = [col for col, flag in zip(matrix.columns, constant) if flag]
        raise DegenerateColumn(bad)

    means = X.mean(axis=0)
    stds = X.std(axis=0, ddof=1)
    Xz = (X - means) / stds
    _LOG.debug("Standardized %d rows x %d columns", m, n)
    return ScaledMatrix(Xz, matrix.columns, means, stds)


def inverse_transform(scaled: ScaledMatrix, values) -> np.ndarray:
    """Map points from scaled space (e.g. centroids) back to original units."""
    Z = np.asarray(values, dtype=np.float64)
    if Z.shape[-1] != len(scaled.columns):
        raise ValueError(
            f"Expected {len(scaled.columns)} columns, got {Z.shape[-1]}"
        )
    return Z * scaled.stds + scaled.means


__all__ = ["standardize", "inverse_transform"]
