"""Elbow and silhouette diagnostics over a range of cluster counts.

Nothing here picks k. The curve is handed back to the analyst, who reads the
elbow of the inertia curve and the peak of the silhouette curve. Inertia is
expected to fall as k grows, but restart variance can produce small upticks;
those are not errors.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional, Union

import numpy as np
from sklearn.metrics import silhouette_samples

from .clustering_utils import SeedLike, as_feature_array, fit_kmeans
from .models import DiagnosticCurve, DiagnosticPoint, ScaledMatrix
from . import segmentation_params as params

_LOG = logging.getLogger(__name__)


def silhouette_values(X: Union[ScaledMatrix, np.ndarray], labels) -> np.ndarray:
    """Per-point silhouette widths; members of singleton clusters score 0."""
    X = as_feature_array(X)
    labels = np.asarray(labels, dtype=np.int64)
    n_labels = len(np.unique(labels))
    if n_labels < 2:
        raise ValueError("Silhouette is undefined for fewer than 2 clusters")
    if n_labels == len(labels):
        # every point alone in its cluster
        return np.zeros(len(labels))
    return silhouette_samples(X, labels, metric="euclidean")


def scan_k(
    X: Union[ScaledMatrix, np.ndarray],
    k_range: Iterable[int] = params.K_RANGE,
    *,
    seed: SeedLike = params.RANDOM_STATE,
    n_restarts: int = params.N_RESTARTS,
    max_iter: int = params.MAX_ITER,
    n_jobs: Optional[int] = params.N_JOBS,
) -> DiagnosticCurve:
    """
    Inertia and mean silhouette for every candidate k.

    Args:
        X: Scaled feature matrix.
        k_range: Candidate cluster counts; k=1 gets an inertia but no silhouette.
        seed, n_restarts, max_iter, n_jobs: forwarded to fit_kmeans.

    Returns:
        DiagnosticCurve in the order of k_range.
    """
    X = as_feature_array(X)
    points = []
    for k in k_range:
        sol = fit_kmeans(X, k, n_restarts=n_restarts, max_iter=max_iter, seed=seed, n_jobs=n_jobs)
        sil = None if k == 1 else float(silhouette_values(X, sol.labels).mean())
        _LOG.info("k=%d inertia=%.4f silhouette=%s", k, sol.inertia,
                  "n/a" if sil is None else f"{sil:.4f}")
        points.append(DiagnosticPoint(int(k), sol.inertia, sil))
    return DiagnosticCurve(tuple(points))


__all__ = ["silhouette_values", "scan_k"]
