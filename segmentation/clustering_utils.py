"""
K-means Clustering Engine for Attitude Segmentation

Lloyd's algorithm with multiple seeded restarts. Each restart draws its own
random generator from the caller's seed and its restart index, so a restart is
reproducible on its own and restarts can run in parallel through joblib. The
best restart is picked by lowest inertia, ties going to the lowest restart
index, which keeps the result independent of completion order.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional, Tuple, Union

import numpy as np
from joblib import Parallel, delayed

from .errors import InvalidK
from .models import ClusterSolution, ScaledMatrix
from . import segmentation_params as params

_LOG = logging.getLogger(__name__)

SeedLike = Union[int, np.random.SeedSequence, None]


def as_feature_array(X: Union[ScaledMatrix, np.ndarray]) -> np.ndarray:
    if isinstance(X, ScaledMatrix):
        return X.values
    arr = np.asarray(X, dtype=np.float64)
    if arr.ndim != 2:
        raise ValueError(f"Expected a 2-D feature array, got shape {arr.shape}")
    return arr


def restart_seeds(seed: SeedLike, n_restarts: int) -> list[np.random.SeedSequence]:
    """One child SeedSequence per restart index.

    Children are derived from (entropy, spawn_key + (r,)) directly instead of
    ``SeedSequence.spawn`` so that repeated calls with the same SeedSequence
    object yield the same children.
    """
    base = seed if isinstance(seed, np.random.SeedSequence) else np.random.SeedSequence(seed)
    return [
        np.random.SeedSequence(entropy=base.entropy, spawn_key=tuple(base.spawn_key) + (r,))
        for r in range(n_restarts)
    ]


def squared_distances(X: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    """m x k matrix of squared Euclidean distances."""
    diff = X[:, None, :] - centroids[None, :, :]
    return (diff ** 2).sum(axis=2)


def nearest_centroid(X: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    # argmin returns the first minimum: exact ties go to the lowest cluster id
    return np.argmin(squared_distances(X, centroids), axis=1).astype(np.int64)


def compute_inertia(X, centroids, labels) -> float:
    """Sum of squared distances from each row to its assigned centroid."""
    X = as_feature_array(X)
    centroids = np.asarray(centroids, dtype=np.float64)
    labels = np.asarray(labels, dtype=np.int64)
    return float(((X - centroids[labels]) ** 2).sum())


def _update_centroids(X: np.ndarray, labels: np.ndarray, centroids: np.ndarray, k: int) -> np.ndarray:
    out = centroids.copy()
    for j in range(k):
        members = labels == j
        if members.any():
            out[j] = X[members].mean(axis=0)
    return out


def _reseed_empty_clusters(
    X: np.ndarray, labels: np.ndarray, centroids: np.ndarray, k: int
) -> Tuple[np.ndarray, np.ndarray, int]:
    """Move the farthest point of a multi-member cluster into each empty cluster."""
    counts = np.bincount(labels, minlength=k)
    empty = np.flatnonzero(counts == 0)
    if empty.size == 0:
        return labels, centroids, 0

    labels = labels.copy()
    centroids = centroids.copy()
    for j in empty:
        dist = ((X - centroids[labels]) ** 2).sum(axis=1)
        # only donors with another member left, so the donor cannot empty in turn
        dist = np.where(counts[labels] > 1, dist, -1.0)
        p = int(np.argmax(dist))
        donor = labels[p]
        labels[p] = j
        counts[donor] -= 1
        counts[j] += 1
        centroids[j] = X[p]
        centroids[donor] = X[labels == donor].mean(axis=0)
    return labels, centroids, int(empty.size)


def run_restart(
    X: Union[ScaledMatrix, np.ndarray],
    k: int,
    max_iter: int = params.MAX_ITER,
    seed: SeedLike = params.RANDOM_STATE,
    restart: int = 0,
    initial_centroids: Optional[np.ndarray] = None,
) -> ClusterSolution:
    """
    Run a single Lloyd restart.

    Args:
        X: Scaled feature matrix (m x n).
        k: Number of clusters.
        max_iter: Iteration cap; the loop stops earlier once assignments are stable.
        seed: Seed or SeedSequence for this restart's initialization.
        restart: Restart index recorded on the solution.
        initial_centroids: Explicit k x n starting centroids, bypassing sampling.

    Returns:
        ClusterSolution of this restart (restart_inertias left empty).
    """
    X = as_feature_array(X)
    m = X.shape[0]
    if k < 1 or k > m:
        raise InvalidK(k, m)

    if initial_centroids is None:
        rng = np.random.default_rng(seed)
        init_rows = rng.choice(m, size=k, replace=False)
        centroids = X[init_rows].copy()
    else:
        centroids = np.array(initial_centroids, dtype=np.float64, copy=True)
        if centroids.shape != (k, X.shape[1]):
            raise ValueError(
                f"initial_centroids must have shape {(k, X.shape[1])}, got {centroids.shape}"
            )

    labels = nearest_centroid(X, centroids)
    centroids = _update_centroids(X, labels, centroids, k)
    labels, centroids, reseeded = _reseed_empty_clusters(X, labels, centroids, k)
    n_iter = 1
    while n_iter < max_iter:
        new_labels = nearest_centroid(X, centroids)
        if np.array_equal(new_labels, labels):
            break
        labels = new_labels
        centroids = _update_centroids(X, labels, centroids, k)
        labels, centroids, n_empty = _reseed_empty_clusters(X, labels, centroids, k)
        reseeded += n_empty
        n_iter += 1

    inertia = compute_inertia(X, centroids, labels)
    _LOG.debug(
        "restart %d: k=%d inertia=%.6f iterations=%d reseeded=%d",
        restart, k, inertia, n_iter, reseeded,
    )
    return ClusterSolution(centroids, labels, inertia, n_iter, restart)


def fit_kmeans(
    X: Union[ScaledMatrix, np.ndarray],
    k: int,
    *,
    n_restarts: int = params.N_RESTARTS,
    max_iter: int = params.MAX_ITER,
    seed: SeedLike = params.RANDOM_STATE,
    n_jobs: Optional[int] = params.N_JOBS,
) -> ClusterSolution:
    """
    Best-of-restarts k-means.

    Args:
        X: Scaled feature matrix (m x n).
        k: Number of clusters, 1 <= k <= m.
        n_restarts: Independent random initializations.
        max_iter: Lloyd iteration cap per restart.
        seed: Integer seed or SeedSequence; identical inputs reproduce identical output.
        n_jobs: joblib workers for the restarts.

    Returns:
        ClusterSolution with the lowest inertia (ties -> lowest restart index).

    Raises:
        InvalidK: if k is outside [1, m].
    """
    X = as_feature_array(X)
    m = X.shape[0]
    if k < 1 or k > m:
        raise InvalidK(k, m)
    if n_restarts < 1:
        raise ValueError(f"n_restarts must be >= 1, got {n_restarts}")
    if max_iter < 1:
        raise ValueError(f"max_iter must be >= 1, got {max_iter}")

    seeds = restart_seeds(seed, n_restarts)
    solutions = Parallel(n_jobs=n_jobs)(
        delayed(run_restart)(X, k, max_iter, child, r) for r, child in enumerate(seeds)
    )
    best = min(solutions, key=lambda s: (s.inertia, s.restart))
    by_restart = sorted(solutions, key=lambda s: s.restart)
    _LOG.info(
        "k-means k=%d: best restart %d/%d inertia=%.4f (%d iterations)",
        k, best.restart, n_restarts, best.inertia, best.n_iter,
    )
    return replace(best, restart_inertias=tuple(s.inertia for s in by_restart))


def assign_points(X: Union[ScaledMatrix, np.ndarray], solution: ClusterSolution) -> np.ndarray:
    """Nearest-centroid labels for (already scaled) rows."""
    X = as_feature_array(X)
    if X.shape[1] != solution.centroids.shape[1]:
        raise ValueError(
            f"Expected {solution.centroids.shape[1]} feature columns, got {X.shape[1]}"
        )
    return nearest_centroid(X, solution.centroids)


__all__ = [
    "as_feature_array",
    "restart_seeds",
    "squared_distances",
    "nearest_centroid",
    "compute_inertia",
    "run_restart",
    "fit_kmeans",
    "assign_points",
]
