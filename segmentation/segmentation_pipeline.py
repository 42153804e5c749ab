"""
Respondent Segmentation Pipeline

Wires the stages together as plain functions over immutable values:

    observations -> FeatureMatrix -> standardize -> scan_k (diagnostic only)
                 -> fit_kmeans(k) -> validate_segments -> SegmentationResult

There is no pipeline state between calls. Picking k from the diagnostic curve
is left to the analyst; run_segmentation takes k explicitly.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .checks import expect_non_empty, expect_row_aligned
from .clustering_utils import SeedLike, fit_kmeans
from .k_selection import scan_k
from .models import ClusterSolution, DiagnosticCurve, FeatureMatrix, ScaledMatrix, ValidationResult
from .scaling_utils import inverse_transform, standardize
from .validation_utils import cluster_sizes, validate_segments
from . import segmentation_params as params

_LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class SegmentationConfig:
    k: Optional[int] = None
    n_restarts: int = params.N_RESTARTS
    max_iter: int = params.MAX_ITER
    seed: SeedLike = params.RANDOM_STATE
    n_jobs: Optional[int] = params.N_JOBS
    k_range: Sequence[int] = params.K_RANGE
    alpha: float = params.ALPHA
    feature_cols: Tuple[str, ...] = params.ATTITUDE_COLS
    continuous: Optional[str] = params.CONTINUOUS_DEMOGRAPHIC
    categorical: Tuple[str, ...] = params.CATEGORICAL_DEMOGRAPHICS
    level_labels: Mapping[str, Mapping[Any, str]] = field(default_factory=lambda: dict(params.LEVEL_LABELS))

    def kmeans_kwargs(self) -> Dict[str, Any]:
        return {
            "n_restarts": self.n_restarts,
            "max_iter": self.max_iter,
            "seed": self.seed,
            "n_jobs": self.n_jobs,
        }


@dataclass(frozen=True)
class SegmentationResult:
    features: FeatureMatrix
    scaled: ScaledMatrix
    solution: ClusterSolution
    validation: ValidationResult

    @property
    def labels(self) -> np.ndarray:
        return self.solution.labels

    def sizes(self) -> pd.Series:
        return cluster_sizes(self.solution)

    def centroids(self, original_units: bool = True) -> pd.DataFrame:
        return centroids_frame(self.scaled, self.solution, original_units=original_units)


def prepare(observations: pd.DataFrame, config: Optional[SegmentationConfig] = None) -> Tuple[FeatureMatrix, ScaledMatrix]:
    config = config or SegmentationConfig()
    features = FeatureMatrix.from_frame(observations, config.feature_cols)
    return features, standardize(features)


def diagnose(observations: pd.DataFrame, config: Optional[SegmentationConfig] = None) -> DiagnosticCurve:
    """Elbow / silhouette curve over ``config.k_range`` for manual choice of k."""
    config = config or SegmentationConfig()
    _, scaled = prepare(observations, config)
    return scan_k(scaled, config.k_range, **config.kmeans_kwargs())


def run_segmentation(
    observations: pd.DataFrame,
    config: Optional[SegmentationConfig] = None,
    *,
    k: Optional[int] = None,
) -> SegmentationResult:
    """
    Standardize, cluster with the chosen k and validate against demographics.

    Args:
        observations: Respondent rows with attitude and demographic columns.
        config: Pipeline parameters.
        k: Number of segments; overrides ``config.k``. One of the two is required.

    Returns:
        SegmentationResult bundling every intermediate value.
    """
    config = config or SegmentationConfig()
    k = k if k is not None else config.k
    if k is None:
        raise ValueError("Number of segments k must be chosen by the caller (see diagnose())")
    features, scaled = prepare(observations, config)
    solution = fit_kmeans(scaled, k, **config.kmeans_kwargs())
    validation = validate_segments(
        observations,
        solution,
        continuous=config.continuous,
        categorical=config.categorical,
        alpha=config.alpha,
        level_labels=config.level_labels,
    )
    _LOG.info(
        "Segmented %d respondents into %d clusters (sizes %s); %d validation test(s) failed",
        len(observations), solution.k, solution.sizes.tolist(), len(validation.failures),
    )
    return SegmentationResult(features, scaled, solution, validation)


def label_observations(
    observations: pd.DataFrame, solution, column: str = params.CLUSTER_COL
) -> pd.DataFrame:
    """Copy of the observations with the cluster assignment column added."""
    labels = solution.labels if isinstance(solution, ClusterSolution) else np.asarray(solution)
    expect_non_empty(observations)
    expect_row_aligned(observations, labels)
    out = observations.copy()
    out[column] = labels
    return out


def centroids_frame(
    scaled: ScaledMatrix, solution: ClusterSolution, original_units: bool = True
) -> pd.DataFrame:
    centers = solution.centroids
    if original_units:
        centers = inverse_transform(scaled, centers)
    dfc = pd.DataFrame(centers, columns=list(scaled.columns))
    dfc.insert(0, params.CLUSTER_COL, range(len(dfc)))
    return dfc


__all__ = [
    "SegmentationConfig",
    "SegmentationResult",
    "prepare",
    "diagnose",
    "run_segmentation",
    "label_observations",
    "centroids_frame",
]
