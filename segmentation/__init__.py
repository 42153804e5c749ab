"""Attitude-based respondent segmentation.

Curated re-exports so an analysis notebook can simply:

    from segmentation import diagnose, run_segmentation, SegmentationConfig

Covers feature standardization, elbow/silhouette diagnostics, multi-restart
k-means and the demographic validation tests (ANOVA + Tukey, chi-square).
"""
from __future__ import annotations
import logging

from .errors import (
    SegmentationError,
    DegenerateColumn,
    InvalidK,
    InsufficientGroups,
    MissingValues,
    LowExpectedCount,
)
from .models import (
    FeatureMatrix,
    ScaledMatrix,
    ClusterSolution,
    DiagnosticPoint,
    DiagnosticCurve,
    ClusterProfile,
    AnovaResult,
    PairwiseComparison,
    ChiSquareResult,
    ValidationResult,
)
from .scaling_utils import standardize, inverse_transform
from .clustering_utils import fit_kmeans, run_restart, assign_points, compute_inertia
from .k_selection import scan_k, silhouette_values
from .validation_utils import (
    cluster_sizes,
    cluster_profiles,
    anova_oneway,
    tukey_hsd,
    contingency_table,
    chi_square_from_table,
    chi_square_independence,
    validate_segments,
)
from .segmentation_pipeline import (
    SegmentationConfig,
    SegmentationResult,
    diagnose,
    run_segmentation,
    label_observations,
    centroids_frame,
)

__version__ = "0.1.0"

__all__ = [
    # Errors
    "SegmentationError", "DegenerateColumn", "InvalidK", "InsufficientGroups", "MissingValues", "LowExpectedCount",
    # Value objects
    "FeatureMatrix", "ScaledMatrix", "ClusterSolution", "DiagnosticPoint", "DiagnosticCurve",
    "ClusterProfile", "AnovaResult", "PairwiseComparison", "ChiSquareResult", "ValidationResult",
    # Stages
    "standardize", "inverse_transform",
    "fit_kmeans", "run_restart", "assign_points", "compute_inertia",
    "scan_k", "silhouette_values",
    "cluster_sizes", "cluster_profiles", "anova_oneway", "tukey_hsd",
    "contingency_table", "chi_square_from_table", "chi_square_independence", "validate_segments",
    # Pipeline
    "SegmentationConfig", "SegmentationResult", "diagnose", "run_segmentation",
    "label_observations", "centroids_frame",
]

logging.getLogger(__name__).addHandler(logging.NullHandler())
