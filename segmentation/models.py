"""Immutable value objects passed between pipeline stages.

Every array stored here is a private float/int copy with ``writeable=False`` so
that no stage can alter the output of another.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from .checks import expect_columns, expect_non_empty
from . import segmentation_params as params


def _frozen(values, dtype=np.float64) -> np.ndarray:
    arr = np.array(values, dtype=dtype, copy=True)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class FeatureMatrix:
    """Attitude scores of m respondents (rows) by n features (columns)."""

    values: np.ndarray
    columns: Tuple[str, ...]

    def __post_init__(self) -> None:
        values = _frozen(self.values)
        if values.ndim != 2:
            raise ValueError(f"FeatureMatrix needs a 2-D array, got shape {values.shape}")
        if values.shape[1] != len(self.columns):
            raise ValueError(
                f"{values.shape[1]} value columns but {len(self.columns)} column names"
            )
        if not np.all(np.isfinite(values)):
            raise ValueError("FeatureMatrix contains missing or non-finite values")
        object.__setattr__(self, "values", values)
        object.__setattr__(self, "columns", tuple(self.columns))

    @classmethod
    def from_frame(
        cls, df: pd.DataFrame, columns: Sequence[str] = params.ATTITUDE_COLS
    ) -> "FeatureMatrix":
        expect_non_empty(df)
        expect_columns(df, columns)
        X = df.loc[:, list(columns)].astype("float64").to_numpy()
        return cls(X, tuple(columns))

    @property
    def shape(self) -> Tuple[int, int]:
        return self.values.shape

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.values, columns=list(self.columns))


@dataclass(frozen=True, eq=False)
class ScaledMatrix:
    """Column-standardized features plus the statistics used to scale them."""

    values: np.ndarray
    columns: Tuple[str, ...]
    means: np.ndarray
    stds: np.ndarray

    def __post_init__(self) -> None:
        for name in ("values", "means", "stds"):
            object.__setattr__(self, name, _frozen(getattr(self, name)))
        object.__setattr__(self, "columns", tuple(self.columns))

    @property
    def shape(self) -> Tuple[int, int]:
        return self.values.shape

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.values, columns=list(self.columns))


@dataclass(frozen=True, eq=False)
class ClusterSolution:
    """Best-of-restarts k-means partition.

    Attributes:
        centroids: k x n cluster centres in scaled feature space.
        labels: cluster id per input row, in input row order.
        inertia: sum of squared distances of rows to their centroid.
        n_iter: Lloyd iterations used by the winning restart.
        restart: index of the winning restart.
        restart_inertias: inertia reached by every restart, by restart index.
    """

    centroids: np.ndarray
    labels: np.ndarray
    inertia: float
    n_iter: int
    restart: int
    restart_inertias: Tuple[float, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "centroids", _frozen(self.centroids))
        object.__setattr__(self, "labels", _frozen(self.labels, dtype=np.int64))
        object.__setattr__(self, "inertia", float(self.inertia))
        object.__setattr__(self, "restart_inertias", tuple(float(v) for v in self.restart_inertias))

    @property
    def k(self) -> int:
        return int(self.centroids.shape[0])

    @property
    def sizes(self) -> np.ndarray:
        return np.bincount(self.labels, minlength=self.k)


@dataclass(frozen=True)
class DiagnosticPoint:
    k: int
    inertia: float
    silhouette: Optional[float]


@dataclass(frozen=True)
class DiagnosticCurve:
    """Inertia and mean silhouette per candidate k. Choosing k is up to the caller."""

    points: Tuple[DiagnosticPoint, ...]

    def __iter__(self):
        return iter(self.points)

    def __len__(self) -> int:
        return len(self.points)

    @property
    def ks(self) -> List[int]:
        return [p.k for p in self.points]

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            [(p.k, p.inertia, p.silhouette) for p in self.points],
            columns=["k", "inertia", "silhouette"],
        )


@dataclass(frozen=True)
class ClusterProfile:
    cluster: int
    size: int
    means: Optional[Mapping[str, float]]
    status: str = "ok"

    @property
    def is_empty(self) -> bool:
        return self.status == params.EMPTY_CLUSTER


@dataclass(frozen=True)
class AnovaResult:
    variable: str
    ss_between: float
    ss_within: float
    df_between: int
    df_within: int
    f_statistic: float
    p_value: float
    group_means: Tuple[float, ...]
    group_sizes: Tuple[int, ...]

    @property
    def ms_between(self) -> float:
        return self.ss_between / self.df_between

    @property
    def ms_within(self) -> float:
        return self.ss_within / self.df_within

    def to_frame(self) -> pd.DataFrame:
        """ANOVA table laid out like R's ``summary(aov(...))``."""
        return pd.DataFrame(
            {
                "df": [self.df_between, self.df_within],
                "sum_sq": [self.ss_between, self.ss_within],
                "mean_sq": [self.ms_between, self.ms_within],
                "F": [self.f_statistic, np.nan],
                "p_value": [self.p_value, np.nan],
            },
            index=["cluster", "residuals"],
        )


@dataclass(frozen=True)
class PairwiseComparison:
    group1: int
    group2: int
    mean_diff: float
    p_adj: float
    lower: float
    upper: float
    reject: bool


@dataclass(frozen=True, eq=False)
class ChiSquareResult:
    variable: str
    observed: pd.DataFrame
    expected: pd.DataFrame
    statistic: float
    dof: int
    p_value: float
    low_expected_count: bool


@dataclass(frozen=True)
class ValidationResult:
    """Independent per-test outcomes of the demographic validation stage.

    A test listed in ``failures`` has no result; every other test completed.
    """

    profiles: Tuple[ClusterProfile, ...]
    anova: Optional[AnovaResult] = None
    posthoc: Optional[Tuple[PairwiseComparison, ...]] = None
    chi_square: Dict[str, ChiSquareResult] = field(default_factory=dict)
    failures: Dict[str, Exception] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return not self.failures

    def profiles_frame(self) -> pd.DataFrame:
        rows = []
        for prof in self.profiles:
            rec: Dict[str, Union[int, float, str, None]] = {
                "cluster": prof.cluster,
                "n_respondents": prof.size,
                "status": prof.status,
            }
            if prof.means is not None:
                rec.update({f"{col}_mean": val for col, val in prof.means.items()})
            rows.append(rec)
        return pd.DataFrame(rows)

    def posthoc_frame(self) -> pd.DataFrame:
        cols = ["group1", "group2", "mean_diff", "p_adj", "lower", "upper", "reject"]
        if not self.posthoc:
            return pd.DataFrame(columns=cols)
        return pd.DataFrame([vars(c) for c in self.posthoc], columns=cols)


def as_labels(labels: Iterable[int]) -> np.ndarray:
    """Coerce a ClusterSolution or label sequence to a 1-D int array."""
    if isinstance(labels, ClusterSolution):
        return labels.labels
    return np.asarray(labels, dtype=np.int64).ravel()


__all__ = [
    "FeatureMatrix",
    "ScaledMatrix",
    "ClusterSolution",
    "DiagnosticPoint",
    "DiagnosticCurve",
    "ClusterProfile",
    "AnovaResult",
    "PairwiseComparison",
    "ChiSquareResult",
    "ValidationResult",
    "as_labels",
]
