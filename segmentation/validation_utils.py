"""
Statistical Validation of Respondent Segments

Checks that segments found on attitude scores also differ on demographics:

- cluster_profiles: mean of every numeric attribute per cluster
- anova_oneway / tukey_hsd: Age (continuous) across clusters, with Tukey-Kramer
  pairwise comparisons on the studentized range distribution
- chi_square_independence: gender / income / education versus cluster id

validate_segments runs every test on its own; a failed test is recorded in
ValidationResult.failures and the remaining tests still run.
"""
from __future__ import annotations

import logging
import warnings
from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from scipy import stats

from .checks import expect_columns, expect_non_empty, expect_row_aligned
from .errors import InsufficientGroups, LowExpectedCount, MissingValues, SegmentationError
from .models import (
    AnovaResult,
    ChiSquareResult,
    ClusterProfile,
    ClusterSolution,
    PairwiseComparison,
    ValidationResult,
    as_labels,
)
from . import segmentation_params as params

_LOG = logging.getLogger(__name__)


def _infer_k(labels, k: Optional[int]) -> int:
    if k is not None:
        return int(k)
    if isinstance(labels, ClusterSolution):
        return labels.k
    arr = as_labels(labels)
    return int(arr.max()) + 1 if arr.size else 0


def _checked_labels(labels, k: Optional[int]) -> Tuple[np.ndarray, int]:
    """Labels as an int array plus k; every label must lie in [0, k)."""
    k = _infer_k(labels, k)
    arr = as_labels(labels)
    bad = (arr < 0) | (arr >= k)
    if bad.any():
        raise ValueError(
            f"{int(bad.sum())} label(s) outside [0, {k}): {sorted(set(arr[bad].tolist()))}"
        )
    return arr, k


def cluster_sizes(labels, k: Optional[int] = None) -> pd.Series:
    """Respondents per cluster id, zero-member clusters included."""
    labels, k = _checked_labels(labels, k)
    counts = np.bincount(labels, minlength=k)
    return pd.Series(counts, index=pd.RangeIndex(k, name=params.CLUSTER_COL), name="n_respondents")


def cluster_profiles(
    observations: pd.DataFrame,
    labels,
    k: Optional[int] = None,
    columns: Optional[Sequence[str]] = None,
) -> Tuple[ClusterProfile, ...]:
    """
    Per-cluster means of numeric attributes.

    Args:
        observations: Unscaled respondent rows (attitude + demographic columns).
        labels: Cluster id per row (or a ClusterSolution).
        k: Number of clusters; inferred from labels when omitted.
        columns: Attributes to average; defaults to every numeric column.

    Returns:
        One ClusterProfile per cluster id 0..k-1. Clusters without members carry
        status "empty cluster" and no means.
    """
    labels, k = _checked_labels(labels, k)
    expect_non_empty(observations)
    expect_row_aligned(observations, labels)
    if columns is None:
        numeric = observations.select_dtypes(include=[np.number])
        numeric = numeric.drop(columns=[params.CLUSTER_COL], errors="ignore")
    else:
        expect_columns(observations, columns)
        numeric = observations.loc[:, list(columns)].apply(pd.to_numeric)

    means = numeric.groupby(labels).mean()
    sizes = np.bincount(labels, minlength=k)
    profiles = []
    for cid in range(k):
        if sizes[cid] == 0:
            profiles.append(ClusterProfile(cid, 0, None, params.EMPTY_CLUSTER))
            continue
        row = means.loc[cid]
        profiles.append(ClusterProfile(cid, int(sizes[cid]), {c: float(row[c]) for c in numeric.columns}))
    return tuple(profiles)


def _group_stats(values, labels, k: Optional[int], variable: str):
    labels, k = _checked_labels(labels, k)
    x = np.asarray(values, dtype=np.float64).ravel()
    if len(x) != len(labels):
        raise ValueError(f"{variable}: {len(x)} values but {len(labels)} labels")
    if not np.all(np.isfinite(x)):
        raise MissingValues(
            f"{variable}: {int((~np.isfinite(x)).sum())} missing or non-finite value(s)"
        )
    if k < 2:
        raise InsufficientGroups(f"{variable}: need at least 2 clusters, got {k}")
    sizes = np.bincount(labels, minlength=k)
    small = [int(c) for c in np.flatnonzero(sizes < 2)]
    if small:
        raise InsufficientGroups(
            f"{variable}: cluster(s) {small} have fewer than 2 members"
        )
    means = np.array([x[labels == j].mean() for j in range(k)])
    grand = x.mean()
    ss_between = float((sizes * (means - grand) ** 2).sum())
    ss_within = float(((x - means[labels]) ** 2).sum())
    groups = [x[labels == j] for j in range(k)]
    return k, groups, sizes, means, ss_between, ss_within, len(x) - k


def anova_oneway(values, labels, k: Optional[int] = None, *, variable: str = params.AGE_COL) -> AnovaResult:
    """
    One-way ANOVA of a continuous variable across clusters.

    F = (SSB / (k-1)) / (SSW / (m-k)), p-value from the F distribution.

    Raises:
        InsufficientGroups: fewer than 2 clusters or a cluster with < 2 members.
        MissingValues: values contain NaN or inf.
    """
    k, groups, sizes, means, ssb, ssw, df_within = _group_stats(values, labels, k, variable)
    df_between = k - 1
    if ssw == 0.0:
        # every cluster constant: F is infinite unless the clusters agree too
        f_stat = np.inf if ssb > 0 else np.nan
        p_value = 0.0 if ssb > 0 else np.nan
    else:
        res = stats.f_oneway(*groups)
        f_stat, p_value = float(res.statistic), float(res.pvalue)
    _LOG.info("ANOVA %s: F(%d, %d)=%.4f p=%.4g", variable, df_between, df_within, f_stat, p_value)
    return AnovaResult(
        variable=variable,
        ss_between=ssb,
        ss_within=ssw,
        df_between=df_between,
        df_within=df_within,
        f_statistic=float(f_stat),
        p_value=float(p_value),
        group_means=tuple(float(v) for v in means),
        group_sizes=tuple(int(n) for n in sizes),
    )


def tukey_hsd(
    values,
    labels,
    k: Optional[int] = None,
    *,
    alpha: float = params.ALPHA,
    variable: str = params.AGE_COL,
) -> Tuple[PairwiseComparison, ...]:
    """
    Tukey-Kramer honest significant differences for every pair of clusters.

    mean_diff is mean(group2) - mean(group1) with group1 < group2. p_adj and the
    confidence interval come from the studentized range distribution with
    (k, m-k) degrees of freedom, so they control the family-wise error rate.
    When every cluster is constant the interval collapses onto mean_diff and
    p_adj is 0 for differing means, 1 otherwise.
    """
    if not 0.0 < alpha < 1.0:
        raise ValueError(f"alpha must be in (0, 1), got {alpha}")
    k, groups, _, means, _, ssw, _ = _group_stats(values, labels, k, variable)

    res = ci = None
    if ssw > 0.0:
        res = stats.tukey_hsd(*groups)
        ci = res.confidence_interval(confidence_level=1.0 - alpha)

    out = []
    for i in range(k):
        for j in range(i + 1, k):
            diff = float(means[j] - means[i])
            if res is None:
                p_adj = 0.0 if diff != 0.0 else 1.0
                lower = upper = diff
            else:
                # scipy reports mean(i) - mean(j); flip to mean(j) - mean(i)
                p_adj = float(res.pvalue[i, j])
                lower, upper = -float(ci.high[i, j]), -float(ci.low[i, j])
            p_adj = min(max(p_adj, 0.0), 1.0)
            out.append(
                PairwiseComparison(
                    group1=i,
                    group2=j,
                    mean_diff=diff,
                    p_adj=p_adj,
                    lower=lower,
                    upper=upper,
                    reject=bool(p_adj < alpha),
                )
            )
    _LOG.info(
        "Tukey %s: %d of %d pairs differ at alpha=%.3f",
        variable, sum(c.reject for c in out), len(out), alpha,
    )
    return tuple(out)


def chi_square_from_table(
    observed,
    *,
    variable: str = "",
    min_expected: float = params.MIN_EXPECTED_COUNT,
) -> ChiSquareResult:
    """
    Pearson chi-square test of independence on a contingency table.

    Rows or columns whose margin is zero (unused levels, empty clusters) are
    dropped first. No continuity correction is applied.

    Raises:
        InsufficientGroups: fewer than 2 rows or 2 columns remain.

    Warns:
        LowExpectedCount: when any expected cell count is below ``min_expected``.
    """
    table = observed if isinstance(observed, pd.DataFrame) else pd.DataFrame(np.asarray(observed))
    table = table.loc[table.sum(axis=1) > 0, table.sum(axis=0) > 0]
    if table.shape[0] < 2 or table.shape[1] < 2:
        raise InsufficientGroups(
            f"{variable or 'table'}: chi-square needs at least 2 populated levels and 2 populated clusters, "
            f"got {table.shape[0]}x{table.shape[1]}"
        )

    statistic, p_value, dof, E = stats.chi2_contingency(table.to_numpy(dtype=np.float64), correction=False)
    statistic, p_value, dof = float(statistic), float(p_value), int(dof)

    low = bool((E < min_expected).any())
    if low:
        warnings.warn(
            LowExpectedCount(
                f"{variable or 'table'}: {int((E < min_expected).sum())} expected cell count(s) "
                f"below {min_expected:g}; chi-square p-value is approximate"
            ),
            stacklevel=2,
        )
    _LOG.info("Chi-square %s: X2=%.4f df=%d p=%.4g", variable, statistic, dof, p_value)
    return ChiSquareResult(
        variable=variable,
        observed=table.copy(),
        expected=pd.DataFrame(E, index=table.index, columns=table.columns),
        statistic=statistic,
        dof=dof,
        p_value=p_value,
        low_expected_count=low,
    )


def contingency_table(
    categories,
    labels,
    k: Optional[int] = None,
    *,
    variable: str = "",
    level_labels: Optional[Mapping] = None,
) -> pd.DataFrame:
    """
    Cross-tabulate category levels (rows) against cluster ids 0..k-1 (columns).

    Raises:
        MissingValues: a category is NaN / None; crosstab would silently drop it.
    """
    labels, k = _checked_labels(labels, k)
    cats = np.asarray(categories)
    if len(cats) != len(labels):
        raise ValueError(f"{variable}: {len(cats)} values but {len(labels)} labels")
    missing = pd.isna(cats)
    if missing.any():
        raise MissingValues(f"{variable or 'categories'}: {int(missing.sum())} missing value(s)")
    table = pd.crosstab(cats, labels).reindex(columns=range(k), fill_value=0)
    if level_labels:
        known = [lvl for lvl in level_labels if lvl in table.index]
        others = [lvl for lvl in table.index if lvl not in level_labels]
        table = table.reindex(known + others).rename(index=dict(level_labels))
    table.index.name = variable or None
    table.columns.name = params.CLUSTER_COL
    return table


def chi_square_independence(
    categories,
    labels,
    k: Optional[int] = None,
    *,
    variable: str = "",
    level_labels: Optional[Mapping] = None,
    min_expected: float = params.MIN_EXPECTED_COUNT,
) -> ChiSquareResult:
    """Chi-square test of a categorical demographic against cluster membership."""
    table = contingency_table(categories, labels, k, variable=variable, level_labels=level_labels)
    return chi_square_from_table(table, variable=variable, min_expected=min_expected)


def validate_segments(
    observations: pd.DataFrame,
    labels,
    k: Optional[int] = None,
    *,
    continuous: Optional[str] = params.CONTINUOUS_DEMOGRAPHIC,
    categorical: Iterable[str] = params.CATEGORICAL_DEMOGRAPHICS,
    alpha: float = params.ALPHA,
    level_labels: Optional[Mapping[str, Mapping]] = None,
    profile_columns: Optional[Sequence[str]] = None,
) -> ValidationResult:
    """
    Run the full demographic validation for a set of cluster assignments.

    Args:
        observations: Original (unscaled) respondent rows, row-aligned with labels.
        labels: Cluster ids or the ClusterSolution that produced them.
        k: Number of clusters; taken from the solution / labels when omitted.
        continuous: Column for ANOVA + Tukey (None skips both).
        categorical: Columns for chi-square independence tests.
        alpha: Significance level for the Tukey comparisons.
        level_labels: Per-column level name mappings for contingency rows.
        profile_columns: Attributes to profile; all numeric columns by default.

    Returns:
        ValidationResult; tests that raised a SegmentationError appear in
        ``failures`` keyed by test name ("anova", "posthoc", "chi_square:<col>").
    """
    labels, k = _checked_labels(labels, k)
    categorical = list(categorical)
    level_labels = params.LEVEL_LABELS if level_labels is None else level_labels
    expect_non_empty(observations)
    expect_row_aligned(observations, labels)
    expect_columns(observations, ([continuous] if continuous else []) + categorical)

    profiles = cluster_profiles(observations, labels, k, columns=profile_columns)
    failures: Dict[str, Exception] = {}

    def _attempt(name, fn, *args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except SegmentationError as exc:
            _LOG.warning("Validation test %s failed: %s", name, exc)
            failures[name] = exc
            return None

    anova = posthoc = None
    if continuous:
        values = observations[continuous].to_numpy()
        anova = _attempt("anova", anova_oneway, values, labels, k, variable=continuous)
        posthoc = _attempt("posthoc", tukey_hsd, values, labels, k, alpha=alpha, variable=continuous)

    chi_square: Dict[str, ChiSquareResult] = {}
    for col in categorical:
        res = _attempt(
            f"chi_square:{col}",
            chi_square_independence,
            observations[col].to_numpy(),
            labels,
            k,
            variable=col,
            level_labels=level_labels.get(col),
        )
        if res is not None:
            chi_square[col] = res

    return ValidationResult(
        profiles=profiles,
        anova=anova,
        posthoc=posthoc,
        chi_square=chi_square,
        failures=failures,
    )


__all__ = [
    "cluster_sizes",
    "cluster_profiles",
    "anova_oneway",
    "tukey_hsd",
    "contingency_table",
    "chi_square_from_table",
    "chi_square_independence",
    "validate_segments",
]
