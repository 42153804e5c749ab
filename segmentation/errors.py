"""Error taxonomy for the segmentation pipeline.

Structural problems (constant columns, impossible k) abort the computation that
hit them. Validation-stage problems are raised per statistical test so the
caller can record them and keep going. ``LowExpectedCount`` is a warning, not
an error.
"""
from __future__ import annotations

from typing import Iterable


class SegmentationError(ValueError):
    """Base class for every typed failure raised by this package."""


class DegenerateColumn(SegmentationError):
    """One or more feature columns have zero variance."""

    def __init__(self, columns: Iterable[str]):
        self.columns = tuple(columns)
        super().__init__(
            f"Zero-variance column(s) cannot be standardized: {list(self.columns)}"
        )


class InvalidK(SegmentationError):
    """Requested cluster count outside [1, n_rows]."""

    def __init__(self, k: int, n_rows: int):
        self.k = k
        self.n_rows = n_rows
        super().__init__(f"k must be between 1 and {n_rows} (number of rows), got {k}")


class InsufficientGroups(SegmentationError):
    """A statistical test does not have enough populated groups/levels."""


class MissingValues(SegmentationError):
    """A tested variable has missing or non-finite values."""


class LowExpectedCount(UserWarning):
    """Chi-square expected cell count below 5; the p-value is approximate."""


__all__ = [
    "SegmentationError",
    "DegenerateColumn",
    "InvalidK",
    "InsufficientGroups",
    "MissingValues",
    "LowExpectedCount",
]
