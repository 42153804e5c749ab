from __future__ import annotations
from typing import Iterable
import pandas as pd


def expect_columns(df: pd.DataFrame, cols: Iterable[str]) -> None:
    missing = [c for c in cols if c not in df.columns]
    if missing:
        raise ValueError(f"Missing columns: {missing}")


def expect_non_empty(df: pd.DataFrame) -> None:
    if df.empty:
        raise ValueError("DataFrame is empty")


def expect_row_aligned(df: pd.DataFrame, labels) -> None:
    if len(df) != len(labels):
        raise ValueError(
            f"Observations ({len(df)} rows) and cluster labels ({len(labels)}) are not row-aligned"
        )
