"""Validation helpers for schema enforcement.

These helpers ensure DataFrames conform to expected schemas.
All helpers raise ValueError with actionable messages including:
- Dataset name (if provided)
- Offending columns
- Count of failing rows
- Sample of failing row indices (first 5)
"""

from __future__ import annotations

from typing import Any, Iterable

import pandas as pd


def _format_error(
    dataset: str | None,
    rule: str,
    detail: str,
    failing_indices: list[Any] | None = None,
    count: int | None = None,
) -> str:
    """Format a validation error message consistently."""
    parts = []
    if dataset:
        parts.append(f"[{dataset}]")
    parts.append(rule)
    parts.append(f": {detail}")
    if count is not None:
        parts.append(f" ({count} rows)")
    if failing_indices:
        parts.append(f" | sample indices: {failing_indices[:5]}")
    return "".join(parts)


def _raise_for_mask(
    df: pd.DataFrame,
    bad_mask: pd.Series,
    rule: str,
    detail: str,
    dataset: str | None,
) -> None:
    bad_count = int(bad_mask.sum())
    if bad_count > 0:
        raise ValueError(
            _format_error(dataset, rule, detail, df.index[bad_mask].tolist(), bad_count)
        )


def require_columns(
    df_columns: Iterable[str],
    required: Iterable[str],
    dataset: str | None = None,
) -> None:
    """Raise ValueError if required columns are missing.

    Args:
        df_columns: Column names from a DataFrame (e.g., df.columns)
        required: Required column names
        dataset: Optional dataset name for error messages

    Raises:
        ValueError: If any required columns are missing
    """
    missing = set(required) - set(df_columns)
    if missing:
        raise ValueError(
            _format_error(dataset, "Missing columns", f"{sorted(missing)}")
        )


def require_no_nulls(
    df: pd.DataFrame,
    cols: Iterable[str],
    dataset: str | None = None,
) -> None:
    """Raise ValueError if specified columns contain null values.

    Raises:
        ValueError: If any specified columns have null values
    """
    for col in cols:
        if col not in df.columns:
            continue  # Let require_columns handle missing columns
        _raise_for_mask(
            df, df[col].isna(), "Null values", f"column '{col}' has nulls", dataset
        )


def require_unique(
    df: pd.DataFrame,
    key_cols: list[str],
    dataset: str | None = None,
) -> None:
    """Raise ValueError if key columns have duplicate combinations.

    Raises:
        ValueError: If duplicate key combinations exist
    """
    if df.empty:
        return

    if any(col not in df.columns for col in key_cols):
        return  # Let require_columns handle missing columns

    _raise_for_mask(
        df,
        df.duplicated(subset=key_cols, keep=False),
        "Duplicate keys",
        f"columns {key_cols} have duplicates",
        dataset,
    )


def require_range(
    df: pd.DataFrame,
    col: str,
    lo: float,
    hi: float,
    allow_null: bool = False,
    dataset: str | None = None,
) -> None:
    """Raise ValueError if values are outside the specified range.

    Args:
        df: DataFrame to check
        col: Column name to check
        lo: Minimum allowed value (inclusive)
        hi: Maximum allowed value (inclusive)
        allow_null: If False, null values count as failures
        dataset: Optional dataset name for error messages

    Raises:
        ValueError: If values are outside range
    """
    if col not in df.columns or df.empty:
        return

    series = df[col]
    bad = (series < lo) | (series > hi)
    if not allow_null:
        bad = bad | series.isna()
    _raise_for_mask(df, bad, "Out of range", f"column '{col}' must be in [{lo}, {hi}]", dataset)


def require_nonnegative_int(
    df: pd.DataFrame,
    col: str,
    dataset: str | None = None,
) -> None:
    """Raise ValueError if values are negative or not integer-like.

    Raises:
        ValueError: If values are negative or fractional
    """
    if col not in df.columns or df.empty:
        return

    series = df[col]
    _raise_for_mask(df, series < 0, "Negative values", f"column '{col}' must be >= 0", dataset)

    non_null = series.dropna()
    fractional = pd.Series(False, index=df.index)
    fractional.loc[non_null.index] = (non_null % 1) != 0
    _raise_for_mask(
        df, fractional, "Not integer", f"column '{col}' must hold whole numbers", dataset
    )


def require_null_together(
    df: pd.DataFrame,
    cols: list[str],
    dataset: str | None = None,
) -> None:
    """Raise ValueError unless the columns are null on exactly the same rows.

    Raises:
        ValueError: If some but not all of the columns are null on a row
    """
    if df.empty or any(col not in df.columns for col in cols):
        return

    nulls = df[cols].isna()
    _raise_for_mask(
        df,
        nulls.any(axis=1) & ~nulls.all(axis=1),
        "Partial nulls",
        f"columns {cols} must be null together",
        dataset,
    )


def require_null_iff_zero(
    df: pd.DataFrame,
    col: str,
    count_col: str,
    dataset: str | None = None,
) -> None:
    """Raise ValueError unless col is null exactly where count_col is 0.

    Raises:
        ValueError: If a zero count has a value or a non-zero count has none
    """
    if df.empty or col not in df.columns or count_col not in df.columns:
        return

    _raise_for_mask(
        df,
        df[col].isna() != (df[count_col] == 0),
        "Null/count mismatch",
        f"column '{col}' must be null exactly where '{count_col}' is 0",
        dataset,
    )
