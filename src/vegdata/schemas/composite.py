"""Temporal composite schema (final output).

This is the product handed to the rest of the pipeline: one row per spatial
bin, four columns per variable.

Key rules:
- <var> is the representative measurement (closest to the temporal mean)
- <var>_mjd is the time of that measurement
- <var>_count is the number of periods that contributed
- <var>_sigma is the population standard deviation over those periods
- a bin with count 0 has NaN value, time and sigma
"""

from __future__ import annotations

from typing import TypedDict

import pandas as pd

from vegdata.schemas.validate import (
    require_columns,
    require_no_nulls,
    require_nonnegative_int,
    require_null_iff_zero,
    require_null_together,
    require_range,
    require_unique,
)


class CompositeFeatures(TypedDict):
    """The four output features of one variable, keyed by suffix."""

    value: float  # Representative measurement
    mjd: float  # Its time (Modified Julian Day)
    count: int  # Contributing periods
    sigma: float  # Population standard deviation


COMPOSITE_SUFFIXES = ["", "_mjd", "_count", "_sigma"]

_DATASET_NAME = "composite"


def composite_fields(var_names: list[str]) -> list[str]:
    """Column order for a composite over the given variables."""
    fields = ["bin_id"]
    for var in var_names:
        fields += [f"{var}{suffix}" for suffix in COMPOSITE_SUFFIXES]
    return fields


def validate_composite(df: pd.DataFrame, var_names: list[str]) -> None:
    """Validate that a DataFrame conforms to the composite schema.

    Checks performed:
    - All required columns present
    - bin_id unique, non-null, non-negative
    - <var>_count is a non-negative integer
    - <var>_sigma >= 0 where present
    - value, mjd and sigma null together, and null exactly when count is 0

    Args:
        df: DataFrame to validate
        var_names: Variables whose features the composite carries

    Raises:
        ValueError: If any validation check fails
    """
    require_columns(df.columns, composite_fields(var_names), dataset=_DATASET_NAME)

    if df.empty:
        return

    require_no_nulls(df, ["bin_id"], dataset=_DATASET_NAME)
    require_nonnegative_int(df, "bin_id", dataset=_DATASET_NAME)
    require_unique(df, ["bin_id"], dataset=_DATASET_NAME)

    for var in var_names:
        count_col = f"{var}_count"
        sigma_col = f"{var}_sigma"
        require_no_nulls(df, [count_col], dataset=_DATASET_NAME)
        require_nonnegative_int(df, count_col, dataset=_DATASET_NAME)
        require_range(df, sigma_col, lo=0.0, hi=float("inf"), allow_null=True, dataset=_DATASET_NAME)
        require_null_together(df, [var, f"{var}_mjd", sigma_col], dataset=_DATASET_NAME)
        require_null_iff_zero(df, var, count_col, dataset=_DATASET_NAME)
