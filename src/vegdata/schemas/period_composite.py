"""Per-period composite schema (spatial pass output).

One row per (period, bin_id). For each variable there is a value column and
its time column. A bin with no valid observation in a period carries NaN in
both.
"""

from __future__ import annotations

import pandas as pd

from vegdata.schemas.validate import (
    require_columns,
    require_no_nulls,
    require_nonnegative_int,
    require_null_together,
    require_unique,
)

PERIOD_KEY_FIELDS = ["period", "bin_id"]

_DATASET_NAME = "period_composite"


def period_composite_fields(var_names: list[str]) -> list[str]:
    """Column order for a period composite over the given variables."""
    fields = list(PERIOD_KEY_FIELDS)
    for var in var_names:
        fields += [var, f"{var}_mjd"]
    return fields


def validate_period_composite(df: pd.DataFrame, var_names: list[str]) -> None:
    """Validate that a DataFrame conforms to the period composite schema.

    Checks performed:
    - All required columns present
    - Uniqueness on (period, bin_id)
    - value and value_mjd are null together for every variable

    Raises:
        ValueError: If any validation check fails
    """
    require_columns(df.columns, period_composite_fields(var_names), dataset=_DATASET_NAME)

    if df.empty:
        return

    require_no_nulls(df, PERIOD_KEY_FIELDS, dataset=_DATASET_NAME)
    require_nonnegative_int(df, "bin_id", dataset=_DATASET_NAME)
    require_unique(df, PERIOD_KEY_FIELDS, dataset=_DATASET_NAME)

    for var in var_names:
        require_null_together(df, [var, f"{var}_mjd"], dataset=_DATASET_NAME)
