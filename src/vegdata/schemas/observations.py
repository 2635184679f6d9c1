"""Raw observation schema.

One row per sample extracted from an input swath for a spatial bin. This is
what the spatial pass consumes.

Non-negotiables:
- bin_id identifies the spatial bin (non-negative integer)
- period labels the reporting period; periods sort in temporal order
- mjd is the observation time as Modified Julian Day
- value columns may be NaN ("no measurement"), mask columns may be absent
"""

from __future__ import annotations

from typing import TypedDict

import pandas as pd

from vegdata.schemas.validate import (
    require_columns,
    require_no_nulls,
    require_nonnegative_int,
)


class ObservationRow(TypedDict):
    """Key fields of a raw observation row.

    Value and mask columns are named by configuration and come in addition.
    """

    bin_id: int  # Spatial bin index
    period: str  # Reporting period label (e.g., "2013-05-01")
    mjd: float  # Observation time (Modified Julian Day)


OBSERVATION_KEY_FIELDS = ["bin_id", "period", "mjd"]

# Dataset name for error messages
_DATASET_NAME = "observations"


def validate_observations(
    df: pd.DataFrame,
    value_columns: list[str],
    mask_columns: list[str] | None = None,
) -> None:
    """Validate that a DataFrame conforms to the observation schema.

    Checks performed:
    - Key columns and all value columns present
    - No nulls in bin_id, period, mjd
    - bin_id is a non-negative integer
    - Value and mask columns are numeric

    Missing mask columns are not an error: they mean no masking.

    Args:
        df: DataFrame to validate
        value_columns: Names of measured variable columns
        mask_columns: Optional names of mask columns

    Raises:
        ValueError: If any validation check fails
    """
    require_columns(df.columns, OBSERVATION_KEY_FIELDS + value_columns, dataset=_DATASET_NAME)

    if df.empty:
        return

    require_no_nulls(df, OBSERVATION_KEY_FIELDS, dataset=_DATASET_NAME)
    require_nonnegative_int(df, "bin_id", dataset=_DATASET_NAME)

    numeric_cols = list(value_columns)
    numeric_cols += [c for c in (mask_columns or []) if c in df.columns]
    non_numeric = [c for c in numeric_cols if not pd.api.types.is_numeric_dtype(df[c])]
    if non_numeric:
        raise ValueError(
            f"[{_DATASET_NAME}] Dtype mismatch: columns {non_numeric} must be numeric"
        )
