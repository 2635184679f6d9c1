"""Build temporal composites from per-bin observations.

This stage runs the binning lifecycle over tabular data:
- Spatial pass: groups observations by (period, bin_id) in arrival order and
  reduces each group to one candidate per variable
- Temporal pass: for every bin, feeds the candidates of all periods in period
  order into the aggregators and collects their output features
- Empty periods (NaN candidates) are dropped by the aggregators, not here

Each bin gets one BinContext shared by all of its aggregators; aggregators
keep their state under variable-specific keys so they never collide.

The outputs are validated against the period_composite and composite schemas.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd

from vegdata.aggregate.config import CompositeConfig
from vegdata.binning.aggregator import Aggregator, Observation, SpatialCandidate
from vegdata.binning.context import BinContext, VariableContext
from vegdata.binning.registry import create_aggregator
from vegdata.schemas.composite import composite_fields, validate_composite
from vegdata.schemas.observations import validate_observations
from vegdata.schemas.period_composite import (
    period_composite_fields,
    validate_period_composite,
)

# Modified Julian Day zero point
MJD_EPOCH = pd.Timestamp("1858-11-17", tz="UTC")


def timestamps_to_mjd(ts: pd.Series) -> pd.Series:
    """Convert tz-aware timestamps to Modified Julian Day (float64).

    Raises:
        ValueError: If the timestamps are timezone-naive
    """
    if ts.dt.tz is None:
        raise ValueError("timestamps must be tz-aware to convert to MJD")
    return (ts - MJD_EPOCH) / pd.Timedelta(days=1)


def _create_aggregators(config: CompositeConfig, columns: list[str]) -> list[Aggregator]:
    var_ctx = VariableContext(columns)
    return [create_aggregator(var_ctx, a) for a in config.aggregators]


def build_period_composites(
    obs_df: pd.DataFrame,
    config: CompositeConfig,
) -> pd.DataFrame:
    """Reduce raw observations to one candidate per (period, bin, variable).

    Mask columns named in the config but absent from obs_df are treated as
    "no masking".

    Args:
        obs_df: DataFrame with observations schema
        config: Composite configuration

    Returns:
        DataFrame with period_composite schema, sorted by (period, bin_id)
    """
    mask_columns = [a.mask_name for a in config.aggregators if a.mask_name is not None]
    validate_observations(obs_df, config.var_names, mask_columns=mask_columns)

    fields = period_composite_fields(config.var_names)
    if obs_df.empty:
        return pd.DataFrame(columns=fields)

    columns = [c for c in config.input_columns if c in obs_df.columns]
    aggregators = _create_aggregators(config, columns)

    values = obs_df[columns].to_numpy(dtype=np.float64)
    mjds = obs_df["mjd"].to_numpy(dtype=np.float64)

    rows = []
    for (period, bin_id), positions in obs_df.groupby(["period", "bin_id"]).indices.items():
        ctx = BinContext(int(bin_id))
        observations = [Observation(mjds[i], values[i]) for i in positions]
        row = {"period": period, "bin_id": int(bin_id)}
        for agg in aggregators:
            candidate = agg.reduce_spatial(observations, ctx)
            row.update(zip(agg.spatial_feature_names, (candidate.value, candidate.time)))
        rows.append(row)

    period_df = pd.DataFrame(rows, columns=fields)
    period_df = period_df.astype({col: np.float32 for col in fields[2:]})
    period_df = period_df.sort_values(["period", "bin_id"]).reset_index(drop=True)

    validate_period_composite(period_df, config.var_names)
    return period_df


def build_composite(
    period_df: pd.DataFrame,
    config: CompositeConfig,
) -> pd.DataFrame:
    """Fold per-period candidates into one composite row per bin.

    Periods are presented to the aggregators in sorted period order, which
    decides the "earlier time" tie-break for equal values.

    Args:
        period_df: DataFrame with period_composite schema
        config: Composite configuration

    Returns:
        DataFrame with composite schema, sorted by bin_id
    """
    validate_period_composite(period_df, config.var_names)

    fields = composite_fields(config.var_names)
    if period_df.empty:
        return pd.DataFrame(columns=fields)

    aggregators = _create_aggregators(config, config.input_columns)
    ordered = period_df.sort_values(["bin_id", "period"], kind="stable")

    rows = []
    for bin_id, group in ordered.groupby("bin_id", sort=True):
        ctx = BinContext(int(bin_id))
        row = {"bin_id": int(bin_id)}
        for agg in aggregators:
            value_col, time_col = agg.spatial_feature_names
            agg.init_temporal(ctx)
            candidates = zip(
                group[value_col].to_numpy(dtype=np.float32),
                group[time_col].to_numpy(dtype=np.float32),
            )
            for value, time in candidates:
                agg.aggregate_temporal(ctx, SpatialCandidate(value, time))
            result = agg.complete_temporal(ctx, len(group))
            row.update(agg.compute_output(result))
        rows.append(row)

    composite_df = pd.DataFrame(rows, columns=fields)
    dtypes = {}
    for var in config.var_names:
        dtypes.update({var: np.float32, f"{var}_mjd": np.float32, f"{var}_sigma": np.float32})
        dtypes[f"{var}_count"] = np.int32
    composite_df = composite_df.astype(dtypes)

    validate_composite(composite_df, config.var_names)
    return composite_df


def composite_observations(
    obs_df: pd.DataFrame,
    config: CompositeConfig,
) -> pd.DataFrame:
    """Run the spatial and temporal passes back to back."""
    return build_composite(build_period_composites(obs_df, config), config)


def _write_parquet_atomic(df: pd.DataFrame, output_path: Path) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = output_path.with_suffix(".parquet.tmp")
    df.to_parquet(tmp_path, index=False)
    tmp_path.replace(output_path)


def write_composite(
    composite_df: pd.DataFrame,
    output_path: Path | str,
    var_names: list[str],
) -> Path:
    """Validate and write a composite DataFrame to parquet.

    Raises:
        ValueError: If output fails schema validation
    """
    output_path = Path(output_path)
    validate_composite(composite_df, var_names)
    _write_parquet_atomic(composite_df, output_path)
    print(f"[composite] wrote {len(composite_df)} rows to {output_path}")
    return output_path


def write_period_composites(
    period_df: pd.DataFrame,
    output_dir: Path | str,
    var_names: list[str],
) -> list[Path]:
    """Write one parquet file per period, named L3_<period>.parquet.

    Raises:
        ValueError: If input fails schema validation
    """
    output_dir = Path(output_dir)
    validate_period_composite(period_df, var_names)

    written = []
    for period, group in period_df.groupby("period", sort=True):
        path = output_dir / f"L3_{period}.parquet"
        _write_parquet_atomic(group.reset_index(drop=True), path)
        written.append(path)
    print(f"[composite] wrote {len(written)} period composites to {output_dir}")
    return written


def read_observations(input_path: Path | str) -> pd.DataFrame:
    """Read observations from a parquet file or a directory of partitions."""
    input_path = Path(input_path)
    if input_path.is_dir():
        files = sorted(input_path.glob("*.parquet"))
        if not files:
            raise FileNotFoundError(f"No parquet files found in {input_path}")
        return pd.concat([pd.read_parquet(f) for f in files], ignore_index=True)
    return pd.read_parquet(input_path)


def aggregate_to_composite(
    input_path: Path | str,
    output_path: Path | str,
    config: CompositeConfig,
) -> Path:
    """Read observations, build the composite, write output.

    When config.write_period_composites is set, the spatial pass output is
    also written to a "period" directory next to output_path.

    Returns:
        Path to written composite file
    """
    output_path = Path(output_path)
    obs_df = read_observations(input_path)

    period_df = build_period_composites(obs_df, config)
    if config.write_period_composites:
        write_period_composites(period_df, output_path.parent / "period", config.var_names)

    composite_df = build_composite(period_df, config)
    return write_composite(composite_df, output_path, config.var_names)
