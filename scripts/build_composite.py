"""CLI wrapper for temporal compositing.

Usage:
    python scripts/build_composite.py --site 10-iberia --year 2013 --var fapar --mask valid
    python scripts/build_composite.py --config configs/iberia_2013.json

This reads per-bin observations from:
    data/clean/observations/<site>/*.parquet

And writes the composite to:
    data/composites/yearly/<site>/L3_<year>_<site>.parquet
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from vegdata.aggregate.build_composite import (
    build_composite,
    build_period_composites,
    read_observations,
    write_composite,
    write_period_composites,
)
from vegdata.aggregate.config import CompositeConfig
from vegdata.binning.aggregator import AggregatorConfig
from vegdata.config import composite_path, observations_dir, period_composites_dir


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Composite per-bin observations to closest-to-mean values."
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="CompositeConfig JSON file (overrides --site/--year/--var/--mask)",
    )
    parser.add_argument("--site", help="Site identifier (e.g., 10-iberia)")
    parser.add_argument("--year", type=int, help="Year to composite (e.g., 2013)")
    parser.add_argument(
        "--var",
        action="append",
        default=[],
        help="Variable to composite; repeat for several (e.g., --var fapar --var lai)",
    )
    parser.add_argument(
        "--mask",
        default=None,
        help="Validity mask column applied to every variable (default: none)",
    )
    parser.add_argument(
        "--sigma-method",
        choices=["naive", "welford"],
        default="naive",
        help="Variance formula (default: naive)",
    )
    parser.add_argument(
        "--input",
        type=Path,
        default=None,
        help="Observation parquet file or directory (default: data/clean/observations/<site>)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Composite parquet path (default: data/composites/yearly/<site>/L3_<year>_<site>.parquet)",
    )
    parser.add_argument(
        "--write-periods",
        action="store_true",
        help="Also write one parquet per period from the spatial pass",
    )
    return parser.parse_args()


def load_config(args: argparse.Namespace) -> CompositeConfig:
    if args.config is not None:
        return CompositeConfig.load(args.config)

    if not args.site or args.year is None or not args.var:
        print("[composite] ERROR: --site, --year and at least one --var are required without --config")
        sys.exit(1)

    return CompositeConfig(
        site=args.site,
        year=args.year,
        aggregators=[
            AggregatorConfig(var_name=var, mask_name=args.mask, sigma_method=args.sigma_method)
            for var in args.var
        ],
        write_period_composites=args.write_periods,
    )


def main() -> None:
    args = parse_args()

    try:
        config = load_config(args)
    except ValueError as e:
        print(f"[composite] ERROR: {e}")
        sys.exit(1)

    input_path = args.input or observations_dir(config.site)
    output_path = args.output or composite_path(config.site, config.year)

    if not input_path.exists():
        print(f"[composite] ERROR: No observations found at {input_path}")
        sys.exit(1)

    try:
        obs_df = read_observations(input_path)
    except FileNotFoundError as e:
        print(f"[composite] ERROR: {e}")
        sys.exit(1)

    print(f"[composite] Loaded {len(obs_df)} observations for {config.site} {config.year}")
    print(f"[composite] Variables: {config.var_names}")

    # Spatial pass
    period_df = build_period_composites(obs_df, config)
    n_periods = period_df["period"].nunique() if not period_df.empty else 0
    print(f"[composite] Spatial pass: {len(period_df)} candidates over {n_periods} periods")

    if config.write_period_composites:
        write_period_composites(
            period_df,
            period_composites_dir(config.site, config.year),
            config.var_names,
        )

    # Temporal pass
    composite_df = build_composite(period_df, config)
    print(f"[composite] Temporal pass: {len(composite_df)} bins")

    for var in config.var_names:
        counts = composite_df[f"{var}_count"] if not composite_df.empty else None
        if counts is None:
            continue
        empty_bins = int((counts == 0).sum())
        print(
            f"[composite] {var}: count min={counts.min()}, avg={counts.mean():.1f}, "
            f"max={counts.max()}, bins without data={empty_bins}"
        )

    write_composite(composite_df, output_path, config.var_names)

    # Keep the run configuration next to the product
    config.save(output_path.with_suffix(".config.json"))


if __name__ == "__main__":
    main()
