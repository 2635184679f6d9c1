"""Pytest configuration and fixtures."""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from vegdata.aggregate.config import CompositeConfig
from vegdata.binning.aggregator import AggregatorConfig, SpatialCandidate
from vegdata.binning.context import BinContext, VariableContext


@pytest.fixture
def var_ctx() -> VariableContext:
    """Observation record layout: two variables, each with its own mask."""
    return VariableContext(["a", "va", "b", "vb"])


@pytest.fixture
def ctx() -> BinContext:
    return BinContext(0)


@pytest.fixture
def candidate():
    """Factory fixture for spatial candidates."""

    def _make(value: float, time: float) -> SpatialCandidate:
        return SpatialCandidate(np.float32(value), np.float32(time))

    return _make


@pytest.fixture
def make_observations():
    """Factory fixture for creating observation DataFrames.

    Creates one observation per (bin, period) with a fapar value that
    increases with the period and a valid mask set to 1.0.
    """

    def _make(
        n_bins: int = 3,
        periods: list[str] | None = None,
        fapar_base: float = 0.2,
        start_mjd: float = 56413.0,
    ) -> pd.DataFrame:
        if periods is None:
            periods = ["2013-05-01", "2013-05-16", "2013-06-01", "2013-06-16"]

        rows = []
        for p, period in enumerate(periods):
            for bin_id in range(n_bins):
                rows.append(
                    {
                        "bin_id": bin_id,
                        "period": period,
                        "mjd": start_mjd + 15.0 * p,
                        "fapar": fapar_base + 0.1 * p + 0.01 * bin_id,
                        "lai": 1.0 + 0.5 * p,
                        "valid": 1.0,
                    }
                )
        return pd.DataFrame(rows)

    return _make


@pytest.fixture
def fapar_config() -> CompositeConfig:
    return CompositeConfig(
        site="10-iberia",
        year=2013,
        aggregators=[AggregatorConfig(var_name="fapar", mask_name="valid")],
    )
