"""Closest-to-mean temporal compositing ("PINTY" aggregator).

Spatial pass: no spatial aggregation. Each bin is expected to receive at most
one contributing observation per period; if it receives more, the last valid
one wins.

Temporal pass: the per-period candidates are accumulated and, at completion,
the measurement closest to the series mean is selected as the representative
value. Ties are broken by preferring the larger value, then the earlier time.

This is the single-cycle variant of the Pinty selection. The second cycle
(discarding statistical outliers before re-selecting) is not applied, since
there are usually only a few observations per bin.
"""

from __future__ import annotations

import math
from typing import Any

import numpy as np

from vegdata.binning.aggregator import (
    AggregationResult,
    AggregatorConfig,
    Observation,
    SigmaMethod,
    SpatialCandidate,
)
from vegdata.binning.context import BinContext, BinState, VariableContext
from vegdata.binning.growable import DEFAULT_CAPACITY
from vegdata.schemas.mask_flags import MASK_VALID

NAME = "PINTY"

# Distance tolerance for the closest-to-mean comparison
EPSILON = np.float32(1e-6)

_STATE_PREFIX = "pinty."


def spatial_feature_names(var_name: str) -> list[str]:
    return [var_name, f"{var_name}_mjd"]


def output_feature_names(var_name: str) -> list[str]:
    return [var_name, f"{var_name}_mjd", f"{var_name}_count", f"{var_name}_sigma"]


def _naive_moments(measurements: np.ndarray) -> tuple[np.float32, np.float32]:
    """Mean and population sigma via sumSqr/n - mean^2.

    Sums are accumulated in float64; squares, mean and variance are float32.
    """
    n = len(measurements)
    total = float(np.sum(measurements, dtype=np.float64))
    total_sqr = float(np.sum(measurements * measurements, dtype=np.float64))
    mean = np.float32(total / n)
    sigma_sqr = np.float32(total_sqr / n - float(mean * mean))
    # Rounding can leave a tiny negative variance
    sigma = np.float32(math.sqrt(sigma_sqr)) if sigma_sqr > 0 else np.float32(0.0)
    return mean, sigma


def _welford_moments(measurements: np.ndarray) -> tuple[np.float32, np.float32]:
    """Mean and population sigma via Welford's one-pass update in float64."""
    count = 0
    mean = 0.0
    m2 = 0.0
    for value in measurements:
        count += 1
        delta = float(value) - mean
        mean += delta / count
        m2 += delta * (float(value) - mean)
    variance = m2 / count
    sigma = np.float32(math.sqrt(variance)) if variance > 0 else np.float32(0.0)
    return np.float32(mean), sigma


def select_representative(
    measurements: np.ndarray,
    times: np.ndarray,
    sigma_method: SigmaMethod = "naive",
) -> AggregationResult:
    """Select the measurement closest to the mean of the series.

    Scans the series once. Candidate i replaces the current best if any of:
    1. it is closer to the mean by more than EPSILON
    2. its distance equals the best distance within EPSILON and its value
       is larger
    3. its value equals the best value exactly and its time is earlier

    Args:
        measurements: float32 measurements in accumulation order
        times: float32 MJD times, same length as measurements
        sigma_method: "naive" (sumSqr/n - mean^2) or "welford"

    Returns:
        AggregationResult; (NaN, NaN, 0, NaN) for an empty series
    """
    measurements = np.asarray(measurements, dtype=np.float32)
    times = np.asarray(times, dtype=np.float32)
    if len(measurements) != len(times):
        raise ValueError(
            f"measurements and times must have same length, "
            f"got {len(measurements)} and {len(times)}"
        )

    n = len(measurements)
    if n == 0:
        return AggregationResult.empty()

    if sigma_method == "welford":
        mean, sigma = _welford_moments(measurements)
    else:
        mean, sigma = _naive_moments(measurements)

    best = measurements[0]
    best_time = times[0]
    for value, time in zip(measurements[1:], times[1:]):
        distance = abs(value - mean)
        best_distance = abs(best - mean)
        if (
            distance < best_distance - EPSILON
            or (abs(distance - best_distance) <= EPSILON and value > best)
            or (value == best and time < best_time)
        ):
            best = value
            best_time = time

    return AggregationResult(best, best_time, n, sigma)


class PintyAggregator:
    """Aggregator selecting the value closest to the temporal mean.

    Args:
        var_ctx: Variable lookup for observation records
        var_name: Name of the measured variable (must resolve)
        mask_name: Name of the validity mask; unresolved means no masking
        initial_capacity: Capacity hint for the per-bin buffers
        sigma_method: Variance formula used at completion

    Raises:
        ValueError: If var_ctx is None or var_name cannot be resolved
    """

    name = NAME

    def __init__(
        self,
        var_ctx: VariableContext | None,
        var_name: str,
        mask_name: str | None = None,
        initial_capacity: int = DEFAULT_CAPACITY,
        sigma_method: SigmaMethod = "naive",
    ) -> None:
        if var_ctx is None:
            raise ValueError("var_ctx must not be None")
        var_index = var_ctx.variable_index(var_name)
        if var_index is None:
            raise ValueError(
                f"Unknown variable {var_name!r}, available: {var_ctx.names}"
            )

        self.var_name = var_name
        self.mask_name = mask_name
        self.var_index = var_index
        self.mask_index = var_ctx.variable_index(mask_name)
        self.initial_capacity = initial_capacity
        self.sigma_method = sigma_method
        self.state_key = _STATE_PREFIX + var_name

    @property
    def spatial_feature_names(self) -> list[str]:
        return spatial_feature_names(self.var_name)

    @property
    def temporal_feature_names(self) -> list[str]:
        return output_feature_names(self.var_name)

    @property
    def output_feature_names(self) -> list[str]:
        return output_feature_names(self.var_name)

    # Spatial pass

    def init_spatial(self, ctx: BinContext) -> SpatialCandidate:
        return SpatialCandidate()

    def aggregate_spatial(
        self,
        ctx: BinContext,
        observation: Observation,
        candidate: SpatialCandidate,
    ) -> None:
        value = observation.get(self.var_index)
        is_valid = self.mask_index is None or observation.get(self.mask_index) == MASK_VALID
        if is_valid and not np.isnan(value):
            candidate.value = value
            candidate.time = np.float32(observation.mjd)

    def complete_spatial(
        self,
        ctx: BinContext,
        num_spatial_obs: int,
        candidate: SpatialCandidate,
    ) -> None:
        pass

    def reduce_spatial(
        self,
        observations: list[Observation],
        ctx: BinContext | None = None,
    ) -> SpatialCandidate:
        """Run the whole spatial pass over one period's observations."""
        if ctx is None:
            ctx = BinContext(-1)
        candidate = self.init_spatial(ctx)
        for observation in observations:
            self.aggregate_spatial(ctx, observation, candidate)
        self.complete_spatial(ctx, len(observations), candidate)
        return candidate

    # Temporal pass

    def init_temporal(self, ctx: BinContext) -> None:
        ctx.put(self.state_key, BinState(self.initial_capacity))

    def aggregate_temporal(
        self,
        ctx: BinContext,
        candidate: SpatialCandidate,
        num_spatial_obs: int = 1,
    ) -> None:
        # Spatial binning cannot suppress empty periods, drop them here
        if candidate.is_empty:
            return
        state: BinState = ctx.get(self.state_key)
        state.append(candidate.value, candidate.time)

    def complete_temporal(
        self,
        ctx: BinContext,
        num_temporal_obs: int | None = None,
    ) -> AggregationResult:
        state: BinState = ctx.get(self.state_key)
        measurements, times = state.arrays()
        return select_representative(measurements, times, self.sigma_method)

    def compute_output(self, result: AggregationResult) -> dict[str, float]:
        return dict(zip(self.output_feature_names, result))

    def __repr__(self) -> str:
        return (
            f"PintyAggregator(var_index={self.var_index}, "
            f"mask_index={self.mask_index}, "
            f"spatial_feature_names={self.spatial_feature_names}, "
            f"temporal_feature_names={self.temporal_feature_names}, "
            f"output_feature_names={self.output_feature_names})"
        )


class PintyDescriptor:
    """Registry entry for PintyAggregator."""

    name = NAME

    def create_config(self, **params: Any) -> AggregatorConfig:
        return AggregatorConfig(type=NAME, **params)

    def create_aggregator(
        self,
        var_ctx: VariableContext | None,
        config: AggregatorConfig,
    ) -> PintyAggregator:
        return PintyAggregator(
            var_ctx,
            config.var_name,
            config.mask_name,
            initial_capacity=config.initial_capacity,
            sigma_method=config.sigma_method,
        )
