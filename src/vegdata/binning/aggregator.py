"""Record types and interfaces shared by binning aggregators.

An aggregator is driven through a fixed per-bin lifecycle:

    init_spatial -> aggregate_spatial* -> complete_spatial     (once per period)
    init_temporal -> aggregate_temporal* -> complete_temporal  (once per bin)
    compute_output

The spatial pass reduces the raw observations of one period to a
SpatialCandidate. The temporal pass folds the candidates of all periods into
an AggregationResult, which compute_output projects onto named features.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, NamedTuple, Protocol, Sequence, runtime_checkable

import numpy as np

from vegdata.binning.context import BinContext, VariableContext
from vegdata.binning.growable import DEFAULT_CAPACITY

SigmaMethod = Literal["naive", "welford"]
SIGMA_METHODS = ("naive", "welford")


class Observation(NamedTuple):
    """One raw sample for a bin.

    Attributes:
        mjd: Observation time as Modified Julian Day
        values: Field values in VariableContext order (NaN = no measurement)
    """

    mjd: float
    values: Sequence[float]

    def get(self, index: int) -> np.float32:
        return np.float32(self.values[index])


@dataclass
class SpatialCandidate:
    """Per-period (value, time) slot produced by the spatial pass.

    Both fields are NaN when no valid observation was accepted.
    """

    value: np.float32 = field(default_factory=lambda: np.float32(np.nan))
    time: np.float32 = field(default_factory=lambda: np.float32(np.nan))

    @property
    def is_empty(self) -> bool:
        return bool(np.isnan(self.value))


class AggregationResult(NamedTuple):
    """Final statistics for one (bin, variable)."""

    value: np.float32  # Representative measurement (NaN if count == 0)
    time: np.float32  # MJD of the representative measurement
    count: int  # Number of accumulated periods
    sigma: np.float32  # Population standard deviation, >= 0

    @classmethod
    def empty(cls) -> AggregationResult:
        nan = np.float32(np.nan)
        return cls(nan, nan, 0, nan)

    @property
    def is_empty(self) -> bool:
        return self.count == 0


@dataclass
class AggregatorConfig:
    """Parameters for building one aggregator.

    Attributes:
        var_name: Observation field holding the measured quantity
        mask_name: Optional observation field holding the validity mask
        type: Registered aggregator type (default "PINTY")
        initial_capacity: Capacity hint for the per-bin buffers
        sigma_method: Variance formula ("naive" or "welford")
    """

    var_name: str
    mask_name: str | None = None
    type: str = "PINTY"
    initial_capacity: int = DEFAULT_CAPACITY
    sigma_method: SigmaMethod = "naive"

    def __post_init__(self) -> None:
        if not self.var_name:
            raise ValueError("var_name must not be empty")
        if self.initial_capacity <= 0:
            raise ValueError(
                f"initial_capacity must be positive, got {self.initial_capacity}"
            )
        if self.sigma_method not in SIGMA_METHODS:
            raise ValueError(
                f"sigma_method must be one of {SIGMA_METHODS}, got {self.sigma_method!r}"
            )

    @property
    def var_names(self) -> list[str]:
        """Observation fields this aggregator reads."""
        if self.mask_name is None:
            return [self.var_name]
        return [self.var_name, self.mask_name]

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> AggregatorConfig:
        return cls(**dict(d))


@runtime_checkable
class Aggregator(Protocol):
    """Protocol for per-bin aggregators."""

    name: str

    @property
    def spatial_feature_names(self) -> list[str]: ...

    @property
    def temporal_feature_names(self) -> list[str]: ...

    @property
    def output_feature_names(self) -> list[str]: ...

    def init_spatial(self, ctx: BinContext) -> SpatialCandidate: ...

    def aggregate_spatial(
        self, ctx: BinContext, observation: Observation, candidate: SpatialCandidate
    ) -> None: ...

    def complete_spatial(
        self, ctx: BinContext, num_spatial_obs: int, candidate: SpatialCandidate
    ) -> None: ...

    def init_temporal(self, ctx: BinContext) -> None: ...

    def aggregate_temporal(
        self, ctx: BinContext, candidate: SpatialCandidate, num_spatial_obs: int = 1
    ) -> None: ...

    def complete_temporal(
        self, ctx: BinContext, num_temporal_obs: int | None = None
    ) -> AggregationResult: ...

    def compute_output(self, result: AggregationResult) -> dict[str, float]: ...


class AggregatorDescriptor(Protocol):
    """Factory entry for a named aggregator type."""

    name: str

    def create_config(self, **params: Any) -> AggregatorConfig: ...

    def create_aggregator(
        self, var_ctx: VariableContext | None, config: AggregatorConfig
    ) -> Aggregator: ...

