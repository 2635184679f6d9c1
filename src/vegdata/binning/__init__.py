"""Per-bin aggregation core.

Key components:
    - GrowableBuffer: append-only float32 series
    - VariableContext / BinContext / BinState: lookup and per-bin state
    - PintyAggregator: closest-to-mean temporal compositing
    - create_aggregator: build an aggregator from an AggregatorConfig

Example usage:
    from vegdata.binning import AggregatorConfig, VariableContext, create_aggregator

    var_ctx = VariableContext(["fapar", "valid"])
    agg = create_aggregator(var_ctx, AggregatorConfig("fapar", "valid"))
"""

from vegdata.binning.aggregator import (
    AggregationResult,
    Aggregator,
    AggregatorConfig,
    AggregatorDescriptor,
    Observation,
    SpatialCandidate,
)
from vegdata.binning.context import BinContext, BinState, VariableContext
from vegdata.binning.growable import GrowableBuffer
from vegdata.binning.pinty import PintyAggregator, PintyDescriptor, select_representative
from vegdata.binning.registry import create_aggregator, get_descriptor, register_descriptor

__all__ = [
    # Records
    "Observation",
    "SpatialCandidate",
    "AggregationResult",
    # State
    "GrowableBuffer",
    "VariableContext",
    "BinContext",
    "BinState",
    # Aggregators
    "Aggregator",
    "AggregatorConfig",
    "AggregatorDescriptor",
    "PintyAggregator",
    "PintyDescriptor",
    "select_representative",
    # Registry
    "create_aggregator",
    "get_descriptor",
    "register_descriptor",
]
