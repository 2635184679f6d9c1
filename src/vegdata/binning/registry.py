"""Lookup of aggregator types by name."""

from __future__ import annotations

from vegdata.binning.aggregator import Aggregator, AggregatorConfig, AggregatorDescriptor
from vegdata.binning.context import VariableContext
from vegdata.binning.pinty import PintyDescriptor

_DESCRIPTORS: dict[str, AggregatorDescriptor] = {}


def register_descriptor(descriptor: AggregatorDescriptor) -> None:
    """Register an aggregator type, replacing any previous one of that name."""
    _DESCRIPTORS[descriptor.name] = descriptor


def get_descriptor(name: str) -> AggregatorDescriptor:
    """Return the descriptor registered under ``name``.

    Raises:
        ValueError: If no aggregator type of that name is registered
    """
    try:
        return _DESCRIPTORS[name]
    except KeyError:
        raise ValueError(
            f"Unknown aggregator type: {name} (known: {sorted(_DESCRIPTORS)})"
        ) from None


def create_aggregator(
    var_ctx: VariableContext | None,
    config: AggregatorConfig,
) -> Aggregator:
    """Factory function to create an aggregator from its config.

    Args:
        var_ctx: Variable lookup for the observation records
        config: Aggregator parameters; config.type selects the descriptor

    Returns:
        Configured aggregator instance
    """
    return get_descriptor(config.type).create_aggregator(var_ctx, config)


register_descriptor(PintyDescriptor())
