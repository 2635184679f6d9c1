"""Composite run configuration.

This module defines the CompositeConfig dataclass and validation logic.
A config names the site and year being composited and the aggregators run
for every bin; it can be saved next to the output for reproducibility.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from vegdata.binning.aggregator import AggregatorConfig


@dataclass
class CompositeConfig:
    """Configuration for a compositing run.

    Attributes:
        site: Site identifier (e.g., "10-iberia")
        year: Year being composited
        aggregators: One AggregatorConfig per composited variable
        write_period_composites: Also write the spatial pass output
    """

    site: str
    year: int
    aggregators: list[AggregatorConfig] = field(default_factory=list)
    write_period_composites: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        self.aggregators = [
            a if isinstance(a, AggregatorConfig) else AggregatorConfig.from_dict(a)
            for a in self.aggregators
        ]
        self._validate()

    def _validate(self) -> None:
        """Validate all configuration parameters."""
        errors = []

        if not self.site:
            errors.append("site must not be empty")

        if not 1900 <= self.year <= 2200:
            errors.append(f"year must be in [1900, 2200], got {self.year}")

        if not self.aggregators:
            errors.append("aggregators must not be empty")

        var_names = [a.var_name for a in self.aggregators]
        duplicates = sorted({v for v in var_names if var_names.count(v) > 1})
        if duplicates:
            errors.append(f"each variable may be aggregated once, duplicates: {duplicates}")

        reserved = {"bin_id", "period", "mjd"}
        for a in self.aggregators:
            for name in a.var_names:
                if name in reserved:
                    errors.append(f"variable name {name!r} collides with a key column")

        if errors:
            raise ValueError("CompositeConfig validation failed:\n  - " + "\n  - ".join(errors))

    @property
    def var_names(self) -> list[str]:
        """Composited variables, in output order."""
        return [a.var_name for a in self.aggregators]

    @property
    def input_columns(self) -> list[str]:
        """Observation fields read by any aggregator, masks included."""
        columns: list[str] = []
        for a in self.aggregators:
            for name in a.var_names:
                if name not in columns:
                    columns.append(name)
        return columns

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary for JSON serialization."""
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        """Serialize config to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    def save(self, path: Path | str) -> Path:
        """Save config to JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_json())
        return path

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> CompositeConfig:
        """Create config from dictionary."""
        d = d.copy()
        d["aggregators"] = [AggregatorConfig.from_dict(a) for a in d.get("aggregators", [])]
        return cls(**d)

    @classmethod
    def from_json(cls, json_str: str) -> CompositeConfig:
        """Create config from JSON string."""
        return cls.from_dict(json.loads(json_str))

    @classmethod
    def load(cls, path: Path | str) -> CompositeConfig:
        """Load config from JSON file."""
        return cls.from_json(Path(path).read_text())
