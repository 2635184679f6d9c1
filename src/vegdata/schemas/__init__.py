"""Schema definitions for the compositing pipeline.

This package defines the contract layer - what "valid data" looks like.
Nothing here should do work, only define structure.

Schemas:
- mask_flags: Validity mask values
- observations: Raw per-bin observations (spatial pass input)
- period_composite: One candidate per period and bin (spatial pass output)
- composite: Final per-bin statistics (temporal pass output)
- validate: Validation helpers
"""

from vegdata.schemas.composite import (
    COMPOSITE_SUFFIXES,
    CompositeFeatures,
    composite_fields,
    validate_composite,
)
from vegdata.schemas.mask_flags import MASK_INVALID, MASK_VALID
from vegdata.schemas.observations import (
    OBSERVATION_KEY_FIELDS,
    ObservationRow,
    validate_observations,
)
from vegdata.schemas.period_composite import (
    PERIOD_KEY_FIELDS,
    period_composite_fields,
    validate_period_composite,
)
from vegdata.schemas.validate import (
    require_columns,
    require_no_nulls,
    require_nonnegative_int,
    require_null_iff_zero,
    require_null_together,
    require_range,
    require_unique,
)

__all__ = [
    # Masks
    "MASK_VALID",
    "MASK_INVALID",
    # Observations
    "ObservationRow",
    "OBSERVATION_KEY_FIELDS",
    "validate_observations",
    # Period composite
    "PERIOD_KEY_FIELDS",
    "period_composite_fields",
    "validate_period_composite",
    # Composite
    "CompositeFeatures",
    "COMPOSITE_SUFFIXES",
    "composite_fields",
    "validate_composite",
    # Validation helpers
    "require_columns",
    "require_no_nulls",
    "require_unique",
    "require_range",
    "require_nonnegative_int",
    "require_null_together",
    "require_null_iff_zero",
]
