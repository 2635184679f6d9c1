"""Validity mask values.

Masks are produced upstream (cloud/land classification) and carried as a
float field next to the measured variable. Only the exact value 1.0 marks an
observation as usable; every other value, including NaN, rejects it.

Rules:
- No mask configured means every non-NaN measurement is usable
- A configured mask name that does not resolve also means no masking
"""

MASK_VALID = 1.0
MASK_INVALID = 0.0
