# Author: Emrullah Erce Dutkan
"""
Exception types raised by the Lmodel core.

All validation happens at call boundaries, before any accumulator or
centroid state is touched, so a raised error never leaves a half-updated
model behind.
"""


class LmodelError(Exception):
    """Base class for all Lmodel errors."""


class ConfigError(LmodelError, ValueError):
    """Missing model field or invalid option value."""


class DimensionError(LmodelError, ValueError):
    """Shape mismatch between an input block and the model."""


class NumericError(LmodelError, ArithmeticError):
    """Eigen-decomposition failure or singular PLS deflation."""
