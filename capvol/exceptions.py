# -*- coding: utf-8 -*-
"""Error types raised by capvol. Every calibration failure is fatal to the call."""


class CapvolError(Exception):
    """Base exception for the capvol package."""


class InvalidConfigurationError(CapvolError, ValueError):
    """A model definition violates one of its construction-time rules."""


class DataShapeError(CapvolError, ValueError):
    """Market data matrices do not match their axes, or quote errors are not positive."""


class UnsupportedValueTypeError(CapvolError, ValueError):
    """The quote value type cannot be calibrated (only Black and normal volatilities can)."""


class InsufficientDataError(CapvolError, ValueError):
    """No usable market instrument could be built from the grid."""


class NonConvergenceError(CapvolError, RuntimeError):
    """The least-squares solver exhausted its budget or stopped at a point that is not a minimum."""

    def __init__(self, message, iterations=None, objective=None):
        super().__init__(message)
        self.iterations = iterations
        self.objective = objective


__all__ = [
    "CapvolError",
    "InvalidConfigurationError",
    "DataShapeError",
    "UnsupportedValueTypeError",
    "InsufficientDataError",
    "NonConvergenceError",
]
