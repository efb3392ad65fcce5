"""Exception types raised by perk."""

from __future__ import annotations

from numpy.linalg import LinAlgError


class ConfigurationError(ValueError):
    """Inputs are inconsistent or out of range (shapes, lengths, ρ, T)."""


class NumericalError(LinAlgError):
    """A regularized solve could not be factored or produced non-finite output."""


__all__ = ["ConfigurationError", "NumericalError"]
