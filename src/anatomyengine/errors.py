"""Exceptions raised by the geometry kernel.

Every error derives from :class:`GeometryError`, itself a ``ValueError``,
so callers that already guard geometry construction with
``except ValueError`` keep working.  Numerical degeneracy inside the
solvers and out-of-range spline parameters are not errors and never reach
this module.
"""


class GeometryError(ValueError):
    """Base exception for invalid geometry input."""
    pass


class ControlPointError(GeometryError):
    """Invalid control point table: too few points, duplicate or
    non-increasing parameters, non-finite or mismatched values."""
    pass


class ResolutionError(GeometryError):
    """Tessellation resolution is not an integer >= 2."""
    pass


class DomainError(GeometryError):
    """Input does not match the dimension a map was built for."""
    pass


__all__ = [
    "GeometryError",
    "ControlPointError",
    "ResolutionError",
    "DomainError",
]
