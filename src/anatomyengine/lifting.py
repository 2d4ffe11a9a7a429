"""Domain lifting adapters.

A lifting adapter lets a map defined on a lower-dimensional domain be used
where a higher-dimensional domain is expected.  Every adapter works the
same way: reduce the higher-dimensional input to the lower domain, then
delegate to the wrapped map.  Two reductions are provided:

- projection onto a fixed direction (:class:`ProjectedDomain` and its 2D
  and 3D forms :class:`DomainToVector2`, :class:`DomainToVector3`);
- extraction of one or more coordinates (:class:`CoordinateDomain`).

For example, a 1D radius-versus-length spline becomes a 2D displacement
field over ``(u, v)`` that varies along ``u`` only: ::

    radius = CubicSpline1D([(0.0, 1.0), (0.5, 0.7), (1.0, 0.9)])
    field = DomainToVector2((1.0, 0.0), radius)
    field((0.5, 3.0)) == radius(0.5)

A projected map is constant along every line perpendicular to its
direction.  The direction need not be unit length; its length scales the
parameterisation of the wrapped map, and the zero vector gives the constant
map ``function(0)``.
"""

from __future__ import annotations

from abc import abstractmethod
from numbers import Integral
from typing import Sequence, Tuple, Union

from anatomyengine.calculus import ContinuousMap, check_map
from anatomyengine.errors import DomainError
from anatomyengine.geom import dot


class LiftedMap(ContinuousMap):
    """Base for adapters that reduce their input before delegating."""

    def __init__(self, function: ContinuousMap):
        self._function = check_map(function, "function")

    @property
    def function(self) -> ContinuousMap:
        return self._function

    @abstractmethod
    def reduce(self, point):
        """Map a point of the lifted domain onto the wrapped map's domain."""

    def evaluate(self, point):
        return self._function.evaluate(self.reduce(point))


class ProjectedDomain(LiftedMap):
    """Lift through the dot product with a fixed direction vector."""

    def __init__(self, direction: Sequence[float], function: ContinuousMap):
        super().__init__(function)
        direction = tuple(float(c) for c in direction)
        if not direction:
            raise DomainError("direction must have at least one component")
        self._direction = direction

    @property
    def direction(self) -> Tuple[float, ...]:
        return self._direction

    @property
    def dimension(self) -> int:
        return len(self._direction)

    def reduce(self, point) -> float:
        if len(point) != len(self._direction):
            raise DomainError(
                f"expected a {len(self._direction)}D point, got {len(point)} components")
        return dot(self._direction, point)


class DomainToVector2(ProjectedDomain):
    """Stretch a 1D map over the 2D plane along ``direction``.

    ``DomainToVector2((0, 1), f)`` varies along the second axis and is
    constant along the first, the way a corrugated sheet's height depends
    on one coordinate only.
    """

    def __init__(self, direction: Sequence[float], function: ContinuousMap):
        if len(direction) != 2:
            raise DomainError("DomainToVector2 needs a 2D direction")
        super().__init__(direction, function)


class DomainToVector3(ProjectedDomain):
    """Stretch a 1D map over 3D space along ``direction``."""

    def __init__(self, direction: Sequence[float], function: ContinuousMap):
        if len(direction) != 3:
            raise DomainError("DomainToVector3 needs a 3D direction")
        super().__init__(direction, function)


class CoordinateDomain(LiftedMap):
    """Lift by extracting coordinates of the input.

    With an integer ``indices`` the wrapped map receives that single
    coordinate as a float; with a tuple it receives the sub-tuple in the
    given order, so ``CoordinateDomain((0, 2), f)`` hands ``(x, z)`` of a
    3D point to a 2D map.
    """

    def __init__(self, indices: Union[int, Sequence[int]], function: ContinuousMap):
        super().__init__(function)
        if isinstance(indices, Integral):
            if indices < 0:
                raise DomainError("coordinate index must be non-negative")
            self._indices = int(indices)
        else:
            indices = tuple(int(i) for i in indices)
            if not indices or min(indices) < 0:
                raise DomainError("coordinate indices must be non-empty and non-negative")
            self._indices = indices

    @property
    def indices(self):
        return self._indices

    def reduce(self, point):
        try:
            if isinstance(self._indices, int):
                return float(point[self._indices])
            return tuple(float(point[i]) for i in self._indices)
        except IndexError:
            raise DomainError(
                f"point with {len(point)} components has no coordinate {self._indices}") from None


__all__ = [
    "LiftedMap",
    "ProjectedDomain",
    "DomainToVector2",
    "DomainToVector3",
    "CoordinateDomain",
]
