"""Real root extraction for polynomials of degree 1 to 4.

The solvers take coefficients highest power first, so
``solve_cubic(a, b, c, d)`` solves ``a*x**3 + b*x**2 + c*x + d == 0``, and
return the real roots as an ascending tuple of at most four floats.  The
tuple is empty when there is no real root; the solvers never return
``None`` and never raise for finite input.

Algorithms
==========

- quadratic: the numerically stable form of the quadratic formula;
- cubic: Cardano's formula when there is one real root, the
  trigonometric form when there are three, and an explicit repeated-root
  branch when the discriminant vanishes within tolerance;
- quartic: Ferrari's method.  The depressed quartic is split into two
  quadratics through a positive root of the resolvent cubic, or solved as
  a quadratic in ``x**2`` when its linear term vanishes.

Only an exactly zero leading coefficient reduces the degree.  A zero
constant term contributes the root 0 and divides out.

Conditioning
============

The closed forms lose the small roots of a polynomial whose roots span
several orders of magnitude, because the depressing shift is of the size
of the largest root.  Cubics and quartics are therefore solved in steps:

1. the variable is rescaled by a power of two, which is exact, so that
   every root lies in ``|y| < 3``;
2. the closed form gives starting points, real candidates by decreasing
   magnitude first, then the real parts of complex candidates, then the
   Fujiwara bounds on either side of all roots;
3. Newton's method on the input polynomial runs from each start until the
   step stalls; the first iterate whose residual is below
   ``RESIDUAL_TOLERANCE`` relative to the evaluation scale is a root;
4. that root is divided out, from the constant term when it is at least
   the geometric mean of the root magnitudes and from the leading term
   otherwise, and the quotient is solved one degree lower.

From a root bound, Newton's method converges monotonically to the
outermost real root on that side when no complex root lies further out,
which holds on at least one side whenever a real root exists.

Every root is finally polished on the input polynomial (steps are kept
only while the residual decreases), and roots closer than
``ROOT_TOLERANCE`` are merged into their mean.
"""

from __future__ import annotations

import cmath
from math import acos, copysign, cos, inf, isfinite, log2, pi, sqrt
from typing import Iterable, List, Optional, Sequence, Tuple

from anatomyengine.calculus import ContinuousMap

ROOT_TOLERANCE = 1e-7
IMAGINARY_TOLERANCE = 1e-6
RESIDUAL_TOLERANCE = 1e-12

_DISCRIMINANT_TOLERANCE = 1e-12
_LINEAR_TERM_TOLERANCE = 1e-12
_NEWTON_STEPS = 100
_STEP_TOLERANCE = 1e-15

Roots = Tuple[float, ...]


def _horner(coeffs: Sequence[float], x):
    value = 0.0
    for c in coeffs:
        value = value * x + c
    return value


def _derivative_coefficients(coeffs: Sequence[float]) -> List[float]:
    degree = len(coeffs) - 1
    return [c * (degree - i) for i, c in enumerate(coeffs[:-1])]


def _relative_residual(coeffs: Sequence[float], x: float) -> float:
    """``|p(x)|`` over the sum of the magnitudes of its terms at ``x``."""

    ax = abs(x)
    scale = 0.0
    for c in coeffs:
        scale = scale * ax + abs(c)
    if scale == 0.0:
        return 0.0
    return abs(_horner(coeffs, x)) / scale


def _newton(coeffs: Sequence[float], x: float) -> float:
    """Newton iteration from ``x``; returns the iterate with the smallest residual."""

    slope_coeffs = _derivative_coefficients(coeffs)
    best, best_residual = x, abs(_horner(coeffs, x))
    for _ in range(_NEWTON_STEPS):
        value = _horner(coeffs, x)
        slope = _horner(slope_coeffs, x)
        if value == 0.0 or slope == 0.0:
            break
        step = value / slope
        x -= step
        if not isfinite(x):
            break
        residual = abs(_horner(coeffs, x))
        if residual < best_residual:
            best, best_residual = x, residual
        if abs(step) <= _STEP_TOLERANCE * abs(x):
            break
    return best


def _polish(coeffs: Sequence[float], x: float) -> float:
    slope_coeffs = _derivative_coefficients(coeffs)
    residual = abs(_horner(coeffs, x))
    for _ in range(_NEWTON_STEPS):
        if residual == 0.0:
            break
        slope = _horner(slope_coeffs, x)
        if slope == 0.0:
            break
        candidate = x - _horner(coeffs, x) / slope
        candidate_residual = abs(_horner(coeffs, candidate))
        if not candidate_residual < residual:
            break
        x, residual = candidate, candidate_residual
    return x


def _first_root(coeffs: Sequence[float], starts: Iterable[float]) -> Tuple[Optional[float], bool]:
    """Run Newton from each start in turn.

    Returns the first iterate that is a root within ``RESIDUAL_TOLERANCE``
    and ``True``, or the iterate with the smallest relative residual and
    ``False`` when no start converges.
    """

    best, best_error = None, inf
    for start in starts:
        if not isfinite(start):
            continue
        x = _newton(coeffs, start)
        error = _relative_residual(coeffs, x)
        if error <= RESIDUAL_TOLERANCE:
            return x, True
        if error < best_error:
            best, best_error = x, error
    return best, False


def _deflate(coeffs: Sequence[float], root: float) -> List[float]:
    """Coefficients of ``p(x) / (x - root)`` for a root of ``p``.

    Large roots are divided out from the constant term and small ones
    from the leading term, which keeps the rounding error of the quotient
    at the level of the input.
    """

    n = len(coeffs) - 1
    quotient = [0.0] * n
    if abs(root) ** n >= abs(coeffs[-1] / coeffs[0]):
        quotient[n - 1] = -coeffs[n] / root
        for i in range(n - 1, 0, -1):
            quotient[i - 1] = (quotient[i] - coeffs[i]) / root
    else:
        quotient[0] = coeffs[0]
        for i in range(1, n):
            quotient[i] = coeffs[i] + root * quotient[i - 1]
    return quotient


def _root_scale(coeffs: Sequence[float]) -> float:
    """``max |c_k / c_0| ** (1 / k)``; every root is smaller than twice this."""

    lead = coeffs[0]
    return max(abs(c / lead) ** (1.0 / k) for k, c in enumerate(coeffs[1:], 1))


def _binary_scale(s: float) -> float:
    """The power of two nearest ``s``, so rescaling by it is exact."""

    return 2.0 ** round(log2(s))


def _scaled_monic(coeffs: Sequence[float], s: float) -> List[float]:
    """Coefficients below the leading 1 of ``p(s*y) / (c_0 * s**n)``."""

    lead = coeffs[0]
    return [c / lead / s ** k for k, c in enumerate(coeffs[1:], 1)]


def _is_real(z: complex) -> bool:
    return abs(z.imag) <= IMAGINARY_TOLERANCE * max(1.0, abs(z))


def _starts(candidates: Iterable[complex], s: float, bound: float) -> List[float]:
    candidates = [complex(z) for z in candidates]
    real = sorted((z.real for z in candidates if _is_real(z)), key=abs, reverse=True)
    others = [z.real for z in sorted((z for z in candidates if not _is_real(z)),
                                     key=lambda z: abs(z.imag))]
    return [s * y for y in real + others] + [bound, -bound]


def _finish(coeffs: Sequence[float], candidates: Iterable[float]) -> Roots:
    polished = sorted(_polish(coeffs, x) for x in candidates)
    clusters: List[List[float]] = []
    for x in polished:
        if clusters and abs(x - clusters[-1][-1]) <= ROOT_TOLERANCE * max(1.0, abs(x)):
            clusters[-1].append(x)
        else:
            clusters.append([x])
    return tuple(sum(cluster) / len(cluster) for cluster in clusters)


def _quadratic_complex(a, b, c) -> Tuple[complex, complex]:
    """Both roots of ``a*x**2 + b*x + c`` with ``a != 0``, as complex numbers."""

    disc = b * b - 4.0 * a * c
    root = cmath.sqrt(disc)
    if (complex(b).conjugate() * root).real < 0.0:
        root = -root
    q = -0.5 * (b + root)
    if q == 0:
        return complex(0.0), complex(0.0)
    return q / a, c / q


def _cbrt(x: float) -> float:
    return copysign(abs(x) ** (1.0 / 3.0), x)


def _cardano(A: float, B: float, C: float) -> List[float]:
    """Closed-form real roots of ``x**3 + A*x**2 + B*x + C``."""

    shift = A / 3.0
    # depressed form t**3 + p*t + q with x = t - shift
    p = B - A * A / 3.0
    q = 2.0 * A * A * A / 27.0 - A * B / 3.0 + C
    half_q = 0.5 * q
    third_p = p / 3.0
    disc = half_q * half_q + third_p * third_p * third_p
    magnitude = max(half_q * half_q, abs(third_p) ** 3)

    if magnitude == 0.0:
        ts = [0.0]
    elif abs(disc) <= _DISCRIMINANT_TOLERANCE * magnitude:
        u = _cbrt(-half_q)
        ts = [2.0 * u, -u]
    elif disc > 0.0:
        u = _cbrt(-half_q - copysign(sqrt(disc), half_q))
        v = -third_p / u if u != 0.0 else 0.0
        ts = [u + v]
    else:
        m = sqrt(-third_p)
        arg = max(-1.0, min(1.0, -half_q / (m * m * m)))
        phi = acos(arg)
        ts = [2.0 * m * cos((phi - 2.0 * pi * k) / 3.0) for k in range(3)]
    return [t - shift for t in ts]


def _ferrari(B: float, C: float, D: float, E: float) -> List[complex]:
    """Closed-form roots of ``x**4 + B*x**3 + C*x**2 + D*x + E``."""

    shift = B / 4.0
    # depressed form y**4 + p*y**2 + q*y + r with x = y - shift
    p = C - 3.0 * B * B / 8.0
    q = D - B * C / 2.0 + B * B * B / 8.0
    r = E - B * D / 4.0 + B * B * C / 16.0 - 3.0 * B ** 4 / 256.0

    q_scale = max(1.0, abs(p) ** 1.5, abs(r) ** 0.75)
    m = 0.0
    if abs(q) > _LINEAR_TERM_TOLERANCE * q_scale:
        resolvent = solve_cubic(8.0, 8.0 * p, 2.0 * p * p - 8.0 * r, -q * q)
        if resolvent:
            m = resolvent[-1]

    ys: List[complex] = []
    if m > 0.0:
        s = sqrt(2.0 * m)
        ys.extend(_quadratic_complex(1.0, -s, 0.5 * p + m + q / (2.0 * s)))
        ys.extend(_quadratic_complex(1.0, s, 0.5 * p + m - q / (2.0 * s)))
    else:
        # biquadratic
        for z in _quadratic_complex(1.0, p, r):
            w = cmath.sqrt(z)
            ys.extend((w, -w))
    return [y - shift for y in ys]


def solve_linear(a: float, b: float) -> Roots:
    """Real root of ``a*x + b``; empty when ``a`` is zero."""

    if a == 0.0:
        return ()
    return (-b / a,)


def solve_quadratic(a: float, b: float, c: float) -> Roots:
    """Real roots of ``a*x**2 + b*x + c``, ascending."""

    a, b, c = float(a), float(b), float(c)
    if a == 0.0:
        return solve_linear(b, c)
    if c == 0.0:
        return _finish((a, b, c), (0.0,) + solve_linear(a, b))

    disc = b * b - 4.0 * a * c
    # roots closer than ROOT_TOLERANCE make one double root
    if abs(disc) <= ROOT_TOLERANCE * ROOT_TOLERANCE * max(b * b, abs(4.0 * a * c)):
        return (-b / (2.0 * a),)
    if disc < 0.0:
        return ()
    q = -0.5 * (b + copysign(sqrt(disc), b))
    return _finish((a, b, c), (q / a, c / q))


def solve_cubic(a: float, b: float, c: float, d: float) -> Roots:
    """Real roots of ``a*x**3 + b*x**2 + c*x + d``, ascending."""

    a, b, c, d = float(a), float(b), float(c), float(d)
    if a == 0.0:
        return solve_quadratic(b, c, d)
    coeffs = (a, b, c, d)
    if d == 0.0:
        return _finish(coeffs, (0.0,) + solve_quadratic(a, b, c))

    size = _root_scale(coeffs)
    if not isfinite(size):
        # the extra root lies beyond the float range
        return solve_quadratic(b, c, d)
    s = _binary_scale(size)
    root, _ = _first_root(coeffs, _starts(_cardano(*_scaled_monic(coeffs, s)), s, 2.0 * size))
    if root is None:
        return ()
    return _finish(coeffs, (root,) + solve_quadratic(*_deflate(coeffs, root)))


def solve_quartic(a: float, b: float, c: float, d: float, e: float) -> Roots:
    """Real roots of ``a*x**4 + b*x**3 + c*x**2 + d*x + e``, ascending."""

    a, b, c, d, e = float(a), float(b), float(c), float(d), float(e)
    if a == 0.0:
        return solve_cubic(b, c, d, e)
    coeffs = (a, b, c, d, e)
    if e == 0.0:
        return _finish(coeffs, (0.0,) + solve_cubic(a, b, c, d))

    size = _root_scale(coeffs)
    if not isfinite(size):
        # the extra root lies beyond the float range
        return solve_cubic(b, c, d, e)
    s = _binary_scale(size)
    root, found = _first_root(coeffs, _starts(_ferrari(*_scaled_monic(coeffs, s)), s, 2.0 * size))
    if not found:
        return ()
    return _finish(coeffs, (root,) + solve_cubic(*_deflate(coeffs, root)))


_SOLVERS = {
    1: lambda cs: solve_linear(*cs),
    2: lambda cs: solve_quadratic(*cs),
    3: lambda cs: solve_cubic(*cs),
    4: lambda cs: solve_quartic(*cs),
}


class PolynomialFunction(ContinuousMap):
    """Polynomial of degree 0 to 4 as a continuous map of one real variable.

    Coefficients are stored highest power first, in the order the solvers
    take them.
    """

    def __init__(self, *coefficients: float):
        if not 1 <= len(coefficients) <= 5:
            raise ValueError("polynomials of degree 0 to 4 are supported")
        self._coefficients = tuple(float(c) for c in coefficients)

    @property
    def coefficients(self) -> Tuple[float, ...]:
        return self._coefficients

    @property
    def degree(self) -> int:
        return len(self._coefficients) - 1

    def evaluate(self, x: float) -> float:
        return _horner(self._coefficients, x)

    def derivative(self, x: float, order: int = 1) -> float:
        coeffs = list(self._coefficients)
        for _ in range(order):
            if len(coeffs) == 1:
                return 0.0
            coeffs = _derivative_coefficients(coeffs)
        return _horner(coeffs, x)

    def solve(self, value: float = 0.0) -> Roots:
        """Real parameters ``t`` where the polynomial equals ``value``."""

        coeffs = list(self._coefficients)
        coeffs[-1] -= value
        if len(coeffs) == 1:
            return ()
        return _SOLVERS[len(coeffs) - 1](coeffs)

    def __repr__(self):
        args = ", ".join(repr(c) for c in self._coefficients)
        return f"{type(self).__name__}({args})"


class QuadraticFunction(PolynomialFunction):
    """``a*x**2 + b*x + c``"""

    def __init__(self, a: float, b: float, c: float):
        super().__init__(a, b, c)


class CubicFunction(PolynomialFunction):
    """``a*x**3 + b*x**2 + c*x + d``"""

    def __init__(self, a: float, b: float, c: float, d: float):
        super().__init__(a, b, c, d)


class QuarticFunction(PolynomialFunction):
    """``a*x**4 + b*x**3 + c*x**2 + d*x + e``"""

    def __init__(self, a: float, b: float, c: float, d: float, e: float):
        super().__init__(a, b, c, d, e)


__all__ = [
    "ROOT_TOLERANCE",
    "IMAGINARY_TOLERANCE",
    "RESIDUAL_TOLERANCE",
    "Roots",
    "solve_linear",
    "solve_quadratic",
    "solve_cubic",
    "solve_quartic",
    "PolynomialFunction",
    "QuadraticFunction",
    "CubicFunction",
    "QuarticFunction",
]
