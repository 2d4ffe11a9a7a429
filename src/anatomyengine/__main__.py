#!/usr/bin/env python3
"""
Demo: build the example long bones and hinge joint and tessellate them.

Usage:
    python -m anatomyengine [--resolution U V] [--preset NAME] [--workers N] [-v]

The long bone is a sweep along a straight centre line with a natural cubic
radius profile; a second bone uses a constant radius; the curved shaft
follows a spatial cubic spline; the joint's articular surface revolves a
quadratic radius profile through half a turn.  For each surface the vertex
and triangle counts are printed, followed by the real roots of the two
quartic regression polynomials, each labelled with its coefficients.
"""

import argparse
import logging
import sys
from math import pi

from anatomyengine.curves import Line
from anatomyengine.mesh import RESOLUTION_PRESETS, resolution_preset
from anatomyengine.polynomial import solve_quartic
from anatomyengine.spline import CubicSpline1D, QuadraticSpline1D, SpatialCubicSpline
from anatomyengine.surface import RevolutionSurface, SweepSurface

logger = logging.getLogger("anatomyengine")

# highest power first; the second has real roots -1.3162 and 1.2934
REGRESSION_QUARTICS = (
    (5.0, 8.0, 2.0, -2.0, -7.0),
    (7.0, 2.0, -6.0, -3.0, -10.0),
)


def _format_polynomial(coeffs) -> str:
    degree = len(coeffs) - 1
    text = ""
    for k, c in enumerate(coeffs):
        if c == 0:
            continue
        power = degree - k
        term = f"{abs(c):g}"
        if power > 1:
            term += f"x^{power}"
        elif power == 1:
            term += "x"
        text += ("-" if c < 0 else "+") + term
    return text[1:] if text.startswith("+") else text


def bone_radius() -> CubicSpline1D:
    """Radius profile of a long bone: flared ends, narrower shaft."""
    return CubicSpline1D([
        (-3.5, 0.7 * 0.92),
        (0.02, 0.7 * 0.92),
        (0.15, 0.7 * 0.8),
        (0.5, 0.7 * 0.7),
        (0.8, 0.7 * 0.76),
        (0.98, 0.7 * 0.8),
        (4.5, 0.7 * 0.8),
    ])


def bone_center() -> SpatialCubicSpline:
    return SpatialCubicSpline([
        (0.0, (0.0, 0.0, 2.7)),
        (0.25, (-0.3, -0.5, 1.0)),
        (0.5, (0.3, 1.0, 0.0)),
        (0.75, (0.8, 1.0, -1.0)),
        (1.0, (0.6, -0.5, -0.9)),
    ])


def joint_radius(modifier: float = 0.6) -> QuadraticSpline1D:
    return QuadraticSpline1D([
        (-0.1, modifier * 1.1),
        (0.0, modifier * 1.1),
        (0.15, modifier * 0.95),
        (0.3, modifier * 0.9),
        (0.5, modifier * 1.2),
        (0.7, modifier * 0.9),
        (0.8, modifier * 0.95),
        (1.0, modifier * 1.1),
    ])


def example_surfaces():
    """Named surfaces of the example skeleton."""
    return [
        ('long bone', SweepSurface(Line((0.0, 0.3, 0.5), (0.001, 10.0, 0.51)), bone_radius())),
        ('short bone', SweepSurface(Line((0.0, 0.2, 0.5), (0.001, -10.0, 0.51)), 0.3)),
        ('curved shaft', SweepSurface(bone_center(), bone_radius())),
        ('hinge joint', RevolutionSurface((0.0, 0.0, 0.0), (0.01, 0.0, 1.0), joint_radius(),
                                          v_range=(-0.5 * pi, 0.5 * pi))),
    ]


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="python -m anatomyengine",
        description="Tessellate the example bone and joint surfaces",
    )
    parser.add_argument("--resolution", nargs=2, type=int, metavar=("U", "V"),
                        help="grid resolution along u and v")
    parser.add_argument("--preset", choices=sorted(RESOLUTION_PRESETS), default="high",
                        help="named resolution, used when --resolution is absent")
    parser.add_argument("--workers", type=int, default=None,
                        help="threads used to sample grid rows")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(levelname)s %(name)s: %(message)s")

    resolution_u, resolution_v = args.resolution or resolution_preset(args.preset)

    try:
        for name, surface in example_surfaces():
            mesh = surface.generate_mesh(resolution_u, resolution_v, workers=args.workers)
            print(f"{name}: {mesh.vertex_count} vertices, {mesh.triangle_count} triangles")
    except ValueError as exc:
        logger.error("%s", exc)
        return 1

    for coeffs in REGRESSION_QUARTICS:
        roots = solve_quartic(*coeffs)
        print(f"quartic roots {_format_polynomial(coeffs)}: " + ", ".join(f"{r:.4f}" for r in roots))
    return 0


if __name__ == "__main__":
    sys.exit(main())
