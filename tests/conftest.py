"""Pytest configuration and fixtures."""

import numpy as np
import pytest

from pathbool.coordinate import Coord2D
from pathbool.curve import bezier_points
from pathbool.path import SimplePath, path_curves

# Control point distance for approximating a quarter circle with a cubic
KAPPA = 0.5522847498


def make_square(x0: float, y0: float, x1: float, y1: float) -> SimplePath:
    """Anticlockwise rectangle from (x0, y0) to (x1, y1)."""
    return SimplePath.from_points([
        Coord2D(x0, y0), Coord2D(x1, y0), Coord2D(x1, y1), Coord2D(x0, y1)
    ])


def make_circle(cx: float, cy: float, r: float) -> SimplePath:
    """Anticlockwise circle made of four cubic arcs, starting at (cx + r, cy)."""
    k = KAPPA * r
    p = lambda x, y: Coord2D(cx + x, cy + y)
    return SimplePath(p(r, 0), (
        (p(r, k), p(k, r), p(0, r)),
        (p(-k, r), p(-r, k), p(-r, 0)),
        (p(-r, -k), p(-k, -r), p(0, -r)),
        (p(k, -r), p(r, -k), p(r, 0)),
    ))


def even_odd_contains(paths, x: float, y: float, samples: int = 64) -> bool:
    """Point-in-shape test for a set of paths under the even-odd rule."""
    crossings = 0
    for path in paths:
        polygon = np.vstack([
            bezier_points(curve.as_array()[:, :2], np.linspace(0.0, 1.0, samples))
            for curve in path_curves(path)
        ])
        xs, ys = polygon[:, 0], polygon[:, 1]
        xs2, ys2 = np.roll(xs, -1), np.roll(ys, -1)
        straddles = (ys > y) != (ys2 > y)
        with np.errstate(divide="ignore", invalid="ignore"):
            x_cross = xs + (y - ys) * (xs2 - xs) / (ys2 - ys)
        crossings += int(np.sum(straddles & (x_cross > x)))
    return crossings % 2 == 1


@pytest.fixture
def square():
    """Factory for axis-aligned square paths."""
    return make_square


@pytest.fixture
def circle():
    """Factory for circular paths."""
    return make_circle


@pytest.fixture
def contains():
    """Even-odd point containment for a list of paths."""
    return even_odd_contains


@pytest.fixture
def square_a():
    """Square from (0, 0) to (10, 10)."""
    return make_square(0, 0, 10, 10)


@pytest.fixture
def square_b():
    """Square from (5, 5) to (15, 15), overlapping square_a by 25."""
    return make_square(5, 5, 15, 15)
