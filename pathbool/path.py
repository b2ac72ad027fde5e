"""Closed bezier paths and whole-path measurements."""
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

import numpy as np
from numpy.polynomial import Polynomial

from pathbool.coordinate import Coordinate
from pathbool.curve import Curve, power_coefficients
from pathbool.types import CLOSE_DISTANCE, BezierPathLike, PathDirection

Segment = Tuple[Coordinate, Coordinate, Coordinate]


@dataclass(frozen=True)
class SimplePath:
    """Closed path: a start point followed by (cp1, cp2, end) segments."""
    start: Coordinate
    segments: Tuple[Segment, ...] = ()

    @classmethod
    def from_path(cls, path: BezierPathLike) -> "SimplePath":
        return cls(path.start_point(), tuple(tuple(segment) for segment in path.points()))

    @classmethod
    def from_points(cls, points: Sequence[Coordinate]) -> "SimplePath":
        """Polygon through the given points, with straight cubic segments."""
        if not points:
            raise ValueError("A path needs at least one point")
        segments = []
        for start, end in zip(points, list(points[1:]) + [points[0]]):
            line = Curve.line(start, end)
            segments.append((line.cp1, line.cp2, line.end))
        return cls(points[0], tuple(segments))

    def start_point(self) -> Coordinate:
        return self.start

    def points(self) -> Iterator[Segment]:
        return iter(self.segments)

    def reversed(self) -> "SimplePath":
        """The same contour traversed in the opposite direction."""
        curves = list(path_curves(self, close=False))
        if not curves:
            return self
        end = curves[-1].end
        return SimplePath(end, tuple((c.cp2, c.cp1, c.start) for c in reversed(curves)))


def path_curves(path: BezierPathLike, close: bool = True, close_distance: float = CLOSE_DISTANCE) -> Iterator[Curve]:
    """
    Iterate over the curves of a path.

    Args:
        path: Any path exposing start_point() and points()
        close: Add a straight closing curve when the path ends away from its start
        close_distance: How far the end may be from the start and still count as closed
    """
    start = path.start_point()
    last = start
    for cp1, cp2, end in path.points():
        yield Curve(last, cp1, cp2, end)
        last = end

    if close and last is not start and last.distance_to(start) >= close_distance:
        yield Curve.line(last, start)


def signed_area(path: BezierPathLike) -> float:
    """
    Area enclosed by a closed path, positive when it winds anticlockwise.

    Integrates (x dy - y dx) / 2 exactly over each cubic segment.
    """
    area = 0.0
    for curve in path_curves(path):
        coefficients = power_coefficients(curve.as_array())
        # numpy's Polynomial wants ascending powers
        x = Polynomial(coefficients[::-1, 0])
        y = Polynomial(coefficients[::-1, 1])
        integral = (x * y.deriv() - y * x.deriv()).integ()
        area += (integral(1.0) - integral(0.0)) / 2.0
    return float(area)


def path_direction(path: BezierPathLike) -> PathDirection:
    """Winding of a path from the sign of its enclosed area (y axis up)."""
    if signed_area(path) < 0:
        return PathDirection.CLOCKWISE
    return PathDirection.ANTICLOCKWISE


def paths_area(paths: Iterable[BezierPathLike]) -> float:
    """Total area of a set of paths that do not nest inside each other."""
    return sum(abs(signed_area(path)) for path in paths)


def path_bounds(paths: Iterable[BezierPathLike]) -> Optional[Tuple[np.ndarray, np.ndarray]]:
    """(min, max) of every point of a set of paths, or None if there are none."""
    points: List[Tuple[float, ...]] = []
    for path in paths:
        points.append(path.start_point().components())
        for segment in path.points():
            points.extend(p.components() for p in segment)
    if not points:
        return None
    array = np.array(points, dtype=float)
    return array.min(axis=0), array.max(axis=0)
