"""Cubic bezier curve segments."""
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from pathbool.coordinate import Coordinate


def bezier_points(control: np.ndarray, t) -> np.ndarray:
    """
    Evaluate a cubic bezier at one or more parameter values.

    Args:
        control: (4, D) array of start, control 1, control 2, end
        t: Scalar or 1D array of parameters

    Returns:
        (D,) array for a scalar t, (N, D) array otherwise
    """
    t = np.asarray(t, dtype=float)
    s = 1.0 - t
    weights = np.stack([s ** 3, 3 * s * s * t, 3 * s * t * t, t ** 3], axis=-1)
    return weights @ control


def split_control(control: np.ndarray, t: float) -> Tuple[np.ndarray, np.ndarray]:
    """Split a (4, D) control array at t using de Casteljau's algorithm."""
    p0, p1, p2, p3 = control
    p01 = p0 + (p1 - p0) * t
    p12 = p1 + (p2 - p1) * t
    p23 = p2 + (p3 - p2) * t
    p012 = p01 + (p12 - p01) * t
    p123 = p12 + (p23 - p12) * t
    mid = p012 + (p123 - p012) * t

    return np.array([p0, p01, p012, mid]), np.array([mid, p123, p23, p3])


def power_coefficients(control: np.ndarray) -> np.ndarray:
    """Coefficients (a, b, c, d) of a*t^3 + b*t^2 + c*t + d for each component."""
    p0, p1, p2, p3 = control
    return np.array([
        -p0 + 3 * p1 - 3 * p2 + p3,
        3 * p0 - 6 * p1 + 3 * p2,
        -3 * p0 + 3 * p1,
        p0,
    ])


def derivative_points(control: np.ndarray, t) -> np.ndarray:
    """First derivative of a cubic bezier at t."""
    t = np.asarray(t, dtype=float)
    s = 1.0 - t
    d = np.diff(control, axis=0) * 3.0
    weights = np.stack([s * s, 2 * s * t, t * t], axis=-1)
    return weights @ d


@dataclass(frozen=True)
class Curve:
    """Cubic bezier curve segment."""
    start: Coordinate
    cp1: Coordinate  # Control point
    cp2: Coordinate  # Control point
    end: Coordinate

    @classmethod
    def from_array(cls, point_type, control: np.ndarray) -> "Curve":
        return cls(*(point_type.from_components(row) for row in control))

    @classmethod
    def line(cls, start: Coordinate, end: Coordinate) -> "Curve":
        """Straight line expressed as a cubic, control points at 1/3 and 2/3."""
        delta = end - start
        return cls(start, start + delta * (1.0 / 3.0), start + delta * (2.0 / 3.0), end)

    def as_array(self) -> np.ndarray:
        return np.array([p.components() for p in (self.start, self.cp1, self.cp2, self.end)], dtype=float)

    def start_point(self) -> Coordinate:
        return self.start

    def end_point(self) -> Coordinate:
        return self.end

    def control_points(self) -> Tuple[Coordinate, Coordinate]:
        return (self.cp1, self.cp2)

    def point_at_pos(self, t: float) -> Coordinate:
        return type(self.start).from_components(bezier_points(self.as_array(), t))

    def subdivide(self, t: float) -> Tuple["Curve", "Curve"]:
        left, right = split_control(self.as_array(), t)
        point_type = type(self.start)
        return Curve.from_array(point_type, left), Curve.from_array(point_type, right)

    def reversed(self) -> "Curve":
        return Curve(self.end, self.cp2, self.cp1, self.start)

    def fast_bounding_box(self) -> Tuple[Coordinate, Coordinate]:
        """Bounds of the control points; always contains the curve."""
        control = self.as_array()
        point_type = type(self.start)
        return point_type.from_components(control.min(axis=0)), point_type.from_components(control.max(axis=0))

    def bounding_box(self) -> Tuple[Coordinate, Coordinate]:
        """Tight bounds, from the end points and the extremes of each component."""
        control = self.as_array()
        candidates = [0.0, 1.0]

        # Roots of the derivative, per component
        d = np.diff(control, axis=0) * 3.0
        for axis in range(control.shape[1]):
            d0, d1, d2 = d[:, axis]
            quad = [d0 - 2 * d1 + d2, 2 * (d1 - d0), d0]
            if abs(quad[0]) < 1e-12:
                if abs(quad[1]) > 1e-12:
                    candidates.append(-quad[2] / quad[1])
                continue
            for root in np.roots(quad):
                if abs(root.imag) < 1e-12:
                    candidates.append(root.real)

        ts = np.array([t for t in candidates if 0.0 <= t <= 1.0])
        points = bezier_points(control, ts)
        point_type = type(self.start)
        return point_type.from_components(points.min(axis=0)), point_type.from_components(points.max(axis=0))


def bounds_overlap(
    bounds1: Tuple[Coordinate, Coordinate],
    bounds2: Tuple[Coordinate, Coordinate],
    margin: float = 0.0,
    dimensions: int = 2
) -> bool:
    """Check if two (min, max) boxes overlap in their first dimensions once grown by margin."""
    min1, max1 = bounds1
    min2, max2 = bounds2
    axes = zip(
        min1.components()[:dimensions], max1.components()[:dimensions],
        min2.components()[:dimensions], max2.components()[:dimensions]
    )
    for lo1, hi1, lo2, hi2 in axes:
        if lo1 > hi2 + margin or lo2 > hi1 + margin:
            return False
    return True
