"""Curve/curve and curve/ray intersection."""
import logging
from typing import List, Sequence, Tuple

import numpy as np
from scipy.optimize import minimize_scalar

from pathbool.curve import Curve, bezier_points, derivative_points, power_coefficients, split_control

logger = logging.getLogger(__name__)

# Hard limit on the number of curve pieces examined for one pair of curves
MAX_PIECES = 4096

# Number of points checked when testing if two curves lie on top of each other
OVERLAP_SAMPLES = 7


def _xy(curve: Curve) -> np.ndarray:
    """Control points of a curve restricted to the x/y plane."""
    return curve.as_array()[:, :2]


def nearest_param(control: np.ndarray, point: np.ndarray, samples: int = 32) -> Tuple[float, float]:
    """
    Find the parameter of the point on a curve closest to a given point.

    Samples the curve to bracket the closest point, then refines it with a
    bounded scalar minimisation.

    Args:
        control: (4, 2) control points
        point: (2,) target point
        samples: Number of coarse samples

    Returns:
        Tuple of (t, distance)
    """
    ts = np.linspace(0.0, 1.0, samples + 1)
    distances = np.linalg.norm(bezier_points(control, ts) - point, axis=1)
    best = int(np.argmin(distances))
    lo = ts[max(best - 1, 0)]
    hi = ts[min(best + 1, samples)]

    result = minimize_scalar(
        lambda t: float(np.sum((bezier_points(control, t) - point) ** 2)),
        bounds=(lo, hi),
        method="bounded",
        options={"xatol": 1e-10}
    )
    t = float(result.x)
    distance = float(np.linalg.norm(bezier_points(control, t) - point))

    if distances[best] < distance:
        return float(ts[best]), float(distances[best])
    return t, distance


def curve_nearest_param(curve: Curve, point) -> Tuple[float, float]:
    """nearest_param for a Curve and a Coordinate."""
    return nearest_param(_xy(curve), np.array(point.components()[:2], dtype=float))


def _overlap_params(a: np.ndarray, b: np.ndarray, accuracy: float):
    """
    Detect two curves running along each other.

    Returns:
        The (t_a, t_b) pairs at the ends of the shared section, or None if
        the curves do not overlap
    """
    pairs = []
    for t_b, point in ((0.0, b[0]), (1.0, b[3])):
        t_a, distance = nearest_param(a, point)
        if distance <= accuracy:
            pairs.append((t_a, t_b))
    for t_a, point in ((0.0, a[0]), (1.0, a[3])):
        t_b, distance = nearest_param(b, point)
        if distance <= accuracy:
            pairs.append((t_a, t_b))

    # Same location found from both sides
    unique = []
    for t_a, t_b in pairs:
        point = bezier_points(a, t_a)
        if all(np.linalg.norm(point - bezier_points(a, u_a)) > accuracy for u_a, _ in unique):
            unique.append((t_a, t_b))

    if len(unique) < 2:
        return None

    lo = min(t_a for t_a, _ in unique)
    hi = max(t_a for t_a, _ in unique)

    # Every point between the shared ends must be on both curves
    for t_a in np.linspace(lo, hi, OVERLAP_SAMPLES + 2)[1:-1]:
        _, distance = nearest_param(b, bezier_points(a, t_a))
        if distance > accuracy:
            return None

    return sorted(unique)


def _subdivide(a: np.ndarray, b: np.ndarray, accuracy: float, max_depth: int) -> List[Tuple[float, float]]:
    """Halve the curves until the pieces whose hulls still meet are smaller than accuracy."""
    margin = accuracy * 0.01
    leaves = []
    stack = [(a, 0.0, 1.0, b, 0.0, 1.0, 0)]
    examined = 0

    while stack:
        piece_a, a0, a1, piece_b, b0, b1, depth = stack.pop()
        examined += 1
        if examined > MAX_PIECES:
            logger.warning(f"Curve intersection search stopped after {MAX_PIECES} pieces")
            break

        min_a, max_a = piece_a.min(axis=0), piece_a.max(axis=0)
        min_b, max_b = piece_b.min(axis=0), piece_b.max(axis=0)
        if np.any(min_a > max_b + margin) or np.any(min_b > max_a + margin):
            continue

        size_a = float(np.max(max_a - min_a))
        size_b = float(np.max(max_b - min_b))
        if (size_a < accuracy and size_b < accuracy) or depth >= max_depth:
            leaves.append(((a0 + a1) / 2.0, (b0 + b1) / 2.0))
            continue

        if size_a >= size_b:
            left, right = split_control(piece_a, 0.5)
            mid = (a0 + a1) / 2.0
            stack.append((left, a0, mid, piece_b, b0, b1, depth + 1))
            stack.append((right, mid, a1, piece_b, b0, b1, depth + 1))
        else:
            left, right = split_control(piece_b, 0.5)
            mid = (b0 + b1) / 2.0
            stack.append((piece_a, a0, a1, left, b0, mid, depth + 1))
            stack.append((piece_a, a0, a1, right, mid, b1, depth + 1))

    return leaves


def _cluster(a: np.ndarray, b: np.ndarray, leaves: List[Tuple[float, float]], accuracy: float) -> List[Tuple[float, float]]:
    """Reduce runs of neighbouring leaves to the best pair in each run."""
    clusters: List[List[Tuple[float, float]]] = []
    last_point = None
    for t_a, t_b in sorted(leaves):
        point = bezier_points(a, t_a)
        if last_point is not None and np.linalg.norm(point - last_point) <= accuracy * 2.0:
            clusters[-1].append((t_a, t_b))
        else:
            clusters.append([(t_a, t_b)])
        last_point = point

    return [
        min(cluster, key=lambda ts: float(np.linalg.norm(bezier_points(a, ts[0]) - bezier_points(b, ts[1]))))
        for cluster in clusters
    ]


def _refine(a: np.ndarray, b: np.ndarray, t_a: float, t_b: float, iterations: int) -> Tuple[float, float]:
    """Newton iteration on A(t) - B(s) = 0, keeping the start if it does not improve."""
    start_error = float(np.linalg.norm(bezier_points(a, t_a) - bezier_points(b, t_b)))
    t, s = t_a, t_b

    for _ in range(iterations):
        residual = bezier_points(a, t) - bezier_points(b, s)
        if np.linalg.norm(residual) < 1e-12:
            break
        jacobian = np.column_stack([derivative_points(a, t), -derivative_points(b, s)])
        if abs(np.linalg.det(jacobian)) < 1e-12:
            break  # Tangent curves
        step = np.linalg.solve(jacobian, residual)
        t = float(np.clip(t - step[0], 0.0, 1.0))
        s = float(np.clip(s - step[1], 0.0, 1.0))

    error = float(np.linalg.norm(bezier_points(a, t) - bezier_points(b, s)))
    if error <= start_error:
        return t, s
    return t_a, t_b


def curve_intersects_curve(
    curve1: Curve,
    curve2: Curve,
    accuracy: float,
    max_depth: int = 48,
    newton_iterations: int = 8
) -> List[Tuple[float, float]]:
    """
    Find where two curves meet.

    Curves lying along each other only report the ends of their shared
    section. Otherwise the curves are subdivided until the pieces that can
    still touch are smaller than accuracy, and each cluster of pieces is
    refined to a single parameter pair.

    Args:
        curve1: First curve
        curve2: Second curve
        accuracy: Maximum distance between the curves at a reported intersection
        max_depth: Maximum number of subdivisions
        newton_iterations: Refinement steps per intersection

    Returns:
        List of (t on curve1, t on curve2), ordered along curve1
    """
    a = _xy(curve1)
    b = _xy(curve2)

    overlap = _overlap_params(a, b, accuracy)
    if overlap is not None:
        return overlap

    leaves = _subdivide(a, b, accuracy, max_depth)
    if not leaves:
        return []

    results = []
    for t_a, t_b in _cluster(a, b, leaves, accuracy):
        t_a, t_b = _refine(a, b, t_a, t_b, newton_iterations)
        if np.linalg.norm(bezier_points(a, t_a) - bezier_points(b, t_b)) <= accuracy:
            results.append((t_a, t_b))

    return sorted(results)


def curve_intersects_ray(
    curve: Curve,
    ray_from: Sequence[float],
    ray_to: Sequence[float]
) -> List[Tuple[float, float, np.ndarray]]:
    """
    Find where a curve crosses the line through two points.

    Args:
        curve: Curve to test
        ray_from: (x, y) start of the ray, where ray_t = 0
        ray_to: (x, y) point the ray passes through, where ray_t = 1

    Returns:
        List of (curve_t, ray_t, (x, y) point). ray_t is not limited to [0, 1].
    """
    control = _xy(curve)
    origin = np.asarray(ray_from, dtype=float)[:2]
    direction = np.asarray(ray_to, dtype=float)[:2] - origin
    length_sq = float(direction @ direction)
    if length_sq == 0.0:
        return []

    # Signed distance from the line as a cubic in t
    normal = np.array([-direction[1], direction[0]])
    coefficients = power_coefficients(control) @ normal
    coefficients[3] -= origin @ normal

    scale = float(np.max(np.abs(coefficients)))
    if scale < 1e-12:
        return []  # Curve lies along the ray
    while len(coefficients) > 1 and abs(coefficients[0]) < scale * 1e-12:
        coefficients = coefficients[1:]
    if len(coefficients) < 2:
        return []

    results = []
    for root in np.roots(coefficients):
        if abs(root.imag) > 1e-9:
            continue
        t = float(root.real)
        if t < -1e-9 or t > 1.0 + 1e-9:
            continue
        t = min(max(t, 0.0), 1.0)
        if any(abs(t - other) < 1e-9 for other, _, _ in results):
            continue
        point = bezier_points(control, t)
        ray_t = float((point - origin) @ direction / length_sq)
        results.append((t, ray_t, point))

    return sorted(results, key=lambda hit: hit[0])
