"""Ray casting classification of graph path edges."""
import logging
import math
from typing import List, Optional, Tuple

import numpy as np

from pathbool.graph_path import EdgeRef, GraphPath, RayCollision
from pathbool.types import ArithmeticConfig, CombineRule, EdgeKind, PathSource

logger = logging.getLogger(__name__)

# Golden ratio conjugate: spreads successive ray origins around the shape
_RAY_ANGLE_STEP = 0.6180339887498949


def add_rule(inside1: bool, inside2: bool) -> bool:
    return inside1 or inside2


def sub_rule(inside1: bool, inside2: bool) -> bool:
    return inside1 and not inside2


def intersect_rule(inside1: bool, inside2: bool) -> bool:
    return inside1 and inside2


def xor_rule(inside1: bool, inside2: bool) -> bool:
    return inside1 != inside2


ADD_RULE: CombineRule = add_rule
SUB_RULE: CombineRule = sub_rule
INTERSECT_RULE: CombineRule = intersect_rule
XOR_RULE: CombineRule = xor_rule


def outside_point(bounds: Tuple[np.ndarray, np.ndarray], attempt: int = 0) -> np.ndarray:
    """
    A point outside a bounding box.

    Successive attempts move around a circle enclosing the box so a ray that
    passes through a node can be retried from a different direction.

    Args:
        bounds: (min, max) x/y of everything that may be crossed
        attempt: Index of the ray attempt

    Returns:
        (x, y) array
    """
    lo, hi = bounds
    center = (lo + hi) / 2.0
    diagonal = float(np.linalg.norm(hi - lo))
    radius = diagonal / 2.0 + max(diagonal, 1.0)
    angle = 2.0 * math.pi * ((0.1 + attempt * _RAY_ANGLE_STEP) % 1.0) + 0.3
    return center + radius * np.array([math.cos(angle), math.sin(angle)])


def cast_ray(
    graph: GraphPath,
    target: EdgeRef,
    bounds: Tuple[np.ndarray, np.ndarray],
    accuracy: float,
    config: ArithmeticConfig
) -> List[RayCollision]:
    """
    Collisions of a ray from outside the graph to the midpoint of an edge.

    The midpoint is never a node, so the target edge can always be
    classified. Rays that pass through a node are retried from another
    outside point; if every attempt does, the last one is used.

    Returns:
        Collisions ordered from the outside point, ending with the group
        containing the target edge
    """
    target_point = np.array(graph.edge_curve(target).point_at_pos(0.5).components()[:2], dtype=float)
    vertex_tolerance = accuracy * config.vertex_tolerance_factor

    collisions: List[RayCollision] = []
    for attempt in range(config.max_ray_attempts):
        origin = outside_point(bounds, attempt)
        collisions = graph.ray_collisions(origin, target_point, accuracy, vertex_tolerance)
        collisions = _end_at_target(collisions, target, target_point)

        # The ray ends at the middle of the target edge, not at a node, even
        # when the edge is too short to tell the difference
        collisions[-1].at_node = False

        if not any(collision.at_node for collision in collisions):
            return collisions
        logger.debug(f"Ray {attempt} towards edge {target} passes through a node, retrying")

    return collisions


def _end_at_target(collisions: List[RayCollision], target: EdgeRef, target_point: np.ndarray) -> List[RayCollision]:
    """Drop collisions beyond the target edge, adding it if the ray missed it numerically."""
    for index, collision in enumerate(collisions):
        if target in collision.edges:
            return collisions[:index + 1]

    collisions = [collision for collision in collisions if collision.ray_t < 1.0]
    collisions.append(RayCollision(1.0, target_point, [(target, 0.5, False)]))
    return collisions


def _toggled_edges(collision: RayCollision) -> List[EdgeRef]:
    """Edges whose source path the ray enters or leaves at a collision."""
    if not collision.at_node:
        return collision.edges

    # Passing through a node meets both the edge arriving and the edge
    # leaving: count each crossing once by ignoring hits at an edge's end
    return [ref for ref, _, near_end in collision.hits if not near_end]


def classify_collisions(graph: GraphPath, collisions: List[RayCollision], rule: CombineRule, incoming) -> int:
    """
    Categorise the edges crossed by one ray.

    The ray starts outside both source shapes. At each crossing the inside
    flag of the crossed edges' source paths is toggled; if the combined
    state changes the crossing is on the boundary of the result.

    Returns:
        Number of edges categorised
    """
    inside1 = False
    inside2 = False
    categorised = 0

    for collision in collisions:
        was_inside = rule(inside1, inside2)

        for ref in _toggled_edges(collision):
            label = graph.edge_label(ref)
            if label is None or label.source is PathSource.PATH1:
                inside1 = not inside1
            else:
                inside2 = not inside2

        # Edges meeting at a node can belong on either side of the boundary
        if collision.is_intersection():
            continue

        is_exterior = was_inside != rule(inside1, inside2)
        edges = collision.edges

        # Coincident edges are the same physical curve: only one of them can
        # be on the boundary
        if is_exterior and not any(graph.edge_kind(ref) is EdgeKind.EXTERIOR for ref in edges):
            first = next((ref for ref in edges if graph.edge_kind(ref) is EdgeKind.UNCATEGORISED), None)
            if first is not None:
                categorised += graph.set_edge_kind_connected(first, EdgeKind.EXTERIOR, incoming)

        for ref in edges:
            if graph.edge_kind(ref) is EdgeKind.UNCATEGORISED:
                categorised += graph.set_edge_kind_connected(ref, EdgeKind.INTERIOR, incoming)

    return categorised


def classify_edges(
    graph: GraphPath,
    rule: CombineRule,
    accuracy: float,
    config: Optional[ArithmeticConfig] = None
) -> int:
    """
    Mark every uncategorised edge of a collided graph as interior or exterior.

    Repeatedly casts a ray at the midpoint of an uncategorised edge until none
    are left. The number of rays is bounded by the number of edges; anything
    still uncategorised after that is marked interior.

    Args:
        graph: Graph whose edges carry PathLabels
        rule: Whether a point is inside the result given whether it is inside
            path 1 and path 2
        accuracy: Distance within which crossings are treated as the same point
        config: Ray casting parameters

    Returns:
        Number of rays cast
    """
    config = config or ArithmeticConfig()
    bounds = graph.bounds()
    if bounds is None:
        return 0

    incoming = graph.incoming_edges()
    max_iterations = graph.num_edges()
    iterations = 0

    while True:
        target = next((ref for ref in graph.all_edges() if graph.edge_kind(ref) is EdgeKind.UNCATEGORISED), None)
        if target is None:
            break

        if iterations >= max_iterations:
            remaining = [ref for ref in graph.all_edges() if graph.edge_kind(ref) is EdgeKind.UNCATEGORISED]
            logger.warning(
                f"Edge classification did not finish after {iterations} rays, "
                f"marking {len(remaining)} edges as interior"
            )
            for ref in remaining:
                graph.set_edge_kind(ref, EdgeKind.INTERIOR)
            break

        iterations += 1
        collisions = cast_ray(graph, target, bounds, accuracy, config)
        classify_collisions(graph, collisions, rule, incoming)

    logger.debug(f"Classified {graph.num_edges()} edges with {iterations} rays")
    return iterations
