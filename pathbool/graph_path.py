"""
Graph representation of bezier paths for path arithmetic.

A GraphPath is an arena of nodes addressed by index. Each node has a point
and a list of outgoing edges; an edge stores the index of the node it leads
to and the two control points of the curve between them. Edges are addressed
by EdgeRef(start node, position in the start node's edge list).

Nodes are only ever appended, so indices stay valid while collision
detection subdivides edges.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, Iterator, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from pathbool.coordinate import Coordinate
from pathbool.curve import Curve, bounds_overlap
from pathbool.intersection import curve_intersects_curve, curve_intersects_ray
from pathbool.path import SimplePath
from pathbool.types import (
    CLOSE_DISTANCE,
    ArithmeticConfig,
    BezierPathLike,
    EdgeKind,
    PathLabel,
)

logger = logging.getLogger(__name__)


@dataclass
class GraphEdge:
    """Curve from the owning node to the target node."""
    target: int
    cp1: Coordinate
    cp2: Coordinate
    kind: EdgeKind = EdgeKind.UNCATEGORISED
    label: Optional[PathLabel] = None


@dataclass
class GraphNode:
    """A point and the edges leaving it."""
    point: Coordinate
    edges: List[GraphEdge] = field(default_factory=list)


class EdgeRef(NamedTuple):
    """Address of an edge: its start node and its index in that node's edge list."""
    start: int
    index: int


@dataclass
class RayCollision:
    """Edges crossed by a ray at one location."""
    ray_t: float
    point: np.ndarray
    hits: List[Tuple[EdgeRef, float, bool]] = field(default_factory=list)  # ref, curve t, near end point
    at_node: bool = False

    @property
    def edges(self) -> List[EdgeRef]:
        return [ref for ref, _, _ in self.hits]

    def is_intersection(self) -> bool:
        """True if the ray passes through a node rather than across edges."""
        return self.at_node


class _NodeUnion:
    """Union-find over node indices."""

    def __init__(self):
        self.parent: Dict[int, int] = {}

    def find(self, node: int) -> int:
        root = node
        while self.parent.get(root, root) != root:
            root = self.parent[root]
        while node != root:
            next_node = self.parent.get(node, node)
            self.parent[node] = root
            node = next_node
        return root

    def union(self, keep: int, remove: int):
        keep, remove = self.find(keep), self.find(remove)
        if keep != remove:
            self.parent[remove] = keep

    def __bool__(self):
        return bool(self.parent)


class GraphPath:
    """
    A path where each point can have more than one connected edge.

    Edges are categorised as interior or exterior depending on whether they
    are inside the combined shape or on its boundary.
    """

    def __init__(self, nodes: Optional[List[GraphNode]] = None):
        self.nodes: List[GraphNode] = nodes if nodes is not None else []

    @classmethod
    def from_path(
        cls,
        path: BezierPathLike,
        label: Optional[PathLabel] = None,
        kind: EdgeKind = EdgeKind.EXTERIOR,
        close_distance: float = CLOSE_DISTANCE
    ) -> "GraphPath":
        """
        Create a graph from a single closed path.

        All edges of a lone path are exterior. A path that does not end on its
        start point is closed with a straight line. A path with no segments
        produces an empty graph.
        """
        start = path.start_point()
        nodes = [GraphNode(start)]

        for cp1, cp2, end in path.points():
            nodes[-1].edges.append(GraphEdge(len(nodes), cp1, cp2, kind, label))
            nodes.append(GraphNode(end))

        last = len(nodes) - 1
        if last == 0:
            # Just a start point: doesn't describe a shape
            return cls([])

        if start.distance_to(nodes[last].point) < close_distance:
            # The curve into the last point becomes the curve into the start point
            nodes.pop()
            for edge in nodes[last - 1].edges:
                if edge.target == last:
                    edge.target = 0
        else:
            closing = Curve.line(nodes[last].point, start)
            nodes[last].edges.append(GraphEdge(0, closing.cp1, closing.cp2, kind, label))

        graph = cls(nodes)
        if len(nodes) == 1 and _hull_size(graph.edge_curve(EdgeRef(0, 0))) < close_distance:
            # A single segment looping back on its start without enclosing anything
            return cls([])
        return graph

    @classmethod
    def from_merged_paths(
        cls,
        paths: Iterable[Tuple[BezierPathLike, PathLabel]],
        close_distance: float = CLOSE_DISTANCE
    ) -> "GraphPath":
        """Merge several labelled paths into one graph with uncategorised edges."""
        merged = cls()
        for path, label in paths:
            merged = merged.merge(cls.from_path(path, label, EdgeKind.UNCATEGORISED, close_distance))
        return merged

    def num_nodes(self) -> int:
        return len(self.nodes)

    def num_edges(self) -> int:
        return sum(len(node.edges) for node in self.nodes)

    def node_point(self, node: int) -> Coordinate:
        return self.nodes[node].point

    def edges_for_node(self, node: int) -> List[EdgeRef]:
        return [EdgeRef(node, index) for index in range(len(self.nodes[node].edges))]

    def all_edges(self) -> Iterator[EdgeRef]:
        for node in range(len(self.nodes)):
            for index in range(len(self.nodes[node].edges)):
                yield EdgeRef(node, index)

    def edge(self, ref: EdgeRef) -> GraphEdge:
        return self.nodes[ref.start].edges[ref.index]

    def edge_end(self, ref: EdgeRef) -> int:
        return self.edge(ref).target

    def edge_kind(self, ref: EdgeRef) -> EdgeKind:
        return self.edge(ref).kind

    def edge_label(self, ref: EdgeRef) -> Optional[PathLabel]:
        return self.edge(ref).label

    def edge_curve(self, ref: EdgeRef) -> Curve:
        edge = self.edge(ref)
        return Curve(self.nodes[ref.start].point, edge.cp1, edge.cp2, self.nodes[edge.target].point)

    def incoming_edges(self) -> Dict[int, List[EdgeRef]]:
        """Map from node index to the edges that end there."""
        incoming = defaultdict(list)
        for ref in self.all_edges():
            incoming[self.edge(ref).target].append(ref)
        return incoming

    def bounds(self) -> Optional[Tuple[np.ndarray, np.ndarray]]:
        """(min, max) x/y of every node and control point."""
        points = []
        for node in self.nodes:
            points.append(node.point.components()[:2])
            for edge in node.edges:
                points.append(edge.cp1.components()[:2])
                points.append(edge.cp2.components()[:2])
        if not points:
            return None
        array = np.array(points, dtype=float)
        return array.min(axis=0), array.max(axis=0)

    def set_edge_kind(self, ref: EdgeRef, kind: EdgeKind) -> bool:
        """Categorise an edge. Edges that are already categorised are left alone."""
        edge = self.edge(ref)
        if edge.kind is not EdgeKind.UNCATEGORISED:
            return False
        edge.kind = kind
        return True

    def set_edge_kind_connected(
        self,
        ref: EdgeRef,
        kind: EdgeKind,
        incoming: Optional[Dict[int, List[EdgeRef]]] = None
    ) -> int:
        """
        Categorise an edge and every edge joined to it without a branch.

        The inside/outside state can only change where paths cross, so the
        whole chain of edges between two branch nodes shares a category.

        Returns:
            Number of edges that were categorised
        """
        if incoming is None:
            incoming = self.incoming_edges()
        if not self.set_edge_kind(ref, kind):
            return 0
        count = 1

        def is_simple(node: int) -> bool:
            return len(self.nodes[node].edges) == 1 and len(incoming.get(node, ())) == 1

        # Forward along the chain
        node = self.edge(ref).target
        while is_simple(node):
            if not self.set_edge_kind(EdgeRef(node, 0), kind):
                break
            count += 1
            node = self.nodes[node].edges[0].target

        # Backward along the chain
        node = ref.start
        while is_simple(node):
            previous = incoming[node][0]
            if not self.set_edge_kind(previous, kind):
                break
            count += 1
            node = previous.start

        return count

    def merge(self, merge_path: "GraphPath") -> "GraphPath":
        """
        Combine with another graph without looking for intersections.

        The nodes of merge_path follow the nodes of this graph, so its edge
        targets are offset by this graph's node count.
        """
        offset = len(self.nodes)
        nodes = [GraphNode(node.point, [replace(edge) for edge in node.edges]) for node in self.nodes]
        nodes.extend(
            GraphNode(node.point, [replace(edge, target=edge.target + offset) for edge in node.edges])
            for node in merge_path.nodes
        )
        return GraphPath(nodes)

    def collide(
        self,
        collide_path: "GraphPath",
        accuracy: float,
        config: Optional[ArithmeticConfig] = None
    ) -> "GraphPath":
        """
        Merge with another graph, adding branch nodes wherever the two intersect.

        Edge kinds and labels are kept from the graph each edge came from.
        """
        collision_offset = len(self.nodes)
        merged = self.merge(collide_path)
        merged.detect_collisions(
            range(0, collision_offset),
            range(collision_offset, merged.num_nodes()),
            accuracy,
            config
        )
        return merged

    def detect_collisions(
        self,
        collide_from: Sequence[int],
        collide_to: Sequence[int],
        accuracy: float,
        config: Optional[ArithmeticConfig] = None
    ):
        """
        Find where edges leaving two ranges of nodes cross and split them there.

        Intersections are all found before any edge is changed. Each edge is
        then subdivided from its far end back towards its start so the
        remaining parameters only need rescaling. Intersections within
        accuracy of an existing node in the x/y plane join that node instead
        of creating a new one, whatever their other components.
        """
        config = config or ArithmeticConfig()
        from_edges = [ref for node in collide_from for ref in self.edges_for_node(node)]
        to_edges = [ref for node in collide_to for ref in self.edges_for_node(node)]

        curves = {ref: self.edge_curve(ref) for ref in from_edges + to_edges}
        bounds = {ref: curve.fast_bounding_box() for ref, curve in curves.items()}

        splits: Dict[EdgeRef, List[Tuple[float, int]]] = defaultdict(list)
        cut_nodes: List[int] = []
        unified = _NodeUnion()
        seen = set()
        num_collisions = 0

        for src in from_edges:
            for tgt in to_edges:
                # Don't collide edges against themselves
                if src == tgt:
                    continue
                pair = frozenset((src, tgt))
                if pair in seen:
                    continue
                seen.add(pair)

                if not bounds_overlap(bounds[src], bounds[tgt], accuracy):
                    continue

                src_curve, tgt_curve = curves[src], curves[tgt]
                collisions = curve_intersects_curve(
                    src_curve,
                    tgt_curve,
                    accuracy,
                    max_depth=config.max_subdivision_depth,
                    newton_iterations=config.newton_iterations
                )

                for src_t, tgt_t in collisions:
                    num_collisions += 1
                    point = src_curve.point_at_pos(src_t)
                    src_node = self._end_node_near(src, src_curve, point, accuracy)
                    tgt_node = self._end_node_near(tgt, tgt_curve, point, accuracy)

                    node = src_node if src_node is not None else tgt_node
                    if node is None:
                        node = self._cut_node_near(cut_nodes, point, accuracy, unified)
                    if node is None:
                        node = len(self.nodes)
                        self.nodes.append(GraphNode(point))
                    if src_node is not None and tgt_node is not None:
                        unified.union(src_node, tgt_node)

                    # Another intersection may already have put a node here
                    existing = self._cut_node_near(cut_nodes, point, accuracy, unified)
                    if existing is not None and unified.find(existing) != unified.find(node):
                        unified.union(existing, node)
                    cut_nodes.append(node)

                    if src_node is None:
                        splits[src].append((src_t, node))
                    if tgt_node is None:
                        splits[tgt].append((tgt_t, node))

        for ref, cuts in splits.items():
            self._subdivide_edge(ref, cuts, accuracy, unified)

        if unified:
            self._unify_nodes(unified)
        self._remove_degenerate_loops(accuracy)

        logger.debug(
            f"Collision detection: {num_collisions} intersections, "
            f"{len(splits)} edges subdivided, {self.num_nodes()} nodes, {self.num_edges()} edges"
        )

    def _end_node_near(self, ref: EdgeRef, curve: Curve, point: Coordinate, accuracy: float) -> Optional[int]:
        """The start or end node of an edge if point is within accuracy of it."""
        start_distance = _planar_distance(point, curve.start)
        end_distance = _planar_distance(point, curve.end)
        if min(start_distance, end_distance) >= accuracy:
            return None
        if start_distance <= end_distance:
            return ref.start
        return self.edge(ref).target

    def _cut_node_near(self, cut_nodes: List[int], point: Coordinate, accuracy: float, unified: _NodeUnion) -> Optional[int]:
        for node in cut_nodes:
            if _planar_distance(self.nodes[node].point, point) < accuracy:
                return unified.find(node)
        return None

    def _subdivide_edge(self, ref: EdgeRef, cuts: List[Tuple[float, int]], accuracy: float, unified: _NodeUnion):
        """Split an edge at each (t, node), processing the largest t first."""
        edge = self.edge(ref)
        original = self.edge_curve(ref)
        end_t = 1.0
        last_point = None
        last_node = None

        for t, node in sorted(cuts, key=lambda cut: cut[0], reverse=True):
            point = original.point_at_pos(t)
            if last_point is not None and _planar_distance(point, last_point) < accuracy:
                # Same place as the previous cut: one node, no zero-length edge
                unified.union(last_node, node)
                continue
            if t <= 0.0 or end_t <= 0.0:
                continue

            # Parameter on what is left of the edge after the previous split
            local_t = t / end_t
            before, after = self.edge_curve(ref).subdivide(local_t)

            old_target = edge.target
            edge.target = node
            edge.cp1, edge.cp2 = before.cp1, before.cp2
            self.nodes[node].edges.append(GraphEdge(old_target, after.cp1, after.cp2, edge.kind, edge.label))

            end_t = t
            last_point = point
            last_node = node

    def _unify_nodes(self, unified: _NodeUnion):
        """Move every edge onto the representative of its nodes."""
        for node in self.nodes:
            for edge in node.edges:
                edge.target = unified.find(edge.target)

        for index, node in enumerate(self.nodes):
            representative = unified.find(index)
            if representative != index:
                self.nodes[representative].edges.extend(node.edges)
                node.edges = []

    def _remove_degenerate_loops(self, accuracy: float):
        for index, node in enumerate(self.nodes):
            node.edges = [
                edge for edge in node.edges
                if edge.target != index or _hull_size(Curve(node.point, edge.cp1, edge.cp2, node.point)) >= accuracy
            ]

    def ray_collisions(
        self,
        ray_from: Sequence[float],
        ray_to: Sequence[float],
        accuracy: float,
        vertex_tolerance: Optional[float] = None
    ) -> List[RayCollision]:
        """
        Every crossing of the segment ray_from -> ray_to with an edge.

        Crossings at the same location are grouped, and the groups are ordered
        from ray_from. A group is marked as passing through a node if any of
        its crossings is within vertex_tolerance of an edge's end points.
        """
        if vertex_tolerance is None:
            vertex_tolerance = accuracy * 0.5
        ray_from = np.asarray(ray_from, dtype=float)[:2]
        ray_to = np.asarray(ray_to, dtype=float)[:2]
        ray_min = np.minimum(ray_from, ray_to) - accuracy
        ray_max = np.maximum(ray_from, ray_to) + accuracy
        length = float(np.linalg.norm(ray_to - ray_from))
        slack = accuracy / length if length > 0 else 0.0

        hits = []
        for ref in self.all_edges():
            curve = self.edge_curve(ref)
            control = curve.as_array()[:, :2]
            if np.any(control.min(axis=0) > ray_max) or np.any(control.max(axis=0) < ray_min):
                continue

            start = control[0]
            end = control[3]
            for curve_t, ray_t, point in curve_intersects_ray(curve, ray_from, ray_to):
                if ray_t < -slack or ray_t > 1.0 + slack:
                    continue
                near_start = np.linalg.norm(point - start) < vertex_tolerance
                near_end = np.linalg.norm(point - end) < vertex_tolerance
                hits.append((ray_t, ref, curve_t, point, near_start, near_end))

        hits.sort(key=lambda hit: hit[0])

        collisions: List[RayCollision] = []
        for ray_t, ref, curve_t, point, near_start, near_end in hits:
            if collisions and np.linalg.norm(point - collisions[-1].point) < accuracy:
                collision = collisions[-1]
            else:
                collision = RayCollision(ray_t, point)
                collisions.append(collision)
            collision.hits.append((ref, curve_t, near_end))
            if near_start or near_end:
                collision.at_node = True

        return collisions

    def exterior_paths(self, path_type=SimplePath) -> List:
        """
        Extract the closed paths made by the exterior edges.

        A walk follows unvisited exterior edges until it comes back to the
        node it started from. Outgoing edges are preferred; an incoming edge
        is followed backwards when there is no other way on, which happens
        where the source paths wind in opposite directions.
        """
        incoming = self.incoming_edges()
        visited = set()
        paths = []

        def is_available(ref: EdgeRef) -> bool:
            return ref not in visited and self.edge_kind(ref) is EdgeKind.EXTERIOR

        for first in self.all_edges():
            if not is_available(first):
                continue

            start_node = first.start
            visited.add(first)
            edge = self.edge(first)
            segments = [(edge.cp1, edge.cp2, self.nodes[edge.target].point)]
            node = edge.target

            while node != start_node:
                forward = next((ref for ref in self.edges_for_node(node) if is_available(ref)), None)
                if forward is not None:
                    visited.add(forward)
                    edge = self.edge(forward)
                    segments.append((edge.cp1, edge.cp2, self.nodes[edge.target].point))
                    node = edge.target
                    continue

                backward = next((ref for ref in incoming.get(node, ()) if is_available(ref)), None)
                if backward is not None:
                    visited.add(backward)
                    edge = self.edge(backward)
                    segments.append((edge.cp2, edge.cp1, self.nodes[backward.start].point))
                    node = backward.start
                    continue

                logger.debug(f"Exterior walk from node {start_node} stopped at node {node}")
                segments = None
                break

            if segments:
                paths.append(path_type.from_path(SimplePath(self.nodes[start_node].point, tuple(segments))))

        return paths


def _planar_distance(p1: Coordinate, p2: Coordinate) -> float:
    """Distance between two points in the x/y plane, ignoring any extra components."""
    return float(np.hypot(p1.get(0) - p2.get(0), p1.get(1) - p2.get(1)))


def _hull_size(curve: Curve) -> float:
    """Largest x/y extent of a curve's control points."""
    control = curve.as_array()[:, :2]
    return float(np.max(control.max(axis=0) - control.min(axis=0)))
