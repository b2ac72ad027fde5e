"""
Boolean arithmetic on sets of bezier paths.

Each side of an operation is a list of closed paths which together describe
one shape; a path inside another is a hole (even-odd rule). The result is a
new list of closed paths.

Every operation works the same way: the two sides are turned into labelled
graphs and collided, each edge is classified by casting rays through the
graph, and the exterior edges are walked to produce the result. Only the
rule deciding whether a point is inside the result differs.
"""
import logging
from typing import Iterable, List, Optional

from pathbool.classify import ADD_RULE, INTERSECT_RULE, SUB_RULE, XOR_RULE, classify_edges
from pathbool.graph_path import GraphPath
from pathbool.path import SimplePath, path_direction
from pathbool.types import (
    ArithmeticConfig,
    BezierPathLike,
    CombineRule,
    PathLabel,
    PathSource,
    check_accuracy,
)

logger = logging.getLogger(__name__)


def _labelled(paths: Iterable[BezierPathLike], source: PathSource):
    for path in paths:
        yield path, PathLabel(source, path_direction(path))


def _convert(paths: Iterable[BezierPathLike], path_type) -> List:
    return [path_type.from_path(path) for path in paths]


def path_combine(
    rule: CombineRule,
    path1: Iterable[BezierPathLike],
    path2: Iterable[BezierPathLike],
    accuracy: float,
    path_type=SimplePath,
    config: Optional[ArithmeticConfig] = None
) -> List:
    """
    Combine two sets of paths with an arbitrary inside/outside rule.

    Args:
        rule: (inside path1, inside path2) -> inside the result
        path1: Paths making up the first shape
        path2: Paths making up the second shape
        accuracy: Tolerance for intersections and for merging nearby points
        path_type: Output path class, built with path_type.from_path()
        config: Tuning parameters

    Returns:
        List of closed paths of path_type
    """
    accuracy = check_accuracy(accuracy)
    config = config or ArithmeticConfig()

    graph1 = GraphPath.from_merged_paths(_labelled(path1, PathSource.PATH1), config.close_distance)
    graph2 = GraphPath.from_merged_paths(_labelled(path2, PathSource.PATH2), config.close_distance)
    logger.debug(f"Combining graphs of {graph1.num_edges()} and {graph2.num_edges()} edges")

    merged = graph1.collide(graph2, accuracy, config)
    classify_edges(merged, rule, accuracy, config)

    result = merged.exterior_paths(path_type)
    logger.debug(f"Combined paths into {len(result)} paths")
    return result


def path_add(path1, path2, accuracy: float, path_type=SimplePath, config: Optional[ArithmeticConfig] = None) -> List:
    """
    Union of two sets of paths.

    If either side is empty the other is returned unchanged (converted to
    path_type).
    """
    accuracy = check_accuracy(accuracy)
    path1, path2 = list(path1), list(path2)

    if not path1:
        return _convert(path2, path_type)
    if not path2:
        return _convert(path1, path_type)

    return path_combine(ADD_RULE, path1, path2, accuracy, path_type, config)


def path_sub(path1, path2, accuracy: float, path_type=SimplePath, config: Optional[ArithmeticConfig] = None) -> List:
    """Area of path1 that is not covered by path2."""
    accuracy = check_accuracy(accuracy)
    path1, path2 = list(path1), list(path2)

    if not path1:
        return []
    if not path2:
        return _convert(path1, path_type)

    return path_combine(SUB_RULE, path1, path2, accuracy, path_type, config)


def path_intersect(path1, path2, accuracy: float, path_type=SimplePath, config: Optional[ArithmeticConfig] = None) -> List:
    """Area covered by both path1 and path2."""
    accuracy = check_accuracy(accuracy)
    path1, path2 = list(path1), list(path2)

    if not path1 or not path2:
        return []

    return path_combine(INTERSECT_RULE, path1, path2, accuracy, path_type, config)


def path_xor(path1, path2, accuracy: float, path_type=SimplePath, config: Optional[ArithmeticConfig] = None) -> List:
    """Area covered by exactly one of path1 and path2."""
    accuracy = check_accuracy(accuracy)
    path1, path2 = list(path1), list(path2)

    if not path1:
        return _convert(path2, path_type)
    if not path2:
        return _convert(path1, path_type)

    return path_combine(XOR_RULE, path1, path2, accuracy, path_type, config)
