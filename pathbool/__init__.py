"""Boolean arithmetic (union, difference, intersection, xor) on closed bezier paths."""
from pathbool.arithmetic import path_add, path_combine, path_intersect, path_sub, path_xor
from pathbool.coordinate import Coord2D, Coord3D, Coordinate
from pathbool.graph_path import EdgeRef, GraphPath
from pathbool.path import SimplePath, path_direction, signed_area
from pathbool.types import (
    CLOSE_DISTANCE,
    ArithmeticConfig,
    EdgeKind,
    PathArithmeticError,
    PathDirection,
    PathLabel,
    PathSource,
)

__version__ = "0.1.0"

__all__ = [
    "path_add",
    "path_sub",
    "path_intersect",
    "path_xor",
    "path_combine",
    "Coordinate",
    "Coord2D",
    "Coord3D",
    "GraphPath",
    "EdgeRef",
    "SimplePath",
    "signed_area",
    "path_direction",
    "CLOSE_DISTANCE",
    "ArithmeticConfig",
    "EdgeKind",
    "PathArithmeticError",
    "PathDirection",
    "PathLabel",
    "PathSource",
]
