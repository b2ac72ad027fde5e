"""Core types for bezier path arithmetic."""
import math
import numbers
import warnings
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Callable, Iterable, NamedTuple, Protocol, Tuple, TypeVar

# Minimum distance between the start and end of a path for it to be
# considered closed without adding a closing segment
CLOSE_DISTANCE = 0.01

# Combination rule: (inside path 1, inside path 2) -> inside the result
CombineRule = Callable[[bool, bool], bool]


class EdgeKind(Enum):
    """Classification of a graph path edge."""
    UNCATEGORISED = auto()
    INTERIOR = auto()   # Inside the combined shape
    EXTERIOR = auto()   # Transition between inside and outside


class PathSource(Enum):
    """Which side of a boolean operation an edge came from."""
    PATH1 = auto()
    PATH2 = auto()


class PathDirection(Enum):
    """Winding direction of a closed path."""
    CLOCKWISE = auto()
    ANTICLOCKWISE = auto()


class PathLabel(NamedTuple):
    """Source and winding of the path an edge was built from."""
    source: PathSource
    direction: PathDirection


P = TypeVar("P")


class BezierPathLike(Protocol):
    """A closed path made of cubic bezier segments."""

    def start_point(self) -> Any:
        ...

    def points(self) -> Iterable[Tuple[Any, Any, Any]]:
        """(control point 1, control point 2, end point) for each segment."""
        ...


class BezierPathFactory(Protocol[P]):
    """A path type that can be built from any BezierPathLike."""

    @classmethod
    def from_path(cls, path: BezierPathLike) -> P:
        ...


@dataclass
class ArithmeticConfig:
    """Tuning parameters for the boolean path operations."""

    # Distance below which a path's end point is treated as its start point
    close_distance: float = CLOSE_DISTANCE

    # Curve intersection
    max_subdivision_depth: int = 48
    newton_iterations: int = 8

    # Ray casting: how many outside points to try before accepting a ray that
    # passes through a node
    max_ray_attempts: int = 8

    # Fraction of the accuracy within which a ray crossing counts as hitting
    # a node rather than an edge
    vertex_tolerance_factor: float = 0.5

    def __post_init__(self):
        if self.max_ray_attempts < 1:
            warnings.warn(
                f"max_ray_attempts must be at least 1, got {self.max_ray_attempts}. "
                "Using a single ray per edge."
            )
            self.max_ray_attempts = 1
        if self.max_subdivision_depth < 16:
            warnings.warn(
                f"max_subdivision_depth of {self.max_subdivision_depth} may stop "
                "the intersection search before it reaches the requested accuracy."
            )


class PathArithmeticError(Exception):
    """Raised when a path operation is called with invalid arguments."""
    pass


def check_accuracy(accuracy: float) -> float:
    """Validate the accuracy argument of a path operation."""
    is_number = isinstance(accuracy, numbers.Real) and not isinstance(accuracy, bool)
    if not is_number or not math.isfinite(accuracy) or accuracy <= 0:
        raise PathArithmeticError(f"accuracy must be a positive finite number, got {accuracy!r}")
    return float(accuracy)
