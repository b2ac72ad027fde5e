"""Fixed-length coordinate types."""
import math
from dataclasses import dataclass
from typing import ClassVar, Iterable, Tuple, Type, TypeVar

C = TypeVar("C", bound="Coordinate")


class Coordinate:
    """
    Base for immutable points with a fixed number of components.

    Subclasses are frozen dataclasses whose fields are the components, in
    order. Everything here is expressed through ``components()`` and
    ``from_components()`` so the same code works for any component count.
    """

    LEN: ClassVar[int] = 0

    @classmethod
    def len(cls) -> int:
        return cls.LEN

    @classmethod
    def origin(cls: Type[C]) -> C:
        return cls.from_components([0.0] * cls.LEN)

    @classmethod
    def from_components(cls: Type[C], components: Iterable[float]) -> C:
        values = [float(c) for c in components]
        if len(values) != cls.LEN:
            raise ValueError(f"{cls.__name__} needs {cls.LEN} components, got {len(values)}")
        return cls(*values)

    @classmethod
    def from_biggest_components(cls: Type[C], p1: C, p2: C) -> C:
        return cls.from_components(max(a, b) for a, b in zip(p1.components(), p2.components()))

    @classmethod
    def from_smallest_components(cls: Type[C], p1: C, p2: C) -> C:
        return cls.from_components(min(a, b) for a, b in zip(p1.components(), p2.components()))

    def components(self) -> Tuple[float, ...]:
        """The components in order. Subclasses must override this."""
        raise NotImplementedError(f"{type(self).__name__} does not define its components")

    def get(self, index: int) -> float:
        return self.components()[index]

    def distance_to(self, target: "Coordinate") -> float:
        return math.sqrt(sum((a - b) ** 2 for a, b in zip(self.components(), target.components())))

    def dot(self, target: "Coordinate") -> float:
        return sum(a * b for a, b in zip(self.components(), target.components()))

    def __add__(self: C, other: C) -> C:
        return self.from_components(a + b for a, b in zip(self.components(), other.components()))

    def __sub__(self: C, other: C) -> C:
        return self.from_components(a - b for a, b in zip(self.components(), other.components()))

    def __mul__(self: C, scale: float) -> C:
        return self.from_components(a * scale for a in self.components())

    __rmul__ = __mul__


@dataclass(frozen=True)
class Coord2D(Coordinate):
    """2D point."""
    x: float
    y: float

    LEN: ClassVar[int] = 2

    def components(self) -> Tuple[float, ...]:
        return (self.x, self.y)


@dataclass(frozen=True)
class Coord3D(Coordinate):
    """2D point with an extra value carried along curves (e.g. pen pressure)."""
    x: float
    y: float
    z: float

    LEN: ClassVar[int] = 3

    def components(self) -> Tuple[float, ...]:
        return (self.x, self.y, self.z)
