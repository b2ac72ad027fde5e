"""Tests for the boolean path operations."""
import math

import numpy as np
import pytest

from pathbool import (
    ArithmeticConfig,
    Coord3D,
    PathArithmeticError,
    PathDirection,
    SimplePath,
    path_add,
    path_direction,
    path_intersect,
    path_sub,
    path_xor,
    signed_area,
)
from pathbool.path import paths_area
from pathbool.types import check_accuracy

ACCURACY = 0.01


def pressure_square(x0, y0, x1, y1, z):
    return SimplePath.from_points([
        Coord3D(x0, y0, z), Coord3D(x1, y0, z), Coord3D(x1, y1, z), Coord3D(x0, y1, z)
    ])


def assert_closed(paths):
    for path in paths:
        segments = list(path.points())
        assert segments
        assert segments[-1][2].distance_to(path.start_point()) < ACCURACY


class TestPathDirection:
    """Test winding detection."""

    def test_anticlockwise(self, square_a, circle):
        assert path_direction(square_a) is PathDirection.ANTICLOCKWISE
        assert path_direction(circle(0, 0, 5)) is PathDirection.ANTICLOCKWISE

    def test_clockwise(self, square_a):
        assert path_direction(square_a.reversed()) is PathDirection.CLOCKWISE


class TestPathAdd:
    """Test union of paths."""

    def test_overlapping_squares(self, square_a, square_b, contains):
        result = path_add([square_a], [square_b], ACCURACY)

        assert len(result) == 1
        assert_closed(result)
        assert paths_area(result) == pytest.approx(175.0)
        assert contains(result, 2, 2)
        assert contains(result, 7, 7)
        assert contains(result, 12, 12)
        assert not contains(result, 12, 2)

    def test_disjoint_squares(self, square_a, square):
        result = path_add([square_a], [square(20, 20, 30, 30)], ACCURACY)

        assert len(result) == 2
        assert paths_area(result) == pytest.approx(200.0)

    def test_self_union(self, square_a):
        """A path combined with itself gives back a single copy."""
        result = path_add([square_a], [square_a], ACCURACY)

        assert len(result) == 1
        assert paths_area(result) == pytest.approx(100.0)

    def test_empty_sides(self, square_a):
        assert path_add([], [square_a], ACCURACY) == [square_a]
        assert path_add([square_a], [], ACCURACY) == [square_a]
        assert path_add([], [], ACCURACY) == []

    def test_opposite_winding(self, square_a, square_b):
        """A clockwise second path gives the same union."""
        reversed_b = square_b.reversed()
        assert signed_area(reversed_b) < 0

        result = path_add([square_a], [reversed_b], ACCURACY)

        assert len(result) == 1
        assert_closed(result)
        assert paths_area(result) == pytest.approx(175.0)

    def test_union_with_hole(self, square, contains):
        """A shape placed inside another's hole keeps the hole around it."""
        outer = [square(0, 0, 30, 30), square(10, 10, 20, 20)]
        inner = [square(12, 12, 18, 18)]

        result = path_add(outer, inner, ACCURACY)

        assert len(result) == 3
        assert contains(result, 5, 5)
        assert contains(result, 15, 15)
        assert not contains(result, 11, 11)
        assert not contains(result, 40, 40)

    def test_circle_and_square(self, square_a, circle):
        """Three quarters of the circle lie outside the square."""
        disc = circle(0, 0, 5)

        result = path_add([square_a], [disc], ACCURACY)

        assert len(result) == 1
        assert_closed(result)
        expected = 100.0 + 0.75 * abs(signed_area(disc))
        assert paths_area(result) == pytest.approx(expected, rel=1e-4)

    def test_custom_path_type(self, square_a, square_b):
        class Outline:
            def __init__(self, start, ends):
                self.start = start
                self.ends = ends

            @classmethod
            def from_path(cls, path):
                return cls(path.start_point(), [end for _, _, end in path.points()])

        result = path_add([square_a], [square_b], ACCURACY, path_type=Outline)

        assert len(result) == 1
        assert isinstance(result[0], Outline)
        assert len(result[0].ends) == 8

    def test_three_component_coordinates(self):
        """Extra components are carried through to the new points."""
        first = SimplePath.from_points([
            Coord3D(0, 0, 1.0), Coord3D(10, 0, 1.0), Coord3D(10, 10, 1.0), Coord3D(0, 10, 1.0)
        ])
        second = SimplePath.from_points([
            Coord3D(5, 5, 1.0), Coord3D(15, 5, 1.0), Coord3D(15, 15, 1.0), Coord3D(5, 15, 1.0)
        ])

        result = path_add([first], [second], ACCURACY)

        assert len(result) == 1
        assert paths_area(result) == pytest.approx(175.0)
        for _, _, end in result[0].points():
            assert isinstance(end, Coord3D)
            assert end.z == pytest.approx(1.0)

    @pytest.mark.parametrize("second_corners", [(10, 0, 20, 10), (10, 5, 20, 15)])
    def test_touching_squares_with_different_pressure(self, second_corners, contains):
        """Pressure differences do not stop shared edges from joining."""
        first = pressure_square(0, 0, 10, 10, 1.0)
        second = pressure_square(*second_corners, 0.0)

        result = path_add([first], [second], ACCURACY)

        assert len(result) == 1
        assert_closed(result)
        assert paths_area(result) == pytest.approx(200.0)
        assert contains(result, 5, 5)
        assert contains(result, 15, 7)


class TestPathSub:
    """Test subtracting paths."""

    def test_overlapping_squares(self, square_a, square_b, contains):
        result = path_sub([square_a], [square_b], ACCURACY)

        assert len(result) == 1
        assert_closed(result)
        assert paths_area(result) == pytest.approx(75.0)
        assert contains(result, 2, 2)
        assert not contains(result, 7, 7)
        assert not contains(result, 12, 12)

    def test_empty_sides(self, square_a):
        assert path_sub([], [square_a], ACCURACY) == []
        assert path_sub([square_a], [], ACCURACY) == [square_a]

    def test_subtract_everything(self, square_a, square):
        assert path_sub([square_a], [square(-5, -5, 15, 15)], ACCURACY) == []

    def test_punch_hole(self, square, contains):
        result = path_sub([square(0, 0, 30, 30)], [square(10, 10, 20, 20)], ACCURACY)

        assert len(result) == 2
        assert contains(result, 5, 5)
        assert not contains(result, 15, 15)


class TestPathIntersect:
    """Test intersecting paths."""

    def test_overlapping_squares(self, square_a, square_b, contains):
        result = path_intersect([square_a], [square_b], ACCURACY)

        assert len(result) == 1
        assert_closed(result)
        assert paths_area(result) == pytest.approx(25.0)
        assert contains(result, 7, 7)
        assert not contains(result, 2, 2)

    def test_disjoint_squares(self, square_a, square):
        assert path_intersect([square_a], [square(20, 20, 30, 30)], ACCURACY) == []

    def test_empty_sides(self, square_a):
        assert path_intersect([], [square_a], ACCURACY) == []
        assert path_intersect([square_a], [], ACCURACY) == []


class TestPathXor:
    """Test exclusive or of paths."""

    def test_overlapping_squares(self, square_a, square_b, contains):
        """The overlap is left out under the even-odd rule."""
        result = path_xor([square_a], [square_b], ACCURACY)

        assert_closed(result)
        assert contains(result, 2, 2)
        assert not contains(result, 7, 7)
        assert contains(result, 12, 12)
        assert not contains(result, 20, 20)

    def test_empty_sides(self, square_a):
        assert path_xor([], [square_a], ACCURACY) == [square_a]
        assert path_xor([square_a], [], ACCURACY) == [square_a]


class TestArguments:
    """Test argument validation."""

    @pytest.mark.parametrize("accuracy", [0, -1.0, math.nan, math.inf, True, "0.01", None])
    def test_invalid_accuracy(self, square_a, square_b, accuracy):
        for operation in (path_add, path_sub, path_intersect, path_xor):
            with pytest.raises(PathArithmeticError):
                operation([square_a], [square_b], accuracy)

    def test_numpy_accuracy(self, square_a, square_b):
        """Numpy scalars are accepted like Python numbers."""
        assert check_accuracy(np.int64(1)) == 1.0
        assert isinstance(check_accuracy(np.float32(0.5)), float)

        result = path_add([square_a], [square_b], np.float64(ACCURACY))

        assert paths_area(result) == pytest.approx(175.0)

    def test_invalid_accuracy_with_empty_input(self):
        with pytest.raises(PathArithmeticError):
            path_add([], [], 0.0)

    def test_config_warns_on_zero_ray_attempts(self):
        with pytest.warns(UserWarning):
            config = ArithmeticConfig(max_ray_attempts=0)

        assert config.max_ray_attempts == 1

    def test_custom_config(self, square_a, square_b):
        config = ArithmeticConfig(max_ray_attempts=2, newton_iterations=4)

        result = path_add([square_a], [square_b], ACCURACY, config=config)

        assert paths_area(result) == pytest.approx(175.0)
