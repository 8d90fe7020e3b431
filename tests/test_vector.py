import math
import random

import pytest

from darwin.messages import Vector3
from darwin.vector import (
    create_vector2,
    create_vector3,
    create_vector4,
    cross,
    distance,
    dot,
    is_in_color_range,
    length,
    normalize,
    project_on_plane,
    random_normalized_color,
    random_normalized_vector3,
)

A = Vector3(1.0, -2.0, 3.0)
B = Vector3(-0.5, 4.0, 2.5)


def test_create_vectors():
    v2 = create_vector2(1.0, 2.0)
    v4 = create_vector4(1.0, 2.0, 3.0, 4.0)
    assert (v2.x, v2.y) == (1.0, 2.0)
    assert (v4.x, v4.y, v4.z, v4.w) == (1.0, 2.0, 3.0, 4.0)
    assert create_vector3(1.0, -2.0, 3.0) == A


def test_length_of_pythagorean_vector():
    assert length(create_vector3(3.0, 4.0, 0.0)) == pytest.approx(5.0)


def test_dot_matches_length_squared_and_commutes():
    assert dot(A, A) == pytest.approx(length(A) ** 2)
    assert dot(A, B) == dot(B, A)


def test_distance_symmetric_and_zero_to_self():
    assert distance(A, B) == pytest.approx(distance(B, A))
    assert distance(A, A) == 0.0
    assert distance(A, B) == pytest.approx(length(A - B))


def test_cross_is_orthogonal_and_anticommutative():
    c = cross(A, B)
    assert dot(c, A) == pytest.approx(0.0, abs=1e-9)
    assert dot(c, B) == pytest.approx(0.0, abs=1e-9)
    assert cross(B, A) == -c


def test_normalize_gives_unit_length_same_direction():
    n = normalize(A)
    assert length(n) == pytest.approx(1.0)
    assert dot(n, A) == pytest.approx(length(A))


def test_normalize_zero_vector_is_nan():
    n = normalize(Vector3())
    flags = [math.isnan(value) for value in (n.x, n.y, n.z, length(n))]
    assert flags == [True, True, True, True]


def test_random_normalized_vector3_unit_and_seeded():
    v = random_normalized_vector3(random.Random(7))
    assert length(v) == pytest.approx(1.0)
    assert random_normalized_vector3(random.Random(7)) == v


def test_random_normalized_color_picks_from_list():
    colors = [Vector3(2.0, 0.0, 0.0), Vector3(0.0, 3.0, 0.0)]
    picked = random_normalized_color(colors, random.Random(1))
    assert picked in [normalize(c) for c in colors]


def test_random_normalized_color_empty_raises():
    with pytest.raises(ValueError):
        random_normalized_color([])


def test_is_in_color_range():
    colors = [normalize(Vector3(1.0, 1.0, 0.0)), Vector3(0.0, 0.0, 1.0)]
    assert is_in_color_range(Vector3(5.0, 5.0, 0.0), colors)
    assert not is_in_color_range(Vector3(1.0, -1.0, 0.0), colors)
    assert not is_in_color_range(Vector3(1.0, 0.0, 0.0), [])


def test_project_on_plane_removes_normal_and_keeps_length():
    normal = Vector3(0.0, 0.0, 2.0)
    projected = project_on_plane(A, normal)
    assert dot(projected, normal) == pytest.approx(0.0, abs=1e-9)
    assert length(projected) == pytest.approx(length(A))