"""Vector helpers working on the Vector messages."""

from __future__ import annotations

import math
import random
from collections.abc import Iterable, Sequence
from typing import Optional

from darwin.messages import Vector2, Vector3, Vector4

_COLOR_MATCH = 0.999


def _div(numerator: float, denominator: float) -> float:
    """Divide with IEEE semantics instead of raising on zero."""
    try:
        return numerator / denominator
    except ZeroDivisionError:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator) * math.copysign(1.0, denominator)


def create_vector2(x: float, y: float) -> Vector2:
    return Vector2(x, y)


def create_vector3(x: float, y: float, z: float) -> Vector3:
    return Vector3(x, y, z)


def create_vector4(x: float, y: float, z: float, w: float) -> Vector4:
    return Vector4(x, y, z, w)


def dot(left: Vector3, right: Vector3) -> float:
    return left.x * right.x + left.y * right.y + left.z * right.z


def length(vector: Vector3) -> float:
    return math.sqrt(dot(vector, vector))


def distance(left: Vector3, right: Vector3) -> float:
    return length(left - right)


def cross(left: Vector3, right: Vector3) -> Vector3:
    return Vector3(
        left.y * right.z - left.z * right.y,
        left.z * right.x - left.x * right.z,
        left.x * right.y - left.y * right.x,
    )


def normalize(vector: Vector3) -> Vector3:
    """Return the unit vector; a zero vector gives NaN components."""
    size = length(vector)
    return Vector3(_div(vector.x, size), _div(vector.y, size), _div(vector.z, size))


def random_normalized_vector3(rng: Optional[random.Random] = None) -> Vector3:
    """Return a random unit vector."""
    rng = random.Random() if rng is None else rng
    return normalize(
        Vector3(rng.uniform(-1.0, 1.0), rng.uniform(-1.0, 1.0), rng.uniform(-1.0, 1.0))
    )


def random_normalized_color(
    colors: Sequence[Vector3], rng: Optional[random.Random] = None
) -> Vector3:
    """Pick one of the colours at random and return it normalised."""
    if not colors:
        raise ValueError("no colors to choose from")
    rng = random.Random() if rng is None else rng
    return normalize(rng.choice(list(colors)))


def is_in_color_range(color: Vector3, colors: Iterable[Vector3]) -> bool:
    """Tell whether the colour points the same way as one of the colours."""
    normalized = normalize(color)
    return any(dot(normalized, candidate) > _COLOR_MATCH for candidate in colors)


def project_on_plane(vector: Vector3, plane_normal: Vector3) -> Vector3:
    """Project onto the plane of the normal, keeping the original length."""
    projection = plane_normal * _div(dot(vector, plane_normal), dot(plane_normal, plane_normal))
    return normalize(vector - projection) * length(vector)