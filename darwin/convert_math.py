"""Physical constants and small geometry helpers."""

from __future__ import annotations

import math
import random
import time
from typing import Optional

from darwin.messages import Physic, Vector3
from darwin.vector import distance, dot, normalize

GRAVITATIONAL_CONSTANT = 6.67430e-11
PI = 3.14159265358979323846
ALMOST_INTERSECT = 0.99


def random_vec3(rng: Optional[random.Random] = None) -> Vector3:
    """Return a vector with components drawn uniformly from [-1, 1)."""
    rng = random.Random() if rng is None else rng
    return Vector3(rng.uniform(-1.0, 1.0), rng.uniform(-1.0, 1.0), rng.uniform(-1.0, 1.0))


def radius_from_volume(volume: float) -> float:
    """Radius of the sphere with the given volume."""
    value = (3.0 * volume) / (4.0 * PI)
    return math.copysign(abs(value) ** (1.0 / 3.0), value)


def is_intersecting(character: Physic, element: Physic) -> bool:
    """Exact check: the two spheres overlap."""
    return distance(character.position, element.position) < character.radius + element.radius


def is_almost_intersecting(character: Physic, element: Physic) -> bool:
    """Approximate check: both lie in nearly the same direction from the origin."""
    return dot(normalize(character.position), normalize(element.position)) > ALMOST_INTERSECT


def time_seconds_now() -> float:
    """Current wall-clock time in seconds since the epoch."""
    return time.time()