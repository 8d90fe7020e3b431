"""Gravity, motion integration and ground collision."""

from __future__ import annotations

import math

from darwin.convert_math import GRAVITATIONAL_CONSTANT
from darwin.messages import Element, Physic, StatusEnum, TypeEnum, Vector3
from darwin.vector import distance, dot, length, normalize


def _div(numerator: float, denominator: float) -> float:
    try:
        return numerator / denominator
    except ZeroDivisionError:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator) * math.copysign(1.0, denominator)


def apply_physic(source: Physic, target: Physic) -> Vector3:
    """Gravitational force the source exerts on the target, pointing at the source."""
    delta = source.position - target.position
    gap = length(delta)
    magnitude = _div(GRAVITATIONAL_CONSTANT * (source.mass * target.mass), gap * gap)
    return normalize(delta) * magnitude


def update_object(physic: Physic, force: Vector3, delta_time: float) -> float:
    """Advance speed and position under the force; return the acceleration magnitude."""
    acceleration = Vector3(
        _div(force.x, physic.mass), _div(force.y, physic.mass), _div(force.z, physic.mass)
    )
    velocity = physic.position_dt
    physic.position_dt = velocity + acceleration * delta_time
    physic.position = (
        physic.position
        + velocity * delta_time
        + acceleration * (delta_time * delta_time * 0.5)
    )
    return length(acceleration)


def cancel_vertical_component(velocity: Vector3, up: Vector3) -> Vector3:
    """Remove the part of the velocity that lies along the up vector."""
    projection = up * _div(dot(velocity, up), dot(up, up))
    return velocity - projection


def correct_surface(physic: Physic, element: Element) -> StatusEnum:
    """Push the body back onto a ground element it sinks into."""
    if element.type_enum != TypeEnum.TYPE_GROUND:
        return StatusEnum.STATUS_UNKNOWN
    reach = physic.radius + element.physic.radius
    if distance(physic.position, element.physic.position) < reach:
        normal = normalize(physic.position - element.physic.position)
        physic.position = normal * reach
        physic.position_dt = cancel_vertical_component(physic.position_dt, normal)
        return StatusEnum.STATUS_ON_GROUND
    return StatusEnum.STATUS_JUMPING