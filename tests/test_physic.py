import pytest

from darwin.messages import (
    Physic,
    StatusEnum,
    TypeEnum,
    Vector3,
    create_basic_element,
)
from darwin.physic import (
    apply_physic,
    cancel_vertical_component,
    correct_surface,
    update_object,
)
from darwin.vector import dot, length, normalize


def _body(x, y, z, mass, radius=1.0):
    return Physic(position=Vector3(x, y, z), mass=mass, radius=radius)


def test_apply_physic_points_toward_source():
    source = _body(10.0, 0.0, 0.0, 1e9)
    target = _body(0.0, 0.0, 0.0, 1.0)
    force = apply_physic(source, target)
    assert dot(normalize(force), normalize(source.position - target.position)) == pytest.approx(1.0)


def test_apply_physic_newton_third_law():
    a = _body(1.0, 2.0, 3.0, 5e6)
    b = _body(-4.0, 0.5, 2.0, 3e5)
    f_ab = apply_physic(a, b)
    f_ba = apply_physic(b, a)
    for x, y in zip((f_ab.x, f_ab.y, f_ab.z), (f_ba.x, f_ba.y, f_ba.z)):
        assert x == pytest.approx(-y)


def test_apply_physic_scales_with_mass_and_distance():
    target = _body(0.0, 0.0, 0.0, 1.0)
    base = length(apply_physic(_body(5.0, 0.0, 0.0, 1e8), target))
    heavier = length(apply_physic(_body(5.0, 0.0, 0.0, 2e8), target))
    farther = length(apply_physic(_body(10.0, 0.0, 0.0, 1e8), target))
    assert heavier == pytest.approx(2.0 * base)
    assert farther == pytest.approx(base / 4.0)


def test_update_object_without_force_moves_linearly():
    physic = Physic(position=Vector3(), position_dt=Vector3(1.0, 0.0, 0.0), mass=1.0)
    result = update_object(physic, Vector3(), 2.0)
    assert result == 0.0
    assert physic.position == Vector3(2.0, 0.0, 0.0)
    assert physic.position_dt == Vector3(1.0, 0.0, 0.0)


def test_update_object_with_force_accelerates():
    physic = Physic(position=Vector3(), mass=2.0)
    force = Vector3(0.0, 6.0, 0.0)
    result = update_object(physic, force, 1.0)
    assert result == pytest.approx(length(force) / physic.mass)
    assert physic.position_dt.y > 0.0
    assert physic.position.y == pytest.approx(physic.position_dt.y * 0.5)


def test_cancel_vertical_component():
    up = Vector3(0.0, 0.0, 3.0)
    velocity = Vector3(1.0, 2.0, 5.0)
    result = cancel_vertical_component(velocity, up)
    assert dot(result, up) == pytest.approx(0.0)
    horizontal = Vector3(1.0, 2.0, 0.0)
    assert cancel_vertical_component(horizontal, up) == horizontal


def test_correct_surface_non_ground_is_unknown():
    physic = _body(0.0, 0.0, 5.0, 1.0)
    element = create_basic_element("e", TypeEnum.TYPE_UPGRADE, Vector3(), 1.0, 10.0)
    assert correct_surface(physic, element) is StatusEnum.STATUS_UNKNOWN
    assert physic.position == Vector3(0.0, 0.0, 5.0)


def test_correct_surface_far_is_jumping():
    physic = _body(0.0, 0.0, 50.0, 1.0)
    ground = create_basic_element("g", TypeEnum.TYPE_GROUND, Vector3(), 1e9, 10.0)
    assert correct_surface(physic, ground) is StatusEnum.STATUS_JUMPING
    assert physic.position == Vector3(0.0, 0.0, 50.0)


def test_correct_surface_pushes_onto_ground():
    physic = _body(0.0, 0.0, 5.0, 1.0, radius=1.0)
    physic.position_dt = Vector3(1.0, 0.0, 3.0)
    ground = create_basic_element("g", TypeEnum.TYPE_GROUND, Vector3(), 1e9, 10.0)
    assert correct_surface(physic, ground) is StatusEnum.STATUS_ON_GROUND
    assert length(physic.position) == pytest.approx(10.0 + 1.0)
    assert physic.position_dt.z == pytest.approx(0.0)
    assert physic.position_dt.x == pytest.approx(1.0)