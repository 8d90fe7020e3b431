import pytest

from darwin.messages import (
    Character,
    Physic,
    PlayerParameter,
    StatusEnum,
    TypeEnum,
    Vector3,
    create_basic_character,
    create_basic_element,
)
from darwin.world_simulator import SoundEffect, Uniforms, WorldSimulator


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now


def planet(radius=10.0, mass=1e9):
    return create_basic_element("planet", TypeEnum.TYPE_GROUND, Vector3(0, 0, 0), mass, radius)


def make_sim(elements=(), characters=(), clock=None, user="me"):
    sim = WorldSimulator(clock=clock or FakeClock())
    sim.user_name = user
    sim.update_data(list(elements), list(characters), 5.0)
    return sim


def test_update_data_stores_copies():
    element = planet()
    character = create_basic_character("bob", Vector3(0, 20, 0), 1.0, 1.0)
    sim = make_sim([element], [character])
    assert sim.elements() == [element]
    assert sim.characters() == [character]
    returned = sim.characters()
    returned[0].name = "changed"
    assert sim.characters()[0].name == "bob"
    character.name = "other"
    assert sim.has_character("bob")


def test_last_server_update_time_is_wall_clock():
    import time

    before = time.time()
    sim = make_sim()
    after = time.time()
    assert before <= sim.last_server_update_time <= after


def test_player_parameter_roundtrip():
    sim = WorldSimulator()
    parameter = PlayerParameter(start_mass=3.0, victory_size=40.0)
    sim.player_parameter = parameter
    assert sim.player_parameter == parameter


def test_uniforms_elements_then_characters():
    element = planet()
    element.color = Vector3(1, 0, 0)
    character = create_basic_character("bob", Vector3(0, 20, 0), 1.0, 2.0)
    character.color = Vector3(0, 1, 0)
    sim = make_sim([element], [character])
    result = sim.uniforms()
    assert result == Uniforms(
        spheres=[(0, 0, 0, 10.0), (0, 20, 0, 2.0)],
        colors=[(1, 0, 0, 1.0), (0, 1, 0, 2.0)],
    )


def test_close_uniforms_filters_and_extrapolates():
    big = planet(radius=100.0)
    near = create_basic_element("near", TypeEnum.TYPE_UPGRADE, Vector3(0, 101, 0), 1.0, 1.0)
    far = create_basic_element("far", TypeEnum.TYPE_UPGRADE, Vector3(0, -101, 0), 1.0, 1.0)
    me = create_basic_character("me", Vector3(0, 102, 0), 1.0, 1.0)
    me.physic.position_dt = Vector3(1, 0, 0)
    other = create_basic_character("other", Vector3(0, 103, 0), 1.0, 1.0)
    other.physic.position_dt = Vector3(2, 0, 0)
    dead = create_basic_character("dead", Vector3(0, 104, 0), 1.0, 1.0)
    dead.status_enum = StatusEnum.STATUS_DEAD
    sim = make_sim([big, near, far], [me, other, dead])
    result = sim.close_uniforms(Vector3(0, 1, 0), 0.5)
    assert result.spheres == [
        (0, 0, 0, 100.0),
        (0, 101, 0, 1.0),
        (0, 102, 0, 1.0),
        (1.0, 103, 0, 1.0),
    ]
    assert len(result.colors) == len(result.spheres)


def test_character_by_name_and_missing():
    character = create_basic_character("bob", Vector3(1, 2, 3), 1.0, 1.0)
    sim = make_sim([], [character])
    assert sim.character_by_name("bob") == character
    assert sim.character_by_name("nobody") == Character()


def test_set_character_replaces_only_known():
    character = create_basic_character("bob", Vector3(1, 2, 3), 1.0, 1.0)
    sim = make_sim([], [character])
    updated = create_basic_character("bob", Vector3(4, 5, 6), 2.0, 1.0)
    sim.set_character(updated)
    sim.set_character(create_basic_character("ghost", Vector3(), 1.0, 1.0))
    assert sim.characters() == [updated]


def test_remove_character_and_clear():
    a = create_basic_character("a", Vector3(1, 0, 0), 1.0, 1.0)
    b = create_basic_character("b", Vector3(0, 1, 0), 1.0, 1.0)
    sim = make_sim([planet()], [a, b])
    sim.remove_character("a")
    assert not sim.has_character("a")
    assert sim.has_character("b")
    sim.clear()
    assert sim.elements() == []
    assert sim.characters() == []


def test_potential_hit():
    upgrade = create_basic_element("up", TypeEnum.TYPE_UPGRADE, Vector3(0, 20, 0), 1.0, 1.0)
    me = create_basic_character("me", Vector3(0, 21, 0), 5.0, 1.0)
    assert make_sim([upgrade], [me]).potential_hit(me) == "up"

    heavy = create_basic_character("heavy", Vector3(0, 21.5, 0), 10.0, 1.0)
    assert make_sim([], [me, heavy]).potential_hit(me) == ""

    light = create_basic_character("light", Vector3(0, 21.5, 0), 2.0, 1.0)
    assert make_sim([], [me, light]).potential_hit(me) == "light"

    far = create_basic_character("far", Vector3(0, -21, 0), 2.0, 1.0)
    assert make_sim([], [me, far]).potential_hit(me) == ""


def test_planet():
    ground = planet()
    upgrade = create_basic_element("up", TypeEnum.TYPE_UPGRADE, Vector3(0, 20, 0), 1.0, 1.0)
    assert make_sim([upgrade, ground]).planet() == ground.physic
    assert make_sim([upgrade]).planet() == Physic()


def test_sound_effect_sequence():
    character = create_basic_character("me", Vector3(0, 20, 0), 5.0, 1.0)
    sim = make_sim([], [character])
    assert sim.sound_effect("me") is SoundEffect.NONE
    assert sim.sound_effect("me") is SoundEffect.NONE

    character.physic.mass = 6.0
    sim.set_character(character)
    assert sim.sound_effect("me") is SoundEffect.GOOD

    character.physic.mass = 5.95
    sim.set_character(character)
    assert sim.sound_effect("me") is SoundEffect.NONE

    character.physic.mass = 4.0
    sim.set_character(character)
    assert sim.sound_effect("me") is SoundEffect.BAD


def test_update_time_before_data_does_nothing():
    sim = WorldSimulator(clock=FakeClock())
    sim.update_time()
    assert sim.time == 0.0


def test_update_time_first_step_skips_physics():
    character = create_basic_character("me", Vector3(0, 20, 0), 1.0, 1.0)
    clock = FakeClock(100.0)
    sim = make_sim([planet()], [character], clock=clock)
    sim.update_time()
    assert sim.time == pytest.approx(105.0)
    assert sim.characters() == [character]


def test_update_time_pulls_own_character_down():
    me = create_basic_character("me", Vector3(0, 20, 0), 1.0, 1.0)
    other = create_basic_character("other", Vector3(20, 0, 0), 1.0, 1.0)
    clock = FakeClock(100.0)
    sim = make_sim([planet()], [me, other], clock=clock)
    sim.update_time()
    clock.now += 0.1
    sim.update_time()
    moved = sim.character_by_name("me")
    assert moved.physic.position.y < 20.0
    assert moved.physic.position.x == pytest.approx(0.0)
    assert moved.g_force.y < 0.0
    assert moved.normal.y == pytest.approx(1.0)
    assert moved.status_enum == StatusEnum.STATUS_JUMPING
    assert sim.character_by_name("other") == other


def test_update_time_puts_character_on_ground():
    me = create_basic_character("me", Vector3(0, 5, 0), 1.0, 1.0)
    me.physic.position_dt = Vector3(0, -3, 0)
    clock = FakeClock(100.0)
    sim = make_sim([planet()], [me], clock=clock)
    sim.update_time()
    clock.now += 0.1
    sim.update_time()
    landed = sim.character_by_name("me")
    assert landed.status_enum == StatusEnum.STATUS_ON_GROUND
    assert landed.physic.position.y == pytest.approx(11.0)
    assert landed.physic.position_dt.y == pytest.approx(0.0, abs=1e-9)