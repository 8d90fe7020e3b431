"""Client-side copy of the world: local physics and data for rendering."""

from __future__ import annotations

import enum
import threading
import time as _time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from darwin.convert_math import is_intersecting, time_seconds_now
from darwin.messages import (
    Character,
    Element,
    Physic,
    PlayerParameter,
    StatusEnum,
    TypeEnum,
    Vector3,
)
from darwin.physic import apply_physic, correct_surface, update_object
from darwin.vector import dot, normalize

Vec4 = tuple[float, float, float, float]

_CLOSE_DOT = 0.8
_PLANET_RADIUS = 50.0
_MIN_STEP = 0.0001
_MAX_STEP = 1.0
_ELEMENT_ALPHA = 1.0
_CHARACTER_ALPHA = 2.0
_MASS_LOSS_MARGIN = 0.1


@dataclass
class Uniforms:
    """Spheres (x, y, z, radius) and colours (r, g, b, kind) to draw."""

    spheres: list[Vec4] = field(default_factory=list)
    colors: list[Vec4] = field(default_factory=list)


class SoundEffect(enum.Enum):
    NONE = 0
    BAD = 1
    GOOD = 2


def _sphere(physic: Physic) -> Vec4:
    position = physic.position
    return (position.x, position.y, position.z, physic.radius)


def _moved_sphere(physic: Physic, delta_time: float) -> Vec4:
    position, speed = physic.position, physic.position_dt
    return (
        position.x + speed.x * delta_time,
        position.y + speed.y * delta_time,
        position.z + speed.z * delta_time,
        physic.radius,
    )


def _color(color: Vector3, alpha: float) -> Vec4:
    return (color.x, color.y, color.z, alpha)


def _is_close(normal: Vector3, position: Vector3) -> bool:
    return dot(normal, position) > _CLOSE_DOT


class WorldSimulator:
    """Thread-safe local simulation of the world sent by the server."""

    def __init__(self, clock: Callable[[], float] = _time.monotonic) -> None:
        self.user_name = ""
        self._clock = clock
        self._lock = threading.Lock()
        self._started = False
        self._elements: list[Element] = []
        self._characters: list[Character] = []
        self._player_character = Character()
        self._time = 0.0
        self._last_server_update_time = 0.0
        self._last_time = 0.0
        self._player_parameter = PlayerParameter()

    @property
    def time(self) -> float:
        with self._lock:
            return self._time

    @property
    def last_server_update_time(self) -> float:
        with self._lock:
            return self._last_server_update_time

    @property
    def player_parameter(self) -> PlayerParameter:
        with self._lock:
            return self._player_parameter.copy()

    @player_parameter.setter
    def player_parameter(self, parameter: PlayerParameter) -> None:
        with self._lock:
            self._player_parameter = parameter.copy()

    def update_data(
        self, elements: Iterable[Element], characters: Iterable[Character], time: float
    ) -> None:
        """Replace the world with the state received from the server."""
        with self._lock:
            self._elements = [element.copy() for element in elements]
            self._characters = [character.copy() for character in characters]
            self._time = time
            self._started = True
            self._last_server_update_time = time_seconds_now()

    def update_time(self) -> None:
        """Advance the clock and apply gravity to the user's character."""
        with self._lock:
            if not self._started:
                return
            now = self._clock()
            elapsed = now - self._last_time
            self._time += elapsed
            self._last_time = now
            grounds = [e for e in self._elements if e.type_enum == TypeEnum.TYPE_GROUND]
            self._apply_gravity_locked(grounds, elapsed)

    def _apply_gravity_locked(self, grounds: list[Element], delta_time: float) -> None:
        if delta_time < _MIN_STEP or delta_time > _MAX_STEP:
            return
        for character in self._characters:
            if character.name != self.user_name:
                continue
            force = Vector3()
            for element in grounds:
                force = force + apply_physic(element.physic, character.physic)
            character.g_force = force.copy()
            character.normal = normalize(-force)
            update_object(character.physic, force, delta_time)
            for element in grounds:
                character.status_enum = correct_surface(character.physic, element)

    def uniforms(self) -> Uniforms:
        """Every element and character as spheres and colours."""
        with self._lock:
            result = Uniforms()
            for element in self._elements:
                result.spheres.append(_sphere(element.physic))
                result.colors.append(_color(element.color, _ELEMENT_ALPHA))
            for character in self._characters:
                result.spheres.append(_sphere(character.physic))
                result.colors.append(_color(character.color, _CHARACTER_ALPHA))
            return result

    def close_uniforms(self, normal: Vector3, delta_time: float) -> Uniforms:
        """Spheres and colours of what lies near the given direction.

        The planet is always included; other characters are extrapolated
        by their speed over ``delta_time``.
        """
        with self._lock:
            result = Uniforms()
            for element in self._elements:
                if element.physic.radius > _PLANET_RADIUS or _is_close(
                    normal, normalize(element.physic.position)
                ):
                    result.spheres.append(_sphere(element.physic))
                    result.colors.append(_color(element.color, _ELEMENT_ALPHA))
            for character in self._characters:
                if character.status_enum == StatusEnum.STATUS_DEAD:
                    continue
                if not _is_close(normal, normalize(character.physic.position)):
                    continue
                if character.name == self.user_name:
                    result.spheres.append(_sphere(character.physic))
                else:
                    result.spheres.append(_moved_sphere(character.physic, delta_time))
                result.colors.append(_color(character.color, _CHARACTER_ALPHA))
            return result

    def character_by_name(self, name: str) -> Character:
        """The named character, or an empty one when it is unknown."""
        with self._lock:
            for character in self._characters:
                if character.name == name:
                    return character.copy()
            return Character()

    def set_character(self, character: Character) -> None:
        """Replace the character of the same name, if there is one."""
        with self._lock:
            for index, current in enumerate(self._characters):
                if current.name == character.name:
                    self._characters[index] = character.copy()
                    return

    def remove_character(self, name: str) -> None:
        with self._lock:
            for index, character in enumerate(self._characters):
                if character.name == name:
                    del self._characters[index]
                    return

    def potential_hit(self, me: Character) -> str:
        """Name of the first element or lighter character touched, or ""."""
        with self._lock:
            for element in self._elements:
                if is_intersecting(me.physic, element.physic):
                    return element.name
            for character in self._characters:
                if character.name == me.name:
                    continue
                if me.physic.mass < character.physic.mass:
                    continue
                if is_intersecting(me.physic, character.physic):
                    return character.name
            return ""

    def planet(self) -> Physic:
        """Physics of the first ground element, or an empty one."""
        with self._lock:
            for element in self._elements:
                if element.type_enum == TypeEnum.TYPE_GROUND:
                    return element.physic.copy()
            return Physic()

    def has_character(self, name: str) -> bool:
        with self._lock:
            return any(character.name == name for character in self._characters)

    def sound_effect(self, player_character_name: str) -> SoundEffect:
        """Sound to play after the player's mass changed since the last call."""
        with self._lock:
            if self._player_character.name != player_character_name:
                for character in self._characters:
                    if character.name == player_character_name:
                        self._player_character = character.copy()
                        return SoundEffect.NONE
            for character in self._characters:
                if character.name != self._player_character.name:
                    continue
                previous = self._player_character.physic.mass
                self._player_character = character.copy()
                if character.physic.mass > previous:
                    return SoundEffect.GOOD
                if character.physic.mass + _MASS_LOSS_MARGIN < previous:
                    return SoundEffect.BAD
            return SoundEffect.NONE

    def elements(self) -> list[Element]:
        with self._lock:
            return [element.copy() for element in self._elements]

    def characters(self) -> list[Character]:
        with self._lock:
            return [character.copy() for character in self._characters]

    def clear(self) -> None:
        with self._lock:
            self._elements.clear()
            self._characters.clear()