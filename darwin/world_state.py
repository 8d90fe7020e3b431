"""Authoritative server-side world: characters, elements and the rules between them."""

from __future__ import annotations

import itertools
import logging
import random
import threading
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Optional

from darwin.convert_math import is_almost_intersecting, radius_from_volume
from darwin.messages import (
    Character,
    Element,
    Physic,
    PlayerParameter,
    StatusEnum,
    TypeEnum,
    Vector3,
    Vector4,
)
from darwin.vector import (
    dot,
    normalize,
    random_normalized_color,
    random_normalized_vector3,
)

_log = logging.getLogger(__name__)

_element_numbers = itertools.count()

_DEATH_MASS = 1.0
_COLOR_MATCH = 0.99
_UPGRADE_MASS = 1.0


@dataclass
class CharacterInfo:
    """A character together with the time it was last updated."""

    time: float
    character: Character


@dataclass
class ElementInfo:
    """An element together with the time it was last updated."""

    time: float
    element: Element


@dataclass(frozen=True)
class _FromTo:
    name_from: str
    name_to: str
    physic_from: Physic
    physic_to: Physic
    color_from: Vector3
    color_to: Vector3


class WorldState:
    """Thread-safe state of the game world as the server sees it."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = random.Random() if rng is None else rng
        self._lock = threading.Lock()
        self._character_infos: dict[str, CharacterInfo] = {}
        self._last_seen: dict[str, float] = {}
        self._element_infos: dict[str, ElementInfo] = {}
        self._peer_characters: dict[str, str] = {}
        self._last_updated = 0.0
        self._characters: list[Character] = []
        self._elements: list[Element] = []
        self._player_parameter = PlayerParameter()
        self._character_hits: dict[str, tuple[Character, str]] = {}
        self._element_max_number = 0

    # Read access -----------------------------------------------------------

    @property
    def last_updated(self) -> float:
        with self._lock:
            return self._last_updated

    @property
    def player_parameter(self) -> PlayerParameter:
        with self._lock:
            return self._player_parameter.copy()

    @property
    def characters(self) -> list[Character]:
        """Characters as of the last update, ordered by name."""
        with self._lock:
            return [character.copy() for character in self._characters]

    @property
    def elements(self) -> list[Element]:
        """Elements as of the last update, ordered by name."""
        with self._lock:
            return [element.copy() for element in self._elements]

    # Characters ------------------------------------------------------------

    def create_character(self, peer: str, name: str, color: Vector3) -> bool:
        """Drop a new character above the planet; False if the name is taken."""
        with self._lock:
            existing = self._character_infos.get(name)
            if existing is not None and existing.character.status_enum == StatusEnum.STATUS_DEAD:
                del self._character_infos[name]
                existing = None
            if existing is not None:
                _log.warning("[%s] Has already a character with name %s.", peer, name)
                return False
            direction = random_normalized_vector3(self._rng)
            start_mass = self._player_parameter.start_mass
            planet = self._planet_locked()
            physic = Physic(
                position=direction * (planet.physic.radius + self._player_parameter.drop_height),
                position_dt=Vector3(0.0, 0.0, 0.0),
                orientation=Vector4(0.0, 0.0, 0.0, 1.0),
                orientation_dt=Vector4(0.0, 0.0, 0.0, 1.0),
                mass=start_mass,
                radius=radius_from_volume(start_mass),
            )
            character = Character(
                name=name,
                physic=physic,
                color=normalize(color),
                # Assumes the gravity well sits at the origin.
                normal=direction.copy(),
                g_force=Vector3(0.0, 0.0, 0.0),
                status_enum=StatusEnum.STATUS_LOADING,
            )
            self._character_infos[name] = CharacterInfo(self._last_updated, character)
            self._peer_characters.setdefault(peer, name)
            return True

    def add_character(self, time: float, character: Character) -> None:
        """Insert a character directly, owned by a peer of the same name."""
        with self._lock:
            if character.name in self._character_infos:
                _log.error("Error adding character: %s", character.name)
                return
            self._character_infos[character.name] = CharacterInfo(time, character.copy())
            self._peer_characters.setdefault(character.name, character.name)

    def remove_character(self, name: str) -> None:
        with self._lock:
            self._character_infos.pop(name, None)

    def has_character(self, name: str) -> bool:
        with self._lock:
            return name in self._character_infos

    def remove_peer(self, peer: str) -> str:
        """Forget the peer and its character; return the character's name or ""."""
        with self._lock:
            name = self._peer_characters.pop(peer, None)
            if name is None:
                return ""
            self._character_infos.pop(name, None)
            return name

    def is_character_owned_by_peer(self, peer: str, character_name: str) -> bool:
        with self._lock:
            return self._peer_characters.get(peer) == character_name

    def character_owned_by_peer(self, peer: str, character_name: str) -> Optional[Character]:
        """The character the peer controls, or None when it has none."""
        with self._lock:
            owned = self._peer_characters.get(peer)
            if owned is None:
                return None
            info = self._character_infos.get(owned)
            return None if info is None else info.character.copy()

    def update_character(
        self, time: float, name: str, status: StatusEnum, physic: Physic
    ) -> None:
        """Record the physics and status a client reported for its character."""
        with self._lock:
            info = self._character_infos.get(name)
            if info is None:
                _log.error("Error updating character: %s", name)
                return
            info.time = time
            info.character.physic = physic.copy()
            info.character.status_enum = status

    def set_character_hits(self, character_hits: Iterable[tuple[Character, str]]) -> None:
        """Replace the pending (character, target name) hits; one per character name."""
        with self._lock:
            hits: dict[str, tuple[Character, str]] = {}
            for character, target in character_hits:
                hits.setdefault(character.name, (character.copy(), target))
            self._character_hits = hits

    def update_ping(self, name: str) -> None:
        with self._lock:
            self._last_seen[name] = self._last_updated

    # Elements --------------------------------------------------------------

    def add_element(self, time: float, element: Element) -> None:
        """Insert an element or replace the one with the same name."""
        with self._lock:
            info = self._element_infos.get(element.name)
            if info is None:
                self._element_infos[element.name] = ElementInfo(time, element.copy())
            else:
                info.time = time
                info.element = element.copy()

    def set_upgrade_element(self, upgrade_count: int) -> None:
        """Scatter the given number of upgrade elements over the planet."""
        with self._lock:
            self._element_max_number = upgrade_count
            self._add_random_elements_locked(upgrade_count)

    def set_player_parameter(self, parameter: PlayerParameter) -> None:
        with self._lock:
            self._player_parameter = parameter.copy()

    def planet(self) -> Element:
        """The first ground element; RuntimeError when there is none."""
        with self._lock:
            return self._planet_locked().copy()

    # Simulation ------------------------------------------------------------

    def update(self, time: float) -> None:
        """Apply the game rules once per new time and refresh the snapshots."""
        with self._lock:
            if time != self._last_updated:
                self._check_still_in_use_locked()
                self._check_ground_locked()
                self._check_death_locked()
                self._check_victory_locked()
                self._check_intersect_locked()
                self._last_updated = time
            self._fill_vectors_locked()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, WorldState):
            return NotImplemented
        mine = self._comparable()
        theirs = other._comparable()
        return mine == theirs

    def _comparable(self) -> tuple:
        with self._lock:
            return (
                self._last_updated,
                len(self._character_infos),
                len(self._element_infos),
                list(self._characters),
                list(self._elements),
            )

    # Internals (lock held) -------------------------------------------------

    def _planet_locked(self) -> Element:
        for name in sorted(self._element_infos):
            element = self._element_infos[name].element
            if element.type_enum == TypeEnum.TYPE_GROUND:
                return element
        raise RuntimeError("No planet found.")

    def _add_random_elements_locked(self, number: int) -> None:
        colors = [parameter.color for parameter in self._player_parameter.colors]
        for _ in range(number):
            name = f"element_upgrade{next(_element_numbers)}"
            color = random_normalized_color(colors, self._rng)
            direction = random_normalized_vector3(self._rng)
            radius = radius_from_volume(_UPGRADE_MASS)
            physic = Physic(
                position=direction * (self._planet_locked().physic.radius + radius),
                position_dt=Vector3(0.0, 0.0, 0.0),
                radius=radius,
                mass=_UPGRADE_MASS,
            )
            element = Element(
                name=name, type_enum=TypeEnum.TYPE_UPGRADE, physic=physic, color=color
            )
            self._element_infos.setdefault(name, ElementInfo(self._last_updated, element))

    def _release_peer_of_locked(self, character_name: str) -> None:
        for peer in sorted(self._peer_characters):
            if self._peer_characters[peer] == character_name:
                del self._peer_characters[peer]
                return

    def _check_still_in_use_locked(self) -> None:
        timeout = self._player_parameter.disconnection_timeout
        for name, seen in sorted(self._last_seen.items()):
            if seen + timeout < self._last_updated:
                _log.info("Character %s has been disconnected.", name)
                self._character_infos.pop(name, None)
                del self._last_seen[name]
                break

    def _check_ground_locked(self) -> None:
        ground = self._planet_locked()
        for info in self._character_infos.values():
            character = info.character
            if character.status_enum != StatusEnum.STATUS_ON_GROUND:
                continue
            normal = normalize(character.physic.position)
            character.physic.position = normal * (
                ground.physic.radius + character.physic.radius
            )
            character.normal = normal.copy()

    def _check_death_locked(self) -> None:
        for name in sorted(self._character_infos):
            character = self._character_infos[name].character
            if character.physic.mass < _DEATH_MASS:
                character.status_enum = StatusEnum.STATUS_DEAD
                self._release_peer_of_locked(character.name)

    def _check_victory_locked(self) -> None:
        for name in sorted(self._character_infos):
            character = self._character_infos[name].character
            if character.physic.mass >= self._player_parameter.victory_size:
                character.status_enum = StatusEnum.STATUS_DEAD
                self._release_peer_of_locked(character.name)

    def _check_intersect_locked(self) -> None:
        to_remove: dict[str, TypeEnum] = {}
        for key in sorted(self._character_hits):
            character, target_name = self._character_hits[key]
            type_enum = TypeEnum.TYPE_UNKNOWN
            physic_from = character.physic
            color_from = character.color
            physic_to = Physic()
            color_to = Vector3()
            element_info = self._element_infos.get(target_name)
            if element_info is not None:
                if physic_from.mass > self._player_parameter.max_upgrade_grow:
                    continue
                if element_info.element.type_enum != TypeEnum.TYPE_UPGRADE:
                    continue
                physic_to = element_info.element.physic
                color_to = element_info.element.color
                type_enum = TypeEnum.TYPE_UPGRADE
            character_info = self._character_infos.get(target_name)
            if character_info is not None:
                physic_to = character_info.character.physic
                color_to = character_info.character.color
                type_enum = TypeEnum.TYPE_CHARACTER
            if physic_from.mass <= physic_to.mass:
                continue
            if not is_almost_intersecting(physic_from, physic_to):
                continue
            from_to = _FromTo(
                character.name,
                target_name,
                physic_from.copy(),
                physic_to.copy(),
                color_from.copy(),
                color_to.copy(),
            )
            if dot(color_from, color_to) > _COLOR_MATCH:
                if type_enum == TypeEnum.TYPE_UPGRADE:
                    self._lost_source_element_locked(from_to)
                elif type_enum == TypeEnum.TYPE_CHARACTER:
                    self._lost_source_character_locked(from_to)
            elif type_enum == TypeEnum.TYPE_UPGRADE:
                self._eat_upgrade_locked(from_to)
                to_remove.setdefault(target_name, type_enum)
            elif type_enum == TypeEnum.TYPE_CHARACTER:
                self._eat_character_locked(from_to)
        for name in sorted(to_remove):
            kind = to_remove[name]
            if kind == TypeEnum.TYPE_UPGRADE:
                self._element_infos.pop(name, None)
                self._add_random_elements_locked(1)
            elif kind == TypeEnum.TYPE_CHARACTER:
                self._character_infos.pop(name, None)

    def _set_mass_locked(self, name: str, physic: Physic, mass: float) -> None:
        updated = physic.copy()
        updated.mass = mass
        updated.radius = radius_from_volume(mass)
        self._character_infos[name].character.physic = updated

    def _eat_upgrade_locked(self, from_to: _FromTo) -> None:
        self._set_mass_locked(
            from_to.name_from,
            from_to.physic_from,
            from_to.physic_from.mass + from_to.physic_to.mass,
        )

    def _eat_character_locked(self, from_to: _FromTo) -> None:
        moved = min(from_to.physic_to.mass, self._player_parameter.eat_speed)
        self._set_mass_locked(
            from_to.name_from, from_to.physic_from, from_to.physic_from.mass + moved
        )
        self._set_mass_locked(
            from_to.name_to, from_to.physic_to, from_to.physic_to.mass - moved
        )

    def _lost_source_element_locked(self, from_to: _FromTo) -> None:
        self._set_mass_locked(
            from_to.name_from,
            from_to.physic_from,
            from_to.physic_from.mass + self._player_parameter.penalty,
        )

    def _lost_source_character_locked(self, from_to: _FromTo) -> None:
        shared = (from_to.physic_from.mass + from_to.physic_to.mass) * 0.5
        self._set_mass_locked(from_to.name_from, from_to.physic_from, shared)
        self._set_mass_locked(from_to.name_to, from_to.physic_to, shared)

    def _fill_vectors_locked(self) -> None:
        self._characters = [
            self._character_infos[name].character.copy()
            for name in sorted(self._character_infos)
        ]
        self._elements = [
            self._element_infos[name].element.copy() for name in sorted(self._element_infos)
        ]