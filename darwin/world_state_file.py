"""Saving and loading the world state as a JSON world database."""

from __future__ import annotations

import os
from typing import Union

from darwin.messages import (
    WorldDatabase,
    load_from_json,
    load_from_json_file,
    save_to_json,
    save_to_json_file,
)
from darwin.world_state import WorldState

PathLike = Union[str, os.PathLike]


def _to_database(world_state: WorldState) -> WorldDatabase:
    return WorldDatabase(
        time=world_state.last_updated,
        elements=world_state.elements,
        characters=world_state.characters,
        player_parameter=world_state.player_parameter,
    )


def _apply_database(world_state: WorldState, world: WorldDatabase) -> None:
    # Characters are always driven by a connected player, so saved ones
    # are not brought back.
    for element in world.elements:
        world_state.add_element(world.time, element)
    world_state.set_player_parameter(world.player_parameter)
    world_state.update(world.time)


def save_world_state_to_string(world_state: WorldState) -> str:
    """Serialise the world state to JSON text."""
    return save_to_json(_to_database(world_state))


def load_world_state_from_string(world_state: WorldState, text: str) -> None:
    """Fill the world state with the elements and parameters in the JSON text."""
    _apply_database(world_state, load_from_json(WorldDatabase, text))


def save_world_state_to_file(world_state: WorldState, path: PathLike) -> None:
    """Write the world state to a JSON file."""
    save_to_json_file(_to_database(world_state), path)


def load_world_state_from_file(world_state: WorldState, path: PathLike) -> None:
    """Fill the world state from a JSON file; OSError when it cannot be read."""
    _apply_database(world_state, load_from_json_file(WorldDatabase, path))