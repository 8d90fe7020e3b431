"""Game service: the calls clients make and the loop that advances the world."""

from __future__ import annotations

import enum
import logging
import math
import threading
import time as _time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from darwin.convert_math import time_seconds_now
from darwin.messages import (
    Character,
    Element,
    Physic,
    PlayerParameter,
    StatusEnum,
    Vector3,
)
from darwin.vector import dot, length, normalize
from darwin.world_state import WorldState

_log = logging.getLogger(__name__)

_MIN_POSITION_LENGTH = 0.1
_COLOR_MATCH = 0.99


class StatusCode(enum.IntEnum):
    OK = 0
    CANCELLED = 1
    UNKNOWN = 2
    INVALID_ARGUMENT = 3
    NOT_FOUND = 5
    ALREADY_EXISTS = 6
    FAILED_PRECONDITION = 9
    UNIMPLEMENTED = 12
    INTERNAL = 13


class ReturnEnum(enum.IntEnum):
    RETURN_UNKNOWN = 0
    RETURN_OK = 1
    RETURN_REJECTED = 2


class ServiceError(Exception):
    """A call that was refused, with its status code."""

    def __init__(
        self, code: StatusCode, message: str, return_enum: Optional[ReturnEnum] = None
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.return_enum = return_enum


def _mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValueError(f"expected an object for {what}")
    return data


def _status(raw: Any) -> StatusEnum:
    if isinstance(raw, str):
        return StatusEnum[raw]
    return StatusEnum(int(raw))


@dataclass
class ReportInGameRequest:
    name: str = ""
    physic: Physic = field(default_factory=Physic)
    status_enum: StatusEnum = StatusEnum.STATUS_UNKNOWN
    potential_hit: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> ReportInGameRequest:
        data = _mapping(data, cls.__name__)
        return cls(
            name=str(data.get("name", "")),
            physic=Physic.from_dict(data.get("physic") or {}),
            status_enum=_status(data.get("status_enum", 0)),
            potential_hit=str(data.get("potential_hit", "")),
        )


@dataclass
class CreateCharacterRequest:
    name: str = ""
    color: Vector3 = field(default_factory=Vector3)

    @classmethod
    def from_dict(cls, data: Any) -> CreateCharacterRequest:
        data = _mapping(data, cls.__name__)
        return cls(
            name=str(data.get("name", "")),
            color=Vector3.from_dict(data.get("color") or {}),
        )


@dataclass
class PingRequest:
    value: int = 0

    @classmethod
    def from_dict(cls, data: Any) -> PingRequest:
        data = _mapping(data, cls.__name__)
        return cls(value=int(data.get("value", 0)))


@dataclass
class PingResponse:
    value: int = 0
    player_parameter: PlayerParameter = field(default_factory=PlayerParameter)
    time: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "value": self.value,
            "player_parameter": self.player_parameter.to_dict(),
            "time": self.time,
        }


@dataclass
class UpdateResponse:
    elements: list[Element] = field(default_factory=list)
    characters: list[Character] = field(default_factory=list)
    time: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "elements": [element.to_dict() for element in self.elements],
            "characters": [character.to_dict() for character in self.characters],
            "time": self.time,
        }


Writer = Callable[[UpdateResponse], None]


def _has_nan(vector: Vector3) -> bool:
    return any(math.isnan(value) for value in (vector.x, vector.y, vector.z))


class DarwinService:
    """Handles client calls against a world state and broadcasts its updates."""

    def __init__(
        self, world_state: WorldState, clock: Callable[[], float] = time_seconds_now
    ) -> None:
        self.world_state = world_state
        self._clock = clock
        self._lock = threading.Lock()
        self._writers: list[Writer] = []
        self._time_characters: dict[float, Character] = {}
        self._character_hits: dict[str, tuple[Character, str]] = {}

    def subscribe(self, writer: Writer) -> None:
        """Register a callable that receives every world update."""
        with self._lock:
            self._writers.append(writer)

    def disconnect(self, peer: str, writer: Writer) -> str:
        """Drop the peer's character and writer; return the character's name or ""."""
        character_name = self.world_state.remove_peer(peer)
        self.world_state.remove_character(character_name)
        if character_name:
            _log.debug("[%s] Removed character %s", peer, character_name)
        with self._lock:
            self._writers = [w for w in self._writers if w is not writer]
        return character_name

    def report_in_game(self, peer: str, request: ReportInGameRequest) -> None:
        """Record the state a client reports for the character it owns."""
        with self._lock:
            if not request.name:
                raise ServiceError(
                    StatusCode.INVALID_ARGUMENT,
                    f"[{peer}]:{self.world_state.last_updated} Name is empty?",
                )
            character = self.world_state.character_owned_by_peer(peer, request.name)
            if character is None:
                raise ServiceError(
                    StatusCode.FAILED_PRECONDITION,
                    f"character {request.name} don't exist?",
                )
            character.physic = self._update_physic(character.physic, request.physic)
            character.status_enum = request.status_enum
            character.physic.mass -= self.world_state.player_parameter.living_cost
            self._time_characters.setdefault(self._clock(), character)
            if request.potential_hit:
                _log.debug(
                    "[%s] Got a potential hit from %s", peer, request.potential_hit
                )
                self._character_hits.setdefault(
                    character.name, (character.copy(), request.potential_hit)
                )
            self.world_state.update_ping(request.name)

    def create_character(self, peer: str, request: CreateCharacterRequest) -> ReturnEnum:
        """Create the peer's character; ServiceError when it is refused."""
        colors = self.world_state.player_parameter.colors
        wanted = normalize(request.color)
        found = any(
            dot(normalize(parameter.color), wanted) <= _COLOR_MATCH for parameter in colors
        )
        if not found:
            raise ServiceError(
                StatusCode.INVALID_ARGUMENT,
                f"Color [{request.color}] is not valid.",
                ReturnEnum.RETURN_REJECTED,
            )
        if self.world_state.create_character(peer, request.name, request.color):
            return ReturnEnum.RETURN_OK
        raise ServiceError(
            StatusCode.INVALID_ARGUMENT,
            f"Name [{request.name}] is already in game.",
            ReturnEnum.RETURN_REJECTED,
        )

    def ping(self, request: PingRequest) -> PingResponse:
        """Echo the value with the server time and game parameters."""
        return PingResponse(
            value=request.value,
            player_parameter=self.world_state.player_parameter,
            time=self._clock(),
        )

    def broadcast_update(self, response: UpdateResponse) -> None:
        """Send the response to every subscribed writer."""
        with self._lock:
            writers = list(self._writers)
        for writer in writers:
            writer(response)

    def compute_step(self, time: float) -> UpdateResponse:
        """Apply pending reports and hits, advance the world and broadcast it."""
        with self._lock:
            for stamp in sorted(self._time_characters):
                character = self._time_characters[stamp]
                self.world_state.update_character(
                    stamp, character.name, character.status_enum, character.physic
                )
            self._time_characters.clear()
            hits = list(self._character_hits.values())
            self._character_hits.clear()
        self.world_state.set_character_hits(hits)
        self.world_state.update(time)
        response = UpdateResponse(
            elements=self.world_state.elements,
            characters=self.world_state.characters,
            time=time,
        )
        self.broadcast_update(response)
        return response

    def compute_world(
        self, loop_timer: float, stop_event: Optional[threading.Event] = None
    ) -> None:
        """Run a step every ``loop_timer`` seconds until the event is set."""
        stop = threading.Event() if stop_event is None else stop_event
        while not stop.is_set():
            started = _time.monotonic()
            self.compute_step(self._clock())
            remaining = loop_timer - (_time.monotonic() - started)
            if remaining < 0:
                _log.warning("ComputeWorld is too slow by %.3f s", -remaining)
                continue
            stop.wait(remaining)

    @staticmethod
    def _update_physic(server_physic: Physic, client_physic: Physic) -> Physic:
        result = server_physic.copy()
        if _has_nan(client_physic.position):
            _log.error("Received a NaN position keep server value!")
            return result
        if length(client_physic.position) < _MIN_POSITION_LENGTH:
            _log.error("Received a too small position keep server value!")
            return result
        result.position = client_physic.position.copy()
        if _has_nan(client_physic.position_dt):
            _log.error("Received a NaN position_dt keep server value!")
        else:
            result.position_dt = client_physic.position_dt.copy()
        return result