"""Game data messages (vectors, physics, elements, characters) and their JSON form."""

import copy
import dataclasses
import enum
import json
import math
import os
import typing
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TypeVar, Union

_M = TypeVar("_M", bound="_Message")

_NON_FINITE = {"NaN": math.nan, "Infinity": math.inf, "-Infinity": -math.inf}


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _encode(value: Any) -> Any:
    if isinstance(value, _Message):
        return value.to_dict()
    if isinstance(value, enum.Enum):
        return value.name
    if isinstance(value, list):
        return [_encode(item) for item in value]
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
    return value


def _decode(hint: Any, raw: Any, where: str) -> Any:
    if typing.get_origin(hint) is list:
        (item_hint,) = typing.get_args(hint)
        if not isinstance(raw, list):
            raise ValueError(f"{where}: expected a list")
        return [_decode(item_hint, item, where) for item in raw]
    if isinstance(hint, type) and issubclass(hint, _Message):
        return hint.from_dict(raw)
    if isinstance(hint, type) and issubclass(hint, enum.IntEnum):
        if isinstance(raw, str):
            try:
                return hint[raw]
            except KeyError:
                raise ValueError(f"{where}: unknown enum value {raw!r}") from None
        if isinstance(raw, int) and not isinstance(raw, bool):
            try:
                return hint(raw)
            except ValueError:
                raise ValueError(f"{where}: unknown enum value {raw!r}") from None
        raise ValueError(f"{where}: invalid enum value {raw!r}")
    if hint is float:
        if isinstance(raw, bool):
            raise ValueError(f"{where}: expected a number")
        if isinstance(raw, (int, float)):
            return float(raw)
        if isinstance(raw, str):
            if raw in _NON_FINITE:
                return _NON_FINITE[raw]
            try:
                return float(raw)
            except ValueError:
                raise ValueError(f"{where}: invalid number {raw!r}") from None
        raise ValueError(f"{where}: expected a number")
    if hint is str:
        if isinstance(raw, str):
            return raw
        raise ValueError(f"{where}: expected a string")
    raise TypeError(f"{where}: unsupported field type {hint!r}")


class _Message:
    """Common behaviour of all message dataclasses."""

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready dictionary holding every field."""
        return {f.name: _encode(getattr(self, f.name)) for f in dataclasses.fields(self)}

    @classmethod
    def from_dict(cls: type[_M], data: Any) -> _M:
        """Build a message from a dictionary, rejecting unknown fields."""
        if not isinstance(data, dict):
            raise ValueError(f"expected an object for {cls.__name__}")
        hints: dict[str, Any] = {}
        names: dict[str, str] = {}
        for f in dataclasses.fields(cls):
            hints[f.name] = f.type
            names[f.name] = f.name
            names[_camel(f.name)] = f.name
        values: dict[str, Any] = {}
        for key, raw in data.items():
            name = names.get(key)
            if name is None:
                raise ValueError(f"unknown field {key!r} in {cls.__name__}")
            if raw is None:
                continue
            values[name] = _decode(hints[name], raw, f"{cls.__name__}.{name}")
        return cls(**values)

    def copy(self: _M) -> _M:
        """Return a deep copy of the message."""
        return copy.deepcopy(self)


class TypeEnum(enum.IntEnum):
    TYPE_UNKNOWN = 0
    TYPE_GROUND = 1
    TYPE_UPGRADE = 2
    TYPE_CHARACTER = 3
    TYPE_BROWN = 4


class StatusEnum(enum.IntEnum):
    STATUS_UNKNOWN = 0
    STATUS_LOADING = 1
    STATUS_ON_GROUND = 2
    STATUS_JUMPING = 3
    STATUS_DEAD = 4


@dataclass
class Vector2(_Message):
    x: float = 0.0
    y: float = 0.0


@dataclass
class Vector3(_Message):
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __add__(self, other: "Vector3") -> "Vector3":
        if not isinstance(other, Vector3):
            return NotImplemented
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "Vector3") -> "Vector3":
        if not isinstance(other, Vector3):
            return NotImplemented
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __neg__(self) -> "Vector3":
        return Vector3(-self.x, -self.y, -self.z)

    def __mul__(self, scalar: float) -> "Vector3":
        if not isinstance(scalar, (int, float)):
            return NotImplemented
        return Vector3(self.x * scalar, self.y * scalar, self.z * scalar)

    __rmul__ = __mul__


@dataclass
class Vector4(_Message):
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 0.0


@dataclass
class Physic(_Message):
    position: Vector3 = field(default_factory=Vector3)
    position_dt: Vector3 = field(default_factory=Vector3)
    orientation: Vector4 = field(default_factory=Vector4)
    orientation_dt: Vector4 = field(default_factory=Vector4)
    mass: float = 0.0
    radius: float = 0.0


@dataclass
class Element(_Message):
    name: str = ""
    type_enum: TypeEnum = TypeEnum.TYPE_UNKNOWN
    physic: Physic = field(default_factory=Physic)
    color: Vector3 = field(default_factory=Vector3)


@dataclass
class Character(_Message):
    name: str = ""
    physic: Physic = field(default_factory=Physic)
    color: Vector3 = field(default_factory=Vector3)
    normal: Vector3 = field(default_factory=Vector3)
    g_force: Vector3 = field(default_factory=Vector3)
    status_enum: StatusEnum = StatusEnum.STATUS_UNKNOWN

    def __lt__(self, other: "Character") -> bool:
        if not isinstance(other, Character):
            return NotImplemented
        return self.name < other.name


@dataclass
class ColorParameter(_Message):
    name: str = ""
    color: Vector3 = field(default_factory=Vector3)


@dataclass
class PlayerParameter(_Message):
    colors: list[ColorParameter] = field(default_factory=list)
    start_mass: float = 0.0
    drop_height: float = 0.0
    living_cost: float = 0.0
    eat_speed: float = 0.0
    penalty: float = 0.0
    max_upgrade_grow: float = 0.0
    victory_size: float = 0.0
    disconnection_timeout: float = 0.0


@dataclass
class WorldDatabase(_Message):
    time: float = 0.0
    elements: list[Element] = field(default_factory=list)
    characters: list[Character] = field(default_factory=list)
    player_parameter: PlayerParameter = field(default_factory=PlayerParameter)


def create_basic_element(
    name: str, type_enum: TypeEnum, position: Vector3, mass: float, radius: float
) -> Element:
    """Create an element with the given name, type, position, mass and radius."""
    physic = Physic(position=position.copy(), mass=mass, radius=radius)
    return Element(name=name, type_enum=type_enum, physic=physic)


def create_basic_character(
    name: str, position: Vector3, mass: float, radius: float
) -> Character:
    """Create a character with the given name, position, mass and radius."""
    physic = Physic(position=position.copy(), mass=mass, radius=radius)
    return Character(name=name, physic=physic)


def load_from_json(cls: type[_M], text: str) -> _M:
    """Parse a message of type ``cls`` from JSON text."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Couldn't parse json status error: {exc}") from exc
    return cls.from_dict(data)


def save_to_json(message: _Message) -> str:
    """Serialise a message to indented JSON, every field included."""
    return json.dumps(message.to_dict(), indent=2, allow_nan=False)


def load_from_json_file(cls: type[_M], path: Union[str, os.PathLike]) -> _M:
    """Load a message from a JSON file; an empty path gives a default message."""
    if isinstance(path, str) and not path:
        return cls()
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise OSError(f"Couldn't open file: {path}") from exc
    return load_from_json(cls, text)


def save_to_json_file(message: _Message, path: Union[str, os.PathLike]) -> None:
    """Write a message as JSON to a file."""
    contents = save_to_json(message)
    try:
        Path(path).write_text(contents, encoding="utf-8")
    except OSError as exc:
        raise OSError(f"Couldn't open file: {path}") from exc