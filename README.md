# darwin

The server side of a multiplayer game set on a small planet. Players steer
coloured spheres across the surface. They grow by eating upgrade elements and
smaller players of a different colour. A player who eats something of a
matching colour is penalised instead.

The package has no dependencies outside the standard library.

## What is in the package

- `darwin.messages`: the game's data types (`Vector2`, `Vector3`, `Vector4`,
  `Physic`, `Element`, `Character`, `ColorParameter`, `PlayerParameter`,
  `WorldDatabase`, and the `TypeEnum` and `StatusEnum` enums). It also has
  `create_basic_element`, `create_basic_character` and the JSON helpers
  `load_from_json`, `save_to_json`, `load_from_json_file` and
  `save_to_json_file`. Loading rejects unknown fields. It accepts both
  snake_case and camelCase field names.
- `darwin.vector`: vector maths on `Vector3`. This covers `dot`, `cross`,
  `length`, `distance`, `normalize` and `project_on_plane`. There are also
  random unit vectors and colour helpers (`random_normalized_color`,
  `is_in_color_range`).
- `darwin.convert_math`: the constants `GRAVITATIONAL_CONSTANT`, `PI` and
  `ALMOST_INTERSECT`, and the functions `radius_from_volume`,
  `is_intersecting`, `is_almost_intersecting`, `random_vec3` and
  `time_seconds_now`.
- `darwin.physic`: gravity between two bodies (`apply_physic`), movement
  integration (`update_object`), `cancel_vertical_component`, and
  `correct_surface`, which puts a body back on a ground element.
- `darwin.world_simulator`: `WorldSimulator` keeps the last snapshot sent by
  the server and applies gravity to the local user's character between
  updates.
  - `uniforms()` and `close_uniforms()` return `Uniforms`: spheres and colours
    ready for drawing.
  - `sound_effect()` reports a `SoundEffect` when the player's mass has
    changed.
- `darwin.world_state`: `WorldState` is the authoritative world. It holds
  characters, elements, peer ownership, eating rules, deaths, victories and
  disconnection timeouts. `update(time)` applies the rules once for each new
  time value.
- `darwin.world_state_file`: `save_world_state_to_string`,
  `load_world_state_from_string`, `save_world_state_to_file` and
  `load_world_state_from_file`. Loading brings back elements and player
  parameters. Saved characters are not restored.
- `darwin.service`: `DarwinService` handles `ping`, `create_character` and
  `report_in_game`. `compute_step`/`compute_world` advance the world and send
  an `UpdateResponse` to every subscribed writer. A refused call raises
  `ServiceError`, which carries a `StatusCode` and, where there is one, a
  `ReturnEnum`.
- `darwin.server`: the `darwin-server` command.

## Installing

```
pip install .
```

## Running the server

```
darwin-server --world_db world_db.json --upgrade_count 400 --loop_timer 0.1 --server_name 0.0.0.0:45323
```

The values shown are the defaults. On start the server:

1. Loads the world database. The file must exist. It must hold a ground
   element and at least one player colour before upgrade elements can be
   placed.
2. Scatters `--upgrade_count` upgrade elements over the planet.
3. Recomputes the world every `--loop_timer` seconds.
4. Listens on `--server_name`.

If the file cannot be read, the address is invalid, or the world has no
planet, the command prints `Error: ...` and exits with status 1.

### Wire format

Clients connect over TCP and exchange one JSON object per line.

A request looks like this:

```
{"method": "ping", "params": {"value": 1}}
```

Methods:

- `ping`: the reply is `value`, `player_parameter` and the server `time`.
- `create_character`: params are `name` and `color`. The reply is
  `{"return_enum": "RETURN_OK"}`.
- `report_in_game`: params are `name`, `physic`, `status_enum` and
  `potential_hit`.
- `update`: subscribes the connection to world updates. After that, lines of
  the form `{"update": {"elements": [...], "characters": [...], "time": ...}}`
  are pushed on every step.

Successful replies are `{"result": ...}`. Failures are
`{"error": {"code": ..., "message": ...}}`, with `return_enum` added for
refused character creation. When a subscribed connection closes, the peer's
character is removed from the world.

## Using the library

```python
from darwin.messages import TypeEnum, create_basic_element
from darwin.vector import create_vector3
from darwin.world_state import WorldState
from darwin.world_state_file import save_world_state_to_string

world = WorldState()
world.add_element(
    0.0,
    create_basic_element(
        "ground", TypeEnum.TYPE_GROUND, create_vector3(0, 0, 0), 1e9, 10.0
    ),
)
world.update(1.0)
print(save_world_state_to_string(world))
```

## What the package does not do

The package does not:

- include a game client: no window, rendering, audio, menus or input handling.
  `WorldSimulator` only prepares data that a client could draw.
- speak any protocol other than the line-delimited JSON described above.
- save the world back to disk while the server runs.

## Tests

```
pip install ".[test]"
pytest
```