"""Game data types, world simulation and a JSON-over-TCP server for a multiplayer planet-eating game."""

__version__ = "0.1.0"