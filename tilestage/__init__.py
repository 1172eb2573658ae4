"""Core of a tile-based 2D game engine: actors, scripts, collisions, projectiles, fades and scene loading."""

__version__ = "0.1.0"