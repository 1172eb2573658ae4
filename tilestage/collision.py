"""Background collision map lookups."""

from __future__ import annotations

__all__ = [
    "CollisionMap",
    "COLLISION_TOP",
    "COLLISION_BOTTOM",
    "COLLISION_LEFT",
    "COLLISION_RIGHT",
    "COLLISION_ALL",
    "TILE_PROP_LADDER",
]

COLLISION_TOP = 0x1
COLLISION_BOTTOM = 0x2
COLLISION_LEFT = 0x4
COLLISION_RIGHT = 0x8
COLLISION_ALL = 0xF
TILE_PROP_LADDER = 0x10


class CollisionMap:
    """Per-tile collision flags for a scene, stored row by row."""

    def __init__(self, width: int, height: int, tiles: bytes) -> None:
        tiles = bytes(tiles)
        if len(tiles) != width * height:
            raise ValueError(f"expected {width * height} tiles, got {len(tiles)}")
        self.width = width
        self.height = height
        self.tiles = tiles

    def _outside(self, tx: int, ty: int) -> bool:
        return (tx & 0xFF) >= self.width or (ty & 0xFF) >= self.height

    def _read(self, index: int) -> int:
        if 0 <= index < len(self.tiles):
            return self.tiles[index]
        return COLLISION_ALL

    def _index(self, tx: int, ty: int) -> int:
        return (ty & 0xFF) * self.width + (tx & 0xFF)

    def tile_at(self, tx: int, ty: int) -> int:
        """Flags of one tile; COLLISION_ALL outside the map."""
        if self._outside(tx, ty):
            return COLLISION_ALL
        return self._read(self._index(tx, ty))

    def tile_at_2x1(self, tx: int, ty: int) -> int:
        """Combined flags of a tile and its right-hand neighbour."""
        if self._outside(tx, ty):
            return COLLISION_ALL
        i = self._index(tx, ty)
        return self._read(i) | self._read(i + 1)

    def tile_at_2x2(self, tx: int, ty: int) -> int:
        """First non-empty flags in a 2x2 block, read left to right, top to bottom."""
        if self._outside(tx, ty):
            return COLLISION_ALL
        i = self._index(tx, ty)
        for index in (i, i + 1, i + self.width, i + self.width + 1):
            tile = self._read(index)
            if tile:
                return tile
        return 0