"""Sprite kinds, per-sprite frame information and the sprite slot pool."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

__all__ = ["SpriteType", "SpriteInfo", "SpritePool", "MAX_SPRITES", "MAX_FRAMES"]

MAX_SPRITES = 19
MAX_FRAMES = 25


class SpriteType(IntEnum):
    """How a sprite sheet is laid out."""

    STATIC = 0
    ACTOR = 1
    ACTOR_ANIMATED = 2


@dataclass
class SpriteInfo:
    """Where a loaded sprite sheet lives and how many frames it has."""

    sprite_offset: int = 0
    frames_len: int = 0
    sprite_type: SpriteType = SpriteType.STATIC


class SpritePool:
    """Stack of free sprite slots numbered 1..size; 0 means none available."""

    def __init__(self, size: int = MAX_SPRITES) -> None:
        if size < 1:
            raise ValueError("sprite pool size must be positive")
        self.size = size
        self._free: list[int] = []
        self.reset()

    def reset(self) -> None:
        """Make every slot free again."""
        self._free = list(range(1, self.size + 1))

    def next(self) -> int:
        """Take a free slot, or return 0 if none is left."""
        return self._free.pop() if self._free else 0

    def release(self, index: int) -> None:
        """Give a slot back to the pool; slot 0 is ignored."""
        if index == 0:
            return
        if not 1 <= index <= self.size:
            raise ValueError(f"sprite slot out of range: {index}")
        if index in self._free:
            raise ValueError(f"sprite slot already free: {index}")
        self._free.append(index)

    def __len__(self) -> int:
        return len(self._free)