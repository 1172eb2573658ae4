"""Small integer helpers, 2D position types and frame-timing checks."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

__all__ = [
    "Pos",
    "Vector2D",
    "Operator",
    "desp_right",
    "lt16",
    "gt16",
    "u_less_than",
    "ubyte_less_than",
    "distance",
    "clamp",
    "get_bit",
    "set_bit",
    "unset_bit",
    "is_frame",
    "is_frame_odd",
]


@dataclass
class Pos:
    """A position in pixels."""

    x: int = 0
    y: int = 0


@dataclass
class Vector2D:
    """A small signed direction or velocity."""

    x: int = 0
    y: int = 0


class Operator(IntEnum):
    """Comparison operators used by scripts."""

    EQ = 1
    NE = 2
    LT = 3
    GT = 4
    LTE = 5
    GTE = 6


def desp_right(a: int, b: int) -> int:
    """Arithmetic shift of ``a`` right by ``b`` bits."""
    return a >> b


def lt16(a: int, b: int) -> bool:
    """Unsigned 16-bit less-than."""
    return (a & 0xFFFF) < (b & 0xFFFF)


def gt16(a: int, b: int) -> bool:
    """Unsigned 16-bit greater-than."""
    return (a & 0xFFFF) > (b & 0xFFFF)


def u_less_than(a: int, b: int) -> bool:
    """True when ``a - b`` has the 16-bit sign bit set."""
    return bool((a - b) & 0x8000)


def ubyte_less_than(a: int, b: int) -> bool:
    """True when ``a - b`` has the 8-bit sign bit set."""
    return bool((a - b) & 0x80)


def distance(a: int, b: int) -> int:
    """Distance between two values using the 16-bit sign comparison."""
    return b - a if u_less_than(a, b) else a - b


def clamp(a, lo, hi):
    """Limit ``a`` to the range ``lo``..``hi``."""
    if a < lo:
        return lo
    if a > hi:
        return hi
    return a


def get_bit(n: int, pos: int) -> bool:
    """Whether bit ``pos`` of ``n`` is set."""
    return (n & (1 << pos)) != 0


def set_bit(n: int, pos: int) -> int:
    """Return ``n`` with bit ``pos`` set."""
    return n | (1 << pos)


def unset_bit(n: int, pos: int) -> int:
    """Return ``n`` with bit ``pos`` cleared."""
    return n & ~(1 << pos)


def is_frame(game_time: int, period: int) -> bool:
    """True on frames that are a multiple of ``period`` (a power of two, 2..256)."""
    if period < 2 or period > 256 or period & (period - 1):
        raise ValueError(f"period must be a power of two between 2 and 256, got {period}")
    return (game_time & (period - 1)) == 0


def is_frame_odd(game_time: int) -> bool:
    """True on odd frames."""
    return (game_time & 1) == 1