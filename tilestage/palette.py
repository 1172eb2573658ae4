"""Palette encoding, palette storage and screen fading."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from tilestage.mathutil import desp_right

__all__ = [
    "pal_def",
    "rgb2",
    "pal_red",
    "pal_green",
    "pal_blue",
    "update_color_black",
    "Palettes",
    "FadeDirection",
    "Fader",
    "PLAYER_PALETTE",
    "PLAYER_PALETTE_OFFSET",
    "UI_PALETTE_OFFSET",
    "FADE_SPEEDS",
    "FADE_STEPS",
]

PLAYER_PALETTE = 0x7
PLAYER_PALETTE_OFFSET = 0x1C
UI_PALETTE_OFFSET = 0x1C
PALETTE_COLORS = 32

FADE_SPEEDS = (0x0, 0x1, 0x3, 0x7, 0xF, 0x1F, 0x3F)
FADE_STEPS = 5

_OBJ_FADE_VALS = (0x00, 0x00, 0x40, 0x80, 0x90, 0xD0, 0xD0)
_BGP_FADE_VALS = (0x00, 0x00, 0x40, 0x90, 0xA4, 0xE4, 0xE4)
_OBJ_FADE_BLACK_VALS = (0xFF, 0xFF, 0xF8, 0xE4, 0xD4, 0xD0, 0xD0)
_BGP_FADE_BLACK_VALS = (0xFF, 0xFF, 0xFE, 0xE9, 0xE5, 0xE4, 0xE4)


def pal_def(c3: int, c2: int, c1: int, c0: int) -> int:
    """Pack four 2-bit shades into a monochrome palette register value."""
    return (c0 << 6) | (c1 << 4) | (c2 << 2) | c3


def rgb2(r: int, g: int, b: int) -> int:
    """Pack 5-bit red, green and blue into a 15-bit colour."""
    return r | (g << 5) | (b << 10)


def pal_red(c: int) -> int:
    """Red component of a 15-bit colour."""
    return c & 0x1F


def pal_green(c: int) -> int:
    """Green component of a 15-bit colour."""
    return (c >> 5) & 0x1F


def pal_blue(c: int) -> int:
    """Blue component of a 15-bit colour."""
    return (c >> 10) & 0x1F


def update_color_black(i: int, col: int) -> int:
    """Darken ``col`` for fade step ``i`` (0 is black, 5 is unchanged)."""
    shift = FADE_STEPS - i
    return rgb2(
        desp_right(pal_red(col), shift),
        desp_right(pal_green(col), shift),
        desp_right(pal_blue(col), shift),
    )


def _colors() -> list[int]:
    return [0] * PALETTE_COLORS


@dataclass
class Palettes:
    """Source colour palettes and the buffers shown on screen."""

    spr: list[int] = field(default_factory=_colors)
    bkg: list[int] = field(default_factory=_colors)
    spr_buffer: list[int] = field(default_factory=_colors)
    bkg_buffer: list[int] = field(default_factory=_colors)
    dirty: bool = False
    update_mask: int = 0x3F


class FadeDirection(Enum):
    """Whether the screen is fading in or out."""

    IN = "in"
    OUT = "out"


class Fader:
    """Steps the screen between full colour and white or black."""

    def __init__(self, palettes: Palettes, fade_style: bool = False, color: bool = False) -> None:
        self.palettes = palettes
        self.fade_style = bool(fade_style)
        self.color = color
        self.running = False
        self.frames_per_step = FADE_SPEEDS[2]
        self.timer = 0
        self.frame = 0
        self.direction = FadeDirection.IN
        self.obp0 = 0xE4
        self.bgp = 0xE4

    def _start(self, direction: FadeDirection, timer: int) -> None:
        self.frame = 0
        self.direction = direction
        self.running = True
        self.timer = timer
        self.apply_palette_change()

    def fade_in(self) -> None:
        """Begin fading in from white or black."""
        self._start(FadeDirection.IN, 0)

    def fade_out(self) -> None:
        """Begin fading out to white or black."""
        self._start(FadeDirection.OUT, FADE_STEPS)

    def update(self) -> None:
        """Advance the current fade by one frame."""
        if not self.running:
            return
        if (self.frame & self.frames_per_step) == 0:
            if self.direction is FadeDirection.IN:
                self.timer += 1
                if self.timer == FADE_STEPS:
                    self.running = False
            else:
                self.timer -= 1
                if self.timer == 0:
                    self.running = False
            self.apply_palette_change()
        self.frame = (self.frame + 1) & 0xFF

    def apply_palette_change(self) -> None:
        """Recompute displayed colours for the current fade step."""
        if self.color:
            self._apply_color(self.timer)
        else:
            self._apply_dmg(self.timer)

    def _apply_dmg(self, index: int) -> None:
        if self.fade_style:
            self.obp0 = _OBJ_FADE_BLACK_VALS[index]
            self.bgp = _BGP_FADE_BLACK_VALS[index]
        else:
            self.obp0 = _OBJ_FADE_VALS[index]
            self.bgp = _BGP_FADE_VALS[index]

    def _apply_color(self, index: int) -> None:
        pal = self.palettes
        if index == FADE_STEPS:
            pal.bkg_buffer[:] = pal.bkg
            pal.spr_buffer[:] = pal.spr
        elif self.fade_style:
            pal.bkg_buffer[:] = [update_color_black(index, c) for c in pal.bkg]
            pal.spr_buffer[:] = [update_color_black(index, c) for c in pal.spr]
        else:
            level = desp_right(0x1F, index)
            white = rgb2(level, level, level)
            pal.bkg_buffer[:] = [c | white for c in pal.bkg]
            pal.spr_buffer[:] = [c | white for c in pal.spr]
        pal.dirty = True

    def set_speed(self, speed: int) -> None:
        """Choose how many frames each fade step lasts (0..6)."""
        if not 0 <= speed < len(FADE_SPEEDS):
            raise ValueError(f"fade speed out of range: {speed}")
        self.frames_per_step = FADE_SPEEDS[speed]

    def is_fading(self) -> bool:
        """Whether a fade is in progress."""
        return self.running