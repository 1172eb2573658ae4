"""Music track selection and simple sound effects on the sound registers."""

from __future__ import annotations

from typing import Any, Sequence

__all__ = ["MusicManager", "NO_MUSIC", "SOUND_REGISTERS"]

NO_MUSIC = 255
SOUND_REGISTERS = (
    "NR10", "NR11", "NR12", "NR13", "NR14",
    "NR41", "NR42", "NR43", "NR44",
    "NR50", "NR51", "NR52",
)


class MusicManager:
    """Plays music tracks and writes tone, beep and crash effects to sound registers."""

    def __init__(self, tracks: Sequence[Any]) -> None:
        self.tracks = tracks
        self.current_index = NO_MUSIC
        self.track: Any = None
        self.loop = False
        self.playing = False
        self.tone_frames = 0
        self.registers = dict.fromkeys(SOUND_REGISTERS, 0)

    def play(self, index: int, loop: bool) -> None:
        """Play track ``index``; does nothing if it is already the current track."""
        if index == self.current_index:
            return
        if not 0 <= index < min(len(self.tracks), NO_MUSIC):
            raise IndexError(f"no music track {index}")
        self.current_index = index
        self.track = self.tracks[index]
        self.loop = bool(loop)
        self.playing = True

    def stop(self) -> None:
        """Stop the current music."""
        self.playing = False
        self.track = None
        self.current_index = NO_MUSIC

    def update(self) -> None:
        """Advance one tick, ending a timed tone when its frames run out."""
        if self.tone_frames != 0:
            self.tone_frames -= 1
            if self.tone_frames == 0:
                self.stop_tone()

    def _enable(self, channel_bits: int) -> None:
        self.registers["NR50"] = 0x77
        self.registers["NR51"] |= channel_bits

    def play_tone(self, tone: int, frames: int) -> None:
        """Play a square-wave tone on channel 1 for ``frames`` ticks (0 plays on)."""
        self.tone_frames = frames
        regs = self.registers
        regs["NR52"] = 0x80
        regs["NR10"] = 0x00
        regs["NR11"] = 0x01
        regs["NR12"] = 0x0F << 4
        regs["NR13"] = tone & 0x00FF
        regs["NR14"] = 0x80 | ((tone & 0x0700) >> 8)
        self._enable(0x11)

    def stop_tone(self) -> None:
        """Silence the channel 1 tone."""
        self.registers["NR12"] = 0x00

    def play_beep(self, pitch: int) -> None:
        """Play a short noise beep on channel 4."""
        regs = self.registers
        regs["NR52"] = 0x80
        regs["NR41"] = 0x01
        regs["NR42"] = 0x0F << 4
        regs["NR43"] = 0x20 | 0x08 | pitch
        regs["NR44"] = 0x80 | 0x40
        self._enable(0x88)

    def play_crash(self) -> None:
        """Play a crash noise on channel 4."""
        regs = self.registers
        regs["NR52"] = 0x80
        regs["NR41"] = 0x01
        regs["NR42"] = (0x0F << 4) | 0x02
        regs["NR43"] = 0x13
        regs["NR44"] = 0x80
        self._enable(0x88)