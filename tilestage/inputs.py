"""Joypad state, default-input overrides and input-triggered scripts."""

from __future__ import annotations

from enum import IntFlag

from tilestage.banks import BankPtr
from tilestage.mathutil import get_bit, set_bit, unset_bit
from tilestage.scripts import ScriptRunner

__all__ = ["Joypad", "InputState", "NUM_INPUTS", "INPUT_DPAD", "INPUT_SCRIPT_OWNER", "INPUT_WAIT_FRAMES"]

NUM_INPUTS = 8
INPUT_DPAD = 0xF
INPUT_SCRIPT_OWNER = 255
INPUT_WAIT_FRAMES = 10


class Joypad(IntFlag):
    """Joypad buttons as bits of the joypad byte."""

    RIGHT = 0x01
    LEFT = 0x02
    UP = 0x04
    DOWN = 0x08
    A = 0x10
    B = 0x20
    SELECT = 0x40
    START = 0x80


_OVERRIDABLE = Joypad.RIGHT | Joypad.LEFT | Joypad.UP | Joypad.DOWN | Joypad.A | Joypad.B


def _single(button: int) -> int:
    button = int(button)
    if button <= 0 or button & (button - 1) or button > 0xFF:
        raise ValueError(f"expected a single button, got {button:#x}")
    return button


class InputState:
    """Tracks the joypad between frames and starts scripts bound to buttons."""

    def __init__(self, runner: ScriptRunner) -> None:
        self.runner = runner
        self.joy = 0
        self.last_joy = 0
        self.recent_joy = 0
        self.await_input = False
        self.input_wait = 0
        self.ui_block = False
        self.script_ptrs = [BankPtr() for _ in range(NUM_INPUTS)]
        self.persist = 0
        self.override_default = 0

    def poll(self, joy: int) -> None:
        """Record the joypad byte read this frame."""
        self.last_joy = self.joy
        self.joy = int(joy) & 0xFF
        if (self.joy & INPUT_DPAD) != (self.last_joy & INPUT_DPAD):
            self.recent_joy = self.joy & ~self.last_joy & 0xFF

    def allow_default(self, button: int) -> bool:
        """Whether the engine's own handling of ``button`` is enabled."""
        button = _single(button)
        if not button & _OVERRIDABLE:
            return True
        return self.ui_block or not get_bit(self.override_default, button.bit_length() - 1)

    def held(self, button: int) -> bool:
        """Whether ``button`` is down this frame."""
        return self.allow_default(button) and bool(self.joy & button)

    def pressed(self, button: int) -> bool:
        """Whether ``button`` went down this frame."""
        return (
            self.allow_default(button)
            and bool(self.joy & button)
            and not self.last_joy & button
        )

    def recent(self, button: int) -> bool:
        """Whether a direction is the most recently pressed one, or held when none is."""
        button = _single(button)
        if not button & INPUT_DPAD:
            raise ValueError("only directions have a most recent press")
        return self.allow_default(button) and (
            bool(self.recent_joy & button) or (not self.recent_joy and bool(self.joy & button))
        )

    def set_input_script(
        self, index: int, ptr: BankPtr, persist: bool = False, override: bool = False
    ) -> None:
        """Bind a script to the button at bit ``index``."""
        if not 0 <= index < NUM_INPUTS:
            raise ValueError(f"input index out of range: {index}")
        self.script_ptrs[index] = ptr
        if persist:
            self.persist = set_bit(self.persist, index)
        else:
            self.persist = unset_bit(self.persist, index)
        if override:
            self.override_default = set_bit(self.override_default, index)
        else:
            self.override_default = unset_bit(self.override_default, index)

    def handle_input_scripts(self) -> None:
        """Start the script of the lowest newly held button that has one."""
        if self.input_wait != 0:
            self.input_wait -= 1
            return
        if self.runner.main_running or self.joy == 0 or self.joy == self.last_joy:
            return
        for index, ptr in enumerate(self.script_ptrs):
            if get_bit(self.joy, index) and ptr.bank:
                self.last_joy = self.joy
                self.input_wait = INPUT_WAIT_FRAMES
                self.runner.start_bg(ptr, INPUT_SCRIPT_OWNER)
                return

    def remove_input_scripts(self) -> None:
        """Unbind every script that is not marked persistent."""
        for index in range(NUM_INPUTS):
            if not get_bit(self.persist, index):
                self.script_ptrs[index] = BankPtr(0, self.script_ptrs[index].offset)
                self.override_default = unset_bit(self.override_default, index)