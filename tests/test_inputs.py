import pytest

from tilestage.banks import BankedMemory, BankPtr
from tilestage.inputs import INPUT_WAIT_FRAMES, InputState, Joypad
from tilestage.scripts import ScriptCommand, ScriptRunner


def inc(runner, args):
    runner.variables[args[0]] += 1


A_SCRIPT = BankPtr(1, 0)
RIGHT_SCRIPT = BankPtr(1, 3)


def make_inputs():
    memory = BankedMemory({1: bytes([1, 3, 0, 1, 4, 0])})
    runner = ScriptRunner(memory, {1: ScriptCommand(inc, 1)})
    return InputState(runner), runner


def test_pressed_then_held():
    inputs, _ = make_inputs()
    inputs.poll(Joypad.A)
    assert inputs.pressed(Joypad.A)
    assert inputs.held(Joypad.A)
    inputs.poll(Joypad.A)
    assert not inputs.pressed(Joypad.A)
    assert inputs.held(Joypad.A)
    assert not inputs.held(Joypad.B)


def test_override_blocks_default_unless_ui_block():
    inputs, _ = make_inputs()
    inputs.set_input_script(4, A_SCRIPT, override=True)
    inputs.poll(Joypad.A)
    assert not inputs.held(Joypad.A)
    inputs.ui_block = True
    assert inputs.held(Joypad.A)


def test_start_cannot_be_overridden():
    inputs, _ = make_inputs()
    inputs.set_input_script(7, A_SCRIPT, override=True)
    inputs.poll(Joypad.START)
    assert inputs.pressed(Joypad.START)


def test_recent_direction():
    inputs, _ = make_inputs()
    inputs.poll(Joypad.UP)
    assert inputs.recent(Joypad.UP)
    inputs.poll(Joypad.UP | Joypad.LEFT)
    assert inputs.recent(Joypad.LEFT)
    assert not inputs.recent(Joypad.UP)
    with pytest.raises(ValueError):
        inputs.recent(Joypad.A)


def test_input_script_runs_on_press():
    inputs, runner = make_inputs()
    inputs.set_input_script(4, A_SCRIPT)
    inputs.poll(Joypad.A)
    inputs.handle_input_scripts()
    assert runner.variables[3] == 1


def test_lowest_button_wins():
    inputs, runner = make_inputs()
    inputs.set_input_script(4, A_SCRIPT)
    inputs.set_input_script(0, RIGHT_SCRIPT)
    inputs.poll(Joypad.A | Joypad.RIGHT)
    inputs.handle_input_scripts()
    assert runner.variables[4] == 1
    assert runner.variables[3] == 0


def test_wait_after_trigger():
    inputs, runner = make_inputs()
    inputs.set_input_script(4, A_SCRIPT)
    inputs.poll(Joypad.A)
    inputs.handle_input_scripts()
    for _ in range(INPUT_WAIT_FRAMES):
        inputs.poll(0)
        inputs.poll(Joypad.A)
        inputs.handle_input_scripts()
    assert runner.variables[3] == 1
    inputs.poll(0)
    inputs.poll(Joypad.A)
    inputs.handle_input_scripts()
    assert runner.variables[3] == 2


def test_main_script_blocks_input_scripts():
    inputs, runner = make_inputs()
    inputs.set_input_script(4, A_SCRIPT)
    runner.start(RIGHT_SCRIPT)
    inputs.poll(Joypad.A)
    inputs.handle_input_scripts()
    assert runner.variables[3] == 0


def test_remove_keeps_persistent_scripts():
    inputs, _ = make_inputs()
    inputs.set_input_script(0, RIGHT_SCRIPT, persist=True, override=True)
    inputs.set_input_script(4, A_SCRIPT, override=True)
    inputs.remove_input_scripts()
    assert inputs.script_ptrs[4].bank == 0
    assert inputs.script_ptrs[0] == RIGHT_SCRIPT
    assert inputs.allow_default(Joypad.A)
    assert not inputs.allow_default(Joypad.RIGHT)


def test_bad_input_index():
    inputs, _ = make_inputs()
    with pytest.raises(ValueError):
        inputs.set_input_script(8, A_SCRIPT)