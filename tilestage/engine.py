"""The game loop: scene switching with fades and the per-frame update order."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Callable

from tilestage.actors import Actors
from tilestage.data import DataManager
from tilestage.inputs import InputState
from tilestage.mathutil import Pos, Vector2D
from tilestage.palette import Fader
from tilestage.projectiles import ProjectileSystem
from tilestage.scripts import MAX_SCRIPT_CONTEXTS, SceneState, ScriptRunner

__all__ = [
    "Camera",
    "Engine",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
    "SCREEN_WIDTH_HALF",
    "SCREEN_HEIGHT_HALF",
    "CAMERA_LOCK_FLAG",
    "CAMERA_TRANSITION_FLAG",
    "CAMERA_SPEED_MASK",
]

SCREEN_WIDTH = 160
SCREEN_HEIGHT = 144
SCREEN_WIDTH_HALF = 80
SCREEN_HEIGHT_HALF = 72

CAMERA_LOCK_FLAG = 0x10
CAMERA_TRANSITION_FLAG = 0x20
CAMERA_SPEED_MASK = 0xF

_FULL_PALETTE_MASK = 0x3F

StateHook = Callable[["Engine"], None]


@dataclass
class Camera:
    """Camera position, destination and follow settings."""

    pos: Pos = field(default_factory=Pos)
    dest: Pos = field(default_factory=Pos)
    offset: Vector2D = field(default_factory=Vector2D)
    deadzone: Vector2D = field(default_factory=Vector2D)
    settings: int = CAMERA_LOCK_FLAG
    speed: int = 0

    @property
    def locked(self) -> bool:
        """Whether the camera follows the player."""
        return bool(self.settings & CAMERA_LOCK_FLAG)


class Engine:
    """Drives scenes frame by frame.

    ``start_funcs`` and ``update_funcs`` map scene types to callables run
    when a scene of that type starts and on each frame no script blocks.
    """

    def __init__(
        self,
        data: DataManager,
        fader: Fader,
        inputs: InputState,
        runner: ScriptRunner,
        actors: Actors,
        projectiles: ProjectileSystem,
        start_scene: SceneState,
    ) -> None:
        self.data = data
        self.fader = fader
        self.inputs = inputs
        self.runner = runner
        self.actors = actors
        self.projectiles = projectiles
        self.camera = Camera()
        self.scroll_target: Pos | None = self.camera.pos
        self.scroll_x = 0
        self.scroll_y = 0
        self.start_funcs: dict[int, StateHook] = {}
        self.update_funcs: dict[int, StateHook] = {}
        self.rng = random.Random()
        self.seed_rand = 2
        self.frame_count = 0
        self.game_time = 0
        self.display_on = False
        self.state_running = False
        self.current_state = 0
        self.next_state = start_scene.scene_index

        player = actors.player
        player.sprite = 0
        player.moving = True
        player.frame = 0
        player.frames_len = 2
        player.direction = Vector2D(start_scene.player_dir.x, start_scene.player_dir.y)
        player.enabled = True
        data.next_pos = Pos(start_scene.player_pos.x, start_scene.player_pos.y)
        data.next_dir = Vector2D(start_scene.player_dir.x, start_scene.player_dir.y)
        data.scene_type = 0
        data.on_scene_reset = self._reset_scene_systems
        runner.pool_reset()

    def _reset_scene_systems(self) -> None:
        self.inputs.remove_input_scripts()
        self.projectiles.init()

    def set_scene(self, state: int) -> None:
        """Request a switch to scene ``state`` at the next step."""
        self.state_running = False
        self.next_state = state

    def _seed(self) -> None:
        if not self.seed_rand:
            return
        joy = self.inputs.joy
        if self.seed_rand == 2:
            if joy:
                self.seed_rand = 1
                self.rng.seed(self.frame_count * 256 + self.game_time)
        elif not joy:
            self.seed_rand = 0
            self.rng.seed(self.frame_count * 256 + self.game_time)

    def step(self, joy: int) -> None:
        """Run one frame with joypad byte ``joy``, or switch scene if one is pending."""
        if not self.state_running:
            self.switch_scene()
            return

        self.frame_count += 1
        self.inputs.poll(joy)
        self._seed()

        self.projectiles.update(self.game_time, self.scroll_x, self.scroll_y)

        ui_block = self.inputs.ui_block
        if not self.runner.main_running and not ui_block:
            update = self.update_funcs.get(self.data.scene_type)
            if update is not None:
                update(self)
            self.inputs.handle_input_scripts()

        self.runner.restore_ctx(0)
        if not ui_block:
            for i in range(1, MAX_SCRIPT_CONTEXTS):
                self.runner.restore_ctx(i)
            self.actors.run_collision_scripts()

        self.game_time = (self.game_time + 1) & 0xFF

    def _run_fade(self) -> None:
        while self.fader.is_fading():
            self.fader.update()

    def switch_scene(self) -> None:
        """Fade out, load the requested scene, run its start script and fade in."""
        self.fader.fade_out()
        self._run_fade()
        if not self.fader.fade_style:
            self.display_on = False

        self.state_running = True
        self.current_state = self.next_state

        self.camera.settings = CAMERA_LOCK_FLAG
        self.scroll_target = self.camera.pos
        self.runner.timer_duration = 0
        self.runner.call_stack.clear()
        if self.fader.color:
            self.data.palettes.update_mask = _FULL_PALETTE_MASK

        self.data.load_scene(self.current_state)

        start = self.start_funcs.get(self.data.scene_type)
        if start is not None:
            start(self)

        self.game_time = 0
        self.display_on = True
        self.fader.fade_in()

        self.runner.start(self.data.scene_events_start_ptr)
        self.runner.restore_ctx(0)

        self._run_fade()