"""Projectiles: weapon attacks pinned to actors and launched shots."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from tilestage.actors import NO_ACTOR_COLLISION, Actors
from tilestage.mathutil import Pos, Vector2D, is_frame
from tilestage.scripts import ScriptRunner
from tilestage.sprites import SpriteInfo, SpritePool, SpriteType

__all__ = [
    "Projectile",
    "SpriteAttr",
    "ProjectileSystem",
    "MAX_PROJECTILES",
    "NO_ACTOR_PINNED",
    "WEAPON_LIFE_TIME",
]

MAX_PROJECTILES = 5
NO_ACTOR_PINNED = 255
WEAPON_LIFE_TIME = 30

_SCREEN_WIDTH_PLUS_64 = 224
_SCREEN_HEIGHT_PLUS_64 = 208
_HIT_SIZE_X = 12
_HIT_SIZE_Y = 8


@dataclass
class Projectile:
    """State of one projectile slot."""

    pos: Pos = field(default_factory=Pos)
    vel: Vector2D = field(default_factory=Vector2D)
    direction: Vector2D = field(default_factory=Vector2D)
    moving: bool = False
    pin_actor: int = NO_ACTOR_PINNED
    pin_offset: int = 0
    sprite: int = 0
    palette_index: int = 0
    sprite_type: SpriteType = SpriteType.STATIC
    frame: int = 0
    frames_len: int = 0
    animate: bool = False
    move_speed: int = 0
    sprite_index: int = 0
    time: int = 0
    life_time: int = 0
    col_group: int = 0
    col_mask: int = 0

    @property
    def alive(self) -> bool:
        """Whether the projectile is in flight."""
        return self.life_time != 0

    @property
    def pinned(self) -> bool:
        """Whether the projectile follows an actor."""
        return self.pin_actor != NO_ACTOR_PINNED


@dataclass
class SpriteAttr:
    """Tile, attributes and screen position of one hardware sprite."""

    tile: int = 0
    x: int = 0
    y: int = 0
    flip_x: bool = False
    palette: int = 0


class ProjectileSystem:
    """Creates, animates, moves and collides the projectiles of a scene."""

    def __init__(
        self,
        actors: Actors,
        sprites: SpritePool,
        sprites_info: Sequence[SpriteInfo],
        runner: ScriptRunner,
    ) -> None:
        self.actors = actors
        self.sprites = sprites
        self.sprites_info = sprites_info
        self.runner = runner
        self.projectiles = [Projectile() for _ in range(MAX_PROJECTILES)]
        self.current = 0
        self.oam: dict[int, SpriteAttr] = {}

    def __getitem__(self, i: int) -> Projectile:
        return self.projectiles[i]

    def __len__(self) -> int:
        return len(self.projectiles)

    def init(self) -> None:
        """Give every projectile a sprite slot and mark all of them unused."""
        for projectile in self.projectiles:
            projectile.sprite_index = self.sprites.next()
            projectile.life_time = 0

    def _advance(self) -> None:
        self.current = (self.current + 1) % MAX_PROJECTILES

    def _apply_sprite(self, projectile: Projectile, sprite: int) -> None:
        info = self.sprites_info[sprite]
        projectile.sprite = info.sprite_offset
        projectile.sprite_type = info.sprite_type
        projectile.frames_len = info.frames_len

    def _pin_position(self, projectile: Projectile) -> None:
        actor = self.actors[projectile.pin_actor]
        if actor.direction.y == 0:
            projectile.pos = Pos(
                actor.pos.x + projectile.pin_offset * actor.direction.x, actor.pos.y
            )
        else:
            projectile.pos = Pos(
                actor.pos.x, actor.pos.y + projectile.pin_offset * actor.direction.y
            )

    def weapon_attack(
        self,
        sprite: int,
        palette: int,
        actor: int,
        offset: int,
        col_group: int,
        col_mask: int,
    ) -> None:
        """Place an attack sprite ``offset`` pixels in front of ``actor``.

        Nothing is created if the next slot is still in use; the slot
        cursor moves on either way.
        """
        projectile = self.projectiles[self.current]
        if projectile.life_time == 0:
            source = self.actors[actor]
            projectile.moving = False
            projectile.direction = Vector2D(source.direction.x, source.direction.y)
            projectile.pin_actor = actor
            projectile.pin_offset = offset
            self._pin_position(projectile)
            projectile.move_speed = 0
            projectile.life_time = WEAPON_LIFE_TIME
            projectile.col_group = col_group
            projectile.col_mask = col_mask
            projectile.time = 1
            projectile.frame = 0
            projectile.palette_index = palette
            self._apply_sprite(projectile, sprite)
        self._advance()

    def launch(
        self,
        sprite: int,
        palette: int,
        x: int,
        y: int,
        dir_x: int,
        dir_y: int,
        moving: bool,
        move_speed: int,
        life_time: int,
        col_group: int,
        col_mask: int,
    ) -> None:
        """Launch a free-flying projectile from (x, y).

        Nothing is created if the next slot is still in use; the slot
        cursor moves on either way.
        """
        projectile = self.projectiles[self.current]
        if projectile.life_time == 0:
            projectile.pin_actor = NO_ACTOR_PINNED
            projectile.moving = bool(moving)
            projectile.pos = Pos(x, y)
            projectile.direction = Vector2D(dir_x, dir_y)
            projectile.move_speed = move_speed
            projectile.life_time = life_time
            projectile.col_group = col_group
            projectile.col_mask = col_mask
            projectile.time = 1
            projectile.frame = 0
            projectile.palette_index = palette
            self._apply_sprite(projectile, sprite)
        self._advance()

    def _set_sprite(self, k: int, **attrs) -> None:
        self.oam.setdefault(k, SpriteAttr()).__dict__.update(attrs)

    def _hit_actor(self, projectile: Projectile) -> int:
        hit = NO_ACTOR_COLLISION
        for a in self.actors.active:
            actor = self.actors[a]
            if not actor.enabled or not actor.collisions_enabled:
                continue
            if not actor.collision_group & projectile.col_mask:
                continue
            if (
                projectile.pos.x + _HIT_SIZE_X >= actor.pos.x
                and projectile.pos.x <= actor.pos.x + _HIT_SIZE_X
                and projectile.pos.y + _HIT_SIZE_Y >= actor.pos.y
                and projectile.pos.y <= actor.pos.y + _HIT_SIZE_Y
            ):
                hit = a
        return hit

    def _on_hit(self, projectile: Projectile, hit: int) -> None:
        if not projectile.pinned:
            projectile.life_time = 0
        actor = self.actors[hit]
        ptr = {2: actor.hit_1_ptr, 4: actor.hit_2_ptr, 8: actor.hit_3_ptr}.get(
            projectile.col_group
        )
        if ptr is not None and ptr.bank:
            projectile.col_group = 0
            self.runner.start_bg(ptr, hit)

    def _animate(self, projectile: Projectile) -> None:
        if (projectile.time & 0x3) == 0:
            projectile.frame += 1
        if projectile.frame == projectile.frames_len:
            if projectile.pinned:
                projectile.life_time = 1
                projectile.frame -= 1
            else:
                projectile.frame = 0

    def _draw(self, projectile: Projectile, scroll_x: int, scroll_y: int) -> tuple[int, int]:
        fo = 0
        animated = projectile.sprite_type == SpriteType.ACTOR_ANIMATED
        if projectile.sprite_type != SpriteType.STATIC:
            if projectile.direction.y < 0:
                fo = 1 + animated
            elif projectile.direction.y == 0 and projectile.direction.x != 0:
                fo = 2 + 2 * animated
        flip = projectile.direction.x < 0
        tile = (4 * (projectile.sprite + projectile.frame + fo)) & 0xFF
        left, right = ((tile + 2) & 0xFF, tile) if flip else (tile, (tile + 2) & 0xFF)

        screen_x = (8 + projectile.pos.x - scroll_x) & 0xFFFF
        screen_y = (8 + projectile.pos.y - scroll_y) & 0xFFFF
        k = projectile.sprite_index
        common = {"flip_x": flip, "palette": projectile.palette_index}
        self._set_sprite(k, tile=left, x=screen_x & 0xFF, y=screen_y & 0xFF, **common)
        self._set_sprite(
            k + 1, tile=right, x=(screen_x + 8) & 0xFF, y=screen_y & 0xFF, **common
        )
        return screen_x, screen_y

    def _move(self, projectile: Projectile, game_time: int) -> None:
        if not projectile.pinned:
            if not projectile.moving:
                return
            step = projectile.move_speed
            if step == 0:
                # Half speed: move only on every other frame.
                if not is_frame(game_time, 2):
                    return
                step = 1
            projectile.pos = Pos(
                projectile.pos.x + projectile.direction.x * step,
                projectile.pos.y + projectile.direction.y * step,
            )
            return
        actor = self.actors[projectile.pin_actor]
        if actor.direction != projectile.direction:
            projectile.life_time = 0
        else:
            self._pin_position(projectile)

    def update(self, game_time: int, scroll_x: int, scroll_y: int) -> None:
        """Advance every projectile by one frame."""
        for projectile in self.projectiles:
            k = projectile.sprite_index
            if projectile.life_time == 0:
                self._set_sprite(k, x=0, y=0)
                self._set_sprite(k + 1, x=0, y=0)
                continue

            hit = self._hit_actor(projectile)
            if hit != NO_ACTOR_COLLISION:
                self._on_hit(projectile, hit)

            self._animate(projectile)
            screen_x, screen_y = self._draw(projectile, scroll_x, scroll_y)

            if is_frame(game_time, 4):
                if ((screen_x + 32) & 0xFFFF) >= _SCREEN_WIDTH_PLUS_64 or (
                    (screen_y + 32) & 0xFFFF
                ) >= _SCREEN_HEIGHT_PLUS_64:
                    projectile.life_time = 0
                elif projectile.life_time:
                    projectile.life_time -= 1

            self._move(projectile, game_time)
            projectile.time = (projectile.time + 1) & 0xFF