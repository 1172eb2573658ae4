"""Scene actors, the active-actor set, tile hit tests and collision scripts."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum

from tilestage.banks import BankPtr
from tilestage.collision import CollisionMap
from tilestage.mathutil import Pos, Vector2D
from tilestage.scripts import ScriptRunner
from tilestage.sprites import SpritePool, SpriteType

__all__ = [
    "Actor",
    "CheckDir",
    "Actors",
    "MAX_ACTORS",
    "MAX_ACTIVE_ACTORS",
    "ACTOR_MOVE_ENABLED",
    "ACTOR_NOCLIP",
    "ACTOR_MIN_X",
    "ACTOR_MIN_Y",
    "NO_ACTOR_COLLISION",
    "PLAYER_IFRAMES",
    "MAX_PLAYER_FRAMES",
]

MAX_ACTORS = 31
MAX_ACTIVE_ACTORS = 11
ACTOR_MOVE_ENABLED = 0x80
ACTOR_NOCLIP = 0x40
ACTOR_MIN_X = 0
ACTOR_MIN_Y = 8
NO_ACTOR_COLLISION = 0xFF
PLAYER_IFRAMES = 10
MAX_PLAYER_FRAMES = 6

_PLAYER_PALETTE = 0x7


class CheckDir(IntEnum):
    """Direction of a collision sweep."""

    LEFT = 1
    RIGHT = 2
    UP = 3
    DOWN = 4


@dataclass
class Actor:
    """One scene actor; index 0 is always the player."""

    pos: Pos = field(default_factory=Pos)
    move_speed: int = 0
    direction: Vector2D = field(default_factory=Vector2D)
    moving: bool = False
    sprite: int = 0
    sprite_index: int = 0
    palette_index: int = 0
    start_pos: Pos = field(default_factory=Pos)
    frame: int = 0
    frames_len: int = 0
    animate: bool = False
    enabled: bool = False
    frame_offset: int = 0
    rerender: bool = False
    anim_speed: int = 0
    pinned: bool = False
    collisions_enabled: bool = False
    collision_group: int = 0
    sprite_type: SpriteType = SpriteType.STATIC
    hit_actor: int = NO_ACTOR_COLLISION
    script_control: bool = False
    script_ptr: int = 0
    events_ptr: BankPtr = field(default_factory=BankPtr)
    movement_ptr: BankPtr = field(default_factory=BankPtr)
    hit_1_ptr: BankPtr = field(default_factory=BankPtr)
    hit_2_ptr: BankPtr = field(default_factory=BankPtr)
    hit_3_ptr: BankPtr = field(default_factory=BankPtr)
    movement_ctx: int = 0

    @property
    def tile_x(self) -> int:
        """Column of the tile the actor's left edge is in."""
        return (self.pos.x >> 3) & 0xFF

    @property
    def tile_y(self) -> int:
        """Row of the tile the actor's top edge is in."""
        return (self.pos.y >> 3) & 0xFF

    @property
    def on_tile_x(self) -> bool:
        """Whether the actor is aligned to the tile grid horizontally."""
        return (self.pos.x & 7) == 0

    @property
    def on_tile_y(self) -> bool:
        """Whether the actor is aligned to the tile grid vertically."""
        return (self.pos.y & 7) == 0

    @property
    def on_tile(self) -> bool:
        """Whether the actor is aligned to the tile grid on both axes."""
        return self.on_tile_x and self.on_tile_y


class Actors:
    """All actors of a scene and the subset that is currently active."""

    def __init__(
        self,
        runner: ScriptRunner,
        sprites: SpritePool,
        collision: CollisionMap | None = None,
    ) -> None:
        self.runner = runner
        self.sprites = sprites
        self.collision = collision
        self.actors = [Actor() for _ in range(MAX_ACTORS)]
        # The player always occupies the first active slot.
        self.active: list[int] = [0]
        self.player_iframes = 0
        runner.on_main_start = self._stop_player

    def _stop_player(self) -> None:
        self.player.moving = False

    @property
    def player(self) -> Actor:
        """The player actor."""
        return self.actors[0]

    def __getitem__(self, i: int) -> Actor:
        return self.actors[i]

    def __len__(self) -> int:
        return len(self.actors)

    # Activation -----------------------------------------------------------

    def activate(self, i: int) -> None:
        """Make actor ``i`` active, giving it a sprite and starting its movement script."""
        if len(self.active) >= MAX_ACTIVE_ACTORS:
            return
        actor = self.actors[i]
        if not actor.enabled or i in self.active:
            return
        self.active.append(i)
        actor.sprite_index = self.sprites.next()
        actor.frame_offset = 0
        actor.rerender = True
        actor.moving = False
        actor.script_control = False
        if actor.movement_ptr.bank and actor.enabled:
            actor.movement_ctx = self.runner.start_bg(actor.movement_ptr, i)
        else:
            actor.movement_ctx = 0

    def _release(self, slot: int) -> None:
        a = self.active[slot]
        actor = self.actors[a]
        self.sprites.release(actor.sprite_index)
        actor.sprite_index = 0
        if actor.movement_ctx:
            self.runner.pool_return(actor.movement_ctx, a)
        last = self.active.pop()
        if slot < len(self.active):
            self.active[slot] = last

    def deactivate(self, i: int) -> None:
        """Deactivate actor ``i``; the player is never deactivated."""
        try:
            slot = self.active.index(i)
        except ValueError:
            return
        if slot:
            self._release(slot)

    def deactivate_active(self, i: int) -> None:
        """Deactivate the actor in active slot ``i``, unless it is the player."""
        if not 0 <= i < len(self.active):
            return
        if self.active[i] == 0:
            return
        self._release(i)

    # Tile hit tests ---------------------------------------------------------

    def _find(self, tx: int, ty: int, inc_noclip: bool, dxs, dys) -> int:
        tx &= 0xFF
        ty &= 0xFF
        for a in reversed(self.active):
            actor = self.actors[a]
            if not actor.enabled or (not inc_noclip and not actor.collisions_enabled):
                continue
            if (ty - actor.tile_y) in dys and (tx - actor.tile_x) in dxs:
                return a
        return NO_ACTOR_COLLISION

    def actor_at_tile(self, tx: int, ty: int, inc_noclip: bool) -> int:
        """Active actor whose 3x2 area around its tile holds tile (tx, ty)."""
        return self._find(tx, ty, inc_noclip, (-1, 0, 1), (0, 1))

    def actor_at_1x2_tile(self, tx: int, ty: int, inc_noclip: bool) -> int:
        """Active actor hit by a 1 wide, 2 high area whose top tile is (tx, ty)."""
        return self._find(tx, ty, inc_noclip, (0,), (0, -1))

    def actor_at_1x3_tile(self, tx: int, ty: int, inc_noclip: bool) -> int:
        """Active actor hit by a 1 wide, 3 high area whose top tile is (tx, ty)."""
        return self._find(tx, ty, inc_noclip, (0,), (0, -1, -2))

    def actor_at_3x1_tile(self, tx: int, ty: int, inc_noclip: bool) -> int:
        """Active actor hit by a 3 wide, 1 high area centred on (tx, ty)."""
        return self._find(tx, ty, inc_noclip, (-1, 0, 1), (0,))

    def actor_at_2x3_tile(self, tx: int, ty: int, inc_noclip: bool) -> int:
        """Active actor hit by a 2 wide, 3 high area whose top left tile is (tx, ty)."""
        return self._find(tx, ty, inc_noclip, (0, -1), (0, -1, -2))

    def actor_at_3x3_tile(self, tx: int, ty: int, inc_noclip: bool) -> int:
        """Active actor hit by a 3 wide, 3 high area whose top left tile is (tx, ty)."""
        return self._find(tx, ty, inc_noclip, (0, -1, -2), (0, -1, -2))

    def overlaps_player(self, inc_noclip: bool) -> int:
        """Active actor whose bounding box overlaps the player's."""
        player = self.player
        for a in reversed(self.active):
            actor = self.actors[a]
            if not actor.enabled or (not inc_noclip and not actor.collisions_enabled):
                continue
            if (
                player.pos.x + 15 >= actor.pos.x
                and player.pos.x <= actor.pos.x + 15
                and player.pos.y + 7 >= actor.pos.y
                and player.pos.y <= actor.pos.y + 7
            ):
                return a
        return NO_ACTOR_COLLISION

    def in_front_of_player(self, grid_size: int, inc_noclip: bool) -> int:
        """Actor directly ahead of the player on an 8 or 16 pixel grid."""
        player = self.player
        tile_x, tile_y = player.tile_x, player.tile_y
        dx, dy = player.direction.x, player.direction.y
        hit = 0
        if grid_size == 16:
            if dy == -1:
                hit = self.actor_at_3x3_tile(tile_x - 1, tile_y - 3, inc_noclip)
            elif dy == 1:
                hit = self.actor_at_3x3_tile(tile_x - 1, tile_y + 1, inc_noclip)
            elif dx == -1:
                hit = self.actor_at_3x3_tile(tile_x - 3, tile_y - 1, inc_noclip)
            elif dx == 1:
                hit = self.actor_at_3x3_tile(tile_x + 1, tile_y - 1, inc_noclip)
        else:
            if dy == -1:
                hit = self.actor_at_3x1_tile(tile_x, tile_y - 1, inc_noclip)
            elif dy == 1:
                hit = self.actor_at_3x1_tile(tile_x, tile_y + 2, inc_noclip)
            elif dx == -1:
                hit = self.actor_at_1x2_tile(tile_x - 2, tile_y, inc_noclip)
            elif dx == 1:
                hit = self.actor_at_1x2_tile(tile_x + 2, tile_y, inc_noclip)
        return NO_ACTOR_COLLISION if hit == 0 else hit

    def in_front_of_actor(self, i: int) -> int:
        """Actor directly ahead of actor ``i`` in its facing direction."""
        actor = self.actors[i]
        tile_x, tile_y = actor.tile_x, actor.tile_y
        dx, dy = actor.direction.x, actor.direction.y
        hit = 0
        if dy == -1:
            hit = self.actor_at_3x1_tile(tile_x, tile_y - 1, True)
        elif dy == 1:
            hit = self.actor_at_3x1_tile(tile_x, tile_y + 2, True)
        elif dx == -1:
            hit = self.actor_at_1x2_tile(tile_x - 2, tile_y, True)
        elif dx == 1:
            hit = self.actor_at_1x2_tile(tile_x + 2, tile_y, True)
        return NO_ACTOR_COLLISION if hit == i else hit

    def check_collision_in_direction(
        self, start_x: int, start_y: int, end_tile: int, check_dir: int
    ) -> int:
        """Sweep from a tile towards ``end_tile`` and return the last free tile."""
        if self.collision is None:
            raise RuntimeError("no collision map loaded")
        tiles = self.collision
        x, y, end = start_x & 0xFF, start_y & 0xFF, end_tile & 0xFF
        if check_dir == CheckDir.LEFT:
            while x != end:
                if tiles.tile_at_2x2(x - 1, y - 1) or (
                    self.actor_at_1x3_tile(x - 2, y - 1, False) != NO_ACTOR_COLLISION
                ):
                    return x
                x = (x - 1) & 0xFF
        elif check_dir == CheckDir.RIGHT:
            while x != end:
                if tiles.tile_at_2x2(x + 1, y - 1) or (
                    self.actor_at_1x3_tile(x + 2, y - 1, False) != NO_ACTOR_COLLISION
                ):
                    return x
                x = (x + 1) & 0xFF
        elif check_dir == CheckDir.UP:
            while y != end:
                if tiles.tile_at_2x2(x, y - 2) or (
                    self.actor_at_3x1_tile(x, y - 2, False) != NO_ACTOR_COLLISION
                ):
                    return y
                y = (y - 1) & 0xFF
        elif check_dir == CheckDir.DOWN:
            while y != end:
                if (
                    tiles.tile_at_2x2(x, y)
                    or self.actor_at_3x1_tile(x, y + 1, False) != NO_ACTOR_COLLISION
                    or self.actor_at_3x1_tile(x, y + 2, False) != NO_ACTOR_COLLISION
                ):
                    return y
                y = (y + 1) & 0xFF
        return end

    # Player and scripts -----------------------------------------------------

    def init_player(self, sprite_frames: int, pos: Pos, direction: Vector2D) -> None:
        """Prepare the player for a new scene with a sprite of ``sprite_frames`` frames."""
        player = self.player
        player.enabled = True
        player.moving = False
        player.palette_index = _PLAYER_PALETTE
        player.collisions_enabled = True
        player.collision_group = 1
        player.pos = Pos(pos.x, pos.y)
        player.start_pos = Pos(pos.x, pos.y)
        player.direction = Vector2D(direction.x, direction.y)
        if sprite_frames > MAX_PLAYER_FRAMES:
            # Larger sheets would spill into the scene actors' sprite memory.
            player.sprite_type = SpriteType.STATIC
            player.frames_len = MAX_PLAYER_FRAMES
        elif sprite_frames == 6:
            player.sprite_type = SpriteType.ACTOR_ANIMATED
            player.frames_len = 2
        elif sprite_frames == 3:
            player.sprite_type = SpriteType.ACTOR
            player.frames_len = 1
        else:
            player.sprite_type = SpriteType.STATIC
            player.frames_len = sprite_frames
        player.sprite_index = self.sprites.next()
        player.rerender = True
        player.animate = False
        player.hit_actor = NO_ACTOR_COLLISION
        player.script_control = False

    def run_script(self, i: int) -> None:
        """Run actor ``i``'s interaction script on the main context."""
        self.runner.main_ctx_actor = i
        self.actors[i].moving = False
        self.runner.start(self.actors[i].events_ptr)

    def run_collision_scripts(self) -> None:
        """Start hit scripts for an actor the player touched, then grant invulnerability."""
        player = self.player
        if self.player_iframes == 0 and player.hit_actor != NO_ACTOR_COLLISION:
            hit = player.hit_actor
            actor = self.actors[hit]
            if actor.collision_group:
                player_ptr = {
                    2: player.hit_1_ptr,
                    4: player.hit_2_ptr,
                    8: player.hit_3_ptr,
                }.get(actor.collision_group)
                if player_ptr is not None:
                    if player_ptr.bank:
                        self.runner.start_bg(player_ptr, 0)
                    if actor.events_ptr.bank:
                        self.runner.start_bg(actor.events_ptr, hit)
                self.player_iframes = PLAYER_IFRAMES
                player.hit_actor = NO_ACTOR_COLLISION
        elif self.player_iframes != 0:
            self.player_iframes -= 1