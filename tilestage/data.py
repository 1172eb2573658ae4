"""Scene, image, palette and sprite data stored in banked memory, and its loader."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import Callable, Mapping, Sequence

from tilestage.actors import MAX_ACTORS, Actor, Actors
from tilestage.banks import BankedMemory, BankPtr
from tilestage.collision import CollisionMap
from tilestage.mathutil import Pos, Vector2D
from tilestage.palette import PLAYER_PALETTE_OFFSET, UI_PALETTE_OFFSET, Palettes
from tilestage.scripts import ScriptRunner
from tilestage.sprites import MAX_FRAMES, SpriteInfo, SpritePool, SpriteType

__all__ = [
    "Trigger",
    "ActorSpec",
    "SceneData",
    "ImageHeader",
    "DataManager",
    "parse_scene",
    "parse_image",
    "sprite_load_sizes",
    "sprite_info_for",
    "direction_from_byte",
    "MAX_TRIGGERS",
    "MAX_ACTIVE_TRIGGERS",
    "NO_TRIGGER_COLLISION",
    "MAX_PLAYER_SPRITE_SIZE",
    "FIRST_SCENE_SPRITE_TILE",
    "TILE_BYTES",
    "SCENE_HEADER_SIZE",
    "ACTOR_RECORD_SIZE",
    "TRIGGER_RECORD_SIZE",
]

MAX_TRIGGERS = 31
MAX_ACTIVE_TRIGGERS = 11
NO_TRIGGER_COLLISION = 0xFF
MAX_PLAYER_SPRITE_SIZE = 24
FIRST_SCENE_SPRITE_TILE = 24
TILE_BYTES = 16
VRAM_TILES = 256
SCREEN_WIDTH = 160
SCREEN_HEIGHT = 144

SCENE_HEADER_SIZE = 13
SPRITE_RECORD_SIZE = 2
ACTOR_RECORD_SIZE = 26
TRIGGER_RECORD_SIZE = 8
PLAYER_HITS_SIZE = 9
IMAGE_HEADER_SIZE = 3

_FULL_PALETTE_MASK = 0x3F
_PALETTE_BYTES = 8
_BKG_PALETTE_BYTES = 48
_SPR_PALETTE_BYTES = 56


@dataclass(frozen=True)
class Trigger:
    """A rectangular tile area that runs a script when entered."""

    x: int
    y: int
    w: int
    h: int
    events_ptr: BankPtr = field(default_factory=BankPtr)


@dataclass(frozen=True)
class ActorSpec:
    """An actor as described in scene data."""

    sprite: int
    palette_index: int
    sprite_type: SpriteType
    frames_len: int
    frame: int
    animate: bool
    x: int
    y: int
    direction: Vector2D
    move_speed: int
    anim_speed: int
    pinned: bool
    collision_group: int
    events_ptr: BankPtr
    movement_ptr: BankPtr
    hit_1_ptr: BankPtr
    hit_2_ptr: BankPtr
    hit_3_ptr: BankPtr


@dataclass(frozen=True)
class SceneData:
    """A parsed scene record."""

    image_index: int
    palette_index: int
    sprite_palette_index: int
    scene_type: int
    sprite_indices: tuple[int, ...]
    actors: tuple[ActorSpec, ...]
    triggers: tuple[Trigger, ...]
    events_start: BankPtr
    player_hit_ptrs: tuple[BankPtr, BankPtr, BankPtr]


@dataclass(frozen=True)
class ImageHeader:
    """Header of a background image: its tileset and size in tiles."""

    tileset: int
    tile_width: int
    tile_height: int

    @property
    def width(self) -> int:
        """Width in pixels."""
        return self.tile_width * 8

    @property
    def height(self) -> int:
        """Height in pixels."""
        return self.tile_height * 8

    @property
    def scroll_x_max(self) -> int:
        """Largest horizontal scroll, as an unsigned 16-bit value."""
        return (self.width - SCREEN_WIDTH) & 0xFFFF

    @property
    def scroll_y_max(self) -> int:
        """Largest vertical scroll, as an unsigned 16-bit value."""
        return (self.height - SCREEN_HEIGHT) & 0xFFFF


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    def byte(self) -> int:
        if self._pos >= len(self._data):
            raise ValueError("scene data is truncated")
        value = self._data[self._pos]
        self._pos += 1
        return value

    def word_be(self) -> int:
        hi = self.byte()
        return hi * 256 + self.byte()

    def bank_ptr(self) -> BankPtr:
        bank = self.byte()
        lo = self.byte()
        return BankPtr(bank, lo + self.byte() * 256)


def direction_from_byte(value: int) -> Vector2D:
    """Facing direction encoded as 1 (down), 2 (left), 4 (right) or 8 (up)."""
    x = -1 if value == 2 else 1 if value == 4 else 0
    y = -1 if value == 8 else 1 if value == 1 else 0
    return Vector2D(x, y)


def sprite_load_sizes(frames: int, sprite_offset: int) -> tuple[int, int]:
    """Tile count of a sprite sheet and the number of tiles actually loaded.

    The player's sheet (loaded at tile 0) is cut short so it cannot spill
    into the tiles of scene sprites.
    """
    size = (frames * 4) & 0xFF
    if sprite_offset == 0 and frames > 6:
        return size, MAX_PLAYER_SPRITE_SIZE
    return size, size


def sprite_info_for(sprite_offset: int, tile_size: int) -> SpriteInfo:
    """Frame layout of a scene sprite loaded at tile ``sprite_offset``."""
    frames = tile_size // 4
    if frames == 6:
        return SpriteInfo(sprite_offset // 4, 2, SpriteType.ACTOR_ANIMATED)
    if frames == 3:
        return SpriteInfo(sprite_offset // 4, 1, SpriteType.ACTOR)
    return SpriteInfo(sprite_offset // 4, frames, SpriteType.STATIC)


def parse_image(data: bytes) -> ImageHeader:
    """Parse the three-byte header of a background image."""
    if len(data) < IMAGE_HEADER_SIZE:
        raise ValueError("image header is truncated")
    return ImageHeader(data[0], data[1], data[2])


def _scene_size(header: bytes) -> int:
    if len(header) < SCENE_HEADER_SIZE:
        raise ValueError("scene data is truncated")
    sprites, actors, triggers = header[7], header[8], header[9]
    return (
        SCENE_HEADER_SIZE
        + SPRITE_RECORD_SIZE * sprites
        + ACTOR_RECORD_SIZE * actors
        + TRIGGER_RECORD_SIZE * triggers
        + PLAYER_HITS_SIZE
    )


def _parse_actor(r: _Reader) -> ActorSpec:
    sprite = r.byte()
    palette_index = r.byte()
    sprite_type = SpriteType(r.byte())
    frames_len = r.byte()
    animate = r.byte()
    x = r.byte() * 8
    y = r.byte() * 8
    direction = direction_from_byte(r.byte())
    move_speed = r.byte()
    anim_speed = r.byte()
    pinned = r.byte()
    return ActorSpec(
        sprite=sprite,
        palette_index=palette_index,
        sprite_type=sprite_type,
        frames_len=frames_len,
        frame=animate >> 1,
        animate=bool(animate & 1),
        x=x,
        y=y,
        direction=direction,
        move_speed=move_speed,
        anim_speed=anim_speed,
        pinned=bool(pinned & 1),
        collision_group=pinned >> 1,
        events_ptr=r.bank_ptr(),
        movement_ptr=r.bank_ptr(),
        hit_1_ptr=r.bank_ptr(),
        hit_2_ptr=r.bank_ptr(),
        hit_3_ptr=r.bank_ptr(),
    )


def parse_scene(data: bytes) -> SceneData:
    """Parse a scene record: header, sprites, actors, triggers and player hit scripts."""
    r = _Reader(data)
    image_index = r.word_be()
    palette_index = r.word_be()
    sprite_palette_index = r.word_be()
    scene_type = r.byte() + 1
    n_sprites = r.byte()
    n_actors = r.byte()
    n_triggers = r.byte()
    if n_sprites >= MAX_FRAMES:
        raise ValueError(f"too many sprites in scene: {n_sprites}")
    if n_actors >= MAX_ACTORS:
        raise ValueError(f"too many actors in scene: {n_actors}")
    if n_triggers > MAX_TRIGGERS:
        raise ValueError(f"too many triggers in scene: {n_triggers}")
    events_start = r.bank_ptr()
    sprite_indices = tuple(r.word_be() for _ in range(n_sprites))
    actors = tuple(_parse_actor(r) for _ in range(n_actors))
    triggers = []
    for _ in range(n_triggers):
        x, y, w, h = r.byte(), r.byte(), r.byte(), r.byte()
        r.byte()  # trigger type, unused
        triggers.append(Trigger(x, y, w, h, r.bank_ptr()))
    hits = (r.bank_ptr(), r.bank_ptr(), r.bank_ptr())
    return SceneData(
        image_index=image_index,
        palette_index=palette_index,
        sprite_palette_index=sprite_palette_index,
        scene_type=scene_type,
        sprite_indices=sprite_indices,
        actors=actors,
        triggers=tuple(triggers),
        events_start=events_start,
        player_hit_ptrs=hits,
    )


def _words(raw: bytes) -> list[int]:
    return list(struct.unpack(f"<{len(raw) // 2}H", raw))


def _apply_spec(actor: Actor, spec: ActorSpec) -> None:
    actor.sprite = spec.sprite
    actor.palette_index = spec.palette_index
    actor.enabled = True
    actor.moving = False
    actor.sprite_type = spec.sprite_type
    actor.frames_len = spec.frames_len
    actor.frame = spec.frame
    actor.animate = spec.animate
    actor.pos = Pos(spec.x, spec.y)
    actor.start_pos = Pos(spec.x, spec.y)
    actor.direction = Vector2D(spec.direction.x, spec.direction.y)
    actor.move_speed = spec.move_speed
    actor.anim_speed = spec.anim_speed
    actor.pinned = spec.pinned
    actor.collision_group = spec.collision_group
    actor.collisions_enabled = not spec.pinned
    actor.events_ptr = spec.events_ptr
    actor.movement_ptr = spec.movement_ptr
    actor.hit_1_ptr = spec.hit_1_ptr
    actor.hit_2_ptr = spec.hit_2_ptr
    actor.hit_3_ptr = spec.hit_3_ptr
    actor.movement_ctx = 0
    actor.script_control = False


class DataManager:
    """Loads game data from banked memory into palettes, video memory and actors.

    ``tables`` maps the names ``tilesets``, ``backgrounds``, ``palettes``,
    ``sprites``, ``scenes`` and ``collisions`` (and optionally
    ``background_attrs``) to sequences of bank pointers.
    """

    def __init__(
        self,
        memory: BankedMemory,
        tables: Mapping[str, Sequence[BankPtr]],
        palettes: Palettes,
        actors: Actors,
        sprites: SpritePool,
        runner: ScriptRunner,
    ) -> None:
        self.memory = memory
        self.tables = tables
        self.palettes = palettes
        self.actors = actors
        self.sprites = sprites
        self.runner = runner
        self.bkg_vram = bytearray(VRAM_TILES * TILE_BYTES)
        self.sprite_vram = bytearray(VRAM_TILES * TILE_BYTES)
        self.sprites_info = [SpriteInfo() for _ in range(MAX_FRAMES)]
        self.image: ImageHeader | None = None
        self.image_bank = 0
        self.image_ptr = 0
        self.image_attr_ptr = BankPtr()
        self.collision: CollisionMap | None = None
        self.scene: SceneData | None = None
        self.scene_type = 0
        self.sprites_len = 0
        self.actors_len = 0
        self.triggers: list[Trigger] = []
        self.scene_events_start_ptr = BankPtr()
        self.last_trigger_tx = NO_TRIGGER_COLLISION
        self.last_trigger_ty = NO_TRIGGER_COLLISION
        self.next_pos = Pos()
        self.next_dir = Vector2D()
        self.next_sprite = 0
        self.on_scene_reset: Callable[[], None] | None = None

    def _ptr(self, table: str, index: int) -> BankPtr:
        return self.tables[table][index]

    def _load_tiles(self, index: int) -> None:
        ptr = self._ptr("tilesets", index)
        size = self.memory.read_ubyte(ptr.bank, ptr.offset)
        data = self.memory.read_bytes(ptr.bank, ptr.offset + 1, size * TILE_BYTES)
        self.bkg_vram[: len(data)] = data

    def load_image(self, index: int) -> ImageHeader:
        """Load a background image header and its tileset."""
        ptr = self._ptr("backgrounds", index)
        header = parse_image(self.memory.read_bytes(ptr.bank, ptr.offset, IMAGE_HEADER_SIZE))
        self._load_tiles(header.tileset)
        self.image = header
        self.image_bank = ptr.bank
        self.image_ptr = ptr.offset + IMAGE_HEADER_SIZE
        return header

    def _load_image_attr(self, index: int) -> None:
        attrs = self.tables.get("background_attrs")
        self.image_attr_ptr = attrs[index] if attrs else BankPtr()

    def _read_colors(self, ptr: BankPtr, start: int, n_bytes: int) -> list[int]:
        return _words(self.memory.read_bytes(ptr.bank, ptr.offset + start, n_bytes))

    def load_palette(self, index: int) -> None:
        """Load the background palettes selected by the palette update mask."""
        ptr = self._ptr("palettes", index)
        mask = self.palettes.update_mask
        bkg = self.palettes.bkg
        if mask == _FULL_PALETTE_MASK:
            colors = self._read_colors(ptr, 0, _BKG_PALETTE_BYTES)
            bkg[: len(colors)] = colors
            return
        for n in range(6):
            if mask & (1 << n):
                bkg[n * 4 : n * 4 + 4] = self._read_colors(ptr, n * _PALETTE_BYTES, _PALETTE_BYTES)

    def _load_ui_palette(self, index: int) -> None:
        ptr = self._ptr("palettes", index)
        start = UI_PALETTE_OFFSET
        self.palettes.bkg[start : start + 4] = self._read_colors(ptr, 0, _PALETTE_BYTES)

    def _load_sprite_palette(self, index: int) -> None:
        ptr = self._ptr("palettes", index)
        colors = self._read_colors(ptr, 0, _SPR_PALETTE_BYTES)
        self.palettes.spr[: len(colors)] = colors

    def _load_player_sprite_palette(self, index: int) -> None:
        ptr = self._ptr("palettes", index)
        start = PLAYER_PALETTE_OFFSET
        self.palettes.spr[start : start + 4] = self._read_colors(ptr, 0, _PALETTE_BYTES)

    def load_sprite(self, index: int, sprite_offset: int) -> int:
        """Copy a sprite sheet into sprite tiles from ``sprite_offset``; return its tile count."""
        ptr = self._ptr("sprites", index)
        frames = self.memory.read_ubyte(ptr.bank, ptr.offset)
        size, load_size = sprite_load_sizes(frames, sprite_offset)
        if sprite_offset + load_size > VRAM_TILES:
            raise ValueError(
                f"sprite of {load_size} tiles at tile {sprite_offset} does not fit in video memory"
            )
        data = self.memory.read_bytes(ptr.bank, ptr.offset + 1, load_size * TILE_BYTES)
        start = sprite_offset * TILE_BYTES
        self.sprite_vram[start : start + len(data)] = data
        return size

    def load_scene(self, index: int) -> SceneData:
        """Load a scene: image, palettes, collisions, player, sprites, actors and triggers."""
        scene_ptr = self._ptr("scenes", index)
        collision_ptr = self._ptr("collisions", index)

        self.sprites.reset()
        self.runner.pool_reset()

        header = self.memory.read_bytes(scene_ptr.bank, scene_ptr.offset, SCENE_HEADER_SIZE)
        raw = self.memory.read_bytes(scene_ptr.bank, scene_ptr.offset, _scene_size(header))
        scene = parse_scene(raw)

        image = self.load_image(scene.image_index)
        self._load_image_attr(index)
        self.load_palette(scene.palette_index)
        self._load_sprite_palette(scene.sprite_palette_index)
        self._load_player_sprite_palette(0)
        self._load_ui_palette(1)
        self.collision = CollisionMap(
            image.tile_width,
            image.tile_height,
            self.memory.read_bytes(
                collision_ptr.bank, collision_ptr.offset, image.tile_width * image.tile_height
            ),
        )
        self.actors.collision = self.collision

        if self.on_scene_reset is not None:
            self.on_scene_reset()

        sprite_frames = self.load_sprite(self.next_sprite, 0) // 4
        self.actors.init_player(sprite_frames, self.next_pos, self.next_dir)

        self.scene = scene
        self.scene_type = scene.scene_type
        self.sprites_len = len(scene.sprite_indices) + 1
        self.actors_len = len(scene.actors) + 1
        self.scene_events_start_ptr = scene.events_start

        k = FIRST_SCENE_SPRITE_TILE
        for i, sprite_index in enumerate(scene.sprite_indices, start=1):
            size = self.load_sprite(sprite_index, k)
            self.sprites_info[i] = sprite_info_for(k, size)
            k = (k + size) & 0xFF

        for i, spec in enumerate(scene.actors, start=1):
            _apply_spec(self.actors[i], spec)
        self.actors.active = [0]

        self.triggers = list(scene.triggers)
        self.last_trigger_tx = NO_TRIGGER_COLLISION
        self.last_trigger_ty = NO_TRIGGER_COLLISION

        player = self.actors.player
        player.hit_1_ptr, player.hit_2_ptr, player.hit_3_ptr = scene.player_hit_ptrs

        for i, spec in enumerate(scene.actors, start=1):
            if spec.pinned:
                self.actors.activate(i)
        return scene