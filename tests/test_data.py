import pytest

from tilestage.actors import Actors
from tilestage.banks import BankedMemory, BankPtr
from tilestage.data import (
    MAX_PLAYER_SPRITE_SIZE,
    DataManager,
    Trigger,
    direction_from_byte,
    parse_image,
    parse_scene,
    sprite_info_for,
    sprite_load_sizes,
)
from tilestage.mathutil import Vector2D
from tilestage.palette import Palettes
from tilestage.scripts import ScriptRunner
from tilestage.sprites import MAX_SPRITES, SpritePool, SpriteType

BANK = 2


def ptr_bytes(ptr):
    return bytes([ptr.bank, ptr.offset & 0xFF, ptr.offset >> 8])


def actor_record(x, y, dir_byte=4, pinned_byte=0, animate_byte=0, sprite_type=1, events=BankPtr()):
    return (
        bytes([6, 1, sprite_type, 1, animate_byte, x, y, dir_byte, 2, 3, pinned_byte])
        + ptr_bytes(events)
        + bytes(12)
    )


def scene_bytes(sprites=(), actors=(), triggers=(), events=BankPtr(), hits=(BankPtr(),) * 3):
    out = bytearray([0, 0, 0, 0, 0, 0, 0, len(sprites), len(actors), len(triggers)])
    out += ptr_bytes(events)
    for s in sprites:
        out += s.to_bytes(2, "big")
    for a in actors:
        out += a
    for t in triggers:
        out += t
    for h in hits:
        out += ptr_bytes(h)
    return bytes(out)


def sprite_sheet(frames):
    return bytes([frames]) + bytes([frames]) * (frames * 4 * 16)


def make_manager(scene):
    data = bytearray()

    def add(blob):
        off = len(data)
        data.extend(blob)
        return BankPtr(BANK, off)

    tileset = add(bytes([2]) + bytes([0xAA]) * 32)
    image = add(bytes([0, 20, 18]))
    tiles = bytearray(20 * 18)
    tiles[5 * 20 + 5] = 0xF
    collision = add(bytes(tiles))
    palette0 = add(bytes(range(56)))
    palette1 = add(bytes(range(100, 156)))
    player_sprite = add(sprite_sheet(6))
    npc_sprite = add(sprite_sheet(3))
    scene_ptr = add(scene)
    tables = {
        "tilesets": [tileset],
        "backgrounds": [image],
        "palettes": [palette0, palette1],
        "sprites": [player_sprite, npc_sprite],
        "scenes": [scene_ptr],
        "collisions": [collision],
    }
    memory = BankedMemory({BANK: bytes(data)})
    runner = ScriptRunner(memory, {})
    pool = SpritePool()
    actors = Actors(runner, pool)
    return DataManager(memory, tables, Palettes(), actors, pool, runner)


@pytest.mark.parametrize(
    "value, expected",
    [(2, Vector2D(-1, 0)), (4, Vector2D(1, 0)), (8, Vector2D(0, -1)), (1, Vector2D(0, 1)), (0, Vector2D(0, 0))],
)
def test_direction_from_byte(value, expected):
    assert direction_from_byte(value) == expected


def test_player_sprite_load_is_capped():
    size, load = sprite_load_sizes(8, 0)
    assert load == MAX_PLAYER_SPRITE_SIZE
    assert size > load


def test_scene_sprite_load_is_full():
    size, load = sprite_load_sizes(8, 24)
    assert load == size
    assert sprite_load_sizes(6, 0) == (24, 24)


@pytest.mark.parametrize(
    "offset, size, expected",
    [
        (24, 24, (6, 2, SpriteType.ACTOR_ANIMATED)),
        (24, 12, (6, 1, SpriteType.ACTOR)),
        (28, 8, (7, 2, SpriteType.STATIC)),
    ],
)
def test_sprite_info_for(offset, size, expected):
    info = sprite_info_for(offset, size)
    assert (info.sprite_offset, info.frames_len, info.sprite_type) == expected


def test_parse_image():
    header = parse_image(bytes([3, 20, 18, 99]))
    assert (header.tileset, header.tile_width, header.tile_height) == (3, 20, 18)
    assert header.width == 160
    assert header.scroll_x_max == 0
    assert header.scroll_y_max == 0


def test_parse_image_truncated():
    with pytest.raises(ValueError):
        parse_image(bytes([3, 20]))


def test_parse_scene_fields():
    trigger = bytes([3, 4, 2, 1, 0, 5, 0x34, 0x12])
    raw = scene_bytes(
        sprites=(1,),
        actors=(actor_record(10, 4, dir_byte=8, pinned_byte=5, animate_byte=5),),
        triggers=(trigger,),
        events=BankPtr(7, 0x1234),
    )
    scene = parse_scene(raw)
    assert scene.scene_type == 1
    assert scene.sprite_indices == (1,)
    assert scene.events_start == BankPtr(7, 0x1234)
    assert scene.triggers == (Trigger(3, 4, 2, 1, BankPtr(5, 0x1234)),)
    spec = scene.actors[0]
    assert spec.x == 80
    assert spec.direction == Vector2D(0, -1)
    assert spec.pinned is True
    assert spec.collision_group == 2
    assert spec.frame == 2
    assert spec.animate is True


def test_parse_scene_truncated():
    raw = scene_bytes(actors=(actor_record(1, 1),))
    with pytest.raises(ValueError):
        parse_scene(raw[:-5])


def test_parse_scene_bad_sprite_type():
    with pytest.raises(ValueError):
        parse_scene(scene_bytes(actors=(actor_record(1, 1, sprite_type=9),)))


def test_parse_scene_too_many_actors():
    raw = bytes(7) + bytes([0, 31, 0]) + bytes(3)
    with pytest.raises(ValueError, match="actors"):
        parse_scene(raw)


def test_load_scene_places_actors_and_collisions():
    manager = make_manager(scene_bytes(sprites=(1,), actors=(actor_record(10, 4),)))
    manager.load_scene(0)
    actor = manager.actors[1]
    assert actor.pos.x == 10 * 8 and actor.pos.y == 4 * 8
    assert actor.start_pos == actor.pos
    assert actor.enabled and actor.collisions_enabled
    assert manager.collision.tile_at(5, 5) == 0xF
    assert manager.actors.collision is manager.collision
    assert manager.actors.active == [0]
    assert manager.sprites_info[1].sprite_type == SpriteType.ACTOR
    assert manager.sprites_info[1].sprite_offset == 6
    assert manager.sprite_vram[24 * 16] == 3
    assert manager.actors_len == 2 and manager.sprites_len == 2


def test_load_scene_sets_up_player():
    manager = make_manager(scene_bytes(hits=(BankPtr(3, 9), BankPtr(), BankPtr())))
    manager.load_scene(0)
    player = manager.actors.player
    assert player.sprite_type == SpriteType.ACTOR_ANIMATED
    assert player.frames_len == 2
    assert player.sprite_index != 0
    assert player.hit_1_ptr == BankPtr(3, 9)
    assert manager.sprite_vram[0] == 6


def test_load_scene_activates_pinned_actors():
    manager = make_manager(scene_bytes(actors=(actor_record(2, 2, pinned_byte=1),)))
    manager.load_scene(0)
    assert manager.actors.active == [0, 1]
    assert manager.actors[1].sprite_index not in (0, manager.actors.player.sprite_index)
    assert manager.actors[1].collisions_enabled is False


def test_load_scene_runs_reset_hook_before_player():
    manager = make_manager(scene_bytes())
    seen = []
    manager.on_scene_reset = lambda: seen.append(manager.sprites.next())
    manager.load_scene(0)
    assert len(seen) == 1
    assert seen[0] in range(1, MAX_SPRITES + 1)
    assert manager.actors.player.sprite_index in range(1, MAX_SPRITES + 1)
    assert manager.actors.player.sprite_index not in (0, seen[0])


def test_load_image_loads_tiles():
    manager = make_manager(scene_bytes())
    header = manager.load_image(0)
    assert header.tile_width == 20
    assert bytes(manager.bkg_vram[:32]) == bytes([0xAA]) * 32
    assert manager.image_ptr == manager.tables["backgrounds"][0].offset + 3


def test_load_palette_full_and_masked():
    manager = make_manager(scene_bytes())
    manager.load_palette(0)
    assert manager.palettes.bkg[0] == int.from_bytes(bytes([0, 1]), "little")
    fresh = make_manager(scene_bytes())
    fresh.palettes.update_mask = 0x2
    fresh.load_palette(0)
    assert fresh.palettes.bkg[:4] == [0, 0, 0, 0]
    assert fresh.palettes.bkg[4] == int.from_bytes(bytes([8, 9]), "little")


def test_load_sprite_that_does_not_fit():
    manager = make_manager(scene_bytes())
    with pytest.raises(ValueError):
        manager.load_sprite(1, 250)