# tilestage

`tilestage` is the core of a small tile-based 2D game engine. It keeps the
limits of small handheld hardware: 8-bit and 16-bit wrapping arithmetic, a
fixed number of sprite slots, a fixed number of script contexts and data
stored in numbered banks. The engine is a library. You drive it from your own
code.

## Modules

- **`tilestage.mathutil`** has `Pos`, `Vector2D` and `Operator`. It also has
  the wrapping comparisons `u_less_than`, `ubyte_less_than`, `lt16`, `gt16`
  and `distance`, plus `clamp` and `desp_right`. The bit helpers are
  `get_bit`, `set_bit` and `unset_bit`. Frame-timing checks are
  `is_frame(game_time, period)` and `is_frame_odd`.
- **`tilestage.banks`** has three classes:
  - `BankPtr` is a bank number with an offset.
  - `ByteStack` is a bounded stack of byte values.
  - `BankedMemory` reads bytes, single bytes and packed bank pointers from
    numbered banks. It also keeps a stack of switched banks (`push_bank`,
    `pop_bank`, `current_bank`).
- **`tilestage.sprites`** has `SpriteType`, `SpriteInfo` and `SpritePool`.
  `SpritePool` hands out sprite slots 1..n and returns 0 when none is free.
- **`tilestage.collision`** has `CollisionMap`, with `tile_at`, `tile_at_2x1`
  and `tile_at_2x2`. A tile outside the map reads as `COLLISION_ALL`.
- **`tilestage.palette`** covers colour and fading:
  - Colour packing: `pal_def`, `rgb2`, `pal_red`, `pal_green`, `pal_blue` and
    `update_color_black`.
  - `Palettes` holds the background and sprite colours and their display
    buffers.
  - `Fader` steps the display between full colour and white or black. It
    works in monochrome register values (`bgp`, `obp0`) or in colour buffers.
- **`tilestage.scripts`** has `ScriptRunner`. It interprets bytecode scripts
  from `BankedMemory` on one main context and a pool of 11 background
  contexts. It has a per-frame command budget and a call stack
  (`stack_push`, `stack_pop`). You supply the command set, as `ScriptCommand`
  handlers indexed by opcode. Opcode 0 ends a script.
- **`tilestage.inputs`** has `Joypad` and `InputState`. `InputState` tells
  held, pressed and most recent buttons apart, and honours per-button
  overrides of default handling. It starts background scripts bound to
  buttons (`set_input_script`, `handle_input_scripts`,
  `remove_input_scripts`).
- **`tilestage.music`** has `MusicManager`. It records the current track and
  whether it loops. It writes the register values for tone, beep and crash
  effects into its `registers` dict, and it ends timed tones on `update`.
- **`tilestage.actors`** has `Actor`, `Actors` and `CheckDir`. `Actors`
  covers:
  - activation and deactivation;
  - tile-area hit tests (`actor_at_tile`, `actor_at_1x2_tile`, …,
    `actor_at_3x3_tile`) and `overlaps_player`;
  - `in_front_of_player` and `in_front_of_actor`;
  - `check_collision_in_direction`;
  - `init_player`, `run_script`, and `run_collision_scripts`, which gives the
    player a short period without hits after each hit.
- **`tilestage.projectiles`** has `ProjectileSystem`, with `weapon_attack`,
  `launch` and `update`. Its attacks are pinned to an actor, and its
  projectiles can also be launched freely. It covers animation, movement,
  expiry off screen and hit scripts. The resulting sprite attributes are kept
  in `oam` as `SpriteAttr` records.
- **`tilestage.data`** has `parse_scene`, `parse_image`, `direction_from_byte`,
  `sprite_load_sizes` and `sprite_info_for`. It also has `DataManager`, which
  loads images, palettes, sprite sheets and whole scenes from banked memory.
  Scenes include their actors, triggers and collision map.
- **`tilestage.engine`** has `Camera` and `Engine`. `Engine.step(joy)` runs
  one frame:
  - If no scene is running, it switches scene first.
  - Otherwise it polls input, updates projectiles and runs the scene type's
    update hook (from `update_funcs`). It then runs input scripts, script
    contexts and collision scripts.

  `set_scene` requests a switch. `switch_scene` fades out, loads the scene,
  runs the start hook (from `start_funcs`) and the scene's start script, and
  fades in.

## Example

```python
from tilestage.collision import CollisionMap
from tilestage.mathutil import is_frame

walls = CollisionMap(3, 2, bytes([0, 0, 0xF,
                                  0, 0, 0]))
walls.tile_at(2, 0)      # 0xF, a solid tile
walls.tile_at(3, 0)      # 0xF, outside the map counts as a wall
walls.tile_at_2x2(0, 0)  # 0, nothing in the 2x2 block

is_frame(16, 8)          # True: frame 16 is a multiple of 8
```

## What it does not do

`tilestage` keeps game state only. These things are not included:

- **Display.** It does not draw or display anything. Tiles and sprite data
  are copied into byte arrays (`DataManager.bkg_vram`,
  `DataManager.sprite_vram`). Sprite positions go into
  `ProjectileSystem.oam`. Nothing puts them on screen.
- **Sound.** `MusicManager` produces no sound. It records register values and
  the chosen track.
- **Scrolling and camera.** There is no scrolling or camera follow logic;
  `Camera` only holds settings.
- **Actor animation.** There is no per-frame actor animation or movement.
- **Dialogue and menus.** There are no dialogue boxes or menus.
  `InputState.ui_block` is a plain flag.
- **Triggers.** Triggers are parsed but not activated.
- **Script commands.** There is no built-in script command set.

There is no command-line tool.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```