import pytest

from tilestage.palette import (
    FADE_STEPS,
    Fader,
    Palettes,
    pal_blue,
    pal_def,
    pal_green,
    pal_red,
    rgb2,
    update_color_black,
)


def run_to_end(fader, limit=1000):
    updates = 0
    while fader.is_fading() and updates < limit:
        fader.update()
        updates += 1
    return updates


def test_pal_def_standard_register_value():
    assert pal_def(0, 1, 2, 3) == 0xE4


@pytest.mark.parametrize("r,g,b", [(0, 0, 0), (31, 0, 0), (0, 31, 0), (0, 0, 31), (3, 17, 29)])
def test_rgb_round_trip(r, g, b):
    c = rgb2(r, g, b)
    assert (pal_red(c), pal_green(c), pal_blue(c)) == (r, g, b)


@pytest.mark.parametrize("col", [0, rgb2(31, 31, 31), rgb2(4, 20, 9)])
def test_update_color_black_endpoints(col):
    assert update_color_black(FADE_STEPS, col) == col
    assert update_color_black(0, col) == 0


def test_dmg_fade_in_reaches_full_palette():
    fader = Fader(Palettes())
    fader.fade_in()
    assert fader.bgp == 0x00
    run_to_end(fader)
    assert not fader.is_fading()
    assert fader.bgp == 0xE4
    assert fader.obp0 == 0xD0


def test_dmg_fade_out_black_style():
    fader = Fader(Palettes(), fade_style=True)
    fader.fade_out()
    assert fader.bgp == 0xE4
    run_to_end(fader)
    assert fader.bgp == 0xFF
    assert fader.timer == 0


def test_speed_zero_steps_every_frame():
    fader = Fader(Palettes())
    fader.set_speed(0)
    fader.fade_in()
    assert run_to_end(fader) == FADE_STEPS


def test_set_speed_rejects_out_of_range():
    with pytest.raises(ValueError):
        Fader(Palettes()).set_speed(7)


def test_color_fade_in_white_then_full():
    palettes = Palettes()
    palettes.bkg[:] = [rgb2(i % 32, 0, 1) for i in range(32)]
    palettes.spr[:] = [rgb2(0, i % 32, 2) for i in range(32)]
    fader = Fader(palettes, color=True)
    fader.fade_in()
    assert palettes.dirty
    assert set(palettes.bkg_buffer) == {rgb2(31, 31, 31)}
    run_to_end(fader)
    assert palettes.bkg_buffer == palettes.bkg
    assert palettes.spr_buffer == palettes.spr


def test_color_fade_out_black_style_darkens():
    palettes = Palettes()
    palettes.bkg[:] = [rgb2(31, 31, 31)] * 32
    fader = Fader(palettes, fade_style=True, color=True)
    fader.fade_out()
    run_to_end(fader)
    assert set(palettes.bkg_buffer) == {0}
    assert not fader.is_fading()