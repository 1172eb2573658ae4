import pytest

from tilestage.music import NO_MUSIC, MusicManager


def make_music():
    return MusicManager(["intro", "town", "battle"])


def test_play_selects_track():
    music = make_music()
    music.play(1, True)
    assert music.current_index == 1
    assert music.track == "town"
    assert music.loop is True
    assert music.playing


def test_play_same_track_keeps_settings():
    music = make_music()
    music.play(2, True)
    music.play(2, False)
    assert music.loop is True
    assert music.track == "battle"


def test_stop_clears_track():
    music = make_music()
    music.play(0, False)
    music.stop()
    assert music.current_index == NO_MUSIC
    assert not music.playing
    music.play(0, False)
    assert music.track == "intro"


def test_play_unknown_track():
    music = make_music()
    with pytest.raises(IndexError):
        music.play(3, False)


def test_tone_registers():
    music = make_music()
    music.play_tone(0x0723, 0)
    regs = music.registers
    assert regs["NR52"] == 0x80
    assert regs["NR12"] == 0xF0
    assert regs["NR13"] == 0x23
    assert regs["NR14"] == 0x87
    assert regs["NR50"] == 0x77
    assert regs["NR51"] & 0x11 == 0x11


def test_tone_stops_after_frames():
    music = make_music()
    music.play_tone(0x100, 3)
    music.update()
    music.update()
    assert music.registers["NR12"] == 0xF0
    music.update()
    assert music.registers["NR12"] == 0
    assert music.tone_frames == 0


def test_beep_and_crash():
    music = make_music()
    music.play_beep(3)
    assert music.registers["NR43"] == 0x2B
    assert music.registers["NR51"] & 0x88 == 0x88
    music.play_crash()
    assert music.registers["NR42"] == 0xF2
    assert music.registers["NR43"] == 0x13
    assert music.registers["NR44"] == 0x80