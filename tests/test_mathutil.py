import pytest

from tilestage.mathutil import (
    Operator,
    Pos,
    Vector2D,
    clamp,
    desp_right,
    distance,
    get_bit,
    gt16,
    is_frame,
    is_frame_odd,
    lt16,
    set_bit,
    u_less_than,
    ubyte_less_than,
    unset_bit,
)

VALUES = [0, 1, 0x00FF, 0x0100, 0x1234, 0x7FFF, 0x8000, 0xFFFF]


def test_operator_values_match_script_encoding():
    assert Operator(1) is Operator.EQ
    assert Operator(6) is Operator.GTE
    assert [Operator(v).value for v in range(1, 7)] == list(range(1, 7))
    with pytest.raises(ValueError):
        Operator(0)


def test_pos_and_vector_defaults():
    assert Pos() == Pos(0, 0)
    assert Vector2D(1, -1).y == -1


def test_desp_right_zero_shift_keeps_value():
    assert desp_right(0x1F, 0) == 0x1F
    assert desp_right(0x1F, 5) == 0


@pytest.mark.parametrize("a", VALUES)
@pytest.mark.parametrize("b", VALUES)
def test_lt16_gt16_consistent(a, b):
    assert lt16(a, b) == gt16(b, a)
    assert lt16(a, b) == (a < b)
    assert not (lt16(a, b) and gt16(a, b))


def test_lt16_crosses_byte_boundary():
    assert lt16(0x00FF, 0x0100)
    assert gt16(0x0100, 0x00FF)


@pytest.mark.parametrize("a,b", [(0, 1), (10, 300), (500, 20), (7, 7)])
def test_u_less_than_small_values(a, b):
    assert u_less_than(a, b) == (a < b)


@pytest.mark.parametrize("a,b", [(0, 1), (3, 11), (11, 3), (5, 5)])
def test_ubyte_less_than_small_values(a, b):
    assert ubyte_less_than(a, b) == (a < b)


@pytest.mark.parametrize("a,b", [(3, 10), (10, 3), (0, 0), (100, 2000)])
def test_distance_symmetric(a, b):
    assert distance(a, b) == distance(b, a)
    assert distance(a, b) == abs(a - b)


@pytest.mark.parametrize("value", [-5, 0, 4, 9, 50])
def test_clamp_stays_in_range(value):
    result = clamp(value, 0, 9)
    assert 0 <= result <= 9
    if 0 <= value <= 9:
        assert result == value


@pytest.mark.parametrize("pos", range(8))
def test_bit_round_trip(pos):
    n = set_bit(0, pos)
    assert get_bit(n, pos)
    assert unset_bit(n, pos) == 0
    assert not get_bit(unset_bit(0xFF, pos), pos)


@pytest.mark.parametrize("period", [2, 4, 8, 16, 32, 64, 128, 256])
def test_is_frame_multiples(period):
    assert is_frame(0, period)
    assert is_frame(period, period)
    assert not is_frame(period + 1, period)


@pytest.mark.parametrize("period", [0, 1, 3, 12, 512])
def test_is_frame_rejects_bad_period(period):
    with pytest.raises(ValueError):
        is_frame(0, period)


@pytest.mark.parametrize("t", range(6))
def test_is_frame_odd_complements_even(t):
    assert is_frame_odd(t) == (not is_frame(t, 2))