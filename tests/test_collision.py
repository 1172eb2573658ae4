import pytest

from tilestage.collision import (
    COLLISION_ALL,
    COLLISION_BOTTOM,
    COLLISION_LEFT,
    COLLISION_TOP,
    CollisionMap,
)

T, B, L = COLLISION_TOP, COLLISION_BOTTOM, COLLISION_LEFT


@pytest.fixture
def cmap():
    tiles = bytes([
        0, T, 0, 0,
        0, 0, B, 0,
        L, 0, 0, 0,
    ])
    return CollisionMap(4, 3, tiles)


def test_tile_at_reads_row_major(cmap):
    assert cmap.tile_at(1, 0) == T
    assert cmap.tile_at(2, 1) == B
    assert cmap.tile_at(0, 2) == L
    assert cmap.tile_at(3, 2) == 0


@pytest.mark.parametrize("tx,ty", [(4, 0), (0, 3), (255, 0), (0, 255), (-1, 1)])
def test_out_of_bounds_is_solid(cmap, tx, ty):
    assert cmap.tile_at(tx, ty) == COLLISION_ALL
    assert cmap.tile_at_2x1(tx, ty) == COLLISION_ALL
    assert cmap.tile_at_2x2(tx, ty) == COLLISION_ALL


def test_tile_at_2x1_combines_neighbours(cmap):
    assert cmap.tile_at_2x1(0, 0) == T
    assert cmap.tile_at_2x1(1, 1) == B
    assert cmap.tile_at_2x1(2, 2) == 0


def test_tile_at_2x2_returns_first_nonzero(cmap):
    assert cmap.tile_at_2x2(0, 0) == T
    assert cmap.tile_at_2x2(0, 1) == L
    assert cmap.tile_at_2x2(2, 0) == B


def test_tile_at_2x2_empty_block(cmap):
    assert cmap.tile_at_2x2(2, 1) == B
    empty = CollisionMap(2, 2, bytes(4))
    assert empty.tile_at_2x2(0, 0) == 0


def test_size_mismatch_rejected():
    with pytest.raises(ValueError):
        CollisionMap(3, 3, bytes(8))