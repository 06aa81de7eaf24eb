import pytest

from console_gfx_converter.errors import ValidationError
from console_gfx_converter.tile import ORIENTATIONS, Flip, Tile


def _gradient_tile() -> Tile:
    return Tile([[(x + y) % 4 for x in range(8)] for y in range(8)])


def _corner_tile() -> Tile:
    tile = Tile()
    tile.set_pixel(0, 0, 3)
    tile.set_pixel(1, 0, 2)
    tile.set_pixel(0, 1, 1)
    return tile


def test_rejects_malformed_pixels() -> None:
    with pytest.raises(ValidationError):
        Tile([[0] * 8] * 7)
    with pytest.raises(ValidationError):
        Tile([[0] * 7] * 8)
    with pytest.raises(ValidationError):
        Tile([[4] * 8] * 8, capacity=4)

    assert Tile([[15] * 8] * 8, capacity=16).get_pixel(7, 7) == 15


def test_set_pixel_validates_index() -> None:
    tile = Tile()
    tile.set_pixel(3, 4, 2)
    assert tile.get_pixel(3, 4) == 2
    assert tile.rows()[4][3] == 2

    with pytest.raises(ValidationError):
        tile.set_pixel(0, 0, 4)
    with pytest.raises(ValidationError):
        tile.set_pixel(0, 0, -1)


def test_flip() -> None:
    tile = _corner_tile()

    flipped = tile.flip(flip_x=True)
    assert flipped.get_pixel(7, 0) == 3
    assert flipped.get_pixel(6, 0) == 2
    assert flipped.get_pixel(7, 1) == 1

    flipped = tile.flip(flip_y=True)
    assert flipped.get_pixel(0, 7) == 3
    assert flipped.get_pixel(0, 6) == 1

    flipped = tile.flip(True, True)
    assert flipped.get_pixel(7, 7) == 3


@pytest.mark.parametrize("flip", ORIENTATIONS)
def test_double_flip_is_identity(flip: Flip) -> None:
    tile = _gradient_tile()
    twice = tile.flip(*flip).flip(*flip)
    assert twice.equals(tile)


def test_equals_flipped() -> None:
    tile = _corner_tile()

    assert tile.equals_flipped(tile.copy()) == Flip(False, False)
    assert tile.equals_flipped(tile.flip(True, False)) == Flip(True, False)
    assert tile.equals_flipped(tile.flip(False, True)) == Flip(False, True)
    assert tile.equals_flipped(tile.flip(True, True)) == Flip(True, True)

    other = _corner_tile()
    other.set_pixel(4, 4, 1)
    assert tile.equals_flipped(other) is None


def test_orientation_cache_follows_edits() -> None:
    tile = _corner_tile()
    first = tile.orientations()
    assert tile.orientations() is first

    tile.set_pixel(5, 5, 3)
    second = tile.orientations()
    assert second is not first
    assert second[1].get_pixel(2, 5) == 3

    tile.swap_colors(3, 0)
    assert tile.orientations()[0].get_pixel(5, 5) == 0


def test_swap_colors() -> None:
    tile = _corner_tile()

    assert tile.swap_colors(3, 1)
    assert tile.get_pixel(0, 0) == 1
    assert tile.get_pixel(0, 1) == 3
    assert tile.get_pixel(1, 0) == 2
    assert not tile.swap_colors(2, 2)

    with pytest.raises(ValidationError):
        tile.swap_colors(0, 4)
