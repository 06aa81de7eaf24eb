import pytest

from console_gfx_converter.errors import ValidationError
from console_gfx_converter.palette import Palette
from console_gfx_converter.platforms import (
    PLATFORM_KEYS,
    GameBoyColorCodec,
    Platform,
    get_platform,
)
from console_gfx_converter.tile import Flip, Tile


def test_get_platform() -> None:
    assert PLATFORM_KEYS == ("dmg", "cgb", "sfc", "ngpc")
    assert get_platform("cgb").key == "cgb"
    assert isinstance(get_platform(Platform.CGB), GameBoyColorCodec)

    codec = get_platform("sfc")
    assert get_platform(codec) is codec

    with pytest.raises(ValidationError):
        get_platform("nes")


def test_capabilities() -> None:
    dmg, cgb, sfc, ngpc = (get_platform(key) for key in PLATFORM_KEYS)

    assert [codec.bytes_per_tile for codec in (dmg, cgb, sfc, ngpc)] == [16, 16, 32, 16]
    assert [codec.palette_size for codec in (dmg, cgb, sfc, ngpc)] == [4, 4, 16, 4]
    assert [codec.has_map for codec in (dmg, cgb, sfc, ngpc)] == [True, True, True, False]
    assert [codec.flip_attributes for codec in (dmg, cgb, sfc, ngpc)] == [False, True, True, False]
    assert [codec.palette_data_kind for codec in (dmg, cgb, sfc, ngpc)] == [
        "bytes",
        "words",
        "words",
        "words",
    ]


def test_game_boy_tile_bitplanes() -> None:
    tile = Tile([[0, 1, 2, 3, 0, 1, 2, 3]] + [[0] * 8] * 7)

    data = get_platform("dmg").encode_tile(tile)

    assert data == bytes([0x55, 0x33]) + bytes(14)
    assert get_platform("cgb").encode_tile(tile) == data


def test_super_famicom_tile_bitplanes() -> None:
    pixels = [[0] * 8 for _ in range(8)]
    pixels[0][0] = 5  # 0b0101: planes 0 and 2
    pixels[7][7] = 15
    tile = Tile(pixels, capacity=16)

    data = get_platform("sfc").encode_tile(tile)

    assert len(data) == 32
    assert data[0] == 0x80 and data[1] == 0x00
    assert data[16] == 0x80 and data[17] == 0x00
    assert data[14:16] == bytes([0x01, 0x01])
    assert data[30:32] == bytes([0x01, 0x01])
    assert sum(data) == 0x80 * 2 + 4


def test_neo_geo_pocket_reference_tile() -> None:
    pixels = [[0] * 8 for _ in range(8)]
    pixels[0] = [0, 1, 2, 3, 3, 2, 1, 0]
    pixels[1] = [3, 3, 3, 3, 0, 0, 0, 0]
    tile = Tile(pixels)

    data = get_platform("ngpc").encode_tile(tile)

    # Row 0: pixels 4-7 (3, 2, 1, 0) -> 11 10 01 00, pixels 0-3 -> 00 01 10 11
    assert data[0:2] == bytes([0xE4, 0x1B])
    assert data[2:4] == bytes([0x00, 0xFF])
    assert data[4:] == bytes(12)


@pytest.mark.parametrize("key", PLATFORM_KEYS)
def test_tile_decode_inverts_encode(key) -> None:
    codec = get_platform(key)
    size = codec.palette_size
    tile = Tile([[(x * 3 + y) % size for x in range(8)] for y in range(8)], capacity=size)

    decoded = codec.decode_tile(codec.encode_tile(tile))

    assert decoded.equals(tile)


def test_decode_tile_rejects_bad_length() -> None:
    with pytest.raises(ValidationError):
        get_platform("dmg").decode_tile(bytes(15))
    with pytest.raises(ValidationError):
        get_platform("sfc").decode_tile(bytes(16))


def test_game_boy_palette_byte() -> None:
    codec = get_platform("dmg")
    palette = codec.default_palette()

    assert codec.encode_palette(palette) == [0x1B]
    assert codec.palette_to_bytes(palette) == b"\x1b"
    assert codec.decode_palette([0xE4]).values() == [3, 2, 1, 0]

    with pytest.raises(ValidationError):
        codec.decode_palette([0x1B, 0x00])


def test_color_palette_words_are_little_endian() -> None:
    codec = get_platform("cgb")
    palette = codec.decode_palette([0x7FFF, 0x001F, 0x03E0, 0x0000])

    assert codec.encode_palette(palette) == [0x7FFF, 0x001F, 0x03E0, 0x0000]
    assert codec.palette_to_bytes(palette) == bytes(
        [0xFF, 0x7F, 0x1F, 0x00, 0xE0, 0x03, 0x00, 0x00]
    )


def test_default_palettes() -> None:
    sfc = get_platform("sfc").default_palette()
    assert len(sfc) == 16
    assert sfc[0].value == 0x7FFF
    assert sfc[15].value == 0

    for key in PLATFORM_KEYS:
        codec = get_platform(key)
        assert len(codec.default_palette()) == codec.palette_size


def test_new_palette_checks_size() -> None:
    codec = get_platform("ngpc")
    with pytest.raises(ValidationError):
        codec.new_palette(list(codec.default_palette())[:3])
    assert isinstance(codec.new_palette(codec.default_palette()), Palette)


def test_attribute_bytes() -> None:
    cgb = get_platform("cgb")
    sfc = get_platform("sfc")

    assert cgb.encode_attribute(2, flip_x=True) == 0x22
    assert cgb.encode_attribute(9, True, True) == 0x61
    assert sfc.encode_attribute(3, True, True) == 0xC3
    assert sfc.decode_attribute(0xC3) == (3, Flip(True, True))
    assert cgb.decode_attribute(0x45) == (5, Flip(False, True))

    with pytest.raises(ValidationError):
        get_platform("dmg").encode_attribute(0)


def test_map_rows() -> None:
    assert get_platform("dmg").encode_map_row([(1, 0), (2, 0x20)]) == [1, 2]
    assert get_platform("sfc").encode_map_row([(1, 0x40), (2, 0)]) == [1, 0x40, 2, 0]

    with pytest.raises(ValidationError):
        get_platform("ngpc").encode_map_row([(1, 0)])
