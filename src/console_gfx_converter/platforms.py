"""Binary codecs for each supported console.

Reference: tile, palette and map formats
Key  | Console              | bpp | Bytes/tile | Palette entry     | Map cell
-----|----------------------|-----|------------|-------------------|-----------------------------------
dmg  | Game Boy             | 2   | 16         | 2 bits (1 byte/4) | 1 byte tile index
cgb  | Game Boy Color       | 2   | 16         | 15-bit word       | 1 byte tile index + attribute table
sfc  | Super Famicom (SNES) | 4   | 32         | 15-bit word       | tile index byte, attribute byte
ngpc | Neo Geo Pocket Color | 2   | 16         | 12-bit word       | (no map format)

Attribute byte: bits 0-2 palette index, flip X/Y bits differ per console
(cgb: 0x20/0x40, sfc: 0x40/0x80).
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Sequence, Tuple

from .colors import DMG, RGB12, RGB15, ColorModel
from .errors import ValidationError
from .palette import Palette
from .tile import TILE_SIZE, Flip, Tile

ATTRIBUTE_PALETTE_MASK = 0b00000111


class Platform(str, Enum):
    DMG = "dmg"
    CGB = "cgb"
    SFC = "sfc"
    NGPC = "ngpc"


class MapFormat(str, Enum):
    INDEXES = "indexes"  # one tile index byte per cell
    INTERLEAVED = "interleaved"  # tile index byte followed by attribute byte


class PlatformCodec:
    """Capabilities and byte layouts of one console."""

    platform: Platform
    title = ""
    color_model: ColorModel
    palette_size = 4
    bits_per_pixel = 2
    map_format: MapFormat | None = None
    # Separate attribute table exported next to the map (cgb).
    attribute_table = False
    flip_x_bit = 0
    flip_y_bit = 0
    default_colors: Tuple[Tuple[int, int, int], ...] = ()

    @property
    def key(self) -> str:
        return self.platform.value

    @property
    def bytes_per_tile(self) -> int:
        return TILE_SIZE * TILE_SIZE * self.bits_per_pixel // 8

    @property
    def has_map(self) -> bool:
        return self.map_format is not None

    @property
    def flip_attributes(self) -> bool:
        """True when map cells can carry horizontal/vertical flip flags."""

        return bool(self.flip_x_bit and self.flip_y_bit)

    @property
    def palette_data_kind(self) -> str:
        return "words" if self.color_model.bits > 8 else "bytes"

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

    # Palettes -----------------------------------------------------------

    def default_palette(self) -> Palette:
        return Palette(self.color_model.from_rgb24(*rgb) for rgb in self.default_colors)

    def new_palette(self, colors) -> Palette:
        palette = Palette(colors)
        if len(palette) != self.palette_size:
            raise ValidationError(
                f"Palette must have exactly {self.palette_size} colors (got {len(palette)})"
            )
        return palette

    def encode_palette(self, palette: Palette) -> List[int]:
        """Return palette data as bytes or words (see ``palette_data_kind``)."""

        return palette.values()

    def decode_palette(self, values: Sequence[int]) -> Palette:
        if len(values) != self.palette_size:
            raise ValidationError(f"Invalid {self.key} palette data")
        return self.new_palette(self.color_model.color(value) for value in values)

    def palette_to_bytes(self, palette: Palette) -> bytes:
        data = self.encode_palette(palette)
        if self.palette_data_kind == "bytes":
            return bytes(data)
        out = bytearray()
        for word in data:
            out.append(word & 0xFF)
            out.append((word >> 8) & 0xFF)
        return bytes(out)

    # Tiles --------------------------------------------------------------

    def encode_tile(self, tile: Tile) -> bytes:
        raise NotImplementedError

    def decode_tile(self, data: bytes | Sequence[int], palette: int = 0) -> Tile:
        raise NotImplementedError

    def _check_tile_data(self, data: bytes | Sequence[int]) -> bytes:
        if len(data) != self.bytes_per_tile:
            raise ValidationError(f"Invalid {self.key} tile data")
        return bytes(data)

    # Maps ---------------------------------------------------------------

    def encode_attribute(self, palette_index: int, flip_x: bool = False, flip_y: bool = False) -> int:
        if not self.flip_attributes:
            raise ValidationError(f"{self.title} maps have no attribute bytes")
        value = palette_index & ATTRIBUTE_PALETTE_MASK
        if flip_x:
            value |= self.flip_x_bit
        if flip_y:
            value |= self.flip_y_bit
        return value

    def decode_attribute(self, value: int) -> Tuple[int, Flip]:
        if not self.flip_attributes:
            raise ValidationError(f"{self.title} maps have no attribute bytes")
        flip = Flip(bool(value & self.flip_x_bit), bool(value & self.flip_y_bit))
        return value & ATTRIBUTE_PALETTE_MASK, flip

    def encode_map_row(self, cells: Sequence[Tuple[int, int]]) -> List[int]:
        """Encode one map row from ``(tile_index, attribute)`` pairs."""

        if self.map_format is MapFormat.INDEXES:
            return [tile_index & 0xFF for tile_index, _ in cells]
        if self.map_format is MapFormat.INTERLEAVED:
            row: List[int] = []
            for tile_index, attribute in cells:
                row.append(tile_index & 0xFF)
                row.append(attribute & 0xFF)
            return row
        raise ValidationError(f"{self.title} has no map format")


def _encode_bitplane_pair(tile: Tile, low_plane: int) -> bytearray:
    data = bytearray()
    for y in range(TILE_SIZE):
        byte0 = 0
        byte1 = 0
        for x in range(TILE_SIZE):
            index = tile.get_pixel(x, y)
            byte0 |= ((index >> low_plane) & 0x01) << (7 - x)
            byte1 |= ((index >> (low_plane + 1)) & 0x01) << (7 - x)
        data.append(byte0)
        data.append(byte1)
    return data


def _decode_bitplane_pair(data: bytes, low_plane: int, pixels: List[List[int]]) -> None:
    for y in range(TILE_SIZE):
        byte0 = data[y * 2]
        byte1 = data[y * 2 + 1]
        for x in range(TILE_SIZE):
            bit0 = (byte0 >> (7 - x)) & 0x01
            bit1 = (byte1 >> (7 - x)) & 0x01
            pixels[y][x] |= (bit0 << low_plane) | (bit1 << (low_plane + 1))


class _PlanarCodec(PlatformCodec):
    """Game Boy family tiles: a pair of bitplane bytes per pixel row."""

    map_format = MapFormat.INDEXES

    def encode_tile(self, tile: Tile) -> bytes:
        return bytes(_encode_bitplane_pair(tile, 0))

    def decode_tile(self, data: bytes | Sequence[int], palette: int = 0) -> Tile:
        raw = self._check_tile_data(data)
        pixels = [[0] * TILE_SIZE for _ in range(TILE_SIZE)]
        _decode_bitplane_pair(raw, 0, pixels)
        return Tile(pixels, palette, self.palette_size)


class GameBoyCodec(_PlanarCodec):
    platform = Platform.DMG
    title = "Game Boy"
    color_model = DMG

    def default_palette(self) -> Palette:
        return Palette(self.color_model.color(value) for value in range(4))

    def encode_palette(self, palette: Palette) -> List[int]:
        colors = palette.values()
        return [(colors[0] << 6) | (colors[1] << 4) | (colors[2] << 2) | colors[3]]

    def decode_palette(self, values: Sequence[int]) -> Palette:
        if len(values) != 1:
            raise ValidationError("Invalid dmg palette data")
        value = values[0]
        return Palette(self.color_model.color((value >> shift) & 0x03) for shift in (6, 4, 2, 0))


class GameBoyColorCodec(_PlanarCodec):
    platform = Platform.CGB
    title = "Game Boy Color"
    color_model = RGB15
    attribute_table = True
    flip_x_bit = 0b00100000
    flip_y_bit = 0b01000000
    default_colors = ((224, 248, 208), (136, 192, 112), (52, 104, 86), (8, 24, 32))


class SuperFamicomCodec(PlatformCodec):
    platform = Platform.SFC
    title = "Super Famicom"
    color_model = RGB15
    palette_size = 16
    bits_per_pixel = 4
    map_format = MapFormat.INTERLEAVED
    flip_x_bit = 0b01000000
    flip_y_bit = 0b10000000
    default_colors = tuple((level, level, level) for level in range(255, -1, -17))

    def encode_tile(self, tile: Tile) -> bytes:
        return bytes(_encode_bitplane_pair(tile, 0) + _encode_bitplane_pair(tile, 2))

    def decode_tile(self, data: bytes | Sequence[int], palette: int = 0) -> Tile:
        raw = self._check_tile_data(data)
        pixels = [[0] * TILE_SIZE for _ in range(TILE_SIZE)]
        _decode_bitplane_pair(raw[:16], 0, pixels)
        _decode_bitplane_pair(raw[16:], 2, pixels)
        return Tile(pixels, palette, self.palette_size)


class NeoGeoPocketColorCodec(PlatformCodec):
    """Tiles are little-endian 16-bit rows with pixel 0 in the top two bits."""

    platform = Platform.NGPC
    title = "Neo Geo Pocket Color"
    color_model = RGB12
    default_colors = ((240, 240, 240), (176, 176, 180), (80, 80, 88), (32, 32, 40))

    @staticmethod
    def _pack_half(tile: Tile, y: int, start: int) -> int:
        value = 0
        for k in range(4):
            index = tile.get_pixel(start + k, y)
            value |= ((index >> 1) & 0x01) << (7 - k * 2)
            value |= (index & 0x01) << (6 - k * 2)
        return value

    def encode_tile(self, tile: Tile) -> bytes:
        data = bytearray()
        for y in range(TILE_SIZE):
            data.append(self._pack_half(tile, y, 4))
            data.append(self._pack_half(tile, y, 0))
        return bytes(data)

    def decode_tile(self, data: bytes | Sequence[int], palette: int = 0) -> Tile:
        raw = self._check_tile_data(data)
        pixels = [[0] * TILE_SIZE for _ in range(TILE_SIZE)]
        for y in range(TILE_SIZE):
            for offset, start in ((0, 4), (1, 0)):
                value = raw[y * 2 + offset]
                for k in range(4):
                    pixels[y][start + k] = (value >> (6 - k * 2)) & 0x03
        return Tile(pixels, palette, self.palette_size)


_CODECS: Dict[Platform, PlatformCodec] = {
    codec.platform: codec
    for codec in (GameBoyCodec(), GameBoyColorCodec(), SuperFamicomCodec(), NeoGeoPocketColorCodec())
}

PLATFORM_KEYS = tuple(platform.value for platform in Platform)


def get_platform(platform: str | Platform | PlatformCodec) -> PlatformCodec:
    """Resolve a platform key (``dmg``, ``cgb``, ``sfc``, ``ngpc``) to its codec."""

    if isinstance(platform, PlatformCodec):
        return platform
    try:
        return _CODECS[Platform(platform)]
    except ValueError as exc:
        raise ValidationError(
            f"Unknown platform: {platform} (expected one of {', '.join(PLATFORM_KEYS)})"
        ) from exc
