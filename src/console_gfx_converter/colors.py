"""Native color encodings of the supported consoles.

Reference: native color formats
Model  | Bits | Layout                          | Used by
-------|------|---------------------------------|------------------------
DMG    | 2    | shade index 0 (white) - 3 (black) | Game Boy
RGB15  | 15   | 0BBBBBGG GGGRRRRR               | Game Boy Color, SNES
RGB12  | 12   | 0000BBBB GGGGRRRR               | Neo Geo Pocket Color
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Tuple

RGB = Tuple[int, int, int]

_LUMA_WEIGHTS = (0.299, 0.587, 0.114)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class ColorModel:
    """Converts between 8-bit RGB components and a console's native value."""

    name = "abstract"
    bits = 0

    def encode(self, r8: int, g8: int, b8: int) -> int:
        raise NotImplementedError

    def decode(self, value: int) -> RGB:
        raise NotImplementedError

    def color(self, value: int) -> "Color":
        return Color(value & ((1 << self.bits) - 1), self)

    def from_rgb24(self, r8: int, g8: int, b8: int) -> "Color":
        return Color(self.encode(r8, g8, b8), self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class DMGColorModel(ColorModel):
    """Four fixed grey shades, picked by the closest luma approximation."""

    name = "dmg"
    bits = 2
    SHADES = (255, 170, 85, 0)

    def encode(self, r8: int, g8: int, b8: int) -> int:
        grey = 0.3 * r8 + 0.59 * g8 + 0.11 * b8
        best = 0
        for index, shade in enumerate(self.SHADES):
            if abs(shade - grey) < abs(self.SHADES[best] - grey):
                best = index
        return best

    def decode(self, value: int) -> RGB:
        shade = self.SHADES[value & 0x03]
        return shade, shade, shade


class _ChannelColorModel(ColorModel):
    channel_bits = 0
    rescale = 1.0

    @property
    def channel_mask(self) -> int:
        return (1 << self.channel_bits) - 1

    def to_native_component(self, component8: int) -> int:
        return round_half_up(component8 / self.rescale) & self.channel_mask

    def to_8bit_component(self, component: int) -> int:
        return round_half_up(component * self.rescale)

    def pack(self, r: int, g: int, b: int) -> int:
        mask = self.channel_mask
        shift = self.channel_bits
        return (r & mask) | ((g & mask) << shift) | ((b & mask) << (shift * 2))

    def unpack(self, value: int) -> RGB:
        mask = self.channel_mask
        shift = self.channel_bits
        return value & mask, (value >> shift) & mask, (value >> (shift * 2)) & mask

    def encode(self, r8: int, g8: int, b8: int) -> int:
        return self.pack(
            self.to_native_component(r8),
            self.to_native_component(g8),
            self.to_native_component(b8),
        )

    def decode(self, value: int) -> RGB:
        r, g, b = self.unpack(value)
        return self.to_8bit_component(r), self.to_8bit_component(g), self.to_8bit_component(b)


class RGB15ColorModel(_ChannelColorModel):
    name = "rgb15"
    bits = 15
    channel_bits = 5
    rescale = 8.22580645161291


class RGB12ColorModel(_ChannelColorModel):
    name = "rgb12"
    bits = 12
    channel_bits = 4
    rescale = 17


DMG = DMGColorModel()
RGB15 = RGB15ColorModel()
RGB12 = RGB12ColorModel()


@dataclass(frozen=True)
class Color:
    """A native color value. Two colors are equal when their values match."""

    value: int
    model: ColorModel = field(compare=False, repr=False)

    @property
    def rgb24(self) -> RGB:
        return self.model.decode(self.value)

    @property
    def luma(self) -> float:
        r, g, b = self.rgb24
        wr, wg, wb = _LUMA_WEIGHTS
        return r * wr + g * wg + b * wb

    def to_hex(self) -> str:
        return f"{self.value:04x}"

    def to_hex24(self) -> str:
        return "".join(f"{component:02x}" for component in self.rgb24)
