"""Console graphics converter.

This package turns RGBA images into palettes, deduplicated 8x8 tiles and tile
maps for the Game Boy (``dmg``), Game Boy Color (``cgb``), Super Famicom
(``sfc``) and Neo Geo Pocket Color (``ngpc``). It can be invoked through the
CLI (``console-gfx-converter``) or imported to convert a single image.
"""

from .errors import CapacityExceeded, ConversionError, ValidationError
from .pixels import PixelBuffer
from .platforms import PLATFORM_KEYS, Platform, get_platform
from .session import (
    ConversionSession,
    ConvertOptions,
    ExportLine,
    convert_image,
    convert_pixels,
    convert_png,
)
from .tileset import Tileset

__all__ = [
    "CapacityExceeded",
    "ConversionError",
    "ConversionSession",
    "ConvertOptions",
    "ExportLine",
    "PLATFORM_KEYS",
    "PixelBuffer",
    "Platform",
    "Tileset",
    "ValidationError",
    "convert_image",
    "convert_pixels",
    "convert_png",
    "get_platform",
]
