"""Tilesets and the image -> tiles/palettes/map extraction."""

# Reference: extraction limits
# Limit                    | Value | On overflow
# -------------------------|-------|------------------------------------------
# 8x8 blocks per image     | 4096  | CapacityExceeded
# Blocks over color limit  | 360   | CapacityExceeded (each one is a warning)
# Palettes per image       | 64    | CapacityExceeded
# Transparent pixels/block | 32    | block skipped (alpha < 192)

from __future__ import annotations

import warnings
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from .color_diff import closest_pair
from .colors import Color
from .errors import CapacityExceeded, ValidationError
from .palette import Palette, embedded_block
from .pixels import PixelBuffer
from .platforms import PlatformCodec, get_platform
from .tile import TILE_SIZE, Flip, Tile
from .tilemap import TileMap

MAX_BLOCKS = 4096
MAX_WARNINGS = 360
MAX_PALETTES = 64
ALPHA_THRESHOLD = 192
TRANSPARENT_PIXEL_LIMIT = 32
PADDING_COLOR = (255, 0, 255)

PIXELS_PER_TILE = TILE_SIZE * TILE_SIZE


@dataclass(frozen=True)
class BlockWarning:
    """A block whose colors were merged to fit the palette capacity."""

    x: int
    y: int
    rgba: bytes
    original_colors: int

    @property
    def message(self) -> str:
        return (
            f"Tile at ({self.x}, {self.y}) has {self.original_colors} colors; "
            "similar colors were merged"
        )


@dataclass(frozen=True)
class QuantizableTile:
    """``tile`` duplicates ``source`` when ``source`` is flipped by ``flip``."""

    tile: int
    source: int
    flip: Flip


@dataclass
class ExtractionResult:
    tileset: "Tileset"
    tilemap: Optional[TileMap]
    warnings: List[BlockWarning] = field(default_factory=list)


@dataclass
class _BlockInfo:
    x: int
    y: int
    pixels: List[Color]
    colors: List[Color]
    original_colors: int
    embedded_palette: Optional[List[Color]] = None
    tile_index: int = -1

    @property
    def too_many_colors(self) -> bool:
        return self.original_colors > len(self.colors)


class Tileset:
    """Ordered tiles and palettes of one platform.

    Tiles and palettes receive integer handles when they are added. Tiles refer
    to their palette and map cells refer to their tile by handle, so lookups
    never depend on list positions.
    """

    def __init__(self, platform: str | PlatformCodec):
        self.codec = get_platform(platform)
        self.tiles: List[Tile] = []
        self.palettes: List[Palette] = []
        self._next_tile_handle = 0
        self._next_palette_handle = 0

    def __repr__(self) -> str:
        return f"Tileset({self.codec.key}, tiles={len(self.tiles)}, palettes={len(self.palettes)})"

    @property
    def capacity(self) -> int:
        return self.codec.palette_size

    # Palettes -----------------------------------------------------------

    def add_palette(self, palette: Palette, index: int | None = None) -> int:
        if len(palette) != self.capacity:
            raise ValidationError(
                f"Palette must have exactly {self.capacity} colors (got {len(palette)})"
            )
        if len(self.palettes) >= MAX_PALETTES:
            raise CapacityExceeded(
                f"Too many palettes in the image (maximum {MAX_PALETTES})."
            )
        palette.handle = self._next_palette_handle
        self._next_palette_handle += 1
        if index is None:
            self.palettes.append(palette)
            return len(self.palettes) - 1
        self.palettes.insert(index, palette)
        return index

    def get_palette(self, index: int) -> Palette:
        if not isinstance(index, int) or not 0 <= index < len(self.palettes):
            raise ValidationError(f"Invalid palette index: {index}")
        return self.palettes[index]

    def get_palette_index(self, handle: int) -> int:
        for index, palette in enumerate(self.palettes):
            if palette.handle == handle:
                return index
        return -1

    def palette_by_handle(self, handle: int) -> Palette:
        index = self.get_palette_index(handle)
        if index == -1:
            raise ValidationError(f"Unknown palette handle: {handle}")
        return self.palettes[index]

    def swap_palettes(self, index1: int, index2: int) -> bool:
        self.get_palette(index1)
        self.get_palette(index2)
        if index1 == index2:
            return False
        self.palettes[index1], self.palettes[index2] = self.palettes[index2], self.palettes[index1]
        return True

    def remove_palette(self, index: int) -> Palette:
        """Remove a palette; tiles that used it fall back to the first palette."""

        removed = self.get_palette(index)
        if len(self.palettes) == 1:
            raise ValidationError("Cannot remove the only existing palette")
        del self.palettes[index]
        fallback = self.palettes[0].handle
        for tile in self.tiles:
            tile.alternates[:] = [
                alternate
                for alternate in tile.alternates
                if alternate is tile or alternate.palette != removed.handle
            ]
            if tile.palette == removed.handle:
                tile.palette = fallback
        return removed

    def swap_palette_colors(self, palette_index: int, color_index1: int, color_index2: int) -> bool:
        """Swap two palette colors and remap the tiles drawn with that palette."""

        palette = self.get_palette(palette_index)
        if not palette.swap_colors(color_index1, color_index2):
            return False
        seen: set[int] = set()
        for tile in self.tiles:
            for candidate in tile.alternates:
                if id(candidate) in seen or candidate.palette != palette.handle:
                    continue
                seen.add(id(candidate))
                candidate.swap_colors(color_index1, color_index2)
        return True

    # Tiles --------------------------------------------------------------

    def add_tile(self, tile: Tile, index: int | None = None) -> int:
        if tile.capacity != self.capacity:
            raise ValidationError(f"Tile capacity {tile.capacity} does not match {self.capacity}")
        if self.get_palette_index(tile.palette) == -1:
            raise ValidationError(f"Tile references an unknown palette: {tile.palette}")
        tile.handle = self._next_tile_handle
        self._next_tile_handle += 1
        if index is None:
            self.tiles.append(tile)
            return len(self.tiles) - 1
        self.tiles.insert(index, tile)
        return index

    def get_tile(self, index: int) -> Tile:
        if not isinstance(index, int) or not 0 <= index < len(self.tiles):
            raise ValidationError(f"Invalid tile index: {index}")
        return self.tiles[index]

    def get_tile_index(self, handle: int) -> int:
        for index, tile in enumerate(self.tiles):
            if tile.handle == handle:
                return index
        return -1

    def has_tile(self, handle: int) -> bool:
        return self.get_tile_index(handle) != -1

    def tile_by_handle(self, handle: int) -> Tile:
        index = self.get_tile_index(handle)
        if index == -1:
            raise ValidationError(f"Unknown tile handle: {handle}")
        return self.tiles[index]

    def tile_positions(self) -> Dict[int, int]:
        return {tile.handle: index for index, tile in enumerate(self.tiles)}

    def swap_tiles(self, index1: int, index2: int) -> bool:
        self.get_tile(index1)
        self.get_tile(index2)
        if index1 == index2:
            return False
        self.tiles[index1], self.tiles[index2] = self.tiles[index2], self.tiles[index1]
        return True

    def remove_tile(self, index: int) -> Tile:
        self.get_tile(index)
        return self.tiles.pop(index)

    def remove_tiles(self, handles: Sequence[int]) -> List[Tile]:
        doomed = set(handles)
        removed = [tile for tile in self.tiles if tile.handle in doomed]
        self.tiles = [tile for tile in self.tiles if tile.handle not in doomed]
        return removed

    def set_tile_palette(self, tile_index: int, palette_index: int) -> None:
        tile = self.get_tile(tile_index)
        tile.palette = self.get_palette(palette_index).handle

    def use_alternate_tile(self, tile_index: int, palette_index: int) -> Tile:
        """Replace a tile by its alternate drawn with another palette.

        The alternate takes over the handle of the replaced tile, so map cells
        keep pointing at the same slot.
        """

        tile = self.get_tile(tile_index)
        palette = self.get_palette(palette_index)
        for alternate in tile.alternates:
            if alternate.palette == palette.handle:
                break
        else:
            raise ValidationError(
                f"Tile {tile_index} has no alternate for palette {palette_index}"
            )
        if alternate is not tile:
            alternate.handle, tile.handle = tile.handle, None
            self.tiles[tile_index] = alternate
        return alternate

    def get_quantizable_tiles(self) -> List[QuantizableTile]:
        """Find tiles that can be merged into an earlier, equivalent tile.

        Passes, first non-empty result wins:
        1. same pixels and same palette
        2. same pixels, any palette
        3. same pixels under any flip (only if map cells carry flip flags)
        """

        passes: List[Callable[[Tile, Tile], bool]] = [
            lambda tile, other: tile.equals(other) and tile.palette == other.palette,
            lambda tile, other: tile.equals(other),
        ]
        if self.codec.flip_attributes:
            passes.append(lambda tile, other: tile.equals_flipped(other) is not None)

        for matches in passes:
            found = _find_duplicates(self.tiles, matches)
            if found:
                return found
        return []

    # Export -------------------------------------------------------------

    def export_tiles(self) -> List[bytes]:
        return [self.codec.encode_tile(tile) for tile in self.tiles]

    def export_palettes(self) -> List[List[int]]:
        return [self.codec.encode_palette(palette) for palette in self.palettes]

    # Extraction ---------------------------------------------------------

    @classmethod
    def from_pixels(cls, buffer: PixelBuffer, platform: str | PlatformCodec) -> ExtractionResult:
        """Extract palettes, unique tiles and a map from an RGBA image.

        Blocks are scanned row-major. Leading rows made only of palette
        "checker" blocks define palettes literally; every other block is
        turned into a tile whose palette is either an existing superset
        palette or one built by merging the colors of several blocks.
        """

        codec = get_platform(platform)
        if buffer.width % TILE_SIZE or buffer.height % TILE_SIZE:
            raise ValidationError(
                "Invalid image dimensions (width and height must be divisible by 8)"
            )
        cols = buffer.width // TILE_SIZE
        rows = buffer.height // TILE_SIZE
        if cols * rows > MAX_BLOCKS:
            raise CapacityExceeded(
                f"Too many tiles in the image ({cols * rows}). "
                f"Reduce the image to a maximum of {MAX_BLOCKS} tiles."
            )

        tileset = cls(codec)
        capacity = tileset.capacity
        encode_cache: Dict[bytes, Color] = {}
        block_warnings: List[BlockWarning] = []
        blocks: List[_BlockInfo] = []
        pending: List[_BlockInfo] = []
        reading_embedded = True
        embedded_rows = 0

        for y in range(rows):
            row_infos: List[_BlockInfo] = []
            for x in range(cols):
                rgba = buffer.block(x, y)
                info = _extract_block_info(rgba, codec, encode_cache, reading_embedded, x, y)
                if info is None:
                    continue
                if reading_embedded and info.embedded_palette is None:
                    reading_embedded = False
                if info.too_many_colors:
                    warning = BlockWarning(x, y, rgba, info.original_colors)
                    block_warnings.append(warning)
                    warnings.warn(warning.message, RuntimeWarning, stacklevel=2)
                    if len(block_warnings) > MAX_WARNINGS:
                        raise CapacityExceeded(
                            "Too many tiles exceed the color limit. "
                            "Adapt the image to the console limitations first."
                        )
                row_infos.append(info)

            if reading_embedded:
                for info in row_infos:
                    tileset.add_palette(Palette(info.embedded_palette or []))
                embedded_rows += 1
                continue

            for info in row_infos:
                blocks.append(info)
                if any(palette.has_colors(info.colors) for palette in tileset.palettes):
                    continue
                if len(info.colors) == capacity:
                    tileset.add_palette(Palette(info.colors))
                else:
                    pending.append(info)

        _resolve_pending_palettes(tileset, pending, codec.color_model.from_rgb24(*PADDING_COLOR))

        for info in blocks:
            info.tile_index = _materialize_tile(tileset, info)

        tilemap = None
        if codec.has_map:
            tilemap = TileMap(cols, rows - embedded_rows, tileset)
            for info in blocks:
                tilemap.set_cell(info.x, info.y - embedded_rows, info.tile_index)

        return ExtractionResult(tileset, tilemap, block_warnings)


def _find_duplicates(
    tiles: Sequence[Tile], matches: Callable[[Tile, Tile], bool]
) -> List[QuantizableTile]:
    found: List[QuantizableTile] = []
    duplicates: set[int] = set()
    for i, tile in enumerate(tiles):
        if tile.handle in duplicates:
            continue
        for other in tiles[i + 1 :]:
            if other.handle in duplicates or not matches(tile, other):
                continue
            duplicates.add(other.handle)
            flip = tile.equals_flipped(other) or Flip(False, False)
            found.append(QuantizableTile(other.handle, tile.handle, flip))
    return found


def _extract_block_info(
    rgba: bytes,
    codec: PlatformCodec,
    encode_cache: Dict[bytes, Color],
    check_embedded_palette: bool,
    x: int,
    y: int,
) -> Optional[_BlockInfo]:
    capacity = codec.palette_size
    pixels: List[Color] = []
    colors: List[Color] = []
    seen: set[Color] = set()
    transparent = 0

    for i in range(PIXELS_PER_TILE):
        offset = i * 4
        if rgba[offset + 3] < ALPHA_THRESHOLD:
            transparent += 1
            if transparent == TRANSPARENT_PIXEL_LIMIT:
                return None
        key = rgba[offset : offset + 3]
        color = encode_cache.get(key)
        if color is None:
            color = codec.color_model.from_rgb24(key[0], key[1], key[2])
            encode_cache[key] = color
        pixels.append(color)
        if color not in seen:
            seen.add(color)
            colors.append(color)

    info = _BlockInfo(x, y, pixels, colors, len(colors))
    _merge_closest_colors(info, capacity)
    if check_embedded_palette:
        info.embedded_palette = _detect_embedded_palette(info.pixels, capacity)
    return info


def _merge_closest_colors(info: _BlockInfo, capacity: int) -> None:
    """Merge the most similar colors until the block fits ``capacity``.

    The less frequent color of the pair is replaced; on a tie the second color
    of the pair goes.
    """

    while len(info.colors) > capacity:
        pair = closest_pair([color.rgb24 for color in info.colors])
        index1, index2 = (pair.index1, pair.index2) if pair is not None else (0, 1)
        color1 = info.colors[index1]
        color2 = info.colors[index2]
        count1 = info.pixels.count(color1)
        count2 = info.pixels.count(color2)
        if count1 < count2:
            removed, kept, removed_index = color1, color2, index1
        else:
            removed, kept, removed_index = color2, color1, index2
        info.pixels = [kept if color == removed else color for color in info.pixels]
        del info.colors[removed_index]


def _detect_embedded_palette(pixels: Sequence[Color], capacity: int) -> Optional[List[Color]]:
    quad_colors: List[Optional[Color]] = [None] * capacity
    for y, row in enumerate(embedded_block(capacity)):
        for x, quad in enumerate(row):
            color = pixels[y * TILE_SIZE + x]
            if quad_colors[quad] is None:
                quad_colors[quad] = color
            elif quad_colors[quad] != color:
                return None

    if all(color == quad_colors[0] for color in quad_colors[1:]):
        return None
    return [color for color in quad_colors if color is not None]


def _resolve_pending_palettes(tileset: Tileset, pending: List[_BlockInfo], padding: Color) -> None:
    """Build palettes for blocks no registered palette covers.

    Blocks with the most colors go first; each one absorbs the largest
    remaining blocks that still fit, then the palette is padded and sorted
    by luma.
    """

    capacity = tileset.capacity
    pending.sort(key=lambda info: len(info.colors), reverse=True)
    absorbed = [False] * len(pending)

    for i, info in enumerate(pending):
        if absorbed[i]:
            continue
        absorbed[i] = True
        if any(palette.has_colors(info.colors) for palette in tileset.palettes):
            continue

        colors = list(info.colors)
        while len(colors) < capacity:
            room = capacity - len(colors)
            best = -1
            for j, other in enumerate(pending):
                if absorbed[j] or len(other.colors) > room:
                    continue
                if best == -1 or len(other.colors) > len(pending[best].colors):
                    best = j
            if best == -1:
                break
            absorbed[best] = True
            for color in pending[best].colors:
                if color not in colors:
                    colors.append(color)

        colors.extend([padding] * (capacity - len(colors)))
        tileset.add_palette(Palette(colors).sort_by_luma())


def _materialize_tile(tileset: Tileset, info: _BlockInfo) -> int:
    candidates: List[Tile] = []
    for palette in tileset.palettes:
        if not palette.has_colors(info.colors):
            continue
        pixels = [
            [palette.color_index(info.pixels[y * TILE_SIZE + x]) for x in range(TILE_SIZE)]
            for y in range(TILE_SIZE)
        ]
        tile = Tile(pixels, palette.handle, tileset.capacity)
        if not any(candidate.equals(tile) for candidate in candidates):
            candidates.append(tile)

    for candidate in candidates:
        candidate.alternates = candidates
    return tileset.add_tile(candidates[0])
