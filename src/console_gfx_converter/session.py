"""Conversion sessions: one extracted image plus the edits applied to it."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from PIL import Image

from .errors import CapacityExceeded, ConversionError, ValidationError
from .pixels import PixelBuffer
from .platforms import PlatformCodec, get_platform
from .tilemap import MAX_MAP_TILE_INDEX, TileMap
from .tileset import BlockWarning, QuantizableTile, Tileset

# Images exactly this wide are treated as finished tile sheets and are never
# reduced automatically.
SHEET_WIDTH = 128


@dataclass
class ConvertOptions:
    """Options for the image conversion."""

    # Merge duplicate tiles when the image yields more than 255 of them.
    auto_quantize: bool = True


@dataclass(frozen=True)
class ExportLine:
    """One line of exported data handed to a text formatter."""

    kind: str  # "bytes" or "words"
    values: Sequence[int]
    comment: str = ""


@dataclass
class ConversionSession:
    """The tileset, map and warnings produced from one image.

    The caller owns the session and passes it to every editing or export
    operation; loading a new image means creating a new session.
    """

    codec: PlatformCodec
    tileset: Tileset
    tilemap: Optional[TileMap] = None
    warnings: List[BlockWarning] = field(default_factory=list)
    width: int = 0
    height: int = 0
    name: str = ""

    # Editing ------------------------------------------------------------

    def quantizable_tiles(self) -> List[QuantizableTile]:
        return self.tileset.get_quantizable_tiles()

    def quantize(self) -> List[QuantizableTile]:
        """Remove duplicate tiles and repoint the map to the tiles they duplicate."""

        found = self.quantizable_tiles()
        if not found:
            raise CapacityExceeded("No quantizable tiles found")
        self.apply_quantization(found)
        return found

    def apply_quantization(self, found: Sequence[QuantizableTile]) -> None:
        self.tileset.remove_tiles([entry.tile for entry in found])
        if self.tilemap is not None:
            for entry in found:
                self.tilemap.replace_map_tiles(
                    entry.tile, entry.source, entry.flip.flip_x, entry.flip.flip_y
                )

    def remove_tile(self, index: int) -> None:
        tile = self.tileset.remove_tile(index)
        if self.tilemap is not None:
            self.tilemap.clear_tile(tile.handle)

    def remove_palette(self, index: int) -> None:
        self.tileset.remove_palette(index)

    def swap_tiles(self, index1: int, index2: int) -> bool:
        return self.tileset.swap_tiles(index1, index2)

    def swap_palettes(self, index1: int, index2: int) -> bool:
        return self.tileset.swap_palettes(index1, index2)

    def swap_palette_colors(self, palette_index: int, color_index1: int, color_index2: int) -> bool:
        return self.tileset.swap_palette_colors(palette_index, color_index1, color_index2)

    def set_tile_palette(self, tile_index: int, palette_index: int) -> None:
        self.tileset.set_tile_palette(tile_index, palette_index)

    def use_alternate_tile(self, tile_index: int, palette_index: int) -> None:
        self.tileset.use_alternate_tile(tile_index, palette_index)

    # Export -------------------------------------------------------------

    def _require_map(self) -> TileMap:
        if self.tilemap is None:
            raise ValidationError(f"{self.codec.title} has no map format")
        if not self.tilemap.check_valid_indexes():
            raise ValidationError(
                f"Map contains invalid tile indexes (greater than 0x{MAX_MAP_TILE_INDEX:02x})"
            )
        return self.tilemap

    def _map_rows(self) -> List[List[int]]:
        tilemap = self._require_map()
        attributes = self._attribute_rows(tilemap) if self.codec.flip_attributes else None
        rows = []
        for y, indexes in enumerate(tilemap.tile_indexes()):
            row_attributes = attributes[y] if attributes is not None else [0] * len(indexes)
            rows.append(self.codec.encode_map_row(list(zip(indexes, row_attributes))))
        return rows

    def _attribute_rows(self, tilemap: TileMap) -> List[List[int]]:
        rows = []
        for cells in tilemap.rows():
            row = []
            for cell in cells:
                if cell is None:
                    row.append(0)
                    continue
                tile = self.tileset.tile_by_handle(cell.tile)
                palette_index = self.tileset.get_palette_index(tile.palette)
                row.append(self.codec.encode_attribute(palette_index, cell.flip_x, cell.flip_y))
            rows.append(row)
        return rows

    def tile_bytes(self) -> bytes:
        return b"".join(self.tileset.export_tiles())

    def palette_bytes(self) -> bytes:
        return b"".join(self.codec.palette_to_bytes(palette) for palette in self.tileset.palettes)

    def map_bytes(self) -> bytes:
        return bytes(value for row in self._map_rows() for value in row)

    def attribute_bytes(self) -> bytes:
        if not self.codec.attribute_table:
            raise ValidationError(f"{self.codec.title} has no separate map attribute table")
        tilemap = self._require_map()
        return bytes(value for row in self._attribute_rows(tilemap) for value in row)

    def tile_lines(self) -> List[ExportLine]:
        return [
            ExportLine("bytes", list(data), f"Tile {index:02x}")
            for index, data in enumerate(self.tileset.export_tiles())
        ]

    def palette_lines(self) -> List[ExportLine]:
        kind = self.codec.palette_data_kind
        return [
            ExportLine(kind, data, f"Palette {index}")
            for index, data in enumerate(self.tileset.export_palettes())
        ]

    def map_lines(self) -> List[ExportLine]:
        return [
            ExportLine("bytes", row, f"Row {index}")
            for index, row in enumerate(self._map_rows())
        ]

    def attribute_lines(self) -> List[ExportLine]:
        if not self.codec.attribute_table:
            raise ValidationError(f"{self.codec.title} has no separate map attribute table")
        tilemap = self._require_map()
        return [
            ExportLine("bytes", row, f"Row {index}")
            for index, row in enumerate(self._attribute_rows(tilemap))
        ]


def convert_pixels(
    buffer: PixelBuffer,
    platform: str | PlatformCodec,
    options: ConvertOptions | None = None,
    name: str = "",
) -> ConversionSession:
    options = options or ConvertOptions()
    codec = get_platform(platform)
    result = Tileset.from_pixels(buffer, codec)
    session = ConversionSession(
        codec=codec,
        tileset=result.tileset,
        tilemap=result.tilemap,
        warnings=result.warnings,
        width=buffer.width,
        height=buffer.height,
        name=name,
    )

    if (
        options.auto_quantize
        and len(session.tileset.tiles) > MAX_MAP_TILE_INDEX
        and buffer.width != SHEET_WIDTH
    ):
        found = session.quantizable_tiles()
        if found:
            session.apply_quantization(found)

    return session


def convert_image(
    image: Image.Image,
    platform: str | PlatformCodec,
    options: ConvertOptions | None = None,
    name: str = "",
) -> ConversionSession:
    return convert_pixels(PixelBuffer.from_image(image), platform, options, name)


def convert_png(
    path: str | Path,
    platform: str | PlatformCodec,
    options: ConvertOptions | None = None,
) -> ConversionSession:
    path = Path(path)
    try:
        with Image.open(path) as img:
            return convert_image(img, platform, options, name=path.stem)
    except FileNotFoundError as exc:
        raise ConversionError(f"Input file not found: {path}") from exc
    except OSError as exc:
        raise ConversionError(f"Failed to read PNG: {path}") from exc
