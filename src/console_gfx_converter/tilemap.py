"""Tile maps: grids of tile references with per-cell flip flags."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator, List, Optional

from .errors import ValidationError

if TYPE_CHECKING:
    from .tileset import Tileset

# Map tile index fields are a single byte.
MAX_MAP_TILE_INDEX = 0xFF


@dataclass(frozen=True)
class MapCell:
    tile: int  # tile handle
    flip_x: bool = False
    flip_y: bool = False


class TileMap:
    """A ``width`` x ``height`` grid of cells referencing tiles of a tileset.

    Cells hold tile handles, so reordering the tileset never breaks the map.
    A ``None`` cell is a gap (a transparent block of the source image).
    """

    def __init__(self, width: int, height: int, tileset: "Tileset"):
        if width < 0 or height < 0:
            raise ValidationError(f"Invalid map size: {width}x{height}")
        self.width = width
        self.height = height
        self.tileset = tileset
        self.cells: List[Optional[MapCell]] = [None] * (width * height)

    def __repr__(self) -> str:
        return f"TileMap({self.width}x{self.height})"

    def _offset(self, x: int, y: int) -> int:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise ValidationError(f"Map position out of range: ({x}, {y})")
        return y * self.width + x

    def get_cell(self, x: int, y: int) -> Optional[MapCell]:
        return self.cells[self._offset(x, y)]

    def set_cell(
        self,
        x: int,
        y: int,
        tile_index: int,
        flip_x: bool = False,
        flip_y: bool = False,
    ) -> MapCell:
        """Point the cell at ``(x, y)`` to the tile at ``tile_index`` in the tileset."""

        offset = self._offset(x, y)
        tile = self.tileset.get_tile(tile_index)
        cell = MapCell(tile.handle, bool(flip_x), bool(flip_y))
        self.cells[offset] = cell
        return cell

    def clear_cell(self, x: int, y: int) -> None:
        self.cells[self._offset(x, y)] = None

    def replace_map_tiles(
        self,
        search: int,
        replace: int,
        flip_x: bool = False,
        flip_y: bool = False,
    ) -> "TileMap":
        """Repoint every cell referencing tile handle ``search`` to ``replace``."""

        if not self.tileset.has_tile(replace):
            raise ValidationError("Invalid tile to replace with")
        cell = MapCell(replace, bool(flip_x), bool(flip_y))
        for offset, current in enumerate(self.cells):
            if current is not None and current.tile == search:
                self.cells[offset] = cell
        return self

    def clear_tile(self, handle: int) -> int:
        """Turn every cell referencing ``handle`` into a gap; return the count."""

        cleared = 0
        for offset, current in enumerate(self.cells):
            if current is not None and current.tile == handle:
                self.cells[offset] = None
                cleared += 1
        return cleared

    def referenced_handles(self) -> set[int]:
        return {cell.tile for cell in self.cells if cell is not None}

    def check_valid_indexes(self) -> bool:
        positions = self.tileset.tile_positions()
        for handle in self.referenced_handles():
            position = positions.get(handle)
            if position is None or position > MAX_MAP_TILE_INDEX:
                return False
        return True

    def rows(self) -> Iterator[List[Optional[MapCell]]]:
        for y in range(self.height):
            yield self.cells[y * self.width : (y + 1) * self.width]

    def tile_indexes(self) -> List[List[int]]:
        """Return tileset positions per row; gaps become index 0."""

        positions = self.tileset.tile_positions()
        return [
            [0 if cell is None else positions[cell.tile] for cell in row]
            for row in self.rows()
        ]
