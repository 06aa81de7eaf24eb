"""8x8 tiles of palette-relative color indexes."""

from __future__ import annotations

from typing import List, NamedTuple, Sequence, Tuple

from .errors import ValidationError

TILE_SIZE = 8


class Flip(NamedTuple):
    flip_x: bool
    flip_y: bool


# Orientation order used by Tile.orientations(): bit 0 = X, bit 1 = Y.
ORIENTATIONS = (
    Flip(False, False),
    Flip(True, False),
    Flip(False, True),
    Flip(True, True),
)


def _empty_pixels() -> List[List[int]]:
    return [[0] * TILE_SIZE for _ in range(TILE_SIZE)]


class Tile:
    """An 8x8 block of color indexes bound to a default palette.

    ``palette`` is the handle of a palette in the owning tileset and
    ``capacity`` the number of colors of that palette. Tiles built from the
    same image block for different palettes share one ``alternates`` list.
    """

    def __init__(
        self,
        pixels: Sequence[Sequence[int]] | None = None,
        palette: int = 0,
        capacity: int = 4,
        handle: int | None = None,
    ):
        if pixels is None:
            rows = _empty_pixels()
        else:
            if len(pixels) != TILE_SIZE or any(len(row) != TILE_SIZE for row in pixels):
                raise ValidationError("Invalid tile data (must be an 8x8 array)")
            rows = [list(row) for row in pixels]
            for row in rows:
                for index in row:
                    if not isinstance(index, int) or not 0 <= index < capacity:
                        raise ValidationError(f"Invalid color index: {index}")
        self._pixels = rows
        self.palette = palette
        self.capacity = capacity
        self.handle = handle
        self.alternates: List[Tile] = [self]
        self._version = 0
        self._orientation_cache: Tuple[int, Tuple[Tile, ...]] | None = None

    def __repr__(self) -> str:
        return f"Tile(handle={self.handle}, palette={self.palette})"

    def get_pixel(self, x: int, y: int) -> int:
        return self._pixels[y][x]

    def set_pixel(self, x: int, y: int, color_index: int) -> None:
        if (
            not isinstance(color_index, int)
            or isinstance(color_index, bool)
            or not 0 <= color_index < self.capacity
        ):
            raise ValidationError(f"Invalid color index: {color_index}")
        self._pixels[y][x] = color_index
        self._version += 1

    def rows(self) -> Tuple[Tuple[int, ...], ...]:
        return tuple(tuple(row) for row in self._pixels)

    def swap_colors(self, index1: int, index2: int) -> bool:
        if index1 == index2:
            return False
        for label, index in (("color index 1", index1), ("color index 2", index2)):
            if not isinstance(index, int) or not 0 <= index < self.capacity:
                raise ValidationError(f"Invalid {label}: {index}")
        for row in self._pixels:
            for x, value in enumerate(row):
                if value == index1:
                    row[x] = index2
                elif value == index2:
                    row[x] = index1
        self._version += 1
        return True

    def flip(self, flip_x: bool = False, flip_y: bool = False) -> "Tile":
        pixels = [
            [
                self._pixels[TILE_SIZE - 1 - y if flip_y else y][TILE_SIZE - 1 - x if flip_x else x]
                for x in range(TILE_SIZE)
            ]
            for y in range(TILE_SIZE)
        ]
        return Tile(pixels, self.palette, self.capacity)

    def orientations(self) -> Tuple["Tile", ...]:
        """Return this tile unflipped, flipped on X, on Y and on both axes."""

        cache = self._orientation_cache
        if cache is None or cache[0] != self._version:
            tiles = tuple(self.flip(flip.flip_x, flip.flip_y) for flip in ORIENTATIONS)
            self._orientation_cache = (self._version, tiles)
            return tiles
        return cache[1]

    def equals(self, other: "Tile") -> bool:
        return self._pixels == other._pixels

    def equals_flipped(self, other: "Tile") -> Flip | None:
        """Return the flip that turns this tile into ``other``, if any."""

        for flip, oriented in zip(ORIENTATIONS, self.orientations()):
            if oriented.equals(other):
                return flip
        return None

    def copy(self) -> "Tile":
        return Tile(self._pixels, self.palette, self.capacity)
