"""Fixed-capacity console palettes."""

from __future__ import annotations

from typing import Iterable, List, Sequence

from .colors import Color
from .errors import ValidationError

# Index layout of the 8x8 "checker" block that stores a palette inside an image.
# 4-color palettes use 2x2 quadrants of 4x4 pixels, 16-color palettes use 4x4
# quadrants of 2x2 pixels.
EMBEDDED_PALETTE_LAYOUT = {
    4: (4, 2),
    16: (2, 4),
}


class Palette:
    """Ordered list of native colors; the order defines tile pixel indexes."""

    def __init__(self, colors: Iterable[Color], handle: int | None = None):
        self.colors: List[Color] = list(colors)
        self.handle = handle

    def __len__(self) -> int:
        return len(self.colors)

    def __iter__(self):
        return iter(self.colors)

    def __getitem__(self, index: int) -> Color:
        return self.colors[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Palette):
            return NotImplemented
        return self.colors == other.colors

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        values = ", ".join(color.to_hex() for color in self.colors)
        return f"Palette(handle={self.handle}, colors=[{values}])"

    def color_index(self, color: Color) -> int:
        """Return the first index holding ``color`` or -1."""

        for index, candidate in enumerate(self.colors):
            if candidate == color:
                return index
        return -1

    def has_color(self, color: Color) -> bool:
        return self.color_index(color) != -1

    def has_colors(self, colors: Sequence[Color]) -> bool:
        return all(self.has_color(color) for color in colors)

    def sort_by_luma(self) -> "Palette":
        self.colors.sort(key=lambda color: color.luma)
        return self

    def validate_index(self, index: int, label: str = "color index") -> None:
        if not isinstance(index, int) or isinstance(index, bool) or not 0 <= index < len(self.colors):
            raise ValidationError(f"Invalid {label}: {index}")

    def swap_colors(self, index1: int, index2: int) -> bool:
        if index1 == index2:
            return False
        self.validate_index(index1, "color index 1")
        self.validate_index(index2, "color index 2")
        self.colors[index1], self.colors[index2] = self.colors[index2], self.colors[index1]
        return True

    def values(self) -> List[int]:
        return [color.value for color in self.colors]

    def copy(self) -> "Palette":
        return Palette(self.colors)


def embedded_block(capacity: int) -> List[List[int]]:
    """Return the 8x8 quadrant-index layout of a ``capacity``-color checker block."""

    layout = EMBEDDED_PALETTE_LAYOUT.get(capacity)
    if layout is None:
        raise ValidationError(f"Invalid palette colors size: {capacity}")
    quad_size, quads_per_row = layout
    return [
        [(y // quad_size) * quads_per_row + x // quad_size for x in range(8)]
        for y in range(8)
    ]
