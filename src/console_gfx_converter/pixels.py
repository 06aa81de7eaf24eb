"""RGBA pixel buffers fed to the tile extractor."""

from __future__ import annotations

from dataclasses import dataclass

from PIL import Image

from .errors import ValidationError


@dataclass(frozen=True)
class PixelBuffer:
    """Row-major 8-bit RGBA pixels."""

    width: int
    height: int
    data: bytes

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValidationError(f"Invalid image dimensions: {self.width}x{self.height}")
        expected = self.width * self.height * 4
        if len(self.data) != expected:
            raise ValidationError(
                f"RGBA buffer must hold {expected} bytes for {self.width}x{self.height} (got {len(self.data)})"
            )

    @classmethod
    def from_image(cls, image: Image.Image) -> "PixelBuffer":
        rgba = image.convert("RGBA")
        width, height = rgba.size
        return cls(width, height, rgba.tobytes())

    def block(self, block_x: int, block_y: int, size: int = 8) -> bytes:
        """Return the RGBA bytes of the ``size`` x ``size`` block at block coordinates."""

        stride = self.width * 4
        left = block_x * size * 4
        top = block_y * size
        return b"".join(
            self.data[(top + row) * stride + left : (top + row) * stride + left + size * 4]
            for row in range(size)
        )
