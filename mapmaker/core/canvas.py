"""Map grid geometry and canvas preparation.

A source frame is centered on a black canvas whose sides are whole
multiples of the map size, so the canvas splits evenly into maps.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from PIL import Image

MAP_SIZE = 128
MAP_PIXELS = MAP_SIZE * MAP_SIZE

BACKGROUND = (0, 0, 0)


class DimensionMismatchError(ValueError):
    """Raised when a frame does not match the size of the first frame."""


def _ceil_div(a: int, b: int) -> int:
    return -(-a // b)


@dataclass(frozen=True)
class FrameGeometry:
    """Grid of maps covering one source frame. Fixed for a whole run."""

    source_width: int
    source_height: int
    map_columns: int
    map_rows: int

    @classmethod
    def from_size(cls, width: int, height: int) -> FrameGeometry:
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid frame size: {width}x{height}")
        return cls(
            source_width=width,
            source_height=height,
            map_columns=_ceil_div(width, MAP_SIZE),
            map_rows=_ceil_div(height, MAP_SIZE),
        )

    @property
    def canvas_width(self) -> int:
        return self.map_columns * MAP_SIZE

    @property
    def canvas_height(self) -> int:
        return self.map_rows * MAP_SIZE

    @property
    def offset_x(self) -> int:
        return (self.canvas_width - self.source_width) // 2

    @property
    def offset_y(self) -> int:
        return (self.canvas_height - self.source_height) // 2

    @property
    def maps_per_frame(self) -> int:
        return self.map_columns * self.map_rows

    def check(self, width: int, height: int) -> None:
        """Raise DimensionMismatchError unless (width, height) is the source size."""
        if (width, height) != (self.source_width, self.source_height):
            raise DimensionMismatchError(
                f"Frame is {width}x{height}, expected "
                f"{self.source_width}x{self.source_height}"
            )


def prepare_canvas(image: Image.Image | np.ndarray, geometry: FrameGeometry) -> np.ndarray:
    """Center ``image`` on a fresh black canvas.

    Returns a writable (canvas_height, canvas_width, 3) uint8 array.
    """
    if isinstance(image, np.ndarray):
        if image.dtype != np.uint8:
            raise ValueError(f"Expected a uint8 pixel array, got {image.dtype}")
        image = Image.fromarray(image)

    geometry.check(image.width, image.height)

    canvas = Image.new("RGB", (geometry.canvas_width, geometry.canvas_height), BACKGROUND)
    canvas.paste(image.convert("RGB"), (geometry.offset_x, geometry.offset_y))
    return np.array(canvas, dtype=np.uint8)
