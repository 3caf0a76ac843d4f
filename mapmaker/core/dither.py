"""Floyd-Steinberg error diffusion onto the map palette."""

from __future__ import annotations

from typing import Protocol, Sequence

import numpy as np

from mapmaker.core.color import NO_DIFFERENCE, Difference, get_color_index

# (dx, dy, weight), applied in this order
DITHER_KERNEL: tuple[tuple[int, int, float], ...] = (
    (1, 0, 7 / 16),
    (-1, 1, 3 / 16),
    (0, 1, 5 / 16),
    (1, 1, 1 / 16),
)


class NearestColor(Protocol):
    def find_closest(self, rgb: Sequence[int]) -> tuple[int, Difference]: ...


def _spread(value: int, error: float, weight: float) -> int:
    """Add a weighted share of ``error`` (already divided by 256) to a channel."""
    v = value / 256.0 + error * weight
    if v >= 1.0:
        return 255
    if v <= 0.0:
        return 0
    return int(v * 256.0)


def quantize_canvas(
    canvas: np.ndarray,
    color_index: NearestColor | None = None,
    dither: bool = True,
    cache: NearestColor | None = None,
) -> np.ndarray:
    """Assign every canvas pixel a palette index, diffusing the residual.

    Pixels are visited in raster order and each lookup sees the error that
    earlier pixels deposited into it, so the scan cannot be split within a
    frame. ``canvas`` is updated in place with the adjusted pixel values.

    Args:
        canvas: (height, width, 3) uint8 array, owned by the caller.
        color_index: nearest-color lookup, defaults to the shared index.
        dither: if False, map each pixel to its nearest color only.
        cache: optional memo in front of ``color_index``.

    Returns:
        (height, width) uint8 array of palette indices.
    """
    if canvas.ndim != 3 or canvas.shape[2] != 3:
        raise ValueError(f"Expected an (h, w, 3) canvas, got shape {canvas.shape}")
    if color_index is None:
        color_index = get_color_index()

    h, w = canvas.shape[:2]
    if not dither and hasattr(color_index, "find_closest_many"):
        return color_index.find_closest_many(canvas)

    lookup = (cache if cache is not None else color_index).find_closest
    rows = canvas.tolist()
    out = np.empty((h, w), dtype=np.uint8)

    for y in range(h):
        row = rows[y]
        row_out = [0] * w
        for x in range(w):
            idx, diff = lookup(row[x])
            row_out[x] = idx

            if not dither or diff == NO_DIFFERENCE:
                continue

            er, eg, eb = diff[0] / 256.0, diff[1] / 256.0, diff[2] / 256.0
            for dx, dy, weight in DITHER_KERNEL:
                nx = x + dx
                ny = y + dy
                if nx < 0 or nx >= w or ny >= h:
                    continue
                target = rows[ny][nx]
                target[0] = _spread(target[0], er, weight)
                target[1] = _spread(target[1], eg, weight)
                target[2] = _spread(target[2], eb, weight)
        out[y] = row_out

    canvas[...] = np.asarray(rows, dtype=np.uint8)
    return out
