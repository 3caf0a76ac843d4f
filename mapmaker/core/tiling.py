"""Split a canvas of palette indices into per-map buffers.

Chunks are numbered row-major across the map grid, and pixels row-major
within each chunk:

    chunk_index = (y // 128) * map_columns + x // 128
    offset      = (y % 128) * 128 + x % 128
"""

from __future__ import annotations

import numpy as np

from mapmaker.core.canvas import MAP_PIXELS, MAP_SIZE, FrameGeometry


def chunk_location(x: int, y: int, map_columns: int) -> tuple[int, int]:
    """Canvas pixel (x, y) -> (chunk_index, offset_in_chunk)."""
    chunk_index = (y // MAP_SIZE) * map_columns + x // MAP_SIZE
    offset = (y % MAP_SIZE) * MAP_SIZE + x % MAP_SIZE
    return chunk_index, offset


def pixel_location(chunk_index: int, offset: int, map_columns: int) -> tuple[int, int]:
    """Inverse of chunk_location."""
    chunk_y, chunk_x = divmod(chunk_index, map_columns)
    row, col = divmod(offset, MAP_SIZE)
    return chunk_x * MAP_SIZE + col, chunk_y * MAP_SIZE + row


def split_chunks(indices: np.ndarray, geometry: FrameGeometry) -> tuple[np.ndarray, ...]:
    """Partition a (canvas_height, canvas_width) index grid into map buffers.

    Returns ``geometry.maps_per_frame`` read-only uint8 arrays of length
    16384, in chunk row-major order.
    """
    expected = (geometry.canvas_height, geometry.canvas_width)
    if indices.shape != expected:
        raise ValueError(f"Index grid has shape {indices.shape}, expected {expected}")

    rows, cols = geometry.map_rows, geometry.map_columns
    grid = (
        np.asarray(indices, dtype=np.uint8)
        .reshape(rows, MAP_SIZE, cols, MAP_SIZE)
        .swapaxes(1, 2)
        .reshape(rows * cols, MAP_PIXELS)
        .copy()
    )
    grid.setflags(write=False)
    return tuple(grid)
