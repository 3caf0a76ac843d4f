"""Tests for splitting the canvas into map buffers."""

import numpy as np
import pytest

from mapmaker.core.canvas import MAP_PIXELS, FrameGeometry
from mapmaker.core.tiling import chunk_location, pixel_location, split_chunks


class TestChunkLocation:
    def test_origin(self):
        assert chunk_location(0, 0, 3) == (0, 0)

    def test_known_locations(self):
        assert chunk_location(127, 0, 2) == (0, 127)
        assert chunk_location(128, 0, 2) == (1, 0)
        assert chunk_location(0, 128, 2) == (2, 0)
        assert chunk_location(63, 31, 2) == (0, 31 * 128 + 63)
        assert chunk_location(255, 255, 2) == (3, MAP_PIXELS - 1)

    @pytest.mark.parametrize("columns,rows", [(1, 1), (2, 1), (1, 3), (3, 2)])
    def test_bijection(self, columns, rows):
        seen = set()
        for y in range(rows * 128):
            for x in range(columns * 128):
                chunk, offset = chunk_location(x, y, columns)
                assert 0 <= chunk < columns * rows
                assert 0 <= offset < MAP_PIXELS
                assert pixel_location(chunk, offset, columns) == (x, y)
                seen.add((chunk, offset))
        assert len(seen) == columns * rows * MAP_PIXELS


class TestSplitChunks:
    def _grid(self, geometry):
        h, w = geometry.canvas_height, geometry.canvas_width
        # Distinct value per (chunk, row-in-chunk) so misplacement shows up
        ys, xs = np.mgrid[0:h, 0:w]
        return ((ys // 128) * 7 + (xs // 128) * 3 + ys % 128 + xs % 128) % 256

    def test_count_and_length(self):
        geometry = FrameGeometry.from_size(300, 200)
        chunks = split_chunks(np.zeros((256, 384), dtype=np.uint8), geometry)
        assert len(chunks) == 6
        assert all(c.shape == (MAP_PIXELS,) for c in chunks)
        assert all(c.dtype == np.uint8 for c in chunks)

    def test_matches_arithmetic_mapping(self):
        geometry = FrameGeometry.from_size(300, 200)
        grid = self._grid(geometry).astype(np.uint8)
        chunks = split_chunks(grid, geometry)
        for y in range(0, geometry.canvas_height, 17):
            for x in range(0, geometry.canvas_width, 13):
                chunk, offset = chunk_location(x, y, geometry.map_columns)
                assert chunks[chunk][offset] == grid[y, x]

    def test_chunks_row_major(self):
        geometry = FrameGeometry.from_size(256, 256)
        grid = np.zeros((256, 256), dtype=np.uint8)
        grid[:128, 128:] = 1  # top right
        grid[128:, :128] = 2  # bottom left
        grid[128:, 128:] = 3
        chunks = split_chunks(grid, geometry)
        assert [int(c[0]) for c in chunks] == [0, 1, 2, 3]
        assert all((c == c[0]).all() for c in chunks)

    def test_chunks_read_only(self):
        geometry = FrameGeometry.from_size(128, 128)
        grid = np.zeros((128, 128), dtype=np.uint8)
        chunks = split_chunks(grid, geometry)
        with pytest.raises(ValueError):
            chunks[0][0] = 1
        grid[0, 0] = 9
        assert chunks[0][0] == 0

    def test_wrong_shape(self):
        geometry = FrameGeometry.from_size(130, 65)
        with pytest.raises(ValueError, match="expected"):
            split_chunks(np.zeros((128, 128), dtype=np.uint8), geometry)
