"""Tests for nearest palette color lookup."""

import numpy as np
import pytest

from mapmaker.core.color import NO_DIFFERENCE, ColorIndex, get_color_index
from mapmaker.core.palette import BLACK_INDEX, MAP_COLORS, MAP_PALETTE, Palette, PaletteError


def _distance(rgb, index):
    chosen = MAP_PALETTE[index].rgb
    return sum((a - b) ** 2 for a, b in zip(rgb, chosen))


@pytest.fixture(scope="module")
def color_index():
    return get_color_index()


class TestFindClosest:
    def test_every_entry_maps_to_itself(self, color_index):
        for entry in MAP_PALETTE:
            assert color_index.find_closest(entry.rgb) == (entry.index, (0, 0, 0))

    def test_black_fast_path(self, color_index):
        assert color_index.find_closest((0, 0, 0)) == (BLACK_INDEX, NO_DIFFERENCE)

    def test_black_fast_path_matches_full_search(self, color_index):
        index, _ = color_index.brute_force_closest((0, 0, 0))
        assert index == BLACK_INDEX

    def test_difference_is_query_minus_chosen(self, color_index):
        rgb = (200, 30, 90)
        index, diff = color_index.find_closest(rgb)
        chosen = MAP_PALETTE[index].rgb
        assert diff == tuple(q - c for q, c in zip(rgb, chosen))

    def test_near_black_uses_tree(self, color_index):
        # Not pure black, so no shortcut: nearest is (13, 13, 13)
        index, diff = color_index.find_closest((0, 0, 1))
        assert index == BLACK_INDEX
        assert diff == (-13, -13, -12)

    def test_matches_brute_force_distance(self, color_index):
        rng = np.random.default_rng(7)
        for rgb in rng.integers(0, 256, size=(300, 3)):
            rgb = tuple(int(c) for c in rgb)
            fast, _ = color_index.find_closest(rgb)
            slow, _ = color_index.brute_force_closest(rgb)
            # Exact ties may pick different entries; distances must agree
            assert _distance(rgb, fast) == _distance(rgb, slow)

    def test_accepts_numpy_pixel(self, color_index):
        pixel = np.array([255, 255, 255], dtype=np.uint8)
        assert color_index.find_closest(pixel) == (34, (0, 0, 0))


class TestFindClosestMany:
    def test_matches_single_lookups(self, color_index):
        rng = np.random.default_rng(3)
        pixels = rng.integers(0, 256, size=(6, 5, 3)).astype(np.uint8)
        result = color_index.find_closest_many(pixels)
        assert result.shape == (6, 5)
        assert result.dtype == np.uint8
        for y in range(6):
            for x in range(5):
                rgb = tuple(int(c) for c in pixels[y, x])
                expected, _ = color_index.find_closest(rgb)
                assert _distance(rgb, int(result[y, x])) == _distance(rgb, expected)

    def test_black_pixels(self, color_index):
        pixels = np.zeros((2, 2, 3), dtype=np.uint8)
        assert (color_index.find_closest_many(pixels) == BLACK_INDEX).all()


class TestColorIndexConstruction:
    def test_shared_instance(self):
        assert get_color_index() is get_color_index()

    def test_black_must_be_nearest_to_black(self):
        # Claim white is the black entry
        palette = Palette.from_colors(MAP_COLORS, black_index=34)
        with pytest.raises(PaletteError, match="Nearest color to black"):
            ColorIndex(palette)
