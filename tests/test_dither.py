"""Tests for Floyd-Steinberg error diffusion onto the map palette."""

import numpy as np
import pytest

from mapmaker.core.color import get_color_index
from mapmaker.core.dither import DITHER_KERNEL, quantize_canvas
from mapmaker.core.palette import BLACK_INDEX, MAP_PALETTE

MARKER = [200, 200, 200]


class MarkerIndex:
    """Index 5 with error (64, 64, 64) for MARKER pixels; exact index 4 otherwise."""

    def __init__(self, error=(64, 64, 64)):
        self.error = error
        self.queries = []

    def find_closest(self, rgb):
        self.queries.append(list(rgb))
        if list(rgb) == MARKER:
            return 5, self.error
        return 4, (0, 0, 0)


def _canvas(width, height, marker_at=None):
    canvas = np.zeros((height, width, 3), dtype=np.uint8)
    if marker_at is not None:
        x, y = marker_at
        canvas[y, x] = MARKER
    return canvas


class TestKernel:
    def test_weights_sum_to_one(self):
        assert sum(weight for _, _, weight in DITHER_KERNEL) == 1.0

    def test_order_and_weights(self):
        assert DITHER_KERNEL == (
            (1, 0, 0.4375),
            (-1, 1, 0.1875),
            (0, 1, 0.3125),
            (1, 1, 0.0625),
        )


class TestDiffusion:
    def test_error_spread_to_neighbors(self):
        canvas = _canvas(3, 2, marker_at=(1, 0))
        indices = quantize_canvas(canvas, MarkerIndex())

        # 64/256 * weight * 256
        assert canvas[0, 2].tolist() == [28, 28, 28]
        assert canvas[1, 0].tolist() == [12, 12, 12]
        assert canvas[1, 1].tolist() == [20, 20, 20]
        assert canvas[1, 2].tolist() == [4, 4, 4]
        assert indices[0, 1] == 5
        assert indices[0, 0] == 4

    def test_later_pixels_see_earlier_error(self):
        canvas = _canvas(2, 1, marker_at=(0, 0))
        index = MarkerIndex()
        quantize_canvas(canvas, index)
        assert index.queries[1] == [28, 28, 28]

    def test_right_edge_does_not_wrap(self):
        canvas = _canvas(3, 2, marker_at=(2, 0))
        quantize_canvas(canvas, MarkerIndex())

        assert canvas[1, 1].tolist() == [12, 12, 12]
        assert canvas[1, 2].tolist() == [20, 20, 20]
        # (x + 1) would be x = 3; must not land on the next row's first pixel
        assert canvas[1, 0].tolist() == [0, 0, 0]

    def test_left_edge_skips_negative_x(self):
        canvas = _canvas(2, 2, marker_at=(0, 0))
        quantize_canvas(canvas, MarkerIndex())
        assert canvas[0, 1].tolist() == [28, 28, 28]
        assert canvas[1, 0].tolist() == [20, 20, 20]
        assert canvas[1, 1].tolist() == [4, 4, 4]

    def test_bottom_row_has_no_downward_spread(self):
        canvas = _canvas(3, 2, marker_at=(2, 1))
        before = canvas.copy()
        quantize_canvas(canvas, MarkerIndex())
        assert (canvas == before).all()

    def test_clamps_high(self):
        canvas = _canvas(2, 1, marker_at=(0, 0))
        canvas[0, 1] = [250, 250, 250]
        quantize_canvas(canvas, MarkerIndex())
        assert canvas[0, 1].tolist() == [255, 255, 255]

    def test_clamps_low(self):
        canvas = _canvas(2, 1, marker_at=(0, 0))
        canvas[0, 1] = [10, 10, 10]
        quantize_canvas(canvas, MarkerIndex(error=(-64, -64, -64)))
        assert canvas[0, 1].tolist() == [0, 0, 0]

    def test_channels_independent(self):
        canvas = _canvas(2, 1, marker_at=(0, 0))
        quantize_canvas(canvas, MarkerIndex(error=(64, 0, -64)))
        assert canvas[0, 1].tolist() == [28, 0, 0]

    def test_no_dither_leaves_canvas(self):
        canvas = _canvas(3, 2, marker_at=(0, 0))
        before = canvas.copy()
        indices = quantize_canvas(canvas, MarkerIndex(), dither=False)
        assert (canvas == before).all()
        assert indices[0, 0] == 5

    def test_rejects_bad_shape(self):
        with pytest.raises(ValueError, match="canvas"):
            quantize_canvas(np.zeros((4, 4), dtype=np.uint8), MarkerIndex())


class TestWithMapPalette:
    def test_palette_colors_are_stable(self):
        """An image made only of palette colors diffuses no error."""
        colors = [entry.rgb for entry in MAP_PALETTE]
        canvas = np.array(colors[:240], dtype=np.uint8).reshape(12, 20, 3)
        before = canvas.copy()

        indices = quantize_canvas(canvas, get_color_index())

        assert (canvas == before).all()
        expected = [entry.index for entry in MAP_PALETTE][:240]
        assert indices.flatten().tolist() == expected

    def test_black_canvas(self):
        canvas = np.zeros((8, 8, 3), dtype=np.uint8)
        indices = quantize_canvas(canvas)
        assert (indices == BLACK_INDEX).all()

    def test_output_in_palette_range(self):
        rng = np.random.default_rng(11)
        canvas = rng.integers(0, 256, size=(16, 16, 3)).astype(np.uint8)
        indices = quantize_canvas(canvas)
        assert indices.min() >= 4
        assert indices.max() <= 247

    def test_mean_preservation(self):
        """Dithering should roughly preserve the mean color."""
        canvas = np.full((64, 64, 3), (130, 110, 90), dtype=np.uint8)
        indices = quantize_canvas(canvas)
        rgb = MAP_PALETTE.rgb[indices.astype(int) - MAP_PALETTE.first_index]
        mean = rgb.reshape(-1, 3).mean(axis=0)
        assert np.all(np.abs(mean - [130, 110, 90]) < 8)

    def test_no_dither_matches_direct_lookup(self):
        rng = np.random.default_rng(5)
        canvas = rng.integers(0, 256, size=(8, 8, 3)).astype(np.uint8)
        indices = quantize_canvas(canvas.copy(), dither=False)
        index = get_color_index()
        for y in range(8):
            for x in range(8):
                rgb = canvas[y, x].tolist()
                expected, _ = index.find_closest(rgb)
                chosen = MAP_PALETTE[int(indices[y, x])].rgb
                best = MAP_PALETTE[expected].rgb
                assert sum((a - b) ** 2 for a, b in zip(rgb, chosen)) == sum(
                    (a - b) ** 2 for a, b in zip(rgb, best)
                )
