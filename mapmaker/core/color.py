"""Nearest palette color lookup backed by a k-d tree."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Sequence, Tuple

import numpy as np
from scipy.spatial import KDTree

from mapmaker.core.palette import MAP_PALETTE, Palette, PaletteError

logger = logging.getLogger(__name__)

# Per-channel signed difference between a query color and the chosen color
Difference = Tuple[int, int, int]

NO_DIFFERENCE: Difference = (0, 0, 0)


class ColorIndex:
    """Answers "closest palette color" queries in squared RGB distance.

    Exact ties between two palette colors are resolved by the tree's
    traversal order and are not otherwise specified.

    Instances are read-only after construction and can be shared between
    threads.
    """

    def __init__(self, palette: Palette) -> None:
        self.palette = palette
        self._colors = tuple(entry.rgb for entry in palette)
        self._indices = tuple(entry.index for entry in palette)
        self._rgb = palette.rgb.astype(np.int64)
        self._tree = KDTree(palette.rgb)
        self._black_index = palette.black.index

        # Pure black skips the tree entirely, which is only correct while
        # the black entry really is black's nearest neighbor.
        nearest_black, _ = self.brute_force_closest((0, 0, 0))
        if nearest_black != self._black_index:
            raise PaletteError(
                f"Nearest color to black is index {nearest_black}, "
                f"not the black index {self._black_index}"
            )
        logger.debug("Built color index over %d palette entries", len(palette))

    def find_closest(self, rgb: Sequence[int]) -> tuple[int, Difference]:
        """Return (palette_index, rgb - chosen_rgb) for a single color."""
        r, g, b = int(rgb[0]), int(rgb[1]), int(rgb[2])
        if r == 0 and g == 0 and b == 0:
            return self._black_index, NO_DIFFERENCE

        _, pos = self._tree.query((r, g, b))
        pos = int(pos)
        cr, cg, cb = self._colors[pos]
        return self._indices[pos], (r - cr, g - cg, b - cb)

    def brute_force_closest(self, rgb: Sequence[int]) -> tuple[int, Difference]:
        """Linear scan over the whole table, with no black shortcut."""
        query = np.array([int(c) for c in rgb[:3]], dtype=np.int64)
        diffs = query - self._rgb
        pos = int(np.argmin((diffs * diffs).sum(axis=1)))
        d = diffs[pos]
        return self._indices[pos], (int(d[0]), int(d[1]), int(d[2]))

    def find_closest_many(self, pixels: np.ndarray) -> np.ndarray:
        """Map an (..., 3) pixel array to palette indices without dithering.

        Returns a uint8 array with the leading shape of ``pixels``.
        """
        flat = np.asarray(pixels).reshape(-1, 3)
        _, positions = self._tree.query(flat)
        lookup = np.array(self._indices, dtype=np.uint8)
        result = lookup[np.asarray(positions, dtype=np.intp)]
        result[(flat == 0).all(axis=1)] = self._black_index
        return result.reshape(np.asarray(pixels).shape[:-1])


@lru_cache(maxsize=None)
def get_color_index() -> ColorIndex:
    """Shared index over the map palette, built on first use."""
    return ColorIndex(MAP_PALETTE)
