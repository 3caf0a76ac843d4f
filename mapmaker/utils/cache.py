"""LRU memo of nearest-color lookups keyed by packed RGB."""

from __future__ import annotations

from collections import OrderedDict
from typing import Sequence

from mapmaker.core.color import ColorIndex, Difference


class NearestColorCache:
    """Simple LRU cache in front of a ColorIndex.

    Keys are 24-bit packed RGB values. A cache belongs to a single frame's
    worker and must not be shared between threads.
    """

    def __init__(self, color_index: ColorIndex, max_size: int = 65536) -> None:
        self._index = color_index
        self._max_size = max_size
        self._cache: OrderedDict[int, tuple[int, Difference]] = OrderedDict()
        self.hits = 0
        self.misses = 0

    def get(self, key: int) -> tuple[int, Difference] | None:
        """Get a cached lookup, or None if not present."""
        if key in self._cache:
            self._cache.move_to_end(key)
            return self._cache[key]
        return None

    def put(self, key: int, value: tuple[int, Difference]) -> None:
        if key in self._cache:
            self._cache.move_to_end(key)
        elif len(self._cache) >= self._max_size:
            self._cache.popitem(last=False)
        self._cache[key] = value

    def find_closest(self, rgb: Sequence[int]) -> tuple[int, Difference]:
        """Same contract as ColorIndex.find_closest, memoized."""
        key = (int(rgb[0]) << 16) | (int(rgb[1]) << 8) | int(rgb[2])
        cached = self.get(key)
        if cached is not None:
            self.hits += 1
            return cached
        self.misses += 1
        result = self._index.find_closest(rgb)
        self.put(key, result)
        return result

    def clear(self) -> None:
        self._cache.clear()

    @property
    def size(self) -> int:
        return len(self._cache)
