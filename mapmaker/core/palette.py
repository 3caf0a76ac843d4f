"""Fixed map color palette.

A map pixel stores an index into a fixed table of 244 colors. Indices 0-3
are transparent and are never produced by this package, so the table
starts at index 4. Each base color appears as four shades, in the order
x180/255, x220/255, x255/255 and x135/255.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence, Tuple

import numpy as np

Color = Tuple[int, int, int]

FIRST_INDEX = 4
COLOR_COUNT = 244

# Darkest shade of the black base color, (13, 13, 13)
BLACK_INDEX = 119

MAP_COLORS: Tuple[Color, ...] = (
    (89, 125, 39), (109, 153, 48), (127, 178, 56), (67, 94, 29),  # grass
    (174, 164, 115), (213, 201, 140), (247, 233, 163), (130, 123, 86),  # sand
    (140, 140, 140), (171, 171, 171), (199, 199, 199), (105, 105, 105),  # wool
    (180, 0, 0), (220, 0, 0), (255, 0, 0), (135, 0, 0),  # fire
    (112, 112, 180), (138, 138, 220), (160, 160, 255), (84, 84, 135),  # ice
    (117, 117, 117), (144, 144, 144), (167, 167, 167), (88, 88, 88),  # metal
    (0, 87, 0), (0, 106, 0), (0, 124, 0), (0, 65, 0),  # plant
    (180, 180, 180), (220, 220, 220), (255, 255, 255), (135, 135, 135),  # snow
    (115, 118, 129), (141, 144, 158), (164, 168, 184), (86, 88, 97),  # clay
    (106, 76, 54), (130, 94, 66), (151, 109, 77), (79, 57, 40),  # dirt
    (79, 79, 79), (96, 96, 96), (112, 112, 112), (59, 59, 59),  # stone
    (45, 45, 180), (55, 55, 220), (64, 64, 255), (33, 33, 135),  # water
    (100, 84, 50), (123, 102, 62), (143, 119, 72), (75, 63, 38),  # wood
    (180, 177, 172), (220, 217, 211), (255, 252, 245), (135, 133, 129),  # quartz
    (152, 89, 36), (186, 109, 44), (216, 127, 51), (114, 67, 27),  # orange
    (125, 53, 152), (153, 65, 186), (178, 76, 216), (94, 40, 114),  # magenta
    (72, 108, 152), (88, 132, 186), (102, 153, 216), (54, 81, 114),  # light_blue
    (161, 161, 36), (197, 197, 44), (229, 229, 51), (121, 121, 27),  # yellow
    (89, 144, 17), (109, 176, 21), (127, 204, 25), (67, 108, 13),  # light_green
    (170, 89, 116), (208, 109, 142), (242, 127, 165), (128, 67, 87),  # pink
    (53, 53, 53), (65, 65, 65), (76, 76, 76), (40, 40, 40),  # gray
    (108, 108, 108), (132, 132, 132), (153, 153, 153), (81, 81, 81),  # light_gray
    (53, 89, 108), (65, 109, 132), (76, 127, 153), (40, 67, 81),  # cyan
    (89, 44, 125), (109, 54, 153), (127, 63, 178), (67, 33, 94),  # purple
    (36, 53, 125), (44, 65, 153), (51, 76, 178), (27, 40, 94),  # blue
    (72, 53, 36), (88, 65, 44), (102, 76, 51), (54, 40, 27),  # brown
    (72, 89, 36), (88, 109, 44), (102, 127, 51), (54, 67, 27),  # green
    (108, 36, 36), (132, 44, 44), (153, 51, 51), (81, 27, 27),  # red
    (17, 17, 17), (21, 21, 21), (25, 25, 25), (13, 13, 13),  # black
    (176, 168, 54), (215, 205, 66), (250, 238, 77), (132, 126, 40),  # gold
    (64, 154, 150), (79, 188, 183), (92, 219, 213), (48, 115, 112),  # diamond
    (52, 90, 180), (63, 110, 220), (74, 128, 255), (39, 67, 135),  # lapis
    (0, 153, 40), (0, 187, 50), (0, 217, 58), (0, 114, 30),  # emerald
    (91, 60, 34), (111, 74, 42), (129, 86, 49), (68, 45, 25),  # podzol
    (79, 1, 0), (96, 1, 0), (112, 2, 0), (59, 1, 0),  # nether
    (147, 124, 113), (180, 152, 138), (209, 177, 161), (110, 93, 85),  # terracotta_white
    (112, 57, 25), (137, 70, 31), (159, 82, 36), (84, 43, 19),  # terracotta_orange
    (105, 61, 76), (128, 75, 93), (149, 87, 108), (78, 46, 57),  # terracotta_magenta
    (79, 76, 97), (96, 93, 119), (112, 108, 138), (59, 57, 73),  # terracotta_light_blue
    (131, 93, 25), (160, 114, 31), (186, 133, 36), (98, 70, 19),  # terracotta_yellow
    (72, 82, 37), (88, 100, 45), (103, 117, 53), (54, 61, 28),  # terracotta_light_green
    (112, 54, 55), (138, 66, 67), (160, 77, 78), (84, 40, 41),  # terracotta_pink
    (40, 28, 24), (49, 35, 30), (57, 41, 35), (30, 21, 18),  # terracotta_gray
    (95, 75, 69), (116, 92, 84), (135, 107, 98), (71, 56, 51),  # terracotta_light_gray
    (61, 64, 64), (75, 79, 79), (87, 92, 92), (46, 48, 48),  # terracotta_cyan
    (86, 51, 62), (105, 62, 75), (122, 73, 88), (64, 38, 46),  # terracotta_purple
    (53, 43, 64), (65, 53, 79), (76, 62, 92), (40, 32, 48),  # terracotta_blue
    (53, 35, 24), (65, 43, 30), (76, 50, 35), (40, 26, 18),  # terracotta_brown
    (53, 57, 29), (65, 70, 36), (76, 82, 42), (40, 43, 22),  # terracotta_green
    (100, 42, 32), (122, 51, 39), (142, 60, 46), (75, 31, 24),  # terracotta_red
    (26, 15, 11), (31, 18, 13), (37, 22, 16), (19, 11, 8),  # terracotta_black
    (133, 33, 34), (163, 41, 42), (189, 48, 49), (100, 25, 25),  # crimson_nylium
    (104, 44, 68), (127, 54, 83), (148, 63, 97), (78, 33, 51),  # crimson_stem
    (64, 17, 20), (79, 21, 25), (92, 25, 29), (48, 13, 15),  # crimson_hyphae
    (15, 88, 94), (18, 108, 115), (22, 126, 134), (11, 66, 70),  # warped_nylium
    (40, 100, 98), (50, 122, 120), (58, 142, 140), (30, 75, 74),  # warped_stem
    (60, 31, 43), (74, 37, 53), (86, 44, 62), (45, 23, 32),  # warped_hyphae
    (14, 127, 93), (17, 155, 114), (20, 180, 133), (10, 95, 70),  # warped_wart_block
    (70, 70, 70), (86, 86, 86), (100, 100, 100), (52, 52, 52),  # deepslate
    (152, 123, 103), (186, 150, 126), (216, 175, 147), (114, 92, 77),  # raw_iron
    (89, 117, 105), (109, 144, 129), (127, 167, 150), (67, 88, 79),  # glow_lichen
)


class PaletteError(RuntimeError):
    """Raised when a color table cannot be used as a map palette."""


@dataclass(frozen=True)
class PaletteEntry:
    rgb: Color
    index: int


class Palette:
    """Immutable table of reference colors keyed by output index."""

    def __init__(
        self, entries: Iterable[PaletteEntry], black_index: int = BLACK_INDEX
    ) -> None:
        self._entries: Tuple[PaletteEntry, ...] = tuple(entries)
        self._validate(black_index)
        self._black_index = black_index
        self._by_index = {entry.index: entry for entry in self._entries}

        rgb = np.array([entry.rgb for entry in self._entries], dtype=np.uint8)
        rgb.setflags(write=False)
        self._rgb = rgb

    @classmethod
    def from_colors(
        cls,
        colors: Sequence[Color],
        first_index: int = FIRST_INDEX,
        black_index: int = BLACK_INDEX,
    ) -> Palette:
        """Build a palette from colors listed in index order."""
        entries = [
            PaletteEntry(tuple(int(c) for c in color), first_index + i)
            for i, color in enumerate(colors)
        ]
        return cls(entries, black_index=black_index)

    def _validate(self, black_index: int) -> None:
        if len(self._entries) != COLOR_COUNT:
            raise PaletteError(
                f"Palette must have exactly {COLOR_COUNT} colors, got {len(self._entries)}"
            )

        first = self._entries[0].index
        seen: set[Color] = set()
        for offset, entry in enumerate(self._entries):
            if entry.index != first + offset:
                raise PaletteError(f"Palette indices are not contiguous at {entry.index}")
            if len(entry.rgb) != 3 or any(not (0 <= c <= 255) for c in entry.rgb):
                raise PaletteError(f"Invalid color {entry.rgb} at index {entry.index}")
            if entry.rgb in seen:
                raise PaletteError(f"Duplicate color {entry.rgb} at index {entry.index}")
            seen.add(entry.rgb)

        if first < FIRST_INDEX or self._entries[-1].index > 255:
            raise PaletteError(
                f"Palette indices {first}..{self._entries[-1].index} "
                f"fall outside {FIRST_INDEX}..255"
            )
        if not any(entry.index == black_index for entry in self._entries):
            raise PaletteError(f"Black index {black_index} is not in the palette")

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[PaletteEntry]:
        return iter(self._entries)

    def __getitem__(self, index: int) -> PaletteEntry:
        """Look up an entry by its output index (not its position)."""
        try:
            return self._by_index[index]
        except KeyError:
            raise KeyError(f"No palette entry with index {index}") from None

    def __contains__(self, index: object) -> bool:
        return index in self._by_index

    @property
    def black(self) -> PaletteEntry:
        return self._by_index[self._black_index]

    @property
    def first_index(self) -> int:
        return self._entries[0].index

    @property
    def last_index(self) -> int:
        return self._entries[-1].index

    @property
    def rgb(self) -> np.ndarray:
        """Read-only (N, 3) uint8 array of colors in table order."""
        return self._rgb

    def index_at(self, position: int) -> int:
        """Output index of the entry at ``position`` in table order."""
        return self._entries[position].index


MAP_PALETTE = Palette.from_colors(MAP_COLORS)
