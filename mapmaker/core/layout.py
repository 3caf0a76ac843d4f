"""Where each map of a frame hangs in the world.

Maps are shown in a wall of item frames. The wall's top-left frame sits
at the user's chosen location; every other frame is offset from it along
the wall, one block per map column and one block down per map row.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Tuple

from mapmaker.core.canvas import FrameGeometry

Location = Tuple[int, int, int]


class Direction(IntEnum):
    """Facing of the item frames. Values are the NBT ``Facing`` byte."""

    NORTH = 2
    SOUTH = 3
    WEST = 4
    EAST = 5

    @classmethod
    def from_label(cls, label: str) -> Direction:
        """Case-insensitive name lookup; unknown labels fall back to EAST."""
        try:
            return cls[label.strip().upper()]
        except KeyError:
            return cls.EAST


@dataclass(frozen=True)
class MapPlacement:
    map_id: int
    x: int
    y: int
    z: int
    facing: Direction


def map_offset(chunk_index: int, map_columns: int, facing: Direction) -> Location:
    """Block offset (dx, dy, dz) of a map relative to the top-left one."""
    row, col = divmod(chunk_index, map_columns)
    if facing == Direction.SOUTH:
        return col, -row, 0
    if facing == Direction.WEST:
        return 0, -row, col
    if facing == Direction.EAST:
        return 0, -row, -col
    return -col, -row, 0


def map_offsets(geometry: FrameGeometry, facing: Direction) -> list[Location]:
    """Offsets of every map of a frame, in chunk order."""
    return [
        map_offset(i, geometry.map_columns, facing)
        for i in range(geometry.maps_per_frame)
    ]


def placements(
    geometry: FrameGeometry,
    facing: Direction,
    location: Location = (0, 0, 0),
    start_index: int = 0,
) -> list[MapPlacement]:
    """Absolute positions of the first frame's maps."""
    x0, y0, z0 = location
    return [
        MapPlacement(start_index + i, x0 + dx, y0 + dy, z0 + dz, facing)
        for i, (dx, dy, dz) in enumerate(map_offsets(geometry, facing))
    ]


def restart_commands(start_index: int, maps_per_frame: int) -> list[str]:
    """Commands that reset every frame entity back to its first-frame map."""
    return [
        f"scoreboard players set @e[tag={i}] map_num {i}"
        for i in range(start_index, start_index + maps_per_frame)
    ]
