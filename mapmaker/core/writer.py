"""Save map buffers as game map files.

Output layout under the chosen directory:

    data/map_<id>.dat       one gzip NBT file per map
    data/idcounts.dat       highest used map id, so new maps don't overwrite ours
    datapacks/pack.mcmeta
    datapacks/mapmaker/data/mapmaker/functions/restart.mcfunction
    datapacks/mapmaker/data/minecraft/tags/functions/
"""

from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path

import nbtlib
import numpy as np
from nbtlib import Byte, Compound, Int, List, Long, String

from mapmaker.core.canvas import MAP_PIXELS
from mapmaker.core.layout import restart_commands
from mapmaker.core.processor import ProcessedFrame

logger = logging.getLogger(__name__)

# DataVersion of the game release the files target (1.16.5)
NBT_DATA_VERSION = 2586
# Datapack format of the same release
PACK_FORMAT = 6

DATAPACKS_DIR = Path("datapacks")
FUNCTIONS_DIR = DATAPACKS_DIR / "mapmaker/data/mapmaker/functions"
TAGS_DIR = DATAPACKS_DIR / "mapmaker/data/minecraft/tags/functions"


class OutputError(RuntimeError):
    """Raised when the output directory cannot be used."""


def map_id(start_index: int, frame_index: int, maps_per_frame: int, chunk_index: int) -> int:
    """Game map id of chunk ``chunk_index`` of frame ``frame_index``."""
    return start_index + frame_index * maps_per_frame + chunk_index


def map_data(colors: np.ndarray, index: int) -> Compound:
    """Build the NBT tree of locked map ``index`` holding ``colors``."""
    if colors.shape != (MAP_PIXELS,):
        raise ValueError(f"Map buffer has shape {colors.shape}, expected ({MAP_PIXELS},)")

    data = Compound({
        "scale": Byte(1),
        "dimension": String("minecraft:overworld"),
        "trackingPosition": Byte(0),
        "locked": Byte(1),
        "unlimitedTracking": Byte(0),
        "xCenter": Int(100000),
        "ZCenter": Int(100000),
        "banners": List([]),
        "frames": List([]),
        # Unique but not random
        "UUIDMost": Long(0),
        "UUIDLeast": Long(index),
        # Indices above 127 are stored as negative signed bytes; the bits are the same
        "colors": nbtlib.ByteArray(np.asarray(colors, dtype=np.uint8).view(np.int8)),
    })
    return Compound({"data": data, "DataVersion": Int(NBT_DATA_VERSION)})


def _save(path: Path, root: Compound) -> None:
    nbtlib.File(root).save(path, gzipped=True)


class MapWriter:
    """Writes map files for a run into an output directory.

    Call begin() once the frame count and grid size are known; it empties
    the directory.
    """

    def __init__(self, path: Path, start_index: int = 0) -> None:
        self.path = Path(path)
        self.start_index = start_index
        self.frames = 0
        self.maps_per_frame = 0

    @property
    def data_dir(self) -> Path:
        return self.path / "data"

    @property
    def functions_dir(self) -> Path:
        return self.path / FUNCTIONS_DIR

    @property
    def tags_dir(self) -> Path:
        return self.path / TAGS_DIR

    def begin(self, frames: int, maps_per_frame: int) -> None:
        """Clear the output directory and create its structure."""
        if frames <= 0 or maps_per_frame <= 0:
            raise ValueError("Frame count and maps per frame must be positive")
        if self.path.exists():
            if not self.path.is_dir():
                raise OutputError(f"Output path is not a directory: {self.path}")
            if self.path.resolve() == Path.cwd().resolve():
                raise OutputError("Output path is the current directory")
            shutil.rmtree(self.path)

        self.data_dir.mkdir(parents=True)
        self.functions_dir.mkdir(parents=True)
        self.tags_dir.mkdir(parents=True)
        self._write_pack_meta()
        self.frames = frames
        self.maps_per_frame = maps_per_frame
        logger.debug("Output directory %s ready for %d frames", self.path, frames)

    def _write_pack_meta(self) -> None:
        meta = {"pack": {"pack_format": PACK_FORMAT, "description": "Maps made by mapmaker"}}
        (self.path / DATAPACKS_DIR / "pack.mcmeta").write_text(json.dumps(meta, indent=2))

    def _require_started(self) -> None:
        if self.frames == 0 or self.maps_per_frame == 0:
            raise OutputError("Writer used before begin()")

    def write_frame(self, frame: ProcessedFrame) -> list[Path]:
        """Write every map of one processed frame. Returns the file paths."""
        self._require_started()
        if len(frame.chunks) != self.maps_per_frame:
            raise ValueError(
                f"Frame {frame.index} has {len(frame.chunks)} maps, "
                f"expected {self.maps_per_frame}"
            )

        written = []
        for chunk_index, colors in enumerate(frame.chunks):
            mid = map_id(self.start_index, frame.index, self.maps_per_frame, chunk_index)
            path = self.data_dir / f"map_{mid}.dat"
            _save(path, map_data(colors, mid))
            written.append(path)
        return written

    def write_idcounts(self, frames: int | None = None) -> Path:
        """Record the last used map id.

        ``frames`` overrides the count given to begin(), for sources whose
        length is only known once they have been read.
        """
        self._require_started()
        if frames is None:
            frames = self.frames
        last_map = self.start_index + frames * self.maps_per_frame
        root = Compound({
            "data": Compound({"map": Int(last_map)}),
            "DataVersion": Int(NBT_DATA_VERSION),
        })
        path = self.data_dir / "idcounts.dat"
        _save(path, root)
        return path

    def write_restart_function(self) -> Path:
        self._require_started()
        lines = restart_commands(self.start_index, self.maps_per_frame)
        path = self.functions_dir / "restart.mcfunction"
        path.write_text("".join(f"{line}\n" for line in lines))
        return path
