"""Frame processing pipeline.

Center on canvas → quantize with error diffusion → split into maps.
Frames run in parallel on a thread pool; pixels within a frame never do.
"""

from __future__ import annotations

import hashlib
import logging
import os
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterable, Iterator

import numpy as np

from mapmaker.core.canvas import FrameGeometry, prepare_canvas
from mapmaker.core.color import ColorIndex, get_color_index
from mapmaker.core.dither import quantize_canvas
from mapmaker.core.layout import Direction, Location
from mapmaker.core.reader import Frame
from mapmaker.core.tiling import split_chunks
from mapmaker.utils.cache import NearestColorCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    """Options for a conversion run."""

    dither: bool = True
    workers: int | None = None  # None = one per CPU
    start_index: int = 0
    location: Location = (0, 0, 0)
    facing: Direction = Direction.EAST

    def hash(self) -> str:
        """Deterministic hash for identifying a run's settings."""
        data = (
            f"{self.dither}:{self.workers}:{self.start_index}:"
            f"{self.location}:{int(self.facing)}"
        )
        return hashlib.md5(data.encode()).hexdigest()[:12]


@dataclass
class ProcessedFrame:
    """Map buffers for one frame, in chunk row-major order."""

    index: int
    name: str
    chunks: tuple[np.ndarray, ...]


@dataclass
class FrameFailure:
    """A frame that could not be decoded or converted."""

    index: int
    name: str
    error: Exception

    @property
    def message(self) -> str:
        return f"{self.name}: {self.error}"


class Processor:
    """Converts frames of one fixed size into map buffers.

    The geometry is decided once, before any frame is dispatched, and the
    color index is shared read-only by every worker.
    """

    def __init__(
        self,
        geometry: FrameGeometry,
        color_index: ColorIndex | None = None,
        dither: bool = True,
    ) -> None:
        self._geometry = geometry
        self._color_index = color_index if color_index is not None else get_color_index()
        self._dither = dither

    @classmethod
    def from_frame(cls, frame: Frame, **kwargs) -> Processor:
        """Derive the geometry from the first frame of a run."""
        image = frame.load()
        return cls(FrameGeometry.from_size(image.width, image.height), **kwargs)

    @property
    def geometry(self) -> FrameGeometry:
        return self._geometry

    @property
    def map_columns(self) -> int:
        return self._geometry.map_columns

    @property
    def map_rows(self) -> int:
        return self._geometry.map_rows

    @property
    def maps_per_frame(self) -> int:
        return self._geometry.maps_per_frame

    def process_frame(self, frame: Frame) -> ProcessedFrame:
        """Process a single frame through the full pipeline."""
        canvas = prepare_canvas(frame.load(), self._geometry)
        cache = NearestColorCache(self._color_index)
        indices = quantize_canvas(
            canvas, self._color_index, dither=self._dither, cache=cache
        )
        chunks = split_chunks(indices, self._geometry)
        logger.debug(
            "Frame %d (%s): %d maps, %d color lookups cached",
            frame.index, frame.name, len(chunks), cache.hits,
        )
        return ProcessedFrame(index=frame.index, name=frame.name, chunks=chunks)

    def _process_isolated(self, frame: Frame) -> ProcessedFrame | FrameFailure:
        try:
            return self.process_frame(frame)
        except Exception as e:
            logger.warning("Frame %d (%s) failed: %s", frame.index, frame.name, e)
            return FrameFailure(index=frame.index, name=frame.name, error=e)

    def process_frames(
        self, frames: Iterable[Frame], workers: int | None = None
    ) -> Iterator[ProcessedFrame | FrameFailure]:
        """Process frames concurrently, yielding results in input order.

        A frame that fails yields a FrameFailure instead of map buffers and
        does not affect the others. At most ``2 * workers`` frames are in
        flight, so ``frames`` is only read as fast as results are consumed.
        """
        if workers is None:
            workers = os.cpu_count() or 1
        if workers < 1:
            raise ValueError(f"Worker count must be at least 1, got {workers}")

        window = 2 * workers
        pending: deque[Future] = deque()
        with ThreadPoolExecutor(max_workers=workers) as pool:
            for frame in frames:
                pending.append(pool.submit(self._process_isolated, frame))
                if len(pending) >= window:
                    yield pending.popleft().result()
            while pending:
                yield pending.popleft().result()
