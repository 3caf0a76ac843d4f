"""Frame sources: a folder of images, an animated GIF, or a video.

Frames from an image folder are decoded lazily, inside whichever worker
processes them, so an unreadable file fails only its own frame.
GIF frames are composited onto a canvas to handle disposal methods correctly.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

import cv2
from PIL import Image

IMAGE_SUFFIXES = (".png", ".jpg", ".jpeg")
VIDEO_SUFFIXES = (".mp4", ".avi", ".mov", ".mkv", ".webm")


@dataclass
class Frame:
    """A single source frame, decoded on demand."""

    index: int
    name: str
    path: Path | None = None
    image: Image.Image | None = None  # already decoded (GIF/video frames)

    def load(self) -> Image.Image:
        """Return the frame as an RGB PIL image."""
        if self.image is not None:
            if self.image.mode != "RGB":
                return self.image.convert("RGB")
            return self.image
        if self.path is None:
            raise ValueError(f"Frame {self.index} has neither a path nor an image")
        with Image.open(self.path) as img:
            return img.convert("RGB")


@dataclass
class MediaInfo:
    """Metadata about the input."""

    path: Path
    format: str  # "images", "gif" or "video"
    frame_count: int
    width: int
    height: int


def detect_format(path: Path) -> str:
    """Detect the input kind from the path."""
    if path.is_dir():
        return "images"
    suffix = path.suffix.lower()
    if suffix == ".gif":
        return "gif"
    if suffix in IMAGE_SUFFIXES:
        return "images"
    if suffix in VIDEO_SUFFIXES:
        return "video"
    raise ValueError(f"Unsupported format: {suffix}")


class ImageSequenceReader:
    """Still images in lexical filename order.

    ``path`` is either a directory (every .png/.jpg/.jpeg directly inside
    it) or a single image file.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        if path.is_dir():
            files = [
                p for p in path.iterdir()
                if p.is_file() and p.suffix.lower() in IMAGE_SUFFIXES
            ]
            self._files = sorted(files, key=lambda p: p.name)
        else:
            self._files = [path]
        if not self._files:
            raise ValueError(f"No .png, .jpg or .jpeg files in {path}")

    @property
    def info(self) -> MediaInfo:
        # Only the header is read here
        with Image.open(self._files[0]) as img:
            width, height = img.size
        return MediaInfo(
            path=self.path,
            format="images",
            frame_count=len(self._files),
            width=width,
            height=height,
        )

    def frames(self) -> Iterator[Frame]:
        for i, file in enumerate(self._files):
            yield Frame(index=i, name=file.name, path=file)

    @property
    def frame_count(self) -> int:
        return len(self._files)


class GifReader:
    """Frame iterator for GIF files with proper disposal handling."""

    def __init__(self, path: Path) -> None:
        self.path = path
        with Image.open(path) as img:
            self._frame_count = getattr(img, "n_frames", 1)
            self._size = img.size

    @property
    def info(self) -> MediaInfo:
        return MediaInfo(
            path=self.path,
            format="gif",
            frame_count=self._frame_count,
            width=self._size[0],
            height=self._size[1],
        )

    def frames(self) -> Iterator[Frame]:
        """Yield all frames with proper GIF disposal compositing."""
        with Image.open(self.path) as img:
            canvas = Image.new("RGBA", img.size, (0, 0, 0, 255))
            for i in range(self._frame_count):
                img.seek(i)
                frame = img.convert("RGBA")
                canvas.paste(frame, (0, 0), frame)
                yield Frame(
                    index=i,
                    name=f"{self.path.name}#{i}",
                    image=canvas.copy().convert("RGB"),
                )

    @property
    def frame_count(self) -> int:
        return self._frame_count


class VideoReader:
    """Lazy frame iterator for video files using OpenCV."""

    def __init__(self, path: Path) -> None:
        self.path = path
        cap = cv2.VideoCapture(str(path))
        if not cap.isOpened():
            raise IOError(f"Cannot open video: {path}")
        self._frame_count = int(cap.get(cv2.CAP_PROP_FRAME_COUNT))
        self._width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        self._height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        cap.release()

    @property
    def info(self) -> MediaInfo:
        return MediaInfo(
            path=self.path,
            format="video",
            frame_count=self._frame_count,
            width=self._width,
            height=self._height,
        )

    def frames(self) -> Iterator[Frame]:
        """Yield all frames lazily."""
        cap = cv2.VideoCapture(str(self.path))
        idx = 0
        try:
            while True:
                ret, bgr = cap.read()
                if not ret:
                    break
                rgb = cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)
                yield Frame(
                    index=idx,
                    name=f"{self.path.name}#{idx}",
                    image=Image.fromarray(rgb),
                )
                idx += 1
        finally:
            cap.release()

    @property
    def frame_count(self) -> int:
        return self._frame_count


def open_frames(path: str | Path) -> ImageSequenceReader | GifReader | VideoReader:
    """Open an input path and return the matching reader."""
    local_path = Path(path)
    if not local_path.exists():
        raise FileNotFoundError(f"File not found: {local_path}")

    fmt = detect_format(local_path)
    if fmt == "gif":
        return GifReader(local_path)
    if fmt == "video":
        return VideoReader(local_path)
    return ImageSequenceReader(local_path)
