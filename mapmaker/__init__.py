"""Convert image sequences into dithered, palette-indexed map tiles."""

__version__ = "0.1.0"
