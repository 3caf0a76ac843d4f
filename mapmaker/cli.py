"""Command-line interface for mapmaker.

Human-readable progress goes to stderr; --json prints one structured
result for scripts and agents.
"""

from __future__ import annotations

import argparse
import itertools
import json
import logging
import sys
from pathlib import Path

from mapmaker.core.layout import Direction


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mapmaker",
        description="Convert images, GIFs or videos into dithered map files.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- convert subcommand ---
    convert = subparsers.add_parser(
        "convert",
        help="Convert a folder of images (or a GIF/video) into map files.",
    )
    convert.add_argument(
        "input",
        help="Folder of .png/.jpg/.jpeg frames, a single image, a GIF or a video.",
    )
    convert.add_argument(
        "-o", "--output",
        help="Output folder, emptied first. Defaults to <input>_maps.",
    )
    convert.add_argument("--x", type=int, default=0, help="X of the top-left map (default: 0).")
    convert.add_argument("--y", type=int, default=0, help="Y of the top-left map (default: 0).")
    convert.add_argument("--z", type=int, default=0, help="Z of the top-left map (default: 0).")
    convert.add_argument(
        "--facing",
        choices=[d.name.lower() for d in Direction],
        default="east",
        help="Direction the maps face (default: east).",
    )
    convert.add_argument(
        "--start-index",
        type=int,
        default=0,
        help="First map id to use; the next free id if the world has maps (default: 0).",
    )
    convert.add_argument(
        "--workers",
        type=_positive_int,
        default=None,
        help="Frames processed in parallel (default: one per CPU).",
    )
    convert.add_argument(
        "--no-dither",
        action="store_true",
        help="Disable Floyd-Steinberg dithering.",
    )
    convert.add_argument(
        "--json",
        action="store_true",
        help="Output structured JSON (pipe-friendly).",
    )
    convert.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging and show stack traces on error.",
    )

    return parser


def _auto_output_path(input_path: Path) -> Path:
    """Generate default output path from input."""
    return input_path.parent / f"{input_path.stem}_maps"


def _overlaps(a: Path, b: Path) -> bool:
    """True if either path is the other or lies inside it."""
    return a == b or a in b.parents or b in a.parents


def _json_error(message: str, code: str) -> None:
    """Print JSON error to stderr and exit with code 1."""
    err = {"status": "error", "error": message, "code": code}
    print(json.dumps(err), file=sys.stderr)
    sys.exit(1)


def _fail(message: str, code: str, is_json: bool) -> None:
    if is_json:
        _json_error(message, code)
    print(f"Error: {message}", file=sys.stderr)
    sys.exit(1)


def _run_convert(args: argparse.Namespace) -> None:
    """Run the convert pipeline."""
    from mapmaker.core.layout import placements
    from mapmaker.core.processor import FrameFailure, Processor, Settings
    from mapmaker.core.reader import open_frames
    from mapmaker.core.writer import MapWriter, OutputError

    is_json = args.json
    input_path = Path(args.input).resolve()
    if not input_path.exists():
        _fail(f"File not found: {input_path}", "FILE_NOT_FOUND", is_json)

    settings = Settings(
        dither=not args.no_dither,
        workers=args.workers,
        start_index=args.start_index,
        location=(args.x, args.y, args.z),
        facing=Direction.from_label(args.facing),
    )

    output_path = Path(args.output).resolve() if args.output else _auto_output_path(input_path)
    if _overlaps(output_path, input_path):
        _fail(
            f"Output path {output_path} overlaps input path {input_path}",
            "OUTPUT_ERROR",
            is_json,
        )

    try:
        reader = open_frames(input_path)
        frames = iter(reader.frames())
        first = next(frames, None)
        if first is None:
            raise ValueError(f"No frames in {input_path}")
        processor = Processor.from_frame(first, dither=settings.dither)
    except (ValueError, OSError) as e:
        _fail(str(e), "INVALID_INPUT", is_json)

    # Video containers may not report a length; the real count is known after reading
    expected = max(reader.frame_count, 1)
    writer = MapWriter(output_path, start_index=settings.start_index)
    try:
        writer.begin(expected, processor.maps_per_frame)
    except (OutputError, OSError) as e:
        _fail(str(e), "OUTPUT_ERROR", is_json)

    failures: list[FrameFailure] = []
    done = 0
    try:
        results = processor.process_frames(
            itertools.chain([first], frames), workers=settings.workers
        )
        for result in results:
            done += 1
            if isinstance(result, FrameFailure):
                failures.append(result)
                if not is_json:
                    print(f"\nFrame failed: {result.message}", file=sys.stderr)
                continue
            writer.write_frame(result)
            if not is_json:
                print(f"\rProcessing frame {done}/{expected}...", end="", file=sys.stderr)
        writer.write_idcounts(done)
        writer.write_restart_function()
    except Exception as e:
        if args.debug:
            import traceback
            traceback.print_exc(file=sys.stderr)
        _fail(f"Error during processing: {e}", "PROCESSING_ERROR", is_json)

    if failures:
        names = ", ".join(f.message for f in failures)
        _fail(f"{len(failures)} frame(s) failed: {names}", "FRAME_FAILED", is_json)

    if not is_json:
        print(
            f"\nSaved {done * processor.maps_per_frame} maps "
            f"({processor.map_columns}x{processor.map_rows} per frame) to {output_path}",
            file=sys.stderr,
        )
        return

    result = {
        "status": "success",
        "input": str(input_path),
        "output": str(output_path),
        "settings": {
            "hash": settings.hash(),
            "dither": settings.dither,
            "start_index": settings.start_index,
            "facing": settings.facing.name.lower(),
            "location": list(settings.location),
        },
        "geometry": {
            "map_columns": processor.map_columns,
            "map_rows": processor.map_rows,
            "frame_count": done,
        },
        "maps": [
            {"id": p.map_id, "x": p.x, "y": p.y, "z": p.z}
            for p in placements(
                processor.geometry, settings.facing, settings.location, settings.start_index
            )
        ],
        "metadata": {
            "input_format": reader.info.format,
            "next_map_id": settings.start_index + done * processor.maps_per_frame,
        },
    }
    print(json.dumps(result, indent=2))


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.debug:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    if args.command == "convert":
        _run_convert(args)


if __name__ == "__main__":
    main()
