from __future__ import annotations

import argparse
import json
from pathlib import Path

from pixel_studio.src.pixel_pipeline.config import config
from pixel_studio.src.pixel_pipeline.io import write_palette_json, write_png, write_result_json
from pixel_studio.src.pixel_pipeline.log import configure_logging
from pixel_studio.src.pixel_pipeline.models import ColorAlgorithm, ImageAdjustments
from pixel_studio.src.pixel_pipeline.palette import (
    PaletteParseError,
    load_palette,
    supported_formats_message,
)
from pixel_studio.src.pixel_pipeline.pipeline import PixelArtPipeline


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pixel-studio",
        description="Turn images into pixel art, optionally snapped to a palette.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override PIXEL_STUDIO_LOG_LEVEL (e.g. DEBUG, INFO, WARNING).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    convert = subparsers.add_parser(
        "convert",
        help="Pixelate an image and write the result as PNG.",
    )
    convert.add_argument(
        "--image", required=True, help="Path or URL to the input image."
    )
    convert.add_argument(
        "--out",
        default="pixel-art.png",
        help="Output PNG path.",
    )
    convert.add_argument(
        "--block-size",
        type=int,
        default=config.DEFAULT_BLOCK_SIZE,
        help="Edge length of each pixel block, in source pixels.",
    )
    convert.add_argument(
        "--palette",
        default=None,
        help="Optional palette file (.gpl, .pal, .act, .hex, .ase, .json).",
    )
    convert.add_argument(
        "--algorithm",
        choices=[item.value for item in ColorAlgorithm],
        default=config.default_algorithm().value,
        help="Color distance used when snapping to the palette.",
    )
    for name in ("brightness", "contrast", "saturation"):
        convert.add_argument(
            f"--{name}",
            type=float,
            default=100.0,
            help=f"{name.capitalize()} in percent (0-200, 100 = unchanged).",
        )
    convert.add_argument(
        "--summary-out",
        default=None,
        help="Optional JSON summary path. If omitted, prints JSON to stdout.",
    )

    palette = subparsers.add_parser(
        "palette",
        help="Parse a palette file and print its colors as JSON.",
    )
    palette.add_argument("--file", required=True, help="Palette file to parse.")
    palette.add_argument(
        "--out",
        default=None,
        help="Optional JSON output path. If omitted, prints JSON to stdout.",
    )

    return parser


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()
    configure_logging(args.log_level)

    if args.command == "convert":
        if not config.validate_block_size(args.block_size):
            parser.error("--block-size must be >= 1")
        try:
            adjustments = ImageAdjustments(
                brightness=args.brightness,
                contrast=args.contrast,
                saturation=args.saturation,
            )
        except ValueError as exc:
            parser.error(str(exc))

        palette = None
        if args.palette:
            try:
                palette = load_palette(args.palette)
            except PaletteParseError as exc:
                parser.error(f"{supported_formats_message()} ({exc})")

        result = PixelArtPipeline().run(
            image_path=args.image,
            block_size=args.block_size,
            palette=palette,
            algorithm=args.algorithm,
            adjustments=adjustments,
        )
        write_png(result, args.out)

        if args.summary_out:
            write_result_json(result, args.summary_out)
        else:
            print(json.dumps(result.to_dict(), indent=2))
        return

    if args.command == "palette":
        try:
            palette = load_palette(args.file)
        except PaletteParseError as exc:
            parser.error(f"{supported_formats_message()} ({exc})")

        if args.out:
            write_palette_json(palette, Path(args.out))
        else:
            print(json.dumps(palette.to_dict(), indent=2))
        return

    parser.error("unknown command")


if __name__ == "__main__":
    main()
