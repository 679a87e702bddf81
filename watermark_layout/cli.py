"""
Command-line entry point.

Usage:
    python -m watermark_layout layout --operation fit_watermark_image \\
        --canvas 1000x800 --logo-size 500x500
    watermark-layout render photo.jpg --operation fit_watermark_image \\
        --canvas 1000x800 --assets ./assets --logo logo.png -o out.png
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from watermark_layout.config import BACKGROUND_DEFAULT, BASE_GRAVITY, OUTPUT_FORMATS
from watermark_layout.errors import EngineError, LayoutError
from watermark_layout.models import Operation, Size
from watermark_layout.processor import DirectoryAssetResolver, Watermark
from watermark_layout.settings import DEFAULT_SETTINGS, load_settings, render_options


def _size(value: str) -> Size:
    """Validate ``WxH`` for argparse."""
    try:
        return Size.parse(value)
    except LayoutError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--operation", "-p", required=True,
        choices=[op.value for op in Operation],
        help="Watermark operation to run",
    )
    parser.add_argument("--canvas", "-c", required=True, type=_size, help="Target size as WxH")
    parser.add_argument("--background", default=BACKGROUND_DEFAULT, help="Padding colour (Fit)")
    parser.add_argument("--gravity", default=BASE_GRAVITY, help="Anchor of the base image")
    parser.add_argument("--logo-gravity", help="Anchor of the logo")
    parser.add_argument("--size-ratio", type=float, help="Logo size as a fraction of the shorter side")
    parser.add_argument("--margin-ratio", type=float, help="Logo margin as a fraction of the shorter side")
    parser.add_argument("--opacity", type=int, help="Logo opacity in percent")
    parser.add_argument("--margin-x", type=int, help="Horizontal logo margin in pixels (fill)")
    parser.add_argument("--margin-y", type=int, help="Vertical logo margin in pixels (fill)")
    parser.add_argument(
        "--text", "-t", action="append", default=[],
        help="Overlay text line (repeat up to three times)",
    )


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="watermark-layout",
        description="Compute and apply watermark layouts with ImageMagick",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--no-settings", action="store_true",
        help="Ignore settings.json and use built-in defaults",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    layout = sub.add_parser("layout", help="Print the computed layout as JSON")
    _add_common(layout)
    layout.add_argument("--source-size", type=_size, help="Source image size as WxH")
    layout.add_argument("--logo-size", type=_size, help="Logo size as WxH")
    layout.add_argument(
        "--format", choices=OUTPUT_FORMATS, help="Output format, used to pick the padding colour",
    )

    render = sub.add_parser("render", help="Apply an operation to an image file")
    _add_common(render)
    render.add_argument("input", type=Path, help="Image to process")
    render.add_argument("--output", "-o", type=Path, help="Output file (default: in place)")
    render.add_argument("--format", choices=OUTPUT_FORMATS, help="Convert to this format first")
    render.add_argument("--assets", type=Path, default=Path.cwd(), help="Directory holding logos")
    render.add_argument("--logo", help="Logo file name inside --assets")
    render.add_argument("--font", help="Font name or path for overlay text")
    render.add_argument("--quality", type=int, help="Output quality (1-100)")
    render.add_argument("--strip", action="store_true", help="Strip metadata from the output")
    return parser


def _overrides(args: argparse.Namespace) -> dict:
    return {
        "logo_gravity": args.logo_gravity,
        "size_ratio": args.size_ratio,
        "margin_ratio": args.margin_ratio,
        "opacity_percent": args.opacity,
        "horizontal_margin": args.margin_x,
        "vertical_margin": args.margin_y,
    }


def _run_layout(args: argparse.Namespace, settings: dict) -> int:
    processor = Watermark(args.operation, settings=settings)
    result = processor.layout(
        args.canvas, args.source_size, args.logo_size,
        background=args.background, gravity=args.gravity, text=args.text,
        fmt=args.format, **_overrides(args),
    )
    print(json.dumps(result.to_dict(), indent=2))
    return 0


def _run_render(args: argparse.Namespace, settings: dict) -> int:
    options = render_options(settings, font=args.font, quality=args.quality, strip=args.strip or None)
    processor = Watermark(
        args.operation,
        resolve_asset=DirectoryAssetResolver(args.assets),
        options=options,
        settings=settings,
    )
    out = processor(
        args.input, args.canvas.width, args.canvas.height,
        format=args.format, background=args.background, gravity=args.gravity,
        logo=args.logo, text=args.text, output=args.output, **_overrides(args),
    )
    print(out)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    settings = DEFAULT_SETTINGS if args.no_settings else load_settings()

    try:
        if args.command == "layout":
            return _run_layout(args, settings)
        return _run_render(args, settings)
    except LayoutError as e:
        print(f"Invalid layout: {e}", file=sys.stderr)
        return 2
    except (EngineError, FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
