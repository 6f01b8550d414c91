#!/usr/bin/env python3
"""
Tauri macOS icon builder
Turns app-icon.png into src-tauri/icons/icon.icns with rounded corners and padding

Usage: create_icns.py [-i <inputPath>] [-o <outputPath>]
"""

import io
import os
import sys
from dataclasses import dataclass

from PIL import Image, ImageChops, ImageDraw, ImageOps, UnidentifiedImageError

SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))

DEFAULT_INPUT = "app-icon.png"
DEFAULT_OUTPUT = os.path.join("src-tauri", "icons", "icon.icns")
PROCESSED_IMAGE = "processed-image.png"

CANVAS_SIZE = 1024
CORNER_RADIUS = 250
PADDING = 120
TRANSPARENT = (0, 0, 0, 0)

# Resolutions stored in the .icns (same set as an icon.iconset)
ICNS_SIZES = (16, 32, 64, 128, 256, 512, 1024)


class IconBuildError(Exception):
    """Base class for icon pipeline failures"""


class MissingInputError(IconBuildError):
    pass


class IntermediateWriteError(IconBuildError):
    pass


class IntermediateReadError(IconBuildError):
    pass


class EncodeFailure(IconBuildError):
    pass


class OutputWriteError(IconBuildError):
    pass


@dataclass(frozen=True)
class PathConfig:
    input_path: str
    output_path: str
    processed_path: str


def resolve_paths(args, cwd=None, base_dir=None):
    """Build the PathConfig for one run from command line tokens.

    ``-i`` and ``-o`` each take the following token. Flag values are resolved
    against ``cwd``; defaults and the intermediate file live next to the tool.
    Unknown tokens and a trailing flag without a value are ignored.
    """
    cwd = cwd or os.getcwd()
    base_dir = base_dir or SCRIPT_DIR

    input_path = os.path.join(base_dir, DEFAULT_INPUT)
    output_path = os.path.join(base_dir, DEFAULT_OUTPUT)

    for i, token in enumerate(args):
        if i + 1 >= len(args):
            break
        if token == "-i":
            input_path = os.path.join(cwd, args[i + 1])
        elif token == "-o":
            output_path = os.path.join(cwd, args[i + 1])

    return PathConfig(
        input_path=os.path.abspath(input_path),
        output_path=os.path.abspath(output_path),
        processed_path=os.path.abspath(os.path.join(base_dir, PROCESSED_IMAGE)),
    )


def prepare(config):
    """Check the input exists and create the output directory"""
    if not os.path.exists(config.input_path):
        raise MissingInputError(f"Input file not found at {config.input_path}")

    # mkdir failures are fatal, let them propagate
    os.makedirs(os.path.dirname(config.output_path), exist_ok=True)


def fit_to_canvas(image, size=CANVAS_SIZE):
    """Scale to fit a size x size square, centered on a transparent canvas"""
    fitted = ImageOps.contain(image.convert("RGBA"), (size, size), Image.Resampling.LANCZOS)

    canvas = Image.new("RGBA", (size, size), TRANSPARENT)
    x = (size - fitted.width) // 2
    y = (size - fitted.height) // 2
    canvas.paste(fitted, (x, y))
    return canvas


def rounded_mask(size, radius):
    mask = Image.new("L", (size, size), 0)
    draw = ImageDraw.Draw(mask)
    draw.rounded_rectangle([(0, 0), (size - 1, size - 1)], radius=radius, fill=255)
    return mask


def apply_rounded_corners(image, radius=CORNER_RADIUS):
    """Keep only the pixels inside the rounded rectangle (dest-in composite)"""
    if image.width != image.height:
        raise ValueError(f"Expected a square canvas, got {image.width}x{image.height}")

    mask = rounded_mask(image.width, radius)
    rounded = image.convert("RGBA")
    alpha = ImageChops.multiply(rounded.getchannel("A"), mask)
    rounded.putalpha(alpha)
    return rounded


def add_padding(image, padding=PADDING):
    return ImageOps.expand(image, border=padding, fill=TRANSPARENT)


def process_image(input_path):
    """Load the source and produce the rounded, padded 1264x1264 image"""
    try:
        with Image.open(input_path) as source:
            source.load()
            canvas = fit_to_canvas(source)
    except UnidentifiedImageError as exc:
        raise IconBuildError(f"Not an image file: {input_path}") from exc
    except Image.DecompressionBombError as exc:
        raise IconBuildError(f"Input image too large {input_path}: {exc}") from exc
    except OSError as exc:
        raise IconBuildError(f"Error reading input file {input_path}: {exc}") from exc

    return add_padding(apply_rounded_corners(canvas))


def write_processed(image, path):
    try:
        image.save(path, "PNG")
    except OSError as exc:
        raise IntermediateWriteError(f"Error writing processed PNG file {path}: {exc}") from exc


def read_processed(path):
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as exc:
        raise IntermediateReadError(f"Error reading processed PNG file {path}: {exc}") from exc


def encode_icns(data, sizes=ICNS_SIZES):
    """PNG bytes -> multi-resolution .icns bytes"""
    try:
        with Image.open(io.BytesIO(data)) as processed:
            processed = processed.convert("RGBA")
    except (OSError, ValueError) as exc:
        raise EncodeFailure(f"Cannot decode processed image: {exc}") from exc

    largest = max(sizes)
    base = processed.resize((largest, largest), Image.Resampling.LANCZOS)
    resized = [base.resize((size, size), Image.Resampling.LANCZOS) for size in sizes if size != largest]

    buffer = io.BytesIO()
    try:
        base.save(buffer, "ICNS", append_images=resized)
    except (OSError, ValueError) as exc:
        raise EncodeFailure(f"ICNS encoding failed: {exc}") from exc

    icns = buffer.getvalue()
    if not icns:
        raise EncodeFailure("ICNS encoding produced no data")
    return icns


def write_icns(data, path):
    """Write next to the destination, then swap it in so a failed write keeps the old file"""
    tmp_path = path + ".tmp"
    try:
        with open(tmp_path, "wb") as f:
            f.write(data)
        os.replace(tmp_path, path)
    except OSError as exc:
        if os.path.isfile(tmp_path):
            os.remove(tmp_path)
        raise OutputWriteError(f"Error writing ICNS file {path}: {exc}") from exc


def build_icon(config):
    """Run the whole pipeline for one PathConfig"""
    prepare(config)

    print(f"Using input file: {config.input_path}")
    print(f"Output will be saved to: {config.output_path}")

    processed = process_image(config.input_path)
    write_processed(processed, config.processed_path)
    print("Image processing complete with rounded corners and padding.")
    print(f"Created {config.processed_path} ({processed.width}x{processed.height})")

    icns = encode_icns(read_processed(config.processed_path))
    print(f"Encoded ICNS ({len(icns)} bytes)")
    write_icns(icns, config.output_path)
    print(f"Created {config.output_path}")


def main(argv=None, base_dir=None):
    if argv is None:
        argv = sys.argv[1:]

    config = resolve_paths(argv, base_dir=base_dir)
    try:
        build_icon(config)
    except IconBuildError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print("ICNS file created successfully.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
