"""Combine several screenshots into a single image on the local machine."""

from __future__ import annotations

import io
import math
from dataclasses import dataclass
from typing import Sequence

from PIL import Image, ImageColor

from .errors import InvalidOptionError
from .render import load_image

LAYOUTS: tuple[str, ...] = ("horizontal", "vertical", "grid", "auto")
MIN_INPUTS = 2
MAX_INPUTS = 20


@dataclass(slots=True)
class ComposeOptions:
    layout: str = "auto"
    columns: int | None = None
    spacing: int = 0
    padding: int = 0
    background: str = "#ffffff"
    format: str = "png"
    quality: int | None = None

    def __post_init__(self) -> None:
        if self.layout not in LAYOUTS:
            raise InvalidOptionError(f"Invalid layout '{self.layout}'. Use: {', '.join(LAYOUTS)}", option="--layout")
        if self.columns is not None and self.columns < 1:
            raise InvalidOptionError("--columns must be at least 1.", option="--columns")
        if self.spacing < 0 or self.padding < 0:
            raise InvalidOptionError("--spacing and --padding must not be negative.", option="--spacing")
        if self.format not in ("png", "jpeg", "webp"):
            raise InvalidOptionError(f"Invalid format '{self.format}'. Use: png, jpeg, webp", option="--format")
        if self.quality is not None and not 1 <= self.quality <= 100:
            raise InvalidOptionError(f"Quality must be between 1 and 100 (got {self.quality}).", option="--quality")
        self.background_rgba()

    def background_rgba(self) -> tuple[int, int, int, int]:
        if self.background.lower() == "transparent":
            return (0, 0, 0, 0)
        try:
            rgb = ImageColor.getrgb(self.background)
        except ValueError as exc:
            raise InvalidOptionError(f"Invalid background colour '{self.background}'.", option="--background") from exc
        return (*rgb[:3], 255) if len(rgb) == 3 else rgb  # type: ignore[return-value]


def grid_shape(count: int, layout: str, columns: int | None) -> tuple[int, int]:
    """Return ``(columns, rows)`` for ``count`` tiles."""
    if layout == "horizontal":
        return count, 1
    if layout == "vertical":
        return 1, count
    cols = columns or math.ceil(math.sqrt(count))
    if layout == "auto" and columns is None and count <= 3:
        cols = count
    cols = min(cols, count)
    return cols, math.ceil(count / cols)


def compose_images(images: Sequence[Image.Image], options: ComposeOptions) -> Image.Image:
    if not MIN_INPUTS <= len(images) <= MAX_INPUTS:
        raise InvalidOptionError(f"Compose needs between {MIN_INPUTS} and {MAX_INPUTS} images (got {len(images)}).")
    cols, rows = grid_shape(len(images), options.layout, options.columns)
    frames = [image.convert("RGBA") for image in images]
    col_widths = [0] * cols
    row_heights = [0] * rows
    for index, frame in enumerate(frames):
        row, col = divmod(index, cols)
        col_widths[col] = max(col_widths[col], frame.width)
        row_heights[row] = max(row_heights[row], frame.height)

    pad, gap = options.padding, options.spacing
    width = sum(col_widths) + gap * (cols - 1) + pad * 2
    height = sum(row_heights) + gap * (rows - 1) + pad * 2
    canvas = Image.new("RGBA", (width, height), options.background_rgba())

    for index, frame in enumerate(frames):
        row, col = divmod(index, cols)
        x = pad + sum(col_widths[:col]) + gap * col
        y = pad + sum(row_heights[:row]) + gap * row
        canvas.alpha_composite(frame, (x, y))
    return canvas


def encode(image: Image.Image, options: ComposeOptions) -> bytes:
    buffer = io.BytesIO()
    params: dict[str, object] = {}
    frame = image
    if options.format == "jpeg":
        frame = image.convert("RGB")
    if options.quality is not None and options.format in ("jpeg", "webp"):
        params["quality"] = options.quality
    frame.save(buffer, format=options.format.upper(), **params)
    return buffer.getvalue()


def compose_bytes(blobs: Sequence[bytes], options: ComposeOptions) -> bytes:
    images = [load_image(blob) for blob in blobs]
    return encode(compose_images(images, options), options)
