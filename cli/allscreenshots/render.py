from __future__ import annotations

import base64
import io
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, TextIO

import numpy as np
from PIL import Image, UnidentifiedImageError
from rich.color import Color
from rich.console import Console
from rich.style import Style
from rich.text import Text

from .config import DisplayConfig
from .errors import RenderError

KITTY_CHUNK = 4096
# Terminal cells are roughly twice as tall as they are wide.
CELL_ASPECT = 2.0


def detect_protocol(environ: Mapping[str, str] | None = None, stream: TextIO | None = None) -> str | None:
    """Return ``kitty``, ``iterm`` or ``blocks`` for the current terminal, or ``None``."""
    env = os.environ if environ is None else environ
    if "kitty" in env.get("TERM", "") or env.get("KITTY_WINDOW_ID"):
        return "kitty"
    if env.get("TERM_PROGRAM") in ("iTerm.app", "WezTerm"):
        return "iterm"
    out = stream or sys.stdout
    isatty = getattr(out, "isatty", None)
    if isatty is not None and isatty() and env.get("TERM", "") != "dumb":
        return "blocks"
    return None


def resolve_protocol(
    setting: str | None,
    environ: Mapping[str, str] | None = None,
    stream: TextIO | None = None,
    *,
    no_color: bool = False,
) -> str | None:
    choice = (setting or "auto").lower()
    if choice == "none":
        return None
    if choice == "auto":
        choice = detect_protocol(environ, stream)
    # Half blocks carry the picture in their colours alone.
    if choice == "blocks" and no_color:
        return None
    return choice


def load_image(data: bytes) -> Image.Image:
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise RenderError(f"Failed to decode image: {exc}") from exc
    return image


def image_dimensions(data: bytes) -> tuple[int, int] | None:
    try:
        with Image.open(io.BytesIO(data)) as image:
            return image.size
    except (UnidentifiedImageError, OSError):
        return None


def sniff_format(data: bytes) -> str | None:
    """Return ``png``, ``jpeg``, ``webp`` or ``pdf`` for captured bytes, or ``None``."""
    if data.startswith(b"%PDF"):
        return "pdf"
    try:
        with Image.open(io.BytesIO(data)) as image:
            kind = (image.format or "").lower()
    except (UnidentifiedImageError, OSError):
        return None
    return kind if kind in ("png", "jpeg", "webp") else None


@dataclass(slots=True)
class TerminalRenderer:
    """Print images inline using the kitty, iTerm2 or Unicode half-block protocol."""

    protocol: str
    console: Console
    width: int = 80
    height: int = 24

    @classmethod
    def from_config(cls, display: DisplayConfig, console: Console, *, size: tuple[int, int] | None = None) -> TerminalRenderer | None:
        protocol = resolve_protocol(display.protocol, stream=console.file, no_color=console.no_color)
        if protocol is None:
            return None
        width, height = size or (display.width or 80, display.height or 24)
        return cls(protocol=protocol, console=console, width=width, height=height)

    def render_bytes(self, data: bytes) -> None:
        self.render_image(load_image(data))

    def render_file(self, path: Path) -> None:
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise RenderError(f"Failed to read {path}: {exc}") from exc
        self.render_bytes(data)

    def render_image(self, image: Image.Image) -> None:
        if self.protocol == "kitty":
            self._write(self._kitty_sequence(image))
        elif self.protocol == "iterm":
            self._write(self._iterm_sequence(image))
        elif self.protocol == "blocks":
            self.console.print(self.block_text(image))
        else:
            raise RenderError(f"Unsupported display protocol '{self.protocol}'")

    def fit(self, image: Image.Image) -> tuple[int, int]:
        """Columns and rows that fit the image inside the configured box."""
        img_w, img_h = image.size
        if img_w <= 0 or img_h <= 0:
            raise RenderError("Image has no pixels")
        scale = min(self.width / img_w, self.height * CELL_ASPECT / img_h)
        cols = max(1, round(img_w * scale))
        rows = max(1, round(img_h * scale / CELL_ASPECT))
        return cols, rows

    def block_text(self, image: Image.Image) -> Text:
        cols, rows = self.fit(image)
        resized = image.convert("RGB").resize((cols, rows * 2), Image.Resampling.LANCZOS)
        pixels = np.asarray(resized, dtype=np.uint8)
        text = Text()
        for row in range(rows):
            top = pixels[row * 2]
            bottom = pixels[row * 2 + 1]
            for col in range(cols):
                upper = Color.from_rgb(*(int(v) for v in top[col]))
                lower = Color.from_rgb(*(int(v) for v in bottom[col]))
                text.append("▀", Style(color=upper, bgcolor=lower))
            if row < rows - 1:
                text.append("\n")
        return text

    def _kitty_sequence(self, image: Image.Image) -> str:
        cols, rows = self.fit(image)
        encoded = base64.standard_b64encode(_png_bytes(image)).decode("ascii")
        chunks = [encoded[i : i + KITTY_CHUNK] for i in range(0, len(encoded), KITTY_CHUNK)] or [""]
        parts = []
        for index, chunk in enumerate(chunks):
            more = 1 if index < len(chunks) - 1 else 0
            if index == 0:
                parts.append(f"\x1b_Gf=100,a=T,c={cols},r={rows},m={more};{chunk}\x1b\\")
            else:
                parts.append(f"\x1b_Gm={more};{chunk}\x1b\\")
        return "".join(parts)

    def _iterm_sequence(self, image: Image.Image) -> str:
        cols, rows = self.fit(image)
        data = _png_bytes(image)
        encoded = base64.standard_b64encode(data).decode("ascii")
        return (
            f"\x1b]1337;File=inline=1;size={len(data)};width={cols};height={rows};"
            f"preserveAspectRatio=1:{encoded}\a"
        )

    def _write(self, sequence: str) -> None:
        try:
            self.console.file.write(sequence + "\n")
            self.console.file.flush()
        except OSError as exc:
            raise RenderError(f"Failed to write to terminal: {exc}") from exc


def _png_bytes(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    frame = image if image.mode in ("RGB", "RGBA") else image.convert("RGBA")
    frame.save(buffer, format="PNG")
    return buffer.getvalue()
