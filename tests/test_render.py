from __future__ import annotations

import io

import numpy as np
import pytest
from PIL import Image
from rich.console import Console

from cli.allscreenshots.config import DisplayConfig
from cli.allscreenshots.errors import RenderError
from cli.allscreenshots.render import (
    TerminalRenderer,
    detect_protocol,
    image_dimensions,
    load_image,
    resolve_protocol,
    sniff_format,
)

from conftest import make_png


class _Tty(io.StringIO):
    def isatty(self) -> bool:
        return True


@pytest.mark.parametrize(
    ("environ", "stream", "expected"),
    [
        ({"TERM": "xterm-kitty"}, io.StringIO(), "kitty"),
        ({"KITTY_WINDOW_ID": "3"}, io.StringIO(), "kitty"),
        ({"TERM_PROGRAM": "iTerm.app"}, io.StringIO(), "iterm"),
        ({"TERM_PROGRAM": "WezTerm"}, io.StringIO(), "iterm"),
        ({"TERM": "xterm-256color"}, _Tty(), "blocks"),
        ({"TERM": "dumb"}, _Tty(), None),
        ({"TERM": "xterm-256color"}, io.StringIO(), None),
    ],
)
def test_detect_protocol(environ, stream, expected):
    assert detect_protocol(environ, stream) == expected


def test_resolve_protocol_overrides():
    assert resolve_protocol("none", {"TERM": "xterm-kitty"}) is None
    assert resolve_protocol("blocks", {}) == "blocks"
    assert resolve_protocol("auto", {"TERM_PROGRAM": "iTerm.app"}) == "iterm"


def test_blocks_need_colour():
    assert resolve_protocol("blocks", {}, no_color=True) is None
    assert resolve_protocol("auto", {"TERM": "xterm-256color"}, _Tty(), no_color=True) is None
    assert resolve_protocol("kitty", {}, no_color=True) == "kitty"

    console = Console(file=_Tty(), no_color=True)
    assert TerminalRenderer.from_config(DisplayConfig(protocol="blocks"), console) is None



def test_from_config_returns_none_without_protocol():
    console = Console(file=io.StringIO())
    assert TerminalRenderer.from_config(DisplayConfig(protocol="none"), console) is None

    renderer = TerminalRenderer.from_config(DisplayConfig(protocol="blocks", width=50, height=10), console, size=(20, 5))
    assert renderer is not None
    assert (renderer.width, renderer.height) == (20, 5)


def test_block_text_fits_box():
    renderer = TerminalRenderer(protocol="blocks", console=Console(file=io.StringIO()), width=10, height=5)
    image = Image.new("RGB", (20, 12), (10, 200, 30))

    text = renderer.block_text(image)

    assert text.plain.split("\n") == ["▀" * 10] * 3


def test_kitty_sequence_is_chunked():
    out = io.StringIO()
    renderer = TerminalRenderer(protocol="kitty", console=Console(file=out), width=40, height=20)
    noise = np.random.default_rng(0).integers(0, 256, (64, 64, 3), dtype=np.uint8)

    renderer.render_image(Image.fromarray(noise))

    written = out.getvalue()
    chunks = written.strip().split("\x1b\\")[:-1]
    assert chunks[0].startswith("\x1b_Gf=100,a=T,")
    assert len(chunks) > 1
    assert all(",m=1;" in chunk or chunk.startswith("\x1b_Gm=1;") for chunk in chunks[:-1])
    assert chunks[-1].startswith("\x1b_Gm=0;")


def test_iterm_sequence():
    out = io.StringIO()
    renderer = TerminalRenderer(protocol="iterm", console=Console(file=out))

    renderer.render_bytes(make_png(8, 8))

    assert out.getvalue().startswith("\x1b]1337;File=inline=1;")


def test_decode_failure_raises_render_error():
    with pytest.raises(RenderError):
        load_image(b"definitely not an image")
    assert image_dimensions(b"nope") is None
    assert image_dimensions(make_png(7, 3)) == (7, 3)


def test_render_file_missing(tmp_path):
    renderer = TerminalRenderer(protocol="blocks", console=Console(file=io.StringIO()))
    with pytest.raises(RenderError, match="Failed to read"):
        renderer.render_file(tmp_path / "missing.png")


def test_sniff_format():
    buffer = io.BytesIO()
    Image.new("RGB", (2, 2)).save(buffer, format="WEBP")

    assert sniff_format(make_png()) == "png"
    assert sniff_format(buffer.getvalue()) == "webp"
    assert sniff_format(b"%PDF-1.7\n...") == "pdf"
    assert sniff_format(b"garbage") is None
