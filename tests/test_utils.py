from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from cli.allscreenshots.errors import FileAccessError, InvalidOptionError
from cli.allscreenshots.utils import (
    auto_filename,
    batch_output_path,
    format_duration_ms,
    format_file_size,
    format_interval,
    normalize_url,
    parse_interval,
    read_urls_from_file,
    truncate,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("example.com", "https://example.com"),
        ("http://example.com/a?b=1", "http://example.com/a?b=1"),
        ("  https://sub.example.org  ", "https://sub.example.org"),
        ("localhost:8080", "https://localhost:8080"),
    ],
)
def test_normalize_url(raw, expected):
    assert normalize_url(raw) == expected


@pytest.mark.parametrize("raw", ["", "nodot", "exa mple.com"])
def test_normalize_url_rejects_garbage(raw):
    with pytest.raises(InvalidOptionError):
        normalize_url(raw)


def test_auto_filename_and_batch_path():
    stamp = datetime(2026, 3, 4, 5, 6, 7)
    assert auto_filename("https://www.example.com/x", "png", now=stamp) == "www_example_com_20260304_050607.png"
    assert batch_output_path(Path("out"), "https://example.com", 6, "jpeg") == Path("out/007_example_com.jpeg")


def test_read_urls_skips_blank_lines_and_comments(tmp_path):
    source = tmp_path / "urls.txt"
    source.write_text("# header\nexample.com\n\n   \n  # indented comment\nhttps://example.org\n", encoding="utf-8")

    assert read_urls_from_file(source) == ["example.com", "https://example.org"]


def test_read_urls_errors(tmp_path):
    with pytest.raises(FileAccessError):
        read_urls_from_file(tmp_path / "missing.txt")

    empty = tmp_path / "empty.txt"
    empty.write_text("# nothing here\n", encoding="utf-8")
    with pytest.raises(InvalidOptionError, match="No URLs found"):
        read_urls_from_file(empty)


@pytest.mark.parametrize(
    ("raw", "seconds"),
    [("500ms", 0.5), ("5s", 5.0), ("1m", 60.0), ("2h", 7200.0), ("1.5", 1.5)],
)
def test_parse_interval(raw, seconds):
    assert parse_interval(raw) == pytest.approx(seconds)


@pytest.mark.parametrize("raw", ["", "soon", "0s", "5d"])
def test_parse_interval_rejects_invalid(raw):
    with pytest.raises(InvalidOptionError):
        parse_interval(raw)


def test_formatting_helpers():
    assert format_file_size(512) == "512 bytes"
    assert format_file_size(2048) == "2.00 KB"
    assert format_file_size(5 * 1024 * 1024) == "5.00 MB"
    assert format_duration_ms(450) == "450ms"
    assert format_duration_ms(1500) == "1.5s"
    assert format_duration_ms(65_000) == "1m 5s"
    assert format_interval(0.5) == "500ms"
    assert format_interval(120) == "2m"
    assert format_interval(7.5) == "7.5s"
    assert truncate("abcdefghij", 6) == "abc..."
    assert truncate("short", 10) == "short"
