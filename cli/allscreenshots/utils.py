from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path
from urllib.parse import urlparse

from .errors import FileAccessError, InvalidOptionError

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h)?\s*$")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def normalize_url(value: str) -> str:
    """Prefix ``https://`` when no scheme is given and validate the result."""
    candidate = value.strip()
    if not candidate.startswith(("http://", "https://")):
        candidate = f"https://{candidate}"
    parsed = urlparse(candidate)
    host = parsed.hostname or ""
    if not host or " " in candidate or ("." not in host and host != "localhost"):
        raise InvalidOptionError(f"'{value}' is not a valid URL. URLs should start with http:// or https://", option="url")
    return candidate


def extract_domain(url: str) -> str:
    host = urlparse(url).hostname
    return (host or "screenshot").replace(".", "_")


def auto_filename(url: str, fmt: str, *, now: datetime | None = None) -> str:
    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return f"{extract_domain(url)}_{stamp}.{fmt}"


def batch_output_path(output_dir: Path, url: str, index: int, fmt: str) -> Path:
    return output_dir / f"{index + 1:03d}_{extract_domain(url)}.{fmt}"


def read_urls_from_file(path: Path) -> list[str]:
    """Read one URL per line, skipping blanks and ``#`` comments."""
    if not path.exists():
        raise FileAccessError(f"Could not find: {path}")
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise FileAccessError(f"{path}: {exc}") from exc
    urls = [line.strip() for line in content.splitlines()]
    urls = [line for line in urls if line and not line.startswith("#")]
    if not urls:
        raise InvalidOptionError(f"No URLs found in {path}", option="--file")
    return urls


def save_to_file(path: Path, data: bytes) -> Path:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    except OSError as exc:
        raise FileAccessError(f"Failed to write {path}: {exc}") from exc
    return path


def format_file_size(size: int) -> str:
    kb = 1024
    mb = kb * 1024
    gb = mb * 1024
    if size >= gb:
        return f"{size / gb:.2f} GB"
    if size >= mb:
        return f"{size / mb:.2f} MB"
    if size >= kb:
        return f"{size / kb:.2f} KB"
    return f"{size} bytes"


def format_duration_ms(ms: int) -> str:
    if ms >= 60_000:
        minutes, rest = divmod(ms, 60_000)
        return f"{minutes}m {rest // 1000}s"
    if ms >= 1000:
        return f"{ms / 1000:.1f}s"
    return f"{ms}ms"


def parse_interval(value: str) -> float:
    """Parse ``500ms``, ``5s``, ``1m`` or ``2h`` (bare numbers are seconds) into seconds."""
    match = _DURATION_RE.match(value)
    if not match:
        raise InvalidOptionError(f"Invalid duration '{value}'. Examples: 5s, 30s, 1m, 5m", option="--interval")
    amount = float(match.group(1)) * _DURATION_UNITS[match.group(2) or "s"]
    if amount <= 0:
        raise InvalidOptionError("Duration must be greater than zero.", option="--interval")
    return amount


def format_interval(seconds: float) -> str:
    if seconds < 1:
        return f"{round(seconds * 1000)}ms"
    if seconds >= 3600 and seconds % 3600 == 0:
        return f"{int(seconds // 3600)}h"
    if seconds >= 60 and seconds % 60 == 0:
        return f"{int(seconds // 60)}m"
    return f"{seconds:g}s"


def truncate(text: str, max_len: int) -> str:
    if len(text) <= max_len:
        return text
    return f"{text[: max_len - 3]}..."
