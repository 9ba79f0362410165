from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Protocol, Sequence

from rich.console import Console
from rich.markup import escape

from .errors import CliError, RenderError
from .models import CaptureRequest
from .render import TerminalRenderer, image_dimensions
from .utils import auto_filename, batch_output_path, format_file_size, save_to_file

logger = logging.getLogger(__name__)

MAX_BATCH_CONCURRENCY = 8
RendererFactory = Callable[[], TerminalRenderer | None]


class CaptureClient(Protocol):
    def capture(self, request: CaptureRequest) -> bytes:  # pragma: no cover - structural
        ...


@dataclass(slots=True)
class CaptureOutcome:
    url: str
    size: int
    dimensions: tuple[int, int] | None = None
    path: Path | None = None
    displayed: bool = False

    def to_dict(self) -> dict[str, object]:
        return {
            "url": self.url,
            "path": str(self.path) if self.path else None,
            "size": self.size,
            "width": self.dimensions[0] if self.dimensions else None,
            "height": self.dimensions[1] if self.dimensions else None,
            "displayed": self.displayed,
        }


class ImageDelivery:
    """Save captured bytes, show them in the terminal, or both.

    When nothing was displayed and no output path was requested the image is
    written to ``output_dir`` under an automatic name so the user always gets
    a file path back.
    """

    def __init__(self, console: Console, renderer_factory: RendererFactory, output_dir: Path) -> None:
        self._console = console
        self._renderer_factory = renderer_factory
        self._output_dir = output_dir

    def deliver(self, data: bytes, *, url: str, fmt: str, output: Path | None, display: bool) -> CaptureOutcome:
        outcome = CaptureOutcome(url=url, size=len(data), dimensions=image_dimensions(data))
        if output is not None:
            outcome.path = save_to_file(output, data)
        if display:
            outcome.displayed = self.show(data)
        if outcome.path is None and not outcome.displayed:
            outcome.path = save_to_file(self._output_dir / auto_filename(url, fmt), data)
        return outcome

    def show(self, data: bytes) -> bool:
        renderer = self._renderer_factory()
        if renderer is None:
            logger.debug("no terminal graphics protocol available")
            return False
        try:
            self._console.print()
            renderer.render_bytes(data)
            self._console.print()
        except RenderError as exc:
            self._console.print(f"[yellow]![/] {exc.message}", style="dim")
            return False
        return True


def print_outcome(console: Console, outcome: CaptureOutcome, *, title: str = "Screenshot captured!") -> None:
    console.print(f"[bold green]{title}[/]")
    console.print(f"  URL: [dim]{escape(outcome.url)}[/]")
    if outcome.dimensions:
        console.print(f"  Size: {outcome.dimensions[0]}x{outcome.dimensions[1]}")
    console.print(f"  File size: {format_file_size(outcome.size)}")
    if outcome.path is not None:
        console.print(f"  Saved to: [cyan]{outcome.path}[/]")


@dataclass(slots=True)
class BatchItemResult:
    index: int
    url: str
    path: Path | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, object]:
        return {"index": self.index, "url": self.url, "path": str(self.path) if self.path else None, "error": self.error}


@dataclass(slots=True)
class BatchReport:
    total: int
    succeeded: int = 0
    failed: int = 0
    results: list[BatchItemResult] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "results": [item.to_dict() for item in sorted(self.results, key=lambda item: item.index)],
        }


class BatchRunner:
    """Capture many URLs, continuing past per-item failures."""

    def __init__(self, client: CaptureClient, output_dir: Path, *, concurrency: int = 1) -> None:
        if not 1 <= concurrency <= MAX_BATCH_CONCURRENCY:
            raise ValueError(f"concurrency must be between 1 and {MAX_BATCH_CONCURRENCY}")
        self._client = client
        self._output_dir = output_dir
        self._concurrency = concurrency
        self._lock = threading.Lock()

    def run(
        self,
        urls: Sequence[str],
        build: Callable[[str], CaptureRequest],
        *,
        on_result: Callable[[BatchItemResult], None] | None = None,
    ) -> BatchReport:
        """Capture every URL in ``urls``; ``build`` turns each one into a request."""
        report = BatchReport(total=len(urls))

        def work(index: int, url: str) -> None:
            item = self._capture_one(index, url, build)
            with self._lock:
                report.results.append(item)
                if item.ok:
                    report.succeeded += 1
                else:
                    report.failed += 1
                if on_result is not None:
                    on_result(item)

        if self._concurrency == 1:
            for index, url in enumerate(urls):
                work(index, url)
        else:
            with ThreadPoolExecutor(max_workers=self._concurrency) as pool:
                for future in [pool.submit(work, index, url) for index, url in enumerate(urls)]:
                    future.result()
        return report

    def _capture_one(self, index: int, url: str, build: Callable[[str], CaptureRequest]) -> BatchItemResult:
        try:
            request = build(url)
            path = batch_output_path(self._output_dir, request.url, index, request.format)
            data = self._client.capture(request)
            save_to_file(path, data)
        except CliError as exc:
            logger.debug("batch item %d (%s) failed: %s", index + 1, url, exc)
            return BatchItemResult(index=index, url=url, error=str(exc))
        return BatchItemResult(index=index, url=request.url, path=path)


@dataclass(slots=True)
class WatchReport:
    captures: int = 0
    failures: int = 0
    interrupted: bool = False

    def to_dict(self) -> dict[str, object]:
        return {"captures": self.captures, "failures": self.failures, "interrupted": self.interrupted}


class Watcher:
    """Repeat one capture on a fixed interval until interrupted or a limit is hit."""

    def __init__(
        self,
        client: CaptureClient,
        request: CaptureRequest,
        *,
        interval: float,
        max_captures: int = 0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._client = client
        self._request = request
        self._interval = interval
        self._max_captures = max_captures
        self._sleep = sleep

    def run(
        self,
        on_capture: Callable[[int, bytes], None],
        on_error: Callable[[int, CliError], None],
    ) -> WatchReport:
        report = WatchReport()
        attempt = 0
        try:
            while True:
                attempt += 1
                try:
                    data = self._client.capture(self._request)
                    on_capture(attempt, data)
                    report.captures += 1
                except CliError as exc:
                    report.failures += 1
                    on_error(attempt, exc)
                if self._max_captures and attempt >= self._max_captures:
                    break
                self._sleep(self._interval)
        except KeyboardInterrupt:
            report.interrupted = True
        return report
