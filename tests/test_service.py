from __future__ import annotations

import io
from pathlib import Path

import pytest
from rich.console import Console

from cli.allscreenshots.errors import ApiError, RenderError
from cli.allscreenshots.models import CaptureRequest
from cli.allscreenshots.service import BatchRunner, ImageDelivery, Watcher

from conftest import make_png


class FakeCaptureClient:
    def __init__(self, failing: set[str] = frozenset()) -> None:
        self.failing = failing
        self.calls: list[str] = []

    def capture(self, request: CaptureRequest) -> bytes:
        self.calls.append(request.url)
        if request.url in self.failing:
            raise ApiError(500, "render crashed")
        return make_png()


def _build(url: str) -> CaptureRequest:
    return CaptureRequest.create(url)


@pytest.mark.parametrize("concurrency", [1, 4])
def test_batch_continues_past_failures(tmp_path, concurrency):
    client = FakeCaptureClient(failing={"https://b.example.com"})
    urls = ["a.example.com", "b.example.com", "c.example.com", "not a url"]
    seen: list[int] = []

    report = BatchRunner(client, tmp_path, concurrency=concurrency).run(urls, _build, on_result=lambda r: seen.append(r.index))

    assert (report.total, report.succeeded, report.failed) == (4, 2, 2)
    assert sorted(seen) == [0, 1, 2, 3]
    assert (tmp_path / "001_a_example_com.png").exists()
    assert (tmp_path / "003_c_example_com.png").exists()
    assert not (tmp_path / "002_b_example_com.png").exists()
    errors = {item.index: item.error for item in report.results if not item.ok}
    assert errors[1] == "HTTP 500: render crashed"
    assert "not a valid URL" in errors[3]
    assert [item["index"] for item in report.to_dict()["results"]] == [0, 1, 2, 3]


def test_batch_rejects_bad_concurrency(tmp_path):
    with pytest.raises(ValueError):
        BatchRunner(FakeCaptureClient(), tmp_path, concurrency=9)


def test_watcher_counts_captures_and_failures():
    class Flaky(FakeCaptureClient):
        def capture(self, request: CaptureRequest) -> bytes:
            self.calls.append(request.url)
            if len(self.calls) == 2:
                raise ApiError(502, "bad gateway")
            return make_png()

    client = Flaky()
    sleeps: list[float] = []
    captured: list[int] = []
    failed: list[int] = []

    report = Watcher(client, _build("example.com"), interval=0.5, max_captures=3, sleep=sleeps.append).run(
        lambda attempt, data: captured.append(attempt),
        lambda attempt, exc: failed.append(attempt),
    )

    assert (report.captures, report.failures, report.interrupted) == (2, 1, False)
    assert captured == [1, 3]
    assert failed == [2]
    assert sleeps == [0.5, 0.5]


def test_watcher_stops_on_keyboard_interrupt():
    def interrupt(seconds: float) -> None:
        raise KeyboardInterrupt

    report = Watcher(FakeCaptureClient(), _build("example.com"), interval=1, sleep=interrupt).run(
        lambda attempt, data: None, lambda attempt, exc: None
    )

    assert report.captures == 1
    assert report.interrupted is True


class RecordingRenderer:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.rendered: list[bytes] = []

    def render_bytes(self, data: bytes) -> None:
        if self.fail:
            raise RenderError("terminal said no")
        self.rendered.append(data)


def _delivery(tmp_path: Path, renderer: RecordingRenderer | None, calls: list[str]) -> ImageDelivery:
    def factory():
        calls.append("factory")
        return renderer

    return ImageDelivery(Console(file=io.StringIO()), factory, tmp_path / "shots")


def test_delivery_without_display_never_builds_renderer(tmp_path):
    calls: list[str] = []
    outcome = _delivery(tmp_path, RecordingRenderer(), calls).deliver(
        make_png(), url="https://example.com", fmt="png", output=None, display=False
    )

    assert calls == []
    assert outcome.displayed is False
    assert outcome.path is not None and outcome.path.parent == tmp_path / "shots"
    assert outcome.path.name.startswith("example_com_")
    assert outcome.dimensions == (4, 3)


def test_delivery_displays_and_saves_when_output_given(tmp_path):
    renderer = RecordingRenderer()
    calls: list[str] = []
    data = make_png()
    outcome = _delivery(tmp_path, renderer, calls).deliver(
        data, url="https://example.com", fmt="png", output=tmp_path / "out.png", display=True
    )

    assert renderer.rendered == [data]
    assert outcome.displayed is True
    assert outcome.path == tmp_path / "out.png"
    assert not (tmp_path / "shots").exists()


def test_render_failure_falls_back_to_saving(tmp_path):
    calls: list[str] = []
    outcome = _delivery(tmp_path, RecordingRenderer(fail=True), calls).deliver(
        make_png(), url="https://example.com", fmt="png", output=None, display=True
    )

    assert calls == ["factory"]
    assert outcome.displayed is False
    assert outcome.path is not None and outcome.path.exists()
