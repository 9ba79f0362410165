from __future__ import annotations

import httpx
import pytest

from cli.allscreenshots import __version__
from cli.allscreenshots.client import AllscreenshotsClient
from cli.allscreenshots.errors import ApiError, NetworkError
from cli.allscreenshots.models import CaptureRequest

from conftest import FakeApi, bytes_response, json_response


def test_capture_posts_payload_with_key_header(png):
    api = FakeApi()
    api.route("POST", "/v1/screenshots", bytes_response(png))

    with api.client("as_test_key") as client:
        data = client.capture(CaptureRequest.create("example.com", device="Desktop HD"))

    assert data == png
    request = api.requests[0]
    assert request.headers["X-API-Key"] == "as_test_key"
    assert request.headers["User-Agent"] == f"allscreenshots-cli/{__version__}"
    assert api.bodies("/v1/screenshots") == [{"url": "https://example.com", "format": "png", "device": "Desktop HD"}]


def test_base_url_comes_from_environment(monkeypatch, png):
    monkeypatch.setenv("ALLSCREENSHOTS_API_URL", "https://staging.test/")
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, content=png)

    with AllscreenshotsClient("k", transport=httpx.MockTransport(handler)) as client:
        client.capture(CaptureRequest.create("example.com"))

    assert seen == ["https://staging.test/v1/screenshots"]


@pytest.mark.parametrize(
    ("status", "body", "message", "code", "title"),
    [
        (401, {"error": {"message": "Invalid API key", "code": "UNAUTHORIZED"}}, "Invalid API key", "UNAUTHORIZED", "Authentication failed!"),
        (429, {"message": "Slow down", "code": "RATE_LIMITED"}, "Slow down", "RATE_LIMITED", "Rate limit exceeded!"),
        (422, {"error": "Bad selector"}, "Bad selector", None, "Invalid request!"),
        (503, None, "Service Unavailable", None, "API Error (HTTP 503)"),
    ],
)
def test_error_responses_become_api_errors(status, body, message, code, title):
    api = FakeApi()
    if body is None:
        api.route("GET", "/v1/usage", lambda request: httpx.Response(status))
    else:
        api.route("GET", "/v1/usage", json_response(body, status))

    with api.client("k") as client, pytest.raises(ApiError) as excinfo:
        client.get_usage()

    error = excinfo.value
    assert error.status == status
    assert error.message == message
    assert error.code == code
    assert error.title == title


def test_transport_failure_becomes_network_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with AllscreenshotsClient("k", base_url="https://api.test", transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(NetworkError) as excinfo:
            client.get_usage()

    assert excinfo.value.timeout is False
    assert excinfo.value.title == "Connection failed!"


def test_timeout_becomes_network_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("too slow", request=request)

    with AllscreenshotsClient("k", base_url="https://api.test", transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(NetworkError) as excinfo:
            client.capture(CaptureRequest.create("example.com"))

    assert excinfo.value.timeout is True


def test_list_jobs_accepts_wrapped_and_bare_lists():
    api = FakeApi()
    api.route("GET", "/v1/screenshots/jobs", json_response({"jobs": [{"id": "a", "status": "QUEUED"}]}))
    with api.client("k") as client:
        assert [job.id for job in client.list_jobs()] == ["a"]

    api.route("GET", "/v1/screenshots/jobs", json_response([{"id": "b", "status": "COMPLETED"}]))
    with api.client("k") as client:
        assert [job.id for job in client.list_jobs()] == ["b"]


def test_malformed_payload_is_reported():
    api = FakeApi()
    api.route("GET", "/v1/screenshots/jobs/x", json_response({"unexpected": True}))

    with api.client("k") as client, pytest.raises(ApiError, match="Malformed Job payload"):
        client.get_job("x")


def test_schedule_history_passes_limit():
    api = FakeApi()
    api.route(
        "GET",
        "/v1/schedules/s-1/history",
        json_response({"totalExecutions": 1, "executions": [{"executedAt": "2026-01-01", "status": "COMPLETED"}]}),
    )

    with api.client("k") as client:
        history = client.schedule_history("s-1", limit=5)

    assert history.total_executions == 1
    assert history.executions[0].status == "COMPLETED"
    assert api.requests[0].url.params["limit"] == "5"
