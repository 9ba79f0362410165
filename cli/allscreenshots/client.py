from __future__ import annotations

import logging
import os
import time
from typing import Any, Mapping

import httpx
from pydantic import ValidationError

from . import __version__
from .errors import ApiError, NetworkError
from .models import CaptureRequest, Job, Schedule, ScheduleHistory, UsageSnapshot

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.allscreenshots.com"
BASE_URL_ENV = "ALLSCREENSHOTS_API_URL"


def _default_timeout() -> httpx.Timeout:
    # Full-page renders can take a while server side.
    return httpx.Timeout(connect=10.0, read=120.0, write=30.0, pool=10.0)


class AllscreenshotsClient:
    """Blocking client for the AllScreenshots HTTP API.

    Each method issues exactly one request. Non-2xx responses raise
    :class:`ApiError`; transport failures raise :class:`NetworkError`.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str | None = None,
        timeout: httpx.Timeout | float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        resolved_base = base_url or os.environ.get(BASE_URL_ENV) or DEFAULT_BASE_URL
        self._http = httpx.Client(
            base_url=resolved_base.rstrip("/"),
            timeout=timeout if timeout is not None else _default_timeout(),
            transport=transport,
            headers={
                "X-API-Key": api_key,
                "User-Agent": f"allscreenshots-cli/{__version__}",
                "Accept": "application/json, image/*, application/pdf",
            },
        )

    def __enter__(self) -> AllscreenshotsClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    # Screenshots

    def capture(self, request: CaptureRequest) -> bytes:
        response = self._request("POST", "/v1/screenshots", json=request.to_payload())
        return response.content

    def submit_async(self, request: CaptureRequest) -> Job:
        response = self._request("POST", "/v1/screenshots/async", json=request.to_payload())
        return self._parse(Job, response)

    def get_job(self, job_id: str) -> Job:
        return self._parse(Job, self._request("GET", f"/v1/screenshots/jobs/{job_id}"))

    def get_job_result(self, job_id: str) -> bytes:
        return self._request("GET", f"/v1/screenshots/jobs/{job_id}/result").content

    def cancel_job(self, job_id: str) -> Job:
        return self._parse(Job, self._request("POST", f"/v1/screenshots/jobs/{job_id}/cancel"))

    def list_jobs(self) -> list[Job]:
        payload = self._request("GET", "/v1/screenshots/jobs").json()
        items = payload.get("jobs", []) if isinstance(payload, dict) else payload
        return [self._validate(Job, item) for item in items]

    # Usage

    def get_usage(self) -> UsageSnapshot:
        return self._parse(UsageSnapshot, self._request("GET", "/v1/usage"))

    # Schedules

    def list_schedules(self) -> list[Schedule]:
        payload = self._request("GET", "/v1/schedules").json()
        items = payload.get("schedules", []) if isinstance(payload, dict) else payload
        return [self._validate(Schedule, item) for item in items]

    def create_schedule(self, body: Mapping[str, Any]) -> Schedule:
        return self._parse(Schedule, self._request("POST", "/v1/schedules", json=dict(body)))

    def get_schedule(self, schedule_id: str) -> Schedule:
        return self._parse(Schedule, self._request("GET", f"/v1/schedules/{schedule_id}"))

    def update_schedule(self, schedule_id: str, body: Mapping[str, Any]) -> Schedule:
        response = self._request("PUT", f"/v1/schedules/{schedule_id}", json=dict(body))
        return self._parse(Schedule, response)

    def delete_schedule(self, schedule_id: str) -> None:
        self._request("DELETE", f"/v1/schedules/{schedule_id}")

    def pause_schedule(self, schedule_id: str) -> Schedule:
        return self._parse(Schedule, self._request("POST", f"/v1/schedules/{schedule_id}/pause"))

    def resume_schedule(self, schedule_id: str) -> Schedule:
        return self._parse(Schedule, self._request("POST", f"/v1/schedules/{schedule_id}/resume"))

    def trigger_schedule(self, schedule_id: str) -> Schedule:
        return self._parse(Schedule, self._request("POST", f"/v1/schedules/{schedule_id}/trigger"))

    def schedule_history(self, schedule_id: str, *, limit: int | None = None) -> ScheduleHistory:
        params = {"limit": limit} if limit is not None else None
        response = self._request("GET", f"/v1/schedules/{schedule_id}/history", params=params)
        return self._parse(ScheduleHistory, response)

    # Plumbing

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        start = time.perf_counter()
        try:
            response = self._http.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            raise NetworkError(f"{method} {path} timed out: {exc}", timeout=True) from exc
        except httpx.TransportError as exc:
            raise NetworkError(f"Could not connect to the AllScreenshots API: {exc}") from exc
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.debug("%s %s -> %s (%.0f ms)", method, path, response.status_code, elapsed_ms)
        if not response.is_success:
            raise _api_error(response)
        return response

    def _parse(self, model: type[Any], response: httpx.Response) -> Any:
        try:
            data = response.json()
        except ValueError as exc:
            raise ApiError(response.status_code, f"Unexpected non-JSON response from {response.request.url}") from exc
        return self._validate(model, data)

    @staticmethod
    def _validate(model: type[Any], data: Any) -> Any:
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise ApiError(200, f"Malformed {model.__name__} payload: {exc.error_count()} validation error(s)") from exc


def _api_error(response: httpx.Response) -> ApiError:
    message = response.reason_phrase or "Request failed"
    code: str | None = None
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            message = str(error.get("message") or message)
            code = error.get("code")
        else:
            message = str(body.get("message") or error or message)
            code = body.get("code")
    elif response.text:
        message = response.text.strip()[:200]
    return ApiError(response.status_code, message, code=code)
