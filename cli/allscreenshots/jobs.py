"""Async job tracking.

A job moves through ``QUEUED -> RUNNING -> DONE | FAILED | CANCELLED``. The
tracker drives that state machine with plain synchronous polls at a fixed
interval until a terminal state is reached or the caller's timeout elapses.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Protocol

from .errors import ApiError, JobFailedError, JobTimeoutError
from .models import CaptureRequest, Job, JobState

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 2.0
DEFAULT_TIMEOUT = 300.0

_TRANSITIONS: dict[JobState, frozenset[JobState]] = {
    JobState.QUEUED: frozenset({JobState.QUEUED, JobState.RUNNING, JobState.DONE, JobState.FAILED, JobState.CANCELLED}),
    JobState.RUNNING: frozenset({JobState.RUNNING, JobState.DONE, JobState.FAILED, JobState.CANCELLED}),
}


class JobClient(Protocol):
    def submit_async(self, request: CaptureRequest) -> Job:  # pragma: no cover - structural
        ...

    def get_job(self, job_id: str) -> Job:  # pragma: no cover - structural
        ...

    def get_job_result(self, job_id: str) -> bytes:  # pragma: no cover - structural
        ...


def job_state(job: Job) -> JobState:
    try:
        return job.state
    except ValueError as exc:
        raise ApiError(200, f"Job {job.id} reported an unknown status '{job.status}'") from exc


class JobTracker:
    def __init__(
        self,
        client: JobClient,
        *,
        interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float = DEFAULT_TIMEOUT,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._client = client
        self._interval = interval
        self._timeout = timeout
        self._sleep = sleep
        self._clock = clock

    def submit(self, request: CaptureRequest) -> Job:
        job = self._client.submit_async(request)
        logger.debug("submitted job %s (%s)", job.id, job.status)
        return job

    def wait(self, job_id: str, *, on_update: Callable[[Job], None] | None = None) -> Job:
        """Poll until the job is terminal; raise :class:`JobTimeoutError` past the deadline."""
        started = self._clock()
        state = JobState.QUEUED
        while True:
            self._sleep(self._interval)
            job = self._client.get_job(job_id)
            new_state = job_state(job)
            if new_state not in _TRANSITIONS[state]:
                # The service occasionally reports a stale status; keep the furthest state seen.
                logger.debug("job %s reported %s after %s; ignoring regression", job_id, new_state.value, state.value)
            else:
                if new_state is not state:
                    logger.debug("job %s: %s -> %s", job_id, state.value, new_state.value)
                state = new_state
            if on_update is not None:
                on_update(job)
            if state.is_terminal:
                return job
            waited = self._clock() - started
            if waited >= self._timeout:
                raise JobTimeoutError(job_id, waited)

    def fetch(self, job: Job) -> bytes:
        state = job_state(job)
        if state is JobState.FAILED:
            raise JobFailedError(job.id, job.error_message or "Unknown error")
        if state is JobState.CANCELLED:
            raise JobFailedError(job.id, "Screenshot job was cancelled")
        if state is not JobState.DONE:
            raise JobFailedError(job.id, f"Job is not completed. Current status: {job.status}")
        return self._client.get_job_result(job.id)

    def run(self, request: CaptureRequest, *, on_update: Callable[[Job], None] | None = None) -> tuple[Job, bytes]:
        job = self.submit(request)
        if not job_state(job).is_terminal:
            job = self.wait(job.id, on_update=on_update)
        return job, self.fetch(job)
