from __future__ import annotations

from dataclasses import dataclass

from libs.core import logging as core_logging

from .civitai_client import CivitaiAPIError, CivitaiClient
from .clock import Clock, SystemClock
from .errors import (
    InconsistentResultError,
    JobFailedError,
    JobTimeoutError,
    PollingError,
    with_upstream_detail,
)
from .models import JobHandle
from .status import JobState, JobStatus, classify_jobs_response

LOGGER = core_logging.get_logger("imagegen")


@dataclass(frozen=True)
class PollingPolicy:
    interval_s: float = 2.0
    deadline_s: float = 300.0

    def __post_init__(self) -> None:
        if self.interval_s <= 0:
            raise ValueError("interval_s must be positive")
        if self.deadline_s <= 0:
            raise ValueError("deadline_s must be positive")


class PollLoop:
    """Polls a submitted job until it reaches a terminal state or the deadline.

    The deadline is checked after each non-terminal reading and before the
    sleep, so a terminal reading is always honored while no query is issued
    at or past the deadline. Transport failures end the loop immediately.
    """

    def __init__(self, client: CivitaiClient, policy: PollingPolicy, clock: Clock | None = None) -> None:
        self.client = client
        self.policy = policy
        self.clock = clock or SystemClock()

    def query(self, token: str) -> JobStatus:
        try:
            response = self.client.get_jobs(token)
        except CivitaiAPIError as exc:
            raise PollingError(with_upstream_detail(exc.detail, exc.body)) from exc
        return classify_jobs_response(response)

    def run(self, handle: JobHandle) -> JobStatus:
        started_at = self.clock.now()
        attempt = 0
        while True:
            attempt += 1
            status = self.query(handle.token)
            elapsed = self.clock.now() - started_at
            LOGGER.info(
                "imagegen_poll_status",
                attempt=attempt,
                state=status.state.value,
                job_id=status.job_id,
                elapsed_ms=int(elapsed * 1000),
            )
            if status.state == JobState.completed:
                return status
            if status.state == JobState.inconsistent:
                raise InconsistentResultError(
                    "Civitai job reported available but no image URL was returned"
                )
            if status.state == JobState.failed:
                raise JobFailedError(
                    f"Civitai abandoned the job without producing a result (job_id={status.job_id or 'unknown'})"
                )
            if elapsed + self.policy.interval_s >= self.policy.deadline_s:
                LOGGER.warning("imagegen_poll_timed_out", attempts=attempt, elapsed_ms=int(elapsed * 1000))
                raise JobTimeoutError(
                    f"Civitai job did not finish within {self.policy.deadline_s:g}s "
                    f"after {attempt} status queries"
                )
            self.clock.sleep(self.policy.interval_s)
