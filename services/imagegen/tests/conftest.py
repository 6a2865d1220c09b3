from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace
from typing import Any, Callable, Dict, List

import pytest

from services.imagegen.imagegen_core import CivitaiAPIError, ImageGenConfig


class FakeClock:
    def __init__(self) -> None:
        self.current = 0.0
        self.sleeps: list[float] = []

    def now(self) -> float:
        return self.current

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.current += seconds


class FakeCivitaiClient:
    """Scripted stand-in for the Civitai jobs API.

    ``statuses`` entries are response dicts or exceptions to raise.
    """

    def __init__(
        self,
        submit_response: Dict[str, Any] | Exception | None = None,
        statuses: List[Dict[str, Any] | Exception] | None = None,
        content: bytes | Exception = b"\xff\xd8image-bytes",
        clock: FakeClock | None = None,
    ) -> None:
        self.submit_response = submit_response if submit_response is not None else {"token": "tok-1"}
        self.statuses = list(statuses or [])
        self.content = content
        self.clock = clock
        self.submitted: list[tuple[Dict[str, Any], bool]] = []
        self.queries: list[str] = []
        self.query_times: list[float] = []
        self.downloads: list[str] = []

    def submit_job(self, payload: Dict[str, Any], wait: bool = False) -> Dict[str, Any]:
        self.submitted.append((payload, wait))
        if isinstance(self.submit_response, Exception):
            raise self.submit_response
        return self.submit_response

    def get_jobs(self, token: str) -> Dict[str, Any]:
        self.queries.append(token)
        if self.clock is not None:
            self.query_times.append(self.clock.now())
        if not self.statuses:
            return scheduled_response()
        item = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        if isinstance(item, Exception):
            raise item
        return item

    def download(self, url: str) -> bytes:
        self.downloads.append(url)
        if isinstance(self.content, Exception):
            raise self.content
        return self.content


def scheduled_response(job_id: str = "job-1") -> Dict[str, Any]:
    return {
        "token": "tok-1",
        "jobs": [{"jobId": job_id, "scheduled": True, "result": {"available": False}}],
    }


def completed_response(url: str = "https://x/img.png", job_id: str = "job-1") -> Dict[str, Any]:
    return {
        "token": "tok-1",
        "jobs": [
            {
                "jobId": job_id,
                "scheduled": False,
                "result": {"blobKey": "abc", "available": True, "blobUrl": url},
            }
        ],
    }


def failed_response(job_id: str = "job-1") -> Dict[str, Any]:
    return {
        "token": "tok-1",
        "jobs": [{"jobId": job_id, "scheduled": False, "result": {"available": False}}],
    }


def inconsistent_response(job_id: str = "job-1") -> Dict[str, Any]:
    return {
        "token": "tok-1",
        "jobs": [{"jobId": job_id, "scheduled": False, "result": {"available": True}}],
    }


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_client(fake_clock: FakeClock) -> Callable[..., FakeCivitaiClient]:
    def _make(**kwargs: Any) -> FakeCivitaiClient:
        kwargs.setdefault("clock", fake_clock)
        return FakeCivitaiClient(**kwargs)

    return _make


@pytest.fixture
def make_config() -> Callable[..., ImageGenConfig]:
    def _make(output_dir: Path | None = None, **kwargs: Any) -> ImageGenConfig:
        kwargs.setdefault("poll_interval_s", 2.0)
        kwargs.setdefault("poll_timeout_s", 300.0)
        return ImageGenConfig(
            api_token="test-token",
            model="urn:air:sd1:checkpoint:civitai:4201@130072",
            output_dir=output_dir,
            **kwargs,
        )

    return _make


@pytest.fixture
def transport_error() -> CivitaiAPIError:
    return CivitaiAPIError("Civitai API connection error: boom")


@pytest.fixture
def jobs() -> SimpleNamespace:
    return SimpleNamespace(
        scheduled=scheduled_response,
        completed=completed_response,
        failed=failed_response,
        inconsistent=inconsistent_response,
    )
