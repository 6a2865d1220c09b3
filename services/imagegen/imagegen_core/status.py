from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class JobState(str, Enum):
    scheduled = "scheduled"
    completed = "completed"
    failed = "failed"
    inconsistent = "inconsistent"
    unknown = "unknown"


TERMINAL_STATES = frozenset({JobState.completed, JobState.failed, JobState.inconsistent})


@dataclass(frozen=True)
class JobStatus:
    """One authoritative reading of a job; a fresh value is produced per poll."""

    state: JobState
    job_id: str = ""
    result_ref: Optional[str] = None
    reason: str = ""

    @classmethod
    def scheduled(cls, job_id: str = "") -> "JobStatus":
        return cls(JobState.scheduled, job_id=job_id)

    @classmethod
    def completed(cls, result_ref: str, job_id: str = "") -> "JobStatus":
        return cls(JobState.completed, job_id=job_id, result_ref=result_ref)

    @classmethod
    def failed(cls, job_id: str = "") -> "JobStatus":
        return cls(JobState.failed, job_id=job_id)

    @classmethod
    def inconsistent(cls, job_id: str = "") -> "JobStatus":
        return cls(JobState.inconsistent, job_id=job_id)

    @classmethod
    def unknown(cls, reason: str, job_id: str = "") -> "JobStatus":
        return cls(JobState.unknown, job_id=job_id, reason=reason)

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def to_payload(self, token: str) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"status": self.state.value, "token": token}
        if self.job_id:
            payload["jobId"] = self.job_id
        if self.result_ref:
            payload["remoteUrl"] = self.result_ref
        if self.reason:
            payload["reason"] = self.reason
        return payload


def _job_result(record: Dict[str, Any]) -> Dict[str, Any]:
    result = record.get("result")
    if isinstance(result, list):
        result = result[0] if result else None
    return result if isinstance(result, dict) else {}


def classify_job_record(record: Any) -> JobStatus:
    if not isinstance(record, dict):
        return JobStatus.unknown("job_record_not_object")
    job_id = record.get("jobId")
    job_id = job_id if isinstance(job_id, str) else ""
    result = _job_result(record)
    available = result.get("available") is True
    blob_url = result.get("blobUrl")
    if available:
        if isinstance(blob_url, str) and blob_url.strip():
            return JobStatus.completed(blob_url, job_id=job_id)
        return JobStatus.inconsistent(job_id=job_id)
    if "scheduled" not in record:
        return JobStatus.unknown("job_record_missing_scheduled", job_id=job_id)
    if record.get("scheduled") is True:
        return JobStatus.scheduled(job_id=job_id)
    return JobStatus.failed(job_id=job_id)


def classify_jobs_response(response: Any) -> JobStatus:
    if not isinstance(response, dict):
        return JobStatus.unknown("response_not_object")
    jobs = response.get("jobs")
    if not isinstance(jobs, list) or not jobs:
        return JobStatus.unknown("no_jobs")
    return classify_job_record(jobs[0])
