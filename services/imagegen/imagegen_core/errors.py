from __future__ import annotations


class ImageGenError(Exception):
    kind = "internal_error"
    default_status_code = 500

    def __init__(self, detail: str, status_code: int | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code if status_code is not None else self.default_status_code


class ConfigError(ImageGenError):
    kind = "config_error"


class ValidationError(ImageGenError):
    kind = "validation_error"
    default_status_code = 422

    def __init__(self, field: str, constraint: str) -> None:
        super().__init__(f"{field}: {constraint}")
        self.field = field
        self.constraint = constraint


class SubmissionError(ImageGenError):
    kind = "submission_error"
    default_status_code = 502


class PollingError(ImageGenError):
    kind = "polling_error"
    default_status_code = 502


class InconsistentResultError(ImageGenError):
    kind = "inconsistent_result"


class JobFailedError(ImageGenError):
    kind = "job_failed"
    default_status_code = 502


class JobTimeoutError(ImageGenError):
    kind = "timeout"
    default_status_code = 504


class DownloadError(ImageGenError):
    kind = "download_error"
    default_status_code = 502


class StorageError(ImageGenError):
    kind = "storage_error"


def with_upstream_detail(message: str, body: str | None) -> str:
    body = (body or "").strip()
    if not body:
        return message
    return f"{message} ({body})"
