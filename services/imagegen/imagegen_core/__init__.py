from .civitai_client import CivitaiAPIError, CivitaiClient
from .clock import Clock, SystemClock
from .config import ImageGenConfig, load_config
from .errors import (
    ConfigError,
    DownloadError,
    ImageGenError,
    InconsistentResultError,
    JobFailedError,
    JobTimeoutError,
    PollingError,
    StorageError,
    SubmissionError,
    ValidationError,
)
from .materializer import ResultMaterializer, ensure_directory
from .models import GenerationOutcome, GenerationRequest, JobHandle, MaterializedResult, Scheduler
from .polling import PollLoop, PollingPolicy
from .service import ImageGenerationService
from .status import JobState, JobStatus, classify_job_record, classify_jobs_response
from .submitter import JobSubmitter
from .validation import validate_request

__all__ = [
    "CivitaiAPIError",
    "CivitaiClient",
    "Clock",
    "SystemClock",
    "ImageGenConfig",
    "load_config",
    "ConfigError",
    "DownloadError",
    "ImageGenError",
    "InconsistentResultError",
    "JobFailedError",
    "JobTimeoutError",
    "PollingError",
    "StorageError",
    "SubmissionError",
    "ValidationError",
    "ResultMaterializer",
    "ensure_directory",
    "GenerationOutcome",
    "GenerationRequest",
    "JobHandle",
    "MaterializedResult",
    "Scheduler",
    "PollLoop",
    "PollingPolicy",
    "ImageGenerationService",
    "JobState",
    "JobStatus",
    "classify_job_record",
    "classify_jobs_response",
    "JobSubmitter",
    "validate_request",
]
