from __future__ import annotations

import time
from typing import Any, Callable, Dict

from libs.core import logging as core_logging

from .civitai_client import CivitaiClient
from .clock import Clock, SystemClock
from .config import ImageGenConfig
from .errors import ImageGenError, ValidationError
from .materializer import ResultMaterializer
from .models import GenerationOutcome
from .polling import PollLoop
from .submitter import JobSubmitter
from .validation import validate_request

LOGGER = core_logging.get_logger("imagegen")


def create_client_from_config(config: ImageGenConfig) -> CivitaiClient:
    return CivitaiClient(
        api_token=config.api_token,
        base_url=config.base_url,
        timeout_s=config.http_timeout_s,
    )


class ImageGenerationService:
    """Runs one generation per call: validate, submit, poll, materialize.

    Nothing is kept between calls; the client and output directory are the
    only shared resources.
    """

    def __init__(
        self,
        config: ImageGenConfig,
        client: CivitaiClient | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.config = config
        self.client = client or create_client_from_config(config)
        self.clock = clock or SystemClock()
        self.submitter = JobSubmitter(self.client, default_model=config.model)
        self.materializer = ResultMaterializer(
            self.client,
            output_dir=config.output_dir,
            extension=config.output_format,
        )

    def _poll_loop(self) -> PollLoop:
        return PollLoop(self.client, self.config.polling_policy(), clock=self.clock)

    def generate(self, raw: Any) -> Dict[str, Any]:
        request = validate_request(raw)
        handle = self.submitter.submit(request)
        if not request.wait:
            return {"token": handle.token}
        status = self._poll_loop().run(handle)
        core_logging.log_event(
            LOGGER,
            "imagegen_job_completed",
            {"job_id": status.job_id, "persist": self.config.output_dir is not None},
        )
        return self.materializer.materialize(str(status.result_ref)).to_payload()

    def check_job(self, token: Any) -> Dict[str, Any]:
        if not isinstance(token, str) or not token.strip():
            raise ValidationError("token", "must be a non-empty string")
        token = token.strip()
        status = self._poll_loop().query(token)
        return status.to_payload(token)

    def execute(self, raw: Any) -> GenerationOutcome:
        return self._run("generate_image", lambda: self.generate(raw))

    def execute_check(self, token: Any) -> GenerationOutcome:
        return self._run("get_generation_status", lambda: self.check_job(token))

    def _run(self, operation: str, call: Callable[[], Dict[str, Any]]) -> GenerationOutcome:
        started_at = time.monotonic()
        try:
            result = call()
        except ImageGenError as exc:
            LOGGER.warning(
                "imagegen_operation_failed",
                operation=operation,
                kind=exc.kind,
                error=exc.detail,
                duration_ms=int(max(0.0, time.monotonic() - started_at) * 1000),
            )
            return GenerationOutcome.failure(exc.kind, exc.detail)
        except Exception as exc:  # noqa: BLE001
            LOGGER.exception("imagegen_operation_crashed", operation=operation)
            return GenerationOutcome.failure("internal_error", str(exc) or type(exc).__name__)
        LOGGER.info(
            "imagegen_operation_finished",
            operation=operation,
            duration_ms=int(max(0.0, time.monotonic() - started_at) * 1000),
        )
        return GenerationOutcome.success(result)
