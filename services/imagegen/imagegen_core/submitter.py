from __future__ import annotations

from typing import Any, Dict

from libs.core import logging as core_logging

from .civitai_client import CivitaiAPIError, CivitaiClient
from .errors import SubmissionError, with_upstream_detail
from .models import GenerationRequest, JobHandle

LOGGER = core_logging.get_logger("imagegen")


def build_job_payload(request: GenerationRequest, model: str) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "$type": "textToImage",
        "model": model,
        "params": request.to_params(),
        "quantity": 1,
    }
    if request.additional_networks:
        payload["additionalNetworks"] = {
            urn: network.to_payload() for urn, network in request.additional_networks.items()
        }
    return payload


def _job_ids(response: Dict[str, Any]) -> tuple[str, ...]:
    jobs = response.get("jobs")
    if not isinstance(jobs, list):
        return ()
    return tuple(
        job["jobId"] for job in jobs if isinstance(job, dict) and isinstance(job.get("jobId"), str)
    )


class JobSubmitter:
    def __init__(self, client: CivitaiClient, default_model: str) -> None:
        self.client = client
        self.default_model = default_model

    def submit(self, request: GenerationRequest) -> JobHandle:
        model = request.model or self.default_model
        payload = build_job_payload(request, model)
        LOGGER.info(
            "imagegen_submit_started",
            model=model,
            scheduler=request.scheduler.value,
            steps=request.steps,
            width=request.width,
            height=request.height,
            networks=len(request.additional_networks),
            prompt_len=len(request.prompt),
        )
        try:
            response = self.client.submit_job(payload, wait=False)
        except CivitaiAPIError as exc:
            LOGGER.warning("imagegen_submit_failed", error=exc.detail, status_code=exc.status_code)
            raise SubmissionError(with_upstream_detail(exc.detail, exc.body)) from exc

        token = response.get("token") if isinstance(response, dict) else None
        if not isinstance(token, str) or not token.strip():
            LOGGER.error("imagegen_submit_missing_token", response_keys=sorted(response or {}))
            raise SubmissionError("Civitai job submission did not return a token")
        handle = JobHandle(token=token.strip(), job_ids=_job_ids(response))
        LOGGER.info("imagegen_submit_accepted", job_ids=list(handle.job_ids))
        return handle
