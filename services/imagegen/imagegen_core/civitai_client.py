from __future__ import annotations

import json
from http.client import HTTPException
from typing import Any, Dict, Optional
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

DEFAULT_BASE_URL = "https://orchestration.civitai.com"
_JOBS_PATH = "/v1/consumer/jobs"


class CivitaiAPIError(Exception):
    def __init__(self, detail: str, status_code: Optional[int] = None, body: str = "") -> None:
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code
        self.body = body


class CivitaiClient:
    """Thin client for the Civitai orchestration jobs API.

    Holds no per-job state, so one instance is shared across invocations.
    Every transport or decoding failure surfaces as ``CivitaiAPIError``.
    """

    def __init__(
        self,
        api_token: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout_s: float = 30.0,
    ) -> None:
        self.api_token = api_token
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s

    def submit_job(self, payload: Dict[str, Any], wait: bool = False) -> Dict[str, Any]:
        query = urlencode({"wait": "true" if wait else "false"})
        request = self._request(
            f"{self.base_url}{_JOBS_PATH}?{query}",
            data=json.dumps(payload).encode("utf-8"),
            headers=self._headers(),
            method="POST",
        )
        return self._read_json(request)

    def get_jobs(self, token: str) -> Dict[str, Any]:
        query = urlencode({"token": token})
        request = self._request(
            f"{self.base_url}{_JOBS_PATH}?{query}",
            headers=self._headers(),
            method="GET",
        )
        return self._read_json(request)

    def download(self, url: str) -> bytes:
        # Blob URLs are pre-signed; the API token is not sent to the blob host.
        request = self._request(url, method="GET")
        return self._fetch(request, "Civitai download")

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    @staticmethod
    def _request(url: str, **kwargs: Any) -> Request:
        try:
            return Request(url, **kwargs)
        except ValueError as exc:
            raise CivitaiAPIError(f"Invalid Civitai URL {url!r}: {exc}") from exc

    def _fetch(self, request: Request, label: str) -> bytes:
        try:
            with urlopen(request, timeout=self.timeout_s) as response:
                return response.read()
        except HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="replace") if exc.fp else ""
            raise CivitaiAPIError(
                f"{label} error: HTTP {exc.code}", status_code=exc.code, body=detail
            ) from exc
        except (URLError, TimeoutError, OSError, HTTPException, ValueError) as exc:
            raise CivitaiAPIError(f"{label} connection error: {exc}") from exc

    def _read_json(self, request: Request) -> Dict[str, Any]:
        raw = self._fetch(request, "Civitai API")
        try:
            body = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise CivitaiAPIError(
                f"Civitai API returned a non UTF-8 body: {exc}",
                body=raw[:500].decode("utf-8", errors="replace"),
            ) from exc
        if not body.strip():
            return {}
        try:
            data = json.loads(body)
        except json.JSONDecodeError as exc:
            raise CivitaiAPIError(f"Civitai API returned invalid JSON: {exc}", body=body[:500]) from exc
        if not isinstance(data, dict):
            raise CivitaiAPIError("Civitai API returned a non-object response", body=body[:500])
        return data
